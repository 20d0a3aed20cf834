from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import CorrectiveTaskViewSet

router = DefaultRouter()
router.register(r'corrective-tasks', CorrectiveTaskViewSet, basename='corrective-tasks')

urlpatterns = [
    path('', include(router.urls)),
]
