"""
URL configuration.
"""
from django.contrib import admin
from django.urls import path, include, re_path

urlpatterns = [
    # Authentication (djoser)
    re_path(r'^api/', include('djoser.urls')),
    re_path(r'^api/', include('djoser.urls.jwt')),

    # Admin
    path('admin/', admin.site.urls),

    # API endpoints (note: apps. prefix)
    path('api/', include('apps.users.urls')),
    path('api/', include('apps.clients.urls')),
    path('api/', include('apps.visits.urls')),
    path('api/', include('apps.corrective_tasks.urls')),
    path('api/', include('apps.reminders.urls')),
    path('api/', include('apps.dashboard.urls')),
]
