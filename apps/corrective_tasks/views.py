# apps/corrective_tasks/views.py
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.filters import CorrectiveTaskListFilter
from apps.core.mixins import ClientsMapMixin, EntityStoreMixin
from apps.core.pagination import StaticPagination
from apps.core.store import KIND_CORRECTIVE_TASKS
from .serializers import CorrectiveTaskSerializer, TaskCompletionSerializer
from .services import CorrectiveTaskService


class CorrectiveTaskViewSet(EntityStoreMixin, ClientsMapMixin, viewsets.ModelViewSet):
    """
    ViewSet for managing corrective tasks.

    Endpoints:
        - GET /api/corrective-tasks/?status=&priority=&search=&client= - List, newest first
        - POST /api/corrective-tasks/ - Report a task
        - GET /api/corrective-tasks/{id}/ - Retrieve task
        - PUT/PATCH /api/corrective-tasks/{id}/ - Edit a task that is not completed
        - DELETE /api/corrective-tasks/{id}/ - Delete task (any status)
        - POST /api/corrective-tasks/{id}/start/ - pending -> in_progress
        - POST /api/corrective-tasks/{id}/complete/ - Complete with technicians
    """
    serializer_class = CorrectiveTaskSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StaticPagination
    filter_backends = [CorrectiveTaskListFilter]
    store_kind = KIND_CORRECTIVE_TASKS

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        task = self.get_object()
        task = CorrectiveTaskService.start(task.pk)
        return Response({
            'message': 'Tarea en proceso',
            'task': self.get_serializer(task).data,
        })

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """
        Complete a task.

        Body: {"technicians": [...], "notes": ""}
        """
        task = self.get_object()
        serializer = TaskCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        task = CorrectiveTaskService.complete(
            task.pk,
            technicians=serializer.validated_data['technicians'],
            notes=serializer.validated_data.get('notes')
        )
        return Response({
            'message': 'Tarea completada',
            'task': self.get_serializer(task).data,
        })
