# apps/reminders/views.py
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exceptions import NotFoundError
from .repository import get_reminder_repository
from .serializers import ReminderSerializer


class ReminderViewSet(viewsets.ViewSet):
    """
    Local reminders. Not paginated; the list is small and kept on this device.

    Endpoints:
        - GET /api/reminders/ - Pending first, then by date and time
        - POST /api/reminders/ - Add reminder
        - PUT/PATCH /api/reminders/{id}/ - Edit reminder
        - DELETE /api/reminders/{id}/ - Delete reminder
        - POST /api/reminders/{id}/toggle/ - Flip completed
    """
    permission_classes = [IsAuthenticated]

    def get_repository(self):
        return get_reminder_repository(self.request.user)

    def _reminder_id(self, pk):
        try:
            return int(pk)
        except (TypeError, ValueError):
            raise NotFoundError('Recordatorio no encontrado') from None

    def list(self, request):
        reminders = self.get_repository().sorted_for_display()
        return Response(ReminderSerializer(reminders, many=True).data)

    def create(self, request):
        serializer = ReminderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.to_storage()

        reminder = self.get_repository().add(
            title=data['title'],
            date=data['date'],
            time=data.get('time', ''),
            description=data.get('description', '')
        )
        return Response(ReminderSerializer(reminder).data, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None, partial=False):
        repository = self.get_repository()
        reminder_id = self._reminder_id(pk)
        current = repository.get(reminder_id)

        serializer = ReminderSerializer(current, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)

        reminder = repository.update(reminder_id, **serializer.to_storage())
        return Response(ReminderSerializer(reminder).data)

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        self.get_repository().delete(self._reminder_id(pk))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        reminder = self.get_repository().toggle_completed(self._reminder_id(pk))
        return Response(ReminderSerializer(reminder).data)
