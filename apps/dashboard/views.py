# apps/dashboard/views.py
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.corrective_tasks.serializers import CorrectiveTaskSerializer
from apps.reminders.serializers import ReminderSerializer
from apps.visits.serializers import VisitSerializer
from .services import DashboardService


class DashboardSummaryView(APIView):
    """
    Main dashboard summary: counts, next visits, urgent tasks and reminders.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        summary = DashboardService.load_summary(request.user)
        context = {'request': request, 'clients_map': summary['clients_map']}

        return Response({
            'user': summary['user'],
            'counts': summary['counts'],
            'upcoming_visits': VisitSerializer(
                [entry['visit'] for entry in summary['upcoming_visits']],
                many=True, context=context
            ).data,
            'urgent_tasks': CorrectiveTaskSerializer(
                [entry['task'] for entry in summary['urgent_tasks']],
                many=True, context=context
            ).data,
            'reminders': ReminderSerializer(summary['reminders'], many=True).data,
        })
