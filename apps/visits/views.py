# apps/visits/views.py
from datetime import datetime

from django.conf import settings
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.exceptions import BusinessRuleViolationError
from apps.core.filters import VisitListFilter
from apps.core.mixins import ClientsMapMixin, EntityStoreMixin
from apps.core.pagination import StaticPagination
from apps.core.store import KIND_VISITS, entity_store
from .calendar_services import CalendarService
from .serializers import CalendarDaySerializer, VisitCompletionSerializer, VisitSerializer
from .services import VisitService


def _parse_query_date(value, fmt, message):
    try:
        return datetime.strptime(value, fmt).date()
    except (TypeError, ValueError):
        raise BusinessRuleViolationError(message) from None


class VisitViewSet(EntityStoreMixin, ClientsMapMixin, viewsets.ModelViewSet):
    """
    ViewSet for managing maintenance visits.

    Endpoints:
        - GET /api/visits/?status=&search=&client= - List visits, earliest first
        - POST /api/visits/ - Schedule a visit
        - GET /api/visits/{id}/ - Retrieve visit
        - PUT/PATCH /api/visits/{id}/ - Edit a scheduled visit
        - DELETE /api/visits/{id}/ - Delete a scheduled visit
        - POST /api/visits/{id}/complete/ - Complete visit and raise corrective tasks
        - GET /api/visits/calendar/?month=YYYY-MM - Month grid
        - GET /api/visits/calendar/day/?date=YYYY-MM-DD - Visits of one day
    """
    serializer_class = VisitSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StaticPagination
    filter_backends = [VisitListFilter]
    store_kind = KIND_VISITS

    def perform_destroy(self, instance):
        VisitService.delete_visit(instance.pk)

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        """
        Complete a scheduled visit.

        Body: {"technicians": [...], "notes": "", "issues": [{"description", "priority"}]}
        """
        visit = self.get_object()
        serializer = VisitCompletionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = VisitService.complete_visit(
            visit.pk,
            technicians=serializer.validated_data['technicians'],
            notes=serializer.validated_data.get('notes', ''),
            issues=serializer.validated_data.get('issues', [])
        )

        return Response({
            'message': 'Visita completada',
            'visit': self.get_serializer(result['visit']).data,
            'created_task_ids': result['task_ids'],
        }, status=status.HTTP_200_OK)

    @action(detail=False, methods=['get'], url_path='calendar')
    def calendar(self, request):
        """
        Month grid, Sunday to Saturday.

        Query params:
            - month: YYYY-MM (defaults to the current month)
        """
        month = request.query_params.get('month')
        if month:
            anchor = _parse_query_date(month, '%Y-%m', 'Mes inválido, use el formato AAAA-MM')
        else:
            anchor = CalendarService.current_month()

        grid = CalendarService.build_month(
            anchor,
            entity_store.safe_list(KIND_VISITS),
            self.get_clients_map(),
            today=timezone.localdate(),
            max_per_day=settings.CALENDAR_MAX_VISITS_PER_DAY
        )

        return Response({
            'month': grid['month'].strftime('%Y-%m'),
            'previous_month': CalendarService.previous_month(anchor).strftime('%Y-%m'),
            'next_month': CalendarService.next_month(anchor).strftime('%Y-%m'),
            'grid_start': grid['grid_start'],
            'grid_end': grid['grid_end'],
            'days': CalendarDaySerializer(
                grid['days'], many=True, context=self.get_serializer_context()
            ).data,
        })

    @action(detail=False, methods=['get'], url_path='calendar/day')
    def calendar_day(self, request):
        """
        Every visit of one day, earliest first.

        Query params:
            - date: YYYY-MM-DD (required)
        """
        day = _parse_query_date(
            request.query_params.get('date'),
            '%Y-%m-%d',
            'Fecha inválida, use el formato AAAA-MM-DD'
        )
        entries = CalendarService.day_detail(
            day,
            entity_store.safe_list(KIND_VISITS),
            self.get_clients_map()
        )

        return Response({
            'date': day,
            'count': len(entries),
            'visits': self.get_serializer([entry['visit'] for entry in entries], many=True).data,
        })
