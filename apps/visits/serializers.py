# apps/visits/serializers.py
from rest_framework import serializers

from apps.core.business_rules import TaskPriority, visit_status_display
from apps.core.serializers import ClientReferenceMixin, EntityStoreSerializer
from apps.core.store import KIND_VISITS, entity_store
from .models import Visit
from .services import VisitService


class VisitSerializer(ClientReferenceMixin, EntityStoreSerializer):
    store_kind = KIND_VISITS

    scheduled_date = serializers.DateTimeField(
        error_messages={
            'required': 'La fecha de la visita es obligatoria',
            'null': 'La fecha de la visita es obligatoria',
            'invalid': 'Fecha inválida',
        }
    )
    technicians = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        required=False
    )
    status_display = serializers.SerializerMethodField()

    class Meta:
        model = Visit
        fields = [
            'id', 'client_id', 'client_name', 'scheduled_date', 'status',
            'status_display', 'technicians', 'notes', 'completed_date',
            'is_past_date_visit', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'status', 'completed_date', 'is_past_date_visit',
            'created_at', 'updated_at'
        ]
        extra_kwargs = {
            'client_id': {
                'error_messages': {
                    'required': 'Debe seleccionar un cliente',
                    'blank': 'Debe seleccionar un cliente',
                }
            },
        }

    def get_status_display(self, obj):
        return visit_status_display(obj.status)

    def create(self, validated_data):
        visit_id = VisitService.schedule_visit(validated_data)
        return entity_store.get(KIND_VISITS, visit_id)

    def update(self, instance, validated_data):
        VisitService.reschedule_visit(instance.pk, validated_data)
        return entity_store.get(KIND_VISITS, instance.pk)


class VisitIssueSerializer(serializers.Serializer):
    description = serializers.CharField(
        error_messages={
            'required': 'La descripción del problema es obligatoria',
            'blank': 'La descripción del problema es obligatoria',
        }
    )
    priority = serializers.ChoiceField(
        choices=TaskPriority.choices,
        default=TaskPriority.NORMAL,
        error_messages={'invalid_choice': 'Prioridad inválida'}
    )


class VisitCompletionSerializer(serializers.Serializer):
    """Payload of POST /api/visits/{id}/complete/"""
    technicians = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        allow_empty=True,
        error_messages={'required': 'Debe asignar al menos un técnico'}
    )
    notes = serializers.CharField(allow_blank=True, required=False, default='')
    issues = VisitIssueSerializer(many=True, required=False, default=list)


class CalendarDaySerializer(serializers.Serializer):
    """One cell of the month grid built by CalendarService.build_month"""
    date = serializers.DateField()
    day = serializers.IntegerField()
    is_current_month = serializers.BooleanField()
    is_today = serializers.BooleanField()
    overflow_count = serializers.IntegerField()
    visits = serializers.SerializerMethodField()
    visible_visits = serializers.SerializerMethodField()

    def _visits(self, entries):
        return VisitSerializer(
            [entry['visit'] for entry in entries],
            many=True,
            context=self.context
        ).data

    def get_visits(self, obj):
        return self._visits(obj['visits'])

    def get_visible_visits(self, obj):
        return self._visits(obj['visible_visits'])
