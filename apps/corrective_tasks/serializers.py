# apps/corrective_tasks/serializers.py
from django.utils import timezone
from rest_framework import serializers

from apps.core.business_rules import BusinessRules, TaskStatus, priority_display, task_status_display
from apps.core.exceptions import BusinessRuleViolationError
from apps.core.serializers import ClientReferenceMixin, EntityStoreSerializer
from apps.core.store import KIND_CORRECTIVE_TASKS
from .models import CorrectiveTask


class CorrectiveTaskSerializer(ClientReferenceMixin, EntityStoreSerializer):
    store_kind = KIND_CORRECTIVE_TASKS

    status_display = serializers.SerializerMethodField()
    priority_display = serializers.SerializerMethodField()

    class Meta:
        model = CorrectiveTask
        fields = [
            'id', 'client_id', 'client_name', 'origin_visit_id', 'description',
            'priority', 'priority_display', 'status', 'status_display',
            'reported_date', 'reported_by', 'completed_date', 'completed_by',
            'notes', 'photos', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'origin_visit_id', 'status', 'completed_date', 'completed_by',
            'photos', 'created_at', 'updated_at'
        ]
        extra_kwargs = {
            'client_id': {
                'error_messages': {
                    'required': 'Debe seleccionar un cliente',
                    'blank': 'Debe seleccionar un cliente',
                }
            },
            'description': {
                'error_messages': {
                    'required': 'La descripción es obligatoria',
                    'blank': 'La descripción es obligatoria',
                }
            },
            'priority': {
                'error_messages': {
                    'invalid_choice': 'Prioridad inválida',
                }
            },
            'reported_by': {
                'required': True,
                'allow_blank': False,
                'error_messages': {
                    'required': 'Debe indicar quién reporta la tarea',
                    'blank': 'Debe indicar quién reporta la tarea',
                }
            },
        }

    def get_status_display(self, obj):
        return task_status_display(obj.status)

    def get_priority_display(self, obj):
        return priority_display(obj.priority)

    def validate_description(self, value):
        if not value.strip():
            raise serializers.ValidationError('La descripción es obligatoria')
        return value.strip()

    def validate_reported_by(self, value):
        try:
            return BusinessRules.validate_technician(value)
        except BusinessRuleViolationError as exc:
            raise serializers.ValidationError(exc.message)

    def create(self, validated_data):
        validated_data['status'] = TaskStatus.PENDING
        if not validated_data.get('reported_date'):
            validated_data['reported_date'] = timezone.now()
        return super().create(validated_data)

    def update(self, instance, validated_data):
        BusinessRules.ensure_task_editable(instance)
        return super().update(instance, validated_data)


class TaskCompletionSerializer(serializers.Serializer):
    """Payload of POST /api/corrective-tasks/{id}/complete/"""
    technicians = serializers.ListField(
        child=serializers.CharField(allow_blank=True),
        allow_empty=True,
        error_messages={'required': 'Debe asignar al menos un técnico'}
    )
    notes = serializers.CharField(allow_blank=True, required=False)
