# apps/clients/serializers.py
from rest_framework import serializers

from apps.core.business_rules import frequency_display
from apps.core.serializers import CommaSeparatedListField, EntityStoreSerializer
from apps.core.store import KIND_CLIENTS
from .models import Client


class ClientSerializer(EntityStoreSerializer):
    store_kind = KIND_CLIENTS

    report_emails = CommaSeparatedListField(required=False)
    frequency_display = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'company_name', 'referent_name', 'referent_position',
            'address', 'contract_ref', 'report_emails', 'frequency',
            'frequency_display', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'company_name': {
                'error_messages': {
                    'required': 'El nombre de la empresa es obligatorio',
                    'blank': 'El nombre de la empresa es obligatorio',
                }
            },
            'address': {
                'error_messages': {
                    'required': 'La dirección es obligatoria',
                    'blank': 'La dirección es obligatoria',
                }
            },
            'frequency': {
                'error_messages': {
                    'invalid_choice': 'Frecuencia inválida',
                }
            },
        }

    def get_frequency_display(self, obj):
        return frequency_display(obj.frequency)
