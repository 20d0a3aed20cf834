# apps/core/serializers.py
"""
Serializer building blocks shared by the client, visit and task APIs.
"""
from rest_framework import serializers

from .exceptions import NotFoundError
from .store import KIND_CLIENTS, entity_store

MISSING_CLIENT_LABEL = 'Cliente no encontrado'


class EntityStoreSerializer(serializers.ModelSerializer):
    """
    ModelSerializer whose writes go through the entity store.
    Subclasses set ``store_kind``.
    """
    store_kind = None

    def create(self, validated_data):
        entity_id = entity_store.create(self.store_kind, validated_data)
        return entity_store.get(self.store_kind, entity_id)

    def update(self, instance, validated_data):
        entity_store.update(self.store_kind, instance.pk, validated_data)
        return entity_store.get(self.store_kind, instance.pk)


class CommaSeparatedListField(serializers.Field):
    """
    Accepts "a@x.com, b@y.com" or a list; entries are trimmed and blanks dropped.
    """
    default_error_messages = {
        'invalid': 'Se esperaba una lista o un texto separado por comas',
    }

    def to_internal_value(self, data):
        if isinstance(data, str):
            items = data.split(',')
        elif isinstance(data, (list, tuple)):
            items = data
        else:
            self.fail('invalid')
        return [item.strip() for item in items if isinstance(item, str) and item.strip()]

    def to_representation(self, value):
        return list(value or [])


class ClientReferenceMixin(serializers.Serializer):
    """
    Adds ``client_name`` resolved from the ``clients_map`` in the serializer
    context and validates ``client_id`` against the store.
    """
    client_name = serializers.SerializerMethodField()

    def get_client_name(self, obj):
        clients_map = self.context.get('clients_map')
        if clients_map is None:
            client = _lookup_client(obj.client_id)
        else:
            client = clients_map.get(obj.client_id)
        return client.company_name if client else MISSING_CLIENT_LABEL

    def validate_client_id(self, value):
        try:
            entity_store.get(KIND_CLIENTS, value)
        except NotFoundError:
            raise serializers.ValidationError(MISSING_CLIENT_LABEL)
        return value


def _lookup_client(client_id):
    try:
        return entity_store.get(KIND_CLIENTS, client_id)
    except NotFoundError:
        return None
