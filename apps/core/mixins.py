# apps/core/mixins.py
"""
Reusable mixins for ViewSets backed by the entity store.
"""
from .filters import clients_by_id
from .store import KIND_CLIENTS, entity_store


class EntityStoreMixin:
    """
    Routes listing, object lookup and deletion through the entity store.
    Set ``store_kind`` on the ViewSet; ``filter_backends`` then narrow and
    order the loaded list before the stock pagination runs.
    """
    store_kind = None

    def get_queryset(self):
        return entity_store.safe_list(self.store_kind)

    def get_object(self):
        lookup_url_kwarg = self.lookup_url_kwarg or self.lookup_field
        instance = entity_store.get(self.store_kind, self.kwargs[lookup_url_kwarg])
        self.check_object_permissions(self.request, instance)
        return instance

    def perform_destroy(self, instance):
        entity_store.delete(self.store_kind, instance.pk)


class ClientsMapMixin:
    """
    Loads the client lookup map once per request so serializers can resolve
    ``client_id`` without a query per row.
    """
    def get_clients_map(self):
        if not hasattr(self, '_clients_map'):
            self._clients_map = clients_by_id(entity_store.safe_list(KIND_CLIENTS))
        return self._clients_map

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['clients_map'] = self.get_clients_map()
        return context
