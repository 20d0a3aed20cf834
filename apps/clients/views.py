# apps/clients/views.py
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.filters import ClientListFilter, sort_visits_chronologically
from apps.core.mixins import EntityStoreMixin
from apps.core.pagination import StaticPagination
from apps.core.store import KIND_CLIENTS, KIND_CORRECTIVE_TASKS, KIND_VISITS, entity_store
from .serializers import ClientSerializer


class ClientViewSet(EntityStoreMixin, viewsets.ModelViewSet):
    """
    ViewSet for managing clients.

    Endpoints:
        - GET /api/clients/?search= - List clients by company name
        - POST /api/clients/ - Create client
        - GET /api/clients/{id}/ - Retrieve client
        - PUT/PATCH /api/clients/{id}/ - Update client
        - DELETE /api/clients/{id}/ - Delete client (visits and tasks are kept)
        - GET /api/clients/{id}/overview/ - Client with its visits and tasks
    """
    serializer_class = ClientSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StaticPagination
    filter_backends = [ClientListFilter]
    store_kind = KIND_CLIENTS

    @action(detail=True, methods=['get'])
    def overview(self, request, pk=None):
        """Client record with its visit history (latest first) and corrective tasks"""
        from apps.corrective_tasks.serializers import CorrectiveTaskSerializer
        from apps.visits.serializers import VisitSerializer

        client = self.get_object()
        context = {**self.get_serializer_context(), 'clients_map': {client.id: client}}

        visits = sort_visits_chronologically(
            entity_store.safe_list(KIND_VISITS, client_id=client.id)
        )
        visits.reverse()
        tasks = entity_store.safe_list(KIND_CORRECTIVE_TASKS, client_id=client.id)

        return Response({
            'client': ClientSerializer(client, context=context).data,
            'visits': VisitSerializer(visits, many=True, context=context).data,
            'corrective_tasks': CorrectiveTaskSerializer(tasks, many=True, context=context).data,
        })
