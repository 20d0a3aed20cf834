# apps/users/views.py
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.core.business_rules import technician_roster


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def technicians(request):
    """
    Technician roster used by visit completion and task forms.
    GET /api/technicians/
    """
    return Response({'technicians': technician_roster()})
