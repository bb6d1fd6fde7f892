from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from lagerapp.core.utils import InvalidParameter, warehouse_param
from lagerapp.machines.serializers import MachineSerializer
from .serializers import DashboardCommissionSerializer, ActivitySerializer
from .services import dashboard_commissions, dashboard_machines, dashboard_counts, recent_activity


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_summary(request):
    """Machines out, open commissions and order counts; ?warehouse= narrows commissions and orders"""
    try:
        warehouse_id = warehouse_param(request.query_params.get('warehouse'))
    except InvalidParameter as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    commissions = dashboard_commissions(warehouse_id)
    machines = dashboard_machines()
    return Response({
        'rented_machines': MachineSerializer(machines['rented'], many=True).data,
        'repair_machines': MachineSerializer(machines['in_repair'], many=True).data,
        'commissions_in_progress': DashboardCommissionSerializer(commissions['in_progress'], many=True).data,
        'commissions_ready': DashboardCommissionSerializer(commissions['ready'], many=True).data,
        'commissions_returns': DashboardCommissionSerializer(commissions['returns'], many=True).data,
        'counts': dashboard_counts(warehouse_id),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_activity(request):
    return Response(ActivitySerializer(recent_activity(), many=True).data)
