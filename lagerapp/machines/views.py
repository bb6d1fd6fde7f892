import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from lagerapp.core import blob_storage
from lagerapp.core.utils import paginated_response
from .models import Machine, MachineEvent, MachineReservation
from .serializers import (
    MachineSerializer, MachineEventSerializer, MachineReservationSerializer,
    BorrowSerializer, ReturnSerializer,
)
from .services import (
    MachineError, ReservationConflict, reservation_warning, borrow_machine, return_machine,
    finish_repair, upcoming_reservations, reserve_machine,
)

logger = logging.getLogger('lagerapp.machines')
User = get_user_model()


def _machine_queryset():
    return Machine.objects.select_related('assigned_to')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def machine_list_create(request):
    """List machines (filter by status) or add a new, available machine"""
    if request.method == 'GET':
        queryset = _machine_queryset()
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(name__icontains=search)
        return Response(MachineSerializer(queryset.order_by('name'), many=True).data)

    serializer = MachineSerializer(data=request.data)
    if serializer.is_valid():
        machine = serializer.save(status='Available')
        logger.info(f"Machine {machine.pk} ({machine.name}) created by {request.user.username}")
        return Response(MachineSerializer(machine).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def machine_detail(request, pk):
    machine = get_object_or_404(_machine_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(MachineSerializer(machine).data)
    elif request.method == 'PATCH':
        serializer = MachineSerializer(machine, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        image_url = machine.image_url
        machine.delete()
        if image_url:
            blob_storage.delete_blob(image_url)
        logger.info(f"Machine {pk} deleted by {request.user.username}")
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def machine_image_upload(request, pk):
    machine = get_object_or_404(Machine, pk=pk)
    uploaded = request.FILES.get('image')
    if not uploaded:
        return Response({'error': 'Kein Bild übermittelt'}, status=status.HTTP_400_BAD_REQUEST)
    try:
        url = blob_storage.upload_file('machines', uploaded)
    except ValueError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    if not url:
        return Response({'error': 'Speicher nicht verfügbar'}, status=status.HTTP_503_SERVICE_UNAVAILABLE)

    old_url = machine.image_url
    machine.image_url = url
    machine.save(update_fields=['image_url', 'updated_at'])
    if old_url:
        blob_storage.delete_blob(old_url)
    return Response(MachineSerializer(machine).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def machine_borrow(request, pk):
    """
    GET: reservation warning for today (optional ?user=<id>).
    POST: lend the machine; lending a rented machine is a transfer.
    """
    machine = get_object_or_404(_machine_queryset(), pk=pk)

    if request.method == 'GET':
        borrower = None
        user_id = request.query_params.get('user')
        if user_id:
            borrower = get_object_or_404(User, pk=user_id)
        return Response({'warning': reservation_warning(machine, borrower)})

    serializer = BorrowSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    borrower = serializer.validated_data.get('user')
    try:
        machine = borrow_machine(
            machine, request.user, borrower=borrower,
            external_name=serializer.validated_data.get('external_name'),
        )
    except MachineError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(dict(MachineSerializer(machine).data, warning=reservation_warning(machine, borrower)))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def machine_return(request, pk):
    machine = get_object_or_404(_machine_queryset(), pk=pk)
    serializer = ReturnSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        machine = return_machine(
            machine, request.user,
            defect=serializer.validated_data['condition'] == 'Defect',
            defect_note=serializer.validated_data['defect_note'],
        )
    except MachineError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(MachineSerializer(machine).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def machine_repair_finished(request, pk):
    machine = get_object_or_404(_machine_queryset(), pk=pk)
    try:
        machine = finish_repair(machine, request.user)
    except MachineError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(MachineSerializer(machine).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def machine_reservations(request, pk):
    """Current and upcoming reservations; POST books a new date range"""
    machine = get_object_or_404(Machine, pk=pk)

    if request.method == 'GET':
        return Response(MachineReservationSerializer(upcoming_reservations(machine), many=True).data)

    serializer = MachineReservationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        reservation = reserve_machine(machine, request.user, data['start_date'], data['end_date'], data.get('note', ''))
    except ReservationConflict as e:
        return Response(
            {'error': str(e), 'conflict': MachineReservationSerializer(e.reservation).data},
            status=status.HTTP_409_CONFLICT,
        )
    except MachineError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(MachineReservationSerializer(reservation).data, status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def machine_reservation_delete(request, pk):
    reservation = get_object_or_404(MachineReservation, pk=pk)
    reservation.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def machine_history(request, pk):
    get_object_or_404(Machine, pk=pk)
    queryset = MachineEvent.objects.filter(machine_id=pk).select_related('user', 'machine').order_by('-created_at')
    return paginated_response(request, queryset, MachineEventSerializer, default_limit=50)
