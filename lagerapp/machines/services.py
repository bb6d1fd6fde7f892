"""Lending, repair and reservation of machines"""
import logging

from django.db import transaction
from django.utils import timezone

from lagerapp.core.utils import record_event
from .models import Machine, MachineEvent, MachineReservation

logger = logging.getLogger('lagerapp.machines')


class MachineError(Exception):
    """Raised for invalid lending input"""


class ReservationConflict(Exception):
    def __init__(self, reservation):
        self.reservation = reservation
        super().__init__(
            f'Konflikt! Bereits reserviert von {reservation.start_date} bis {reservation.end_date}'
        )


def reservation_warning(machine, borrower=None, today=None):
    """Warning text when today is reserved for someone other than the borrower"""
    today = today or timezone.localdate()
    queryset = machine.reservations.filter(start_date__lte=today, end_date__gte=today).select_related('user')
    if borrower is not None:
        queryset = queryset.exclude(user=borrower)
    conflict = queryset.first()
    if conflict is None:
        return None
    holder = conflict.user.display_name if conflict.user else 'Unbekannt'
    return f'ACHTUNG: Reserviert für {holder} bis {conflict.end_date}!'


def borrow_machine(machine, user, borrower=None, external_name=None):
    """
    Hand a machine to a user or an external borrower.

    Borrowing a machine that is already rented is recorded as a transfer.
    """
    external_name = (external_name or '').strip()
    if borrower is None and not external_name:
        raise MachineError('Bitte Mitarbeiter oder externen Entleiher angeben')
    if machine.status == 'In Repair':
        raise MachineError('Maschine ist in Reparatur')

    with transaction.atomic():
        machine = Machine.objects.select_for_update().select_related('assigned_to').get(pk=machine.pk)
        is_transfer = machine.status == 'Rented'
        previous = machine.borrower_name or 'Unbekannt'

        machine.status = 'Rented'
        machine.assigned_to = borrower if not external_name else None
        machine.external_borrower = external_name
        machine.save(update_fields=['status', 'assigned_to', 'external_borrower', 'updated_at'])

    borrower_name = external_name or borrower.display_name
    if is_transfer:
        action, details = 'transfer', f'Übergabe von {previous} an {borrower_name}'
    else:
        action, details = 'rented', f'Ausgeliehen an {borrower_name}'
    record_event(MachineEvent, user=user, machine=machine, action=action, details=details)
    logger.info(f"Machine {machine.pk} ({machine.name}) {action} to {borrower_name}")
    return machine


def return_machine(machine, user, defect=False, defect_note=''):
    """Return OK makes the machine available; a defect sends it to repair with the note"""
    if machine.status != 'Rented':
        raise MachineError('Maschine ist nicht verliehen')
    if defect and not (defect_note or '').strip():
        raise MachineError('Bitte Defekt beschreiben')

    machine.status = 'In Repair' if defect else 'Available'
    machine.assigned_to = None
    machine.external_borrower = ''
    machine.notes = defect_note.strip() if defect else ''
    machine.save(update_fields=['status', 'assigned_to', 'external_borrower', 'notes', 'updated_at'])

    record_event(
        MachineEvent, user=user, machine=machine,
        action='defect' if defect else 'returned',
        details=f'Rückgabe mit Defekt: {defect_note.strip()}' if defect else 'Rückgabe OK',
    )
    return machine


def finish_repair(machine, user):
    if machine.status != 'In Repair':
        raise MachineError('Maschine ist nicht in Reparatur')
    machine.status = 'Available'
    machine.notes = ''
    machine.save(update_fields=['status', 'notes', 'updated_at'])
    record_event(
        MachineEvent, user=user, machine=machine, action='repaired',
        details='Reparatur abgeschlossen, wieder verfügbar',
    )
    return machine


def upcoming_reservations(machine, today=None):
    """Current and future reservations"""
    today = today or timezone.localdate()
    return machine.reservations.filter(end_date__gte=today).select_related('user').order_by('start_date')


def reserve_machine(machine, user, start_date, end_date, note=''):
    """Book a date range; both ends are inclusive and must not touch another reservation"""
    if end_date < start_date:
        raise MachineError('Enddatum liegt vor dem Startdatum')

    with transaction.atomic():
        Machine.objects.select_for_update().get(pk=machine.pk)
        conflict = (
            MachineReservation.objects.filter(machine=machine, start_date__lte=end_date, end_date__gte=start_date)
            .order_by('start_date').first()
        )
        if conflict is not None:
            raise ReservationConflict(conflict)
        reservation = MachineReservation.objects.create(
            machine=machine, user=user, start_date=start_date, end_date=end_date, note=note or '',
        )

    record_event(
        MachineEvent, user=user, machine=machine, action='reserved',
        details=f'Reserviert vom {start_date.isoformat()} bis {end_date.isoformat()}',
    )
    return reservation
