"""
Tests for machine lending, repairs and reservations
"""
from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.machines.models import Machine, MachineEvent, MachineReservation
from lagerapp.machines.services import (
    MachineError, ReservationConflict, borrow_machine, return_machine, finish_repair,
    reserve_machine, reservation_warning, upcoming_reservations,
)


class LendingTests(TestCase):
    """Test borrowing, transfers, returns and repairs"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.colleague = TestDataFactory.create_user()
        self.machine = TestDataFactory.create_machine(name='Kernbohrgerät')

    def test_borrow(self):
        machine = borrow_machine(self.machine, self.user, borrower=self.colleague)
        self.assertEqual(machine.status, 'Rented')
        self.assertEqual(machine.assigned_to, self.colleague)
        event = MachineEvent.objects.get(machine=machine)
        self.assertEqual(event.action, 'rented')
        self.assertEqual(event.details, f'Ausgeliehen an {self.colleague.display_name}')

    def test_transfer_to_external(self):
        """Test that lending a rented machine is logged as a transfer"""
        borrow_machine(self.machine, self.user, borrower=self.colleague)
        machine = borrow_machine(self.machine, self.user, external_name='Firma Schulz')
        self.assertIsNone(machine.assigned_to)
        self.assertEqual(machine.borrower_name, 'Firma Schulz')
        event = MachineEvent.objects.filter(machine=machine).order_by('-id').first()
        self.assertEqual(event.action, 'transfer')
        self.assertEqual(event.details, f'Übergabe von {self.colleague.display_name} an Firma Schulz')

    def test_borrow_needs_borrower(self):
        with self.assertRaises(MachineError):
            borrow_machine(self.machine, self.user, external_name='  ')

    def test_borrow_in_repair(self):
        self.machine.status = 'In Repair'
        self.machine.save()
        with self.assertRaises(MachineError):
            borrow_machine(self.machine, self.user, borrower=self.colleague)

    def test_return_ok(self):
        machine = borrow_machine(self.machine, self.user, borrower=self.colleague)
        machine = return_machine(machine, self.user)
        self.assertEqual(machine.status, 'Available')
        self.assertIsNone(machine.borrower_name)

    def test_return_defect_and_repair(self):
        machine = borrow_machine(self.machine, self.user, borrower=self.colleague)
        machine = return_machine(machine, self.user, defect=True, defect_note='Kabel gebrochen')
        self.assertEqual(machine.status, 'In Repair')
        self.assertEqual(machine.notes, 'Kabel gebrochen')
        self.assertTrue(MachineEvent.objects.filter(action='defect', details='Rückgabe mit Defekt: Kabel gebrochen').exists())

        machine = finish_repair(machine, self.user)
        self.assertEqual(machine.status, 'Available')
        self.assertEqual(machine.notes, '')

    def test_return_requires_rented(self):
        with self.assertRaises(MachineError):
            return_machine(self.machine, self.user)

    def test_finish_repair_requires_repair(self):
        with self.assertRaises(MachineError):
            finish_repair(self.machine, self.user)


class ReservationTests(TestCase):
    """Test date range reservations"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.machine = TestDataFactory.create_machine()

    def test_overlap_is_rejected(self):
        reserve_machine(self.machine, self.user, date(2025, 3, 10), date(2025, 3, 12))
        with self.assertRaises(ReservationConflict) as ctx:
            reserve_machine(self.machine, self.other, date(2025, 3, 12), date(2025, 3, 14))
        self.assertIn('2025-03-10', str(ctx.exception))

    def test_adjacent_ranges_are_allowed(self):
        reserve_machine(self.machine, self.user, date(2025, 3, 10), date(2025, 3, 12))
        reserve_machine(self.machine, self.other, date(2025, 3, 13), date(2025, 3, 14))
        self.assertEqual(MachineReservation.objects.count(), 2)

    def test_end_before_start(self):
        with self.assertRaises(MachineError):
            reserve_machine(self.machine, self.user, date(2025, 3, 12), date(2025, 3, 10))

    def test_event_text(self):
        reserve_machine(self.machine, self.user, date(2025, 3, 10), date(2025, 3, 12))
        event = MachineEvent.objects.get(action='reserved')
        self.assertEqual(event.details, 'Reserviert vom 2025-03-10 bis 2025-03-12')

    def test_warning_for_other_borrower(self):
        today = timezone.localdate()
        reserve_machine(self.machine, self.other, today, today + timedelta(days=2))
        self.assertIn('ACHTUNG', reservation_warning(self.machine, self.user))
        self.assertIsNone(reservation_warning(self.machine, self.other))

    def test_upcoming_skips_past(self):
        today = timezone.localdate()
        reserve_machine(self.machine, self.user, today - timedelta(days=5), today - timedelta(days=3))
        future = reserve_machine(self.machine, self.user, today + timedelta(days=1), today + timedelta(days=2))
        self.assertEqual(list(upcoming_reservations(self.machine)), [future])


class MachineAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_is_available(self):
        response = self.client.post('/api/v1/machines/', {'name': 'Rüttelplatte', 'status': 'Rented'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Available')

    def test_status_filter(self):
        TestDataFactory.create_machine(status='Available')
        TestDataFactory.create_machine(status='In Repair')
        response = self.client.get('/api/v1/machines/', {'status': 'In Repair'})
        self.assertEqual(len(response.data), 1)

    def test_borrow_and_return(self):
        machine = TestDataFactory.create_machine()
        response = self.client.post(f'/api/v1/machines/{machine.id}/borrow/', {'user': self.user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'Rented')
        self.assertIsNone(response.data['warning'])

        response = self.client.post(
            f'/api/v1/machines/{machine.id}/return/', {'condition': 'Defect'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(
            f'/api/v1/machines/{machine.id}/return/', {'condition': 'Defect', 'defect_note': 'Akku defekt'}, format='json'
        )
        self.assertEqual(response.data['status'], 'In Repair')

        response = self.client.post(f'/api/v1/machines/{machine.id}/repair-finished/')
        self.assertEqual(response.data['status'], 'Available')

        response = self.client.get(f'/api/v1/machines/{machine.id}/history/')
        self.assertEqual(response.data['count'], 3)

    def test_borrow_requires_borrower(self):
        machine = TestDataFactory.create_machine()
        response = self.client.post(f'/api/v1/machines/{machine.id}/borrow/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_reservation_conflict(self):
        machine = TestDataFactory.create_machine()
        data = {'start_date': '2030-05-01', 'end_date': '2030-05-03'}
        response = self.client.post(f'/api/v1/machines/{machine.id}/reservations/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(
            f'/api/v1/machines/{machine.id}/reservations/', {'start_date': '2030-05-03', 'end_date': '2030-05-04'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['conflict']['start_date'], '2030-05-01')

        response = self.client.get(f'/api/v1/machines/{machine.id}/reservations/')
        self.assertEqual(len(response.data), 1)

        reservation_id = response.data[0]['id']
        response = self.client.delete(f'/api/v1/machines/reservations/{reservation_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Machine.objects.get(pk=machine.id).reservations.exists())
