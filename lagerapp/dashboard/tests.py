"""
Tests for the start page aggregations
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.commissions.models import CommissionEvent
from lagerapp.machines.models import MachineEvent
from lagerapp.orders.models import OrderEvent
from lagerapp.dashboard.services import dashboard_commissions, recent_activity, FEED_LENGTH


class DashboardCommissionTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()

    def test_columns_and_ordering(self):
        TestDataFactory.create_commission(self.warehouse, name='Berger', status='Preparing')
        processed = TestDataFactory.create_commission(self.warehouse, name='Adler', status='Ready')
        processed.is_processed = True
        processed.save()
        TestDataFactory.create_commission(self.warehouse, name='Zeller', status='Ready')
        TestDataFactory.create_commission(self.warehouse, name='Anton', status='ReturnPending')
        TestDataFactory.create_commission(self.warehouse, name='Zahn', status='ReturnReady')
        TestDataFactory.create_commission(self.warehouse, name='Weg', status='Withdrawn')

        columns = dashboard_commissions()
        self.assertEqual([c.name for c in columns['in_progress']], ['Berger'])
        self.assertEqual([c.name for c in columns['ready']], ['Zeller', 'Adler'])
        self.assertEqual([c.name for c in columns['returns']], ['Zahn', 'Anton'])

    def test_trash_and_other_warehouse_hidden(self):
        trashed = TestDataFactory.create_commission(self.warehouse, status='Draft')
        trashed.deleted_at = timezone.now()
        trashed.save()
        TestDataFactory.create_commission(TestDataFactory.create_warehouse(), status='Draft')

        columns = dashboard_commissions(warehouse_id=self.warehouse.id)
        self.assertEqual(columns['in_progress'], [])

    def test_backorder_flag(self):
        commission = TestDataFactory.create_commission(self.warehouse, status='Preparing')
        TestDataFactory.create_commission_item(commission, type='External', custom_name='Ventil', is_backorder=True)
        self.assertTrue(dashboard_commissions()['in_progress'][0].has_backorder)


class RecentActivityTests(TestCase):
    """Test the merged activity feed"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def _age(self, event, minutes):
        type(event).objects.filter(pk=event.pk).update(created_at=timezone.now() - timedelta(minutes=minutes))

    def test_merge_newest_first(self):
        machine = TestDataFactory.create_machine(name='Kernbohrer')
        commission = TestDataFactory.create_commission(TestDataFactory.create_warehouse(), name='Schmidt')
        order = TestDataFactory.create_order(supplier='Würth')
        order.commission_number = 'Lager-0001'
        order.save()

        self._age(MachineEvent.objects.create(machine=machine, user=self.user, action='borrow'), 3)
        self._age(CommissionEvent.objects.create(commission=commission, commission_name='Schmidt', action='created'), 1)
        self._age(OrderEvent.objects.create(order=order, action='Wareneingang'), 2)

        feed = recent_activity()
        self.assertEqual([e['type'] for e in feed], ['commission', 'order', 'machine'])
        self.assertEqual(feed[0]['user_name'], 'Unbekannt')
        self.assertEqual(feed[1]['entity_name'], 'Würth (Lager-0001)')
        self.assertEqual(feed[1]['user_name'], 'System')
        self.assertEqual(feed[2]['entity_name'], 'Kernbohrer')

    def test_feed_is_capped(self):
        machine = TestDataFactory.create_machine()
        for _ in range(10):
            MachineEvent.objects.create(machine=machine, action='borrow')
            OrderEvent.objects.create(order=None, action='Wareneingang')
        feed = recent_activity()
        self.assertEqual(len(feed), FEED_LENGTH)
        self.assertIn('Unbekannte Bestellung', [e['entity_name'] for e in feed])


class DashboardAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse()

    def test_summary(self):
        TestDataFactory.create_machine(name='Flex', status='Rented')
        TestDataFactory.create_machine(name='Rüttler', status='In Repair')
        TestDataFactory.create_article(warehouse=self.warehouse, stock=1, target_stock=5)
        TestDataFactory.create_order(warehouse=self.warehouse)
        TestDataFactory.create_commission(self.warehouse, status='Ready')

        response = self.client.get('/api/v1/dashboard/', {'warehouse': self.warehouse.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['rented_machines'][0]['name'], 'Flex')
        self.assertEqual(response.data['repair_machines'][0]['name'], 'Rüttler')
        self.assertEqual(len(response.data['commissions_ready']), 1)
        self.assertEqual(response.data['counts'], {'order_proposals': 1, 'pending_orders': 1})

    def test_activity(self):
        machine = TestDataFactory.create_machine()
        MachineEvent.objects.create(machine=machine, user=self.user, action='return', details='Zurückgegeben')
        response = self.client.get('/api/v1/dashboard/activity/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['id'], f'machine-{MachineEvent.objects.get().pk}')
        self.assertEqual(response.data[0]['user_name'], self.user.display_name)

    def test_requires_auth(self):
        self.client.logout()
        response = self.client.get('/api/v1/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
