"""
Tests for the commission workflow
"""
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.inventory.models import StockMovement
from lagerapp.commissions import services
from lagerapp.commissions.models import Commission, CommissionEvent
from lagerapp.commissions.services import CommissionError


class CommissionWorkflowTests(TestCase):
    """Test status transitions and stock bookings"""

    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.user = TestDataFactory.create_user(primary_warehouse=self.warehouse)
        self.article = TestDataFactory.create_article(warehouse=self.warehouse, stock=10)
        self.commission = TestDataFactory.create_commission(self.warehouse, order_number='K-1001')
        self.item = TestDataFactory.create_commission_item(self.commission, article=self.article, amount=3)

    def test_first_pick_starts_preparation(self):
        services.toggle_pick(self.item, self.user)
        self.commission.refresh_from_db()
        self.assertEqual(self.commission.status, 'Preparing')
        self.assertTrue(CommissionEvent.objects.filter(commission=self.commission, action='status_change').exists())

    def test_backorder_cannot_be_picked(self):
        services.toggle_backorder(self.item)
        with self.assertRaises(CommissionError):
            services.toggle_pick(self.item, self.user)

    def test_backorder_unpicks_item(self):
        services.toggle_pick(self.item, self.user)
        item = services.toggle_backorder(self.item)
        self.assertTrue(item.is_backorder)
        self.assertFalse(item.is_picked)

    def test_ready_requires_all_picked(self):
        with self.assertRaises(CommissionError):
            services.set_ready(self.commission, self.user)

    def test_ready_books_stock_once(self):
        """Test that stock is booked on Ready and not again after a withdrawal is reverted"""
        services.toggle_pick(self.item, self.user)
        external = TestDataFactory.create_commission_item(
            self.commission, type='External', custom_name='Sonderteil', is_picked=True,
        )
        self.assertIsNone(external.article)

        commission = services.set_ready(self.commission, self.user)
        self.assertEqual(commission.status, 'Ready')
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 7)
        movement = StockMovement.objects.get(article=self.article)
        self.assertEqual(movement.type, 'commission_pick')
        self.assertEqual(movement.amount, -3)
        self.assertEqual(movement.reference, 'Komm. K-1001')

        services.withdraw(commission, self.user)
        services.revert_withdrawal(commission, self.user)
        services.set_ready(commission, self.user)
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 7)

    def test_ready_again_after_unpick_does_not_book(self):
        """Test that ready -> unpick -> repick -> ready books the stock only once"""
        services.toggle_pick(self.item, self.user)
        services.set_ready(self.commission, self.user)
        services.toggle_pick(self.item, self.user)
        services.toggle_pick(self.item, self.user)
        commission = services.set_ready(self.commission, self.user)

        self.assertEqual(commission.status, 'Ready')
        self.assertTrue(commission.stock_booked)
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 7)
        self.assertEqual(StockMovement.objects.filter(article=self.article).count(), 1)

    def test_ready_again_after_edit_does_not_book(self):
        services.toggle_pick(self.item, self.user)
        commission = services.set_ready(self.commission, self.user)
        commission = services.update_commission(commission, {'notes': 'Tür 2'}, None, self.user)
        self.assertEqual(commission.status, 'Preparing')

        services.set_ready(commission, self.user)
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 7)

    def test_insufficient_stock_is_skipped(self):
        self.article.stock = 1
        self.article.save()
        services.toggle_pick(self.item, self.user)
        services.set_ready(self.commission, self.user)
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 1)
        self.assertFalse(StockMovement.objects.exists())

    def test_unpick_resets_ready(self):
        services.toggle_pick(self.item, self.user)
        services.set_ready(self.commission, self.user)
        services.toggle_pick(self.item, self.user)
        self.commission.refresh_from_db()
        self.assertEqual(self.commission.status, 'Preparing')

    def test_withdraw_and_revert(self):
        commission = services.withdraw(self.commission, self.user)
        self.assertEqual(commission.status, 'Withdrawn')
        self.assertIsNotNone(commission.withdrawn_at)
        commission = services.revert_withdrawal(commission, self.user)
        self.assertEqual(commission.status, 'Ready')
        self.assertIsNone(commission.withdrawn_at)

    def test_revert_requires_withdrawn(self):
        with self.assertRaises(CommissionError):
            services.revert_withdrawal(self.commission, self.user)

    def test_return_flow(self):
        self.commission.is_processed = True
        self.commission.save()
        commission = services.init_return(self.commission, self.user)
        self.assertEqual(commission.status, 'ReturnPending')
        self.assertFalse(commission.is_processed)
        commission = services.return_to_shelf(commission, self.user)
        self.assertEqual(commission.status, 'ReturnReady')
        commission = services.complete_return(commission, self.user)
        self.assertEqual(commission.status, 'ReturnComplete')

    def test_return_to_shelf_requires_pending(self):
        with self.assertRaises(CommissionError):
            services.return_to_shelf(self.commission, self.user)

    def test_edit_ready_commission_goes_back_to_preparing(self):
        self.commission.status = 'Ready'
        self.commission.save()
        commission = services.update_commission(self.commission, {'notes': 'Bitte ergänzen'}, None, self.user)
        self.assertEqual(commission.status, 'Preparing')
        self.assertEqual(commission.items.count(), 1)


class CommissionTabTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.other = TestDataFactory.create_warehouse()

    def test_tabs(self):
        draft = TestDataFactory.create_commission(self.warehouse, status='Draft')
        returning = TestDataFactory.create_commission(self.warehouse, status='ReturnPending')
        missing = TestDataFactory.create_commission(self.warehouse, status='Missing')
        TestDataFactory.create_commission(self.other, status='Draft')
        trashed = TestDataFactory.create_commission(self.warehouse, status='Ready')
        services.move_to_trash(trashed)

        self.assertEqual(list(services.commissions_for_tab('active', self.warehouse)), [draft])
        self.assertEqual(list(services.commissions_for_tab('returns', self.warehouse)), [returning])
        self.assertEqual(list(services.commissions_for_tab('missing', self.warehouse)), [missing])
        self.assertEqual(list(services.commissions_for_tab('trash', self.warehouse)), [trashed])
        self.assertEqual(services.tab_counts(self.warehouse), {'missing': 1, 'returns': 1})

    def test_trash_tab_hides_expired(self):
        trashed = TestDataFactory.create_commission(self.warehouse)
        Commission.objects.filter(pk=trashed.pk).update(deleted_at=timezone.now() - timedelta(days=10))
        self.assertEqual(list(services.commissions_for_tab('trash', self.warehouse)), [])

    def test_unknown_tab(self):
        with self.assertRaises(CommissionError):
            services.commissions_for_tab('archiv', self.warehouse)


class CleanupScanTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.user = TestDataFactory.create_user(primary_warehouse=self.warehouse)

    def test_parse_commission_code(self):
        self.assertEqual(services.parse_commission_code('COMM:42'), 42)
        self.assertEqual(services.parse_commission_code(' 7 '), 7)
        self.assertIsNone(services.parse_commission_code('LOC:Regal A::Fach 1'))

    def test_unscanned_shelf_commissions_become_missing(self):
        scanned = TestDataFactory.create_commission(self.warehouse, status='Ready')
        lost = TestDataFactory.create_commission(self.warehouse, status='ReturnReady')
        preparing = TestDataFactory.create_commission(self.warehouse, status='Preparing')

        missing = services.cleanup_scan(self.warehouse, [f'COMM:{scanned.pk}', 'Müll'], self.user)
        self.assertEqual(missing, [lost])
        lost.refresh_from_db()
        scanned.refresh_from_db()
        preparing.refresh_from_db()
        self.assertEqual(lost.status, 'Missing')
        self.assertEqual(scanned.status, 'Ready')
        self.assertEqual(preparing.status, 'Preparing')

    def test_cleanup_endpoint(self):
        TestDataFactory.create_commission(self.warehouse, status='Ready')
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.post('/api/v1/commissions/cleanup-scan/', {'codes': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['missing_count'], 1)


class TrashTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.commission = TestDataFactory.create_commission(self.warehouse)

    def test_restore(self):
        services.move_to_trash(self.commission)
        commission = services.restore(self.commission)
        self.assertIsNone(commission.deleted_at)
        with self.assertRaises(CommissionError):
            services.restore(commission)

    def test_purge_keeps_history(self):
        """Test that purged commissions keep their events with the name"""
        name = self.commission.name
        services.move_to_trash(self.commission)
        Commission.objects.filter(pk=self.commission.pk).update(deleted_at=timezone.now() - timedelta(days=8))
        fresh = TestDataFactory.create_commission(self.warehouse)
        services.move_to_trash(fresh)

        self.assertEqual(services.purge_trash(days=7), 1)
        self.assertFalse(Commission.objects.filter(pk=self.commission.pk).exists())
        self.assertTrue(Commission.objects.filter(pk=fresh.pk).exists())
        event = CommissionEvent.objects.get(action='permanently_deleted')
        self.assertIsNone(event.commission)
        self.assertEqual(event.commission_name, name)

    def test_purge_command(self):
        services.move_to_trash(self.commission)
        Commission.objects.filter(pk=self.commission.pk).update(deleted_at=timezone.now() - timedelta(days=30))
        out = StringIO()
        call_command('purge_commission_trash', stdout=out)
        self.assertIn('Deleted 1 ', out.getvalue())


class PrintQueueTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.user = TestDataFactory.create_user(primary_warehouse=self.warehouse)

    def test_queue_and_print(self):
        queued = TestDataFactory.create_commission(self.warehouse, name='A Kunde')
        withdrawn = TestDataFactory.create_commission(self.warehouse, name='B Kunde', status='Withdrawn')
        services.queue_label(queued, self.user)
        services.queue_label(withdrawn, self.user)

        self.assertEqual(list(services.print_queue(self.warehouse)), [queued])
        services.mark_printed([queued], self.user)
        self.assertEqual(list(services.print_queue(self.warehouse)), [])
        history = list(services.print_history())
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].commission, queued)


class CommissionAPITests(TestCase):
    """Test the commission endpoints"""

    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.user = TestDataFactory.create_user(primary_warehouse=self.warehouse)
        self.article = TestDataFactory.create_article(warehouse=self.warehouse, stock=10)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_commission(self):
        data = {
            'name': 'Müller Badsanierung',
            'order_number': 'A-2024-17',
            'items': [
                {'type': 'Stock', 'article': self.article.id, 'amount': 2},
                {'type': 'External', 'custom_name': 'Duschwanne', 'external_reference': 'LS-99'},
            ],
        }
        response = self.client.post('/api/v1/commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Draft')
        self.assertEqual(response.data['warehouse'], self.warehouse.id)
        self.assertEqual(len(response.data['items']), 2)
        self.assertTrue(CommissionEvent.objects.filter(action='created').exists())

    def test_create_without_primary_warehouse(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/commissions/', {'name': 'Kunde'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Hauptlager', response.data['error'])

        response = self.client.get('/api/v1/commissions/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_validation(self):
        data = {'name': 'Kunde', 'items': [{'type': 'External', 'amount': 1}]}
        response = self.client.post('/api/v1/commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        data = {'name': 'Kunde', 'items': [{'type': 'Stock', 'article': self.article.id, 'amount': 0}]}
        response = self.client.post('/api/v1/commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_search(self):
        TestDataFactory.create_commission(self.warehouse, name='Schmidt Küche', order_number='S-1')
        TestDataFactory.create_commission(self.warehouse, name='Weber Bad', order_number='W-1')
        response = self.client.get('/api/v1/commissions/', {'tab': 'active', 'search': 'Weber'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data['results']], ['Weber Bad'])

    def test_patch_replaces_items(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        TestDataFactory.create_commission_item(commission, article=self.article)
        data = {'items': [{'type': 'External', 'custom_name': 'Neu', 'amount': 4}]}
        response = self.client.patch(f'/api/v1/commissions/{commission.id}/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([i['custom_name'] for i in response.data['items']], ['Neu'])

    def test_pick_ready_withdraw(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        item = TestDataFactory.create_commission_item(commission, article=self.article, amount=4)

        response = self.client.post(f'/api/v1/commissions/{commission.id}/ready/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(f'/api/v1/commission-items/{item.id}/pick/')
        self.assertEqual(response.data['commission_status'], 'Preparing')

        response = self.client.post(f'/api/v1/commissions/{commission.id}/ready/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'Ready')
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 6)

        response = self.client.post(f'/api/v1/commissions/{commission.id}/withdraw/')
        self.assertEqual(response.data['status'], 'Withdrawn')

    def test_item_note(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        item = TestDataFactory.create_commission_item(commission, article=self.article)
        response = self.client.patch(f'/api/v1/commission-items/{item.id}/note/', {'notes': 'Farbe weiß'}, format='json')
        self.assertEqual(response.data['notes'], 'Farbe weiß')

    def test_office_processing(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        response = self.client.patch(
            f'/api/v1/commissions/{commission.id}/office/', {'is_processed': True, 'office_notes': 'RE 123'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_processed'])
        self.assertEqual(response.data['office_notes'], 'RE 123')

    def test_trash_and_permanent_delete(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        response = self.client.delete(f'/api/v1/commissions/{commission.id}/permanent/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/commissions/{commission.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get('/api/v1/commissions/', {'tab': 'trash'})
        self.assertEqual(response.data['count'], 1)

        with mock.patch('lagerapp.core.blob_storage.delete_blob') as delete_blob:
            response = self.client.delete(f'/api/v1/commissions/{commission.id}/permanent/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        delete_blob.assert_not_called()
        self.assertFalse(Commission.objects.filter(pk=commission.id).exists())

    def test_purge_requires_admin(self):
        response = self.client.post('/api/v1/commissions/trash/purge/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_mark_printed(self):
        commission = TestDataFactory.create_commission(self.warehouse)
        self.client.post(f'/api/v1/commissions/{commission.id}/queue-label/')
        response = self.client.get('/api/v1/commissions/print-queue/')
        self.assertEqual(len(response.data), 1)

        response = self.client.post('/api/v1/commissions/print-queue/printed/', {'ids': [commission.id]}, format='json')
        self.assertEqual(response.data, {'printed': 1})
        response = self.client.get('/api/v1/commissions/print-history/')
        self.assertEqual(len(response.data), 1)
