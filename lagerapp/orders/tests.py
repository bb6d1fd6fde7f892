"""
Tests for order proposals, goods receipt, manual orders and imports
"""
from datetime import timedelta
from io import StringIO
from unittest import mock

import requests
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.inventory.models import Article, StockMovement
from lagerapp.orders.csv_export import proposal_csv, render_csv_row
from lagerapp.orders.document_ai import DocumentExtractionError, extract_order_items, parse_extraction
from lagerapp.orders.models import Order, OrderItem, OrderEvent
from lagerapp.orders.proposals import build_order_proposals, find_proposal, UNKNOWN_WAREHOUSE_ID
from lagerapp.orders.receiving import DecisionRequired, ReceivingError, receive_order
from lagerapp.orders.services import (
    next_commission_number, create_order_from_proposal, cleanup_received_orders, import_candidates,
)


class ProposalTests(TestCase):
    """Test grouping of under-stocked articles"""

    def setUp(self):
        cache.clear()
        self.warehouse = TestDataFactory.create_warehouse(name='Hauptlager')
        self.supplier = TestDataFactory.create_supplier(name='Würth', csv_format='{{sku}};{{amount}};{{name}}')

    def test_groups_by_warehouse_and_supplier(self):
        TestDataFactory.create_article(warehouse=self.warehouse, stock=2, target_stock=10, supplier='Würth')
        TestDataFactory.create_article(warehouse=self.warehouse, stock=0, target_stock=3, supplier='Würth')
        TestDataFactory.create_article(warehouse=self.warehouse, stock=1, target_stock=5, supplier='')
        TestDataFactory.create_article(warehouse=self.warehouse, stock=9, target_stock=5, supplier='Würth')

        proposals = build_order_proposals()
        self.assertEqual(len(proposals), 2)
        wuerth = find_proposal(proposals, self.warehouse.id, 'Würth')
        self.assertEqual(wuerth['total_items'], 2)
        self.assertEqual(wuerth['supplier_id'], self.supplier.id)
        self.assertEqual(wuerth['csv_format'], '{{sku}};{{amount}};{{name}}')
        self.assertIsNotNone(find_proposal(proposals, self.warehouse.id, 'Unbekannt'))

    def test_articles_on_order_are_skipped(self):
        article = TestDataFactory.create_article(warehouse=self.warehouse, stock=0, target_stock=3, supplier='Würth')
        article.on_order_date = timezone.localdate()
        article.save()
        self.assertEqual(build_order_proposals(), [])

    def test_articles_without_warehouse(self):
        TestDataFactory.create_article(stock=0, target_stock=3, supplier='Würth')
        proposals = build_order_proposals()
        self.assertEqual(proposals[0]['warehouse_id'], UNKNOWN_WAREHOUSE_ID)
        self.assertEqual(proposals[0]['warehouse_name'], 'Unbekanntes Lager')

    def test_proposals_endpoint_warehouse_filter(self):
        """Test that the warehouse id returned for articles without warehouse can be used as filter"""
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        TestDataFactory.create_article(stock=0, target_stock=3, supplier='Würth')
        TestDataFactory.create_article(warehouse=self.warehouse, stock=0, target_stock=3, supplier='Würth')

        response = client.get('/api/v1/orders/proposals/')
        self.assertEqual(response.data['count'], 2)
        unknown_id = next(
            p['warehouse_id'] for p in response.data['results'] if p['warehouse_name'] == 'Unbekanntes Lager'
        )

        response = client.get('/api/v1/orders/proposals/', {'warehouse': unknown_id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['warehouse_id'], UNKNOWN_WAREHOUSE_ID)

        response = client.get('/api/v1/orders/proposals/', {'warehouse': self.warehouse.id})
        self.assertEqual(response.data['results'][0]['warehouse_name'], 'Hauptlager')

        response = client.get('/api/v1/orders/proposals/', {'warehouse': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_proposal_csv(self):
        article = TestDataFactory.create_article(
            warehouse=self.warehouse, name='Dübel 6mm', stock=2, target_stock=10, supplier='Würth', supplier_sku='W-6'
        )
        proposal = find_proposal(build_order_proposals(), self.warehouse.id, 'Würth')
        self.assertEqual(proposal_csv(proposal), 'W-6;8;Dübel 6mm')
        self.assertEqual(proposal_csv(proposal, {article.pk: 20}), 'W-6;20;Dübel 6mm')

    def test_render_csv_row_default_format(self):
        self.assertEqual(render_csv_row('', 'ABC', 3, 'Name'), 'ABC;3')


class OrderCreationTests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.warehouse = TestDataFactory.create_warehouse(name='Sprinter 1', type='Vehicle')

    def test_commission_number(self):
        self.assertEqual(next_commission_number(self.warehouse), 'Sprinter1-0001')
        TestDataFactory.create_order(warehouse=self.warehouse)
        self.assertEqual(next_commission_number(self.warehouse), 'Sprinter1-0002')
        self.assertEqual(next_commission_number(None), 'Lager-0001')

    def test_create_order_from_proposal(self):
        """Test that ordered articles get an on_order_date and an event is written"""
        article = TestDataFactory.create_article(warehouse=self.warehouse, stock=1, target_stock=4, supplier='Würth')
        other = TestDataFactory.create_article(warehouse=self.warehouse, stock=0, target_stock=2, supplier='Würth')
        proposal = find_proposal(build_order_proposals(), self.warehouse.id, 'Würth')

        order = create_order_from_proposal(proposal, [article.pk], {article.pk: 10}, user=self.user)
        self.assertEqual(order.status, 'Ordered')
        self.assertEqual(order.commission_number, 'Sprinter1-0001')
        self.assertEqual(order.items.get().quantity_ordered, 10)
        article.refresh_from_db()
        other.refresh_from_db()
        self.assertIsNotNone(article.on_order_date)
        self.assertIsNone(other.on_order_date)
        self.assertTrue(OrderEvent.objects.filter(order=order, action='Neue Bestellung').exists())

    def test_order_endpoint(self):
        TestDataFactory.create_article(warehouse=self.warehouse, stock=0, target_stock=2, supplier='Würth')
        article_id = Article.objects.get().id
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)

        data = {'warehouse': str(self.warehouse.id), 'supplier': 'Würth', 'article_ids': [article_id]}
        response = client.post('/api/v1/orders/proposals/order/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['quantity_ordered'], 2)

        response = client.post('/api/v1/orders/proposals/order/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ReceivingTests(TestCase):
    """Test goods receipt in Direct and Commission mode"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.main = TestDataFactory.create_warehouse(type='Main')
        self.vehicle = TestDataFactory.create_warehouse(type='Vehicle')

    def _order(self, warehouse, ordered=5, stock=2):
        article = TestDataFactory.create_article(warehouse=warehouse, stock=stock)
        article.on_order_date = timezone.localdate()
        article.save()
        order = TestDataFactory.create_order(warehouse=warehouse)
        item = TestDataFactory.create_order_item(order, article=article, quantity_ordered=ordered)
        return order, item, article

    def test_full_receipt(self):
        order, item, article = self._order(self.main)
        order = receive_order(order, user=self.user)
        self.assertEqual(order.status, 'Received')
        article.refresh_from_db()
        self.assertEqual(article.stock, 7)
        self.assertIsNone(article.on_order_date)
        movement = StockMovement.objects.get(article=article)
        self.assertEqual(movement.type, 'receive_goods')
        self.assertEqual(movement.amount, 5)

    def test_partial_receipt(self):
        order, item, article = self._order(self.main)
        order = receive_order(order, amounts={item.pk: 2}, user=self.user)
        self.assertEqual(order.status, 'PartiallyReceived')
        article.refresh_from_db()
        self.assertEqual(article.stock, 4)
        self.assertIsNotNone(article.on_order_date)

        order = receive_order(order, amounts={item.pk: 3}, user=self.user)
        self.assertEqual(order.status, 'Received')

    def test_amount_above_open_quantity(self):
        order, item, _ = self._order(self.main)
        with self.assertRaises(ReceivingError):
            receive_order(order, amounts={item.pk: 6})

    def test_zero_amount(self):
        order, item, _ = self._order(self.main)
        with self.assertRaises(ReceivingError):
            receive_order(order, amounts={item.pk: 0})

    def test_vehicle_needs_decision(self):
        order, _, _ = self._order(self.vehicle)
        with self.assertRaises(DecisionRequired):
            receive_order(order)

    def test_vehicle_commission_then_pickup(self):
        """Test that Commission mode parks the goods and the pickup books them"""
        order, item, article = self._order(self.vehicle, stock=0)
        order = receive_order(order, mode='Commission', user=self.user)
        self.assertEqual(order.status, 'ReadyForPickup')
        article.refresh_from_db()
        self.assertEqual(article.stock, 0)

        order = receive_order(order, user=self.user)
        self.assertEqual(order.status, 'Received')
        article.refresh_from_db()
        self.assertEqual(article.stock, 5)

    def test_custom_item_is_only_marked(self):
        order = TestDataFactory.create_order(warehouse=self.main)
        TestDataFactory.create_order_item(order, custom_name='Sonderteil', quantity_ordered=1)
        order = receive_order(order)
        self.assertEqual(order.status, 'Received')
        self.assertFalse(StockMovement.objects.exists())

    def test_receive_endpoint_decision_required(self):
        order, _, _ = self._order(self.vehicle)
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)

        response = client.get(f'/api/v1/orders/{order.id}/receive/')
        self.assertEqual(response.data['warehouse_type'], 'Vehicle')
        self.assertEqual(response.data['items'][0]['default_amount'], 5)

        response = client.post(f'/api/v1/orders/{order.id}/receive/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(response.data['decision_required'])

        response = client.post(f'/api/v1/orders/{order.id}/receive/', {'mode': 'Direct'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'Received')

        response = client.post(f'/api/v1/orders/{order.id}/receive/', {'mode': 'Direct'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class OrderListTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_order(status='Ordered')
        TestDataFactory.create_order(status='ReadyForPickup')
        TestDataFactory.create_order(status='Received')

    def test_groups(self):
        for group, expected in (('pending', 'Ordered'), ('pickup', 'ReadyForPickup'), ('completed', 'Received')):
            response = self.client.get('/api/v1/orders/', {'group': group})
            self.assertEqual(response.status_code, status.HTTP_200_OK)
            self.assertEqual([o['status'] for o in response.data['results']], [expected])

    def test_unknown_group(self):
        response = self.client.get('/api/v1/orders/', {'group': 'archiv'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_order_csv(self):
        order = Order.objects.get(status='Ordered')
        article = TestDataFactory.create_article(name='Kabel', sku='K-1')
        TestDataFactory.create_order_item(order, article=article, quantity_ordered=3)
        response = self.client.get(f'/api/v1/orders/{order.id}/csv/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.content.decode('utf-8'), 'Artikelnummer;Bezeichnung;Menge\nK-1;Kabel;3\n')

    def test_order_csv_quotes_separators(self):
        """Test that a name containing ; or a line break stays in one field"""
        order = Order.objects.get(status='Ordered')
        TestDataFactory.create_order_item(order, custom_name='Kabel; NYM 3x1,5\nrot', quantity_ordered=2)
        response = self.client.get(f'/api/v1/orders/{order.id}/csv/')
        content = response.content.decode('utf-8')
        self.assertEqual(content, 'Artikelnummer;Bezeichnung;Menge\n;"Kabel; NYM 3x1,5\nrot";2\n')

    def test_filter_by_unknown_warehouse(self):
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.create_order(warehouse=warehouse, status='Ordered')

        response = self.client.get('/api/v1/orders/', {'group': 'pending', 'warehouse': 'unknown'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertIsNone(response.data['results'][0]['warehouse'])

        response = self.client.get('/api/v1/orders/', {'group': 'pending', 'warehouse': warehouse.id})
        self.assertEqual(response.data['results'][0]['warehouse'], warehouse.id)

    def test_invalid_warehouse_parameter(self):
        response = self.client.get('/api/v1/orders/', {'warehouse': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/orders/commission-number/', {'warehouse': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_commission_number_for_unknown_warehouse(self):
        response = self.client.get('/api/v1/orders/commission-number/', {'warehouse': 'unknown'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['commission_number'].startswith('Lager-'))

    def test_cleanup_requires_admin(self):
        response = self.client.post('/api/v1/orders/cleanup/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class CleanupTests(TestCase):
    def test_cleanup_received_orders(self):
        old = TestDataFactory.create_order(status='Received')
        Order.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=90))
        TestDataFactory.create_order(status='Received')
        stale_open = TestDataFactory.create_order(status='Ordered')
        Order.objects.filter(pk=stale_open.pk).update(created_at=timezone.now() - timedelta(days=90))

        self.assertEqual(cleanup_received_orders(days=60), 1)
        self.assertFalse(Order.objects.filter(pk=old.pk).exists())
        self.assertTrue(Order.objects.filter(pk=stale_open.pk).exists())

    def test_cleanup_command(self):
        old = TestDataFactory.create_order(status='Received')
        Order.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=90))
        out = StringIO()
        call_command('cleanup_orders', stdout=out)
        self.assertIn('Deleted 1 ', out.getvalue())
        self.assertFalse(Order.objects.exists())


class DocumentExtractionTests(TestCase):
    """Test the document analysis client with a mocked HTTP call"""

    def test_parse_extraction_strips_fences(self):
        text = '```json\n{"supplier_name": "Würth", "items": [{"sku": "A1", "name": "Dübel", "quantity": "2.0"}]}\n```'
        result = parse_extraction(text)
        self.assertEqual(result['supplier_name'], 'Würth')
        self.assertEqual(result['items'], [{'sku': 'A1', 'name': 'Dübel', 'quantity': 2}])

    def test_parse_extraction_invalid_json(self):
        with self.assertRaises(DocumentExtractionError):
            parse_extraction('keine Daten')

    @override_settings(GEMINI_API_KEY='')
    def test_missing_api_key(self):
        with self.assertRaises(DocumentExtractionError):
            extract_order_items(b'data', 'image/png')

    @override_settings(GEMINI_API_KEY='test-key')
    def test_extract_order_items(self):
        answer = mock.Mock()
        answer.raise_for_status.return_value = None
        answer.json.return_value = {'candidates': [{'content': {'parts': [
            {'text': '{"supplier_name": "Sonepar", "items": [{"sku": "S-9", "name": "Kabel", "quantity": 4}]}'},
        ]}}]}
        with mock.patch('lagerapp.orders.document_ai.requests.post', return_value=answer) as post:
            result = extract_order_items(b'data', 'image/png')
        self.assertEqual(result['items'][0]['quantity'], 4)
        self.assertEqual(post.call_args.kwargs['params'], {'key': 'test-key'})

    @override_settings(GEMINI_API_KEY='test-key')
    def test_timeout(self):
        with mock.patch('lagerapp.orders.document_ai.requests.post', side_effect=requests.exceptions.Timeout()):
            with self.assertRaises(DocumentExtractionError):
                extract_order_items(b'data', 'image/png')


class ManualOrderTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse(name='Hauptlager')

    @override_settings(GEMINI_API_KEY='test-key')
    def test_analyze_matches_catalog(self):
        article = TestDataFactory.create_article(warehouse=self.warehouse, supplier_sku='S-9')
        extraction = {'supplier_name': 'Sonepar', 'items': [
            {'sku': 'S-9', 'name': 'Kabel', 'quantity': 4},
            {'sku': 'X-1', 'name': 'Neu', 'quantity': 1},
        ]}
        upload = SimpleUploadedFile('lieferschein.png', b'data', content_type='image/png')
        with mock.patch('lagerapp.orders.views.extract_order_items', return_value=extraction):
            response = self.client.post(
                '/api/v1/orders/manual/analyze/', {'file': upload, 'warehouse': self.warehouse.id}, format='multipart'
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['items'][0]['is_found'])
        self.assertEqual(response.data['items'][0]['article']['id'], article.id)
        self.assertFalse(response.data['items'][1]['is_found'])

    def test_analyze_failure_is_bad_gateway(self):
        upload = SimpleUploadedFile('lieferschein.png', b'data', content_type='image/png')
        with mock.patch('lagerapp.orders.views.extract_order_items', side_effect=DocumentExtractionError('kaputt')):
            response = self.client.post('/api/v1/orders/manual/analyze/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_manual_order_and_import(self):
        """Test that custom lines become import candidates and are linked after import"""
        article = TestDataFactory.create_article(warehouse=self.warehouse)
        data = {
            'warehouse': self.warehouse.id,
            'supplier_name': 'Sonepar',
            'items': [
                {'article': article.id, 'quantity': 2},
                {'sku': 'X-1', 'name': 'Sonderkabel', 'quantity': 1},
            ],
        }
        response = self.client.post('/api/v1/orders/manual/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['commission_number'], 'Hauptlager-0001')

        candidates = import_candidates()
        self.assertEqual(len(candidates), 1)
        candidate = candidates[0]

        response = self.client.post(
            f'/api/v1/orders/import-candidates/{candidate.id}/import/', {'category': 'Regal C'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Sonderkabel')
        self.assertEqual(response.data['supplier'], 'Sonepar')
        self.assertEqual(OrderItem.objects.get(pk=candidate.id).article_id, response.data['id'])
        self.assertEqual(import_candidates(), [])

    def test_manual_order_requires_lines(self):
        response = self.client.post('/api/v1/orders/manual/', {'items': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
