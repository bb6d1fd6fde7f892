"""
Tests for articles, stock bookings, stocktaking and scanning
"""
from datetime import timedelta
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.inventory.models import Article, StockMovement
from lagerapp.inventory.product_ai import analyze_product, match_supplier, parse_product
from lagerapp.inventory.services import (
    StockError, book_stock, audit_count, resolve_scan, stale_articles, busy_shelves,
    suggest_location, parse_location_code, record_movement, find_duplicates, rename_category,
)
from lagerapp.orders.document_ai import DocumentExtractionError


class ArticleAPITests(TestCase):
    """Test article CRUD and list filters"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse()

    def test_create_article_with_supplier_link(self):
        """Test that the preferred supplier link is mirrored onto the article"""
        supplier = TestDataFactory.create_supplier(name='Würth')
        data = {
            'name': 'Kabelbinder 200mm',
            'warehouse': self.warehouse.id,
            'stock': 10,
            'target_stock': 20,
            'suppliers': [{'supplier': supplier.id, 'supplier_sku': 'W-123', 'is_preferred': True}],
        }
        response = self.client.post('/api/v1/articles/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        article = Article.objects.get(pk=response.data['id'])
        self.assertEqual(article.supplier, 'Würth')
        self.assertEqual(article.supplier_sku, 'W-123')
        self.assertEqual(len(response.data['supplier_links']), 1)

    def test_negative_stock_rejected(self):
        response = self.client.post('/api/v1/articles/', {'name': 'X', 'stock': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock', response.data)

    def test_search_matches_every_word(self):
        TestDataFactory.create_article(warehouse=self.warehouse, name='Schraube 4x40 verzinkt')
        TestDataFactory.create_article(warehouse=self.warehouse, name='Schraube 5x60')
        response = self.client.get('/api/v1/articles/', {'search': 'schraube 4x40'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_below_target_filter(self):
        TestDataFactory.create_article(warehouse=self.warehouse, stock=1, target_stock=5)
        TestDataFactory.create_article(warehouse=self.warehouse, stock=5, target_stock=5)
        response = self.client.get('/api/v1/articles/', {'below_target': 'true', 'paginate': 'false'})
        self.assertEqual(len(response.data), 1)

    def test_categories(self):
        TestDataFactory.create_article(warehouse=self.warehouse, category='Regal B')
        TestDataFactory.create_article(warehouse=self.warehouse, category='Regal A')
        response = self.client.get('/api/v1/articles/categories/', {'warehouse': self.warehouse.id})
        self.assertEqual(response.data, ['Regal A', 'Regal B'])

    def test_copy_articles(self):
        source = TestDataFactory.create_article(warehouse=self.warehouse, stock=7)
        vehicle = TestDataFactory.create_warehouse(type='Vehicle')
        data = {'article_ids': [source.id], 'warehouse': vehicle.id, 'category': 'Kiste', 'location': 'Fach 3', 'stock': 2}
        response = self.client.post('/api/v1/articles/copy/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['copied'], 1)
        copy = Article.objects.get(warehouse=vehicle)
        self.assertEqual(copy.name, source.name)
        self.assertEqual(copy.stock, 2)

    def test_suggest_location(self):
        TestDataFactory.create_article(warehouse=self.warehouse, category='Regal A', location='Fach 4')
        response = self.client.get(
            '/api/v1/articles/suggest-location/', {'warehouse': self.warehouse.id, 'category': 'Regal A'}
        )
        self.assertEqual(response.data['location'], 'Fach 5')

    def test_image_upload_without_storage(self):
        """Test that an upload without a storage account answers 503"""
        article = TestDataFactory.create_article(warehouse=self.warehouse)
        image = SimpleUploadedFile('bild.png', b'\x89PNG\r\n', content_type='image/png')
        with mock.patch('lagerapp.core.blob_storage.upload_blob', return_value=None):
            response = self.client.post(f'/api/v1/articles/{article.id}/image/', {'image': image}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    def test_image_upload_replaces_old_blob(self):
        article = TestDataFactory.create_article(warehouse=self.warehouse)
        article.image_url = 'https://acc.blob.core.windows.net/lagerapp/articles/alt.png'
        article.save()
        image = SimpleUploadedFile('bild.png', b'\x89PNG\r\n', content_type='image/png')
        new_url = 'https://acc.blob.core.windows.net/lagerapp/articles/neu.png'
        with mock.patch('lagerapp.core.blob_storage.upload_blob', return_value=new_url), \
                mock.patch('lagerapp.core.blob_storage.delete_blob') as delete_blob:
            response = self.client.post(f'/api/v1/articles/{article.id}/image/', {'image': image}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['image_url'], new_url)
        delete_blob.assert_called_once_with('https://acc.blob.core.windows.net/lagerapp/articles/alt.png')

    def test_create_duplicate_name_conflict(self):
        """Test that a name already used in the warehouse answers 409 unless forced"""
        existing = TestDataFactory.create_article(warehouse=self.warehouse, name='Kabelbinder 200mm')
        data = {'name': 'kabelbinder 200MM', 'warehouse': self.warehouse.id}

        response = self.client.post('/api/v1/articles/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['conflicts'][0]['type'], 'Name')
        self.assertEqual(response.data['conflicts'][0]['article_id'], existing.id)
        self.assertEqual(Article.objects.count(), 1)

        response = self.client.post('/api/v1/articles/', dict(data, force=True), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Article.objects.count(), 2)

    def test_same_name_in_other_warehouse_is_allowed(self):
        TestDataFactory.create_article(warehouse=self.warehouse, name='Kabelbinder 200mm')
        other = TestDataFactory.create_warehouse(name='Bus 1', type='Vehicle')
        response = self.client.post(
            '/api/v1/articles/', {'name': 'Kabelbinder 200mm', 'warehouse': other.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_create_duplicate_sku_conflicts(self):
        first = TestDataFactory.create_article(warehouse=self.warehouse, sku='H-100')
        first.manufacturer_skus = [{'sku': 'H-200', 'is_preferred': True}]
        first.save()
        supplier = TestDataFactory.create_supplier(name='Würth')
        data = {
            'name': 'Neuer Artikel',
            'warehouse': self.warehouse.id,
            'manufacturer_skus': [{'sku': 'H-200', 'is_preferred': True}],
            'suppliers': [{'supplier': supplier.id, 'supplier_sku': 'W-9'}],
        }
        TestDataFactory.create_article(warehouse=self.warehouse, supplier='Würth', supplier_sku='W-9')

        response = self.client.post('/api/v1/articles/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        kinds = {conflict['type']: conflict for conflict in response.data['conflicts']}
        self.assertEqual(kinds['Hersteller-Nr.']['article_id'], first.id)
        self.assertEqual(kinds['Lieferanten-Art.Nr.']['value'], 'W-9')

    def test_find_duplicates_without_matches(self):
        TestDataFactory.create_article(warehouse=self.warehouse, name='Rohr', sku='R-1')
        self.assertEqual(find_duplicates('Muffe', self.warehouse.id, skus=['M-1'], supplier_skus=['']), [])

    def test_rename_category(self):
        first = TestDataFactory.create_article(warehouse=self.warehouse, category='Regal A')
        TestDataFactory.create_article(warehouse=self.warehouse, category='Regal A')
        other = TestDataFactory.create_warehouse(name='Bus 1', type='Vehicle')
        elsewhere = TestDataFactory.create_article(warehouse=other, category='Regal A')

        response = self.client.post(
            '/api/v1/articles/categories/rename/',
            {'warehouse': self.warehouse.id, 'old': 'Regal A', 'new': 'Regal Sanitär'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        first.refresh_from_db()
        elsewhere.refresh_from_db()
        self.assertEqual(first.category, 'Regal Sanitär')
        self.assertEqual(elsewhere.category, 'Regal A')

    def test_rename_category_rejects_blank_and_unchanged(self):
        url = '/api/v1/articles/categories/rename/'
        response = self.client.post(url, {'warehouse': self.warehouse.id, 'old': 'Regal A', 'new': '  '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'warehouse': self.warehouse.id, 'old': 'Regal A', 'new': 'Regal A'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(url, {'old': 'Regal A', 'new': 'Regal B'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        with self.assertRaises(ValueError):
            rename_category(self.warehouse.id, '', 'Regal B')


class ProductAnalysisTests(TestCase):
    """Test article suggestions from photos and shop links"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(name='Richter+Frenzel')

    def answer(self, text):
        response = mock.Mock()
        response.raise_for_status.return_value = None
        response.json.return_value = {'candidates': [{'content': {'parts': [{'text': text}]}}]}
        return response

    def test_parse_product(self):
        result = parse_product('```json\n{"name": "Eckventil", "skus": ["EV-1", "EV-1", " "], "ean": 4005}\n```')
        self.assertEqual(result['name'], 'Eckventil')
        self.assertEqual(result['skus'], ['EV-1'])
        self.assertEqual(result['ean'], '4005')
        self.assertEqual(result['supplier_name'], '')

    def test_match_supplier(self):
        self.assertEqual(match_supplier('richter+frenzel'), self.supplier)
        self.assertEqual(match_supplier('Richter'), self.supplier)
        self.assertIsNone(match_supplier('GC Gruppe'))
        self.assertIsNone(match_supplier(''))

    @override_settings(GEMINI_API_KEY='test-key')
    def test_analyze_image(self):
        text = (
            '{"name": "Eckventil 1/2", "ean": "4005176000000", "skus": ["EV-12"], '
            '"supplier_name": "Richter+Frenzel", "supplier_sku": "RF-77", "product_url": ""}'
        )
        image = SimpleUploadedFile('foto.jpg', b'\xff\xd8\xff', content_type='image/jpeg')
        with mock.patch('lagerapp.orders.document_ai.requests.post', return_value=self.answer(text)) as post:
            response = self.client.post('/api/v1/articles/analyze/', {'file': image}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Eckventil 1/2')
        self.assertEqual(response.data['supplier'], {'id': self.supplier.id, 'name': 'Richter+Frenzel'})
        article = response.data['article']
        self.assertEqual(article['manufacturer_skus'], [{'sku': 'EV-12', 'is_preferred': True}])
        self.assertEqual(article['suppliers'][0]['supplier_sku'], 'RF-77')
        body = post.call_args.kwargs['json']
        self.assertIn('inline_data', body['contents'][0]['parts'][0])
        self.assertIn('Richter+Frenzel', body['contents'][0]['parts'][1]['text'])

    @override_settings(GEMINI_API_KEY='test-key')
    def test_analyze_link_uses_search_tool(self):
        text = '```json\n{"name": "Pressfitting 15mm", "skus": [], "supplier_name": "Unbekannt"}\n```'
        link = 'https://shop.example.com/pressfitting-15'
        with mock.patch('lagerapp.orders.document_ai.requests.post', return_value=self.answer(text)) as post:
            response = self.client.post('/api/v1/articles/analyze/', {'url': link}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['supplier'])
        self.assertEqual(response.data['article']['product_url'], link)
        body = post.call_args.kwargs['json']
        self.assertEqual(body['tools'], [{'google_search': {}}])
        self.assertNotIn('generationConfig', body)

    def test_analyze_validation(self):
        response = self.client.post('/api/v1/articles/analyze/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post('/api/v1/articles/analyze/', {'url': 'kein-link'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        pdf = SimpleUploadedFile('datenblatt.pdf', b'%PDF', content_type='application/pdf')
        response = self.client.post('/api/v1/articles/analyze/', {'file': pdf}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(GEMINI_API_KEY='')
    def test_analyze_without_api_key(self):
        response = self.client.post('/api/v1/articles/analyze/', {'url': 'https://shop.example.com/x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    @override_settings(GEMINI_API_KEY='test-key')
    def test_analyze_invalid_answer(self):
        with mock.patch('lagerapp.orders.document_ai.requests.post', return_value=self.answer('kein json')):
            with self.assertRaises(DocumentExtractionError):
                analyze_product(url='https://shop.example.com/x')


class StockBookingTests(TestCase):
    """Test manual bookings and stocktaking"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.article = TestDataFactory.create_article(stock=5)

    def test_book_in_clears_on_order_date(self):
        self.article.on_order_date = timezone.now().date()
        self.article.save()
        article = book_stock(self.article, 3, user=self.user)
        self.assertEqual(article.stock, 8)
        self.assertIsNone(article.on_order_date)
        movement = StockMovement.objects.get(article=self.article)
        self.assertEqual(movement.type, 'manual_add')
        self.assertEqual(movement.user, self.user)

    def test_book_out_below_zero(self):
        with self.assertRaises(StockError):
            book_stock(self.article, -6, user=self.user)
        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 5)
        self.assertFalse(StockMovement.objects.exists())

    def test_book_endpoint(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.post(f'/api/v1/articles/{self.article.id}/book/', {'amount': -2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 3)

        response = client.post(f'/api/v1/articles/{self.article.id}/book/', {'amount': -10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_audit_records_difference(self):
        article, difference = audit_count(self.article, 2, user=self.user)
        self.assertEqual(difference, -3)
        self.assertEqual(article.stock, 2)
        self.assertIsNotNone(article.last_counted_at)
        self.assertEqual(StockMovement.objects.get(article=self.article).type, 'audit_correction')

    def test_audit_without_difference_writes_no_movement(self):
        audit_count(self.article, 5, user=self.user)
        self.assertFalse(StockMovement.objects.exists())

    def test_movements_endpoint(self):
        book_stock(self.article, 1, user=self.user)
        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get(f'/api/v1/articles/{self.article.id}/movements/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['user_name'], self.user.display_name)


class ScanTests(TestCase):
    """Test resolution of scanned codes"""

    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.article = TestDataFactory.create_article(
            warehouse=self.warehouse, category='Regal A', location='Fach 1', ean='4006381333931'
        )

    def test_parse_location_code(self):
        self.assertEqual(parse_location_code('Regal A::Fach 1'), ('Regal A', 'Fach 1'))
        self.assertEqual(parse_location_code('Fach 1'), (None, 'Fach 1'))

    def test_article_by_ean(self):
        result = resolve_scan('4006381333931')
        self.assertEqual(result['type'], 'article')
        self.assertEqual(result['article'], self.article)

    def test_location(self):
        result = resolve_scan('LOC:Regal A::Fach 1', warehouse_id=self.warehouse.id)
        self.assertEqual(result['type'], 'location')
        self.assertEqual(result['articles'], [self.article])

    def test_legacy_location_is_ambiguous(self):
        TestDataFactory.create_article(warehouse=self.warehouse, category='Regal B', location='Fach 1')
        result = resolve_scan('LOC:Fach 1')
        self.assertEqual(result['ambiguous_categories'], ['Regal A', 'Regal B'])

    def test_commission_and_machine_codes(self):
        self.assertEqual(resolve_scan('COMM:12'), {'type': 'commission', 'id': '12'})
        self.assertEqual(resolve_scan('MACH:3'), {'type': 'machine', 'id': '3'})

    def test_unknown_code(self):
        self.assertIsNone(resolve_scan('gibt-es-nicht'))

    def test_scan_endpoint(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/scan/', {'code': '4006381333931'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['article']['id'], self.article.id)

        response = client.get('/api/v1/scan/', {'code': 'nichts'})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = client.get('/api/v1/scan/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = client.get('/api/v1/scan/', {'code': '4006381333931', 'warehouse': 'unknown'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = client.get('/api/v1/scan/', {'code': '4006381333931', 'warehouse': self.warehouse.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class AuditRecommendationTests(TestCase):
    def setUp(self):
        self.warehouse = TestDataFactory.create_warehouse()
        self.now = timezone.now()

    def test_stale_articles(self):
        """Test that never counted articles come first and fresh counts are left out"""
        old = TestDataFactory.create_article(warehouse=self.warehouse, name='B alt')
        old.last_counted_at = self.now - timedelta(days=40)
        old.save()
        fresh = TestDataFactory.create_article(warehouse=self.warehouse, name='C frisch')
        fresh.last_counted_at = self.now - timedelta(days=2)
        fresh.save()
        never = TestDataFactory.create_article(warehouse=self.warehouse, name='A nie')

        self.assertEqual(stale_articles(self.warehouse.id, now=self.now), [never, old])

    def test_busy_shelves(self):
        busy = TestDataFactory.create_article(warehouse=self.warehouse, category='Regal A', location='Fach 1')
        counted = TestDataFactory.create_article(warehouse=self.warehouse, category='Regal B', location='Fach 2')
        counted.last_counted_at = self.now - timedelta(days=1)
        counted.save()
        for _ in range(3):
            record_movement(busy, -1, 'manual_remove')
        record_movement(counted, -1, 'manual_remove')

        shelves = busy_shelves(self.warehouse.id, now=self.now)
        self.assertEqual(len(shelves), 1)
        self.assertEqual(shelves[0]['category'], 'Regal A')
        self.assertEqual(shelves[0]['score'], 3)

    def test_suggest_location_empty_shelf(self):
        self.assertEqual(suggest_location(self.warehouse.id, 'Neu'), 'Fach 1')

    def test_recommendations_endpoint_needs_warehouse(self):
        user = TestDataFactory.create_user()
        client = AuthenticatedAPIClient()
        client.authenticate_user(user)
        response = client.get('/api/v1/stock-audit/recommendations/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = client.get('/api/v1/stock-audit/recommendations/', {'warehouse': self.warehouse.id, 'mode': 'movement'})
        self.assertEqual(response.data['type'], 'shelf')
