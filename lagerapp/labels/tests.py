"""
Tests for label rendering, shelf label grouping and print documents
"""
from datetime import datetime

from django.test import TestCase
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.labels.generator import (
    render_article_label, render_location_label, render_commission_label,
)
from lagerapp.labels.layout import LabelConfig, location_groups, natural_key, safe_filename_part
from lagerapp.labels.printing import document_title, print_html

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


class LayoutTests(TestCase):
    """Test label sizes and shelf grouping"""

    def test_pixel_size(self):
        config = LabelConfig(width=70, height=37)
        self.assertEqual(config.pixel_size, (int(70 * 3.78 * 4), int(37 * 3.78 * 4)))

    def test_natural_sort(self):
        self.assertEqual(sorted(['Fach 10', 'Fach 2', 'Fach 1'], key=natural_key), ['Fach 1', 'Fach 2', 'Fach 10'])

    def test_safe_filename_part(self):
        self.assertEqual(safe_filename_part('Dübel 6x30 mm'), 'D_bel_6x30')
        self.assertEqual(safe_filename_part(''), 'Etikett')

    def test_location_groups(self):
        warehouse = TestDataFactory.create_warehouse()
        for name in ('A', 'B', 'C', 'D'):
            TestDataFactory.create_article(warehouse=warehouse, name=name, category='Regal A', location='Fach 10')
        TestDataFactory.create_article(warehouse=warehouse, name='E', category='Regal A', location='Fach 2')
        TestDataFactory.create_article(warehouse=warehouse, name='F', category='', location='')

        groups = location_groups(warehouse.articles.order_by('name'))
        self.assertEqual([g['key'] for g in groups], ['Regal A::Fach 2', 'Regal A::Fach 10', 'Sonstiges::Unsortiert'])
        busy = groups[1]
        self.assertEqual(busy['qr_data'], 'LOC:Regal A::Fach 10')
        self.assertEqual(len(busy['articles']), 4)
        self.assertEqual([a.name for a in busy['label_articles']], ['A', 'B', 'C'])

        self.assertEqual(len(location_groups(warehouse.articles.all(), occupancy='multi')), 1)
        self.assertEqual(len(location_groups(warehouse.articles.all(), occupancy='single')), 2)
        self.assertEqual(len(location_groups(warehouse.articles.all(), search='fach 2')), 1)

    def test_unknown_occupancy(self):
        with self.assertRaises(ValueError):
            location_groups([], occupancy='voll')


class RenderTests(TestCase):
    """Test that every label type renders to PNG"""

    def test_article_label(self):
        article = TestDataFactory.create_article(name='Kupferrohr 15mm', supplier='Würth', supplier_sku='KR-15')
        png = render_article_label(article, LabelConfig(font_scale=1.5))
        self.assertTrue(png.startswith(PNG_SIGNATURE))

    def test_location_label(self):
        article = TestDataFactory.create_article(category='Regal B', location='Fach 3')
        group = location_groups([article])[0]
        self.assertTrue(render_location_label(group).startswith(PNG_SIGNATURE))

    def test_commission_label(self):
        commission = TestDataFactory.create_commission(TestDataFactory.create_warehouse(), name='Schmidt Bad')
        self.assertTrue(render_commission_label(commission).startswith(PNG_SIGNATURE))
        self.assertTrue(render_commission_label(commission, is_return=True).startswith(PNG_SIGNATURE))


class PrintDocumentTests(TestCase):
    def test_document_title(self):
        now = datetime(2025, 2, 3, 14, 5, 6)
        self.assertEqual(document_title('Fach 1', now=now), 'Etikett_Fach_1_2025-02-03_14-05-06')
        self.assertEqual(document_title(now=now), 'Etiketten_Batch_2025-02-03_14-05-06')

    def test_print_html(self):
        html = print_html([('A', PNG_SIGNATURE), ('B', PNG_SIGNATURE)], LabelConfig(width=50, height=30))
        self.assertIn('size: 50mm 30mm', html)
        self.assertEqual(html.count('data:image/png;base64,'), 2)
        self.assertIn('Etiketten_Batch_', html)


class LabelAPITests(TestCase):
    """Test the label endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.warehouse = TestDataFactory.create_warehouse()
        self.article = TestDataFactory.create_article(
            warehouse=self.warehouse, name='Kugelhahn', sku='KH-1', category='Regal A', location='Fach 1'
        )

    def test_article_png(self):
        response = self.client.get(f'/api/v1/labels/articles/{self.article.id}/png/', {'width': 50, 'height': 25})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'image/png')
        self.assertIn('Etikett_KH_1_Kugelhahn.png', response['Content-Disposition'])
        self.assertTrue(response.content.startswith(PNG_SIGNATURE))

    def test_article_png_invalid_size(self):
        response = self.client.get(f'/api/v1/labels/articles/{self.article.id}/png/', {'width': 5})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_article_print(self):
        response = self.client.post('/api/v1/labels/articles/print/', {'article_ids': [self.article.id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Etikett_Kugelhahn_', response.content.decode('utf-8'))

        response = self.client.post('/api/v1/labels/articles/print/', {'article_ids': [999999]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_location_list(self):
        response = self.client.get('/api/v1/labels/locations/', {'warehouse': self.warehouse.id})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['key'], 'Regal A::Fach 1')
        self.assertEqual(response.data[0]['article_count'], 1)
        self.assertEqual(response.data[0]['articles'][0]['barcode_value'], 'KH-1')

        response = self.client.get('/api/v1/labels/locations/', {'occupancy': 'voll'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_location_print(self):
        data = {'keys': ['Regal A::Fach 1'], 'warehouse': self.warehouse.id}
        response = self.client.post('/api/v1/labels/locations/print/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('Etikett_Fach_1_', response.content.decode('utf-8'))

    def test_commission_print(self):
        first = TestDataFactory.create_commission(self.warehouse, name='A Kunde')
        second = TestDataFactory.create_commission(self.warehouse, name='B Kunde')
        data = {'commission_ids': [second.id, first.id], 'is_return': True}
        response = self.client.post('/api/v1/labels/commissions/print/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        content = response.content.decode('utf-8')
        self.assertIn('Etiketten_Batch_', content)
        self.assertLess(content.index('alt="A Kunde"'), content.index('alt="B Kunde"'))
