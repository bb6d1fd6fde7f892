"""
Tests for supplier endpoints
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from lagerapp.core.model_cache import get_cached_supplier_formats
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.suppliers.models import DEFAULT_CSV_FORMAT


class SupplierAPITests(TestCase):
    """Test supplier CRUD, search and usage sorting"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_supplier(self):
        data = {'name': 'Elektro Großhandel', 'customer_number': '4711', 'csv_format': '{{sku}};{{amount}};{{name}}'}
        response = self.client.post('/api/v1/suppliers/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['customer_number'], '4711')

    def test_csv_format_needs_placeholder(self):
        response = self.client.post('/api/v1/suppliers/', {'name': 'X', 'csv_format': 'sku;amount'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('csv_format', response.data)

    def test_search(self):
        TestDataFactory.create_supplier(name='Würth')
        TestDataFactory.create_supplier(name='Sonepar')
        response = self.client.get('/api/v1/suppliers/', {'search': 'RTH'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([s['name'] for s in response.data], ['Würth'])

    def test_sort_by_usage(self):
        """Test that suppliers used by commissions come first"""
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.create_supplier(name='Aaa Handel')
        busy = TestDataFactory.create_supplier(name='Zzz Handel')
        commission = TestDataFactory.create_commission(warehouse)
        commission.supplier = busy
        commission.save()

        response = self.client.get('/api/v1/suppliers/', {'sort': 'usage'})
        self.assertEqual(response.data[0]['name'], 'Zzz Handel')
        self.assertEqual(response.data[0]['usage_count'], 1)

    def test_update_and_delete(self):
        supplier = TestDataFactory.create_supplier(name='Alt')
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'name': 'Neu'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Neu')

        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class SupplierFormatCacheTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_unknown_supplier(self):
        self.assertEqual(get_cached_supplier_formats(['Unbekannt']), {'Unbekannt': (None, '')})

    def test_format_change_invalidates_cache(self):
        supplier = TestDataFactory.create_supplier(name='Würth', csv_format='{{sku}}')
        self.assertEqual(get_cached_supplier_formats(['Würth'])['Würth'], (supplier.id, '{{sku}}'))

        supplier.csv_format = '{{ean}};{{amount}}'
        supplier.save()
        self.assertEqual(get_cached_supplier_formats(['Würth'])['Würth'], (supplier.id, '{{ean}};{{amount}}'))

    def test_default_format(self):
        supplier = TestDataFactory.create_supplier(name='Ohne Format')
        self.assertEqual(supplier.get_csv_format(), DEFAULT_CSV_FORMAT)
