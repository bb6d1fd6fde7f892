"""
Tests for warehouse endpoints
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.warehouses.models import Warehouse


class WarehouseAPITests(TestCase):
    """Test warehouse CRUD and admin checks"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.worker = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_list_counts_articles(self):
        """Test that the list carries the number of articles per warehouse"""
        warehouse = TestDataFactory.create_warehouse(name='Hauptlager')
        TestDataFactory.create_article(warehouse=warehouse)
        TestDataFactory.create_article(warehouse=warehouse)

        response = self.client.get('/api/v1/warehouses/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        entry = next(w for w in response.data if w['id'] == warehouse.id)
        self.assertEqual(entry['items_count'], 2)

    def test_create_invalidates_cached_list(self):
        """Test that a new warehouse shows up although the list was cached"""
        self.client.get('/api/v1/warehouses/')
        response = self.client.post('/api/v1/warehouses/', {'name': 'Sprinter 1', 'type': 'Vehicle'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/warehouses/')
        self.assertIn('Sprinter 1', [w['name'] for w in response.data])

    def test_blank_name_rejected(self):
        response = self.client.post('/api/v1/warehouses/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_worker_cannot_create(self):
        self.client.authenticate_user(self.worker)
        response = self.client.post('/api/v1/warehouses/', {'name': 'Baustelle Nord'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_worker_can_read(self):
        warehouse = TestDataFactory.create_warehouse()
        self.client.authenticate_user(self.worker)
        response = self.client.get(f'/api/v1/warehouses/{warehouse.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], warehouse.name)

    def test_delete(self):
        warehouse = TestDataFactory.create_warehouse()
        response = self.client.delete(f'/api/v1/warehouses/{warehouse.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Warehouse.objects.filter(pk=warehouse.id).exists())


class WarehouseModelTests(TestCase):
    def test_safe_name(self):
        warehouse = TestDataFactory.create_warehouse(name='Sprinter #2 (Fürth)')
        self.assertEqual(warehouse.safe_name(), 'Sprinter2Frth')

    def test_safe_name_fallback(self):
        warehouse = TestDataFactory.create_warehouse(name='###')
        self.assertEqual(warehouse.safe_name(), 'Lager')
