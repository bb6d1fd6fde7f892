"""
Tests for accounts, profile settings and the shared helpers
"""
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from lagerapp.core import blob_storage
from lagerapp.core.permissions import is_admin, is_workwear_admin
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.core.utils import (
    InvalidParameter, UNKNOWN_WAREHOUSE, filter_warehouse, parse_bool, record_event, warehouse_param,
)
from lagerapp.orders.models import OrderEvent
from lagerapp.core.models import User
from lagerapp.inventory.models import Article
from lagerapp.warehouses.models import Warehouse


class AuthTests(TestCase):
    """Registration and JWT login"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_tokens(self):
        data = {
            'username': 'monteur1',
            'email': 'monteur1@test.com',
            'password': 'Sicher!Passwort42',
            'password_confirm': 'Sicher!Passwort42',
            'full_name': 'Max Monteur',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['full_name'], 'Max Monteur')

    def test_register_password_mismatch(self):
        data = {
            'username': 'monteur2',
            'password': 'Sicher!Passwort42',
            'password_confirm': 'Anders!Passwort42',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_login(self):
        TestDataFactory.create_user(username='lagerist', password='testpass123')
        response = self.client.post(
            '/api/v1/auth/login/', {'username': 'lagerist', 'password': 'testpass123'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProfileTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_me(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], self.user.username)
        self.assertFalse(response.data['is_admin'])

    def test_set_primary_warehouse(self):
        warehouse = TestDataFactory.create_warehouse()
        response = self.client.patch('/api/v1/auth/me/', {'primary_warehouse': warehouse.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.primary_warehouse, warehouse)

    def test_collapsed_categories_must_be_strings(self):
        response = self.client.patch('/api/v1/auth/me/', {'collapsed_categories': [1, 2]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_worker_cannot_edit_other_users(self):
        other = TestDataFactory.create_user()
        response = self.client.patch(f'/api/v1/users/{other.id}/', {'full_name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_cannot_delete_self(self):
        admin = TestDataFactory.create_admin()
        self.client.authenticate_user(admin)
        response = self.client.delete(f'/api/v1/users/{admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PermissionTests(TestCase):
    def test_roles(self):
        worker = TestDataFactory.create_user()
        admin = TestDataFactory.create_admin()
        besteller = TestDataFactory.create_user(workwear_role='besteller')
        self.assertFalse(is_admin(worker))
        self.assertTrue(is_admin(admin))
        self.assertFalse(is_workwear_admin(worker))
        self.assertTrue(is_workwear_admin(besteller))
        self.assertTrue(is_workwear_admin(admin))


class HelperTests(TestCase):
    def test_record_event_without_action_is_skipped(self):
        self.assertIsNone(record_event(OrderEvent, action=None, details='x'))
        self.assertEqual(OrderEvent.objects.count(), 0)

    def test_record_event_anonymous_user(self):
        event = record_event(OrderEvent, action='Test', details='x')
        self.assertIsNotNone(event)
        self.assertEqual(event.user_name, 'System')

    def test_parse_bool(self):
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('nein'))
        self.assertFalse(parse_bool(None))

    def test_warehouse_param(self):
        self.assertIsNone(warehouse_param(None))
        self.assertIsNone(warehouse_param(' '))
        self.assertEqual(warehouse_param('12'), 12)
        self.assertEqual(warehouse_param('unknown', allow_unknown=True), UNKNOWN_WAREHOUSE)
        with self.assertRaises(InvalidParameter):
            warehouse_param('unknown')
        with self.assertRaises(InvalidParameter):
            warehouse_param('abc', allow_unknown=True)

    def test_filter_warehouse(self):
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.create_article(warehouse=warehouse)
        TestDataFactory.create_article()
        articles = Article.objects.all()
        self.assertEqual(filter_warehouse(articles, None).count(), 2)
        self.assertEqual(filter_warehouse(articles, warehouse.id).get().warehouse_id, warehouse.id)
        self.assertIsNone(filter_warehouse(articles, UNKNOWN_WAREHOUSE).get().warehouse_id)


@override_settings(AZURE_STORAGE_ACCOUNT_NAME='lagerapp', AZURE_STORAGE_CONTAINER='lagerapp')
class BlobStorageTests(TestCase):
    def test_blob_name_from_url(self):
        url = 'https://lagerapp.blob.core.windows.net/lagerapp/articles/bild.png'
        self.assertEqual(blob_storage.blob_name_from_url(url), 'articles/bild.png')
        self.assertIsNone(blob_storage.blob_name_from_url('https://example.com/other/bild.png'))

    def test_upload_file_rejects_type(self):
        uploaded = mock.Mock(content_type='text/plain', size=10)
        uploaded.name = 'notiz.txt'
        with self.assertRaises(ValueError):
            blob_storage.upload_file('articles', uploaded)


class SeedDemoDataTests(TestCase):
    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command('seed_demo_data', admin_password='geheim123', stdout=out)
        call_command('seed_demo_data', stdout=StringIO())

        self.assertIn('4 new articles', out.getvalue())
        self.assertEqual(Warehouse.objects.count(), 2)
        self.assertEqual(Article.objects.count(), 4)
        admin = User.objects.get(username='admin')
        self.assertTrue(is_admin(admin))
        self.assertEqual(admin.primary_warehouse.name, 'Hauptlager')
