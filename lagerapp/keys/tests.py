"""
Tests for the key cabinet: handovers, protocol and history
"""
from datetime import date

from django.test import TestCase
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.keys.models import Key, KeyCategory, KeyEvent
from lagerapp.keys.services import (
    HandoverError, ISSUE, RETURN, checkout_keys, checkin_keys, handover_details, protocol_html,
)


class HandoverTests(TestCase):
    """Test checkout and checkin of keys"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.first = TestDataFactory.create_key(slot_number=1)
        self.second = TestDataFactory.create_key(slot_number=2)

    def test_handover_details(self):
        self.assertEqual(handover_details(ISSUE, 'Frau Meier'), 'An: Frau Meier')
        self.assertEqual(handover_details(RETURN, 'Frau Meier', 'Bund komplett'), 'Von: Frau Meier, Notiz: Bund komplett')

    def test_checkout(self):
        checkout_keys([self.first, self.second], 'Frau Meier', self.user, notes='Wartung')
        for key in Key.objects.all():
            self.assertEqual(key.status, 'InUse')
            self.assertEqual(key.holder_name, 'Frau Meier')
        self.assertEqual(KeyEvent.objects.filter(action='checkout', details='An: Frau Meier, Notiz: Wartung').count(), 2)

    def test_checkout_requires_name(self):
        with self.assertRaises(HandoverError):
            checkout_keys([self.first], '  ', self.user)

    def test_checkout_rejects_issued_keys(self):
        """Test that nothing is issued when one key is already out"""
        checkout_keys([self.first], 'Herr Kraus', self.user)
        with self.assertRaises(HandoverError) as ctx:
            checkout_keys([self.first, self.second], 'Frau Meier', self.user)
        self.assertIn('Platz 1', str(ctx.exception))
        self.second.refresh_from_db()
        self.assertEqual(self.second.status, 'Available')

    def test_checkin_defaults_to_holder(self):
        colleague = TestDataFactory.create_user()
        checkout_keys([self.first], 'Max Monteur', self.user, holder=colleague)
        self.first.refresh_from_db()
        self.assertEqual(self.first.holder, colleague)

        checkin_keys([self.first], '', self.user)
        self.first.refresh_from_db()
        self.assertEqual(self.first.status, 'Available')
        self.assertIsNone(self.first.holder)
        self.assertTrue(KeyEvent.objects.filter(action='checkin', details='Von: Max Monteur').exists())

    def test_checkin_requires_issued(self):
        with self.assertRaises(HandoverError):
            checkin_keys([self.first], 'Frau Meier', self.user)


class ProtocolTests(TestCase):
    def test_issue_protocol(self):
        keys = [TestDataFactory.create_key(slot_number=12, name='Haus Weber'), TestDataFactory.create_key(slot_number=3)]
        html = protocol_html(ISSUE, keys, 'Frau Weber', partner_address='Gartenweg 2', date=date(2025, 4, 1))
        self.assertIn('Schlüssel-Ausgabeprotokoll', html)
        self.assertIn('Frau Weber', html)
        self.assertIn('Gartenweg 2', html)
        self.assertIn('01.04.2025', html)
        self.assertIn('Rebelein LagerApp', html)
        self.assertLess(html.index('<td>3</td>'), html.index('<td>12</td>'))

    def test_return_protocol(self):
        html = protocol_html(RETURN, [TestDataFactory.create_key()], 'Frau Weber')
        self.assertIn('Schlüssel-Rücknahmeprotokoll', html)
        self.assertIn('Übergeber', html)


class KeyAPITests(TestCase):
    """Test the key endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_logs_event(self):
        response = self.client.post(
            '/api/v1/keys/', {'slot_number': 5, 'name': 'Praxis Dr. Huber', 'status': 'InUse'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/keys/', {'slot_number': 5, 'name': 'Praxis Dr. Huber'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'Available')
        self.assertTrue(KeyEvent.objects.filter(action='create', key_id=response.data['id']).exists())

    def test_slot_number_is_unique(self):
        TestDataFactory.create_key(slot_number=7)
        response = self.client.post('/api/v1/keys/', {'slot_number': 7, 'name': 'Doppelt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_lost(self):
        key = TestDataFactory.create_key()
        response = self.client.patch(f'/api/v1/keys/{key.id}/', {'status': 'Lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'Lost')

    def test_tabs_and_search(self):
        TestDataFactory.create_key(slot_number=10, name='Kirche')
        issued = TestDataFactory.create_key(slot_number=11, name='Schule')
        checkout_keys([issued], 'Hausmeister', self.user)

        response = self.client.get('/api/v1/keys/', {'tab': 'in_use'})
        self.assertEqual([k['slot_number'] for k in response.data], [11])
        response = self.client.get('/api/v1/keys/', {'search': '10'})
        self.assertEqual([k['name'] for k in response.data], ['Kirche'])
        response = self.client.get('/api/v1/keys/', {'search': 'hausmeister'})
        self.assertEqual([k['name'] for k in response.data], ['Schule'])

    def test_checkout_and_checkin(self):
        key = TestDataFactory.create_key()
        response = self.client.post(
            '/api/v1/keys/checkout/', {'key_ids': [key.id], 'partner_name': 'Firma Bau'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['status'], 'InUse')

        response = self.client.post('/api/v1/keys/checkout/', {'key_ids': [key.id], 'partner_name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/keys/checkin/', {'key_ids': [key.id]}, format='json')
        self.assertEqual(response.data[0]['status'], 'Available')

        response = self.client.get(f'/api/v1/keys/{key.id}/history/')
        self.assertEqual(response.data['count'], 2)

    def test_unknown_key_id(self):
        response = self.client.post('/api/v1/keys/checkout/', {'key_ids': [999999], 'partner_name': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_protocol_endpoint(self):
        key = TestDataFactory.create_key()
        data = {'direction': 'issue', 'key_ids': [key.id], 'partner_name': 'Frau Weber'}
        response = self.client.post('/api/v1/keys/protocol/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/html; charset=utf-8')
        self.assertIn('Frau Weber', response.content.decode('utf-8'))

    def test_delete_keeps_history(self):
        key = TestDataFactory.create_key(slot_number=42, name='Altbau')
        response = self.client.delete(f'/api/v1/keys/{key.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        event = KeyEvent.objects.get(action='delete')
        self.assertIsNone(event.key)
        self.assertEqual(event.details, 'Schlüssel gelöscht: #42 Altbau')

    def test_categories(self):
        response = self.client.post('/api/v1/keys/categories/', {'name': 'Kunden'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['color'], '#10b981')
        category = KeyCategory.objects.get()
        key = TestDataFactory.create_key()
        key.category = category
        key.save()

        response = self.client.get('/api/v1/keys/categories/')
        self.assertEqual(response.data[0]['key_count'], 1)
        response = self.client.get('/api/v1/keys/', {'category': category.id})
        self.assertEqual(response.data[0]['category_name'], 'Kunden')
