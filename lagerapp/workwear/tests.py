"""
Tests for workwear budgets, checkout and order administration
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from lagerapp.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from lagerapp.workwear.models import WorkwearOrder, WorkwearOrderItem, UserSize, current_year
from lagerapp.workwear.services import (
    BudgetExceeded, WorkwearError, budget_summary, checkout, change_status, can_delete_order,
    delete_item, upsert_budget, order_list_csv,
)


class BudgetTests(TestCase):
    """Test budget accounting and checkout limits"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.trousers = TestDataFactory.create_workwear_template(name='Bundhose', price=Decimal('40.00'))
        self.shirt = TestDataFactory.create_workwear_template(name='T-Shirt', price=Decimal('15.00'), has_logo=True)
        upsert_budget(self.user, Decimal('100.00'))

    def test_summary_without_budget(self):
        other = TestDataFactory.create_user()
        summary = budget_summary(other)
        self.assertEqual(summary['limit'], Decimal('0.00'))
        self.assertEqual(summary['available'], Decimal('0.00'))

    def test_checkout_reserves_budget(self):
        order = checkout(self.user, [
            {'template': self.trousers, 'size': '52', 'quantity': 1},
            {'template': self.shirt, 'size': 'L', 'quantity': 2},
        ])
        self.assertEqual(order.status, 'REQUESTED')
        self.assertEqual(order.total_amount, Decimal('70.00'))
        self.assertTrue(order.items.get(template=self.shirt).use_logo)

        summary = budget_summary(self.user)
        self.assertEqual(summary['reserved'], Decimal('70.00'))
        self.assertEqual(summary['available'], Decimal('30.00'))

    def test_checkout_over_budget(self):
        checkout(self.user, [{'template': self.trousers, 'quantity': 2}])
        with self.assertRaises(BudgetExceeded) as ctx:
            checkout(self.user, [{'template': self.trousers, 'quantity': 1}])
        self.assertEqual(ctx.exception.available, Decimal('20.00'))
        self.assertIn('20.00 €', str(ctx.exception))

    def test_chef_may_exceed_budget(self):
        chef = TestDataFactory.create_user(workwear_role='chef')
        order = checkout(chef, [{'template': self.trousers, 'quantity': 5}])
        self.assertEqual(order.total_amount, Decimal('200.00'))

    def test_empty_cart(self):
        with self.assertRaises(WorkwearError):
            checkout(self.user, [])

    def test_completed_counts_as_used_and_returned_as_nothing(self):
        completed = checkout(self.user, [{'template': self.shirt, 'quantity': 1}])
        change_status(completed, 'COMPLETED')
        returned = checkout(self.user, [{'template': self.shirt, 'quantity': 2}])
        change_status(returned, 'ORDERED')
        change_status(returned, 'RETURNED')

        summary = budget_summary(self.user)
        self.assertEqual(summary['used'], Decimal('15.00'))
        self.assertEqual(summary['reserved'], Decimal('0.00'))
        self.assertEqual(summary['available'], Decimal('85.00'))

    def test_other_year_budget(self):
        upsert_budget(self.user, Decimal('50.00'), year=current_year() + 1)
        self.assertEqual(budget_summary(self.user, current_year() + 1)['limit'], Decimal('50.00'))
        self.assertEqual(budget_summary(self.user)['limit'], Decimal('100.00'))


class OrderAdministrationTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.chef = TestDataFactory.create_user(workwear_role='chef')
        self.template = TestDataFactory.create_workwear_template(price=Decimal('10.00'))
        self.order = checkout(self.chef, [
            {'template': self.template, 'size': 'M', 'quantity': 1},
            {'template': self.template, 'size': 'L', 'quantity': 2},
        ])

    def test_transitions(self):
        with self.assertRaises(WorkwearError):
            change_status(self.order, 'RETURNED')
        change_status(self.order, 'ORDERED')
        change_status(self.order, 'COMPLETED')
        self.assertEqual(self.order.status, 'COMPLETED')
        with self.assertRaises(WorkwearError):
            change_status(self.order, 'ORDERED')

    def test_delete_rights(self):
        own = checkout(self.chef, [{'template': self.template, 'quantity': 1}])
        self.assertTrue(can_delete_order(own, self.chef))
        self.assertFalse(can_delete_order(own, self.user))

        upsert_budget(self.user, Decimal('50.00'))
        mine = checkout(self.user, [{'template': self.template, 'quantity': 1}])
        self.assertTrue(can_delete_order(mine, self.user))
        change_status(mine, 'ORDERED')
        self.assertFalse(can_delete_order(mine, self.user))

    def test_delete_item_recalculates(self):
        first, second = self.order.items.order_by('id')
        order = delete_item(second)
        self.assertEqual(order.total_amount, Decimal('10.00'))
        self.assertIsNone(delete_item(first))
        self.assertFalse(WorkwearOrder.objects.filter(pk=self.order.pk).exists())

    def test_order_list_csv(self):
        self.template.article_number = 'AH-100'
        self.template.save()
        content = order_list_csv(WorkwearOrder.objects.all())
        lines = content.strip().splitlines()
        self.assertEqual(lines[0], 'Mitarbeiter;Art.Nr.;Artikel;Größe;Menge;Logo;Ref.')
        self.assertEqual(len(lines), 3)
        self.assertIn(';AH-100;', lines[1])
        self.assertTrue(lines[1].endswith(f';Nein;{self.order.pk}'))


class WorkwearAPITests(TestCase):
    """Test the workwear endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.besteller = TestDataFactory.create_user(workwear_role='besteller')
        self.template = TestDataFactory.create_workwear_template(price=Decimal('30.00'))
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_catalog_hides_inactive_for_employees(self):
        inactive = TestDataFactory.create_workwear_template()
        inactive.is_active = False
        inactive.save()

        response = self.client.get('/api/v1/workwear/templates/')
        self.assertEqual([t['id'] for t in response.data], [self.template.id])

        self.client.authenticate_user(self.besteller)
        response = self.client.get('/api/v1/workwear/templates/')
        self.assertEqual(len(response.data), 2)

    def test_only_admins_create_templates(self):
        data = {'name': 'Softshelljacke', 'category': 'Jacke', 'price': '89.90'}
        response = self.client.post('/api/v1/workwear/templates/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.besteller)
        response = self.client.post('/api/v1/workwear/templates/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_checkout_over_budget(self):
        response = self.client.post(
            '/api/v1/workwear/checkout/', {'items': [{'template': self.template.id, 'size': 'L'}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['available'], Decimal('0.00'))

    def test_checkout_and_my_orders(self):
        upsert_budget(self.user, Decimal('100.00'))
        response = self.client.post(
            '/api/v1/workwear/checkout/', {'items': [{'template': self.template.id, 'quantity': 2}]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_amount'], '60.00')

        response = self.client.get('/api/v1/workwear/orders/')
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/workwear/budget/')
        self.assertEqual(response.data['available'], '40.00')

    def test_sizes_upsert(self):
        response = self.client.put(
            '/api/v1/workwear/sizes/', [{'category': 'Hose', 'size_value': '52'}, {'category': 'Shirt', 'size_value': 'L'}],
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.put('/api/v1/workwear/sizes/', {'category': 'Hose', 'size_value': '54'}, format='json')
        self.assertEqual(len(response.data), 2)
        self.assertEqual(UserSize.objects.get(user=self.user, category='Hose').size_value, '54')

    def test_admin_endpoints_forbidden(self):
        for url in ('/api/v1/workwear/admin/orders/', '/api/v1/workwear/admin/budgets/'):
            response = self.client.get(url)
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_order_flow(self):
        upsert_budget(self.user, Decimal('100.00'))
        order = checkout(self.user, [{'template': self.template, 'quantity': 1}])
        self.client.authenticate_user(self.besteller)

        response = self.client.get('/api/v1/workwear/admin/orders/')
        self.assertEqual([o['id'] for o in response.data], [order.id])

        response = self.client.get('/api/v1/workwear/admin/orders/', {'export': 'csv'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('attachment;', response['Content-Disposition'])

        response = self.client.post(f'/api/v1/workwear/admin/orders/{order.id}/status/', {'status': 'ORDERED'}, format='json')
        self.assertEqual(response.data['status'], 'ORDERED')
        response = self.client.post(f'/api/v1/workwear/admin/orders/{order.id}/status/', {'status': 'ORDERED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        item = WorkwearOrderItem.objects.get(order=order)
        response = self.client.delete(f'/api/v1/workwear/admin/order-items/{item.id}/')
        self.assertTrue(response.data['order_deleted'])

    def test_employee_deletes_own_request(self):
        upsert_budget(self.user, Decimal('100.00'))
        order = checkout(self.user, [{'template': self.template, 'quantity': 1}])
        response = self.client.delete(f'/api/v1/workwear/orders/{order.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_budget_and_role_administration(self):
        self.client.authenticate_user(self.besteller)
        response = self.client.post(
            '/api/v1/workwear/admin/budgets/', {'user': self.user.id, 'budget_limit': '250.00'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['year'], current_year())

        response = self.client.get('/api/v1/workwear/admin/budgets/')
        row = next(r for r in response.data if r['user'] == self.user.id)
        self.assertEqual(row['limit'], '250.00')
        self.assertEqual(row['workwear_role'], 'monteur')

        response = self.client.patch(f'/api/v1/workwear/admin/users/{self.user.id}/role/', {'workwear_role': 'chef'}, format='json')
        self.assertEqual(response.data['workwear_role'], 'chef')

    def test_settings(self):
        response = self.client.patch('/api/v1/workwear/settings/', {'logo_url': 'https://example.com/logo.png'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.besteller)
        response = self.client.patch('/api/v1/workwear/settings/', {'logo_url': 'https://example.com/logo.png'}, format='json')
        self.assertEqual(response.data['logo_url'], 'https://example.com/logo.png')
