"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from lagerapp.warehouses.models import Warehouse
from lagerapp.suppliers.models import Supplier
from lagerapp.inventory.models import Article
from lagerapp.orders.models import Order, OrderItem
from lagerapp.commissions.models import Commission, CommissionItem
from lagerapp.machines.models import Machine
from lagerapp.keys.models import Key
from lagerapp.workwear.models import WorkwearTemplate
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role='worker',
                    primary_warehouse=None, workwear_role='monteur', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            full_name=f'Test {username}',
            role=role,
            primary_warehouse=primary_warehouse,
            workwear_role=workwear_role,
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('role', 'admin')
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_warehouse(name=None, type='Main'):
        """Create a test warehouse"""
        if not name:
            name = f'Lager {TestDataFactory.random_string(6)}'
        return Warehouse.objects.create(name=name, type=type, location='Fürth')

    @staticmethod
    def create_supplier(name=None, csv_format=''):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(name=name, csv_format=csv_format)

    @staticmethod
    def create_article(warehouse=None, name=None, sku=None, stock=5, target_stock=10,
                       category='Regal A', location='Fach 1', supplier='', supplier_sku='', ean=''):
        """Create a test article"""
        if not name:
            name = f'Artikel {TestDataFactory.random_string(6)}'
        if sku is None:
            sku = f'SKU{TestDataFactory.random_string(8)}'
        return Article.objects.create(
            warehouse=warehouse,
            name=name,
            sku=sku,
            stock=stock,
            target_stock=target_stock,
            category=category,
            location=location,
            supplier=supplier,
            supplier_sku=supplier_sku,
            ean=ean,
        )

    @staticmethod
    def create_order(warehouse=None, supplier='Großhandel', status='Ordered', user=None):
        return Order.objects.create(warehouse=warehouse, supplier=supplier, status=status, created_by=user)

    @staticmethod
    def create_order_item(order, article=None, quantity_ordered=5, quantity_received=0, custom_name=''):
        item = OrderItem.objects.create(
            order=order,
            article=article,
            custom_name=custom_name,
            quantity_ordered=quantity_ordered,
            quantity_received=quantity_received,
        )
        order.item_count = order.items.count()
        order.save(update_fields=['item_count'])
        return item

    @staticmethod
    def create_commission(warehouse, name=None, status='Draft', order_number=None):
        """Create a test commission"""
        if not name:
            name = f'Kunde {TestDataFactory.random_string(6)}'
        if order_number is None:
            order_number = f'K-{random.randint(1000, 9999)}'
        return Commission.objects.create(warehouse=warehouse, name=name, status=status, order_number=order_number)

    @staticmethod
    def create_commission_item(commission, article=None, amount=1, type='Stock', custom_name='',
                               is_picked=False, is_backorder=False):
        return CommissionItem.objects.create(
            commission=commission,
            article=article,
            amount=amount,
            type=type,
            custom_name=custom_name,
            is_picked=is_picked,
            is_backorder=is_backorder,
        )

    @staticmethod
    def create_machine(name=None, status='Available'):
        if not name:
            name = f'Bohrhammer {TestDataFactory.random_string(4)}'
        return Machine.objects.create(name=name, status=status)

    @staticmethod
    def create_key(slot_number=None, name=None, status='Available'):
        if slot_number is None:
            slot_number = random.randint(1, 999999)
            while Key.objects.filter(slot_number=slot_number).exists():
                slot_number = random.randint(1, 999999)
        if not name:
            name = f'Objekt {TestDataFactory.random_string(5)}'
        return Key.objects.create(slot_number=slot_number, name=name, address='Hauptstraße 1', status=status)

    @staticmethod
    def create_workwear_template(name=None, price=Decimal('25.00'), category='Hose', has_logo=False):
        if not name:
            name = f'Arbeitshose {TestDataFactory.random_string(4)}'
        return WorkwearTemplate.objects.create(name=name, category=category, price=price, has_logo=has_logo)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
