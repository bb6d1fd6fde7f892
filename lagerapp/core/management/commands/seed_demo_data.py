"""
Management command to fill an empty database with demo data
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from lagerapp.core.models import User
from lagerapp.inventory.models import Article
from lagerapp.keys.models import Key, KeyCategory
from lagerapp.machines.models import Machine
from lagerapp.suppliers.models import Supplier
from lagerapp.warehouses.models import Warehouse
from lagerapp.workwear.models import WorkwearTemplate


WAREHOUSES = [
    ('Hauptlager', 'Main', 'Fürth'),
    ('Sprinter 1', 'Vehicle', ''),
]

SUPPLIERS = [
    ('Würth', '4711', '{{sku}};{{amount}}'),
    ('Großhandel Meier', '', ''),
]

# name, sku, supplier, category, location, stock, target_stock
ARTICLES = [
    ('Dübel 6mm', 'W-6', 'Würth', 'Befestigung', 'Fach 1', 40, 100),
    ('Holzschraube 4x40', 'W-440', 'Würth', 'Befestigung', 'Fach 2', 250, 200),
    ('Kugelhahn 1/2"', 'KH-12', 'Großhandel Meier', 'Armaturen', 'Fach 10', 3, 10),
    ('Kupferrohr 15mm', 'KR-15', 'Großhandel Meier', 'Rohre', 'Regal 3', 12, 10),
]

MACHINES = ['Bohrhammer Hilti', 'Kernbohrgerät', 'Rohrpresse']

KEYS = [
    (1, 'Altbau Hauptstraße', 'Hauptstraße 1', 'Kunden'),
    (2, 'Lagerhalle', 'Gewerbering 5', 'Intern'),
]

WORKWEAR = [
    ('Arbeitshose', 'Hose', Decimal('49.90'), True),
    ('T-Shirt', 'Oberteil', Decimal('14.50'), True),
    ('Sicherheitsschuhe S3', 'Schuhe', Decimal('89.00'), False),
]


class Command(BaseCommand):
    help = 'Creates demo warehouses, suppliers, articles, machines, keys and workwear'

    def add_arguments(self, parser):
        parser.add_argument(
            '--admin-password',
            default='',
            help='Also create an admin user "admin" with this password',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        warehouses = {}
        for name, type_, location in WAREHOUSES:
            warehouses[name], _ = Warehouse.objects.get_or_create(
                name=name, defaults={'type': type_, 'location': location},
            )
        main = warehouses['Hauptlager']

        for name, customer_number, csv_format in SUPPLIERS:
            Supplier.objects.get_or_create(
                name=name, defaults={'customer_number': customer_number, 'csv_format': csv_format},
            )

        created_articles = 0
        for name, sku, supplier, category, location, stock, target in ARTICLES:
            _, created = Article.objects.get_or_create(
                warehouse=main, sku=sku,
                defaults={
                    'name': name, 'supplier': supplier, 'category': category,
                    'location': location, 'stock': stock, 'target_stock': target,
                },
            )
            created_articles += created

        for name in MACHINES:
            Machine.objects.get_or_create(name=name)

        for slot, name, address, category in KEYS:
            key_category, _ = KeyCategory.objects.get_or_create(name=category)
            Key.objects.get_or_create(
                slot_number=slot, defaults={'name': name, 'address': address, 'category': key_category},
            )

        for name, category, price, has_logo in WORKWEAR:
            WorkwearTemplate.objects.get_or_create(
                name=name, defaults={'category': category, 'price': price, 'has_logo': has_logo},
            )

        password = options['admin_password']
        if password and not User.objects.filter(username='admin').exists():
            User.objects.create_superuser(
                username='admin', email='', password=password,
                full_name='Administrator', role='admin', primary_warehouse=main,
            )
            self.stdout.write(self.style.WARNING('Created admin user "admin"'))

        self.stdout.write(self.style.SUCCESS(
            f'Demo data ready: {len(warehouses)} warehouses, {created_articles} new articles'
        ))
