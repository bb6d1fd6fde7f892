from django.conf import settings
from django.core.management.base import BaseCommand
from lagerapp.orders.services import cleanup_received_orders


class Command(BaseCommand):
    help = 'Delete received orders older than the retention period (default 60 days)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=settings.ORDER_RETENTION_DAYS,
            help='Age in days after which received orders are deleted',
        )

    def handle(self, *args, **options):
        deleted = cleanup_received_orders(days=options['days'])
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} received orders older than {options["days"]} days'))
