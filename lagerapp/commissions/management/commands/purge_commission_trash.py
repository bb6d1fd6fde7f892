from django.core.management.base import BaseCommand
from lagerapp.commissions.services import purge_trash, trash_days


class Command(BaseCommand):
    help = 'Permanently delete commissions that have been in the trash longer than the retention period'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=None, help='Retention in days (default: COMMISSION_TRASH_DAYS)')

    def handle(self, *args, **options):
        days = options['days'] if options['days'] is not None else trash_days()
        deleted = purge_trash(days=days)
        self.stdout.write(self.style.SUCCESS(f'Deleted {deleted} commission(s) older than {days} days from trash'))
