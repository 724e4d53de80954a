from django.core.management.base import BaseCommand

from fleet.services.store import Store


class Command(BaseCommand):
    help = "Recompute every user's active_request_count from the request table."

    def add_arguments(self, parser):
        parser.add_argument('--database', default=None, help='Database alias (defaults to DISPATCH_DB_ALIAS).')

    def handle(self, *args, **options):
        store = Store(options['database'])
        with store.atomic():
            changed = store.refresh_active_counts()
        self.stdout.write(self.style.SUCCESS(f"Repaired {changed} counter(s) on '{store.alias}'"))
