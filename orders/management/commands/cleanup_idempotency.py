from django.core.management.base import BaseCommand
from django.utils import timezone
from orders.models import IdempotencyKey


class Command(BaseCommand):
    help = "Purge stored checkout responses whose idempotency window has passed"

    def add_arguments(self, parser):
        parser.add_argument("--dry-run", action="store_true", help="Report how many keys would go without deleting.")

    def handle(self, *args, **options):
        stale = IdempotencyKey.objects.filter(expires_at__lt=timezone.now())
        count = stale.count()
        if options["dry_run"]:
            self.stdout.write(f"{count} idempotency keys past their window")
            return
        stale.delete()
        self.stdout.write(self.style.SUCCESS(f"Purged {count} idempotency keys."))
