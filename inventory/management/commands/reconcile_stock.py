from django.core.management.base import BaseCommand, CommandError
from inventory.selectors import find_ledger_drift


class Command(BaseCommand):
    help = "Compare each product's stock counter with the sum of its ledger entries."

    def handle(self, *args, **options):
        drift = find_ledger_drift()
        for row in drift:
            self.stderr.write(
                f"product {row['product_id']}: available={row['available']} ledger={row['ledger_total']}"
            )
        if drift:
            raise CommandError(f"Stock ledger drift detected for {len(drift)} product(s).")
        self.stdout.write(self.style.SUCCESS("Stock counters match the ledger."))
