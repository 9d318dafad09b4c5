import time

from django.conf import settings
from django.core.management.base import BaseCommand
from reservations.services import sweep_expired


class Command(BaseCommand):
    help = (
        "Expire open reservations that have passed their deadline and return their stock. "
        "With --loop, keep sweeping on a fixed interval; the first sweep runs immediately so "
        "reservations that expired while the service was down are released on startup."
    )

    def add_arguments(self, parser):
        parser.add_argument("--loop", action="store_true", help="Keep running and sweep on a fixed interval.")
        parser.add_argument(
            "--interval",
            type=int,
            default=None,
            help="Seconds between sweeps (defaults to RESERVATION_SWEEP_INTERVAL_SECONDS).",
        )
        parser.add_argument("--limit", type=int, default=None, help="Maximum reservations to expire per sweep.")

    def handle(self, *args, **options):
        interval = options["interval"] or settings.RESERVATION_SWEEP_INTERVAL_SECONDS
        limit = options["limit"]
        if not options["loop"]:
            count = sweep_expired(limit=limit)
            self.stdout.write(self.style.SUCCESS(f"Expired reservations released: {count}"))
            return

        self.stdout.write(f"Sweeping expired reservations every {interval}s")
        try:
            while True:
                started = time.monotonic()
                count = sweep_expired(limit=limit)
                if count:
                    self.stdout.write(f"Expired reservations released: {count}")
                time.sleep(max(0.0, interval - (time.monotonic() - started)))
        except KeyboardInterrupt:
            self.stdout.write("Sweeper stopped")
