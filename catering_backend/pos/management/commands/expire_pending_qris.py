from django.conf import settings
from django.core.management.base import BaseCommand

from pos.services.qris_coordinator import expire_stale_qris


class Command(BaseCommand):
    help = "Cancel QRIS orders whose payment stayed pending longer than QRIS_PENDING_TTL_MINUTES"

    def add_arguments(self, parser):
        parser.add_argument(
            "--minutes",
            type=int,
            default=None,
            help="Override QRIS_PENDING_TTL_MINUTES",
        )

    def handle(self, *args, **options):
        minutes = options["minutes"]
        if minutes is None:
            minutes = int(getattr(settings, "QRIS_PENDING_TTL_MINUTES", 60))

        expired = expire_stale_qris(ttl_minutes=minutes)
        self.stdout.write(self.style.SUCCESS(f"Expired {expired} pending QRIS payment(s) older than {minutes} min"))
