from django.core.management.base import BaseCommand

from catalog.services.customers import ensure_pos_customer


class Command(BaseCommand):
    help = "Create the walk-in customer record used by the PoS (idempotent)"

    def handle(self, *args, **options):
        customer, created = ensure_pos_customer()
        if created:
            self.stdout.write(self.style.SUCCESS(f"Created walk-in customer '{customer.name}'"))
        else:
            self.stdout.write(f"Walk-in customer '{customer.name}' already exists")
