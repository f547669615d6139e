import logging

from django.core.management.base import BaseCommand, CommandError

from marketplace.services import CatalogService


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Seeds the initial product catalogue. Products that already exist are left untouched."

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("Seeding products..."))

        result = CatalogService().seed_products()
        if not result.ok:
            raise CommandError(f"Product seeding failed: {result.error_detail}")

        if result.value:
            self.stdout.write(self.style.SUCCESS(f"Product seeding complete. Created {result.value} products."))
        else:
            self.stdout.write(self.style.WARNING("All seed products already exist."))
