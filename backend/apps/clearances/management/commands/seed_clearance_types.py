"""
Insert the default clearance types that are not present yet.
Run: python manage.py seed_clearance_types
"""

from django.core.management.base import BaseCommand

from apps.clearances.models import ClearanceType
from apps.clearances.seed import seed_clearance_types


class Command(BaseCommand):
    help = "Create missing default clearance types"

    def handle(self, *args, **options):
        created = seed_clearance_types(ClearanceType)
        self.stdout.write(self.style.SUCCESS(f"Created {created} clearance type(s)"))
