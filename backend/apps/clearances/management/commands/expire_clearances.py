"""
Expiry sweep management command.

Moves RELEASED clearances whose validity has lapsed to EXPIRED.
Safe to re-run at any time; schedule it daily (cron, systemd timer).
Run: python manage.py expire_clearances
"""

from django.core.management.base import BaseCommand, CommandError

from apps.clearances import services
from core.exceptions import PersistenceError


class Command(BaseCommand):
    help = "Expire released clearances whose validity period has passed"

    def handle(self, *args, **options):
        try:
            count = services.mark_expired(origin="command.expire_clearances")
        except PersistenceError as exc:
            raise CommandError(exc.message) from exc

        if count:
            self.stdout.write(self.style.SUCCESS(f"Expired {count} clearance(s)"))
        else:
            self.stdout.write("No clearances to expire")
