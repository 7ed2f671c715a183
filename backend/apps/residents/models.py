"""
Resident model - the citizen profile that owns clearance requests.

Profile management is handled outside the workflow engine; the engine only
looks residents up by id or by the owning user account.
"""

import uuid
from django.db import models


class Resident(models.Model):
    """Resident profile linked one-to-one with a RESIDENT user account."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(
        "users.User", on_delete=models.PROTECT, related_name="resident_profile"
    )
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    address = models.CharField(max_length=255)
    birth_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "residents"
        indexes = [
            models.Index(fields=["last_name", "first_name"], name="idx_resident_name"),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def age_on(self, day):
        """Age in whole years on the given date."""
        years = day.year - self.birth_date.year
        if (day.month, day.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years
