"""
Resident lookup used by the clearance workflow.

Both lookups return None for unknown or malformed identifiers; callers decide
whether absence is a validation error or a soft failure.
"""

from django.core.exceptions import ValidationError as DjangoValidationError

from apps.residents.models import Resident


def get_resident(resident_id):
    if resident_id is None:
        return None
    try:
        return Resident.objects.filter(id=resident_id).first()
    except (ValueError, DjangoValidationError):
        return None


def get_resident_for_user(user_id):
    if user_id is None:
        return None
    try:
        return Resident.objects.filter(user_id=user_id).first()
    except (ValueError, DjangoValidationError):
        return None
