"""
Version locking helper for ClearanceRequest state transitions.
Detects lost updates when two staff members act on the same request.
"""
from django.db.models import F
from core.exceptions import InvalidStateError


class ConcurrentModificationError(InvalidStateError):
    """The row changed between read and write."""


def version_locked_update(queryset, current_version, **updates):
    """
    Perform version-locked update on queryset.

    Args:
        queryset: Django QuerySet to update
        current_version: Expected current version number
        **updates: Fields to update

    Returns:
        int: Number of rows updated (should be 1)

    Raises:
        ConcurrentModificationError: If no row matched the expected version
    """
    updated_count = queryset.filter(version=current_version).update(
        **updates,
        version=F("version") + 1,
    )

    if updated_count == 0:
        raise ConcurrentModificationError(
            "Concurrent modification detected. Version mismatch or invalid state.",
            {"expected_version": current_version},
        )

    return updated_count
