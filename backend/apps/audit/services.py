"""
Audit service - creates and queries immutable audit log entries.

All audit entries are append-only. No updates or deletions.

Writing an entry never fails the business operation that triggered it:
known-sensitive keys are redacted, transient database errors are retried
inside a savepoint, and a permanent failure is reported to the operational
log and dropped.
"""

import logging
import time
from datetime import date, datetime, time as dt_time, timedelta
from datetime import timezone as dt_timezone

from django.conf import settings
from django.db import DatabaseError, OperationalError, transaction

from apps.audit.models import AuditLog
from core.middleware import get_current_request_id

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Substring match against lower-cased key names
SENSITIVE_FIELD_MARKERS = (
    "password",
    "passwordhash",
    "securitystamp",
    "concurrencystamp",
    "token",
    "secret",
    "key",
)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_RECENT_COUNT = 10
MAX_RECENT_COUNT = 200


def _audit_setting(name, default):
    return getattr(settings, "AUDIT_SETTINGS", {}).get(name, default)


def is_sensitive_field(name):
    lowered = str(name).lower()
    return any(marker in lowered for marker in SENSITIVE_FIELD_MARKERS)


def sanitize_state(value):
    """
    Return a JSON-safe copy of an audit payload with sensitive keys redacted.

    Dicts and lists are walked recursively. UUIDs, Decimals and other scalar
    objects are stored as strings; dates and datetimes as ISO 8601.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, dict):
        return {
            str(key): REDACTED if is_sensitive_field(key) else sanitize_state(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize_state(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _resolve_actor(actor_id):
    from apps.users.services import find_user

    # Actor may not exist (system event or removed account), but we still log
    return find_user(actor_id)


def create_audit_entry(
    action,
    actor_id,
    entity_type,
    entity_id,
    previous_state=None,
    new_state=None,
    origin=None,
):
    """
    Create an audit log entry.

    Args:
        action: Action tag (e.g. 'REQUEST_APPROVED')
        actor_id: User identifier (None for system events)
        entity_type: Type of affected entity (e.g. 'ClearanceRequest')
        entity_id: Identifier of affected entity
        previous_state: Snapshot before change (optional, redacted)
        new_state: Snapshot after change (optional, redacted)
        origin: Caller identity, e.g. view or command name (optional)

    Returns:
        AuditLog | None: Created entry, or None when the write was dropped
    """
    attempts = 1 + max(int(_audit_setting("WRITE_RETRIES", 2)), 0)
    backoff = float(_audit_setting("RETRY_BACKOFF_SECONDS", 0.05))
    log_context = {
        "operation": "AUDIT_WRITE",
        "action": action,
        "entity_type": entity_type,
        "entity_id": str(entity_id),
    }

    try:
        payload = {
            "action": action,
            "actor": _resolve_actor(actor_id),
            "entity_type": entity_type,
            "entity_id": entity_id,
            "previous_state": sanitize_state(previous_state),
            "new_state": sanitize_state(new_state),
            "origin": origin[:100] if origin else None,
            "request_id": get_current_request_id(),
        }
    except DatabaseError as exc:
        logger.error("audit_entry_dropped", extra=log_context, exc_info=exc)
        return None

    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return AuditLog.objects.create(**payload)
        except OperationalError as exc:
            if attempt < attempts:
                logger.warning(
                    "audit_entry_retry", extra={**log_context, "attempt": attempt}
                )
                time.sleep(backoff * attempt)
                continue
            logger.error("audit_entry_dropped", extra=log_context, exc_info=exc)
        except DatabaseError as exc:
            logger.error("audit_entry_dropped", extra=log_context, exc_info=exc)
            break
    return None


def _as_start(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, dt_time.min, tzinfo=dt_timezone.utc)


def _end_filter(value):
    # A bare date includes the whole day
    if isinstance(value, datetime):
        return {"occurred_at__lte": value}
    next_day = datetime.combine(
        value + timedelta(days=1), dt_time.min, tzinfo=dt_timezone.utc
    )
    return {"occurred_at__lt": next_day}


def query_entries(
    actor_id=None,
    entity_type=None,
    entity_id=None,
    action=None,
    start=None,
    end=None,
    page=1,
    page_size=DEFAULT_PAGE_SIZE,
):
    """
    Paginated, filtered audit listing ordered most-recent-first.

    Returns:
        tuple[list[AuditLog], int]: Page items and total matching entries
    """
    page = page if page and page >= 1 else 1
    if not page_size or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    page_size = min(page_size, MAX_PAGE_SIZE)

    queryset = AuditLog.objects.select_related("actor")
    if actor_id:
        queryset = queryset.filter(actor_id=actor_id)
    if entity_type:
        queryset = queryset.filter(entity_type=entity_type)
    if entity_id:
        queryset = queryset.filter(entity_id=entity_id)
    if action:
        queryset = queryset.filter(action__icontains=action)
    if start is not None:
        queryset = queryset.filter(occurred_at__gte=_as_start(start))
    if end is not None:
        queryset = queryset.filter(**_end_filter(end))

    total = queryset.count()
    offset = (page - 1) * page_size
    items = list(queryset.newest_first()[offset : offset + page_size])
    return items, total


def entity_history(entity_type, entity_id):
    """Full history of one entity, most-recent-first."""
    return list(
        AuditLog.objects.select_related("actor")
        .for_entity(entity_type, entity_id)
        .newest_first()
    )


def recent_entries(count=50):
    """The N most recent entries, for dashboards."""
    if not count or count < 1:
        count = DEFAULT_RECENT_COUNT
    count = min(count, MAX_RECENT_COUNT)
    return list(AuditLog.objects.select_related("actor").newest_first()[:count])
