"""
Clearance workflow services - all request mutations flow through this layer.

Rules:
- All mutations wrapped in transaction.atomic
- Use select_for_update for row-level locking
- Validate state transitions before changes
- Version-locked updates; last-writer-wins is never allowed
- Exactly one audit entry per successful transition
- No direct model.save() from views

process_request and regenerate_document raise typed errors. cancel_request,
record_payment and mark_released return False on any guard failure; the
underlying reason is written to the operational log only.
"""

import logging
from contextlib import contextmanager

from dateutil.relativedelta import relativedelta
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from apps.audit.services import create_audit_entry
from apps.clearances import documents
from apps.clearances.conf import clearance_setting
from apps.clearances.models import ClearanceRequest, ClearanceType, RequestStatus
from apps.clearances.reference import generate_reference_number
from apps.clearances.state_machine import (
    can_transition,
    is_awaiting_review,
    validate_transition,
)
from apps.clearances.versioning import (
    ConcurrentModificationError,
    version_locked_update,
)
from apps.residents.services import get_resident, get_resident_for_user
from apps.users.services import find_user, is_staff_member
from core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ENTITY_TYPE = "ClearanceRequest"

# Soft-failure reasons (logged, never returned)
NOT_FOUND = "NOT_FOUND"
NOT_AUTHORIZED = "NOT_AUTHORIZED"
INVALID_STATE = "INVALID_STATE"
CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

REFERENCE_ATTEMPTS = 3


@contextmanager
def _store_errors(operation):
    try:
        yield
    except DatabaseError as exc:
        logger.error(
            "clearance_store_unavailable",
            extra={"operation": operation},
            exc_info=exc,
        )
        raise PersistenceError(
            "Clearance store is unavailable", {"operation": operation}
        ) from exc


def _locked(request_id):
    try:
        return ClearanceRequest.objects.select_for_update().get(id=request_id)
    except (ClearanceRequest.DoesNotExist, ValueError, DjangoValidationError):
        return None


def _transition(request, target_status, **fields):
    """Apply a validated, version-locked status change and refresh `request`."""
    validate_transition(request.status, target_status)
    version_locked_update(
        ClearanceRequest.objects.filter(id=request.id, status=request.status),
        current_version=request.version,
        status=target_status,
        updated_at=timezone.now(),
        **fields,
    )
    request.refresh_from_db()
    return request


def _soft_failure(operation, request_id, reason, **context):
    logger.warning(
        "clearance_operation_refused",
        extra={
            "operation": operation,
            "entity_id": str(request_id),
            "reason": reason,
            **context,
        },
    )
    return False


def get_active_clearance_type(clearance_type_id):
    if clearance_type_id is None:
        return None
    try:
        return ClearanceType.objects.filter(id=clearance_type_id, is_active=True).first()
    except (ValueError, DjangoValidationError):
        return None


def is_active_clearance_type(clearance_type_id):
    return get_active_clearance_type(clearance_type_id) is not None


def _insert_request(**fields):
    """Insert with a fresh reference number, retrying on a unique collision."""
    prefix = clearance_setting("REFERENCE_PREFIX")
    for attempt in range(1, REFERENCE_ATTEMPTS + 1):
        reference_number = generate_reference_number(
            prefix=prefix, now=fields["request_date"]
        )
        try:
            with transaction.atomic():
                return ClearanceRequest.objects.create(
                    reference_number=reference_number, **fields
                )
        except IntegrityError:
            collided = ClearanceRequest.objects.filter(
                reference_number=reference_number
            ).exists()
            if attempt == REFERENCE_ATTEMPTS or not collided:
                raise
            logger.warning(
                "reference_number_collision",
                extra={
                    "operation": "CREATE_CLEARANCE_REQUEST",
                    "reference_number": reference_number,
                    "attempt": attempt,
                },
            )


def create_request(
    resident_id, clearance_type_id, purpose, submitted_by_user_id=None, origin=None
):
    """
    Submit a new ClearanceRequest with status SUBMITTED.

    Args:
        resident_id: Resident identifier (owner, immutable)
        clearance_type_id: ClearanceType identifier (must be active)
        purpose: Stated purpose (non-empty)
        submitted_by_user_id: Acting user for walk-in submissions recorded by
            staff; defaults to the resident's own account
        origin: Caller identity recorded on the audit entry

    Returns:
        ClearanceRequest: Created request

    Raises:
        ValidationError: If purpose is empty, or type/resident is unknown or inactive
        PersistenceError: If the store is unavailable
    """
    if not purpose or not str(purpose).strip():
        raise ValidationError("Purpose must be non-empty")

    with _store_errors("CREATE_CLEARANCE_REQUEST"):
        clearance_type = get_active_clearance_type(clearance_type_id)
        if clearance_type is None:
            raise ValidationError(
                "Clearance type does not exist or is inactive",
                {"clearance_type_id": str(clearance_type_id)},
            )

        resident = get_resident(resident_id)
        if resident is None:
            raise ValidationError(
                "Resident does not exist", {"resident_id": str(resident_id)}
            )

        with transaction.atomic():
            now = timezone.now()
            request = _insert_request(
                resident=resident,
                clearance_type=clearance_type,
                purpose=str(purpose).strip(),
                status=RequestStatus.SUBMITTED,
                request_date=now,
            )

            create_audit_entry(
                action="REQUEST_CREATED",
                actor_id=submitted_by_user_id or resident.user_id,
                entity_type=ENTITY_TYPE,
                entity_id=request.id,
                previous_state=None,
                new_state={
                    "status": request.status,
                    "reference_number": request.reference_number,
                    "clearance_type_id": clearance_type.id,
                    "purpose": request.purpose,
                },
                origin=origin,
            )

    logger.info(
        "clearance_request_created",
        extra={
            "operation": "CREATE_CLEARANCE_REQUEST",
            "entity_id": str(request.id),
            "reference_number": request.reference_number,
        },
    )
    return request


def process_request(request_id, approve, remarks, processed_by_user_id, origin=None):
    """
    Approve or reject a request awaiting review (SUBMITTED or PENDING only).

    Returns:
        ClearanceRequest: Updated request

    Raises:
        NotFoundError: If request does not exist
        AuthorizationError: If the processor is not staff
        InvalidStateError: If request is not awaiting review, or changed concurrently
        PersistenceError: If the store is unavailable
    """
    operation = "PROCESS_CLEARANCE_REQUEST"
    with _store_errors(operation), transaction.atomic():
        request = _locked(request_id)
        if request is None:
            raise NotFoundError(f"ClearanceRequest {request_id} does not exist")

        processor = find_user(processed_by_user_id)
        if not is_staff_member(processor):
            raise AuthorizationError("Only staff can process clearance requests")

        if not is_awaiting_review(request.status):
            raise InvalidStateError(
                f"Cannot process request with status {request.status}",
                {"current_status": request.status},
            )

        previous_status = request.status
        target = RequestStatus.APPROVED if approve else RequestStatus.REJECTED
        cleaned_remarks = remarks.strip() if remarks and remarks.strip() else None
        now = timezone.now()
        _transition(
            request,
            target,
            processed_by=processor,
            processed_date=now,
            remarks=cleaned_remarks,
        )

        create_audit_entry(
            action="REQUEST_APPROVED" if approve else "REQUEST_REJECTED",
            actor_id=processor.id,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            previous_state={"status": previous_status},
            new_state={
                "status": request.status,
                "processed_date": now,
                "remarks": cleaned_remarks,
            },
            origin=origin,
        )

    logger.info(
        "clearance_request_approved" if approve else "clearance_request_rejected",
        extra={"operation": operation, "entity_id": str(request.id)},
    )
    return request


def cancel_request(request_id, actor_user_id, reason, origin=None):
    """
    Cancel a request on behalf of the resident who owns it.

    Returns:
        bool: True on success; False when the request is missing, not owned
        by the actor, not awaiting review, or changed concurrently

    Raises:
        PersistenceError: If the store is unavailable
    """
    operation = "CANCEL_CLEARANCE_REQUEST"
    with _store_errors(operation), transaction.atomic():
        request = _locked(request_id)
        if request is None:
            return _soft_failure(operation, request_id, NOT_FOUND)

        resident = get_resident_for_user(actor_user_id)
        if resident is None or resident.id != request.resident_id:
            return _soft_failure(
                operation, request_id, NOT_AUTHORIZED, actor_id=str(actor_user_id)
            )

        if not is_awaiting_review(request.status):
            return _soft_failure(
                operation, request_id, INVALID_STATE, current_status=request.status
            )

        previous_status = request.status
        cleaned_reason = reason.strip() if reason and reason.strip() else None
        now = timezone.now()
        try:
            _transition(
                request,
                RequestStatus.CANCELLED,
                cancelled_by_id=resident.user_id,
                cancelled_date=now,
                cancellation_reason=cleaned_reason,
            )
        except ConcurrentModificationError:
            return _soft_failure(operation, request_id, CONCURRENT_MODIFICATION)

        create_audit_entry(
            action="REQUEST_CANCELLED",
            actor_id=resident.user_id,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            previous_state={"status": previous_status},
            new_state={
                "status": request.status,
                "cancelled_date": now,
                "cancellation_reason": cleaned_reason,
            },
            origin=origin,
        )

    logger.info(
        "clearance_request_cancelled",
        extra={"operation": operation, "entity_id": str(request.id)},
    )
    return True


def record_payment(
    request_id, staff_user_id, official_receipt_number=None, origin=None
):
    """
    Record cash collection for an APPROVED request and move it to FOR_RELEASE.

    Returns:
        bool: True on success; False on any guard failure

    Raises:
        PersistenceError: If the store is unavailable
    """
    operation = "RECORD_CLEARANCE_PAYMENT"
    with _store_errors(operation), transaction.atomic():
        request = _locked(request_id)
        if request is None:
            return _soft_failure(operation, request_id, NOT_FOUND)

        staff = find_user(staff_user_id)
        if not is_staff_member(staff):
            return _soft_failure(
                operation, request_id, NOT_AUTHORIZED, actor_id=str(staff_user_id)
            )

        if not can_transition(request.status, RequestStatus.FOR_RELEASE):
            return _soft_failure(
                operation, request_id, INVALID_STATE, current_status=request.status
            )

        previous_status = request.status
        receipt = (
            official_receipt_number.strip()
            if official_receipt_number and official_receipt_number.strip()
            else None
        )
        amount = request.clearance_type.fee
        now = timezone.now()
        try:
            _transition(
                request,
                RequestStatus.FOR_RELEASE,
                is_paid=True,
                paid_date=now,
                collected_by=staff,
                amount_paid=amount,
                official_receipt_number=receipt,
            )
        except ConcurrentModificationError:
            return _soft_failure(operation, request_id, CONCURRENT_MODIFICATION)

        create_audit_entry(
            action="PAYMENT_RECORDED",
            actor_id=staff.id,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            previous_state={"status": previous_status, "is_paid": False},
            new_state={
                "status": request.status,
                "is_paid": True,
                "paid_date": now,
                "amount_paid": amount,
                "official_receipt_number": receipt,
            },
            origin=origin,
        )

    logger.info(
        "clearance_payment_recorded",
        extra={"operation": operation, "entity_id": str(request.id)},
    )
    return True


def mark_released(request_id, staff_user_id, origin=None):
    """
    Release a paid request and start its validity period.

    Document issuance is scheduled for after commit; its failure never
    reverts the release.

    Returns:
        bool: True on success; False on any guard failure

    Raises:
        PersistenceError: If the store is unavailable
    """
    operation = "RELEASE_CLEARANCE_REQUEST"
    with _store_errors(operation), transaction.atomic():
        request = _locked(request_id)
        if request is None:
            return _soft_failure(operation, request_id, NOT_FOUND)

        staff = find_user(staff_user_id)
        if not is_staff_member(staff):
            return _soft_failure(
                operation, request_id, NOT_AUTHORIZED, actor_id=str(staff_user_id)
            )

        if not can_transition(request.status, RequestStatus.RELEASED):
            return _soft_failure(
                operation, request_id, INVALID_STATE, current_status=request.status
            )

        previous_status = request.status
        now = timezone.now()
        expiry = now + relativedelta(months=int(clearance_setting("VALIDITY_MONTHS")))
        try:
            _transition(
                request,
                RequestStatus.RELEASED,
                released_date=now,
                released_by=staff,
                expiry_date=expiry,
            )
        except ConcurrentModificationError:
            return _soft_failure(operation, request_id, CONCURRENT_MODIFICATION)

        create_audit_entry(
            action="REQUEST_RELEASED",
            actor_id=staff.id,
            entity_type=ENTITY_TYPE,
            entity_id=request.id,
            previous_state={"status": previous_status},
            new_state={
                "status": request.status,
                "released_date": now,
                "expiry_date": expiry,
            },
            origin=origin,
        )

        documents.dispatch_document_issuance(request.id)

    logger.info(
        "clearance_request_released",
        extra={
            "operation": operation,
            "entity_id": str(request.id),
            "expiry_date": expiry.isoformat(),
        },
    )
    return True


def mark_expired(now=None, origin=None):
    """
    Move every RELEASED request whose expiry_date has passed to EXPIRED.

    Idempotent: a second run with the same clock finds nothing to do.
    Rows changed concurrently are skipped and picked up by the next run.

    Returns:
        int: Number of requests expired by this run

    Raises:
        PersistenceError: If the store is unavailable
    """
    operation = "EXPIRE_CLEARANCE_REQUESTS"
    now = now or timezone.now()
    expired_count = 0

    with _store_errors(operation):
        candidate_ids = list(
            ClearanceRequest.objects.expired(now).values_list("id", flat=True)
        )
        for request_id in candidate_ids:
            with transaction.atomic():
                request = _locked(request_id)
                if (
                    request is None
                    or request.status != RequestStatus.RELEASED
                    or request.expiry_date >= now
                ):
                    continue
                try:
                    _transition(request, RequestStatus.EXPIRED)
                except ConcurrentModificationError:
                    logger.warning(
                        "clearance_expiry_skipped",
                        extra={"operation": operation, "entity_id": str(request_id)},
                    )
                    continue

                create_audit_entry(
                    action="REQUEST_EXPIRED",
                    actor_id=None,
                    entity_type=ENTITY_TYPE,
                    entity_id=request.id,
                    previous_state={"status": RequestStatus.RELEASED},
                    new_state={
                        "status": request.status,
                        "expiry_date": request.expiry_date,
                    },
                    origin=origin,
                )
                expired_count += 1

    if expired_count:
        logger.info(
            "clearance_requests_expired",
            extra={"operation": operation, "count": expired_count},
        )
    return expired_count


def regenerate_document(request_id, staff_user_id, origin=None):
    """
    Re-issue the document for a RELEASED request.

    The prior artifact, if any, is deleted first; a delete failure is logged
    and ignored. Status is never changed.

    Returns:
        str | None: New storage reference, or None if issuance failed

    Raises:
        NotFoundError: If request does not exist
        AuthorizationError: If the actor is not staff
        InvalidStateError: If request is not RELEASED
        PersistenceError: If the store is unavailable
    """
    operation = "REGENERATE_CLEARANCE_DOCUMENT"
    with _store_errors(operation), transaction.atomic():
        request = _locked(request_id)
        if request is None:
            raise NotFoundError(f"ClearanceRequest {request_id} does not exist")

        staff = find_user(staff_user_id)
        if not is_staff_member(staff):
            raise AuthorizationError("Only staff can regenerate clearance documents")

        if request.status != RequestStatus.RELEASED:
            raise InvalidStateError(
                "Documents can only be generated for RELEASED requests",
                {"current_status": request.status},
            )

        issuer = documents.get_document_issuer()
        previous_path = request.document_path
        if previous_path:
            try:
                issuer.delete(previous_path)
            except Exception as exc:
                logger.warning(
                    "clearance_document_delete_failed",
                    extra={
                        "operation": operation,
                        "entity_id": str(request.id),
                        "document_path": previous_path,
                    },
                    exc_info=exc,
                )
            ClearanceRequest.objects.filter(id=request.id).update(
                document_path=None, document_generated_date=None
            )

        path = documents.issue_document(
            request.id, generated_by=staff.id, issuer=issuer
        )
        if path is not None:
            create_audit_entry(
                action="DOCUMENT_REGENERATED",
                actor_id=staff.id,
                entity_type=ENTITY_TYPE,
                entity_id=request.id,
                previous_state={"document_path": previous_path},
                new_state={"document_path": path},
                origin=origin,
            )

    return path


def get_request(request_id):
    """Return the request with its resident and type, or None."""
    try:
        return (
            ClearanceRequest.objects.select_related("resident", "clearance_type")
            .filter(id=request_id)
            .first()
        )
    except (ValueError, DjangoValidationError):
        return None


def list_requests_for_resident(resident_id):
    return list(
        ClearanceRequest.objects.select_related("clearance_type").for_resident(
            resident_id
        )
    )


def list_requests_by_status(status):
    if status not in RequestStatus.values:
        raise ValidationError(
            f"Unknown status {status}", {"allowed": list(RequestStatus.values)}
        )
    return list(
        ClearanceRequest.objects.select_related(
            "resident", "clearance_type"
        ).with_status(status)
    )


def list_awaiting_review():
    return list(
        ClearanceRequest.objects.select_related(
            "resident", "clearance_type"
        ).awaiting_review()
    )


def list_active_clearance_types():
    return list(ClearanceType.objects.filter(is_active=True))
