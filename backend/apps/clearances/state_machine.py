"""
State machine enforcement for ClearanceRequest.

Submitted/Pending --process--> Approved | Rejected
Submitted/Pending --cancel--> Cancelled
Approved --record_payment--> ForRelease --mark_released--> Released
Released --expiry sweep--> Expired

Raises InvalidStateError for disallowed transitions.
"""

from core.exceptions import InvalidStateError
from apps.clearances.models import AWAITING_REVIEW_STATUSES, RequestStatus

# Exits shared by both awaiting-review labels
_REVIEW_EXITS = [
    RequestStatus.APPROVED,
    RequestStatus.REJECTED,
    RequestStatus.CANCELLED,
]

CLEARANCE_REQUEST_TRANSITIONS = {
    **{status: _REVIEW_EXITS for status in AWAITING_REVIEW_STATUSES},
    RequestStatus.APPROVED: [RequestStatus.FOR_RELEASE],
    RequestStatus.FOR_RELEASE: [RequestStatus.RELEASED],
    # Terminal for residents; only the expiry sweep moves it on
    RequestStatus.RELEASED: [RequestStatus.EXPIRED],
    RequestStatus.REJECTED: [],  # Terminal
    RequestStatus.CANCELLED: [],  # Terminal
    RequestStatus.EXPIRED: [],  # Terminal
}


def is_awaiting_review(status):
    return status in AWAITING_REVIEW_STATUSES


def is_terminal_state(status):
    """Check if a state is terminal (no transitions allowed)."""
    return (
        status in CLEARANCE_REQUEST_TRANSITIONS
        and not CLEARANCE_REQUEST_TRANSITIONS[status]
    )


def can_transition(current_status, target_status):
    return target_status in CLEARANCE_REQUEST_TRANSITIONS.get(current_status, [])


def validate_transition(current_status, target_status):
    """
    Validate a state transition.

    Args:
        current_status: Current state
        target_status: Target state

    Returns:
        bool: True if transition is allowed

    Raises:
        InvalidStateError: If transition is disallowed
    """
    if current_status not in CLEARANCE_REQUEST_TRANSITIONS:
        raise InvalidStateError(
            f"Invalid current status: {current_status}",
            {"current_status": current_status},
        )

    allowed_targets = CLEARANCE_REQUEST_TRANSITIONS[current_status]

    if not allowed_targets:
        raise InvalidStateError(
            f"ClearanceRequest in state {current_status} is terminal and cannot "
            "transition",
            {"current_status": current_status, "target_status": target_status},
        )

    if target_status not in allowed_targets:
        raise InvalidStateError(
            (
                "Invalid transition: ClearanceRequest cannot transition from "
                f"{current_status} to {target_status}"
            ),
            {
                "current_status": current_status,
                "target_status": target_status,
                "allowed_transitions": [str(s) for s in allowed_targets],
            },
        )

    return True
