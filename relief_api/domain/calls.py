# SPDX-License-Identifier: Apache-2.0

"""
Volunteer call and application domain logic.

A call is active until an admin closes it or its assigned applications
reach volunteers_needed. Applications move pending -> accepted ->
assigned, and may be rejected while pending or accepted.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime

from ..models.entities import VolunteerCall
from ..models.enums import ApplicationStatus, VolunteerCallStatus, CallPriority
from .validation import ValidationResult


CALL_TRANSITIONS = {
    VolunteerCallStatus.ACTIVE: [VolunteerCallStatus.CLOSED],
    VolunteerCallStatus.CLOSED: []  # Terminal state
}

APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: [ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED],
    ApplicationStatus.ACCEPTED: [ApplicationStatus.ASSIGNED, ApplicationStatus.REJECTED],
    ApplicationStatus.REJECTED: [],  # Terminal state
    ApplicationStatus.ASSIGNED: []  # Terminal state
}

MAX_VOLUNTEERS_NEEDED = 10000


def validate_call_definition(
    disaster_name: Optional[str],
    disaster_location: Optional[str],
    volunteers_needed: Any,
    priority: Any = CallPriority.MEDIUM
) -> ValidationResult:
    """
    Validate a new volunteer call.

    Args:
        disaster_name: Disaster name
        disaster_location: Disaster location
        volunteers_needed: Call capacity
        priority: Priority level

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if not disaster_name or not disaster_name.strip():
        errors.append("Disaster name is required")

    if not disaster_location or not disaster_location.strip():
        errors.append("Disaster location is required")

    if isinstance(volunteers_needed, bool) or not isinstance(volunteers_needed, int):
        errors.append("Volunteers needed must be an integer")
    elif volunteers_needed < 1:
        errors.append("At least one volunteer must be needed")
    elif volunteers_needed > MAX_VOLUNTEERS_NEEDED:
        errors.append(f"Volunteers needed cannot exceed {MAX_VOLUNTEERS_NEEDED}")

    try:
        CallPriority(priority)
    except ValueError:
        errors.append(f"Invalid priority: {priority}")

    return ValidationResult.from_errors(errors)


def validate_call_transition(
    current_status: VolunteerCallStatus,
    new_status: VolunteerCallStatus
) -> ValidationResult:
    """Validate volunteer call status transition."""
    errors = []

    if VolunteerCallStatus(new_status) not in CALL_TRANSITIONS.get(VolunteerCallStatus(current_status), []):
        errors.append(
            f"Invalid call status transition from {VolunteerCallStatus(current_status).value} "
            f"to {VolunteerCallStatus(new_status).value}"
        )

    return ValidationResult.from_errors(errors)


def validate_application_transition(
    current_status: ApplicationStatus,
    new_status: ApplicationStatus
) -> ValidationResult:
    """
    Validate application status transition.

    Args:
        current_status: Current application status
        new_status: Desired new status

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if ApplicationStatus(new_status) not in APPLICATION_TRANSITIONS.get(ApplicationStatus(current_status), []):
        errors.append(
            f"Invalid application status transition from {ApplicationStatus(current_status).value} "
            f"to {ApplicationStatus(new_status).value}"
        )

    return ValidationResult.from_errors(errors)


def build_review_changes(
    new_status: ApplicationStatus,
    reviewer_id: str,
    reviewed_at: datetime,
    notes: Optional[str] = None
) -> Dict[str, Any]:
    """Build the field changes recorded by a review."""
    changes: Dict[str, Any] = {
        "status": ApplicationStatus(new_status).value,
        "reviewed_at": reviewed_at,
        "reviewed_by": reviewer_id
    }
    if notes is not None and notes.strip():
        changes["notes"] = notes.strip()
    return changes


def build_closure_changes(closed_at: datetime) -> Dict[str, Any]:
    """Build the field changes that close a call."""
    return {
        "status": VolunteerCallStatus.CLOSED.value,
        "closed_at": closed_at
    }


def should_close_call(assigned_count: int, volunteers_needed: int) -> bool:
    """A call closes once its assigned applications fill every slot."""
    return assigned_count >= volunteers_needed


def remaining_slots(call: VolunteerCall, assigned_count: int) -> int:
    """Unfilled slots on a call."""
    return max(call.volunteers_needed - assigned_count, 0)


def sort_calls_by_priority(calls: List[VolunteerCall]) -> List[VolunteerCall]:
    """Order calls critical first, newest first within a priority."""
    rank = {
        CallPriority.CRITICAL.value: 0,
        CallPriority.HIGH.value: 1,
        CallPriority.MEDIUM.value: 2,
        CallPriority.LOW.value: 3
    }
    newest_first = sorted(calls, key=lambda c: c.created_at, reverse=True)
    return sorted(newest_first, key=lambda c: rank.get(CallPriority(c.priority).value, 4))
