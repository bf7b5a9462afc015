# SPDX-License-Identifier: Apache-2.0

"""
Victim request domain logic.

Pure functions for request content gates and the request status
state machine: pending -> approved -> in_progress -> completed, with
rejection allowed from every non-terminal state.
"""

from typing import Any, Dict, Optional

from ..models.entities import VictimRequest, Volunteer
from ..models.enums import RequestStatus
from .validation import ValidationResult


MIN_DESCRIPTION_LENGTH = 10
MAX_DESCRIPTION_LENGTH = 2000
MAX_LOCATION_LENGTH = 300

REQUEST_TRANSITIONS = {
    RequestStatus.PENDING: [RequestStatus.APPROVED, RequestStatus.REJECTED],
    RequestStatus.APPROVED: [RequestStatus.IN_PROGRESS, RequestStatus.REJECTED],
    RequestStatus.IN_PROGRESS: [RequestStatus.COMPLETED, RequestStatus.REJECTED],
    RequestStatus.COMPLETED: [],  # Terminal state
    RequestStatus.REJECTED: []  # Terminal state
}

ASSIGNED_STATES = (RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED)


def validate_request_content(
    location: Optional[str],
    description: Optional[str],
    urgent_needs: Optional[str] = None
) -> ValidationResult:
    """
    Validate help request content.

    Args:
        location: Where help is needed
        description: Situation description
        urgent_needs: Optional list of immediate needs

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []
    warnings = []

    if not location or not location.strip():
        errors.append("Location is required")
    elif len(location.strip()) > MAX_LOCATION_LENGTH:
        errors.append(f"Location cannot exceed {MAX_LOCATION_LENGTH} characters")

    if not description or not description.strip():
        errors.append("Description is required")
    elif len(description.strip()) < MIN_DESCRIPTION_LENGTH:
        errors.append(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    elif len(description.strip()) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")

    if urgent_needs is not None and len(urgent_needs) > 1000:
        errors.append("Urgent needs cannot exceed 1000 characters")

    if not urgent_needs or not urgent_needs.strip():
        warnings.append("No urgent needs listed")

    return ValidationResult.from_errors(errors, warnings)


def validate_status_transition(
    current_status: RequestStatus,
    new_status: RequestStatus
) -> ValidationResult:
    """
    Validate victim request status transition.

    Args:
        current_status: Current request status
        new_status: Desired new status

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if RequestStatus(new_status) not in REQUEST_TRANSITIONS.get(RequestStatus(current_status), []):
        errors.append(
            f"Invalid status transition from {RequestStatus(current_status).value} "
            f"to {RequestStatus(new_status).value}"
        )

    return ValidationResult.from_errors(errors)


def validate_assignment(
    new_status: RequestStatus,
    assigned_volunteer_id: Optional[str],
    volunteer: Optional[Volunteer]
) -> ValidationResult:
    """
    Validate the volunteer supplied with a transition.

    Only the move into in_progress takes a volunteer, and that volunteer
    must exist (checked by the caller) and be active.
    """
    errors = []
    new_status = RequestStatus(new_status)

    if new_status == RequestStatus.IN_PROGRESS:
        if not assigned_volunteer_id:
            errors.append("An assigned volunteer is required to start work on a request")
        elif volunteer is not None and not volunteer.is_active:
            errors.append(f"Volunteer {assigned_volunteer_id} is not active")
    elif assigned_volunteer_id:
        errors.append(f"A volunteer can only be assigned when moving to {RequestStatus.IN_PROGRESS.value}")

    return ValidationResult.from_errors(errors)


def build_transition_changes(
    request: VictimRequest,
    new_status: RequestStatus,
    assigned_volunteer_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build the field changes for a permitted transition.

    The assignment is kept through completion and dropped on rejection.
    """
    new_status = RequestStatus(new_status)
    changes: Dict[str, Any] = {"status": new_status.value}

    if new_status == RequestStatus.IN_PROGRESS:
        changes["assigned_volunteer_id"] = assigned_volunteer_id
    elif new_status not in ASSIGNED_STATES:
        changes["assigned_volunteer_id"] = None

    return changes


def can_revise(request: VictimRequest, user_id: str) -> bool:
    """Check if the submitting user can still edit the request."""
    return request.user_id == user_id and request.status == RequestStatus.PENDING
