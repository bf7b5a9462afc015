# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for relief coordination commands.

Domain errors mean "your request is invalid"; PersistenceError means
"try again". Each error carries the HTTP status and problem type used
when it crosses the API boundary.
"""

from typing import Any, Dict, List, Optional


class ReliefError(Exception):
    """Base class for relief coordination errors."""

    status_code = 500
    error_type = "application-error"
    title = "Application Error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details
        }


class ValidationError(ReliefError):
    """Malformed or out-of-range input; the caller can correct it."""

    status_code = 400
    error_type = "validation-error"
    title = "Validation Error"

    def __init__(self, message: str, errors: Optional[List[str]] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.errors = errors or []


class PermissionDeniedError(ReliefError):
    """Role check failed."""

    status_code = 403
    error_type = "insufficient-permissions"
    title = "Insufficient Permissions"


class NotFoundError(ReliefError):
    """Referenced entity does not exist."""

    status_code = 404
    error_type = "resource-not-found"
    title = "Resource Not Found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} not found: {entity_id}",
            {"entity": entity, "entity_id": entity_id}
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(ReliefError):
    """State machine edge not permitted."""

    status_code = 409
    error_type = "invalid-transition"
    title = "Invalid Transition"

    def __init__(self, entity: str, current: str, requested: str, message: Optional[str] = None):
        super().__init__(
            message or f"Invalid {entity} status transition from {current} to {requested}",
            {"entity": entity, "current_status": current, "requested_status": requested}
        )
        self.current = current
        self.requested = requested


class DuplicateApplicationError(ReliefError):
    """The volunteer already applied to the call."""

    status_code = 409
    error_type = "duplicate-application"
    title = "Duplicate Application"

    def __init__(self, call_id: str, volunteer_id: str):
        super().__init__(
            "Volunteer has already applied to this call",
            {"call_id": call_id, "volunteer_id": volunteer_id}
        )


class CallClosedError(ReliefError):
    """The volunteer call no longer accepts applications or assignments."""

    status_code = 409
    error_type = "call-closed"
    title = "Call Closed"

    def __init__(self, call_id: str):
        super().__init__("Volunteer call is closed", {"call_id": call_id})


class InsufficientInventoryError(ReliefError):
    """Requested quantity exceeds the available balance."""

    status_code = 409
    error_type = "insufficient-inventory"
    title = "Insufficient Inventory"

    def __init__(self, resource_id: str, requested: int, available: int):
        super().__init__(
            f"Requested {requested} but only {available} available",
            {"resource_id": resource_id, "requested": requested, "available": available}
        )
        self.requested = requested
        self.available = available


class PersistenceError(ReliefError):
    """Persistence layer failure (connectivity, aborted transaction)."""

    status_code = 503
    error_type = "persistence-error"
    title = "Persistence Error"


class UniqueConstraintError(PersistenceError):
    """A unique index rejected the write."""

    status_code = 409
    error_type = "resource-conflict"
    title = "Resource Conflict"

    def __init__(self, collection: str, message: Optional[str] = None):
        super().__init__(
            message or f"Duplicate key in {collection}",
            {"collection": collection}
        )
        self.collection = collection
