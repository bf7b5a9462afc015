# SPDX-License-Identifier: Apache-2.0

"""
Authorization domain logic for role-based access control.

This module contains pure capability checks over the caller's role
context. Managers turn a denied result into PermissionDeniedError.
"""

from dataclasses import dataclass
from typing import Optional
from ..models.entities import UserContext
from ..models.enums import UserRole
from .errors import PermissionDeniedError


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None


def check_admin(user_context: UserContext) -> AuthorizationResult:
    """
    Check if the caller holds the admin role.

    Args:
        user_context: Caller role context

    Returns:
        AuthorizationResult indicating if access is granted
    """
    if user_context is not None and user_context.is_admin():
        return AuthorizationResult(allowed=True)

    return AuthorizationResult(
        allowed=False,
        reason="Admin role required"
    )


def check_owner_or_admin(user_context: UserContext, owner_id: Optional[str]) -> AuthorizationResult:
    """
    Check if the caller owns the record or is an admin.

    Args:
        user_context: Caller role context
        owner_id: User ID owning the record

    Returns:
        AuthorizationResult indicating if access is granted
    """
    if user_context is None:
        return AuthorizationResult(allowed=False, reason="Authentication required")

    if user_context.is_admin():
        return AuthorizationResult(allowed=True)

    if owner_id is not None and user_context.user_id == owner_id:
        return AuthorizationResult(allowed=True)

    return AuthorizationResult(
        allowed=False,
        reason="Only the owner or an admin can access this record"
    )


def can_change_role(user_context: UserContext, target_user_id: str, new_role: str) -> AuthorizationResult:
    """
    Check a role change requested through the command surface.

    Roles are granted by the identity collaborator only; a user can never
    change a role, including their own.
    """
    if new_role is None:
        return AuthorizationResult(allowed=True)

    if user_context.user_id == target_user_id:
        return AuthorizationResult(allowed=False, reason="Users cannot change their own role")

    return AuthorizationResult(
        allowed=False,
        reason=f"Role '{UserRole(new_role).value}' can only be granted by the identity provider"
    )


def require(result: AuthorizationResult) -> None:
    """Raise PermissionDeniedError for a denied result."""
    if not result.allowed:
        raise PermissionDeniedError(result.reason or "Permission denied")
