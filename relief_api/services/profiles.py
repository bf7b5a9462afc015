# SPDX-License-Identifier: Apache-2.0

"""
Profile service.

Profiles share their ID with the identity provider's user ID. Users edit
their own name and contact; roles change only through grant_role, which
belongs to the identity side and is not exposed over HTTP.
"""

import logging
from typing import Optional

from ..domain.authorization import can_change_role, check_owner_or_admin, require
from ..domain.errors import NotFoundError, UniqueConstraintError, ValidationError
from ..models.entities import Profile, UserContext
from ..models.enums import Collections, UserRole
from .manager import BaseManager

logger = logging.getLogger(__name__)


class ProfileService(BaseManager):
    """User profiles."""

    def ensure_profile(self, user_id: str, name: str, contact: Optional[str] = None,
                       role: str = UserRole.USER) -> Profile:
        """Return the user's profile, creating it with the identity role on first sight."""
        document = self.repository.get(Collections.PROFILES, user_id)
        if document is not None:
            return Profile.from_document(document)

        profile = self._build(Profile, id=user_id, name=name, contact=self._optional_text(contact),
                              role=role)
        try:
            document = self.repository.insert(Collections.PROFILES, profile.to_document())
        except UniqueConstraintError:
            # Created by a concurrent first request
            document = self.repository.get(Collections.PROFILES, user_id)
            if document is None:
                raise

        logger.info(f"Profile created: {user_id}", extra={'user_id': user_id})
        return Profile.from_document(document)

    def get_profile(self, user_context: UserContext, user_id: str) -> Profile:
        require(check_owner_or_admin(user_context, user_id))
        return self._load(Collections.PROFILES, Profile, user_id, "Profile")

    def update_profile(self, user_context: UserContext, user_id: str, name: Optional[str] = None,
                       contact: Optional[str] = None, role: Optional[str] = None) -> Profile:
        """
        Edit a profile's name and contact.

        Raises:
            PermissionDeniedError: Not the owner or an admin, or a role change was attempted
            NotFoundError: Unknown profile
            ValidationError: Empty name
        """
        require(check_owner_or_admin(user_context, user_id))
        require(can_change_role(user_context, user_id, role))

        changes = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Profile name cannot be empty", errors=["Name is required"])
            changes["name"] = name.strip()
        if contact is not None:
            changes["contact"] = self._optional_text(contact)

        if not changes:
            return self._load(Collections.PROFILES, Profile, user_id, "Profile")

        updated = self.repository.update(Collections.PROFILES, user_id, changes)
        if updated is None:
            raise NotFoundError("Profile", user_id)

        logger.info(f"Profile updated: {user_id}", extra={'user_id': user_id, 'fields': sorted(changes)})
        return Profile.from_document(updated)

    def grant_role(self, user_id: str, role: str) -> Profile:
        """Set a user's role. Called by the identity provider integration only."""
        target = self._status(UserRole, role, "role")
        updated = self.repository.update(Collections.PROFILES, user_id, {"role": target.value})
        if updated is None:
            raise NotFoundError("Profile", user_id)

        logger.warning(f"Role {target.value} granted to {user_id}", extra={'user_id': user_id, 'role': target.value})
        return Profile.from_document(updated)
