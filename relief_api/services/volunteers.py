# SPDX-License-Identifier: Apache-2.0

"""
Volunteer registration service.

Each user holds at most one volunteer record; registering again updates
it in place.
"""

import logging
from typing import List, Optional

from opentelemetry import trace

from ..domain.authorization import check_owner_or_admin, require
from ..domain.errors import NotFoundError
from ..domain.validation import raise_for_errors
from ..domain.volunteers import normalize_skills, validate_registration
from ..models.entities import UserContext, Volunteer
from ..models.enums import Collections
from .manager import BaseManager
from .repository import NEWEST_FIRST

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class VolunteerService(BaseManager):
    """Volunteer registration and activation."""

    def register(self, user_context: UserContext, skills: List[str], location: Optional[str] = None,
                 availability: Optional[str] = None) -> Volunteer:
        """
        Create or update the caller's volunteer record.

        Args:
            user_context: Registering user
            skills: Skills, trimmed and de-duplicated; at least one required
            location: Base location
            availability: Availability notes

        Returns:
            The stored volunteer record

        Raises:
            ValidationError: No usable skills or oversized fields
            UniqueConstraintError: A concurrent registration for the same user won
        """
        with tracer.start_as_current_span("volunteers.register") as span:
            span.set_attributes(self._span_attributes(user_context))

            skills = normalize_skills(skills)
            raise_for_errors(validate_registration(skills, location, availability), "Invalid volunteer registration")

            existing = self.repository.find_one(Collections.VOLUNTEERS, {"user_id": user_context.user_id})
            fields = {
                "skills": skills,
                "location": self._optional_text(location),
                "availability": self._optional_text(availability)
            }

            if existing is not None:
                updated = self.repository.update(Collections.VOLUNTEERS, existing["id"], fields)
                if updated is None:
                    raise NotFoundError("Volunteer", existing["id"])
                volunteer = Volunteer.from_document(updated)
                logger.info(f"Volunteer profile updated: {volunteer.id}", extra={'volunteer_id': volunteer.id})
            else:
                volunteer = self._build(Volunteer, user_id=user_context.user_id, is_active=True, **fields)
                volunteer = Volunteer.from_document(
                    self.repository.insert(Collections.VOLUNTEERS, volunteer.to_document())
                )
                logger.info(
                    f"Volunteer registered: {volunteer.id}",
                    extra={'volunteer_id': volunteer.id, 'user_id': user_context.user_id}
                )

            span.set_attribute("volunteer.id", volunteer.id)
            return volunteer

    def get_for_user(self, user_context: UserContext) -> Volunteer:
        """The caller's own volunteer record."""
        document = self.repository.find_one(Collections.VOLUNTEERS, {"user_id": user_context.user_id})
        if document is None:
            raise NotFoundError("Volunteer", user_context.user_id)
        return Volunteer.from_document(document)

    def get(self, user_context: UserContext, volunteer_id: str) -> Volunteer:
        volunteer = self._load(Collections.VOLUNTEERS, Volunteer, volunteer_id, "Volunteer")
        require(check_owner_or_admin(user_context, volunteer.user_id))
        return volunteer

    def list_volunteers(self, user_context: UserContext, active_only: bool = False) -> List[Volunteer]:
        """All volunteers, newest first. Admin only."""
        self._require_admin(user_context, "volunteers.list")
        filters = {"is_active": True} if active_only else {}
        documents = self.repository.list(Collections.VOLUNTEERS, filters, NEWEST_FIRST)
        return [Volunteer.from_document(doc) for doc in documents]

    def set_active(self, user_context: UserContext, volunteer_id: str, is_active: bool) -> Volunteer:
        """Activate or deactivate a volunteer. Admin only."""
        with tracer.start_as_current_span("volunteers.set_active") as span:
            span.set_attributes(self._span_attributes(
                user_context, **{"volunteer.id": volunteer_id, "volunteer.active": is_active}
            ))

            self._require_admin(user_context, "volunteers.set_active")
            updated = self.repository.update(Collections.VOLUNTEERS, volunteer_id, {"is_active": bool(is_active)})
            if updated is None:
                raise NotFoundError("Volunteer", volunteer_id)

            logger.info(
                f"Volunteer {volunteer_id} {'activated' if is_active else 'deactivated'}",
                extra={'volunteer_id': volunteer_id, 'is_active': bool(is_active)}
            )
            return Volunteer.from_document(updated)
