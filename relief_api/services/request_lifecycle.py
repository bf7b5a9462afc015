# SPDX-License-Identifier: Apache-2.0

"""
Request Lifecycle Manager.

Owns victim request submission, revision and the admin-driven status
workflow, including volunteer assignment when work starts.
"""

import logging
from typing import List, Optional

from opentelemetry import trace

from ..domain.authorization import check_owner_or_admin, require
from ..domain.errors import InvalidTransitionError, PermissionDeniedError
from ..domain.requests import (
    build_transition_changes,
    can_revise,
    validate_assignment,
    validate_request_content,
    validate_status_transition
)
from ..domain.validation import raise_for_errors
from ..models.entities import UserContext, VictimRequest, Volunteer
from ..models.enums import Collections, RequestStatus
from .manager import BaseManager
from .repository import NEWEST_FIRST, Repository

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class RequestLifecycleManager(BaseManager):
    """Victim request state machine."""

    def submit(self, user_context: UserContext, location: str, description: str,
               urgent_needs: Optional[str] = None) -> VictimRequest:
        """
        Submit a new help request in pending status.

        Args:
            user_context: Submitting user
            location: Where help is needed
            description: Situation description (at least 10 characters)
            urgent_needs: Optional immediate needs

        Returns:
            The stored request

        Raises:
            ValidationError: Content gates failed
        """
        with tracer.start_as_current_span("requests.submit") as span:
            span.set_attributes(self._span_attributes(user_context))

            raise_for_errors(
                validate_request_content(location, description, urgent_needs),
                "Invalid help request"
            )

            request = self._build(
                VictimRequest,
                user_id=user_context.user_id,
                location=location.strip(),
                description=description.strip(),
                urgent_needs=self._optional_text(urgent_needs),
                status=RequestStatus.PENDING
            )
            document = self.repository.insert(Collections.VICTIM_REQUESTS, request.to_document())
            request = VictimRequest.from_document(document)

            span.set_attribute("request.id", request.id)
            logger.info(
                f"Victim request submitted: {request.id}",
                extra={'request_id': request.id, 'user_id': user_context.user_id}
            )
            return request

    def transition(self, user_context: UserContext, request_id: str, new_status: str,
                   assigned_volunteer_id: Optional[str] = None) -> VictimRequest:
        """
        Move a request along the workflow. Admin only.

        Moving to in_progress requires an active volunteer; rejection
        clears any assignment.

        Raises:
            PermissionDeniedError: Caller is not an admin
            NotFoundError: Unknown request or volunteer
            InvalidTransitionError: Edge not permitted
            ValidationError: Missing, inactive or misplaced volunteer
        """
        with tracer.start_as_current_span("requests.transition") as span:
            span.set_attributes(self._span_attributes(
                user_context,
                **{"request.id": request_id, "request.new_status": new_status}
            ))

            self._require_admin(user_context, "requests.transition")
            target = self._status(RequestStatus, new_status, "request status")

            def apply_transition(repo: Repository) -> VictimRequest:
                request = self._load(Collections.VICTIM_REQUESTS, VictimRequest, request_id,
                                     "Victim request", repo)
                current = RequestStatus(request.status)

                if not validate_status_transition(current, target).is_valid:
                    raise InvalidTransitionError("victim request", current.value, target.value)

                volunteer = None
                if target == RequestStatus.IN_PROGRESS and assigned_volunteer_id:
                    volunteer = self._load(Collections.VOLUNTEERS, Volunteer, assigned_volunteer_id,
                                           "Volunteer", repo)
                raise_for_errors(
                    validate_assignment(target, assigned_volunteer_id, volunteer),
                    "Invalid volunteer assignment"
                )

                changes = build_transition_changes(request, target, assigned_volunteer_id)
                updated = repo.update(
                    Collections.VICTIM_REQUESTS, request_id, changes,
                    guard={"status": current.value}
                )
                if updated is None:
                    # Status moved underneath us
                    raise InvalidTransitionError("victim request", current.value, target.value,
                                                 "Victim request was modified concurrently")
                return VictimRequest.from_document(updated)

            request = self.repository.with_transaction(apply_transition)

            logger.info(
                f"Victim request {request_id} moved to {target.value}",
                extra={
                    'request_id': request_id,
                    'status': target.value,
                    'assigned_volunteer_id': request.assigned_volunteer_id,
                    'user_id': user_context.user_id
                }
            )
            return request

    def revise(self, user_context: UserContext, request_id: str, location: Optional[str] = None,
               description: Optional[str] = None, urgent_needs: Optional[str] = None) -> VictimRequest:
        """Edit a pending request. Only the submitting user may revise it."""
        with tracer.start_as_current_span("requests.revise") as span:
            span.set_attributes(self._span_attributes(user_context, **{"request.id": request_id}))

            request = self._load(Collections.VICTIM_REQUESTS, VictimRequest, request_id, "Victim request")

            if request.user_id != user_context.user_id:
                raise PermissionDeniedError("Only the submitting user can revise a request")
            if not can_revise(request, user_context.user_id):
                raise InvalidTransitionError(
                    "victim request", request.status, RequestStatus.PENDING.value,
                    f"Requests can only be revised while pending (current: {request.status})"
                )

            location = request.location if location is None else location
            description = request.description if description is None else description
            urgent_needs = request.urgent_needs if urgent_needs is None else urgent_needs
            raise_for_errors(
                validate_request_content(location, description, urgent_needs),
                "Invalid help request"
            )

            updated = self.repository.update(
                Collections.VICTIM_REQUESTS,
                request_id,
                {
                    "location": location.strip(),
                    "description": description.strip(),
                    "urgent_needs": self._optional_text(urgent_needs)
                },
                guard={"status": RequestStatus.PENDING.value, "user_id": user_context.user_id}
            )
            if updated is None:
                raise InvalidTransitionError(
                    "victim request", RequestStatus.PENDING.value, RequestStatus.PENDING.value,
                    "Victim request left pending before the revision was saved"
                )

            logger.info(f"Victim request revised: {request_id}", extra={'request_id': request_id})
            return VictimRequest.from_document(updated)

    def get(self, user_context: UserContext, request_id: str) -> VictimRequest:
        """Get a request visible to its owner or an admin."""
        request = self._load(Collections.VICTIM_REQUESTS, VictimRequest, request_id, "Victim request")
        require(check_owner_or_admin(user_context, request.user_id))
        return request

    def list_for_user(self, user_context: UserContext) -> List[VictimRequest]:
        """The caller's own requests, newest first."""
        documents = self.repository.list(
            Collections.VICTIM_REQUESTS,
            {"user_id": user_context.user_id},
            NEWEST_FIRST
        )
        return [VictimRequest.from_document(doc) for doc in documents]

    def list_requests(self, user_context: UserContext, status: Optional[str] = None) -> List[VictimRequest]:
        """All requests, optionally filtered by status. Admin only."""
        self._require_admin(user_context, "requests.list")

        filters = {}
        if status:
            filters["status"] = self._status(RequestStatus, status, "request status").value

        documents = self.repository.list(Collections.VICTIM_REQUESTS, filters, NEWEST_FIRST)
        return [VictimRequest.from_document(doc) for doc in documents]
