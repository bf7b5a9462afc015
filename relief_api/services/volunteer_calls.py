# SPDX-License-Identifier: Apache-2.0

"""
Volunteer Call & Application Manager.

Owns call capacity, the application review workflow and the automatic
closure of a call once its assigned applications fill every slot. The
closure commits in the same transaction as the review that triggers it.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from opentelemetry import trace
from pymongo import ASCENDING, DESCENDING

from ..domain.authorization import check_owner_or_admin, require
from ..domain.calls import (
    build_closure_changes,
    build_review_changes,
    remaining_slots,
    should_close_call,
    sort_calls_by_priority,
    validate_application_transition,
    validate_call_definition,
    validate_call_transition
)
from ..domain.errors import (
    CallClosedError,
    DuplicateApplicationError,
    InvalidTransitionError,
    NotFoundError,
    UniqueConstraintError,
    ValidationError
)
from ..domain.validation import raise_for_errors
from ..domain.volunteers import normalize_skills
from ..models.base import utc_now
from ..models.entities import UserContext, Volunteer, VolunteerCall, VolunteerCallApplication
from ..models.enums import ApplicationStatus, CallPriority, Collections, VolunteerCallStatus
from .manager import BaseManager
from .repository import NEWEST_FIRST, Repository

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


@dataclass
class ReviewResult:
    """Post-review state of an application and its call."""
    application: VolunteerCallApplication
    call: VolunteerCall
    call_closed: bool = False


@dataclass
class ApplicationSummary:
    """An application together with the call it targets."""
    application: VolunteerCallApplication
    call: Optional[VolunteerCall]


@dataclass
class CallCapacity:
    """Slot usage for a call."""
    call: VolunteerCall
    assigned_count: int
    remaining_slots: int


class VolunteerCallManager(BaseManager):
    """Volunteer call and application state machines."""

    def create_call(self, user_context: UserContext, disaster_name: str, disaster_location: str,
                    volunteers_needed: int, priority: str = CallPriority.MEDIUM.value,
                    required_skills: Optional[List[str]] = None,
                    description: Optional[str] = None) -> VolunteerCall:
        """
        Open a new volunteer call. Admin only.

        Raises:
            PermissionDeniedError: Caller is not an admin
            ValidationError: Invalid call definition
        """
        with tracer.start_as_current_span("calls.create") as span:
            span.set_attributes(self._span_attributes(user_context))

            self._require_admin(user_context, "calls.create")
            raise_for_errors(
                validate_call_definition(disaster_name, disaster_location, volunteers_needed, priority),
                "Invalid volunteer call"
            )

            call = self._build(
                VolunteerCall,
                disaster_name=disaster_name,
                disaster_location=disaster_location,
                description=self._optional_text(description),
                required_skills=normalize_skills(required_skills),
                volunteers_needed=volunteers_needed,
                priority=priority,
                status=VolunteerCallStatus.ACTIVE,
                created_by=user_context.user_id
            )
            document = self.repository.insert(Collections.VOLUNTEER_CALLS, call.to_document())
            call = VolunteerCall.from_document(document)

            span.set_attribute("call.id", call.id)
            logger.info(
                f"Volunteer call created: {call.id}",
                extra={'call_id': call.id, 'volunteers_needed': call.volunteers_needed}
            )
            return call

    def close_call(self, user_context: UserContext, call_id: str) -> VolunteerCall:
        """Close an active call by hand. Admin only."""
        with tracer.start_as_current_span("calls.close") as span:
            span.set_attributes(self._span_attributes(user_context, **{"call.id": call_id}))

            self._require_admin(user_context, "calls.close")
            volunteer = self._resolve_volunteer(user_context, volunteer_id)
            if not volunteer.is_active:
                raise ValidationError(
                    "Inactive volunteers cannot apply to calls",
                    errors=[f"Volunteer {volunteer.id} is not active"]
                )

            def insert_application(repo: Repository) -> VolunteerCallApplication:
                # Touch the call so the insert serializes with a closing review
                touched = repo.update(
                    Collections.VOLUNTEER_CALLS, call_id, {},
                    guard={"status": VolunteerCallStatus.ACTIVE.value}
                )
                if touched is None:
                    if repo.get(Collections.VOLUNTEER_CALLS, call_id) is None:
                        raise NotFoundError("Volunteer call", call_id)
                    raise CallClosedError(call_id)

                existing = repo.find_one(
                    Collections.VOLUNTEER_CALL_APPLICATIONS,
                    {"call_id": call_id, "volunteer_id": volunteer.id}
                )
                if existing is not None:
                    raise DuplicateApplicationError(call_id, volunteer.id)

                application = self._build(
                    VolunteerCallApplication,
                    call_id=call_id,
                    volunteer_id=volunteer.id,
                    status=ApplicationStatus.PENDING
                )
                document = repo.insert(Collections.VOLUNTEER_CALL_APPLICATIONS, application.to_document())
                return VolunteerCallApplication.from_document(document)

            try:
                application = self.repository.with_transaction(insert_application)
            except UniqueConstraintError:
                logger.info(
                    f"Concurrent duplicate application rejected for call {call_id}",
                    extra={'call_id': call_id, 'volunteer_id': volunteer.id}
                )
                raise DuplicateApplicationError(call_id, volunteer.id)

            span.set_attribute("application.id", application.id)
            logger.info(
                f"Volunteer {volunteer.id} applied to call {call_id}",
                extra={'application_id': application.id, 'call_id': call_id, 'volunteer_id': volunteer.id}
            )
            return application

    def review(self, user_context: UserContext, application_id: str, new_status: str,
               notes: Optional[str] = None) -> ReviewResult:
        """
        Review an application. Admin only.

        An assignment re-counts the call's assigned applications and closes
        the call when they reach volunteers_needed, in one transaction.

        Raises:
            PermissionDeniedError: Caller is not an admin
            NotFoundError: Unknown application or call
            InvalidTransitionError: Edge not permitted
            CallClosedError: Assignment on a closed call
        """
        with tracer.start_as_current_span("calls.review") as span:
            span.set_attributes(self._span_attributes(
                user_context,
                **{"application.id": application_id, "application.new_status": new_status}
            ))

            self._require_admin(user_context, "calls.review")
            target = self._status(ApplicationStatus, new_status, "application status")

            def apply_review(repo: Repository) -> ReviewResult:
                application = self._load(
                    Collections.VOLUNTEER_CALL_APPLICATIONS, VolunteerCallApplication,
                    application_id, "Application", repo
                )
                current = ApplicationStatus(application.status)

                if not validate_application_transition(current, target).is_valid:
                    raise InvalidTransitionError("application", current.value, target.value)

                reviewed_at = utc_now()

                if target == ApplicationStatus.ASSIGNED:
                    # Touch the call first so concurrent assignments serialize on it
                    touched = repo.update(
                        Collections.VOLUNTEER_CALLS, application.call_id, {},
                        guard={"status": VolunteerCallStatus.ACTIVE.value}
                    )
                    if touched is None:
                        if repo.get(Collections.VOLUNTEER_CALLS, application.call_id) is None:
                            raise NotFoundError("Volunteer call", application.call_id)
                        raise CallClosedError(application.call_id)

                updated = repo.update(
                    Collections.VOLUNTEER_CALL_APPLICATIONS,
                    application_id,
                    build_review_changes(target, user_context.user_id, reviewed_at, notes),
                    guard={"status": current.value}
                )
                if updated is None:
                    raise InvalidTransitionError("application", current.value, target.value,
                                                 "Application was reviewed concurrently")

                call = self._load(Collections.VOLUNTEER_CALLS, VolunteerCall, application.call_id,
                                  "Volunteer call", repo)
                call_closed = False

                if target == ApplicationStatus.ASSIGNED:
                    assigned_count = repo.count(
                        Collections.VOLUNTEER_CALL_APPLICATIONS,
                        {"call_id": call.id, "status": ApplicationStatus.ASSIGNED.value}
                    )
                    if should_close_call(assigned_count, call.volunteers_needed):
                        closed = repo.update(
                            Collections.VOLUNTEER_CALLS, call.id,
                            build_closure_changes(reviewed_at),
                            guard={"status": VolunteerCallStatus.ACTIVE.value}
                        )
                        call = VolunteerCall.from_document(closed)
                        call_closed = True

                return ReviewResult(
                    application=VolunteerCallApplication.from_document(updated),
                    call=call,
                    call_closed=call_closed
                )

            result = self.repository.with_transaction(apply_review)

            span.set_attribute("call.closed", result.call_closed)
            logger.info(
                f"Application {application_id} reviewed: {target.value}",
                extra={
                    'application_id': application_id,
                    'call_id': result.call.id,
                    'status': target.value,
                    'reviewer_id': user_context.user_id
                }
            )
            if result.call_closed:
                logger.info(
                    f"Volunteer call {result.call.id} reached capacity and closed",
                    extra={'call_id': result.call.id, 'volunteers_needed': result.call.volunteers_needed}
                )
            return result

    def list_active_calls(self, by_priority: bool = False) -> List[VolunteerCall]:
        """Active calls, newest first or critical first."""
        documents = self.repository.list(
            Collections.VOLUNTEER_CALLS,
            {"status": VolunteerCallStatus.ACTIVE.value},
            NEWEST_FIRST
        )
        calls = [VolunteerCall.from_document(doc) for doc in documents]
        return sort_calls_by_priority(calls) if by_priority else calls

    def get_call(self, call_id: str) -> VolunteerCall:
        return self._load(Collections.VOLUNTEER_CALLS, VolunteerCall, call_id, "Volunteer call")

    def get_capacity(self, call_id: str) -> CallCapacity:
        """Assigned and remaining slots for a call."""
        call = self.get_call(call_id)
        assigned_count = self.repository.count(
            Collections.VOLUNTEER_CALL_APPLICATIONS,
            {"call_id": call_id, "status": ApplicationStatus.ASSIGNED.value}
        )
        return CallCapacity(
            call=call,
            assigned_count=assigned_count,
            remaining_slots=remaining_slots(call, assigned_count)
        )

    def get_application(self, user_context: UserContext, application_id: str) -> VolunteerCallApplication:
        """One application, visible to the applying volunteer and to admins."""
        application = self._load(Collections.VOLUNTEER_CALL_APPLICATIONS, VolunteerCallApplication,
                                 application_id, "Application")
        if not user_context.is_admin():
            volunteer = self._load(Collections.VOLUNTEERS, Volunteer, application.volunteer_id, "Volunteer")
            require(check_owner_or_admin(user_context, volunteer.user_id))
        return application

    def list_applications_for_volunteer(self, user_context: UserContext,
                                        volunteer_id: str) -> List[ApplicationSummary]:
        """
        A volunteer's applications with a summary of each call, newest first.

        Visible to the volunteer's own user and to admins.
        """
        volunteer = self._load(Collections.VOLUNTEERS, Volunteer, volunteer_id, "Volunteer")
        require(check_owner_or_admin(user_context, volunteer.user_id))

        documents = self.repository.list(
            Collections.VOLUNTEER_CALL_APPLICATIONS,
            {"volunteer_id": volunteer_id},
            [("applied_at", DESCENDING)]
        )

        summaries = []
        for document in documents:
            application = VolunteerCallApplication.from_document(document)
            call_document = self.repository.get(Collections.VOLUNTEER_CALLS, application.call_id)
            summaries.append(ApplicationSummary(
                application=application,
                call=VolunteerCall.from_document(call_document)
            ))
        return summaries

    def list_applications_for_call(self, user_context: UserContext,
                                   call_id: str) -> List[VolunteerCallApplication]:
        """Applications to a call in arrival order. Admin only."""
        self._require_admin(user_context, "calls.list_applications")
        self.get_call(call_id)

        documents = self.repository.list(
            Collections.VOLUNTEER_CALL_APPLICATIONS,
            {"call_id": call_id},
            [("applied_at", ASCENDING)]
        )
        return [VolunteerCallApplication.from_document(doc) for doc in documents]

    def _resolve_volunteer(self, user_context: UserContext, volunteer_id: Optional[str]) -> Volunteer:
        if volunteer_id is None:
            document = self.repository.find_one(Collections.VOLUNTEERS, {"user_id": user_context.user_id})
            if document is None:
                raise NotFoundError("Volunteer", user_context.user_id)
            return Volunteer.from_document(document)

        volunteer = self._load(Collections.VOLUNTEERS, Volunteer, volunteer_id, "Volunteer")
        require(check_owner_or_admin(user_context, volunteer.user_id))
        return volunteer
