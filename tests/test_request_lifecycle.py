# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the victim request lifecycle.
"""

import pytest

from relief_api.domain.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError
)
from relief_api.models.enums import RequestStatus


class TestSubmit:
    """Test help request submission."""

    def test_submit_creates_pending_request(self, request_manager, user_context):
        request = request_manager.submit(
            user_context, "  Sarandi, Porto Alegre ", "Water is rising past the front door", None
        )

        assert request.status == RequestStatus.PENDING.value
        assert request.user_id == user_context.user_id
        assert request.location == "Sarandi, Porto Alegre"
        assert request.assigned_volunteer_id is None
        assert request.created_at is not None

    def test_submit_rejects_empty_location(self, request_manager, user_context):
        with pytest.raises(ValidationError) as exc_info:
            request_manager.submit(user_context, "   ", "Water is rising past the front door")

        assert "Location is required" in exc_info.value.errors

    def test_submit_rejects_short_description(self, request_manager, user_context):
        with pytest.raises(ValidationError) as exc_info:
            request_manager.submit(user_context, "Canoas", "help")

        assert "Description must be at least 10 characters" in exc_info.value.errors

    def test_submit_reports_every_error(self, request_manager, user_context):
        with pytest.raises(ValidationError) as exc_info:
            request_manager.submit(user_context, "", "")

        assert len(exc_info.value.errors) == 2


class TestTransition:
    """Test the admin-driven status workflow."""

    def test_full_workflow(self, request_manager, admin_context, pending_request, volunteer):
        approved = request_manager.transition(admin_context, pending_request.id, "approved")
        assert approved.status == "approved"

        started = request_manager.transition(admin_context, pending_request.id, "in_progress", volunteer.id)
        assert started.status == "in_progress"
        assert started.assigned_volunteer_id == volunteer.id

        completed = request_manager.transition(admin_context, pending_request.id, "completed")
        assert completed.status == "completed"
        assert completed.assigned_volunteer_id == volunteer.id

    def test_pending_to_completed_is_invalid(self, request_manager, admin_context, pending_request):
        with pytest.raises(InvalidTransitionError):
            request_manager.transition(admin_context, pending_request.id, "completed")

        stored = request_manager.get(admin_context, pending_request.id)
        assert stored.status == "pending"

    def test_terminal_states_have_no_exits(self, request_manager, admin_context, pending_request):
        request_manager.transition(admin_context, pending_request.id, "rejected")

        for target in ("pending", "approved", "in_progress", "completed", "rejected"):
            with pytest.raises(InvalidTransitionError):
                request_manager.transition(admin_context, pending_request.id, target)

    def test_reject_from_in_progress_clears_assignment(self, request_manager, admin_context,
                                                       pending_request, volunteer):
        request_manager.transition(admin_context, pending_request.id, "approved")
        request_manager.transition(admin_context, pending_request.id, "in_progress", volunteer.id)

        rejected = request_manager.transition(admin_context, pending_request.id, "rejected")

        assert rejected.status == "rejected"
        assert rejected.assigned_volunteer_id is None

    def test_in_progress_requires_volunteer(self, request_manager, admin_context, pending_request):
        request_manager.transition(admin_context, pending_request.id, "approved")

        with pytest.raises(ValidationError):
            request_manager.transition(admin_context, pending_request.id, "in_progress")

    def test_in_progress_requires_active_volunteer(self, request_manager, volunteer_service,
                                                   admin_context, pending_request, volunteer):
        volunteer_service.set_active(admin_context, volunteer.id, False)
        request_manager.transition(admin_context, pending_request.id, "approved")

        with pytest.raises(ValidationError):
            request_manager.transition(admin_context, pending_request.id, "in_progress", volunteer.id)

        assert request_manager.get(admin_context, pending_request.id).status == "approved"

    def test_in_progress_with_unknown_volunteer(self, request_manager, admin_context, pending_request):
        request_manager.transition(admin_context, pending_request.id, "approved")

        with pytest.raises(NotFoundError):
            request_manager.transition(admin_context, pending_request.id, "in_progress", "missing-volunteer")

    def test_volunteer_only_accepted_with_in_progress(self, request_manager, admin_context,
                                                      pending_request, volunteer):
        with pytest.raises(ValidationError):
            request_manager.transition(admin_context, pending_request.id, "approved", volunteer.id)

    def test_transition_requires_admin(self, request_manager, other_user_context, pending_request):
        with pytest.raises(PermissionDeniedError):
            request_manager.transition(other_user_context, pending_request.id, "approved")

    def test_unknown_request(self, request_manager, admin_context):
        with pytest.raises(NotFoundError):
            request_manager.transition(admin_context, "missing", "approved")

    def test_unknown_status(self, request_manager, admin_context, pending_request):
        with pytest.raises(ValidationError):
            request_manager.transition(admin_context, pending_request.id, "archived")

    def test_assignment_leaves_applications_untouched(self, request_manager, call_manager, admin_context,
                                                      pending_request, volunteer, active_call, user_context):
        application = call_manager.apply(user_context, active_call.id)
        request_manager.transition(admin_context, pending_request.id, "approved")
        request_manager.transition(admin_context, pending_request.id, "in_progress", volunteer.id)

        summaries = call_manager.list_applications_for_volunteer(user_context, volunteer.id)
        assert summaries[0].application.id == application.id
        assert summaries[0].application.status == "pending"


class TestRevise:
    """Test owner revisions of pending requests."""

    def test_owner_revises_pending_request(self, request_manager, other_user_context, pending_request):
        revised = request_manager.revise(
            other_user_context, pending_request.id, description="Now six people, two of them children"
        )

        assert revised.description == "Now six people, two of them children"
        assert revised.location == pending_request.location
        assert revised.urgent_needs == pending_request.urgent_needs

    def test_other_user_cannot_revise(self, request_manager, user_context, pending_request):
        with pytest.raises(PermissionDeniedError):
            request_manager.revise(user_context, pending_request.id, location="Elsewhere")

    def test_admin_cannot_revise(self, request_manager, admin_context, pending_request):
        with pytest.raises(PermissionDeniedError):
            request_manager.revise(admin_context, pending_request.id, location="Elsewhere")

    def test_revise_after_approval_is_invalid(self, request_manager, admin_context,
                                              other_user_context, pending_request):
        request_manager.transition(admin_context, pending_request.id, "approved")

        with pytest.raises(InvalidTransitionError):
            request_manager.revise(other_user_context, pending_request.id, location="Elsewhere")

    def test_revise_applies_content_gates(self, request_manager, other_user_context, pending_request):
        with pytest.raises(ValidationError):
            request_manager.revise(other_user_context, pending_request.id, description="short")


class TestQueries:
    """Test request reads."""

    def test_owner_and_admin_can_read(self, request_manager, admin_context, other_user_context,
                                      user_context, pending_request):
        assert request_manager.get(other_user_context, pending_request.id).id == pending_request.id
        assert request_manager.get(admin_context, pending_request.id).id == pending_request.id

        with pytest.raises(PermissionDeniedError):
            request_manager.get(user_context, pending_request.id)

    def test_list_for_user_only_returns_own(self, request_manager, user_context,
                                            other_user_context, pending_request):
        request_manager.submit(user_context, "Eldorado do Sul", "Roof damaged, need tarps")

        mine = request_manager.list_for_user(user_context)
        theirs = request_manager.list_for_user(other_user_context)

        assert [r.user_id for r in mine] == [user_context.user_id]
        assert [r.id for r in theirs] == [pending_request.id]

    def test_list_requests_filters_by_status(self, request_manager, admin_context,
                                             user_context, pending_request):
        other = request_manager.submit(user_context, "Eldorado do Sul", "Roof damaged, need tarps")
        request_manager.transition(admin_context, other.id, "approved")

        approved = request_manager.list_requests(admin_context, "approved")
        everything = request_manager.list_requests(admin_context)

        assert [r.id for r in approved] == [other.id]
        assert len(everything) == 2

    def test_list_requests_requires_admin(self, request_manager, user_context):
        with pytest.raises(PermissionDeniedError):
            request_manager.list_requests(user_context)
