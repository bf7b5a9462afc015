# SPDX-License-Identifier: Apache-2.0

"""
Volunteer call and application endpoints.

Admins open calls and review applications; volunteers apply. A review that
fills the last slot of a call closes it in the same commit, which the review
response reports through call_closed.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..middleware.auth import require_auth
from ..models.requests import (
    ApplicationPath,
    ApplyToCallBody,
    CallListQuery,
    CallPath,
    CreateCallBody,
    ReviewApplicationBody
)
from . import current_user, enum_value, hal_collection, hal_entity

calls_tag = Tag(name="Volunteer Calls", description="Volunteer calls and applications")
calls_bp = APIBlueprint(
    'volunteer_calls',
    __name__,
    url_prefix='/api/calls',
    abp_tags=[calls_tag]
)
applications_bp = APIBlueprint(
    'applications',
    __name__,
    url_prefix='/api/applications',
    abp_tags=[calls_tag]
)


@calls_bp.post('')
@require_auth
def create_call(body: CreateCallBody):
    """Open a volunteer call (admin)."""
    call = current_app.call_manager.create_call(
        current_user(),
        body.disaster_name,
        body.disaster_location,
        body.volunteers_needed,
        priority=enum_value(body.priority),
        required_skills=body.required_skills,
        description=body.description
    )
    return jsonify(hal_entity(call, 'call')), 201


@calls_bp.get('')
@require_auth
def list_active_calls(query: CallListQuery):
    """List active calls, newest first or by priority."""
    calls = current_app.call_manager.list_active_calls(by_priority=query.by_priority)
    return jsonify(hal_collection(calls, 'call', '/api/calls'))


@calls_bp.get('/<call_id>')
@require_auth
def get_call(path: CallPath):
    """Get a call with its slot usage."""
    capacity = current_app.call_manager.get_capacity(path.call_id)
    response = hal_entity(capacity.call, 'call')
    response['assigned_count'] = capacity.assigned_count
    response['remaining_slots'] = capacity.remaining_slots
    return jsonify(response)


@calls_bp.post('/<call_id>/close')
@require_auth
def close_call(path: CallPath):
    """Close a call manually (admin)."""
    call = current_app.call_manager.close_call(current_user(), path.call_id)
    return jsonify(hal_entity(call, 'call'))


@calls_bp.post('/<call_id>/applications')
@require_auth
def apply_to_call(path: CallPath, body: ApplyToCallBody):
    """Apply to an active call as the caller's volunteer record."""
    application = current_app.call_manager.apply(current_user(), path.call_id, body.volunteer_id)
    return jsonify(hal_entity(application, 'application')), 201


@calls_bp.get('/<call_id>/applications')
@require_auth
def list_call_applications(path: CallPath):
    """List applications to a call, oldest first (admin)."""
    applications = current_app.call_manager.list_applications_for_call(current_user(), path.call_id)
    return jsonify(hal_collection(applications, 'application', f"/api/calls/{path.call_id}/applications"))


@applications_bp.get('/<application_id>')
@require_auth
def get_application(path: ApplicationPath):
    application = current_app.call_manager.get_application(current_user(), path.application_id)
    return jsonify(hal_entity(application, 'application'))


@applications_bp.post('/<application_id>/review')
@require_auth
def review_application(path: ApplicationPath, body: ReviewApplicationBody):
    """Approve, assign or reject an application (admin)."""
    result = current_app.call_manager.review(
        current_user(), path.application_id, enum_value(body.status), body.notes
    )
    return jsonify({
        'application': hal_entity(result.application, 'application'),
        'call': hal_entity(result.call, 'call'),
        'call_closed': result.call_closed
    })
