# SPDX-License-Identifier: Apache-2.0

"""
Volunteer registration endpoints.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..domain.volunteers import COMMON_SKILLS
from ..middleware.auth import require_auth
from ..models.requests import (
    RegisterVolunteerBody,
    VolunteerActivationBody,
    VolunteerListQuery,
    VolunteerPath
)
from . import current_user, dump, enum_value, hal_collection, hal_entity

volunteers_tag = Tag(name="Volunteers", description="Volunteer registration")
volunteers_bp = APIBlueprint(
    'volunteers',
    __name__,
    url_prefix='/api/volunteers',
    abp_tags=[volunteers_tag]
)


@volunteers_bp.get('/skills')
def list_common_skills():
    """Suggested skills for the registration form."""
    return jsonify({'skills': COMMON_SKILLS})


@volunteers_bp.put('/me')
@require_auth
def register_volunteer(body: RegisterVolunteerBody):
    """Register as a volunteer, or update the caller's registration."""
    volunteer = current_app.volunteer_service.register(
        current_user(), body.skills, body.location, body.availability
    )
    return jsonify(hal_entity(volunteer, 'volunteer'))


@volunteers_bp.get('/me')
@require_auth
def get_my_volunteer():
    """Get the caller's volunteer record."""
    volunteer = current_app.volunteer_service.get_for_user(current_user())
    return jsonify(hal_entity(volunteer, 'volunteer'))


@volunteers_bp.get('')
@require_auth
def list_volunteers(query: VolunteerListQuery):
    """List volunteers (admin)."""
    volunteers = current_app.volunteer_service.list_volunteers(current_user(), query.active_only)
    return jsonify(hal_collection(volunteers, 'volunteer', '/api/volunteers'))


@volunteers_bp.get('/<volunteer_id>')
@require_auth
def get_volunteer(path: VolunteerPath):
    """Get one volunteer (owner or admin)."""
    volunteer = current_app.volunteer_service.get(current_user(), path.volunteer_id)
    return jsonify(hal_entity(volunteer, 'volunteer'))


@volunteers_bp.post('/<volunteer_id>/activation')
@require_auth
def set_volunteer_activation(path: VolunteerPath, body: VolunteerActivationBody):
    """Activate or deactivate a volunteer (admin)."""
    volunteer = current_app.volunteer_service.set_active(current_user(), path.volunteer_id, body.is_active)
    return jsonify(hal_entity(volunteer, 'volunteer'))


@volunteers_bp.get('/<volunteer_id>/applications')
@require_auth
def list_volunteer_applications(path: VolunteerPath):
    """List a volunteer's applications with call summaries (owner or admin)."""
    summaries = current_app.call_manager.list_applications_for_volunteer(current_user(), path.volunteer_id)
    hal = current_app.hal_formatter

    items = []
    for summary in summaries:
        item = hal.format_entity(dump(summary.application), 'application', current_user())
        item['call'] = None
        if summary.call is not None:
            item['call'] = {
                'id': summary.call.id,
                'disaster_name': summary.call.disaster_name,
                'disaster_location': summary.call.disaster_location,
                'priority': enum_value(summary.call.priority),
                'status': enum_value(summary.call.status)
            }
        items.append(item)

    return jsonify(hal.builder.build_collection_response(
        items, f"/api/volunteers/{path.volunteer_id}/applications"
    ))
