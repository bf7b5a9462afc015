# SPDX-License-Identifier: Apache-2.0

"""
Victim request endpoints.

Submission and revision by the requesting user; review, assignment and
closure by admins through the transition command.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..middleware.auth import require_auth
from ..models.requests import (
    RequestPath,
    ReviseVictimRequestBody,
    SubmitVictimRequestBody,
    TransitionVictimRequestBody,
    VictimRequestQuery
)
from . import current_user, enum_value, hal_collection, hal_entity

requests_tag = Tag(name="Victim Requests", description="Help request lifecycle")
requests_bp = APIBlueprint(
    'victim_requests',
    __name__,
    url_prefix='/api/requests',
    abp_tags=[requests_tag]
)


@requests_bp.post('')
@require_auth
def submit_request(body: SubmitVictimRequestBody):
    """Submit a help request."""
    request = current_app.request_manager.submit(
        current_user(), body.location, body.description, body.urgent_needs
    )
    return jsonify(hal_entity(request, 'request')), 201


@requests_bp.get('')
@require_auth
def list_requests(query: VictimRequestQuery):
    """List all help requests (admin)."""
    requests = current_app.request_manager.list_requests(current_user(), enum_value(query.status))
    return jsonify(hal_collection(requests, 'request', '/api/requests'))


@requests_bp.get('/mine')
@require_auth
def list_my_requests():
    """List the caller's help requests, newest first."""
    requests = current_app.request_manager.list_for_user(current_user())
    return jsonify(hal_collection(requests, 'request', '/api/requests/mine'))


@requests_bp.get('/<request_id>')
@require_auth
def get_request(path: RequestPath):
    """Get one help request (owner or admin)."""
    request = current_app.request_manager.get(current_user(), path.request_id)
    return jsonify(hal_entity(request, 'request'))


@requests_bp.patch('/<request_id>')
@require_auth
def revise_request(path: RequestPath, body: ReviseVictimRequestBody):
    """Revise a pending help request (owner)."""
    request = current_app.request_manager.revise(
        current_user(), path.request_id, body.location, body.description, body.urgent_needs
    )
    return jsonify(hal_entity(request, 'request'))


@requests_bp.post('/<request_id>/transition')
@require_auth
def transition_request(path: RequestPath, body: TransitionVictimRequestBody):
    """Move a help request to a new status (admin)."""
    request = current_app.request_manager.transition(
        current_user(), path.request_id, enum_value(body.status), body.assigned_volunteer_id
    )
    return jsonify(hal_entity(request, 'request'))
