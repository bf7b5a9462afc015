# SPDX-License-Identifier: Apache-2.0

"""
User profile endpoints.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..middleware.auth import require_auth
from ..models.requests import ProfilePath, UpdateProfileBody
from . import current_user, enum_value, hal_entity

profiles_tag = Tag(name="Profiles", description="User profiles")
profiles_bp = APIBlueprint(
    'profiles',
    __name__,
    url_prefix='/api/profiles',
    abp_tags=[profiles_tag]
)


@profiles_bp.get('/me')
@require_auth
def get_my_profile():
    """Get the caller's profile, creating it on first sight."""
    user = current_user()
    profile = current_app.profile_service.ensure_profile(user.user_id, user.name or user.user_id,
                                                         role=user.role)
    return jsonify(hal_entity(profile, 'profile'))


@profiles_bp.get('/<user_id>')
@require_auth
def get_profile(path: ProfilePath):
    profile = current_app.profile_service.get_profile(current_user(), path.user_id)
    return jsonify(hal_entity(profile, 'profile'))


@profiles_bp.patch('/<user_id>')
@require_auth
def update_profile(path: ProfilePath, body: UpdateProfileBody):
    """Edit name and contact. Roles cannot be self-assigned."""
    profile = current_app.profile_service.update_profile(
        current_user(), path.user_id, body.name, body.contact, enum_value(body.role)
    )
    return jsonify(hal_entity(profile, 'profile'))
