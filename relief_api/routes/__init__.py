# SPDX-License-Identifier: Apache-2.0

"""
Routes package - flask-openapi3 blueprints for the relief command surface.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from flask import current_app, g
from pydantic import BaseModel

from ..models.entities import UserContext


def current_user() -> UserContext:
    """Role context set by require_auth."""
    return g.user_context


def enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def dump(entity: BaseModel) -> Dict[str, Any]:
    """JSON-safe view of an entity (decimals as strings, ISO datetimes)."""
    return entity.model_dump(mode="json")


def hal_entity(entity: BaseModel, resource_type: str) -> Dict[str, Any]:
    return current_app.hal_formatter.format_entity(dump(entity), resource_type, current_user())


def hal_collection(entities: List[BaseModel], resource_type: str, path: str,
                   extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    response = current_app.hal_formatter.format_collection(
        [dump(entity) for entity in entities], resource_type, path, current_user()
    )
    if extra:
        response.update(extra)
    return response


def register_blueprints(app) -> None:
    """Attach every relief blueprint to the application."""
    from .requests import requests_bp
    from .volunteers import volunteers_bp
    from .calls import calls_bp, applications_bp
    from .resources import resources_bp
    from .fundraisers import fundraisers_bp
    from .profiles import profiles_bp
    from .reports import reports_bp, dashboard_bp

    for blueprint in (requests_bp, volunteers_bp, calls_bp, applications_bp, resources_bp,
                      fundraisers_bp, profiles_bp, reports_bp, dashboard_bp):
        app.register_api(blueprint)
