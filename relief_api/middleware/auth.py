# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware for JWT token validation and role context extraction.

This module turns a bearer token into the UserContext passed to every
relief command.
"""

from functools import wraps
from flask import request, jsonify, g, current_app
from typing import Optional, Dict, Any, Callable
from opentelemetry import trace
import logging

from ..models.entities import UserContext
from ..models.enums import UserRole
from ..services.auth import AuthService, TokenValidationError

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

PROBLEM_BASE = "https://api.relief.local/problems"


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction, validation and user context building for
    protected endpoints.
    """

    def __init__(self, auth_service: AuthService):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT authentication service
        """
        self.auth_service = auth_service

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return None

    def build_user_context(self, token_payload: Dict[str, Any], request_info: Dict[str, Any]) -> UserContext:
        """
        Build user context from validated token payload and request information.

        Args:
            token_payload: Decoded JWT payload
            request_info: Request metadata (IP, user agent)

        Returns:
            UserContext object for request processing
        """
        return UserContext(
            user_id=token_payload["sub"],
            role=token_payload.get("role", UserRole.USER.value),
            email=token_payload.get("email"),
            name=token_payload.get("name"),
            token_payload=token_payload,
            ip_address=request_info.get("ip_address"),
            user_agent=request_info.get("user_agent")
        )

    def get_request_info(self) -> Dict[str, Any]:
        """Extract request metadata for user context."""
        return {
            "ip_address": request.remote_addr,
            "user_agent": request.headers.get('User-Agent', '')
        }


def _unauthorized(title: str, problem: str, detail: str):
    return jsonify({
        "type": f"{PROBLEM_BASE}/{problem}",
        "title": title,
        "status": 401,
        "detail": detail,
        "instance": request.path
    }), 401


def require_auth(f: Callable) -> Callable:
    """
    Decorator to require JWT authentication for Flask routes.

    The resulting UserContext is stored on flask.g.user_context.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware

        with tracer.start_as_current_span("auth.middleware.validate_request") as span:
            span.set_attribute("auth.operation", "validate_request")

            token = auth_middleware.extract_token_from_request()
            if not token:
                span.set_attribute("auth.result", "missing_token")
                logger.warning("Authentication failed: missing token")
                return _unauthorized("Authentication Required", "authentication-required",
                                     "Missing authorization token")

            try:
                token_payload = auth_middleware.auth_service.validate_token(token)
            except TokenValidationError as e:
                span.set_attribute("auth.result", "invalid_token")
                logger.warning(f"Authentication failed: {str(e)}")
                return _unauthorized("Invalid Token", "invalid-token", str(e))

            user_context = auth_middleware.build_user_context(token_payload, auth_middleware.get_request_info())
            g.user_context = user_context

            span.set_attributes({
                "auth.result": "success",
                "user.id": user_context.user_id,
                "user.role": str(user_context.role)
            })
            logger.debug(
                "Authentication successful",
                extra={"user_id": user_context.user_id, "ip_address": user_context.ip_address}
            )

        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f: Callable) -> Callable:
    """
    Decorator for routes open to guests.

    A valid bearer token sets flask.g.user_context; no token leaves it None.
    A token that is present but invalid is still rejected.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_middleware: AuthMiddleware = current_app.auth_middleware
        g.user_context = None

        token = auth_middleware.extract_token_from_request()
        if token:
            try:
                token_payload = auth_middleware.auth_service.validate_token(token)
            except TokenValidationError as e:
                logger.warning(f"Authentication failed: {str(e)}")
                return _unauthorized("Invalid Token", "invalid-token", str(e))
            g.user_context = auth_middleware.build_user_context(token_payload, auth_middleware.get_request_info())

        return f(*args, **kwargs)

    return decorated_function
