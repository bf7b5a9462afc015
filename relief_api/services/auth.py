# SPDX-License-Identifier: Apache-2.0

"""
Identity collaborator: JWT token issue and validation.

Tokens are signed with a shared HS256 secret and carry the user ID
(sub) and the platform role. The relief core never authenticates; it
only consumes the (user_id, role) pair decoded here.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from opentelemetry import trace
import logging

from ..models.enums import UserRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEV_SECRET = "relief-dev-secret-change-me"


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT authentication service with HS256 signing.

    Issues access tokens for the identity provider integration and
    validates bearer tokens for the HTTP surface.
    """

    def __init__(self, secret: Optional[str] = None, access_token_expires: int = 900):
        """
        Initialize the authentication service.

        Args:
            secret: HS256 signing secret
            access_token_expires: Access token lifetime in seconds
        """
        self.secret = secret or self._get_secret()
        self.algorithm = "HS256"
        self.access_token_expires = access_token_expires

    def _get_secret(self) -> str:
        """Get signing secret from environment or fall back to the development secret."""
        secret = os.getenv("JWT_SECRET")
        if secret:
            return secret

        logger.warning("No JWT_SECRET found, using development secret")
        return DEV_SECRET

    def generate_token(self, user_id: str, role: str = UserRole.USER.value, name: Optional[str] = None,
                       email: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate an access token for a user.

        Args:
            user_id: Subject user ID
            role: Platform role (user or admin)
            name: Optional display name
            email: Optional email

        Returns:
            Dictionary containing access_token and metadata
        """
        with tracer.start_as_current_span("auth.generate_token") as span:
            span.set_attributes({
                "auth.operation": "generate_token",
                "user.id": user_id,
                "user.role": role
            })

            role = UserRole(role).value
            now = datetime.now(timezone.utc)
            expires_at = now + timedelta(seconds=self.access_token_expires)

            payload = {
                "sub": user_id,
                "role": role,
                "iat": now,
                "exp": expires_at,
                "type": "access"
            }
            if name:
                payload["name"] = name
            if email:
                payload["email"] = email

            access_token = jwt.encode(payload, self.secret, algorithm=self.algorithm)

            logger.info(
                "JWT token generated successfully",
                extra={"user_id": user_id, "role": role, "expires_at": expires_at.isoformat()}
            )

            return {
                "access_token": access_token,
                "token_type": "Bearer",
                "expires_in": self.access_token_expires,
                "expires_at": expires_at.isoformat()
            }

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Args:
            token: JWT token string to validate

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type") != "access":
                span.set_attribute("auth.validation_result", "wrong_type")
                raise TokenValidationError("Invalid token type. Expected access")

            if payload.get("role", UserRole.USER.value) not in [r.value for r in UserRole]:
                span.set_attribute("auth.validation_result", "invalid_role")
                raise TokenValidationError(f"Invalid role claim: {payload.get('role')}")

            span.set_attributes({
                "auth.validation_result": "success",
                "user.id": payload.get("sub"),
                "user.role": payload.get("role", UserRole.USER.value)
            })
            logger.debug("Token validated successfully", extra={"user_id": payload.get("sub")})
            return payload
