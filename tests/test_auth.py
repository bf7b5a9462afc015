# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the JWT identity collaborator and role checks.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from relief_api.domain.authorization import can_change_role, check_admin, check_owner_or_admin
from relief_api.models.entities import UserContext
from relief_api.models.enums import UserRole
from relief_api.services.auth import AuthService, TokenValidationError


@pytest.fixture
def auth_service():
    return AuthService("unit-test-secret", access_token_expires=60)


class TestAuthService:
    """Test token issue and validation."""

    def test_round_trip_claims(self, auth_service):
        token = auth_service.generate_token("user-1", "admin", name="Ana", email="ana@example.org")

        payload = auth_service.validate_token(token["access_token"])

        assert token["token_type"] == "Bearer"
        assert token["expires_in"] == 60
        assert payload["sub"] == "user-1"
        assert payload["role"] == "admin"
        assert payload["name"] == "Ana"
        assert payload["type"] == "access"

    def test_unknown_role_cannot_be_issued(self, auth_service):
        with pytest.raises(ValueError):
            auth_service.generate_token("user-1", "superuser")

    def test_expired_token(self, auth_service):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "user-1", "role": "user", "type": "access", "iat": past, "exp": past + timedelta(minutes=5)},
            "unit-test-secret",
            algorithm="HS256"
        )

        with pytest.raises(TokenValidationError, match="expired"):
            auth_service.validate_token(token)

    def test_wrong_secret(self, auth_service):
        token = AuthService("another-secret").generate_token("user-1")["access_token"]

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_wrong_token_type(self, auth_service):
        token = jwt.encode(
            {"sub": "user-1", "type": "refresh", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "unit-test-secret",
            algorithm="HS256"
        )

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_forged_role_claim(self, auth_service):
        token = jwt.encode(
            {"sub": "user-1", "role": "root", "type": "access",
             "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "unit-test-secret",
            algorithm="HS256"
        )

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)

    def test_missing_subject(self, auth_service):
        token = jwt.encode(
            {"type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "unit-test-secret",
            algorithm="HS256"
        )

        with pytest.raises(TokenValidationError):
            auth_service.validate_token(token)


class TestAuthorization:
    """Test capability checks."""

    def test_check_admin(self):
        assert check_admin(UserContext(user_id="a", role=UserRole.ADMIN)).allowed
        assert not check_admin(UserContext(user_id="u")).allowed
        assert not check_admin(None).allowed

    def test_owner_or_admin(self):
        owner = UserContext(user_id="u1")

        assert check_owner_or_admin(owner, "u1").allowed
        assert not check_owner_or_admin(owner, "u2").allowed
        assert not check_owner_or_admin(owner, None).allowed
        assert check_owner_or_admin(UserContext(user_id="a", role="admin"), "u2").allowed

    def test_role_changes_never_come_from_the_command_surface(self):
        admin = UserContext(user_id="a", role=UserRole.ADMIN)

        assert can_change_role(admin, "u1", None).allowed
        assert not can_change_role(UserContext(user_id="u1"), "u1", "admin").allowed
        assert not can_change_role(admin, "u1", "admin").allowed
