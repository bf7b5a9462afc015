# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'
os.environ['JWT_SECRET'] = 'test-secret-key'

from relief_api.models.entities import UserContext
from relief_api.models.enums import UserRole
from relief_api.services.dashboard import DashboardService
from relief_api.services.field_reports import FieldReportService
from relief_api.services.fundraiser_ledger import FundraiserLedger
from relief_api.services.memory import InMemoryRepository
from relief_api.services.profiles import ProfileService
from relief_api.services.request_lifecycle import RequestLifecycleManager
from relief_api.services.resource_ledger import ResourceLedger
from relief_api.services.volunteer_calls import VolunteerCallManager
from relief_api.services.volunteers import VolunteerService


@pytest.fixture
def repository():
    """In-memory repository with the unique indexes registered."""
    repo = InMemoryRepository()
    repo.create_indexes()
    return repo


@pytest.fixture
def admin_context():
    return UserContext(user_id="admin-1", role=UserRole.ADMIN, name="Coordinator")


@pytest.fixture
def user_context():
    return UserContext(user_id="user-1", role=UserRole.USER, name="Ana Souza")


@pytest.fixture
def other_user_context():
    return UserContext(user_id="user-2", role=UserRole.USER, name="Bruno Lima")


@pytest.fixture
def request_manager(repository):
    return RequestLifecycleManager(repository)


@pytest.fixture
def call_manager(repository):
    return VolunteerCallManager(repository)


@pytest.fixture
def resource_ledger(repository):
    return ResourceLedger(repository)


@pytest.fixture
def fundraiser_ledger(repository):
    return FundraiserLedger(repository)


@pytest.fixture
def volunteer_service(repository):
    return VolunteerService(repository)


@pytest.fixture
def profile_service(repository):
    return ProfileService(repository)


@pytest.fixture
def report_service(repository):
    return FieldReportService(repository)


@pytest.fixture
def dashboard_service(repository):
    return DashboardService(repository)


@pytest.fixture
def make_volunteer(volunteer_service):
    """Register a volunteer for a fresh user."""
    def factory(user_id, skills=None):
        context = UserContext(user_id=user_id, role=UserRole.USER)
        return volunteer_service.register(context, skills or ["First Aid"], location="Porto Alegre")
    return factory


@pytest.fixture
def volunteer(volunteer_service, user_context):
    """Volunteer record owned by user_context."""
    return volunteer_service.register(user_context, ["Medical Aid", "Logistics"], location="Canoas")


@pytest.fixture
def pending_request(request_manager, other_user_context):
    """Help request submitted by other_user_context."""
    return request_manager.submit(
        other_user_context,
        "Rua das Flores 120, Canoas",
        "Family of four stranded on the second floor",
        "Drinking water, blankets"
    )


@pytest.fixture
def active_call(call_manager, admin_context):
    return call_manager.create_call(
        admin_context,
        "Guaiba River Flood",
        "Porto Alegre",
        2,
        priority="high",
        required_skills=["Rescue Operations", "First Aid"]
    )
