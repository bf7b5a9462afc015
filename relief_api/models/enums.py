# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the relief coordination platform.

String values are the persisted vocabulary and must not change.
"""

from enum import Enum


class UserRole(str, Enum):
    """Caller role resolved by the identity collaborator."""
    USER = "user"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    """Victim request workflow status."""
    PENDING = "pending"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


class ApplicationStatus(str, Enum):
    """Volunteer call application status."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    ASSIGNED = "assigned"


class VolunteerCallStatus(str, Enum):
    """Volunteer call status."""
    ACTIVE = "active"
    CLOSED = "closed"


class CallPriority(str, Enum):
    """Volunteer call priority level."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FundraiserStatus(str, Enum):
    """Fundraising campaign status."""
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Collections:
    """Persisted collection names."""
    PROFILES = "profiles"
    VICTIM_REQUESTS = "victim_requests"
    VOLUNTEERS = "volunteers"
    VOLUNTEER_CALLS = "volunteer_calls"
    VOLUNTEER_CALL_APPLICATIONS = "volunteer_call_applications"
    RESOURCES = "resources"
    RESOURCE_ALLOCATIONS = "resource_allocations"
    FUNDRAISERS = "fundraisers"
    DONATIONS = "donations"
    REPORTS = "reports"
