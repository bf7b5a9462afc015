# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the relief platform.
"""

# Base models
from .base import BaseEntity, generate_object_id, utc_now, to_money

# Enumerations
from .enums import (
    UserRole,
    RequestStatus,
    ApplicationStatus,
    VolunteerCallStatus,
    CallPriority,
    FundraiserStatus,
    Collections
)

# Core entities
from .entities import (
    Profile,
    VictimRequest,
    Volunteer,
    VolunteerCall,
    VolunteerCallApplication,
    Resource,
    ResourceAllocation,
    Fundraiser,
    Donation,
    Report,
    UserContext,
    ANONYMOUS_DONOR
)

__all__ = [
    # Base models
    "BaseEntity",
    "generate_object_id",
    "utc_now",
    "to_money",

    # Enumerations
    "UserRole",
    "RequestStatus",
    "ApplicationStatus",
    "VolunteerCallStatus",
    "CallPriority",
    "FundraiserStatus",
    "Collections",

    # Core entities
    "Profile",
    "VictimRequest",
    "Volunteer",
    "VolunteerCall",
    "VolunteerCallApplication",
    "Resource",
    "ResourceAllocation",
    "Fundraiser",
    "Donation",
    "Report",
    "UserContext",
    "ANONYMOUS_DONOR"
]
