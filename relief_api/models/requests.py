# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.

Bodies only check shape and types; content rules are enforced by the
domain layer so every caller gets the same error taxonomy.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from .enums import (
    RequestStatus,
    ApplicationStatus,
    CallPriority,
    FundraiserStatus,
    UserRole
)


# Path parameters

class RequestPath(BaseModel):
    request_id: str = Field(..., description="Victim request ID")


class VolunteerPath(BaseModel):
    volunteer_id: str = Field(..., description="Volunteer ID")


class CallPath(BaseModel):
    call_id: str = Field(..., description="Volunteer call ID")


class ApplicationPath(BaseModel):
    application_id: str = Field(..., description="Application ID")


class ResourcePath(BaseModel):
    resource_id: str = Field(..., description="Resource ID")


class FundraiserPath(BaseModel):
    fundraiser_id: str = Field(..., description="Fundraiser ID")


class ProfilePath(BaseModel):
    user_id: str = Field(..., description="Profile (user) ID")


# Victim requests

class SubmitVictimRequestBody(BaseModel):
    """Request model for submitting a help request."""

    location: str = Field(..., description="Where help is needed")
    description: str = Field(..., description="Situation description")
    urgent_needs: Optional[str] = Field(None, description="Immediate needs")


class ReviseVictimRequestBody(BaseModel):
    """Request model for revising a pending help request."""

    location: Optional[str] = Field(None, description="Where help is needed")
    description: Optional[str] = Field(None, description="Situation description")
    urgent_needs: Optional[str] = Field(None, description="Immediate needs")


class TransitionVictimRequestBody(BaseModel):
    """Request model for an administrative status transition."""

    status: RequestStatus = Field(..., description="Target status")
    assigned_volunteer_id: Optional[str] = Field(None, description="Volunteer to assign")


class VictimRequestQuery(BaseModel):
    status: Optional[RequestStatus] = Field(None, description="Filter by status")


# Volunteers

class RegisterVolunteerBody(BaseModel):
    """Request model for volunteer registration or profile update."""

    skills: List[str] = Field(default_factory=list, description="Volunteer skills")
    location: Optional[str] = Field(None, description="Base location")
    availability: Optional[str] = Field(None, description="Availability notes")


class VolunteerActivationBody(BaseModel):
    is_active: bool = Field(..., description="Whether the volunteer can be assigned")


class VolunteerListQuery(BaseModel):
    active_only: bool = Field(default=False, description="Only active volunteers")


# Calls and applications

class CreateCallBody(BaseModel):
    """Request model for creating a volunteer call."""

    disaster_name: str = Field(..., description="Disaster name")
    disaster_location: str = Field(..., description="Disaster location")
    volunteers_needed: int = Field(..., description="Call capacity")
    priority: CallPriority = Field(default=CallPriority.MEDIUM, description="Priority level")
    required_skills: List[str] = Field(default_factory=list, description="Skills needed")
    description: Optional[str] = Field(None, description="Call description")


class ApplyToCallBody(BaseModel):
    volunteer_id: Optional[str] = Field(None, description="Applying volunteer (defaults to the caller)")


class CallListQuery(BaseModel):
    by_priority: bool = Field(default=False, description="Order critical calls first")


class ReviewApplicationBody(BaseModel):
    """Request model for reviewing an application."""

    status: ApplicationStatus = Field(..., description="Target status")
    notes: Optional[str] = Field(None, description="Reviewer notes")


# Resources

class AddResourceBody(BaseModel):
    """Request model for adding an inventory item."""

    name: str = Field(..., description="Resource name")
    category: str = Field(..., description="Resource category")
    quantity: int = Field(..., description="Initial quantity")
    unit: Optional[str] = Field(None, description="Unit of measure")


class AllocateResourceBody(BaseModel):
    """Request model for allocating inventory to a request."""

    request_id: str = Field(..., description="Receiving victim request")
    quantity: int = Field(..., description="Quantity to allocate")


class RestockResourceBody(BaseModel):
    amount: int = Field(..., description="Quantity to add")


class AllocationQuery(BaseModel):
    resource_id: Optional[str] = Field(None, description="Filter by resource")
    request_id: Optional[str] = Field(None, description="Filter by victim request")


# Fundraisers

class CreateFundraiserBody(BaseModel):
    """Request model for creating a fundraising campaign."""

    title: str = Field(..., description="Campaign title")
    description: str = Field(default="", description="Campaign description")
    goal_amount: Decimal = Field(..., description="Funding goal")
    start_date: Optional[datetime] = Field(None, description="Campaign start")
    end_date: Optional[datetime] = Field(None, description="Campaign end")


class DonateBody(BaseModel):
    """Request model for recording a donation."""

    donor_name: str = Field(default="", description="Displayed donor name")
    amount: Decimal = Field(..., description="Donated amount")
    is_anonymous: bool = Field(default=False, description="Hide the donor name")


class FundraiserStatusBody(BaseModel):
    status: FundraiserStatus = Field(..., description="Target status")


# Profiles and reports

class UpdateProfileBody(BaseModel):
    name: Optional[str] = Field(None, description="Display name")
    contact: Optional[str] = Field(None, description="Contact details")
    role: Optional[UserRole] = Field(None, description="Role (cannot be self-assigned)")


class SubmitReportBody(BaseModel):
    request_id: str = Field(..., description="Reported victim request")
    report: str = Field(..., description="Report text")


class ReportQuery(BaseModel):
    request_id: Optional[str] = Field(None, description="Filter by victim request")
