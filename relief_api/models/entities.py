# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the relief coordination platform.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from .base import BaseEntity, to_money, utc_now
from .enums import (
    UserRole,
    RequestStatus,
    ApplicationStatus,
    VolunteerCallStatus,
    CallPriority,
    FundraiserStatus
)


ANONYMOUS_DONOR = "Anonymous"


def _money(v):
    try:
        return to_money(v)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError('Amount must be a valid decimal number')


class Profile(BaseEntity):
    """User profile. The role is only changed by the identity collaborator."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    contact: Optional[str] = Field(None, max_length=200, description="Contact details")
    role: UserRole = Field(default=UserRole.USER, description="Platform role")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate profile name."""
        if not v.strip():
            raise ValueError('Profile name cannot be empty')
        return v.strip()


class VictimRequest(BaseEntity):
    """Help request submitted by a victim."""

    user_id: str = Field(..., description="Submitting user")
    location: str = Field(..., min_length=1, max_length=300, description="Where help is needed")
    description: str = Field(..., min_length=1, max_length=2000, description="Situation description")
    urgent_needs: Optional[str] = Field(None, max_length=1000, description="Immediate needs")
    status: RequestStatus = Field(default=RequestStatus.PENDING, description="Workflow status")
    assigned_volunteer_id: Optional[str] = Field(None, description="Volunteer handling the request")

    @field_validator('location', 'description')
    @classmethod
    def validate_text(cls, v):
        """Validate required text fields."""
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_assignment(self):
        """Validate status-dependent volunteer assignment."""
        assigned_states = (RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED)
        if self.status in assigned_states and not self.assigned_volunteer_id:
            raise ValueError(f'assigned_volunteer_id is required when status is {self.status}')
        if self.status not in assigned_states and self.assigned_volunteer_id:
            raise ValueError(f'assigned_volunteer_id cannot be set when status is {self.status}')
        return self


class Volunteer(BaseEntity):
    """Volunteer registration, one per user."""

    user_id: str = Field(..., description="Owning user")
    skills: List[str] = Field(..., min_length=1, description="Volunteer skills")
    location: Optional[str] = Field(None, max_length=300, description="Base location")
    availability: Optional[str] = Field(None, max_length=300, description="Availability notes")
    is_active: bool = Field(default=True, description="Whether the volunteer can be assigned")

    @field_validator('skills')
    @classmethod
    def validate_skills(cls, v):
        """Validate skills list."""
        skills = [s.strip() for s in v if s and s.strip()]
        if not skills:
            raise ValueError('At least one skill is required')
        return skills


class VolunteerCall(BaseEntity):
    """Disaster-specific call for volunteer labor."""

    disaster_name: str = Field(..., min_length=1, max_length=200, description="Disaster name")
    disaster_location: str = Field(..., min_length=1, max_length=300, description="Disaster location")
    description: Optional[str] = Field(None, max_length=2000, description="Call description")
    required_skills: List[str] = Field(default_factory=list, description="Skills needed")
    volunteers_needed: int = Field(..., ge=1, description="Call capacity")
    priority: CallPriority = Field(default=CallPriority.MEDIUM, description="Priority level")
    status: VolunteerCallStatus = Field(default=VolunteerCallStatus.ACTIVE, description="Call status")
    closed_at: Optional[datetime] = Field(None, description="Closure timestamp")
    created_by: Optional[str] = Field(None, description="Admin who created the call")

    @field_validator('disaster_name', 'disaster_location')
    @classmethod
    def validate_text(cls, v):
        """Validate required text fields."""
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_closure(self):
        """closed_at is set exactly when the call is closed."""
        if self.status == VolunteerCallStatus.CLOSED and self.closed_at is None:
            raise ValueError('closed_at is required when status is closed')
        if self.status == VolunteerCallStatus.ACTIVE and self.closed_at is not None:
            raise ValueError('closed_at cannot be set while the call is active')
        return self

    def is_open(self) -> bool:
        """Check if the call accepts applications."""
        return self.status == VolunteerCallStatus.ACTIVE


class VolunteerCallApplication(BaseEntity):
    """A volunteer's bid to fill a slot on a call."""

    call_id: str = Field(..., description="Target call")
    volunteer_id: str = Field(..., description="Applying volunteer")
    status: ApplicationStatus = Field(default=ApplicationStatus.PENDING, description="Application status")
    applied_at: datetime = Field(default_factory=utc_now, description="Application timestamp")
    reviewed_at: Optional[datetime] = Field(None, description="Review timestamp")
    reviewed_by: Optional[str] = Field(None, description="Reviewing admin")
    notes: Optional[str] = Field(None, max_length=1000, description="Reviewer notes")

    @model_validator(mode='after')
    def validate_review_fields(self):
        """Review metadata exists only once the application left pending."""
        reviewed = self.reviewed_at is not None or self.reviewed_by is not None
        if self.status == ApplicationStatus.PENDING and reviewed:
            raise ValueError('Pending applications cannot carry review metadata')
        if self.status != ApplicationStatus.PENDING and (self.reviewed_at is None or not self.reviewed_by):
            raise ValueError('reviewed_at and reviewed_by are required once reviewed')
        return self


class Resource(BaseEntity):
    """Inventory item with a running available balance."""

    name: str = Field(..., min_length=1, max_length=200, description="Resource name")
    category: str = Field(..., min_length=1, max_length=100, description="Resource category")
    quantity: int = Field(..., ge=0, description="Available quantity")
    baseline_quantity: int = Field(..., ge=0, description="Quantity before any allocation")
    unit: Optional[str] = Field(None, max_length=50, description="Unit of measure")

    @field_validator('name', 'category')
    @classmethod
    def validate_text(cls, v):
        """Validate required text fields."""
        if not v.strip():
            raise ValueError('Field cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_balance(self):
        """Available quantity can never exceed the baseline."""
        if self.quantity > self.baseline_quantity:
            raise ValueError('quantity cannot exceed baseline_quantity')
        return self


class ResourceAllocation(BaseEntity):
    """Recorded transfer of resource quantity against a victim request."""

    resource_id: str = Field(..., description="Allocated resource")
    request_id: str = Field(..., description="Receiving victim request")
    quantity_allocated: int = Field(..., gt=0, description="Allocated quantity")
    allocated_by: str = Field(..., description="Admin who allocated")
    allocation_date: datetime = Field(default_factory=utc_now, description="Allocation timestamp")


class Fundraiser(BaseEntity):
    """Fundraising campaign."""

    title: str = Field(..., min_length=1, max_length=200, description="Campaign title")
    description: str = Field(default="", max_length=2000, description="Campaign description")
    goal_amount: Decimal = Field(..., gt=0, description="Funding goal")
    raised_amount: Decimal = Field(default=Decimal("0.00"), ge=0, description="Sum of donations")
    status: FundraiserStatus = Field(default=FundraiserStatus.ACTIVE, description="Campaign status")
    start_date: Optional[datetime] = Field(None, description="Campaign start")
    end_date: Optional[datetime] = Field(None, description="Campaign end")
    created_by: Optional[str] = Field(None, description="Admin who created the campaign")

    @field_validator('goal_amount', 'raised_amount', mode='before')
    @classmethod
    def normalize_amount(cls, v):
        """Normalize amounts to cents."""
        return _money(v)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        """Validate campaign title."""
        if not v.strip():
            raise ValueError('Fundraiser title cannot be empty')
        return v.strip()

    @model_validator(mode='after')
    def validate_dates(self):
        """Campaign cannot end before it starts."""
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError('end_date cannot be before start_date')
        return self

    def accepts_donations(self) -> bool:
        """Check if the campaign is open for donations."""
        return self.status == FundraiserStatus.ACTIVE


class Donation(BaseEntity):
    """Recorded donation. Amounts are recorded, never charged."""

    fundraiser_id: str = Field(..., description="Funded campaign")
    donor_user_id: Optional[str] = Field(None, description="Donating user, if signed in")
    donor_name: str = Field(..., min_length=1, max_length=200, description="Displayed donor name")
    amount: Decimal = Field(..., gt=0, description="Donated amount")
    is_anonymous: bool = Field(default=False, description="Hide the donor name")
    donation_date: datetime = Field(default_factory=utc_now, description="Donation timestamp")

    @model_validator(mode='before')
    @classmethod
    def apply_anonymity(cls, data):
        """Anonymous donations always display as Anonymous."""
        if isinstance(data, dict) and data.get('is_anonymous'):
            data = {**data, 'donor_name': ANONYMOUS_DONOR}
        return data

    @field_validator('amount', mode='before')
    @classmethod
    def normalize_amount(cls, v):
        """Normalize amount to cents."""
        return _money(v)

    @field_validator('donor_name')
    @classmethod
    def validate_donor_name(cls, v):
        """Validate donor name."""
        if not v.strip():
            raise ValueError('Donor name cannot be empty')
        return v.strip()


class Report(BaseEntity):
    """Field report filed by the volunteer handling a request."""

    request_id: str = Field(..., description="Reported victim request")
    volunteer_id: str = Field(..., description="Reporting volunteer")
    user_id: str = Field(..., description="Reporting user")
    report: str = Field(..., min_length=1, max_length=5000, description="Report text")
    report_date: datetime = Field(default_factory=utc_now, description="Report timestamp")

    @field_validator('report')
    @classmethod
    def validate_report(cls, v):
        """Validate report text."""
        if not v.strip():
            raise ValueError('Report cannot be empty')
        return v.strip()


class UserContext(BaseModel):
    """Role context supplied by the identity collaborator for every command."""

    user_id: str = Field(..., description="Authenticated user ID")
    role: UserRole = Field(default=UserRole.USER, description="Caller role")
    name: Optional[str] = Field(None, description="User display name")
    email: Optional[str] = Field(None, description="User email")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")

    model_config = ConfigDict(
        use_enum_values=True
    )

    def is_admin(self) -> bool:
        """Check if the caller holds the admin role."""
        return self.role == UserRole.ADMIN
