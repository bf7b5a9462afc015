# SPDX-License-Identifier: Apache-2.0

"""
Fundraiser and donation domain logic.

raised_amount is stored but derived: it always equals the sum of the
donations recorded against the fundraiser. Reaching the goal does not
close a campaign; over-funding is allowed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from ..models.base import to_money
from ..models.entities import Donation, Fundraiser, ANONYMOUS_DONOR
from ..models.enums import FundraiserStatus
from .validation import ValidationResult


FUNDRAISER_TRANSITIONS = {
    FundraiserStatus.ACTIVE: [FundraiserStatus.COMPLETED, FundraiserStatus.CANCELLED],
    FundraiserStatus.COMPLETED: [],  # Terminal state
    FundraiserStatus.CANCELLED: []  # Terminal state
}


@dataclass
class TotalsReport:
    """Ledger check for one fundraiser."""
    fundraiser_id: str
    raised_amount: Decimal
    donations_total: Decimal
    donation_count: int

    @property
    def is_consistent(self) -> bool:
        return self.raised_amount == self.donations_total


def parse_amount(amount: Any) -> Optional[Decimal]:
    """Parse a monetary amount, None when it is not a number."""
    if isinstance(amount, bool) or amount is None:
        return None
    try:
        value = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def validate_fundraiser_definition(
    title: Optional[str],
    goal_amount: Any,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None
) -> ValidationResult:
    """
    Validate a new fundraising campaign.

    Args:
        title: Campaign title
        goal_amount: Funding goal
        start_date: Campaign start
        end_date: Campaign end

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if not title or not title.strip():
        errors.append("Fundraiser title is required")

    goal = parse_amount(goal_amount)
    if goal is None:
        errors.append("Goal amount must be a valid number")
    elif goal <= 0:
        errors.append("Goal amount must be greater than zero")

    if start_date and end_date and end_date < start_date:
        errors.append("End date cannot be before start date")

    return ValidationResult.from_errors(errors)


def validate_donation(amount: Any, donor_name: Optional[str], is_anonymous: bool) -> ValidationResult:
    """
    Validate a donation.

    Args:
        amount: Donated amount
        donor_name: Supplied donor name (ignored for anonymous donations)
        is_anonymous: Hide the donor name

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    value = parse_amount(amount)
    if value is None:
        errors.append("Amount must be a valid number")
    elif value <= 0:
        errors.append("Amount must be greater than zero")

    if not is_anonymous and (not donor_name or not donor_name.strip()):
        errors.append("Donor name is required unless the donation is anonymous")

    return ValidationResult.from_errors(errors)


def resolve_donor_name(donor_name: Optional[str], is_anonymous: bool) -> str:
    """Displayed donor name; anonymous donations always read Anonymous."""
    if is_anonymous:
        return ANONYMOUS_DONOR
    return donor_name.strip()


def validate_fundraiser_transition(
    current_status: FundraiserStatus,
    new_status: FundraiserStatus
) -> ValidationResult:
    """Validate fundraiser status transition."""
    errors = []

    if FundraiserStatus(new_status) not in FUNDRAISER_TRANSITIONS.get(FundraiserStatus(current_status), []):
        errors.append(
            f"Invalid fundraiser status transition from {FundraiserStatus(current_status).value} "
            f"to {FundraiserStatus(new_status).value}"
        )

    return ValidationResult.from_errors(errors)


def compute_totals(fundraiser: Fundraiser, donations: Iterable[Donation]) -> TotalsReport:
    """Compute the ledger check for a fundraiser and its donations."""
    relevant = [d for d in donations if d.fundraiser_id == fundraiser.id]
    total = sum((d.amount for d in relevant), Decimal("0.00"))
    return TotalsReport(
        fundraiser_id=fundraiser.id,
        raised_amount=to_money(fundraiser.raised_amount),
        donations_total=to_money(total),
        donation_count=len(relevant)
    )


def funding_progress(fundraiser: Fundraiser) -> Decimal:
    """Raised amount as a percentage of the goal (may exceed 100)."""
    if fundraiser.goal_amount <= 0:
        return Decimal("0.00")
    return (Decimal(fundraiser.raised_amount) * 100 / Decimal(fundraiser.goal_amount)).quantize(Decimal("0.01"))
