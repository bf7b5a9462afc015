# SPDX-License-Identifier: Apache-2.0

"""
Fundraiser & Donation Ledger.

raised_amount is incremented in the same transaction that records each
donation. Campaigns close only through an explicit admin action.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

from opentelemetry import trace
from pymongo import DESCENDING

from ..domain.errors import InvalidTransitionError, ValidationError
from ..domain.fundraising import (
    TotalsReport,
    compute_totals,
    parse_amount,
    resolve_donor_name,
    validate_donation,
    validate_fundraiser_definition,
    validate_fundraiser_transition
)
from ..domain.validation import raise_for_errors
from ..models.base import to_money
from ..models.entities import Donation, Fundraiser, UserContext
from ..models.enums import Collections, FundraiserStatus
from .manager import BaseManager
from .repository import NEWEST_FIRST, Repository

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


@dataclass
class DonationResult:
    """Post-donation state of the fundraiser and the recorded donation."""
    fundraiser: Fundraiser
    donation: Donation


@dataclass
class DonorHistory:
    """A user's donations and their total."""
    donations: List[Donation]
    total: Decimal


class FundraiserLedger(BaseManager):
    """Campaign totals and donation recording."""

    def create_fundraiser(self, user_context: UserContext, title: str, goal_amount: Any,
                          description: str = "", start_date: Optional[datetime] = None,
                          end_date: Optional[datetime] = None) -> Fundraiser:
        """Open a fundraising campaign. Admin only."""
        with tracer.start_as_current_span("fundraisers.create") as span:
            span.set_attributes(self._span_attributes(user_context))

            self._require_admin(user_context, "fundraisers.create")
            raise_for_errors(
                validate_fundraiser_definition(title, goal_amount, start_date, end_date),
                "Invalid fundraiser"
            )

            fundraiser = self._build(
                Fundraiser,
                title=title,
                description=(description or "").strip(),
                goal_amount=parse_amount(goal_amount),
                raised_amount=Decimal("0.00"),
                status=FundraiserStatus.ACTIVE,
                start_date=start_date,
                end_date=end_date,
                created_by=user_context.user_id
            )
            document = self.repository.insert(Collections.FUNDRAISERS, fundraiser.to_document())
            fundraiser = Fundraiser.from_document(document)

            span.set_attribute("fundraiser.id", fundraiser.id)
            logger.info(
                f"Fundraiser created: {fundraiser.id}",
                extra={'fundraiser_id': fundraiser.id, 'goal_amount': str(fundraiser.goal_amount)}
            )
            return fundraiser

    def donate(self, user_context: Optional[UserContext], fundraiser_id: str, amount: Any,
               donor_name: Optional[str] = None, is_anonymous: bool = False) -> DonationResult:
        """
        Record a donation and raise the campaign total atomically.

        Args:
            user_context: Donating user, None for a guest donation
            fundraiser_id: Funded campaign
            amount: Donated amount, normalized to cents
            donor_name: Displayed name, replaced by Anonymous when is_anonymous
            is_anonymous: Hide the donor name

        Returns:
            DonationResult with the updated fundraiser and the donation row

        Raises:
            ValidationError: Bad amount or name, or the campaign is not active
            NotFoundError: Unknown fundraiser
        """
        with tracer.start_as_current_span("fundraisers.donate") as span:
            span.set_attributes(self._span_attributes(
                user_context, **{"fundraiser.id": fundraiser_id, "donation.anonymous": is_anonymous}
            ))

            raise_for_errors(validate_donation(amount, donor_name, is_anonymous), "Invalid donation")
            value = parse_amount(amount)

            def record_donation(repo: Repository) -> DonationResult:
                fundraiser = self._load(Collections.FUNDRAISERS, Fundraiser, fundraiser_id,
                                        "Fundraiser", repo)
                if not fundraiser.accepts_donations():
                    raise ValidationError(
                        f"Fundraiser is not accepting donations (status: {fundraiser.status})",
                        errors=[f"Fundraiser {fundraiser_id} is {fundraiser.status}"]
                    )

                donation = self._build(
                    Donation,
                    fundraiser_id=fundraiser_id,
                    donor_user_id=user_context.user_id if user_context else None,
                    donor_name=resolve_donor_name(donor_name, is_anonymous),
                    amount=value,
                    is_anonymous=is_anonymous
                )
                document = repo.insert(Collections.DONATIONS, donation.to_document())

                updated = repo.update(
                    Collections.FUNDRAISERS,
                    fundraiser_id,
                    guard={"status": FundraiserStatus.ACTIVE.value},
                    increments={"raised_amount": value}
                )
                if updated is None:
                    raise ValidationError(
                        "Fundraiser closed before the donation was recorded",
                        errors=[f"Fundraiser {fundraiser_id} is no longer active"]
                    )

                return DonationResult(
                    fundraiser=Fundraiser.from_document(updated),
                    donation=Donation.from_document(document)
                )

            result = self.repository.with_transaction(record_donation)

            span.set_attribute("donation.id", result.donation.id)
            logger.info(
                f"Donation of {value} recorded for fundraiser {fundraiser_id}",
                extra={
                    'fundraiser_id': fundraiser_id,
                    'donation_id': result.donation.id,
                    'amount': str(value),
                    'raised_amount': str(result.fundraiser.raised_amount)
                }
            )
            return result

    def set_status(self, user_context: UserContext, fundraiser_id: str, new_status: str) -> Fundraiser:
        """Complete or cancel an active campaign. Admin only."""
        with tracer.start_as_current_span("fundraisers.set_status") as span:
            span.set_attributes(self._span_attributes(
                user_context, **{"fundraiser.id": fundraiser_id, "fundraiser.new_status": new_status}
            ))

            self._require_admin(user_context, "fundraisers.set_status")
            target = self._status(FundraiserStatus, new_status, "fundraiser status")
            fundraiser = self.get_fundraiser(fundraiser_id)

            if not validate_fundraiser_transition(fundraiser.status, target).is_valid:
                raise InvalidTransitionError("fundraiser", fundraiser.status, target.value)

            updated = self.repository.update(
                Collections.FUNDRAISERS,
                fundraiser_id,
                {"status": target.value},
                guard={"status": fundraiser.status}
            )
            if updated is None:
                raise InvalidTransitionError("fundraiser", fundraiser.status, target.value,
                                             "Fundraiser was modified concurrently")

            logger.info(
                f"Fundraiser {fundraiser_id} moved to {target.value}",
                extra={'fundraiser_id': fundraiser_id, 'status': target.value}
            )
            return Fundraiser.from_document(updated)

    def get_fundraiser(self, fundraiser_id: str) -> Fundraiser:
        return self._load(Collections.FUNDRAISERS, Fundraiser, fundraiser_id, "Fundraiser")

    def list_active_fundraisers(self) -> List[Fundraiser]:
        documents = self.repository.list(
            Collections.FUNDRAISERS,
            {"status": FundraiserStatus.ACTIVE.value},
            NEWEST_FIRST
        )
        return [Fundraiser.from_document(doc) for doc in documents]

    def list_donations_for_user(self, user_context: UserContext) -> DonorHistory:
        """The caller's donations, newest first, with the total donated."""
        documents = self.repository.list(
            Collections.DONATIONS,
            {"donor_user_id": user_context.user_id},
            [("donation_date", DESCENDING)]
        )
        donations = [Donation.from_document(doc) for doc in documents]
        total = to_money(sum((d.amount for d in donations), Decimal("0.00")))
        return DonorHistory(donations=donations, total=total)

    def verify_totals(self, fundraiser_id: str) -> TotalsReport:
        """Check raised_amount == sum of donations for one campaign."""
        fundraiser = self.get_fundraiser(fundraiser_id)
        documents = self.repository.list(Collections.DONATIONS, {"fundraiser_id": fundraiser_id})
        report = compute_totals(fundraiser, [Donation.from_document(doc) for doc in documents])

        if not report.is_consistent:
            logger.error(
                f"Donation ledger inconsistent for fundraiser {fundraiser_id}",
                extra={
                    'fundraiser_id': fundraiser_id,
                    'raised_amount': str(report.raised_amount),
                    'donations_total': str(report.donations_total)
                }
            )
        return report
