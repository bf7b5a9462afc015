# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Concurrency tests for the atomic commands.

Commands race from a thread pool against one shared repository; the ledger
and capacity checks must hold no matter how the threads interleave.
"""

import concurrent.futures
from decimal import Decimal

import pytest

from relief_api.domain.errors import (
    CallClosedError,
    DuplicateApplicationError,
    InsufficientInventoryError
)

WORKERS = 16


def _race(fn, arguments):
    """Run fn once per argument concurrently; return (results, errors)."""
    results, errors = [], []
    with concurrent.futures.ThreadPoolExecutor(max_workers=WORKERS) as executor:
        futures = [executor.submit(fn, argument) for argument in arguments]
        for future in concurrent.futures.as_completed(futures):
            try:
                results.append(future.result())
            except Exception as e:
                errors.append(e)
    return results, errors


class TestConcurrentAllocations:
    """Inventory never goes negative under contention."""

    def test_allocations_never_exceed_baseline(self, resource_ledger, admin_context, pending_request):
        tents = resource_ledger.add_resource(admin_context, "Family tents", "Shelter", 10)

        results, errors = _race(
            lambda _: resource_ledger.allocate(admin_context, tents.id, pending_request.id, 3),
            range(8)
        )

        assert len(results) == 3
        assert len(errors) == 5
        assert all(isinstance(e, InsufficientInventoryError) for e in errors)

        report = resource_ledger.verify_balance(tents.id)
        assert report.quantity == 1
        assert report.allocated_total == 9
        assert report.is_balanced


class TestConcurrentApplications:
    """One application per volunteer and call."""

    def test_duplicate_applies_yield_one_application(self, call_manager, admin_context, user_context, volunteer,
                                                     active_call):
        results, errors = _race(lambda _: call_manager.apply(user_context, active_call.id), range(10))

        assert len(results) == 1
        assert len(errors) == 9
        assert all(isinstance(e, DuplicateApplicationError) for e in errors)
        assert len(call_manager.list_applications_for_call(admin_context, active_call.id)) == 1


class TestConcurrentAssignments:
    """Assignments never overfill a call."""

    def test_single_slot_call_closes_once(self, call_manager, admin_context, make_volunteer):
        call = call_manager.create_call(admin_context, "Landslide", "Petropolis", 1)
        application_ids = []
        for index in range(6):
            volunteer = make_volunteer(f"volunteer-{index}")
            application = call_manager.apply(admin_context, call.id, volunteer.id)
            call_manager.review(admin_context, application.id, "accepted")
            application_ids.append(application.id)

        results, errors = _race(
            lambda application_id: call_manager.review(admin_context, application_id, "assigned"),
            application_ids
        )

        assert len(results) == 1
        assert results[0].call_closed
        assert all(isinstance(e, CallClosedError) for e in errors)

        capacity = call_manager.get_capacity(call.id)
        assert capacity.assigned_count == 1
        assert capacity.call.status == "closed"

    @pytest.mark.parametrize("needed", [2, 3])
    def test_assigned_count_never_exceeds_needed(self, call_manager, admin_context, make_volunteer, needed):
        call = call_manager.create_call(admin_context, "Flood", "Lajeado", needed)
        application_ids = []
        for index in range(needed + 4):
            volunteer = make_volunteer(f"volunteer-{index}")
            application = call_manager.apply(admin_context, call.id, volunteer.id)
            call_manager.review(admin_context, application.id, "accepted")
            application_ids.append(application.id)

        results, errors = _race(
            lambda application_id: call_manager.review(admin_context, application_id, "assigned"),
            application_ids
        )

        assert len(results) == needed
        assert sum(1 for result in results if result.call_closed) == 1
        assert len(errors) == 4
        assert call_manager.get_capacity(call.id).assigned_count == needed


class TestConcurrentDonations:
    """Campaign totals always match the donation ledger."""

    def test_totals_consistent(self, fundraiser_ledger, admin_context, user_context):
        fundraiser = fundraiser_ledger.create_fundraiser(admin_context, "Shelter kits", "5000")

        amounts = [Decimal("10.10"), Decimal("0.01"), Decimal("99.99"), Decimal("25")] * 5
        results, errors = _race(
            lambda amount: fundraiser_ledger.donate(user_context, fundraiser.id, amount, "Ana"),
            amounts
        )

        assert not errors
        assert len(results) == len(amounts)

        report = fundraiser_ledger.verify_totals(fundraiser.id)
        assert report.raised_amount == Decimal("675.50")
        assert report.donation_count == 20
        assert report.is_consistent
