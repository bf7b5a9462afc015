# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the resource inventory ledger.
"""

import pytest

from relief_api.domain.errors import (
    InsufficientInventoryError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError
)
from relief_api.models.enums import Collections


@pytest.fixture
def water(resource_ledger, admin_context):
    return resource_ledger.add_resource(admin_context, "Drinking water", "Supplies", 10, unit="crates")


class TestAddResource:
    """Test inventory entries."""

    def test_baseline_equals_initial_quantity(self, water):
        assert water.quantity == 10
        assert water.baseline_quantity == 10
        assert water.unit == "crates"

    def test_add_requires_admin(self, resource_ledger, user_context):
        with pytest.raises(PermissionDeniedError):
            resource_ledger.add_resource(user_context, "Blankets", "Shelter", 5)

    @pytest.mark.parametrize("quantity", [-1, 2.5, "4", None])
    def test_add_rejects_bad_quantity(self, resource_ledger, admin_context, quantity):
        with pytest.raises(ValidationError):
            resource_ledger.add_resource(admin_context, "Blankets", "Shelter", quantity)

    def test_add_requires_name_and_category(self, resource_ledger, admin_context):
        with pytest.raises(ValidationError) as exc_info:
            resource_ledger.add_resource(admin_context, "", " ", 5)

        assert len(exc_info.value.errors) == 2


class TestAllocate:
    """Test allocation against victim requests."""

    def test_allocate_then_overdraw(self, resource_ledger, admin_context, water, pending_request):
        result = resource_ledger.allocate(admin_context, water.id, pending_request.id, 5)

        assert result.resource.quantity == 5
        assert result.allocation.quantity_allocated == 5
        assert result.allocation.allocated_by == admin_context.user_id
        assert result.allocation.request_id == pending_request.id

        with pytest.raises(InsufficientInventoryError) as exc_info:
            resource_ledger.allocate(admin_context, water.id, pending_request.id, 6)

        assert exc_info.value.available == 5
        assert resource_ledger.get_resource(water.id).quantity == 5
        assert len(resource_ledger.list_allocations(resource_id=water.id)) == 1

    def test_allocate_entire_balance(self, resource_ledger, admin_context, water, pending_request):
        result = resource_ledger.allocate(admin_context, water.id, pending_request.id, 10)

        assert result.resource.quantity == 0
        assert resource_ledger.verify_balance(water.id).is_balanced

    def test_balance_holds_after_allocations(self, resource_ledger, admin_context, water, pending_request):
        for quantity in (1, 2, 3):
            resource_ledger.allocate(admin_context, water.id, pending_request.id, quantity)

        report = resource_ledger.verify_balance(water.id)

        assert report.quantity == 4
        assert report.allocated_total == 6
        assert report.baseline_quantity == 10
        assert report.is_balanced

    @pytest.mark.parametrize("quantity", [0, -3, 1.5, True])
    def test_allocate_rejects_bad_quantity(self, resource_ledger, admin_context, water, pending_request, quantity):
        with pytest.raises(ValidationError):
            resource_ledger.allocate(admin_context, water.id, pending_request.id, quantity)

    def test_allocate_unknown_resource(self, resource_ledger, admin_context, pending_request):
        with pytest.raises(NotFoundError):
            resource_ledger.allocate(admin_context, "missing", pending_request.id, 1)

    def test_allocate_unknown_request(self, resource_ledger, admin_context, water):
        with pytest.raises(NotFoundError):
            resource_ledger.allocate(admin_context, water.id, "missing", 1)

        assert resource_ledger.get_resource(water.id).quantity == 10

    def test_allocate_to_rejected_request(self, resource_ledger, request_manager, admin_context,
                                          water, pending_request):
        request_manager.transition(admin_context, pending_request.id, "rejected")

        with pytest.raises(ValidationError):
            resource_ledger.allocate(admin_context, water.id, pending_request.id, 1)

    def test_allocate_requires_admin(self, resource_ledger, user_context, water, pending_request):
        with pytest.raises(PermissionDeniedError):
            resource_ledger.allocate(user_context, water.id, pending_request.id, 1)

    def test_failed_allocation_insert_rolls_back_decrement(self, resource_ledger, admin_context,
                                                           water, pending_request, monkeypatch):
        repository = resource_ledger.repository
        original_insert = repository.insert

        def failing_insert(collection, document):
            if collection == Collections.RESOURCE_ALLOCATIONS:
                raise RuntimeError("disk full")
            return original_insert(collection, document)

        monkeypatch.setattr(repository, "insert", failing_insert)

        with pytest.raises(RuntimeError):
            resource_ledger.allocate(admin_context, water.id, pending_request.id, 4)

        assert resource_ledger.get_resource(water.id).quantity == 10


class TestRestock:
    """Test restocking."""

    def test_restock_raises_quantity_and_baseline(self, resource_ledger, admin_context, water, pending_request):
        resource_ledger.allocate(admin_context, water.id, pending_request.id, 7)

        restocked = resource_ledger.restock(admin_context, water.id, 5)

        assert restocked.quantity == 8
        assert restocked.baseline_quantity == 15
        assert resource_ledger.verify_balance(water.id).is_balanced

    def test_restock_unknown_resource(self, resource_ledger, admin_context):
        with pytest.raises(NotFoundError):
            resource_ledger.restock(admin_context, "missing", 5)

    def test_restock_rejects_zero(self, resource_ledger, admin_context, water):
        with pytest.raises(ValidationError):
            resource_ledger.restock(admin_context, water.id, 0)


class TestQueries:
    """Test inventory reads."""

    def test_list_resources_by_name_and_category(self, resource_ledger, admin_context, water):
        resource_ledger.add_resource(admin_context, "Blankets", "Shelter", 40)
        resource_ledger.add_resource(admin_context, "Canned food", "Supplies", 100)

        assert [r.name for r in resource_ledger.list_resources()] == ["Blankets", "Canned food", "Drinking water"]
        assert [r.name for r in resource_ledger.list_resources("Supplies")] == ["Canned food", "Drinking water"]

    def test_list_allocations_by_request(self, resource_ledger, request_manager, admin_context,
                                         user_context, water, pending_request):
        other_request = request_manager.submit(user_context, "Guaiba", "Shelter needs drinking water")
        resource_ledger.allocate(admin_context, water.id, pending_request.id, 2)
        resource_ledger.allocate(admin_context, water.id, other_request.id, 3)

        allocations = resource_ledger.list_allocations(request_id=other_request.id)

        assert [a.quantity_allocated for a in allocations] == [3]
