# SPDX-License-Identifier: Apache-2.0

"""
Resource inventory ledger domain logic.

The ledger conserves quantity: for every resource, the available balance
plus everything allocated from it equals its baseline.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from ..models.entities import Resource, ResourceAllocation
from .validation import ValidationResult


@dataclass
class BalanceReport:
    """Ledger check for one resource."""
    resource_id: str
    quantity: int
    allocated_total: int
    baseline_quantity: int

    @property
    def is_balanced(self) -> bool:
        return self.quantity + self.allocated_total == self.baseline_quantity


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_quantity(quantity: Any, label: str = "Quantity") -> ValidationResult:
    """Validate a strictly positive integer quantity."""
    errors = []

    if not _is_int(quantity):
        errors.append(f"{label} must be an integer")
    elif quantity <= 0:
        errors.append(f"{label} must be greater than zero")

    return ValidationResult.from_errors(errors)


def validate_new_resource(
    name: Optional[str],
    category: Optional[str],
    quantity: Any,
    unit: Optional[str] = None
) -> ValidationResult:
    """
    Validate a new inventory item.

    Args:
        name: Resource name
        category: Resource category
        quantity: Initial quantity (becomes the baseline)
        unit: Unit of measure

    Returns:
        ValidationResult with validation status and errors
    """
    errors = []

    if not name or not name.strip():
        errors.append("Resource name is required")

    if not category or not category.strip():
        errors.append("Resource category is required")

    if not _is_int(quantity):
        errors.append("Quantity must be an integer")
    elif quantity < 0:
        errors.append("Quantity cannot be negative")

    if unit is not None and len(unit) > 50:
        errors.append("Unit cannot exceed 50 characters")

    return ValidationResult.from_errors(errors)


def has_sufficient_quantity(resource: Resource, quantity: int) -> bool:
    """Check the requested quantity against the available balance."""
    return quantity <= resource.quantity


def compute_balance(resource: Resource, allocations: Iterable[ResourceAllocation]) -> BalanceReport:
    """Compute the ledger check for a resource and its allocations."""
    allocated_total = sum(
        a.quantity_allocated for a in allocations if a.resource_id == resource.id
    )
    return BalanceReport(
        resource_id=resource.id,
        quantity=resource.quantity,
        allocated_total=allocated_total,
        baseline_quantity=resource.baseline_quantity
    )
