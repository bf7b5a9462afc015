# SPDX-License-Identifier: Apache-2.0

"""
Resource Inventory Ledger.

Available quantity is a stored running balance. Every allocation
decrements it with a compare-and-swap on the balance and records the
allocation row in the same transaction, so quantity plus allocations
always equals the baseline.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from opentelemetry import trace
from pymongo import ASCENDING

from ..domain.errors import InsufficientInventoryError, NotFoundError, ValidationError
from ..domain.inventory import (
    BalanceReport,
    compute_balance,
    has_sufficient_quantity,
    validate_new_resource,
    validate_quantity
)
from ..domain.validation import raise_for_errors
from ..models.entities import Resource, ResourceAllocation, UserContext, VictimRequest
from ..models.enums import Collections, RequestStatus
from .manager import BaseManager
from .repository import NEWEST_FIRST, Repository

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


@dataclass
class AllocationResult:
    """Post-allocation state of the resource and the recorded allocation."""
    resource: Resource
    allocation: ResourceAllocation


class ResourceLedger(BaseManager):
    """Conserved-quantity ledger for relief inventory."""

    def add_resource(self, user_context: UserContext, name: str, category: str, quantity: int,
                     unit: Optional[str] = None) -> Resource:
        """Record a new inventory item; its quantity becomes the baseline. Admin only."""
        with tracer.start_as_current_span("resources.add") as span:
            span.set_attributes(self._span_attributes(user_context))

            self._require_admin(user_context, "resources.add")
            raise_for_errors(validate_new_resource(name, category, quantity, unit), "Invalid resource")

            resource = self._build(
                Resource,
                name=name,
                category=category,
                quantity=quantity,
                baseline_quantity=quantity,
                unit=self._optional_text(unit)
            )
            document = self.repository.insert(Collections.RESOURCES, resource.to_document())
            resource = Resource.from_document(document)

            span.set_attribute("resource.id", resource.id)
            logger.info(
                f"Resource added: {resource.id}",
                extra={'resource_id': resource.id, 'quantity': quantity}
            )
            return resource

    def allocate(self, user_context: UserContext, resource_id: str, request_id: str,
                 quantity: int) -> AllocationResult:
        """
        Allocate quantity from a resource to a victim request. Admin only.

        Args:
            user_context: Allocating admin (recorded as allocated_by)
            resource_id: Source resource
            request_id: Receiving victim request
            quantity: Units to allocate

        Returns:
            AllocationResult with the decremented resource and the allocation row

        Raises:
            PermissionDeniedError: Caller is not an admin
            ValidationError: Quantity is not a positive integer, or the request was rejected
            NotFoundError: Unknown resource or request
            InsufficientInventoryError: Quantity exceeds the available balance
        """
        with tracer.start_as_current_span("resources.allocate") as span:
            span.set_attributes(self._span_attributes(
                user_context,
                **{"resource.id": resource_id, "request.id": request_id, "allocation.quantity": quantity}
            ))

            self._require_admin(user_context, "resources.allocate")
            raise_for_errors(validate_quantity(quantity), "Invalid allocation")

            def apply_allocation(repo: Repository) -> AllocationResult:
                resource = self._load(Collections.RESOURCES, Resource, resource_id, "Resource", repo)
                request = self._load(Collections.VICTIM_REQUESTS, VictimRequest, request_id,
                                     "Victim request", repo)

                if request.status == RequestStatus.REJECTED.value:
                    raise ValidationError(
                        "Resources cannot be allocated to a rejected request",
                        errors=[f"Victim request {request_id} is rejected"]
                    )
                if not has_sufficient_quantity(resource, quantity):
                    raise InsufficientInventoryError(resource_id, quantity, resource.quantity)

                # Compare-and-swap on the available balance
                updated = repo.update(
                    Collections.RESOURCES,
                    resource_id,
                    guard={"quantity": {"$gte": quantity}},
                    increments={"quantity": -quantity}
                )
                if updated is None:
                    current = repo.get(Collections.RESOURCES, resource_id)
                    if current is None:
                        raise NotFoundError("Resource", resource_id)
                    raise InsufficientInventoryError(resource_id, quantity, current["quantity"])

                allocation = self._build(
                    ResourceAllocation,
                    resource_id=resource_id,
                    request_id=request_id,
                    quantity_allocated=quantity,
                    allocated_by=user_context.user_id
                )
                document = repo.insert(Collections.RESOURCE_ALLOCATIONS, allocation.to_document())

                return AllocationResult(
                    resource=Resource.from_document(updated),
                    allocation=ResourceAllocation.from_document(document)
                )

            result = self.repository.with_transaction(apply_allocation)

            span.set_attribute("resource.remaining", result.resource.quantity)
            logger.info(
                f"Allocated {quantity} of resource {resource_id} to request {request_id}",
                extra={
                    'resource_id': resource_id,
                    'request_id': request_id,
                    'quantity': quantity,
                    'remaining': result.resource.quantity,
                    'allocated_by': user_context.user_id
                }
            )
            return result

    def restock(self, user_context: UserContext, resource_id: str, amount: int) -> Resource:
        """
        Add stock to a resource. Admin only.

        Quantity and baseline rise together in one update.
        """
        with tracer.start_as_current_span("resources.restock") as span:
            span.set_attributes(self._span_attributes(
                user_context, **{"resource.id": resource_id, "restock.amount": amount}
            ))

            self._require_admin(user_context, "resources.restock")
            raise_for_errors(validate_quantity(amount, "Restock amount"), "Invalid restock")

            updated = self.repository.update(
                Collections.RESOURCES,
                resource_id,
                increments={"quantity": amount, "baseline_quantity": amount}
            )
            if updated is None:
                raise NotFoundError("Resource", resource_id)

            logger.info(
                f"Resource {resource_id} restocked by {amount}",
                extra={'resource_id': resource_id, 'amount': amount}
            )
            return Resource.from_document(updated)

    def get_resource(self, resource_id: str) -> Resource:
        return self._load(Collections.RESOURCES, Resource, resource_id, "Resource")

    def list_resources(self, category: Optional[str] = None) -> List[Resource]:
        """Inventory, optionally filtered by category."""
        filters = {"category": category} if category else {}
        documents = self.repository.list(Collections.RESOURCES, filters, [("name", ASCENDING)])
        return [Resource.from_document(doc) for doc in documents]

    def list_allocations(self, resource_id: Optional[str] = None,
                         request_id: Optional[str] = None) -> List[ResourceAllocation]:
        """Allocation rows, newest first."""
        filters = {}
        if resource_id:
            filters["resource_id"] = resource_id
        if request_id:
            filters["request_id"] = request_id

        documents = self.repository.list(Collections.RESOURCE_ALLOCATIONS, filters, NEWEST_FIRST)
        return [ResourceAllocation.from_document(doc) for doc in documents]

    def verify_balance(self, resource_id: str) -> BalanceReport:
        """Check quantity + allocations == baseline for one resource."""
        resource = self.get_resource(resource_id)
        report = compute_balance(resource, self.list_allocations(resource_id=resource_id))

        if not report.is_balanced:
            logger.error(
                f"Inventory ledger out of balance for resource {resource_id}",
                extra={
                    'resource_id': resource_id,
                    'quantity': report.quantity,
                    'allocated_total': report.allocated_total,
                    'baseline_quantity': report.baseline_quantity
                }
            )
        return report
