# SPDX-License-Identifier: Apache-2.0

"""
Resource inventory endpoints.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..middleware.auth import require_auth
from ..models.requests import (
    AddResourceBody,
    AllocateResourceBody,
    AllocationQuery,
    ResourcePath,
    RestockResourceBody
)
from . import current_user, hal_collection, hal_entity

resources_tag = Tag(name="Resources", description="Inventory and allocations")
resources_bp = APIBlueprint(
    'resources',
    __name__,
    url_prefix='/api/resources',
    abp_tags=[resources_tag]
)


@resources_bp.post('')
@require_auth
def add_resource(body: AddResourceBody):
    """Add a resource to the inventory (admin)."""
    resource = current_app.resource_ledger.add_resource(
        current_user(), body.name, body.category, body.quantity, body.unit
    )
    return jsonify(hal_entity(resource, 'resource')), 201


@resources_bp.get('')
@require_auth
def list_resources():
    """List resources by name."""
    resources = current_app.resource_ledger.list_resources()
    return jsonify(hal_collection(resources, 'resource', '/api/resources'))


@resources_bp.get('/allocations')
@require_auth
def list_allocations(query: AllocationQuery):
    """List allocations, optionally filtered by resource or victim request."""
    allocations = current_app.resource_ledger.list_allocations(query.resource_id, query.request_id)
    return jsonify(hal_collection(allocations, 'allocation', '/api/resources/allocations'))


@resources_bp.get('/<resource_id>')
@require_auth
def get_resource(path: ResourcePath):
    resource = current_app.resource_ledger.get_resource(path.resource_id)
    return jsonify(hal_entity(resource, 'resource'))


@resources_bp.post('/<resource_id>/allocations')
@require_auth
def allocate_resource(path: ResourcePath, body: AllocateResourceBody):
    """Allocate stock to a victim request (admin)."""
    result = current_app.resource_ledger.allocate(
        current_user(), path.resource_id, body.request_id, body.quantity
    )
    return jsonify({
        'resource': hal_entity(result.resource, 'resource'),
        'allocation': hal_entity(result.allocation, 'allocation')
    }), 201


@resources_bp.get('/<resource_id>/allocations')
@require_auth
def list_resource_allocations(path: ResourcePath):
    allocations = current_app.resource_ledger.list_allocations(resource_id=path.resource_id)
    return jsonify(hal_collection(
        allocations, 'allocation', f"/api/resources/{path.resource_id}/allocations"
    ))


@resources_bp.post('/<resource_id>/restock')
@require_auth
def restock_resource(path: ResourcePath, body: RestockResourceBody):
    """Add stock to a resource (admin)."""
    resource = current_app.resource_ledger.restock(current_user(), path.resource_id, body.amount)
    return jsonify(hal_entity(resource, 'resource'))


@resources_bp.get('/<resource_id>/balance')
@require_auth
def get_resource_balance(path: ResourcePath):
    """Check quantity plus allocations against the baseline."""
    report = current_app.resource_ledger.verify_balance(path.resource_id)
    return jsonify({
        'resource_id': report.resource_id,
        'quantity': report.quantity,
        'allocated_total': report.allocated_total,
        'baseline_quantity': report.baseline_quantity,
        'is_balanced': report.is_balanced
    })
