# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Every command returns the post-mutation state with state-dependent affordance links.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from ..models.entities import UserContext
from ..models.enums import (
    ApplicationStatus,
    FundraiserStatus,
    RequestStatus,
    VolunteerCallStatus
)
from ..models.responses import HalLink

PROBLEM_BASE = "https://api.relief.local/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")

    def build_action_link(
        self,
        resource_path: str,
        action: str,
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource."""
        return self.build_link(
            f"{resource_path}/{action}",
            method=method,
            content_type="application/json",
            title=title or action.title()
        )


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on role and state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def _base(self, path: str, collection: str) -> Dict[str, HalLink]:
        return {
            'self': self.link_builder.build_self_link(path),
            'collection': self.link_builder.build_collection_link(collection)
        }

    def build_request_affordances(self, request: Dict[str, Any], user_context: UserContext) -> Dict[str, HalLink]:
        """Links for a victim request."""
        base_path = f"/api/requests/{request['id']}"
        links = self._base(base_path, "/api/requests")
        status = request.get('status')

        if status == RequestStatus.PENDING.value and request.get('user_id') == user_context.user_id:
            links['revise'] = self.link_builder.build_link(
                base_path, method="PATCH", content_type="application/json", title="Revise request"
            )

        if user_context.is_admin() and status in (
            RequestStatus.PENDING.value, RequestStatus.APPROVED.value, RequestStatus.IN_PROGRESS.value
        ):
            links['transition'] = self.link_builder.build_action_link(
                base_path, "transition", title="Change request status"
            )
            links['allocate'] = self.link_builder.build_link(
                "/api/resources", title="Allocate resources"
            )

        if status in (RequestStatus.IN_PROGRESS.value, RequestStatus.COMPLETED.value):
            links['reports'] = self.link_builder.build_link(
                f"/api/reports?request_id={request['id']}", title="Field reports"
            )

        return links

    def build_call_affordances(self, call: Dict[str, Any], user_context: UserContext) -> Dict[str, HalLink]:
        """Links for a volunteer call."""
        base_path = f"/api/calls/{call['id']}"
        links = self._base(base_path, "/api/calls")

        if call.get('status') == VolunteerCallStatus.ACTIVE.value:
            links['apply'] = self.link_builder.build_action_link(base_path, "applications", title="Apply")
            if user_context.is_admin():
                links['close'] = self.link_builder.build_action_link(base_path, "close", title="Close call")

        if user_context.is_admin():
            links['applications'] = self.link_builder.build_link(
                f"{base_path}/applications", title="Applications"
            )

        return links

    def build_application_affordances(self, application: Dict[str, Any],
                                      user_context: UserContext) -> Dict[str, HalLink]:
        """Links for a call application."""
        base_path = f"/api/applications/{application['id']}"
        links = {
            'self': self.link_builder.build_self_link(base_path),
            'call': self.link_builder.build_link(f"/api/calls/{application['call_id']}", title="Call")
        }

        if user_context.is_admin() and application.get('status') in (
            ApplicationStatus.PENDING.value, ApplicationStatus.ACCEPTED.value
        ):
            links['review'] = self.link_builder.build_action_link(base_path, "review", title="Review application")

        return links

    def build_resource_affordances(self, resource: Dict[str, Any], user_context: UserContext) -> Dict[str, HalLink]:
        """Links for an inventory item."""
        base_path = f"/api/resources/{resource['id']}"
        links = self._base(base_path, "/api/resources")
        links['allocations'] = self.link_builder.build_link(f"{base_path}/allocations", title="Allocations")

        if user_context.is_admin():
            if resource.get('quantity', 0) > 0:
                links['allocate'] = self.link_builder.build_action_link(base_path, "allocations", title="Allocate")
            links['restock'] = self.link_builder.build_action_link(base_path, "restock", title="Restock")

        return links

    def build_fundraiser_affordances(self, fundraiser: Dict[str, Any],
                                     user_context: UserContext) -> Dict[str, HalLink]:
        """Links for a fundraising campaign."""
        base_path = f"/api/fundraisers/{fundraiser['id']}"
        links = self._base(base_path, "/api/fundraisers")

        if fundraiser.get('status') == FundraiserStatus.ACTIVE.value:
            links['donate'] = self.link_builder.build_action_link(base_path, "donations", title="Donate")
            if user_context is not None and user_context.is_admin():
                links['set_status'] = self.link_builder.build_action_link(
                    base_path, "status", title="Complete or cancel"
                )

        return links


class HalResponseBuilder:
    """HAL response builder for resources, collections and problems."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    def build_resource_response(
        self,
        data: Dict[str, Any],
        resource_type: str,
        user_context: UserContext
    ) -> Dict[str, Any]:
        """Build a HAL resource response with appropriate affordance links."""
        response = dict(data)
        builders = {
            'request': self.affordance_builder.build_request_affordances,
            'call': self.affordance_builder.build_call_affordances,
            'application': self.affordance_builder.build_application_affordances,
            'resource': self.affordance_builder.build_resource_affordances,
            'fundraiser': self.affordance_builder.build_fundraiser_affordances
        }

        if resource_type in builders:
            links = builders[resource_type](data, user_context)
        else:
            links = self._record_links(data, resource_type)

        response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return response

    def _record_links(self, data: Dict[str, Any], resource_type: str) -> Dict[str, HalLink]:
        """Links for ledger rows and records without their own workflow."""
        if resource_type == 'allocation':
            return {
                'self': self.link_builder.build_self_link(f"/api/resources/{data['resource_id']}/allocations"),
                'request': self.link_builder.build_link(f"/api/requests/{data['request_id']}", title="Victim request")
            }
        if resource_type == 'donation':
            return {'fundraiser': self.link_builder.build_link(f"/api/fundraisers/{data['fundraiser_id']}", title="Fundraiser")}
        if resource_type == 'report':
            return {
                'self': self.link_builder.build_self_link(f"/api/reports?request_id={data['request_id']}"),
                'request': self.link_builder.build_link(f"/api/requests/{data['request_id']}", title="Victim request")
            }
        return {'self': self.link_builder.build_self_link(f"/api/{resource_type}s/{data['id']}")}

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        collection_path: str
    ) -> Dict[str, Any]:
        """Build a HAL collection response."""
        return {
            'total': len(items),
            '_links': {'self': self.link_builder.build_self_link(collection_path).model_dump(exclude_none=True)},
            '_embedded': {
                'items': items
            }
        }

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors
        if details:
            error_response['details'] = details

        links = {'self': self.link_builder.build_link(instance)}
        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link("/openapi/openapi.json", title="API schema")

        error_response['_links'] = {rel: link.model_dump(exclude_none=True) for rel, link in links.items()}
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_entity(self, data: Dict[str, Any], resource_type: str, user_context: UserContext) -> Dict[str, Any]:
        """Format one entity with HAL links."""
        return self.builder.build_resource_response(data, resource_type, user_context)

    def format_collection(
        self,
        items: List[Dict[str, Any]],
        resource_type: str,
        collection_path: str,
        user_context: UserContext
    ) -> Dict[str, Any]:
        """Format a collection, adding HAL links to each item."""
        formatted = [self.format_entity(item, resource_type, user_context) for item in items]
        return self.builder.build_collection_response(formatted, collection_path)

    def format_error(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[str]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format a problem response."""
        return self.builder.build_error_response(
            error_type, title, status, detail, instance, validation_errors, details
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )
