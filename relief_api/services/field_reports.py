# SPDX-License-Identifier: Apache-2.0

"""
Field reports filed by the volunteer working a victim request.
"""

import logging
from typing import List, Optional

from opentelemetry import trace
from pymongo import DESCENDING

from ..domain.errors import PermissionDeniedError, ValidationError
from ..domain.requests import ASSIGNED_STATES
from ..models.entities import Report, UserContext, VictimRequest
from ..models.enums import Collections
from .manager import BaseManager

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

MAX_REPORT_LENGTH = 5000


class FieldReportService(BaseManager):
    """Progress reports on assigned requests."""

    def submit(self, user_context: UserContext, request_id: str, report: str) -> Report:
        """
        File a report on a request.

        Only the user behind the request's assigned volunteer can report,
        and only while the request is in progress or completed.
        """
        with tracer.start_as_current_span("reports.submit") as span:
            span.set_attributes(self._span_attributes(user_context, **{"request.id": request_id}))

            if not report or not report.strip():
                raise ValidationError("Invalid report: Report text is required", errors=["Report text is required"])
            if len(report.strip()) > MAX_REPORT_LENGTH:
                raise ValidationError(
                    f"Invalid report: Report cannot exceed {MAX_REPORT_LENGTH} characters",
                    errors=[f"Report cannot exceed {MAX_REPORT_LENGTH} characters"]
                )

            request = self._load(Collections.VICTIM_REQUESTS, VictimRequest, request_id, "Victim request")
            if request.status not in [s.value for s in ASSIGNED_STATES]:
                raise ValidationError(
                    f"Reports can only be filed on assigned requests (status: {request.status})",
                    errors=[f"Victim request {request_id} is {request.status}"]
                )

            volunteer = self.repository.find_one(Collections.VOLUNTEERS, {"user_id": user_context.user_id})
            if volunteer is None or volunteer["id"] != request.assigned_volunteer_id:
                raise PermissionDeniedError("Only the assigned volunteer can report on this request")

            entry = self._build(
                Report,
                request_id=request_id,
                volunteer_id=volunteer["id"],
                user_id=user_context.user_id,
                report=report
            )
            entry = Report.from_document(self.repository.insert(Collections.REPORTS, entry.to_document()))

            logger.info(
                f"Field report filed for request {request_id}",
                extra={'report_id': entry.id, 'request_id': request_id, 'volunteer_id': volunteer["id"]}
            )
            return entry

    def list_reports(self, user_context: UserContext, request_id: Optional[str] = None) -> List[Report]:
        """Reports, newest first. Admin only."""
        self._require_admin(user_context, "reports.list")
        filters = {"request_id": request_id} if request_id else {}
        documents = self.repository.list(Collections.REPORTS, filters, [("report_date", DESCENDING)])
        return [Report.from_document(doc) for doc in documents]
