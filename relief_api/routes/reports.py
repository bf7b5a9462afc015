# SPDX-License-Identifier: Apache-2.0

"""
Field report and admin dashboard endpoints.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

from ..middleware.auth import require_auth
from ..models.requests import ReportQuery, SubmitReportBody
from . import current_user, hal_collection, hal_entity

reports_tag = Tag(name="Reports", description="Field reports from assigned volunteers")
reports_bp = APIBlueprint(
    'reports',
    __name__,
    url_prefix='/api/reports',
    abp_tags=[reports_tag]
)

dashboard_tag = Tag(name="Dashboard", description="Admin statistics")
dashboard_bp = APIBlueprint(
    'dashboard',
    __name__,
    url_prefix='/api/dashboard',
    abp_tags=[dashboard_tag]
)


@reports_bp.post('')
@require_auth
def submit_report(body: SubmitReportBody):
    """File a report on a request assigned to the caller."""
    report = current_app.report_service.submit(current_user(), body.request_id, body.report)
    return jsonify(hal_entity(report, 'report')), 201


@reports_bp.get('')
@require_auth
def list_reports(query: ReportQuery):
    """List field reports, newest first (admin)."""
    reports = current_app.report_service.list_reports(current_user(), query.request_id)
    return jsonify(hal_collection(reports, 'report', '/api/reports'))


@dashboard_bp.get('/stats')
@require_auth
def get_dashboard_stats():
    return jsonify(current_app.dashboard_service.get_stats(current_user()))
