# SPDX-License-Identifier: Apache-2.0

"""
Fundraiser and donation endpoints.

Donations are open to guests; a signed-in donor is linked to the donation
through the token subject.
"""

from flask import current_app, jsonify, g
from flask_openapi3 import APIBlueprint, Tag

from ..domain.fundraising import funding_progress
from ..middleware.auth import optional_auth, require_auth
from ..models.requests import (
    CreateFundraiserBody,
    DonateBody,
    FundraiserPath,
    FundraiserStatusBody
)
from . import current_user, dump, enum_value, hal_collection, hal_entity

fundraisers_tag = Tag(name="Fundraisers", description="Fundraising campaigns and donations")
fundraisers_bp = APIBlueprint(
    'fundraisers',
    __name__,
    url_prefix='/api/fundraisers',
    abp_tags=[fundraisers_tag]
)


@fundraisers_bp.post('')
@require_auth
def create_fundraiser(body: CreateFundraiserBody):
    """Start a fundraising campaign (admin)."""
    fundraiser = current_app.fundraiser_ledger.create_fundraiser(
        current_user(),
        body.title,
        body.goal_amount,
        description=body.description,
        start_date=body.start_date,
        end_date=body.end_date
    )
    return jsonify(hal_entity(fundraiser, 'fundraiser')), 201


@fundraisers_bp.get('')
@require_auth
def list_active_fundraisers():
    """List active campaigns, newest first."""
    fundraisers = current_app.fundraiser_ledger.list_active_fundraisers()
    return jsonify(hal_collection(fundraisers, 'fundraiser', '/api/fundraisers'))


@fundraisers_bp.get('/donations/mine')
@require_auth
def list_my_donations():
    """The caller's donation history and total."""
    history = current_app.fundraiser_ledger.list_donations_for_user(current_user())
    return jsonify(hal_collection(
        history.donations, 'donation', '/api/fundraisers/donations/mine',
        extra={'total_donated': str(history.total)}
    ))


@fundraisers_bp.get('/<fundraiser_id>')
@require_auth
def get_fundraiser(path: FundraiserPath):
    fundraiser = current_app.fundraiser_ledger.get_fundraiser(path.fundraiser_id)
    response = hal_entity(fundraiser, 'fundraiser')
    response['progress_percent'] = str(funding_progress(fundraiser))
    return jsonify(response)


@fundraisers_bp.post('/<fundraiser_id>/donations')
@optional_auth
def donate(path: FundraiserPath, body: DonateBody):
    """Donate to an active campaign."""
    result = current_app.fundraiser_ledger.donate(
        g.user_context,
        path.fundraiser_id,
        body.amount,
        donor_name=body.donor_name or None,
        is_anonymous=body.is_anonymous
    )
    hal = current_app.hal_formatter
    return jsonify({
        'fundraiser': hal.format_entity(dump(result.fundraiser), 'fundraiser', g.user_context),
        'donation': hal.format_entity(dump(result.donation), 'donation', g.user_context)
    }), 201


@fundraisers_bp.post('/<fundraiser_id>/status')
@require_auth
def set_fundraiser_status(path: FundraiserPath, body: FundraiserStatusBody):
    """Complete or cancel a campaign (admin)."""
    fundraiser = current_app.fundraiser_ledger.set_status(
        current_user(), path.fundraiser_id, enum_value(body.status)
    )
    return jsonify(hal_entity(fundraiser, 'fundraiser'))


@fundraisers_bp.get('/<fundraiser_id>/totals')
@require_auth
def get_fundraiser_totals(path: FundraiserPath):
    """Check raised_amount against the sum of recorded donations."""
    report = current_app.fundraiser_ledger.verify_totals(path.fundraiser_id)
    return jsonify({
        'fundraiser_id': report.fundraiser_id,
        'raised_amount': str(report.raised_amount),
        'donations_total': str(report.donations_total),
        'donation_count': report.donation_count,
        'is_consistent': report.is_consistent
    })
