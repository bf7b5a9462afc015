# SPDX-License-Identifier: Apache-2.0

"""
Integration tests for the HTTP command surface.

Runs the full Flask application against the in-memory repository with
signed bearer tokens.
"""

import pytest

from relief_api.app import create_app
from relief_api.services.memory import InMemoryRepository


@pytest.fixture
def app():
    """Create test application."""
    application = create_app(
        config_overrides={
            'ENVIRONMENT': 'test',
            'OTEL_ENABLED': False,
            'JWT_SECRET': 'test-secret-key',
            'BASE_URL': 'http://localhost'
        },
        repository=InMemoryRepository()
    )
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    """Create test client."""
    with app.test_client() as client:
        yield client


def _headers(app, user_id, role="user", name=None):
    token = app.auth_service.generate_token(user_id, role, name=name)["access_token"]
    return {'Authorization': f"Bearer {token}", 'Content-Type': 'application/json'}


@pytest.fixture
def admin_headers(app):
    return _headers(app, "admin-1", "admin", "Coordinator")


@pytest.fixture
def user_headers(app):
    return _headers(app, "user-1", name="Ana Souza")


@pytest.fixture
def victim_headers(app):
    return _headers(app, "victim-1", name="Bruno Lima")


@pytest.fixture
def help_request(client, victim_headers):
    response = client.post('/api/requests', headers=victim_headers, json={
        'location': 'Rua das Flores 120, Canoas',
        'description': 'Family of four stranded on the second floor',
        'urgent_needs': 'Drinking water'
    })
    assert response.status_code == 201
    return response.get_json()


class TestHealth:
    """Test health endpoint."""

    def test_healthz(self, client):
        response = client.get('/api/healthz')

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['database']['backend'] == 'memory'
        assert data['_links']['self']['href'] == 'http://localhost/api/healthz'


class TestAuthentication:
    """Test bearer token handling."""

    def test_missing_token(self, client):
        response = client.get('/api/requests/mine')

        assert response.status_code == 401
        assert response.get_json()['type'].endswith('/authentication-required')

    def test_invalid_token(self, client):
        response = client.get('/api/requests/mine', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401
        assert response.get_json()['type'].endswith('/invalid-token')

    def test_skills_are_public(self, client):
        response = client.get('/api/volunteers/skills')

        assert response.status_code == 200
        assert 'First Aid' in response.get_json()['skills']


class TestRequestEndpoints:
    """Test victim request endpoints."""

    def test_submit_returns_hal_entity(self, help_request):
        assert help_request['status'] == 'pending'
        assert help_request['_links']['self']['href'].endswith(f"/api/requests/{help_request['id']}")
        assert help_request['_links']['revise']['method'] == 'PATCH'
        assert 'transition' not in help_request['_links']

    def test_submit_validation_error(self, client, victim_headers):
        response = client.post('/api/requests', headers=victim_headers, json={
            'location': 'Canoas', 'description': 'help'
        })

        assert response.status_code == 400
        data = response.get_json()
        assert data['type'].endswith('/validation-error')
        assert 'Description must be at least 10 characters' in data['errors']

    def test_malformed_body(self, client, victim_headers):
        response = client.post('/api/requests', headers=victim_headers, json={'location': 'Canoas'})

        assert response.status_code == 400
        assert response.get_json()['type'].endswith('/validation-error')

    def test_invalid_transition_is_conflict(self, client, admin_headers, help_request):
        response = client.post(f"/api/requests/{help_request['id']}/transition", headers=admin_headers,
                               json={'status': 'completed'})

        assert response.status_code == 409
        assert response.get_json()['type'].endswith('/invalid-transition')

    def test_transition_requires_admin(self, client, victim_headers, help_request):
        response = client.post(f"/api/requests/{help_request['id']}/transition", headers=victim_headers,
                               json={'status': 'approved'})

        assert response.status_code == 403

    def test_admin_sees_transition_affordance(self, client, admin_headers, help_request):
        response = client.get(f"/api/requests/{help_request['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert 'transition' in response.get_json()['_links']

    def test_unknown_request(self, client, admin_headers):
        response = client.get('/api/requests/missing', headers=admin_headers)

        assert response.status_code == 404
        assert response.get_json()['details']['entity_id'] == 'missing'

    def test_list_mine(self, client, victim_headers, help_request):
        response = client.get('/api/requests/mine', headers=victim_headers)

        data = response.get_json()
        assert data['total'] == 1
        assert data['_embedded']['items'][0]['id'] == help_request['id']


class TestCallWorkflow:
    """Test the call and application workflow over HTTP."""

    def test_assignment_closes_single_slot_call(self, app, client, admin_headers, user_headers):
        response = client.post('/api/calls', headers=admin_headers, json={
            'disaster_name': 'Wildfire', 'disaster_location': 'Chapada', 'volunteers_needed': 1
        })
        assert response.status_code == 201
        call_id = response.get_json()['id']

        assert client.put('/api/volunteers/me', headers=user_headers,
                          json={'skills': ['First Aid']}).status_code == 200
        response = client.post(f"/api/calls/{call_id}/applications", headers=user_headers, json={})
        assert response.status_code == 201
        application_id = response.get_json()['id']

        duplicate = client.post(f"/api/calls/{call_id}/applications", headers=user_headers, json={})
        assert duplicate.status_code == 409
        assert duplicate.get_json()['type'].endswith('/duplicate-application')

        client.post(f"/api/applications/{application_id}/review", headers=admin_headers,
                    json={'status': 'accepted'})
        response = client.post(f"/api/applications/{application_id}/review", headers=admin_headers,
                               json={'status': 'assigned'})

        data = response.get_json()
        assert data['call_closed'] is True
        assert data['call']['status'] == 'closed'
        assert data['application']['status'] == 'assigned'

        second_headers = _headers(app, "user-2")
        client.put('/api/volunteers/me', headers=second_headers, json={'skills': ['Logistics']})
        late = client.post(f"/api/calls/{call_id}/applications", headers=second_headers, json={})
        assert late.status_code == 409
        assert late.get_json()['type'].endswith('/call-closed')

        capacity = client.get(f"/api/calls/{call_id}", headers=admin_headers).get_json()
        assert capacity['assigned_count'] == 1
        assert capacity['remaining_slots'] == 0

    def test_volunteer_applications_include_call_summary(self, client, admin_headers, user_headers):
        call_id = client.post('/api/calls', headers=admin_headers, json={
            'disaster_name': 'Flood', 'disaster_location': 'Blumenau', 'volunteers_needed': 4,
            'priority': 'critical'
        }).get_json()['id']
        volunteer_id = client.put('/api/volunteers/me', headers=user_headers,
                                  json={'skills': ['Rescue Operations']}).get_json()['id']
        client.post(f"/api/calls/{call_id}/applications", headers=user_headers, json={})

        response = client.get(f"/api/volunteers/{volunteer_id}/applications", headers=user_headers)

        item = response.get_json()['_embedded']['items'][0]
        assert item['call']['disaster_name'] == 'Flood'
        assert item['call']['priority'] == 'critical'

    def test_bad_priority_is_rejected(self, client, admin_headers):
        response = client.post('/api/calls', headers=admin_headers, json={
            'disaster_name': 'Flood', 'disaster_location': 'Blumenau', 'volunteers_needed': 4,
            'priority': 'urgent'
        })

        assert response.status_code == 400


class TestResourceEndpoints:
    """Test inventory endpoints."""

    def test_allocate_then_overdraw(self, client, admin_headers, help_request):
        resource_id = client.post('/api/resources', headers=admin_headers, json={
            'name': 'Drinking water', 'category': 'Supplies', 'quantity': 10
        }).get_json()['id']

        response = client.post(f"/api/resources/{resource_id}/allocations", headers=admin_headers,
                               json={'request_id': help_request['id'], 'quantity': 5})
        assert response.status_code == 201
        assert response.get_json()['resource']['quantity'] == 5

        response = client.post(f"/api/resources/{resource_id}/allocations", headers=admin_headers,
                               json={'request_id': help_request['id'], 'quantity': 6})
        assert response.status_code == 409
        assert response.get_json()['details']['available'] == 5

        balance = client.get(f"/api/resources/{resource_id}/balance", headers=admin_headers).get_json()
        assert balance == {
            'resource_id': resource_id,
            'quantity': 5,
            'allocated_total': 5,
            'baseline_quantity': 10,
            'is_balanced': True
        }


class TestFundraiserEndpoints:
    """Test fundraising endpoints."""

    def test_guest_and_signed_in_donations(self, client, admin_headers, user_headers):
        fundraiser_id = client.post('/api/fundraisers', headers=admin_headers, json={
            'title': 'Rebuild Vale do Taquari', 'goal_amount': '1000'
        }).get_json()['id']

        guest = client.post(f"/api/fundraisers/{fundraiser_id}/donations", json={
            'amount': '50.00', 'donor_name': 'Visitor'
        })
        assert guest.status_code == 201
        assert guest.get_json()['fundraiser']['raised_amount'] == '50.00'
        assert 'set_status' not in guest.get_json()['fundraiser']['_links']

        signed_in = client.post(f"/api/fundraisers/{fundraiser_id}/donations", headers=user_headers, json={
            'amount': '25', 'donor_name': 'Ana Souza', 'is_anonymous': True
        })
        assert signed_in.get_json()['donation']['donor_name'] == 'Anonymous'

        history = client.get('/api/fundraisers/donations/mine', headers=user_headers).get_json()
        assert history['total'] == 1
        assert history['total_donated'] == '25.00'

        totals = client.get(f"/api/fundraisers/{fundraiser_id}/totals", headers=admin_headers).get_json()
        assert totals['raised_amount'] == '75.00'
        assert totals['is_consistent'] is True

        fundraiser = client.get(f"/api/fundraisers/{fundraiser_id}", headers=user_headers).get_json()
        assert fundraiser['progress_percent'] == '7.50'

    def test_invalid_token_rejected_for_donation(self, client):
        response = client.post('/api/fundraisers/any/donations',
                               headers={'Authorization': 'Bearer broken'},
                               json={'amount': '5', 'donor_name': 'x'})

        assert response.status_code == 401


class TestProfileEndpoints:
    """Test profile endpoints."""

    def test_profile_created_on_first_read(self, client, user_headers):
        response = client.get('/api/profiles/me', headers=user_headers)

        assert response.status_code == 200
        assert response.get_json()['name'] == 'Ana Souza'
        assert response.get_json()['role'] == 'user'

    def test_admin_profile_reports_admin_role(self, client, admin_headers):
        response = client.get('/api/profiles/me', headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()['role'] == 'admin'

    def test_role_cannot_be_self_assigned(self, client, user_headers):
        client.get('/api/profiles/me', headers=user_headers)

        response = client.patch('/api/profiles/user-1', headers=user_headers, json={'role': 'admin'})

        assert response.status_code == 403


class TestDashboardEndpoint:
    """Test admin statistics endpoint."""

    def test_stats(self, client, admin_headers, help_request):
        response = client.get('/api/dashboard/stats', headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()['requests_by_status']['pending'] == 1

    def test_stats_forbidden_for_users(self, client, user_headers):
        assert client.get('/api/dashboard/stats', headers=user_headers).status_code == 403


class TestTracing:
    """Test request instrumentation."""

    def test_trace_id_header_and_problem_type(self):
        traced = create_app(
            config_overrides={
                'ENVIRONMENT': 'test',
                'OTEL_ENABLED': True,
                'JWT_SECRET': 'test-secret-key',
                'BASE_URL': 'http://localhost'
            },
            repository=InMemoryRepository()
        )
        traced.config['TESTING'] = True

        with traced.test_client() as client:
            response = client.get('/api/requests/mine')

        assert response.status_code == 401
        assert len(response.headers['X-Trace-Id']) == 32
