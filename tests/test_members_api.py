"""Tests for the member endpoints."""

from datetime import date, timedelta

import pytest


def enroll(admin_client, catalog, name='Budi', package='Bulanan', phone='0812000001', **extra):
    body = {
        'name': name,
        'phone': phone,
        'package_id': catalog[package],
        'payment_method_id': catalog['Cash'],
        **extra,
    }
    return admin_client.post('/api/members/with-transaction', json=body)


@pytest.fixture
def member_id(admin_client, catalog):
    resp = enroll(admin_client, catalog)
    assert resp.status_code == 201
    return resp.get_json()['member']['id']


# ── Creation ──────────────────────────────────────────────────────────────────

class TestCreateMember:
    def test_create_without_payment(self, admin_client):
        resp = admin_client.post('/api/members', json={
            'name': 'Tono', 'membership_type': 'Bulanan',
            'start_date': '2024-01-31', 'duration_months': 1,
        })
        assert resp.status_code == 201
        assert resp.get_json()['membership_period']['end_date'].startswith('2024-02-29')

    def test_missing_fields(self, admin_client):
        resp = admin_client.post('/api/members', json={'name': 'Tono'})
        assert resp.status_code == 400

    def test_negative_duration(self, admin_client):
        resp = admin_client.post('/api/members', json={
            'name': 'Tono', 'membership_type': 'Bulanan',
            'start_date': '2024-01-01', 'duration_months': -1,
        })
        assert resp.status_code == 400

    def test_fractional_duration_rejected(self, admin_client):
        resp = admin_client.post('/api/members', json={
            'name': 'Tono', 'membership_type': 'Bulanan',
            'start_date': '2024-01-31', 'duration_months': 1.5,
        })
        assert resp.status_code == 400
        assert 'duration_months' in resp.get_json()['error']

    def test_whole_float_duration_accepted(self, admin_client):
        resp = admin_client.post('/api/members', json={
            'name': 'Tono', 'membership_type': 'Bulanan',
            'start_date': '2024-01-31', 'duration_months': 1.0,
        })
        assert resp.status_code == 201

    def test_bad_date(self, admin_client):
        resp = admin_client.post('/api/members', json={
            'name': 'Tono', 'membership_type': 'Bulanan',
            'start_date': 'yesterday', 'duration_months': 1,
        })
        assert resp.status_code == 400
        assert 'start_date' in resp.get_json()['error']


class TestEnrollWithTransaction:
    def test_new_member_charged_package_price(self, admin_client, catalog):
        resp = enroll(admin_client, catalog)
        data = resp.get_json()
        assert resp.status_code == 201
        assert data['is_existing_member'] is False
        assert data['transaction']['amount'] == 150000

    def test_duplicate_phone_regular_package_conflicts(self, admin_client, catalog, member_id):
        resp = enroll(admin_client, catalog, name='Someone Else')
        data = resp.get_json()
        assert resp.status_code == 409
        assert data['action'] == 'redirect_to_members'
        assert data['member_id'] == member_id
        assert data['search_query'] == '0812000001'

    def test_duplicate_phone_day_pass_extends_member(self, admin_client, catalog, member_id):
        resp = enroll(admin_client, catalog, name='Budi', package='Day Pass')
        data = resp.get_json()
        assert resp.status_code == 201
        assert data['is_existing_member'] is True
        assert data['member']['id'] == member_id

    def test_unknown_package(self, admin_client, catalog):
        resp = admin_client.post('/api/members/with-transaction', json={
            'name': 'Budi', 'package_id': 9999, 'payment_method_id': catalog['Cash'],
        })
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'Package not found'


# ── Reading ───────────────────────────────────────────────────────────────────

class TestReadMembers:
    def test_get_member_has_status(self, admin_client, member_id):
        data = admin_client.get(f'/api/members/{member_id}').get_json()
        assert data['status'] == 'active'
        assert data['days_remaining'] >= 28

    def test_missing_member(self, admin_client):
        resp = admin_client.get('/api/members/424242')
        assert resp.status_code == 404
        assert resp.get_json() == {'error': 'Member not found'}

    def test_list_and_search(self, admin_client, catalog, member_id):
        enroll(admin_client, catalog, name='Sari', phone='0812000002')
        data = admin_client.get('/api/members?search=Sari').get_json()
        assert [m['name'] for m in data['members']] == ['Sari']
        assert data['pagination']['total_members'] == 1

    def test_list_filters_expired(self, admin_client, member_id):
        admin_client.post('/api/members', json={
            'name': 'Lama', 'membership_type': 'Bulanan',
            'start_date': '2020-01-01', 'duration_months': 1,
        })
        data = admin_client.get('/api/members?status=expired').get_json()
        assert [m['name'] for m in data['members']] == ['Lama']
        assert data['members'][0]['status'] == 'expired'

    def test_search_endpoint_by_phone(self, admin_client, member_id):
        data = admin_client.post('/api/members/search', json={'phone': '0812000001'}).get_json()
        assert data['count'] == 1
        assert data['duplicates'] is False

    def test_search_requires_a_term(self, admin_client):
        assert admin_client.post('/api/members/search', json={}).status_code == 400


# ── Renewal, Day Pass, history ────────────────────────────────────────────────

class TestRenewAndHistory:
    def test_fractional_price_rejected(self, admin_client, catalog, member_id):
        resp = admin_client.post(f'/api/members/{member_id}/renew', json={
            'package_id': catalog['Bulanan'],
            'payment_method_id': catalog['Cash'],
            'custom_price': 99999.5,
        })
        assert resp.status_code == 400

    def test_renew_queues_after_current_period(self, admin_client, catalog, member_id):
        resp = admin_client.post(f'/api/members/{member_id}/renew', json={
            'package_id': catalog['Bulanan'],
            'payment_method_id': catalog['Cash'],
            'custom_price': 120000,
        })
        data = resp.get_json()
        assert resp.status_code == 200
        assert data['transaction']['amount'] == 120000
        previous_end = date.fromisoformat(data['renewal_details']['previous_end_date'][:10])
        new_start = date.fromisoformat(data['renewal_details']['new_start_date'][:10])
        assert new_start == previous_end + timedelta(days=1)
        assert data['renewal_details']['new_start_date'].endswith('T00:00:00')

    def test_day_pass_purchase(self, admin_client, catalog, member_id):
        resp = admin_client.post(f'/api/members/{member_id}/day-pass', json={
            'payment_method_id': catalog['Cash'],
        })
        assert resp.status_code == 201
        assert resp.get_json()['transaction']['amount'] == 25000

    def test_history_has_analytics(self, admin_client, catalog, member_id):
        admin_client.post(f'/api/members/{member_id}/renew', json={
            'package_id': catalog['Bulanan'], 'payment_method_id': catalog['Cash'],
        })
        data = admin_client.get(f'/api/members/{member_id}/history').get_json()
        assert [p['status'] for p in data['periods']] == ['future', 'active']
        assert data['analytics']['total_periods'] == 2
        assert data['analytics']['total_spent'] == 300000
        assert data['analytics']['membership_type'] == 'second_time'
        assert data['continuity']['status'] == 'active'


# ── Update and delete ─────────────────────────────────────────────────────────

class TestUpdateDelete:
    def test_update_profile(self, admin_client, member_id):
        resp = admin_client.put(f'/api/members/{member_id}', json={'email': 'budi@example.com'})
        assert resp.status_code == 200
        assert resp.get_json()['member']['email'] == 'budi@example.com'

    def test_update_adds_administrative_period(self, admin_client, member_id):
        resp = admin_client.put(f'/api/members/{member_id}', json={
            'start_date': '2030-01-01', 'duration_months': 12, 'membership_type': 'Tahunan',
        })
        member = resp.get_json()['member']
        assert member['end_date'].startswith('2031-01-01')
        assert member['membership_type'] == 'Tahunan'

    def test_empty_name_rejected(self, admin_client, member_id):
        assert admin_client.put(f'/api/members/{member_id}', json={'name': ' '}).status_code == 400

    def test_delete(self, admin_client, member_id):
        assert admin_client.delete(f'/api/members/{member_id}').status_code == 200
        assert admin_client.get(f'/api/members/{member_id}').status_code == 404
        transactions = admin_client.get('/api/transactions').get_json()['transactions']
        assert len(transactions) == 1
        assert transactions[0]['member_id'] is None
