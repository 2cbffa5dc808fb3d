"""
HTTP tests for the verification, scan history, auth and health endpoints
"""
import pytest
from datetime import date

from simlok.core.app import create_app, db, VERIFICATION_SERVICE_KEY
from simlok.config import TestingConfig
from simlok.models import ApprovalStatus, QrScan, Submission, User
from simlok.services.verification import build_verification_service

from helpers import FrozenClock, jakarta

pytestmark = pytest.mark.integration


class TestVerifyEndpoint:

    def test_successful_verification(self, client, service, login, verifier, qr_code, permit):
        login(verifier)

        response = client.post('/api/qr/verify', json={'qr_data': qr_code, 'scanLocation': 'Gate 7'})

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['scan_location'] == 'Gate 7'
        assert body['scanned_at'] == '2024-01-15T09:30:00+07:00'
        assert body['data']['submission']['simlok_number'] == 'SIMLOK/2024/001'
        assert body['data']['submission']['simja_number'] == 'SIMJA-001'
        assert [w['name'] for w in body['data']['submission']['workers']] == ['Agus', 'Dewi']
        assert response.headers.get('X-Request-ID')

    def test_camel_case_field_is_accepted(self, client, service, login, verifier, qr_code):
        login(verifier)
        response = client.post('/api/qr/verify', json={'qrData': qr_code})
        assert response.status_code == 200

    def test_scan_location_is_stored_as_plain_text(self, client, service, login, verifier, admin_user, qr_code, permit):
        login(verifier)
        response = client.post('/api/qr/verify', json={'qr_data': qr_code, 'scanLocation': '<b>Gate 3 & 4</b>'})

        assert response.get_json()['scan_location'] == 'Gate 3 & 4'
        stored = db.session.query(QrScan).filter_by(submission_id=permit.id).one()
        assert stored.scan_location == 'Gate 3 & 4'

        login(admin_user)
        body = client.get('/api/qr/scans', query_string={'search': '3 & 4'}).get_json()
        assert body['pagination']['total'] == 1
        assert body['scans'][0]['scan_location'] == 'Gate 3 & 4'

    def test_duplicate_returns_conflict(self, client, service, login, verifier, qr_code, clock):
        login(verifier)
        first = client.post('/api/qr/verify', json={'qr_data': qr_code}).get_json()
        clock.advance(minutes=10)

        response = client.post('/api/qr/verify', json={'qr_data': qr_code})

        assert response.status_code == 409
        body = response.get_json()
        assert body['error'] == 'DUPLICATE_SCAN'
        assert body['previous_scan']['scan_id'] == first['scan_id']
        assert body['previous_scan']['scanned_at'] == '2024-01-15T09:30:00+07:00'

    def test_expired_returns_bad_request(self, client, service, login, verifier, qr_code, clock):
        login(verifier)
        clock.set(jakarta(2024, 2, 1, 8, 0))

        response = client.post('/api/qr/verify', json={'qr_data': qr_code})

        assert response.status_code == 400
        assert response.get_json()['validity']['reason'] == 'EXPIRED'

    def test_unknown_permit_returns_not_found(self, client, service, codec, login, verifier):
        login(verifier)
        qr = codec.encode('missing-permit', None, None)
        response = client.post('/api/qr/verify', json={'qr_data': qr})
        assert response.status_code == 404
        assert response.get_json()['error'] == 'PERMIT_NOT_FOUND'

    def test_unapproved_permit(self, client, service, codec, login, verifier, make_permit):
        login(verifier)
        permit = make_permit(approval_status=ApprovalStatus.PENDING_APPROVAL.value)
        qr = codec.encode(permit.id, date(2024, 1, 1), date(2024, 1, 31))

        response = client.post('/api/qr/verify', json={'qr_data': qr})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'PERMIT_NOT_APPROVED'

    def test_forged_code(self, client, service, login, verifier, qr_code):
        login(verifier)
        response = client.post('/api/qr/verify', json={'qr_data': qr_code[:-1] + ('1' if qr_code[-1] == '0' else '0')})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'INVALID_QR'

    def test_missing_qr_data(self, client, service, login, verifier):
        login(verifier)
        response = client.post('/api/qr/verify', json={'scanLocation': 'Gate 7'})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_non_json_body(self, client, service, login, verifier):
        login(verifier)
        response = client.post('/api/qr/verify', data='qr_data=abc')
        assert response.status_code == 400

    def test_anonymous_is_unauthorized(self, client, service, qr_code):
        response = client.post('/api/qr/verify', json={'qr_data': qr_code})
        assert response.status_code == 401
        assert response.get_json()['error_code'] == 401

    def test_vendor_is_forbidden(self, client, service, login, vendor_user, qr_code):
        login(vendor_user)
        response = client.post('/api/qr/verify', json={'qr_data': qr_code})
        assert response.status_code == 403

    def test_super_admin_may_verify(self, client, service, login, admin_user, qr_code):
        login(admin_user)
        response = client.post('/api/qr/verify', json={'qr_data': qr_code})
        assert response.status_code == 200
        assert response.get_json()['scanned_by'] == 'Admin'


class TestScanHistory:

    @pytest.fixture
    def history(self, service, permit, make_permit, verifier, second_verifier, clock, codec):
        other = make_permit(simlok_number='SIMLOK/2024/002', vendor_name='CV Sentosa')
        qr_other = codec.encode(other.id, date(2024, 1, 1), date(2024, 1, 31))
        qr_main = codec.encode(permit.id, date(2024, 1, 1), date(2024, 1, 31))

        service.verify(qr_main, verifier.id, scan_location='Gate 3')
        service.verify(qr_main, second_verifier.id, scan_location='Dock 1')
        clock.set(jakarta(2024, 1, 16, 10, 0))
        service.verify(qr_other, verifier.id, scan_location='Dock 2')
        return permit, other

    def test_verifier_sees_only_own_scans(self, client, login, verifier, history):
        login(verifier)
        body = client.get('/api/qr/scans').get_json()

        assert body['pagination']['total'] == 2
        assert {scan['scanned_by'] for scan in body['scans']} == {verifier.id}
        # newest first
        assert body['scans'][0]['submission']['simlok_number'] == 'SIMLOK/2024/002'
        assert body['scans'][0]['scanned_at'] == '2024-01-16T10:00:00+07:00'

    def test_admin_sees_all_scans(self, client, login, admin_user, history):
        login(admin_user)
        body = client.get('/api/qr/scans').get_json()
        assert body['pagination']['total'] == 3

    def test_search_matches_vendor_and_location(self, client, login, admin_user, history):
        login(admin_user)
        by_vendor = client.get('/api/qr/scans?search=sentosa').get_json()
        by_location = client.get('/api/qr/scans?search=Dock').get_json()

        assert by_vendor['pagination']['total'] == 1
        assert by_location['pagination']['total'] == 2

    def test_submission_filter(self, client, login, admin_user, history):
        permit, _ = history
        login(admin_user)
        body = client.get(f'/api/qr/scans?submission_id={permit.id}').get_json()
        assert body['pagination']['total'] == 2

    def test_location_filter(self, client, login, admin_user, history):
        login(admin_user)
        body = client.get('/api/qr/scans?location=gate').get_json()
        assert body['pagination']['total'] == 1

    def test_date_range_uses_civil_days(self, client, login, admin_user, history):
        login(admin_user)
        day_one = client.get('/api/qr/scans?dateFrom=2024-01-15&dateTo=2024-01-15').get_json()
        day_two = client.get('/api/qr/scans?dateFrom=2024-01-16').get_json()

        assert day_one['pagination']['total'] == 2
        assert day_two['pagination']['total'] == 1

    def test_status_filter(self, client, login, admin_user, history):
        login(admin_user)
        approved = client.get('/api/qr/scans?status=approved').get_json()
        rejected = client.get('/api/qr/scans?status=REJECTED').get_json()

        assert approved['pagination']['total'] == 3
        assert rejected['pagination']['total'] == 0

    def test_pagination(self, client, login, admin_user, history):
        login(admin_user)
        first_page = client.get('/api/qr/scans?limit=2').get_json()
        last_page = client.get('/api/qr/scans?limit=2&offset=2').get_json()

        assert len(first_page['scans']) == 2
        assert first_page['pagination'] == {'total': 3, 'limit': 2, 'offset': 0, 'hasMore': True}
        assert len(last_page['scans']) == 1
        assert last_page['pagination']['hasMore'] is False

    def test_limit_is_capped(self, client, login, admin_user, history):
        login(admin_user)
        body = client.get('/api/qr/scans?limit=1000').get_json()
        assert body['pagination']['limit'] == 100

    @pytest.mark.parametrize('query', ['dateFrom=15-01-2024', 'dateTo=yesterday', 'status=UNKNOWN'])
    def test_invalid_filters(self, client, service, login, admin_user, query):
        login(admin_user)
        response = client.get(f'/api/qr/scans?{query}')
        assert response.status_code == 400

    def test_vendor_is_forbidden(self, client, service, login, vendor_user):
        login(vendor_user)
        assert client.get('/api/qr/scans').status_code == 403


class TestAuth:

    def test_wrong_password(self, client, verifier):
        response = client.post('/api/auth/login', json={'email': verifier.email, 'password': 'nope'})
        assert response.status_code == 401
        assert response.get_json()['success'] is False

    def test_unknown_email(self, client):
        response = client.post('/api/auth/login', json={'email': 'nobody@test.com', 'password': 'x'})
        assert response.status_code == 401

    def test_email_is_case_insensitive(self, client, verifier):
        response = client.post('/api/auth/login', json={'email': 'Verifier@Test.com', 'password': 'password123'})
        assert response.status_code == 200
        assert response.get_json()['user']['role'] == 'VERIFIER'

    def test_logout_ends_session(self, client, service, login, verifier, qr_code):
        login(verifier)
        assert client.post('/api/auth/logout').status_code == 200
        assert client.post('/api/qr/verify', json={'qr_data': qr_code}).status_code == 401


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()['status'] == 'healthy'

    def test_health_with_database_check(self, client):
        body = client.get('/health?check_db=true').get_json()
        assert body['database']['connected'] is True

    def test_unknown_route_is_json_404(self, client):
        response = client.get('/api/qr/does-not-exist')
        assert response.status_code == 404
        assert response.get_json()['error_code'] == 404


class RateLimitedConfig(TestingConfig):
    RATELIMIT_ENABLED = True
    QR_VERIFY_RATE_LIMIT = "2 per minute"


class TestRateLimit:

    def test_verify_is_rate_limited_per_user(self):
        app = create_app(RateLimitedConfig)
        clock = FrozenClock(jakarta(2024, 1, 15, 9, 30))

        with app.app_context():
            service = build_verification_service(app.config, clock=clock)
            app.extensions[VERIFICATION_SERVICE_KEY] = service

            user = User(email='limited@test.com', role='VERIFIER', officer_name='Limited')
            user.set_password('password123')
            permit = Submission(vendor_name='PT Limit', approval_status='APPROVED')
            db.session.add_all([user, permit])
            db.session.commit()
            qr = service.codec.encode(permit.id, None, None)

        # Each request gets its own app context so limiter state in g starts clean
        client = app.test_client()
        client.post('/api/auth/login', json={'email': 'limited@test.com', 'password': 'password123'})
        statuses = [
            client.post('/api/qr/verify', json={'qr_data': qr}).status_code
            for _ in range(3)
        ]

        with app.app_context():
            db.drop_all()

        assert statuses == [200, 409, 429]
