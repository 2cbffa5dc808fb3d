import os
import pytest
from datetime import date, datetime

# Set test environment variables BEFORE importing app
os.environ['SESSION_SECRET'] = 'test-secret-key-for-testing-only'
os.environ['QR_SECURITY_SALT'] = 'test-salt'
os.environ['FLASK_ENV'] = 'testing'

from simlok.core.app import VERIFICATION_SERVICE_KEY, create_app, db
from simlok.models import (
    ApprovalStatus, ReviewStatus, Submission, SupportDocument, User, UserRole, Worker,
)
from simlok.services.verification import build_verification_service

from helpers import FrozenClock, jakarta

PASSWORD = 'password123'

WINDOW_START = date(2024, 1, 1)
WINDOW_END = date(2024, 1, 31)


@pytest.fixture(scope='function')
def app():
    """Create a test Flask app with a fresh in-memory database"""
    flask_app = create_app('testing')

    with flask_app.app_context():
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create a test client for the app"""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture
def clock():
    """Mid-morning in Jakarta, inside the default permit window"""
    return FrozenClock(jakarta(2024, 1, 15, 9, 30))


@pytest.fixture
def service(app, clock):
    """Verification service on the frozen clock, also used by the routes"""
    verification_service = build_verification_service(app.config, clock=clock)
    app.extensions[VERIFICATION_SERVICE_KEY] = verification_service
    return verification_service


@pytest.fixture
def codec(service):
    return service.codec


def _create_user(session, email, role, officer_name=None, address=None):
    user = User()
    user.email = email
    user.role = role.value
    user.officer_name = officer_name
    user.address = address
    user.set_password(PASSWORD)
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def verifier(db_session):
    """Create a verifier user for testing"""
    return _create_user(
        db_session, 'verifier@test.com', UserRole.VERIFIER,
        officer_name='Budi Santoso', address='Gate 3, Plant A'
    )


@pytest.fixture
def second_verifier(db_session):
    return _create_user(
        db_session, 'verifier2@test.com', UserRole.VERIFIER,
        officer_name='Siti Rahma', address='Gate 1, Plant B'
    )


@pytest.fixture
def admin_user(db_session):
    return _create_user(db_session, 'admin@test.com', UserRole.SUPER_ADMIN, officer_name='Admin')


@pytest.fixture
def vendor_user(db_session):
    return _create_user(db_session, 'vendor@test.com', UserRole.VENDOR)


@pytest.fixture
def make_permit(db_session):
    """Factory for permits; approved with a January 2024 window unless told otherwise"""
    def _make_permit(**overrides):
        fields = {
            'simlok_number': 'SIMLOK/2024/001',
            'simlok_date': datetime(2023, 12, 28, 3, 0),
            'vendor_name': 'PT Maju Jaya',
            'vendor_phone': '081234567890',
            'officer_name': 'Andi Wijaya',
            'job_description': 'Pipeline maintenance',
            'work_location': 'Refinery Unit 2',
            'work_facilities': 'Scaffolding',
            'working_hours': '08:00 - 17:00',
            'holiday_working_hours': '09:00 - 13:00',
            'implementation': 'Replace valve assemblies',
            'based_on': 'Contract 45/2023',
            'implementation_start_date': datetime(2024, 1, 1),
            'implementation_end_date': datetime(2024, 1, 31),
            'worker_count': 2,
            'review_status': ReviewStatus.MEETS_REQUIREMENTS.value,
            'approval_status': ApprovalStatus.APPROVED.value,
        }
        fields.update(overrides)
        permit = Submission(**fields)
        db_session.add(permit)
        db_session.commit()
        return permit
    return _make_permit


@pytest.fixture
def permit(make_permit, db_session):
    """An approved permit with documents and a two-person roster"""
    permit = make_permit()
    db_session.add_all([
        SupportDocument(submission_id=permit.id, document_type='SIMJA',
                        document_number='SIMJA-001', document_date=datetime(2023, 12, 20)),
        SupportDocument(submission_id=permit.id, document_type='SIKA',
                        document_number='SIKA-002', document_date=datetime(2023, 12, 21)),
        Worker(submission_id=permit.id, worker_name='Agus', created_at=datetime(2023, 12, 22, 1, 0)),
        Worker(submission_id=permit.id, worker_name='Dewi', created_at=datetime(2023, 12, 22, 2, 0)),
    ])
    db_session.commit()
    return permit


@pytest.fixture
def qr_code(codec, permit):
    """Signed QR string for the default permit"""
    return codec.encode(permit.id, WINDOW_START, WINDOW_END)


@pytest.fixture
def login(client):
    """Log a user in through the auth endpoint"""
    def _login(user, password=PASSWORD):
        response = client.post('/api/auth/login', json={'email': user.email, 'password': password})
        assert response.status_code == 200, response.get_json()
        return response
    return _login
