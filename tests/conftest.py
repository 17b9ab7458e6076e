"""
Shared fixtures for the API tests.

Every test gets its own file-backed SQLite database and upload folder under
``tmp_path`` and a recording notifier in place of Flask-Mail.
"""

import io

import pytest

from app import create_app
from config import Settings
from db import Database


class FakeNotifier:
    """Records outgoing mail instead of sending it."""

    def __init__(self):
        self.otps = {}
        self.sent = []
        self.fail = False

    def _record(self, kind, recipient, **extra):
        self.sent.append(dict(kind=kind, recipient=recipient, **extra))
        return not self.fail

    def send_otp(self, recipient, otp, role='user'):
        self.otps[(recipient, role)] = otp
        return self._record('otp', recipient, otp=otp, role=role)

    def send_referral_created(self, referral):
        return self._record('referral_created', referral.referrer_email, referral_id=referral.id)

    def send_referral_application(self, referral, applicant, resume_url, message=''):
        return self._record(
            'referral_application',
            referral.referrer_email,
            applicant=applicant.email,
            resume_url=resume_url,
            message=message,
        )

    def latest_otp(self, email, role='user'):
        return self.otps[(email, role)]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret='test-secret',
        bcrypt_rounds=4,
        mail_suppress_send=True,
        upload_folder=str(tmp_path / 'uploads'),
        sweeper_enabled=False,
        testing=True,
    )


@pytest.fixture
def database(settings):
    db = Database(settings.sqlalchemy_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(settings, database, notifier):
    return create_app(settings, database=database, notifier=notifier)


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


def resume_file(name='resume.pdf', content=b'%PDF-1.4 test resume'):
    return (io.BytesIO(content), name)


def register_job_seeker(client, notifier, email='jane@x.com', password='secret1', **profile):
    resp = client.post('/api/auth/user/signup', json={'email': email})
    assert resp.status_code == 201, resp.get_json()
    body = {
        'email': email,
        'otp': notifier.latest_otp(email, 'user'),
        'password': password,
        'name': 'Jane Doe',
        'phoneNumber': '9876543210',
    }
    body.update(profile)
    resp = client.post('/api/auth/user/verify-and-complete', json=body)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['token']


def register_recruiter(client, notifier, email='hr@acme.com', password='secret1', **profile):
    resp = client.post('/api/auth/recruiter/signup', json={'email': email, 'password': password})
    assert resp.status_code == 201, resp.get_json()
    body = {
        'email': email,
        'otp': notifier.latest_otp(email, 'recruiter'),
        'name': 'Riya Recruiter',
        'phoneNumber': '9123456780',
        'designation': 'Talent Lead',
        'companyName': 'Acme',
        'companyWebsite': 'https://acme.example',
    }
    body.update(profile)
    resp = client.post('/api/auth/recruiter/verify', json=body)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['token']


def post_job(client, token, **overrides):
    body = {
        'title': 'Backend Engineer',
        'description': 'Build APIs',
        'position': 'Engineer',
        'location': 'Pune',
        'salary': {'min': 50000, 'max': 90000},
        'experience': {'min': 1, 'max': 4},
    }
    body.update(overrides)
    resp = client.post('/api/jobs', json=body, headers=auth_header(token))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['job']


@pytest.fixture
def seeker_token(client, notifier):
    return register_job_seeker(client, notifier)


@pytest.fixture
def recruiter_token(client, notifier):
    return register_recruiter(client, notifier)
