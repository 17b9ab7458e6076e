"""
Tests for the account lifecycle service.

The service is exercised directly against a real SQLite store with an
adjustable clock, so OTP windows can be tested to the second.
"""

from datetime import datetime, timedelta

import pytest

import account_service as account_service_module
from account_service import AccountService
from account_store import CredentialStore
from errors import (
    AccountNotFound,
    AlreadyRegistered,
    InvalidCredentials,
    InvalidOtp,
    InvalidToken,
    MissingFields,
    OtpExpired,
    ValidationError,
)
from helpers.token_utils import create_access_token
from models.accounts import JOB_SEEKER, RECRUITER, VERIFIED, JobSeeker


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


PROFILE = {'name': 'Jane Doe', 'phoneNumber': '9876543210', 'skills': ['python', ' sql '], 'experience': '3'}
RECRUITER_PROFILE = {
    'name': 'Riya',
    'phoneNumber': '9123456780',
    'designation': 'Talent Lead',
    'companyName': 'Acme',
    'companyWebsite': 'https://acme.example',
}


@pytest.fixture
def clock():
    return Clock(datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def service(database, notifier, settings, clock):
    return AccountService(CredentialStore(database), notifier, settings, clock=clock)


def complete_seeker(service, notifier, email='jane@x.com', otp=None, password='secret1', **profile):
    otp = otp or notifier.latest_otp(email, JOB_SEEKER)
    return service.complete_signup(email, otp, dict(PROFILE, **profile), JOB_SEEKER, password=password)


class TestJobSeekerSignup:
    """Two-phase signup for job seekers."""

    def test_full_flow_issues_token(self, service, notifier):
        assert service.begin_signup(' jane@x.com ', JOB_SEEKER) == 'jane@x.com'
        token = complete_seeker(service, notifier)

        account, role = service.verify_session_token(token)
        assert role == JOB_SEEKER
        assert account.email == 'jane@x.com'
        assert account.verification_state == VERIFIED
        assert account.otp_code is None
        assert account.skills == ['python', 'sql']
        assert account.experience == 3

    def test_otp_is_single_use(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        otp = notifier.latest_otp('jane@x.com')
        complete_seeker(service, notifier, otp=otp)
        with pytest.raises(InvalidOtp):
            complete_seeker(service, notifier, otp=otp)

    def test_wrong_otp(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        otp = notifier.latest_otp('jane@x.com')
        wrong = '000000' if otp != '000000' else '111111'
        with pytest.raises(InvalidOtp):
            complete_seeker(service, notifier, otp=wrong)

    def test_unknown_email(self, service):
        with pytest.raises(AccountNotFound):
            service.complete_signup('nobody@x.com', '123456', PROFILE, JOB_SEEKER, password='secret1')

    def test_accepted_just_inside_window(self, service, notifier, clock):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        clock.advance(minutes=9, seconds=59)
        assert complete_seeker(service, notifier)

    def test_rejected_just_outside_window(self, service, notifier, clock):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        clock.advance(minutes=10, seconds=1)
        with pytest.raises(OtpExpired):
            complete_seeker(service, notifier)

    def test_reissue_replaces_outstanding_code(self, service, notifier, monkeypatch):
        codes = iter(['111111', '222222'])
        monkeypatch.setattr(account_service_module, 'generate_otp', lambda: next(codes))

        service.begin_signup('jane@x.com', JOB_SEEKER)
        service.begin_signup('jane@x.com', JOB_SEEKER)

        with pytest.raises(InvalidOtp):
            complete_seeker(service, notifier, otp='111111')
        assert complete_seeker(service, notifier, otp='222222')

    def test_reissue_refreshes_window(self, service, notifier, clock):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        clock.advance(minutes=8)
        service.begin_signup('jane@x.com', JOB_SEEKER)
        clock.advance(minutes=8)
        assert complete_seeker(service, notifier)

    def test_begin_after_verified_rejected(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        complete_seeker(service, notifier)
        with pytest.raises(AlreadyRegistered):
            service.begin_signup('jane@x.com', JOB_SEEKER)

    def test_missing_fields_leave_account_pending(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        otp = notifier.latest_otp('jane@x.com')
        with pytest.raises(MissingFields):
            service.complete_signup('jane@x.com', otp, {'name': 'Jane'}, JOB_SEEKER, password='secret1')
        with pytest.raises(MissingFields):
            service.complete_signup('jane@x.com', otp, PROFILE, JOB_SEEKER, password=None)
        assert complete_seeker(service, notifier, otp=otp)

    def test_invalid_phone(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        with pytest.raises(ValidationError):
            complete_seeker(service, notifier, phoneNumber='12345')

    def test_invalid_email(self, service):
        with pytest.raises(ValidationError):
            service.begin_signup('not-an-email', JOB_SEEKER)
        with pytest.raises(MissingFields):
            service.begin_signup('   ', JOB_SEEKER)

    def test_delivery_failure_still_persists_code(self, service, notifier):
        notifier.fail = True
        assert service.begin_signup('jane@x.com', JOB_SEEKER) == 'jane@x.com'
        assert complete_seeker(service, notifier)

    def test_stale_read_loses_race(self, service, notifier, monkeypatch):
        """A completion that read the pending record before another one won must fail."""
        service.begin_signup('jane@x.com', JOB_SEEKER)
        otp = notifier.latest_otp('jane@x.com')
        stale = service.store.find_by_email(JOB_SEEKER, 'jane@x.com')

        complete_seeker(service, notifier, otp=otp)
        monkeypatch.setattr(service.store, 'find_by_email', lambda role, email: stale)

        with pytest.raises(InvalidOtp):
            complete_seeker(service, notifier, otp=otp)


class TestRecruiterSignup:
    """Recruiters hand over their password when requesting the code."""

    def test_password_required_at_begin(self, service):
        with pytest.raises(MissingFields):
            service.begin_signup('hr@acme.com', RECRUITER)
        with pytest.raises(ValidationError):
            service.begin_signup('hr@acme.com', RECRUITER, password='123')

    def test_full_flow_and_login(self, service, notifier):
        service.begin_signup('hr@acme.com', RECRUITER, password='secret1')
        otp = notifier.latest_otp('hr@acme.com', RECRUITER)
        token = service.complete_signup('hr@acme.com', otp, RECRUITER_PROFILE, RECRUITER)

        account, role = service.verify_session_token(token)
        assert role == RECRUITER
        assert account.company_name == 'Acme'
        assert service.login('hr@acme.com', 'secret1', RECRUITER)

    def test_missing_company_details(self, service, notifier):
        service.begin_signup('hr@acme.com', RECRUITER, password='secret1')
        otp = notifier.latest_otp('hr@acme.com', RECRUITER)
        profile = dict(RECRUITER_PROFILE, companyWebsite='')
        with pytest.raises(MissingFields):
            service.complete_signup('hr@acme.com', otp, profile, RECRUITER)

    def test_invalid_phone_at_completion(self, service, notifier):
        service.begin_signup('hr@acme.com', RECRUITER, password='secret1')
        otp = notifier.latest_otp('hr@acme.com', RECRUITER)
        with pytest.raises(ValidationError):
            service.complete_signup('hr@acme.com', otp, dict(RECRUITER_PROFILE, phoneNumber='12345'), RECRUITER)
        assert service.store.find_by_email(RECRUITER, 'hr@acme.com').verification_state != VERIFIED

    def test_phone_is_normalized(self, service, notifier):
        service.begin_signup('hr@acme.com', RECRUITER, password='secret1')
        otp = notifier.latest_otp('hr@acme.com', RECRUITER)
        profile = dict(RECRUITER_PROFILE, phoneNumber='+91 91234 56789')
        account, _ = service.verify_session_token(service.complete_signup('hr@acme.com', otp, profile, RECRUITER))
        assert account.phone_number == '9123456789'

    def test_numeric_password_rejected(self, service):
        with pytest.raises(ValidationError):
            service.begin_signup('hr@acme.com', RECRUITER, password=123456)

    def test_same_email_in_both_roles(self, service, notifier):
        service.begin_signup('dual@x.com', JOB_SEEKER)
        service.begin_signup('dual@x.com', RECRUITER, password='secret1')
        assert complete_seeker(service, notifier, email='dual@x.com')
        otp = notifier.latest_otp('dual@x.com', RECRUITER)
        assert service.complete_signup('dual@x.com', otp, RECRUITER_PROFILE, RECRUITER)


class TestLogin:
    """Credential checks."""

    @pytest.fixture(autouse=True)
    def registered(self, service, notifier):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        complete_seeker(service, notifier)

    def test_success(self, service):
        account, role = service.verify_session_token(service.login('jane@x.com', 'secret1', JOB_SEEKER))
        assert (account.email, role) == ('jane@x.com', JOB_SEEKER)

    def test_wrong_password(self, service):
        with pytest.raises(InvalidCredentials):
            service.login('jane@x.com', 'wrong-pass', JOB_SEEKER)

    def test_role_mismatch(self, service):
        with pytest.raises(InvalidCredentials):
            service.login('jane@x.com', 'secret1', RECRUITER)

    def test_unknown_role(self, service):
        with pytest.raises(InvalidCredentials):
            service.login('jane@x.com', 'secret1', 'admin')

    def test_unverified_account(self, service):
        service.begin_signup('pending@x.com', JOB_SEEKER)
        with pytest.raises(InvalidCredentials):
            service.login('pending@x.com', 'secret1', JOB_SEEKER)

    def test_blank_credentials(self, service):
        with pytest.raises(MissingFields):
            service.login('', 'secret1', JOB_SEEKER)

    @pytest.mark.parametrize('email,password', [
        ('jane@x.com', 123456),
        (12345, 'secret1'),
    ])
    def test_non_string_credentials(self, service, email, password):
        with pytest.raises(ValidationError):
            service.login(email, password, JOB_SEEKER)


class TestVerifySessionToken:
    """Token resolution."""

    def test_garbage(self, service):
        with pytest.raises(InvalidToken):
            service.verify_session_token('not-a-token')

    def test_unknown_role(self, service, settings):
        token = create_access_token(1, 'admin', settings.jwt_secret)
        with pytest.raises(InvalidToken):
            service.verify_session_token(token)

    def test_deleted_account(self, service, notifier, database):
        service.begin_signup('jane@x.com', JOB_SEEKER)
        token = complete_seeker(service, notifier)
        with database.session() as session:
            session.query(JobSeeker).filter(JobSeeker.email == 'jane@x.com').delete()
        with pytest.raises(InvalidToken):
            service.verify_session_token(token)
