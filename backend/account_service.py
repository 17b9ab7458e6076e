"""
Account lifecycle: OTP-gated two-phase signup, login and token resolution.

    unverified --issue--> otp_issued --issue--> otp_issued (code replaced)
    otp_issued --complete(ok)--> verified   (terminal)

Job seekers and recruiters go through the same machine but hand over their
password at different steps; ``SIGNUP_FLOWS`` captures that per role.
"""

import logging
from collections import namedtuple

import bcrypt
import jwt

from errors import (
    AccountNotFound,
    InvalidCredentials,
    InvalidOtp,
    InvalidToken,
    MissingFields,
    OtpExpired,
    ValidationError,
)
from helpers.fields import clean_text
from helpers.otp_utils import generate_otp, is_otp_expired, is_valid_email, is_valid_phone, normalize_phone, otp_expiry
from helpers.token_utils import create_access_token, decode_token
from models import utcnow
from models.accounts import JOB_SEEKER, RECRUITER

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

# Model attributes that must arrive as strings.
TEXT_FIELDS = ('name', 'phone_number', 'designation', 'company_name', 'company_website', 'location')

# password_step: 'begin' or 'complete'.
# required: request keys that must be non-empty at completion.
# fields: request key -> model attribute copied on completion.
SignupFlow = namedtuple('SignupFlow', ['password_step', 'required', 'fields'])

SIGNUP_FLOWS = {
    JOB_SEEKER: SignupFlow(
        password_step='complete',
        required=('name', 'phoneNumber'),
        fields={
            'name': 'name',
            'phoneNumber': 'phone_number',
            'skills': 'skills',
            'experience': 'experience',
            'education': 'education',
            'location': 'location',
        },
    ),
    RECRUITER: SignupFlow(
        password_step='begin',
        required=('name', 'phoneNumber', 'designation', 'companyName', 'companyWebsite'),
        fields={
            'name': 'name',
            'phoneNumber': 'phone_number',
            'designation': 'designation',
            'companyName': 'company_name',
            'companyWebsite': 'company_website',
        },
    ),
}


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


class AccountService:
    def __init__(self, store, notifier, settings, clock=utcnow):
        self.store = store
        self.notifier = notifier
        self.settings = settings
        self.clock = clock

    def _flow(self, role):
        flow = SIGNUP_FLOWS.get(role)
        if flow is None:
            raise ValidationError("Invalid role")
        return flow

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.settings.bcrypt_rounds)
        return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    @staticmethod
    def check_password(password: str, password_hash) -> bool:
        if not isinstance(password, str) or not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
        except ValueError:
            return False

    def _validate_password(self, password):
        if password is not None and not isinstance(password, str):
            raise ValidationError("password must be a string")
        if _blank(password):
            raise MissingFields("Password is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    def issue_token(self, account_id, role) -> str:
        return create_access_token(
            account_id,
            role,
            self.settings.jwt_secret,
            algorithm=self.settings.jwt_algorithm,
            expires_minutes=self.settings.access_token_expire_minutes,
        )

    def begin_signup(self, email, role, password=None) -> str:
        flow = self._flow(role)
        email = clean_text(email, 'email')
        if not email:
            raise MissingFields("Email is required")
        if not is_valid_email(email):
            raise ValidationError("Please provide a valid email address")

        password_hash = None
        if flow.password_step == 'begin':
            self._validate_password(password)
            password_hash = self.hash_password(password)

        code = generate_otp()
        expires_at = otp_expiry(self.clock(), self.settings.otp_expire_minutes)
        self.store.store_pending_otp(role, email, code, expires_at, password_hash=password_hash)

        if not self.notifier.send_otp(email, code, role=role):
            # The code stays valid for its window; the user can request another.
            logger.warning("OTP email to %s (%s) was not delivered", email, role)
        return email

    def complete_signup(self, email, otp, profile, role, password=None) -> str:
        flow = self._flow(role)
        profile = profile or {}
        email = clean_text(email, 'email')
        otp = str(otp).strip() if otp is not None else ''

        submitted = dict(profile, email=email, otp=otp, password=password)
        keys = ('email', 'otp') + flow.required
        if flow.password_step == 'complete':
            keys += ('password',)
        missing = [key for key in keys if _blank(submitted.get(key))]
        if missing:
            raise MissingFields(f"All required fields must be provided: {', '.join(missing)}")

        account = self.store.find_by_email(role, email)
        if account is None:
            raise AccountNotFound()
        if not account.otp_code or account.otp_code != otp:
            raise InvalidOtp()
        if is_otp_expired(account.otp_expires_at, self.clock()):
            raise OtpExpired()

        values = self._profile_values(flow, role, profile)
        if flow.password_step == 'complete':
            self._validate_password(password)
            values['password_hash'] = self.hash_password(password)

        if not self.store.mark_verified(role, account.id, otp, values):
            # Someone else completed (or re-issued) between our read and write.
            raise InvalidOtp()

        logger.info("Account %s (%s) verified", account.id, role)
        return self.issue_token(account.id, role)

    def _profile_values(self, flow, role, profile):
        values = {}
        for key, attr in flow.fields.items():
            if key in profile and profile[key] is not None:
                values[attr] = profile[key]
        for key, attr in flow.fields.items():
            if attr in TEXT_FIELDS and attr in values:
                values[attr] = clean_text(values[attr], key, allow_numbers=attr == 'phone_number')

        if not is_valid_phone(values.get('phone_number')):
            raise ValidationError("Invalid phone number format. Must be 10 digits.")
        values['phone_number'] = normalize_phone(values['phone_number'])

        if role == JOB_SEEKER:
            skills = values.get('skills')
            values['skills'] = [str(s).strip() for s in skills if str(s).strip()] if isinstance(skills, list) else []
            try:
                values['experience'] = int(values.get('experience') or 0)
            except (TypeError, ValueError):
                raise ValidationError("Experience must be a number")
            education = values.get('education')
            values['education'] = education if isinstance(education, dict) else {}
        return values

    def login(self, email, password, role) -> str:
        email = clean_text(email, 'email')
        if not email or _blank(password):
            raise MissingFields("Email and password are required")
        if not isinstance(password, str):
            raise ValidationError("password must be a string")
        if self.store.model_for(role) is None:
            raise InvalidCredentials()

        account = self.store.find_by_email(role, email)
        if account is None or not account.is_verified:
            raise InvalidCredentials()
        if not self.check_password(password, account.password_hash):
            raise InvalidCredentials()
        return self.issue_token(account.id, role)

    def verify_session_token(self, token):
        """Resolve a bearer token to ``(account, role)`` with one store lookup."""
        try:
            payload = decode_token(token, self.settings.jwt_secret, self.settings.jwt_algorithm)
        except jwt.InvalidTokenError:
            raise InvalidToken()

        role = payload.get('role')
        if self.store.model_for(role) is None or not isinstance(payload.get('id'), int):
            raise InvalidToken()
        account = self.store.get(role, payload.get('id'))
        if account is None:
            raise InvalidToken()
        return account, role
