"""
Credential store: role-partitioned account records keyed by email.

Each role lives in its own table, so the same email can exist once as a job
seeker and once as a recruiter. All writes go through ``Database.session`` so
SQLAlchemy failures surface as ``StorageError``.
"""

from typing import Optional

from sqlalchemy import update

from db import is_integrity_error
from errors import AlreadyRegistered, ConflictError, StorageError
from models import utcnow
from models.accounts import ACCOUNT_MODELS, OTP_ISSUED, VERIFIED


class CredentialStore:
    def __init__(self, database):
        self.database = database

    @staticmethod
    def model_for(role):
        if not isinstance(role, str):
            return None
        return ACCOUNT_MODELS.get(role)

    def find_by_email(self, role, email):
        model = self.model_for(role)
        if model is None or not email:
            return None
        with self.database.session() as session:
            return session.query(model).filter(model.email == email).first()

    def get(self, role, account_id):
        model = self.model_for(role)
        if model is None or account_id is None:
            return None
        with self.database.session() as session:
            return session.get(model, account_id)

    def store_pending_otp(self, role, email, code, expires_at, password_hash: Optional[str] = None):
        """Create or refresh the pending record for ``email`` with a new code."""
        model = self.model_for(role)
        try:
            with self.database.session() as session:
                account = session.query(model).filter(model.email == email).first()
                if account is not None and account.is_verified:
                    raise AlreadyRegistered()
                if account is None:
                    account = model(email=email)
                    session.add(account)
                if password_hash is not None:
                    account.password_hash = password_hash
                account.issue_otp(code, expires_at)
                session.flush()
                return account
        except StorageError as exc:
            if is_integrity_error(exc):
                raise ConflictError("Signup already in progress for this email. Please try again.") from exc
            raise

    def mark_verified(self, role, account_id, otp, values) -> bool:
        """Flip a pending account to verified if its code is still ``otp``.

        The predicate makes this a compare-and-set: of two racing completions
        only one UPDATE matches a row.
        """
        model = self.model_for(role)
        values = dict(values)
        values.update(
            verification_state=VERIFIED,
            otp_code=None,
            otp_expires_at=None,
            updated_at=utcnow(),
        )
        with self.database.session() as session:
            result = session.execute(
                update(model)
                .where(
                    model.id == account_id,
                    model.verification_state == OTP_ISSUED,
                    model.otp_code == otp,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    def update_profile(self, role, account_id, values):
        model = self.model_for(role)
        with self.database.session() as session:
            account = session.get(model, account_id)
            if account is None:
                return None
            for key, value in values.items():
                setattr(account, key, value)
            session.flush()
            return account
