from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt


def create_access_token(account_id, role, secret, algorithm='HS256', expires_minutes=60 * 24,
                        now: Optional[datetime] = None) -> str:
    issued_at = now or datetime.now(timezone.utc)
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)
    payload = {
        'id': account_id,
        'role': role,
        'iat': issued_at,
        'exp': issued_at + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret, algorithm='HS256') -> dict:
    """Raises ``jwt.InvalidTokenError`` (incl. expiry) on any failure."""
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        options={'require': ['id', 'role', 'exp']},
    )
