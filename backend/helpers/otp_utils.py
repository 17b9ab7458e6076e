import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

EMAIL_REGEX = re.compile(r'^[A-Za-z0-9._%+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,}$')
PHONE_REGEX = re.compile(r'^\d{10}$')

OTP_LENGTH = 6
OTP_EXPIRE_MINUTES = 10


def generate_otp() -> str:
    # Uniform over 000000-999999; kept as a string so leading zeros survive.
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def otp_expiry(issued_at: datetime, minutes: int = OTP_EXPIRE_MINUTES) -> datetime:
    return issued_at + timedelta(minutes=minutes)


def is_otp_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    return expires_at is None or now > expires_at


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(EMAIL_REGEX.match(email.strip()))


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    if not phone:
        return None
    digits_only = re.sub(r'\D', '', str(phone))
    if digits_only.startswith('91') and len(digits_only) == 12:
        digits_only = digits_only[2:]
    if digits_only.startswith('0') and len(digits_only) == 11:
        digits_only = digits_only[1:]
    return digits_only if digits_only else None


def is_valid_phone(phone: Optional[str]) -> bool:
    digits_only = normalize_phone(phone)
    if not digits_only:
        return False
    return bool(PHONE_REGEX.match(digits_only))
