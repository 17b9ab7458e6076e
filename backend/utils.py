import json
from functools import wraps

from flask import current_app, request

from errors import AuthorizationError, NoToken, ValidationError
from models.accounts import JOB_SEEKER, RECRUITER


def get_account_service():
    return current_app.extensions['account_service']


def get_notifier():
    return current_app.extensions['notifier']


def get_storage():
    return current_app.extensions['resume_storage']


def bearer_token():
    auth_header = request.headers.get('Authorization', '')
    parts = auth_header.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer' or not parts[1]:
        return None
    return parts[1]


def authenticate_token(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise NoToken()
        account, role = get_account_service().verify_session_token(token)
        request.user = account
        request.role = role
        return f(*args, **kwargs)
    return wrapper


def require_recruiter(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if getattr(request, 'user', None) is None or getattr(request, 'role', None) != RECRUITER:
            raise AuthorizationError("Access denied. Recruiters only.")
        return f(*args, **kwargs)
    return wrapper


def require_job_seeker(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if getattr(request, 'user', None) is None or getattr(request, 'role', None) != JOB_SEEKER:
            raise AuthorizationError("Access denied. Job seekers only.")
        return f(*args, **kwargs)
    return wrapper


def request_data():
    """JSON body, or the form fields of a multipart upload."""
    if request.content_type and 'multipart/form-data' in request.content_type:
        data = request.form.to_dict()
        # Structured fields arrive as JSON strings alongside the file part.
        for key in ('skills', 'education', 'salary', 'experience'):
            value = data.get(key)
            if isinstance(value, str) and value[:1] in ('[', '{'):
                try:
                    data[key] = json.loads(value)
                except ValueError:
                    raise ValidationError(f"Invalid JSON in field '{key}'")
        return data
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_int(value, field, default=None):
    if value is None or value == '':
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
