from flask import Blueprint, jsonify, request

from errors import NotFoundError, ValidationError
from helpers.fields import clean_text
from helpers.otp_utils import is_valid_phone, normalize_phone
from models.accounts import RECRUITER
from utils import authenticate_token, get_account_service, request_data, require_recruiter

recruiters_bp = Blueprint('recruiters', __name__)

# request key -> column
PROFILE_FIELDS = {
    'name': 'name',
    'designation': 'designation',
    'companyName': 'company_name',
    'companyWebsite': 'company_website',
    'location': 'location',
    'about': 'about',
}
NON_EMPTY = ('name', 'companyName')


@recruiters_bp.get('/profile')
@authenticate_token
@require_recruiter
def get_profile():
    return jsonify({'profile': request.user.to_dict()})


@recruiters_bp.put('/profile')
@authenticate_token
@require_recruiter
def update_profile():
    data = request_data()
    values = {}
    for key, column in PROFILE_FIELDS.items():
        if key not in data:
            continue
        value = clean_text(data.get(key), key)
        if key in NON_EMPTY and not value:
            raise ValidationError(f'{key} cannot be empty')
        values[column] = value or None

    if 'phoneNumber' in data:
        if not is_valid_phone(data.get('phoneNumber')):
            raise ValidationError('Invalid phone number format. Must be 10 digits.')
        values['phone_number'] = normalize_phone(data['phoneNumber'])

    account = get_account_service().store.update_profile(RECRUITER, request.user.id, values)
    if account is None:
        raise NotFoundError('Recruiter not found')
    return jsonify({'message': 'Profile updated successfully', 'profile': account.to_dict()})
