from flask import Blueprint, jsonify, request

from errors import AuthenticationError
from models.accounts import JOB_SEEKER, RECRUITER
from utils import bearer_token, get_account_service, request_data

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/user/signup')
def user_signup():
    data = request_data()
    email = get_account_service().begin_signup(data.get('email'), JOB_SEEKER)
    return jsonify({'message': 'OTP sent successfully', 'email': email}), 201


@auth_bp.post('/user/verify-and-complete')
def user_verify_and_complete():
    data = request_data()
    token = get_account_service().complete_signup(
        data.get('email'),
        data.get('otp'),
        data,
        JOB_SEEKER,
        password=data.get('password'),
    )
    return jsonify({'message': 'Registration completed successfully', 'token': token}), 200


@auth_bp.post('/recruiter/signup')
def recruiter_signup():
    data = request_data()
    email = get_account_service().begin_signup(data.get('email'), RECRUITER, password=data.get('password'))
    return jsonify({'message': 'OTP sent to email', 'email': email}), 201


@auth_bp.post('/recruiter/verify')
def recruiter_verify():
    data = request_data()
    token = get_account_service().complete_signup(data.get('email'), data.get('otp'), data, RECRUITER)
    return jsonify({'token': token, 'message': 'Profile completed successfully'}), 200


@auth_bp.post('/login')
def login():
    data = request_data()
    token = get_account_service().login(data.get('email'), data.get('password'), data.get('role') or JOB_SEEKER)
    return jsonify({'token': token}), 200


@auth_bp.get('/verify')
def verify_token():
    token = bearer_token()
    if not token:
        return jsonify({'valid': False, 'message': 'No token provided'}), 401
    try:
        account, role = get_account_service().verify_session_token(token)
    except AuthenticationError as exc:
        return jsonify({'valid': False, 'message': exc.message}), 401
    return jsonify({'valid': True, 'role': role, 'userId': account.id}), 200
