from datetime import timezone

from dateutil import parser as date_parser
from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.orm import joinedload

from db import get_db, is_integrity_error
from errors import ConflictError, NotFoundError, StorageError, ValidationError
from helpers.fields import clean_text, optional_text
from helpers.otp_utils import is_valid_email
from models import utcnow
from models.applications import ReferralApplication
from models.listings import Referral
from utils import authenticate_token, get_notifier, get_storage, request_data, require_job_seeker

referrals_bp = Blueprint('referrals', __name__)


def parse_deadline(value):
    """Accepts any ISO-ish date string; aware values are stored as naive UTC."""
    if not value:
        return None
    try:
        deadline = date_parser.parse(str(value))
    except (ValueError, OverflowError):
        raise ValidationError('Invalid deadline')
    if deadline.tzinfo is not None:
        deadline = deadline.astimezone(timezone.utc).replace(tzinfo=None)
    return deadline


@referrals_bp.post('/')
def create_referral():
    data = request_data()
    title = clean_text(data.get('title'), 'title')
    company = clean_text(data.get('company'), 'company')
    name = clean_text(data.get('name'), 'name')
    email = clean_text(data.get('email'), 'email')
    deadline = parse_deadline(data.get('deadline'))

    if not all([title, company, name, email, deadline]):
        raise ValidationError('Please fill required fields')
    if not is_valid_email(email):
        raise ValidationError('Please provide a valid email address')
    if deadline <= utcnow():
        raise ValidationError('Deadline must be in the future')

    with get_db().session() as session:
        referral = Referral(
            job_title=title,
            job_code=optional_text(data.get('jobId'), 'jobId', allow_numbers=True),
            company=company,
            referrer_name=name,
            referrer_email=email,
            message=optional_text(data.get('message'), 'message'),
            deadline=deadline,
        )
        session.add(referral)
        session.flush()

    # The referral stands whether or not the confirmation goes out.
    if get_notifier().send_referral_created(referral):
        message = 'Referral Post Created and Email sent successfully'
    else:
        current_app.logger.warning("Confirmation email for referral %s was not delivered", referral.id)
        message = 'Referral created, but email failed to send'
    return jsonify({'message': message, 'referral': referral.to_dict()}), 201


@referrals_bp.get('/')
@authenticate_token
def list_referrals():
    with get_db().session() as session:
        referrals = (
            session.query(Referral)
            .filter(Referral.status == 'active', Referral.deadline >= utcnow())
            .order_by(Referral.created_at.desc(), Referral.id.desc())
            .all()
        )
        return jsonify({'referralPosts': [referral.to_dict() for referral in referrals]})


@referrals_bp.get('/applications')
@authenticate_token
@require_job_seeker
def my_referral_applications():
    with get_db().session() as session:
        applications = (
            session.query(ReferralApplication)
            .options(joinedload(ReferralApplication.referral))
            .filter(ReferralApplication.applicant_id == request.user.id)
            .order_by(ReferralApplication.applied_at.desc(), ReferralApplication.id.desc())
            .all()
        )
        return jsonify({'applications': [app.to_dict(with_referral=True) for app in applications]})


@referrals_bp.get('/<int:referral_id>')
@authenticate_token
def get_referral(referral_id: int):
    with get_db().session() as session:
        referral = session.get(Referral, referral_id)
        if not referral:
            raise NotFoundError('Referral post not found')
        return jsonify({'referralPost': referral.to_dict()})


def _has_applied(session, referral_id, applicant_id):
    return (
        session.query(ReferralApplication.id)
        .filter_by(referral_id=referral_id, applicant_id=applicant_id)
        .first()
    ) is not None


@referrals_bp.post('/<int:referral_id>/apply')
@authenticate_token
@require_job_seeker
def apply_for_referral(referral_id: int):
    applicant = request.user
    message = clean_text(request_data().get('message'), 'message')
    storage = get_storage()
    resume_url = None

    try:
        with get_db().session() as session:
            referral = session.get(Referral, referral_id)
            if not referral:
                raise NotFoundError('Referral post not found')
            # A passed deadline closes the post before the sweeper marks it.
            if referral.status != 'active' or referral.deadline < utcnow():
                raise ValidationError('This referral post is no longer accepting applications')
            if _has_applied(session, referral_id, applicant.id):
                raise ConflictError('You have already applied for this referral')

            resume_url = storage.save(request.files.get('resume'))
            application = ReferralApplication(
                referral_id=referral.id,
                applicant_id=applicant.id,
                resume_url=resume_url,
                message=message or None,
            )
            session.add(application)
            session.flush()
            result = application.to_dict()
    except StorageError as exc:
        if resume_url:
            storage.delete(resume_url)
        if is_integrity_error(exc):
            raise ConflictError('You have already applied for this referral') from exc
        raise

    if not get_notifier().send_referral_application(referral, applicant, resume_url, message):
        current_app.logger.warning("Referrer email for referral %s was not delivered", referral.id)
    return jsonify({'message': 'Application submitted successfully', 'application': result}), 201
