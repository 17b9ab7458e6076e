from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.orm import joinedload

from db import get_db
from errors import AuthorizationError, NotFoundError, ValidationError
from helpers.fields import clean_text
from models.accounts import JOB_SEEKER, RECRUITER
from models.applications import APPLICATION_STATUSES, ApplicationMessage, JobApplication
from models.listings import Job
from utils import authenticate_token, request_data, require_recruiter

applications_bp = Blueprint('applications', __name__)


def _can_view(application):
    if request.role == RECRUITER:
        return application.recruiter_id == request.user.id
    if request.role == JOB_SEEKER:
        return application.applicant_id == request.user.id
    return False


@applications_bp.get('/<int:application_id>')
@authenticate_token
def get_application(application_id: int):
    with get_db().session() as session:
        application = session.get(JobApplication, application_id)
        if not application:
            raise NotFoundError('Application not found')
        if not _can_view(application):
            raise AuthorizationError('Not authorized to view this application')
        return jsonify({
            'application': application.to_dict(with_job=True, with_applicant=True, with_messages=True),
        })


@applications_bp.get('/job/<int:job_id>')
@authenticate_token
@require_recruiter
def get_job_applications(job_id: int):
    with get_db().session() as session:
        job = session.get(Job, job_id)
        if not job:
            raise NotFoundError('Job not found')
        if job.recruiter_id != request.user.id:
            raise AuthorizationError('Not authorized to view applications for this job')

        applications = (
            session.query(JobApplication)
            .options(joinedload(JobApplication.applicant))
            .filter(JobApplication.job_id == job_id)
            .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
            .all()
        )
        formatted = [app.to_dict(with_applicant=True, with_messages=True) for app in applications]
    return jsonify({'count': len(formatted), 'applications': formatted})


@applications_bp.put('/<int:application_id>/status')
@authenticate_token
@require_recruiter
def update_status(application_id: int):
    status = request_data().get('status')
    if status not in APPLICATION_STATUSES:
        raise ValidationError('Invalid status')

    with get_db().session() as session:
        application = session.get(JobApplication, application_id)
        if not application:
            raise NotFoundError('Application not found')
        if application.recruiter_id != request.user.id:
            raise AuthorizationError('Not authorized to update this application')
        application.status = status
        session.flush()
        current_app.logger.info("Application %s moved to %s", application.id, status)
        return jsonify({
            'message': 'Application status updated successfully',
            'application': application.to_dict(),
        })


@applications_bp.post('/message')
@authenticate_token
@require_recruiter
def send_message():
    data = request_data()
    application_ids = data.get('applicationIds')
    content = clean_text(data.get('message'), 'message')
    if not isinstance(application_ids, list) or not application_ids or not content:
        raise ValidationError('applicationIds and message are required')
    try:
        application_ids = {int(value) for value in application_ids}
    except (TypeError, ValueError):
        raise ValidationError('applicationIds must be numbers')

    with get_db().session() as session:
        applications = session.query(JobApplication).filter(JobApplication.id.in_(application_ids)).all()
        if not applications:
            raise NotFoundError('No applications found')
        # All-or-nothing: one foreign or unknown id rejects the whole batch.
        if len(applications) != len(application_ids) or any(
            app.recruiter_id != request.user.id for app in applications
        ):
            raise AuthorizationError('Not authorized to message some of these applicants')

        for application in applications:
            session.add(ApplicationMessage(
                application_id=application.id,
                sender_id=request.user.id,
                content=content,
            ))
    return jsonify({'message': 'Message sent successfully', 'count': len(applications)})
