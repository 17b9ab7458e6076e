from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_
from sqlalchemy.orm import joinedload

from db import get_db, is_integrity_error
from errors import AuthorizationError, ConflictError, NotFoundError, StorageError, ValidationError
from helpers.fields import clean_text, optional_text
from helpers.otp_utils import is_valid_phone, normalize_phone
from models.accounts import JOB_SEEKER
from models.applications import JobApplication
from models.listings import Job
from utils import authenticate_token, get_account_service, get_storage, parse_int, request_data, require_job_seeker

jobseekers_bp = Blueprint('jobseekers', __name__)


def _job_summary(job):
    data = job.to_dict()
    data['recruiter'] = {
        'id': job.recruiter_id,
        'name': job.recruiter.name if job.recruiter else None,
        'companyName': job.recruiter.company_name if job.recruiter else None,
    }
    return data


def _has_applied(session, job_id, applicant_id):
    return session.query(JobApplication.id).filter_by(job_id=job_id, applicant_id=applicant_id).first() is not None


@jobseekers_bp.get('/jobs')
@authenticate_token
@require_job_seeker
def list_jobs():
    args = request.args
    search = (args.get('search') or '').strip()
    location = (args.get('location') or '').strip()
    experience_min = parse_int(args.get('experienceMin'), 'experienceMin')
    experience_max = parse_int(args.get('experienceMax'), 'experienceMax')
    salary_min = parse_int(args.get('salaryMin'), 'salaryMin')
    salary_max = parse_int(args.get('salaryMax'), 'salaryMax')

    with get_db().session() as session:
        query = session.query(Job).options(joinedload(Job.recruiter)).filter(Job.status == 'active')
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(
                Job.title.ilike(pattern),
                Job.description.ilike(pattern),
                Job.position.ilike(pattern),
            ))
        if location:
            query = query.filter(Job.location.ilike(f'%{location}%'))
        if experience_min is not None:
            query = query.filter(Job.experience_min >= experience_min)
        if experience_max is not None:
            query = query.filter(Job.experience_max <= experience_max)
        if salary_min is not None:
            query = query.filter(Job.salary_min >= salary_min)
        if salary_max is not None:
            query = query.filter(Job.salary_max <= salary_max)

        jobs = query.order_by(Job.created_at.desc(), Job.id.desc()).all()
        return jsonify({'jobs': [_job_summary(job) for job in jobs]})


@jobseekers_bp.get('/jobs/<int:job_id>')
@authenticate_token
@require_job_seeker
def job_details(job_id: int):
    with get_db().session() as session:
        job = session.get(Job, job_id)
        if not job:
            raise NotFoundError('Job not found')
        return jsonify({
            'job': job.to_dict(with_recruiter=True),
            'hasApplied': _has_applied(session, job_id, request.user.id),
        })


@jobseekers_bp.get('/jobs/<int:job_id>/check-application')
@authenticate_token
@require_job_seeker
def check_application(job_id: int):
    with get_db().session() as session:
        return jsonify({'hasApplied': _has_applied(session, job_id, request.user.id)})


@jobseekers_bp.post('/jobs/<int:job_id>/apply')
@authenticate_token
@require_job_seeker
def apply_for_job(job_id: int):
    applicant = request.user
    storage = get_storage()
    uploaded_url = None

    try:
        with get_db().session() as session:
            job = session.get(Job, job_id)
            if not job:
                raise NotFoundError('Job not found')
            if job.status != 'active':
                raise ValidationError('This job is no longer accepting applications')
            if _has_applied(session, job_id, applicant.id):
                raise ConflictError('You have already applied for this job')

            upload = request.files.get('resume')
            if upload and upload.filename:
                uploaded_url = storage.save(upload)
            resume_url = uploaded_url or applicant.resume_url
            if not resume_url:
                raise ValidationError('Resume is required')

            application = JobApplication(
                job_id=job.id,
                applicant_id=applicant.id,
                recruiter_id=job.recruiter_id,
                status='pending',
                resume_url=resume_url,
            )
            session.add(application)
            session.flush()
            result = application.to_dict(with_job=True)
    except StorageError as exc:
        if uploaded_url:
            storage.delete(uploaded_url)
        if is_integrity_error(exc):
            raise ConflictError('You have already applied for this job') from exc
        raise

    current_app.logger.info("Job seeker %s applied to job %s", applicant.id, job_id)
    return jsonify({'message': 'Application submitted successfully', 'application': result}), 201


@jobseekers_bp.get('/applications')
@authenticate_token
@require_job_seeker
def list_applications():
    with get_db().session() as session:
        applications = (
            session.query(JobApplication)
            .options(joinedload(JobApplication.job).joinedload(Job.recruiter))
            .filter(JobApplication.applicant_id == request.user.id)
            .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
            .all()
        )
        formatted = [app.to_dict(with_job=True, with_messages=True) for app in applications]
    return jsonify({'success': True, 'applications': formatted, 'count': len(formatted)})


@jobseekers_bp.delete('/applications/<int:application_id>')
@authenticate_token
@require_job_seeker
def withdraw_application(application_id: int):
    with get_db().session() as session:
        application = session.get(JobApplication, application_id)
        if not application:
            raise NotFoundError('Application not found')
        if application.applicant_id != request.user.id:
            raise AuthorizationError('Not authorized to withdraw this application')
        if application.status != 'pending':
            raise ValidationError('Only pending applications can be withdrawn')
        session.delete(application)
    return jsonify({'message': 'Application withdrawn successfully'})


@jobseekers_bp.get('/profile')
@authenticate_token
@require_job_seeker
def get_profile():
    return jsonify({'profile': request.user.to_dict()})


@jobseekers_bp.put('/profile')
@authenticate_token
@require_job_seeker
def update_profile():
    data = request_data()
    values = {}

    if 'name' in data:
        name = clean_text(data.get('name'), 'name')
        if not name:
            raise ValidationError('Name cannot be empty')
        values['name'] = name
    if 'phoneNumber' in data:
        if not is_valid_phone(data.get('phoneNumber')):
            raise ValidationError('Invalid phone number format. Must be 10 digits.')
        values['phone_number'] = normalize_phone(data['phoneNumber'])
    if 'skills' in data:
        skills = data.get('skills')
        if isinstance(skills, str):
            skills = skills.split(',')
        if not isinstance(skills, list):
            raise ValidationError('Skills must be a list')
        values['skills'] = [str(s).strip() for s in skills if str(s).strip()]
    if 'experience' in data:
        values['experience'] = parse_int(data.get('experience'), 'experience', 0)
    if 'education' in data:
        if not isinstance(data.get('education'), dict):
            raise ValidationError('Education must be an object')
        values['education'] = data['education']
    if 'location' in data:
        values['location'] = optional_text(data.get('location'), 'location')

    upload = request.files.get('resume')
    if upload and upload.filename:
        values['resume_url'] = get_storage().save(upload)

    account = _save_profile(values)
    return jsonify({'message': 'Profile updated successfully', 'profile': account.to_dict()})


@jobseekers_bp.post('/profile/resume')
@authenticate_token
@require_job_seeker
def upload_resume():
    resume_url = get_storage().save(request.files.get('resume'))
    account = _save_profile({'resume_url': resume_url})
    current_app.logger.info("Job seeker %s uploaded a resume", account.id)
    return jsonify({'message': 'Resume uploaded successfully', 'resumeUrl': resume_url})


def _save_profile(values):
    account = get_account_service().store.update_profile(JOB_SEEKER, request.user.id, values)
    if account is None:
        raise NotFoundError('User not found')
    return account
