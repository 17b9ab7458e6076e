import math

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func, or_

from db import get_db
from errors import NotFoundError, ValidationError
from helpers.fields import clean_text, optional_text
from models.applications import JobApplication
from models.listings import JOB_STATUSES, Job
from utils import authenticate_token, parse_int, request_data, require_recruiter

jobs_bp = Blueprint('jobs', __name__)

UPDATABLE_FIELDS = ('title', 'company', 'description', 'requirements', 'position', 'location', 'status')


def parse_range(value, field, required=True):
    """``{"min": a, "max": b}`` -> ``(a, b)``; a bare number means min == max."""
    if value is None or value == '' or value == {}:
        if required:
            return None
        return (None, None)
    if isinstance(value, dict):
        low = parse_int(value.get('min'), f'{field}.min')
        high = parse_int(value.get('max'), f'{field}.max')
    else:
        low = high = parse_int(value, field)
    if low is not None and high is not None and low > high:
        raise ValidationError(f"Invalid {field} range")
    return (low, high)


def _owned_job(session, job_id):
    job = session.query(Job).filter(Job.id == job_id, Job.recruiter_id == request.user.id).first()
    if not job:
        raise NotFoundError('Job not found')
    return job


@jobs_bp.post('/')
@authenticate_token
@require_recruiter
def create_job():
    data = request_data()
    title = clean_text(data.get('title'), 'title')
    description = clean_text(data.get('description'), 'description')
    position = clean_text(data.get('position'), 'position')
    location = clean_text(data.get('location'), 'location')
    experience = parse_range(data.get('experience'), 'experience')
    salary = parse_range(data.get('salary'), 'salary')

    missing_fields = [
        name for name, value in (
            ('title', title),
            ('description', description),
            ('position', position),
            ('experience', experience),
            ('salary', salary),
            ('location', location),
        ) if not value
    ]
    if missing_fields:
        raise ValidationError(f'Missing required fields: {", ".join(missing_fields)}')

    # Company defaults to the recruiter's profile
    company = clean_text(data.get('company'), 'company') or request.user.company_name

    with get_db().session() as session:
        job = Job(
            recruiter_id=request.user.id,
            title=title,
            company=company,
            description=description,
            requirements=optional_text(data.get('requirements'), 'requirements'),
            position=position,
            location=location,
            experience_min=experience[0],
            experience_max=experience[1],
            salary_min=salary[0],
            salary_max=salary[1],
        )
        session.add(job)
        session.flush()
        current_app.logger.info("Job %s created by recruiter %s", job.id, request.user.id)
        return jsonify({'message': 'Job posted successfully', 'job': job.to_dict()}), 201


@jobs_bp.get('/my-jobs')
@authenticate_token
@require_recruiter
def get_recruiter_jobs():
    page = max(parse_int(request.args.get('page'), 'page', 1), 1)
    limit = min(max(parse_int(request.args.get('limit'), 'limit', 10), 1), 100)
    status = request.args.get('status')
    search = (request.args.get('search') or '').strip()

    with get_db().session() as session:
        query = session.query(Job).filter(Job.recruiter_id == request.user.id)
        if status:
            query = query.filter(Job.status == status)
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(Job.title.ilike(pattern), Job.location.ilike(pattern)))

        total = query.count()
        jobs = query.order_by(Job.created_at.desc(), Job.id.desc()).offset((page - 1) * limit).limit(limit).all()

        counts = dict(
            session.query(JobApplication.job_id, func.count(JobApplication.id))
            .filter(JobApplication.job_id.in_([job.id for job in jobs]))
            .group_by(JobApplication.job_id)
            .all()
        ) if jobs else {}

        formatted = []
        for job in jobs:
            item = job.to_dict()
            item['applicationCount'] = counts.get(job.id, 0)
            formatted.append(item)

    return jsonify({
        'jobs': formatted,
        'pagination': {
            'total': total,
            'totalPages': math.ceil(total / limit),
            'currentPage': page,
            'limit': limit,
        },
    })


@jobs_bp.get('/my-jobs/<int:job_id>')
@authenticate_token
@require_recruiter
def get_job(job_id: int):
    with get_db().session() as session:
        job = _owned_job(session, job_id)
        return jsonify({'job': job.to_dict(with_recruiter=True)})


@jobs_bp.put('/my-jobs/<int:job_id>')
@authenticate_token
@require_recruiter
def update_job(job_id: int):
    data = request_data()
    with get_db().session() as session:
        job = _owned_job(session, job_id)

        if 'status' in data and data['status'] not in JOB_STATUSES:
            raise ValidationError('Invalid status')
        for field in UPDATABLE_FIELDS:
            if field in data and data[field] is not None:
                value = clean_text(data[field], field)
                if field in ('title', 'description', 'location') and not value:
                    raise ValidationError(f'{field} cannot be empty')
                setattr(job, field, value)

        if data.get('experience') is not None:
            job.experience_min, job.experience_max = parse_range(data['experience'], 'experience', required=False)
        if data.get('salary') is not None:
            job.salary_min, job.salary_max = parse_range(data['salary'], 'salary', required=False)

        session.flush()
        return jsonify({'message': 'Job updated successfully', 'job': job.to_dict()})


@jobs_bp.delete('/my-jobs/<int:job_id>')
@authenticate_token
@require_recruiter
def delete_job(job_id: int):
    with get_db().session() as session:
        job = _owned_job(session, job_id)
        session.delete(job)
    current_app.logger.info("Job %s deleted by recruiter %s", job_id, request.user.id)
    return jsonify({'message': 'Job deleted successfully'})
