from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from . import Base, utcnow

JOB_STATUSES = ('active', 'closed')
REFERRAL_STATUSES = ('active', 'closed', 'expired')


def _iso(value):
    return value.isoformat() if value else None


class Job(Base):
    __tablename__ = 'jobs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255))
    description = Column(Text, nullable=False)
    requirements = Column(Text)
    position = Column(String(255))
    location = Column(String(255), nullable=False)
    salary_min = Column(Integer)
    salary_max = Column(Integer)
    experience_min = Column(Integer)
    experience_max = Column(Integer)
    status = Column(String(20), default='active', nullable=False)
    recruiter_id = Column(Integer, ForeignKey('recruiters.id', ondelete='CASCADE'), index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    recruiter = relationship('Recruiter')
    applications = relationship('JobApplication', back_populates='job', cascade='all, delete-orphan')

    def to_dict(self, with_recruiter=False):
        data = {
            'id': self.id,
            'title': self.title,
            'company': self.company,
            'description': self.description,
            'requirements': self.requirements,
            'position': self.position,
            'location': self.location,
            'salary': {'min': self.salary_min, 'max': self.salary_max},
            'experience': {'min': self.experience_min, 'max': self.experience_max},
            'status': self.status,
            'recruiter': self.recruiter_id,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
        if with_recruiter and self.recruiter is not None:
            data['recruiter'] = {
                'id': self.recruiter.id,
                'name': self.recruiter.name,
                'companyName': self.recruiter.company_name,
                'companyWebsite': self.recruiter.company_website,
            }
        return data


class Referral(Base):
    __tablename__ = 'referrals'

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_title = Column(String(255), nullable=False)
    job_code = Column(String(255))
    company = Column(String(255), nullable=False)
    referrer_name = Column(String(255), nullable=False)
    referrer_email = Column(String(255), nullable=False)
    message = Column(Text)
    deadline = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default='active', nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    applications = relationship('ReferralApplication', back_populates='referral', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'jobTitle': self.job_title,
            'jobId': self.job_code,
            'company': self.company,
            'referrerName': self.referrer_name,
            'referrerEmail': self.referrer_email,
            'message': self.message,
            'deadline': _iso(self.deadline),
            'status': self.status,
            'createdAt': _iso(self.created_at),
        }
