from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from . import Base, utcnow

APPLICATION_STATUSES = ('pending', 'reviewing', 'shortlisted', 'rejected', 'hired')


def _iso(value):
    return value.isoformat() if value else None


class JobApplication(Base):
    __tablename__ = 'job_applications'
    __table_args__ = (UniqueConstraint('job_id', 'applicant_id', name='uq_job_applications_job_applicant'),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey('jobs.id', ondelete='CASCADE'), index=True, nullable=False)
    applicant_id = Column(Integer, ForeignKey('job_seekers.id', ondelete='CASCADE'), index=True, nullable=False)
    recruiter_id = Column(Integer, ForeignKey('recruiters.id'), index=True, nullable=False)
    status = Column(String(20), default='pending', nullable=False)
    resume_url = Column(String(1024), nullable=False)
    applied_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    job = relationship('Job', back_populates='applications')
    applicant = relationship('JobSeeker')
    messages = relationship(
        'ApplicationMessage',
        back_populates='application',
        cascade='all, delete-orphan',
        order_by='ApplicationMessage.created_at',
    )

    def to_dict(self, with_job=False, with_applicant=False, with_messages=False):
        data = {
            'id': self.id,
            'job': self.job_id,
            'applicant': self.applicant_id,
            'recruiter': self.recruiter_id,
            'status': self.status,
            'resume': self.resume_url,
            'appliedDate': _iso(self.applied_at),
            'updatedAt': _iso(self.updated_at),
        }
        if with_job and self.job is not None:
            job = self.job
            data['job'] = {
                'id': job.id,
                'title': job.title,
                'company': job.company or (job.recruiter.company_name if job.recruiter else None),
                'description': job.description,
                'location': job.location,
                'salary': {'min': job.salary_min, 'max': job.salary_max},
                'status': job.status,
            }
        if with_applicant and self.applicant is not None:
            data['applicant'] = {
                'id': self.applicant.id,
                'name': self.applicant.name,
                'email': self.applicant.email,
                'phoneNumber': self.applicant.phone_number,
            }
        if with_messages:
            data['feedbacks'] = [message.to_dict() for message in self.messages]
        return data


class ApplicationMessage(Base):
    __tablename__ = 'application_messages'

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey('job_applications.id', ondelete='CASCADE'), index=True, nullable=False)
    sender_id = Column(Integer, ForeignKey('recruiters.id'), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    application = relationship('JobApplication', back_populates='messages')

    def to_dict(self):
        return {
            'id': self.id,
            'sender': self.sender_id,
            'content': self.content,
            'timestamp': _iso(self.created_at),
        }


class ReferralApplication(Base):
    __tablename__ = 'referral_applications'
    __table_args__ = (UniqueConstraint('referral_id', 'applicant_id', name='uq_referral_applications_referral_applicant'),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    referral_id = Column(Integer, ForeignKey('referrals.id', ondelete='CASCADE'), index=True, nullable=False)
    applicant_id = Column(Integer, ForeignKey('job_seekers.id', ondelete='CASCADE'), index=True, nullable=False)
    resume_url = Column(String(1024), nullable=False)
    message = Column(Text)
    applied_at = Column(DateTime, default=utcnow, nullable=False)

    referral = relationship('Referral', back_populates='applications')
    applicant = relationship('JobSeeker')

    def to_dict(self, with_referral=False):
        data = {
            'id': self.id,
            'referral': self.referral_id,
            'applicant': self.applicant_id,
            'resume': self.resume_url,
            'message': self.message,
            'appliedDate': _iso(self.applied_at),
        }
        if with_referral and self.referral is not None:
            data['referral'] = self.referral.to_dict()
        return data
