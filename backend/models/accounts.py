from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from . import Base, utcnow

JOB_SEEKER = 'user'
RECRUITER = 'recruiter'

UNVERIFIED = 'unverified'
OTP_ISSUED = 'otp_issued'
VERIFIED = 'verified'


class AccountMixin:
    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255))
    verification_state = Column(String(20), default=UNVERIFIED, nullable=False)
    otp_code = Column(String(6))
    otp_expires_at = Column(DateTime)
    name = Column(String(255))
    phone_number = Column(String(20))
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def is_verified(self) -> bool:
        return self.verification_state == VERIFIED

    def issue_otp(self, code, expires_at):
        # A fresh code always replaces the outstanding one.
        self.otp_code = code
        self.otp_expires_at = expires_at
        self.verification_state = OTP_ISSUED
        self.updated_at = utcnow()


class JobSeeker(AccountMixin, Base):
    __tablename__ = 'job_seekers'

    role = JOB_SEEKER

    skills = Column(JSON, default=list)
    experience = Column(Integer, default=0)
    education = Column(JSON, default=dict)
    location = Column(String(255))
    resume_url = Column(String(1024))

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'phoneNumber': self.phone_number,
            'skills': self.skills or [],
            'experience': self.experience or 0,
            'education': self.education or {},
            'location': self.location,
            'resume': self.resume_url,
            'isVerified': self.is_verified,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }


class Recruiter(AccountMixin, Base):
    __tablename__ = 'recruiters'

    role = RECRUITER

    designation = Column(String(255))
    company_name = Column(String(255))
    company_website = Column(String(512))
    location = Column(String(255))
    about = Column(Text)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'phoneNumber': self.phone_number,
            'designation': self.designation,
            'companyName': self.company_name,
            'companyWebsite': self.company_website,
            'location': self.location,
            'about': self.about,
            'isVerified': self.is_verified,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


ACCOUNT_MODELS = {
    JOB_SEEKER: JobSeeker,
    RECRUITER: Recruiter,
}
