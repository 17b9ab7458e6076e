import logging

from flask_mail import Message

logger = logging.getLogger(__name__)


class Notifier:
    """Best-effort transactional email over Flask-Mail.

    Every ``send_*`` method returns True/False and never raises; callers treat
    delivery as decoupled from the state they have already persisted.
    """

    def __init__(self, mail, settings):
        self.mail = mail
        self.settings = settings

    def _deliver(self, recipient, subject, body):
        if not recipient:
            return False
        try:
            if self.settings.mail_suppress_send or not self.settings.mail_configured:
                logger.info("Dev email (not sent) to %s: %s\n%s", recipient, subject, body)
                return True
            msg = Message(subject=subject, recipients=[recipient], body=body,
                          sender=self.settings.mail_default_sender)
            self.mail.send(msg)
            return True
        except Exception as exc:
            logger.error("Failed to send email to %s: %s", recipient, exc)
            return False

    def send_otp(self, recipient, otp, role='user'):
        greeting = "Dear Recruiter," if role == 'recruiter' else "Dear Job Seeker,"
        body = (
            f"{greeting}\n\n"
            f"Your One-Time Password (OTP) is: {otp}\n"
            f"This code is valid for {self.settings.otp_expire_minutes} minutes.\n\n"
            f"If you did not request this OTP, please ignore this email.\n\n"
            f"Regards,\nJob Board Team"
        )
        return self._deliver(recipient, "Verification OTP", body)

    def send_referral_created(self, referral):
        body = (
            f"Hi {referral.referrer_name},\n\n"
            f"Your referral post for {referral.job_title} at {referral.company} was created successfully.\n"
            f"It stays open until {referral.deadline:%Y-%m-%d %H:%M} UTC.\n\n"
            f"Thanks,\nYour Referral Service"
        )
        subject = f"Referral Post for {referral.job_title} at {referral.company} Created"
        return self._deliver(referral.referrer_email, subject, body)

    def send_referral_application(self, referral, applicant, resume_url, message=''):
        body = (
            f"Hi {referral.referrer_name},\n\n"
            f"{applicant.name} has applied for the {referral.job_title} position at {referral.company}.\n\n"
            f"Applicant Details:\n"
            f"- Name: {applicant.name}\n"
            f"- Email: {applicant.email}\n"
            f"- Resume: {resume_url}\n\n"
            f"Additional Message:\n{message or '-'}\n\n"
            f"Please reach out to them for further referral steps.\n\n"
            f"Thanks,\nYour Referral Service"
        )
        subject = f"New Application for {referral.job_title} at {referral.company}"
        return self._deliver(referral.referrer_email, subject, body)
