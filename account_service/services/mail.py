"""Verification e-mail job and the queue used to schedule it."""

import logging
import smtplib
from email.message import EmailMessage

from account_service.config import get_settings
from account_service.worker import celery_app

logger = logging.getLogger("account_service.mail")

MAX_ATTEMPTS = 3
RETRY_DELAY_SECONDS = 5


def build_verification_message(email: str, username: str, email_verify_token: str) -> EmailMessage:
    """Compose the verification e-mail for a user."""
    settings = get_settings()
    verify_url = f"{settings.BACKEND_URL.rstrip('/')}/api/v1/users/verify-email/{email_verify_token}"

    msg = EmailMessage()
    msg["From"] = settings.MAIL_FROM
    msg["To"] = email
    msg["Subject"] = f"{username}'s Verification Email"
    msg.set_content(f"Hello {username},\n\nVerify your email address by opening:\n{verify_url}\n")
    msg.add_alternative(
        f"<p>Hello {username},</p>"
        f"<p>To complete your email verification, please click the link below:</p>"
        f'<p><a href="{verify_url}">Verify Email</a></p>',
        subtype="html",
    )
    return msg


@celery_app.task(
    name="account_service.send_verification_email",
    autoretry_for=(smtplib.SMTPException, OSError),
    max_retries=MAX_ATTEMPTS - 1,
    default_retry_delay=RETRY_DELAY_SECONDS,
)
def send_verification_email(email: str, username: str, email_verify_token: str) -> None:
    """Deliver a verification e-mail over SMTP."""
    settings = get_settings()
    msg = build_verification_message(email, username, email_verify_token)
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
        server.starttls()
        if settings.SMTP_USER:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)
    logger.info("Verification email sent to %s", email)


class VerificationMailQueue:
    """Schedules verification e-mails without waiting for delivery."""

    def enqueue(self, email: str, username: str, email_verify_token: str) -> str:
        """Queue a verification e-mail and return the job id."""
        result = send_verification_email.apply_async(
            kwargs={"email": email, "username": username, "email_verify_token": email_verify_token},
            retry=True,
        )
        logger.info("Queued verification email for %s (job %s)", email, result.id)
        return result.id


_mail_queue: VerificationMailQueue | None = None


def get_mail_queue() -> VerificationMailQueue:
    """Get singleton mail queue instance."""
    global _mail_queue
    if _mail_queue is None:
        _mail_queue = VerificationMailQueue()
    return _mail_queue
