"""Send transactional email (password reset)."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from starlette.concurrency import run_in_threadpool

from storefront.config import Settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class EmailSender:
    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        return bool(self.settings.smtp_host)

    async def send(self, to_email: str, subject: str, body: str) -> None:
        """Deliver a plain-text message. Raises EmailDeliveryError on failure."""
        if not self.configured:
            logger.warning("SMTP not configured; cannot send %r to %s", subject, to_email)
            raise EmailDeliveryError("SMTP not configured")
        try:
            await run_in_threadpool(self._send_sync, to_email, subject, body)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailDeliveryError(str(e)) from e

    def _send_sync(self, to_email: str, subject: str, body: str) -> None:
        settings = self.settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_from
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if settings.smtp_user and settings.smtp_password:
                smtp.login(settings.smtp_user, settings.smtp_password)
            smtp.sendmail(settings.smtp_from, [to_email], msg.as_string())


def password_reset_email(reset_url: str, expire_minutes: int) -> tuple[str, str]:
    """Return (subject, body) for a reset message."""
    subject = "Your password reset token (valid for %d minutes)" % expire_minutes
    body = f"""Hello,

Forgot your password? Submit a PATCH request with your new password to:

{reset_url}

This link expires in {expire_minutes} minutes. If you didn't request this, you can ignore this email.
"""
    return subject, body
