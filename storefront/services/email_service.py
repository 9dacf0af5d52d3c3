"""Send transactional email (signup confirmation, password reset)."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from storefront.config import Settings
from storefront.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP transport; built once at startup and handed to the routes that mail."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.sender = settings.smtp_from
        self.use_tls = settings.smtp_use_tls

    def send(self, to_email: str, subject: str, html: str) -> None:
        if not self.host:
            logger.info("SMTP not configured; skipping %r to %s", subject, to_email)
            return
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to_email
        msg.attach(MIMEText(html, "html"))
        try:
            with smtplib.SMTP(self.host, self.port) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.sendmail(self.sender, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise UpstreamError(f"Mail delivery failed: {e}") from e


def send_signup_confirmation(mailer: Mailer, to_email: str) -> None:
    """Best effort: the account already exists, so failures are only logged."""
    try:
        mailer.send(
            to_email,
            "Signup succeeded",
            "<h1>You successfully signed up!</h1>",
        )
    except UpstreamError:
        logger.warning("Signup confirmation to %s could not be sent", to_email, exc_info=True)


def send_password_reset_email(
    mailer: Mailer, to_email: str, link: str, expires_minutes: int = 60
) -> None:
    mailer.send(
        to_email,
        "Password reset",
        f"""
<p>You requested a password reset.</p>
<p>Click this <a href="{link}">link</a> to set a new password.</p>
<p>This link expires in {expires_minutes} minutes. If you didn't request this, you can ignore this email.</p>
""",
    )
