"""
Email adapter for the household services backend.

The default implementation uses SMTP, reading credentials from Settings.
"""

from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
import logging
import smtplib
import ssl

from .config import get_settings

logger = logging.getLogger(__name__)

_PURPOSE_SUBJECTS = {
    "login": "Your login verification code",
    "reset_password": "Your password reset code",
}


def send_email(subject: str, to_email: str, html_body: str, text_body: str | None = None) -> bool:
    """
    Send an e-mail using the SMTP credentials from the environment.
    Returns False without sending when SMTP is not configured.
    """
    settings = get_settings()
    if not (
        settings.smtp_host
        and settings.smtp_user
        and settings.smtp_password
        and settings.smtp_from
        and settings.smtp_port
    ):
        logger.warning("SMTP is not configured; skipping e-mail to %s", to_email)
        return False
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.smtp_from
    msg["To"] = to_email
    plain = text_body or html_body
    msg.attach(MIMEText(plain, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    port = settings.smtp_port or 465
    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.smtp_host, port, context=context) as server:
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(settings.smtp_host, port) as server:
                server.ehlo()
                server.starttls(context=ssl.create_default_context())
                server.login(settings.smtp_user, settings.smtp_password)
                server.sendmail(settings.smtp_from, [to_email], msg.as_string())
        return True
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Failed to send e-mail to %s: %s", to_email, exc)
        return False


def send_verification_code(to_email: str, code: str, purpose: str, expires_in: int) -> bool:
    """Mail a verification code; the caller decides what a failed send means."""
    minutes = max(1, expires_in // 60)
    subject = _PURPOSE_SUBJECTS.get(purpose, "Your verification code")
    html_body = f"""
    <p>Hello!</p>
    <p>Your verification code is:</p>
    <p style="font-size:24px;font-weight:bold;letter-spacing:4px;">{code}</p>
    <p>The code expires in {minutes} minute(s). If you did not request it, ignore this message.</p>
    """
    text_body = f"Your verification code is {code}. It expires in {minutes} minute(s)."
    return send_email(subject, to_email, html_body, text_body)
