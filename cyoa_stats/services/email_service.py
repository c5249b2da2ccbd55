"""
CYOA Stats — credential mail for newly registered projects.

Sent over SMTP with STARTTLS (``SMTP_HOST`` / ``SMTP_PORT``, Gmail by default).
For Gmail, ``SMTP_APP_PASSWORD`` is an App Password generated at
https://myaccount.google.com/apppasswords.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from cyoa_stats.config import settings

logger = logging.getLogger(__name__)


def compose_message(sender: str, to: str, subject: str, body_text: str, body_html: str | None = None) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = f"CYOA Stats <{sender}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body_text)
    if body_html:
        msg.add_alternative(body_html, subtype="html")
    return msg


def _deliver(sender: str, password: str, msg: EmailMessage) -> None:
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
        server.starttls()
        server.login(sender, password)
        server.send_message(msg)


async def send_email(to: str, subject: str, body_text: str, body_html: str | None = None) -> dict:
    """
    Deliver one message without blocking the event loop.
    Returns {"success": True/False, "message": "..."}; never raises for SMTP trouble.
    """
    sender = settings.smtp_email
    password = settings.smtp_app_password
    if not sender or not password:
        logger.warning("SMTP not configured — credentials for %s not mailed", to)
        return {"success": False, "message": "SMTP credentials not configured"}

    msg = compose_message(sender, to, subject, body_text, body_html)
    loop = asyncio.get_running_loop()
    try:
        await loop.run_in_executor(None, _deliver, sender, password, msg)
    except smtplib.SMTPAuthenticationError as e:
        logger.error("SMTP auth failed: %s", e)
        return {"success": False, "message": "SMTP authentication failed"}
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Email to %s failed: %s", to, e)
        return {"success": False, "message": f"Email failed: {e}"}

    logger.info("✉️ Credentials mailed to %s", to)
    return {"success": True, "message": f"Email sent to {to}"}


def build_registration_email(project_id: str, secret_key: str) -> tuple[str, str, str]:
    """Project-credentials mail. Returns (subject, text_body, html_body)."""
    subject = "Your CYOA Stats project key"
    text = (
        f"Project ID (public, goes in initializeLogging): {project_id}\n"
        f"Secret key (private, used to download your logs): {secret_key}\n\n"
        "We only keep a hash of the secret key. If you lose this email the key\n"
        "cannot be recovered; register a new project instead.\n"
    )
    html = f"""
    <div style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 40px 20px;">
      <h1 style="color: #111; font-size: 24px; text-align: center;">📊 Project registered</h1>
      <div style="background: #f9fafb; border: 1px solid #e5e7eb; border-radius: 12px; padding: 24px; margin-bottom: 24px;">
        <p style="margin: 0 0 8px;"><strong>Project ID</strong> (public, goes in <code>initializeLogging</code>)</p>
        <p style="font-family: monospace; margin: 0 0 24px;">{project_id}</p>
        <p style="margin: 0 0 8px;"><strong>Secret key</strong> (private, used to download your logs)</p>
        <p style="font-family: monospace; margin: 0;">{secret_key}</p>
      </div>
      <p style="color: #92400e; font-size: 13px;">
        We only keep a hash of the secret key. If you lose this email the key
        cannot be recovered; register a new project instead.
      </p>
    </div>
    """
    return subject, text, html
