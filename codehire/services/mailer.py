"""Email copies of notifications over SMTP, with a logged simulation fallback."""

import asyncio
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from codehire.config import settings

logger = logging.getLogger(__name__)

HTML_TEMPLATE_BASE = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: 'Inter', -apple-system, sans-serif; background-color: #f8f9fa; color: #333; margin: 0; padding: 0; }
        .container { max-width: 600px; margin: 40px auto; background: #ffffff; border-radius: 12px; overflow: hidden; }
        .header { background: #0d6efd; padding: 30px 40px; text-align: center; }
        .header h1 { color: #ffffff; margin: 0; font-size: 24px; }
        .content { padding: 40px; line-height: 1.6; }
        .btn { display: inline-block; background: #0d6efd; color: #ffffff; text-decoration: none; padding: 14px 28px; border-radius: 8px; font-weight: 600; }
        .footer { background: #f1f3f5; padding: 20px; text-align: center; color: #6c757d; font-size: 13px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>CodeHire</h1>
        </div>
        <div class="content">
            {body}
        </div>
        <div class="footer">
            <p>You received this email because you have an account on CodeHire.</p>
        </div>
    </div>
</body>
</html>
"""


def _send_email_sync(recipient_email: str, subject: str, html_body: str) -> bool:
    """Send (or simulate) one email. Returns False when SMTP delivery failed."""
    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.info("Simulated email to %s: %s", recipient_email, subject)
        logger.debug("Simulated email body:\n%s", html_body)
        return True

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"CodeHire <{settings.SMTP_USERNAME}>"
    msg["To"] = recipient_email
    msg.attach(MIMEText(html_body, "html"))

    try:
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=settings.NOTIFY_TIMEOUT_SECONDS) as server:
            server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.send_message(msg)
        logger.info("Email sent to %s", recipient_email)
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", recipient_email, e)
        return False


def render_decision_email(project_title: str, decision: str, project_id: int) -> str:
    link = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/projects/{project_id}"
    body = f"""
    <h2>Hello,</h2>
    <p>Your application for <strong>{html.escape(project_title)}</strong> has been <strong>{html.escape(decision)}</strong>.</p>
    <p>Log into CodeHire to see the details.</p>
    <p><a href="{link}" class="btn">View Project</a></p>
    """
    return HTML_TEMPLATE_BASE.replace("{body}", body)


async def send_decision_email(recipient_email: str, project_title: str, decision: str, project_id: int) -> bool:
    """Tell an applicant their application was accepted or rejected."""
    subject = f"Your application for {project_title} was {decision}"
    html_body = render_decision_email(project_title, decision, project_id)
    # Run synchronous SMTP in a threadpool to avoid blocking the event loop
    return await asyncio.to_thread(_send_email_sync, recipient_email, subject, html_body)
