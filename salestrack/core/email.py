import logging

import requests

from salestrack.core.config import settings
from salestrack.core.errors import UpstreamFailure

logger = logging.getLogger("salestrack")

RESEND_URL = "https://api.resend.com/emails"


def send_email(to_email: str, subject: str, html: str):
    """Send one email through Resend. Raises UpstreamFailure on any problem."""
    if not settings.RESEND_API_KEY:
        raise UpstreamFailure("email", "RESEND_API_KEY is not configured")

    payload = {
        "from": settings.RESEND_FROM_EMAIL,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }

    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            RESEND_URL,
            json=payload,
            headers=headers,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        raise UpstreamFailure("email", str(exc)) from exc

    if response.status_code >= 400:
        raise UpstreamFailure("email", f"Email sending failed: {response.text}")


def notify(to_email: str | None, subject: str, html: str) -> bool:
    """
    Fire-and-forget wrapper around send_email.

    The operation this notification belongs to has already succeeded, so a
    delivery failure is logged and reported as False instead of raised.
    """
    if not to_email:
        return False

    try:
        send_email(to_email, subject, html)
    except UpstreamFailure:
        logger.exception(f"Notification to {to_email} failed: {subject}")
        return False

    logger.info(f"Notification sent to {to_email}: {subject}")
    return True


# =========================================================
# MESSAGES
# =========================================================

def send_password_reset_link(to_email: str | None, username: str, reset_link: str) -> bool:
    html = f"""
<h2>Password reset</h2>
<p>Hi {username},</p>
<p>A password reset was requested for your SalesTrack account.</p>
<p><a href="{reset_link}">Set a new password</a></p>
<p>This link will expire in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</p>
<p>If you did not request this, you can safely ignore this email.</p>
"""
    return notify(to_email, "Reset your SalesTrack password", html)


def send_reset_request_to_admin(username: str, reset_link: str, to_email: str | None = None) -> bool:
    html = f"""
<h2>Password reset request</h2>
<p><strong>User:</strong> {username}</p>
<p>This account has no email address on file. Please contact the user and
pass on the reset link below, or reset the password from the admin panel.</p>
<p><a href="{reset_link}">{reset_link}</a></p>
"""
    return notify(to_email or settings.ADMIN_RESET_EMAIL, f"Password reset request - {username}", html)


def send_password_changed_by_admin(to_email: str | None, username: str) -> bool:
    html = f"""
<h2>Password reset</h2>
<p>Hi {username},</p>
<p>Your password was reset by an administrator. Ask them for your temporary
password, then change it right after signing in.</p>
"""
    return notify(to_email, "Your password has been reset", html)
