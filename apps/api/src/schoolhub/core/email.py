"""
Outbound Mail

Account emails delivered through Resend. Delivery never fails a request:
errors are logged and reported as ``False`` to the caller.

Without RESEND_API_KEY (local development, tests) messages are written to
the log instead of being sent.
"""

import asyncio
import logging
from html import escape

import resend

from schoolhub.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_LAYOUT = """<!DOCTYPE html>
<html>
<body style="margin:0;background:#f3f4f6;font-family:Arial,Helvetica,sans-serif;color:#111827;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0">
    <tr>
      <td align="center" style="padding:32px 16px;">
        <table role="presentation" width="560" style="background:#ffffff;border-radius:6px;">
          <tr><td style="padding:28px 32px;">{body}</td></tr>
          <tr>
            <td style="padding:16px 32px;font-size:12px;color:#6b7280;">
              SchoolHub &middot; this is an automated message, replies are not read.
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def render_email(body_html: str) -> str:
    """Wrap an HTML fragment in the shared mail layout."""
    return _LAYOUT.format(body=body_html)


async def send_email(to_email: str, subject: str, html: str, text: str | None = None) -> bool:
    """
    Deliver one message.

    Returns:
        True when Resend accepted the message or it was logged instead,
        False when delivery failed
    """
    if not resend.api_key:
        logger.info(f"Mail delivery disabled, would send '{subject}' to {to_email}")
        return True

    params: resend.Emails.SendParams = {
        "from": settings.email_from,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    if text:
        params["text"] = text

    try:
        # resend.Emails.send blocks on HTTP
        sent = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Resend rejected '{subject}' for {to_email}: {e}")
        return False

    logger.info(f"Sent '{subject}' to {to_email} (resend id {sent.get('id')})")
    return True


async def send_password_reset_email(to_email: str, username: str, token: str) -> bool:
    """Mail a password reset link carrying the reset token."""
    reset_url = f"{settings.frontend_url}/reset-password?token={token}"
    minutes = settings.reset_token_expire_minutes

    body = f"""
      <h2 style="margin-top:0;">Password reset</h2>
      <p>Hi {escape(username)},</p>
      <p>Someone asked to reset the password of your SchoolHub account.
         Use the button below within {minutes} minutes to choose a new one.</p>
      <p style="margin:24px 0;">
        <a href="{escape(reset_url)}"
           style="background:#2563eb;color:#ffffff;padding:12px 22px;border-radius:4px;
                  text-decoration:none;">Choose a new password</a>
      </p>
      <p style="font-size:13px;color:#4b5563;word-break:break-all;">{escape(reset_url)}</p>
      <p style="font-size:13px;color:#4b5563;">
        If this wasn't you, ignore this email and your password stays the same.</p>
    """
    text = (
        f"Hi {username},\n\n"
        f"Reset your SchoolHub password within {minutes} minutes:\n{reset_url}\n\n"
        "If this wasn't you, ignore this email."
    )

    return await send_email(
        to_email,
        "Reset your SchoolHub password",
        render_email(body),
        text=text,
    )
