"""
Email Service using Resend

Outbound email for the application intake flow: verification codes,
submission confirmations and form-owner bulk messages.

Two entry points:
- deliver_email() raises EmailDeliveryError, for callers that record
  per-recipient outcomes (bulk dispatch)
- send_email() logs and swallows failures, returning a bool, for
  notification side effects that must never fail the request
"""

import asyncio
import logging
from datetime import datetime
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

EMAIL_FROM = settings.email_from
FRONTEND_URL = settings.frontend_url

_BASE_STYLE = """
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .header { color: #1e3a8a; margin-bottom: 24px; }
            .code { font-family: monospace; font-size: 36px; letter-spacing: 6px; color: #1d4ed8; background-color: #eff6ff; padding: 16px; text-align: center; border-radius: 8px; margin: 24px 0; }
            .info-box { background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


class EmailDeliveryError(Exception):
    """Raised when the email provider rejects or fails a send."""

    def __init__(self, to_email: str, reason: str):
        self.to_email = to_email
        self.reason = reason
        super().__init__(reason)


async def deliver_email(
    to_email: str,
    subject: str,
    html_content: str,
    reply_to: str | None = None,
) -> str:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML body
        reply_to: Optional reply-to address

    Returns:
        Provider message id ("logged" when no API key is configured)

    Raises:
        EmailDeliveryError: If the provider call fails
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return "logged"

    params: resend.Emails.SendParams = {
        "from": EMAIL_FROM,
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }
    if reply_to:
        params["reply_to"] = reply_to

    try:
        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        raise EmailDeliveryError(to_email, str(e)) from e

    logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
    return email["id"]


async def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Send an email, logging instead of raising on failure.

    Returns:
        True if the email was handed to the provider
    """
    try:
        await deliver_email(to_email, subject, html_content)
        return True
    except EmailDeliveryError as e:
        logger.error(f"Failed to send email to {to_email}: {e.reason}")
        return False


async def send_verification_code(to_email: str, code: str, expires_minutes: int) -> bool:
    """Send a one-time verification code."""
    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Verify Your Email</h1>

            <p>Dear Applicant,</p>

            <p>Your one-time verification code is:</p>

            <div class="code">{code}</div>

            <p><strong>This code is valid for {expires_minutes} minutes.</strong></p>

            <div class="footer">
                <p>If you did not request this code, you can safely ignore this email.</p>
                <p>This is an automated email. Please do not reply.</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject="Your ApplyDesk verification code",
        html_content=html_content,
    )


async def send_application_received(
    to_email: str,
    applicant_name: str,
    reference: str,
    form_title: str,
    submitted_at: datetime,
    has_document: bool,
) -> bool:
    """Confirm a successful submission to the applicant."""
    safe_name = escape(applicant_name)
    safe_title = escape(form_title)
    document_line = "<li><strong>Document:</strong> Uploaded</li>" if has_document else ""

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_BASE_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Application Received</h1>

            <p>Dear {safe_name},</p>

            <p>Thank you for submitting your application to <strong>{safe_title}</strong>.</p>

            <div class="info-box">
                <ul>
                    <li><strong>Application ID:</strong> {escape(reference)}</li>
                    <li><strong>Submitted:</strong> {submitted_at.strftime("%d %b %Y")}</li>
                    {document_line}
                </ul>
            </div>

            <p>Your application is now under review. We will contact you if any additional information is required.</p>

            <div class="footer">
                <p>This is an automated email. Please do not reply.</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Application Received - {reference}",
        html_content=html_content,
    )
