"""
Email Service using Resend

Handles sending notification emails for the enrollment flow.
"""

import asyncio
import logging
from html import escape

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

# Initialize Resend with API key
resend.api_key = settings.resend_api_key

EMAIL_FROM = settings.email_from
PORTAL_URL = settings.portal_base_url


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent successfully
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": EMAIL_FROM,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_enrollment_approved(
    to_email: str,
    student_name: str,
    registration_code: str,
) -> bool:
    """Send the enrollment invitation with the student's registration code."""
    # Escape user inputs to prevent XSS
    safe_student_name = escape(student_name)
    safe_registration_code = escape(registration_code)

    html_content = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #312e81; margin-bottom: 24px; }}
            .code-box {{ background-color: #eef2ff; padding: 16px; border-radius: 8px; margin: 16px 0; font-size: 22px; font-family: monospace; text-align: center; letter-spacing: 2px; }}
            .button {{ display: inline-block; background-color: #4f46e5; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">Matrícula aprovada!</h1>

            <p>Olá {safe_student_name},</p>

            <p>Sua inscrição foi analisada e aprovada. Seu registro acadêmico (RA) é:</p>

            <div class="code-box">{safe_registration_code}</div>

            <p>Use o RA para acessar a plataforma de estudos e registrar sua presença nas aulas.</p>

            <a href="{PORTAL_URL}" class="button">Acessar a plataforma</a>

            <div class="footer">
                <p>Se você não se inscreveu, ignore este email.</p>
            </div>
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject="Sua matrícula foi aprovada",
        html_content=html_content,
    )
