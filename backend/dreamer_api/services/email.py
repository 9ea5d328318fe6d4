"""Transactional email for account verification and password resets."""
import logging
import re
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from dreamer_api.config import Settings

logger = logging.getLogger(__name__)

BUTTON_STYLE = (
    "display: inline-block; padding: 12px 24px; background-color: #3b82f6; "
    "color: white; text-decoration: none; border-radius: 6px; margin: 16px 0;"
)


def _verify_email_template(data: dict) -> tuple[str, str]:
    link = escape(data["verification_link"])
    html = f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>Welcome to Dreamer AI, {escape(data.get("name") or "")}!</h2>
        <p>Please click the link below to verify your email address:</p>
        <a href="{link}" style="{BUTTON_STYLE}">Verify Email</a>
        <p>Or copy and paste this link: {link}</p>
        <p>This link will expire in 24 hours.</p>
        <p>Best regards,<br>The Dreamer AI Team</p>
    </body>
    </html>
    """
    return "Verify your Dreamer AI account", html


def _reset_password_template(data: dict) -> tuple[str, str]:
    link = escape(data["reset_link"])
    html = f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2>Hello {escape(data.get("name") or "")},</h2>
        <p>We received a request to reset your password. Click the link below to create a new password:</p>
        <a href="{link}" style="{BUTTON_STYLE}">Reset Password</a>
        <p>Or copy and paste this link: {link}</p>
        <p>This link will expire in 1 hour.</p>
        <p>If you didn't request this, please ignore this email.</p>
        <p>Best regards,<br>The Dreamer AI Team</p>
    </body>
    </html>
    """
    return "Reset your Dreamer AI password", html


TEMPLATES = {
    "verify-email": _verify_email_template,
    "reset-password": _reset_password_template,
}


def render_template(template: str, data: dict) -> tuple[str, str]:
    """Return (subject, html) for a named template."""
    try:
        render = TEMPLATES[template]
    except KeyError:
        raise ValueError(f"Unknown email template: {template}") from None
    return render(data)


class EmailSender:
    """Sends templated emails over SMTP.

    Sending is fire-and-forget: failures are logged and reported through the
    boolean return value, never raised to the caller.
    """

    def __init__(self, settings: Settings) -> None:
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.smtp_from_email

    def send(self, to: str, template: str, data: dict) -> bool:
        try:
            subject, html_content = render_template(template, data)
        except (KeyError, ValueError) as e:
            logger.error(f"Failed to render email template {template}: {e}")
            return False

        if not self.smtp_host:
            logger.info(f"SMTP not configured, skipping '{template}' email to {to}")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to

        # Plain text fallback
        plain_text = html_content.replace("<br>", "\n").replace("</p>", "\n\n")
        plain_text = re.sub(r"<[^>]+>", "", plain_text)

        msg.attach(MIMEText(plain_text, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=10) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{template}' email to {to}: {e}")
            return False

        logger.info(f"Sent '{template}' email to {to}")
        return True
