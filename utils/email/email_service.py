"""
Email Service for sending account notifications via SMTP.

Supports Gmail, Office365, and other SMTP providers. Every send returns a
bool and never raises, so callers can treat delivery as best-effort.
"""

import smtplib
import logging
from html import escape
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from config.settings import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending emails."""

    def __init__(self):
        """Initialize email service with settings."""
        self.enabled = settings.email_enabled
        self.backend = settings.email_backend
        self.host = settings.email_host
        self.port = settings.email_port
        self.use_tls = settings.email_use_tls
        self.use_ssl = settings.email_use_ssl
        self.timeout = settings.email_timeout
        self.username = settings.email_host_user
        self.password = settings.email_host_password
        self.from_address = settings.email_from_address
        self.from_name = settings.email_from_name

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email content
            text_content: Plain text fallback content

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self.enabled or self.backend == "console":
            logger.info(f"📧 Would send email to {to_email}: {subject}")
            if self.backend == "console":
                logger.info(f"📧 Content: {text_content or html_content[:200]}...")
            return True

        if not self.username or not self.password:
            logger.error("❌ Email credentials not configured")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_address}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            if self.use_ssl:
                server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
            else:
                server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

            with server:
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                server.login(self.username, self.password)
                server.sendmail(self.from_address, [to_email], msg.as_string())

            logger.info(f"✅ Email sent successfully to {to_email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Failed to send email to {to_email}: {e}")
            return False

    def _render(self, heading: str, paragraphs: list[str], code: Optional[str] = None) -> str:
        """Wrap paragraphs in the branded layout. Paragraphs are HTML; escape user text first."""
        body = "".join(
            f'<p style="color: #333; font-size: 16px; line-height: 1.6;">{p}</p>'
            for p in paragraphs
        )
        code_block = ""
        if code:
            code_block = f"""
            <div style="background: #f0f9ff; border: 2px solid #2fe79f; border-radius: 8px; padding: 20px; text-align: center; margin: 20px 0;">
                <div style="font-size: 32px; font-weight: bold; color: #053943; letter-spacing: 8px;">{code}</div>
                <p style="color: #666; font-size: 14px; margin-top: 10px;">This code expires in {settings.otp_expire_minutes} minutes</p>
            </div>
            """
        return f"""
        <!DOCTYPE html>
        <html>
        <body>
            <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background: #053943; border-radius: 12px;">
                <div style="background: #ffffff; padding: 30px; border-radius: 8px;">
                    <h2 style="color: #053943; margin-bottom: 20px;">{heading}</h2>
                    {body}
                    {code_block}
                    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #ddd;">
                        <p style="color: #999; font-size: 12px; margin: 0;">{self.from_name} | Secure Weather Forecasting</p>
                    </div>
                </div>
            </div>
        </body>
        </html>
        """

    def send_password_reset_otp(self, to_email: str, name: str, otp: str) -> bool:
        """Send the one-time code for a password reset."""
        return self.send_email(
            to_email,
            "🔒 Password Reset Code - Aether",
            self._render(
                "Password Reset Request",
                [
                    f"Hi {escape(name)},",
                    "You requested to reset your password. Use the code below to proceed:",
                    "If you didn't request this, please ignore this email or contact support.",
                ],
                code=otp,
            ),
            text_content=(
                f"Hi {name},\n\nYour password reset code is {otp}. "
                f"It expires in {settings.otp_expire_minutes} minutes."
            ),
        )

    def send_password_changed(self, to_email: str, name: str) -> bool:
        """Confirm a password change."""
        return self.send_email(
            to_email,
            "✅ Password Changed Successfully - Aether",
            self._render(
                "Password Changed",
                [
                    f"Hi {escape(name)},",
                    "Your password has been successfully changed. "
                    "If you didn't make this change, please contact support immediately.",
                ],
            ),
            text_content=f"Hi {name},\n\nYour password has been successfully changed.",
        )

    def send_email_change_otp(self, to_email: str, name: str, otp: str) -> bool:
        """Send the verification code to the requested new address."""
        return self.send_email(
            to_email,
            "📧 Email Verification Code - Aether",
            self._render(
                "Email Verification",
                [
                    f"Hi {escape(name)},",
                    "You requested to change your email address. Enter this code to verify:",
                    "If you didn't request this change, please ignore this email.",
                ],
                code=otp,
            ),
            text_content=(
                f"Hi {name},\n\nYour email verification code is {otp}. "
                f"It expires in {settings.otp_expire_minutes} minutes."
            ),
        )

    def send_email_changed(self, old_email: str, new_email: str, name: str) -> bool:
        """
        Tell both addresses about a completed email change.

        Returns:
            True only if both messages went out
        """
        old_sent = self.send_email(
            old_email,
            "📧 Email Address Changed - Aether",
            self._render(
                "Email Address Changed",
                [
                    f"Hi {escape(name)},",
                    f"Your email address has been changed from <strong>{escape(old_email)}</strong> "
                    f"to <strong>{escape(new_email)}</strong>.",
                    "If you didn't make this change, please contact support immediately.",
                ],
            ),
            text_content=f"Hi {name},\n\nYour email address has been changed to {new_email}.",
        )
        new_sent = self.send_email(
            new_email,
            "✅ Welcome to Your New Email - Aether",
            self._render(
                "Email Verified",
                [
                    f"Hi {escape(name)},",
                    "Your email address has been successfully updated. "
                    "This is now your primary email for Aether.",
                ],
            ),
            text_content=f"Hi {name},\n\nThis is now your primary email for Aether.",
        )
        return old_sent and new_sent

    def send_account_deleted(self, to_email: str, name: str) -> bool:
        """Say goodbye after an account deletion."""
        return self.send_email(
            to_email,
            "👋 Account Deleted - Aether",
            self._render(
                "Account Deleted",
                [
                    f"Hi {escape(name)},",
                    "Your Aether account has been permanently deleted as requested. "
                    "All your data, including preferences and support tickets, has been removed.",
                    "If you change your mind, you're always welcome to create a new account.",
                ],
            ),
            text_content=f"Hi {name},\n\nYour Aether account has been permanently deleted.",
        )


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the shared email service."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service


async def notify(method_name: str, *args) -> bool:
    """
    Fire-and-forget notification.

    Runs the blocking SMTP send in a thread pool. Failures are logged and
    reported as False; they never propagate to the caller.

    Args:
        method_name: Name of the EmailService send method
        *args: Arguments for that method
    """
    try:
        send = getattr(get_email_service(), method_name)
        sent = await run_in_threadpool(send, *args)
    except Exception as e:
        logger.error(f"❌ Notification {method_name} failed: {e}")
        return False
    if not sent:
        logger.warning(f"⚠️  Notification {method_name} was not delivered")
    return sent
