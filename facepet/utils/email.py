import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging
from facepet.core.config import settings

logger = logging.getLogger(__name__)

def _layout(title: str, body_html: str) -> str:
    app_name = settings.APP_NAME
    return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
            <title>{title}</title>
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: #f97316; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
                <h1 style="color: white; margin: 0;">{title}</h1>
            </div>
            <div style="background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; border: 1px solid #e0e0e0;">
                {body_html}
            </div>
            <div style="text-align: center; margin-top: 20px; padding-top: 20px; border-top: 1px solid #e0e0e0; color: #999; font-size: 12px;">
                <p>&copy; {app_name}. All rights reserved.</p>
            </div>
        </body>
        </html>
        """

class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME
        self.use_tls = settings.SMTP_USE_TLS

    def _deliver(self, msg: MIMEMultipart):
        with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
            if self.use_tls:
                server.starttls()
            if self.smtp_username:
                server.login(self.smtp_username, self.smtp_password)
            server.send_message(msg)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email via SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML email body
            text_content: Plain text email body (optional)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not to_email or not subject:
            logger.error("Refusing to send email without recipient or subject")
            return False
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            # smtplib blocks; keep it off the event loop
            await asyncio.to_thread(self._deliver, msg)

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    async def send_verification_email(
        self,
        to_email: str,
        verification_code: str,
        first_name: str = "there",
        ttl_minutes: int = 10
    ) -> bool:
        """Send a one-time verification code."""
        app_name = settings.APP_NAME
        html_content = _layout("Verify Your Email", f"""
                <p style="font-size: 16px;">Hello {first_name},</p>
                <p style="font-size: 16px;">Use the code below to verify your email address on {app_name}:</p>
                <div style="background: white; padding: 20px; border-radius: 8px; border: 2px solid #f97316; text-align: center; margin: 30px 0;">
                    <p style="font-size: 32px; font-weight: bold; color: #f97316; letter-spacing: 5px; margin: 0;">{verification_code}</p>
                </div>
                <p style="font-size: 14px; color: #666;">
                    This code will expire in {ttl_minutes} minutes. If you didn't request it, please ignore this email.
                </p>
        """)
        text_content = (
            f"Hello {first_name},\n\n"
            f"Your {app_name} verification code is: {verification_code}\n\n"
            f"This code will expire in {ttl_minutes} minutes. If you didn't request it, please ignore this email.\n"
        )
        return await self.send_email(
            to_email=to_email,
            subject=f"Verify your email address - {app_name}",
            html_content=html_content,
            text_content=text_content
        )

    async def send_password_reset_email(
        self,
        to_email: str,
        reset_token: str,
        first_name: str = "there"
    ) -> bool:
        """Send a password reset link."""
        app_name = settings.APP_NAME
        reset_url = f"{settings.FRONTEND_URL}/auth/reset-password?token={reset_token}"
        html_content = _layout("Reset Your Password", f"""
                <p style="font-size: 16px;">Hello {first_name},</p>
                <p style="font-size: 16px;">We received a request to reset your {app_name} password.</p>
                <p style="text-align: center; margin: 30px 0;">
                    <a href="{reset_url}" style="background: #f97316; color: white; padding: 12px 24px; border-radius: 6px; text-decoration: none;">Reset password</a>
                </p>
                <p style="font-size: 14px; color: #666;">
                    This link expires in {settings.PASSWORD_RESET_TOKEN_EXPIRE_HOURS} hour(s). If you didn't ask for a reset, you can ignore this email.
                </p>
        """)
        text_content = (
            f"Hello {first_name},\n\n"
            f"Reset your {app_name} password here: {reset_url}\n\n"
            "If you didn't ask for a reset, you can ignore this email.\n"
        )
        return await self.send_email(
            to_email=to_email,
            subject=f"Reset your password - {app_name}",
            html_content=html_content,
            text_content=text_content
        )

    async def send_password_change_notification(self, to_email: str, first_name: str = "there") -> bool:
        app_name = settings.APP_NAME
        html_content = _layout("Password Changed", f"""
                <p style="font-size: 16px;">Hello {first_name},</p>
                <p style="font-size: 16px;">The password of your {app_name} account was just changed.</p>
                <p style="font-size: 14px; color: #666;">If this wasn't you, reset your password right away and contact support.</p>
        """)
        text_content = (
            f"Hello {first_name},\n\n"
            f"The password of your {app_name} account was just changed.\n"
            "If this wasn't you, reset your password right away and contact support.\n"
        )
        return await self.send_email(
            to_email=to_email,
            subject=f"Your password has been changed - {app_name}",
            html_content=html_content,
            text_content=text_content
        )

    async def send_welcome_email(self, to_email: str, first_name: str = "there") -> bool:
        app_name = settings.APP_NAME
        html_content = _layout(f"Welcome to {app_name}", f"""
                <p style="font-size: 16px;">Hello {first_name},</p>
                <p style="font-size: 16px;">Your account is ready. Register your pets and attach their tags so anyone who finds them can reach you.</p>
        """)
        return await self.send_email(
            to_email=to_email,
            subject=f"Welcome to {app_name}",
            html_content=html_content,
            text_content=f"Hello {first_name},\n\nYour {app_name} account is ready.\n"
        )

# Global email service instance
email_service = EmailService()

def get_email_service() -> EmailService:
    return email_service
