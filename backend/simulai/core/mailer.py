import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

from starlette.concurrency import run_in_threadpool

from simulai.core.config import settings
from simulai.core.exceptions import upstream_error

logger = logging.getLogger(__name__)


@dataclass
class SMTPConfig:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str = ""
    use_ssl: bool = False

    @classmethod
    def resolve(cls, app_settings: Optional[dict] = None) -> "SMTPConfig":
        """Mail settings stored by the admin win over the environment."""
        app_settings = app_settings or {}
        config = cls(
            host=app_settings.get("mail_host") or settings.SMTP_HOST,
            port=int(app_settings.get("mail_port") or settings.SMTP_PORT),
            username=app_settings.get("mail_username") or settings.SMTP_USER,
            password=app_settings.get("mail_password") or settings.SMTP_PASSWORD,
            from_email=app_settings.get("mail_from") or settings.SMTP_FROM_EMAIL,
            from_name=app_settings.get("mail_from_name") or settings.SMTP_FROM_NAME,
            use_ssl=settings.SMTP_USE_SSL or int(app_settings.get("mail_port") or settings.SMTP_PORT) == 465,
        )
        missing = [name for name in ("host", "username", "password", "from_email") if not getattr(config, name)]
        if missing:
            raise upstream_error("SMTP", f"Missing mail configuration: {', '.join(missing)}")
        return config


def _send(config: SMTPConfig, message: EmailMessage) -> None:
    if config.use_ssl:
        with smtplib.SMTP_SSL(config.host, config.port, timeout=settings.SMTP_TIMEOUT) as smtp:
            smtp.login(config.username, config.password)
            smtp.send_message(message)
    else:
        with smtplib.SMTP(config.host, config.port, timeout=settings.SMTP_TIMEOUT) as smtp:
            smtp.starttls()
            smtp.login(config.username, config.password)
            smtp.send_message(message)


async def send_email(config: SMTPConfig, to_email: str, subject: str, html: str, text: str = "") -> str:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = f"{config.from_name} <{config.from_email}>" if config.from_name else config.from_email
    message["To"] = to_email
    message["Message-ID"] = make_msgid()
    message.set_content(text or "Please open this message in an HTML capable mail client.")
    message.add_alternative(html, subtype="html")

    try:
        await run_in_threadpool(_send, config, message)
    except smtplib.SMTPAuthenticationError:
        logger.error(f"SMTP authentication failed for {config.username}")
        raise upstream_error("SMTP", "Email authentication failed. Please check SMTP credentials.")
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send email to {to_email}: {str(e)}")
        raise upstream_error("SMTP", "Failed to connect to email server. Please check SMTP settings.")

    logger.info(f"Email '{subject}' sent to {to_email}")
    return message["Message-ID"] or ""


def welcome_email(name: str, email: str, password: str) -> tuple[str, str]:
    login_url = f"{settings.FRONTEND_URL}/login"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333;">Welcome {name}!</h1>
  <p>Your account has been created successfully.</p>
  <p><strong>Here are your login credentials:</strong></p>
  <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px;">
    <p>Email: {email}</p>
    <p>Temporary Password: {password}</p>
  </div>
  <p>Please login at: <a href="{login_url}">{login_url}</a></p>
  <p style="color: #ff0000;">Important: please change your password after your first login.</p>
</div>
"""
    return "Welcome to SimulAI - Your Account Details", html


def password_reset_email(name: str, token: str) -> tuple[str, str]:
    reset_url = f"{settings.FRONTEND_URL}/reset-password?token={token}"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1 style="color: #333;">Hello {name},</h1>
  <p>We received a request to reset your password.</p>
  <p><a href="{reset_url}">Reset your password</a></p>
  <p>This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. If you did not ask for it, ignore this email.</p>
</div>
"""
    return "SimulAI - Password reset", html
