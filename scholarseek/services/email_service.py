import os
import smtplib
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from starlette.concurrency import run_in_threadpool

from scholarseek.core.config import settings
from scholarseek.models.email_log import EmailLog
from scholarseek.models.enums import EmailStatus
from scholarseek.models.system_setting import SystemSetting

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "email")

_template_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)

# Helper to get template
def get_template(template_name):
    return _template_env.get_template(template_name)


# ---------------------------------------------------------
# EMAIL CONFIGURATION (injected, never global)
# ---------------------------------------------------------
class EmailSettings(BaseModel):
    enabled: bool = False
    smtp_host: Optional[str] = None
    smtp_port: int = 2525
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_timeout: float = 10.0
    from_email: str = "scholarseek@biliran.edu.ph"
    from_name: str = "ScholarSeek System"
    site_url: str = "http://localhost:5173"

    @classmethod
    def from_settings(cls) -> "EmailSettings":
        return cls(
            enabled=settings.EMAIL_ENABLED,
            smtp_host=settings.SMTP_HOST,
            smtp_port=settings.SMTP_PORT,
            smtp_user=settings.SMTP_USER,
            smtp_password=settings.SMTP_PASSWORD,
            smtp_timeout=settings.SMTP_TIMEOUT_SECONDS,
            from_email=settings.EMAILS_FROM_EMAIL,
            from_name=settings.EMAILS_FROM_NAME,
            site_url=settings.SITE_URL,
        )


# system_settings key -> EmailSettings field
SETTING_KEYS = {
    "email_enabled": "enabled",
    "smtp_host": "smtp_host",
    "smtp_port": "smtp_port",
    "smtp_user": "smtp_user",
    "smtp_password": "smtp_password",
    "from_email": "from_email",
    "from_name": "from_name",
    "site_url": "site_url",
}


async def load_email_settings(session: AsyncSession) -> EmailSettings:
    """
    Environment defaults overlaid with the rows an admin stored in
    system_settings. Built once per request and passed down explicitly.

    Never raises: callers load this after a review is committed. Rows that
    do not validate are skipped; an unreadable table means env defaults.
    """
    email_settings = EmailSettings.from_settings()

    try:
        result = await session.execute(
            select(SystemSetting).where(SystemSetting.setting_key.in_(list(SETTING_KEYS)))
        )
        rows = result.scalars().all()
    except SQLAlchemyError:
        logger.exception("Could not read email settings, using environment defaults")
        await session.rollback()
        return email_settings

    for row in rows:
        if row.setting_value is None:
            continue
        field = SETTING_KEYS[row.setting_key]
        try:
            email_settings = EmailSettings(**{**email_settings.model_dump(), field: row.setting_value})
        except PydanticValidationError:
            logger.warning(f"Ignoring invalid system setting '{row.setting_key}'")

    return email_settings


# ---------------------------------------------------------
# TEMPLATES
# ---------------------------------------------------------
STATUS_EMAIL_COPY = {
    "approved": {
        "title": "Congratulations! Your Application Has Been Approved",
        "message": "We are pleased to inform you that your application for the {title} scholarship has been approved. "
                   "You will be contacted soon with further details about the next steps.",
        "color": "#10b981",
    },
    "rejected": {
        "title": "Application Status Update",
        "message": "Thank you for your interest in the {title} scholarship. Unfortunately, your application was not "
                   "selected at this time. We encourage you to apply for other available scholarships.",
        "color": "#ef4444",
    },
    "pending": {
        "title": "Application Under Review",
        "message": "Your application for the {title} scholarship is currently under review. "
                   "We will notify you once a decision has been made.",
        "color": "#f59e0b",
    },
}


def adjust_brightness(hex_color: str, percent: int) -> str:
    hex_color = hex_color.lstrip("#")
    channels = [int(hex_color[i:i + 2], 16) for i in (0, 2, 4)]
    adjusted = [max(0, min(255, int(c + c * percent / 100))) for c in channels]
    return "#{:02x}{:02x}{:02x}".format(*adjusted)


def build_application_status_email(
    email_settings: EmailSettings,
    name: str,
    scholarship_title: str,
    status: str,
    rejection_reason: Optional[str] = None,
) -> Tuple[str, str]:
    """Returns (subject, html). Unknown statuses use the pending copy."""
    copy = STATUS_EMAIL_COPY.get(status, STATUS_EMAIL_COPY["pending"])

    html_content = get_template("application_status.html").render(
        title=copy["title"],
        name=name,
        content=copy["message"].format(title=scholarship_title),
        rejection_reason=rejection_reason if status == "rejected" else None,
        color=copy["color"],
        color_dark=adjust_brightness(copy["color"], -20),
        action_url=f"{email_settings.site_url}/student/applications",
        site_url=email_settings.site_url,
    )
    return f"Scholarship Application Update - {status.capitalize()}", html_content


# ---------------------------------------------------------
# TRANSPORT
# ---------------------------------------------------------
def send_email_via_smtp(email_settings: EmailSettings, to_email: str, subject: str, html_content: str) -> bool:
    if not email_settings.smtp_host:
        logger.warning("⚠️ SMTP Host not configured. Skipping email.")
        return False

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{email_settings.from_name} <{email_settings.from_email}>"
        msg["To"] = to_email
        msg["Reply-To"] = email_settings.from_email
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(email_settings.smtp_host, email_settings.smtp_port, timeout=email_settings.smtp_timeout) as server:
            server.ehlo()

            # TLS on submission ports only; local catchers (1025) speak plain SMTP
            if email_settings.smtp_port in [587, 2525]:
                server.starttls()
                server.ehlo()

            if email_settings.smtp_user and email_settings.smtp_password:
                server.login(email_settings.smtp_user, email_settings.smtp_password)

            server.sendmail(email_settings.from_email, to_email, msg.as_string())

        logger.info(f"✅ Email sent successfully to {to_email}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send email to {to_email}: {e}")
        return False


async def record_email(
    session: AsyncSession,
    recipient_email: str,
    recipient_name: Optional[str],
    subject: str,
    message: str,
    email_type: str,
    sent: bool,
) -> None:
    entry = EmailLog(
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        subject=subject,
        message=message,
        type=email_type,
        status=EmailStatus.Sent if sent else EmailStatus.Failed,
        sent_at=datetime.utcnow() if sent else None,
    )
    session.add(entry)
    try:
        await session.commit()
    except SQLAlchemyError:
        logger.exception(f"EMAIL LOG ERROR for {recipient_email}")
        await session.rollback()


# ---------------------------------------------------------
# APPLICATION STATUS EMAIL
# ---------------------------------------------------------
async def send_application_status_email(
    session: AsyncSession,
    email_settings: EmailSettings,
    to_email: str,
    name: str,
    scholarship_title: str,
    status: str,
    rejection_reason: Optional[str] = None,
) -> bool:
    """
    Renders and sends the status email, then logs the attempt.
    Returns False without logging anything when email is disabled.
    """
    if not email_settings.enabled:
        return False

    subject, html_content = build_application_status_email(
        email_settings, name, scholarship_title, status, rejection_reason
    )

    # smtplib blocks; keep it off the event loop
    sent = await run_in_threadpool(send_email_via_smtp, email_settings, to_email, subject, html_content)

    await record_email(session, to_email, name, subject, html_content, "application_status", sent)
    return sent
