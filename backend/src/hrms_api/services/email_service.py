"""Email service for sending onboarding invitations over SMTP."""

import asyncio
import logging
import re
import smtplib
import ssl
from concurrent.futures import ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from functools import partial
from html import escape as html_escape

from pydantic import BaseModel, EmailStr, Field

from hrms_api.exceptions import NotificationDeliveryError, ServiceUnavailableError
from hrms_api.utils.secure_logging import log_error, mask_email

logger = logging.getLogger(__name__)

# Thread pool for non-blocking SMTP operations
_smtp_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="smtp")

MAX_INVITATION_REMINDERS = 3


class SmtpConfig(BaseModel):
    """SMTP configuration model."""

    host: str = Field(min_length=1, max_length=255)
    port: int = Field(ge=1, le=65535, default=587)
    username: str = ""
    password: str = ""
    from_email: EmailStr
    from_name: str = Field(default="HR Onboarding", max_length=255)
    use_tls: bool = True
    timeout: float = 15.0


class RenderedEmail(BaseModel):
    """Subject and bodies of an outgoing message."""

    subject: str
    body_text: str
    body_html: str


class SmtpEmailSender:
    """Sends e-mail via SMTP without blocking the event loop."""

    def __init__(self, config: SmtpConfig | None) -> None:
        """Initialize with SMTP configuration, or None when e-mail is disabled."""
        self.config = config

    @property
    def configured(self) -> bool:
        """Whether SMTP is configured."""
        return self.config is not None

    async def send(
        self,
        to: str,
        subject: str,
        body_text: str,
        body_html: str,
        reply_to: str | None = None,
    ) -> dict[str, str]:
        """Send an email via SMTP (non-blocking).

        Args:
            to: Recipient email address
            subject: Email subject
            body_text: Plain text body
            body_html: HTML body
            reply_to: Optional Reply-To address

        Returns:
            Dict with the generated ``message_id``

        Raises:
            ServiceUnavailableError: If SMTP is not configured
            NotificationDeliveryError: If the server rejects or times out
        """
        if self.config is None:
            raise ServiceUnavailableError("Email delivery is not configured")

        msg = self._create_message(to, subject, body_html, body_text, reply_to)

        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                _smtp_executor,
                partial(self._send_email_sync, to, msg),
            )
        except smtplib.SMTPAuthenticationError as e:
            log_error(logger, "SMTP authentication failed", e)
            raise NotificationDeliveryError("Email server rejected our credentials") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise NotificationDeliveryError("Recipient address was rejected", {"to": to}) from e
        except (smtplib.SMTPException, TimeoutError, OSError) as e:
            log_error(logger, f"Error sending email to {mask_email(to)}", e)
            raise NotificationDeliveryError(f"Email delivery failed: {type(e).__name__}") from e

        logger.info(f"Email sent to {mask_email(to)}")
        return {"message_id": msg["Message-ID"]}

    def _get_smtp_connection(self) -> smtplib.SMTP | smtplib.SMTP_SSL:
        """Create an authenticated SMTP connection."""
        config = self.config
        context = ssl.create_default_context()

        if config.use_tls:
            # STARTTLS (port 587 typically)
            smtp = smtplib.SMTP(config.host, config.port, timeout=config.timeout)
            smtp.ehlo()
            smtp.starttls(context=context)
            # EHLO again after STARTTLS as required by RFC 3207
            smtp.ehlo()
        else:
            # Direct SSL connection (port 465 typically)
            smtp = smtplib.SMTP_SSL(config.host, config.port, timeout=config.timeout, context=context)
            smtp.ehlo()

        if config.username:
            smtp.login(config.username, config.password)
        return smtp

    def _create_message(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        plain_body: str | None = None,
        reply_to: str | None = None,
    ) -> MIMEMultipart:
        """Create email message with proper headers."""
        config = self.config
        msg = MIMEMultipart("alternative")

        msg["Subject"] = subject
        msg["From"] = f"{config.from_name} <{config.from_email}>"
        msg["To"] = to_email
        if reply_to:
            msg["Reply-To"] = reply_to

        # Additional headers for better deliverability
        msg["Message-ID"] = make_msgid(domain=config.from_email.split("@")[1])
        msg["Date"] = formatdate(localtime=True)

        if plain_body:
            msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        else:
            plain = re.sub(r"<[^>]+>", "", html_body)
            plain = re.sub(r"\s+", " ", plain).strip()
            msg.attach(MIMEText(plain, "plain", "utf-8"))

        msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _send_email_sync(self, to_email: str, msg: MIMEMultipart) -> None:
        """Synchronous email sending (runs in thread pool)."""
        smtp = None
        try:
            smtp = self._get_smtp_connection()
            smtp.sendmail(self.config.from_email, to_email, msg.as_string())
        finally:
            if smtp:
                try:
                    smtp.quit()
                except smtplib.SMTPException:
                    pass


def render_invitation_email(
    first_name: str,
    invitation_url: str,
    expires_in: str,
    reminder_number: int = 0,
    system_name: str = "HR Records & Onboarding",
) -> RenderedEmail:
    """Render the onboarding invitation (or a numbered reminder of it).

    Args:
        first_name: Invitee's first name
        invitation_url: Self-service registration link
        expires_in: Human-readable remaining validity, e.g. "expires in 7 days"
        reminder_number: 0 for the first invitation, 1..3 for reminders
        system_name: Product name shown in the heading

    Returns:
        Subject and bodies
    """
    is_reminder = reminder_number > 0
    if is_reminder:
        subject = f"Reminder {reminder_number}: Complete Your Employee Onboarding"
        intro = "This is a reminder to complete your employee onboarding."
    else:
        subject = "Welcome! Complete Your Employee Onboarding"
        intro = "Welcome to our organization!"

    name = html_escape(first_name)
    url = html_escape(invitation_url, quote=True)
    badge = (
        f'<p style="color: #b45309;"><strong>Reminder {reminder_number} of '
        f"{MAX_INVITATION_REMINDERS}</strong></p>"
        if 0 < reminder_number <= MAX_INVITATION_REMINDERS
        else ""
    )

    body_html = f"""
    <html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2>Welcome to {html_escape(system_name)}</h2>
        {badge}
        <p>Hello {name},</p>
        <p>{intro}</p>
        <p>You've been invited to complete your employee onboarding process through our self-service portal.</p>
        <p><a href="{url}" style="background: #2563eb; color: #fff; padding: 10px 18px; text-decoration: none; border-radius: 4px;">Start Onboarding</a></p>
        <p>Important: This invitation {html_escape(expires_in)}. Please complete the process promptly.</p>
    </body>
    </html>
    """
    body_text = (
        f"Hello {first_name},\n\n"
        f"{intro}\n\n"
        "You've been invited to complete your employee onboarding process through our self-service portal.\n\n"
        f"Start here: {invitation_url}\n\n"
        f"This invitation {expires_in}, so please complete the process promptly."
    )
    return RenderedEmail(subject=subject, body_text=body_text, body_html=body_html)
