import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

import resend

from waitlist.core.config import Settings
from waitlist.core.exceptions import NotificationError
from waitlist.services.page_renderer import PageRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    ok: bool
    error: Optional[str] = None


class MailTransport(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, text: str, html: str) -> None:
        """Dispatch one message or raise NotificationError."""


class SmtpTransport(MailTransport):
    def __init__(self, host: str, port: int, username: str, password: str, sender: str,
                 starttls: bool = True, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.starttls = starttls
        self.timeout = timeout

    def send(self, to: str, subject: str, text: str, html: str) -> None:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.starttls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError("SMTP delivery failed", details=str(e)) from e


class ResendTransport(MailTransport):
    def __init__(self, api_key: str, sender: str):
        resend.api_key = api_key
        self.sender = sender

    def send(self, to: str, subject: str, text: str, html: str) -> None:
        try:
            resend.Emails.send({
                "from": self.sender,
                "to": [to],
                "subject": subject,
                "text": text,
                "html": html,
            })
        except Exception as e:
            raise NotificationError("Resend delivery failed", details=str(e)) from e


class LogTransport(MailTransport):
    """Development transport: writes the message to the log instead of sending it."""

    def send(self, to: str, subject: str, text: str, html: str) -> None:
        logger.info(f"[mail] to={to} subject={subject!r}\n{text}")


class EmailService:
    def __init__(self, transport: MailTransport, renderer: PageRenderer, subject: str):
        self.transport = transport
        self.renderer = renderer
        self.subject = subject

    def send_confirmation(self, to: str, confirm_url: str) -> DeliveryResult:
        text = f"Thanks for pre-registering! Confirm your email here: {confirm_url}"
        try:
            html = self.renderer.confirmation_email(confirm_url)
            self.transport.send(to, self.subject, text, html)
        except NotificationError as e:
            return DeliveryResult(ok=False, error=f"{e.message}: {e.details}" if e.details else e.message)
        except OSError as e:
            # template missing or unreadable
            return DeliveryResult(ok=False, error=str(e))
        return DeliveryResult(ok=True)


def build_transport(settings: Settings) -> MailTransport:
    transport = settings.MAIL_TRANSPORT.strip().lower()
    if transport == "resend":
        return ResendTransport(settings.RESEND_API_KEY, settings.MAIL_FROM)
    if transport == "log":
        return LogTransport()
    return SmtpTransport(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER,
        password=settings.SMTP_PASS,
        sender=settings.MAIL_FROM,
        starttls=settings.SMTP_STARTTLS,
    )


def build_email_service(settings: Settings, renderer: PageRenderer) -> EmailService:
    return EmailService(build_transport(settings), renderer, settings.MAIL_SUBJECT)
