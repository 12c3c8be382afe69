import logging
import os
import secrets
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from authcore.core.config import settings

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), 'email_templates')
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(['html']))

OTP_MIN = 1000
OTP_MAX = 9999


def generate_otp() -> int:
    """A 4-digit code drawn uniformly from [1000, 9999] using the OS CSPRNG."""
    return OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1)


class Notifier(Protocol):
    def send_otp(self, address: str, code: int) -> bool:
        ...


class SmtpNotifier:
    """Delivers one-time codes by email over SMTP."""

    def __init__(self, server=None, port=None, user=None, password=None,
                 use_tls=None, timeout=None, sender=None):
        self.server = server or settings.SMTP_SERVER
        self.port = port or settings.SMTP_PORT
        self.user = settings.SMTP_USER if user is None else user
        self.password = settings.SMTP_PASSWORD if password is None else password
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.timeout = timeout or settings.SMTP_TIMEOUT_SECONDS
        self.sender = sender or settings.MAIL_FROM or self.user

    def send_email(self, to_email: str, subject: str, template_name: str, context: dict) -> bool:
        try:
            template = env.get_template(template_name)
            html_content = template.render(context)

            msg = MIMEMultipart()
            msg['From'] = self.sender
            msg['To'] = to_email
            msg['Subject'] = subject

            msg.attach(MIMEText(html_content, 'html'))

            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.sendmail(self.sender, to_email, msg.as_string())
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send %s to %s", template_name, to_email)
            return False

    def send_otp(self, address: str, code: int) -> bool:
        return self.send_email(
            to_email=address,
            subject="Your verification code",
            template_name="verification.html",
            context={"pin": code},
        )


def get_notifier() -> Notifier:
    return SmtpNotifier()
