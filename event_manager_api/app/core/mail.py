"""
Outgoing mail: template rendering and transports.

Messages are rendered from Jinja2 templates in ``app/templates/emails``.
The first line of a template is the subject (``Subject: ...``); the
rest is the plain text body.  Transports only know how to send an
already rendered ``EmailMessage``.
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Tuple

import jinja2

from .config import settings


logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    keep_trailing_newline=True,
    undefined=jinja2.StrictUndefined,
)


def format_date(value: Any) -> str:
    """``2025-09-01T18:30:00`` -> ``September 1, 2025, 6:30 PM``."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if not isinstance(value, datetime):
        return str(value)
    hour = value.hour % 12 or 12
    return f"{value:%B} {value.day}, {value.year}, {hour}:{value:%M} {value:%p}"


env.filters["format_date"] = format_date


def render_email(template_name: str, **context: Any) -> Tuple[str, str]:
    """Render a mail template and return ``(subject, body)``."""
    context.setdefault("app_name", settings.project_name)
    context.setdefault("app_url", settings.app_url.rstrip("/"))
    text = env.get_template(template_name).render(**context)
    first_line, _, body = text.partition("\n")
    if first_line.startswith("Subject:"):
        return first_line[len("Subject:"):].strip(), body.lstrip("\n")
    return settings.project_name, text


def build_message(to: str, subject: str, body: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.mail_from
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)
    return msg


class SMTPMailer:
    """Deliver messages through the configured SMTP server."""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: int = 30,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)
        logger.info("Email '%s' sent to %s", message["Subject"], message["To"])


class ConsoleMailer:
    """Write messages to the log instead of sending them (development)."""

    def send(self, message: EmailMessage) -> None:
        logger.info(
            "Email to %s\nSubject: %s\n\n%s",
            message["To"],
            message["Subject"],
            message.get_content(),
        )


def get_mailer():
    """FastAPI dependency returning the transport chosen by ``MAIL_BACKEND``."""
    if settings.mail_backend == "smtp":
        return SMTPMailer(
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_username,
            settings.smtp_password,
            settings.smtp_use_tls,
        )
    return ConsoleMailer()
