# hrms_server/core/email.py
import asyncio
import logging
import smtplib
import threading
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, Optional, Tuple

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from hrms_server.core.config import settings

logger = logging.getLogger(__name__)

SUBJECTS = {
    "forgot_password": "Password Reset OTP - {company} HRMS",
}


class EmailService:
    """Templated mail over a single reused SMTP connection"""

    def __init__(
        self,
        host: str = settings.SMTP_HOST,
        port: int = settings.SMTP_PORT,
        username: str = settings.SMTP_USER,
        password: str = settings.SMTP_PASS,
        use_tls: bool = settings.SMTP_USE_TLS,
        timeout: float = settings.SMTP_TIMEOUT,
        max_messages: int = settings.SMTP_MAX_MESSAGES,
        from_name: str = settings.MAIL_FROM_NAME,
        company: str = settings.COMPANY_NAME,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.max_messages = max_messages
        self.from_name = from_name
        self.company = company

        self._connection: Optional[smtplib.SMTP] = None
        self._sent_on_connection = 0
        self._lock = threading.Lock()
        self.env = Environment(
            loader=PackageLoader("hrms_server", "templates/email"),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template: str, context: Dict[str, Any]) -> Tuple[str, str, str]:
        """Return subject, html body and text body"""
        context = {"company": self.company, "year": date.today().year, **context}
        subject = SUBJECTS[template].format(**context)
        html = self.env.get_template(f"{template}.html").render(**context)
        text = self.env.get_template(f"{template}.txt").render(**context)
        return subject, html, text

    def build_message(self, to: str, template: str, context: Dict[str, Any]) -> MIMEMultipart:
        subject, html, text = self.render(template, context)
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.from_name, self.username))
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            server.starttls()
        if self.username and self.password:
            server.login(self.username, self.password)
        logger.info(f"SMTP connection opened to {self.host}:{self.port}")
        return server

    def _get_connection(self) -> smtplib.SMTP:
        if self._connection is not None and self._sent_on_connection >= self.max_messages:
            self._close_connection()
        if self._connection is None:
            self._connection = self._connect()
            self._sent_on_connection = 0
        return self._connection

    def _close_connection(self):
        if self._connection is None:
            return
        try:
            self._connection.quit()
        except smtplib.SMTPException as e:
            logger.warning(f"SMTP quit failed: {str(e)}")
        finally:
            self._connection = None
            self._sent_on_connection = 0

    def _send_message(self, msg: MIMEMultipart):
        with self._lock:
            try:
                connection = self._get_connection()
                connection.send_message(msg)
            except smtplib.SMTPServerDisconnected:
                # Pooled connection went stale; retry once on a fresh one
                self._connection = None
                connection = self._get_connection()
                connection.send_message(msg)
            self._sent_on_connection += 1

    async def send_template(self, to: str, template: str, context: Dict[str, Any]) -> bool:
        try:
            msg = self.build_message(to, template, context)
            await asyncio.to_thread(self._send_message, msg)
            logger.info(f"Email '{template}' sent to {to}")
            return True
        except (smtplib.SMTPException, OSError, TemplateError, KeyError) as e:
            logger.error(f"Error sending email '{template}' to {to}: {str(e)}")
            return False

    async def verify_connection(self) -> bool:
        def _verify():
            with self._lock:
                connection = self._get_connection()
                code, _ = connection.noop()
                return code == 250

        try:
            ok = await asyncio.to_thread(_verify)
            logger.info("Email configuration verified successfully")
            return ok
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email configuration verification failed: {str(e)}")
            return False

    def close(self):
        with self._lock:
            self._close_connection()


email_service = EmailService()


def get_email_service() -> EmailService:
    return email_service
