"""SMTP email adapter — sends HTML mail through a configured relay."""

import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from uuid import uuid4

import structlog

from marketplace.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SMTPEmailAdapter(EmailPort):
    """Email adapter backed by smtplib (STARTTLS on 587, implicit TLS on 465)."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        from_address: str = "no-reply@localhost",
        use_tls: bool = True,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.port == 465:
            return smtplib.SMTP_SSL(self.host, self.port, context=ssl.create_default_context(), timeout=self.timeout)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            server.starttls(context=ssl.create_default_context())
        return server

    def send(self, to: str, subject: str, html: str) -> dict:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        try:
            server = self._connect()
            try:
                if self.username:
                    server.login(self.username, self.password or "")
                server.sendmail(self.from_address, [to], msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("SMTP send failed", host=self.host, to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        return {"message_id": f"smtp-{uuid4().hex[:12]}", "status": "sent"}
