"""SMTP delivery for player notifications."""

from dataclasses import dataclass
from email.message import EmailMessage

import aiosmtplib

from ferm.config import Settings
from ferm.infra.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MailPayload:
    """Delivery payload handed to the mail transport."""

    to: str
    subject: str
    body: str


class SmtpMailer:
    """Sends plain-text mail through an SMTP relay.

    ``send`` never raises on delivery problems: it returns False and logs,
    so callers can decide whether to record the delivery.
    """

    def __init__(
        self,
        *,
        enabled: bool,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.enabled = enabled
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = port == 465 if use_tls is None else use_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailer":
        return cls(
            enabled=settings.email_enabled,
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            username=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.email_timeout_seconds,
        )

    def build_message(self, payload: MailPayload) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = payload.to
        message["Subject"] = payload.subject
        message.set_content(payload.body)
        return message

    async def send(self, payload: MailPayload) -> bool:
        """Deliver one message.

        Returns:
            True only when the relay accepted the message
        """
        if not self.enabled:
            logger.info("Email delivery disabled, skipping send", to=payload.to, subject=payload.subject)
            return False

        # Credentials are optional for local relays
        auth = {"username": self.username, "password": self.password} if self.username and self.password else {}

        try:
            await aiosmtplib.send(
                self.build_message(payload),
                hostname=self.host,
                port=self.port,
                use_tls=self.use_tls,
                timeout=self.timeout,
                **auth,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(
                "Failed to send email",
                to=payload.to,
                subject=payload.subject,
                error=str(e),
            )
            return False

        logger.info("Email sent", to=payload.to, subject=payload.subject)
        return True
