"""SMTP delivery for invite emails."""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr

import structlog

logger = structlog.get_logger()


@dataclass
class EmailConfig:
    """SMTP connection and sender settings."""

    smtp_host: str
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    from_email: str = "projectdesk@example.com"
    from_name: str = "Project Invite"
    use_tls: bool = True
    timeout: float = 10.0


class EmailNotifier:
    """Sends one multipart (text + HTML) message per call over SMTP."""

    def __init__(self, config: EmailConfig):
        """Initialize with SMTP settings.

        Args:
            config: Connection and sender settings.
        """
        self.config = config

    def build_message(
        self,
        to_emails: list[str],
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailMessage:
        """Compose the message; the HTML part is an alternative to the text part."""
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = formataddr((self.config.from_name, self.config.from_email))
        message["To"] = ", ".join(to_emails)
        message.set_content(body_text or "Open this message in an HTML capable mail client.")
        message.add_alternative(body_html, subtype="html")
        return message

    def send(
        self,
        to_emails: list[str],
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> bool:
        """Deliver the message.

        Blocking; callers on the event loop run it with ``asyncio.to_thread``.

        Returns:
            True if the SMTP server accepted the message, False on any SMTP or
            network failure.
        """
        message = self.build_message(to_emails, subject, body_html, body_text)
        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.timeout) as server:
                if self.config.use_tls:
                    server.starttls()
                if self.config.smtp_user and self.config.smtp_password:
                    server.login(self.config.smtp_user, self.config.smtp_password)
                server.send_message(message, from_addr=self.config.from_email, to_addrs=to_emails)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email_error", to=to_emails, subject=subject, error=str(e))
            return False

        logger.info("email_sent", to=to_emails, subject=subject)
        return True


class LoggingNotifier:
    """Dispatcher used when no SMTP host is configured; logs instead of sending."""

    def send(
        self,
        to_emails: list[str],
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> bool:
        """Log the message and report success."""
        logger.info("email_suppressed", to=to_emails, subject=subject, body=body_text or body_html)
        return True
