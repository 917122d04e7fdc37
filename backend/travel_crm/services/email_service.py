# backend/travel_crm/services/email_service.py

import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from travel_crm.core.config_loader import settings
from travel_crm.core.errors import EmailDeliveryError, EmailNotConfiguredError, InvalidEmailError
from travel_crm.core.logger import logger
from travel_crm.services.email_templates import RenderedEmail


class EmailService:
    """SMTP delivery. Port 465 uses implicit TLS, anything else STARTTLS."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
    ):
        self.host = host or settings.SMTP_HOST
        self.port = port or settings.SMTP_PORT
        self.user = user or settings.SMTP_USER
        self.password = password or settings.smtp_password
        self.sender = sender or settings.smtp_sender
        self.timeout = settings.SMTP_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _require_config(self):
        if not self.configured:
            logger.error(
                f"Missing email configuration: SMTP_HOST missing={not self.host}, "
                f"SMTP_USER missing={not self.user}, SMTP_PASS/SMTP_PASSWORD missing={not self.password}"
            )
            raise EmailNotConfiguredError(
                "Email service not configured. Please check SMTP environment variables."
            )

    # -------------------------------------------------------
    # CONNECTION
    # -------------------------------------------------------
    def _connect(self) -> smtplib.SMTP:
        # the provider certificates are not always verifiable (shared hosting)
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout, context=context)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        # the caller only owns the connection once the handshake is done
        try:
            if self.port != 465:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
            server.login(self.user, self.password)
        except BaseException:
            server.close()
            raise
        return server

    def verify(self):
        """Connect and authenticate without sending anything."""
        self._require_config()
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP verification failed: {e}")
            raise EmailDeliveryError(
                "SMTP server verification failed. Please check your credentials.", details=str(e)
            ) from e
        logger.info("SMTP server is ready to send emails")

    # -------------------------------------------------------
    # SEND
    # -------------------------------------------------------
    def build_message(self, to: str, email: RenderedEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((settings.BRAND_NAME, self.sender))
        message["To"] = to
        message["Subject"] = email.subject
        message["Message-ID"] = make_msgid()
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")
        return message

    def send(self, to: str, email: RenderedEmail) -> str:
        self._require_config()
        try:
            message = self.build_message(to, email)
        except ValueError as e:
            logger.error(f"Could not build email to {to}: {e}")
            raise InvalidEmailError(f"Invalid email content: {e}") from e

        logger.info(f"Sending '{email.subject}' to {to} via {self.host}:{self.port}")
        try:
            with self._connect() as server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to}: {e}")
            raise EmailDeliveryError("Failed to send email", details=str(e)) from e

        logger.info(f"Email sent successfully: {message['Message-ID']}")
        return message["Message-ID"]
