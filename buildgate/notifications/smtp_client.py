"""SMTP gateway for delivering build result emails.

Thin wrapper around smtplib with implicit TLS / STARTTLS support,
optional authentication, retry with exponential backoff, and connection
cleanup on every path.
"""

import logging
import smtplib
import ssl
import time
from typing import Callable, Optional

from .models import EmailEnvelope, SMTPDeliveryError

logger = logging.getLogger(__name__)

IMPLICIT_TLS_PORT = 465
MAX_RETRY_DELAY = 60.0


class EmailGateway:
    """Delivers ``EmailEnvelope`` objects through an SMTP server.

    Port 465 uses implicit TLS; any other port connects in plain text and
    upgrades with STARTTLS when ``use_ssl`` is set. Credentials are only sent
    when both username and password are configured.
    """

    def __init__(
        self,
        mail_host: Optional[str] = None,
        mail_port: int = 25,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_ssl: bool = False,
        max_retries: int = 0,
        retry_initial_delay: float = 5.0,
        retry_backoff_multiplier: float = 2.0,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        self.mail_host = mail_host
        self.mail_port = mail_port
        self.username = username
        self.password = password
        self.use_ssl = use_ssl
        self.max_retries = max_retries
        self.retry_initial_delay = retry_initial_delay
        self.retry_backoff_multiplier = retry_backoff_multiplier
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, envelope: EmailEnvelope) -> None:
        """Deliver an envelope, retrying on failure if configured.

        Raises:
            SMTPDeliveryError: If the last attempt fails
        """
        if not self.mail_host:
            raise SMTPDeliveryError("No mail host configured")

        max_attempts = self.max_retries + 1
        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.retry_initial_delay * (self.retry_backoff_multiplier ** (attempt - 2))
                delay = min(delay, MAX_RETRY_DELAY)
                logger.warning(
                    f"Retrying delivery (attempt {attempt}/{max_attempts}) after {delay:.1f}s delay",
                    extra={"event": "gateway.send.retry", "attempt": attempt},
                )
                time.sleep(delay)

            try:
                self._send_once(envelope)
                return
            except SMTPDeliveryError as e:
                if attempt == max_attempts:
                    raise
                logger.warning(
                    f"Delivery attempt {attempt}/{max_attempts} failed: {e}",
                    extra={"event": "gateway.send.failure", "attempt": attempt},
                )

    def _send_once(self, envelope: EmailEnvelope) -> None:
        smtp = None
        try:
            # Build before connecting so unreadable attachments fail fast
            message = envelope.to_email_message()

            if self.mail_port == IMPLICIT_TLS_PORT:
                logger.debug(f"Connecting to {self.mail_host}:{self.mail_port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    self.mail_host, self.mail_port, context=ssl.create_default_context()
                )
            else:
                logger.debug(f"Connecting to {self.mail_host}:{self.mail_port}")
                smtp = self.smtp_factory(self.mail_host, self.mail_port)
                if self.use_ssl:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if self.username and self.password:
                logger.debug(f"Authenticating as {self.username}")
                smtp.login(self.username, self.password)

            smtp.send_message(message)
            logger.debug(f"Message sent to {message['To']}")

        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(f"SMTP error during message delivery: {e}") from e
        except OSError as e:
            raise SMTPDeliveryError(f"I/O error during SMTP delivery: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(f"Error closing SMTP connection: {e}")
