"""Data models and exceptions for build result notifications."""

import mimetypes
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a message template cannot be loaded or rendered."""

    pass


class SMTPDeliveryError(NotificationError):
    """Raised by the email gateway when a message could not be delivered."""

    pass


class PublisherError(NotificationError):
    """Raised when the publishing step itself fails.

    Only delivery failures end up here; the original exception is chained as
    ``__cause__``.
    """

    pass


class PublishState(str, Enum):
    """Where a single publisher invocation ended."""

    NOT_STARTED = "not_started"
    SKIPPED = "skipped"
    RENDERED = "rendered"
    SENT = "sent"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class EmailEnvelope:
    """A fully resolved message, ready for the gateway.

    Attributes:
        sender: From address
        recipients: Deduplicated To addresses
        subject: Final subject line (prefix already applied)
        body: Rendered message body
        reply_to: Optional Reply-To address
        attachments: Paths of files that exist and will be attached
        is_html: Whether the body is HTML
    """

    sender: str
    recipients: Tuple[str, ...]
    subject: str
    body: str
    reply_to: Optional[str] = None
    attachments: Tuple[Path, ...] = ()
    is_html: bool = True

    def to_email_message(self) -> EmailMessage:
        """Build the stdlib message, reading attachment files from disk."""
        message = EmailMessage()
        message["Subject"] = self.subject
        message["From"] = self.sender
        message["To"] = ", ".join(self.recipients)
        if self.reply_to:
            message["Reply-To"] = self.reply_to

        if self.is_html:
            message.set_content(self.body, subtype="html")
        else:
            message.set_content(self.body)

        for path in self.attachments:
            content_type, encoding = mimetypes.guess_type(path.name)
            if content_type is None or encoding is not None:
                content_type = "application/octet-stream"
            maintype, subtype = content_type.split("/", 1)
            message.add_attachment(
                path.read_bytes(),
                maintype=maintype,
                subtype=subtype,
                filename=path.name,
            )

        return message
