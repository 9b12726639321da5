"""Email notification of build results.

This module provides the publishing side of an integration cycle:
- EmailPublisher: Renders and delivers one message per build result
- RecipientResolver: Works out recipients and subject line
- Message builders: Link, details and plain text bodies
- EmailGateway: SMTP delivery with TLS/STARTTLS and retry
- build_email_publisher: Publisher construction from configuration
"""

from .builders import (
    HtmlDetailsMessageBuilder,
    HtmlLinkMessageBuilder,
    MessageBuilder,
    PlainTextMessageBuilder,
)
from .converters import DomainEmailConverter, EmailConverter, RegexEmailConverter
from .factory import build_converter, build_email_publisher, build_message_builder
from .models import (
    EmailEnvelope,
    NotificationError,
    NotificationTemplateError,
    PublisherError,
    PublishState,
    SMTPDeliveryError,
)
from .payloads import build_message_context
from .publisher import EmailPublisher, resolve_attachments
from .recipients import DEFAULT_SUBJECTS, RecipientResolver, Resolution
from .registrations import EmailGroup, EmailUser, RecipientTable
from .smtp_client import EmailGateway
from .templates import TemplateRenderer

__all__ = [
    # Publisher
    "EmailPublisher",
    "PublishState",
    "build_email_publisher",
    # Recipients
    "RecipientResolver",
    "Resolution",
    "RecipientTable",
    "EmailUser",
    "EmailGroup",
    "EmailConverter",
    "RegexEmailConverter",
    "DomainEmailConverter",
    "DEFAULT_SUBJECTS",
    # Messages
    "MessageBuilder",
    "HtmlLinkMessageBuilder",
    "HtmlDetailsMessageBuilder",
    "PlainTextMessageBuilder",
    "TemplateRenderer",
    "build_message_context",
    # Delivery
    "EmailEnvelope",
    "EmailGateway",
    "resolve_attachments",
    # Factories
    "build_converter",
    "build_message_builder",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "SMTPDeliveryError",
    "PublisherError",
]
