"""Email publisher: tells interested people about a build result.

One ``execute`` call per build:
1. Unknown outcome: nothing to report, return False
2. Resolve recipients and subject
3. Render the body; a rendering failure becomes a visible error body
4. No recipients: done, return True
5. Build the envelope (attachments resolved against the working directory)
   and hand it to the gateway; a delivery failure raises PublisherError
"""

import logging
import os
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

from buildgate.domain.models import IntegrationResult, IntegrationStatus
from buildgate.logging import get_logger
from buildgate.logging.context import log_context

from .builders import HtmlDetailsMessageBuilder, HtmlLinkMessageBuilder, MessageBuilder
from .models import EmailEnvelope, PublisherError, PublishState
from .recipients import RecipientResolver
from .registrations import RecipientTable
from .smtp_client import EmailGateway

logger = get_logger(__name__, component="publisher")

Recipients = Union[str, Sequence[str]]


def is_recipient_specified(recipients: Recipients) -> bool:
    if recipients is None:
        return False
    if isinstance(recipients, str):
        return bool(recipients.strip())
    return any(recipient and recipient.strip() for recipient in recipients)


def resolve_attachments(attachments: Iterable[str], working_directory: str) -> Tuple[Path, ...]:
    """Resolve attachment paths, skipping files that do not exist.

    Relative paths are joined to the working directory; absolute paths are
    used as given.
    """
    resolved = []
    for attachment in attachments:
        path = Path(attachment)
        if not path.is_absolute():
            path = Path(working_directory) / path
        if path.is_file():
            resolved.append(path)
        else:
            logger.debug(
                f"Skipping missing attachment {path}",
                extra={"event": "publisher.attachment.missing", "path": str(path)},
            )
    return tuple(resolved)


def _split_recipients(recipients: Recipients) -> Tuple[str, ...]:
    if isinstance(recipients, str):
        recipients = recipients.split(",")
    unique = {}
    for recipient in recipients:
        address = recipient.strip()
        if address:
            unique.setdefault(address.lower(), address)
    return tuple(unique.values())


class EmailPublisher:
    """Publishes build results by email.

    The message builder, recipient resolver and gateway are all replaceable;
    by default the publisher sends a link message through a gateway with no
    mail host, which must be configured before anything can be delivered.
    """

    def __init__(
        self,
        message_builder: Optional[MessageBuilder] = None,
        email_gateway: Optional[EmailGateway] = None,
        resolver: Optional[RecipientResolver] = None,
        from_address: Optional[str] = None,
        reply_to: Optional[str] = None,
        attachments: Sequence[str] = (),
        transform_files: Sequence[str] = (),
        description: Optional[str] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.message_builder = message_builder or HtmlLinkMessageBuilder(False)
        self.email_gateway = email_gateway or EmailGateway()
        self.resolver = resolver or RecipientResolver(RecipientTable())
        self.from_address = from_address
        self.reply_to = reply_to
        self.attachments = tuple(attachments)
        self.transform_files = tuple(transform_files)
        self.description = description
        self.logger = logger_instance or logger
        self.last_state = PublishState.NOT_STARTED

    # Gateway settings, exposed the way they are configured

    @property
    def mail_host(self) -> Optional[str]:
        return self.email_gateway.mail_host

    @mail_host.setter
    def mail_host(self, value: Optional[str]) -> None:
        self.email_gateway.mail_host = value

    @property
    def mail_port(self) -> int:
        return self.email_gateway.mail_port

    @mail_port.setter
    def mail_port(self, value: int) -> None:
        self.email_gateway.mail_port = value

    @property
    def use_ssl(self) -> bool:
        return self.email_gateway.use_ssl

    @use_ssl.setter
    def use_ssl(self, value: bool) -> None:
        self.email_gateway.use_ssl = value

    @property
    def include_details(self) -> bool:
        """Deprecated switch between the details and link message builders."""
        return isinstance(self.message_builder, HtmlDetailsMessageBuilder)

    @include_details.setter
    def include_details(self, value: bool) -> None:
        renderer = self.message_builder.renderer
        if value:
            self.message_builder = HtmlDetailsMessageBuilder(renderer=renderer)
        else:
            self.message_builder = HtmlLinkMessageBuilder(False, renderer=renderer)

    def execute(self, result: IntegrationResult) -> bool:
        """Publish a build result.

        Returns:
            False if the result has no outcome yet (nothing was done),
            True otherwise, including when there was nobody to notify

        Raises:
            PublisherError: If the message could not be delivered
        """
        self.last_state = PublishState.NOT_STARTED

        if result.status == IntegrationStatus.UNKNOWN:
            self.last_state = PublishState.SKIPPED
            self.logger.debug(
                f"Skipping email for {result.project_name}: build outcome unknown",
                extra={"event": "publisher.skip", "reason": "unknown_status"},
            )
            return False

        with log_context(project=result.project_name, label=result.label):
            self.logger.info(
                self.description or "Emailing ...",
                extra={"event": "publisher.started", "status": result.status.value},
            )

            resolution = self.resolver.resolve(result)
            message = self.create_message(result)
            self.last_state = PublishState.RENDERED

            if not is_recipient_specified(resolution.recipients):
                self.last_state = PublishState.SKIPPED
                self.logger.info(
                    f"No recipients for \"{resolution.subject}\", nothing sent",
                    extra={"event": "publisher.skip", "reason": "no_recipients"},
                )
                return True

            self.logger.info(
                f"Emailing \"{resolution.subject}\" to {resolution.to_header}",
                extra={"event": "publisher.send.started", "recipients": list(resolution.recipients)},
            )
            self.send_message(
                self.from_address,
                resolution.recipients,
                self.reply_to,
                resolution.subject,
                message,
                result.working_directory,
            )

        return True

    def create_message(self, result: IntegrationResult) -> str:
        """Render the body, or a visible error message if rendering fails."""
        try:
            self.message_builder.transform_files = self.transform_files
            return self.message_builder.build_message(result)
        except Exception as e:
            message = f"Unable to build email message: {e}"
            self.logger.error(
                message,
                exc_info=True,
                extra={"event": "publisher.render.failure", "error_type": type(e).__name__},
            )
            return message

    def send_message(
        self,
        sender: Optional[str],
        recipients: Recipients,
        reply_to: Optional[str],
        subject: str,
        message: str,
        working_directory: Optional[str],
    ) -> None:
        """Build the envelope and deliver it.

        Raises:
            PublisherError: Wrapping whatever went wrong (cause is chained)
        """
        try:
            envelope = self.build_envelope(
                sender, recipients, reply_to, subject, message, working_directory
            )
            self.email_gateway.send(envelope)
        except Exception as e:
            self.last_state = PublishState.SEND_FAILED
            self.logger.error(
                f"Email delivery failed: {e}",
                exc_info=True,
                extra={"event": "publisher.send.failure", "error_type": type(e).__name__},
            )
            raise PublisherError(f"Email publisher exception: {e}") from e

        self.last_state = PublishState.SENT
        self.logger.info(
            f"Email \"{subject}\" sent",
            extra={"event": "publisher.send.success", "attachment_count": len(envelope.attachments)},
        )

    def build_envelope(
        self,
        sender: Optional[str],
        recipients: Recipients,
        reply_to: Optional[str],
        subject: str,
        message: str,
        working_directory: Optional[str],
    ) -> EmailEnvelope:
        """Resolve every field of the outgoing message.

        Raises:
            ValueError: If there is no sender or no recipient
        """
        if not sender or not sender.strip():
            raise ValueError("No sender address configured")

        to = _split_recipients(recipients)
        if not to:
            raise ValueError("No recipient address given")

        return EmailEnvelope(
            sender=sender.strip(),
            recipients=to,
            subject=subject,
            body=message,
            reply_to=reply_to or None,
            attachments=resolve_attachments(self.attachments, working_directory or os.curdir),
            is_html=self.message_builder.is_html,
        )

    def validate(self, parent, error_processor) -> None:
        """Report configuration problems to ``error_processor``.

        The publisher has to belong to a project (anything with a
        ``publishers`` collection) and is best placed in its publishers.
        """
        publishers = getattr(parent, "publishers", None)
        if publishers is None:
            error_processor.process_error("This publisher can only belong to a project")
            return

        if not any(publisher is self for publisher in publishers):
            error_processor.process_warning(
                "Email publishers are best placed in the publishers section of the configuration"
            )

        if not self.mail_host:
            error_processor.process_error("Email publisher has no mail host configured")
        if not self.from_address:
            error_processor.process_error("Email publisher has no from address configured")
