"""Build an EmailPublisher from its configuration."""

import logging
from typing import Optional

from buildgate.config.environment import EnvironmentConfig
from buildgate.config.exceptions import ConfigurationError
from buildgate.config.models import (
    DomainConverterConfig,
    EmailPublisherConfig,
    MessageBuilderConfig,
    RegexConverterConfig,
)

from .builders import (
    HtmlDetailsMessageBuilder,
    HtmlLinkMessageBuilder,
    MessageBuilder,
    PlainTextMessageBuilder,
)
from .converters import DomainEmailConverter, EmailConverter, RegexEmailConverter
from .publisher import EmailPublisher
from .recipients import RecipientResolver
from .registrations import EmailGroup, EmailUser, RecipientTable
from .smtp_client import EmailGateway
from .templates import TemplateRenderer

logger = logging.getLogger(__name__)


def build_converter(converter_config) -> EmailConverter:
    """Create the converter described by one converter configuration entry.

    Raises:
        ConfigurationError: If the configuration type is not a known converter
    """
    if isinstance(converter_config, RegexConverterConfig):
        return RegexEmailConverter(converter_config.find, converter_config.replace)
    if isinstance(converter_config, DomainConverterConfig):
        return DomainEmailConverter(converter_config.domain)

    raise ConfigurationError(f"Unknown email converter configuration: {converter_config!r}")


def build_message_builder(
    builder_config: MessageBuilderConfig, renderer: Optional[TemplateRenderer] = None
) -> MessageBuilder:
    if builder_config.type == "html_details":
        return HtmlDetailsMessageBuilder(renderer=renderer)
    if builder_config.type == "text":
        return PlainTextMessageBuilder(renderer=renderer)
    return HtmlLinkMessageBuilder(builder_config.include_anchor_tag, renderer=renderer)


def build_recipient_table(config: EmailPublisherConfig) -> RecipientTable:
    users = [
        EmailUser(name=user.name, address=str(user.address), groups=tuple(user.groups))
        for user in config.users
    ]
    groups = [
        EmailGroup(name=group.name, notifications=tuple(group.notifications))
        for group in config.groups
    ]
    try:
        return RecipientTable(users, groups)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def build_email_publisher(
    config: EmailPublisherConfig,
    env_config: Optional[EnvironmentConfig] = None,
    renderer: Optional[TemplateRenderer] = None,
) -> EmailPublisher:
    """Create an EmailPublisher and everything it delegates to.

    Credentials missing from the file are taken from the environment, so
    passwords can stay out of the configuration file.

    Raises:
        ConfigurationError: If registrations or converters are invalid
    """
    username = config.mailhost_username
    password = config.mailhost_password
    if env_config is not None:
        username = username or env_config.mailhost_username
        password = password or env_config.mailhost_password

    gateway = EmailGateway(
        mail_host=config.mailhost,
        mail_port=config.mailport,
        username=username,
        password=password,
        use_ssl=config.use_ssl,
        max_retries=config.max_retries,
        retry_initial_delay=config.retry_initial_delay,
        retry_backoff_multiplier=config.retry_backoff_multiplier,
    )

    resolver = RecipientResolver(
        build_recipient_table(config),
        converters=[build_converter(c) for c in config.converters],
        modifier_notification_types=config.modifier_notification_types,
        subject_prefix=config.subject_prefix,
        subject_settings=config.subject_settings,
    )

    logger.debug(
        "Creating email publisher",
        extra={
            "mailhost": config.mailhost,
            "mailport": config.mailport,
            "message_builder": config.message_builder.type,
            "user_count": len(config.users),
            "group_count": len(config.groups),
        },
    )

    return EmailPublisher(
        message_builder=build_message_builder(config.message_builder, renderer),
        email_gateway=gateway,
        resolver=resolver,
        from_address=str(config.from_address),
        reply_to=str(config.reply_to) if config.reply_to else None,
        attachments=config.attachments,
        transform_files=config.transform_files,
        description=config.description,
    )
