"""Configuration schema models using Pydantic."""

import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from buildgate.domain.models import (
    BuildResultType,
    DynamicValue,
    Modification,
    ModificationType,
    NotificationType,
    ParameterDefinition,
)


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _check_regex(value: str) -> str:
    try:
        re.compile(value)
    except re.error as e:
        raise ValueError(f"Invalid regular expression '{value}': {e}") from e
    return value


# --- modification filters -------------------------------------------------


class PathFilterConfig(BaseModel):
    """Accept modifications whose path matches a glob pattern."""

    type: Literal["path"] = "path"
    pattern: str = Field(..., min_length=1, description="Glob pattern, '**' crosses folders")
    case_sensitive: bool = Field(True, description="Match the pattern case-sensitively")


class UserFilterConfig(BaseModel):
    """Accept modifications made by one of the listed users."""

    type: Literal["user"] = "user"
    names: List[str] = Field(..., min_length=1, description="Repository user names")

    @field_validator("names")
    @classmethod
    def strip_names(cls, v: List[str]) -> List[str]:
        names = [name.strip() for name in v if name and name.strip()]
        if not names:
            raise ValueError("User filter needs at least one non-empty name")
        return names


class ActionFilterConfig(BaseModel):
    """Accept modifications of the listed kinds."""

    type: Literal["action"] = "action"
    actions: List[ModificationType] = Field(..., min_length=1)


class CommentFilterConfig(BaseModel):
    """Accept modifications whose comment matches a regular expression."""

    type: Literal["comment"] = "comment"
    pattern: str = Field(..., min_length=1, description="Regular expression")

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        return _check_regex(v)


FilterConfig = Annotated[
    Union[PathFilterConfig, UserFilterConfig, ActionFilterConfig, CommentFilterConfig],
    Field(discriminator="type"),
]


class SourceControlConfig(BaseModel):
    """Source control provider configuration.

    ``type: filtered`` wraps ``provider`` with inclusion and exclusion filters.
    Other types are looked up in the source control registry and receive
    ``options`` as keyword arguments.
    """

    type: str = Field("null", min_length=1, description="Provider type")
    provider: Optional["SourceControlConfig"] = Field(
        None, description="Wrapped provider (filtered only)"
    )
    inclusion_filters: List[FilterConfig] = Field(default_factory=list)
    exclusion_filters: List[FilterConfig] = Field(default_factory=list)
    modifications: List[Modification] = Field(
        default_factory=list, description="Fixed change list (static only)"
    )
    dynamic_values: List[DynamicValue] = Field(default_factory=list)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def validate_provider(self):
        if self.type == "filtered" and self.provider is None:
            raise ValueError("Filtered source control requires a 'provider'")
        if self.type != "filtered" and (self.inclusion_filters or self.exclusion_filters):
            raise ValueError(
                f"Filters are only supported on 'filtered' source control, not '{self.type}'"
            )
        return self


SourceControlConfig.model_rebuild()


# --- email publisher ------------------------------------------------------


class EmailUserConfig(BaseModel):
    """A registered recipient."""

    name: str = Field(..., min_length=1, description="Repository user name")
    address: EmailStr = Field(..., description="Delivery address")
    groups: List[str] = Field(default_factory=list, description="Group memberships")

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("User name cannot be empty or whitespace-only")
        return stripped


class EmailGroupConfig(BaseModel):
    """A recipient group and the build outcomes its members are notified about."""

    name: str = Field(..., min_length=1)
    notifications: List[NotificationType] = Field(
        default_factory=lambda: [NotificationType.ALWAYS], min_length=1
    )


class RegexConverterConfig(BaseModel):
    """Turn a user name into an address with a regular expression substitution."""

    type: Literal["regex"] = "regex"
    find: str = Field(..., min_length=1)
    replace: str = Field(...)

    @field_validator("find")
    @classmethod
    def validate_find(cls, v: str) -> str:
        return _check_regex(v)

    @model_validator(mode="after")
    def validate_replace(self):
        """Reject replacement templates that refer to missing groups."""
        try:
            re.compile(self.find).sub(self.replace, "x")
        except (re.error, IndexError) as e:
            raise ValueError(
                f"Invalid replacement '{self.replace}' for expression '{self.find}': {e}"
            ) from e
        return self


class DomainConverterConfig(BaseModel):
    """Append a mail domain to bare user names."""

    type: Literal["domain"] = "domain"
    domain: str = Field(..., min_length=1)

    @field_validator("domain")
    @classmethod
    def strip_domain(cls, v: str) -> str:
        stripped = v.strip().lstrip("@")
        if not stripped or "@" in stripped:
            raise ValueError(f"Invalid mail domain: '{v}'")
        return stripped


ConverterConfig = Annotated[
    Union[RegexConverterConfig, DomainConverterConfig],
    Field(discriminator="type"),
]


class MessageBuilderConfig(BaseModel):
    """Which message builder renders the email body."""

    type: Literal["html_link", "html_details", "text"] = "html_link"
    include_anchor_tag: bool = Field(False, description="Wrap the report link in an anchor")


class EmailPublisherConfig(BaseModel):
    """Email publisher settings."""

    type: Literal["email"] = "email"
    description: Optional[str] = Field(None, description="Progress text shown while publishing")
    mailhost: str = Field(..., min_length=1, description="SMTP server host name")
    mailport: int = Field(25, ge=1, le=65535, description="SMTP server port")
    mailhost_username: Optional[str] = None
    mailhost_password: Optional[str] = None
    use_ssl: bool = Field(False, description="Secure the SMTP connection")
    from_address: EmailStr = Field(..., alias="from", description="Sender address")
    reply_to: Optional[EmailStr] = Field(None, alias="replyto")
    subject_prefix: Optional[str] = None
    subject_settings: Dict[BuildResultType, str] = Field(
        default_factory=dict, description="Subject overrides keyed by build result type"
    )
    users: List[EmailUserConfig] = Field(default_factory=list)
    groups: List[EmailGroupConfig] = Field(default_factory=list)
    converters: List[ConverterConfig] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    transform_files: List[str] = Field(default_factory=list)
    modifier_notification_types: List[NotificationType] = Field(
        default_factory=lambda: [NotificationType.ALWAYS]
    )
    include_details: Optional[bool] = Field(
        None, description="Deprecated: true selects html_details, false html_link"
    )
    message_builder: MessageBuilderConfig = Field(default_factory=MessageBuilderConfig)
    max_retries: int = Field(0, ge=0, le=10, description="Delivery retries after a failure")
    retry_initial_delay: float = Field(5.0, ge=0, le=60, description="First retry delay (seconds)")
    retry_backoff_multiplier: float = Field(2.0, ge=1.0, le=5.0)

    model_config = {"populate_by_name": True}

    @field_validator("mailhost")
    @classmethod
    def strip_mailhost(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("mailhost cannot be empty or whitespace-only")
        return stripped

    @model_validator(mode="after")
    def validate_registrations(self):
        """Reject duplicate registrations and memberships of undefined groups."""
        user_names = [user.name for user in self.users]
        duplicates = sorted({name for name in user_names if user_names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate user names: {', '.join(duplicates)}")

        group_names = [group.name for group in self.groups]
        duplicates = sorted({name for name in group_names if group_names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate group names: {', '.join(duplicates)}")

        known_groups = set(group_names)
        for user in self.users:
            unknown = sorted(set(user.groups) - known_groups)
            if unknown:
                raise ValueError(
                    f"User '{user.name}' belongs to undefined group(s): {', '.join(unknown)}"
                )

        if self.include_details is not None:
            self.message_builder = MessageBuilderConfig(
                type="html_details" if self.include_details else "html_link"
            )

        return self


# --- project and root -----------------------------------------------------


class ProjectConfig(BaseModel):
    """The project whose build results are published."""

    name: str = Field(..., min_length=1)
    working_directory: str = Field(".", description="Build working directory")
    web_url: Optional[str] = Field(None, description="Link to the project's build report")
    parameters: List[ParameterDefinition] = Field(default_factory=list)
    tasks: List[EmailPublisherConfig] = Field(default_factory=list)
    publishers: List[EmailPublisherConfig] = Field(default_factory=list)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(LogFormat.KEY_VALUE, description="Log output format")

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object."""

    project: ProjectConfig
    source_control: SourceControlConfig = Field(default_factory=SourceControlConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
