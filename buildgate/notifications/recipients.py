"""Recipient and subject resolution for build result emails.

Recipients are collected from two sources:
1. Registered users whose group subscribes to the build outcome
2. The build's modifiers (and, for failed builds, the users who broke it),
   when one of the modifier notification types matches the outcome

A modifier resolves to the registered user's address, else the first converter
that produces one, else the address the source control reported. A
modifier that resolves to nothing is dropped with a debug message.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from email_validator import EmailNotValidError, validate_email

from buildgate.domain.models import BuildResultType, IntegrationResult, NotificationType
from buildgate.logging import get_logger

from .converters import EmailConverter
from .registrations import RecipientTable

logger = get_logger(__name__, component="publisher")

DEFAULT_SUBJECTS: Dict[BuildResultType, str] = {
    BuildResultType.SUCCESS: "{project} Build Successful: Build {label}",
    BuildResultType.FIXED: "{project} Build Fixed: Build {label}",
    BuildResultType.BROKEN: "{project} Build Failed",
    BuildResultType.STILL_BROKEN: "{project} Build Still Failing",
    BuildResultType.EXCEPTION: "{project} Exception in Build !",
}


class _KeepUnknown(dict):
    def __missing__(self, key):
        return "{" + key + "}"


def format_subject(template: str, result: IntegrationResult) -> str:
    """Fill ``{project}`` and ``{label}``; anything else is left as written."""
    values = _KeepUnknown(project=result.project_name, label=result.label)
    try:
        return template.format_map(values)
    except (ValueError, IndexError, AttributeError, KeyError):
        return template


@dataclass(frozen=True)
class Resolution:
    """Recipients and subject line for one build result."""

    recipients: Tuple[str, ...]
    subject: str

    @property
    def to_header(self) -> str:
        return ", ".join(self.recipients)


class RecipientResolver:
    """Works out who is told about a build result, and with which subject."""

    def __init__(
        self,
        table: RecipientTable,
        converters: Sequence[EmailConverter] = (),
        modifier_notification_types: Iterable[NotificationType] = (NotificationType.ALWAYS,),
        subject_prefix: Optional[str] = None,
        subject_settings: Optional[Mapping[BuildResultType, str]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.table = table
        self.converters = tuple(converters)
        self.modifier_notification_types = tuple(modifier_notification_types)
        self.subject_prefix = subject_prefix
        self.subject_settings = dict(subject_settings or {})
        self.logger = logger_instance or logger

    def resolve(self, result: IntegrationResult) -> Resolution:
        return Resolution(recipients=self.recipients(result), subject=self.subject(result))

    def recipients(self, result: IntegrationResult) -> Tuple[str, ...]:
        """Deduplicated (case-insensitive) recipient addresses, sorted."""
        collected: Dict[str, str] = {}

        self._add_group_members(result, collected)
        if self.should_notify_modifiers(result):
            self._add_modifiers(result, collected)

        if not collected:
            self.logger.debug(
                f"No recipients resolved for {result.project_name} {result.label}",
                extra={"event": "publisher.recipients.empty", "status": result.status.value},
            )

        return tuple(collected[key] for key in sorted(collected))

    def subject(self, result: IntegrationResult) -> str:
        result_type = BuildResultType.from_result(result)
        template = self.subject_settings.get(result_type, DEFAULT_SUBJECTS[result_type])
        subject = format_subject(template, result)

        if self.subject_prefix:
            subject = f"{self.subject_prefix} {subject}"
        return subject

    def should_notify_modifiers(self, result: IntegrationResult) -> bool:
        return any(t.matches(result) for t in self.modifier_notification_types)

    def resolve_address(self, user_name: str, reported_address: Optional[str] = None) -> Optional[str]:
        """Find the delivery address for a repository user, or None.

        Lookup order: registered user, then each converter in turn, then the
        address reported by source control.
        """
        user = self.table.get_user(user_name)
        if user is not None:
            return user.address

        candidate = self._convert(user_name) if user_name else None
        if not candidate:
            candidate = reported_address

        if not candidate:
            self.logger.debug(
                f"Could not resolve an address for user '{user_name}'",
                extra={"event": "publisher.recipient.unresolved", "user_name": user_name},
            )
            return None

        try:
            return validate_email(candidate, check_deliverability=False).normalized
        except EmailNotValidError as e:
            self.logger.debug(
                f"Dropping invalid address '{candidate}' for user '{user_name}': {e}",
                extra={"event": "publisher.recipient.invalid", "user_name": user_name},
            )
            return None

    def _convert(self, user_name: str) -> Optional[str]:
        for converter in self.converters:
            try:
                candidate = converter.convert(user_name)
            except Exception as e:
                self.logger.debug(
                    f"Converter {converter!r} failed for user '{user_name}': {e}",
                    extra={
                        "event": "publisher.recipient.converter_failure",
                        "user_name": user_name,
                        "error_type": type(e).__name__,
                    },
                )
                continue
            if candidate:
                return candidate
        return None

    def _add_group_members(self, result: IntegrationResult, collected: Dict[str, str]) -> None:
        for user in self.table.users.values():
            for group_name in user.groups:
                group = self.table.get_group(group_name)
                if group is not None and group.has_notification(result):
                    _add(collected, user.address)
                    break

    def _add_modifiers(self, result: IntegrationResult, collected: Dict[str, str]) -> None:
        for modification in result.modifications:
            if not modification.user_name and not modification.email_address:
                continue
            address = self.resolve_address(modification.user_name, modification.email_address)
            if address:
                _add(collected, address)

        if result.failed:
            for user_name in result.failure_users:
                address = self.resolve_address(user_name)
                if address:
                    _add(collected, address)


def _add(collected: Dict[str, str], address: str) -> None:
    collected.setdefault(address.lower(), address)
