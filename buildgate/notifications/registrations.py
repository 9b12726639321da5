"""Recipient registrations: users, groups and the table holding them."""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from buildgate.domain.models import IntegrationResult, NotificationType


@dataclass(frozen=True)
class EmailUser:
    """A repository user with a delivery address."""

    name: str
    address: str
    groups: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EmailGroup:
    """A named set of users notified for the listed build outcomes."""

    name: str
    notifications: Tuple[NotificationType, ...] = (NotificationType.ALWAYS,)

    def has_notification(self, result: IntegrationResult) -> bool:
        return any(notification.matches(result) for notification in self.notifications)


class RecipientTable:
    """Users and groups keyed by name.

    The table is built once and never mutated; reloading configuration means
    building a new table.
    """

    def __init__(self, users: Iterable[EmailUser] = (), groups: Iterable[EmailGroup] = ()):
        self._users = self._index(users, "user")
        self._groups = self._index(groups, "group")

    @staticmethod
    def _index(entries, kind: str) -> Dict[str, object]:
        index = {}
        for entry in entries:
            if entry.name in index:
                raise ValueError(f"Duplicate {kind} registration: {entry.name}")
            index[entry.name] = entry
        return index

    @property
    def users(self) -> Mapping[str, EmailUser]:
        return dict(self._users)

    @property
    def groups(self) -> Mapping[str, EmailGroup]:
        return dict(self._groups)

    def get_user(self, name: str) -> Optional[EmailUser]:
        return self._users.get(name)

    def get_group(self, name: str) -> Optional[EmailGroup]:
        return self._groups.get(name)

    def __len__(self) -> int:
        return len(self._users) + len(self._groups)
