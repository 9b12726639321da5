"""Modification filters: predicates over a single change record."""

import re
from abc import ABC, abstractmethod
from typing import Iterable, Pattern

from buildgate.domain.models import Modification, ModificationType


class ModificationFilter(ABC):
    """Decides whether one modification matches a rule.

    Filters hold only their configured parameters and must not keep state
    between calls.
    """

    @abstractmethod
    def accept(self, modification: Modification) -> bool:
        """Return True if the modification matches this filter's rule."""


def glob_to_regex(pattern: str, case_sensitive: bool = True) -> Pattern[str]:
    """Compile a path glob.

    ``**`` matches across folders (``**/`` also matches no folder at all),
    ``*`` and ``?`` stay inside one path segment. A trailing ``/`` means
    "everything below this folder".
    """
    pattern = pattern.replace("\\", "/")
    if pattern.endswith("/"):
        pattern += "**"

    parts = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
            continue
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
            continue
        if char == "*":
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        i += 1

    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile("^" + "".join(parts) + "$", flags)


class PathFilter(ModificationFilter):
    """Matches the modification path (folder + file) against a glob."""

    def __init__(self, pattern: str, case_sensitive: bool = True):
        self.pattern = pattern
        self.case_sensitive = case_sensitive
        self._regex = glob_to_regex(pattern, case_sensitive)

    def accept(self, modification: Modification) -> bool:
        return bool(self._regex.match(modification.path))

    def __str__(self) -> str:
        return f"PathFilter({self.pattern!r})"


class UserFilter(ModificationFilter):
    """Matches modifications made by one of the listed users."""

    def __init__(self, user_names: Iterable[str]):
        self.user_names = frozenset(user_names)

    def accept(self, modification: Modification) -> bool:
        return modification.user_name in self.user_names

    def __str__(self) -> str:
        return f"UserFilter({', '.join(sorted(self.user_names))})"


class ActionFilter(ModificationFilter):
    """Matches modifications of the listed kinds (added, deleted, ...)."""

    def __init__(self, actions: Iterable[ModificationType]):
        self.actions = frozenset(ModificationType(action) for action in actions)

    def accept(self, modification: Modification) -> bool:
        return modification.type in self.actions

    def __str__(self) -> str:
        return f"ActionFilter({', '.join(sorted(action.value for action in self.actions))})"


class CommentFilter(ModificationFilter):
    """Matches modifications whose comment contains the regular expression."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self._regex = re.compile(pattern)

    def accept(self, modification: Modification) -> bool:
        if modification.comment is None:
            return False
        return bool(self._regex.search(modification.comment))

    def __str__(self) -> str:
        return f"CommentFilter({self.pattern!r})"
