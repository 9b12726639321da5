"""Converters that derive an email address from a repository user name."""

import re
from abc import ABC, abstractmethod
from typing import Optional


class EmailConverter(ABC):
    """Turns a user name into an address, or returns None if it cannot."""

    @abstractmethod
    def convert(self, user_name: str) -> Optional[str]:
        ...


class RegexEmailConverter(EmailConverter):
    """Regular expression substitution, e.g. ``^(.*)$`` -> ``\\1@example.com``.

    Returns None when the pattern does not match the user name.
    """

    def __init__(self, find: str, replace: str):
        self.find = find
        self.replace = replace
        self._regex = re.compile(find)

    def convert(self, user_name: str) -> Optional[str]:
        if not self._regex.search(user_name):
            return None
        return self._regex.sub(self.replace, user_name, count=1)

    def __repr__(self) -> str:
        return f"RegexEmailConverter({self.find!r} -> {self.replace!r})"


class DomainEmailConverter(EmailConverter):
    """Appends ``@domain`` to user names that are not already addresses."""

    def __init__(self, domain: str):
        self.domain = domain.lstrip("@")

    def convert(self, user_name: str) -> Optional[str]:
        name = user_name.strip()
        if not name or "@" in name:
            return None
        return f"{name}@{self.domain}"

    def __repr__(self) -> str:
        return f"DomainEmailConverter({self.domain!r})"
