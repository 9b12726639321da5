"""Source control providers and modification filtering.

- SourceControl / SourceControlBase: provider contract
- ModificationFilter and its implementations: per-change predicates
- ModificationFilterChain: inclusion/exclusion composition
- FilteredSourceControl: decorator that filters a wrapped provider
- build_source_control: create providers from configuration
"""

from .base import ParameterisedItem, SourceControl, SourceControlBase
from .exceptions import SourceControlError
from .factory import build_modification_filter, build_source_control, register_source_control
from .filtered import FilteredSourceControl, FilterSet, ModificationFilterChain
from .filters import (
    ActionFilter,
    CommentFilter,
    ModificationFilter,
    PathFilter,
    UserFilter,
)
from .providers import NullSourceControl, StaticSourceControl

__all__ = [
    # Contract
    "SourceControl",
    "SourceControlBase",
    "ParameterisedItem",
    # Filtering
    "ModificationFilter",
    "PathFilter",
    "UserFilter",
    "ActionFilter",
    "CommentFilter",
    "FilterSet",
    "ModificationFilterChain",
    "FilteredSourceControl",
    # Providers
    "NullSourceControl",
    "StaticSourceControl",
    # Factory
    "build_modification_filter",
    "build_source_control",
    "register_source_control",
    # Exceptions
    "SourceControlError",
]
