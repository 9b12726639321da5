"""Factory functions that turn source control configuration into providers."""

import logging
from typing import Callable, Dict

from buildgate.config.exceptions import ConfigurationError
from buildgate.config.models import (
    ActionFilterConfig,
    CommentFilterConfig,
    PathFilterConfig,
    SourceControlConfig,
    UserFilterConfig,
)

from .base import SourceControl
from .filtered import FilteredSourceControl
from .filters import ActionFilter, CommentFilter, ModificationFilter, PathFilter, UserFilter
from .providers import NullSourceControl, StaticSourceControl

logger = logging.getLogger(__name__)

SourceControlFactory = Callable[[SourceControlConfig], SourceControl]


def build_modification_filter(filter_config) -> ModificationFilter:
    """Create the filter described by one filter configuration entry.

    Raises:
        ConfigurationError: If the configuration type is not a known filter
    """
    if isinstance(filter_config, PathFilterConfig):
        return PathFilter(filter_config.pattern, case_sensitive=filter_config.case_sensitive)
    if isinstance(filter_config, UserFilterConfig):
        return UserFilter(filter_config.names)
    if isinstance(filter_config, ActionFilterConfig):
        return ActionFilter(filter_config.actions)
    if isinstance(filter_config, CommentFilterConfig):
        return CommentFilter(filter_config.pattern)

    raise ConfigurationError(f"Unknown modification filter configuration: {filter_config!r}")


def _build_filtered(config: SourceControlConfig) -> SourceControl:
    return FilteredSourceControl(
        build_source_control(config.provider),
        inclusion_filters=[build_modification_filter(f) for f in config.inclusion_filters],
        exclusion_filters=[build_modification_filter(f) for f in config.exclusion_filters],
        dynamic_values=config.dynamic_values,
    )


def _build_null(config: SourceControlConfig) -> SourceControl:
    return NullSourceControl(dynamic_values=config.dynamic_values, **config.options)


def _build_static(config: SourceControlConfig) -> SourceControl:
    return StaticSourceControl(config.modifications, dynamic_values=config.dynamic_values)


_REGISTRY: Dict[str, SourceControlFactory] = {
    "filtered": _build_filtered,
    "null": _build_null,
    "static": _build_static,
}


def register_source_control(type_name: str, factory: SourceControlFactory) -> None:
    """Make a provider type available to ``build_source_control``.

    Args:
        type_name: Value of ``type`` in the source_control configuration
        factory: Callable receiving the SourceControlConfig and returning a provider
    """
    _REGISTRY[type_name.strip().lower()] = factory


def build_source_control(config: SourceControlConfig) -> SourceControl:
    """Create the provider described by a source control configuration.

    Raises:
        ConfigurationError: If the type is unknown or the provider rejects its options
    """
    factory = _REGISTRY.get(config.type)
    if factory is None:
        supported = ", ".join(sorted(_REGISTRY))
        raise ConfigurationError(
            f"Unknown source control type: {config.type}. Supported types: {supported}",
            suggestions=["Register custom providers with register_source_control()"],
        )

    logger.debug(
        "Creating source control provider",
        extra={"source_control_type": config.type},
    )

    try:
        return factory(config)
    except ConfigurationError:
        raise
    except TypeError as e:
        raise ConfigurationError(
            f"Failed to create '{config.type}' source control: {e}",
            suggestions=["Check the 'options' given to the provider"],
        ) from e
