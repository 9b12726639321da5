"""Configuration management for Build Gate."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError, ConfigurationErrorProcessor
from .loader import load_config, load_integration_result, validate_config_file
from .models import (
    ActionFilterConfig,
    AppConfig,
    CommentFilterConfig,
    DomainConverterConfig,
    EmailGroupConfig,
    EmailPublisherConfig,
    EmailUserConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    MessageBuilderConfig,
    PathFilterConfig,
    ProjectConfig,
    RegexConverterConfig,
    SourceControlConfig,
    UserFilterConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_integration_result",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ProjectConfig",
    "SourceControlConfig",
    "PathFilterConfig",
    "UserFilterConfig",
    "ActionFilterConfig",
    "CommentFilterConfig",
    "EmailPublisherConfig",
    "EmailUserConfig",
    "EmailGroupConfig",
    "RegexConverterConfig",
    "DomainConverterConfig",
    "MessageBuilderConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Errors
    "ConfigurationError",
    "ConfigurationErrorProcessor",
]
