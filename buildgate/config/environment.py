"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Settings that come from the process environment rather than the config file.

    Mail host credentials live here so they can be kept out of version control.
    """

    def __init__(
        self,
        mailhost_username: Optional[str] = None,
        mailhost_password: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        self.mailhost_username = mailhost_username
        self.mailhost_password = mailhost_password
        self.log_level = log_level
        self.environment = environment or "local"


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Optional environment variables:
    - BUILDGATE_MAILHOST_USERNAME: SMTP authentication user
    - BUILDGATE_MAILHOST_PASSWORD: SMTP authentication password
    - BUILDGATE_LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label stamped on log records

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable is invalid
    """
    errors = []

    username = os.getenv("BUILDGATE_MAILHOST_USERNAME")
    password = os.getenv("BUILDGATE_MAILHOST_PASSWORD")
    log_level = os.getenv("BUILDGATE_LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid BUILDGATE_LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if username and not password:
        errors.append(
            "BUILDGATE_MAILHOST_USERNAME is set but BUILDGATE_MAILHOST_PASSWORD is not. "
            "Both must be set for authentication."
        )
    elif password and not username:
        errors.append(
            "BUILDGATE_MAILHOST_PASSWORD is set but BUILDGATE_MAILHOST_USERNAME is not. "
            "Both must be set for authentication."
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Set both mail host credentials or neither",
            ],
        )

    return EnvironmentConfig(
        mailhost_username=username,
        mailhost_password=password,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )
