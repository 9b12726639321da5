"""Configuration and build result file loading."""

from pathlib import Path
from typing import Any, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from buildgate.domain.models import IntegrationResult

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

DEFAULT_CONFIG_LOCATIONS = (
    Path("buildgate.yaml"),
    Path("config") / "buildgate.yaml",
)


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from a YAML file and environment variables.

    Config file lookup:
    1. Use config_path if given
    2. Try buildgate.yaml in the current directory
    3. Try ./config/buildgate.yaml

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid or the file is missing
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file, "configuration")

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=[
                "Copy config.example.yaml to buildgate.yaml",
                "Add a 'project' section with at least a name",
            ],
        )

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=format_validation_errors(e),
            suggestions=[
                "Review config.example.yaml for the expected layout",
                "Check that every publisher has 'mailhost' and 'from'",
                "Verify filter and converter 'type' values",
            ],
        ) from e

    env_config = load_environment_config()

    return app_config, env_config


def load_integration_result(result_path: Path) -> IntegrationResult:
    """Load a build result description from a YAML (or JSON) file.

    Raises:
        ConfigurationError: If the file is missing or does not describe a result
    """
    data = _read_yaml(Path(result_path), "build result")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Build result file {result_path} must contain a mapping")

    try:
        return IntegrationResult.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid build result file: {result_path}",
            errors=format_validation_errors(e),
        ) from e


def format_validation_errors(error: ValidationError) -> List[str]:
    """Turn pydantic validation errors into readable one-line messages."""
    messages = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"])
        error_type = item["type"]

        if error_type == "missing":
            messages.append(f"Missing required field: {field_path}")
        elif error_type in ("string_type", "int_type", "bool_type", "list_type"):
            expected_type = error_type.replace("_type", "")
            messages.append(
                f"Invalid type for '{field_path}': expected {expected_type}, got {item.get('input')}"
            )
        elif "enum" in error_type or "literal" in error_type or "union_tag" in error_type:
            messages.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            messages.append(f"{field_path}: {item['msg']}")
    return messages


def _read_yaml(path: Path, what: str) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"{what.capitalize()} file not found: {path}",
            suggestions=[f"Ensure {path} exists and is readable"],
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML {what}: {e}",
            suggestions=[
                "Check YAML syntax in the file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read {what} file: {e}",
            suggestions=[f"Check permissions on {path}"],
        ) from e


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """Resolve the configuration file using the fallback locations."""
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Check the path and try again",
                ],
            )
        return config_path

    for candidate in DEFAULT_CONFIG_LOCATIONS:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[f"Tried: {candidate}" for candidate in DEFAULT_CONFIG_LOCATIONS],
        suggestions=[
            "Copy config.example.yaml to buildgate.yaml",
            "Use --config to specify a custom location",
        ],
    )


def validate_config_file(config_path: Path) -> bool:
    """
    Validate a configuration file without reading the environment.

    Args:
        config_path: Path to configuration file

    Returns:
        True if valid, False otherwise (errors printed to stdout)
    """
    try:
        config_dict = _read_yaml(config_path, "configuration")
        AppConfig.model_validate(config_dict)
        print(f"✓ Configuration file {config_path} is valid")
        return True
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
    except ValidationError as e:
        details = "\n".join(f"  - {message}" for message in format_validation_errors(e))
        print(f"✗ Configuration validation failed:\n{details}")
        return False
