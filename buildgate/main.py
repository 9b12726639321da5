"""Main entry point for Build Gate."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from buildgate.config.environment import EnvironmentConfig
from buildgate.config.exceptions import ConfigurationError, ConfigurationErrorProcessor
from buildgate.config.loader import load_config, load_integration_result
from buildgate.config.models import AppConfig
from buildgate.domain.models import IntegrationResult
from buildgate.logging import get_logger
from buildgate.logging.config import configure_logging
from buildgate.notifications.publisher import EmailPublisher
from buildgate.pipeline import IntegrationCycle, Project, build_project
from buildgate.sourcecontrol.exceptions import SourceControlError

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI > environment > config file > INFO.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif env_config.log_level:
        pass
    elif app_config.logging and app_config.logging.level:
        env_config.log_level = app_config.logging.level
    else:
        env_config.log_level = "INFO"

    return app_config, env_config


def parse_parameters(values: List[str]) -> Dict[str, str]:
    """Turn repeated NAME=VALUE arguments into a mapping.

    Raises:
        ConfigurationError: If an argument has no '='
    """
    parameters = {}
    for value in values:
        name, sep, param_value = value.partition("=")
        if not sep or not name.strip():
            raise ConfigurationError(
                f"Invalid build parameter: '{value}'",
                suggestions=["Use --param NAME=VALUE"],
            )
        parameters[name.strip()] = param_value
    return parameters


def validate_project(project: Project) -> ConfigurationErrorProcessor:
    """Run item validation, logging every warning.

    Raises:
        ConfigurationError: If any item reported an error
    """
    processor = ConfigurationErrorProcessor()
    project.validate(processor)

    for warning in processor.warnings:
        logger.warning(warning, extra={"event": "config.warning"})

    processor.raise_if_errors()
    return processor


def preview(cycle: IntegrationCycle, result: IntegrationResult) -> None:
    """Print what each email publisher would send, without sending it."""
    print(f"Modifications: {len(result.modifications)}")
    for modification in result.modifications:
        print(f"  {modification}")

    for publisher in cycle.publishers:
        if not isinstance(publisher, EmailPublisher):
            continue
        resolution = publisher.resolver.resolve(result)
        print()
        print(f"Subject: {resolution.subject}")
        print(f"To: {resolution.to_header or '(nobody)'}")
        print()
        print(publisher.create_message(result))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for Build Gate.

    Returns:
        Exit code (0 for success, 1 for configuration errors or failed publishing).
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="Build Gate - filter source changes and email build results"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: buildgate.yaml, then config/buildgate.yaml)",
    )
    parser.add_argument(
        "--result",
        type=Path,
        default=None,
        help="Build result file (YAML) to publish",
    )
    parser.add_argument(
        "--previous",
        type=Path,
        default=None,
        help="Result file of the previous build",
    )
    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Build parameter applied to the source control provider (repeatable)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print the resolved recipients and message instead of sending",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Validate the configuration and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    args = parser.parse_args(argv)

    if not args.validate_only and args.result is None:
        parser.error("--result is required unless --validate-only is given")

    try:
        # Load configuration before logging so the format is known
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        log_format = app_config.logging.format if app_config.logging else "key-value"
        environment = env_config.environment or os.environ.get("ENVIRONMENT", "local")
        configure_logging(level=env_config.log_level, format_type=log_format, environment=environment)

        logger.info(
            "Build Gate starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "preview": args.preview,
            },
        )

        project = build_project(app_config, env_config)
        processor = validate_project(project)

        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "project": project.name,
                "publisher_count": len(project.publishers) + len(project.tasks),
                "warning_count": len(processor.warnings),
            },
        )

        if args.validate_only:
            print(f"✓ Configuration for project {project.name} is valid")
            for warning in processor.warnings:
                print(f"  warning: {warning}")
            return 0

        result = load_integration_result(args.result)
        previous = load_integration_result(args.previous) if args.previous else None
        parameters = parse_parameters(args.param) if args.param else None

        cycle = IntegrationCycle.from_project(project)

        if args.preview:
            preview(cycle, cycle.prepare(result, previous, parameters))
            return 0

        cycle_result = cycle.run(result, previous, parameters)

        logger.info(
            f"Cycle completed: {cycle_result.modification_count} modifications, "
            f"{cycle_result.sent_count} emails sent",
            extra={
                "event": "service.cycle.completed",
                "duration_seconds": cycle_result.total_duration_seconds,
                "had_errors": cycle_result.had_errors,
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )

        for message in cycle_result.error_messages:
            print(f"Publish Error: {message}", file=sys.stderr)

        return 1 if cycle_result.had_errors else 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except SourceControlError as e:
        print(f"Source Control Error: {e}", file=sys.stderr)
        logger.error(
            f"Source control error: {e}",
            extra={"event": "sourcecontrol.error", "error_type": type(e).__name__},
            exc_info=True,
        )
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during integration cycle",
            extra={
                "event": "service.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
