"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for likely mistakes that are not validation errors.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    project = config_dict.get("project", {})
    if isinstance(project, dict):
        project_name = project.get("name", "Unknown")

        tasks = project.get("tasks", [])
        if isinstance(tasks, list):
            for task in tasks:
                if isinstance(task, dict) and task.get("type", "email") == "email":
                    warning_messages.append(
                        f"Project '{project_name}': email publishers are best placed "
                        "in the publishers section of the configuration"
                    )

        publishers = project.get("publishers", [])
        if isinstance(publishers, list):
            for publisher in publishers:
                if isinstance(publisher, dict):
                    warning_messages.extend(_check_publisher(publisher))

    source_control = config_dict.get("source_control", {})
    if isinstance(source_control, dict) and str(source_control.get("type", "")).lower() == "filtered":
        if not source_control.get("inclusion_filters") and not source_control.get("exclusion_filters"):
            warning_messages.append(
                "Filtered source control has no inclusion or exclusion filters; "
                "every modification will pass"
            )

    return warning_messages


def _check_publisher(publisher: Dict[str, Any]) -> List[str]:
    messages = []

    users = publisher.get("users") or []
    groups = publisher.get("groups") or []
    converters = publisher.get("converters") or []
    if not users and not groups and not converters:
        messages.append(
            "Email publisher has no users, groups or converters; "
            "only modifiers with an address reported by source control can be notified"
        )

    prefix = publisher.get("subject_prefix")
    if isinstance(prefix, str) and prefix and not prefix.strip():
        messages.append("Email publisher subject_prefix is blank and will only add whitespace")

    if publisher.get("include_details") is not None:
        messages.append("include_details is deprecated; use message_builder.type instead")

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
