"""Template context for build result messages."""

from typing import Any, Dict

from buildgate.domain.models import BuildResultType, IntegrationResult
from buildgate.utils.timestamps import format_timestamp


def build_message_context(result: IntegrationResult) -> Dict[str, Any]:
    """Build the template context for a build result.

    Returns:
        Dictionary with keys:
        - project, label, status, last_status, result_type: build outcome
        - project_url: link to the build report (may be None)
        - build_condition, working_directory
        - start_time, end_time: ISO 8601 UTC ("...Z") or None
        - duration_seconds: float or None
        - modifications: list of dicts (type, path, user, comment, change_number,
          modified_time, url)
        - modification_count, contributors, failure_users
    """
    modifications = [
        {
            "type": modification.type.value,
            "path": modification.path,
            "user": modification.user_name,
            "comment": modification.comment or "",
            "change_number": modification.change_number or "",
            "modified_time": format_timestamp(modification.modified_time),
            "url": modification.url,
        }
        for modification in result.modifications
    ]

    duration = None
    if result.start_time and result.end_time:
        duration = (result.end_time - result.start_time).total_seconds()

    return {
        "project": result.project_name,
        "label": result.label,
        "status": result.status.value,
        "last_status": result.last_integration_status.value,
        "result_type": BuildResultType.from_result(result).value,
        "project_url": result.project_url,
        "build_condition": result.build_condition,
        "working_directory": result.working_directory,
        "start_time": format_timestamp(result.start_time) or None,
        "end_time": format_timestamp(result.end_time) or None,
        "duration_seconds": duration,
        "modifications": modifications,
        "modification_count": len(modifications),
        "contributors": list(result.contributors),
        "failure_users": list(result.failure_users),
    }
