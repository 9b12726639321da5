"""Integration cycle orchestration: filter changes, then publish the result."""

import time
from typing import Any, Iterable, Mapping, Optional, Sequence
from uuid import uuid4

from buildgate.domain.models import IntegrationResult, IntegrationStatus, ParameterDefinition
from buildgate.logging import get_logger
from buildgate.logging.context import log_context
from buildgate.notifications.models import PublisherError
from buildgate.sourcecontrol.base import ParameterisedItem, SourceControl
from buildgate.utils.timestamps import utc_now

from .models import CycleResult, PublisherOutcome
from .project import Project

logger = get_logger(__name__, component="pipeline")


class IntegrationCycle:
    """
    Runs the post-build part of one integration cycle.

    The cycle asks the source control provider for the modifications since
    the previous build, attaches them to the build result and hands the
    result to every publisher in order. A publisher failure is recorded on
    the CycleResult and the remaining publishers still run. Source control
    errors (including failing filters) propagate to the caller.
    """

    def __init__(
        self,
        source_control: SourceControl,
        publishers: Sequence[Any],
        parameter_definitions: Iterable[ParameterDefinition] = (),
        web_url: Optional[str] = None,
        working_directory: Optional[str] = None,
    ):
        """
        Initialize the integration cycle.

        Args:
            source_control: Provider of modifications (usually filtered)
            publishers: Objects with ``execute(result) -> bool``
            parameter_definitions: Definitions used when applying build parameters
            web_url: Report link used when the result carries none
            working_directory: Working directory used when the result carries none
        """
        self.source_control = source_control
        self.publishers = list(publishers)
        self.parameter_definitions = tuple(parameter_definitions)
        self.web_url = web_url
        self.working_directory = working_directory

    @classmethod
    def from_project(cls, project: Project) -> "IntegrationCycle":
        """Cycle running the project's tasks, then its publishers."""
        return cls(
            project.source_control,
            [*project.tasks, *project.publishers],
            parameter_definitions=project.parameters,
            web_url=project.web_url,
            working_directory=project.working_directory,
        )

    def run(
        self,
        result: IntegrationResult,
        previous: Optional[IntegrationResult] = None,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> CycleResult:
        """
        Execute one cycle for a finished build.

        Args:
            result: The build result to publish
            previous: Result of the previous build, if known
            parameters: Build parameter values to apply to the provider

        Returns:
            CycleResult with the filtered modifications and publisher outcomes

        Raises:
            SourceControlError: If the provider cannot list modifications
            Exception: Whatever a failing filter raised
        """
        cycle_started_at = utc_now()
        cycle_id = uuid4().hex

        with log_context(cycle_id=cycle_id, project=result.project_name, label=result.label):
            logger.info(
                "Integration cycle started",
                extra={
                    "event": "cycle.started",
                    "status": result.status.value,
                    "publisher_count": len(self.publishers),
                },
            )

            current = self.prepare(result, previous, parameters)
            modifications = current.modifications

            logger.info(
                f"Found {len(modifications)} modifications",
                extra={"event": "cycle.modifications", "modification_count": len(modifications)},
            )

            outcomes = [self._run_publisher(publisher, current) for publisher in self.publishers]

            cycle_result = CycleResult(
                cycle_started_at=cycle_started_at,
                cycle_finished_at=utc_now(),
                modifications=list(modifications),
                publisher_outcomes=outcomes,
            )

            logger.info(
                "Integration cycle completed",
                extra={
                    "event": "cycle.completed",
                    "duration_ms": int(cycle_result.total_duration_seconds * 1000),
                    "modification_count": cycle_result.modification_count,
                    "sent_count": cycle_result.sent_count,
                    "had_errors": cycle_result.had_errors,
                },
            )

            return cycle_result

    def prepare(
        self,
        result: IntegrationResult,
        previous: Optional[IntegrationResult] = None,
        parameters: Optional[Mapping[str, str]] = None,
    ) -> IntegrationResult:
        """Apply parameters and return the result carrying the filtered modifications.

        Nothing is published; ``run`` and the CLI preview both start here.
        """
        if parameters is not None and isinstance(self.source_control, ParameterisedItem):
            self.source_control.apply_parameters(parameters, self.parameter_definitions)

        result = self._complete(result, previous)
        from_result = previous or IntegrationResult(
            project_name=result.project_name,
            status=result.last_integration_status,
        )

        modifications = self.source_control.get_modifications(from_result, result)
        return result.with_modifications(modifications)

    def _complete(
        self, result: IntegrationResult, previous: Optional[IntegrationResult]
    ) -> IntegrationResult:
        """Fill fields the build engine left out from the project and previous build."""
        update = {}
        if previous is not None and result.last_integration_status == IntegrationStatus.UNKNOWN:
            update["last_integration_status"] = previous.status
        if result.project_url is None and self.web_url:
            update["project_url"] = self.web_url
        if result.working_directory is None and self.working_directory:
            update["working_directory"] = self.working_directory
        return result.model_copy(update=update) if update else result

    def _run_publisher(self, publisher: Any, result: IntegrationResult) -> PublisherOutcome:
        name = getattr(publisher, "description", None) or type(publisher).__name__
        started = time.time()
        published = False
        error_message = None

        try:
            published = publisher.execute(result)
        except PublisherError as e:
            error_message = str(e)
            logger.error(
                f"Publisher {name} failed: {e}",
                extra={
                    "event": "cycle.publisher.failure",
                    "publisher": name,
                    "error_type": type(e.__cause__ or e).__name__,
                },
            )

        state = getattr(publisher, "last_state", None)
        return PublisherOutcome(
            name=name,
            state=getattr(state, "value", str(state)) if state is not None else "unknown",
            published=bool(published),
            duration_seconds=time.time() - started,
            error_message=error_message,
        )
