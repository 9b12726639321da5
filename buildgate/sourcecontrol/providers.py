"""Providers that need no version-control backend.

``NullSourceControl`` reports no changes (and can simulate failures);
``StaticSourceControl`` replays a configured change list, which is how dry
runs and tests feed modifications through the filters.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence

from buildgate.domain.models import DynamicValue, IntegrationResult, Modification
from buildgate.logging import get_logger

from .base import SourceControlBase
from .exceptions import SourceControlError

logger = get_logger(__name__, component="sourcecontrol")


class NullSourceControl(SourceControlBase):
    """Provider without a repository."""

    def __init__(
        self,
        fail_get_modifications: bool = False,
        fail_label_source_control: bool = False,
        fail_get_source: bool = False,
        dynamic_values: Sequence[DynamicValue] = (),
    ):
        super().__init__(dynamic_values)
        self.fail_get_modifications = fail_get_modifications
        self.fail_label_source_control = fail_label_source_control
        self.fail_get_source = fail_get_source

    def get_modifications(
        self, from_result: IntegrationResult, to_result: IntegrationResult
    ) -> List[Modification]:
        if self.fail_get_modifications:
            raise SourceControlError("Failing GetModifications")
        return []

    def label_source_control(self, result: IntegrationResult) -> None:
        if self.fail_label_source_control:
            raise SourceControlError("Failing label source control")

    def get_source(self, result: IntegrationResult) -> None:
        if self.fail_get_source:
            raise SourceControlError("Failing getting the source")

    def initialize(self, project: Any) -> None:
        pass

    def purge(self, project: Any) -> None:
        pass


class StaticSourceControl(SourceControlBase):
    """Provider that returns a fixed list of modifications.

    When both results carry a ``start_time``, only modifications whose
    ``modified_time`` lies in ``[from.start_time, to.start_time]`` are
    returned; modifications without a time are always returned.
    """

    def __init__(
        self,
        modifications: Iterable[Modification] = (),
        dynamic_values: Sequence[DynamicValue] = (),
    ):
        super().__init__(dynamic_values)
        self.modifications = tuple(modifications)
        self.labels: List[str] = []

    def get_modifications(
        self, from_result: IntegrationResult, to_result: IntegrationResult
    ) -> List[Modification]:
        start = from_result.start_time
        end = to_result.start_time
        if start is None or end is None:
            return list(self.modifications)
        return [m for m in self.modifications if _in_window(m.modified_time, start, end)]

    def label_source_control(self, result: IntegrationResult) -> None:
        self.labels.append(result.label)
        logger.debug(
            f"Recorded label {result.label}",
            extra={"event": "sourcecontrol.label", "label": result.label},
        )

    def get_source(self, result: IntegrationResult) -> None:
        pass

    def initialize(self, project: Any) -> None:
        pass

    def purge(self, project: Any) -> None:
        self.labels.clear()


def _in_window(moment: Optional[datetime], start: datetime, end: datetime) -> bool:
    if moment is None:
        return True
    return start <= moment <= end
