"""Source control provider contract.

Concrete version-control backends (git, svn, ...) live outside this package;
they plug in by subclassing ``SourceControl`` (or ``SourceControlBase`` to get
parameter support) and registering a factory with
``buildgate.sourcecontrol.factory.register_source_control``.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Protocol, Sequence, runtime_checkable

from buildgate.domain.models import (
    DynamicValue,
    IntegrationResult,
    Modification,
    ParameterDefinition,
)
from buildgate.logging import get_logger

from .exceptions import SourceControlError

logger = get_logger(__name__, component="sourcecontrol")


@runtime_checkable
class ParameterisedItem(Protocol):
    """Capability of items that accept build parameters at run time."""

    def apply_parameters(
        self,
        parameters: Mapping[str, str],
        definitions: Iterable[ParameterDefinition],
    ) -> None:
        ...


class SourceControl(ABC):
    """Operations every source control provider supports.

    ``project`` arguments are opaque to this package; they are whatever the
    build engine passes (typically a ``buildgate.pipeline.Project``).
    """

    @abstractmethod
    def get_modifications(
        self, from_result: IntegrationResult, to_result: IntegrationResult
    ) -> List[Modification]:
        """Return the changes made between two build results."""

    @abstractmethod
    def label_source_control(self, result: IntegrationResult) -> None:
        """Tag the repository with the build label."""

    @abstractmethod
    def get_source(self, result: IntegrationResult) -> None:
        """Update the working directory to the revision being built."""

    @abstractmethod
    def initialize(self, project: Any) -> None:
        """Prepare the provider for a project (first run)."""

    @abstractmethod
    def purge(self, project: Any) -> None:
        """Remove anything the provider created for a project."""


class SourceControlBase(SourceControl):
    """Provider base class with build parameter support.

    Each ``DynamicValue`` copies one build parameter onto an attribute of the
    provider. The value comes from the supplied parameters, then the parameter
    definition's default, then the dynamic value's own default; when none
    exists the attribute is left alone.
    """

    def __init__(self, dynamic_values: Sequence[DynamicValue] = ()):
        self.dynamic_values = tuple(dynamic_values)

    def apply_parameters(
        self,
        parameters: Mapping[str, str],
        definitions: Iterable[ParameterDefinition],
    ) -> None:
        defaults = {definition.name: definition.default for definition in definitions}

        for dynamic_value in self.dynamic_values:
            name = dynamic_value.parameter
            if name in parameters:
                value = parameters[name]
            elif defaults.get(name) is not None:
                value = defaults[name]
            elif dynamic_value.default is not None:
                value = dynamic_value.default
            else:
                continue

            if not hasattr(self, dynamic_value.attribute):
                raise SourceControlError(
                    f"{type(self).__name__} has no attribute '{dynamic_value.attribute}' "
                    f"for parameter '{name}'"
                )

            setattr(self, dynamic_value.attribute, value)
            logger.debug(
                f"Applied parameter {name} to {type(self).__name__}.{dynamic_value.attribute}",
                extra={"event": "sourcecontrol.parameter.applied", "parameter": name},
            )
