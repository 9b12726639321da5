"""Filtering decorator around a source control provider.

``FilteredSourceControl`` is a drop-in ``SourceControl``: every operation is
forwarded to the wrapped provider, and only the result of
``get_modifications`` is reduced by ``ModificationFilterChain``.

A modification survives when it is accepted by the inclusion filters and not
accepted by the exclusion filters:
- no inclusion filters: everything is included
- no exclusion filters: nothing is excluded
- otherwise the first filter that accepts decides for its set
Exclusion wins when both sets accept a modification.
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from buildgate.domain.models import (
    DynamicValue,
    IntegrationResult,
    Modification,
    ParameterDefinition,
)
from buildgate.logging import get_logger

from .base import ParameterisedItem, SourceControl, SourceControlBase
from .filters import ModificationFilter

logger = get_logger(__name__, component="sourcecontrol")


@dataclass(frozen=True)
class FilterSet:
    """Inclusion and exclusion filters, in evaluation order."""

    inclusion: Tuple[ModificationFilter, ...] = ()
    exclusion: Tuple[ModificationFilter, ...] = ()


class ModificationFilterChain:
    """Applies a FilterSet to a list of modifications.

    Filter exceptions propagate; a failing filter aborts the whole call.
    """

    def __init__(
        self,
        inclusion_filters: Iterable[ModificationFilter] = (),
        exclusion_filters: Iterable[ModificationFilter] = (),
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.filter_set = FilterSet(tuple(inclusion_filters), tuple(exclusion_filters))
        self.logger = logger_instance or logger

    def filter(self, modifications: Sequence[Modification]) -> List[Modification]:
        """Return the surviving modifications in their original order."""
        filter_set = self.filter_set
        accepted = []

        for modification in modifications:
            if self._is_included(filter_set, modification) and not self._is_excluded(
                filter_set, modification
            ):
                self.logger.debug(
                    f"Modification {modification} passed the filters",
                    extra={"event": "sourcecontrol.filter.accepted"},
                )
                accepted.append(modification)
            else:
                self.logger.debug(
                    f"Modification {modification} was filtered out",
                    extra={"event": "sourcecontrol.filter.rejected"},
                )

        return accepted

    def is_included(self, modification: Modification) -> bool:
        return self._is_included(self.filter_set, modification)

    def is_excluded(self, modification: Modification) -> bool:
        return self._is_excluded(self.filter_set, modification)

    def _is_included(self, filter_set: FilterSet, modification: Modification) -> bool:
        if not filter_set.inclusion:
            return True

        for modification_filter in filter_set.inclusion:
            if modification_filter.accept(modification):
                self.logger.debug(
                    f"Modification {modification} was included by filter {modification_filter}",
                    extra={"event": "sourcecontrol.filter.included"},
                )
                return True

        return False

    def _is_excluded(self, filter_set: FilterSet, modification: Modification) -> bool:
        if not filter_set.exclusion:
            return False

        for modification_filter in filter_set.exclusion:
            if modification_filter.accept(modification):
                self.logger.debug(
                    f"Modification {modification} was excluded by filter {modification_filter}",
                    extra={"event": "sourcecontrol.filter.excluded"},
                )
                return True

        return False


class FilteredSourceControl(SourceControlBase):
    """Source control provider that filters another provider's modifications."""

    def __init__(
        self,
        source_control_provider: SourceControl,
        inclusion_filters: Iterable[ModificationFilter] = (),
        exclusion_filters: Iterable[ModificationFilter] = (),
        dynamic_values: Sequence[DynamicValue] = (),
    ):
        super().__init__(dynamic_values)
        self.source_control_provider = source_control_provider
        self._chain = ModificationFilterChain(inclusion_filters, exclusion_filters)

    @property
    def inclusion_filters(self) -> Tuple[ModificationFilter, ...]:
        return self._chain.filter_set.inclusion

    @property
    def exclusion_filters(self) -> Tuple[ModificationFilter, ...]:
        return self._chain.filter_set.exclusion

    def update_filters(
        self,
        inclusion_filters: Optional[Iterable[ModificationFilter]] = None,
        exclusion_filters: Optional[Iterable[ModificationFilter]] = None,
    ) -> None:
        """Replace the filters; ``None`` keeps the current set.

        The new chain is built completely before it replaces the old one, so
        a concurrent ``get_modifications`` sees either the old or the new
        filters, never a mix.
        """
        current = self._chain.filter_set
        self._chain = ModificationFilterChain(
            current.inclusion if inclusion_filters is None else inclusion_filters,
            current.exclusion if exclusion_filters is None else exclusion_filters,
        )

    def get_modifications(
        self, from_result: IntegrationResult, to_result: IntegrationResult
    ) -> List[Modification]:
        chain = self._chain
        all_modifications = self.source_control_provider.get_modifications(from_result, to_result)
        accepted = chain.filter(all_modifications)

        logger.info(
            f"{len(accepted)} of {len(all_modifications)} modifications accepted",
            extra={
                "event": "sourcecontrol.filter.completed",
                "total": len(all_modifications),
                "accepted": len(accepted),
            },
        )
        return accepted

    def label_source_control(self, result: IntegrationResult) -> None:
        self.source_control_provider.label_source_control(result)

    def get_source(self, result: IntegrationResult) -> None:
        self.source_control_provider.get_source(result)

    def initialize(self, project: Any) -> None:
        self.source_control_provider.initialize(project)

    def purge(self, project: Any) -> None:
        self.source_control_provider.purge(project)

    def apply_parameters(
        self,
        parameters: Mapping[str, str],
        definitions: Iterable[ParameterDefinition],
    ) -> None:
        """Apply parameters here, then to the wrapped provider if it takes them."""
        definitions = list(definitions)
        super().apply_parameters(parameters, definitions)

        if isinstance(self.source_control_provider, ParameterisedItem):
            self.source_control_provider.apply_parameters(parameters, definitions)
