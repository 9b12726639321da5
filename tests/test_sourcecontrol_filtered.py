"""Unit tests for the filtering source control decorator."""

import logging
from unittest.mock import Mock

import pytest

from buildgate.domain.models import (
    DynamicValue,
    IntegrationResult,
    IntegrationStatus,
    Modification,
    ParameterDefinition,
)
from buildgate.sourcecontrol.base import SourceControl, SourceControlBase
from buildgate.sourcecontrol.filtered import FilteredSourceControl, ModificationFilterChain
from buildgate.sourcecontrol.filters import ModificationFilter, PathFilter, UserFilter
from buildgate.sourcecontrol.providers import StaticSourceControl


def mod(folder, file, user, comment=None):
    return Modification(folder_name=folder, file_name=file, user_name=user, comment=comment)


@pytest.fixture
def modifications():
    """Changes by a person and a bot, inside and outside /src."""
    return [
        mod("/src", "a.cs", "alice"),
        mod("/src", "b.cs", "bot"),
        mod("/docs", "c.md", "alice"),
    ]


@pytest.fixture
def results():
    """From and to build results."""
    from_result = IntegrationResult(project_name="webapp", status=IntegrationStatus.SUCCESS)
    to_result = IntegrationResult(project_name="webapp", status=IntegrationStatus.SUCCESS, label="2")
    return from_result, to_result


class ExplodingFilter(ModificationFilter):
    """Filter that fails on every call."""

    def accept(self, modification):
        raise RuntimeError("filter exploded")


class TestModificationFilterChain:
    """Tests for inclusion/exclusion evaluation."""

    def test_no_filters_is_identity(self, modifications):
        """Test empty inclusion and exclusion sets keep everything, in order."""
        assert ModificationFilterChain().filter(modifications) == modifications

    def test_inclusion_only(self, modifications):
        """Test only included modifications survive."""
        chain = ModificationFilterChain(inclusion_filters=[PathFilter("/src/**")])
        assert chain.filter(modifications) == modifications[:2]

    def test_exclusion_only(self, modifications):
        """Test excluded modifications are dropped."""
        chain = ModificationFilterChain(exclusion_filters=[UserFilter(["bot"])])
        assert chain.filter(modifications) == [modifications[0], modifications[2]]

    def test_single_modification_queries(self, modifications):
        """Test is_included and is_excluded answer for one modification."""
        chain = ModificationFilterChain(
            inclusion_filters=[PathFilter("/src/**")],
            exclusion_filters=[UserFilter(["bot"])],
        )
        by_alice, by_bot, docs = modifications

        assert chain.is_included(by_alice) and not chain.is_excluded(by_alice)
        assert chain.is_included(by_bot) and chain.is_excluded(by_bot)
        assert not chain.is_included(docs) and not chain.is_excluded(docs)

    def test_single_modification_queries_with_empty_sets(self, modifications):
        """Test an empty chain includes everything and excludes nothing."""
        chain = ModificationFilterChain()
        assert all(chain.is_included(m) for m in modifications)
        assert not any(chain.is_excluded(m) for m in modifications)

    def test_exclusion_wins(self, modifications):
        """Test a modification both included and excluded is dropped."""
        chain = ModificationFilterChain(
            inclusion_filters=[PathFilter("/src/**")],
            exclusion_filters=[PathFilter("/src/b.cs")],
        )
        assert chain.filter(modifications) == [modifications[0]]

    def test_any_inclusion_filter_includes(self, modifications):
        """Test inclusion filters are alternatives."""
        chain = ModificationFilterChain(
            inclusion_filters=[PathFilter("/docs/**"), UserFilter(["bot"])]
        )
        assert chain.filter(modifications) == [modifications[1], modifications[2]]

    def test_result_is_ordered_subsequence_and_idempotent(self, modifications):
        """Test output keeps input order and filtering twice changes nothing."""
        chain = ModificationFilterChain(
            inclusion_filters=[PathFilter("**/*.cs")],
            exclusion_filters=[UserFilter(["bot"])],
        )
        once = chain.filter(modifications)
        assert [modifications.index(m) for m in once] == sorted(modifications.index(m) for m in once)
        assert chain.filter(once) == once

    def test_empty_input(self):
        """Test an empty list stays empty."""
        assert ModificationFilterChain(inclusion_filters=[PathFilter("**")]).filter([]) == []

    def test_filter_exception_propagates(self, modifications):
        """Test a failing filter aborts the whole call."""
        chain = ModificationFilterChain(inclusion_filters=[ExplodingFilter()])
        with pytest.raises(RuntimeError, match="filter exploded"):
            chain.filter(modifications)

    def test_decisions_are_logged(self, modifications, caplog):
        """Test accept and reject decisions are logged at debug level."""
        chain = ModificationFilterChain(exclusion_filters=[UserFilter(["bot"])])

        with caplog.at_level(logging.DEBUG, logger="buildgate.sourcecontrol.filtered"):
            chain.filter(modifications)

        events = [getattr(r, "event", None) for r in caplog.records]
        assert events.count("sourcecontrol.filter.accepted") == 2
        assert events.count("sourcecontrol.filter.rejected") == 1
        assert "sourcecontrol.filter.excluded" in events


class TestFilteredSourceControl:
    """Tests for FilteredSourceControl."""

    def test_src_inclusion_bot_exclusion_scenario(self, modifications, results):
        """Test /src inclusion with bot exclusion keeps only alice's /src change."""
        provider = StaticSourceControl(modifications)
        filtered = FilteredSourceControl(
            provider,
            inclusion_filters=[PathFilter("/src/**")],
            exclusion_filters=[UserFilter(["bot"])],
        )

        accepted = filtered.get_modifications(*results)

        assert len(accepted) == 1
        assert accepted[0].path == "/src/a.cs"
        assert accepted[0].user_name == "alice"

    def test_passes_results_to_provider(self, results):
        """Test both results are handed to the wrapped provider unchanged."""
        provider = Mock(spec=SourceControl)
        provider.get_modifications.return_value = []

        FilteredSourceControl(provider).get_modifications(*results)

        provider.get_modifications.assert_called_once_with(*results)

    def test_forwards_other_operations(self, results):
        """Test label, get_source, initialize and purge are forwarded unchanged."""
        provider = Mock(spec=SourceControl)
        filtered = FilteredSourceControl(provider)
        project = object()
        _, to_result = results

        filtered.label_source_control(to_result)
        filtered.get_source(to_result)
        filtered.initialize(project)
        filtered.purge(project)

        provider.label_source_control.assert_called_once_with(to_result)
        provider.get_source.assert_called_once_with(to_result)
        provider.initialize.assert_called_once_with(project)
        provider.purge.assert_called_once_with(project)

    def test_provider_errors_propagate(self, results):
        """Test a provider failure is not swallowed."""
        provider = Mock(spec=SourceControl)
        provider.get_modifications.side_effect = RuntimeError("svn down")

        with pytest.raises(RuntimeError, match="svn down"):
            FilteredSourceControl(provider).get_modifications(*results)

    def test_update_filters_replaces_set(self, modifications, results):
        """Test update_filters swaps filters and None keeps the current set."""
        filtered = FilteredSourceControl(
            StaticSourceControl(modifications),
            inclusion_filters=[PathFilter("/src/**")],
        )

        filtered.update_filters(exclusion_filters=[UserFilter(["bot"])])

        assert len(filtered.inclusion_filters) == 1
        assert len(filtered.exclusion_filters) == 1
        assert filtered.get_modifications(*results) == [modifications[0]]

    def test_apply_parameters_forwards_to_parameterised_provider(self):
        """Test parameters are forwarded when the provider accepts them."""
        provider = Mock(spec=SourceControlBase)
        filtered = FilteredSourceControl(provider)
        definitions = [ParameterDefinition(name="branch", default="main")]

        filtered.apply_parameters({"branch": "dev"}, definitions)

        provider.apply_parameters.assert_called_once_with({"branch": "dev"}, definitions)

    def test_apply_parameters_skips_plain_provider(self):
        """Test a provider without parameter support is left alone."""
        provider = Mock(spec=SourceControl)
        filtered = FilteredSourceControl(provider)

        filtered.apply_parameters({"branch": "dev"}, [])

        assert not hasattr(provider, "apply_parameters")

    def test_apply_parameters_sets_own_dynamic_values(self):
        """Test the decorator applies its own dynamic values first."""

        class Filtered(FilteredSourceControl):
            branch = None

        provider = Mock(spec=SourceControl)
        filtered = Filtered(
            provider, dynamic_values=[DynamicValue(parameter="branch", attribute="branch")]
        )

        filtered.apply_parameters({"branch": "release"}, [])

        assert filtered.branch == "release"
