"""Unit tests for built-in providers, parameter support and the factory."""

from datetime import datetime, timezone

import pytest

from buildgate.config.exceptions import ConfigurationError
from buildgate.config.models import SourceControlConfig
from buildgate.domain.models import (
    DynamicValue,
    IntegrationResult,
    IntegrationStatus,
    Modification,
    ParameterDefinition,
)
from buildgate.sourcecontrol.exceptions import SourceControlError
from buildgate.sourcecontrol.factory import (
    build_source_control,
    register_source_control,
)
from buildgate.sourcecontrol.factory import _REGISTRY
from buildgate.sourcecontrol.filtered import FilteredSourceControl
from buildgate.sourcecontrol.filters import PathFilter, UserFilter
from buildgate.sourcecontrol.providers import NullSourceControl, StaticSourceControl


def at(hour):
    return datetime(2025, 11, 4, hour, 0, 0, tzinfo=timezone.utc)


def result(start=None, label=""):
    return IntegrationResult(
        project_name="webapp", status=IntegrationStatus.SUCCESS, start_time=start, label=label
    )


class BranchSourceControl(NullSourceControl):
    """Provider with a parameterisable attribute."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.branch = "main"


class TestNullSourceControl:
    """Tests for NullSourceControl."""

    def test_no_modifications(self):
        """Test the provider reports no changes."""
        assert NullSourceControl().get_modifications(result(), result()) == []

    def test_configured_failures(self):
        """Test each failure switch raises SourceControlError."""
        provider = NullSourceControl(
            fail_get_modifications=True, fail_label_source_control=True, fail_get_source=True
        )
        with pytest.raises(SourceControlError):
            provider.get_modifications(result(), result())
        with pytest.raises(SourceControlError):
            provider.label_source_control(result())
        with pytest.raises(SourceControlError):
            provider.get_source(result())


class TestStaticSourceControl:
    """Tests for StaticSourceControl."""

    def test_returns_everything_without_times(self):
        """Test all modifications are returned when results carry no start time."""
        mods = [Modification(user_name="alice"), Modification(user_name="bob")]
        assert StaticSourceControl(mods).get_modifications(result(), result()) == mods

    def test_window_is_inclusive(self):
        """Test only modifications inside [from.start, to.start] are returned."""
        early = Modification(user_name="early", modified_time=at(8))
        edge = Modification(user_name="edge", modified_time=at(10))
        inside = Modification(user_name="inside", modified_time=at(11))
        late = Modification(user_name="late", modified_time=at(13))
        untimed = Modification(user_name="untimed")
        provider = StaticSourceControl([early, edge, inside, late, untimed])

        found = provider.get_modifications(result(at(10)), result(at(12)))

        assert found == [edge, inside, untimed]

    def test_labels_recorded_and_purged(self):
        """Test labelling records the label and purge clears it."""
        provider = StaticSourceControl()
        provider.label_source_control(result(label="1.2"))
        assert provider.labels == ["1.2"]

        provider.purge(None)
        assert provider.labels == []


class TestApplyParameters:
    """Tests for build parameter application."""

    def test_value_from_parameters(self):
        """Test a supplied parameter wins."""
        provider = BranchSourceControl(
            dynamic_values=[DynamicValue(parameter="branch", attribute="branch", default="x")]
        )
        provider.apply_parameters(
            {"branch": "dev"}, [ParameterDefinition(name="branch", default="trunk")]
        )
        assert provider.branch == "dev"

    def test_definition_default_before_own_default(self):
        """Test the definition default is used before the dynamic value default."""
        provider = BranchSourceControl(
            dynamic_values=[DynamicValue(parameter="branch", attribute="branch", default="x")]
        )
        provider.apply_parameters({}, [ParameterDefinition(name="branch", default="trunk")])
        assert provider.branch == "trunk"

    def test_own_default_last(self):
        """Test the dynamic value default is the last resort."""
        provider = BranchSourceControl(
            dynamic_values=[DynamicValue(parameter="branch", attribute="branch", default="x")]
        )
        provider.apply_parameters({}, [])
        assert provider.branch == "x"

    def test_no_value_leaves_attribute(self):
        """Test the attribute is untouched when no value exists."""
        provider = BranchSourceControl(
            dynamic_values=[DynamicValue(parameter="branch", attribute="branch")]
        )
        provider.apply_parameters({}, [])
        assert provider.branch == "main"

    def test_unknown_attribute_raises(self):
        """Test binding to a missing attribute is an error."""
        provider = NullSourceControl(
            dynamic_values=[DynamicValue(parameter="branch", attribute="nope")]
        )
        with pytest.raises(SourceControlError, match="nope"):
            provider.apply_parameters({"branch": "dev"}, [])


class TestFactory:
    """Tests for build_source_control."""

    def test_default_is_null(self):
        """Test the default configuration builds a NullSourceControl."""
        assert isinstance(build_source_control(SourceControlConfig()), NullSourceControl)

    def test_null_options(self):
        """Test options are passed to the provider."""
        provider = build_source_control(
            SourceControlConfig(type="null", options={"fail_get_source": True})
        )
        assert provider.fail_get_source is True

    def test_filtered_with_static_provider(self):
        """Test a filtered provider wraps the configured provider and filters."""
        config = SourceControlConfig.model_validate(
            {
                "type": "Filtered",
                "provider": {
                    "type": "static",
                    "modifications": [{"folder_name": "/src", "file_name": "a.cs", "user_name": "alice"}],
                },
                "inclusion_filters": [{"type": "path", "pattern": "/src/**"}],
                "exclusion_filters": [{"type": "user", "names": ["bot"]}],
            }
        )

        provider = build_source_control(config)

        assert isinstance(provider, FilteredSourceControl)
        assert isinstance(provider.source_control_provider, StaticSourceControl)
        assert isinstance(provider.inclusion_filters[0], PathFilter)
        assert isinstance(provider.exclusion_filters[0], UserFilter)

    def test_unknown_type(self):
        """Test an unregistered type is a configuration error."""
        with pytest.raises(ConfigurationError, match="Unknown source control type: git"):
            build_source_control(SourceControlConfig(type="git"))

    def test_bad_options(self):
        """Test options the provider does not accept are a configuration error."""
        with pytest.raises(ConfigurationError, match="Failed to create 'null'"):
            build_source_control(SourceControlConfig(type="null", options={"colour": "red"}))

    def test_register_custom_type(self, monkeypatch):
        """Test registered factories are used for their type."""
        monkeypatch.setattr(
            "buildgate.sourcecontrol.factory._REGISTRY", dict(_REGISTRY)
        )
        custom = NullSourceControl()
        register_source_control("Git", lambda config: custom)

        assert build_source_control(SourceControlConfig(type="git")) is custom
