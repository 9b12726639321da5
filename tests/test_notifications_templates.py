"""Unit tests for message context, template rendering and message builders."""

from datetime import datetime, timezone

import pytest

from buildgate.domain.models import IntegrationResult, IntegrationStatus, Modification
from buildgate.notifications.builders import (
    HtmlDetailsMessageBuilder,
    HtmlLinkMessageBuilder,
    PlainTextMessageBuilder,
)
from buildgate.notifications.models import NotificationTemplateError
from buildgate.notifications.payloads import build_message_context
from buildgate.notifications.templates import TemplateRenderer


@pytest.fixture
def result():
    """A failed build with two modifications and a report link."""
    return IntegrationResult(
        project_name="webapp",
        label="42",
        status=IntegrationStatus.FAILURE,
        last_integration_status=IntegrationStatus.SUCCESS,
        project_url="https://ci.example.com/webapp/42",
        start_time=datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc),
        end_time=datetime(2025, 11, 4, 12, 3, 30, tzinfo=timezone.utc),
        modifications=[
            Modification(
                folder_name="/src",
                file_name="a.cs",
                user_name="alice",
                comment="Fix <login>",
                change_number="17",
                url="https://vcs.example.com/17",
            ),
            Modification(folder_name="/src", file_name="b.cs", user_name="bob"),
        ],
    )


@pytest.fixture
def renderer():
    """Renderer over the bundled templates."""
    return TemplateRenderer()


class TestBuildMessageContext:
    """Tests for build_message_context."""

    def test_basic_fields(self, result):
        """Test outcome fields are exposed as plain values."""
        context = build_message_context(result)

        assert context["project"] == "webapp"
        assert context["status"] == "Failure"
        assert context["last_status"] == "Success"
        assert context["result_type"] == "Broken"
        assert context["start_time"] == "2025-11-04T12:00:00Z"
        assert context["duration_seconds"] == 210.0
        assert context["contributors"] == ["alice", "bob"]

    def test_modifications(self, result):
        """Test modifications are flattened for templates."""
        context = build_message_context(result)

        assert context["modification_count"] == 2
        first = context["modifications"][0]
        assert first["path"] == "/src/a.cs"
        assert first["user"] == "alice"
        assert first["change_number"] == "17"
        assert context["modifications"][1]["comment"] == ""

    def test_without_times(self):
        """Test missing times give None values."""
        context = build_message_context(IntegrationResult(project_name="webapp"))
        assert context["start_time"] is None
        assert context["duration_seconds"] is None


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    def test_missing_template(self, renderer):
        """Test a missing template raises NotificationTemplateError."""
        with pytest.raises(NotificationTemplateError):
            renderer.render("nope.html.j2", {})

    def test_missing_variable_is_error(self, renderer):
        """Test undefined variables raise instead of rendering empty."""
        with pytest.raises(NotificationTemplateError):
            renderer.render("link_message.html.j2", {})

    def test_render_file(self, renderer, tmp_path):
        """Test templates on disk are rendered with the same context."""
        template = tmp_path / "summary.html.j2"
        template.write_text("<p>{{ project }}: {{ modification_count }}</p>")

        assert renderer.render_file(template, {"project": "webapp", "modification_count": 2}) == (
            "<p>webapp: 2</p>"
        )

    def test_render_missing_file(self, renderer, tmp_path):
        """Test a missing transform file raises NotificationTemplateError."""
        with pytest.raises(NotificationTemplateError, match="missing.j2"):
            renderer.render_file(tmp_path / "missing.j2", {})


class TestHtmlLinkMessageBuilder:
    """Tests for the link builder."""

    def test_plain_link(self, result):
        """Test the link is written out without an anchor by default."""
        message = HtmlLinkMessageBuilder().build_message(result)
        assert message == "Build results for project webapp (https://ci.example.com/webapp/42)"

    def test_anchor_tag(self, result):
        """Test the link is wrapped in an anchor on request."""
        message = HtmlLinkMessageBuilder(include_anchor_tag=True).build_message(result)
        assert message == (
            'Build results for project webapp (<a href="https://ci.example.com/webapp/42">web page</a>)'
        )

    def test_without_url(self):
        """Test a result without a report link names only the project."""
        message = HtmlLinkMessageBuilder().build_message(IntegrationResult(project_name="webapp"))
        assert message == "Build results for project webapp"


class TestHtmlDetailsMessageBuilder:
    """Tests for the details builder."""

    def test_details_and_modifications(self, result):
        """Test the body has the link, details and an escaped modification table."""
        message = HtmlDetailsMessageBuilder().build_message(result)

        assert message.startswith("Build results for project webapp (<a href=")
        assert "<th>Status</th><td>Failure</td>" in message
        assert "/src/a.cs" in message
        assert "Fix &lt;login&gt;" in message
        assert '<a href="https://vcs.example.com/17">17</a>' in message
        assert "210.0s" in message

    def test_no_modifications(self):
        """Test an empty build says so."""
        message = HtmlDetailsMessageBuilder().build_message(IntegrationResult(project_name="webapp"))
        assert "No modifications." in message

    def test_transform_files_appended(self, result, tmp_path):
        """Test each transform file is rendered after the details."""
        first = tmp_path / "first.html.j2"
        first.write_text("<p>first {{ label }}</p>")
        second = tmp_path / "second.html.j2"
        second.write_text("<p>second</p>")

        builder = HtmlDetailsMessageBuilder()
        builder.transform_files = [str(first), str(second)]
        message = builder.build_message(result)

        assert message.endswith("<p>first 42</p>\n<p>second</p>")

    def test_broken_transform_file_raises(self, result, tmp_path):
        """Test a broken transform file is a rendering error."""
        broken = tmp_path / "broken.html.j2"
        broken.write_text("{{ nope }}")

        builder = HtmlDetailsMessageBuilder()
        builder.transform_files = [str(broken)]

        with pytest.raises(NotificationTemplateError):
            builder.build_message(result)


class TestPlainTextMessageBuilder:
    """Tests for the plain text builder."""

    def test_text_body(self, result):
        """Test the text body lists status and modifications."""
        builder = PlainTextMessageBuilder()
        message = builder.build_message(result)

        assert builder.is_html is False
        assert "Status: Failure (previously Success)" in message
        assert "Report: https://ci.example.com/webapp/42" in message
        assert "- [modified] /src/a.cs by alice: Fix <login>" in message
