"""Integration tests for the integration cycle with email publishing.

Tests end-to-end flow:
- YAML configuration → runtime project
- Static provider → inclusion/exclusion filters → publisher
- Recipient resolution from groups, modifiers and failure users
- Mocked SMTP for delivery
"""

from pathlib import Path
from unittest.mock import MagicMock, Mock

import pytest

from buildgate.config import load_config, load_integration_result
from buildgate.domain.models import IntegrationResult, IntegrationStatus
from buildgate.notifications.models import PublishState
from buildgate.pipeline import IntegrationCycle, build_project

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def smtp_connection():
    return MagicMock()


@pytest.fixture
def project(monkeypatch, smtp_connection):
    """Project built from the fixture configuration with SMTP mocked out."""
    monkeypatch.delenv("BUILDGATE_MAILHOST_USERNAME", raising=False)
    monkeypatch.delenv("BUILDGATE_MAILHOST_PASSWORD", raising=False)
    monkeypatch.delenv("BUILDGATE_LOG_LEVEL", raising=False)

    app_config, env_config = load_config(FIXTURES_DIR / "valid_config.yaml")
    project = build_project(app_config, env_config)
    for publisher in project.publishers:
        publisher.email_gateway.smtp_factory = Mock(return_value=smtp_connection)
    return project


def sent_message(smtp_connection):
    smtp_connection.send_message.assert_called_once()
    return smtp_connection.send_message.call_args[0][0]


def test_failed_build_notifies_filtered_modifiers(project, smtp_connection):
    """Test a broken build emails the group and the modifier that survived filtering."""
    result = load_integration_result(FIXTURES_DIR / "failed_result.yaml")

    cycle_result = IntegrationCycle.from_project(project).run(result)

    assert [m.file_name for m in cycle_result.modifications] == ["a.cs"]
    assert cycle_result.sent_count == 1
    assert not cycle_result.had_errors

    message = sent_message(smtp_connection)
    assert message["Subject"] == "[webapp] webapp Build Failed"
    assert message["To"] == "alice@example.com, lead@example.com"

    body = message.get_content()
    assert "/src/a.cs" in body
    assert "b.cs" not in body
    assert "c.md" not in body


def test_fixed_build(project, smtp_connection):
    """Test a fixed build uses the fixed subject and notifies the modifiers."""
    result = IntegrationResult(
        project_name="webapp",
        label="43",
        status=IntegrationStatus.SUCCESS,
        last_integration_status=IntegrationStatus.FAILURE,
    )

    IntegrationCycle.from_project(project).run(result)

    message = sent_message(smtp_connection)
    assert message["Subject"] == "[webapp] webapp Build Fixed: Build 43"
    assert message["To"] == "alice@example.com, lead@example.com"


def test_repeated_success_only_reaches_always_group(project, smtp_connection):
    """Test a routine success reaches only groups subscribed to every build."""
    result = IntegrationResult(
        project_name="webapp",
        label="44",
        status=IntegrationStatus.SUCCESS,
        last_integration_status=IntegrationStatus.SUCCESS,
    )

    IntegrationCycle.from_project(project).run(result)

    message = sent_message(smtp_connection)
    assert message["Subject"] == "[webapp] webapp Build Successful: Build 44"
    assert message["To"] == "lead@example.com"


def test_attachments_from_working_directory(project, smtp_connection, tmp_path):
    """Test relative attachments are read from the build working directory."""
    (tmp_path / "summary.txt").write_text("3 tests failed")
    publisher = project.publishers[0]
    publisher.attachments = ("summary.txt", "missing.log")

    result = load_integration_result(FIXTURES_DIR / "failed_result.yaml").model_copy(
        update={"working_directory": str(tmp_path)}
    )

    IntegrationCycle.from_project(project).run(result)

    message = sent_message(smtp_connection)
    attachments = list(message.iter_attachments())
    assert [part.get_filename() for part in attachments] == ["summary.txt"]
    assert publisher.last_state == PublishState.SENT


def test_delivery_failure_does_not_stop_cycle(project, smtp_connection, monkeypatch):
    """Test a delivery failure is recorded on the cycle result."""
    import smtplib

    monkeypatch.setattr("buildgate.notifications.smtp_client.time.sleep", lambda seconds: None)
    smtp_connection.send_message.side_effect = smtplib.SMTPServerDisconnected("gone")
    result = load_integration_result(FIXTURES_DIR / "failed_result.yaml")

    cycle_result = IntegrationCycle.from_project(project).run(result)

    assert cycle_result.had_errors
    assert cycle_result.publisher_outcomes[0].state == "send_failed"
    assert "gone" in cycle_result.error_messages[0]
