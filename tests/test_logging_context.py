"""Tests for logging context propagation."""

import pytest

from buildgate.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    """Test that context starts empty."""
    assert get_log_context() == {}


def test_push_and_pop():
    """Test pushing fields and restoring with the token."""
    token = push_log_context(project="webapp", label="1.0")
    assert get_log_context() == {"project": "webapp", "label": "1.0"}
    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_restores_each_layer():
    """Test nested pushes pop back one layer at a time."""
    token1 = push_log_context(cycle_id="abc123")
    token2 = push_log_context(project="webapp")
    assert get_log_context() == {"cycle_id": "abc123", "project": "webapp"}

    pop_log_context(token2)
    assert get_log_context() == {"cycle_id": "abc123"}

    pop_log_context(token1)
    assert get_log_context() == {}


def test_context_override():
    """Test that pushing the same key overwrites, and popping restores it."""
    token1 = push_log_context(label="1.0")
    token2 = push_log_context(label="1.1")
    assert get_log_context() == {"label": "1.1"}

    pop_log_context(token2)
    assert get_log_context() == {"label": "1.0"}
    pop_log_context(token1)


def test_context_manager_nested():
    """Test nested context managers."""
    with log_context(cycle_id="abc123"):
        with log_context(project="webapp", label="7"):
            assert get_log_context() == {
                "cycle_id": "abc123",
                "project": "webapp",
                "label": "7",
            }
        assert get_log_context() == {"cycle_id": "abc123"}

    assert get_log_context() == {}


def test_context_manager_exception():
    """Test that context is restored even when an exception occurs."""
    with pytest.raises(ValueError):
        with log_context(project="webapp"):
            raise ValueError("Test exception")

    assert get_log_context() == {}


def test_clear_context():
    """Test clearing all context."""
    push_log_context(project="webapp")
    clear_log_context()
    assert get_log_context() == {}


def test_context_isolation():
    """Test that get_log_context returns a copy."""
    token = push_log_context(project="webapp")

    context = get_log_context()
    context["label"] = "modified"

    assert get_log_context() == {"project": "webapp"}
    pop_log_context(token)
