"""Pytest configuration and shared fixtures."""

import pytest

# The fauxtime testing plugin is registered via a ``pytest11`` entry
# point (pyproject.toml) for external consumers.  In our own test
# suite we disable it (``-p no:fauxtime``) and load explicitly here
# instead, so the fauxtime import chain happens after ``pytest-cov``
# starts tracing.
pytest_plugins = ["fauxtime.testing._plugin"]


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (threads, real time)"
    )
