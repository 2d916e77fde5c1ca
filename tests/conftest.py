"""Shared pytest fixtures."""

import os

import pytest

from plansense.config import reset_config


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep PLANSENSE_* variables from the host environment out of tests."""
    for key in list(os.environ):
        if key.startswith("PLANSENSE_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
