import os

import pytest

from taskplan.config import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Keep TASKPLAN_* variables from the environment out of every test."""
    for key in list(os.environ):
        if key.startswith("TASKPLAN_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()
