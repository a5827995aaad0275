"""Shared pytest fixtures for bcbridge tests."""

from __future__ import annotations

import logging

import pytest

from bcbridge.language import CONTENT_LANGUAGE_ENV
from bcbridge.scale import DEFAULT_SCALE_ENV


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line("markers", "integration: tests crossing several modules")
    config.addinivalue_line("markers", "contract: registered primitive contract checks")


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv(DEFAULT_SCALE_ENV, raising=False)
    monkeypatch.delenv(CONTENT_LANGUAGE_ENV, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def bridge():
    from bcbridge.primitives.bcmath import BCMathBridge

    return BCMathBridge(scale_source=lambda: 3)


@pytest.fixture
def run_text():
    from bcbridge.interpreter import Interpreter

    def _run(program_text: str, **kwargs):
        return Interpreter(**kwargs).run(program_text)

    return _run


@pytest.fixture
def api_client():
    from fastapi.testclient import TestClient

    from bcbridge.main import api_app

    return TestClient(api_app)
