"""Shared pytest fixtures for kubetopo tests."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
import structlog

from kubetopo.models.config import KubeTopoConfig
from kubetopo.observability.logging import null_logger

from .helpers import BASE_FIXTURES, STORAGE_FIXTURES


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """CLI tests reconfigure structlog against a runner stream; undo that after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("KUBETOPO_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def log() -> structlog.stdlib.BoundLogger:
    return null_logger()


@pytest.fixture
def config() -> KubeTopoConfig:
    return KubeTopoConfig()


@pytest.fixture
def base_fixtures() -> list:
    return list(BASE_FIXTURES)


@pytest.fixture
def storage_fixtures() -> list:
    return list(BASE_FIXTURES) + list(STORAGE_FIXTURES)
