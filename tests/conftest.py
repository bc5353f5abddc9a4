from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT_DIR = TESTS_DIR.parent
for path in (ROOT_DIR, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from stubs import FakeClock, StubLoggerFactory  # noqa: E402


@pytest.fixture
def logger_factory() -> StubLoggerFactory:
    return StubLoggerFactory()


@pytest.fixture
def stub_logger(logger_factory):
    return logger_factory.module_logger


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
