"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adaptive_engine.config import Settings
from adaptive_engine.content.models import QuestionKind, QuestionTemplate


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (full engine wiring)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(autouse=True)
def setup_logging():
    """Route loguru to stderr at DEBUG for every test."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    )
    yield
    logger.remove()


@pytest.fixture
def log_messages():
    """Collect log records as 'LEVEL|message' strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(
            f"{message.record['level'].name}|{message.record['message']}"
        ),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)


# =============================================================================
# Shared Fixtures
# =============================================================================


class FakeClock:
    """Monotonic clock under test control."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fixed_now():
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def make_template():
    """Factory for small templates with overridable fields."""

    def _make(**overrides) -> QuestionTemplate:
        fields = dict(
            id="test_sum",
            subject="math",
            skill_area="addition",
            kind=QuestionKind.CALCULATION,
            difficulty_level=1,
            template="What is {num1} + {num2}?",
            slots={"num1": (7,), "num2": (5,)},
            correct_answer_formula="num1 + num2",
            explanation_template="{num1} + {num2} = {answer}",
        )
        fields.update(overrides)
        return QuestionTemplate(**fields)

    return _make
