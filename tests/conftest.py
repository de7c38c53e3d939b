"""Shared fixtures for the pathspectre test suite."""

import io

import pytest

from pathspectre.core.solver import RelationSolver
from pathspectre.core.state import ProgramState
from pathspectre.core.values import ValueRegistry
from pathspectre.execution.conditions import ConditionEvaluator
from pathspectre.logging import LogLevel, PathSpectreLogger, set_logger


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep engine log output out of the test report."""
    logger = PathSpectreLogger(level=LogLevel.QUIET, color=False, stream=io.StringIO())
    set_logger(logger)
    yield logger
    logger.close()


@pytest.fixture
def registry():
    return ValueRegistry("test")


@pytest.fixture
def solver():
    return RelationSolver(timeout_ms=2000)


@pytest.fixture
def conditions(solver):
    return ConditionEvaluator(solver)


@pytest.fixture
def state():
    return ProgramState.empty()
