"""
Shared pytest fixtures for khll tests.
"""

import logging
from pathlib import Path

import pytest


@pytest.fixture(scope="session")
def test_output_root() -> Path:
    """
    Returns the root test_output directory. Created once per test session.
    Accuracy tables written here persist after tests complete.
    """
    output_dir = Path(__file__).parent.parent / "test_output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


@pytest.fixture
def test_output_dir(request, test_output_root) -> Path:
    """
    Returns a directory for the current test to write output files.
    Directory structure: test_output/<module_name>/<test_name>/

    Example usage:
        def test_bands(test_output_dir):
            result.to_dataframe().to_csv(test_output_dir / "bands.csv", index=False)
    """
    module_name = request.module.__name__.split(".")[-1]
    test_dir = test_output_root / module_name / request.node.name
    test_dir.mkdir(parents=True, exist_ok=True)
    return test_dir


@pytest.fixture
def toy_pairs() -> list[tuple[str, str]]:
    """(value, identifier) pairs with known uniqueness levels.

    Levels: v1 -> 1 identifier, v2 -> 2, v3 -> 2, v4 -> 5.
    """
    return [
        ("v1", "u1"),
        ("v1", "u1"),
        ("v2", "u1"),
        ("v2", "u2"),
        ("v3", "u3"),
        ("v3", "u4"),
        ("v3", "u3"),
        *[("v4", f"u{i}") for i in range(5)],
    ]


@pytest.fixture(autouse=True)
def reset_khll_logging():
    """Reset logging state before each test.

    Removes all handlers except a NullHandler and resets the level to
    NOTSET, so logging configuration from one test never leaks into another.
    """
    logger = logging.getLogger("khll")

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)

    yield

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if not isinstance(handler, logging.NullHandler):
            handler.close()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)
