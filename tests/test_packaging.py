"""Tests for the project metadata."""

import tomllib
from pathlib import Path

from typing import Any

import pytest


PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


@pytest.fixture(scope="module")
def project() -> dict[str, Any]:
    """Parsed [project] table of pyproject.toml."""
    with PYPROJECT.open("rb") as f:
        return tomllib.load(f)["project"]


def _names(requirements: list[str]) -> set[str]:
    return {req.split(">")[0].split("=")[0].split("<")[0].strip() for req in requirements}


def test_supports_python_311(project: dict[str, Any]) -> None:
    """Test that the interpreter floor is 3.11."""
    assert project["requires-python"] == ">=3.11"


def test_runtime_dependencies(project: dict[str, Any]) -> None:
    """Test that every imported third-party library is declared."""
    assert _names(project["dependencies"]) == {
        "colorlog",
        "httpx",
        "pydantic",
        "python-dotenv",
        "rich",
    }


def test_test_dependencies(project: dict[str, Any]) -> None:
    """Test that the test extra carries the pytest plugins in use."""
    assert _names(project["optional-dependencies"]["test"]) == {
        "pytest",
        "pytest-asyncio",
        "pytest-httpx",
    }
