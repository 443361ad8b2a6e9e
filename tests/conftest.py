"""Shared pytest fixtures for fastapi-verb-routing tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fastapi_verb_routing import RouterConfig, create_app


@pytest.fixture
def create_verb_file(tmp_path: Path):
    """Create a verb file (get.py, post.py, ...) with given content.

    Returns a callable that accepts:
    - content: Python code as string
    - subdir: Optional subdirectory (e.g., "users" or "users/[id]")
    - verb: File stem, "get" by default
    - parent_dir: Base directory (defaults to tmp_path)

    Returns the Path to the created file.
    """

    def _create(
        content: str,
        subdir: str = "",
        verb: str = "get",
        parent_dir: Path | None = None,
    ) -> Path:
        base = parent_dir or tmp_path
        target_dir = base / subdir if subdir else base
        target_dir.mkdir(parents=True, exist_ok=True)

        verb_file = target_dir / f"{verb}.py"
        verb_file.write_text(content)
        return verb_file

    return _create


@pytest.fixture
def create_route_tree(tmp_path: Path):
    """Create verb files from a dict of relative file path -> content.

    Example:
        {
            "users/get.py": "def handler(data): return []",
            "users/[id]/delete.py": "def handler(data): return None",
        }

    Returns the tmp_path root containing the tree.
    """

    def _create(spec: dict[str, str], parent_dir: Path | None = None) -> Path:
        base = parent_dir or tmp_path
        for relative, content in spec.items():
            file_path = base / relative
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content)
        return base

    return _create


@pytest.fixture
def make_client():
    """Build a TestClient for an app created from a routes directory."""

    def _make(routes_dir: Path, **kwargs) -> TestClient:
        config = RouterConfig(routes_dir=routes_dir, development=True)
        return TestClient(create_app(config=config, **kwargs))

    return _make


@pytest.fixture
def echo_handler() -> str:
    """Return a handler that echoes the request data it receives."""
    return """
def handler(data):
    return {"params": data.params, "query": data.query, "body": data.body}
"""
