from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console
from typer.testing import CliRunner

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

TreeWriter = Callable[[Mapping[str, str]], Path]


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def ensure_commands_registered() -> None:
    """Ensure CLI commands are registered before tests run."""
    from govaudit.main import _register_commands

    _register_commands()


@pytest.fixture(autouse=True)
def isolate_config(tmp_path: Path, monkeypatch: Any) -> Path:
    """Point config to a temp path so tests never pick up a real .govaudit.toml."""
    cfg_path = tmp_path / "govaudit-test-config.toml"
    monkeypatch.setenv("GOVAUDIT_CONFIG", str(cfg_path))
    return cfg_path


@pytest.fixture(autouse=True)
def capture_console(monkeypatch: Any) -> Console:
    """Use an in-memory Rich console during tests."""
    test_console = Console(record=True, width=200)
    import govaudit.core.console as core_console
    import govaudit.main as govaudit_main

    monkeypatch.setattr(core_console, "console", test_console)
    monkeypatch.setattr(govaudit_main, "console", test_console)
    return test_console


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def write_tree(project: Path) -> TreeWriter:
    """Write ``{relative_path: content}`` under the project root.

    A path ending in "/" creates an empty directory.
    """

    def _write(files: Mapping[str, str]) -> Path:
        for rel, content in files.items():
            target = project / rel
            if rel.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return project

    return _write