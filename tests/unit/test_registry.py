from __future__ import annotations

from pathlib import Path

import govaudit.commands
from govaudit.core.registry import discover_commands


def test_discovers_registered_command_functions() -> None:
    package_path = Path(govaudit.commands.__file__).resolve().parent
    specs = discover_commands(package_path)
    assert [spec.name for spec in specs] == ["audit", "check", "rules"]
    assert all(callable(spec.handler) for spec in specs)


def test_unlisted_modules_are_skipped(tmp_path: Path) -> None:
    (tmp_path / "extra.py").write_text("raise RuntimeError('never imported')\n", "utf-8")
    (tmp_path / "_private.py").write_text("", encoding="utf-8")
    assert discover_commands(tmp_path, package="nonexistent.pkg") == []
