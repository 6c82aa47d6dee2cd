"""Audit commands.

Both commands build a preset rule set from the active configuration, run it
against the project root and exit with the report's status code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.markup import escape

from govaudit.core.console import get_console, get_logger
from govaudit.core.result import RuleConfigurationError
from govaudit.governance.auditor import Auditor
from govaudit.governance.presets import get_preset
from govaudit.governance.reporter import render

if TYPE_CHECKING:
    from govaudit.main import AppState

logger = get_logger(__name__)


def run_preset(state: AppState, preset_name: str) -> int:
    """Build, run and render one preset; returns the exit code."""
    console = get_console()
    preset = get_preset(preset_name)
    try:
        rule_set = preset.build(state.config)
    except RuleConfigurationError as exc:
        console.print(f"[bold red]Invalid rule configuration:[/bold red] {escape(str(exc))}")
        return 2

    logger.debug("Running %s (%d rules) in %s", preset.name, len(rule_set), state.root)
    report = Auditor().run_rule_set(state.root, rule_set)
    return render(report, console, preset.template)


def standards_audit(ctx: typer.Context) -> None:
    """Audit the source tree for forbidden patterns, long files, missing docs and tests."""
    state: AppState = ctx.obj
    raise typer.Exit(code=run_preset(state, "audit"))


def governance_check(ctx: typer.Context) -> None:
    """Check that CLAUDE.md, standards.md, ADRs, hooks and the audit script are set up."""
    state: AppState = ctx.obj
    raise typer.Exit(code=run_preset(state, "check"))
