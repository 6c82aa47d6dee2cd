"""List the rules a preset evaluates, without running them."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich import box
from rich.markup import escape
from rich.table import Table

from govaudit.core.console import get_console
from govaudit.core.result import RuleConfigurationError
from govaudit.governance.presets import PRESETS, get_preset

if TYPE_CHECKING:
    from govaudit.main import AppState


def list_rules(
    ctx: typer.Context,
    preset: str = typer.Argument("audit", help=f"Preset to list ({', '.join(PRESETS)})."),
) -> None:
    """Show the configured rules of a preset in evaluation order."""
    state: AppState = ctx.obj
    console = get_console()

    if preset not in PRESETS:
        console.print(f"[red]Unknown preset:[/red] {escape(preset)}")
        raise typer.Exit(code=2)

    try:
        rule_set = get_preset(preset).build(state.config)
    except RuleConfigurationError as exc:
        console.print(f"[bold red]Invalid rule configuration:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    table = Table(title=rule_set.title, box=box.SIMPLE_HEAVY, expand=True)
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Target", style="white")
    table.add_column("Section", style="dim")

    for rule in rule_set.flatten():
        table.add_row(
            escape(rule.rule_id), rule.kind, escape(rule.target), escape(rule.section)
        )

    console.print(table)
