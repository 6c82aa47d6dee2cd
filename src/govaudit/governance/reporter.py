"""Report rendering and exit-code mapping.

``exit_code`` is the whole contract that matters to CI: 1 when any verdict
failed, 0 otherwise. ``render`` prints the report to a Rich console and
returns that same code; the CLI performs the actual process exit.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule as RichRule

from govaudit.governance.types import AuditReport, Severity, Verdict

SEVERITY_MARKERS: dict[Severity, tuple[str, str]] = {
    Severity.PASS: ("✓", "green"),
    Severity.WARNING: ("⚠", "yellow"),
    Severity.FAILURE: ("✗", "red"),
}


@dataclass(frozen=True)
class ReportTemplate:
    """Wording for a report's heading and closing lines.

    Closing messages are format strings receiving ``failures`` and
    ``warnings``.
    """

    heading: str = "Audit"
    score_label: str = "Score"
    failure_message: str = "Audit failed with {failures} issue(s)"
    warning_message: str = "Audit passed with {warnings} warning(s)"
    success_message: str = "Audit passed!"


def exit_code(report: AuditReport) -> int:
    """1 if any verdict failed, else 0; warnings never change the code."""
    return 1 if report.has_failures else 0


def format_verdict(verdict: Verdict) -> list[str]:
    """Rich markup lines for one verdict: status line, fix, then details."""
    marker, style = SEVERITY_MARKERS[verdict.severity]
    lines = [f"[{style}]{marker}[/{style}] {escape(verdict.message)}"]
    if verdict.remediation:
        fix_lines = verdict.remediation.splitlines() or [""]
        lines.append(f"   [blue]Fix:[/blue] {escape(fix_lines[0])}")
        lines.extend(f"   {escape(extra)}" for extra in fix_lines[1:])
    lines.extend(f"   - {escape(detail)}" for detail in verdict.details)
    return lines


def closing_line(report: AuditReport, template: ReportTemplate) -> str:
    counts = report.counts
    values = {"failures": counts.failures, "warnings": counts.warnings}
    if counts.failures:
        message = template.failure_message.format(**values)
        return f"[bold red]{escape(message)}[/bold red]"
    if counts.warnings:
        message = template.warning_message.format(**values)
        return f"[bold yellow]{escape(message)}[/bold yellow]"
    return f"[bold green]{escape(template.success_message)}[/bold green]"


def render(
    report: AuditReport,
    console: Console,
    template: ReportTemplate | None = None,
) -> int:
    """Print ``report`` in verdict order and return its exit code."""
    template = template or ReportTemplate()

    console.print()
    console.print(f"[bold]{escape(template.heading)}[/bold]")
    console.print(RichRule(style="dim"))

    current_section: str | None = None
    for verdict in report.verdicts:
        if verdict.section != current_section:
            current_section = verdict.section
            if current_section:
                console.print()
                console.print(f"[bold]{escape(current_section)}[/bold]")
        for line in format_verdict(verdict):
            console.print(line, highlight=False)

    counts = report.counts
    console.print()
    console.print(RichRule(style="dim"))
    console.print("\n[bold]Summary[/bold]\n")
    console.print(f"[green]Passed:[/green]   {counts.passes}")
    console.print(f"[yellow]Warnings:[/yellow] {counts.warnings}")
    console.print(f"[red]Failed:[/red]   {counts.failures}")
    console.print(f"\n{escape(template.score_label)}: {report.score}%")
    console.print()
    console.print(closing_line(report, template))
    console.print()

    return exit_code(report)


__all__ = [
    "ReportTemplate",
    "SEVERITY_MARKERS",
    "closing_line",
    "exit_code",
    "format_verdict",
    "render",
]
