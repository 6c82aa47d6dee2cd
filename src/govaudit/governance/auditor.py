"""Audit orchestration: walk once, evaluate every rule, aggregate a report."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from govaudit.core.console import get_logger
from govaudit.governance.context import AuditContext, ContentReader, load_manifest_metadata
from govaudit.governance.rules import Rule, RuleSet, evaluate_fail_soft
from govaudit.governance.types import AuditReport, Verdict
from govaudit.governance.walker import WalkerConfig, collect_files

logger = get_logger(__name__)


class Auditor:
    """Runs rule sets against a project root.

    The auditor is fail-soft: an exception escaping a rule is reported as a
    warning verdict for that rule and the remaining rules still run.
    """

    def __init__(self, reader_factory: type[ContentReader] = ContentReader) -> None:
        self._reader_factory = reader_factory

    def build_context(
        self,
        root: Path,
        walker_config: WalkerConfig | None,
        manifest: str | None = None,
    ) -> AuditContext:
        reader = self._reader_factory()
        files: tuple[Path, ...] = ()
        if walker_config is not None:
            files = collect_files(root, walker_config)
            logger.debug("Collected %d files under %s", len(files), root / walker_config.directory)
        return AuditContext(
            root=root,
            files=files,
            reader=reader,
            metadata=load_manifest_metadata(root, manifest, reader),
        )

    def evaluate_rule(self, rule: Rule, context: AuditContext) -> list[Verdict]:
        return evaluate_fail_soft(rule, context)

    def run(
        self,
        root: Path,
        rules: Iterable[Rule],
        walker_config: WalkerConfig | None = None,
        *,
        manifest: str | None = None,
    ) -> AuditReport:
        """Evaluate ``rules`` in order against ``root``.

        Args:
            root: Project root; rule paths are relative to it.
            rules: Rules in evaluation order.
            walker_config: Source walk shared by all rules; None skips the walk.
            manifest: Optional manifest parsed into context metadata.

        Returns:
            A report whose verdicts keep rule evaluation order.
        """
        context = self.build_context(root, walker_config, manifest)

        verdicts: list[Verdict] = []
        for rule in rules:
            verdicts.extend(self.evaluate_rule(rule, context))

        report = AuditReport(verdicts=tuple(verdicts), files_scanned=len(context.files))
        logger.debug(
            "Audit finished: %d passed, %d warnings, %d failed (score %d%%)",
            report.counts.passes,
            report.counts.warnings,
            report.counts.failures,
            report.score,
        )
        return report

    def run_rule_set(self, root: Path, rule_set: RuleSet) -> AuditReport:
        return self.run(root, rule_set.rules, rule_set.walker, manifest=rule_set.manifest)


def run_audit(root: Path, rule_set: RuleSet) -> AuditReport:
    """Convenience wrapper running ``rule_set`` with a fresh auditor."""
    return Auditor().run_rule_set(root, rule_set)


__all__ = ["Auditor", "run_audit"]
