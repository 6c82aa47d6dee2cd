"""
Rule-based compliance auditing for project trees.

This package checks a project directory against declarative rules:
a file walker gathers candidate sources, each rule turns a read-only
context into verdicts, the auditor folds them into a report, and the
reporter renders it and maps it to an exit code.

Key invariants:
- Rules never mutate the filesystem or each other's results
- The same rules against the same tree always give the same report
- Per-file and per-rule problems become verdicts; only invalid rule
  configuration raises

See governance/presets.py for the two shipped rule sets.
"""

from govaudit.governance.auditor import Auditor, run_audit
from govaudit.governance.context import AuditContext, ContentReader
from govaudit.governance.presets import (
    PRESETS,
    get_preset,
    governance_setup_rules,
    standards_audit_rules,
)
from govaudit.governance.reporter import ReportTemplate, exit_code, render
from govaudit.governance.rules import (
    DirectoryListingRule,
    DocCoverageRule,
    FileExistenceRule,
    ForbiddenPatternRule,
    GatedRule,
    LineCountRule,
    ManifestScriptRule,
    RequiredContentRule,
    Rule,
    RuleSet,
    StrictCompilerRule,
)
from govaudit.governance.types import AuditReport, Severity, Verdict, VerdictCounts
from govaudit.governance.walker import WalkerConfig, walk_files

__all__ = [
    "PRESETS",
    "AuditContext",
    "AuditReport",
    "Auditor",
    "ContentReader",
    "DirectoryListingRule",
    "DocCoverageRule",
    "FileExistenceRule",
    "ForbiddenPatternRule",
    "GatedRule",
    "LineCountRule",
    "ManifestScriptRule",
    "ReportTemplate",
    "RequiredContentRule",
    "Rule",
    "RuleSet",
    "Severity",
    "StrictCompilerRule",
    "Verdict",
    "VerdictCounts",
    "WalkerConfig",
    "exit_code",
    "get_preset",
    "governance_setup_rules",
    "render",
    "run_audit",
    "standards_audit_rules",
    "walk_files",
]
