"""Concrete rule sets for the two govaudit commands.

- ``check``: governance setup (CLAUDE.md, standards.md, audit script, ADRs,
  pre-commit hooks, governance skill)
- ``audit``: standards compliance of a source tree

Both are built from configuration at call time; the resulting rules are
immutable for the rest of the run.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from govaudit.core.config import AppConfig, AuditConfig, SetupConfig
from govaudit.governance.reporter import ReportTemplate
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
from govaudit.governance.types import Severity
from govaudit.governance.walker import WalkerConfig

SETUP_TEMPLATE = ReportTemplate(
    heading="🏛️  Governance Setup Check",
    score_label="Governance Score",
    failure_message="Governance setup incomplete. Fix the failures above.",
    warning_message="Governance setup functional with recommendations above.",
    success_message="Governance fully configured!",
)

AUDIT_TEMPLATE = ReportTemplate(
    heading="📋 Standards Compliance Audit",
    score_label="Compliance",
    failure_message="Standards audit failed with {failures} issue(s)",
    warning_message="Standards audit passed with {warnings} warning(s)",
    success_message="Standards audit passed!",
)

PRE_COMMIT_CONFIGS = (".husky/pre-commit", "lefthook.yml", ".pre-commit-config.yaml")
SKILL_LOCATIONS = (".claude/skills/governance/SKILL.md", "SKILL.md")

STANDARDS_SECTIONS: tuple[tuple[str, str, str], ...] = (
    ("code-quality", r"## 1.*Code Quality|## Code Quality", "Code Quality section"),
    ("testing", r"## 2.*Testing|## Testing", "Testing section"),
    ("workflow", r"## 3.*Workflow|## Development Workflow", "Workflow section"),
)


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-") or "rule"


def _claude_md_rules(config: SetupConfig) -> Rule:
    section = "1. CLAUDE.md (AI Operational Context)"
    return GatedRule(
        rule_id="claude-md",
        section=section,
        gate=FileExistenceRule(
            rule_id="claude-md.exists",
            section=section,
            paths=("CLAUDE.md",),
            remediation="Create CLAUDE.md at project root with project context",
        ),
        rules=(
            RequiredContentRule(
                rule_id="claude-md.commands",
                section=section,
                paths=("CLAUDE.md",),
                patterns=("## Build Commands", "## Commands"),
                name="build commands section",
                remediation="Add ## Build Commands with npm scripts",
            ),
            RequiredContentRule(
                rule_id="claude-md.standards-reference",
                section=section,
                paths=("CLAUDE.md",),
                patterns=("standards.md", "Standards"),
                name="standards.md reference",
                found_message="References standards.md",
                missing_message="No reference to standards.md",
                remediation=(
                    "Add cross-reference: "
                    "> **Authoritative reference**: [standards.md](standards.md)"
                ),
            ),
            LineCountRule(
                rule_id="claude-md.length",
                section=section,
                paths=("CLAUDE.md",),
                max_lines=config.claude_md_max_lines,
                soft_max_lines=config.claude_md_soft_max_lines,
                soft_remediation="Consider moving policy details to standards.md",
                remediation="Move policy and rationale to standards.md to reduce token usage",
            ),
        ),
    )


def _standards_rules(config: SetupConfig) -> Rule:
    section = "2. standards.md (Engineering Policy)"
    locations = tuple(config.standards_locations)
    return GatedRule(
        rule_id="standards",
        section=section,
        gate=FileExistenceRule(
            rule_id="standards.exists",
            section=section,
            paths=locations,
            found_message="standards.md found at {path}",
            missing_message="standards.md not found",
            remediation=(
                "Create standards.md at the repository root\n"
                "Or create docs/architecture/standards.md with Code Quality, "
                "Testing and Workflow sections"
            ),
        ),
        rules=tuple(
            RequiredContentRule(
                rule_id=f"standards.{key}",
                section=section,
                paths=locations,
                patterns=(pattern,),
                literal=False,
                flags=re.IGNORECASE,
                name=name,
                remediation=f"Add {name} to standards.md",
            )
            for key, pattern, name in STANDARDS_SECTIONS
        ),
    )


def _audit_script_rule(config: SetupConfig) -> Rule:
    return ManifestScriptRule(
        rule_id="audit-script",
        section="3. Audit Script (Automated Compliance)",
        script=config.audit_script,
        remediation=f'Add to {config.manifest}: "{config.audit_script}": "govaudit audit"',
        missing_script_remediation=(
            "Create the audit script or point the script at `govaudit audit`"
        ),
    )


def _adr_rules() -> Rule:
    section = "4. Architecture Decision Records"
    return GatedRule(
        rule_id="adr",
        section=section,
        gate=FileExistenceRule(
            rule_id="adr.directory",
            section=section,
            paths=("docs/adr",),
            missing_severity=Severity.WARNING,
            found_message="{path}/ directory exists",
            missing_message="{path}/ directory not found",
            remediation="Create docs/adr/ for architecture decision records",
        ),
        rules=(
            DirectoryListingRule(
                rule_id="adr.template",
                section=section,
                directory="docs/adr",
                names=("000-template.md",),
                label="ADR template",
                recursive=False,
                missing_severity=Severity.WARNING,
                shortfall_severity=Severity.WARNING,
                remediation="Create docs/adr/000-template.md for consistent decision records",
            ),
        ),
    )


def _pre_commit_rules() -> Rule:
    section = "5. Pre-commit Hooks"
    return GatedRule(
        rule_id="pre-commit",
        section=section,
        gate=FileExistenceRule(
            rule_id="pre-commit.configured",
            section=section,
            paths=PRE_COMMIT_CONFIGS,
            missing_severity=Severity.WARNING,
            found_message="Pre-commit hooks configured ({path})",
            missing_message="No pre-commit hooks found",
            remediation=(
                "Install husky: npx husky install && "
                'npx husky add .husky/pre-commit "npm run lint && npm run typecheck"'
            ),
        ),
        rules=(
            RequiredContentRule(
                rule_id="pre-commit.quality-checks",
                section=section,
                paths=(".husky/pre-commit",),
                patterns=("lint", "typecheck", "test"),
                name="quality checks",
                found_message="Hook runs quality checks",
                missing_message="Hook may not run quality checks",
                remediation="Add lint/typecheck/test to pre-commit hook",
            ),
        ),
        require_path=".husky/pre-commit",
    )


def _skill_rule() -> Rule:
    return FileExistenceRule(
        rule_id="governance-skill",
        section="6. Governance Skill",
        paths=SKILL_LOCATIONS,
        missing_severity=Severity.WARNING,
        found_message="Governance skill installed",
        missing_message="Governance skill not found in project",
        remediation="Install via: claude plugin add github:wrsmith108/governance-claude-skill",
    )


def governance_setup_rules(config: SetupConfig) -> RuleSet:
    """Rule set verifying a project's governance files are in place."""
    return RuleSet(
        name="check",
        title="Governance Setup Check",
        rules=(
            _claude_md_rules(config),
            _standards_rules(config),
            _audit_script_rule(config),
            _adr_rules(),
            _pre_commit_rules(),
            _skill_rule(),
        ),
        manifest=config.manifest,
    )


def standards_audit_rules(config: AuditConfig) -> RuleSet:
    """Rule set auditing a source tree against the engineering standards.

    Raises:
        RuleConfigurationError: A configured pattern is not a valid regex.
    """
    rules: list[Rule] = []

    if config.compiler_config:
        rules.append(
            StrictCompilerRule(
                rule_id="strict-mode",
                section="§1.1 TypeScript Standards",
                config_path=config.compiler_config,
            )
        )

    for forbidden in config.forbidden_patterns:
        rules.append(
            ForbiddenPatternRule(
                rule_id=f"forbidden.{_slug(forbidden.name)}",
                section="§1.1 Forbidden Patterns",
                pattern=forbidden.pattern,
                name=forbidden.name,
                message=forbidden.message,
            )
        )

    rules.append(
        LineCountRule(
            rule_id="file-length",
            section=f"§1.3 File Length (max {config.max_file_lines} lines)",
            max_lines=config.max_file_lines,
            soft_max_lines=config.soft_max_file_lines,
            remediation="Split the file into smaller modules",
        )
    )

    rules.append(
        DocCoverageRule(
            rule_id="doc-comments",
            section="§1.4 Doc Comments",
            directory=config.doc_dir or f"{config.src_dir.rstrip('/')}/lib",
            extensions=tuple(config.file_extensions),
            excluded_dirs=tuple(config.excluded_dirs),
            declaration_pattern=config.declaration_pattern,
            doc_pattern=config.doc_block_pattern,
            remediation="Add a doc comment above each exported function",
        )
    )

    rules.append(
        DirectoryListingRule(
            rule_id="tests",
            section="§2.1 Test Coverage",
            directory=config.test_dir,
            suffixes=tuple(config.test_suffixes),
            label="test files",
        )
    )

    rules.extend(
        FileExistenceRule(
            rule_id=f"required.{_slug(path)}",
            section="§4.1 Required Files",
            paths=(path,),
        )
        for path in config.required_files
    )

    rules.extend(
        FileExistenceRule(
            rule_id=f"optional.{_slug(path)}",
            section="§3.5 Optional Files",
            paths=(path,),
            missing_severity=Severity.WARNING,
            missing_message="{path} not found (optional)",
        )
        for path in config.optional_files
    )

    return RuleSet(
        name="audit",
        title="Standards Compliance Audit",
        rules=tuple(rules),
        walker=WalkerConfig(
            directory=config.src_dir,
            extensions=tuple(config.file_extensions),
            excluded_dirs=tuple(config.excluded_dirs),
        ),
    )


@dataclass(frozen=True)
class Preset:
    """A named rule set builder with its report wording."""

    name: str
    description: str
    template: ReportTemplate
    builder: Callable[[AppConfig], RuleSet]

    def build(self, config: AppConfig) -> RuleSet:
        return self.builder(config)


PRESETS: dict[str, Preset] = {
    "check": Preset(
        name="check",
        description="Governance setup check",
        template=SETUP_TEMPLATE,
        builder=lambda config: governance_setup_rules(config.setup),
    ),
    "audit": Preset(
        name="audit",
        description="Standards compliance audit",
        template=AUDIT_TEMPLATE,
        builder=lambda config: standards_audit_rules(config.audit),
    ),
}


def get_preset(name: str) -> Preset:
    try:
        return PRESETS[name]
    except KeyError as exc:
        known = ", ".join(sorted(PRESETS))
        raise KeyError(f"Unknown preset {name!r} (expected one of: {known})") from exc


__all__ = [
    "AUDIT_TEMPLATE",
    "PRESETS",
    "Preset",
    "SETUP_TEMPLATE",
    "get_preset",
    "governance_setup_rules",
    "standards_audit_rules",
]
