"""Declarative audit rules.

Every rule is an immutable dataclass exposing ``evaluate(context)``, which
returns one or more verdicts and never touches the filesystem beyond reading.
Rules share nothing with each other, so a rule set can be reordered or
trimmed without changing any individual rule's verdicts.

Structural checks (exported declarations vs. doc blocks) are regex
approximations over raw text; no source is parsed.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from govaudit.core.console import get_logger
from govaudit.core.result import RuleConfigurationError
from govaudit.governance.context import (
    MANIFEST_ERROR_KEY,
    MANIFEST_KEY,
    MANIFEST_PATH_KEY,
    AuditContext,
)
from govaudit.governance.types import Severity, Verdict
from govaudit.governance.walker import WalkerConfig, walk_files

logger = get_logger(__name__)

# Matches the script file in commands like "node scripts/audit.mjs".
SCRIPT_PATH_PATTERN = re.compile(r"(?:node|python3?)\s+(\S+)")


def compile_pattern(rule_id: str, pattern: str, flags: int = 0) -> re.Pattern[str]:
    """Compile a rule regex, turning syntax errors into configuration errors."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise RuleConfigurationError(
            f"Invalid pattern for rule {rule_id}: {exc}",
            context={"pattern": pattern},
        ) from exc


def count_lines(text: str) -> int:
    """Number of newline-delimited segments; a trailing newline adds an empty line."""
    return len(text.split("\n"))


@dataclass(frozen=True, kw_only=True)
class Rule(ABC):
    """A named, configured check producing verdicts from an audit context."""

    kind: ClassVar[str] = "rule"

    rule_id: str
    section: str = ""

    @abstractmethod
    def evaluate(self, context: AuditContext) -> list[Verdict]:
        """Return the verdicts for ``context`` in a stable order."""

    @property
    def target(self) -> str:
        return ""

    def verdict(
        self,
        severity: Severity,
        message: str,
        remediation: str | None = None,
        details: tuple[str, ...] = (),
    ) -> Verdict:
        return Verdict(
            severity=severity,
            message=message,
            remediation=remediation if severity is not Severity.PASS else None,
            rule_id=self.rule_id,
            section=self.section,
            details=details,
        )

    def unreadable(self, path: str, error: Exception) -> Verdict:
        return self.verdict(
            Severity.WARNING,
            f"Could not read {path}: {error}",
            "Check file permissions and encoding",
        )


def evaluate_fail_soft(rule: Rule, context: AuditContext) -> list[Verdict]:
    """Evaluate ``rule``; an exception becomes a single warning verdict for it."""
    try:
        return list(rule.evaluate(context))
    except Exception as exc:
        logger.warning("Rule %s raised %s: %s", rule.rule_id, type(exc).__name__, exc)
        return [
            Verdict(
                severity=Severity.WARNING,
                message=f"Rule {rule.rule_id} could not be evaluated: {exc}",
                remediation="Re-run with --verbose for details",
                rule_id=rule.rule_id,
                section=rule.section,
            )
        ]


def _require_paths(rule_id: str, paths: tuple[str, ...]) -> None:
    if not paths:
        raise RuleConfigurationError(f"Rule {rule_id} needs at least one target path")


@dataclass(frozen=True, kw_only=True)
class FileExistenceRule(Rule):
    """Pass when any candidate path exists; the first existing one is reported.

    ``found_message`` and ``missing_message`` are format strings receiving
    ``path`` (the existing candidate, or the first candidate when missing).
    """

    kind: ClassVar[str] = "file-existence"

    paths: tuple[str, ...]
    missing_severity: Severity = Severity.FAILURE
    found_message: str = "{path} exists"
    missing_message: str = "{path} not found"
    remediation: str | None = None

    def __post_init__(self) -> None:
        _require_paths(self.rule_id, self.paths)

    @property
    def target(self) -> str:
        return " | ".join(self.paths)

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        found = context.first_existing(self.paths)
        if found is not None:
            return [self.verdict(Severity.PASS, self.found_message.format(path=found))]
        return [
            self.verdict(
                self.missing_severity,
                self.missing_message.format(path=self.paths[0]),
                self.remediation,
            )
        ]


@dataclass(frozen=True, kw_only=True)
class RequiredContentRule(Rule):
    """Pass when the target file contains at least one acceptable pattern.

    Patterns are literal substrings unless ``literal`` is False, in which
    case they are regular expressions compiled with ``flags``.
    """

    kind: ClassVar[str] = "content-required"

    paths: tuple[str, ...]
    patterns: tuple[str, ...]
    name: str
    literal: bool = True
    flags: int = 0
    found_message: str = "Has {name}"
    missing_message: str = "Missing {name}"
    remediation: str | None = None
    _compiled: tuple[re.Pattern[str], ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _require_paths(self.rule_id, self.paths)
        if not self.patterns:
            raise RuleConfigurationError(f"Rule {self.rule_id} needs at least one pattern")
        compiled = tuple(
            compile_pattern(self.rule_id, re.escape(p) if self.literal else p, self.flags)
            for p in self.patterns
        )
        object.__setattr__(self, "_compiled", compiled)

    @property
    def target(self) -> str:
        return " | ".join(self.paths)

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        found = context.first_existing(self.paths)
        if found is None:
            return [
                self.verdict(
                    Severity.WARNING,
                    f"{self.paths[0]} not found; cannot check {self.name}",
                    self.remediation,
                )
            ]

        text = context.read(found)
        if text.is_err():
            return [self.unreadable(found, text.error)]

        content = text.unwrap()
        if any(pattern.search(content) for pattern in self._compiled):
            return [self.verdict(Severity.PASS, self.found_message.format(name=self.name))]
        return [
            self.verdict(
                Severity.WARNING,
                self.missing_message.format(name=self.name),
                self.remediation,
            )
        ]


@dataclass(frozen=True, kw_only=True)
class ForbiddenPatternRule(Rule):
    """Scan every walked file for a regex that must not appear.

    Produces a single Pass, or a single Warning carrying the total match
    count and one ``path: count`` detail line per offending file.
    """

    kind: ClassVar[str] = "content-forbidden"

    pattern: str
    name: str
    message: str = ""
    flags: int = 0
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        compiled = compile_pattern(self.rule_id, self.pattern, self.flags)
        object.__setattr__(self, "_compiled", compiled)

    @property
    def target(self) -> str:
        return f"/{self.pattern}/"

    def count_matches(self, text: str) -> int:
        return sum(1 for _ in self._compiled.finditer(text))

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        verdicts: list[Verdict] = []
        offenders: list[tuple[str, int]] = []
        total = 0

        for path in context.files:
            rel = context.relative(path)
            text = context.reader.try_read(path)
            if text.is_err():
                verdicts.append(self.unreadable(rel, text.error))
                continue
            count = self.count_matches(text.unwrap())
            if count:
                total += count
                offenders.append((rel, count))

        if total == 0:
            verdicts.append(self.verdict(Severity.PASS, f"No {self.name} found"))
        else:
            verdicts.append(
                self.verdict(
                    Severity.WARNING,
                    f"Found {total} {self.name} in {len(offenders)} files",
                    self.message or None,
                    details=tuple(f"{rel}: {count}" for rel, count in offenders),
                )
            )
        return verdicts


@dataclass(frozen=True, kw_only=True)
class LineCountRule(Rule):
    """Line-count threshold for a single file or for every walked file.

    With ``paths`` set, the first existing candidate is measured and always
    yields one verdict. Without ``paths`` the rule covers ``context.files``
    and yields one verdict per oversized file, or a single Pass.

    The limit is inclusive: ``max_lines`` lines pass. Files up to
    ``soft_max_lines`` warn; anything beyond fails. Without a soft band every
    overage fails.
    """

    kind: ClassVar[str] = "line-count"

    max_lines: int
    soft_max_lines: int | None = None
    paths: tuple[str, ...] = ()
    remediation: str | None = None
    soft_remediation: str | None = None

    def __post_init__(self) -> None:
        if self.max_lines < 1:
            raise RuleConfigurationError(f"Rule {self.rule_id}: max_lines must be positive")
        if self.soft_max_lines is not None and self.soft_max_lines < self.max_lines:
            raise RuleConfigurationError(
                f"Rule {self.rule_id}: soft_max_lines must be >= max_lines",
                context={"max_lines": self.max_lines, "soft_max_lines": self.soft_max_lines},
            )

    @property
    def target(self) -> str:
        return " | ".join(self.paths) if self.paths else "source files"

    def classify(self, lines: int) -> Severity:
        if lines <= self.max_lines:
            return Severity.PASS
        if self.soft_max_lines is not None and lines <= self.soft_max_lines:
            return Severity.WARNING
        return Severity.FAILURE

    def _remediation_for(self, severity: Severity) -> str | None:
        if severity is Severity.WARNING:
            return self.soft_remediation or self.remediation
        return self.remediation

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        if self.paths:
            return [self._evaluate_single(context)]
        return self._evaluate_files(context)

    def _evaluate_single(self, context: AuditContext) -> Verdict:
        found = context.first_existing(self.paths)
        if found is None:
            message = f"{self.paths[0]} not found; cannot measure length"
            return self.verdict(Severity.WARNING, message)

        text = context.read(found)
        if text.is_err():
            return self.unreadable(found, text.error)

        lines = count_lines(text.unwrap())
        severity = self.classify(lines)
        if severity is Severity.PASS:
            message = f"Concise length ({lines} lines)"
        elif severity is Severity.WARNING:
            message = f"Getting long ({lines} lines)"
        else:
            message = f"Too long ({lines} lines)"
        return self.verdict(severity, message, self._remediation_for(severity))

    def _evaluate_files(self, context: AuditContext) -> list[Verdict]:
        verdicts: list[Verdict] = []
        oversized = 0
        for path in context.files:
            rel = context.relative(path)
            text = context.reader.try_read(path)
            if text.is_err():
                verdicts.append(self.unreadable(rel, text.error))
                continue
            lines = count_lines(text.unwrap())
            severity = self.classify(lines)
            if severity is not Severity.PASS:
                oversized += 1
                verdicts.append(
                    self.verdict(
                        severity,
                        f"{rel}: {lines} lines (max {self.max_lines})",
                        self._remediation_for(severity),
                    )
                )

        if oversized == 0:
            verdicts.append(self.verdict(Severity.PASS, f"All files under {self.max_lines} lines"))
        return verdicts


@dataclass(frozen=True, kw_only=True)
class DirectoryListingRule(Rule):
    """Require a directory holding at least ``min_count`` matching files.

    A file matches when its name is in ``names`` or ends with one of
    ``suffixes``; with neither set every file matches.
    """

    kind: ClassVar[str] = "directory-listing"

    directory: str
    label: str
    names: tuple[str, ...] = ()
    suffixes: tuple[str, ...] = ()
    min_count: int = 1
    recursive: bool = True
    missing_severity: Severity = Severity.FAILURE
    shortfall_severity: Severity = Severity.FAILURE
    remediation: str | None = None

    @property
    def target(self) -> str:
        return f"{self.directory}/"

    def _matches(self, name: str) -> bool:
        if not self.names and not self.suffixes:
            return True
        return name in self.names or (bool(self.suffixes) and name.endswith(self.suffixes))

    def _candidates(self, directory: Path) -> Iterator[Path]:
        if self.recursive:
            yield from walk_files(directory)
        else:
            yield from (p for p in directory.iterdir() if p.is_file())

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        directory = context.resolve(self.directory)
        if not directory.is_dir():
            return [
                self.verdict(
                    self.missing_severity,
                    f"{self.directory}/ directory not found",
                    self.remediation,
                )
            ]

        try:
            count = sum(1 for p in self._candidates(directory) if self._matches(p.name))
        except OSError as exc:
            return [self.unreadable(f"{self.directory}/", exc)]

        if count >= self.min_count:
            return [self.verdict(Severity.PASS, f"Found {count} {self.label}")]
        if count == 0:
            message = f"No {self.label} found"
        else:
            message = f"Only {count} {self.label} found (expected {self.min_count})"
        return [self.verdict(self.shortfall_severity, message, self.remediation)]


@dataclass(frozen=True, kw_only=True)
class DocCoverageRule(Rule):
    """Every file under ``directory`` needs at least as many doc blocks as declarations."""

    kind: ClassVar[str] = "doc-coverage"

    directory: str
    declaration_pattern: str
    doc_pattern: str
    extensions: tuple[str, ...] = ()
    excluded_dirs: tuple[str, ...] = ()
    remediation: str | None = None
    _declaration: re.Pattern[str] = field(init=False, repr=False, compare=False)
    _doc: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "_declaration", compile_pattern(self.rule_id, self.declaration_pattern)
        )
        object.__setattr__(self, "_doc", compile_pattern(self.rule_id, self.doc_pattern))

    @property
    def target(self) -> str:
        return f"{self.directory}/"

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        directory = context.resolve(self.directory)
        if not directory.is_dir():
            return [
                self.verdict(
                    Severity.WARNING,
                    f"No {self.directory} directory found for doc comment check",
                )
            ]

        verdicts: list[Verdict] = []
        deficient = 0
        for path in walk_files(directory, self.extensions, self.excluded_dirs):
            rel = context.relative(path)
            text = context.reader.try_read(path)
            if text.is_err():
                verdicts.append(self.unreadable(rel, text.error))
                continue
            content = text.unwrap()
            declarations = sum(1 for _ in self._declaration.finditer(content))
            docs = sum(1 for _ in self._doc.finditer(content))
            if declarations > docs:
                deficient += 1
                verdicts.append(
                    self.verdict(
                        Severity.WARNING,
                        f"{rel}: {declarations} exports, {docs} doc blocks",
                        self.remediation,
                    )
                )

        if deficient == 0:
            verdicts.append(self.verdict(Severity.PASS, "All exported functions have doc comments"))
        return verdicts


@dataclass(frozen=True, kw_only=True)
class ManifestScriptRule(Rule):
    """The manifest declares ``script`` and any script file it runs exists.

    Reads the manifest parsed into ``context.metadata``; a missing or broken
    manifest only warns because the convention may not apply to the project.
    """

    kind: ClassVar[str] = "manifest-script"

    script: str
    remediation: str | None = None
    missing_script_remediation: str | None = None

    @property
    def target(self) -> str:
        return f"scripts.{self.script}"

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        manifest_path = context.metadata.get(MANIFEST_PATH_KEY) or "manifest"
        error = context.metadata.get(MANIFEST_ERROR_KEY)
        if error:
            return [
                self.verdict(
                    Severity.WARNING,
                    f"Could not parse {manifest_path}",
                    str(error),
                )
            ]

        manifest: Mapping[str, Any] | None = context.metadata.get(MANIFEST_KEY)
        if manifest is None:
            return [
                self.verdict(
                    Severity.WARNING,
                    f"No {manifest_path} found",
                    "This check may not apply to this project",
                )
            ]

        scripts = manifest.get("scripts")
        command = scripts.get(self.script) if isinstance(scripts, Mapping) else None
        if not isinstance(command, str) or not command:
            return [
                self.verdict(
                    Severity.FAILURE,
                    f"{self.script} script not configured",
                    self.remediation,
                )
            ]

        verdicts = [self.verdict(Severity.PASS, f"{self.script} script configured")]
        match = SCRIPT_PATH_PATTERN.search(command)
        if match:
            script_path = match.group(1)
            if context.resolve(script_path).exists():
                verdicts.append(self.verdict(Severity.PASS, f"Audit script exists: {script_path}"))
            else:
                verdicts.append(
                    self.verdict(
                        Severity.FAILURE,
                        f"Audit script not found: {script_path}",
                        self.missing_script_remediation,
                    )
                )
        return verdicts


@dataclass(frozen=True, kw_only=True)
class StrictCompilerRule(Rule):
    """A JSON compiler config enables strict mode directly or via ``extends``."""

    kind: ClassVar[str] = "strict-compiler"

    config_path: str = "tsconfig.json"

    @property
    def target(self) -> str:
        return self.config_path

    @staticmethod
    def is_strict(config: Any) -> bool:
        if not isinstance(config, Mapping):
            return False
        extends = config.get("extends")
        if isinstance(extends, str):
            extends = [extends]
        if isinstance(extends, list) and any(
            isinstance(item, str) and "strict" in item for item in extends
        ):
            return True
        options = config.get("compilerOptions")
        return isinstance(options, Mapping) and bool(options.get("strict"))

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        parsed = context.read_json(self.config_path)
        if parsed.is_err():
            return [
                self.verdict(
                    Severity.WARNING,
                    f"Could not read {self.config_path} (may not be a TypeScript project)",
                )
            ]
        if self.is_strict(parsed.unwrap()):
            return [self.verdict(Severity.PASS, "Strict mode enabled")]
        return [
            self.verdict(
                Severity.FAILURE,
                "Strict mode not enabled",
                f'Set "compilerOptions": {{"strict": true}} in {self.config_path}',
            )
        ]


@dataclass(frozen=True, kw_only=True)
class GatedRule(Rule):
    """Run ``rules`` only after ``gate`` passes.

    The gate's verdicts are always reported. Children run when every gate
    verdict passes and ``require_path`` (if set) exists, so content checks
    are not reported against a file that is absent.
    """

    kind: ClassVar[str] = "gated"

    gate: Rule
    rules: tuple[Rule, ...] = ()
    require_path: str | None = None

    @property
    def target(self) -> str:
        return self.gate.target

    def evaluate(self, context: AuditContext) -> list[Verdict]:
        verdicts = evaluate_fail_soft(self.gate, context)
        if not all(v.passed for v in verdicts):
            return verdicts
        if self.require_path is not None and not context.resolve(self.require_path).exists():
            return verdicts
        for rule in self.rules:
            verdicts.extend(evaluate_fail_soft(rule, context))
        return verdicts

    def walk(self) -> Iterator[Rule]:
        yield self.gate
        for rule in self.rules:
            if isinstance(rule, GatedRule):
                yield from rule.walk()
            else:
                yield rule


@dataclass(frozen=True)
class RuleSet:
    """An ordered, named collection of rules plus the walk they need."""

    name: str
    title: str
    rules: tuple[Rule, ...] = ()
    walker: WalkerConfig | None = None
    manifest: str | None = None

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def flatten(self) -> Iterator[Rule]:
        """Every rule including those nested inside gated groups."""
        for rule in self.rules:
            if isinstance(rule, GatedRule):
                yield from rule.walk()
            else:
                yield rule


__all__ = [
    "DirectoryListingRule",
    "DocCoverageRule",
    "FileExistenceRule",
    "ForbiddenPatternRule",
    "GatedRule",
    "LineCountRule",
    "ManifestScriptRule",
    "RequiredContentRule",
    "Rule",
    "RuleSet",
    "StrictCompilerRule",
    "compile_pattern",
    "count_lines",
    "evaluate_fail_soft",
]
