"""Application configuration management.

Handles loading and validating configuration from multiple sources:
    - TOML/JSON/YAML config files
    - Environment variables (GOVAUDIT_* prefix)
    - Default values

Key components:
    - AppConfig: Main configuration model
    - load_config(): Safe config loading with fallback
    - ConfigLoadResult: Metadata about config source
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from unittest.mock import patch

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from govaudit.core.result import ConfigurationError

CONFIG_ENV_VAR = "GOVAUDIT_CONFIG"
DEFAULT_CONFIG_NAME = ".govaudit.toml"


# -----------------------------------------------------------------------------
# Sub-configuration Models
# -----------------------------------------------------------------------------


class ForbiddenPatternConfig(BaseModel):
    """A regex that must not appear in audited source files."""

    pattern: str = Field(description="Regular expression searched in every source file.")
    name: str = Field(description="Display name used in the report.")
    message: str = Field(default="", description="Remediation shown when matches are found.")


class AuditConfig(BaseModel):
    """Standards audit configuration."""

    src_dir: str = Field(default="src", description="Source directory to audit.")
    max_file_lines: int = Field(default=500, ge=1, description="Maximum lines per source file.")
    soft_max_file_lines: int | None = Field(
        default=None,
        description="Optional upper bound of a warning band above max_file_lines.",
    )
    file_extensions: list[str] = Field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx"],
        description="File suffixes included in the source walk.",
    )
    excluded_dirs: list[str] = Field(
        default_factory=lambda: ["build", "dist", "coverage"],
        description="Gitignore-style directory patterns skipped by the source walk.",
    )
    required_files: list[str] = Field(
        default_factory=lambda: ["CLAUDE.md", "docs/adr"],
        description="Paths that must exist (failure when missing).",
    )
    optional_files: list[str] = Field(
        default_factory=lambda: ["src/lib/flags.ts", ".husky/pre-commit"],
        description="Paths that should exist (warning when missing).",
    )
    forbidden_patterns: list[ForbiddenPatternConfig] = Field(
        default_factory=lambda: [
            ForbiddenPatternConfig(
                pattern=r":\s*any(?![a-zA-Z])",
                name="`any` type",
                message="Use proper types or `unknown` for external data",
            )
        ]
    )
    doc_dir: str | None = Field(
        default=None,
        description="Directory checked for doc-comment coverage; defaults to <src_dir>/lib.",
    )
    declaration_pattern: str = Field(
        default=r"export\s+(async\s+)?function\s+\w+",
        description="Regex counting exported declarations.",
    )
    doc_block_pattern: str = Field(
        default=r"/\*\*[\s\S]*?\*/",
        description="Regex counting documentation blocks.",
    )
    test_dir: str = Field(default="tests", description="Directory holding test files.")
    test_suffixes: list[str] = Field(
        default_factory=lambda: [".test.ts", ".test.tsx", ".test.js", ".spec.ts"],
    )
    compiler_config: str | None = Field(
        default="tsconfig.json",
        description="JSON compiler config checked for strict mode; null disables the check.",
    )

    @model_validator(mode="after")
    def check_soft_limit(self) -> AuditConfig:
        if self.soft_max_file_lines is not None and self.soft_max_file_lines < self.max_file_lines:
            raise ValueError("soft_max_file_lines must be >= max_file_lines")
        return self


class SetupConfig(BaseModel):
    """Governance setup check configuration."""

    claude_md_max_lines: int = Field(default=500, ge=1, description="Concise CLAUDE.md length.")
    claude_md_soft_max_lines: int = Field(
        default=700, ge=1, description="CLAUDE.md length that still only warns."
    )
    manifest: str = Field(default="package.json", description="Project manifest file.")
    audit_script: str = Field(
        default="audit:standards", description="Manifest script that runs the standards audit."
    )
    standards_locations: list[str] = Field(
        default_factory=lambda: [
            "standards.md",
            "docs/architecture/standards.md",
            "docs/standards.md",
        ],
        description="Candidate standards.md paths, searched in order.",
    )

    @model_validator(mode="after")
    def check_soft_limit(self) -> SetupConfig:
        if self.claude_md_soft_max_lines < self.claude_md_max_lines:
            raise ValueError("claude_md_soft_max_lines must be >= claude_md_max_lines")
        return self


@dataclass
class ConfigLoadResult:
    path: Path
    file_loaded: bool
    env_overrides: set[str]
    error: str | None = None


class AppConfig(BaseSettings):
    """Application-wide configuration with nested sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="GOVAUDIT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    audit: AuditConfig = Field(default_factory=AuditConfig)
    setup: SetupConfig = Field(default_factory=SetupConfig)
    log_level: str = Field(default="INFO", description="Log level for govaudit output.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        # Ensure environment variables override config file entries.
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


def _resolve_config_path(
    config_path: Path | None, root: Path, env_vars: Mapping[str, str]
) -> Path:
    candidate = config_path or env_vars.get(CONFIG_ENV_VAR) or (root / DEFAULT_CONFIG_NAME)
    return Path(candidate).expanduser()


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"{path} is not valid UTF-8: {exc}") from exc
    suffix = path.suffix.lower()

    try:
        if suffix == ".json":
            data = json.loads(raw)
        elif suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(raw) or {}
        else:
            data = tomllib.loads(raw)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Syntax error in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root in {path} must be a mapping.")

    return data


def _detect_env_overrides(env_vars: Mapping[str, str]) -> set[str]:
    """Detect which fields are overridden by environment variables.

    For nested models, detects vars like GOVAUDIT_AUDIT__MAX_FILE_LINES.
    """
    prefix = AppConfig.model_config.get("env_prefix", "")
    delimiter = AppConfig.model_config.get("env_nested_delimiter", "__")
    overrides: set[str] = set()

    nested_models: dict[str, type[BaseModel]] = {
        "audit": AuditConfig,
        "setup": SetupConfig,
    }

    for group_name, model_cls in nested_models.items():
        for field in model_cls.model_fields:
            env_key = f"{prefix}{group_name}{delimiter}{field}".upper()
            if env_key in env_vars:
                overrides.add(f"{group_name}.{field}")

    if f"{prefix}LOG_LEVEL".upper() in env_vars:
        overrides.add("log_level")

    return overrides


def load_config(
    config_path: Path | None = None,
    root: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> tuple[AppConfig, ConfigLoadResult]:
    """
    Load configuration with Safe Mode fallback.
    If the file is invalid, returns default config + error message.
    """
    env_vars: Mapping[str, str] = os.environ if env is None else {**os.environ, **env}
    resolved_path = _resolve_config_path(config_path, root or Path.cwd(), env_vars)
    env_overrides = _detect_env_overrides(env_vars)

    error: str | None = None
    file_loaded = False
    file_data: dict[str, Any] = {}

    try:
        file_data = _read_config_file(resolved_path)
        file_loaded = resolved_path.exists()
    except (ConfigurationError, OSError) as exc:
        error = str(exc)

    context_manager = (
        patch.dict(os.environ, env_vars, clear=False) if env is not None else nullcontext()
    )

    try:
        with context_manager:
            config = AppConfig(**file_data)
    except ValidationError as exc:
        error = str(exc)
        # Skip settings sources: the environment may be what failed validation.
        config = AppConfig.model_construct()

    load_result = ConfigLoadResult(
        path=resolved_path,
        file_loaded=file_loaded,
        env_overrides=env_overrides,
        error=error,
    )

    return config, load_result


__all__ = [
    "AppConfig",
    "AuditConfig",
    "ConfigLoadResult",
    "ForbiddenPatternConfig",
    "SetupConfig",
    "load_config",
]
