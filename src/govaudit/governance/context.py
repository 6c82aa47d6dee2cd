"""Read-only evaluation context shared by every rule in one audit run."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from govaudit.core.console import get_logger
from govaudit.core.result import Err, Ok, Result, try_result

logger = get_logger(__name__)

# Metadata keys populated by load_manifest_metadata.
MANIFEST_KEY = "manifest"
MANIFEST_PATH_KEY = "manifest_path"
MANIFEST_ERROR_KEY = "manifest_error"


class ContentReader:
    """Reads file text once per run.

    Undecodable bytes are replaced rather than raising, so only genuine I/O
    errors surface from ``read``.
    """

    def __init__(self) -> None:
        self._cache: dict[Path, str] = {}

    def read(self, path: Path) -> str:
        cached = self._cache.get(path)
        if cached is not None:
            return cached
        text = path.read_text(encoding="utf-8", errors="replace")
        self._cache[path] = text
        return text

    def try_read(self, path: Path) -> Result[str, OSError]:
        return try_result(lambda: self.read(path), OSError)


@dataclass(frozen=True)
class AuditContext:
    """Everything a rule may look at.

    Attributes:
        root: Project root every relative rule target is resolved against.
        files: Walker output, resolved once per run.
        reader: Cached path -> text capability.
        metadata: Static project facts such as the parsed manifest.
    """

    root: Path
    files: tuple[Path, ...] = ()
    reader: ContentReader = field(default_factory=ContentReader)
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def resolve(self, relative: str) -> Path:
        return self.root / relative

    def relative(self, path: Path) -> str:
        """Display form of ``path``: POSIX-style and relative to the root when possible."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def first_existing(self, candidates: tuple[str, ...]) -> str | None:
        for candidate in candidates:
            if self.resolve(candidate).exists():
                return candidate
        return None

    def read(self, relative: str) -> Result[str, OSError]:
        return self.reader.try_read(self.resolve(relative))

    def read_json(self, relative: str) -> Result[Any, Exception]:
        """Read and parse a JSON file, capturing I/O and syntax errors."""
        raw = self.read(relative)
        if raw.is_err():
            return raw
        try:
            return Ok(json.loads(raw.unwrap()))
        except json.JSONDecodeError as exc:
            return Err(exc)


def load_manifest_metadata(
    root: Path, manifest: str | None, reader: ContentReader
) -> Mapping[str, Any]:
    """Parse the project manifest into context metadata.

    A missing or malformed manifest is recorded, not raised; rules decide
    how to report it.
    """
    metadata: dict[str, Any] = {
        MANIFEST_PATH_KEY: manifest,
        MANIFEST_KEY: None,
        MANIFEST_ERROR_KEY: None,
    }
    if not manifest:
        return MappingProxyType(metadata)

    path = root / manifest
    if not path.exists():
        logger.debug("No manifest at %s", path)
        return MappingProxyType(metadata)

    raw = reader.try_read(path)
    if raw.is_err():
        metadata[MANIFEST_ERROR_KEY] = str(raw.error)
        return MappingProxyType(metadata)

    try:
        data = json.loads(raw.unwrap())
    except json.JSONDecodeError as exc:
        metadata[MANIFEST_ERROR_KEY] = f"{manifest}: {exc}"
        return MappingProxyType(metadata)

    if not isinstance(data, dict):
        metadata[MANIFEST_ERROR_KEY] = f"{manifest}: root must be an object"
    else:
        metadata[MANIFEST_KEY] = MappingProxyType(data)
    return MappingProxyType(metadata)


__all__ = [
    "AuditContext",
    "ContentReader",
    "MANIFEST_ERROR_KEY",
    "MANIFEST_KEY",
    "MANIFEST_PATH_KEY",
    "load_manifest_metadata",
]
