"""Tests for recursive source file enumeration."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from govaudit.core.config import AuditConfig
from govaudit.governance.walker import WalkerConfig, collect_files, walk_files


def _names(paths: list[Path], root: Path) -> set[str]:
    return {p.relative_to(root).as_posix() for p in paths}


class TestWalkFiles:
    def test_missing_root_yields_nothing(self, tmp_path: Path) -> None:
        assert list(walk_files(tmp_path / "absent")) == []

    def test_root_that_is_a_file_yields_nothing(self, tmp_path: Path) -> None:
        target = tmp_path / "file.ts"
        target.write_text("x", encoding="utf-8")
        assert list(walk_files(target)) == []

    def test_filters_by_extension(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree(
            {
                "src/a.ts": "",
                "src/b.tsx": "",
                "src/c.md": "",
                "src/nested/d.js": "",
            }
        )
        found = list(walk_files(root / "src", (".ts", ".tsx", ".js")))
        assert _names(found, root / "src") == {"a.ts", "b.tsx", "nested/d.js"}

    def test_empty_extension_set_keeps_everything(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"docs/a.md": "", "docs/b.txt": ""})
        assert _names(list(walk_files(root / "docs")), root / "docs") == {"a.md", "b.txt"}

    def test_compound_suffixes(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"tests/a.test.ts": "", "tests/b.ts": "", "tests/c.spec.ts": ""})
        found = list(walk_files(root / "tests", (".test.ts", ".spec.ts")))
        assert _names(found, root / "tests") == {"a.test.ts", "c.spec.ts"}

    def test_skips_hidden_and_dependency_directories(
        self, write_tree: Callable[..., Path]
    ) -> None:
        root = write_tree(
            {
                "src/keep.ts": "",
                "src/.cache/skip.ts": "",
                "src/node_modules/pkg/skip.ts": "",
                "src/__pycache__/skip.ts": "",
            }
        )
        assert _names(list(walk_files(root / "src", (".ts",))), root / "src") == {"keep.ts"}

    def test_hidden_files_are_not_excluded(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"src/.eslintrc.js": ""})
        assert _names(list(walk_files(root / "src", (".js",))), root / "src") == {".eslintrc.js"}

    def test_extra_exclusion_patterns(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree(
            {"src/keep.ts": "", "src/generated/skip.ts": "", "src/gen-api/skip.ts": ""}
        )
        found = list(walk_files(root / "src", (".ts",), ("generated", "gen-*")))
        assert _names(found, root / "src") == {"keep.ts"}

    def test_build_output_names_are_walked_by_default(
        self, write_tree: Callable[..., Path]
    ) -> None:
        root = write_tree(
            {
                "src/ok.ts": "",
                "src/build/pipeline.ts": "let x: any;",
                "src/dist/out.ts": "",
                "src/coverage/report.ts": "",
            }
        )
        found = list(walk_files(root / "src", (".ts",)))
        assert _names(found, root / "src") == {
            "ok.ts",
            "build/pipeline.ts",
            "dist/out.ts",
            "coverage/report.ts",
        }

    def test_exclusions_match_paths_relative_to_root(
        self, write_tree: Callable[..., Path]
    ) -> None:
        root = write_tree(
            {
                "src/legacy/old/a.ts": "",
                "src/other/old/b.ts": "",
                "src/nested/build/c.ts": "",
                "src/keep.ts": "",
            }
        )
        found = list(walk_files(root / "src", (".ts",), ("legacy/old", "build/")))
        assert _names(found, root / "src") == {"other/old/b.ts", "keep.ts"}

    def test_blank_exclusion_patterns_are_ignored(
        self, write_tree: Callable[..., Path]
    ) -> None:
        root = write_tree({"src/a.ts": ""})
        assert _names(list(walk_files(root / "src", (), ("", "  "))), root / "src") == {"a.ts"}

    @pytest.mark.skipif(os.name == "nt", reason="needs POSIX symlinks")
    def test_follows_symlinked_directories_once(
        self, write_tree: Callable[..., Path], tmp_path: Path
    ) -> None:
        root = write_tree({"src/a.ts": ""})
        shared = tmp_path / "shared"
        shared.mkdir()
        (shared / "lib.ts").write_text("", encoding="utf-8")
        (root / "src" / "linked").symlink_to(shared, target_is_directory=True)
        (root / "src" / "loop").symlink_to(root / "src", target_is_directory=True)

        found = list(walk_files(root / "src", (".ts",)))
        assert _names(found, root / "src") == {"a.ts", "linked/lib.ts"}

    def test_is_lazy(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"src/a.ts": ""})
        iterator = walk_files(root / "src")
        assert next(iterator).name == "a.ts"

    @pytest.mark.skipif(os.name == "nt" or os.geteuid() == 0, reason="needs POSIX permissions")
    def test_unreadable_subtree_is_skipped(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"src/ok.ts": "", "src/locked/hidden.ts": ""})
        locked = root / "src" / "locked"
        locked.chmod(0o000)
        try:
            found = list(walk_files(root / "src", (".ts",)))
        finally:
            locked.chmod(0o755)
        assert _names(found, root / "src") == {"ok.ts"}


class TestCollectFiles:
    def test_resolves_directory_against_root(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"src/a.ts": "", "other/b.ts": ""})
        files = collect_files(root, WalkerConfig(directory="src", extensions=(".ts",)))
        assert isinstance(files, tuple)
        assert [p.name for p in files] == ["a.ts"]

    def test_audit_defaults_exclude_build_output(self, write_tree: Callable[..., Path]) -> None:
        root = write_tree({"src/a.ts": "", "src/build/b.ts": "", "src/dist/c.ts": ""})
        defaults = AuditConfig()
        config = WalkerConfig(
            directory="src", extensions=(".ts",), excluded_dirs=tuple(defaults.excluded_dirs)
        )
        assert [p.name for p in collect_files(root, config)] == ["a.ts"]

    def test_missing_directory_is_empty(self, project: Path) -> None:
        assert collect_files(project, WalkerConfig(directory="src")) == ()
