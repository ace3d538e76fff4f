"""Tests for cyparallel.sharding.discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from cyparallel.errors import (
    ConfigurationError,
    DirectoryNotFoundError,
    DiscoveryError,
    NoTestFilesFoundError,
    NotADirectoryPathError,
)
from cyparallel.sharding.discovery import discover_test_files, validate_directory


def _touch(root: Path, rel: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return path


class TestValidateDirectory:
    def test_returns_resolved_path(self, tmp_path: Path) -> None:
        assert validate_directory(tmp_path) == tmp_path.resolve()

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(DirectoryNotFoundError, match="does not exist"):
            validate_directory(tmp_path / "nope")

    def test_file_instead_of_directory(self, tmp_path: Path) -> None:
        file_path = _touch(tmp_path, "spec.cy.ts")
        with pytest.raises(NotADirectoryPathError, match="not a directory"):
            validate_directory(file_path)

    def test_errors_are_configuration_errors(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            validate_directory(tmp_path / "nope")


class TestDiscoverTestFiles:
    def test_finds_files_recursively(self, tmp_path: Path) -> None:
        _touch(tmp_path, "login.cy.ts")
        _touch(tmp_path, "admin/users.cy.ts")
        _touch(tmp_path, "admin/deep/roles.cy.js")

        result = discover_test_files(tmp_path)

        assert {p.name for p in result} == {"login.cy.ts", "users.cy.ts", "roles.cy.js"}

    def test_no_extension_filtering_by_default(self, tmp_path: Path) -> None:
        _touch(tmp_path, "a.cy.ts")
        _touch(tmp_path, "notes.txt")

        result = discover_test_files(tmp_path)
        assert len(result) == 2

    def test_patterns_filter_files(self, tmp_path: Path) -> None:
        _touch(tmp_path, "a.cy.ts")
        _touch(tmp_path, "nested/b.cy.ts")
        _touch(tmp_path, "fixtures/data.json")

        result = discover_test_files(tmp_path, ["**/*.cy.ts"])
        assert sorted(p.name for p in result) == ["a.cy.ts", "b.cy.ts"]

    def test_order_is_stable(self, tmp_path: Path) -> None:
        for name in ("z.cy.ts", "a.cy.ts", "m/b.cy.ts", "c.cy.ts"):
            _touch(tmp_path, name)

        first = discover_test_files(tmp_path)
        second = discover_test_files(tmp_path)

        assert first == second
        assert [p.relative_to(tmp_path.resolve()).as_posix() for p in first] == [
            "a.cy.ts",
            "c.cy.ts",
            "m/b.cy.ts",
            "z.cy.ts",
        ]

    def test_returns_absolute_paths(self, tmp_path: Path) -> None:
        _touch(tmp_path, "a.cy.ts")
        assert all(p.is_absolute() for p in discover_test_files(tmp_path))

    def test_empty_directory(self, tmp_path: Path) -> None:
        (tmp_path / "empty").mkdir()
        with pytest.raises(NoTestFilesFoundError):
            discover_test_files(tmp_path / "empty")

    def test_only_subdirectories(self, tmp_path: Path) -> None:
        (tmp_path / "a" / "b").mkdir(parents=True)
        with pytest.raises(DiscoveryError):
            discover_test_files(tmp_path)

    def test_patterns_matching_nothing(self, tmp_path: Path) -> None:
        _touch(tmp_path, "readme.md")
        with pytest.raises(NoTestFilesFoundError):
            discover_test_files(tmp_path, ["**/*.cy.ts"])

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(DirectoryNotFoundError):
            discover_test_files(tmp_path / "missing")

    def test_not_a_directory(self, tmp_path: Path) -> None:
        file_path = _touch(tmp_path, "a.cy.ts")
        with pytest.raises(NotADirectoryPathError):
            discover_test_files(file_path)
