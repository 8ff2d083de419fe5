"""
Unit tests for ScriptLoader.

Covers name sanitizing, lookup failures, and listing.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from backend.core.errors import ScriptNotFound
from backend.core.script_loader import SCRIPTS_DIR, ScriptLoader, safe_script_name
from fakes import PASSING_SCRIPT


class TestSafeScriptName:
    """Tests for safe_script_name()."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("passing.sql", "passing.sql"),
            ("../secret.sql", "secret.sql"),
            ("../../etc/passwd", "passwd"),
            ("/abs/path/x.sql", "x.sql"),
            ("..\\secret.sql", "secret.sql"),
            ("dir/", "dir"),
            ("..", ".."),
            ("", ""),
        ],
    )
    def test_keeps_only_final_component(self, raw: str, expected: str) -> None:
        assert safe_script_name(raw) == expected


class TestResolve:
    """Tests for ScriptLoader.resolve()."""

    def test_reads_script_text(self, scripts_dir: Path) -> None:
        loader = ScriptLoader(scripts_dir)
        assert loader.resolve("passing.sql") == PASSING_SCRIPT

    def test_missing_script_raises(self, scripts_dir: Path) -> None:
        loader = ScriptLoader(scripts_dir)
        with pytest.raises(ScriptNotFound) as exc_info:
            loader.resolve("nope.sql")
        assert exc_info.value.name == "nope.sql"

    def test_parent_traversal_never_reads_outside(self, scripts_dir: Path) -> None:
        """../secret.sql exists one level up but must not be reachable."""
        assert (scripts_dir.parent / "secret.sql").exists()
        loader = ScriptLoader(scripts_dir)
        with pytest.raises(ScriptNotFound):
            loader.resolve("../secret.sql")

    def test_traversal_resolves_to_same_named_file_inside(
        self, scripts_dir: Path
    ) -> None:
        """The directory part is dropped, so ../passing.sql is passing.sql."""
        loader = ScriptLoader(scripts_dir)
        assert loader.resolve("../passing.sql") == PASSING_SCRIPT

    @pytest.mark.parametrize(
        "name", ["", ".", "..", "../", "/", "passing\x00.sql", "../\x00"]
    )
    def test_degenerate_names_not_found(self, scripts_dir: Path, name: str) -> None:
        loader = ScriptLoader(scripts_dir)
        with pytest.raises(ScriptNotFound):
            loader.resolve(name)

    def test_directory_is_not_a_script(self, scripts_dir: Path) -> None:
        (scripts_dir / "nested.sql").mkdir()
        loader = ScriptLoader(scripts_dir)
        with pytest.raises(ScriptNotFound):
            loader.resolve("nested.sql")

    def test_symlink_escaping_directory_not_followed(self, scripts_dir: Path) -> None:
        link = scripts_dir / "link.sql"
        link.symlink_to(scripts_dir.parent / "secret.sql")
        loader = ScriptLoader(scripts_dir)
        with pytest.raises(ScriptNotFound):
            loader.resolve("link.sql")


class TestListScripts:
    """Tests for ScriptLoader.list_scripts()."""

    def test_lists_sql_files_sorted(self, scripts_dir: Path) -> None:
        loader = ScriptLoader(scripts_dir)
        assert loader.list_scripts() == ["mixed.sql", "passing.sql"]

    def test_missing_directory_lists_nothing(self, tmp_path: Path) -> None:
        loader = ScriptLoader(tmp_path / "does-not-exist")
        assert loader.list_scripts() == []

    def test_default_directory_ships_examples(self) -> None:
        loader = ScriptLoader()
        assert loader.scripts_dir == SCRIPTS_DIR.resolve()
        assert "test_arithmetic.sql" in loader.list_scripts()
