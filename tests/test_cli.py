"""CLI tests for collection commands."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING

from click.testing import CliRunner

from movietag.cli import cli
from movietag.collection import MovieId

if TYPE_CHECKING:
    from conftest import Library

ALIEN_HEX = MovieId.from_path("Alien (1979)").hex()


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    """Return environment variables pointing HOME to a temp directory.

    Args:
        tmp_path: Temporary directory provided by pytest.

    Returns:
        dict[str, str]: Environment mapping with HOME set.
    """
    env = {key: value for key, value in os.environ.items() if not key.startswith("MOVIETAG__")}
    env["HOME"] = str(tmp_path / "home")
    return env


def _invoke(library: Library, tmp_path: Path, *args: str):
    runner = CliRunner()
    roots = ["--movie-dir", str(library.movie_root), "--tag-dir", str(library.tag_root)]
    return runner.invoke(cli, [*roots, *args], env=_env_with_home(tmp_path))


def test_cli_help_lists_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "movietag tags movie folders" in result.output
    for command in ("movies", "tags", "show", "toggle", "summary", "config"):
        assert command in result.output


def test_movies_json_lists_movies(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "movies", "--json")

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["movies"] == [
        {
            "id": ALIEN_HEX,
            "name": "Alien (1979)",
            "path": str(alien_library.movie_root / "Alien (1979)"),
            "poster": str(alien_library.movie_root / "Alien (1979)" / "poster.jpg"),
            "tags": ["SciFi"],
        }
    ]


def test_movies_table_output(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "movies")

    assert result.exit_code == 0, result.output
    assert "Movies" in result.output
    assert "SciFi" in result.output


def test_tags_json_includes_empty_tags(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "tags", "--json")

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["tags"] == [
        {"name": "Horror", "count": 0, "movies": []},
        {"name": "SciFi", "count": 1, "movies": ["Alien (1979)"]},
    ]


def test_show_lists_tag_states(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "show", ALIEN_HEX)

    assert result.exit_code == 0, result.output
    assert "Alien (1979)" in result.output
    assert "Horror" in result.output
    assert "SciFi" in result.output


def test_toggle_creates_and_removes_link(alien_library: Library, tmp_path: Path) -> None:
    link = alien_library.tag_root / "Horror" / "Alien (1979)"

    first = _invoke(alien_library, tmp_path, "toggle", ALIEN_HEX, "Horror", "--json")

    assert first.exit_code == 0, first.output
    assert json.loads(first.output) == {"movie": ALIEN_HEX, "tag": "Horror", "tagged": True}
    assert link.is_symlink()

    second = _invoke(alien_library, tmp_path, "toggle", ALIEN_HEX, "Horror")

    assert second.exit_code == 0, second.output
    assert "Removed Horror" in second.output
    assert not link.is_symlink()


def test_toggle_unknown_tag_reports_not_found(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "toggle", ALIEN_HEX, "Comedy", "--json")

    assert result.exit_code == 1
    assert json.loads(result.output)["error"]["code"] == "not_found"
    assert not (alien_library.tag_root / "Comedy").exists()


def test_show_rejects_malformed_id(alien_library: Library, tmp_path: Path) -> None:
    result = _invoke(alien_library, tmp_path, "show", "not-a-hash")

    assert result.exit_code == 1
    assert "Invalid identifier" in result.output


def test_missing_roots_is_usage_error(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["summary"], env=_env_with_home(tmp_path))

    assert result.exit_code == 2
    assert "movie directory" in result.output


def test_summary_uses_configured_roots(alien_library: Library, tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(
        cli, ["config", "set", "library.movie_dir", "--value", str(alien_library.movie_root)], env=env
    )
    runner.invoke(
        cli, ["config", "set", "library.tag_dir", "--value", str(alien_library.tag_root)], env=env
    )

    result = runner.invoke(cli, ["summary", "--json"], env=env)

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {
        "movie_dir": str(alien_library.movie_root),
        "tag_dir": str(alien_library.tag_root),
        "movie_count": 1,
        "tag_count": 2,
    }
