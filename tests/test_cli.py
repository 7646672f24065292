"""CLI tests for library, thumbnail, story and archive commands."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner
from PIL import Image

from mediashelf.archive import ArchiveClient
from mediashelf.cli import cli

SEARCH_RESPONSE = {
    "response": {
        "numFound": 1,
        "docs": [{"identifier": "newsreel", "title": "Newsreel", "mediatype": "movies"}],
    }
}
METADATA_RESPONSE = {
    "metadata": {"identifier": "newsreel", "title": "Newsreel", "mediatype": "movies"},
    "files": [{"name": "newsreel.mp4", "source": "original"}],
}


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    env.pop("MEDIASHELF__LIBRARY__LAST_PATH", None)
    return env


def _library(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    (root / "trips").mkdir(parents=True)
    Image.new("RGB", (300, 200), (30, 60, 90)).save(root / "trips" / "beach.jpg")
    Image.new("RGB", (40, 40)).save(root / "avatar.png")
    (root / "theme.mp3").write_bytes(b"ID3")
    (root / "notes.txt").write_text("ignored", encoding="utf-8")
    return root


def _json(output: str) -> Any:
    return json.loads(output)


@pytest.fixture
def mock_archive(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.startswith("/metadata/"):
            return httpx.Response(200, json=METADATA_RESPONSE)
        return httpx.Response(200, json=SEARCH_RESPONSE)

    def _factory(settings=None) -> ArchiveClient:
        http = httpx.AsyncClient(
            base_url="https://archive.org", transport=httpx.MockTransport(handler)
        )
        return ArchiveClient(settings, http_client=http)

    monkeypatch.setattr("mediashelf.app.ArchiveClient", _factory)
    return requests


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "MediaShelf browses local media" in result.output
    for command in ("scan", "thumbs", "stories", "archive", "config"):
        assert command in result.output


def test_scan_json_reports_files_and_view(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["scan", str(root), "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = _json(result.stdout)
    assert payload["total"] == 3
    assert payload["counts"] == {"document": 0, "audio": 1, "video": 0, "image": 2}
    assert [entry["name"] for entry in payload["files"]] == ["avatar", "beach", "theme"]
    assert payload["view"]["pages"] == 1
    assert len(payload["view"]["files"]) == 3


def test_scan_filters_and_remembers_library(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["scan", str(root), "--json"], env=env)

    result = runner.invoke(
        cli, ["scan", "--kind", "image", "--search", "TRIPS", "--json"], env=env
    )

    assert result.exit_code == 0, result.output
    view = _json(result.stdout)["view"]
    assert view["kind"] == "image"
    assert view["matches"] == 1


def test_scan_text_output_prints_summary(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()

    result = runner.invoke(cli, ["scan", str(root)], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    assert "Scan summary" in result.output


def test_scan_missing_path_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["scan", str(tmp_path / "missing"), "--json"], env=env)

    assert result.exit_code == 1
    assert _json(result.stdout) == {"files": [], "error": "not found"}

    result = runner.invoke(cli, ["scan", str(tmp_path / "missing")], env=env)
    assert result.exit_code != 0
    assert "not found" in result.output


def test_scan_rejects_quiet_with_json(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()

    result = runner.invoke(
        cli, ["scan", str(root), "--json", "--quiet"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    assert "--json cannot be combined with --quiet" in result.output


def test_thumbs_generate_then_hit_cache(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    first = runner.invoke(cli, ["thumbs", "generate", str(root), "--json"], env=env)
    second = runner.invoke(cli, ["thumbs", "generate", str(root), "--json"], env=env)

    assert first.exit_code == 0, first.output
    assert _json(first.stdout)["counts"] == {"generated": 2, "cached": 0, "unavailable": 1}
    assert _json(second.stdout)["counts"] == {"generated": 0, "cached": 2, "unavailable": 1}

    cleared = runner.invoke(cli, ["thumbs", "clear"], env=env)
    assert cleared.exit_code == 0
    assert "cleared" in cleared.output
    store = tmp_path / "home" / ".mediashelf" / "store"
    assert not any(entry.name.startswith("thumb_") for entry in store.iterdir())


def test_story_lifecycle(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    created = runner.invoke(cli, ["stories", "create", "Summer", "--json"], env=env)
    assert created.exit_code == 0, created.output
    story_id = _json(created.stdout)["id"]

    edited = runner.invoke(
        cli,
        ["stories", "edit", story_id, "--add", "a", "--add", "b", "--remove", "a", "--json"],
        env=env,
    )
    assert edited.exit_code == 0, edited.output
    assert _json(edited.stdout)["items"] == ["b"]

    listed = runner.invoke(cli, ["stories", "list", "--json"], env=env)
    assert [story["name"] for story in _json(listed.stdout)] == ["Summer"]

    shown = runner.invoke(cli, ["stories", "show", story_id, "--json"], env=env)
    assert shown.exit_code == 0, shown.output
    assert _json(shown.stdout)["items"] == [{"id": "b", "status": "missing", "item": None}]

    renamed = runner.invoke(cli, ["stories", "update", story_id, "--name", "Autumn"], env=env)
    assert renamed.exit_code == 0
    assert "Autumn" in renamed.output

    deleted = runner.invoke(cli, ["stories", "delete", story_id], env=env)
    assert deleted.exit_code == 0

    missing = runner.invoke(cli, ["stories", "show", story_id, "--json"], env=env)
    assert missing.exit_code == 1
    assert _json(missing.stdout)["error"]["code"] == "story_not_found"


def test_story_show_resolves_local_files(tmp_path: Path) -> None:
    root = _library(tmp_path)
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    scan = _json(runner.invoke(cli, ["scan", str(root), "--json"], env=env).stdout)
    theme_id = next(entry["id"] for entry in scan["files"] if entry["name"] == "theme")
    story_id = _json(runner.invoke(cli, ["stories", "create", "S", "--json"], env=env).stdout)["id"]
    runner.invoke(cli, ["stories", "edit", story_id, "--add", theme_id], env=env)

    shown = runner.invoke(cli, ["stories", "show", story_id, "--json"], env=env)

    (entry,) = _json(shown.stdout)["items"]
    assert entry["status"] == "local"
    assert entry["item"]["relative_path"] == "theme.mp3"


def test_stories_list_empty_hint(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["stories", "list"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0
    assert "No stories yet" in result.output


def test_archive_search_json(tmp_path: Path, mock_archive: list[httpx.Request]) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["archive", "search", "news", "--kind", "video", "--rows", "5", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    payload = _json(result.stdout)
    assert payload["totalPages"] == 1
    assert payload["items"][0]["id"] == "archive_newsreel"
    assert mock_archive[0].url.params["q"] == "news AND mediatype:movies"
    assert mock_archive[0].url.params["rows"] == "5"


def test_archive_import_into_story(tmp_path: Path, mock_archive: list[httpx.Request]) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    story_id = _json(runner.invoke(cli, ["stories", "create", "News", "--json"], env=env).stdout)[
        "id"
    ]

    result = runner.invoke(cli, ["archive", "import", "newsreel", "--story", story_id], env=env)

    assert result.exit_code == 0, result.output
    assert "archive_newsreel" in result.output
    shown = _json(runner.invoke(cli, ["stories", "show", story_id, "--json"], env=env).stdout)
    assert shown["items"][0]["status"] == "external"
    assert shown["items"][0]["item"]["stream_url"].endswith("/download/newsreel/newsreel.mp4")


def test_archive_import_unknown_story_reports_error(
    tmp_path: Path, mock_archive: list[httpx.Request]
) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["archive", "import", "newsreel", "--story", "404", "--json"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 1
    assert _json(result.stdout)["error"]["code"] == "import_error"
