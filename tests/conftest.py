"""Shared test fixtures for skolschema.

Provides reusable fixtures for building Skola24 response envelopes, a
mock-transport backed client stack, isolated config environments, and the
CLI runner. These fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from skolschema.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; Typer's CliRunner swaps those streams, so a manager
    surviving a test would write to a closed file.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Envelope payloads
# ---------------------------------------------------------------------------


def make_envelope(data: Any, error: Any = None) -> dict[str, Any]:
    """Build a response envelope dict around *data*."""
    return {
        "error": error,
        "data": data,
        "exception": None,
        "validation": [],
        "sessionExpires": None,
        "needSessionRefresh": False,
    }


def failure_data(*errors: tuple[int, str]) -> dict[str, Any]:
    """Build the failure shape of ``data`` with the given ``(id, description)`` pairs."""
    return {
        "errors": None,
        "validationErrors": [{"id": i, "description": d} for i, d in errors],
    }


@pytest.fixture
def envelope() -> Callable[..., dict[str, Any]]:
    """The :func:`make_envelope` builder."""
    return make_envelope


@pytest.fixture
def failure() -> Callable[..., dict[str, Any]]:
    """The :func:`failure_data` builder."""
    return failure_data


@pytest.fixture
def schools_data() -> dict[str, Any]:
    """Success payload of the viewer-units listing with two schools."""
    return {
        "getTimetableViewerUnitsResponse": {
            "hostName": "example.skola24.se",
            "units": [
                {"unitGuid": "guid-norra", "unitId": "Norra skolan"},
                {"unitGuid": "guid-sodra", "unitId": "Södra skolan"},
            ],
        }
    }


@pytest.fixture
def classes_data() -> dict[str, Any]:
    """Success payload of the selection listing with two classes."""
    return {
        "classes": [
            {"groupGuid": "guid-7a", "groupName": "7A"},
            {"groupGuid": "guid-7b", "groupName": "7B"},
        ]
    }


@pytest.fixture
def schema_data() -> dict[str, Any]:
    """A small rendered timetable: a heading, one lesson, a line."""
    return {
        "textList": [
            {
                "x": 0, "y": 0, "fColor": "#000000", "fontsize": 20.0,
                "text": "Mon", "bold": False, "italic": False,
                "id": 10, "parentId": 1, "type": "HeadingDay",
            },
            {
                "x": 12, "y": 60, "fColor": "#1a2b3c", "fontsize": 12.5,
                "text": "Matematik", "bold": False, "italic": False,
                "id": 11, "parentId": 2, "type": "Lesson",
            },
        ],
        "boxList": [
            {
                "x": 0, "y": 0, "width": 100, "height": 50,
                "bColor": "#ffffff", "fColor": "#000000",
                "id": 1, "parentId": None, "type": "HeadingDay",
            },
            {
                "x": 10, "y": 55, "width": 90, "height": 40,
                "bColor": "#ccffcc", "fColor": "#000000",
                "id": 2, "parentId": None, "type": "Lesson",
                "lessonGuids": ["lesson-1"],
            },
        ],
        "lineList": [
            {
                "p1x": 0, "p1y": 100, "p2x": 100, "p2y": 100,
                "color": "#c0c0c0", "id": 20, "parentId": 0, "type": "ClockAxis",
            }
        ],
        "lessonInfo": [
            {
                "guidId": "lesson-1",
                "texts": ["Matematik", "JS", "B12"],
                "timeStart": "08:15:00",
                "timeEnd": "09:15:00",
                "dayOfWeekNumber": 1,
                "blockName": "",
            }
        ],
    }


# ---------------------------------------------------------------------------
# Mock service
# ---------------------------------------------------------------------------


class FakeSkola24:
    """Route-table backed stand-in for the Skola24 HTTP API.

    ``routes`` maps a path to a JSON-serialisable body or an
    :class:`httpx.Response`. Every request is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        if path not in self.routes:
            return httpx.Response(404, text="no route")
        route = self.routes[path]
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, text=json.dumps(route))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.removeprefix("/api") == path]


@pytest.fixture
def fake_api() -> FakeSkola24:
    return FakeSkola24()


@pytest.fixture
def render_key_calls() -> list[str]:
    """Records every render key handed out by :func:`render_key_provider`."""
    return []


@pytest.fixture
def render_key_provider(render_key_calls: list[str]) -> Callable[[], Any]:
    """Async render-key provider returning ``key-1``, ``key-2``, ..."""

    async def _provider() -> str:
        key = f"key-{len(render_key_calls) + 1}"
        render_key_calls.append(key)
        return key

    return _provider


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config, and clears all SKOLSCHEMA_* environment variables.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("skolschema.config._is_xdg_platform", lambda: True)

    for var in ["SKOLSCHEMA_BASE_URL", "SKOLSCHEMA_NO_CACHE"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
