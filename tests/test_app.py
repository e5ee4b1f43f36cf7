from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock

from logtab.app import LogtabApp, build_parser, default_log_file
from logtab.config import Attribute, Config, ConfigStore, LogView
from logtab.viewer import ViewState

ROWS = [
    '{"level":"info","msg":"hello world","time":"2020-01-01T00:00:00Z"}',
    '{"level":"warn","msg":"goodbye world","time":"2020-01-01T00:00:01Z"}',
]


def _config() -> Config:
    return Config(
        views=[
            LogView(
                name="app",
                options={"filename": "/var/log/app.log"},
                attributes=[
                    Attribute(name="Level", width=6, selectors=["json(level)"]),
                    Attribute(name="Message", width=30, selectors=["json(msg)"]),
                ],
            )
        ]
    )


def _app(store: ConfigStore) -> LogtabApp:
    config = _config()
    return LogtabApp(config, config.views[0], ROWS, store)


def test_keys_reach_the_viewer(tmp_path: Path) -> None:

    async def scenario() -> None:
        app = _app(ConfigStore(tmp_path / "config.json"))
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.focused is app.frame

            await pilot.press("j")
            assert app.viewer.table.cursor == 1

            await pilot.press("space")
            assert app.viewer.state is ViewState.ZOOM

            await pilot.press("escape")
            assert app.viewer.state is ViewState.TABLE

            await pilot.press("s")
            assert app.viewer.state is ViewState.SCHEMA

    asyncio.run(scenario())


def test_closing_an_edited_schema_writes_the_config(tmp_path: Path) -> None:
    config_path = tmp_path / "logtab" / "config.json"

    async def scenario() -> None:
        app = _app(ConfigStore(config_path))
        async with app.run_test() as pilot:
            mock_notify = MagicMock()
            app.notify = mock_notify

            await pilot.press("s", "d", "escape")
            await pilot.pause()

            assert app.viewer.state is ViewState.TABLE
            kwargs = mock_notify.call_args_list[-1].kwargs
            assert kwargs["severity"] == "information"
            assert kwargs["title"] == ""
            assert kwargs["markup"] is False

    asyncio.run(scenario())

    data = json.loads(config_path.read_text(encoding="utf-8"))
    assert [attr["name"] for attr in data["views"][0]["attributes"]] == ["Message"]


def test_failed_save_shows_an_error_toast(tmp_path: Path) -> None:

    async def scenario() -> None:
        store = MagicMock(spec=ConfigStore)
        store.path = tmp_path / "readonly" / "config.json"
        store.save.side_effect = PermissionError("read-only file system")
        app = _app(store)
        async with app.run_test() as pilot:
            notifications: list[tuple[str, str]] = []

            def record(message: str, *, severity: str, **_: object) -> None:
                notifications.append((message, severity))

            app.notify = MagicMock(side_effect=record)

            await pilot.press("slash", "n", "x", "enter", "escape")
            await pilot.pause()

            assert store.save.call_count == 1
            assert notifications
            message, severity = notifications[-1]
            assert severity == "error"
            assert "read-only file system" in message
            assert app.viewer.filtered_rows == []

    asyncio.run(scenario())


def test_quit_key_exits() -> None:

    async def scenario() -> None:
        app = _app(MagicMock(spec=ConfigStore))
        async with app.run_test() as pilot:
            app.exit = MagicMock()
            await pilot.press("q")
            await pilot.pause()
            app.exit.assert_called_once_with()

    asyncio.run(scenario())


def test_parser_defaults(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))

    args = build_parser().parse_args([])

    assert args.config is None
    assert args.view is None
    assert args.log_level == "INFO"
    assert default_log_file() == tmp_path / "logtab" / "logtab.log"

    args = build_parser().parse_args(["--config", "views.json", "--view", "nginx"])
    assert args.config == Path("views.json")
    assert args.view == "nginx"


def test_ctrl_c_saves_accepted_edits_before_exiting(tmp_path: Path) -> None:
    config_path = tmp_path / "config.json"

    async def scenario() -> None:
        app = _app(ConfigStore(config_path))
        async with app.run_test() as pilot:
            app.exit = MagicMock()
            await pilot.press("s", "d", "ctrl+c")
            await pilot.pause()
            app.exit.assert_called_once_with()

    asyncio.run(scenario())

    data = json.loads(config_path.read_text(encoding="utf-8"))
    assert [attr["name"] for attr in data["views"][0]["attributes"]] == ["Message"]
