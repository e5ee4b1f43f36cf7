from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Literal, Optional, Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from .config import APP_NAME, Config, ConfigStore, LogView
from .errors import LogtabError
from .services import read_lines
from .viewer import SaveViews, Theme, Viewer
from .widgets.frame import ViewFrame

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_xdg_state_home() -> Path:
    xdg = os.environ.get("XDG_STATE_HOME")
    if xdg:
        return Path(xdg).expanduser()
    return Path.home() / ".local" / "state"


def default_log_file() -> Path:
    return get_xdg_state_home() / APP_NAME / f"{APP_NAME}.log"


class LogtabApp(App[None]):
    CSS = """
    Screen { layout: vertical; }

    #view-frame {
        height: 1fr;
    }

    #hint-bar {
        height: 1;
        padding: 0 1;
        color: $text-muted;
        background: $surface 6%;
    }

    Toast {
        border: none;
        background: $surface 12%;
        color: $text;
    }

    Toast.-information {
        background: #14532d;
        color: #f0fdf4;
    }

    Toast.-error {
        background: #7f1d1d;
        color: #fee2e2;
    }
    """
    BINDINGS = [
        Binding("ctrl+c", "quit_app", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        config: Config,
        view: LogView,
        rows: Sequence[str],
        store: ConfigStore,
        *,
        theme: Theme | None = None,
        started_at: float | None = None,
    ) -> None:
        super().__init__()
        self._config = config
        self._store = store
        self._started_at = started_at if started_at is not None else time.perf_counter()
        self.viewer = Viewer(view, rows)
        self.frame = ViewFrame(self.viewer, theme, id="view-frame")
        self.hint_bar = Static(self.viewer.hint(), id="hint-bar")
        self.title = f"{APP_NAME} · {view.name}"

    def compose(self) -> ComposeResult:
        yield self.frame
        yield self.hint_bar

    def on_mount(self) -> None:
        self.frame.focus()
        self.call_after_refresh(self._log_first_draw)

    def _log_first_draw(self) -> None:
        elapsed_ms = (time.perf_counter() - self._started_at) * 1000
        logger.info("Time to first draw: %d ms", elapsed_ms)

    def action_quit_app(self) -> None:
        # ctrl+c is bound with priority and never reaches the frame.
        for effect in self.viewer.quit():
            if isinstance(effect, SaveViews):
                self._save_views(effect.view)
        self.exit()

    def on_view_frame_quit_requested(self, message: ViewFrame.QuitRequested) -> None:
        self.exit()

    def on_view_frame_changed(self, message: ViewFrame.Changed) -> None:
        self.hint_bar.update(self.viewer.hint())

    def on_view_frame_save_requested(self, message: ViewFrame.SaveRequested) -> None:
        self._save_views(message.view)

    def _save_views(self, view: LogView) -> None:
        try:
            self._store.save(self._config)
        except OSError as exc:
            logger.error("Failed to save views to %s: %s", self._store.path, exc)
            self._show_message(f"Failed to save view '{view.name}': {exc}", "error")
            return
        self._show_message(f"Saved view '{view.name}'.")

    def _show_message(self, text: str, severity: Literal["info", "error"] = "info") -> None:
        toast_severity = "error" if severity == "error" else "information"
        self.notify(text, severity=toast_severity, title="", markup=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_NAME, description="Browse line-oriented log files as a table.")
    parser.add_argument("--config", type=Path, help="Path to the views file (default: XDG config home).")
    parser.add_argument("--view", help="Name of the view to open (default: the first one).")
    parser.add_argument("--log-file", type=Path, help="Where to write logtab's own log.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    return parser


def configure_logging(path: Path, level: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(path),
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


def run(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - script entry point
    started_at = time.perf_counter()
    args = build_parser().parse_args(argv)
    try:
        configure_logging(args.log_file or default_log_file(), args.log_level)
    except OSError as exc:
        print(f"[ERROR] Cannot open log file: {exc}", file=sys.stderr)
        sys.exit(1)

    store = ConfigStore(args.config)
    try:
        config = store.load()
        view = config.view(args.view)
        rows = read_lines(view)
    except LogtabError as exc:
        logger.error("Startup failed: %s", exc)
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(1)

    LogtabApp(config, view, rows, store, started_at=started_at).run()
