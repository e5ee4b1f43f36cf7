"""
The state machine behind the log view screen.

`Viewer.handle()` takes one event at a time (a key or a resize), updates the
active sub-view and returns the effects the caller must carry out (quitting,
persisting the views). Nothing here touches the terminal or the disk, so the
whole interaction can be driven from tests.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from rich.console import RenderableType
from rich.syntax import Syntax
from rich.text import Text

from .config import Attribute, Filter, LogView
from .editor import Close, DefinitionListEditor, EditorSignal, EditorStyles, Updated
from .filters import filter_rows
from .schema import schema_editor
from .search import search_editor
from .selectors import INVALID_MARKER
from .table import Column, Table, TableStyles

logger = logging.getLogger(__name__)

ZOOM_KEYS = frozenset({"space", " "})
SCHEMA_KEYS = frozenset({"s"})
SEARCH_KEYS = frozenset({"slash", "/"})
QUIT_KEYS = frozenset({"q"})
GLOBAL_QUIT_KEYS = frozenset({"ctrl+c"})
# Header line and the rule beneath it.
TABLE_CHROME_LINES = 2


class ViewState(Enum):
    TABLE = "table"
    ZOOM = "zoom"
    SCHEMA = "schema"
    SEARCH = "search"


@dataclass(frozen=True)
class Key:
    key: str
    character: Optional[str] = None


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


Event = Union[Key, Resize]


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class SaveViews:
    """Persist the views; *view* is the one whose definitions changed."""

    view: LogView


Effect = Union[Quit, SaveViews]


@dataclass(frozen=True)
class Theme:
    table: TableStyles = field(default_factory=TableStyles)
    editor: EditorStyles = field(default_factory=EditorStyles)
    syntax: str = "ansi_dark"


HINTS = {
    ViewState.TABLE: "space zoom · s schema · / search · ←/→ columns · ctrl+←/→ resize · q quit",
    ViewState.ZOOM: "space/esc back",
}


class Viewer:
    def __init__(
        self,
        view: LogView,
        rows: Sequence[str],
        *,
        width: int = 80,
        height: int = 24,
    ) -> None:
        self.view = view
        self.state = ViewState.TABLE
        self._rows: list[str] = list(rows)
        self._filtered: list[str] = []
        self._width = width
        self._height = height
        self._pending_save = False
        self.table = Table(width=width, height=max(0, height - TABLE_CHROME_LINES), focused=True)
        self.schema: DefinitionListEditor[Attribute] = schema_editor(view, width, height)
        self.search: DefinitionListEditor[Filter] = search_editor(view, width, height)
        self.set_attributes(view.attributes)
        self.set_filters(view.filters)

    @property
    def rows(self) -> list[str]:
        return self._rows

    @property
    def filtered_rows(self) -> list[str]:
        return self._filtered

    def set_attributes(self, attributes: Sequence[Attribute]) -> None:
        previous = self.view.attributes
        self.view.attributes = list(attributes)
        self.table.set_columns([Column.from_attribute(attr) for attr in self.view.attributes])
        if self._retarget_filters(previous):
            self.set_filters(self.view.filters)
            self.search.reset(self.view.filters)

    def _retarget_filters(self, previous: Sequence[Attribute]) -> bool:
        """Follow renamed attributes in filters and drop references to deleted ones."""
        renamed: dict[str, str] = {}
        # Edits and creates keep positions; a shorter list means something was deleted.
        if len(self.view.attributes) >= len(previous):
            renamed = {old.name: new.name for old, new in zip(previous, self.view.attributes)}
        names = {attr.name for attr in self.view.attributes}
        changed = False
        for flt in self.view.filters:
            if flt.attr is None:
                continue
            target = renamed.get(flt.attr, flt.attr)
            if target not in names:
                target = None
            if target != flt.attr:
                logger.info("Filter on %r now targets %r", flt.attr, target)
                flt.attr = target
                changed = True
        return changed

    def set_filters(self, filters: Sequence[Filter]) -> None:
        self.view.filters = list(filters)
        self._filtered = filter_rows(self._rows, self.view.filters)
        self.table.set_rows(self._filtered)
        logger.debug("%d of %d rows match %d filter(s)", len(self._filtered), len(self._rows), len(filters))

    def handle(self, event: Event) -> list[Effect]:
        if isinstance(event, Resize):
            self._resize(event.width, event.height)
            return []
        if event.key in GLOBAL_QUIT_KEYS:
            return self.quit()
        if self.state is ViewState.TABLE:
            return self._handle_table(event)
        if self.state is ViewState.ZOOM:
            if event.key in ZOOM_KEYS or event.key == "escape":
                self._enter(ViewState.TABLE)
            return []
        if self.state is ViewState.SCHEMA:
            return self._handle_editor(self.schema.handle(event.key, event.character), self.set_attributes)
        return self._handle_editor(self.search.handle(event.key, event.character), self.set_filters)

    def quit(self) -> list[Effect]:
        """Effects for leaving the app; accepted edits not yet saved come first."""
        effects: list[Effect] = []
        if self._pending_save:
            self._pending_save = False
            effects.append(SaveViews(self.view))
        effects.append(Quit())
        return effects

    def _handle_table(self, event: Key) -> list[Effect]:
        if event.key in QUIT_KEYS:
            return self.quit()
        if event.key in ZOOM_KEYS:
            self._enter(ViewState.ZOOM)
        elif event.key in SCHEMA_KEYS:
            self._enter(ViewState.SCHEMA)
        elif event.key in SEARCH_KEYS:
            self._enter(ViewState.SEARCH)
        else:
            self.table.handle(event.key)
        return []

    def _handle_editor(self, signals: list[EditorSignal], apply: Callable) -> list[Effect]:
        effects: list[Effect] = []
        for signal in signals:
            if isinstance(signal, Updated):
                apply(signal.records)
                self._pending_save = True
                logger.info("Accepted %d definition(s) for view %r", len(signal.records), self.view.name)
            elif isinstance(signal, Close):
                self._enter(ViewState.TABLE)
                if self._pending_save:
                    self._pending_save = False
                    effects.append(SaveViews(self.view))
        return effects

    def _enter(self, state: ViewState) -> None:
        logger.debug("state %s -> %s", self.state.value, state.value)
        self.state = state

    def _resize(self, width: int, height: int) -> None:
        self._width, self._height = width, height
        self.table.set_size(width, height - TABLE_CHROME_LINES)
        self.schema.set_size(width, height)
        self.search.set_size(width, height)

    def hint(self) -> str:
        if self.state is ViewState.SCHEMA:
            return self.schema.hint()
        if self.state is ViewState.SEARCH:
            return self.search.hint()
        if self.state is ViewState.TABLE:
            return f"{len(self._filtered)}/{len(self._rows)} rows · {HINTS[self.state]}"
        return HINTS[self.state]

    def render(self, theme: Theme) -> RenderableType:
        if self.state is ViewState.TABLE:
            return self.table.render(theme.table)
        if self.state is ViewState.ZOOM:
            return self.render_zoom(theme)
        if self.state is ViewState.SCHEMA:
            return self.schema.render(theme.editor)
        return self.search.render(theme.editor)

    def render_zoom(self, theme: Theme) -> RenderableType:
        row = self.table.selected_row()
        if row is None:
            return Text("No rows")
        try:
            parsed = json.loads(row)
        except (ValueError, RecursionError):
            return Text(INVALID_MARKER)
        if not isinstance(parsed, dict):
            return Text(INVALID_MARKER)
        pretty = json.dumps(parsed, indent=4, ensure_ascii=False)
        return Syntax(pretty, "json", theme=theme.syntax, word_wrap=True)
