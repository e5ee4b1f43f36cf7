"""
Virtualized table of log rows.

Rows stay raw strings; a column turns a row into display text only when the
row falls inside the visible window. Only `height` rows are rendered per
frame no matter how many rows the table holds.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from rich.style import Style
from rich.text import Text

from .config import Attribute
from .selectors import compile_attribute

ELLIPSIS = "…"
_FLATTEN = str.maketrans({"\n": " ", "\r": " ", "\t": " "})

TABLE_KEYS: dict[str, str] = {
    "up": "line_up",
    "k": "line_up",
    "down": "line_down",
    "j": "line_down",
    "left": "column_left",
    "h": "column_left",
    "right": "column_right",
    "l": "column_right",
    "pageup": "page_up",
    "ctrl+b": "page_up",
    "pagedown": "page_down",
    "ctrl+f": "page_down",
    "ctrl+u": "half_page_up",
    "ctrl+d": "half_page_down",
    "home": "goto_top",
    "g": "goto_top",
    "end": "goto_bottom",
    "G": "goto_bottom",
    "ctrl+left": "shrink_column",
    "ctrl+h": "shrink_column",
    "ctrl+right": "grow_column",
    "ctrl+l": "grow_column",
}


@dataclass(frozen=True)
class TableStyles:
    header: Style = Style(bold=True)
    cell: Style = Style()
    selected: Style = Style(color="color(229)", bgcolor="color(27)")
    border: Style = Style(color="color(240)")
    empty: Style = Style(color="color(245)", italic=True)
    # Blank cells on each side of a column.
    padding: int = 1


class Column:
    """A titled, resizable column with its value function."""

    def __init__(self, title: str, width: int, getter: Callable[[str], str]) -> None:
        self.title = title
        self.width = width
        self._getter = getter

    @classmethod
    def from_attribute(cls, attr: Attribute) -> "Column":
        return cls(attr.name, attr.width, compile_attribute(attr.selectors, attr.type, attr.format))

    def value(self, row: str) -> str:
        return self._getter(row)


class Table:
    def __init__(
        self,
        columns: Sequence[Column] = (),
        rows: Sequence[str] = (),
        *,
        width: int = 80,
        height: int = 20,
        focused: bool = True,
    ) -> None:
        self._columns: list[Column] = list(columns)
        self._rows: Sequence[str] = rows
        self._cursor = 0
        self._offset = 0
        self._hcursor = 0
        self._width = max(0, width)
        self._height = max(0, height)
        self._focused = focused
        self._rendered: Optional[tuple[TableStyles, Text]] = None

    @property
    def columns(self) -> list[Column]:
        return list(self._columns)

    @property
    def rows(self) -> Sequence[str]:
        return self._rows

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def hcursor(self) -> int:
        return self._hcursor

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def focused(self) -> bool:
        return self._focused

    def focus(self) -> None:
        self._focused = True
        self._invalidate()

    def blur(self) -> None:
        self._focused = False
        self._invalidate()

    def set_columns(self, columns: Sequence[Column]) -> None:
        self._columns = list(columns)
        self._hcursor = _clamp(self._hcursor, 0, len(self._columns) - 1) if self._columns else 0
        self._invalidate()

    def set_rows(self, rows: Sequence[str]) -> None:
        self._rows = rows
        if rows:
            self._cursor = _clamp(self._cursor, 0, len(rows) - 1)
            self._offset = _clamp(self._offset, 0, self._cursor)
        else:
            self._cursor = 0
            self._offset = 0
        self._invalidate()

    def set_size(self, width: int, height: int) -> None:
        self._width = max(0, width)
        self._height = max(0, height)
        if self._rows and self._cursor > self._offset + self._page() - 1:
            self._offset = self._cursor - self._page() + 1
        self._invalidate()

    def selected_row(self) -> Optional[str]:
        if not self._rows:
            return None
        return self._rows[self._cursor]

    def set_cursor(self, index: int) -> None:
        if not self._rows:
            return
        if index < self._cursor:
            self.move_up(self._cursor - index)
        else:
            self.move_down(index - self._cursor)

    def move_up(self, n: int = 1) -> None:
        """Move the cursor up *n* rows, stopping at the first row."""
        if not self._rows:
            return
        self._cursor = _clamp(self._cursor - n, 0, len(self._rows) - 1)
        if self._cursor < self._offset:
            self._offset = self._cursor
        self._invalidate()

    def move_down(self, n: int = 1) -> None:
        """Move the cursor down *n* rows, stopping at the last row."""
        if not self._rows:
            return
        self._cursor = _clamp(self._cursor + n, 0, len(self._rows) - 1)
        if self._cursor > self._offset + self._page() - 1:
            self._offset = self._cursor - self._page() + 1
        self._invalidate()

    def move_left(self, n: int = 1) -> None:
        if not self._columns:
            return
        self._hcursor = _clamp(self._hcursor - n, 0, len(self._columns) - 1)
        self._invalidate()

    def move_right(self, n: int = 1) -> None:
        if not self._columns:
            return
        self._hcursor = _clamp(self._hcursor + n, 0, len(self._columns) - 1)
        self._invalidate()

    def goto_top(self) -> None:
        self.move_up(self._cursor)

    def goto_bottom(self) -> None:
        self.move_down(len(self._rows))

    def shrink_column(self) -> None:
        if not self._columns:
            return
        column = self._columns[self._hcursor]
        column.width = max(0, column.width - 1)
        self._invalidate()

    def grow_column(self) -> None:
        if not self._columns:
            return
        column = self._columns[self._hcursor]
        column.width = max(0, column.width) + 1
        self._invalidate()

    def handle(self, key: str) -> bool:
        """Apply a navigation key. Returns False when the key is not ours."""

        if not self._focused:
            return False
        action = TABLE_KEYS.get(key)
        if action is None:
            return False
        page = self._page()
        if action == "line_up":
            self.move_up(1)
        elif action == "line_down":
            self.move_down(1)
        elif action == "column_left":
            self.move_left(1)
        elif action == "column_right":
            self.move_right(1)
        elif action == "page_up":
            self.move_up(page)
        elif action == "page_down":
            self.move_down(page)
        elif action == "half_page_up":
            self.move_up(max(1, page // 2))
        elif action == "half_page_down":
            self.move_down(max(1, page // 2))
        elif action == "goto_top":
            self.goto_top()
        elif action == "goto_bottom":
            self.goto_bottom()
        elif action == "shrink_column":
            self.shrink_column()
        elif action == "grow_column":
            self.grow_column()
        return True

    def visible_range(self) -> range:
        end = min(self._offset + self._height, len(self._rows))
        return range(self._offset, end)

    def render(self, styles: TableStyles) -> Text:
        """Header, rule and the visible window of rows as one Text block."""

        if self._rendered is not None and self._rendered[0] is styles:
            return self._rendered[1]

        lines = [self._render_header(styles), Text("─" * self._width, style=styles.border)]
        window = self.visible_range()
        for index in window:
            lines.append(self._render_row(index, styles))
        if not self._rows and self._height > 0:
            lines.append(Text("No log lines match the current filters.", style=styles.empty))
        block = Text("\n").join(lines)
        self._rendered = (styles, block)
        return block

    def _render_header(self, styles: TableStyles) -> Text:
        return self._render_cells(lambda column: column.title, styles.header, styles)

    def _render_row(self, index: int, styles: TableStyles) -> Text:
        row = self._rows[index]
        line = self._render_cells(lambda column: column.value(row), styles.cell, styles)
        if index == self._cursor:
            line.stylize(styles.selected)
        return line

    def _visible_columns(self) -> list[Column]:
        return self._columns[self._hcursor :]

    def _render_cells(self, text_of: Callable[[Column], str], style: Style, styles: TableStyles) -> Text:
        """Lay out cells left to right; *text_of* runs only for columns that get drawn."""
        pad = " " * styles.padding
        padding = 2 * styles.padding
        remaining = self._width
        line = Text()
        for column in self._visible_columns():
            if column.width < 1:
                continue
            with_padding = min(column.width + padding, remaining)
            remaining -= with_padding
            width = with_padding - padding
            if width < 1:
                continue
            cell = Text(text_of(column).translate(_FLATTEN), style=style)
            cell.truncate(width, overflow="ellipsis", pad=True)
            line.append(pad, style=style)
            line.append_text(cell)
            line.append(pad, style=style)
        return line

    def _page(self) -> int:
        return max(1, self._height)

    def _invalidate(self) -> None:
        self._rendered = None


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))
