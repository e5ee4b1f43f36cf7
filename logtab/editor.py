"""
List + detail form editor shared by the schema and search screens.

The editor has two modes. In browse mode nothing is selected and the keys
move through the list, create, delete or close. In edit mode one record is
selected and its fields are exposed as text inputs; `enter` commits them
and `escape` drops back to browse mode, discarding anything not committed.

What a record looks like (its labels, how it becomes text and how text is
parsed back) is supplied by a `RecordForm`.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar, Union

from rich.console import Group, RenderableType
from rich.style import Style
from rich.table import Table
from rich.text import Text

T = TypeVar("T")

BROWSE_HINT = "↑/↓ move · enter edit · n new · d delete · esc close"
EDIT_HINT = "tab/shift+tab next field · enter accept · esc discard"


@dataclass(frozen=True)
class Close:
    """The user left the editor from browse mode."""


@dataclass(frozen=True)
class Updated(Generic[T]):
    """The complete, ordered list after a create/edit/delete was accepted."""

    records: list[T] = field(default_factory=list)


EditorSignal = Union[Close, Updated]


@dataclass(frozen=True)
class EditorStyles:
    title: Style = Style(bold=True)
    item: Style = Style()
    selected_item: Style = Style(color="color(170)")
    label: Style = Style(color="color(245)")
    value: Style = Style()
    focused_value: Style = Style(color="color(229)", bold=True)
    placeholder: Style = Style(color="color(240)", italic=True)
    hint: Style = Style(color="color(241)")


class RecordForm(Generic[T]):
    """How one kind of record is listed, shown as fields and parsed back."""

    title: str = ""
    labels: tuple[str, ...] = ()

    def placeholders(self) -> tuple[str, ...]:
        return tuple("" for _ in self.labels)

    def blank(self, records: Sequence[T]) -> T:
        raise NotImplementedError

    def fields(self, record: T) -> list[str]:
        raise NotImplementedError

    def apply(self, record: T, fields: Sequence[str], others: Sequence[T]) -> None:
        """Commit *fields* into *record* in place.

        A field that does not parse leaves the matching value unchanged.
        """
        raise NotImplementedError

    def describe(self, record: T) -> str:
        raise NotImplementedError

    def copy(self, record: T) -> T:
        return copy.deepcopy(record)


class DefinitionListEditor(Generic[T]):
    def __init__(
        self,
        form: RecordForm[T],
        records: Sequence[T],
        *,
        width: int = 40,
        height: int = 15,
    ) -> None:
        self._form = form
        self._records: list[T] = [form.copy(record) for record in records]
        self._index = 0
        self._selected: Optional[int] = None
        # The selected record was created with `n` and has not been accepted yet.
        self._creating = False
        self._fields: list[str] = []
        self._focus = 0
        self._width = width
        self._height = height

    @property
    def records(self) -> list[T]:
        return [self._form.copy(record) for record in self._records]

    @property
    def index(self) -> int:
        return self._index

    @property
    def selected(self) -> Optional[int]:
        return self._selected

    @property
    def editing(self) -> bool:
        return self._selected is not None

    @property
    def fields(self) -> list[str]:
        return list(self._fields)

    @property
    def focus(self) -> int:
        return self._focus

    @property
    def size(self) -> tuple[int, int]:
        return self._width, self._height

    def set_size(self, width: int, height: int) -> None:
        self._width = max(0, width)
        self._height = max(0, height)

    def reset(self, records: Sequence[T]) -> None:
        """Replace the list, dropping any uncommitted edit."""
        self._records = [self._form.copy(record) for record in records]
        self._index = max(0, min(self._index, len(self._records) - 1))
        self._deselect()

    def hint(self) -> str:
        return EDIT_HINT if self.editing else BROWSE_HINT

    def handle(self, key: str, character: Optional[str] = None) -> list[EditorSignal]:
        if self._selected is None:
            return self._handle_browse(key)
        return self._handle_edit(key, character)

    def _handle_browse(self, key: str) -> list[EditorSignal]:
        if key in ("up", "k"):
            self._index = max(0, self._index - 1)
        elif key in ("down", "j"):
            self._index = max(0, min(self._index + 1, len(self._records) - 1))
        elif key == "enter":
            if self._records:
                self._select(self._index)
        elif key in ("n", "ctrl+n"):
            self._records.append(self._form.blank(self._records))
            self._index = len(self._records) - 1
            self._select(self._index)
            self._creating = True
        elif key == "d":
            if not self._records:
                return []
            del self._records[self._index]
            self._index = max(0, min(self._index, len(self._records) - 1))
            return [self._updated()]
        elif key == "escape":
            return [Close()]
        return []

    def _handle_edit(self, key: str, character: Optional[str]) -> list[EditorSignal]:
        if key == "tab":
            self._focus = (self._focus + 1) % len(self._fields)
        elif key == "shift+tab":
            self._focus = (self._focus - 1) % len(self._fields)
        elif key == "enter":
            return self._accept()
        elif key == "escape":
            if self._creating and self._selected is not None:
                del self._records[self._selected]
                self._index = max(0, min(self._index, len(self._records) - 1))
            self._deselect()
        elif key == "backspace":
            self._fields[self._focus] = self._fields[self._focus][:-1]
        elif key == "ctrl+u":
            self._fields[self._focus] = ""
        elif character:
            self._fields[self._focus] += character
        return []

    def _accept(self) -> list[EditorSignal]:
        assert self._selected is not None
        index = self._selected
        record = self._form.copy(self._records[index])
        others = [other for i, other in enumerate(self._records) if i != index]
        self._form.apply(record, self._fields, others)
        self._records[index] = record
        self._deselect()
        return [self._updated()]

    def _updated(self) -> Updated:
        return Updated(self.records)

    def _select(self, index: int) -> None:
        self._selected = index
        self._fields = self._form.fields(self._records[index])
        self._focus = 0

    def _deselect(self) -> None:
        self._selected = None
        self._creating = False
        self._fields = []
        self._focus = 0

    def render(self, styles: EditorStyles) -> RenderableType:
        list_width = max(10, min(40, self._width // 2)) if self._selected is not None else None
        grid = Table.grid(padding=(0, 2))
        grid.add_column(width=list_width)
        if self._selected is None:
            grid.add_row(self._render_list(styles))
        else:
            grid.add_column()
            grid.add_row(self._render_list(styles), self._render_detail(styles))
        return Group(grid, Text(self.hint(), style=styles.hint))

    def _render_list(self, styles: EditorStyles) -> Text:
        lines = [Text(self._form.title, style=styles.title), Text("")]
        if not self._records:
            lines.append(Text("  (empty)", style=styles.placeholder))
        capacity = max(1, self._height - 4)
        start = 0 if self._index < capacity else self._index - capacity + 1
        for i in range(start, min(len(self._records), start + capacity)):
            label = f"{i + 1}. {self._form.describe(self._records[i])}"
            if i == self._index:
                lines.append(Text(f"> {label}", style=styles.selected_item))
            else:
                lines.append(Text(f"  {label}", style=styles.item))
        return Text("\n").join(lines)

    def _render_detail(self, styles: EditorStyles) -> Text:
        placeholders = self._form.placeholders()
        lines: list[Text] = []
        for i, (label, value) in enumerate(zip(self._form.labels, self._fields)):
            if lines:
                lines.append(Text(""))
            lines.append(Text(label, style=styles.label))
            focused = i == self._focus
            marker = "> " if focused else "  "
            if value:
                line = Text(marker + value, style=styles.focused_value if focused else styles.value)
            else:
                line = Text(marker, style=styles.value)
                line.append(placeholders[i] if i < len(placeholders) else "", style=styles.placeholder)
            if focused:
                line.append("▏", style=styles.focused_value)
            lines.append(line)
        return Text("\n").join(lines)
