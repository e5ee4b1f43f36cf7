from __future__ import annotations

import json
from typing import Sequence

from .config import Attribute, LogView
from .editor import DefinitionListEditor, RecordForm
from .selectors import DEFAULT_TIME_FORMAT

BLANK_NAME = "new attribute"
BLANK_WIDTH = 15


def parse_selectors(raw: str) -> list[str] | None:
    """Parse a JSON array of strings; None when it is not one (or is empty)."""

    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(value, list) or not value:
        return None
    if not all(isinstance(item, str) for item in value):
        return None
    return value


class AttributeForm(RecordForm[Attribute]):
    title = "Schema attributes"
    labels = ("Name", "Width", "Selectors", "Type", "Format")

    def placeholders(self) -> tuple[str, ...]:
        return (
            "Title/Name/Host/...",
            str(BLANK_WIDTH),
            '["json(msg)", "json(data) | json(msg)"]',
            "plain / time",
            DEFAULT_TIME_FORMAT,
        )

    def blank(self, records: Sequence[Attribute]) -> Attribute:
        taken = {attr.name for attr in records}
        name = BLANK_NAME
        counter = 2
        while name in taken:
            name = f"{BLANK_NAME} {counter}"
            counter += 1
        # An empty selector has no json() stages and yields the raw line.
        return Attribute(name=name, width=BLANK_WIDTH, selectors=[""], type="plain")

    def fields(self, record: Attribute) -> list[str]:
        return [
            record.name,
            str(record.width),
            json.dumps(record.selectors),
            record.type,
            record.format or "",
        ]

    def apply(self, record: Attribute, fields: Sequence[str], others: Sequence[Attribute]) -> None:
        name, width, selectors, type_, fmt = fields
        name = name.strip()
        if name and name not in {other.name for other in others}:
            record.name = name
        try:
            record.width = int(width.strip())
        except ValueError:
            pass
        parsed = parse_selectors(selectors)
        if parsed is not None:
            record.selectors = parsed
        record.type = type_.strip() or "plain"
        record.format = fmt if fmt else None

    def describe(self, record: Attribute) -> str:
        return record.name


def schema_editor(view: LogView, width: int = 40, height: int = 15) -> DefinitionListEditor[Attribute]:
    return DefinitionListEditor(AttributeForm(), view.attributes, width=width, height=height)
