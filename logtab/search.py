from __future__ import annotations

from typing import Sequence

from .config import Filter, FilterOp, LogView
from .editor import DefinitionListEditor, RecordForm
from .errors import AttributeNotFound

ANY_ATTRIBUTE = "[anything]"


class FilterForm(RecordForm[Filter]):
    """Filters reference attributes by name; names are checked against *view*."""

    title = "Search filters"
    labels = ("Term", "Operator", "Attr")

    def __init__(self, view: LogView) -> None:
        self._view = view

    def placeholders(self) -> tuple[str, ...]:
        attr_hint = self._view.attributes[0].name if self._view.attributes else "<name of attribute>"
        return ("Filter term", FilterOp.CONTAINS.value, attr_hint)

    def blank(self, records: Sequence[Filter]) -> Filter:
        return Filter(term="", operator=FilterOp.CONTAINS, attr=None)

    def fields(self, record: Filter) -> list[str]:
        return [record.term, record.operator.value, record.attr or ""]

    def apply(self, record: Filter, fields: Sequence[str], others: Sequence[Filter]) -> None:
        term, operator, attr = fields
        record.term = term
        try:
            record.operator = FilterOp.parse(operator)
        except ValueError:
            pass
        attr = attr.strip()
        if not attr:
            record.attr = None
            return
        try:
            record.attr = self._view.attribute(attr).name
        except AttributeNotFound:
            pass

    def describe(self, record: Filter) -> str:
        return f'{record.attr or ANY_ATTRIBUTE} {record.operator.value} "{record.term}"'


def search_editor(view: LogView, width: int = 40, height: int = 15) -> DefinitionListEditor[Filter]:
    return DefinitionListEditor(FilterForm(view), view.filters, width=width, height=height)
