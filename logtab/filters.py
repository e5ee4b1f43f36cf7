"""
Row filtering.

Every filter contributes one predicate and a row is kept only when all of
them match. A predicate checks that the raw row contains the filter's term
(case-sensitive). The operator and attribute of a filter are stored and
editable but do not take part in matching.
"""
from __future__ import annotations

from typing import Callable, Iterable, Sequence

from .config import Filter

RowFilter = Callable[[str], bool]


def compile_filter(flt: Filter) -> RowFilter:
    term = flt.term

    def matches(row: str) -> bool:
        return term in row

    return matches


def compile_filters(filters: Iterable[Filter]) -> RowFilter:
    """Combine *filters* into a single predicate (logical AND)."""

    predicates = [compile_filter(flt) for flt in filters]

    def matches_all(row: str) -> bool:
        return all(predicate(row) for predicate in predicates)

    return matches_all


def filter_rows(rows: Sequence[str], filters: Iterable[Filter]) -> list[str]:
    """Return the rows matching every filter, in their original order."""

    keep = compile_filters(filters)
    filtered: list[str] = []
    for row in rows:
        if keep(row):
            filtered.append(row)
    return filtered
