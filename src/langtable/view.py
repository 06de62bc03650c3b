"""View derivation: search, key enumeration, sort, pagination, cells.

Every stage is a pure function of the working matrix and a
:class:`ViewState`.  Column ``i`` of any produced view always shows
``working[i]``: search only decides *which keys* are visible, and both the
sort lookup and the cell values read from the working matrix, never from
the filtered projection.
"""

from __future__ import annotations

import enum
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Sequence

from langtable import config
from langtable.markup import text_content
from langtable.models import LanguageEntry, all_keys

log = logging.getLogger(__name__)

ELLIPSIS = "..."
PAGE_WINDOW = 2  # pages shown on each side of the current one
NO_ENTRIES = "No entries to display"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortDirective:
    column_index: int
    direction: SortDirection = SortDirection.ASC


@dataclass
class ViewState:
    """What the user asked to see.  Column order is not part of it."""

    search_term: str = ""
    is_search_active: bool = False
    sort: SortDirective | None = None
    collapsed_columns: set[int] = field(default_factory=set)
    page_number: int = 1
    page_size: int = config.DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Cell:
    column_index: int
    value: str
    collapsed: bool = False


@dataclass(frozen=True)
class Row:
    key: str
    cells: tuple[Cell, ...]


@dataclass(frozen=True)
class HeaderInfo:
    column_index: int
    title: str
    sort_direction: SortDirection | None = None
    collapsed: bool = False


@dataclass(frozen=True)
class View:
    rows: tuple[Row, ...]
    total_rows: int
    total_pages: int
    page_number: int
    page_size: int

    @property
    def info(self) -> str:
        return pagination_info(self.total_rows, self.page_number, self.page_size)

    @property
    def page_numbers(self) -> list[int | str]:
        if self.total_pages <= 1:
            return []
        return page_numbers(self.page_number, self.total_pages)

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1

    @property
    def has_next(self) -> bool:
        return self.total_pages > 1 and self.page_number < self.total_pages


# ── Pipeline stages ─────────────────────────────────────────────


def search_projection(working: Sequence[LanguageEntry], term: str) -> list[LanguageEntry]:
    """Keep, per language, the pairs whose key or raw value contains *term*.

    The match is literal and case-insensitive.  Every language entry is kept
    in its original position even if nothing in it matches.
    """
    try:
        pattern = re.compile(re.escape(term), re.IGNORECASE)
    except re.error:
        log.warning("Search pattern for %r failed to compile; showing everything", term)
        return list(working)
    return [
        LanguageEntry(
            code=entry.code,
            translations={
                key: value
                for key, value in entry.translations.items()
                if pattern.search(key) or pattern.search(value)
            },
        )
        for entry in working
    ]


def sort_keys(
    keys: Sequence[str],
    working: Sequence[LanguageEntry],
    sort: SortDirective,
) -> list[str]:
    """Sort *keys* by the rendered text of the sort column in *working*."""
    if not 0 <= sort.column_index < len(working):
        log.debug("Sort column %d does not exist; keeping key order", sort.column_index)
        return list(keys)
    column = working[sort.column_index]
    rendered = {key: text_content(column.get(key)).lower() for key in keys}
    return sorted(keys, key=rendered.__getitem__, reverse=sort.direction is SortDirection.DESC)


def total_pages(total_rows: int, page_size: int) -> int:
    return math.ceil(total_rows / page_size) if total_rows else 0


def visible_keys(working: Sequence[LanguageEntry], state: ViewState) -> list[str]:
    """Filtered and sorted keys of the whole result, before pagination."""
    if not working:
        return []
    if state.is_search_active:
        projection = search_projection(working, state.search_term)
    else:
        projection = working
    keys = all_keys(projection)
    if state.sort is not None:
        keys = sort_keys(keys, working, state.sort)
    return keys


def derive_view(working: Sequence[LanguageEntry], state: ViewState) -> View:
    """Compute the page of rows *state* asks for."""
    keys = visible_keys(working, state)
    total_rows = len(keys)
    start = (state.page_number - 1) * state.page_size
    page_keys = keys[start:start + state.page_size]

    rows = tuple(
        Row(
            key=key,
            cells=tuple(
                Cell(index, entry.get(key), index in state.collapsed_columns)
                for index, entry in enumerate(working)
            ),
        )
        for key in page_keys
    )
    return View(
        rows=rows,
        total_rows=total_rows,
        total_pages=total_pages(total_rows, state.page_size),
        page_number=state.page_number,
        page_size=state.page_size,
    )


def headers(working: Sequence[LanguageEntry], state: ViewState) -> list[HeaderInfo]:
    """Column headers, one per working entry, in canonical order."""
    result = []
    for index, entry in enumerate(working):
        direction = None
        if state.sort is not None and state.sort.column_index == index:
            direction = state.sort.direction
        result.append(HeaderInfo(
            column_index=index,
            title=entry.code.upper(),
            sort_direction=direction,
            collapsed=index in state.collapsed_columns,
        ))
    return result


# ── Pagination helpers ──────────────────────────────────────────


def pagination_info(total_rows: int, page_number: int, page_size: int) -> str:
    if total_rows == 0:
        return NO_ENTRIES
    first = (page_number - 1) * page_size + 1
    last = min(page_number * page_size, total_rows)
    return f"Showing {first}-{last} of {total_rows} entries"


def page_numbers(current: int, total: int) -> list[int | str]:
    """Page buttons: first, last, a window around *current*, gaps as ``"..."``."""
    if total <= 7:
        return list(range(1, total + 1))

    start = max(2, current - PAGE_WINDOW)
    end = min(total - 1, current + PAGE_WINDOW)
    # Keep the window the same width near either edge
    if current <= PAGE_WINDOW + 2:
        end = min(total - 1, PAGE_WINDOW * 2 + 3)
    if current >= total - PAGE_WINDOW - 1:
        start = max(2, total - PAGE_WINDOW * 2 - 2)

    pages: list[int | str] = [1]
    if start > 2:
        pages.append(ELLIPSIS)
    pages.extend(range(start, end + 1))
    if end < total - 1:
        pages.append(ELLIPSIS)
    pages.append(total)
    return pages
