"""Editor application context.

:class:`LanguageTableEditor` owns the translation matrix, the view state and
the edit session, and exposes the operations a rendering layer calls.  All
mutation happens synchronously inside these methods.

Any state change that competes with an open edit (search, page navigation,
page size change, discard) cancels the edit first; it is never saved
implicitly.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from langtable import config
from langtable.matrix_io import dumps_dataset, entries_from_dataset
from langtable.models import LanguageEntry, TranslationMatrix
from langtable.search import PendingSearch, SearchDebouncer
from langtable.session import EditSession
from langtable.surface import EditorSurface
from langtable.view import (
    HeaderInfo,
    SortDirection,
    SortDirective,
    View,
    ViewState,
    derive_view,
    headers,
    total_pages,
    visible_keys,
)

log = logging.getLogger(__name__)


class LanguageTableEditor:
    def __init__(
        self,
        original: Iterable[LanguageEntry | dict] | None = None,
        *,
        surface: EditorSurface | None = None,
        page_size: int | None = None,
    ) -> None:
        self.matrix = TranslationMatrix()
        self.view_state = ViewState(page_size=page_size or config.get_page_size())
        self.session = EditSession(surface)
        self.search = SearchDebouncer(self.set_search)
        if original is not None:
            self.load(original)

    # ── Data ────────────────────────────────────────────────────

    def load(self, original: Iterable[LanguageEntry | dict] | None) -> bool:
        """Load the host data; returns False if there was nothing to load."""
        return self.matrix.load(entries_from_dataset(list(original or [])))

    @property
    def is_loaded(self) -> bool:
        return self.matrix.is_loaded

    @property
    def working(self) -> list[LanguageEntry]:
        return self.matrix.working

    @property
    def has_unsaved_changes(self) -> bool:
        return self.matrix.has_unsaved_changes

    def to_dataset(self) -> list[dict[str, Any]]:
        return self.matrix.to_dataset()

    def to_json(self) -> str:
        """Working data as the JSON string the host form field submits."""
        return dumps_dataset(self.matrix)

    def discard_all(self) -> None:
        self.session.cancel()
        self.matrix.discard()

    # ── View ────────────────────────────────────────────────────

    def get_view(self, state: ViewState | None = None) -> View:
        return derive_view(self.matrix.working, state or self.view_state)

    def headers(self) -> list[HeaderInfo]:
        return headers(self.matrix.working, self.view_state)

    def _valid_column(self, column_index: int) -> bool:
        return 0 <= column_index < self.matrix.column_count()

    def toggle_sort(self, column_index: int) -> SortDirective | None:
        """Cycle the sort on *column_index*: none → ascending → descending → none.

        Sorting another column replaces the current sort.
        """
        if not self._valid_column(column_index):
            log.debug("Ignoring sort on missing column %d", column_index)
            return self.view_state.sort
        current = self.view_state.sort
        if current is None or current.column_index != column_index:
            self.view_state.sort = SortDirective(column_index, SortDirection.ASC)
        elif current.direction is SortDirection.ASC:
            self.view_state.sort = SortDirective(column_index, SortDirection.DESC)
        else:
            self.view_state.sort = None
        return self.view_state.sort

    def toggle_collapse(self, column_index: int) -> bool:
        """Collapse or expand a column; returns True if now collapsed."""
        if not self._valid_column(column_index):
            log.debug("Ignoring collapse of missing column %d", column_index)
            return False
        collapsed = self.view_state.collapsed_columns
        if column_index in collapsed:
            collapsed.discard(column_index)
            return False
        collapsed.add(column_index)
        return True

    # ── Search ──────────────────────────────────────────────────

    def set_search(self, term: str) -> None:
        """Apply a search term now.  An empty or blank term clears the search."""
        self.session.cancel()
        state = self.view_state
        state.search_term = term
        state.is_search_active = term.strip() != ""
        if state.is_search_active:
            state.sort = None
        state.page_number = 1

    def submit_search(self, term: str) -> PendingSearch:
        """Queue *term* behind the debounce delay, replacing any pending search."""
        return self.search.submit(term)

    def clear_search(self) -> None:
        self.search.cancel()
        self.set_search("")

    # ── Pagination ──────────────────────────────────────────────

    def total_pages(self) -> int:
        rows = len(visible_keys(self.matrix.working, self.view_state))
        return total_pages(rows, self.view_state.page_size)

    def set_page(self, page_number: int) -> bool:
        """Go to *page_number*; out-of-range requests change nothing."""
        if not 1 <= page_number <= self.total_pages():
            log.debug("Ignoring request for page %d", page_number)
            return False
        self.session.cancel()
        self.view_state.page_number = page_number
        return True

    def next_page(self) -> bool:
        return self.set_page(self.view_state.page_number + 1)

    def previous_page(self) -> bool:
        return self.set_page(self.view_state.page_number - 1)

    def set_page_size(self, page_size: int) -> bool:
        """Change rows per page and remember it as the default for new editors."""
        if not config.valid_page_size(page_size):
            log.warning("Ignoring unsupported page size %r", page_size)
            return False
        self.session.cancel()
        self.view_state.page_size = page_size
        self.view_state.page_number = 1
        config.set_page_size(page_size)
        config.save_settings()
        return True

    # ── Editing ─────────────────────────────────────────────────

    def open_edit(self, key: str, column_index: int, current_value: str | None = None) -> bool:
        """Open *key* in *column_index* for editing.

        Rejected while another edit is open.  *current_value* defaults to
        the working value.
        """
        if not self._valid_column(column_index):
            log.debug("Ignoring edit of missing column %d", column_index)
            return False
        if current_value is None:
            current_value = self.matrix.get_value(column_index, key)
        return self.session.open(key, column_index, current_value)

    def save_edit(self) -> str | None:
        return self.session.save(self.matrix)

    def cancel_edit(self) -> bool:
        return self.session.cancel()

    @property
    def is_editing(self) -> bool:
        return self.session.is_editing
