"""Debounced search as cancellable deferred work.

Every keystroke submits a new :class:`PendingSearch` and cancels the one
before it.  Whatever scheduler the host uses (a Qt single-shot timer, a test
calling :meth:`SearchDebouncer.fire` directly) hands the token back when the
delay expires; only the token that is still current runs the search.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from langtable import config

log = logging.getLogger(__name__)


@dataclass(eq=False)
class PendingSearch:
    term: str
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class SearchDebouncer:
    """Run *perform* for the last submitted term only.

    *schedule*, if given, is called as ``schedule(token, delay_ms)`` for each
    submission and is expected to call :meth:`fire` with the token later.
    """

    def __init__(
        self,
        perform: Callable[[str], None],
        schedule: Callable[[PendingSearch, int], None] | None = None,
        delay_ms: int | None = None,
    ) -> None:
        self._perform = perform
        self._schedule = schedule
        self._delay_ms = config.get_search_debounce_ms() if delay_ms is None else delay_ms
        self._pending: PendingSearch | None = None

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def set_scheduler(self, schedule: Callable[[PendingSearch, int], None] | None) -> None:
        self._schedule = schedule

    @property
    def pending(self) -> PendingSearch | None:
        return self._pending

    def submit(self, term: str) -> PendingSearch:
        self.cancel()
        token = PendingSearch(term)
        self._pending = token
        if self._schedule is not None:
            self._schedule(token, self._delay_ms)
        return token

    def fire(self, token: PendingSearch) -> bool:
        """Run the search for *token* if it is still the current one."""
        if token.cancelled or token is not self._pending:
            log.debug("Dropping superseded search for %r", token.term)
            return False
        self._pending = None
        self._perform(token.term)
        return True

    def flush(self) -> bool:
        """Run the pending search immediately, if any."""
        if self._pending is None:
            return False
        return self.fire(self._pending)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
