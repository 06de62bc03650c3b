"""Data models for the language table editor."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Iterable

log = logging.getLogger(__name__)


@dataclass
class LanguageEntry:
    """One language column: a two-letter code plus its key → markup map."""

    code: str
    translations: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> str:
        return self.translations.get(key, "")

    def to_dict(self) -> dict:
        return {"languageCode": self.code, "translations": dict(self.translations)}


def copy_entries(entries: Iterable[LanguageEntry]) -> list[LanguageEntry]:
    """Return a deep copy of *entries*, preserving their order."""
    return [copy.deepcopy(entry) for entry in entries]


@dataclass
class TranslationMatrix:
    """The original dataset and the working copy all edits are applied to.

    ``original`` is set once by :meth:`load` and never mutated afterwards.
    ``working`` always has the same number of entries in the same order;
    only the contents of each ``translations`` map differ.
    """

    original: list[LanguageEntry] = field(default_factory=list)
    working: list[LanguageEntry] = field(default_factory=list)
    # True once any save lands in working; cleared by load/discard
    has_unsaved_changes: bool = False

    # ── Lifecycle ───────────────────────────────────────────────

    def load(self, original: Iterable[LanguageEntry] | None) -> bool:
        """Snapshot *original* and derive the working copy from it.

        Returns False (and changes nothing) when there is no data.
        """
        entries = list(original or [])
        if not entries:
            log.debug("load() called without data; nothing to show")
            return False
        self.original = copy_entries(entries)
        self.working = copy_entries(self.original)
        self.has_unsaved_changes = False
        log.debug("Loaded %d language columns", len(self.original))
        return True

    def discard(self) -> None:
        """Throw away every edit by re-copying the original."""
        self.working = copy_entries(self.original)
        self.has_unsaved_changes = False

    # ── Access ──────────────────────────────────────────────────

    @property
    def is_loaded(self) -> bool:
        return bool(self.original)

    def column_count(self) -> int:
        return len(self.working)

    def codes(self) -> list[str]:
        return [entry.code for entry in self.working]

    def get_value(self, column_index: int, key: str) -> str:
        """Return the working value, or empty string if this language lacks *key*."""
        return self.working[column_index].get(key)

    def set_value(self, column_index: int, key: str, value: str) -> None:
        self.working[column_index].translations[key] = value
        self.has_unsaved_changes = True

    def to_dataset(self) -> list[dict]:
        """Return the working data in the host's readback shape."""
        return [entry.to_dict() for entry in self.working]


def all_keys(entries: Iterable[LanguageEntry]) -> list[str]:
    """Union of keys across *entries*, deduplicated, in first-seen order."""
    seen: dict[str, None] = {}
    for entry in entries:
        for key in entry.translations:
            seen.setdefault(key, None)
    return list(seen)
