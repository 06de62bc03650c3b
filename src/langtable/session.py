"""Edit session: at most one cell open for editing at a time.

The session owns the rich-text surface, the original value of the open cell
and its structural fingerprint.  Saving classifies what the surface holds
into an :data:`EditorOutput` once, then :func:`resolve_persisted_value`
decides what actually gets written:

======================================  ==================================
Surface state                           Persisted value
======================================  ==================================
raw mode, same markup as when opened    original value
raw mode, edited                        the raw text verbatim
rich mode, no formatting, same text     original value
rich mode, no formatting, new text      the plain text verbatim
rich mode, formatted                    normalized markup with the
                                        original structure reapplied
======================================  ==================================
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from langtable.markup import contains_tags
from langtable.reconciler import StructuralFingerprint, extract_fingerprint, reapply
from langtable.surface import EditorSurface

if TYPE_CHECKING:
    from langtable.models import TranslationMatrix

log = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    EDITING = "editing"


@dataclass
class EditContext:
    """Everything known about the cell currently being edited."""

    key: str
    column_index: int
    original_value: str
    original_fingerprint: StructuralFingerprint = field(repr=False)
    original_plain_text: str = ""
    is_markup_preview_mode: bool = False
    # Surface markup when the edit was opened or last rebased
    baseline_markup: str = ""
    # Markup shown when raw mode was entered, and the raw text as edited since
    raw_display_text: str = ""
    raw_text: str = ""


# ── Editor output ───────────────────────────────────────────────


@dataclass(frozen=True)
class RichFormatted:
    markup: str


@dataclass(frozen=True)
class RichPlain:
    text: str


@dataclass(frozen=True)
class RawEdited:
    text: str


@dataclass(frozen=True)
class RawUnedited:
    pass


EditorOutput = Union[RichFormatted, RichPlain, RawEdited, RawUnedited]


def classify_output(context: EditContext, surface: EditorSurface) -> EditorOutput:
    if context.is_markup_preview_mode:
        if context.raw_text == context.baseline_markup:
            return RawUnedited()
        return RawEdited(context.raw_text)
    if surface.has_formatting():
        return RichFormatted(surface.get_markup())
    return RichPlain(surface.get_text())


def resolve_persisted_value(output: EditorOutput, context: EditContext) -> str:
    """Map the surface's output to the value to store.

    Never wraps plain text in markup, and returns the original value
    whenever the user made no meaningful change.

    A value that already carries formatting is classified as
    :class:`RichFormatted` even when saved untouched, so it comes back in
    the surface's normalized form: ``<b>Hi</b>`` is stored as
    ``<p><b>Hi</b></p>``.  Only blocks and inlines recorded in the
    fingerprint are restored; the surface's default wrapper stays.
    """
    if isinstance(output, RawUnedited):
        return context.original_value
    if isinstance(output, RawEdited):
        return output.text
    if isinstance(output, RichPlain):
        if output.text == context.original_plain_text:
            return context.original_value
        return output.text
    if isinstance(output, RichFormatted):
        return reapply(context.original_fingerprint, output.markup)
    raise TypeError(f"Unknown editor output: {output!r}")


# ── Session ─────────────────────────────────────────────────────


class EditSession:
    """State machine guarding the single open edit."""

    def __init__(self, surface: EditorSurface | None = None) -> None:
        self._surface = surface if surface is not None else EditorSurface()
        self._context: EditContext | None = None

    @property
    def surface(self) -> EditorSurface:
        return self._surface

    @property
    def context(self) -> EditContext | None:
        return self._context

    @property
    def state(self) -> SessionState:
        return SessionState.IDLE if self._context is None else SessionState.EDITING

    @property
    def is_editing(self) -> bool:
        return self._context is not None

    def open(self, key: str, column_index: int, current_value: str) -> bool:
        """Start editing a cell.  Rejected (returns False) while another is open."""
        if self._context is not None:
            log.debug(
                "Ignoring edit of %r/%d: %r/%d is still open",
                key, column_index, self._context.key, self._context.column_index,
            )
            return False
        self._surface.clear()
        self._surface.load(current_value)
        self._context = EditContext(
            key=key,
            column_index=column_index,
            original_value=current_value,
            original_fingerprint=extract_fingerprint(current_value),
            original_plain_text=self._surface.get_text(),
            baseline_markup=self._surface.get_markup(),
        )
        return True

    # ── Raw markup mode ─────────────────────────────────────────

    def toggle_markup_preview(self) -> bool:
        """Switch between rich and raw mode; return True if now in raw mode.

        Leaving raw mode after editing loads the edited markup into the
        surface, and that markup becomes the reference the rest of the edit
        is compared and reconciled against.
        """
        ctx = self._context
        if ctx is None:
            log.debug("No cell is being edited; nothing to toggle")
            return False
        if not ctx.is_markup_preview_mode:
            ctx.raw_display_text = self._surface.get_markup()
            ctx.raw_text = ctx.raw_display_text
            ctx.is_markup_preview_mode = True
            return True

        if ctx.raw_text != ctx.raw_display_text:
            self._surface.load(ctx.raw_text)
            ctx.original_value = ctx.raw_text
            ctx.original_plain_text = self._surface.get_text()
            ctx.baseline_markup = self._surface.get_markup()
            if contains_tags(ctx.raw_text):
                ctx.original_fingerprint = extract_fingerprint(ctx.raw_text)
            else:
                ctx.original_fingerprint = StructuralFingerprint()
        ctx.is_markup_preview_mode = False
        return False

    def set_raw_text(self, text: str) -> None:
        """Record what the user typed into the raw markup view."""
        ctx = self._context
        if ctx is None or not ctx.is_markup_preview_mode:
            log.debug("Ignoring raw text outside markup preview mode")
            return
        ctx.raw_text = text

    # ── Closing ─────────────────────────────────────────────────

    def save(self, matrix: TranslationMatrix) -> str | None:
        """Persist the open edit into *matrix* and close it.

        Returns the stored value, or None if nothing was open.
        """
        ctx = self._context
        if ctx is None:
            return None
        output = classify_output(ctx, self._surface)
        value = resolve_persisted_value(output, ctx)
        log.debug("Saving %r/%d as %s", ctx.key, ctx.column_index, type(output).__name__)
        matrix.set_value(ctx.column_index, ctx.key, value)
        self._close()
        return value

    def cancel(self) -> bool:
        """Drop the open edit, if any; returns True if one was open."""
        if self._context is None:
            return False
        self._close()
        return True

    def _close(self) -> None:
        self._context = None
        self._surface.clear()
