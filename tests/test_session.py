"""Tests for the edit session and the save decision."""

from __future__ import annotations

import pytest

from langtable.reconciler import BlockRecord, StructuralFingerprint
from langtable.session import (
    EditContext,
    EditSession,
    RawEdited,
    RawUnedited,
    RichFormatted,
    RichPlain,
    SessionState,
    classify_output,
    resolve_persisted_value,
)


@pytest.fixture
def session() -> EditSession:
    return EditSession()


def _context(original: str = '<div id="x">hi</div>', plain: str = "hi") -> EditContext:
    return EditContext(
        key="k",
        column_index=0,
        original_value=original,
        original_fingerprint=StructuralFingerprint([BlockRecord("div", {"id": "x"}, "hi")]),
        original_plain_text=plain,
    )


class TestDecisionTable:
    def test_raw_unedited_keeps_original(self):
        assert resolve_persisted_value(RawUnedited(), _context()) == '<div id="x">hi</div>'

    def test_raw_edited_plain_verbatim(self):
        assert resolve_persisted_value(RawEdited("just words"), _context()) == "just words"

    def test_raw_edited_markup_verbatim(self):
        raw = '<section data-x="1"><p>new</p></section>'
        assert resolve_persisted_value(RawEdited(raw), _context()) == raw

    def test_rich_plain_unchanged_keeps_original(self):
        assert resolve_persisted_value(RichPlain("hi"), _context()) == '<div id="x">hi</div>'

    def test_rich_plain_changed_is_not_wrapped(self):
        assert resolve_persisted_value(RichPlain("hello"), _context()) == "hello"

    def test_rich_formatted_is_reconciled(self):
        value = resolve_persisted_value(RichFormatted("<p><strong>hi</strong></p>"), _context())
        assert value == '<div id="x"><strong>hi</strong></div>'


class TestClassify:
    def test_rich_modes(self, session: EditSession):
        session.open("k", 0, "<p>hi</p>")
        assert classify_output(session.context, session.surface) == RichPlain("hi")
        session.surface.set_markup("<p><em>hi</em></p>")
        assert classify_output(session.context, session.surface) == RichFormatted("<p><em>hi</em></p>")

    def test_raw_modes(self, session: EditSession):
        session.open("k", 0, "<p>hi</p>")
        session.toggle_markup_preview()
        assert classify_output(session.context, session.surface) == RawUnedited()
        session.set_raw_text("<p>ho</p>")
        assert classify_output(session.context, session.surface) == RawEdited("<p>ho</p>")


class TestLifecycle:
    def test_open_captures_context(self, session: EditSession):
        assert session.state is SessionState.IDLE
        assert session.open("title", 2, '<div id="t">Welcome</div>')
        ctx = session.context
        assert session.state is SessionState.EDITING
        assert ctx.original_value == '<div id="t">Welcome</div>'
        assert ctx.original_plain_text == "Welcome"
        assert ctx.original_fingerprint.block_elements == [BlockRecord("div", {"id": "t"}, "Welcome")]
        assert session.surface.get_markup() == "<p>Welcome</p>"

    def test_second_open_rejected(self, session: EditSession):
        assert session.open("a", 0, "first")
        assert not session.open("b", 1, "second")
        assert session.context.key == "a"
        assert session.surface.get_text() == "first"

    def test_cancel_clears_surface(self, session: EditSession, sample_matrix):
        session.open("greet", 0, "Hello")
        session.surface.set_text("changed")
        assert session.cancel()
        assert session.state is SessionState.IDLE
        assert session.surface.is_empty()
        assert sample_matrix.get_value(0, "greet") == "Hello"
        assert not sample_matrix.has_unsaved_changes

    def test_save_without_open_edit(self, session: EditSession, sample_matrix):
        assert session.save(sample_matrix) is None
        assert not sample_matrix.has_unsaved_changes


class TestSave:
    def test_untouched_save_keeps_custom_markup(self, session: EditSession, sample_matrix):
        original = sample_matrix.get_value(0, "title")
        session.open("title", 0, original)
        assert session.save(sample_matrix) == original
        assert sample_matrix.get_value(0, "title") == original
        assert sample_matrix.has_unsaved_changes
        assert session.state is SessionState.IDLE

    def test_plain_edit_saved_as_plain_text(self, session: EditSession, sample_matrix):
        session.open("title", 0, sample_matrix.get_value(0, "title"))
        session.surface.set_text("Welcome back")
        assert session.save(sample_matrix) == "Welcome back"

    def test_formatted_edit_restores_structure(self, session: EditSession, sample_matrix):
        session.open("title", 0, sample_matrix.get_value(0, "title"))
        session.surface.set_markup("<p><strong>Welcome</strong> back</p>")
        assert session.save(sample_matrix) == '<div id="t" class="headline"><strong>Welcome</strong> back</div>'

    def test_formatted_edit_restores_inline_tag(self, session: EditSession, sample_matrix):
        session.open("bye", 0, sample_matrix.get_value(0, "bye"))
        session.surface.set_markup("<p><strong>Goodbye</strong> <em>friend</em></p>")
        assert session.save(sample_matrix) == "<p><b>Goodbye</b> <em>friend</em></p>"

    def test_raw_unedited_save_keeps_original(self, session: EditSession, sample_matrix):
        original = sample_matrix.get_value(0, "title")
        session.open("title", 0, original)
        assert session.toggle_markup_preview()
        assert session.context.raw_display_text == "<p>Welcome</p>"
        assert session.save(sample_matrix) == original

    def test_untouched_formatted_value_saved_normalized(self, session: EditSession, sample_matrix):
        session.open("bye", 0, sample_matrix.get_value(0, "bye"))
        assert session.save(sample_matrix) == "<p><b>Goodbye</b></p>"

    def test_rich_edit_viewed_in_raw_mode_is_kept(self, session: EditSession, sample_matrix):
        session.open("greet", 0, "Hello")
        session.surface.set_markup("<p><strong>Hello</strong> world</p>")
        assert session.toggle_markup_preview()
        assert session.save(sample_matrix) == "<p><strong>Hello</strong> world</p>"
        assert sample_matrix.get_value(0, "greet") == "<p><strong>Hello</strong> world</p>"

    def test_raw_text_reverted_to_opened_markup_keeps_original(self, session: EditSession, sample_matrix):
        original = sample_matrix.get_value(0, "title")
        session.open("title", 0, original)
        session.toggle_markup_preview()
        session.set_raw_text("<p>Other</p>")
        session.set_raw_text("<p>Welcome</p>")
        assert session.save(sample_matrix) == original

    def test_unparseable_value_edited_as_plain_text(self, session: EditSession, sample_matrix):
        session.open("extra", 2, "<!DOCTYPE html>")
        assert session.context.original_plain_text == "<!DOCTYPE html>"
        assert session.save(sample_matrix) == "<!DOCTYPE html>"

    def test_raw_edited_save_verbatim(self, session: EditSession, sample_matrix):
        session.open("title", 0, sample_matrix.get_value(0, "title"))
        session.toggle_markup_preview()
        session.set_raw_text('<h2 class="t">Hi</h2>')
        assert session.save(sample_matrix) == '<h2 class="t">Hi</h2>'
        assert sample_matrix.get_value(0, "title") == '<h2 class="t">Hi</h2>'

    def test_raw_edit_rebases_fingerprint(self, session: EditSession, sample_matrix):
        session.open("title", 0, sample_matrix.get_value(0, "title"))
        session.toggle_markup_preview()
        session.set_raw_text('<aside data-x="1">Note</aside>')
        assert not session.toggle_markup_preview()
        ctx = session.context
        assert ctx.original_fingerprint.block_elements == [BlockRecord("aside", {"data-x": "1"}, "Note")]
        assert ctx.original_plain_text == "Note"
        session.surface.set_markup("<p><em>Note</em></p>")
        assert session.save(sample_matrix) == '<aside data-x="1"><em>Note</em></aside>'

    def test_raw_edit_then_rich_untouched_keeps_raw_markup(self, session: EditSession, sample_matrix):
        session.open("title", 0, sample_matrix.get_value(0, "title"))
        session.toggle_markup_preview()
        session.set_raw_text('<p class="x">Welcome</p>')
        session.toggle_markup_preview()
        assert session.save(sample_matrix) == '<p class="x">Welcome</p>'

    def test_set_raw_text_outside_preview_ignored(self, session: EditSession):
        session.open("k", 0, "hi")
        session.set_raw_text("<b>nope</b>")
        assert session.context.raw_text == ""
