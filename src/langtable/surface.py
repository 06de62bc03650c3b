"""Reference rich-text editing surface.

The editor core treats the rich-text surface as an external capability:
load markup, let the user edit it, hand back normalized markup, and report
whether any formatting is present.  :class:`EditorSurface` implements that
capability with lxml and normalizes content the way a Quill-style editor
does:

* top-level text and inline runs are wrapped in ``<p>``;
* unsupported block tags become ``<p>`` (or are flattened when they only
  wrap other blocks);
* ``<b>``/``<i>``/``<strike>``/``<del>``/``<ins>`` become their semantic
  equivalents, ``<span>`` and unknown inline tags are unwrapped;
* every attribute except ``href``/``src`` is dropped.

One instance is created per editor and reused; :meth:`clear` must run
between edits so a previous cell's content never leaks into the next.
"""

from __future__ import annotations

import logging

from lxml import etree
from lxml import html as lxml_html

from langtable.exceptions import MarkupError
from langtable.markup import (
    CONTAINER_TAG,
    EMBED_TAGS,
    element_text,
    inner_html,
    is_element,
    is_inline,
    parse_fragment,
)

log = logging.getLogger(__name__)

SUPPORTED_BLOCKS = frozenset({"p", "h1", "h2", "h3", "blockquote", "pre", "ol", "ul"})
LIST_TAGS = frozenset({"ol", "ul"})
SUPPORTED_INLINES = frozenset({"strong", "em", "u", "s", "a", "code", "sub", "sup"})
TAG_ALIASES = {"b": "strong", "i": "em", "strike": "s", "del": "s", "ins": "u"}
KEPT_ATTRIBUTES = {"a": ("href",), "img": ("src", "alt")}


def _strip_attributes(element: etree._Element) -> None:
    kept = KEPT_ATTRIBUTES.get(element.tag, ())
    for name in list(element.attrib):
        if name not in kept:
            del element.attrib[name]


def _append_text(element: etree._Element, text: str) -> None:
    """Append *text* after the last node inside *element*."""
    if len(element):
        last = element[-1]
        last.tail = (last.tail or "") + text
    else:
        element.text = (element.text or "") + text


def _has_block_children(element: etree._Element) -> bool:
    return any(is_element(child) and not is_inline(child) for child in element)


def _normalize_inline(parent: etree._Element) -> None:
    """Normalize the inline content of a block, depth first."""
    for child in list(parent):
        if not is_element(child):
            child.drop_tree()
            continue
        _normalize_inline(child)
        tag = TAG_ALIASES.get(child.tag, child.tag)
        if tag in SUPPORTED_INLINES or tag in EMBED_TAGS:
            child.tag = tag
            _strip_attributes(child)
        else:
            child.drop_tag()


def _normalize_list(element: etree._Element) -> None:
    for child in list(element):
        if is_element(child) and child.tag == "li":
            _strip_attributes(child)
            _normalize_inline(child)
        else:
            child.drop_tree()
    element.text = None


def _normalize_into(source: etree._Element, out: etree._Element) -> None:
    """Move the content of *source* into *out* as a flat list of blocks."""
    paragraph: etree._Element | None = None

    def current_paragraph() -> etree._Element:
        nonlocal paragraph
        if paragraph is None:
            paragraph = etree.SubElement(out, "p")
        return paragraph

    if source.text and source.text.strip():
        current_paragraph().text = source.text

    for child in list(source):
        tail, child.tail = child.tail, None
        if not is_element(child):
            source.remove(child)
        elif is_inline(child):
            current_paragraph().append(child)
        elif child.tag not in SUPPORTED_BLOCKS and _has_block_children(child):
            paragraph = None
            _normalize_into(child, out)
        else:
            paragraph = None
            if child.tag not in SUPPORTED_BLOCKS:
                child.tag = "p"
            _strip_attributes(child)
            out.append(child)
            if child.tag in LIST_TAGS:
                _normalize_list(child)
            else:
                _normalize_inline(child)
        if tail and (paragraph is not None or tail.strip()):
            _append_text(current_paragraph(), tail)

    for block in out:
        if block.tag == "p":
            _normalize_inline(block)


class EditorSurface:
    """A normalizing rich-text surface holding one value at a time."""

    def __init__(self) -> None:
        self._root = lxml_html.Element(CONTAINER_TAG)

    # ── Content in ──────────────────────────────────────────────

    def clear(self) -> None:
        self._root = lxml_html.Element(CONTAINER_TAG)

    def load(self, markup: str) -> None:
        """Replace the content with *markup*, normalizing it.

        Markup lxml cannot parse is loaded as plain text.
        """
        self.clear()
        if not markup or not markup.strip():
            return
        try:
            source = parse_fragment(markup)
        except MarkupError:
            log.debug("Loading unparseable markup as plain text")
            self.set_text(markup)
            return
        _normalize_into(source, self._root)

    def set_markup(self, markup: str) -> None:
        """Apply content the user produced with the formatting tools."""
        self.load(markup)

    def set_text(self, text: str) -> None:
        """Replace the content with unformatted text, one paragraph per line."""
        self.clear()
        if not text:
            return
        for line in text.split("\n"):
            etree.SubElement(self._root, "p").text = line

    # ── Content out ─────────────────────────────────────────────

    def get_markup(self) -> str:
        return inner_html(self._root)

    def get_text(self) -> str:
        lines: list[str] = []
        for block in self._root:
            if block.tag in LIST_TAGS:
                lines.extend(element_text(item) for item in block)
            else:
                lines.append(element_text(block))
        return "\n".join(lines)

    def is_empty(self) -> bool:
        return len(self._root) == 0

    def has_formatting(self) -> bool:
        """True if any block or inline formatting, or an embed, is present."""
        for block in self._root:
            if block.tag != "p" or len(block):
                return True
        return False
