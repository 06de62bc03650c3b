"""Markup structure reconciliation.

The rich-text surface normalizes everything it loads: custom block tags
become ``<p>``, ``<b>`` becomes ``<strong>``, and ``id``/``class``/``data-*``
attributes are dropped.  Before a value enters the surface we record a
:class:`StructuralFingerprint` of it; after the user saves formatted content
:func:`reapply` puts the recorded tags and attributes back.

Blocks are matched positionally.  Inlines are matched by their trimmed text
content, first match in document order, each candidate used at most once.
Duplicate inline text runs can therefore receive each other's attributes;
that ambiguity is accepted rather than guessed at.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lxml import etree

from langtable.exceptions import MarkupError
from langtable.markup import (
    INLINE_TAGS,
    element_text,
    inner_html,
    is_element,
    is_inline,
    parse_fragment,
    preserved_attributes,
)

log = logging.getLogger(__name__)

# Tags the surface produces when a value has no structure of its own.
DEFAULT_BLOCK_TAG = "p"
DEFAULT_INLINE_TAG = "span"


@dataclass(frozen=True)
class BlockRecord:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: str = ""


@dataclass(frozen=True)
class InlineRecord:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    text: str = ""
    parent_text: str = ""


@dataclass
class StructuralFingerprint:
    """Tag and attribute structure of one markup value.

    ``block_elements`` has one slot per top-level block; ``None`` keeps the
    positions aligned for blocks with nothing to restore.
    """

    block_elements: list[BlockRecord | None] = field(default_factory=list)
    inline_elements: list[InlineRecord] = field(default_factory=list)

    def is_trivial(self) -> bool:
        """True if reapplying this fingerprint could not change anything."""
        return not self.inline_elements and all(b is None for b in self.block_elements)


# ── Extraction ──────────────────────────────────────────────────


def _top_level_blocks(container: etree._Element) -> list[etree._Element | None]:
    """Return the container's block children in order.

    A run of top-level text and inline elements is what the surface wraps
    into a single default paragraph, so each such run occupies one slot
    (reported as ``None``).
    """
    blocks: list[etree._Element | None] = []
    in_run = bool(container.text and container.text.strip())
    for child in container:
        if not is_element(child):
            continue
        if is_inline(child):
            in_run = True
        else:
            if in_run:
                blocks.append(None)
            blocks.append(child)
            in_run = False
        if child.tail and child.tail.strip():
            in_run = True
    if in_run:
        blocks.append(None)
    return blocks


def extract_fingerprint(markup: str) -> StructuralFingerprint:
    """Record the tags and preserved attributes of *markup*.

    Malformed markup yields an empty fingerprint (the value is plain text).
    """
    try:
        container = parse_fragment(markup)
    except MarkupError:
        log.debug("No fingerprint for unparseable markup")
        return StructuralFingerprint()

    fingerprint = StructuralFingerprint()
    for block in _top_level_blocks(container):
        if block is None:
            fingerprint.block_elements.append(None)
            continue
        attrs = preserved_attributes(block)
        if attrs or block.tag != DEFAULT_BLOCK_TAG:
            fingerprint.block_elements.append(
                BlockRecord(block.tag, attrs, element_text(block).strip())
            )
        else:
            fingerprint.block_elements.append(None)

    for el in container.iter(*INLINE_TAGS):
        attrs = preserved_attributes(el)
        if not attrs and el.tag == DEFAULT_INLINE_TAG:
            continue
        parent = el.getparent()
        fingerprint.inline_elements.append(InlineRecord(
            tag=el.tag,
            attributes=attrs,
            text=element_text(el).strip(),
            parent_text=element_text(parent).strip() if parent is not None else "",
        ))
    return fingerprint


# ── Reapplication ───────────────────────────────────────────────


def _restore(element: etree._Element, tag: str, attributes: dict[str, str]) -> bool:
    """Give *element* the recorded tag and attributes; return True if changed.

    Renaming in place keeps the element's current attributes, children and
    tail, and its position in the parent.
    """
    changed = False
    if element.tag != tag:
        element.tag = tag
        changed = True
    for name, value in attributes.items():
        if element.get(name) != value:
            element.set(name, value)
            changed = True
    return changed


def reapply(fingerprint: StructuralFingerprint, markup: str) -> str:
    """Restore *fingerprint*'s structure onto normalized *markup*.

    Returns *markup* untouched when there is nothing to restore, so values
    without custom structure are never re-serialized.
    """
    if fingerprint.is_trivial():
        return markup
    try:
        container = parse_fragment(markup)
    except MarkupError:
        log.warning("Cannot reapply structure to unparseable markup; keeping it as is")
        return markup

    changed = False

    blocks = _top_level_blocks(container)
    for record, element in zip(fingerprint.block_elements, blocks):
        if record is not None and element is not None:
            changed |= _restore(element, record.tag, record.attributes)

    candidates = list(container.iter(*INLINE_TAGS))
    used: set[int] = set()
    for record in fingerprint.inline_elements:
        for index, element in enumerate(candidates):
            if index in used:
                continue
            if element_text(element).strip() == record.text:
                used.add(index)
                changed |= _restore(element, record.tag, record.attributes)
                break
        else:
            log.debug("No inline match for %r (%s)", record.text, record.tag)

    return inner_html(container) if changed else markup
