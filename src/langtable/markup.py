"""Markup tree helpers built on lxml.html.

Values in the matrix are HTML fragments.  Everything that needs to look
inside one (rendered text for sorting, the rich-text surface, structure
reconciliation) goes through :func:`parse_fragment`, which returns a
``<div>`` container holding the fragment's nodes.  The container itself is
never part of the value; :func:`inner_html` serializes its contents only.
"""

from __future__ import annotations

import html
import logging
import re

from lxml import etree
from lxml import html as lxml_html

from langtable.exceptions import MarkupError

log = logging.getLogger(__name__)

CONTAINER_TAG = "div"

# Tags the rich-text surface treats as inline formatting.
INLINE_TAGS = frozenset({
    "a", "abbr", "b", "bdi", "cite", "code", "del", "dfn", "em", "font", "i",
    "ins", "kbd", "mark", "q", "s", "samp", "small", "span", "strike",
    "strong", "sub", "sup", "u", "var",
})

# Void elements count as inline content but carry no text.
EMBED_TAGS = frozenset({"br", "img", "hr", "wbr"})

PRESERVED_ATTRIBUTES = ("id", "class")
DATA_ATTRIBUTE_PREFIX = "data-"

_TAG_RE = re.compile(r"</?[A-Za-z][A-Za-z0-9-]*(\s[^<>]*)?/?>")


def parse_fragment(markup: str) -> etree._Element:
    """Parse *markup* into a container element.

    Values that start like a whole document (``<html``, ``<!doctype``) are
    parsed as one by lxml, which rejects those without a body.

    Raises:
        MarkupError: If lxml refuses the input.
    """
    if not markup or not markup.strip():
        container = lxml_html.Element(CONTAINER_TAG)
        container.text = markup or None
        return container
    try:
        return lxml_html.fragment_fromstring(markup, create_parent=CONTAINER_TAG)
    except (etree.LxmlError, ValueError, AssertionError) as exc:
        # lxml asserts on a document without a body
        raise MarkupError(str(exc) or type(exc).__name__) from exc


def inner_html(container: etree._Element) -> str:
    """Serialize the children of *container* (text, elements and tails)."""
    parts = [html.escape(container.text, quote=False)] if container.text else []
    for child in container:
        parts.append(etree.tostring(child, method="html", encoding="unicode", with_tail=True))
    return "".join(parts)


_STRING_VALUE = etree.XPath("string()")


def element_text(element: etree._Element) -> str:
    """Return the text content of *element* and its descendants (no tail)."""
    return str(_STRING_VALUE(element))


def text_content(markup: str) -> str:
    """Return the rendered text of *markup* with all tags stripped.

    Unparseable markup is returned unchanged, i.e. treated as plain text.
    """
    if not markup:
        return ""
    try:
        container = parse_fragment(markup)
    except MarkupError:
        log.debug("Treating unparseable markup as plain text: %r", markup[:80])
        return markup
    return element_text(container)


def contains_tags(text: str) -> bool:
    """True if *text* contains anything that looks like a markup tag."""
    return bool(text) and _TAG_RE.search(text) is not None


def is_element(node) -> bool:
    """True for real elements (lxml also yields comments and PIs)."""
    return isinstance(node.tag, str)


def is_inline(element: etree._Element) -> bool:
    return element.tag in INLINE_TAGS or element.tag in EMBED_TAGS


def preserved_attributes(element: etree._Element) -> dict[str, str]:
    """Return the ``id``, ``class`` and ``data-*`` attributes of *element*."""
    return {
        name: value
        for name, value in element.attrib.items()
        if name in PRESERVED_ATTRIBUTES or name.startswith(DATA_ATTRIBUTE_PREFIX)
    }
