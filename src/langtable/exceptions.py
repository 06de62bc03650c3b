"""Exceptions raised by the language table editor."""

from __future__ import annotations


class LangTableError(Exception):
    """Base class for editor errors."""


class DatasetError(LangTableError):
    """A dataset file parsed but does not have the expected shape."""


class MarkupError(LangTableError):
    """Markup could not be parsed into an element tree."""
