"""Application settings management.

Loads page size, search debounce delay and display settings from
``~/.langtable/settings.json``, falling back to bundled defaults.
"""

from __future__ import annotations

import importlib.resources
import json
import logging
from pathlib import Path

log = logging.getLogger(__name__)

_USER_CONFIG_DIR = Path.home() / ".langtable"
_USER_SETTINGS_PATH = _USER_CONFIG_DIR / "settings.json"

PAGE_SIZE_OPTIONS: tuple[int, ...] = (25, 50, 100, 200)
DEFAULT_PAGE_SIZE = 25
DEFAULT_SEARCH_DEBOUNCE_MS = 300
MIN_SEARCH_DEBOUNCE_MS = 0
MAX_SEARCH_DEBOUNCE_MS = 5000

_loaded: bool = False
_page_size: int = DEFAULT_PAGE_SIZE
_search_debounce_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS
_display: dict[str, object] = {}


def _load_defaults() -> dict:
    """Load the bundled default settings using importlib.resources.

    Works whether the package is run from source or installed as a wheel.
    """
    try:
        ref = importlib.resources.files("langtable").joinpath("default_settings.json")
        with importlib.resources.as_file(ref) as p:
            with open(p, encoding="utf-8") as f:
                return json.load(f)
    except (FileNotFoundError, TypeError):
        return {}


def _load_settings() -> dict:
    """Load the user settings file, if there is one."""
    if not _USER_SETTINGS_PATH.exists():
        return {}
    try:
        with open(_USER_SETTINGS_PATH, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        log.warning("Ignoring unreadable settings file %s: %s", _USER_SETTINGS_PATH, exc)
        return {}


def valid_page_size(size: int) -> bool:
    return size in PAGE_SIZE_OPTIONS


def _load() -> None:
    """Load and merge default + user configs."""
    global _page_size, _search_debounce_ms, _display, _loaded
    settings = _load_defaults()
    user = _load_settings()
    display = dict(settings.get("display", {}))
    display.update(user.get("display", {}))
    settings.update(user)

    size = settings.get("page_size", DEFAULT_PAGE_SIZE)
    _page_size = size if valid_page_size(size) else DEFAULT_PAGE_SIZE

    delay = settings.get("search_debounce_ms", DEFAULT_SEARCH_DEBOUNCE_MS)
    _search_debounce_ms = max(MIN_SEARCH_DEBOUNCE_MS, min(MAX_SEARCH_DEBOUNCE_MS, int(delay)))

    _display = display
    _loaded = True


def save_settings() -> None:
    """Persist current settings to disk."""
    _USER_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    data = {
        "page_size": _page_size,
        "search_debounce_ms": _search_debounce_ms,
        "display": _display,
    }
    with open(_USER_SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def get_page_size() -> int:
    """Return the initial rows-per-page (cached after first call)."""
    if not _loaded:
        _load()
    return _page_size


def set_page_size(size: int) -> None:
    """Remember *size* as the initial rows-per-page; invalid sizes are ignored."""
    global _page_size
    if not _loaded:
        _load()
    if valid_page_size(size):
        _page_size = size


def get_page_size_options() -> tuple[int, ...]:
    return PAGE_SIZE_OPTIONS


def get_search_debounce_ms() -> int:
    if not _loaded:
        _load()
    return _search_debounce_ms


def reload() -> None:
    """Force re-read of config files."""
    _load()


def get_display(key: str, default=None):
    """Return a display setting value."""
    if not _loaded:
        _load()
    return _display.get(key, default)
