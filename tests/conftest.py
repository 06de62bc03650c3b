"""Shared pytest fixtures for language table tests."""

from __future__ import annotations

import pytest

from langtable import config
from langtable.app import LanguageTableEditor
from langtable.models import LanguageEntry, TranslationMatrix


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.langtable/settings.json."""
    monkeypatch.setattr(config, "_USER_CONFIG_DIR", tmp_path / ".langtable")
    monkeypatch.setattr(config, "_USER_SETTINGS_PATH", tmp_path / ".langtable" / "settings.json")
    config.reload()
    yield
    config.reload()


@pytest.fixture
def sample_entries() -> list[LanguageEntry]:
    """Three languages with uneven key coverage."""
    return [
        LanguageEntry("en", {
            "greet": "Hello",
            "bye": "<b>Goodbye</b>",
            "title": '<div id="t" class="headline">Welcome</div>',
        }),
        LanguageEntry("hr", {
            "greet": "Bok",
            "bye": "Doviđenja",
        }),
        LanguageEntry("de", {
            "greet": "Hallo",
            "title": "<p>Willkommen</p>",
            "extra": "Nur Deutsch",
        }),
    ]


@pytest.fixture
def sample_matrix(sample_entries) -> TranslationMatrix:
    matrix = TranslationMatrix()
    matrix.load(sample_entries)
    return matrix


@pytest.fixture
def editor(sample_entries) -> LanguageTableEditor:
    return LanguageTableEditor(sample_entries, page_size=25)


@pytest.fixture
def big_editor() -> LanguageTableEditor:
    """60 keys in two languages, 'k00'..'k59'."""
    en = LanguageEntry("en", {f"k{i:02d}": f"English {i:02d}" for i in range(60)})
    fr = LanguageEntry("fr", {f"k{i:02d}": f"Français {i:02d}" for i in range(60)})
    return LanguageTableEditor([en, fr], page_size=25)
