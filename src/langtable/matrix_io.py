"""Converting the host dataset to and from language entries.

The host supplies an ordered JSON array of languages::

    [{"languageCode": "en", "translations": {"greet": "<b>Hi</b>"}}, ...]

Older hosts use ``LanguageTwoLetter``/``Translations`` as field names; both
spellings are accepted on input.  Output always uses the first spelling.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from langtable.exceptions import DatasetError
from langtable.models import LanguageEntry, TranslationMatrix

_CODE_FIELDS = ("languageCode", "LanguageTwoLetter")
_TRANSLATION_FIELDS = ("translations", "Translations")

# ── Parsing ─────────────────────────────────────────────────────


def _first_field(item: dict, names: tuple[str, ...], index: int) -> Any:
    for name in names:
        if name in item:
            return item[name]
    raise DatasetError(f"Language entry {index} has none of the fields {', '.join(names)}")


def entries_from_dataset(data: Any) -> list[LanguageEntry]:
    """Convert decoded JSON into language entries, keeping their order.

    Raises:
        DatasetError: If *data* is not a list of language objects.
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise DatasetError(f"Dataset must be a list of languages, got {type(data).__name__}")

    entries: list[LanguageEntry] = []
    for index, item in enumerate(data):
        if isinstance(item, LanguageEntry):
            entries.append(item)
            continue
        if not isinstance(item, dict):
            raise DatasetError(f"Language entry {index} is not an object")
        code = _first_field(item, _CODE_FIELDS, index)
        translations = _first_field(item, _TRANSLATION_FIELDS, index) or {}
        if not isinstance(translations, dict):
            raise DatasetError(f"Translations of entry {index} ({code}) are not an object")
        entries.append(LanguageEntry(
            code=str(code),
            translations={str(k): "" if v is None else str(v) for k, v in translations.items()},
        ))
    return entries


# ── Writing ─────────────────────────────────────────────────────


def _as_dataset(source: TranslationMatrix | Iterable[LanguageEntry]) -> list[dict]:
    if isinstance(source, TranslationMatrix):
        return source.to_dataset()
    return [entry.to_dict() for entry in source]


def dumps_dataset(source: TranslationMatrix | Iterable[LanguageEntry], *, indent: int | None = None) -> str:
    """Serialize the working data, e.g. for a form field before submission."""
    return json.dumps(_as_dataset(source), ensure_ascii=False, indent=indent)
