"""Guidance message internationalisation helpers.

Translation data is loaded from ``steadyframe/data/guidance_i18n.json``;
hosts with their own string tables implement :class:`TranslationResolver`.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Protocol, runtime_checkable

from .messages import MessageKey

_DATA_FILE = Path(__file__).resolve().parent / "data" / "guidance_i18n.json"

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "fr")

_LANGUAGE_ALIASES: dict[str, str] = {
    "english": "en",
    "french": "fr",
    "francais": "fr",
    "français": "fr",
}


@runtime_checkable
class TranslationResolver(Protocol):
    def resolve(self, key: MessageKey, language: str) -> str: ...


@lru_cache(maxsize=1)
def _load_translations() -> dict[str, dict[str, str]]:
    if not _DATA_FILE.exists():
        raise RuntimeError(f"Missing translation file: {_DATA_FILE}")
    try:
        with open(_DATA_FILE, encoding="utf-8") as fh:
            data: dict[str, dict[str, str]] = json.load(fh)
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Invalid translation file: {_DATA_FILE}") from exc
    return data


def normalize_lang(lang: object) -> str:
    if not isinstance(lang, str):
        return "en"
    cleaned = lang.strip().lower()
    if cleaned in _LANGUAGE_ALIASES:
        return _LANGUAGE_ALIASES[cleaned]
    for code in SUPPORTED_LANGUAGES:
        if cleaned.startswith(code):
            return code
    return "en"


def tr(lang: object, key: str) -> str:
    values = _load_translations().get(str(key))
    if values is None:
        return str(key)
    return values.get(normalize_lang(lang)) or values.get("en") or str(key)


class JsonTranslationResolver:
    """Resolver backed by the bundled JSON catalog, English as fallback."""

    def resolve(self, key: MessageKey, language: str) -> str:
        return tr(language, key)

    def join(self, keys: tuple[MessageKey, ...], language: str, separator: str = " • ") -> str:
        return separator.join(self.resolve(key, language) for key in keys)
