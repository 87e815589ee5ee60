"""Localized string lookup for public pages and notifications."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

LANG_DIR = Path(__file__).resolve().parent.parent / "i18n"


class I18n:
    """Key/value language pack with `{param}` substitution."""

    def __init__(self, lang: str, strings: dict[str, str]):
        self.lang = lang
        self._strings = strings

    @classmethod
    def load(cls, lang: str) -> "I18n":
        """
        Load a language pack from app/i18n/<lang>.json.

        Falls back to English when the requested pack does not exist.

        Args:
            lang: Language code (e.g. "en")

        Returns:
            Loaded I18n instance
        """
        path = LANG_DIR / f"{lang}.json"
        if not path.is_file():
            logger.warning(f"Language pack '{lang}' not found, falling back to 'en'")
            lang, path = "en", LANG_DIR / "en.json"

        with path.open(encoding="utf-8") as f:
            return cls(lang, json.load(f))

    def T(self, key: str) -> str:
        """Return the string for key, or the key itself if missing."""
        return self._strings.get(key, key)

    def Ts(self, key: str, **params: str) -> str:
        """Return the string for key with `{name}` placeholders replaced."""
        text = self.T(key)
        for name, value in params.items():
            text = text.replace("{" + name + "}", str(value))
        return text
