"""Locale handling for localized menu fields."""
import re
import unicodedata
from enum import Enum
from typing import Any, Optional


class Locale(str, Enum):
    """Supported storefront locales."""

    EN = "en"
    NL = "nl"
    FR = "fr"

    def __str__(self) -> str:
        return self.value


DEFAULT_LOCALE = Locale.EN


def resolve_locale(value: Optional[str], default: Optional[str] = None) -> Locale:
    """Return the locale matching ``value``, falling back to the default."""
    if value:
        candidate = re.split(r"[-_]", value.strip().lower(), maxsplit=1)[0]
        for locale in Locale:
            if locale.value == candidate:
                return locale
    if default and default != value:
        return resolve_locale(default)
    return DEFAULT_LOCALE


def pick_localized(record: Any, field: str, locale: Optional[str] = None) -> Optional[str]:
    """
    Read a per-locale column such as ``name_nl`` from a record.

    Falls back to the English column, then to the unsuffixed column
    (``name``) when the record has one.
    """
    locale = resolve_locale(locale)
    for attribute in (f"{field}_{locale.value}", f"{field}_{DEFAULT_LOCALE.value}", field):
        value = getattr(record, attribute, None)
        if value:
            return value
    return None


def generate_slug(text: str) -> str:
    """Build a URL slug: ASCII only, lowercase, words joined by hyphens."""
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    return re.sub(r"[^a-z0-9]+", "-", ascii_text).strip("-")
