from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.utils import translation

_DEFAULT_LANGUAGE = (
    (getattr(settings, "LANGUAGE_CODE", "en") or "en").split("-")[0].lower()
)
_SUPPORTED_LANGUAGES = {
    (code or "en").split("-")[0].lower()
    for code, _ in getattr(settings, "LANGUAGES", [("en", "English")])
} or {_DEFAULT_LANGUAGE}

ARABIC = "ar"


@dataclass(frozen=True)
class BilingualText:
    """A user-facing message carried in both storefront languages."""

    en: str
    ar: str

    def for_language(self, language_code: Optional[str]) -> str:
        if normalize_language_code(language_code) == ARABIC and self.ar:
            return self.ar
        return self.en or self.ar


def normalize_language_code(language_code: Optional[str]) -> str:
    """
    Normalize a language code to lowercase without region.
    Unknown languages fall back to the project default.
    """

    if not language_code:
        language_code = translation.get_language()
    if not language_code:
        return _DEFAULT_LANGUAGE
    normalized = language_code.split("-")[0].lower()
    return normalized if normalized in _SUPPORTED_LANGUAGES else _DEFAULT_LANGUAGE


def resolve_language(request=None, fallback: Optional[str] = None) -> str:
    """
    Resolve the language for a request: explicit ``lang`` query parameter first,
    then whatever LocaleMiddleware/Accept-Language negotiated.
    """

    language_code = None
    if request is not None:
        query = getattr(request, "GET", None)
        if query is not None and hasattr(query, "get"):
            language_code = query.get("lang") or query.get("language")
        if not language_code:
            language_code = getattr(request, "LANGUAGE_CODE", None)
        if not language_code and hasattr(request, "META"):
            language_code = translation.get_language_from_request(request)
    language_code = language_code or translation.get_language() or fallback
    return normalize_language_code(language_code)


__all__ = [
    "ARABIC",
    "BilingualText",
    "normalize_language_code",
    "resolve_language",
]
