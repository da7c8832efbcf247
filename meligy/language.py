"""Script-based language detection shared by every adapter."""

import re

# Order matters: the first script found wins.
SCRIPT_PATTERNS: dict[str, re.Pattern[str]] = {
    "ar": re.compile(r"[\u0600-\u06FF]"),
    "zh": re.compile(r"[\u4E00-\u9FFF]"),
    "ja": re.compile(r"[\u3040-\u309F\u30A0-\u30FF]"),
    "ko": re.compile(r"[\uAC00-\uD7AF]"),
    "ru": re.compile(r"[\u0400-\u04FF]"),
    "hi": re.compile(r"[\u0900-\u097F]"),
    "th": re.compile(r"[\u0E00-\u0E7F]"),
    "he": re.compile(r"[\u0590-\u05FF]"),
    "el": re.compile(r"[\u0370-\u03FF]"),
}

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "ar": "Arabic",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "ru": "Russian",
    "hi": "Hindi",
    "th": "Thai",
    "he": "Hebrew",
    "el": "Greek",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
}

# Common function words for Latin-script languages, checked in this order.
_LATIN_HINTS: list[tuple[str, re.Pattern[str]]] = [
    ("es", re.compile(r"\b(el|los|las|una|pero|con|para|por|que|como|muy|más|también|sí)\b", re.I)),
    ("fr", re.compile(r"\b(le|les|une|et|mais|avec|dans|pour|par|comme|très|plus|aussi|oui|non)\b", re.I)),
    ("de", re.compile(r"\b(der|die|das|ein|eine|und|oder|aber|mit|von|für|durch|dass|wie|sehr|auch|nein)\b", re.I)),
    ("it", re.compile(r"\b(il|gli|di|per|che|molto|più|anche|sì)\b", re.I)),
    ("pt", re.compile(r"\b(os|um|uma|ou|mas|em|muito|mais|também|sim|não)\b", re.I)),
]

# Egyptian/Arabic words users sometimes type alongside Latin text.
_ARABIC_HINT_RE = re.compile(r"عربي|مصر|مصري|ازاي|ايه|ليه")


def detect_script(text: str) -> str:
    """Return the language tag of the first non-Latin script in *text*, or ``"en"``."""
    for lang, pattern in SCRIPT_PATTERNS.items():
        if pattern.search(text):
            return lang
    return "en"


def detect_language(text: str, *, latin_hints: bool = False) -> str:
    """Classify *text* into a language tag.

    Script detection always runs first. With ``latin_hints`` set, Latin
    text is further checked against common function words for Spanish,
    French, German, Italian and Portuguese before defaulting to English.
    """
    lang = detect_script(text)
    if lang != "en" or not latin_hints:
        return lang
    for tag, pattern in _LATIN_HINTS:
        if pattern.search(text):
            return tag
    return "en"


def is_arabic(text: str) -> bool:
    """True when *text* contains Arabic script or Egyptian hint words."""
    return detect_script(text) == "ar" or bool(_ARABIC_HINT_RE.search(text))


def language_name(tag: str) -> str:
    return LANGUAGE_NAMES.get(tag, tag)
