"""String helpers: casing, truncation, padding and simple inflection."""
from __future__ import annotations

import re
from typing import Any, Optional

SMALL_WORDS = frozenset({
    "a", "an", "and", "as", "at", "but", "by", "for", "if", "in", "nor",
    "of", "on", "or", "so", "the", "to", "up", "yet",
})


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def capitalize(value: Optional[str]) -> str:
    """Upper-case the first character and lower-case the rest."""
    text = _text(value)
    if not text:
        return ""
    return text[0].upper() + text[1:].lower()


def capitalize_words(value: Optional[str]) -> str:
    return " ".join(capitalize(word) for word in _text(value).split(" "))


def upper(value: Optional[str]) -> str:
    return _text(value).upper()


def lower(value: Optional[str]) -> str:
    return _text(value).lower()


def title_case(value: Optional[str]) -> str:
    """Title case that keeps small words (``of``, ``the``...) lower-case.

    The first and last words are always capitalized.
    """
    text = _text(value)
    if not text:
        return ""
    words = text.split(" ")
    result = []
    for index, word in enumerate(words):
        if index in (0, len(words) - 1):
            result.append(capitalize(word))
        elif word.lower() in SMALL_WORDS:
            result.append(word.lower())
        else:
            result.append(capitalize(word))
    return " ".join(result)


def kebab_case(value: Optional[str]) -> str:
    text = re.sub(r"([a-z])([A-Z])", r"\1-\2", _text(value))
    return re.sub(r"[\s_]+", "-", text).lower()


def snake_case(value: Optional[str]) -> str:
    text = re.sub(r"([a-z])([A-Z])", r"\1_\2", _text(value))
    return re.sub(r"[\s-]+", "_", text).lower()


def camel_case(value: Optional[str]) -> str:
    text = re.sub(r"([a-z])([A-Z])", r"\1 \2", _text(value))
    text = re.sub(r"([A-Z])([A-Z][a-z])", r"\1 \2", text)
    words = [w for w in re.split(r"[\s\-_]+", text) if w]
    return "".join(
        word.lower() if index == 0 else word[0].upper() + word[1:].lower()
        for index, word in enumerate(words)
    )


def pascal_case(value: Optional[str]) -> str:
    camel = camel_case(value)
    return camel[:1].upper() + camel[1:]


def truncate(value: Optional[str], length: Any, suffix: str = "...") -> str:
    """Cut ``value`` to ``length`` characters including ``suffix``."""
    text = _text(value)
    limit = int(length)
    if len(text) <= limit:
        return text
    return text[: max(limit - len(suffix), 0)] + suffix


def clean(value: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    return re.sub(r"\s+", " ", _text(value)).strip()


_PLURAL_RULES = (
    (re.compile(r"s$", re.IGNORECASE), "s"),
    (re.compile(r"([^aeiou])y$", re.IGNORECASE), r"\1ies"),
    (re.compile(r"(x|z|s|sh|ch)$", re.IGNORECASE), r"\1es"),
)


def pluralize(word: str, count: Any, plural: Optional[str] = None) -> str:
    """Return ``word`` for a count of one, otherwise its plural form.

    Example:
        >>> pluralize("party", 2)
        'parties'
    """
    if count == 1:
        return word
    if isinstance(plural, str) and plural:
        return plural
    for pattern, replacement in _PLURAL_RULES:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)
    return word + "s"


def pad_start(value: Any, length: Any, char: str = " ") -> str:
    if value is None or value == "":
        return char * int(length)
    return _pad(str(value), int(length), char, left=True)


def pad_end(value: Any, length: Any, char: str = " ") -> str:
    if value is None or value == "":
        return char * int(length)
    return _pad(str(value), int(length), char, left=False)


def _pad(text: str, length: int, char: str, *, left: bool) -> str:
    missing = length - len(text)
    if missing <= 0 or not char:
        return text
    filler = (char * (missing // len(char) + 1))[:missing]
    return filler + text if left else text + filler


def contains(value: Optional[str], substring: Optional[str], case_sensitive: bool = False) -> bool:
    text = _text(value)
    if not text or not substring:
        return False
    if case_sensitive:
        return substring in text
    return substring.lower() in text.lower()


def replace_all(value: Optional[str], search: str, replacement: str) -> str:
    return _text(value).replace(str(search), str(replacement))


def initials(name: Optional[str]) -> str:
    """``"john ronald tolkien"`` -> ``"JRT"``."""
    return "".join(word[:1].upper() for word in _text(name).split(" "))


STRING_HELPERS = {
    "capitalize": capitalize,
    "capitalizeWords": capitalize_words,
    "upper": upper,
    "lower": lower,
    "titleCase": title_case,
    "kebabCase": kebab_case,
    "snakeCase": snake_case,
    "camelCase": camel_case,
    "pascalCase": pascal_case,
    "truncate": truncate,
    "clean": clean,
    "pluralize": pluralize,
    "padStart": pad_start,
    "padEnd": pad_end,
    "contains": contains,
    "replaceAll": replace_all,
    "initials": initials,
}

__all__ = [
    "capitalize", "capitalize_words", "upper", "lower", "title_case",
    "kebab_case", "snake_case", "camel_case", "pascal_case", "truncate",
    "clean", "pluralize", "pad_start", "pad_end", "contains", "replace_all",
    "initials", "STRING_HELPERS",
]
