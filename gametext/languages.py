#!/usr/bin/env python3
"""
Language registry for game text tables.

Every table keeps one entry collection per LanguageID slot. The slot order
is fixed by the binary CSF format, which stores the language as an ordinal,
so the enumeration below must never be reordered.

Multi STR files identify languages by a 2-letter code instead of a name.
Languages without a usable code carry the INVALID_CODE marker and are
removed from selectors with filter_usable() before any Multi STR work.
"""

from enum import IntEnum
from typing import Iterable, Iterator, Optional, Union


class LanguageID(IntEnum):
    """Language slots, in on-disk ordinal order."""
    US = 0
    UK = 1
    GERMAN = 2
    FRENCH = 3
    SPANISH = 4
    ITALIAN = 5
    JAPANESE = 6
    JABBER = 7
    KOREAN = 8
    CHINESE = 9
    UNUSED_1 = 10
    BRAZILIAN = 11
    POLISH = 12
    UNKNOWN = 13
    RUSSIAN = 14
    ARABIC = 15


LANGUAGE_COUNT = len(LanguageID)

INVALID_CODE = "__"

_LANGUAGE_NAMES = (
    "English",
    "British",
    "German",
    "French",
    "Spanish",
    "Italian",
    "Japanese",
    "Jabber",
    "Korean",
    "Chinese",
    "Unused",
    "Brazilian",
    "Polish",
    "Unknown",
    "Russian",
    "Arabic",
)

# ISO 639-1 language codes - sort of.
_LANGUAGE_CODES = (
    "US",
    INVALID_CODE,  # UK
    "DE",
    "FR",
    "ES",
    "IT",
    "JA",
    INVALID_CODE,  # JABBER
    "KO",
    "ZH",
    INVALID_CODE,  # UNUSED_1
    "BP",
    "PL",
    INVALID_CODE,  # UNKNOWN
    "RU",
    "AR",
)

assert len(_LANGUAGE_NAMES) == LANGUAGE_COUNT
assert len(_LANGUAGE_CODES) == LANGUAGE_COUNT

_ALL_MASK = (1 << LANGUAGE_COUNT) - 1


def to_language(value: int) -> LanguageID:
    """
    Convert an ordinal to a LanguageID.

    Raises:
        ValueError: If value is not a valid language slot
    """
    return LanguageID(value)


class Languages:
    """
    Immutable set of LanguageID slots.

    Used to select which per-language collections an operation touches.
    Languages() is the empty selector, Languages.all() selects every slot.
    """

    __slots__ = ('_mask',)

    def __init__(self, *languages: Union[LanguageID, Iterable[LanguageID]]):
        mask = 0
        for item in languages:
            if isinstance(item, LanguageID):
                mask |= 1 << item
            else:
                for language in item:
                    mask |= 1 << to_language(language)
        self._mask = mask

    @classmethod
    def all(cls) -> "Languages":
        return cls.from_mask(_ALL_MASK)

    @classmethod
    def from_mask(cls, mask: int) -> "Languages":
        selector = cls()
        selector._mask = mask & _ALL_MASK
        return selector

    @property
    def mask(self) -> int:
        return self._mask

    def has(self, language: LanguageID) -> bool:
        return bool(self._mask & (1 << language))

    def set(self, language: LanguageID) -> "Languages":
        return Languages.from_mask(self._mask | (1 << to_language(language)))

    def reset(self, language: LanguageID) -> "Languages":
        return Languages.from_mask(self._mask & ~(1 << to_language(language)))

    def any(self) -> bool:
        return self._mask != 0

    def none(self) -> bool:
        return self._mask == 0

    def all_of(self, other: "Languages") -> bool:
        """True if every language of other is selected here."""
        return (self._mask & other._mask) == other._mask

    def any_of(self, other: "Languages") -> bool:
        """True if at least one language of other is selected here."""
        return (self._mask & other._mask) != 0

    def first(self) -> Optional[LanguageID]:
        for language in self:
            return language
        return None

    def __iter__(self) -> Iterator[LanguageID]:
        for language in LanguageID:
            if self._mask & (1 << language):
                yield language

    def __len__(self) -> int:
        return bin(self._mask).count('1')

    def __contains__(self, language: LanguageID) -> bool:
        return self.has(language)

    def __or__(self, other: Union["Languages", LanguageID]) -> "Languages":
        if isinstance(other, LanguageID):
            return self.set(other)
        return Languages.from_mask(self._mask | other._mask)

    def __and__(self, other: "Languages") -> "Languages":
        return Languages.from_mask(self._mask & other._mask)

    def __invert__(self) -> "Languages":
        return Languages.from_mask(~self._mask)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Languages):
            return NotImplemented
        return self._mask == other._mask

    def __hash__(self) -> int:
        return hash(self._mask)

    def __bool__(self) -> bool:
        return self.any()

    def __repr__(self) -> str:
        names = '|'.join(language.name for language in self)
        return f"Languages({names or 'NONE'})"


def name_for(language: LanguageID) -> str:
    """Display name of a language slot."""
    return _LANGUAGE_NAMES[to_language(language)]


def language_for(name: str) -> Optional[LanguageID]:
    """
    Find a language by display name.

    Args:
        name: Display name, compared case-insensitively

    Returns:
        Matching LanguageID, or None if no name matches
    """
    lowered = name.lower()
    for index, language_name in enumerate(_LANGUAGE_NAMES):
        if language_name.lower() == lowered:
            return LanguageID(index)
    return None


def code_for(language: LanguageID) -> str:
    """2-letter code of a language slot, or INVALID_CODE."""
    return _LANGUAGE_CODES[to_language(language)]


def language_for_code(code: str) -> Optional[LanguageID]:
    """Find a language by its 2-letter code. INVALID_CODE never matches."""
    upper = code.upper()
    if upper == INVALID_CODE:
        return None
    for index, language_code in enumerate(_LANGUAGE_CODES):
        if language_code == upper:
            return LanguageID(index)
    return None


def filter_usable(languages: Languages) -> Languages:
    """Remove every language that has no usable language code."""
    for language in languages:
        if code_for(language) == INVALID_CODE:
            languages = languages.reset(language)
    return languages


def list_languages() -> list[dict]:
    """List all language slots with their names and codes."""
    return [
        {
            'id': int(language),
            'name': name_for(language),
            'code': code_for(language),
            'usable': code_for(language) != INVALID_CODE,
        }
        for language in LanguageID
    ]
