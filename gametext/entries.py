#!/usr/bin/env python3
"""
In-memory model of localized strings.

StringInfo holds one label with the text and speech of a single language.
MultiStringInfo holds one label with a text and speech slot per language.
StringInfosArray is the fixed per-language storage owned by a StringTable.

Labels and speech references are byte strings on disk. They are kept as
str here and converted with UTF-8 + surrogateescape, so any byte sequence
survives a load/save cycle unchanged. Texts are UTF-16 on disk and are
measured in UTF-16 code units.
"""

from dataclasses import dataclass, field
from typing import Iterator

from .languages import LANGUAGE_COUNT, LanguageID

# Buffer caps. A length fits when it is smaller than cap - 1.
TEXT_16_SIZE = 1024
# In UTF-8, characters of the UTF-16 accessible range take 1 to 4 octets.
TEXT_8_SIZE = TEXT_16_SIZE * 4


def to_bytes(value: str) -> bytes:
    """Encode a label or speech reference to its on-disk bytes."""
    return value.encode('utf-8', 'surrogateescape')


def from_bytes(data: bytes) -> str:
    """Decode on-disk label or speech bytes."""
    return data.decode('utf-8', 'surrogateescape')


def utf16_length(text: str) -> int:
    """Length of text in UTF-16 code units."""
    return len(text.encode('utf-16-le', 'surrogatepass')) // 2


def utf8_length(text: str) -> int:
    """Length of text in bytes after UTF-8 conversion."""
    return len(text.encode('utf-8', 'surrogatepass'))


@dataclass
class StringInfo:
    """
    Localized string of a single language.

    Attributes:
        label: Lookup key, compared case-insensitively
        text: Display text
        speech: Optional voice clip reference
    """
    label: str = ""
    text: str = ""
    speech: str = ""


def _language_slots() -> list[str]:
    return [""] * LANGUAGE_COUNT


@dataclass
class MultiStringInfo:
    """Localized string with one text and speech slot per LanguageID."""
    label: str = ""
    text: list[str] = field(default_factory=_language_slots)
    speech: list[str] = field(default_factory=_language_slots)


class StringInfosArray:
    """
    Fixed array of entry collections, one per LanguageID.

    Only LanguageID values are accepted as indexes, so a stray integer can
    never address a slot that does not exist.
    """

    def __init__(self):
        self._slots: list[list[StringInfo]] = [[] for _ in range(LANGUAGE_COUNT)]

    @staticmethod
    def _index(language: LanguageID) -> int:
        if not isinstance(language, LanguageID):
            raise TypeError(f"Language slot must be a LanguageID, got {language!r}")
        return int(language)

    def __getitem__(self, language: LanguageID) -> list[StringInfo]:
        return self._slots[self._index(language)]

    def __setitem__(self, language: LanguageID, string_infos: list[StringInfo]) -> None:
        self._slots[self._index(language)] = string_infos

    def __iter__(self) -> Iterator[list[StringInfo]]:
        return iter(self._slots)

    def __len__(self) -> int:
        return LANGUAGE_COUNT

    def items(self) -> Iterator[tuple[LanguageID, list[StringInfo]]]:
        for language in LanguageID:
            yield language, self._slots[language]

    def swap(self, left: LanguageID, right: LanguageID) -> None:
        a, b = self._index(left), self._index(right)
        self._slots[a], self._slots[b] = self._slots[b], self._slots[a]

    def clear(self, language: LanguageID) -> None:
        self._slots[self._index(language)] = []
