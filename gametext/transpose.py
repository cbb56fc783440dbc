#!/usr/bin/env python3
"""
Conversion between per-language collections and multi-language entries.

Multi STR files store every language of a label in one record, while a
StringTable keeps one StringInfo list per language. Packing merges the
per-language lists by label, unpacking splits them again.
"""

from typing import Optional

from .entries import MultiStringInfo, StringInfo, StringInfosArray
from .languages import Languages
from .lookup import GameTextLookup
from .options import GameTextOption


def pack_string_infos(
    string_infos_array: StringInfosArray,
    languages: Optional[Languages] = None,
) -> list[MultiStringInfo]:
    """
    Merge per-language collections into multi-language entries.

    Languages are walked in LanguageID order. The first language that
    carries a label decides where the entry is placed; labels first seen
    in a later language are appended after the entries known so far.

    Args:
        string_infos_array: Per-language collections
        languages: Languages to pack (default: all)

    Returns:
        List of MultiStringInfo in first-seen order
    """
    if languages is None:
        languages = Languages.all()

    multi_string_infos: list[MultiStringInfo] = []
    lookup: GameTextLookup[MultiStringInfo] = GameTextLookup()

    for language in languages:
        string_infos = string_infos_array[language]
        if not string_infos:
            continue

        if len(lookup) != len(multi_string_infos):
            lookup.load(multi_string_infos)

        new_infos: list[MultiStringInfo] = []

        for string_info in string_infos:
            multi_info = lookup.find(string_info.label)
            if multi_info is None:
                multi_info = MultiStringInfo(label=string_info.label)
                new_infos.append(multi_info)
            multi_info.text[language] = string_info.text
            multi_info.speech[language] = string_info.speech

        multi_string_infos.extend(new_infos)

    return multi_string_infos


def unpack_string_infos(
    multi_string_infos: list[MultiStringInfo],
    string_infos_array: StringInfosArray,
    languages: Languages,
    options: GameTextOption = GameTextOption.NONE,
) -> None:
    """
    Split multi-language entries into per-language collections.

    Every selected language receives one StringInfo per entry, with empty
    text and speech where the entry has none for that language.

    Args:
        multi_string_infos: Entries to split
        string_infos_array: Destination collections, overwritten per language
        languages: Languages to unpack
        options: OPTIMIZE_MEMORY_SIZE replaces the destination lists
            instead of refilling them in place
    """
    for language in languages:
        string_infos = [
            StringInfo(label=info.label, text=info.text[language], speech=info.speech[language])
            for info in multi_string_infos
        ]

        if GameTextOption.OPTIMIZE_MEMORY_SIZE in options:
            string_infos_array[language] = string_infos
        else:
            string_infos_array[language][:] = string_infos
