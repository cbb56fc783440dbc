#!/usr/bin/env python3
"""
String table management for game text files.

StringTable owns one StringInfo list per language and moves them between
memory and CSF, STR and Multi STR files. It is the only stateful part of
the package: handlers parse and serialize, the table decides which
language slots are read, replaced, merged or written.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from .entries import TEXT_8_SIZE, TEXT_16_SIZE, StringInfo, StringInfosArray, to_bytes, utf8_length, utf16_length
from .format_handlers import FileType, FormatRegistry
from .languages import LanguageID, Languages, filter_usable, name_for, to_language
from .lookup import GameTextLookup
from .options import GameTextOption

FILE_BUFFER_SIZE = 32 * 1024

PathLike = Union[str, Path]


@dataclass
class LengthInfo:
    """Longest values of one language collection."""
    max_label_len: int = 0
    max_text_utf8_len: int = 0
    max_text_utf16_len: int = 0
    max_speech_len: int = 0


def get_length_info(string_infos: list[StringInfo]) -> LengthInfo:
    """Measure the longest label, text and speech of a collection."""
    info = LengthInfo()
    for string_info in string_infos:
        info.max_label_len = max(info.max_label_len, len(to_bytes(string_info.label)))
        info.max_text_utf8_len = max(info.max_text_utf8_len, utf8_length(string_info.text))
        info.max_text_utf16_len = max(info.max_text_utf16_len, utf16_length(string_info.text))
        info.max_speech_len = max(info.max_speech_len, len(to_bytes(string_info.speech)))
    return info


def merge_string_infos(target: list[StringInfo], source: list[StringInfo]) -> None:
    """
    Overwrite matching labels of target and append the rest.

    Entries of source whose label exists in target replace that entry's
    text and speech in place. All other source entries are appended after
    the scan, in their source order.
    """
    lookup: GameTextLookup[StringInfo] = GameTextLookup(target)
    new_infos: list[StringInfo] = []

    for string_info in source:
        found = lookup.find(string_info.label)
        if found is not None:
            found.text = string_info.text
            found.speech = string_info.speech
        else:
            new_infos.append(StringInfo(string_info.label, string_info.text, string_info.speech))

    target.extend(new_infos)


class StringTable:
    """
    Localized string storage for all languages.

    Usage:
        table = StringTable()
        if table.load("data/generals.csf"):
            table.save("generals.str")
    """

    def __init__(
        self,
        options: GameTextOption = GameTextOption.OPTIMIZE_MEMORY_SIZE,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize an empty table.

        Args:
            options: Load and save options
            logger: Logger for diagnostics (default: module logger)
        """
        self.log = logger or logging.getLogger(__name__)
        self._options = options
        self._language = LanguageID.UNKNOWN
        self._string_infos = StringInfosArray()

    @property
    def options(self) -> GameTextOption:
        return self._options

    @options.setter
    def options(self, options: GameTextOption) -> None:
        self._options = GameTextOption(options)

    @property
    def language(self) -> LanguageID:
        """Active language used by single language operations."""
        return self._language

    @language.setter
    def language(self, language: LanguageID) -> None:
        self._language = to_language(language)

    def get_string_infos(self, language: Optional[LanguageID] = None) -> list[StringInfo]:
        """Live entry list of a language (default: active language)."""
        if language is None:
            language = self._language
        return self._string_infos[language]

    def is_loaded(self, languages: Optional[Languages] = None) -> bool:
        """True if every selected language has entries (default: active language)."""
        if languages is None:
            languages = Languages(self._language)
        return all(self._string_infos[language] for language in languages)

    def is_any_loaded(self, languages: Optional[Languages] = None) -> bool:
        """True if at least one selected language has entries (default: active language)."""
        if languages is None:
            languages = Languages(self._language)
        return any(self._string_infos[language] for language in languages)

    def load(
        self,
        filepath: PathLike,
        file_type: FileType = FileType.AUTO,
        languages: Optional[Languages] = None,
    ) -> bool:
        """
        Load a table file.

        Existing data is left untouched when the file cannot be read.

        Args:
            filepath: Path to CSF, STR or Multi STR file
            file_type: File format, AUTO picks it from the extension
            languages: Languages to load from Multi STR files (default: all)

        Returns:
            True if the file was loaded
        """
        if not filepath:
            self.log.error("Cannot load text file: no file path given")
            return False

        if languages is None:
            languages = Languages.all()

        file_type = FormatRegistry.resolve_file_type(str(filepath), file_type)
        handler = FormatRegistry.get_handler_for_type(file_type, self.log)
        languages = filter_usable(languages)

        try:
            with open(filepath, 'rb', buffering=FILE_BUFFER_SIZE) as stream:
                result = handler.read(stream, self._language, languages, self._options)
        except OSError as e:
            self.log.error("Cannot open file '%s' for reading: %s", filepath, e)
            return False

        if not result.success:
            self.log.error("Failed to load file '%s'", filepath)
            return False

        self.log.info("File '%s' loaded successfully", filepath)

        loaded_languages = languages if handler.supports_multi_language else Languages(result.language)

        for language in loaded_languages:
            self._string_infos[language] = result.string_infos[language]
            self.log.info("Read language: %s", name_for(language))
            self.log.info("Read line count: %d", len(self._string_infos[language]))

        self._language = result.language

        if GameTextOption.CHECK_BUFFER_LENGTH_ON_LOAD in self._options:
            for language in loaded_languages:
                self.check_buffer_lengths(language)

        return True

    def load_csf(self, filepath: PathLike) -> bool:
        """Load a CSF file. The active language becomes the one stored in the file."""
        return self.load(filepath, FileType.CSF)

    def load_str(self, filepath: PathLike) -> bool:
        """Load a STR file into the active language."""
        return self.load(filepath, FileType.STR)

    def load_multi_str(self, filepath: PathLike, languages: Optional[Languages] = None) -> bool:
        """Load the given languages of a Multi STR file. The first loaded language becomes active."""
        return self.load(filepath, FileType.MULTI_STR, languages)

    def save(
        self,
        filepath: PathLike,
        file_type: FileType = FileType.AUTO,
        languages: Optional[Languages] = None,
    ) -> bool:
        """
        Save a table file.

        Args:
            filepath: Destination path
            file_type: File format, AUTO picks it from the extension
            languages: Languages to save to Multi STR files (default: all)

        Returns:
            True if the file was written
        """
        if not filepath:
            self.log.error("Cannot save text file: no file path given")
            return False

        file_type = FormatRegistry.resolve_file_type(str(filepath), file_type)
        handler = FormatRegistry.get_handler_for_type(file_type, self.log)

        if handler.supports_multi_language:
            languages = filter_usable(languages if languages is not None else Languages.all())
        else:
            languages = Languages(self._language)

        if not self.is_any_loaded(languages):
            self.log.error("Cannot save file '%s': no strings loaded for %s", filepath, languages)
            return False

        try:
            with open(filepath, 'wb', buffering=FILE_BUFFER_SIZE) as stream:
                success = handler.write(stream, self._string_infos, self._language, languages, self._options)
        except OSError as e:
            self.log.error("Cannot open file '%s' for writing: %s", filepath, e)
            return False

        if not success:
            self.log.error("Failed to save file '%s'", filepath)
            return False

        self.log.info("File '%s' saved successfully", filepath)

        for language in languages:
            self.log.info("Written language: %s", name_for(language))
            self.log.info("Written line count: %d", len(self._string_infos[language]))

            if GameTextOption.CHECK_BUFFER_LENGTH_ON_SAVE in self._options:
                self.check_buffer_lengths(language)

        return True

    def save_csf(self, filepath: PathLike) -> bool:
        """Save the active language to a CSF file."""
        return self.save(filepath, FileType.CSF)

    def save_str(self, filepath: PathLike) -> bool:
        """Save the active language to a STR file."""
        return self.save(filepath, FileType.STR)

    def save_multi_str(self, filepath: PathLike, languages: Optional[Languages] = None) -> bool:
        """Save the given languages to a Multi STR file."""
        return self.save(filepath, FileType.MULTI_STR, languages)

    def unload(self, languages: Optional[Languages] = None) -> None:
        """Drop the entries of the selected languages (default: active language)."""
        if languages is None:
            languages = Languages(self._language)
        for language in languages:
            self._string_infos.clear(language)

    def reset(self) -> None:
        """Drop all entries and restore options and active language defaults."""
        self.unload(Languages.all())
        self._options = GameTextOption.NONE
        self._language = LanguageID.UNKNOWN

    def merge_and_overwrite(self, other: "StringTable", languages: Optional[Languages] = None) -> None:
        """
        Merge entries of other into this table.

        Args:
            other: Table to take entries from
            languages: Languages to merge (default: active language of this table)
        """
        if languages is None:
            languages = Languages(self._language)
        for language in languages:
            merge_string_infos(self._string_infos[language], other.get_string_infos(language))

    def swap_string_infos(self, left: LanguageID, right: LanguageID) -> None:
        """Exchange the entries of two languages."""
        self._string_infos.swap(to_language(left), to_language(right))

    def swap_and_set_language(self, language: LanguageID) -> None:
        """Move the active language's entries to language and make it active."""
        language = to_language(language)
        self._string_infos.swap(self._language, language)
        self._language = language

    def check_buffer_lengths(self, language: LanguageID) -> bool:
        """
        Check the longest values of a language against the buffer caps.

        Each measurement is logged. Values over their cap are logged as
        errors and fail a debug assertion; they are never corrected.

        Returns:
            True if every value fits
        """
        info = get_length_info(self._string_infos[language])

        label_ok = self._check_length("label", info.max_label_len, TEXT_8_SIZE, language)
        text_utf8_ok = self._check_length("UTF-8 text", info.max_text_utf8_len, TEXT_8_SIZE, language)
        text_utf16_ok = self._check_length("UTF-16 text", info.max_text_utf16_len, TEXT_16_SIZE, language)
        speech_ok = self._check_length("speech", info.max_speech_len, TEXT_8_SIZE, language)

        assert label_ok, f"Label too long for {name_for(language)}"
        assert text_utf8_ok, f"UTF-8 text too long for {name_for(language)}"
        assert text_utf16_ok, f"UTF-16 text too long for {name_for(language)}"
        assert speech_ok, f"Speech too long for {name_for(language)}"

        return label_ok and text_utf8_ok and text_utf16_ok and speech_ok

    def _check_length(self, what: str, length: int, cap: int, language: LanguageID) -> bool:
        if cap - 1 > length:
            self.log.info("Longest %s of %s: %d of %d", what, name_for(language), length, cap - 1)
            return True
        self.log.error("Longest %s of %s is too long: %d of %d", what, name_for(language), length, cap - 1)
        return False

    def summary(self) -> dict[str, Any]:
        """Current table state for reporting."""
        return {
            "language": name_for(self._language),
            "options": [option.name for option in GameTextOption if option and option in self._options],
            "entries": {
                name_for(language): len(string_infos)
                for language, string_infos in self._string_infos.items()
                if string_infos
            },
        }

