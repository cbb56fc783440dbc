#!/usr/bin/env python3
"""
STR and Multi STR text table handlers.

STR format structure:
```
// Comment
GUI:Start
"Start \"the\" game\n"
speech_reference
END
```

Multi STR prefixes every text and speech line with a language code:
```
GUI:Start
US: "Start game"
DE: "Spiel starten"
US: speech_reference
END
```
"""

import re
from enum import Enum
from typing import BinaryIO, Optional

from ..entries import MultiStringInfo, StringInfo, StringInfosArray, from_bytes, to_bytes
from ..languages import INVALID_CODE, LanguageID, Languages, code_for, language_for_code
from ..options import GameTextOption
from ..transpose import pack_string_infos, unpack_string_infos
from .base import FileType, FormatHandler, ReadResult, stream_name, strip_obsolete_spaces

_QUOTE = ord('"')
_BACKSLASH = ord('\\')

_LABEL_TERMINATORS = b'\n'
_SEARCH_TERMINATORS = b'\n"'
_TEXT_TERMINATORS = b'"'

_END_MARKER = b'end'
_LINE_END = b'\r\n'

_LANGUAGE_PREFIX = re.compile(rb'^([A-Za-z_]{2}):')

_UNESCAPE_PATTERN = re.compile(rb'\\([nt"?\'\\])')
_UNESCAPE_MAP = {
    b'n': b'\n',
    b't': b'\t',
    b'"': b'"',
    b'?': b'?',
    b"'": b"'",
    b'\\': b'\\',
}

_ESCAPE_PATTERN = re.compile(rb'[\n\t"\\]')
_ESCAPE_MAP = {
    b'\n': b'\\n',
    b'\t': b'\\t',
    b'"': b'\\"',
    b'\\': b'\\\\',
}

_WHITESPACE_TO_SPACE = bytes.maketrans(b'\t\v\f', b'   ')


class _ReadStep(Enum):
    LABEL = "label"
    SEARCH = "search"
    TEXT = "text"


class _LineReader:
    """
    Splits a buffer into lines with a caller-chosen terminator set.

    The terminator stays at the end of the returned line. A quote behind
    an odd number of backslashes is escaped and never terminates a line.
    """

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    def read_line(self, terminators: bytes) -> Optional[bytes]:
        """Return the next line, or None at end of data."""
        data = self._data
        start = self._pos
        end = len(data)

        if start >= end:
            return None

        escaped = False
        i = start
        while i < end:
            byte = data[i]
            i += 1
            if byte == _BACKSLASH:
                escaped = not escaped
                continue
            if byte in terminators and not (escaped and byte == _QUOTE):
                break
            escaped = False

        self._pos = i
        return data[start:i]


def _remove_line_breaks(line: bytes) -> bytes:
    return line.replace(b'\r', b'').replace(b'\n', b'')


def _is_ignorable(line: bytes) -> bool:
    return not line or line.startswith(b'//') or line.startswith(b'\\\\')


def _unescape_string(data: bytes) -> bytes:
    """Unescape STR text escapes in a single pass."""
    return _UNESCAPE_PATTERN.sub(lambda match: _UNESCAPE_MAP[match.group(1)], data)


def _escape_string(data: bytes, extra_line_feed: bool = False) -> bytes:
    """Escape text bytes for a quoted STR line."""
    escape_map = dict(_ESCAPE_MAP)
    if extra_line_feed:
        escape_map[b'\n'] = b'\\n' + _LINE_END
    return _ESCAPE_PATTERN.sub(lambda match: escape_map[match.group(0)], data)


def _parse_text(line: bytes, options: GameTextOption) -> str:
    data = _remove_line_breaks(line).translate(_WHITESPACE_TO_SPACE)
    data = _unescape_string(data)

    if data.endswith(b'"'):
        data = data[:-1]

    text = data.decode('utf-8', 'replace')

    if GameTextOption.KEEP_OBSOLETE_SPACES_ON_LOAD not in options:
        text = strip_obsolete_spaces(text)

    return text


class _StrHandlerBase(FormatHandler):
    """
    Shared reader and writer of both STR variants.

    Records are read with a LABEL -> SEARCH -> TEXT -> SEARCH -> END state
    machine. Malformed and unterminated records are dropped without error.
    """

    @property
    def format_title(self) -> str:
        return "Multi STR" if self.supports_multi_language else "STR"

    def _parse_language(self, line: bytes, languages: Languages) -> tuple[Optional[LanguageID], int]:
        """
        Resolve the language code prefix of a text or speech line.

        Args:
            line: Stripped line without line breaks
            languages: Languages to keep

        Returns:
            Tuple of (target language or None to discard, prefix length)
        """
        match = _LANGUAGE_PREFIX.match(line)
        code = match.group(1).decode('ascii').upper() if match else INVALID_CODE
        language = language_for_code(code)

        # Only registered codes form a prefix, anything else is payload
        parsed = match.end() if match and (language is not None or code == INVALID_CODE) else 0

        if not self.supports_multi_language:
            return LanguageID.UNKNOWN, parsed

        if language is None or language not in languages:
            return None, parsed

        return language, parsed

    def _read_records(self, stream: BinaryIO, languages: Languages, options: GameTextOption) -> list[MultiStringInfo]:
        reader = _LineReader(stream.read())
        records: list[MultiStringInfo] = []
        record: Optional[MultiStringInfo] = None
        text_language: Optional[LanguageID] = None
        step = _ReadStep.LABEL

        while True:
            if step == _ReadStep.LABEL:
                line = reader.read_line(_LABEL_TERMINATORS)
                if line is None:
                    break
                line = _remove_line_breaks(line).strip()
                if _is_ignorable(line):
                    continue
                record = MultiStringInfo(label=from_bytes(line))
                step = _ReadStep.SEARCH

            elif step == _ReadStep.SEARCH:
                line = reader.read_line(_SEARCH_TERMINATORS)
                if line is None:
                    break
                line = _remove_line_breaks(line).strip()
                if _is_ignorable(line):
                    continue

                if line.lower() == _END_MARKER:
                    records.append(record)
                    record = None
                    step = _ReadStep.LABEL
                    continue

                language, parsed = self._parse_language(line, languages)

                if line.endswith(b'"'):
                    text_language = language
                    step = _ReadStep.TEXT
                elif language is not None:
                    record.speech[language] = from_bytes(line[parsed:].strip())

            elif step == _ReadStep.TEXT:
                line = reader.read_line(_TEXT_TERMINATORS)
                if line is None:
                    break
                if text_language is not None:
                    record.text[text_language] = _parse_text(line, options)
                step = _ReadStep.SEARCH

        if record is not None:
            self.log.warning("Dropped unterminated string '%s' at end of file", record.label)

        return records

    def read(
        self,
        stream: BinaryIO,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> ReadResult:
        self.log.info("Reading text file '%s' in %s format", stream_name(stream), self.format_title)

        records = self._read_records(stream, languages, options)
        result = ReadResult(success=bool(records), language=language)

        if self.supports_multi_language:
            unpack_string_infos(records, result.string_infos, languages, options)
            for candidate in languages:
                if any(record.text[candidate] or record.speech[candidate] for record in records):
                    result.language = candidate
                    break
        else:
            result.string_infos[language] = [
                StringInfo(
                    label=record.label,
                    text=record.text[LanguageID.UNKNOWN],
                    speech=record.speech[LanguageID.UNKNOWN],
                )
                for record in records
            ]

        return result

    def _write_text_line(self, stream: BinaryIO, text: str, options: GameTextOption) -> None:
        data = _escape_string(
            text.encode('utf-8', 'surrogatepass'),
            extra_line_feed=GameTextOption.WRITE_EXTRA_LF_ON_STR_SAVE in options,
        )
        stream.write(b'"' + data + b'"' + _LINE_END)

    def _write_multi_entry(
        self, stream: BinaryIO, info: MultiStringInfo, languages: Languages, options: GameTextOption
    ) -> None:
        stream.write(to_bytes(info.label) + _LINE_END)

        for language in languages:
            stream.write(code_for(language).encode('ascii') + b': ')
            self._write_text_line(stream, info.text[language], options)

        for language in languages:
            if info.speech[language]:
                stream.write(code_for(language).encode('ascii') + b': ' + to_bytes(info.speech[language]) + _LINE_END)

        stream.write(b'END' + _LINE_END + _LINE_END)

    def _write_entry(self, stream: BinaryIO, info: StringInfo, options: GameTextOption) -> None:
        stream.write(to_bytes(info.label) + _LINE_END)
        self._write_text_line(stream, info.text, options)

        if info.speech:
            stream.write(to_bytes(info.speech) + _LINE_END)

        stream.write(b'END' + _LINE_END + _LINE_END)

    def write(
        self,
        stream: BinaryIO,
        string_infos: StringInfosArray,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> bool:
        self.log.info("Writing text file '%s' in %s format", stream_name(stream), self.format_title)

        if self.supports_multi_language:
            infos = pack_string_infos(string_infos, languages)
        else:
            infos = string_infos[language]

        for string_index, info in enumerate(infos, 1):
            if not info.label:
                self.log.error("String %d has no label", string_index)
                continue
            if self.supports_multi_language:
                self._write_multi_entry(stream, info, languages, options)
            else:
                self._write_entry(stream, info, options)

        return True


class StrHandler(_StrHandlerBase):
    """Handler for single language STR files."""

    @property
    def name(self) -> str:
        return "str"

    @property
    def file_type(self) -> FileType:
        return FileType.STR

    @property
    def file_extensions(self) -> list[str]:
        return ["str"]


class MultiStrHandler(_StrHandlerBase):
    """Handler for Multi STR files carrying several languages."""

    @property
    def name(self) -> str:
        return "multistr"

    @property
    def file_type(self) -> FileType:
        return FileType.MULTI_STR

    @property
    def file_extensions(self) -> list[str]:
        return ["multistr"]

    @property
    def supports_multi_language(self) -> bool:
        return True
