#!/usr/bin/env python3
"""
CSF binary string table handler.

CSF layout (all integers little-endian):
```
table header   magic " FSC" | version i32 | labels i32 | strings i32 | tag "MYHT" | language i32
label header   magic " LBL" | texts i32 | length i32 | label bytes
text header    magic " RTS" or "WRTS" | length i32 | UTF-16 code units, every bit inverted
speech header  length i32 | speech bytes            (only after "WRTS")
```

Magic values are four character codes kept as 32-bit integers, which is
why they appear reversed on disk. A CSF file holds a single language.
"""

import struct
from typing import BinaryIO

from ..entries import TEXT_16_SIZE, StringInfo, StringInfosArray, from_bytes, to_bytes
from ..languages import LanguageID, Languages, to_language
from ..options import GameTextOption
from .base import FileType, FormatHandler, ReadResult, stream_name, strip_obsolete_spaces


def fourcc(code: str) -> int:
    """Four character code as stored in CSF headers."""
    return int.from_bytes(code.encode('ascii'), 'big')


CSF_ID = fourcc('CSF ')
LABEL_ID = fourcc('LBL ')
STRING_ID = fourcc('STR ')
STRING_WITH_SPEECH_ID = fourcc('STRW')
RESERVED_TAG = fourcc('THYM')

CSF_VERSION = 3

HEADER = struct.Struct('<IiiiIi')
LABEL_HEADER = struct.Struct('<Iii')
TEXT_HEADER = struct.Struct('<Ii')
SPEECH_HEADER = struct.Struct('<i')

# Every stored UTF-16 code unit is bit inverted. Inverting each byte of the
# little-endian encoding inverts the whole unit.
_INVERT_TABLE = bytes(range(255, -1, -1))


class CsfFormatError(Exception):
    """Malformed or truncated CSF data."""


def invert_units(data: bytes) -> bytes:
    """Bitwise invert a buffer of UTF-16 code units."""
    return data.translate(_INVERT_TABLE)


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise CsfFormatError(f"unexpected end of file, wanted {size} bytes, got {len(data)}")
    return data


def _read_struct(stream: BinaryIO, layout: struct.Struct) -> tuple:
    return layout.unpack(_read_exact(stream, layout.size))


def _check_length(value: int, what: str) -> int:
    if value < 0:
        raise CsfFormatError(f"negative {what}: {value}")
    return value


class CsfHandler(FormatHandler):
    """
    Handler for CSF binary string tables.

    Texts longer than TEXT_16_SIZE - 1 code units are truncated on read and
    on write. Any header mismatch or short read fails the whole table.
    """

    @property
    def name(self) -> str:
        return "csf"

    @property
    def file_type(self) -> FileType:
        return FileType.CSF

    @property
    def file_extensions(self) -> list[str]:
        return ["csf"]

    def read(
        self,
        stream: BinaryIO,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> ReadResult:
        self.log.info("Reading text file '%s' in CSF format", stream_name(stream))

        result = ReadResult(success=False, language=language)

        try:
            file_language, label_count = self._read_header(stream)
            string_infos = [self._read_entry(stream, options) for _ in range(label_count)]
        except CsfFormatError as e:
            self.log.error("File '%s' is not a valid CSF file: %s", stream_name(stream), e)
            return result

        result.success = True
        result.language = file_language
        result.string_infos[file_language] = string_infos
        return result

    def _read_header(self, stream: BinaryIO) -> tuple[LanguageID, int]:
        magic, version, label_count, _, _, language_id = _read_struct(stream, HEADER)

        if magic != CSF_ID:
            raise CsfFormatError(f"bad table magic {magic:#010x}")

        if version > 1:
            try:
                language = to_language(language_id)
            except ValueError:
                raise CsfFormatError(f"invalid language id {language_id}") from None
        else:
            language = LanguageID.US

        return language, _check_length(label_count, "label count")

    def _read_entry(self, stream: BinaryIO, options: GameTextOption) -> StringInfo:
        magic, text_count, label_length = _read_struct(stream, LABEL_HEADER)

        if magic != LABEL_ID:
            raise CsfFormatError(f"bad label magic {magic:#010x}")

        string_info = StringInfo(
            label=from_bytes(_read_exact(stream, _check_length(label_length, "label length"))))

        # Only the first text of a label is used. Additional ones are consumed to stay aligned.
        for index in range(_check_length(text_count, "text count")):
            text, speech = self._read_text(stream, options)
            if index == 0:
                string_info.text = text
                string_info.speech = speech

        return string_info

    def _read_text(self, stream: BinaryIO, options: GameTextOption) -> tuple[str, str]:
        magic, length = _read_struct(stream, TEXT_HEADER)

        if magic not in (STRING_ID, STRING_WITH_SPEECH_ID):
            raise CsfFormatError(f"bad text magic {magic:#010x}")

        data = _read_exact(stream, _check_length(length, "text length") * 2)
        capped_length = min(length, TEXT_16_SIZE - 1)

        text = invert_units(data[:capped_length * 2]).decode('utf-16-le', 'surrogatepass')
        text = text.split('\x00', 1)[0]

        if GameTextOption.KEEP_OBSOLETE_SPACES_ON_LOAD not in options:
            # Strip obsolete spaces for cleaner presentation in game.
            text = strip_obsolete_spaces(text)

        speech = ""
        if magic == STRING_WITH_SPEECH_ID:
            (speech_length,) = _read_struct(stream, SPEECH_HEADER)
            speech = from_bytes(_read_exact(stream, _check_length(speech_length, "speech length")))

        return text, speech

    def write(
        self,
        stream: BinaryIO,
        string_infos: StringInfosArray,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> bool:
        self.log.info("Writing text file '%s' in CSF format", stream_name(stream))

        infos = string_infos[language]
        label_count = sum(1 for string_info in infos if string_info.label)

        stream.write(HEADER.pack(CSF_ID, CSF_VERSION, label_count, label_count, RESERVED_TAG, int(language)))

        for string_index, string_info in enumerate(infos, 1):
            if not string_info.label:
                self.log.error("String %d has no label", string_index)
                continue
            self._write_entry(stream, string_info)

        return True

    def _write_entry(self, stream: BinaryIO, string_info: StringInfo) -> None:
        label = to_bytes(string_info.label)
        units = string_info.text.encode('utf-16-le', 'surrogatepass')

        stream.write(LABEL_HEADER.pack(LABEL_ID, 1 if units else 0, len(label)))
        stream.write(label)

        if not units:
            if string_info.speech:
                self.log.warning("String '%s' has no text, its speech is not written", string_info.label)
            return

        units = units[:(TEXT_16_SIZE - 1) * 2]
        speech = to_bytes(string_info.speech)
        magic = STRING_WITH_SPEECH_ID if speech else STRING_ID

        stream.write(TEXT_HEADER.pack(magic, len(units) // 2))
        stream.write(invert_units(units))

        if speech:
            stream.write(SPEECH_HEADER.pack(len(speech)))
            stream.write(speech)
