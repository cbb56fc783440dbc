#!/usr/bin/env python3
"""
Base classes for game text format handlers.

FormatHandler is the abstract base class that every on-disk table format
implements. Handlers work on already opened binary streams; opening,
closing and swapping the parsed data into a table is the job of the
StringTable that calls them.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from ..entries import StringInfosArray
from ..languages import LanguageID, Languages
from ..options import GameTextOption

logger = logging.getLogger(__name__)


class FileType(Enum):
    AUTO = "auto"
    CSF = "csf"
    STR = "str"
    MULTI_STR = "multistr"


@dataclass
class ReadResult:
    """
    Outcome of reading a table from a stream.

    Attributes:
        success: False on any format error or when nothing usable was read
        language: Language the data belongs to (CSF stores it in the header)
        string_infos: Freshly parsed per-language collections
    """
    success: bool
    language: LanguageID
    string_infos: StringInfosArray = field(default_factory=StringInfosArray)


_ASCII_WHITESPACE = ' \t\n\v\f\r'


def strip_obsolete_spaces(text: str) -> str:
    """
    Strip leading, trailing and duplicate spaces.

    Other whitespace such as LF is preserved, and spaces next to it are
    removed.
    """
    result = []
    prev_char = ' '
    length = len(text)
    i = 0

    while i < length and text[i] == ' ':
        i += 1

    while i < length:
        curr_char = text[i]
        next_char = text[i + 1] if i + 1 < length else ''
        i += 1

        if curr_char == ' ' and (not next_char or next_char in _ASCII_WHITESPACE or prev_char in _ASCII_WHITESPACE):
            continue

        result.append(curr_char)
        prev_char = curr_char

    return ''.join(result)


def stream_name(stream: BinaryIO) -> str:
    return str(getattr(stream, 'name', '<stream>'))


class FormatHandler(ABC):
    """
    Abstract base class for table format handlers.

    Each handler converts between one on-disk table layout and the
    per-language StringInfo collections. Handlers never raise on bad
    input; they report failure through their return values.
    """

    def __init__(self, log: logging.Logger = None):
        self.log = log or logger

    @property
    @abstractmethod
    def name(self) -> str:
        """Format name."""
        pass

    @property
    @abstractmethod
    def file_type(self) -> FileType:
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]:
        """List of file extensions this handler supports (without dot)."""
        pass

    @property
    def supports_multi_language(self) -> bool:
        """
        Whether one file carries several languages.

        Multi language handlers read and write every selected language.
        Single language handlers only touch the active language.
        """
        return False

    @abstractmethod
    def read(
        self,
        stream: BinaryIO,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> ReadResult:
        """
        Read a table from a binary stream.

        Args:
            stream: Stream positioned at the start of the table
            language: Currently active language of the caller
            languages: Languages to keep (multi language formats only)
            options: Load options

        Returns:
            ReadResult with the parsed collections
        """
        pass

    @abstractmethod
    def write(
        self,
        stream: BinaryIO,
        string_infos: StringInfosArray,
        language: LanguageID,
        languages: Languages,
        options: GameTextOption,
    ) -> bool:
        """
        Write a table to a binary stream.

        Args:
            stream: Writable binary stream
            string_infos: Per-language collections to write from
            language: Active language, written by single language formats
            languages: Languages to write (multi language formats only)
            options: Save options

        Returns:
            True if every record was written
        """
        pass


class FormatRegistry:
    """Registry of available format handlers."""

    _handlers: dict[str, type[FormatHandler]] = {}
    _extension_map: dict[str, str] = {}  # extension -> handler name
    _type_map: dict[FileType, str] = {}  # file type -> handler name

    # Unknown extensions fall back to the binary table format.
    DEFAULT_FILE_TYPE = FileType.CSF

    @classmethod
    def register(cls, handler_class: type[FormatHandler]) -> None:
        """Register a format handler class."""
        handler = handler_class()
        cls._handlers[handler.name.lower()] = handler_class
        cls._type_map[handler.file_type] = handler.name.lower()
        for ext in handler.file_extensions:
            cls._extension_map[ext.lower()] = handler.name.lower()

    @classmethod
    def get_handler(cls, name: str, log: logging.Logger = None) -> FormatHandler:
        """Get handler instance by name."""
        name_lower = name.lower()
        if name_lower not in cls._handlers:
            available = ', '.join(cls._handlers.keys())
            raise ValueError(f"Unknown format: {name}. Available: {available}")
        return cls._handlers[name_lower](log)

    @classmethod
    def get_handler_for_type(cls, file_type: FileType, log: logging.Logger = None) -> FormatHandler:
        """Get handler instance by resolved file type."""
        if file_type not in cls._type_map:
            raise ValueError(f"No handler for file type: {file_type.value}")
        return cls.get_handler(cls._type_map[file_type], log)

    @classmethod
    def file_type_for_extension(cls, extension: str) -> FileType:
        ext = extension.lower().lstrip('.')
        if ext not in cls._extension_map:
            return cls.DEFAULT_FILE_TYPE
        handler_class = cls._handlers[cls._extension_map[ext]]
        return handler_class().file_type

    @classmethod
    def resolve_file_type(cls, filepath: str, file_type: FileType = FileType.AUTO) -> FileType:
        """
        Resolve AUTO to a concrete file type from the file extension.

        Args:
            filepath: Path to the file
            file_type: Requested type; returned unchanged unless AUTO

        Returns:
            Concrete FileType
        """
        if file_type != FileType.AUTO:
            return file_type
        return cls.file_type_for_extension(Path(filepath).suffix)

    @classmethod
    def list_formats(cls) -> list[dict[str, Any]]:
        """List all registered formats with their extensions."""
        result = []
        for name, handler_class in cls._handlers.items():
            handler = handler_class()
            result.append({
                'name': handler.name,
                'extensions': handler.file_extensions,
                'multi_language': handler.supports_multi_language,
            })
        return result
