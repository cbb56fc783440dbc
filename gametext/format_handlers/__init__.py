#!/usr/bin/env python3
"""
Format handlers for game text table files.

Supported formats:
- CSF: Binary string table, one language per file
- STR: Text string table, one language per file
- Multi STR: Text string table with a language code on every line
"""

from .base import (
    FileType,
    FormatHandler,
    FormatRegistry,
    ReadResult,
    strip_obsolete_spaces,
)
from .csf import CsfHandler
from .str_format import MultiStrHandler, StrHandler

# Register handlers
FormatRegistry.register(CsfHandler)
FormatRegistry.register(StrHandler)
FormatRegistry.register(MultiStrHandler)

__all__ = [
    'FileType',
    'FormatHandler',
    'FormatRegistry',
    'ReadResult',
    'strip_obsolete_spaces',
    'CsfHandler',
    'StrHandler',
    'MultiStrHandler',
]
