"""
gametext - Game text string table engine

Loads, saves, merges and indexes localized game strings across sixteen
language slots. Supports the binary CSF format and the STR / Multi STR
text formats.

Quick start:
    gametext convert --load-csf generals.csf --save-str generals.str
    gametext run --script build_languages.yaml
"""

__version__ = "1.0.0"

from .entries import MultiStringInfo, StringInfo
from .languages import LanguageID, Languages
from .lookup import GameTextLookup
from .options import GameTextOption
from .table import StringTable
from .transpose import pack_string_infos, unpack_string_infos

__all__ = [
    "GameTextLookup",
    "GameTextOption",
    "LanguageID",
    "Languages",
    "MultiStringInfo",
    "StringInfo",
    "StringTable",
    "pack_string_infos",
    "unpack_string_infos",
]
