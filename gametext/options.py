#!/usr/bin/env python3
"""
Load and save options for game text tables.
"""

from enum import IntFlag
from typing import Optional


class GameTextOption(IntFlag):
    NONE = 0
    OPTIMIZE_MEMORY_SIZE = 1 << 0
    CHECK_BUFFER_LENGTH_ON_LOAD = 1 << 1
    CHECK_BUFFER_LENGTH_ON_SAVE = 1 << 2
    KEEP_OBSOLETE_SPACES_ON_LOAD = 1 << 3
    WRITE_EXTRA_LF_ON_STR_SAVE = 1 << 4


# Names accepted on the command line and in command scripts.
OPTION_NAMES = {
    'None': GameTextOption.NONE,
    'Optimize_Memory_Size': GameTextOption.OPTIMIZE_MEMORY_SIZE,
    'Check_Buffer_Length_On_Load': GameTextOption.CHECK_BUFFER_LENGTH_ON_LOAD,
    'Check_Buffer_Length_On_Save': GameTextOption.CHECK_BUFFER_LENGTH_ON_SAVE,
    'Keep_Obsolete_Spaces_On_Load': GameTextOption.KEEP_OBSOLETE_SPACES_ON_LOAD,
    'Write_Extra_LF_On_STR_Save': GameTextOption.WRITE_EXTRA_LF_ON_STR_SAVE,
}


def name_to_option(name: str) -> Optional[GameTextOption]:
    """Case-insensitive option lookup. Returns None for unknown names."""
    lowered = name.lower()
    for option_name, option in OPTION_NAMES.items():
        if option_name.lower() == lowered:
            return option
    return None
