#!/usr/bin/env python3
"""
Sorted label index over an entry collection.

The index stores positions into the collection it was built from, not
copies of the entries. It is a snapshot: rebuild it with load() after the
collection is changed.
"""

from bisect import bisect_left
from typing import Generic, Optional, Sequence, TypeVar, Union

from .entries import MultiStringInfo, StringInfo, to_bytes

InfoType = TypeVar('InfoType', StringInfo, MultiStringInfo)


def label_key(label: str) -> bytes:
    """Sort key with strcasecmp semantics: ASCII letters fold, other bytes compare as-is."""
    return to_bytes(label).lower()


class GameTextLookup(Generic[InfoType]):
    """
    Case-insensitive label search over StringInfo or MultiStringInfo lists.

    Usage:
        lookup = GameTextLookup(string_infos)
        info = lookup.find("GUI:Start")
    """

    def __init__(self, string_infos: Optional[Sequence[InfoType]] = None):
        self._string_infos: Sequence[InfoType] = ()
        self._keys: list[bytes] = []
        self._indices: list[int] = []
        if string_infos is not None:
            self.load(string_infos)

    def load(self, string_infos: Sequence[InfoType]) -> None:
        """Index every entry of string_infos, replacing any previous index."""
        pairs = sorted(
            ((label_key(info.label), index) for index, info in enumerate(string_infos)),
            key=lambda pair: pair[0],
        )
        self._string_infos = string_infos
        self._keys = [key for key, _ in pairs]
        self._indices = [index for _, index in pairs]

    def unload(self) -> None:
        self._string_infos = ()
        self._keys = []
        self._indices = []

    def find(self, label: Union[str, bytes]) -> Optional[InfoType]:
        """
        Find the entry with the given label.

        Args:
            label: Label to search, any letter case

        Returns:
            The indexed entry, or None if the label is not present
        """
        key = label.lower() if isinstance(label, bytes) else label_key(label)
        pos = bisect_left(self._keys, key)
        if pos < len(self._keys) and self._keys[pos] == key:
            return self._string_infos[self._indices[pos]]
        return None

    def __len__(self) -> int:
        return len(self._keys)
