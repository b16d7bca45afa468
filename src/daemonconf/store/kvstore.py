from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from daemonconf.utils import _to_text

logger = logging.getLogger("daemonconf.store")
logger.addHandler(logging.NullHandler())

SECTION_SEPARATOR = ":"


class KeyValueStore:
    """
    Ordered mapping of ``section:key`` names to string values.

    Keys are canonicalised (stripped and lower-cased) on every access, so
    ``Log:Level`` and ``log:level`` address the same entry. Insertion order is
    preserved and is the order used by iteration.
    """

    def __init__(self, items: Optional[Iterable[Tuple[str, Any]]] = None) -> None:
        self._data: Dict[str, str] = {}
        if items is not None:
            for key, value in items:
                self.set(key, value)

    @staticmethod
    def _canon(key: str) -> str:
        return key.strip().lower()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._data.get(self._canon(key), default)

    def set(self, key: str, value: Any) -> None:
        if not isinstance(key, str):
            raise TypeError("Key must be a str.")
        self._data[self._canon(key)] = _to_text(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(self._canon(key), None) is not None

    def update(self, other: "KeyValueStore") -> None:
        for key, value in other.items():
            self._data[key] = value

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._data.items())

    def section_items(self, section: str, key: Optional[str] = None) -> Iterator[Tuple[str, str]]:
        """
        Yield ``(full_key, value)`` for every entry in ``section``.

        When ``key`` is given, only the entry whose name after the colon equals
        it is yielded.
        """
        prefix = self._canon(section) + SECTION_SEPARATOR
        wanted = None if key is None else self._canon(key)
        for full_key, value in self._data.items():
            if not full_key.startswith(prefix):
                continue
            if wanted is not None and full_key[len(prefix) :] != wanted:
                continue
            yield full_key, value

    def snapshot(self) -> MappingProxyType[str, str]:
        return MappingProxyType(dict(self._data))

    def clear(self) -> None:
        self._data.clear()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._canon(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<KeyValueStore entries={len(self._data)}>"
