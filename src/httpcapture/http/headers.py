"""
Case-normalizing header storage.

HTTP header names are case-insensitive (RFC 1945 section 4.2), so names
are lower-cased once on the way in and compared in lower case from then
on. The original casing is not kept:

    headers = Headers()
    headers["Content-Type"] = "text/plain"
    headers["CONTENT-TYPE"] = "text/html"    # overwrites, never appends
    headers["content-type"]                  # "text/html"
    list(headers)                            # ["content-type"]
"""

from collections.abc import MutableMapping
from typing import Dict, Iterator, Mapping, Optional, Union


class Headers(MutableMapping):
    """Insertion-ordered mapping of lower-cased header name to value."""

    def __init__(self, initial: Optional[Union[Mapping[str, str], "Headers"]] = None):
        self._items: Dict[str, str] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __setitem__(self, name: str, value: str) -> None:
        self._items[name.lower()] = value

    def __delitem__(self, name: str) -> None:
        del self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Headers):
            return self._items == other._items
        if isinstance(other, Mapping):
            return self._items == {str(k).lower(): v for k, v in other.items()}
        return NotImplemented

    def __repr__(self) -> str:
        return f"Headers({self._items!r})"

    def copy(self) -> "Headers":
        return Headers(self)
