"""Case-insensitive, read-only lookup table shared by the tools"""
from types import MappingProxyType
from typing import Generic, Iterator, Optional, Tuple, TypeVar

V = TypeVar("V")


class LookupTable(Generic[V]):
    """Immutable table matched case-insensitively on its keys

    Entries are stored under the casefolded key together with the canonical
    key, so callers can match any casing and still know which entry hit.
    """

    def __init__(self, entries: dict[str, V]):
        normalized = {}
        for key, value in entries.items():
            lookup_key = key.casefold()
            if lookup_key in normalized:
                raise ValueError(f"Duplicate key ignoring case: {key}")
            normalized[lookup_key] = (key, value)
        self._entries = MappingProxyType(normalized)

    def get(self, query: str) -> Optional[Tuple[str, V]]:
        """Return (canonical_key, value) for query, or None if unknown"""
        if not isinstance(query, str):
            return None
        return self._entries.get(query.casefold())

    def __contains__(self, query: object) -> bool:
        return isinstance(query, str) and query.casefold() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return (key for key, _ in self._entries.values())
