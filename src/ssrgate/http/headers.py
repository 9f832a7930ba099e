"""HTTP header containers.

``Headers`` is the immutable, case-insensitive view over the raw byte
pairs of an incoming ASGI scope. ``MutableHeaders`` is the ordered,
case-insensitive string header set the static index attaches to each
file entry; it is cloned per response so cached sets never change.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_items(cls, items: Mapping[str, str] | Iterable[tuple[str, str]]) -> Headers:
        """Build Headers from string pairs (or a mapping)."""
        pairs = items.items() if isinstance(items, Mapping) else items
        return cls(tuple((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in pairs))

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower().encode("latin-1")
        for name, value in self._raw:
            if name.lower() == key_lower:
                return value.decode("latin-1")
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower().encode("latin-1")
        return any(name.lower() == key_lower for name, _ in self._raw)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._raw:
            key = name.decode("latin-1").lower()
            if key not in seen:
                seen.add(key)
                yield key

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower().encode("latin-1")
        return [value.decode("latin-1") for name, value in self._raw if name.lower() == key_lower]

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Access raw header byte pairs for ASGI compatibility."""
        return self._raw


class MutableHeaders:
    """Ordered, case-insensitive header set with ``set``/``append`` semantics.

    Names keep the casing they were first given; lookups ignore case.
    ``copy()`` returns an independent set.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        pairs = items.items() if isinstance(items, Mapping) else items
        self._items: list[tuple[str, str]] = [(str(k), str(v)) for k, v in pairs]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        lower = key.lower()
        return any(name.lower() == lower for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MutableHeaders):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

    def get(self, key: str, default: str | None = None) -> str | None:
        """Return the first value for *key*, or *default*."""
        lower = key.lower()
        for name, value in self._items:
            if name.lower() == lower:
                return value
        return default

    def get_list(self, key: str) -> list[str]:
        lower = key.lower()
        return [value for name, value in self._items if name.lower() == lower]

    def set(self, key: str, value: str) -> None:
        """Replace every value of *key* with a single *value*."""
        lower = key.lower()
        for i, (name, _) in enumerate(self._items):
            if name.lower() == lower:
                self._items[i] = (name, value)
                self._items[i + 1 :] = [
                    item for item in self._items[i + 1 :] if item[0].lower() != lower
                ]
                return
        self._items.append((key, value))

    def append(self, key: str, value: str) -> None:
        """Add *value* for *key*, keeping existing values."""
        self._items.append((key, value))

    def delete(self, key: str) -> None:
        lower = key.lower()
        self._items = [item for item in self._items if item[0].lower() != lower]

    def copy(self) -> MutableHeaders:
        return MutableHeaders(self._items)

    def items(self) -> tuple[tuple[str, str], ...]:
        """Snapshot of all ``(name, value)`` pairs, in insertion order."""
        return tuple(self._items)
