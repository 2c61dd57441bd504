"""Case-insensitive HTTP headers.

``Headers`` is the immutable request side: it stores raw byte pairs from
the ASGI scope and decodes on access. ``MutableHeaders`` is the response
side: ordered, case-insensitive, last write wins per name except for
headers whose values are additive (``Set-Cookie``).
"""

from collections.abc import Iterator, Mapping

# Header names that accumulate instead of overwriting
ADDITIVE_HEADERS = frozenset({"set-cookie"})


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header (e.g. multiple ``Accept``).
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        object.__setattr__(self, "_raw", raw)

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build from a plain ``{name: value}`` mapping."""
        return cls(
            tuple(
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in headers.items()
            )
        )

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
    """Ordered, case-insensitive response headers.

    Names keep the spelling of their first write; lookups ignore case.
    Writing a name again replaces its value in place, except for
    ``ADDITIVE_HEADERS`` which append another line.
    """

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def set(self, name: str, value: str) -> None:
        """Set *name* to *value*, replacing earlier values unless additive."""
        key = name.lower()
        if key in ADDITIVE_HEADERS:
            self._items.append((name, value))
            return
        for i, (existing, _) in enumerate(self._items):
            if existing.lower() == key:
                self._items[i] = (existing, value)
                # Drop any later duplicates so exactly one line remains
                self._items[i + 1 :] = [
                    item for item in self._items[i + 1 :] if item[0].lower() != key
                ]
                return
        self._items.append((name, value))

    def setdefault(self, name: str, value: str) -> str:
        """Set *name* only if absent; return the effective value."""
        current = self.get(name)
        if current is not None:
            return current
        self.set(name, value)
        return value

    def remove(self, name: str) -> None:
        key = name.lower()
        self._items = [item for item in self._items if item[0].lower() != key]

    def clear(self) -> None:
        self._items.clear()

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the value for *name* (the last one for additive headers)."""
        key = name.lower()
        found = default
        for existing, value in self._items:
            if existing.lower() == key:
                found = value
        return found

    def get_list(self, name: str) -> list[str]:
        key = name.lower()
        return [value for existing, value in self._items if existing.lower() == key]

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(name)
        return value

    def __setitem__(self, name: str, value: str) -> None:
        self.set(name, value)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        key = name.lower()
        return any(existing.lower() == key for existing, _ in self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MutableHeaders({self._items!r})"

    def items(self) -> tuple[tuple[str, str], ...]:
        """Snapshot of all header lines, in write order."""
        return tuple(self._items)
