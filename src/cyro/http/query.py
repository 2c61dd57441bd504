"""Immutable query string parameters.

Implements ``Mapping[str, str]`` and the ``MultiValueMapping`` protocol.

Repeated keys: the last occurrence wins for single-value access
(``params["tag"]``, ``params.get("tag")``, ``to_dict()``). Every value
stays reachable, in order, through ``get_list``.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs, quote_from_bytes

# Reserved characters and existing escapes pass through untouched
_QUERY_SAFE = "/:@!$&'()*+,;=?%"


def encode_query(raw: bytes) -> str:
    """Percent-encode raw (non-ASCII) bytes in a query string.

    Servers hand the query over as bytes exactly as received; clients
    may send UTF-8 unescaped. Escaping it keeps the string ASCII so
    ``parse_qs`` decodes every value as UTF-8.
    """
    return quote_from_bytes(raw, safe=_QUERY_SAFE)


class QueryParams(Mapping[str, str]):
    """Immutable query string parameters.

    Attributes:
        _data: Parsed query string as field name -> list of values.
        _raw: Raw query string.
    """

    _data: dict[str, list[str]]
    _raw: str

    __slots__ = ("_data", "_raw")

    def __init__(self, query_string: str | bytes = "") -> None:
        if isinstance(query_string, bytes):
            query_string = encode_query(query_string)
        object.__setattr__(self, "_raw", query_string)
        parsed = parse_qs(query_string, keep_blank_values=True)
        object.__setattr__(self, "_data", parsed)

    def __getitem__(self, key: str) -> str:
        return self._data[key][-1]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"QueryParams({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the last value for *key*, or *default* if missing."""
        values = self._data.get(key)
        if values:
            return values[-1]
        return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(key, []))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        """Return value as bool (``true``/``1``/``yes``/``on`` → True)."""
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes", "on")

    def to_dict(self) -> dict[str, str]:
        """Flatten to ``{key: last value}``."""
        return {key: values[-1] for key, values in self._data.items()}

    @property
    def raw(self) -> str:
        return self._raw
