"""Case-insensitive flat key/value store.

Purpose
-------
Hold the flattened output of a single source: delimited keys mapped to strings
or ``None``. Keys compare case-insensitively while the first spelling seen is
preserved for enumeration and diagnostics.

Contents
--------
* :data:`ConfigValue` – alias for ``str | None``.
* :class:`FlatMap` – ``MutableMapping`` with duplicate detection via :meth:`add`.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Optional

from .errors import InvalidFormat
from .keys import normalize

ConfigValue = Optional[str]


class FlatMap(MutableMapping[str, ConfigValue]):
    """Ordered, case-insensitive mapping from configuration keys to values.

    Why
    ----
    Every source and the merge step need the same comparison rules; keeping
    them in one type prevents ``Foo:Bar`` and ``foo:bar`` from diverging.

    What
    ----
    Entries live in a ``dict`` keyed by the case-folded key and store the
    original spelling alongside the value. Iteration is sorted by the folded key
    so enumeration is deterministic for diffing and child-key listing.

    Examples
    --------
    >>> data = FlatMap({"Name": "demo"})
    >>> data["NAME"]
    'demo'
    >>> data["name"] = None
    >>> list(data.items())
    [('Name', None)]
    >>> data.add("NAME", "again")
    Traceback (most recent call last):
    ...
    lib_config_providers.domain.errors.InvalidFormat: A duplicate key 'NAME' was found.
    """

    __slots__ = ("_entries",)

    def __init__(self, initial: Mapping[str, ConfigValue] | None = None) -> None:
        self._entries: dict[str, tuple[str, ConfigValue]] = {}
        if initial:
            self.update(initial)

    def add(self, key: str, value: ConfigValue) -> None:
        """Insert *key* or raise :class:`InvalidFormat` when it already exists."""

        folded = normalize(key)
        if folded in self._entries:
            raise InvalidFormat(f"A duplicate key '{key}' was found.")
        self._entries[folded] = (key, value)

    def __getitem__(self, key: str) -> ConfigValue:
        return self._entries[normalize(key)][1]

    def __setitem__(self, key: str, value: ConfigValue) -> None:
        folded = normalize(key)
        existing = self._entries.get(folded)
        self._entries[folded] = (existing[0] if existing else key, value)

    def __delitem__(self, key: str) -> None:
        del self._entries[normalize(key)]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        return (self._entries[folded][0] for folded in sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FlatMap):
            return {k: v[1] for k, v in self._entries.items()} == {k: v[1] for k, v in other._entries.items()}
        if isinstance(other, Mapping):
            return self == FlatMap(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"FlatMap({dict(self.items())!r})"

    def copy(self) -> FlatMap:
        clone = FlatMap()
        clone._entries = dict(self._entries)
        return clone
