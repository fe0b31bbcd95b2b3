"""Domain-level configuration snapshot.

Purpose
-------
Anchor the immutable :class:`Config` value object that carries the merged flat
configuration and its provenance. This module belongs to the domain layer and
contains no I/O.

Contents
--------
* :class:`SourceInfo` – typed metadata describing which source supplied a key.
* :class:`Config` – ``Mapping`` over delimited keys with case-insensitive
  lookup, child enumeration, sections, nested export and provenance.
* :data:`EMPTY_CONFIG` – canonical empty instance.

System Role
-----------
Every build or reload of :class:`lib_config_providers.core.ConfigurationRoot`
produces a fresh :class:`Config`; readers holding an older snapshot keep a
complete, consistent view of that build.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, TypedDict

from .flatmap import ConfigValue, FlatMap
from .keys import KEY_DELIMITER, child_keys, normalize, relative_key


class SourceInfo(TypedDict):
    """Describe the origin of a resolved configuration key.

    Attributes
    ----------
    source:
        Logical source name (``"yaml"``, ``"remote"``, ``"vault"`` ...).
    location:
        File path, directory or URI that produced the key; ``None`` for
        in-memory sources such as environment variables.
    key:
        Key spelling as produced by the source.
    """

    source: str
    location: str | None
    key: str


@dataclass(frozen=True, slots=True)
class Config(Mapping[str, ConfigValue]):
    """Immutable, case-insensitive view over merged configuration.

    Why
    ----
    Callers need a read-only structure that behaves like a dictionary of
    ``a:b:c`` keys yet offers hierarchy navigation and provenance insight.

    Examples
    --------
    >>> cfg = Config(
    ...     {"db:host": "localhost", "db:port": "5432", "feature": "true"},
    ...     {"db:host": {"source": "yaml", "location": "app.yaml", "key": "db:host"}},
    ... )
    >>> cfg["DB:Host"]
    'localhost'
    >>> cfg.get_child_keys("db")
    ['host', 'port']
    >>> cfg.section("db").as_dict()
    {'host': 'localhost', 'port': '5432'}
    >>> cfg.origin("db:HOST")["location"]
    'app.yaml'
    """

    _data: Mapping[str, ConfigValue]
    _meta: Mapping[str, SourceInfo]

    def __post_init__(self) -> None:
        object.__setattr__(self, "_data", FlatMap(self._data))
        object.__setattr__(
            self, "_meta", MappingProxyType({normalize(key): info for key, info in self._meta.items()})
        )

    def __getitem__(self, key: str) -> ConfigValue:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under *key*, or *default* when it is absent.

        A key that exists with value ``None`` returns ``None``, not *default*.
        """

        return self._data[key] if key in self._data else default

    def get_child_keys(self, parent_path: str | None = None) -> list[str]:
        """Return immediate child segments of *parent_path* (top level when ``None``)."""

        return child_keys(self._data.keys(), parent_path)

    def section(self, path: str) -> Config:
        """Return the sub-tree below *path* with keys made relative to it.

        Examples
        --------
        >>> Config({"a:b:c": "1", "a:d": "2", "x": "3"}, {}).section("A:b")["c"]
        '1'
        """

        prefix = normalize(path + KEY_DELIMITER)
        data: dict[str, ConfigValue] = {}
        for key, value in self._data.items():
            relative = relative_key(key, path)
            if relative is not None:
                data[relative] = value
        meta = {
            folded[len(prefix):]: info for folded, info in self._meta.items() if folded.startswith(prefix)
        }
        return Config(data, meta)

    def as_dict(self) -> dict[str, Any]:
        """Rebuild the nested structure the flat keys describe.

        Sequence indices stay string keys (``{"0": ..., "1": ...}``). When one
        source stored a scalar where another produced children, the children
        win.

        Examples
        --------
        >>> Config({"db:hosts:0": "a", "db:tls": "true", "name": None}, {}).as_dict()
        {'db': {'hosts': {'0': 'a'}, 'tls': 'true'}, 'name': None}
        """

        root: dict[str, Any] = {}
        for key, value in self._data.items():
            parts = key.split(KEY_DELIMITER)
            cursor = root
            for part in parts[:-1]:
                cursor = _ensure_child_mapping(cursor, part)
            leaf = _resolve_key(cursor, parts[-1])
            if isinstance(cursor.get(leaf), dict):
                continue
            cursor[leaf] = value
        return root

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise :meth:`as_dict` to JSON.

        >>> Config({"service:timeout": "5"}, {}).to_json()
        '{"service":{"timeout":"5"}}'
        """

        return json.dumps(self.as_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def origin(self, key: str) -> SourceInfo | None:
        """Return provenance for *key* or ``None`` when no source produced it."""

        return self._meta.get(normalize(key))


def _resolve_key(mapping: dict[str, Any], key: str) -> str:
    """Return an existing key matching *key* case-insensitively, else *key* itself."""

    folded = normalize(key)
    for existing in mapping:
        if normalize(existing) == folded:
            return existing
    return key


def _ensure_child_mapping(mapping: dict[str, Any], key: str) -> dict[str, Any]:
    """Return ``mapping[key]`` as a dict, replacing a scalar placeholder if needed."""

    resolved = _resolve_key(mapping, key)
    child = mapping.get(resolved)
    if not isinstance(child, dict):
        child = {}
        mapping[resolved] = child
    return child


EMPTY_CONFIG = Config({}, {})
"""Canonical empty configuration returned when no source produced content."""
