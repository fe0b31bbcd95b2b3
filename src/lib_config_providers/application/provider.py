"""Flat-store provider base class.

Purpose
-------
Give every adapter the same container semantics: a :class:`FlatMap` that
``load()`` replaces wholesale, point lookups, and hierarchical child-key
enumeration. Adapters override :meth:`ConfigurationProvider.load` only.

Contents
--------
* :class:`ConfigurationProvider` – base class holding one source's data.
* :class:`StaticProvider` – provider over pre-computed data (streams, dicts).
"""

from __future__ import annotations

from collections.abc import Mapping

from ..domain.flatmap import ConfigValue, FlatMap
from ..domain.keys import child_keys


class ConfigurationProvider:
    """Hold the flattened data of one source.

    Why
    ----
    The builder merges providers without knowing where their data came from; a
    single base keeps lookups and child enumeration identical across sources.

    What
    ----
    ``data`` is replaced (never patched) by each :meth:`load` call. Lookups are
    case-insensitive. One ``load()`` at a time per provider; concurrent reloads
    of the same provider are the host's responsibility to serialise.

    Examples
    --------
    >>> provider = ConfigurationProvider()
    >>> provider.set("Db:Host", "localhost")
    >>> provider.set("db:port", "5432")
    >>> provider.get("DB:HOST"), provider.try_get("db:user")
    ('localhost', (False, None))
    >>> provider.get_child_keys("db")
    ['Host', 'port']
    """

    name = "memory"

    def __init__(self) -> None:
        self.data: FlatMap = FlatMap()

    def load(self) -> None:
        """Populate :attr:`data`; the base provider keeps what was set explicitly."""

    def get(self, key: str) -> ConfigValue:
        return self.data.get(key)

    def try_get(self, key: str) -> tuple[bool, ConfigValue]:
        """Return ``(found, value)`` so a stored ``None`` differs from a missing key."""

        if key in self.data:
            return True, self.data[key]
        return False, None

    def set(self, key: str, value: ConfigValue) -> None:
        self.data[key] = value

    def get_child_keys(self, parent_path: str | None = None) -> list[str]:
        """Return the immediate child segments below *parent_path*.

        Children are de-duplicated and sorted case-insensitively; ``None`` or an
        empty path enumerates the top-level segments.
        """

        return child_keys(self.data.keys(), parent_path)

    @property
    def location(self) -> str | None:
        """Path or URI this provider reads from, used in provenance and logs."""

        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={len(self.data)})"


class StaticProvider(ConfigurationProvider):
    """Provider over data computed before the builder runs."""

    name = "static"

    def __init__(self, data: Mapping[str, ConfigValue]) -> None:
        super().__init__()
        self._initial = FlatMap(data)
        self.data = self._initial.copy()

    def load(self) -> None:
        self.data = self._initial.copy()
