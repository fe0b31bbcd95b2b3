"""Hierarchical configuration keys.

Purpose
-------
Define the single key normalisation scheme shared by every source: a key is an
ordered sequence of segments joined with :data:`KEY_DELIMITER` and compared
case-insensitively.

Contents
--------
* :data:`KEY_DELIMITER` – the ``:`` separator.
* :class:`ConfigKey` – value object over a tuple of segments.
* :func:`combine` / :func:`relative_key` – string helpers used by providers and
  the snapshot on hot paths.
* :func:`normalize` – case-folded comparison form of a key.
* :func:`validate_prefix` – shared prefix check used by remote and Vault sources.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Iterable

from .errors import ArgumentError

KEY_DELIMITER: Final[str] = ":"


@dataclass(frozen=True, slots=True, eq=False)
class ConfigKey:
    """Ordered, case-insensitive sequence of key segments.

    Examples
    --------
    >>> key = ConfigKey.parse("Residential.Address:ZipCode")
    >>> key.segments
    ('Residential.Address', 'ZipCode')
    >>> key == ConfigKey.parse("residential.address:zipcode")
    True
    >>> str(key.parent), key.name
    ('Residential.Address', 'ZipCode')
    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        for segment in self.segments:
            if not segment:
                raise ArgumentError("Configuration key segments must not be empty")
            if KEY_DELIMITER in segment:
                raise ArgumentError(f"Configuration key segment {segment!r} contains {KEY_DELIMITER!r}")

    @classmethod
    def parse(cls, path: str) -> ConfigKey:
        """Split a delimited *path* into a :class:`ConfigKey`."""

        return cls(tuple(path.split(KEY_DELIMITER)) if path else ())

    @property
    def name(self) -> str:
        """Return the last segment (empty for the root key)."""

        return self.segments[-1] if self.segments else ""

    @property
    def parent(self) -> ConfigKey:
        return ConfigKey(self.segments[:-1])

    def child(self, segment: str) -> ConfigKey:
        return ConfigKey((*self.segments, segment))

    def _folded(self) -> tuple[str, ...]:
        return tuple(segment.casefold() for segment in self.segments)

    def __str__(self) -> str:
        return KEY_DELIMITER.join(self.segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigKey):
            return NotImplemented
        return self._folded() == other._folded()

    def __lt__(self, other: ConfigKey) -> bool:
        return self._folded() < other._folded()

    def __hash__(self) -> int:
        return hash(self._folded())


def combine(*segments: str | None) -> str:
    """Join non-empty *segments* with the key delimiter.

    >>> combine("prefix", None, "a:b")
    'prefix:a:b'
    """

    return KEY_DELIMITER.join(segment for segment in segments if segment)


def relative_key(key: str, parent: str | None) -> str | None:
    """Return *key* relative to *parent*, or ``None`` when it is not below it.

    Segments are compared case-folded one by one, so folding that changes a
    segment's length still cuts the original spelling at the right place.

    >>> relative_key("Straße:Nummer", "STRASSE"), relative_key("a", "a")
    ('Nummer', None)
    """

    if not parent:
        return key
    depth = parent.count(KEY_DELIMITER) + 1
    parts = key.split(KEY_DELIMITER, depth)
    if len(parts) <= depth:
        return None
    if normalize(KEY_DELIMITER.join(parts[:depth])) != normalize(parent):
        return None
    return parts[depth]


def normalize(key: str) -> str:
    """Return the case-folded comparison form of *key*."""

    return key.casefold()


def validate_prefix(prefix: str | None, *, name: str = "prefix") -> str | None:
    """Return the stripped *prefix* or raise :class:`ArgumentError`.

    Why
    ----
    A prefix is glued in front of every key a source produces; a leading or
    trailing delimiter would create empty segments.

    Examples
    --------
    >>> validate_prefix("  app:db ")
    'app:db'
    >>> validate_prefix(None) is None
    True
    >>> validate_prefix(":app")
    Traceback (most recent call last):
    ...
    lib_config_providers.domain.errors.ArgumentError: The value for 'prefix' must not start with ':'
    """

    if prefix is None:
        return None
    stripped = prefix.strip()
    if not stripped:
        return None
    if stripped.startswith(KEY_DELIMITER):
        raise ArgumentError(f"The value for '{name}' must not start with '{KEY_DELIMITER}'")
    if stripped.endswith(KEY_DELIMITER):
        raise ArgumentError(f"The value for '{name}' must not end with '{KEY_DELIMITER}'")
    return stripped


def child_keys(keys: Iterable[str], parent: str | None) -> list[str]:
    """Enumerate immediate child segments of *parent* among *keys*.

    Children are de-duplicated and sorted case-insensitively; the first
    spelling wins.

    >>> child_keys(["a:b", "a:C:d", "a:c", "b"], "A")
    ['b', 'C']
    """

    seen: dict[str, str] = {}
    for key in keys:
        remainder = relative_key(key, parent)
        if remainder is None:
            continue
        segment = remainder.split(KEY_DELIMITER, 1)[0]
        seen.setdefault(normalize(segment), segment)
    return [seen[folded] for folded in sorted(seen)]
