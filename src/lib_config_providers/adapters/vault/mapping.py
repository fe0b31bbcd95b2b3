"""Vault secret path mappings.

Contents
--------
* :class:`VaultSecretMapping` – one secret path and the key prefix its values
  are stored under.
* :class:`SecretContext` – what a secret manager sees while deciding about a key.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ...domain.errors import ArgumentError
from ...domain.keys import validate_prefix


@dataclass(frozen=True)
class VaultSecretMapping:
    """Map the secret stored at *path* below configuration key *prefix*.

    ``None`` or an empty prefix stores the secret's keys at the top level.

    Examples
    --------
    >>> VaultSecretMapping(" db ", "secret/data/db")
    VaultSecretMapping(prefix='db', path='secret/data/db')
    >>> VaultSecretMapping("db:", "secret/data/db")
    Traceback (most recent call last):
    ...
    lib_config_providers.domain.errors.ArgumentError: The value for 'prefix' must not end with ':'
    """

    prefix: str | None
    path: str

    def __post_init__(self) -> None:
        if not self.path or not self.path.strip():
            raise ArgumentError("The value for 'path' must be a non-empty secret path")
        object.__setattr__(self, "prefix", validate_prefix(self.prefix))

    @classmethod
    def from_paths(cls, *paths: str) -> tuple[VaultSecretMapping, ...]:
        """Return un-prefixed mappings for *paths*."""

        return tuple(cls(None, path) for path in paths)


@dataclass(frozen=True)
class SecretContext:
    """The secret being processed: its path, mapping prefix and raw data."""

    path: str
    prefix: str | None
    data: Mapping[str, Any] = field(repr=False)
