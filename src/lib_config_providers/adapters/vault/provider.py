"""Vault secret source.

Purpose
-------
Read a fixed list of secret paths from a Vault-like store and turn every secret
key into a configuration key, optionally decoding each value as a JSON document.

Contents
--------
* :class:`VaultSource` – validated descriptor (client, mappings, manager, mode).
* :class:`VaultProvider` – performs the reads on every :meth:`VaultProvider.load`.
* :func:`unwrap_versioned` – strips the KV version 2 envelope.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from ...application.ports import SecretManager, SecretStoreClient
from ...application.provider import ConfigurationProvider
from ...domain.errors import ArgumentError, InvalidFormat
from ...domain.flatmap import FlatMap
from ...domain.keys import combine, normalize
from ...observability import log_debug
from ..parsers.json_parser import JsonParser
from ..parsers.tree import flatten_into
from .manager import VaultSecretManager
from .mapping import SecretContext, VaultSecretMapping

_DATA_KEY = "data"
_METADATA_KEY = "metadata"


def unwrap_versioned(secret: Mapping[str, Any]) -> Mapping[str, Any]:
    """Return the inner data of a versioned secret, or *secret* unchanged.

    A secret counts as versioned when it has both ``metadata`` and ``data``
    members and ``data`` is itself a mapping.

    >>> unwrap_versioned({"data": {"password": "s3cret"}, "metadata": {"version": 2}})
    {'password': 's3cret'}
    >>> unwrap_versioned({"data": "plain", "metadata": "x"})
    {'data': 'plain', 'metadata': 'x'}
    """

    inner = secret.get(_DATA_KEY)
    if _METADATA_KEY in secret and isinstance(inner, Mapping):
        return inner
    return secret


@dataclass(frozen=True)
class VaultSource:
    """Describe which secrets to read and how to map them.

    Parameters
    ----------
    client:
        Store client; see :class:`~lib_config_providers.adapters.vault.client.HttpVaultClient`.
    mappings:
        At least one :class:`VaultSecretMapping`. Non-empty prefixes must be
        unique (case-insensitive); empty prefixes may repeat.
    manager:
        Inclusion and key-naming policy.
    as_json:
        Decode every loaded value as a JSON document and flatten it under the
        mapping prefix instead of the secret key.
    optional:
        Treat failures as "no data" when registered through the builder.
    close_client:
        Close *client* together with the provider; set when the builder
        created the client.
    """

    client: SecretStoreClient
    mappings: Sequence[VaultSecretMapping]
    manager: SecretManager = field(default_factory=VaultSecretManager)
    as_json: bool = False
    optional: bool = False
    close_client: bool = False

    def __post_init__(self) -> None:
        if self.client is None:
            raise ArgumentError("The value for 'client' must be provided")
        if self.manager is None:
            raise ArgumentError("The value for 'manager' must be provided")
        if not self.mappings:
            raise ArgumentError("The value for 'mappings' cannot be empty")
        object.__setattr__(self, "mappings", tuple(self.mappings))
        seen: set[str] = set()
        for mapping in self.mappings:
            if not mapping.prefix:
                continue
            folded = normalize(mapping.prefix)
            if folded in seen:
                raise ArgumentError(f"Vault mapping prefixes must be unique, '{mapping.prefix}' is repeated")
            seen.add(folded)

    def build(self) -> VaultProvider:
        return VaultProvider(self)


class VaultProvider(ConfigurationProvider):
    """Load every mapped secret path in order."""

    name = "vault"

    def __init__(self, source: VaultSource) -> None:
        super().__init__()
        self.source = source
        self._json = JsonParser()

    def load(self) -> None:
        """Re-read every secret path and replace :attr:`data`.

        Raises
        ------
        InvalidFormat
            A key is produced twice, or (with ``as_json``) a value is not a JSON
            object.
        """

        data = FlatMap()
        for mapping in self.source.mappings:
            secret = unwrap_versioned(self.source.client.read_secret(mapping.path))
            context = SecretContext(mapping.path, mapping.prefix, secret)
            loaded = self._add_secret(data, context)
            log_debug("vault_secret_read", source=self.name, location=mapping.path, keys=loaded)
        self.data = data

    def _add_secret(self, data: FlatMap, context: SecretContext) -> int:
        manager = self.source.manager
        loaded = 0
        for key, value in context.data.items():
            if not manager.should_load(context, key):
                continue
            if self.source.as_json:
                document = self._decode(context, key, value)
                flatten_into(data, [context.prefix] if context.prefix else [], document)
            else:
                mapped = manager.map_key(context, key)
                full_key = combine(context.prefix, mapped)
                if isinstance(value, str):
                    data.add(full_key, value)
                else:
                    flatten_into(data, [full_key], value)
            loaded += 1
        return loaded

    def _decode(self, context: SecretContext, key: str, value: Any) -> Mapping[str, Any]:
        document = value if isinstance(value, Mapping) else None
        if isinstance(value, (str, bytes)):
            try:
                document = self._json.decode(value)
            except InvalidFormat as exc:
                raise InvalidFormat(f"Secret '{key}' at '{context.path}' is not a valid JSON document: {exc}") from exc
        if not isinstance(document, Mapping):
            raise InvalidFormat(f"Secret '{key}' at '{context.path}' must contain a JSON object")
        return document

    def close(self) -> None:
        close = getattr(self.source.client, "close", None)
        if self.source.close_client and close is not None:
            close()
