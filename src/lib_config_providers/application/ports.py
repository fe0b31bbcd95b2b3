"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts adapters satisfy so the builder can orchestrate
them without depending on concrete implementations.

Contents
--------
* :class:`ConfigurationParser` – turns a document stream into flat data.
* :class:`ConfigurationSource` – immutable descriptor that builds a provider.
* :class:`FileEntry` / :class:`FileProvider` – directory listing abstraction used
  by the Kubernetes secrets adapter.
* :class:`SecretStoreClient` – reads one secret path from a Vault-like store.
* :class:`SecretManager` – inclusion and key-renaming policy for secrets.

System Role
-----------
These protocols keep dependency inversion enforceable: tests substitute fakes
for the file system, HTTP transport and secret store through them.
"""

from __future__ import annotations

from typing import IO, TYPE_CHECKING, Any, Iterable, Mapping, Protocol, runtime_checkable

from ..domain.flatmap import FlatMap

if TYPE_CHECKING:
    from .provider import ConfigurationProvider
    from ..adapters.vault.mapping import SecretContext


@runtime_checkable
class ConfigurationParser(Protocol):
    """Parse a document into flat configuration data.

    Why
    ----
    The remote adapter is format-agnostic; callers pick JSON, YAML or their own
    parser per endpoint.
    """

    def parse(self, source: str | bytes | IO[Any], prefix: str | None = None) -> FlatMap:
        """Return flattened data, every key placed under *prefix* when given."""


@runtime_checkable
class ConfigurationSource(Protocol):
    """Describe where configuration comes from and build its provider."""

    optional: bool

    def build(self) -> ConfigurationProvider:
        """Create the provider that loads this source."""


@runtime_checkable
class FileEntry(Protocol):
    """A single entry returned by :meth:`FileProvider.get_directory_contents`."""

    name: str
    is_directory: bool

    def read_text(self) -> str:
        """Return the full file content."""


@runtime_checkable
class FileProvider(Protocol):
    """Directory listing abstraction.

    Why
    ----
    Secret mounts are read through this port so tests and alternative storage
    backends do not need a real directory.
    """

    def get_directory_contents(self) -> Iterable[FileEntry] | None:
        """Return the entries of the root directory, or ``None`` when it does not exist."""


@runtime_checkable
class SecretStoreClient(Protocol):
    """Read secrets from a Vault-like store."""

    def read_secret(self, path: str) -> Mapping[str, Any]:
        """Return the secret's data mapping (possibly a versioned envelope)."""


@runtime_checkable
class SecretManager(Protocol):
    """Decide which secret keys to load and under which configuration key."""

    def should_load(self, context: SecretContext, key: str) -> bool:
        """Return ``True`` when the value for *key* should be loaded."""

    def map_key(self, context: SecretContext, key: str) -> str:
        """Return the configuration key used to store the value for *key*."""
