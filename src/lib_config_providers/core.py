"""Composition root for ``lib_config_providers``.

Purpose
-------
Provide the builder that registers configuration sources in precedence order,
loads them, merges their flat data last-wins and hands out an immutable
:class:`~lib_config_providers.domain.config.Config` snapshot that can be
reloaded as a whole or per provider.

Contents
--------
* :class:`ConfigurationBuilder` – fluent registration API with one helper per
  bundled source.
* :class:`ConfigurationRoot` – built result: providers, current snapshot,
  reload, binding and resource cleanup.

System Role
-----------
This module connects adapters (files, streams, environment, remote HTTP, secret
mounts, Vault) with the merge policy and the domain value object while emitting
structured observability signals. It is the canonical location for wiring new
source kinds.
"""

from __future__ import annotations

from pathlib import Path
from typing import IO, Any, Callable, Iterator, Mapping, TypeVar

import httpx

from .adapters.env.default import EnvironmentSource
from .adapters.files.sources import FileSource, StaticSource, read_stream
from .adapters.kube_secrets.default import KubeSecretsSource
from .adapters.parsers.json_parser import JsonParser
from .adapters.parsers.toml_parser import TomlParser
from .adapters.parsers.yaml_parser import YamlParser
from .adapters.remote.http import RemoteSource
from .adapters.vault.client import AppRoleAuth, HttpVaultClient, TokenAuth, UserPassAuth, VaultAuth
from .adapters.vault.manager import VaultSecretManager
from .adapters.vault.mapping import VaultSecretMapping
from .adapters.vault.provider import VaultSource
from .application.merge import merge_layers
from .application.ports import ConfigurationParser, FileProvider, SecretManager, SecretStoreClient
from .application.provider import ConfigurationProvider
from .domain.config import EMPTY_CONFIG, Config
from .domain.errors import ArgumentError, ConfigError
from .domain.flatmap import ConfigValue, FlatMap
from .observability import log_debug, log_info, log_warning, make_event, traced
from .validation import bind_settings

T = TypeVar("T")


class ConfigurationBuilder:
    """Collect configuration sources, lowest precedence first.

    Why
    ----
    Applications describe *where* configuration lives once; the builder turns
    that description into providers and a merged snapshot.

    What
    ----
    Every ``add_*`` helper validates its arguments immediately (raising
    :class:`ArgumentError`), appends one source and returns the builder so calls
    can be chained. Later sources override earlier ones key by key.

    Examples
    --------
    >>> root = (
    ...     ConfigurationBuilder()
    ...     .add_in_memory({"Logging:Level": "info", "Name": "demo"})
    ...     .add_yaml_stream("logging:\\n  level: debug\\n")
    ...     .build()
    ... )
    >>> root["logging:level"], root.get("name")
    ('debug', 'demo')
    """

    def __init__(self) -> None:
        self._sources: list[Any] = []

    @property
    def sources(self) -> tuple[Any, ...]:
        return tuple(self._sources)

    def add(self, source: Any) -> ConfigurationBuilder:
        """Register any object with ``optional`` and ``build()``."""

        if source is None:
            raise ArgumentError("The value for 'source' must be provided")
        self._sources.append(source)
        return self

    def add_yaml_file(self, path: str | Path, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add(FileSource(path, optional, YamlParser()))

    def add_json_file(self, path: str | Path, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add(FileSource(path, optional, JsonParser()))

    def add_toml_file(self, path: str | Path, *, optional: bool = False) -> ConfigurationBuilder:
        return self.add(FileSource(path, optional, TomlParser()))

    def add_file(
        self, path: str | Path, *, optional: bool = False, parser: ConfigurationParser | None = None
    ) -> ConfigurationBuilder:
        """Register a file whose parser is chosen by suffix unless *parser* is given."""

        return self.add(FileSource(path, optional, parser))

    def add_yaml_stream(self, stream: str | bytes | IO[Any]) -> ConfigurationBuilder:
        """Parse *stream* now and register the result.

        Raises
        ------
        InvalidFormat
            Immediately, when the stream is not a valid YAML mapping.
        """

        if stream is None:
            raise ArgumentError("The value for 'stream' must be provided")
        return self.add(StaticSource(read_stream(stream), name="yaml_stream"))

    def add_json_stream(self, stream: str | bytes | IO[Any]) -> ConfigurationBuilder:
        if stream is None:
            raise ArgumentError("The value for 'stream' must be provided")
        return self.add(StaticSource(read_stream(stream, JsonParser()), name="json_stream"))

    def add_in_memory(self, data: Mapping[str, ConfigValue] | None = None) -> ConfigurationBuilder:
        return self.add(StaticSource(FlatMap(data or {})))

    def add_environment(self, prefix: str = "", *, environ: Mapping[str, str] | None = None) -> ConfigurationBuilder:
        return self.add(EnvironmentSource(prefix, environ))

    def add_remote(self, uri: str | httpx.URL, **options: Any) -> ConfigurationBuilder:
        """Register a remote endpoint; *options* are :class:`RemoteSource` fields."""

        return self.add(RemoteSource(uri, **options))

    def add_kube_secrets(
        self,
        secrets_directory: str | Path | None = None,
        *,
        file_provider: FileProvider | None = None,
        optional: bool = False,
        ignore_condition: Callable[[str], bool] | None = None,
    ) -> ConfigurationBuilder:
        return self.add(KubeSecretsSource(secrets_directory, file_provider, optional, ignore_condition))

    def add_vault(
        self,
        client: SecretStoreClient,
        *mappings: VaultSecretMapping | str,
        manager: SecretManager | None = None,
        as_json: bool = False,
        optional: bool = False,
    ) -> ConfigurationBuilder:
        """Register secrets read through *client*.

        Plain strings in *mappings* are secret paths without a prefix.
        """

        return self.add(
            VaultSource(
                client,
                _as_mappings(mappings),
                VaultSecretManager() if manager is None else manager,
                as_json,
                optional,
            )
        )

    def add_vault_with_token(
        self, uri: str, token: str, *mappings: VaultSecretMapping | str, **options: Any
    ) -> ConfigurationBuilder:
        return self._add_vault_http(uri, TokenAuth(token), mappings, options)

    def add_vault_with_userpass(
        self, uri: str, username: str, password: str, *mappings: VaultSecretMapping | str, **options: Any
    ) -> ConfigurationBuilder:
        mount_point = options.pop("mount_point", "userpass")
        return self._add_vault_http(uri, UserPassAuth(username, password, mount_point), mappings, options)

    def add_vault_with_approle(
        self, uri: str, role_id: str, secret_id: str, *mappings: VaultSecretMapping | str, **options: Any
    ) -> ConfigurationBuilder:
        mount_point = options.pop("mount_point", "approle")
        return self._add_vault_http(uri, AppRoleAuth(role_id, secret_id, mount_point), mappings, options)

    def _add_vault_http(
        self, uri: str, auth: VaultAuth, mappings: tuple[VaultSecretMapping | str, ...], options: dict[str, Any]
    ) -> ConfigurationBuilder:
        if not uri or not uri.strip():
            raise ArgumentError("The Vault uri must be a valid URI")
        client_options = {key: options.pop(key) for key in ("namespace", "timeout", "transport") if key in options}
        resolved = _as_mappings(mappings)
        manager = options.pop("manager", None) or VaultSecretManager()
        client = HttpVaultClient(uri, auth, **client_options)
        try:
            source = VaultSource(client, resolved, manager, close_client=True, **options)
        except ArgumentError:
            client.close()
            raise
        return self.add(source)

    def build(self, *, trace_id: str | None = None) -> ConfigurationRoot:
        """Create every provider, load them in order and merge the results.

        Log records emitted during the build carry *trace_id* when given.

        Raises
        ------
        ConfigError
            The first failing non-optional source, unchanged.
        """

        with traced(trace_id):
            entries = [(source, source.build()) for source in self._sources]
            return ConfigurationRoot(entries)


class ConfigurationRoot:
    """Loaded providers plus the merged snapshot they produce.

    Why
    ----
    Reloading must never expose a half-merged state; the snapshot is rebuilt
    from all providers and swapped in one assignment, so a reader holding
    :attr:`config` keeps a consistent view.

    Examples
    --------
    >>> root = ConfigurationBuilder().add_in_memory({"a:b": "1"}).build()
    >>> provider = root.providers[0]
    >>> provider.set("a:c", "2")
    >>> root.get_child_keys("a")
    ['b']
    >>> root.reload_provider(provider)
    >>> root.config.as_dict()
    {'a': {'b': '1'}}
    """

    def __init__(self, entries: list[tuple[Any, ConfigurationProvider]]) -> None:
        self._entries = entries
        self._config: Config = EMPTY_CONFIG
        try:
            self.reload()
        except ConfigError:
            self.close()
            raise

    @property
    def config(self) -> Config:
        return self._config

    @property
    def providers(self) -> tuple[ConfigurationProvider, ...]:
        return tuple(provider for _, provider in self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> ConfigValue:
        return self._config[key]

    def __contains__(self, key: object) -> bool:
        return key in self._config

    def __iter__(self) -> Iterator[str]:
        return iter(self._config)

    def get_section(self, path: str) -> Config:
        return self._config.section(path)

    def get_child_keys(self, parent_path: str | None = None) -> list[str]:
        return self._config.get_child_keys(parent_path)

    def reload(self) -> None:
        """Re-load every provider in registration order, then re-merge."""

        for source, provider in self._entries:
            _load(source, provider)
        self._merge()

    def reload_provider(self, provider: ConfigurationProvider) -> None:
        """Re-load *provider* only, then re-merge the full provider list."""

        for source, candidate in self._entries:
            if candidate is provider:
                _load(source, candidate)
                self._merge()
                return
        raise ArgumentError(f"{provider!r} does not belong to this configuration")

    def bind(self, model: type[T], section: str | None = None, *, validate: bool = True) -> T:
        """Bind the current snapshot (or *section*) to *model*; see :func:`bind_settings`."""

        return bind_settings(self._config, model, section, validate=validate)

    def close(self) -> None:
        """Release resources held by providers (HTTP clients)."""

        for _, provider in self._entries:
            close = getattr(provider, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> ConfigurationRoot:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _merge(self) -> None:
        merged, meta = merge_layers((provider.name, provider.data, provider.location) for _, provider in self._entries)
        log_info("configuration_merged", providers=len(self._entries), keys=len(merged))
        self._config = Config(merged, meta) if merged else EMPTY_CONFIG


def _load(source: Any, provider: ConfigurationProvider) -> None:
    """Run ``provider.load()``; an optional source's failure leaves it empty."""

    try:
        provider.load()
    except ConfigError as exc:
        if not getattr(source, "optional", False):
            raise
        log_warning("source_skipped", **make_event(provider.name, provider.location, {"error": str(exc)}))
        provider.data = FlatMap()
        return
    log_debug("source_loaded", **make_event(provider.name, provider.location, {"keys": len(provider.data)}))


def _as_mappings(mappings: tuple[VaultSecretMapping | str, ...]) -> tuple[VaultSecretMapping, ...]:
    return tuple(VaultSecretMapping(None, item) if isinstance(item, str) else item for item in mappings)


__all__ = ["ConfigurationBuilder", "ConfigurationRoot"]
