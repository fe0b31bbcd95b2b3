"""Public package surface for ``lib_config_providers``.

Builders, sources and errors are re-exported here so applications can write
``from lib_config_providers import ConfigurationBuilder`` without knowing the
layer each name lives in.
"""

from __future__ import annotations

from .adapters.env.default import EnvironmentSource
from .adapters.files.sources import FileSource, StaticSource
from .adapters.kube_secrets.default import KubeSecretsSource, PhysicalFileProvider
from .adapters.parsers.json_parser import JsonParser
from .adapters.parsers.toml_parser import TomlParser
from .adapters.parsers.yaml_parser import YamlParser
from .adapters.remote.http import AuthenticationType, RemoteSource
from .adapters.vault.client import AppRoleAuth, HttpVaultClient, InMemoryVaultClient, TokenAuth, UserPassAuth
from .adapters.vault.manager import VaultSecretManager
from .adapters.vault.mapping import SecretContext, VaultSecretMapping
from .adapters.vault.provider import VaultSource
from .application.provider import ConfigurationProvider
from .core import ConfigurationBuilder, ConfigurationRoot
from .domain.config import Config, SourceInfo
from .domain.errors import (
    ArgumentError,
    ConfigError,
    DirectoryNotFound,
    FileNotFound,
    HttpError,
    InvalidFormat,
    NotFound,
    SettingsValidationError,
    ValidationError,
)
from .domain.keys import KEY_DELIMITER, ConfigKey
from .observability import bind_trace_id, get_logger, traced
from .validation import Validatable, bind_settings, validate_settings

__all__ = [
    "KEY_DELIMITER",
    "AppRoleAuth",
    "ArgumentError",
    "AuthenticationType",
    "Config",
    "ConfigError",
    "ConfigKey",
    "ConfigurationBuilder",
    "ConfigurationProvider",
    "ConfigurationRoot",
    "DirectoryNotFound",
    "EnvironmentSource",
    "FileNotFound",
    "FileSource",
    "HttpError",
    "HttpVaultClient",
    "InMemoryVaultClient",
    "InvalidFormat",
    "JsonParser",
    "KubeSecretsSource",
    "NotFound",
    "PhysicalFileProvider",
    "RemoteSource",
    "SecretContext",
    "SettingsValidationError",
    "SourceInfo",
    "StaticSource",
    "TokenAuth",
    "TomlParser",
    "UserPassAuth",
    "Validatable",
    "ValidationError",
    "VaultSecretManager",
    "VaultSecretMapping",
    "VaultSource",
    "YamlParser",
    "bind_settings",
    "bind_trace_id",
    "traced",
    "get_logger",
    "validate_settings",
]
