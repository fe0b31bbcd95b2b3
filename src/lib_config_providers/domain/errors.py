"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by parsers, providers, the composition
root, and consuming applications. The hierarchy lives in the domain layer so
outer layers may depend on it without creating cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`ArgumentError` – invalid construction-time input.
* :class:`InvalidFormat` – malformed documents (YAML, JSON, TOML, secrets).
* :class:`NotFound` / :class:`FileNotFound` / :class:`DirectoryNotFound` –
  required resources that are absent.
* :class:`HttpError` – remote endpoints that fail or cannot be reached.
* :class:`ValidationError` / :class:`SettingsValidationError` – bound settings
  that fail semantic checks.

System Role
-----------
Sources raise :class:`ArgumentError` from their constructors; providers raise the
remaining types from ``load()``. The builder lets every error of a non-optional
source propagate unchanged, so callers can catch :class:`ConfigError` to handle
all library failures uniformly.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_providers``."""


class ArgumentError(ConfigError, ValueError):
    """Raised when a source or client is constructed with unusable arguments.

    Why
    ----
    Misconfiguration (missing credentials, malformed prefixes) must surface at
    construction time, before any file or network I/O is attempted.
    """


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be flattened into configuration data.

    Typical Sources
    ---------------
    Non-mapping document roots, duplicate keys, unsupported scalar types, and
    secrets that were declared as JSON but do not parse.
    """


class NotFound(ConfigError):
    """Represents a missing configuration resource."""


class FileNotFound(NotFound, FileNotFoundError):
    """A required configuration file does not exist."""


class DirectoryNotFound(NotFound, FileNotFoundError):
    """A required configuration directory does not exist."""


class HttpError(ConfigError):
    """Raised when a remote endpoint answers with a failure or is unreachable.

    Attributes
    ----------
    status_code:
        HTTP status code, or ``None`` for transport failures and timeouts.
    reason:
        HTTP reason phrase, or ``None`` for transport failures and timeouts.
    """

    def __init__(self, message: str, *, status_code: int | None = None, reason: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks."""


class SettingsValidationError(ValidationError):
    """Indicates that a strongly typed settings object was not configured correctly.

    Examples
    --------
    >>> str(SettingsValidationError.for_property("DbSettings", "host", "must not be empty")).splitlines()[0]
    'Settings were invalid: DbSettings.host must not be empty. '
    """

    @classmethod
    def for_property(cls, class_name: str, property_name: str, error: str) -> SettingsValidationError:
        """Build the error for a single invalid property with operator guidance."""

        return cls(
            f"Settings were invalid: {class_name}.{property_name} {error}. \n\n"
            "Check that your configuration has been loaded correctly, and all necessary "
            "values are set in the configuration files."
        )
