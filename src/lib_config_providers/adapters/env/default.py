"""Environment variable adapter.

Purpose
-------
Translate process environment variables into flat configuration keys so they
can serve as a high-precedence layer in the builder.

Key behaviours
--------------
* Optional prefix filter; the prefix is matched case-insensitively, an ``_`` is
  appended when missing, and it is stripped from the resulting keys.
* ``__`` acts as the hierarchy delimiter (``DB__HOST`` → ``DB:HOST``).
* Values are kept verbatim as strings; no type coercion happens here.
* Emits ``env_variables_loaded`` with the number of captured keys.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from ...application.provider import ConfigurationProvider
from ...domain.flatmap import FlatMap
from ...domain.keys import KEY_DELIMITER
from ...observability import log_debug

ENV_DELIMITER = "__"


def env_key(name: str, prefix: str = "") -> str | None:
    """Return the configuration key for variable *name*, or ``None`` when filtered out.

    Examples
    --------
    >>> env_key("DEMO_SERVICE__TIMEOUT", "DEMO")
    'SERVICE:TIMEOUT'
    >>> env_key("OTHER_VALUE", "DEMO") is None
    True
    >>> env_key("Logging__Level")
    'Logging:Level'
    """

    prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
    if prefix and not name.casefold().startswith(prefix.casefold()):
        return None
    stripped = name[len(prefix):] if prefix else name
    if not stripped:
        return None
    return stripped.replace(ENV_DELIMITER, KEY_DELIMITER)


@dataclass(frozen=True)
class EnvironmentSource:
    """Read variables from ``environ`` (defaults to :data:`os.environ`)."""

    prefix: str = ""
    environ: Mapping[str, str] | None = None
    optional: bool = False

    def build(self) -> EnvironmentProvider:
        return EnvironmentProvider(self)


class EnvironmentProvider(ConfigurationProvider):
    """Snapshot the environment on every :meth:`load`."""

    name = "env"

    def __init__(self, source: EnvironmentSource) -> None:
        super().__init__()
        self.source = source

    def load(self) -> None:
        """Replace :attr:`data` with the variables that pass the prefix filter.

        Two variables that map to the same key (``A__B`` and ``a__b``) collapse
        into one entry; the later one in iteration order wins.

        Examples
        --------
        >>> provider = EnvironmentSource("APP", {"APP_DB__HOST": "db", "PATH": "/bin"}).build()
        >>> provider.load()
        >>> dict(provider.data)
        {'DB:HOST': 'db'}
        """

        environ = os.environ if self.source.environ is None else self.source.environ
        collected = FlatMap()
        for name, value in environ.items():
            key = env_key(name, self.source.prefix)
            if key is None:
                continue
            collected[key] = value
        log_debug("env_variables_loaded", source=self.name, location=None, keys=len(collected))
        self.data = collected
