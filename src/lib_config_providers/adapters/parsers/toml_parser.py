"""TOML document parser backed by :mod:`tomllib`."""

from __future__ import annotations

import tomllib
from typing import IO, Any

from ...domain.errors import InvalidFormat
from ...domain.flatmap import FlatMap
from ...observability import log_error
from .tree import flatten


class TomlParser:
    """Parse TOML streams or text into flat configuration data.

    TOML date and time values have no configuration-string form and are
    reported as unsupported scalars.
    """

    format_name = "toml"

    def parse(self, source: str | bytes | IO[Any], prefix: str | None = None) -> FlatMap:
        raw = source if isinstance(source, (str, bytes)) else source.read()
        try:
            text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            document = tomllib.loads(text)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError, RecursionError) as exc:
            log_error("document_invalid", format=self.format_name, error=str(exc))
            raise InvalidFormat(f"Could not parse the TOML document: {exc}") from exc
        return flatten(document, prefix)
