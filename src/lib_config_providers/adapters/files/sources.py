"""File, stream and in-memory configuration sources.

Purpose
-------
Feed structured documents (YAML, JSON, TOML) from disk into the merge pipeline,
and wrap data that is already in memory.

Contents
--------
* :data:`_PARSERS` – mapping of file suffixes to parser instances.
* :class:`FileSource` / :class:`FileConfigurationProvider` – a document on disk,
  optionally tolerated when missing.
* :class:`StaticSource` – pre-computed flat data (dictionaries, parsed streams).
* :func:`read_stream` – parse a stream eagerly into flat data.

System Role
-----------
Used by :class:`lib_config_providers.core.ConfigurationBuilder` helpers such as
``add_yaml_file`` and ``add_yaml_stream``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Mapping

from ...application.ports import ConfigurationParser
from ...application.provider import ConfigurationProvider, StaticProvider
from ...domain.errors import ArgumentError, FileNotFound, InvalidFormat
from ...domain.flatmap import ConfigValue, FlatMap
from ...observability import log_debug, log_error
from ..parsers.json_parser import JsonParser
from ..parsers.toml_parser import TomlParser
from ..parsers.yaml_parser import YamlParser

# Parsers keyed by suffix; a FileSource without an explicit parser picks one here.
_PARSERS: dict[str, ConfigurationParser] = {
    ".yaml": YamlParser(),
    ".yml": YamlParser(),
    ".json": JsonParser(),
    ".toml": TomlParser(),
}


@dataclass(frozen=True)
class FileSource:
    """Describe a configuration document on disk.

    Parameters
    ----------
    path:
        File to read. Must be non-empty.
    optional:
        When ``True`` a missing file contributes no data instead of failing.
    parser:
        Parser to use; inferred from the suffix when omitted.
    """

    path: str | Path
    optional: bool = False
    parser: ConfigurationParser | None = None

    def __post_init__(self) -> None:
        if not self.path or not str(self.path).strip():
            raise ArgumentError("File path must be a non-empty string.")
        if self.parser is None:
            object.__setattr__(self, "parser", _parser_for(self.path))

    def build(self) -> FileConfigurationProvider:
        return FileConfigurationProvider(self)


class FileConfigurationProvider(ConfigurationProvider):
    """Load one structured document from disk."""

    def __init__(self, source: FileSource) -> None:
        super().__init__()
        self.source = source
        self._parser = source.parser if source.parser is not None else _parser_for(source.path)

    @property
    def name(self) -> str:  # type: ignore[override]
        return getattr(self._parser, "format_name", "file")

    @property
    def location(self) -> str | None:
        return str(self.source.path)

    def load(self) -> None:
        """Replace :attr:`data` with the parsed file content.

        Raises
        ------
        FileNotFound
            The file is missing and the source is not optional.
        InvalidFormat
            The document could not be flattened; the message names the file.
        """

        path = Path(self.source.path)
        if not path.is_file():
            if self.source.optional:
                log_debug("file_missing", source=self.name, location=str(path))
                self.data = FlatMap()
                return
            raise FileNotFound(f"The configuration file '{path}' was not found and is not optional.")
        payload = path.read_bytes()
        try:
            data = self._parser.parse(payload)
        except InvalidFormat as exc:
            log_error("file_invalid", source=self.name, location=str(path), error=str(exc))
            raise InvalidFormat(f"Failed to load configuration file {path}: {exc}") from exc
        log_debug("file_loaded", source=self.name, location=str(path), keys=len(data))
        self.data = data


def _parser_for(path: str | Path) -> ConfigurationParser:
    parser = _PARSERS.get(Path(path).suffix.lower())
    if parser is None:
        raise ArgumentError(f"No parser registered for configuration file {path}")
    return parser


@dataclass(frozen=True)
class StaticSource:
    """Pre-computed flat data; building it never fails."""

    data: Mapping[str, ConfigValue] = field(default_factory=dict)
    name: str = "memory"
    optional: bool = False

    def build(self) -> StaticProvider:
        provider = StaticProvider(self.data)
        provider.name = self.name
        return provider


def read_stream(stream: str | bytes | IO[Any], parser: ConfigurationParser | None = None) -> FlatMap:
    """Parse *stream* immediately, YAML unless another *parser* is supplied.

    Why
    ----
    Streams can only be consumed once, so they are read when registered rather
    than on every reload.

    Examples
    --------
    >>> import io
    >>> read_stream(io.StringIO("name: demo\\n"))["name"]
    'demo'
    """

    return (parser or YamlParser()).parse(stream)
