"""JSON document parser.

Purpose
-------
Decode JSON configuration documents with the standard library and flatten them
through :mod:`lib_config_providers.adapters.parsers.tree`. Configuration files
commonly carry ``//`` or ``/* */`` comments and trailing commas, so both are
removed before decoding. Duplicate object members are rejected.
"""

from __future__ import annotations

import json
from typing import IO, Any

from ...domain.errors import InvalidFormat
from ...domain.flatmap import FlatMap
from ...observability import log_error
from .tree import flatten


class JsonParser:
    """Parse JSON streams or text into flat configuration data.

    Examples
    --------
    >>> data = JsonParser().parse('{"name": "demo", /* note */ "ports": [80, 443,],}', prefix="web")
    >>> dict(data)
    {'web:name': 'demo', 'web:ports:0': '80', 'web:ports:1': '443'}
    """

    format_name = "json"

    def parse(self, source: str | bytes | IO[Any], prefix: str | None = None) -> FlatMap:
        """Return the flattened content of *source*, keys optionally under *prefix*."""

        return flatten(self.decode(source), prefix)

    def decode(self, source: str | bytes | IO[Any]) -> Any:
        """Return the decoded (still nested) JSON document."""

        text = _read_text(source)
        try:
            return json.loads(_relax(text), object_pairs_hook=_unique_object)
        except (json.JSONDecodeError, InvalidFormat, RecursionError) as exc:
            log_error("document_invalid", format=self.format_name, error=str(exc))
            raise InvalidFormat(f"Could not parse the JSON document: {exc}") from exc


def _read_text(source: str | bytes | IO[Any]) -> str:
    raw = source if isinstance(source, (str, bytes)) else source.read()
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise InvalidFormat(f"JSON document is not valid UTF-8: {exc}") from exc
    return raw


def _unique_object(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise InvalidFormat(f"A duplicate key '{key}' was found.")
        result[key] = value
    return result


def _relax(text: str) -> str:
    """Drop comments and trailing commas that sit outside string literals.

    >>> _relax('{"a": "//keep", // drop\\n "b": [1,],}')
    '{"a": "//keep", \\n "b": [1]}'
    """

    out: list[str] = []
    pending_comma: list[str] = []
    index, length = 0, len(text)
    while index < length:
        char = text[index]
        if char == '"':
            end = _string_end(text, index)
            _flush(out, pending_comma)
            out.append(text[index:end])
            index = end
            continue
        if text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
            continue
        if text.startswith("/*", index):
            close = text.find("*/", index + 2)
            if close == -1:
                raise InvalidFormat("Unterminated block comment in JSON document")
            index = close + 2
            continue
        if char == ",":
            _flush(out, pending_comma)
            pending_comma.append(char)
        elif char in "}]":
            if pending_comma:
                out.extend(pending_comma[1:])
                pending_comma.clear()
            out.append(char)
        elif pending_comma and char.isspace():
            pending_comma.append(char)
        else:
            _flush(out, pending_comma)
            out.append(char)
        index += 1
    _flush(out, pending_comma)
    return "".join(out)


def _flush(out: list[str], pending: list[str]) -> None:
    if pending:
        out.extend(pending)
        pending.clear()


def _string_end(text: str, start: int) -> int:
    index = start + 1
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == '"':
            return index + 1
        index += 1
    return len(text)
