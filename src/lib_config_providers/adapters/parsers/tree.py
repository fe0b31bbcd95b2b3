"""Tree-to-flat-key flattening shared by the document parsers.

Purpose
-------
Convert a decoded hierarchical document (mappings, sequences, scalars) into a
:class:`~lib_config_providers.domain.flatmap.FlatMap`. The YAML, JSON and TOML
parsers only decode text; the walk, scalar coercion and duplicate detection live
here so every format behaves identically.

Contents
--------
* :func:`flatten` – depth-first walk of a mapping root.
* :func:`flatten_into` – walk into an existing map under a starting path.
* :func:`stringify` – scalar coercion rules.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ...domain.errors import InvalidFormat
from ...domain.flatmap import ConfigValue, FlatMap
from ...domain.keys import KEY_DELIMITER


def flatten(document: Any, prefix: str | None = None) -> FlatMap:
    """Flatten *document* into delimited keys, optionally under *prefix*.

    Why
    ----
    Sources deliver nested data, while lookups and merging operate on flat
    ``a:b:c`` keys.

    What
    ----
    Requires a mapping root. Mapping members push their key, sequence items push
    their zero-based index, scalars are stored through :func:`stringify`, and
    empty containers store ``None`` under their own path.

    Raises
    ------
    InvalidFormat
        Non-mapping root, unsupported scalar, a key produced twice, or a
        document nested beyond the interpreter recursion limit.

    Examples
    --------
    >>> dict(flatten({"db": {"hosts": ["a", "b"], "tls": True}, "extra": {}}))
    {'db:hosts:0': 'a', 'db:hosts:1': 'b', 'db:tls': 'true', 'extra': None}
    >>> dict(flatten({"name": "demo"}, prefix="app"))
    {'app:name': 'demo'}
    """

    if not isinstance(document, Mapping):
        kind = "nothing" if document is None else type(document).__name__
        raise InvalidFormat(f"Root document must be a mapping, but got {kind}")
    data = FlatMap()
    if document:
        flatten_into(data, [prefix] if prefix else [], document)
    return data


def flatten_into(data: FlatMap, path: list[str], value: Any) -> None:
    """Walk *value* into *data* starting at *path* (which may be empty)."""

    try:
        _visit(data, list(path), value)
    except RecursionError as exc:
        raise InvalidFormat("Document is nested too deeply or refers to itself") from exc


def stringify(scalar: Any) -> ConfigValue:
    """Return the configuration string for a scalar value.

    Examples
    --------
    >>> stringify(True), stringify(12), stringify(1.5), stringify(None), stringify("x")
    ('true', '12', '1.5', None, 'x')
    """

    if scalar is None:
        return None
    if isinstance(scalar, bool):
        return "true" if scalar else "false"
    if isinstance(scalar, str):
        return scalar
    if isinstance(scalar, int):
        return str(scalar)
    if isinstance(scalar, float):
        return repr(scalar)
    raise InvalidFormat(f"Unsupported scalar type: {type(scalar).__name__}")


def _visit(data: FlatMap, path: list[str], value: Any) -> None:
    if isinstance(value, Mapping):
        _visit_mapping(data, path, value)
    elif isinstance(value, (list, tuple)):
        _visit_sequence(data, path, value)
    else:
        _visit_scalar(data, path, value)


def _visit_mapping(data: FlatMap, path: list[str], mapping: Mapping[Any, Any]) -> None:
    for key, child in mapping.items():
        path.append(_segment(key))
        _visit(data, path, child)
        path.pop()
    if not mapping and path:
        _assign(data, path, None)


def _visit_sequence(data: FlatMap, path: list[str], sequence: list[Any] | tuple[Any, ...]) -> None:
    for index, child in enumerate(sequence):
        path.append(str(index))
        _visit(data, path, child)
        path.pop()
    if not sequence and path:
        _assign(data, path, None)


def _visit_scalar(data: FlatMap, path: list[str], scalar: Any) -> None:
    _assign(data, path, stringify(scalar))


def _assign(data: FlatMap, path: list[str], value: ConfigValue) -> None:
    data.add(KEY_DELIMITER.join(path), value)


def _segment(key: Any) -> str:
    """Mapping keys follow the scalar rules; a null key cannot name anything."""

    segment = stringify(key)
    if segment is None:
        raise InvalidFormat("Mapping keys must not be null")
    return segment
