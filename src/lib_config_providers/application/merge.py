"""Application-layer merge policy.

Purpose
-------
Convert an ordered sequence of flat provider payloads into a single
configuration mapping while tracking provenance. Free of I/O so it can be reused
by any composition root.

Contents
    - ``merge_layers``: public entry point driven by a simple loop.
    - ``_merge_layer``: applies one payload, last writer wins per key.

System Role
-----------
Receives payloads from :class:`lib_config_providers.core.ConfigurationRoot` in
registration order and returns the structures wrapped by
:class:`lib_config_providers.domain.config.Config`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Iterable

from ..domain.config import SourceInfo
from ..domain.flatmap import ConfigValue, FlatMap
from ..domain.keys import normalize


def merge_layers(
    layers: Iterable[tuple[str, Mapping[str, ConfigValue], str | None]],
) -> tuple[FlatMap, dict[str, SourceInfo]]:
    """Merge flat *layers* honouring registration order and recording provenance.

    Why
    ----
    Centralising merge semantics guarantees deterministic precedence: source
    ``N`` is always applied after source ``N-1``.

    Parameters
    ----------
    layers:
        Iterable of ``(source_name, flat_mapping, location)`` tuples ordered
        from lowest to highest precedence.

    Returns
    -------
    tuple[FlatMap, dict[str, SourceInfo]]
        ``(merged_data, provenance)``; provenance is keyed by the case-folded
        configuration key.

    Examples
    --------
    >>> merged, meta = merge_layers([
    ...     ("yaml", {"a:b": "1", "a:c": "2"}, "app.yaml"),
    ...     ("env", {"A:B": "3"}, None),
    ... ])
    >>> merged["a:b"], meta["a:b"]["source"]
    ('3', 'env')
    """

    merged = FlatMap()
    meta: dict[str, SourceInfo] = {}
    for source, data, location in layers:
        _merge_layer(merged, meta, data, source, location)
    return merged, meta


def _merge_layer(
    target: FlatMap,
    meta: dict[str, SourceInfo],
    payload: Mapping[str, ConfigValue],
    source: str,
    location: str | None,
) -> None:
    """Copy every entry of *payload* into *target*, overwriting earlier values."""

    for key, value in payload.items():
        target[key] = value
        meta[normalize(key)] = SourceInfo(source=source, location=location, key=key)
