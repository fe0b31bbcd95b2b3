"""YAML document parser.

Purpose
-------
Decode YAML text with PyYAML and hand the resulting tree to
:func:`~lib_config_providers.adapters.parsers.tree.flatten`.

Key behaviours
--------------
* Uses a :class:`yaml.SafeLoader` subclass; no arbitrary object construction.
* Timestamps are not resolved implicitly, so ``2024-01-01`` stays a string.
* Duplicate keys inside one mapping are rejected instead of silently
  overwritten.
* Empty documents are an :class:`InvalidFormat` like any other non-mapping root.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import IO, Any

import yaml

from ...domain.errors import InvalidFormat
from ...domain.flatmap import FlatMap
from ...observability import log_error
from .tree import flatten

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _ConfigurationLoader(yaml.SafeLoader):
    """SafeLoader variant tailored to configuration documents."""


_ConfigurationLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_unique_mapping(loader: _ConfigurationLoader, node: yaml.MappingNode) -> dict[Any, Any]:
    loader.flatten_mapping(node)
    mapping: dict[Any, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=True)
        if not isinstance(key, Hashable):
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping", node.start_mark, "found unhashable key", key_node.start_mark
            )
        if key in mapping:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping", node.start_mark, f"found duplicate key {key!r}", key_node.start_mark
            )
        mapping[key] = loader.construct_object(value_node, deep=True)
    return mapping


_ConfigurationLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping)


class YamlParser:
    """Parse YAML streams or text into flat configuration data."""

    format_name = "yaml"

    def parse(self, source: str | bytes | IO[Any], prefix: str | None = None) -> FlatMap:
        """Return the flattened content of *source*, keys optionally under *prefix*.

        Raises
        ------
        InvalidFormat
            Malformed YAML, non-mapping root, unsupported scalar, duplicate key.

        Examples
        --------
        >>> data = YamlParser().parse("firstname: test\\nresidential.address:\\n  zipcode: '12345'\\n")
        >>> data["residential.address:ZIPCODE"]
        '12345'
        """

        try:
            document = yaml.load(source, Loader=_ConfigurationLoader)  # noqa: S506 - SafeLoader subclass
        except (yaml.YAMLError, RecursionError) as exc:
            log_error("document_invalid", format=self.format_name, error=str(exc))
            raise InvalidFormat(f"Could not parse the YAML document: {exc}") from exc
        return flatten(document, prefix)
