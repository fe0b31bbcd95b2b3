"""Typed settings binding and validation.

Purpose
-------
Turn a :class:`~lib_config_providers.domain.config.Config` section into a typed
settings object (pydantic model, dataclass or any type pydantic understands) and
run the object's own ``validate()`` hook so invalid settings fail at start-up.

Contents
--------
* :class:`Validatable` – structural contract for settings with a ``validate()``.
* :func:`validate_settings` – run ``validate()`` on every given object.
* :func:`bind_settings` – coerce a configuration section into *model*.

System Role
-----------
Kept outside the domain layer so :mod:`lib_config_providers.domain` stays free of
pydantic. :meth:`lib_config_providers.core.ConfigurationRoot.bind` delegates here.
"""

from __future__ import annotations

import dataclasses
import inspect
import types
from collections.abc import Mapping, Sequence
from typing import (
    Annotated,
    Any,
    Callable,
    Protocol,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    runtime_checkable,
)

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .domain.config import Config
from .domain.errors import ArgumentError, SettingsValidationError
from .domain.keys import normalize
from .observability import log_error

T = TypeVar("T")


@runtime_checkable
class Validatable(Protocol):
    """Settings object that checks its own invariants.

    ``validate()`` raises :class:`SettingsValidationError` (or any exception)
    when the settings cannot be used.
    """

    def validate(self) -> None: ...


def validate_settings(*settings: object) -> None:
    """Call ``validate()`` on each of *settings* in order; the first failure propagates.

    Examples
    --------
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Pool:
    ...     size: int
    ...     def validate(self):
    ...         if self.size < 1:
    ...             raise SettingsValidationError.for_property("Pool", "size", "must be positive")
    >>> validate_settings(Pool(4))
    >>> try:
    ...     validate_settings(Pool(0))
    ... except SettingsValidationError as exc:
    ...     str(exc).startswith("Settings were invalid: Pool.size must be positive.")
    True
    """

    for item in settings:
        hook = _validate_hook(item)
        if hook is None:
            raise ArgumentError(f"{type(item).__name__} does not define validate()")
        hook()


def bind_settings(config: Config, model: type[T], section: str | None = None, *, validate: bool = True) -> T:
    """Bind *config* (or its *section*) to *model*.

    Why
    ----
    Flat string values become typed fields with one call, and configuration
    mistakes surface as a single, readable error instead of deep attribute
    failures later on.

    What
    ----
    The section is rebuilt into a nested dictionary. Nodes whose children are
    the indices ``0..n-1`` become lists. Keys are matched case-insensitively
    against model fields (or their aliases). pydantic then coerces the string
    values (``"5432"`` to ``int``, ``"true"`` to ``bool``). Finally the
    object's ``validate()`` runs when *validate* is true.

    Raises
    ------
    SettingsValidationError
        pydantic rejected a value; the message names the class and field path.

    Examples
    --------
    >>> from pydantic import BaseModel
    >>> class Database(BaseModel):
    ...     host: str
    ...     port: int
    ...     replicas: list[str] = []
    >>> cfg = Config({"Db:Host": "db.local", "Db:Port": "5432", "Db:Replicas:0": "r1"}, {})
    >>> bind_settings(cfg, Database, "db")
    Database(host='db.local', port=5432, replicas=['r1'])
    """

    view = config.section(section) if section else config
    tree = _align(_listify(view.as_dict()), model)
    try:
        bound = TypeAdapter(model).validate_python(tree)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"]) or "<root>"
        class_name = getattr(model, "__name__", repr(model))
        log_error("settings_invalid", model=class_name, field=location, errors=exc.error_count())
        raise SettingsValidationError.for_property(class_name, location, first["msg"]) from exc
    if validate:
        hook = _validate_hook(bound)
        if hook is not None:
            hook()
    return bound


def _validate_hook(item: object) -> Callable[[], None] | None:
    """Return the instance's own ``validate`` method, ignoring pydantic's legacy classmethod."""

    attribute = inspect.getattr_static(type(item), "validate", None)
    if attribute is None or attribute is inspect.getattr_static(BaseModel, "validate"):
        return None
    if isinstance(attribute, (classmethod, staticmethod)):
        return None
    return getattr(item, "validate")


def _listify(node: Any) -> Any:
    """Convert dictionaries keyed ``"0".."n-1"`` into lists, recursively.

    >>> _listify({"hosts": {"1": "b", "0": "a"}, "name": "x"})
    {'hosts': ['a', 'b'], 'name': 'x'}
    """

    if not isinstance(node, dict):
        return node
    children = {key: _listify(value) for key, value in node.items()}
    if children and all(key.isdigit() for key in children):
        indices = sorted(int(key) for key in children)
        if indices == list(range(len(indices))):
            return [children[str(index)] for index in indices]
    return children


def _align(value: Any, annotation: Any) -> Any:
    """Rename dictionary keys to the spelling of the fields *annotation* declares."""

    annotation = _unwrap(annotation)
    if isinstance(value, dict):
        fields = _field_types(annotation)
        if fields is not None:
            folded = {normalize(name): name for name in fields}
            aligned: dict[str, Any] = {}
            for key, child in value.items():
                name = folded.get(normalize(key), key)
                aligned[name] = _align(child, fields.get(name, Any))
            return aligned
        args = get_args(annotation)
        if _is_mapping_type(annotation) and len(args) == 2:
            return {key: _align(child, args[1]) for key, child in value.items()}
        return value
    if isinstance(value, list):
        args = get_args(annotation)
        item_type = args[0] if _is_sequence_type(annotation) and args else Any
        return [_align(child, item_type) for child in value]
    return value


def _unwrap(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Annotated:
        return _unwrap(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        candidates = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(candidates) == 1:
            return _unwrap(candidates[0])
    return annotation


def _field_types(annotation: Any) -> dict[str, Any] | None:
    if inspect.isclass(annotation) and issubclass(annotation, BaseModel):
        return {info.alias or name: info.annotation for name, info in annotation.model_fields.items()}
    if inspect.isclass(annotation) and dataclasses.is_dataclass(annotation):
        hints = get_type_hints(annotation, include_extras=True)
        return {field.name: hints.get(field.name, Any) for field in dataclasses.fields(annotation)}
    return None


def _is_mapping_type(annotation: Any) -> bool:
    origin = get_origin(annotation)
    return inspect.isclass(origin) and issubclass(origin, Mapping)


def _is_sequence_type(annotation: Any) -> bool:
    origin = get_origin(annotation)
    if origin in (set, frozenset):
        return True
    return inspect.isclass(origin) and issubclass(origin, Sequence) and not issubclass(origin, str)
