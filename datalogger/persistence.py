"""
Object Persistence
==================
Human-readable JSON snapshots of configuration and session objects.

Dataclasses are written as dictionaries tagged with their concrete type
(``"__type__": "module.QualName"``) so that polymorphic fields load back as the
class that was saved. Tuples, enums and dictionaries with non-string keys are
tagged as well. A reference back to an object that is already being
serialized is dropped instead of recursing.
"""

from __future__ import annotations

import dataclasses
import importlib
import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Set, Union

import numpy as np

from .exceptions import ParseError


EXTENSION = ".json"

TYPE_KEY = "__type__"
TUPLE_KEY = "__tuple__"
ENUM_KEY = "__enum__"
DICT_KEY = "__dict__"

_TAG_KEYS = (TYPE_KEY, TUPLE_KEY, ENUM_KEY, DICT_KEY)


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def _resolve_type(name: str) -> type:
    module_name, _, qualname = name.rpartition(".")
    # Nested classes: walk back until the module part imports
    parts = []
    while module_name:
        try:
            obj: Any = importlib.import_module(module_name)
            break
        except ImportError:
            module_name, _, head = module_name.rpartition(".")
            parts.insert(0, head)
    else:
        raise ParseError(f"cannot resolve type '{name}'")
    for attr in parts + [qualname]:
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise ParseError(f"cannot resolve type '{name}'") from exc
    if not isinstance(obj, type):
        raise ParseError(f"'{name}' is not a class")
    return obj


def to_jsonable(obj: Any, _active: Set[int] = None) -> Any:
    """
    Recursively convert an object to JSON-compatible data with type tags.

    Args:
        obj: Object to convert (dataclass, container, enum, numpy or primitive)

    Returns:
        JSON-compatible structure
    """
    if _active is None:
        _active = set()

    if isinstance(obj, Enum):
        return {ENUM_KEY: _qualified_name(type(obj)), "value": to_jsonable(obj.value, _active)}
    if isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Path):
        return str(obj)

    if id(obj) in _active:
        return None
    _active.add(id(obj))
    try:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            result: Dict[str, Any] = {TYPE_KEY: _qualified_name(type(obj))}
            for field in dataclasses.fields(obj):
                value = getattr(obj, field.name)
                if id(value) in _active:
                    continue
                result[field.name] = to_jsonable(value, _active)
            return result
        if isinstance(obj, tuple):
            return {TUPLE_KEY: [to_jsonable(item, _active) for item in obj
                                if id(item) not in _active]}
        if isinstance(obj, (list, set, frozenset)):
            return [to_jsonable(item, _active) for item in obj if id(item) not in _active]
        if isinstance(obj, dict):
            items = [(key, value) for key, value in obj.items() if id(value) not in _active]
            if all(isinstance(key, str) and key not in _TAG_KEYS for key, _ in items):
                return {key: to_jsonable(value, _active) for key, value in items}
            # Non-string keys are kept as [key, value] pairs
            return {DICT_KEY: [[to_jsonable(key, _active), to_jsonable(value, _active)]
                               for key, value in items]}
    finally:
        _active.discard(id(obj))

    raise TypeError(f"cannot serialize object of type {type(obj).__name__}")


def from_jsonable(data: Any) -> Any:
    """Inverse of to_jsonable()."""
    if isinstance(data, list):
        return [from_jsonable(item) for item in data]
    if not isinstance(data, dict):
        return data

    if TUPLE_KEY in data:
        return tuple(from_jsonable(item) for item in data[TUPLE_KEY])
    if DICT_KEY in data:
        try:
            return {from_jsonable(key): from_jsonable(value) for key, value in data[DICT_KEY]}
        except (TypeError, ValueError) as exc:
            raise ParseError(f"malformed tagged dict: {exc}") from exc
    if ENUM_KEY in data:
        cls = _resolve_type(data[ENUM_KEY])
        try:
            return cls(from_jsonable(data.get("value")))
        except ValueError as exc:
            raise ParseError(f"invalid value for {data[ENUM_KEY]}: {exc}") from exc
    if TYPE_KEY in data:
        cls = _resolve_type(data[TYPE_KEY])
        if not dataclasses.is_dataclass(cls):
            raise ParseError(f"'{data[TYPE_KEY]}' is not a dataclass")
        kwargs = {key: from_jsonable(value) for key, value in data.items() if key != TYPE_KEY}
        try:
            return cls(**kwargs)
        except (TypeError, ValueError) as exc:
            raise ParseError(f"cannot construct {data[TYPE_KEY]}: {exc}") from exc

    return {key: from_jsonable(value) for key, value in data.items()}


def with_extension(path: Union[str, Path]) -> Path:
    """Append the standard extension when it is missing."""
    path = Path(path)
    if path.suffix != EXTENSION:
        path = path.with_name(path.name + EXTENSION)
    return path


def save_object(path: Union[str, Path], obj: Any) -> Path:
    """
    Save an object to an indented JSON file.

    Args:
        path: Destination; ``.json`` is appended if missing
        obj: Object to save

    Returns:
        Path actually written
    """
    path = with_extension(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(to_jsonable(obj), f, indent=2)
    return path


def load_raw(path: Union[str, Path]) -> Any:
    """
    Load a JSON file without reconstructing tagged types.

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the file is not valid JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as exc:
            raise ParseError(f"malformed JSON in {path}: {exc}") from exc


def load_object(path: Union[str, Path]) -> Any:
    """
    Load an object saved with save_object().

    Raises:
        FileNotFoundError: If the file does not exist
        ParseError: If the file is malformed or names an unknown type
    """
    return from_jsonable(load_raw(path))
