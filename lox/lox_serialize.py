from __future__ import annotations

import json
from typing import Any, Optional
import collections.abc

import yaml

from lox.lox_datatypes import LoxCallable, LoxInstance
from lox.lox_printer import Printer


_printer = Printer()


# --------------------------
# Helpers
# --------------------------

def _snapshot(value: Any, active: set) -> Any:
    if isinstance(value, LoxInstance):
        if id(value) in active:
            return f"<cycle {value}>"
        active.add(id(value))
        try:
            return {
                "class": value.klass.name,
                "fields": {k: _snapshot(v, active) for k, v in value.fields.items()},
            }
        finally:
            active.discard(id(value))
    if isinstance(value, LoxCallable):
        return _printer.pformat(value)
    if isinstance(value, list):
        return [_snapshot(x, active) for x in value]
    if isinstance(value, collections.abc.Mapping):
        return {str(k): _snapshot(v, active) for k, v in value.items()}
    return value


def detect_format(data_hint: Optional[str] = None) -> str:
    """
    Returns 'json' when the text looks like a JSON document, else 'yaml'.
    YAML is a superset of JSON, so it is the safe default.
    """
    s = (data_hint or "").lstrip()
    if s.startswith('{') or s.startswith('['):
        return 'json'
    return 'yaml'


# --------------------------
# Public API
# --------------------------

def snapshot(value: Any) -> Any:
    """
    Convert a runtime value graph into plain builtins.
    - instances become {"class": NAME, "fields": {...}}
    - functions and classes become their printed form
    - an instance reached again while inside itself becomes "<cycle NAME instance>"
    """
    return _snapshot(value, set())


def serialize(value: Any, *, fmt: str = "json", pretty: bool = True) -> str:
    """
    Dump a runtime value as text.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = snapshot(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def deserialize(data: bytes | bytearray | str, *, fmt: Optional[str] = None) -> Any:
    """
    Load a dump produced by `serialize` back into builtins.
    Snapshots are one-way: instances come back as plain dicts.
    """
    text = data.decode('utf-8', errors='replace') if isinstance(data, (bytes, bytearray)) else data
    f = (fmt or detect_format(text)).lower()
    if f == 'json':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Declared JSON but actually YAML-like
            return yaml.safe_load(text)
    if f == 'yaml':
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "snapshot",
    "serialize",
    "deserialize",
    "detect_format",
]
