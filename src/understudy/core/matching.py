"""Structural matching of recorded call arguments.

Values fall into one of a few shapes and each shape has its own notion of
equality and containment:

- primitives (``None``, ``bool``, numbers, ``str``, ``bytes``) compare with
  ``==``, except that ``bool`` never equals a number
- sequences (``list``/``tuple``) compare element by element
- records (mappings, dataclasses, plain objects with ``__dict__``) compare
  field by field, ignoring insertion order
- exceptions compare by type and ``args``
- callables compare by identity (or ``==``)
- anything else is opaque and falls back to ``==``
"""

import copy
import json
import logging
import re
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from understudy.config import SNAPSHOT_ARGS
from understudy.utils.common import make_hash

logger = logging.getLogger(__name__)

PRIMITIVE = "primitive"
SEQUENCE = "sequence"
RECORD = "record"
CALLABLE = "callable"
EXCEPTION = "exception"
OPAQUE = "opaque"

_PRIMITIVE_TYPES = (type(None), bool, int, float, complex, str, bytes)


def kind_of(value: Any) -> str:
    """Classify a value into one of the matcher's shapes."""
    if isinstance(value, _PRIMITIVE_TYPES):
        return PRIMITIVE
    if isinstance(value, (list, tuple)):
        return SEQUENCE
    if isinstance(value, BaseException):
        return EXCEPTION
    if isinstance(value, Mapping):
        return RECORD
    if is_dataclass(value) and not isinstance(value, type):
        return RECORD
    if callable(value):
        return CALLABLE
    if hasattr(value, "__dict__") and not isinstance(value, type):
        return RECORD
    return OPAQUE


def record_fields(value: Any) -> dict[str, Any]:
    """Return the fields of a record-shaped value as a plain dict."""
    if isinstance(value, Mapping):
        return dict(value)
    if is_dataclass(value):
        return {f.name: getattr(value, f.name) for f in fields(value)}
    return dict(vars(value))


def _same_record_type(expected: Any, actual: Any) -> bool:
    if isinstance(expected, Mapping):
        return isinstance(actual, Mapping)
    return type(expected) is type(actual)


def _has_own_eq(value: Any) -> bool:
    if isinstance(value, Mapping) or is_dataclass(value):
        return False
    return type(value).__eq__ is not object.__eq__


def deep_equal(expected: Any, actual: Any) -> bool:
    """Structural equality between an expected and a recorded value."""
    kind = kind_of(expected)
    if kind != kind_of(actual):
        return False

    if kind == PRIMITIVE:
        if isinstance(expected, bool) or isinstance(actual, bool):
            return type(expected) is type(actual) and expected == actual
        return bool(expected == actual)

    if kind == SEQUENCE:
        return len(expected) == len(actual) and all(
            deep_equal(e, a) for e, a in zip(expected, actual)
        )

    if kind == RECORD:
        if not _same_record_type(expected, actual):
            return False
        if _has_own_eq(expected):
            return bool(expected == actual)
        expected_fields = record_fields(expected)
        actual_fields = record_fields(actual)
        if expected_fields.keys() != actual_fields.keys():
            return False
        return all(
            deep_equal(value, actual_fields[key])
            for key, value in expected_fields.items()
        )

    if kind == EXCEPTION:
        return type(expected) is type(actual) and deep_equal(
            list(expected.args), list(actual.args)
        )

    if kind == CALLABLE:
        return expected is actual or bool(expected == actual)

    try:
        return bool(expected == actual)
    except Exception:
        return expected is actual


def contains(expected: Any, actual: Any) -> bool:
    """Whether ``actual`` satisfies ``expected`` as a single argument match.

    Records match partially: every field named by the expected value must be
    present and matching in the actual value, extra actual fields are ignored.
    An expected mapping can describe the fields of any record, including a
    plain object.
    Sequences and everything else must be structurally equal.
    """
    if kind_of(expected) == RECORD and kind_of(actual) == RECORD:
        if not isinstance(expected, Mapping) and type(expected) is not type(actual):
            return False
        actual_fields = record_fields(actual)
        return all(
            key in actual_fields and contains(value, actual_fields[key])
            for key, value in record_fields(expected).items()
        )
    return deep_equal(expected, actual)


def any_contains(expected: Any, values: list[Any]) -> bool:
    return any(contains(expected, value) for value in values)


def _leaves(value: Any, seen: set[int]) -> list[Any]:
    kind = kind_of(value)
    if kind in (SEQUENCE, RECORD):
        if id(value) in seen:
            return []
        seen.add(id(value))
        children = value if kind == SEQUENCE else record_fields(value).values()
        leaves: list[Any] = []
        for child in children:
            leaves.extend(_leaves(child, seen))
        return leaves
    return [value]


def matches_pattern(pattern: "str | re.Pattern[str]", value: Any) -> bool:
    """Search every leaf of ``value`` (recursively) for ``pattern``."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return any(regex.search(str(leaf)) for leaf in _leaves(value, set()))


def snapshot(value: Any) -> Any:
    """Take an independent copy of a value as it is at call time.

    Callables, including those nested inside containers, are kept by
    reference so that identity checks against them still hold. Values that
    refuse to be copied (locks, sockets, generators and the like) are kept by
    reference too.
    """
    if not SNAPSHOT_ARGS or kind_of(value) == CALLABLE:
        return value
    try:
        memo: dict[int, Any] = {
            id(leaf): leaf
            for leaf in _leaves(value, set())
            if kind_of(leaf) == CALLABLE
        }
        return copy.deepcopy(value, memo)
    except Exception as e:
        logger.debug(f"Recording {type(value).__name__} by reference: {e}")
        return value


def _canonical(value: Any, seen: set[int]) -> Any:
    kind = kind_of(value)
    if kind == PRIMITIVE:
        if isinstance(value, (complex, bytes)):
            return {"__repr__": repr(value)}
        return value
    if id(value) in seen:
        return {"__cycle__": type(value).__qualname__}
    seen = seen | {id(value)}
    if kind == SEQUENCE:
        return [_canonical(item, seen) for item in value]
    if kind == RECORD:
        canon = {str(k): _canonical(v, seen) for k, v in record_fields(value).items()}
        if not isinstance(value, Mapping):
            canon = {"__type__": type(value).__qualname__, "fields": canon}
        return canon
    if kind == EXCEPTION:
        return {
            "__error__": type(value).__qualname__,
            "args": _canonical(list(value.args), seen),
        }
    if kind == CALLABLE:
        name = getattr(value, "__qualname__", None) or type(value).__qualname__
        return {"__callable__": f"{getattr(value, '__module__', '')}.{name}"}
    return {"__repr__": repr(value)}


def argument_key(args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None) -> str:
    """Generate a stable, content-based key for an argument list.

    Structurally identical argument lists produce the same key regardless of
    object identity.
    """
    key_data = {
        "args": _canonical(list(args), set()),
        "kwargs": _canonical(dict(kwargs or {}), set()),
    }
    key_string = json.dumps(key_data, sort_keys=True, default=repr)
    return make_hash(key_string)
