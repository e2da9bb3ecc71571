"""Member discovery: which members of a target can be intercepted."""

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

# Attribute a target may define to declare its own invocable members.
DECLARED_MEMBERS_ATTR = "__invocable_members__"


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _static_value(target: Any, name: str) -> Any:
    """Read an attribute without triggering properties on the target's class."""
    try:
        value = inspect.getattr_static(target, name)
    except AttributeError:
        return None
    if isinstance(value, property):
        return None
    return getattr(target, name)


class MemberDiscovery(ABC):
    """Abstract base for member discovery strategies."""

    @abstractmethod
    def list_invocable_members(self, target: Any) -> list[str]:
        """Return the ordered, de-duplicated names of the target's callables."""
        pass


class ReflectionDiscovery(MemberDiscovery):
    """Discover members by reflection.

    Mappings contribute the keys whose values are callable, in insertion order.
    Other objects contribute every public attribute (including those inherited
    through the class hierarchy) whose value is callable. Objects that set
    ``__invocable_members__`` are taken at their word.
    """

    def list_invocable_members(self, target: Any) -> list[str]:
        declared = getattr(target, DECLARED_MEMBERS_ATTR, None)
        if declared is not None:
            return list(dict.fromkeys(declared))

        if isinstance(target, Mapping):
            return [
                str(key)
                for key, value in target.items()
                if isinstance(key, str) and _is_public(key) and callable(value)
            ]

        names = []
        for name in _ordered_names(target):
            if _is_public(name) and callable(_static_value(target, name)):
                names.append(name)
        return names


class DeclaredMembers(MemberDiscovery):
    """Use an explicit list of member names, whatever the target exposes."""

    def __init__(self, names: Iterable[str]):
        self.names = list(dict.fromkeys(names))

    def list_invocable_members(self, target: Any) -> list[str]:
        return list(self.names)


def _ordered_names(target: Any) -> list[str]:
    """Attribute names with instance attributes first, then class definition order.

    ``dir()`` sorts alphabetically; walking ``__dict__`` and the MRO keeps
    the order members were declared in.
    """
    seen: dict[str, None] = {}
    instance_dict = getattr(target, "__dict__", None)
    if isinstance(instance_dict, Mapping):
        seen.update(dict.fromkeys(instance_dict))
    for klass in type(target).__mro__:
        if klass is object:
            continue
        seen.update(dict.fromkeys(vars(klass)))
    for name in dir(target):
        seen.setdefault(name, None)
    return list(seen)


def list_data_properties(
    target: Any, exclude: Iterable[str] = ()
) -> dict[str, Any]:
    """Collect the public, non-callable properties of a target.

    Args:
        target: Object or mapping being wrapped
        exclude: Names never to collect (members, reserved double attributes)

    Returns:
        Mapping of property name to its current value
    """
    excluded = set(exclude)
    if isinstance(target, Mapping):
        return {
            key: value
            for key, value in target.items()
            if isinstance(key, str)
            and _is_public(key)
            and key not in excluded
            and not callable(value)
        }

    properties = {}
    for name in _ordered_names(target):
        if not _is_public(name) or name in excluded:
            continue
        try:
            value = getattr(target, name)
        except AttributeError:
            continue
        except Exception as e:
            logger.warning(
                f"Skipping property {name!r} of {type(target).__name__}: {e}"
            )
            continue
        if not callable(value):
            properties[name] = value
    return properties


default_discovery = ReflectionDiscovery()
