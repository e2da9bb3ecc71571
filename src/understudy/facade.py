"""Public entry points: ``wrap``, ``stub`` and ``func``.

A double keeps the public shape of what it stands in for and adds:

- ``expect.<member>``: call history assertions (see ``core.recorder``)
- ``setup.<member>``: behaviour overrides (see ``core.behavior``)
- ``called.reset()``: forget the history of every member at once
- ``on``/``once``/``off``/``emit``: a private event channel
"""

import functools
import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from understudy.config import DEFAULT_FUNC_NAME
from understudy.core.behavior import BehaviorOverride
from understudy.core.discovery import (
    DECLARED_MEMBERS_ATTR,
    MemberDiscovery,
    default_discovery,
    list_data_properties,
)
from understudy.core.recorder import CallRecorder, Expectations
from understudy.events import EventChannel
from understudy.models import StubProperty

logger = logging.getLogger(__name__)

# Double attributes that win over members of the same name.
RESERVED_NAMES = ("expect", "setup", "called")
# Double attributes that members or data properties of the same name replace.
EVENT_OPERATIONS = ("on", "once", "off", "emit")


class InterceptedMember:
    """One intercepted callable: its recorder, its overrides and its dispatcher."""

    def __init__(self, name: str, original: Callable[..., Any], channel: EventChannel):
        self.name = name
        self.original = original
        self.recorder = CallRecorder(name)
        self.behavior = BehaviorOverride(name, original, emit=channel.emit)
        self.expectations = Expectations(self.recorder)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.recorder.record(args, kwargs)
        return self.behavior.dispatch(args, kwargs)

    def dispatcher(self) -> Callable[..., Any]:
        """Build a plain function that stands in for the original member."""

        def dispatch(*args: Any, **kwargs: Any) -> Any:
            return self(*args, **kwargs)

        functools.update_wrapper(dispatch, self.original, updated=())
        dispatch.__name__ = self.name
        return dispatch


class Namespace:
    """Read-only attribute access over a fixed set of entries."""

    def __init__(self, entries: Mapping[str, Any]):
        object.__setattr__(self, "_entries", dict(entries))

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["_entries"][name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> Any:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __dir__(self) -> list[str]:
        return list(self._entries)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: namespace is read-only")

    def __repr__(self) -> str:
        return f"Namespace({', '.join(self._entries)})"


class CalledReset:
    """The double-level ``called`` namespace."""

    def __init__(self, recorders: Iterable[CallRecorder]):
        self._recorders = list(recorders)

    def reset(self) -> None:
        """Reset the call history of every member of the double."""
        for recorder in self._recorders:
            recorder.reset()


class Double:
    """A test double standing in for an object.

    Immutable once built: assigning or deleting attributes raises
    ``AttributeError``.
    """

    def __init__(
        self,
        members: Mapping[str, InterceptedMember],
        properties: Mapping[str, Any],
        channel: EventChannel,
        source: str,
    ):
        assign = functools.partial(object.__setattr__, self)
        assign("_members", dict(members))
        assign("_channel", channel)
        assign("_source", source)

        for operation in EVENT_OPERATIONS:
            assign(operation, getattr(channel, operation))
        for name, value in properties.items():
            if name in EVENT_OPERATIONS:
                logger.warning(
                    f"Property {name!r} of {source} hides the double's "
                    f"{name!r} event operation"
                )
            assign(name, value)
        for name, member in members.items():
            if name in RESERVED_NAMES:
                logger.warning(
                    f"Member {name!r} of {source} is shadowed by the double's "
                    f"{name!r} namespace"
                )
                continue
            assign(name, member.dispatcher())

        assign("expect", Namespace({n: m.expectations for n, m in members.items()}))
        assign("setup", Namespace({n: m.behavior for n, m in members.items()}))
        assign("called", CalledReset(m.recorder for m in members.values()))
        assign(DECLARED_MEMBERS_ATTR, tuple(members))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: doubles are immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete {name!r}: doubles are immutable")

    def __repr__(self) -> str:
        return f"<Double of {self._source} members={list(self._members)}>"


def _build_double(
    target: Any,
    names: Iterable[str],
    properties: Mapping[str, Any],
    source: str | None = None,
) -> Double:
    channel = EventChannel()
    members = {}
    for name in names:
        original = target[name] if isinstance(target, Mapping) else getattr(target, name)
        members[name] = InterceptedMember(name, original, channel)
    source = source or type(target).__name__
    logger.debug(f"Intercepted {len(members)} members of {source}")
    return Double(members, properties, channel, source)


def wrap(target: Any, discovery: MemberDiscovery | None = None) -> Double:
    """Wrap every invocable member of ``target`` in a recording, overridable double.

    Args:
        target: Object, class instance, frozen dataclass, mapping of callables,
            or another double
        discovery: Strategy deciding which members to intercept

    Returns:
        An immutable double exposing the target's data properties, its
        intercepted members and the ``expect``/``setup``/``called`` namespaces
    """
    names = (discovery or default_discovery).list_invocable_members(target)
    properties = list_data_properties(target, exclude=[*names, *RESERVED_NAMES])
    return _build_double(target, names, properties)


def _noop(name: str) -> Callable[..., None]:
    def noop(*args: Any, **kwargs: Any) -> None:
        return None

    noop.__name__ = noop.__qualname__ = name
    return noop


def stub(
    members: Iterable[str] | Any,
    properties: Iterable[StubProperty | Mapping[str, Any]] | None = None,
) -> Double:
    """Build a double from nothing but member names.

    Args:
        members: List of member names, or a template object whose invocable
            members are discovered
        properties: Fixed data properties, as ``StubProperty`` models or
            ``{"name": ..., "options": {"value": ..., "enumerable": ...}}`` dicts

    Returns:
        A double whose members all do nothing until set up

    Raises:
        pydantic.ValidationError: If a property description is malformed
    """
    if isinstance(members, (list, tuple, set, frozenset)):
        names = [str(name) for name in members]
    else:
        names = default_discovery.list_invocable_members(members)

    data = {}
    for item in properties or []:
        prop = item if isinstance(item, StubProperty) else StubProperty.model_validate(item)
        if prop.options.enumerable:
            data[prop.name] = prop.options.value

    target = {name: _noop(name) for name in names}
    return _build_double(target, names, data, source="stub")


class FunctionDouble:
    """A callable double for a single function.

    ``expect`` and ``setup`` refer to the function itself, so
    ``double.expect.called.once()`` and ``double.setup.to_return(1)`` work
    without a member name.
    """

    def __init__(self, target: Callable[..., Any], name: str):
        channel = EventChannel()
        member = InterceptedMember(name, target, channel)
        assign = functools.partial(object.__setattr__, self)
        assign("_member", member)
        assign("expect", member.expectations)
        assign("setup", member.behavior)
        for operation in EVENT_OPERATIONS:
            assign(operation, getattr(channel, operation))
        assign("__wrapped__", target)
        assign("__name__", name)
        assign("__doc__", getattr(target, "__doc__", None))

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._member(*args, **kwargs)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: doubles are immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete {name!r}: doubles are immutable")

    def __repr__(self) -> str:
        return f"<FunctionDouble {self.__name__}>"


def func(target: Callable[..., Any] | None = None) -> FunctionDouble:
    """Wrap a single callable (a no-op by default) as a double."""
    if target is None:
        return FunctionDouble(_noop(DEFAULT_FUNC_NAME), DEFAULT_FUNC_NAME)
    name = getattr(target, "__name__", None)
    if not name or name == "<lambda>":
        name = DEFAULT_FUNC_NAME
    return FunctionDouble(target, name)
