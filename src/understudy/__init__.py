"""Test doubles that record calls and let tests override behaviour.

Usage:
    from understudy import wrap, stub, func

    person = wrap(Person("bob"))
    person.setup.greet.when("alice").to_return("hi alice")
    person.greet("alice")
    person.expect.greet.called.once()
    person.expect.greet.called.with_args("alice")

    store = stub(["save", "load"])
    store.setup.load.to_resolve_with({"id": 1})

    callback = func()
    callback.setup.to_callback_with(None, "done")
"""

from understudy.core.discovery import (
    DeclaredMembers,
    MemberDiscovery,
    ReflectionDiscovery,
)
from understudy.errors import (
    ExpectationError,
    InvocationOutOfRange,
    StubbedError,
    UnderstudyError,
)
from understudy.events import EventChannel
from understudy.facade import Double, FunctionDouble, func, stub, wrap
from understudy.models import PropertyOptions, StubProperty
from understudy.utils import timers
from understudy.utils.deferred import Deferred

__version__ = "1.0.0"
__all__ = [
    # Doubles
    "wrap",
    "stub",
    "func",
    "Double",
    "FunctionDouble",
    # Discovery
    "MemberDiscovery",
    "ReflectionDiscovery",
    "DeclaredMembers",
    # Supporting types
    "Deferred",
    "EventChannel",
    "StubProperty",
    "PropertyOptions",
    "timers",
    # Errors
    "UnderstudyError",
    "ExpectationError",
    "InvocationOutOfRange",
    "StubbedError",
]
