"""Behaviour overrides: the ``setup.<member>`` configuration surface.

Every intercepted member owns one ``BehaviorOverride``. It keeps its rules in
scopes and picks one per call, in this order:

1. the scope registered for the exact arguments of the call (``when(*args)``)
2. the first predicate scope, in registration order, whose predicate accepts
   the arguments (``when(fn)``)
3. the default scope

Each scope holds a standing action plus a stack of one-shot actions created by
``times(n)``/``once()``/``twice()``. One-shots are consumed last in, first out
and, once used up, the scope's standing action applies again. A scope with
neither is skipped.
"""

import inspect
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from understudy.core.matching import argument_key
from understudy.errors import StubbedError
from understudy.utils import timers
from understudy.utils.deferred import Deferred

Action = Callable[[tuple[Any, ...], dict[str, Any]], Any]


class RuleScope:
    """Actions that apply to one class of calls."""

    def __init__(self, standing: Action | None = None):
        self.standing = standing
        self.one_shots: list[Action] = []

    def has_action(self) -> bool:
        return self.standing is not None or bool(self.one_shots)

    def next_action(self) -> Action:
        if self.one_shots:
            return self.one_shots.pop()
        assert self.standing is not None
        return self.standing


async def _warped(coroutine: Coroutine[Any, Any, Any], milliseconds: float) -> Any:
    with timers.warp(milliseconds):
        return await coroutine


class BehaviorOverride:
    """Decides, per invocation, what a member does instead of (or as well as)
    its original body.

    Configuration methods return the override itself, so calls chain:
    ``setup.greet.when("alice").to_return("hi").once()``.
    """

    def __init__(
        self,
        name: str,
        original: Callable[..., Any],
        emit: Callable[..., Any] | None = None,
    ):
        self.name = name
        self.original = original
        self.logger = logging.getLogger(__name__)
        self._emit = emit
        self._default = RuleScope(self._invoke_original)
        self._by_args: dict[str, RuleScope] = {}
        self._predicates: list[tuple[Callable[..., Any], RuleScope]] = []
        self._pending: tuple[str, Any] | None = None
        self._hook: Callable[..., Any] | None = None
        self._last: tuple[RuleScope, Action, Action | None] | None = None

    def _invoke_original(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        return self.original(*args, **kwargs)

    def dispatch(
        self, args: tuple[Any, ...], kwargs: dict[str, Any] | None = None
    ) -> Any:
        """Run whichever action applies to this call and return its result.

        Args:
            args: Positional arguments of the call
            kwargs: Keyword arguments of the call

        Returns:
            Result of the selected action
        """
        kwargs = kwargs or {}
        if self._hook is not None:
            self._hook(*args, **kwargs)

        if self._by_args:
            scope = self._by_args.get(argument_key(args, kwargs))
            if scope is not None and scope.has_action():
                self.logger.debug(f"{self.name}: applying argument rule")
                return scope.next_action()(args, kwargs)

        for predicate, scope in self._predicates:
            if scope.has_action() and predicate(*args, **kwargs):
                self.logger.debug(f"{self.name}: applying predicate rule")
                return scope.next_action()(args, kwargs)

        return self._default.next_action()(args, kwargs)

    def _scope_for_pending(self) -> RuleScope:
        pending, self._pending = self._pending, None
        if pending is None:
            return self._default

        kind, value = pending
        if kind == "args":
            return self._by_args.setdefault(value, RuleScope())

        for predicate, scope in self._predicates:
            if predicate is value:
                return scope
        scope = RuleScope()
        self._predicates.append((value, scope))
        return scope

    def _configure(self, action: Action, description: str) -> "BehaviorOverride":
        scope = self._scope_for_pending()
        self._last = (scope, action, scope.standing)
        scope.standing = action
        self.logger.debug(f"{self.name}: configured {description}")
        return self

    def when(self, *args: Any, **kwargs: Any) -> "BehaviorOverride":
        """Scope the next configuration call to matching invocations.

        A single callable argument is a predicate, called with the invocation's
        arguments. Anything else is the exact argument list to match, compared
        by content.
        """
        if len(args) == 1 and not kwargs and callable(args[0]):
            self._pending = ("predicate", args[0])
        else:
            self._pending = ("args", argument_key(args, kwargs))
        return self

    def to_do_this(self, fn: Callable[..., Any]) -> "BehaviorOverride":
        """Replace the member body with ``fn``."""
        return self._configure(lambda args, kwargs: fn(*args, **kwargs), "body")

    def to_return(self, value: Any) -> "BehaviorOverride":
        return self._configure(lambda args, kwargs: value, "return value")

    def to_throw(self, error: Any = None) -> "BehaviorOverride":
        """Raise instead of running the member.

        Args:
            error: Message for a ``StubbedError``, or an exception instance or
                class to raise as is
        """
        if error is None:
            error = f"{self.name} was configured to throw"

        def throw(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            if isinstance(error, BaseException):
                raise error
            if isinstance(error, type) and issubclass(error, BaseException):
                raise error()
            raise StubbedError(error)

        return self._configure(throw, "throw")

    def to_callback_with(self, *values: Any) -> "BehaviorOverride":
        """Invoke the last callable argument of each call with ``values``.

        ``to_callback_with(a, b)`` and ``to_callback_with([a, b])`` are the
        same. Positional arguments are searched before keyword arguments; when
        no callable is found nothing happens.
        """
        if len(values) == 1 and isinstance(values[0], (list, tuple)):
            values = tuple(values[0])

        def callback(args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
            for candidate in [*reversed(args), *reversed(list(kwargs.values()))]:
                if callable(candidate):
                    candidate(*values)
                    return
            self.logger.debug(f"{self.name}: no callback argument to invoke")

        return self._configure(callback, "callback")

    def to_resolve_with(self, value: Any = None) -> "BehaviorOverride":
        """Return an already-resolved awaitable carrying ``value``."""
        return self._configure(
            lambda args, kwargs: Deferred.resolved(value), "resolution"
        )

    to_resolve = to_resolve_with

    def to_reject_with(self, error: Any = None) -> "BehaviorOverride":
        """Return an already-rejected awaitable that raises ``error`` when awaited."""
        return self._configure(
            lambda args, kwargs: Deferred.rejected(error), "rejection"
        )

    to_reject = to_reject_with

    def to_time_warp(self, milliseconds: float) -> "BehaviorOverride":
        """Run the original body with every delay it schedules shortened.

        Delays requested through ``understudy.timers`` during the call (or
        while awaiting the coroutine it returns) are reduced by
        ``milliseconds``. The warp is local to the calling context.
        """

        def warped(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            with timers.warp(milliseconds):
                result = self.original(*args, **kwargs)
            if inspect.iscoroutine(result):
                return _warped(result, milliseconds)
            return result

        return self._configure(warped, f"time warp of {milliseconds}ms")

    def to_emit(self, event: str, *payload: Any) -> "BehaviorOverride":
        """Emit ``event`` on the double's channel, then run the original body."""

        def emit_then_invoke(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            if self._emit is not None:
                self._emit(event, *payload)
            return self.original(*args, **kwargs)

        return self._configure(emit_then_invoke, f"emit {event!r}")

    def to_intercept(self, fn: Callable[..., Any]) -> "BehaviorOverride":
        """Observe every call before dispatch; ``fn``'s result is discarded."""
        self._hook = fn
        return self

    def times(self, number: int) -> "BehaviorOverride":
        """Limit the most recently configured action to the next ``number`` calls.

        The action it displaced applies again afterwards.
        """
        if self._last is None:
            self.logger.warning(f"{self.name}: times({number}) with nothing configured")
            return self

        scope, action, previous = self._last
        if scope.standing is action:
            scope.standing = previous
        scope.one_shots = [queued for queued in scope.one_shots if queued is not action]
        scope.one_shots.extend([action] * max(number, 0))
        return self

    def once(self) -> "BehaviorOverride":
        return self.times(1)

    def twice(self) -> "BehaviorOverride":
        return self.times(2)

    @property
    def and_(self) -> "BehaviorOverride":
        return self

    @property
    def then(self) -> "BehaviorOverride":
        return self

    @property
    def but(self) -> "BehaviorOverride":
        return self

    def __repr__(self) -> str:
        return (
            f"<BehaviorOverride {self.name} argument_rules={len(self._by_args)} "
            f"predicate_rules={len(self._predicates)}>"
        )
