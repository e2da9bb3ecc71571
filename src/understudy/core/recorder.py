"""Call recording and the ``expect.<member>`` assertion surface."""

import logging
import re
from collections.abc import Mapping
from typing import Any, NamedTuple

from understudy.core.matching import (
    any_contains,
    deep_equal,
    matches_pattern,
    snapshot,
)
from understudy.errors import ExpectationError, InvocationOutOfRange
from understudy.utils.common import humanise


class Call(NamedTuple):
    """Snapshot of the arguments of one invocation."""

    args: tuple[Any, ...]
    kwargs: dict[str, Any]

    @property
    def values(self) -> list[Any]:
        """Positional arguments followed by keyword argument values."""
        return [*self.args, *self.kwargs.values()]


class CallRecorder:
    """Ordered, append-only history of the calls made to one member.

    The boolean ``was_*`` predicates are the single source of truth for every
    assertion; ``CalledAssertions`` only decides whether a result is a failure.
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(__name__)
        self._calls: list[Call] = []
        self._times_called = 0

    def record(
        self, args: tuple[Any, ...], kwargs: Mapping[str, Any] | None = None
    ) -> None:
        """Append a snapshot of the call arguments and advance the counter.

        Args:
            args: Positional arguments as passed by the caller
            kwargs: Keyword arguments as passed by the caller
        """
        call = Call(
            tuple(snapshot(value) for value in args),
            {key: snapshot(value) for key, value in (kwargs or {}).items()},
        )
        self._calls.append(call)
        self._times_called += 1
        self.logger.debug(f"{self.name} call #{self._times_called} recorded")

    @property
    def count(self) -> int:
        return self._times_called

    @property
    def calls(self) -> tuple[Call, ...]:
        return tuple(self._calls)

    def call_at(self, index: int) -> Call:
        """Return the call recorded at ``index``.

        Raises:
            InvocationOutOfRange: If no call was recorded at that position
        """
        if index < 0 or index >= self._times_called:
            raise InvocationOutOfRange(self.name, index, self._times_called)
        return self._calls[index]

    def reset(self) -> None:
        """Forget every recorded call. Override rules are left alone."""
        self._calls = []
        self._times_called = 0

    def was_called_with_args(self, *expected: Any) -> bool:
        """Some call holds, for every expected value, at least one matching value."""
        return any(
            all(any_contains(value, call.values) for value in expected)
            for call in self._calls
        )

    def was_called_with_arg(self, expected: Any) -> bool:
        return any(any_contains(expected, call.values) for call in self._calls)

    def was_called_exactly(self, *expected: Any, **expected_kwargs: Any) -> bool:
        """Some call's arguments are positionally deep-equal to ``expected``."""
        return any(
            deep_equal(list(expected), list(call.args))
            and deep_equal(expected_kwargs, call.kwargs)
            for call in self._calls
        )

    def was_called_matching(self, pattern: "str | re.Pattern[str]") -> bool:
        return any(matches_pattern(pattern, call.values) for call in self._calls)


def _describe(values: tuple[Any, ...]) -> str:
    return ", ".join(str(value) for value in values)


def _describe_pattern(pattern: "str | re.Pattern[str]") -> str:
    return f"/{pattern.pattern if isinstance(pattern, re.Pattern) else pattern}/"


class CalledAssertions:
    """Assertions about how a member was called.

    ``called.not_`` gives the same assertions negated: each passes exactly
    when its positive form would fail.
    """

    def __init__(self, recorder: CallRecorder, negated: bool = False):
        self._recorder = recorder
        self._negated = negated
        self._inverse: CalledAssertions | None = None

    @property
    def not_(self) -> "CalledAssertions":
        if self._inverse is None:
            self._inverse = CalledAssertions(self._recorder, not self._negated)
            self._inverse._inverse = self
        return self._inverse

    def _check(self, holds: bool, description: str, message: str | None) -> None:
        if holds != self._negated:
            return
        verb = "not to be" if self._negated else "to be"
        raise ExpectationError(
            message or f"Expected {self._recorder.name} {verb} called {description}"
        )

    def _count_description(self, expectation: str) -> str:
        return f"{expectation}, but was {self._recorder.count}"

    def times(self, number: int, message: str | None = None) -> None:
        self._check(
            self._recorder.count == number,
            self._count_description(humanise(number)),
            message,
        )

    def never(self, message: str | None = None) -> None:
        self.times(0, message)

    def once(self, message: str | None = None) -> None:
        self.times(1, message)

    def twice(self, message: str | None = None) -> None:
        self.times(2, message)

    def lt(self, number: int, message: str | None = None) -> None:
        self._check(
            self._recorder.count < number,
            self._count_description(f"less than {humanise(number)}"),
            message,
        )

    def lte(self, number: int, message: str | None = None) -> None:
        self._check(
            self._recorder.count <= number,
            self._count_description(f"less than or equal to {humanise(number)}"),
            message,
        )

    def gt(self, number: int, message: str | None = None) -> None:
        self._check(
            self._recorder.count > number,
            self._count_description(f"greater than {humanise(number)}"),
            message,
        )

    def gte(self, number: int, message: str | None = None) -> None:
        self._check(
            self._recorder.count >= number,
            self._count_description(f"greater than or equal to {humanise(number)}"),
            message,
        )

    def with_args(self, *expected: Any, message: str | None = None) -> None:
        """Assert some call received every one of ``expected``, in any position."""
        self._check(
            self._recorder.was_called_with_args(*expected),
            f"with: {_describe(expected)}",
            message,
        )

    def with_arg(self, expected: Any, message: str | None = None) -> None:
        self._check(
            self._recorder.was_called_with_arg(expected),
            f"with arg: {expected}",
            message,
        )

    def match_exactly(
        self, *expected: Any, message: str | None = None, **expected_kwargs: Any
    ) -> None:
        """Assert some call received exactly these arguments, in this order."""
        described = [repr(value) for value in expected]
        described += [f"{key}={value!r}" for key, value in expected_kwargs.items()]
        self._check(
            self._recorder.was_called_exactly(*expected, **expected_kwargs),
            f"with exactly: ({', '.join(described)})",
            message,
        )

    def with_match(
        self, pattern: "str | re.Pattern[str]", message: str | None = None
    ) -> None:
        """Assert some argument, or a value nested inside one, matches ``pattern``."""
        self._check(
            self._recorder.was_called_matching(pattern),
            f"matching: {_describe_pattern(pattern)}",
            message,
        )

    def reset(self) -> None:
        self._recorder.reset()


class Invocation:
    """Accessor for the arguments of a single recorded call."""

    def __init__(self, name: str, index: int, call: Call):
        self.name = name
        self.index = index
        self.call = call

    @property
    def args(self) -> tuple[Any, ...]:
        return self.call.args

    @property
    def kwargs(self) -> dict[str, Any]:
        return self.call.kwargs

    def with_arg(self, expected: Any, message: str | None = None) -> None:
        if not any_contains(expected, self.call.values):
            raise ExpectationError(
                message
                or f"Expected {self.name} invocation {self.index} "
                f"to be called with arg: {expected}"
            )


class Expectations:
    """The ``expect.<member>`` namespace for one intercepted member."""

    def __init__(self, recorder: CallRecorder):
        self.recorder = recorder
        self.called = CalledAssertions(recorder)

    def invocation(self, index: int) -> Invocation:
        """Access the call at ``index``.

        Raises:
            InvocationOutOfRange: If fewer than ``index + 1`` calls were recorded
        """
        return Invocation(self.recorder.name, index, self.recorder.call_at(index))

    def __repr__(self) -> str:
        return f"<Expectations {self.recorder.name} calls={self.recorder.count}>"
