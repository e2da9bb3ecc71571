"""Exception types raised by understudy doubles."""


class UnderstudyError(Exception):
    """Base class for every error raised by the library itself."""


class ExpectationError(UnderstudyError, AssertionError):
    """An ``expect.<member>.called`` check did not hold."""


class InvocationOutOfRange(UnderstudyError, IndexError):
    """Requested an invocation index that was never recorded."""

    def __init__(self, member: str, index: int, count: int):
        self.member = member
        self.index = index
        self.count = count
        super().__init__(
            f"invocation out of range: {member} has no invocation {index} "
            f"(recorded {count})"
        )


class StubbedError(UnderstudyError):
    """Raised by a member configured with ``to_throw`` or ``to_reject``."""
