"""Pre-settled awaitable values for simulating asynchronous results."""

from collections.abc import Callable, Generator
from typing import Any

from understudy.errors import StubbedError


class Deferred:
    """An awaitable that is already resolved or rejected.

    Awaiting it returns the value (or raises the error) immediately, without
    handing control back to the event loop, so tests get asynchronous calling
    conventions without any real scheduling.
    """

    def __init__(self, value: Any = None, error: BaseException | None = None):
        self._value = value
        self._error = error

    @classmethod
    def resolved(cls, value: Any = None) -> "Deferred":
        """Create a deferred that resolves with ``value``."""
        return cls(value=value)

    @classmethod
    def rejected(cls, error: Any = None) -> "Deferred":
        """Create a deferred that rejects with ``error``.

        Args:
            error: Exception instance or class to raise when awaited. Any other
                value is carried as the argument of a ``StubbedError``.

        Returns:
            A rejected deferred
        """
        if isinstance(error, type) and issubclass(error, BaseException):
            error = error()
        elif not isinstance(error, BaseException):
            error = StubbedError(error) if error is not None else StubbedError()
        return cls(error=error)

    def done(self) -> bool:
        return True

    def result(self) -> Any:
        """Return the resolved value or raise the rejection error."""
        if self._error is not None:
            raise self._error
        return self._value

    def exception(self) -> BaseException | None:
        return self._error

    def add_done_callback(self, fn: Callable[["Deferred"], Any]) -> None:
        """Invoke ``fn`` with this deferred straight away; it is already settled."""
        fn(self)

    def __await__(self) -> Generator[Any, None, Any]:
        if self._error is not None:
            raise self._error
        return self._value
        yield  # pragma: no cover

    def __repr__(self) -> str:
        if self._error is not None:
            return f"<Deferred rejected {self._error!r}>"
        return f"<Deferred resolved {self._value!r}>"
