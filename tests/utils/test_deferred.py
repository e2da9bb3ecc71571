import asyncio

import pytest

from understudy.errors import StubbedError
from understudy.utils.deferred import Deferred


class TestDeferred:
    """Test suite for pre-settled awaitables."""

    async def test_resolved(self) -> None:
        """Test awaiting a resolved deferred returns its value."""
        assert await Deferred.resolved({"id": 1}) == {"id": 1}

    async def test_resolved_without_value(self) -> None:
        assert await Deferred.resolved() is None

    async def test_rejected_with_instance(self) -> None:
        error = ValueError("nope")

        with pytest.raises(ValueError) as exc_info:
            await Deferred.rejected(error)

        assert exc_info.value is error

    async def test_rejected_with_class(self) -> None:
        with pytest.raises(ConnectionError):
            await Deferred.rejected(ConnectionError)

    async def test_rejected_with_plain_value(self) -> None:
        """Test non-exception reasons are carried by a StubbedError."""
        with pytest.raises(StubbedError, match="timeout"):
            await Deferred.rejected("timeout")

    async def test_works_with_gather(self) -> None:
        """Test deferreds compose with ordinary asyncio coroutines."""

        async def settle(deferred: Deferred) -> object:
            return await deferred

        results = await asyncio.gather(
            settle(Deferred.resolved(1)), settle(Deferred.resolved(2))
        )

        assert results == [1, 2]

    @pytest.mark.unit
    def test_future_like_accessors(self) -> None:
        resolved = Deferred.resolved("value")
        rejected = Deferred.rejected(KeyError("k"))

        assert resolved.done() and rejected.done()
        assert resolved.result() == "value"
        assert resolved.exception() is None
        assert isinstance(rejected.exception(), KeyError)
        with pytest.raises(KeyError):
            rejected.result()

    @pytest.mark.unit
    def test_done_callback_runs_immediately(self) -> None:
        seen = []
        deferred = Deferred.resolved(5)

        deferred.add_done_callback(seen.append)

        assert seen == [deferred]

    @pytest.mark.unit
    def test_repr(self) -> None:
        assert repr(Deferred.resolved(1)) == "<Deferred resolved 1>"
        assert repr(Deferred.rejected(KeyError("k"))) == "<Deferred rejected KeyError('k')>"
