from typing import Any

import pytest

from understudy.core.behavior import BehaviorOverride, RuleScope
from understudy.errors import StubbedError
from understudy.utils import timers
from understudy.utils.deferred import Deferred


def original_greet(name: str = "") -> str:
    return f"hello {name}"


class TestBehaviorOverride:
    """Test suite for BehaviorOverride dispatch and configuration."""

    @pytest.fixture
    def behavior(self) -> BehaviorOverride:
        """Create an override around a simple greeting function."""
        return BehaviorOverride("greet", original_greet)

    @pytest.mark.unit
    def test_dispatch_defaults_to_original(self, behavior: BehaviorOverride) -> None:
        """Test an unconfigured override runs the original body."""
        assert behavior.dispatch(("alice",)) == "hello alice"
        assert behavior.dispatch((), {"name": "bob"}) == "hello bob"

    @pytest.mark.unit
    def test_configuration_chains(self, behavior: BehaviorOverride) -> None:
        """Test every configuration method returns the override."""
        assert behavior.to_return(1) is behavior
        assert behavior.when("x").to_return(2).once() is behavior
        assert behavior.and_ is behavior
        assert behavior.then is behavior
        assert behavior.but is behavior

    @pytest.mark.unit
    def test_last_configuration_wins(self, behavior: BehaviorOverride) -> None:
        behavior.to_return("first")
        behavior.to_return("second")

        assert behavior.dispatch(("alice",)) == "second"

    @pytest.mark.unit
    def test_argument_rule_matches_by_content(self, behavior: BehaviorOverride) -> None:
        """Test argument rules compare structurally, not by identity."""
        behavior.when({"id": 1, "tags": ["a"]}).to_return("matched")

        assert behavior.dispatch(({"tags": ["a"], "id": 1},)) == "matched"
        assert behavior.dispatch(({"id": 2, "tags": ["a"]},)) == "hello {'id': 2, 'tags': ['a']}"

    @pytest.mark.unit
    def test_argument_rule_with_keywords(self, behavior: BehaviorOverride) -> None:
        behavior.when(name="alice").to_return("keyword match")

        assert behavior.dispatch((), {"name": "alice"}) == "keyword match"
        assert behavior.dispatch(("alice",)) == "hello alice"

    @pytest.mark.unit
    def test_when_applies_to_next_configuration_only(
        self, behavior: BehaviorOverride
    ) -> None:
        behavior.when("alice").to_return("scoped")
        behavior.to_return("default")

        assert behavior.dispatch(("alice",)) == "scoped"
        assert behavior.dispatch(("bob",)) == "default"

    @pytest.mark.unit
    def test_argument_rule_beats_predicate(self, behavior: BehaviorOverride) -> None:
        """Test exact argument rules take precedence over predicates."""
        behavior.when(lambda name: True).to_return("predicate")
        behavior.when("alice").to_return("argument")

        assert behavior.dispatch(("alice",)) == "argument"
        assert behavior.dispatch(("bob",)) == "predicate"

    @pytest.mark.unit
    def test_first_matching_predicate_wins(self, behavior: BehaviorOverride) -> None:
        """Test predicates are tried in registration order."""
        behavior.when(lambda name: name.startswith("a")).to_return("starts with a")
        behavior.when(lambda name: name.endswith("e")).to_return("ends with e")

        assert behavior.dispatch(("alice",)) == "starts with a"
        assert behavior.dispatch(("eve",)) == "ends with e"
        assert behavior.dispatch(("bob",)) == "hello bob"

    @pytest.mark.unit
    def test_same_predicate_reuses_scope(self, behavior: BehaviorOverride) -> None:
        def is_alice(name: str) -> bool:
            return name == "alice"

        behavior.when(is_alice).to_return("first")
        behavior.when(is_alice).to_return("second")

        assert behavior.dispatch(("alice",)) == "second"

    @pytest.mark.unit
    def test_once_reverts_to_previous_action(self, behavior: BehaviorOverride) -> None:
        """Test a one-shot action is used once and the prior action resumes."""
        behavior.to_return("standing")
        behavior.to_return("one shot").once()

        assert behavior.dispatch(("alice",)) == "one shot"
        assert behavior.dispatch(("alice",)) == "standing"
        assert behavior.dispatch(("alice",)) == "standing"

    @pytest.mark.unit
    def test_twice_then_original(self, behavior: BehaviorOverride) -> None:
        behavior.to_return("stubbed").twice()

        results = [behavior.dispatch(("alice",)) for _ in range(3)]

        assert results == ["stubbed", "stubbed", "hello alice"]

    @pytest.mark.unit
    def test_one_shots_are_last_in_first_out(self, behavior: BehaviorOverride) -> None:
        behavior.to_return("first").once()
        behavior.to_return("second").once()

        assert behavior.dispatch(()) == "second"
        assert behavior.dispatch(()) == "first"
        assert behavior.dispatch(()) == "hello "

    @pytest.mark.unit
    def test_times_on_argument_scope(self, behavior: BehaviorOverride) -> None:
        """Test an exhausted argument scope falls through to the default."""
        behavior.when("alice").to_return("limited").times(2)

        assert behavior.dispatch(("alice",)) == "limited"
        assert behavior.dispatch(("alice",)) == "limited"
        assert behavior.dispatch(("alice",)) == "hello alice"

    @pytest.mark.unit
    def test_times_zero(self, behavior: BehaviorOverride) -> None:
        behavior.to_return("never used").times(0)

        assert behavior.dispatch(("alice",)) == "hello alice"

    @pytest.mark.unit
    def test_times_without_configuration_is_ignored(
        self, behavior: BehaviorOverride
    ) -> None:
        behavior.times(3)

        assert behavior.dispatch(("alice",)) == "hello alice"

    @pytest.mark.unit
    def test_to_do_this(self, behavior: BehaviorOverride) -> None:
        behavior.to_do_this(lambda *args, **kwargs: (args, kwargs))

        assert behavior.dispatch((1, 2), {"x": 3}) == ((1, 2), {"x": 3})

    @pytest.mark.unit
    def test_to_throw_default_message(self, behavior: BehaviorOverride) -> None:
        behavior.to_throw()

        with pytest.raises(StubbedError, match="greet was configured to throw"):
            behavior.dispatch(())

    @pytest.mark.unit
    @pytest.mark.parametrize("error", [KeyError("missing"), KeyError])
    def test_to_throw_exception(self, behavior: BehaviorOverride, error: Any) -> None:
        """Test exception instances and classes are raised as they are."""
        behavior.to_throw(error)

        with pytest.raises(KeyError):
            behavior.dispatch(())

    @pytest.mark.unit
    def test_to_callback_with_searches_keywords(
        self, behavior: BehaviorOverride
    ) -> None:
        """Test a callback passed by keyword is found when no positional one is."""
        received = []
        behavior.to_callback_with("done")

        result = behavior.dispatch(("alice",), {"callback": received.append})

        assert result is None
        assert received == ["done"]

    @pytest.mark.unit
    def test_to_callback_with_no_callback(self, behavior: BehaviorOverride) -> None:
        behavior.to_callback_with("done")

        assert behavior.dispatch(("alice",)) is None

    @pytest.mark.unit
    def test_to_resolve_returns_deferred(self, behavior: BehaviorOverride) -> None:
        behavior.to_resolve_with({"id": 1})

        deferred = behavior.dispatch(())

        assert isinstance(deferred, Deferred)
        assert deferred.result() == {"id": 1}

    @pytest.mark.unit
    def test_to_reject_wraps_plain_values(self, behavior: BehaviorOverride) -> None:
        behavior.to_reject("nope")

        deferred = behavior.dispatch(())

        assert isinstance(deferred.exception(), StubbedError)
        with pytest.raises(StubbedError, match="nope"):
            deferred.result()

    @pytest.mark.unit
    def test_to_emit_then_runs_original(self) -> None:
        """Test to_emit publishes the payload and keeps the original result."""
        emitted = []
        behavior = BehaviorOverride(
            "greet", original_greet, emit=lambda *args: emitted.append(args)
        )
        behavior.to_emit("greeted", "payload", 2)

        assert behavior.dispatch(("alice",)) == "hello alice"
        assert emitted == [("greeted", "payload", 2)]

    @pytest.mark.unit
    def test_to_intercept_observes_every_call(self, behavior: BehaviorOverride) -> None:
        """Test the intercept hook sees calls without changing their result."""
        seen = []
        behavior.to_intercept(lambda *args, **kwargs: seen.append((args, kwargs)))
        behavior.when("bob").to_return("stubbed bob")

        assert behavior.dispatch(("alice",)) == "hello alice"
        assert behavior.dispatch(("bob",)) == "stubbed bob"
        assert seen == [(("alice",), {}), (("bob",), {})]

    @pytest.mark.unit
    def test_to_time_warp_applies_during_call(self) -> None:
        """Test the warp is active inside the original body only."""
        observed = []
        behavior = BehaviorOverride("wait", lambda: observed.append(timers.current_warp()))
        behavior.to_time_warp(1500)

        behavior.dispatch(())

        assert observed == [1.5]
        assert timers.current_warp() == 0.0

    async def test_to_time_warp_covers_awaited_coroutine(self) -> None:
        """Test a coroutine returned by the original still runs warped."""

        async def delayed() -> float:
            await timers.async_sleep(30)
            return timers.current_warp()

        behavior = BehaviorOverride("delayed", delayed)
        behavior.to_time_warp(30000)

        assert await behavior.dispatch(()) == 30.0


class TestRuleScope:
    """Test suite for RuleScope."""

    @pytest.mark.unit
    def test_empty_scope_has_no_action(self) -> None:
        assert not RuleScope().has_action()

    @pytest.mark.unit
    def test_one_shots_before_standing(self) -> None:
        standing = lambda args, kwargs: "standing"  # noqa: E731
        one_shot = lambda args, kwargs: "one shot"  # noqa: E731
        scope = RuleScope(standing)
        scope.one_shots.append(one_shot)

        assert scope.next_action() is one_shot
        assert scope.next_action() is standing
        assert scope.has_action()
