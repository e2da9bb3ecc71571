import pytest
from pydantic import ValidationError

from understudy import Double, PropertyOptions, StubProperty, stub, wrap


class TestStub:
    """Test suite for building doubles from member names."""

    @pytest.mark.unit
    def test_members_do_nothing_by_default(self) -> None:
        """Test unconfigured stub members return None."""
        double = stub(["greet", "chuckle"])

        assert double.greet("alice") is None
        assert double.chuckle() is None
        double.expect.greet.called.once()
        double.expect.chuckle.called.once()

    @pytest.mark.unit
    def test_member_names_are_preserved(self) -> None:
        double = stub(["greet"])

        assert double.greet.__name__ == "greet"
        assert repr(double) == "<Double of stub members=['greet']>"

    @pytest.mark.unit
    def test_template_members_are_not_run(self) -> None:
        """Test a stub built from a template never calls the template."""

        class Template:
            def explode(self) -> None:
                raise AssertionError("template body must not run")

        double = stub(Template())

        assert double.explode() is None
        double.expect.explode.called.once()

    @pytest.mark.unit
    def test_properties_from_dicts(self) -> None:
        double = stub(
            ["greet"],
            [
                {"name": "age", "options": {"value": 25, "enumerable": True}},
                {"name": "height", "options": {"value": "180cm"}},
            ],
        )

        assert double.age == 25
        assert double.height == "180cm"

    @pytest.mark.unit
    def test_properties_from_models(self) -> None:
        double = stub(
            ["greet"],
            [StubProperty(name="age", options=PropertyOptions(value=25))],
        )

        assert double.age == 25

    @pytest.mark.unit
    def test_non_enumerable_properties_are_hidden(self) -> None:
        double = stub(
            ["greet"],
            [{"name": "secret", "options": {"value": 1, "enumerable": False}}],
        )

        assert not hasattr(double, "secret")

    @pytest.mark.unit
    def test_properties_are_read_only(self) -> None:
        double = stub(["greet"], [{"name": "age", "options": {"value": 25}}])

        with pytest.raises(AttributeError):
            double.age = 26
        assert double.age == 25

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "bad_property",
        [
            {"options": {"value": 1}},
            {"name": "", "options": {"value": 1}},
            {"name": "age", "options": {"enumerable": "sometimes"}},
        ],
    )
    def test_malformed_properties_rejected(self, bad_property: dict) -> None:
        """Test property descriptions are validated."""
        with pytest.raises(ValidationError):
            stub(["greet"], [bad_property])

    @pytest.mark.unit
    def test_setup_and_events(self, greeter: Double) -> None:
        received = []
        greeter.setup.greet.to_emit("greeted", "payload")
        greeter.on("greeted", received.append)

        greeter.greet()

        assert received == ["payload"]

    @pytest.mark.unit
    def test_rewrap_keeps_configured_behaviour(self) -> None:
        """Test a stub configured to throw can be overridden once wrapped again."""
        double = stub(["greet"])
        double.setup.greet.to_throw("BANG")
        rewrapped = wrap(double)
        rewrapped.setup.greet.to_do_this(lambda *args: "hello")

        assert rewrapped.greet() == "hello"
