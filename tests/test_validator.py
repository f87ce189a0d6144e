"""Tests for deferredfsm.validator and the error types it produces."""

import pytest

from deferredfsm.errors import (
    InvalidTargetsError,
    MachineError,
    MissingStartError,
    ValidationError,
)
from deferredfsm.types import StateDefinition, Transition
from deferredfsm.validator import check_spec, collect_targets, validate


def _spec():
    return {
        "START": StateDefinition(transitions={"go": Transition("MID")}),
        "MID": StateDefinition(transitions={
            "back": Transition("START"),
            "finish": Transition("END"),
        }),
    }


# ── collect_targets ────────────────────────────────────────────────────────────

class TestCollectTargets:
    def test_first_seen_order(self):
        assert collect_targets(_spec()) == ["MID", "START", "END"]

    def test_deduplicated(self):
        spec = {
            "A": StateDefinition(transitions={"x": Transition("B"), "y": Transition("B")}),
            "B": StateDefinition(transitions={"z": Transition("B")}),
        }
        assert collect_targets(spec) == ["B"]

    def test_states_without_transitions(self):
        assert collect_targets({"A": StateDefinition()}) == []


# ── check_spec ─────────────────────────────────────────────────────────────────

class TestCheckSpec:
    def test_valid_spec_returns_none(self):
        assert check_spec(_spec(), "START", "END") is None

    def test_end_need_not_be_declared(self):
        assert "END" not in _spec()
        assert check_spec(_spec(), "START", "END") is None

    def test_missing_start(self):
        error = check_spec(_spec(), "NOPE", "END")
        assert isinstance(error, MissingStartError)
        assert error.start == "NOPE"
        assert "missing start state NOPE" in str(error)

    def test_start_equal_to_end_is_accepted(self):
        assert check_spec({}, "END", "END") is None

    def test_missing_start_takes_precedence(self):
        spec = {"A": StateDefinition(transitions={"x": Transition("GHOST")})}
        assert isinstance(check_spec(spec, "NOPE", "END"), MissingStartError)

    def test_single_invalid_target_singular(self):
        spec = {"START": StateDefinition(transitions={"x": Transition("GHOST")})}
        error = check_spec(spec, "START", "END")
        assert isinstance(error, InvalidTargetsError)
        assert error.targets == ["GHOST"]
        assert "invalid next state: GHOST" in str(error)

    def test_all_invalid_targets_listed_in_order(self):
        spec = {
            "START": StateDefinition(transitions={
                "x": Transition("GHOST"),
                "y": Transition("MID"),
                "z": Transition("GHOST"),
            }),
            "MID": StateDefinition(transitions={"w": Transition("PHANTOM")}),
        }
        error = check_spec(spec, "START", "END")
        assert error.targets == ["GHOST", "PHANTOM"]
        assert "invalid next states: GHOST, PHANTOM" in str(error)

    def test_custom_end_is_valid_target(self):
        spec = {"A": StateDefinition(transitions={"x": Transition("DONE")})}
        assert check_spec(spec, "A", "DONE") is None
        assert isinstance(check_spec(spec, "A", "END"), InvalidTargetsError)

    def test_is_pure(self):
        spec = _spec()
        first = check_spec(spec, "NOPE", "END")
        second = check_spec(spec, "NOPE", "END")
        assert str(first) == str(second)
        assert list(spec) == ["START", "MID"]


# ── validate ───────────────────────────────────────────────────────────────────

class TestValidate:
    def test_valid_spec_does_not_raise(self):
        validate(_spec(), "START", "END")

    def test_raises_validation_error(self):
        with pytest.raises(ValidationError, match="missing start"):
            validate(_spec(), "NOPE", "END")

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate(_spec(), "NOPE", "END")


# ── Errors ─────────────────────────────────────────────────────────────────────

class TestMachineError:
    def test_str_includes_state(self):
        e = MachineError("boom", event="go", state="A")
        assert str(e) == "[state: A] boom"
        assert e.event == "go"
        assert e.state == "A"

    def test_str_without_state(self):
        assert str(MachineError("boom")) == "[state: <None>] boom"
