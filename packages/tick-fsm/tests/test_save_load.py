"""Tests for StateMachine save data and loading."""
import json

import pytest

from tick_fsm import State, StateDataError, StateMachine, UnknownStateError


class Patrol(State):
    """Walks waypoints; progress lives in context."""

    inits = 0

    def init(self, owner):
        Patrol.inits += 1
        self.context["waypoint"] = 0
        self.context["laps"] = 0

    def update(self, delta, owner):
        self.context["waypoint"] += 1
        if self.context["waypoint"] == 3:
            self.context["waypoint"] = 0
            self.context["laps"] += 1


class Alert(State):
    def init(self, owner):
        self.context["timer"] = 5.0


STATES = {
    "patrol": {"transitions": {"spotted": "alert"}, "state_class": Patrol},
    "alert": {"next_state": "patrol", "state_class": Alert},
    "dead": None,
}


def _machine():
    machine = StateMachine(owner="guard")
    machine.configure(STATES, "patrol")
    return machine


class TestSaveData:
    """Test cases for get_save_data."""

    def test_layout(self):
        """Save data holds the current id and the handler context."""
        machine = _machine()
        machine.tick(0.1)
        machine.tick(0.1)

        data = machine.get_save_data()

        assert data == {
            "current_state_id": "patrol",
            "current_context": {"waypoint": 1, "laps": 0},
        }

    def test_before_first_tick(self):
        """Before the first tick there is no state and an empty context."""
        assert _machine().get_save_data() == {
            "current_state_id": None,
            "current_context": {},
        }

    def test_manual_state_has_empty_context(self):
        """Manual states save an empty context."""
        machine = _machine()
        machine.tick(0.1)
        machine.request_transition("dead")
        machine.tick(0.1)

        assert machine.get_save_data() == {"current_state_id": "dead", "current_context": {}}

    def test_save_data_is_detached(self):
        """Editing returned save data leaves the handler untouched."""
        machine = _machine()
        machine.tick(0.1)
        data = machine.get_save_data()

        data["current_context"]["waypoint"] = 99

        assert machine.current_handler.context["waypoint"] == 0

    def test_json_serializable(self):
        """Save data with plain context survives a JSON round trip."""
        machine = _machine()
        machine.tick(0.1)
        for _ in range(4):
            machine.tick(0.1)

        restored = json.loads(json.dumps(machine.get_save_data()))

        assert restored["current_context"] == {"waypoint": 1, "laps": 1}


class TestLoadState:
    """Test cases for load_state."""

    def test_round_trip_on_fresh_machine(self):
        """Loading saved data on a new machine reproduces state and context."""
        # Arrange
        original = _machine()
        original.tick(0.1)
        for _ in range(5):
            original.tick(0.1)
        data = original.get_save_data()

        # Act
        fresh = _machine()
        fresh.load_state(data)

        # Assert
        assert fresh.get_current_state() == original.get_current_state()
        assert fresh.current_handler.context == original.current_handler.context
        assert fresh.current_handler is not original.current_handler

    def test_load_marks_machine_initialized(self):
        """After load the next tick does not re-enter the initial state."""
        machine = _machine()
        machine.load_state({"current_state_id": "alert", "current_context": {"timer": 1.5}})
        changes = []
        machine.state_changed.connect(changes.append)

        machine.tick(0.1)

        assert machine.initialized
        assert machine.get_current_state() == "alert"
        assert changes == []

    def test_load_overrides_init_values(self):
        """Loaded context replaces what init wrote."""
        machine = _machine()
        machine.load_state({"current_state_id": "alert", "current_context": {"timer": 1.5}})

        assert machine.current_handler.context == {"timer": 1.5}

    def test_load_jumps_without_replaying(self):
        """Loading skips intermediate states entirely."""
        Patrol.inits = 0
        machine = _machine()
        machine.load_state({"current_state_id": "alert", "current_context": {}})

        assert Patrol.inits == 0
        assert machine.get_previous_state() is None

    def test_load_into_running_machine_exits_current(self):
        """Loading on a running machine records the old state as previous."""
        machine = _machine()
        machine.tick(0.1)
        patrol = machine.current_handler

        machine.load_state({"current_state_id": "alert", "current_context": {"timer": 2.0}})

        assert machine.get_previous_state() == "patrol"
        assert machine.previous_handler is patrol

    def test_load_current_state_keeps_handler(self):
        """Loading the current state only swaps its context."""
        machine = _machine()
        machine.tick(0.1)
        handler = machine.current_handler

        machine.load_state({"current_state_id": "patrol", "current_context": {"waypoint": 2, "laps": 7}})

        assert machine.current_handler is handler
        assert handler.context == {"waypoint": 2, "laps": 7}

    def test_load_discards_pending_transition(self):
        """A queued request is dropped by load."""
        machine = _machine()
        machine.tick(0.1)
        machine.request_transition("alert")

        machine.load_state({"current_state_id": "patrol", "current_context": {}})

        assert machine.pending_transition is None

    def test_load_manual_state_ignores_context(self):
        """Context for a manual state has nowhere to go and is dropped."""
        machine = _machine()
        machine.load_state({"current_state_id": "dead", "current_context": {"x": 1}})

        assert machine.current_handler is None
        assert machine.get_save_data()["current_context"] == {}

    def test_missing_context_defaults_to_empty(self):
        """Absent current_context loads as an empty mapping."""
        machine = _machine()
        machine.load_state({"current_state_id": "alert"})
        assert machine.current_handler.context == {}

    def test_missing_state_id_raises(self):
        """Save data without current_state_id raises StateDataError."""
        with pytest.raises(StateDataError):
            _machine().load_state({"current_context": {}})

    def test_bad_context_type_raises(self):
        """A non-mapping context raises StateDataError."""
        with pytest.raises(StateDataError):
            _machine().load_state({"current_state_id": "patrol", "current_context": [1, 2]})

    def test_unknown_state_raises(self):
        """Loading an unregistered id raises and leaves the machine idle."""
        machine = _machine()
        with pytest.raises(UnknownStateError):
            machine.load_state({"current_state_id": "flying", "current_context": {}})
        assert not machine.initialized
