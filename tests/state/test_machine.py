"""Tests for the resumable state machine."""

import pytest
from unittest.mock import Mock

from resumable_state.errors import (
    ConfigurationError,
    DuplicateStateError,
    InactiveMachineError,
    PersistenceError,
    ReentrantRunError,
    UnknownStateError,
)
from resumable_state.persistence.codec import JsonCodec
from resumable_state.state import machine as machine_module
from resumable_state.state.machine import StateMachine
from resumable_state.state.models import TERMINAL, MachineStatus


def noop(env):
    pass


class TestAdd:
    """Test handler registration."""

    def test_first_added_state_is_entry(self, make_machine):
        """Test that entry_state is the first name ever added."""
        machine = make_machine()

        for name in ["boot", "work", "shutdown"]:
            machine.add(name, noop)

        assert machine.entry_state == "boot"
        assert list(machine.handlers) == ["boot", "work", "shutdown"]

    def test_entry_state_unset_before_add(self, make_machine):
        machine = make_machine()

        assert machine.entry_state is None
        assert machine.current_state is None
        assert machine.status == MachineStatus.NOT_STARTED

    def test_duplicate_name_rejected(self, make_machine):
        """Test that a duplicate add fails and leaves handlers unchanged."""
        machine = make_machine()
        original = Mock()
        machine.add("boot", original)

        with pytest.raises(DuplicateStateError) as exc_info:
            machine.add("boot", Mock())

        assert exc_info.value.state_name == "boot"
        assert machine.handlers == {"boot": original}
        assert machine.entry_state == "boot"

    def test_add_does_not_persist(self, make_machine, memory_store, storage_key):
        machine = make_machine()
        machine.add("boot", noop)

        assert memory_store.read(storage_key) is None

    def test_add_rejects_bad_arguments(self, make_machine):
        machine = make_machine()

        with pytest.raises(ValueError):
            machine.add("", noop)
        with pytest.raises(TypeError):
            machine.add("boot", "not callable")

        assert machine.entry_state is None

    def test_state_decorator(self, make_machine):
        machine = make_machine()

        @machine.state("boot")
        def boot(env):
            env["booted"] = True
            machine.switch_to(TERMINAL)

        assert machine.handlers["boot"] is boot
        machine.run()
        assert machine.environment == {"booted": True}


class TestSwitchTo:
    """Test transitions requested by handlers."""

    def test_next_iteration_runs_target(self, make_machine):
        """Test that switch_to(m) inside n makes m the next handler run."""
        machine = make_machine()
        visited = []

        def first(env):
            visited.append("first")
            machine.switch_to("second")

        def second(env):
            visited.append("second")
            machine.switch_to(TERMINAL)

        machine.add("first", first)
        machine.add("second", second)
        machine.run()

        assert visited == ["first", "second"]
        assert machine.current_state is TERMINAL
        assert machine.status == MachineStatus.TERMINATED

    def test_unknown_state_rejected(self, make_machine):
        """Test that switching to an unregistered name fails and keeps the state."""
        machine = make_machine()
        seen = {}

        def start(env):
            with pytest.raises(UnknownStateError) as exc_info:
                machine.switch_to("nowhere")
            seen["error"] = exc_info.value
            seen["state"] = machine.current_state
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert seen["state"] == "start"
        assert seen["error"].state_name == "nowhere"
        assert seen["error"].known_states == ["start"]

    def test_unknown_state_does_not_replace_pending(self, make_machine):
        machine = make_machine()
        visited = []

        def start(env):
            visited.append("start")
            machine.switch_to("end")
            try:
                machine.switch_to("nowhere")
            except UnknownStateError:
                pass

        def end(env):
            visited.append("end")
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.add("end", end)
        machine.run()

        assert visited == ["start", "end"]

    def test_unknown_state_propagates_from_run(self, make_machine):
        machine = make_machine()
        machine.add("start", lambda env: machine.switch_to("nowhere"))

        with pytest.raises(UnknownStateError):
            machine.run()

        assert machine.current_state == "start"

    def test_last_switch_wins(self, make_machine):
        machine = make_machine()
        visited = []

        def start(env):
            machine.switch_to("a")
            machine.switch_to("b")

        machine.add("start", start)
        machine.add("a", lambda env: (visited.append("a"), machine.switch_to(TERMINAL)))
        machine.add("b", lambda env: (visited.append("b"), machine.switch_to(TERMINAL)))
        machine.run()

        assert visited == ["b"]

    def test_outside_handler_rejected(self, make_machine):
        machine = make_machine()
        machine.add("start", noop)

        with pytest.raises(InactiveMachineError) as exc_info:
            machine.switch_to("start")

        assert exc_info.value.operation == "switch_to"

    def test_terminal_is_not_a_string(self):
        assert not isinstance(TERMINAL, str)
        assert repr(TERMINAL) == "TERMINAL"


class TestSave:
    """Test explicit checkpoints."""

    def test_save_records_active_state_not_pending(self, make_machine, memory_store, storage_key):
        """Test that save() captures the running state even after switch_to()."""
        machine = make_machine()

        def start(env):
            env["count"] = 0
            machine.switch_to("end")
            machine.save()

        machine.add("start", start)
        machine.add("end", lambda env: machine.switch_to(TERMINAL))
        machine.run()

        record = JsonCodec().decode(memory_store.read(storage_key))
        assert record == {"environment": {"count": 0}, "current_state": "start"}

    def test_save_replaces_prior_record(self, make_machine, memory_store, storage_key):
        machine = make_machine()

        def start(env):
            env["step"] = 1
            machine.save()
            machine.switch_to("end")

        def end(env):
            env["step"] = 2
            machine.save()
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.add("end", end)
        machine.run()

        record = JsonCodec().decode(memory_store.read(storage_key))
        assert record == {"environment": {"step": 2}, "current_state": "end"}

    def test_save_twice_is_idempotent(self, make_machine, memory_store, storage_key):
        """Test that two saves without mutation decode identically."""
        machine = make_machine()
        records = []

        def start(env):
            env.update({"a": 1, "b": "x"})
            machine.save()
            records.append(memory_store.read(storage_key))
            machine.save()
            records.append(memory_store.read(storage_key))
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        codec = JsonCodec()
        assert codec.decode(records[0]) == codec.decode(records[1])
        assert records[0] == records[1]

    def test_outside_handler_rejected(self, make_machine, memory_store, storage_key):
        machine = make_machine()

        with pytest.raises(InactiveMachineError) as exc_info:
            machine.save()

        assert exc_info.value.operation == "save"
        assert memory_store.read(storage_key) is None

    def test_write_failure_propagates_to_handler(self, make_machine, memory_store):
        """Test that a failed write reaches the handler and the handler decides."""
        machine = make_machine()
        memory_store.write = Mock(side_effect=PersistenceError("disk full", operation="write"))
        outcome = {}

        def start(env):
            try:
                machine.save()
            except PersistenceError as e:
                outcome["error"] = e
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert outcome["error"].operation == "write"
        assert memory_store.write.call_count == 1

    def test_write_failure_aborts_run_when_unhandled(self, make_machine, memory_store):
        machine = make_machine()
        memory_store.write = Mock(side_effect=PersistenceError("disk full", operation="write"))
        machine.add("start", lambda env: machine.save())

        with pytest.raises(PersistenceError):
            machine.run()

        assert memory_store.write.call_count == 1
        assert machine.status == MachineStatus.NOT_STARTED


class TestRun:
    """Test the run loop."""

    def test_no_handlers_is_configuration_error(self, make_machine):
        machine = make_machine()

        with pytest.raises(ConfigurationError) as exc_info:
            machine.run()

        assert exc_info.value.setting == "handlers"
        assert machine.status == MachineStatus.NOT_STARTED

    def test_handler_receives_environment(self, make_machine):
        machine = make_machine()
        received = []

        def start(env):
            received.append(env)
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert received == [machine.environment]
        assert received[0] is machine.environment

    def test_handler_without_switch_runs_again(self, make_machine):
        machine = make_machine()

        def tick(env):
            env["ticks"] = env.get("ticks", 0) + 1
            if env["ticks"] == 3:
                machine.switch_to(TERMINAL)

        machine.add("tick", tick)
        machine.run()

        assert machine.environment["ticks"] == 3

    def test_handler_error_propagates_unchanged(self, make_machine):
        """Test that handler exceptions leave state and environment as they were."""
        machine = make_machine()

        def start(env):
            env["touched"] = True
            machine.switch_to("end")
            raise RuntimeError("boom")

        machine.add("start", start)
        machine.add("end", lambda env: machine.switch_to(TERMINAL))

        with pytest.raises(RuntimeError, match="boom"):
            machine.run()

        assert machine.current_state == "start"
        assert machine.environment == {"touched": True}
        assert machine.status == MachineStatus.NOT_STARTED

    def test_run_again_after_handler_error(self, make_machine):
        machine = make_machine()
        attempts = []

        def flaky(env):
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("host busy")
            machine.switch_to(TERMINAL)

        machine.add("flaky", flaky)

        with pytest.raises(OSError):
            machine.run()
        machine.run()

        assert len(attempts) == 2
        assert machine.status == MachineStatus.TERMINATED

    def test_terminal_run_does_not_auto_save(self, make_machine, memory_store, storage_key):
        machine = make_machine()
        machine.add("start", lambda env: machine.switch_to(TERMINAL))
        machine.run()

        assert memory_store.read(storage_key) is None

    def test_terminated_is_absorbing(self, make_machine):
        machine = make_machine()
        handler = Mock(side_effect=lambda env: machine.switch_to(TERMINAL))
        machine.add("start", handler)

        machine.run()
        machine.run()

        assert handler.call_count == 1
        assert machine.status == MachineStatus.TERMINATED

    def test_reentrant_run_rejected(self, make_machine):
        machine = make_machine()
        caught = []

        def start(env):
            with pytest.raises(ReentrantRunError):
                machine.run()
            caught.append(True)
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert caught == [True]

    def test_status_running_inside_handler(self, make_machine):
        machine = make_machine()
        statuses = []

        def start(env):
            statuses.append(machine.status)
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert statuses == [MachineStatus.RUNNING]

    def test_max_steps_limit(self, make_machine, settings_factory):
        machine = make_machine(settings=settings_factory(max_steps=5))
        handler = Mock()
        machine.add("spin", handler)

        with pytest.raises(ConfigurationError) as exc_info:
            machine.run()

        assert handler.call_count == 5
        assert exc_info.value.setting == "machine.max_steps"

    def test_clear_on_terminate(self, make_machine, settings_factory, memory_store, storage_key):
        machine = make_machine(settings=settings_factory(clear_on_terminate=True))

        def start(env):
            machine.save()
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert memory_store.read(storage_key) is None

    def test_nested_machines_keep_their_own_context(self, memory_store):
        outer = StateMachine("outer", store=memory_store, codec=JsonCodec())
        inner = StateMachine("inner", store=memory_store, codec=JsonCodec())

        def inner_start(env):
            machine_module.save()
            machine_module.switch_to(TERMINAL)

        def outer_start(env):
            inner.run()
            machine_module.switch_to(TERMINAL)

        inner.add("inner_start", inner_start)
        outer.add("outer_start", outer_start)
        outer.run()

        assert memory_store.exists("inner")
        assert not memory_store.exists("outer")
        assert outer.status == MachineStatus.TERMINATED


class TestModuleHelpers:
    """Test switch_to()/save() acting on the running machine."""

    def test_helpers_act_on_active_machine(self, make_machine, memory_store, storage_key):
        machine = make_machine()

        def start(env):
            assert machine_module.active_machine() is machine
            env["n"] = 1
            machine_module.save()
            machine_module.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

        assert JsonCodec().decode(memory_store.read(storage_key))["environment"] == {"n": 1}

    def test_helpers_outside_handler(self):
        with pytest.raises(InactiveMachineError):
            machine_module.switch_to(TERMINAL)
        with pytest.raises(InactiveMachineError):
            machine_module.save()


class TestClearAndReset:
    """Test supplementary record management."""

    def test_clear_removes_record(self, make_machine, memory_store, storage_key):
        memory_store.write(storage_key, b'{"environment": {}, "current_state": "start"}')
        machine = make_machine()

        assert machine.clear() is True
        assert machine.clear() is False
        assert memory_store.read(storage_key) is None

    def test_reset_restores_fresh_start(self, make_machine, memory_store, storage_key):
        memory_store.write(storage_key, b'{"environment": {"a": 1}, "current_state": "work"}')
        machine = make_machine()
        machine.add("boot", noop)
        machine.add("work", noop)

        machine.reset()

        assert machine.environment == {}
        assert machine.current_state is None
        assert machine.restored is False
        assert memory_store.read(storage_key) is not None

    def test_reset_while_running_rejected(self, make_machine):
        machine = make_machine()

        def start(env):
            with pytest.raises(ReentrantRunError):
                machine.reset()
            machine.switch_to(TERMINAL)

        machine.add("start", start)
        machine.run()

    def test_repr(self, make_machine):
        machine = make_machine()

        assert "test-machine-001" in repr(machine)
        assert "not_started" in repr(machine)

    def test_storage_key_required(self, memory_store):
        with pytest.raises(ValueError):
            StateMachine("", store=memory_store)
