"""
Resumable state machine.

A program registers named handlers with add(), then calls run(). Each
handler receives the shared environment dict, may call save() to checkpoint
the environment together with the state that is currently running, and
calls switch_to() to choose the next state. When the process is killed and
started again, constructing a machine against the same storage key restores
the last checkpoint and run() re-enters the saved state's handler from its
start. Anything a handler did before the point of interruption may
therefore happen twice; handlers must tolerate being re-run.
"""

from contextvars import ContextVar
from typing import Any, Callable, Optional

from ..config.defaults import MachineSettings, get_default_config
from ..config.loader import ConfigLoader
from ..errors import (
    ConfigurationError,
    DuplicateStateError,
    InactiveMachineError,
    MalformedRecordError,
    PersistenceError,
    ReentrantRunError,
    UnknownStateError,
)
from ..logging.config import get_state_logger, log_checkpoint, log_state_transition
from ..persistence.codec import Codec, get_codec
from ..persistence.store import FileStateStore, StateStore
from .models import (
    TERMINAL,
    CheckpointRecord,
    Handler,
    MachineStatus,
    StateName,
    describe_state,
)

state_logger = get_state_logger(__name__)

# Machine whose handler is executing on the current context
_active_machine: ContextVar[Optional["StateMachine"]] = ContextVar(
    "active_machine", default=None
)


class StateMachine:
    """Named-handler state machine with explicit, durable checkpoints."""

    def __init__(
        self,
        storage_key: str,
        store: Optional[StateStore] = None,
        codec: Optional[Codec] = None,
        settings: Optional[MachineSettings] = None
    ):
        if not isinstance(storage_key, str) or not storage_key.strip():
            raise ValueError("storage_key must be a non-empty string")

        self.storage_key = storage_key
        self.settings = settings or get_default_config()
        self.logger = state_logger

        if store is None:
            store = FileStateStore(
                directory=self.settings.storage.directory,
                suffix=self.settings.storage.file_suffix,
                atomic_writes=self.settings.storage.atomic_writes
            )
        self.store = store
        self.codec = codec or get_codec(self.settings.storage.codec)

        self.handlers: dict[str, Handler] = {}
        self.environment: dict[str, Any] = {}
        self.entry_state: Optional[str] = None
        self.current_state: Optional[StateName] = None
        self.resume_state: Optional[str] = None
        self.status = MachineStatus.NOT_STARTED

        self._pending_state: Optional[StateName] = None
        self._in_handler = False

        self._restore()

    @classmethod
    def from_config(
        cls,
        storage_key: str,
        loader: Optional[ConfigLoader] = None,
        overrides: Optional[dict[str, Any]] = None,
        store: Optional[StateStore] = None,
        codec: Optional[Codec] = None
    ) -> "StateMachine":
        """Build a machine whose settings come from machines.yaml."""
        loader = loader or ConfigLoader.create()
        settings = loader.load_settings(storage_key, overrides)
        return cls(storage_key, store=store, codec=codec, settings=settings)

    @property
    def restored(self) -> bool:
        """True if construction found a usable checkpoint."""
        return self.resume_state is not None

    def _restore(self) -> None:
        """Load the prior checkpoint; any problem with it means a fresh start."""
        try:
            data = self.store.read(self.storage_key)
        except PersistenceError as e:
            self.logger.warning(
                "Checkpoint unreadable, starting fresh",
                storage_key=self.storage_key,
                error=str(e)
            )
            return

        if data is None:
            self.logger.info("No checkpoint found, starting fresh", storage_key=self.storage_key)
            return

        try:
            record = CheckpointRecord.from_dict(self.codec.decode(data))
        except MalformedRecordError as e:
            self.logger.warning(
                "Discarding malformed checkpoint",
                storage_key=self.storage_key,
                error=str(e),
                raw_data=e.raw_data
            )
            return

        self.environment = record.environment
        self.current_state = record.current_state
        self.resume_state = record.current_state

        self.logger.info(
            "Checkpoint restored",
            storage_key=self.storage_key,
            resume_state=record.current_state,
            variables=len(record.environment)
        )

    def add(self, name: str, handler: Handler) -> Handler:
        """
        Register a handler under a unique state name.

        The first state ever added becomes the entry state.

        Returns:
            The handler, unchanged

        Raises:
            DuplicateStateError: if name is already registered
        """
        if not isinstance(name, str) or not name:
            raise ValueError("State name must be a non-empty string")
        if not callable(handler):
            raise TypeError(f"Handler for state {name!r} is not callable")
        if name in self.handlers:
            raise DuplicateStateError(
                f"State {name!r} is already registered",
                state_name=name
            )

        self.handlers[name] = handler
        if self.entry_state is None:
            self.entry_state = name

        self.logger.debug(
            "State registered",
            storage_key=self.storage_key,
            state=name,
            entry=self.entry_state == name
        )
        return handler

    def state(self, name: str) -> Callable[[Handler], Handler]:
        """Decorator form of add()."""
        def decorator(handler: Handler) -> Handler:
            return self.add(name, handler)
        return decorator

    def switch_to(self, name: StateName) -> None:
        """
        Choose the state that runs after the current handler returns.

        Raises:
            InactiveMachineError: if no handler of this machine is running
            UnknownStateError: if name is neither TERMINAL nor registered
        """
        self._require_handler("switch_to")

        if name is not TERMINAL and (not isinstance(name, str) or name not in self.handlers):
            raise UnknownStateError(
                f"Cannot switch to unregistered state {name!r}",
                state_name=name if isinstance(name, str) else repr(name),
                known_states=self.handlers
            )

        self._pending_state = name

    def save(self) -> None:
        """
        Checkpoint the environment and the currently running state.

        The pending state chosen by switch_to() is not recorded; a restart
        resumes the handler that called save().

        Raises:
            InactiveMachineError: if no handler of this machine is running
            MalformedRecordError: if the environment holds values the codec
                cannot represent
            PersistenceError: if the store rejects the write
        """
        self._require_handler("save")

        state_name = describe_state(self.current_state)
        record = CheckpointRecord(environment=self.environment, current_state=state_name)

        try:
            data = self.codec.encode(record.to_dict())
            self.store.write(self.storage_key, data)
        except (MalformedRecordError, PersistenceError) as e:
            log_checkpoint(
                self.logger,
                storage_key=self.storage_key,
                state=state_name,
                variables=len(self.environment),
                outcome="failed",
                error=str(e)
            )
            raise

        log_checkpoint(
            self.logger,
            storage_key=self.storage_key,
            state=state_name,
            variables=len(self.environment),
            outcome="written"
        )

    def run(self) -> None:
        """
        Execute handlers until one switches to TERMINAL.

        Raises:
            ConfigurationError: if no state was ever added, or the step
                limit from settings is exceeded
            UnknownStateError: if the restored state has no handler
            ReentrantRunError: if called from inside this machine's handlers
        """
        if self.status is MachineStatus.RUNNING:
            raise ReentrantRunError(
                f"Machine {self.storage_key!r} is already running"
            )
        if self.status is MachineStatus.TERMINATED:
            self.logger.debug("Run requested on terminated machine", storage_key=self.storage_key)
            return

        self._enter()
        self.status = MachineStatus.RUNNING

        try:
            steps = self._loop()
        except Exception as e:
            self.logger.error(
                "Run aborted",
                storage_key=self.storage_key,
                state=describe_state(self.current_state),
                error_type=type(e).__name__,
                error=str(e)
            )
            raise
        finally:
            if self.status is MachineStatus.RUNNING:
                self.status = MachineStatus.NOT_STARTED

        self.logger.info("Run finished", storage_key=self.storage_key, steps=steps)

        if self.settings.machine.clear_on_terminate:
            self.clear()

    def _enter(self) -> None:
        """Resolve the state the run starts in."""
        if self.current_state is None:
            if self.entry_state is None:
                raise ConfigurationError(
                    f"Machine {self.storage_key!r} has no states to run",
                    setting="handlers"
                )
            self.current_state = self.entry_state
            log_state_transition(
                self.logger,
                storage_key=self.storage_key,
                from_state=None,
                to_state=self.entry_state,
                trigger="entry"
            )
            return

        if self.current_state is not TERMINAL and self.current_state not in self.handlers:
            raise UnknownStateError(
                f"Checkpoint resumes unregistered state {self.current_state!r}",
                state_name=self.current_state,
                known_states=self.handlers
            )

        log_state_transition(
            self.logger,
            storage_key=self.storage_key,
            from_state=None,
            to_state=describe_state(self.current_state),
            trigger="resume"
        )

    def _loop(self) -> int:
        max_steps = self.settings.machine.max_steps
        steps = 0

        while self.current_state is not TERMINAL:
            if max_steps is not None and steps >= max_steps:
                raise ConfigurationError(
                    f"Machine {self.storage_key!r} exceeded {max_steps} steps",
                    setting="machine.max_steps"
                )
            steps += 1
            self._execute(self.current_state)
            self._advance()

        self.status = MachineStatus.TERMINATED
        return steps

    def _execute(self, name: str) -> None:
        handler = self.handlers[name]
        self._pending_state = None
        self._in_handler = True
        token = _active_machine.set(self)
        try:
            handler(self.environment)
        finally:
            _active_machine.reset(token)
            self._in_handler = False

    def _advance(self) -> None:
        pending = self._pending_state
        self._pending_state = None

        # No switch_to() means the same handler runs again
        if pending is None:
            return

        log_state_transition(
            self.logger,
            storage_key=self.storage_key,
            from_state=describe_state(self.current_state),
            to_state=describe_state(pending),
            trigger="switch_to"
        )
        self.current_state = pending

    def clear(self) -> bool:
        """Delete the persisted checkpoint. Returns True if one existed."""
        removed = self.store.delete(self.storage_key)
        self.logger.info("Checkpoint cleared", storage_key=self.storage_key, removed=removed)
        return removed

    def reset(self) -> None:
        """Forget in-memory progress; storage is left untouched."""
        if self.status is MachineStatus.RUNNING:
            raise ReentrantRunError(
                f"Cannot reset machine {self.storage_key!r} while it is running"
            )
        self.environment = {}
        self.current_state = None
        self.resume_state = None
        self._pending_state = None
        self.status = MachineStatus.NOT_STARTED

    def _require_handler(self, operation: str) -> None:
        if not self._in_handler:
            raise InactiveMachineError(
                f"{operation}() can only be called from a running handler",
                operation=operation
            )

    def __repr__(self) -> str:
        return (
            f"StateMachine(storage_key={self.storage_key!r}, "
            f"current_state={describe_state(self.current_state)!r}, "
            f"status={self.status.value!r})"
        )


def active_machine() -> StateMachine:
    """Return the machine whose handler is running on this context."""
    machine = _active_machine.get()
    if machine is None:
        raise InactiveMachineError(
            "No state machine handler is running",
            operation="active_machine"
        )
    return machine


def switch_to(name: StateName) -> None:
    """switch_to() on the machine whose handler is running."""
    active_machine().switch_to(name)


def save() -> None:
    """save() on the machine whose handler is running."""
    active_machine().save()
