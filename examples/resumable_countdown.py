#!/usr/bin/env python3
"""
Resumable Countdown Demo

Counts down from 10 with a pause between ticks, checkpointing before each
pause. Interrupt it with Ctrl+C at any point and run it again: it resumes
from the last checkpoint instead of starting over. Once the countdown
finishes the checkpoint is removed, so the next run starts fresh.

Run: python examples/resumable_countdown.py
"""

import time

from resumable_state import TERMINAL, StateMachine, save, switch_to
from resumable_state.config.loader import ConfigLoader
from resumable_state.logging.config import configure_from_params

STORAGE_KEY = "countdown-demo"


def build_machine() -> StateMachine:
    machine = StateMachine.from_config(
        STORAGE_KEY,
        loader=ConfigLoader.create(),
        overrides={"machine": {"clear_on_terminate": True}},
    )
    configure_from_params(machine.settings.logging)

    @machine.state("init")
    def init(env):
        env["remaining"] = 10
        switch_to("tick")

    @machine.state("tick")
    def tick(env):
        if env["remaining"] <= 0:
            switch_to("done")
            return
        print(f"⏳ {env['remaining']} left")
        env["remaining"] -= 1
        save()
        # Host suspension: a kill here resumes at "tick" with the saved count
        time.sleep(1)

    @machine.state("done")
    def done(env):
        print("🚀 Lift-off")
        switch_to(TERMINAL)

    return machine


def main() -> None:
    machine = build_machine()
    if machine.restored:
        print(f"Resuming at {machine.resume_state!r} with {machine.environment}")
    try:
        machine.run()
    except KeyboardInterrupt:
        print("\nInterrupted; run again to resume from the last checkpoint.")


if __name__ == "__main__":
    main()
