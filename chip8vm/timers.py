"""CHIP-8 delay and sound timers."""

import jax.numpy as jnp
from chip8vm.constants import INSTRUCTION_FREQUENCY, TIMER_FREQUENCY


def _decrement(timer: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(timer > 0, timer - 1, 0).astype(jnp.uint8)


def tick_timers(state):
    """One 60 Hz tick: decrement both timers, never below zero."""
    return state.replace(
        delay_timer=_decrement(state.delay_timer),
        sound_timer=_decrement(state.sound_timer),
    )


def sound_active(state) -> bool:
    """Whether the audio collaborator should be playing its tone."""
    return bool(state.sound_timer > 0)


class TimerClock:
    """Cycle accumulator pairing a CPU rate with the 60 Hz timer rate.

    Each call to :meth:`cycles_until_tick` returns how many CPU cycles to run
    before the next timer tick. When the CPU rate is not a multiple of the
    timer rate the fractional remainder is carried over, so e.g. 700 Hz
    alternates between 11 and 12 cycles per tick and averages 700 per second.
    """

    def __init__(self, instruction_frequency: int = INSTRUCTION_FREQUENCY, timer_frequency: int = TIMER_FREQUENCY):
        if instruction_frequency <= 0 or timer_frequency <= 0:
            raise ValueError("Clock frequencies must be positive")
        self.instruction_frequency = instruction_frequency
        self.timer_frequency = timer_frequency
        self._accumulator = 0
        self.ticks = 0

    def cycles_until_tick(self) -> int:
        self._accumulator += self.instruction_frequency
        cycles, self._accumulator = divmod(self._accumulator, self.timer_frequency)
        self.ticks += 1
        return cycles

    def reset(self):
        self._accumulator = 0
        self.ticks = 0
