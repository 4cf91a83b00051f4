"""Host-facing driver tying the interpreter to display, input and audio collaborators."""

from typing import Optional, Protocol, Sequence

import jax
import numpy as np

from chip8vm.constants import INSTRUCTION_FREQUENCY, TIMER_FREQUENCY
from chip8vm.emulator import StepStatus, run_cycles, step
from chip8vm.faults import ExecutionFault, raise_for_fault
from chip8vm.logging import ExecutionLogger
from chip8vm.state import EmulatorState, create_state, load_program, set_keypad
from chip8vm.timers import TimerClock, sound_active, tick_timers


class Display(Protocol):
    def present(self, frame: np.ndarray) -> None:
        """Receive a (64, 32) boolean framebuffer snapshot indexed [x, y]."""


class Keypad(Protocol):
    def poll(self) -> Sequence[bool]:
        """Return the current state of the 16 logical keys."""


class Audio(Protocol):
    def set_tone(self, active: bool) -> None:
        """Start or stop the buzzer."""


class Machine:
    """A CHIP-8 machine driven one cycle or one timer frame at a time.

    The machine never sleeps: the host calls :meth:`run_frame` 60 times a
    second (or :meth:`step` as often as it likes) and decides pacing itself.
    Collaborators are optional and are only ever called from these methods.
    """

    def __init__(
        self,
        program: bytes,
        display: Optional[Display] = None,
        keypad: Optional[Keypad] = None,
        audio: Optional[Audio] = None,
        instruction_frequency: int = INSTRUCTION_FREQUENCY,
        timer_frequency: int = TIMER_FREQUENCY,
        modern_mode: bool = False,
        rng: Optional[jax.Array] = None,
        logger: Optional[ExecutionLogger] = None,
        trace: bool = False,
    ):
        """Initialize the machine and load the program.

        Args:
            program: Raw ROM bytes, written at 0x200
            display: Receives a framebuffer snapshot after each timer tick
            keypad: Polled for the 16 key states before each frame
            audio: Told whether the sound timer is running after each timer tick
            instruction_frequency: CPU cycles per second
            timer_frequency: Timer ticks per second (60 on real hardware)
            modern_mode: Use the shift-VX and BXNN conventions instead of the classic ones
            rng: JAX random key used by CXNN
            logger: Execution logger; faults are always reported through it when set
            trace: Log every executed instruction at DEBUG level (slow)
        """
        self.program = bytes(program)
        self.display = display
        self.keypad = keypad
        self.audio = audio
        self.modern_mode = modern_mode
        self.rng = rng if rng is not None else jax.random.PRNGKey(0)
        self.logger = logger
        self.trace = trace
        self.clock = TimerClock(instruction_frequency, timer_frequency)
        self.reset()

    def reset(self) -> None:
        """Rebuild the machine from scratch with the same program."""
        state = create_state(self.rng, modern_mode=self.modern_mode)
        self._state = load_program(state, self.program)
        self.clock.reset()
        self._cycles_until_tick = self.clock.cycles_until_tick()
        self.cycles = 0
        self.frames = 0
        self._poll_input()
        if self.logger:
            self.logger.log_rom_loaded("program", len(self.program))

    @property
    def state(self) -> EmulatorState:
        return self._state

    def set_keys(self, keys: Sequence[bool]) -> None:
        """Write keypad state directly, for hosts without a polling collaborator."""
        self._state = set_keypad(self._state, keys)

    def step(self) -> StepStatus:
        """Run one CPU cycle, ticking timers whenever a timer period has elapsed."""
        if self.trace and self.logger and not bool(self._state.waiting_for_key):
            pc = int(self._state.pc)
            if pc + 1 < self._state.memory.shape[0]:
                instruction = (int(self._state.memory[pc]) << 8) | int(self._state.memory[pc + 1])
                self.logger.log_instruction(pc, instruction)
        try:
            self._state, status = step(self._state)
        except ExecutionFault as fault:
            self._report(fault)
            raise
        self.cycles += 1
        self._cycles_until_tick -= 1
        if self._cycles_until_tick <= 0:
            self._end_frame()
            self._cycles_until_tick = self.clock.cycles_until_tick()
        return status

    def run_frame(self) -> StepStatus:
        """Run one timer period worth of cycles, tick timers, present and poll input."""
        if self.trace:
            frames = self.frames
            status = StepStatus.EXECUTED
            while self.frames == frames:
                status = self.step()
            return status

        cycles = self._cycles_until_tick
        self._state = run_cycles(self._state, cycles)
        try:
            raise_for_fault(self._state)
        except ExecutionFault as fault:
            self._report(fault)
            raise
        self.cycles += cycles
        self._end_frame()
        self._cycles_until_tick = self.clock.cycles_until_tick()
        if bool(self._state.waiting_for_key):
            return StepStatus.WAITING_FOR_KEY
        return StepStatus.EXECUTED

    def framebuffer(self) -> np.ndarray:
        """Read-only (64, 32) snapshot of the display."""
        frame = np.array(self._state.display, dtype=np.bool_)
        frame.flags.writeable = False
        return frame

    def _end_frame(self) -> None:
        self._state = tick_timers(self._state)
        self.frames += 1
        if self.trace and self.logger:
            self.logger.log_frame_summary(self.frames, self.cycles, self._state)
        if self.display is not None:
            self.display.present(self.framebuffer())
        if self.audio is not None:
            self.audio.set_tone(sound_active(self._state))
        self._poll_input()

    def _poll_input(self) -> None:
        if self.keypad is not None:
            self._state = set_keypad(self._state, self.keypad.poll())

    def _report(self, fault: ExecutionFault) -> None:
        if self.logger:
            self.logger.log_fault(fault)
