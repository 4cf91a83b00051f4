"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chip8vm.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
    MEMORY_SIZE, MAX_PROGRAM_SIZE, NUM_REGISTERS, NUM_KEYS,
)
from chip8vm.faults import NO_FAULT, RomTooLarge


@dataclass(frozen=True)
class StackState:
    """Call stack of return addresses. ``pointer`` is the number of entries."""
    data: jnp.ndarray
    pointer: jnp.ndarray


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    Only interpreter state lives here. Display, input and audio devices belong
    to the host and are handed to :class:`chip8vm.machine.Machine` instead.
    """
    rng: jax.Array
    memory: jnp.ndarray
    pc: jnp.ndarray
    display: jnp.ndarray
    stack: StackState
    delay_timer: jnp.ndarray
    sound_timer: jnp.ndarray
    keypad: jnp.ndarray
    V: jnp.ndarray
    I: jnp.ndarray
    fault: jnp.ndarray
    waiting_for_key: jnp.ndarray
    key_register: jnp.ndarray
    key_snapshot: jnp.ndarray
    modern_mode: bool = field(pytree_node=False, default=False)


def create_stack() -> StackState:
    return StackState(
        data=jnp.zeros(STACK_SIZE, dtype=jnp.uint16),
        pointer=jnp.zeros((), dtype=jnp.uint8),
    )


def create_state(rng: jax.Array = None, modern_mode: bool = False) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    memory = jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8)
    return EmulatorState(
        rng=rng,
        memory=memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA),
        pc=jnp.asarray(PROGRAM_START, dtype=jnp.uint16),
        display=jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_),
        stack=create_stack(),
        delay_timer=jnp.zeros((), dtype=jnp.uint8),
        sound_timer=jnp.zeros((), dtype=jnp.uint8),
        keypad=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        V=jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8),
        I=jnp.zeros((), dtype=jnp.uint16),
        fault=jnp.asarray(NO_FAULT, dtype=jnp.uint8),
        waiting_for_key=jnp.zeros((), dtype=jnp.bool_),
        key_register=jnp.zeros((), dtype=jnp.uint8),
        key_snapshot=jnp.zeros(NUM_KEYS, dtype=jnp.bool_),
        modern_mode=modern_mode,
    )


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Write program bytes verbatim into memory starting at 0x200."""
    if len(program) > MAX_PROGRAM_SIZE:
        raise RomTooLarge(
            f"ROM is {len(program)} bytes, at most {MAX_PROGRAM_SIZE} fit after 0x{PROGRAM_START:03X}"
        )
    if not program:
        return state
    rom_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(rom_array)
    return state.replace(memory=new_memory)


def set_keypad(state: EmulatorState, keys) -> EmulatorState:
    """Replace the keypad with the 16 booleans supplied by the input collaborator."""
    keypad = jnp.asarray(keys, dtype=jnp.bool_)
    if keypad.shape != (NUM_KEYS,):
        raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keypad.shape}")
    return state.replace(keypad=keypad)
