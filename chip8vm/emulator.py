"""Main CHIP-8 emulator execution engine."""

from enum import Enum

import jax
import jax.lax
import jax.numpy as jnp
from chip8vm.state import EmulatorState, load_program
from chip8vm.decode import Operation, classify, decode
from chip8vm.constants import MEMORY_SIZE
from chip8vm.faults import Fault, NO_FAULT, raise_for_fault
from chip8vm.timers import tick_timers
from chip8vm.instructions.system import execute_clear_screen, execute_return, execute_invalid, with_fault
from chip8vm.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset_modern,
    execute_jump_with_offset_legacy, execute_skip_if_key, execute_skip_if_not_key
)
from chip8vm.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_sub_yx, execute_shift_right, execute_shift_left
)
from chip8vm.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8vm.instructions.display import execute_display
from chip8vm.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer, execute_set_sound_timer,
    execute_add_to_index, execute_font_character, execute_bcd_conversion,
    execute_store_registers, execute_load_registers
)


class StepStatus(Enum):
    """What a call to :func:`step` did."""
    EXECUTED = "executed"
    WAITING_FOR_KEY = "waiting_for_key"


HANDLERS = {
    Operation.CLEAR_SCREEN: execute_clear_screen,
    Operation.RETURN: execute_return,
    Operation.JUMP: execute_jump,
    Operation.CALL: execute_call,
    Operation.SKIP_EQ_IMM: execute_skip_if_equal_immediate,
    Operation.SKIP_NE_IMM: execute_skip_if_not_equal_immediate,
    Operation.SKIP_EQ_REG: execute_skip_if_equal_register,
    Operation.SET_IMM: execute_set,
    Operation.ADD_IMM: execute_add,
    Operation.SET_REG: execute_alu_set,
    Operation.OR: execute_alu_or,
    Operation.AND: execute_alu_and,
    Operation.XOR: execute_alu_xor,
    Operation.ADD_REG: execute_alu_add,
    Operation.SUB_XY: execute_alu_sub_xy,
    Operation.SHIFT_RIGHT: execute_shift_right,
    Operation.SUB_YX: execute_alu_sub_yx,
    Operation.SHIFT_LEFT: execute_shift_left,
    Operation.SKIP_NE_REG: execute_skip_if_not_equal_register,
    Operation.SET_INDEX: execute_set_index,
    Operation.JUMP_OFFSET: execute_jump_with_offset_legacy,
    Operation.RANDOM: execute_random,
    Operation.DRAW: execute_display,
    Operation.SKIP_KEY: execute_skip_if_key,
    Operation.SKIP_NOT_KEY: execute_skip_if_not_key,
    Operation.GET_DELAY: execute_get_delay_timer,
    Operation.WAIT_KEY: execute_wait_for_key,
    Operation.SET_DELAY: execute_set_delay_timer,
    Operation.SET_SOUND: execute_set_sound_timer,
    Operation.ADD_INDEX: execute_add_to_index,
    Operation.FONT_CHARACTER: execute_font_character,
    Operation.BCD: execute_bcd_conversion,
    Operation.STORE_REGISTERS: execute_store_registers,
    Operation.LOAD_REGISTERS: execute_load_registers,
    Operation.INVALID: execute_invalid,
}


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    PC is expected to already point past the instruction (see :func:`fetch`).
    """
    decoded_instruction = decode(instruction)
    handlers = dict(HANDLERS)
    if state.modern_mode:
        handlers[Operation.JUMP_OFFSET] = execute_jump_with_offset_modern

    return jax.lax.switch(
        classify(decoded_instruction.raw),
        [handlers[operation] for operation in Operation],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory and advance PC by 2."""
    pc = jnp.astype(state.pc, jnp.int32)
    out_of_range = pc + 1 >= MEMORY_SIZE
    high = state.memory[jnp.clip(pc, 0, MEMORY_SIZE - 1)]
    low = state.memory[jnp.clip(pc + 1, 0, MEMORY_SIZE - 1)]
    instruction = _pack_u16(high, low)
    state = state.replace(pc=jnp.astype(state.pc + 2, jnp.uint16))
    return with_fault(state, out_of_range, Fault.ADDRESS_OUT_OF_RANGE), instruction


def _halt_on_fault(before: EmulatorState, after: EmulatorState) -> EmulatorState:
    """Roll a faulting instruction back, keeping only the fault code."""
    faulted = after.fault != NO_FAULT
    rolled_back = jax.tree_util.tree_map(lambda new, old: jnp.where(faulted, old, new), after, before)
    return rolled_back.replace(fault=after.fault)


def run_instruction(state: EmulatorState) -> EmulatorState:
    """Fetch and execute one instruction. A fault leaves PC on that instruction."""
    fetched, instruction = fetch(state)
    executed = jax.lax.cond(
        fetched.fault == NO_FAULT,
        execute,
        lambda s, _: s,
        fetched, instruction
    )
    return _halt_on_fault(state, executed)


def poll_key_wait(state: EmulatorState) -> EmulatorState:
    """One cycle of a pending FX0A.

    Ends the wait when a key is down that was not held in the snapshot and
    stores the lowest such key in the target register. Keys released since the
    snapshot are forgotten so pressing them again counts.
    """
    fresh_presses = state.keypad & ~state.key_snapshot
    pressed = jnp.any(fresh_presses)
    key = jnp.astype(jnp.argmax(fresh_presses), jnp.uint8)
    new_V = jnp.where(pressed, state.V.at[state.key_register].set(key), state.V)
    return state.replace(
        V=new_V,
        waiting_for_key=~pressed,
        key_snapshot=state.key_snapshot & state.keypad,
    )


def cycle(state: EmulatorState) -> EmulatorState:
    """Advance the CPU by one cycle. A faulted machine does not move."""
    def _run(state):
        return jax.lax.cond(state.waiting_for_key, poll_key_wait, run_instruction, state)

    return jax.lax.cond(state.fault != NO_FAULT, lambda s: s, _run, state)


_jit_cycle = jax.jit(cycle)


def step(state: EmulatorState) -> tuple[EmulatorState, StepStatus]:
    """Run one cycle and report what happened.

    Raises the matching :class:`chip8vm.faults.ExecutionFault` instead of
    returning a faulted state. While FX0A is pending no opcode runs and the
    status is ``WAITING_FOR_KEY``; call again once the keypad has changed.
    """
    raise_for_fault(state)
    state = _jit_cycle(state)
    raise_for_fault(state)
    if bool(state.waiting_for_key):
        return state, StepStatus.WAITING_FOR_KEY
    return state, StepStatus.EXECUTED


@jax.jit
def run_cycles(state: EmulatorState, n) -> EmulatorState:
    """Run ``n`` cycles. Stops making progress once the machine faults."""
    return jax.lax.fori_loop(0, n, lambda _, s: cycle(s), state)


@jax.jit
def run_frame(state: EmulatorState, n) -> EmulatorState:
    """Run ``n`` CPU cycles followed by one 60 Hz timer tick.

    A machine that faulted during the frame is frozen, timers included.
    """
    state = run_cycles(state, n)
    return jax.lax.cond(state.fault != NO_FAULT, lambda s: s, tick_timers, state)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
