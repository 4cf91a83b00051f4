"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FONT_START, FONT_GLYPH_SIZE, MEMORY_SIZE, ADDRESS_MASK, FLAG_REGISTER, NUM_REGISTERS
from chip8vm.faults import Fault
from chip8vm.instructions.system import with_fault


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register.

    I stays within 12 bits. VF is 1 when the sum ran past 0xFFF and 0 otherwise.
    """
    total = jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)
    overflow_flag = jnp.astype(total > ADDRESS_MASK, jnp.uint8)
    return state.replace(
        I=jnp.astype(total & ADDRESS_MASK, jnp.uint16),
        V=state.V.at[FLAG_REGISTER].set(overflow_flag)
    )


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Only marks the machine as waiting. The keys held right now are remembered
    so that only a fresh press ends the wait (see ``emulator.poll_key_wait``).
    """
    return state.replace(
        waiting_for_key=jnp.ones((), dtype=jnp.bool_),
        key_register=jnp.astype(instruction.x, jnp.uint8),
        key_snapshot=state.keypad,
    )


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for the low nibble of VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=jnp.astype(FONT_START + digit * FONT_GLYPH_SIZE, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    state = state.replace(memory=new_memory)
    return with_fault(state, indices[-1] >= MEMORY_SIZE, Fault.ADDRESS_OUT_OF_RANGE)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I. I is not changed."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    current_memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")
    state = state.replace(memory=new_memory)
    last_address = jnp.astype(state.I, jnp.int32) + instruction.x
    return with_fault(state, last_address >= MEMORY_SIZE, Fault.ADDRESS_OUT_OF_RANGE)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I. I is not changed."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    state = state.replace(V=jnp.where(register_mask, memory_values, state.V))
    last_address = jnp.astype(state.I, jnp.int32) + instruction.x
    return with_fault(state, last_address >= MEMORY_SIZE, Fault.ADDRESS_OUT_OF_RANGE)
