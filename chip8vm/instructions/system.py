"""CHIP-8 system instructions (0x0xxx) and the invalid-opcode handler."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.faults import Fault, NO_FAULT, fault_code
from chip8vm.stack import pop


def with_fault(state: EmulatorState, condition, fault: Fault) -> EmulatorState:
    """Record ``fault`` when ``condition`` holds, keeping any earlier fault."""
    code = fault_code(condition, fault)
    return state.replace(fault=jnp.where(state.fault != NO_FAULT, state.fault, code))


def execute_invalid(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Bit pattern matches no handler."""
    return with_fault(state, True, Fault.INVALID_OPCODE)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, underflow = pop(state.stack)
    state = state.replace(stack=stack, pc=jnp.astype(address, jnp.uint16))
    return with_fault(state, underflow, Fault.STACK_UNDERFLOW)
