"""Execution faults.

Handlers run inside traced JAX code and cannot raise, so a fault is recorded as
a ``Fault`` code in the emulator state. The host side turns a non-zero code
into one of the exceptions below with :func:`raise_for_fault`.
"""

from enum import IntEnum
from typing import Optional

import jax.numpy as jnp


class Fault(IntEnum):
    """Fault codes stored in ``EmulatorState.fault``."""
    NONE = 0
    INVALID_OPCODE = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3
    ADDRESS_OUT_OF_RANGE = 4


NO_FAULT = int(Fault.NONE)


def fault_code(condition, fault: Fault) -> jnp.ndarray:
    """Return ``fault`` where ``condition`` holds, ``Fault.NONE`` otherwise."""
    return jnp.where(condition, jnp.uint8(int(fault)), jnp.uint8(NO_FAULT)).astype(jnp.uint8)


class ExecutionFault(Exception):
    """Base class for fatal interpreter faults."""

    fault = Fault.NONE

    def __init__(self, pc: int, instruction: Optional[int] = None, message: Optional[str] = None):
        self.pc = pc
        self.instruction = instruction
        if message is None:
            message = self.describe()
        super().__init__(message)

    def describe(self) -> str:
        word = "----" if self.instruction is None else f"{self.instruction:04X}"
        return f"{type(self).__name__} at PC=0x{self.pc:03X} (instruction 0x{word})"


class InvalidOpcode(ExecutionFault):
    """Instruction bit pattern matches no handler."""
    fault = Fault.INVALID_OPCODE


class StackOverflow(ExecutionFault):
    """Subroutine call with a full call stack."""
    fault = Fault.STACK_OVERFLOW


class StackUnderflow(ExecutionFault):
    """Return with an empty call stack."""
    fault = Fault.STACK_UNDERFLOW


class AddressOutOfRange(ExecutionFault):
    """PC or I-relative access outside of memory."""
    fault = Fault.ADDRESS_OUT_OF_RANGE


class RomTooLarge(ValueError):
    """Program does not fit between PROGRAM_START and the end of memory."""


FAULT_EXCEPTIONS = {
    Fault.INVALID_OPCODE: InvalidOpcode,
    Fault.STACK_OVERFLOW: StackOverflow,
    Fault.STACK_UNDERFLOW: StackUnderflow,
    Fault.ADDRESS_OUT_OF_RANGE: AddressOutOfRange,
}


def raise_for_fault(state) -> None:
    """Raise the exception matching ``state.fault``, if any.

    A faulted state still points at the faulting instruction, so the raw word
    is re-read from memory for the report. It is left as ``None`` when the PC
    itself is out of range.
    """
    code = Fault(int(state.fault))
    if code == Fault.NONE:
        return
    pc = int(state.pc)
    instruction = None
    if pc + 1 < state.memory.shape[0]:
        instruction = (int(state.memory[pc]) << 8) | int(state.memory[pc + 1])
    raise FAULT_EXCEPTIONS[code](pc, instruction)
