"""CHIP-8 instruction decoding."""

from enum import IntEnum
from typing import NamedTuple

import jax.numpy as jnp
from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


class Operation(IntEnum):
    """Every operation kind the dispatcher knows. The value is the switch index."""
    CLEAR_SCREEN = 0
    RETURN = 1
    JUMP = 2
    CALL = 3
    SKIP_EQ_IMM = 4
    SKIP_NE_IMM = 5
    SKIP_EQ_REG = 6
    SET_IMM = 7
    ADD_IMM = 8
    SET_REG = 9
    OR = 10
    AND = 11
    XOR = 12
    ADD_REG = 13
    SUB_XY = 14
    SHIFT_RIGHT = 15
    SUB_YX = 16
    SHIFT_LEFT = 17
    SKIP_NE_REG = 18
    SET_INDEX = 19
    JUMP_OFFSET = 20
    RANDOM = 21
    DRAW = 22
    SKIP_KEY = 23
    SKIP_NOT_KEY = 24
    GET_DELAY = 25
    WAIT_KEY = 26
    SET_DELAY = 27
    SET_SOUND = 28
    ADD_INDEX = 29
    FONT_CHARACTER = 30
    BCD = 31
    STORE_REGISTERS = 32
    LOAD_REGISTERS = 33
    INVALID = 34


class OpcodePattern(NamedTuple):
    mask: int
    pattern: int
    operation: Operation


# An instruction matches a row when (instruction & mask) == pattern.
# Rows never overlap; anything matching no row is INVALID.
OPCODE_TABLE = (
    OpcodePattern(0xFFFF, 0x00E0, Operation.CLEAR_SCREEN),
    OpcodePattern(0xFFFF, 0x00EE, Operation.RETURN),
    OpcodePattern(0xF000, 0x1000, Operation.JUMP),
    OpcodePattern(0xF000, 0x2000, Operation.CALL),
    OpcodePattern(0xF000, 0x3000, Operation.SKIP_EQ_IMM),
    OpcodePattern(0xF000, 0x4000, Operation.SKIP_NE_IMM),
    OpcodePattern(0xF00F, 0x5000, Operation.SKIP_EQ_REG),
    OpcodePattern(0xF000, 0x6000, Operation.SET_IMM),
    OpcodePattern(0xF000, 0x7000, Operation.ADD_IMM),
    OpcodePattern(0xF00F, 0x8000, Operation.SET_REG),
    OpcodePattern(0xF00F, 0x8001, Operation.OR),
    OpcodePattern(0xF00F, 0x8002, Operation.AND),
    OpcodePattern(0xF00F, 0x8003, Operation.XOR),
    OpcodePattern(0xF00F, 0x8004, Operation.ADD_REG),
    OpcodePattern(0xF00F, 0x8005, Operation.SUB_XY),
    OpcodePattern(0xF00F, 0x8006, Operation.SHIFT_RIGHT),
    OpcodePattern(0xF00F, 0x8007, Operation.SUB_YX),
    OpcodePattern(0xF00F, 0x800E, Operation.SHIFT_LEFT),
    OpcodePattern(0xF00F, 0x9000, Operation.SKIP_NE_REG),
    OpcodePattern(0xF000, 0xA000, Operation.SET_INDEX),
    OpcodePattern(0xF000, 0xB000, Operation.JUMP_OFFSET),
    OpcodePattern(0xF000, 0xC000, Operation.RANDOM),
    OpcodePattern(0xF000, 0xD000, Operation.DRAW),
    OpcodePattern(0xF0FF, 0xE09E, Operation.SKIP_KEY),
    OpcodePattern(0xF0FF, 0xE0A1, Operation.SKIP_NOT_KEY),
    OpcodePattern(0xF0FF, 0xF007, Operation.GET_DELAY),
    OpcodePattern(0xF0FF, 0xF00A, Operation.WAIT_KEY),
    OpcodePattern(0xF0FF, 0xF015, Operation.SET_DELAY),
    OpcodePattern(0xF0FF, 0xF018, Operation.SET_SOUND),
    OpcodePattern(0xF0FF, 0xF01E, Operation.ADD_INDEX),
    OpcodePattern(0xF0FF, 0xF029, Operation.FONT_CHARACTER),
    OpcodePattern(0xF0FF, 0xF033, Operation.BCD),
    OpcodePattern(0xF0FF, 0xF055, Operation.STORE_REGISTERS),
    OpcodePattern(0xF0FF, 0xF065, Operation.LOAD_REGISTERS),
)

_MASKS = jnp.array([row.mask for row in OPCODE_TABLE], dtype=jnp.int32)
_PATTERNS = jnp.array([row.pattern for row in OPCODE_TABLE], dtype=jnp.int32)
_OPERATIONS = jnp.array([int(row.operation) for row in OPCODE_TABLE], dtype=jnp.int32)


def classify(instruction) -> jnp.ndarray:
    """Map a raw instruction to its ``Operation`` index (traceable)."""
    word = jnp.astype(instruction, jnp.int32)
    matches = (word & _MASKS) == _PATTERNS
    return jnp.where(jnp.any(matches), _OPERATIONS[jnp.argmax(matches)], int(Operation.INVALID))


def lookup_operation(instruction: int) -> Operation:
    """Host-side twin of :func:`classify` for plain Python integers."""
    for row in OPCODE_TABLE:
        if instruction & row.mask == row.pattern:
            return row.operation
    return Operation.INVALID
