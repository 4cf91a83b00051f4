"""CHIP-8 ALU operations (8xxx).

Each ``alu_*`` function maps ``(vx, vy)`` to ``(result, flag)``. The logic
operations have no flag and leave VF untouched. When a flag is produced it is
written after the result, so ``8FYn`` ends with the flag in VF.
"""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import FLAG_REGISTER


def _u8(value) -> jnp.ndarray:
    return jnp.astype(value, jnp.uint8)


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = _u8(result > 255)
    return _u8(result & 0xFF), carry


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    no_borrow = _u8(vx >= vy)
    result = (jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)) & 0xFF
    return _u8(result), no_borrow


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    no_borrow = _u8(vy >= vx)
    result = (jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)) & 0xFF
    return _u8(result), no_borrow


def alu_shift_right(value):
    """Shift right by one, returning the bit shifted out."""
    return _u8(value >> 1), _u8(value & 1)


def alu_shift_left(value):
    """Shift left by one, returning the bit shifted out."""
    return _u8((jnp.astype(value, jnp.int32) << 1) & 0xFF), _u8((value & 0x80) >> 7)


def make_alu_instruction(alu_fn):
    """Wrap an ``(vx, vy) -> (result, flag)`` function as an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        vx = state.V[instruction.x]
        vy = state.V[instruction.y]
        result, flag = alu_fn(vx, vy)
        new_V = state.V.at[instruction.x].set(_u8(result))
        if flag is not None:
            new_V = new_V.at[FLAG_REGISTER].set(flag)
        return state.replace(V=new_V)
    return alu_instruction


def make_shift_instruction(shift_fn):
    """8XY6/8XYE handler factory.

    Legacy (default): VX is loaded from VY and then shifted.
    Modern mode: VX is shifted in place and VY is ignored.
    """
    def shift_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        source = state.V[instruction.x] if state.modern_mode else state.V[instruction.y]
        result, shifted_bit = shift_fn(source)
        new_V = state.V.at[instruction.x].set(result)
        new_V = new_V.at[FLAG_REGISTER].set(shifted_bit)
        return state.replace(V=new_V)
    return shift_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_alu_instruction(alu_add)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx)
execute_shift_right = make_shift_instruction(alu_shift_right)
execute_shift_left = make_shift_instruction(alu_shift_left)
