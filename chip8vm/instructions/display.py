"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8vm.state import EmulatorState
from chip8vm.decode import DecodedInstruction
from chip8vm.constants import SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, FLAG_REGISTER
from chip8vm.faults import Fault
from chip8vm.instructions.system import with_fault

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, address, origin_x, origin_y, height) -> jnp.ndarray:
    """Boolean (width, height) mask of the pixels a sprite covers.

    The origin is already wrapped onto the screen. Rows and columns running off
    the right or bottom edge are clipped, not wrapped.
    """
    origin_x = jnp.astype(origin_x, jnp.int32)
    origin_y = jnp.astype(origin_y, jnp.int32)
    in_sprite = (xx >= origin_x) & (xx < origin_x + 8) & (yy >= origin_y) & (yy < origin_y + height)

    row_offset = yy - origin_y
    col_offset = jnp.clip(xx - origin_x, 0, 7)
    sprite_rows = memory[jnp.clip(jnp.astype(address, jnp.int32) + row_offset, 0, MEMORY_SIZE - 1)]
    bits = (jnp.astype(sprite_rows, jnp.int32) >> (7 - col_offset)) & 1
    return (bits == 1) & in_sprite


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Pixels are XORed onto the screen; VF is 1 if any lit pixel was switched off.
    """
    sprite_x = state.V[instruction.x] % SCREEN_WIDTH
    sprite_y = state.V[instruction.y] % SCREEN_HEIGHT
    sprite = sprite_mask(state.memory, state.I, sprite_x, sprite_y, instruction.n)

    collision = jnp.any(state.display & sprite)
    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
    out_of_range = jnp.astype(state.I, jnp.int32) + instruction.n > MEMORY_SIZE
    return with_fault(state, out_of_range, Fault.ADDRESS_OUT_OF_RANGE)
