"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8vm.constants import STACK_SIZE
from chip8vm.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack. Also returns whether the stack was already full."""
    overflow = stack.pointer >= STACK_SIZE
    # Unmasked: a return target past 0xFFF is reported by the fetch after RET.
    return_address = jnp.astype(address, jnp.uint16)
    # Out-of-bounds scatter updates are dropped, so a full stack keeps its data.
    new_data = stack.data.at[stack.pointer].set(return_address, mode="drop")
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1).astype(jnp.uint8)
    return stack.replace(data=new_data, pointer=new_pointer), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack. Also returns whether the stack was empty."""
    underflow = stack.pointer == 0
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1).astype(jnp.uint8)
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(jnp.where(underflow, popped_address, 0))
    return stack.replace(data=new_data, pointer=new_pointer), popped_address, underflow
