"""CHIP-8 stack operations.

The stack has a fixed capacity so it can live inside a jitted state. Callers
check ``is_empty``/``is_full`` before popping/pushing; the emulator turns a
violation into a fatal status instead of touching the stack.
"""

import jax.numpy as jnp
from chip8core.constants import ADDRESS_MASK, STACK_SIZE
from chip8core.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack."""
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = stack.data.at[stack.pointer].set(masked_address)
    return stack.replace(data=new_data, pointer=stack.pointer + 1)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack."""
    new_pointer = stack.pointer - 1
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(0)
    return stack.replace(data=new_data, pointer=new_pointer), popped_address


def depth(stack: StackState) -> jnp.ndarray:
    """Number of return addresses currently stored."""
    return stack.pointer


def is_empty(stack: StackState) -> jnp.ndarray:
    return stack.pointer <= 0


def is_full(stack: StackState) -> jnp.ndarray:
    return stack.pointer >= STACK_SIZE
