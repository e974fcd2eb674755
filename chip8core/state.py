"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, field, PyTreeNode

from chip8core.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, STATUS_OK, FIRST_FATAL_STATUS,
)


def _zeros(shape, dtype):
    # Array defaults must be built per instance; dataclasses reject unhashable defaults.
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = _zeros(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _zeros((), jnp.int32)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _zeros((), jnp.uint8)
    sound_timer: jnp.ndarray = _zeros((), jnp.uint8)
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _zeros((), jnp.uint16)
    status: jnp.ndarray = field(default_factory=lambda: jnp.astype(STATUS_OK, jnp.uint8))


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0)) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(
        jnp.array(FONT_DATA, dtype=jnp.uint8)
    ))


def with_status(state: EmulatorState, status: int) -> EmulatorState:
    """Return state with its status code replaced."""
    return state.replace(status=jnp.astype(status, jnp.uint8))


def is_halted(state: EmulatorState) -> jnp.ndarray:
    """True once a fatal status has been recorded."""
    return state.status >= FIRST_FATAL_STATUS
