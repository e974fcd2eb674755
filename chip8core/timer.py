"""CHIP-8 delay and sound timers."""

import jax.numpy as jnp
from chip8core.state import EmulatorState


def tick(timer: jnp.ndarray) -> jnp.ndarray:
    """Decrement a timer by one, stopping at zero."""
    return jnp.where(timer > 0, timer - 1, timer).astype(jnp.uint8)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Tick both timers once."""
    return state.replace(
        delay_timer=tick(state.delay_timer),
        sound_timer=tick(state.sound_timer),
    )


def sound_active(state: EmulatorState) -> jnp.ndarray:
    """True while the sound timer is nonzero."""
    return state.sound_timer > 0
