"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8core.state import EmulatorState
from chip8core.decode import DecodedInstruction
from chip8core.constants import SCREEN_WIDTH, SCREEN_HEIGHT, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Only the origin wraps; sprite pixels past the right or bottom edge are
    clipped.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    col_offset = xx - sprite_x
    row_offset = yy - sprite_y
    in_sprite = (col_offset >= 0) & (col_offset < 8) & (row_offset >= 0) & (row_offset < instruction.n)

    addresses = jnp.astype(state.I, jnp.int32) + jnp.clip(row_offset, 0, 15)
    sprite_bytes = state.memory[addresses]
    bits = (sprite_bytes >> (7 - jnp.clip(col_offset, 0, 7))) & 1
    sprite = in_sprite & (bits == 1)

    collision = jnp.any(state.display & sprite)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
