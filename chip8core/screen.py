"""CHIP-8 monochrome framebuffer.

The display is a ``bool[64, 32]`` array indexed ``[x, y]``. It never wraps
coordinates: writes outside the grid are ignored.
"""

import jax.numpy as jnp
import numpy as np

from chip8core.constants import SCREEN_WIDTH, SCREEN_HEIGHT


def in_bounds(x, y):
    """True if (x, y) lies on the screen."""
    return (x >= 0) & (x < SCREEN_WIDTH) & (y >= 0) & (y < SCREEN_HEIGHT)


def _clamped(x, y):
    return jnp.clip(x, 0, SCREEN_WIDTH - 1), jnp.clip(y, 0, SCREEN_HEIGHT - 1)


def pixel_at(display: jnp.ndarray, x, y) -> jnp.ndarray:
    """Pixel state at (x, y); off-screen coordinates read as off."""
    return jnp.where(in_bounds(x, y), display[_clamped(x, y)], False)


def set_pixel(display: jnp.ndarray, x, y, value) -> jnp.ndarray:
    """Return display with (x, y) set to value; no-op off-screen."""
    if isinstance(x, int) and isinstance(y, int) and not (0 <= x < SCREEN_WIDTH and 0 <= y < SCREEN_HEIGHT):
        return display
    cx, cy = _clamped(x, y)
    new_value = jnp.where(in_bounds(x, y), jnp.astype(value, jnp.bool_), display[cx, cy])
    return display.at[cx, cy].set(new_value)


def clear(display: jnp.ndarray) -> jnp.ndarray:
    """All pixels off."""
    return jnp.zeros_like(display)


def snapshot(display: jnp.ndarray, flat: bool = False) -> np.ndarray:
    """Read-only host copy of the framebuffer.

    Args:
        display: Boolean array of shape (64, 32)
        flat: If True, return the 2048 pixels in row-major (y, then x) order

    Returns:
        Non-writeable numpy array of shape (64, 32), or (2048,) when flat
    """
    pixels = np.array(display, dtype=np.bool_)
    if flat:
        pixels = np.ascontiguousarray(pixels.T).reshape(-1)
    pixels.setflags(write=False)
    return pixels
