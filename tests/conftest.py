"""Test configuration and fixtures for CHIP-8 emulator tests."""

import io

import pytest
import jax.numpy as jnp
from chip8core import create_state, Machine, ConsoleLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def machine(log_stream):
    """Provide a machine whose log output is captured in log_stream."""
    logger = ConsoleLogger(name="Chip8", log_level="DEBUG", show_timestamps=False, stream=log_stream)
    return Machine(logger=logger)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program_at(layout):
    """Build a program image from {address: [bytes]}, zero-filled in between."""
    end = max(address + len(data) for address, data in layout.items())
    image = bytearray(end - 0x200)
    for address, data in layout.items():
        image[address - 0x200:address - 0x200 + len(data)] = bytes(data)
    return bytes(image)
