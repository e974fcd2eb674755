"""CHIP-8 memory access.

Memory is a flat ``uint8[4096]`` array. Host-side calls with concrete integer
addresses are bounds-checked and raise ``AddressOutOfRange``; traced addresses
cannot be checked here, so instructions report bad accesses through
``access_status`` before touching memory.
"""

from typing import Union

import jax.numpy as jnp
import numpy as np

from chip8core.constants import (
    MEMORY_SIZE, PROGRAM_START, MAX_PROGRAM_SIZE, FONT_START, FONT_END, FONT_GLYPH_SIZE,
    STATUS_OK, STATUS_ADDRESS_FAULT, STATUS_PROTECTED_WRITE,
)
from chip8core.errors import AddressOutOfRange, ProgramTooLarge

ProgramData = Union[bytes, bytearray, memoryview, list, np.ndarray]


def _is_concrete(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, bool)


def _check_address(address, length: int = 1):
    if _is_concrete(address) and not (0 <= address and address + length <= MEMORY_SIZE):
        raise AddressOutOfRange(address=int(address))


def read_byte(memory: jnp.ndarray, address) -> jnp.ndarray:
    """Read the byte at address."""
    _check_address(address)
    return memory[address]


def write_byte(memory: jnp.ndarray, address, value) -> jnp.ndarray:
    """Return memory with the byte at address replaced."""
    _check_address(address)
    return memory.at[address].set(jnp.astype(value, jnp.uint8))


def read_word(memory: jnp.ndarray, address) -> jnp.ndarray:
    """Read big-endian 16-bit word at address, address + 1."""
    _check_address(address, 2)
    high = jnp.astype(memory[address], jnp.uint16)
    low = jnp.astype(memory[address + 1], jnp.uint16)
    return (high << 8) | low


def program_bytes(program: ProgramData) -> np.ndarray:
    """Program as a flat uint8 array.

    Buffers are taken byte for byte. Lists and arrays are read element-wise
    and every element must be an integer in 0-255.
    """
    if isinstance(program, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(program), dtype=np.uint8)
    data = np.asarray(program)
    if data.size == 0:
        return np.zeros(0, dtype=np.uint8)
    if data.ndim != 1 or not np.issubdtype(data.dtype, np.integer):
        raise ValueError(f"Program must be a flat sequence of integers, got {data.dtype} of shape {data.shape}")
    if data.min() < 0 or data.max() > 0xFF:
        raise ValueError("Program values must be bytes (0-255)")
    return data.astype(np.uint8)


def load_program(memory: jnp.ndarray, program: ProgramData) -> jnp.ndarray:
    """Copy program bytes into memory starting at 0x200."""
    data = program_bytes(program)
    if len(data) > MAX_PROGRAM_SIZE:
        raise ProgramTooLarge(len(data), MAX_PROGRAM_SIZE)
    if len(data) == 0:
        return memory
    return memory.at[PROGRAM_START:PROGRAM_START + len(data)].set(jnp.asarray(data))


def font_glyph_address(digit):
    """Address of the 5-byte glyph for hex digit 0-F."""
    if _is_concrete(digit):
        if not 0 <= digit <= 0xF:
            raise ValueError(f"Font digit must be 0-15, got {digit}")
        return FONT_START + int(digit) * FONT_GLYPH_SIZE
    # Registers can hold any byte; only the low nibble selects a glyph.
    return FONT_START + (jnp.astype(digit, jnp.uint16) & 0xF) * FONT_GLYPH_SIZE


def access_status(start, length, writes) -> jnp.ndarray:
    """Status code for an access of ``length`` bytes starting at ``start``."""
    start = jnp.astype(start, jnp.int32)
    length = jnp.astype(length, jnp.int32)
    end = start + length
    touches = length > 0
    out_of_range = touches & (end > MEMORY_SIZE)
    protected = touches & writes & (start < FONT_END) & (end > FONT_START)
    return jnp.select(
        [out_of_range, protected],
        [STATUS_ADDRESS_FAULT, STATUS_PROTECTED_WRITE],
        STATUS_OK,
    ).astype(jnp.uint8)
