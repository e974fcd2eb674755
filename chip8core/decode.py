"""CHIP-8 instruction decoding."""

import enum

import jax.numpy as jnp
from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


class Opcode(enum.IntEnum):
    """Every instruction the interpreter recognizes, plus a catch-all."""
    UNIMPLEMENTED = 0
    CLEAR_SCREEN = enum.auto()                # 00E0
    RETURN = enum.auto()                      # 00EE
    JUMP = enum.auto()                        # 1NNN
    CALL = enum.auto()                        # 2NNN
    SKIP_IF_EQUAL_IMMEDIATE = enum.auto()     # 3XNN
    SKIP_IF_NOT_EQUAL_IMMEDIATE = enum.auto() # 4XNN
    SKIP_IF_EQUAL_REGISTER = enum.auto()      # 5XY0
    SET = enum.auto()                         # 6XNN
    ADD = enum.auto()                         # 7XNN
    ALU_SET = enum.auto()                     # 8XY0
    ALU_OR = enum.auto()                      # 8XY1
    ALU_AND = enum.auto()                     # 8XY2
    ALU_XOR = enum.auto()                     # 8XY3
    ALU_ADD = enum.auto()                     # 8XY4
    ALU_SUB_XY = enum.auto()                  # 8XY5
    ALU_SHIFT_RIGHT = enum.auto()             # 8XY6
    ALU_SUB_YX = enum.auto()                  # 8XY7
    ALU_SHIFT_LEFT = enum.auto()              # 8XYE
    SKIP_IF_NOT_EQUAL_REGISTER = enum.auto()  # 9XY0
    SET_INDEX = enum.auto()                   # ANNN
    JUMP_WITH_OFFSET = enum.auto()            # BNNN
    RANDOM = enum.auto()                      # CXNN
    DRAW = enum.auto()                        # DXYN
    SKIP_IF_KEY = enum.auto()                 # EX9E
    SKIP_IF_NOT_KEY = enum.auto()             # EXA1
    GET_DELAY_TIMER = enum.auto()             # FX07
    WAIT_FOR_KEY = enum.auto()                # FX0A
    SET_DELAY_TIMER = enum.auto()             # FX15
    SET_SOUND_TIMER = enum.auto()             # FX18
    ADD_TO_INDEX = enum.auto()                # FX1E
    FONT_CHARACTER = enum.auto()              # FX29
    BCD_CONVERSION = enum.auto()              # FX33
    STORE_REGISTERS = enum.auto()             # FX55
    LOAD_REGISTERS = enum.auto()              # FX65


# (mask, pattern, opcode): an instruction matches when instruction & mask == pattern.
INSTRUCTION_PATTERNS = [
    (0xFFFF, 0x00E0, Opcode.CLEAR_SCREEN),
    (0xFFFF, 0x00EE, Opcode.RETURN),
    (0xF000, 0x1000, Opcode.JUMP),
    (0xF000, 0x2000, Opcode.CALL),
    (0xF000, 0x3000, Opcode.SKIP_IF_EQUAL_IMMEDIATE),
    (0xF000, 0x4000, Opcode.SKIP_IF_NOT_EQUAL_IMMEDIATE),
    (0xF00F, 0x5000, Opcode.SKIP_IF_EQUAL_REGISTER),
    (0xF000, 0x6000, Opcode.SET),
    (0xF000, 0x7000, Opcode.ADD),
    (0xF00F, 0x8000, Opcode.ALU_SET),
    (0xF00F, 0x8001, Opcode.ALU_OR),
    (0xF00F, 0x8002, Opcode.ALU_AND),
    (0xF00F, 0x8003, Opcode.ALU_XOR),
    (0xF00F, 0x8004, Opcode.ALU_ADD),
    (0xF00F, 0x8005, Opcode.ALU_SUB_XY),
    (0xF00F, 0x8006, Opcode.ALU_SHIFT_RIGHT),
    (0xF00F, 0x8007, Opcode.ALU_SUB_YX),
    (0xF00F, 0x800E, Opcode.ALU_SHIFT_LEFT),
    (0xF00F, 0x9000, Opcode.SKIP_IF_NOT_EQUAL_REGISTER),
    (0xF000, 0xA000, Opcode.SET_INDEX),
    (0xF000, 0xB000, Opcode.JUMP_WITH_OFFSET),
    (0xF000, 0xC000, Opcode.RANDOM),
    (0xF000, 0xD000, Opcode.DRAW),
    (0xF0FF, 0xE09E, Opcode.SKIP_IF_KEY),
    (0xF0FF, 0xE0A1, Opcode.SKIP_IF_NOT_KEY),
    (0xF0FF, 0xF007, Opcode.GET_DELAY_TIMER),
    (0xF0FF, 0xF00A, Opcode.WAIT_FOR_KEY),
    (0xF0FF, 0xF015, Opcode.SET_DELAY_TIMER),
    (0xF0FF, 0xF018, Opcode.SET_SOUND_TIMER),
    (0xF0FF, 0xF01E, Opcode.ADD_TO_INDEX),
    (0xF0FF, 0xF029, Opcode.FONT_CHARACTER),
    (0xF0FF, 0xF033, Opcode.BCD_CONVERSION),
    (0xF0FF, 0xF055, Opcode.STORE_REGISTERS),
    (0xF0FF, 0xF065, Opcode.LOAD_REGISTERS),
]


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )


def classify(instruction) -> jnp.ndarray:
    """Map an instruction word to its Opcode index (traceable)."""
    instruction = jnp.astype(instruction, jnp.uint16)
    kind = jnp.asarray(Opcode.UNIMPLEMENTED, dtype=jnp.int32)
    for mask, pattern, opcode in INSTRUCTION_PATTERNS:
        kind = jnp.where((instruction & mask) == pattern, jnp.int32(opcode), kind)
    return kind


def opcode_of(instruction: int) -> Opcode:
    """Host-side classification of a concrete instruction word."""
    for mask, pattern, opcode in INSTRUCTION_PATTERNS:
        if instruction & mask == pattern:
            return opcode
    return Opcode.UNIMPLEMENTED
