"""CHIP-8 emulator package."""

from chip8core.state import EmulatorState, StackState, create_state
from chip8core.emulator import execute, fetch, step, run_n_steps, load_program
from chip8core.decode import DecodedInstruction, Opcode, decode, classify
from chip8core.keypad import press_key, release_key
from chip8core.machine import Machine
from chip8core.logging import (
    ConsoleLogger, TraceCallback, ConsoleTraceCallback, TraceRecorder, TraceRecord,
)
from chip8core.errors import (
    Chip8Error, MachineFault, StackUnderflow, StackOverflow, AddressOutOfRange,
    ProtectedMemoryWrite, MachineHalted, ProgramTooLarge, InvalidKeyIndex, UnimplementedOpcode,
)
from chip8core.constants import *

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run_n_steps",
    "load_program",
    "DecodedInstruction",
    "Opcode",
    "decode",
    "classify",
    "press_key",
    "release_key",
    "Machine",
    "ConsoleLogger",
    "TraceCallback",
    "ConsoleTraceCallback",
    "TraceRecorder",
    "TraceRecord",
    "Chip8Error",
    "MachineFault",
    "StackUnderflow",
    "StackOverflow",
    "AddressOutOfRange",
    "ProtectedMemoryWrite",
    "MachineHalted",
    "ProgramTooLarge",
    "InvalidKeyIndex",
    "UnimplementedOpcode",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
]
