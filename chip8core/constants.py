"""CHIP-8 machine constants."""

MEMORY_SIZE = 4096
ADDRESS_MASK = 0xFFF
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = ADDRESS_MASK - PROGRAM_START + 1

FONT_START = 0x050
FONT_GLYPH_SIZE = 5
FONT_DATA = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]
FONT_END = FONT_START + len(FONT_DATA)

SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32

NUM_REGISTERS = 16
FLAG_REGISTER = 0xF
NUM_KEYS = 16
STACK_SIZE = 16

# Status codes recorded in EmulatorState.status after each cycle.
STATUS_OK = 0
STATUS_WAITING_FOR_KEY = 1
STATUS_UNIMPLEMENTED_OPCODE = 2
# Codes from here on are fatal and halt the machine.
STATUS_STACK_UNDERFLOW = 3
STATUS_STACK_OVERFLOW = 4
STATUS_ADDRESS_FAULT = 5
STATUS_PROTECTED_WRITE = 6

FIRST_FATAL_STATUS = STATUS_STACK_UNDERFLOW

STATUS_NAMES = {
    STATUS_OK: "ok",
    STATUS_WAITING_FOR_KEY: "waiting_for_key",
    STATUS_UNIMPLEMENTED_OPCODE: "unimplemented_opcode",
    STATUS_STACK_UNDERFLOW: "stack_underflow",
    STATUS_STACK_OVERFLOW: "stack_overflow",
    STATUS_ADDRESS_FAULT: "address_fault",
    STATUS_PROTECTED_WRITE: "protected_write",
}
