"""CHIP-8 emulator exceptions."""

from typing import Optional


class Chip8Error(Exception):
    """Base class for all emulator errors."""
    pass


class MachineFault(Chip8Error):
    """A fatal fault raised while executing an instruction.

    The machine state is left exactly as it was before the faulting step,
    so ``pc`` is the address of the offending instruction.
    """

    def __init__(self, pc: Optional[int] = None, instruction: Optional[int] = None, message: str = ""):
        self.pc = pc
        self.instruction = instruction
        if not message:
            message = type(self).__name__
        if pc is not None:
            message += f" at 0x{pc:03X}"
        if instruction is not None:
            message += f" (instruction 0x{instruction:04X})"
        super().__init__(message)


class StackUnderflow(MachineFault):
    """00EE executed with an empty call stack."""
    pass


class StackOverflow(MachineFault):
    """2NNN executed with a full call stack."""
    pass


class AddressOutOfRange(MachineFault):
    """Memory access outside 0x000-0xFFF."""

    def __init__(self, address: Optional[int] = None, pc: Optional[int] = None,
                 instruction: Optional[int] = None):
        self.address = address
        message = "Address out of range"
        if address is not None:
            message = f"Address 0x{address:X} out of range"
        super().__init__(pc, instruction, message)


class ProtectedMemoryWrite(MachineFault):
    """Write into the font glyph region."""
    pass


class MachineHalted(Chip8Error):
    """Raised when stepping a machine that already hit a fatal fault."""
    pass


class ProgramTooLarge(Chip8Error):
    """Program does not fit between 0x200 and 0xFFF."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Program is {size} bytes, at most {limit} bytes fit in memory")


class InvalidKeyIndex(Chip8Error, ValueError):
    """Keypad index outside 0x0-0xF."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Invalid key index {key!r}, expected 0-15")


class UnimplementedOpcode(Chip8Error):
    """Instruction word that matches no known pattern.

    Only raised by machines built with ``strict=True``; otherwise the
    instruction is skipped and reported through logging and trace callbacks.
    """

    def __init__(self, pc: int, instruction: int):
        self.pc = pc
        self.instruction = instruction
        super().__init__(f"Unimplemented opcode 0x{instruction:04X} at 0x{pc:03X}")
