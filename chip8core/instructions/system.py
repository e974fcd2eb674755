"""CHIP-8 system instructions (0x0xxx)."""

from chip8core.state import EmulatorState, with_status
from chip8core.decode import DecodedInstruction
from chip8core.constants import STATUS_UNIMPLEMENTED_OPCODE
from chip8core.stack import pop
from chip8core import screen


def execute_unimplemented(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Unrecognized instruction (including 0NNN): skipped, but flagged in status."""
    return with_status(state, STATUS_UNIMPLEMENTED_OPCODE)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=screen.clear(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address)
