"""CHIP-8 ALU operations (8xxx).

Operations that report a flag write VF before the result, so with X = F the
result is what remains in VF.
"""

import jax.numpy as jnp
from chip8core.state import EmulatorState
from chip8core.decode import DecodedInstruction
from chip8core.constants import FLAG_REGISTER


def alu_set(vx: int, vy: int) -> int:
    """8XY0 - Set: VX = VY."""
    return vy


def alu_or(vx: int, vy: int) -> int:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy


def alu_and(vx: int, vy: int) -> int:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy


def alu_xor(vx: int, vy: int) -> int:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = result > 255
    return result & 0xFF, carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, flag set when there is no borrow."""
    no_borrow = vx >= vy
    return (vx - vy) & 0xFF, no_borrow


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX = VY >> 1."""
    return vy >> 1, vy & 1


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, flag set when there is no borrow."""
    no_borrow = vy >= vx
    return (vy - vx) & 0xFF, no_borrow


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX = VY << 1."""
    return (vy << 1) & 0xFF, (vy & 0x80) >> 7


def make_alu_instruction(operation):
    """Factory for ALU instructions that leave VF alone."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result = operation(state.V[instruction.x], state.V[instruction.y])
        return state.replace(V=state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8)))
    return alu_instruction


def make_flag_alu_instruction(operation):
    """Factory for ALU instructions that report a flag in VF."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, flag = operation(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8))
        new_V = new_V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
        return state.replace(V=new_V)
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set)
execute_alu_or = make_alu_instruction(alu_or)
execute_alu_and = make_alu_instruction(alu_and)
execute_alu_xor = make_alu_instruction(alu_xor)
execute_alu_add = make_flag_alu_instruction(alu_add)
execute_alu_sub_xy = make_flag_alu_instruction(alu_sub_xy)
execute_alu_shift_right = make_flag_alu_instruction(alu_shift_right)
execute_alu_sub_yx = make_flag_alu_instruction(alu_sub_yx)
execute_alu_shift_left = make_flag_alu_instruction(alu_shift_left)
