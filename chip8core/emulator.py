"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState, with_status, is_halted
from chip8core.decode import DecodedInstruction, Opcode, decode, classify
from chip8core.constants import (
    MEMORY_SIZE, STATUS_OK, STATUS_ADDRESS_FAULT,
    STATUS_STACK_UNDERFLOW, STATUS_STACK_OVERFLOW,
)
from chip8core import memory, stack
from chip8core.memory import read_word, access_status
from chip8core.timer import tick_timers
from chip8core.instructions.system import execute_unimplemented, execute_clear_screen, execute_return
from chip8core.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key,
)
from chip8core.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left,
)
from chip8core.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8core.instructions.display import execute_display
from chip8core.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers,
)

INSTRUCTION_HANDLERS = {
    Opcode.UNIMPLEMENTED: execute_unimplemented,
    Opcode.CLEAR_SCREEN: execute_clear_screen,
    Opcode.RETURN: execute_return,
    Opcode.JUMP: execute_jump,
    Opcode.CALL: execute_call,
    Opcode.SKIP_IF_EQUAL_IMMEDIATE: execute_skip_if_equal_immediate,
    Opcode.SKIP_IF_NOT_EQUAL_IMMEDIATE: execute_skip_if_not_equal_immediate,
    Opcode.SKIP_IF_EQUAL_REGISTER: execute_skip_if_equal_register,
    Opcode.SET: execute_set,
    Opcode.ADD: execute_add,
    Opcode.ALU_SET: execute_alu_set,
    Opcode.ALU_OR: execute_alu_or,
    Opcode.ALU_AND: execute_alu_and,
    Opcode.ALU_XOR: execute_alu_xor,
    Opcode.ALU_ADD: execute_alu_add,
    Opcode.ALU_SUB_XY: execute_alu_sub_xy,
    Opcode.ALU_SHIFT_RIGHT: execute_alu_shift_right,
    Opcode.ALU_SUB_YX: execute_alu_sub_yx,
    Opcode.ALU_SHIFT_LEFT: execute_alu_shift_left,
    Opcode.SKIP_IF_NOT_EQUAL_REGISTER: execute_skip_if_not_equal_register,
    Opcode.SET_INDEX: execute_set_index,
    Opcode.JUMP_WITH_OFFSET: execute_jump_with_offset,
    Opcode.RANDOM: execute_random,
    Opcode.DRAW: execute_display,
    Opcode.SKIP_IF_KEY: execute_skip_if_key,
    Opcode.SKIP_IF_NOT_KEY: execute_skip_if_not_key,
    Opcode.GET_DELAY_TIMER: execute_get_delay_timer,
    Opcode.WAIT_FOR_KEY: execute_wait_for_key,
    Opcode.SET_DELAY_TIMER: execute_set_delay_timer,
    Opcode.SET_SOUND_TIMER: execute_set_sound_timer,
    Opcode.ADD_TO_INDEX: execute_add_to_index,
    Opcode.FONT_CHARACTER: execute_font_character,
    Opcode.BCD_CONVERSION: execute_bcd_conversion,
    Opcode.STORE_REGISTERS: execute_store_registers,
    Opcode.LOAD_REGISTERS: execute_load_registers,
}

# lax.switch branches, indexed by Opcode value
_BRANCHES = [INSTRUCTION_HANDLERS[opcode] for opcode in sorted(Opcode)]


def detect_fault(state: EmulatorState, instruction: DecodedInstruction, kind: jnp.ndarray) -> jnp.ndarray:
    """Status code for a fault the instruction would cause, or STATUS_OK."""
    access_length = jnp.select(
        [kind == Opcode.DRAW, kind == Opcode.BCD_CONVERSION,
         (kind == Opcode.STORE_REGISTERS) | (kind == Opcode.LOAD_REGISTERS)],
        [jnp.astype(instruction.n, jnp.int32), 3, jnp.astype(instruction.x, jnp.int32) + 1],
        0,
    )
    writes = (kind == Opcode.BCD_CONVERSION) | (kind == Opcode.STORE_REGISTERS)
    memory_status = access_status(state.I, access_length, writes)

    return jnp.select(
        [(kind == Opcode.RETURN) & stack.is_empty(state.stack),
         (kind == Opcode.CALL) & stack.is_full(state.stack)],
        [STATUS_STACK_UNDERFLOW, STATUS_STACK_OVERFLOW],
        memory_status,
    ).astype(jnp.uint8)


@jax.jit
def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    A faulting instruction leaves the state untouched apart from ``status``.
    """
    decoded_instruction = decode(instruction)
    kind = classify(instruction)
    state = with_status(state, STATUS_OK)
    fault = detect_fault(state, decoded_instruction, kind)

    return jax.lax.cond(
        fault == STATUS_OK,
        lambda s: jax.lax.switch(kind, _BRANCHES, s, decoded_instruction),
        lambda s: s.replace(status=fault),
        state
    )


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    instruction = read_word(state.memory, state.pc)
    return state.replace(pc=state.pc + 2), instruction


def _cycle(state: EmulatorState) -> EmulatorState:
    fetched, instruction = fetch(state)
    executed = execute(fetched, instruction)
    # A fault rolls back to the pre-fetch state so PC stays on the instruction.
    return jax.lax.cond(
        is_halted(executed),
        lambda s: s.replace(status=executed.status),
        lambda s: tick_timers(executed),
        state
    )


def _guarded_cycle(state: EmulatorState) -> EmulatorState:
    fetch_out_of_range = jnp.astype(state.pc, jnp.int32) > MEMORY_SIZE - 2
    return jax.lax.cond(
        fetch_out_of_range,
        lambda s: with_status(s, STATUS_ADDRESS_FAULT),
        _cycle,
        state
    )


@jax.jit
def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute-tick cycle; a halted state is returned as is."""
    return jax.lax.cond(is_halted(state), lambda s: s, _guarded_cycle, state)


def _scan_step(state, _):
    state = step(state)
    return state, state.status


@partial(jax.jit, static_argnums=1)
def run_n_steps(state: EmulatorState, n: int) -> tuple[EmulatorState, jnp.ndarray]:
    """Run n cycles in a single scan; returns the final state and per-cycle statuses."""
    state, statuses = jax.lax.scan(_scan_step, state, length=n)
    return state, statuses


def load_program(state: EmulatorState, program) -> EmulatorState:
    """Load program bytes into CHIP-8 memory starting at 0x200."""
    return state.replace(memory=memory.load_program(state.memory, program))
