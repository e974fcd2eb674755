"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState, with_status
from chip8core.decode import DecodedInstruction
from chip8core.constants import STATUS_WAITING_FOR_KEY, NUM_REGISTERS
from chip8core.memory import font_glyph_address


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register (VF untouched)."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    With no key down the PC is moved back onto this instruction so the next
    cycle polls again; the host is never blocked.
    """
    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        return with_status(state.replace(pc=state.pc - 2), STATUS_WAITING_FOR_KEY)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = font_glyph_address(state.V[instruction.x])
    return state.replace(I=jnp.astype(font_address, jnp.uint16))


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + state.I
    new_memory = state.memory.at[indices].set(digits)
    return state.replace(memory=new_memory)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = state.I + jnp.arange(NUM_REGISTERS)
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    # Indices past the end of memory only occur outside the mask; drop them.
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")
    return state.replace(memory=new_memory)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = state.I + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return state.replace(V=new_V)
