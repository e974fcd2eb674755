"""Host-facing CHIP-8 machine.

``Machine`` wraps the functional core: it holds the current
``EmulatorState``, validates calls from the host, steps the jitted cycle,
turns fatal status codes into exceptions and feeds the trace callbacks.
It provides no locking; callers on several threads must serialize access.
"""

from typing import List, Optional

import jax
import numpy as np
from tqdm import tqdm

from chip8core import keypad, screen, stack
from chip8core.constants import (
    MEMORY_SIZE, STATUS_OK, STATUS_WAITING_FOR_KEY, STATUS_UNIMPLEMENTED_OPCODE,
    STATUS_STACK_UNDERFLOW, STATUS_STACK_OVERFLOW, STATUS_ADDRESS_FAULT,
    STATUS_PROTECTED_WRITE, FIRST_FATAL_STATUS, STATUS_NAMES,
)
from chip8core.emulator import step, load_program
from chip8core.errors import (
    StackUnderflow, StackOverflow, AddressOutOfRange, ProtectedMemoryWrite,
    MachineHalted, UnimplementedOpcode,
)
from chip8core.logging import ConsoleLogger, TraceCallback, make_trace_record
from chip8core.memory import program_bytes, read_byte, read_word
from chip8core.state import EmulatorState, create_state
from chip8core.timer import sound_active


class Machine:
    """A CHIP-8 interpreter instance driven one instruction per ``step()``."""

    def __init__(
        self,
        seed: int = 0,
        rng: Optional[jax.random.PRNGKey] = None,
        callbacks: Optional[List[TraceCallback]] = None,
        logger: Optional[ConsoleLogger] = None,
        log_level: str = "INFO",
        strict: bool = False,
    ):
        """Create a machine with font loaded, PC at 0x200 and everything else zeroed.

        Args:
            seed: Seed for the CXNN random number generator
            rng: Explicit PRNG key, overrides seed
            callbacks: Trace callbacks notified after every instruction
            logger: Logger for load, warning and fault messages
            log_level: Level for the default logger when none is given
            strict: Raise UnimplementedOpcode instead of skipping unknown instructions
        """
        if rng is None:
            rng = jax.random.PRNGKey(seed)
        self._state = create_state(rng)
        self.callbacks = list(callbacks or [])
        self.logger = logger or ConsoleLogger(name="Chip8", log_level=log_level)
        self.strict = strict

    @property
    def state(self) -> EmulatorState:
        """Current immutable emulator state."""
        return self._state

    def load_program(self, program) -> None:
        """Copy program bytes to 0x200.

        Raises ProgramTooLarge, or ValueError for non-byte values, without
        touching memory.
        """
        program = program_bytes(program)
        self._state = load_program(self._state, program)
        size = len(program)
        self.logger.info(f"Loaded program ({size} bytes)")
        for callback in self.callbacks:
            callback.on_program_loaded(size)

    def key_down(self, key: int) -> None:
        self._state = keypad.press_key(self._state, key)

    def key_up(self, key: int) -> None:
        self._state = keypad.release_key(self._state, key)

    def is_key_down(self, key: int) -> bool:
        return bool(self._state.keypad[keypad.validate_key(key)])

    def step(self) -> int:
        """Execute one instruction and tick both timers.

        Returns:
            The status code of the cycle (STATUS_OK, STATUS_WAITING_FOR_KEY
            or STATUS_UNIMPLEMENTED_OPCODE)

        Raises:
            MachineHalted: a previous step hit a fatal fault
            StackUnderflow, StackOverflow, AddressOutOfRange, ProtectedMemoryWrite:
                the instruction at PC faulted; the state is left as it was
            UnimplementedOpcode: strict mode and the instruction is unknown
        """
        if self.halted:
            raise MachineHalted(f"Machine halted after {STATUS_NAMES[self.status]}")

        address = self.pc
        self._state = step(self._state)
        status = self.status

        if status >= FIRST_FATAL_STATUS:
            error = self._fault_error(status, address)
            self.logger.error(str(error))
            for callback in self.callbacks:
                callback.on_fault(error)
            raise error

        if status == STATUS_UNIMPLEMENTED_OPCODE or self.callbacks:
            instruction = self._instruction_at(address)
            record = make_trace_record(address, instruction, self._state)
            for callback in self.callbacks:
                callback.on_instruction(record)
            if status == STATUS_UNIMPLEMENTED_OPCODE:
                self.logger.warning(f"Unimplemented opcode 0x{instruction:04X} at 0x{address:03X}")
                for callback in self.callbacks:
                    callback.on_unimplemented(record)
                if self.strict:
                    raise UnimplementedOpcode(address, instruction)
        return status

    def run(self, steps: int, progress: bool = False, desc: Optional[str] = None) -> int:
        """Call step() repeatedly; returns the last status.

        Faults propagate out of the loop as they would from step().
        """
        status = STATUS_OK
        for _ in tqdm(range(steps), desc=desc or f"Running ({steps:,} steps)",
                      unit="step", disable=not progress):
            status = self.step()
        return status

    def display_snapshot(self, flat: bool = False) -> np.ndarray:
        """Read-only framebuffer, shape (64, 32) indexed [x, y], or 2048 pixels row-major."""
        return screen.snapshot(self._state.display, flat=flat)

    def pixel_at(self, x: int, y: int) -> bool:
        return bool(screen.pixel_at(self._state.display, x, y))

    def read_byte(self, address: int) -> int:
        return int(read_byte(self._state.memory, address))

    @property
    def pc(self) -> int:
        return int(self._state.pc)

    @property
    def index(self) -> int:
        return int(self._state.I)

    @property
    def registers(self) -> tuple:
        return tuple(int(v) for v in self._state.V)

    @property
    def delay_timer(self) -> int:
        return int(self._state.delay_timer)

    @property
    def sound_timer(self) -> int:
        return int(self._state.sound_timer)

    @property
    def sound_active(self) -> bool:
        """True while an audio collaborator should play the tone."""
        return bool(sound_active(self._state))

    @property
    def stack_depth(self) -> int:
        return int(stack.depth(self._state.stack))

    @property
    def status(self) -> int:
        return int(self._state.status)

    @property
    def awaiting_key(self) -> bool:
        """True while parked on FX0A with no key down."""
        return self.status == STATUS_WAITING_FOR_KEY

    @property
    def halted(self) -> bool:
        return self.status >= FIRST_FATAL_STATUS

    def _instruction_at(self, address: int) -> Optional[int]:
        if not 0 <= address <= MEMORY_SIZE - 2:
            return None
        return int(read_word(self._state.memory, address))

    def _fault_error(self, status: int, address: int) -> Exception:
        instruction = self._instruction_at(address)
        if status == STATUS_STACK_UNDERFLOW:
            return StackUnderflow(address, instruction)
        if status == STATUS_STACK_OVERFLOW:
            return StackOverflow(address, instruction)
        if status == STATUS_PROTECTED_WRITE:
            return ProtectedMemoryWrite(address, instruction)
        if status == STATUS_ADDRESS_FAULT:
            # Either the fetch itself or the instruction's access through I.
            faulting_address = address if instruction is None else self.index
            return AddressOutOfRange(faulting_address, address, instruction)
        raise AssertionError(f"Unknown fatal status {status}")
