"""Console logging and instruction tracing for the CHIP-8 core.

``ConsoleLogger`` prints levelled, optionally coloured messages. Tracing is
callback based: a ``Machine`` hands a ``TraceRecord`` to every attached
``TraceCallback`` after each instruction, and only builds records when at
least one callback is attached.
"""

import sys
import time
from collections import Counter, deque
from typing import Dict, List, Optional, Tuple

from chex import dataclass

from chip8core.constants import STATUS_NAMES
from chip8core.decode import Opcode, decode, opcode_of

LEVELS = {"DEBUG": 0, "INFO": 1, "WARNING": 2, "ERROR": 3, "CRITICAL": 4}

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ConsoleLogger:
    """Levelled console logger with optional colours and elapsed-time stamps."""

    def __init__(
        self,
        name: str = "Chip8",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def is_enabled_for(self, level: str) -> bool:
        """Check if messages at level pass the current threshold."""
        return LEVELS.get(level.upper(), 1) >= LEVELS[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{_COLORS.get(level, '')}{level_str}{_RESET}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        level = level.upper()
        if self.is_enabled_for(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


@dataclass(frozen=True)
class TraceRecord:
    """One executed instruction and the machine state it left behind."""
    address: int
    instruction: int
    opcode: Opcode
    x: int
    y: int
    n: int
    nn: int
    nnn: int
    registers: Tuple[int, ...]
    index: int
    pc: int
    delay_timer: int
    sound_timer: int
    status: int

    @property
    def status_name(self) -> str:
        return STATUS_NAMES.get(self.status, str(self.status))

    def format(self) -> str:
        """Single-line human readable form."""
        registers = " ".join(f"{value:02X}" for value in self.registers)
        return (
            f"0x{self.address:03X}: {self.instruction:04X} {self.opcode.name:<28s}"
            f" PC=0x{self.pc:03X} I=0x{self.index:03X} V=[{registers}]"
            f" DT={self.delay_timer} ST={self.sound_timer} {self.status_name}"
        )


def make_trace_record(address: int, instruction: int, state) -> TraceRecord:
    """Build a TraceRecord from the state after executing instruction."""
    decoded = decode(instruction)
    return TraceRecord(
        address=address,
        instruction=instruction,
        opcode=opcode_of(instruction),
        x=decoded.x,
        y=decoded.y,
        n=decoded.n,
        nn=decoded.nn,
        nnn=decoded.nnn,
        registers=tuple(int(v) for v in state.V),
        index=int(state.I),
        pc=int(state.pc),
        delay_timer=int(state.delay_timer),
        sound_timer=int(state.sound_timer),
        status=int(state.status),
    )


class TraceCallback:
    """Base class for tracing callbacks."""

    def on_program_loaded(self, size: int):
        """Called after a program is copied into memory."""
        pass

    def on_instruction(self, record: TraceRecord):
        """Called after each executed instruction."""
        pass

    def on_unimplemented(self, record: TraceRecord):
        """Called when an instruction matched no known pattern."""
        pass

    def on_fault(self, error: Exception):
        """Called with the exception about to be raised for a fatal fault."""
        pass


class ConsoleTraceCallback(TraceCallback):
    """Writes every trace record to a ConsoleLogger at DEBUG level."""

    def __init__(self, logger: Optional[ConsoleLogger] = None):
        self.logger = logger or ConsoleLogger(name="Trace", log_level="DEBUG")

    def on_program_loaded(self, size: int):
        self.logger.debug(f"Program loaded ({size} bytes)")

    def on_instruction(self, record: TraceRecord):
        self.logger.debug(record.format())

    def on_fault(self, error: Exception):
        self.logger.debug(f"Fault: {error}")


class TraceRecorder(TraceCallback):
    """Keeps the most recent trace records and per-opcode counts."""

    def __init__(self, max_records: Optional[int] = 1000):
        self.records = deque(maxlen=max_records)
        self.opcode_counts = Counter()
        self.unimplemented: List[TraceRecord] = []
        self.faults: List[Exception] = []
        self.programs_loaded = 0

    def on_program_loaded(self, size: int):
        self.programs_loaded += 1

    def on_instruction(self, record: TraceRecord):
        self.records.append(record)
        self.opcode_counts[record.opcode.name] += 1

    def on_unimplemented(self, record: TraceRecord):
        self.unimplemented.append(record)

    def on_fault(self, error: Exception):
        self.faults.append(error)

    def get_statistics(self) -> Dict[str, int]:
        """Executed instruction counts keyed by opcode name."""
        return dict(self.opcode_counts)
