import sys
import time

from chip8core import Machine, ConsoleTraceCallback, TraceRecorder, Chip8Error
from chip8core.logging import ConsoleLogger

# Counts 0-F on screen: draws the glyph for V0, waits, clears and increments.
COUNTER_ROM = bytes([
    0x60, 0x00,  # 0x200: V0 = 0
    0x61, 0x1C,  # 0x202: V1 = 28 (x)
    0x62, 0x0D,  # 0x204: V2 = 13 (y)
    0x00, 0xE0,  # 0x206: clear screen
    0xF0, 0x29,  # 0x208: I = glyph(V0)
    0xD1, 0x25,  # 0x20A: draw at (V1, V2)
    0x63, 0x10,  # 0x20C: V3 = 16
    0xF3, 0x15,  # 0x20E: DT = V3
    0xF4, 0x07,  # 0x210: V4 = DT
    0x34, 0x00,  # 0x212: skip if V4 == 0
    0x12, 0x10,  # 0x214: jump 0x210
    0x70, 0x01,  # 0x216: V0 += 1
    0x12, 0x06,  # 0x218: jump 0x206
])


def render(machine: Machine) -> str:
    pixels = machine.display_snapshot()
    return "\n".join(
        "".join("#" if pixels[x, y] else " " for x in range(pixels.shape[0]))
        for y in range(pixels.shape[1])
    )


if __name__ == "__main__":
    rom = COUNTER_ROM
    if len(sys.argv) > 1 and not sys.argv[1].startswith("--"):
        with open(sys.argv[1], "rb") as f:
            rom = f.read()
    trace = "--trace" in sys.argv

    recorder = TraceRecorder(max_records=None)
    callbacks = [recorder]
    if trace:
        callbacks.append(ConsoleTraceCallback(ConsoleLogger(name="Trace", log_level="DEBUG")))

    machine = Machine(seed=0, callbacks=callbacks)
    machine.load_program(rom)

    start = time.time()
    try:
        machine.run(2000, progress=not trace, desc="Emulating")
    except Chip8Error as error:
        print("Stopped:", error)
    end = time.time()

    print(render(machine))
    print("Execution time (s):", end - start)
    for name, count in sorted(recorder.get_statistics().items(), key=lambda item: -item[1]):
        print(f"{name:<28s} {count}")
