"""Tests for the host-facing Machine."""

import jax.numpy as jnp
import numpy as np
import pytest

from chip8core import (
    Machine, TraceRecorder, load_program, run_n_steps, StackUnderflow, StackOverflow, AddressOutOfRange,
    ProtectedMemoryWrite, MachineHalted, ProgramTooLarge, InvalidKeyIndex, UnimplementedOpcode,
)
from chip8core.constants import (
    MAX_PROGRAM_SIZE, STACK_SIZE, STATUS_OK, STATUS_WAITING_FOR_KEY, STATUS_UNIMPLEMENTED_OPCODE,
    STATUS_STACK_UNDERFLOW,
)
from conftest import program_at


class TestConstruction:

    def test_initial_state(self, machine):
        assert machine.pc == 0x200
        assert machine.index == 0
        assert machine.registers == (0,) * 16
        assert machine.delay_timer == 0
        assert machine.sound_timer == 0
        assert machine.stack_depth == 0
        assert not machine.halted
        assert not machine.display_snapshot().any()

    def test_font_is_loaded(self, machine):
        assert machine.read_byte(0x050) == 0xF0
        assert machine.read_byte(0x09F) == 0x80


class TestLoadProgram:

    def test_load_program(self, machine, log_stream):
        machine.load_program(bytes([0x12, 0x34, 0x56]))

        assert machine.read_byte(0x200) == 0x12
        assert machine.read_byte(0x202) == 0x56
        assert machine.pc == 0x200
        assert "Loaded program (3 bytes)" in log_stream.getvalue()

    def test_load_largest_program(self, machine):
        machine.load_program(bytes([0xAB]) * MAX_PROGRAM_SIZE)
        assert machine.read_byte(0xFFF) == 0xAB

    def test_program_too_large_is_rejected(self, machine):
        with pytest.raises(ProgramTooLarge):
            machine.load_program(bytes([0xAB]) * (MAX_PROGRAM_SIZE + 1))
        assert machine.read_byte(0x200) == 0

    def test_load_does_not_reset_registers(self, machine):
        machine.load_program(bytes([0x60, 0x07]))
        machine.step()
        machine.load_program(bytes([0x00, 0xE0]))

        assert machine.registers[0] == 7
        assert machine.pc == 0x202


class TestKeypad:

    def test_key_down_and_up(self, machine):
        machine.key_down(0xA)
        assert machine.is_key_down(0xA)
        machine.key_up(0xA)
        assert not machine.is_key_down(0xA)

    @pytest.mark.parametrize("key", [-1, 16, 255, "1", 1.0, None, True])
    def test_invalid_key_is_rejected(self, machine, key):
        with pytest.raises(InvalidKeyIndex):
            machine.key_down(key)
        with pytest.raises(ValueError):
            machine.key_up(key)
        assert not machine.state.keypad.any()

    @pytest.mark.parametrize("key", [3, np.int64(3), np.uint8(3), jnp.int32(3), jnp.uint8(3)])
    def test_integer_like_keys(self, machine, key):
        machine.key_down(key)
        assert machine.is_key_down(3)
        assert machine.is_key_down(key)
        machine.key_up(key)
        assert not machine.is_key_down(3)

    @pytest.mark.parametrize("key", [np.bool_(True), jnp.bool_(True), jnp.int32(16), jnp.array([1, 2])])
    def test_non_key_arrays_are_rejected(self, machine, key):
        with pytest.raises(InvalidKeyIndex):
            machine.key_down(key)


class TestStep:

    def test_step_fetches_and_advances(self, machine):
        machine.load_program(bytes([0x60, 0x2A, 0xA1, 0x23]))

        assert machine.step() == STATUS_OK
        assert machine.registers[0] == 0x2A
        assert machine.pc == 0x202

        machine.step()
        assert machine.index == 0x123
        assert machine.pc == 0x204

    def test_timer_decay(self, machine):
        machine.load_program(bytes([0x60, 0x05, 0xF0, 0x15, 0x12, 0x04]))
        machine.step()  # V0 = 5
        machine.step()  # DT = 5, then ticked once

        assert machine.delay_timer == 4
        for _ in range(4):
            machine.step()
        assert machine.delay_timer == 0
        machine.step()
        assert machine.delay_timer == 0

    def test_sound_timer(self, machine):
        machine.load_program(bytes([0x60, 0x02, 0xF0, 0x18, 0x12, 0x04]))
        machine.run(2)

        assert machine.sound_timer == 1
        assert machine.sound_active
        machine.step()
        assert not machine.sound_active

    @pytest.mark.parametrize("call_site, target", [
        (0x200, 0x300),
        (0x200, 0xFFE),
        (0x4A0, 0x206),
        (0xFFC, 0x2AA),
    ])
    def test_call_and_return(self, machine, call_site, target):
        layout = {call_site: [0x20 | (target >> 8), target & 0xFF], target: [0x00, 0xEE]}
        if call_site != 0x200:
            layout[0x200] = [0x10 | (call_site >> 8), call_site & 0xFF]
        machine.load_program(program_at(layout))
        if call_site != 0x200:
            machine.step()
        assert machine.pc == call_site

        machine.step()
        assert machine.pc == target
        assert machine.stack_depth == 1

        machine.step()
        assert machine.pc == call_site + 2
        assert machine.stack_depth == 0

    def test_wait_for_key(self, machine):
        machine.load_program(bytes([0xF4, 0x0A, 0x12, 0x02]))

        for _ in range(5):
            assert machine.step() == STATUS_WAITING_FOR_KEY
            assert machine.pc == 0x200
            assert machine.awaiting_key

        machine.key_down(0xC)
        assert machine.step() == STATUS_OK
        assert machine.registers[4] == 0xC
        assert machine.pc == 0x202
        assert not machine.awaiting_key

    def test_timers_tick_while_waiting(self, machine):
        machine.load_program(bytes([0x60, 0x03, 0xF0, 0x15, 0xF1, 0x0A]))
        machine.run(2)
        machine.run(2)
        assert machine.delay_timer == 0
        assert machine.pc == 0x204


class TestGoldenImage:

    def test_rom_draws_its_own_bytes(self, machine):
        """A200 6005 D015: draws the first five program bytes at (5, 0)."""
        machine.load_program(bytes([0xA2, 0x00, 0x60, 0x05, 0xD0, 0x15]))

        machine.run(3)

        expected = [
            "#.#...#.",  # 0xA2
            "........",  # 0x00
            ".##.....",  # 0x60
            ".....#.#",  # 0x05
            "##.#....",  # 0xD0
        ]
        snapshot = machine.display_snapshot()
        for y, row in enumerate(expected):
            assert "".join("#" if snapshot[5 + x, y] else "." for x in range(8)) == row
        assert snapshot.sum() == 10
        assert machine.registers[15] == 0
        assert machine.pc == 0x206

    def test_flat_snapshot_is_row_major(self, machine):
        machine.load_program(bytes([0xA2, 0x00, 0x60, 0x05, 0xD0, 0x15]))
        machine.run(3)

        flat = machine.display_snapshot(flat=True)

        assert flat.shape == (2048,)
        assert flat[0 * 64 + 5]
        assert flat[4 * 64 + 8]
        assert not flat[1 * 64 + 5]
        assert machine.pixel_at(8, 4)
        assert not machine.pixel_at(100, 4)

    def test_snapshot_is_read_only(self, machine):
        snapshot = machine.display_snapshot()
        assert snapshot.shape == (64, 32)
        with pytest.raises(ValueError):
            snapshot[0, 0] = True


class TestFaults:

    def test_stack_underflow(self, machine, log_stream):
        machine.load_program(bytes([0x00, 0xEE]))

        with pytest.raises(StackUnderflow) as excinfo:
            machine.step()

        assert excinfo.value.pc == 0x200
        assert excinfo.value.instruction == 0x00EE
        assert machine.pc == 0x200
        assert machine.halted
        assert "StackUnderflow at 0x200" in log_stream.getvalue()

    def test_halted_machine_refuses_to_step(self, machine):
        machine.load_program(bytes([0x00, 0xEE]))
        with pytest.raises(StackUnderflow):
            machine.step()

        with pytest.raises(MachineHalted):
            machine.step()
        assert machine.pc == 0x200

    def test_fault_does_not_tick_timers(self, machine):
        machine.load_program(bytes([0x60, 0x09, 0xF0, 0x15, 0x00, 0xEE]))
        machine.run(2)
        assert machine.delay_timer == 8

        with pytest.raises(StackUnderflow):
            machine.step()
        assert machine.delay_timer == 8

    def test_stack_overflow(self, machine):
        machine.load_program(bytes([0x22, 0x00]))  # calls itself forever
        machine.run(STACK_SIZE)

        with pytest.raises(StackOverflow):
            machine.step()
        assert machine.stack_depth == STACK_SIZE

    def test_fetch_past_end_of_memory(self, machine):
        machine.load_program(bytes([0x1F, 0xFF]))
        machine.step()

        with pytest.raises(AddressOutOfRange) as excinfo:
            machine.step()
        assert excinfo.value.address == 0xFFF
        assert excinfo.value.pc == 0xFFF

    def test_index_past_end_of_memory(self, machine):
        machine.load_program(bytes([0xAF, 0xFF, 0xF2, 0x65]))
        machine.step()

        with pytest.raises(AddressOutOfRange) as excinfo:
            machine.step()
        assert excinfo.value.address == 0xFFF
        assert excinfo.value.pc == 0x202
        assert excinfo.value.instruction == 0xF265

    def test_protected_write(self, machine):
        machine.load_program(bytes([0xA0, 0x60, 0xF0, 0x33]))
        machine.step()

        with pytest.raises(ProtectedMemoryWrite):
            machine.step()
        assert machine.read_byte(0x05F) == 0xF0  # glyph "3" left intact
        assert machine.read_byte(0x060) == 0x10

    def test_read_byte_out_of_range(self, machine):
        with pytest.raises(AddressOutOfRange):
            machine.read_byte(0x1000)


class TestUnimplemented:

    def test_unimplemented_is_skipped_and_reported(self, log_stream):
        from chip8core import ConsoleLogger
        recorder = TraceRecorder()
        logger = ConsoleLogger(show_timestamps=False, stream=log_stream)
        machine = Machine(callbacks=[recorder], logger=logger)
        machine.load_program(bytes([0x01, 0x23, 0x60, 0x01]))

        assert machine.step() == STATUS_UNIMPLEMENTED_OPCODE
        assert machine.pc == 0x202
        assert machine.step() == STATUS_OK
        assert machine.registers[0] == 1

        assert len(recorder.unimplemented) == 1
        assert recorder.unimplemented[0].instruction == 0x0123
        assert "Unimplemented opcode 0x0123 at 0x200" in log_stream.getvalue()

    def test_strict_mode_raises(self):
        machine = Machine(strict=True, log_level="CRITICAL")
        machine.load_program(bytes([0x5A, 0xB1]))

        with pytest.raises(UnimplementedOpcode) as excinfo:
            machine.step()
        assert excinfo.value.instruction == 0x5AB1
        assert not machine.halted


class TestRun:

    def test_run_with_progress(self, machine):
        machine.load_program(bytes([0x60, 0x01, 0x70, 0x01, 0x12, 0x02]))

        machine.run(11, progress=True)

        assert machine.registers[0] == 6

    def test_run_stops_on_fault(self, machine):
        machine.load_program(bytes([0x60, 0x01, 0x00, 0xEE]))
        with pytest.raises(StackUnderflow):
            machine.run(10)
        assert machine.registers[0] == 1

    def test_seed_controls_random(self):
        program = bytes([0xC0, 0xFF, 0xC1, 0xFF, 0xC2, 0xFF])
        results = []
        for _ in range(2):
            machine = Machine(seed=123, log_level="ERROR")
            machine.load_program(program)
            machine.run(3)
            results.append(machine.registers[:3])
        assert results[0] == results[1]

    def test_run_n_steps(self, fresh_state):
        state = load_program(fresh_state, bytes([0x60, 0x01, 0x70, 0x01, 0x12, 0x02]))

        state, statuses = run_n_steps(state, 11)

        assert statuses.shape == (11,)
        assert bool((statuses == STATUS_OK).all())
        assert state.V[0] == 6
        assert state.pc == 0x202

    def test_run_n_steps_halts_on_fault(self, fresh_state):
        state = load_program(fresh_state, bytes([0x00, 0xEE]))

        state, statuses = run_n_steps(state, 4)

        assert [int(s) for s in statuses] == [STATUS_STACK_UNDERFLOW] * 4
        assert state.pc == 0x200

    def test_accepts_array_programs(self, machine):
        machine.load_program(np.array([0x61, 0x09], dtype=np.uint8))
        machine.step()
        assert machine.registers[1] == 9

    @pytest.mark.parametrize("program", [
        np.array([0x61, 0x09, 0x62, 0xFF]),
        np.array([0x61, 0x09, 0x62, 0xFF], dtype=np.int32),
        [0x61, 0x09, 0x62, 0xFF],
        (0x61, 0x09, 0x62, 0xFF),
    ])
    def test_integer_sequences_load_element_wise(self, machine, log_stream, program):
        machine.load_program(program)
        machine.run(2)

        assert machine.registers[1] == 9
        assert machine.registers[2] == 0xFF
        assert machine.read_byte(0x204) == 0
        assert "Loaded program (4 bytes)" in log_stream.getvalue()

    def test_largest_int64_program_fits(self, machine):
        machine.load_program(np.zeros(MAX_PROGRAM_SIZE, dtype=np.int64))
        with pytest.raises(ProgramTooLarge):
            machine.load_program(np.zeros(MAX_PROGRAM_SIZE + 1, dtype=np.int64))

    @pytest.mark.parametrize("program", [
        [0x61, 0x100],
        np.array([-1, 0x09]),
        np.array([0.5, 1.0]),
        np.array([[0x61, 0x09]]),
    ])
    def test_non_byte_programs_are_rejected(self, machine, program):
        with pytest.raises(ValueError):
            machine.load_program(program)
        assert machine.read_byte(0x200) == 0
