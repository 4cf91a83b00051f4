"""Tests for the host-facing Machine driver."""

import numpy as np
import pytest
from chip8vm import Machine, StackUnderflow, StepStatus
from chip8vm.logging import ExecutionLogger


def program(*words):
    return b"".join(word.to_bytes(2, "big") for word in words)


class RecordingDisplay:
    def __init__(self):
        self.frames = []

    def present(self, frame):
        self.frames.append(frame)


class ScriptedKeypad:
    def __init__(self):
        self.keys = [False] * 16
        self.polls = 0

    def poll(self):
        self.polls += 1
        return list(self.keys)


class RecordingAudio:
    def __init__(self):
        self.tones = []

    def set_tone(self, active):
        self.tones.append(active)


@pytest.fixture
def logger():
    return ExecutionLogger(use_colors=False, show_timestamps=False, log_level="DEBUG")


def test_run_frame_presents_display():
    display = RecordingDisplay()
    # Draw the glyph for 0 at (0, 0), then spin
    machine = Machine(program(0xA050, 0xD005, 0x1204), display=display)

    machine.run_frame()

    assert machine.frames == 1
    assert machine.cycles == 11
    assert len(display.frames) == 1
    frame = display.frames[0]
    assert frame.shape == (64, 32)
    assert frame[0, 0] and frame[3, 0]
    assert not frame[1, 1]


def test_frames_follow_clock():
    machine = Machine(program(0x1200))
    for _ in range(60):
        machine.run_frame()
    assert machine.frames == 60
    assert machine.cycles == 700


def test_step_ticks_timers_after_timer_period():
    machine = Machine(program(0x6005, 0xF015, 0x1204))
    for _ in range(10):
        machine.step()
    assert machine.frames == 0
    assert machine.state.delay_timer == 5

    machine.step()
    assert machine.frames == 1
    assert machine.state.delay_timer == 4


def test_audio_follows_sound_timer():
    audio = RecordingAudio()
    machine = Machine(program(0x6002, 0xF018, 0x1204), audio=audio)

    for _ in range(3):
        machine.run_frame()

    assert audio.tones == [True, False, False]


def test_keypad_is_polled_and_ends_key_wait():
    keypad = ScriptedKeypad()
    machine = Machine(program(0xF50A, 0x1202), keypad=keypad)
    assert keypad.polls == 1

    assert machine.run_frame() is StepStatus.WAITING_FOR_KEY
    keypad.keys[0xB] = True
    machine.run_frame()  # the new key state is polled at the end of this frame
    assert machine.run_frame() is StepStatus.EXECUTED
    assert machine.state.V[5] == 0xB


def test_set_keys_without_keypad():
    machine = Machine(program(0xF00A, 0x1202))
    assert machine.step() is StepStatus.WAITING_FOR_KEY

    keys = [False] * 16
    keys[2] = True
    machine.set_keys(keys)
    assert machine.step() is StepStatus.EXECUTED
    assert machine.state.V[0] == 2


def test_framebuffer_is_read_only():
    machine = Machine(program(0x1200))
    frame = machine.framebuffer()
    assert isinstance(frame, np.ndarray)
    with pytest.raises(ValueError):
        frame[0, 0] = True


def test_reset_restores_program():
    machine = Machine(program(0x6007, 0x1202))
    machine.run_frame()
    assert machine.state.V[0] == 7

    machine.reset()
    assert machine.state.V[0] == 0
    assert machine.state.pc == 0x200
    assert machine.frames == 0
    assert machine.cycles == 0


def test_modern_mode_is_passed_to_state():
    machine = Machine(program(0x6210, 0xB250), modern_mode=True)
    machine.step()
    machine.step()
    assert machine.state.pc == 0x260


def test_fault_is_raised_and_logged(capsys, logger):
    machine = Machine(program(0x00EE), logger=logger)

    with pytest.raises(StackUnderflow):
        machine.run_frame()

    output = capsys.readouterr().out
    assert "StackUnderflow at PC=0x200" in output
    assert "RET" in output


def test_step_fault_is_logged(capsys, logger):
    machine = Machine(program(0x5001), logger=logger)

    with pytest.raises(Exception):
        machine.step()

    assert "InvalidOpcode" in capsys.readouterr().out


def test_trace_logs_each_instruction(capsys, logger):
    machine = Machine(program(0x6005, 0x7003), logger=logger, trace=True)
    machine.step()
    machine.step()

    output = capsys.readouterr().out
    assert "200: 6005  LD V0, 05" in output
    assert "202: 7003  ADD V0, 03" in output


def test_trace_run_frame_steps_through_frame(logger):
    machine = Machine(program(0x1200), logger=logger, trace=True)
    machine.run_frame()
    assert machine.frames == 1
    assert machine.cycles == 11
