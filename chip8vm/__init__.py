"""CHIP-8 virtual machine built on JAX."""

from chip8vm.state import EmulatorState, create_state, load_program, set_keypad
from chip8vm.emulator import StepStatus, execute, fetch, step, cycle, run_cycles, run_frame, load_rom
from chip8vm.decode import DecodedInstruction, Operation, decode, classify
from chip8vm.disassemble import disassemble
from chip8vm.timers import TimerClock, tick_timers, sound_active
from chip8vm.faults import (
    Fault, ExecutionFault, InvalidOpcode, StackOverflow, StackUnderflow,
    AddressOutOfRange, RomTooLarge,
)
from chip8vm.machine import Machine
from chip8vm.constants import *
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "create_state",
    "load_program",
    "set_keypad",
    "StepStatus",
    "fetch",
    "execute",
    "step",
    "cycle",
    "run_cycles",
    "run_frame",
    "load_rom",
    "DecodedInstruction",
    "Operation",
    "decode",
    "classify",
    "disassemble",
    "TimerClock",
    "tick_timers",
    "sound_active",
    "Fault",
    "ExecutionFault",
    "InvalidOpcode",
    "StackOverflow",
    "StackUnderflow",
    "AddressOutOfRange",
    "RomTooLarge",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
]
