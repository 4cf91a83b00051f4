"""Tests for control flow instructions."""

import pytest
from chip8vm import execute, create_state


class TestJump:
    """Test jump instructions."""

    def test_execute_jump(self, fresh_state):
        """Test 1NNN - Jump to address."""
        state = execute(fresh_state, 0x1ABC)
        assert state.pc == 0xABC


class TestSkipInstructions:
    """Test all skip instruction variants."""

    def test_skip_if_equal_immediate_true(self, fresh_state):
        """3XNN - Should skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x42))
        initial_pc = state.pc

        state = execute(state, 0x3542)  # Skip if V5 == 0x42
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_immediate_false(self, fresh_state):
        """3XNN - Should not skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0x41))
        initial_pc = state.pc

        state = execute(state, 0x3542)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_immediate_true(self, fresh_state):
        """4XNN - Should skip when VX != NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x10))
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_immediate_false(self, fresh_state):
        """4XNN - Should not skip when VX == NN."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x20))
        initial_pc = state.pc

        state = execute(state, 0x4320)
        assert state.pc == initial_pc

    def test_skip_if_equal_register_true(self, fresh_state):
        """5XY0 - Should skip when VX == VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x55))
        state = state.replace(V=state.V.at[2].set(0x55))
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc + 2

    def test_skip_if_equal_register_false(self, fresh_state):
        """5XY0 - Should not skip when VX != VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x55))
        state = state.replace(V=state.V.at[2].set(0x44))
        initial_pc = state.pc

        state = execute(state, 0x5120)
        assert state.pc == initial_pc

    def test_skip_if_not_equal_register_true(self, fresh_state):
        """9XY0 - Should skip when VX != VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[7].set(0xAA))
        state = state.replace(V=state.V.at[8].set(0xBB))
        initial_pc = state.pc

        state = execute(state, 0x9780)
        assert state.pc == initial_pc + 2

    def test_skip_if_not_equal_register_false(self, fresh_state):
        """9XY0 - Should not skip when VX == VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[7].set(0xCC))
        state = state.replace(V=state.V.at[8].set(0xCC))
        initial_pc = state.pc

        state = execute(state, 0x9780)
        assert state.pc == initial_pc

    def test_skip_boundary_values(self, fresh_state):
        """Test skip instructions with boundary values."""
        state = fresh_state.replace(V=fresh_state.V.at[0].set(0xFF))
        initial_pc = state.pc

        state = execute(state, 0x30FF)
        assert state.pc == initial_pc + 2


class TestKeySkips:
    """EX9E / EXA1 read the instantaneous keypad."""

    def test_skip_if_key_pressed(self, fresh_state):
        state = execute(fresh_state, 0x6005)  # V0 = 5
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_key_released(self, fresh_state):
        state = execute(fresh_state, 0x6005)
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc

    def test_skip_if_key_not_pressed(self, fresh_state):
        state = execute(fresh_state, 0x6005)
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 2

    def test_no_skip_if_not_pressed_but_key_down(self, fresh_state):
        state = execute(fresh_state, 0x6005)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc

    def test_key_index_uses_low_nibble(self, fresh_state):
        state = execute(fresh_state, 0x60F3)  # V0 = 0xF3 -> key 3
        state = state.replace(keypad=state.keypad.at[3].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2


class TestJumpWithOffset:
    """Test jump with offset in both modes."""

    def test_jump_with_offset_legacy(self, legacy_state):
        """BNNN - Jump with V0 offset (legacy mode)."""
        state = execute(legacy_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xB250)  # Jump to 0x250 + V0
        assert state.pc == 0x260

    def test_jump_with_offset_modern(self, modern_state):
        """BXNN - Jump with VX offset (modern mode)."""
        state = execute(modern_state, 0x6210)  # V2 = 0x10
        state = execute(state, 0xB250)  # Jump to 0x250 + V2
        assert state.pc == 0x260

    def test_jump_mode_comparison(self):
        """Test that modern_mode changes jump behavior."""
        state_legacy = create_state(modern_mode=False)
        state_legacy = execute(state_legacy, 0x6010)  # V0 = 0x10
        state_legacy = execute(state_legacy, 0x6230)  # V2 = 0x30
        state_legacy = execute(state_legacy, 0xB250)

        state_modern = create_state(modern_mode=True)
        state_modern = execute(state_modern, 0x6010)
        state_modern = execute(state_modern, 0x6230)
        state_modern = execute(state_modern, 0xB250)

        assert state_legacy.pc == 0x260  # 0x250 + V0
        assert state_modern.pc == 0x280  # 0x250 + V2

    def test_jump_with_offset_is_not_masked(self, legacy_state):
        """BFFF + V0 lands past memory; the next fetch reports it."""
        state = execute(legacy_state, 0x60FF)
        state = execute(state, 0xBFFF)
        assert state.pc == 0xFFF + 0xFF
