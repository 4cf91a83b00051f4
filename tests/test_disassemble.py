"""Tests for the disassembler."""

import pytest
from chip8vm import disassemble
from chip8vm.disassemble import disassemble_program


@pytest.mark.parametrize("word,text", [
    (0x00E0, "CLS"),
    (0x00EE, "RET"),
    (0x1ABC, "JP ABC"),
    (0x2300, "CALL 300"),
    (0x3A0F, "SE VA, 0F"),
    (0x5120, "SE V1, V2"),
    (0x8AB4, "ADD VA, VB"),
    (0x8AB6, "SHR VA, VB"),
    (0xB250, "JP V0, 250"),
    (0xD125, "DRW V1, V2, 5"),
    (0xE39E, "SKP V3"),
    (0xF30A, "LD V3, K"),
    (0xF255, "LD [I], V2"),
    (0xF265, "LD V2, [I]"),
    (0x5001, "DW 5001"),
])
def test_disassemble(word, text):
    assert disassemble(word) == text


def test_disassemble_program():
    lines = disassemble_program(bytes([0x60, 0x05, 0x70, 0x03, 0x12]))
    assert lines == [
        "200: 6005  LD V0, 05",
        "202: 7003  ADD V0, 03",
        "204: 12",
    ]


def test_disassemble_program_custom_start():
    assert disassemble_program(bytes([0x00, 0xE0]), start=0x300) == ["300: 00E0  CLS"]
