"""Human-readable rendering of CHIP-8 instructions for traces and fault reports."""

from chip8vm.decode import Operation, lookup_operation

_FORMATS = {
    Operation.CLEAR_SCREEN: "CLS",
    Operation.RETURN: "RET",
    Operation.JUMP: "JP {nnn:03X}",
    Operation.CALL: "CALL {nnn:03X}",
    Operation.SKIP_EQ_IMM: "SE V{x:X}, {nn:02X}",
    Operation.SKIP_NE_IMM: "SNE V{x:X}, {nn:02X}",
    Operation.SKIP_EQ_REG: "SE V{x:X}, V{y:X}",
    Operation.SET_IMM: "LD V{x:X}, {nn:02X}",
    Operation.ADD_IMM: "ADD V{x:X}, {nn:02X}",
    Operation.SET_REG: "LD V{x:X}, V{y:X}",
    Operation.OR: "OR V{x:X}, V{y:X}",
    Operation.AND: "AND V{x:X}, V{y:X}",
    Operation.XOR: "XOR V{x:X}, V{y:X}",
    Operation.ADD_REG: "ADD V{x:X}, V{y:X}",
    Operation.SUB_XY: "SUB V{x:X}, V{y:X}",
    Operation.SHIFT_RIGHT: "SHR V{x:X}, V{y:X}",
    Operation.SUB_YX: "SUBN V{x:X}, V{y:X}",
    Operation.SHIFT_LEFT: "SHL V{x:X}, V{y:X}",
    Operation.SKIP_NE_REG: "SNE V{x:X}, V{y:X}",
    Operation.SET_INDEX: "LD I, {nnn:03X}",
    Operation.JUMP_OFFSET: "JP V0, {nnn:03X}",
    Operation.RANDOM: "RND V{x:X}, {nn:02X}",
    Operation.DRAW: "DRW V{x:X}, V{y:X}, {n:X}",
    Operation.SKIP_KEY: "SKP V{x:X}",
    Operation.SKIP_NOT_KEY: "SKNP V{x:X}",
    Operation.GET_DELAY: "LD V{x:X}, DT",
    Operation.WAIT_KEY: "LD V{x:X}, K",
    Operation.SET_DELAY: "LD DT, V{x:X}",
    Operation.SET_SOUND: "LD ST, V{x:X}",
    Operation.ADD_INDEX: "ADD I, V{x:X}",
    Operation.FONT_CHARACTER: "LD F, V{x:X}",
    Operation.BCD: "LD B, V{x:X}",
    Operation.STORE_REGISTERS: "LD [I], V{x:X}",
    Operation.LOAD_REGISTERS: "LD V{x:X}, [I]",
    Operation.INVALID: "DW {raw:04X}",
}


def disassemble(instruction: int) -> str:
    """Return the assembler mnemonic for a 16-bit instruction."""
    instruction = int(instruction) & 0xFFFF
    return _FORMATS[lookup_operation(instruction)].format(
        raw=instruction,
        x=(instruction >> 8) & 0xF,
        y=(instruction >> 4) & 0xF,
        n=instruction & 0xF,
        nn=instruction & 0xFF,
        nnn=instruction & 0xFFF,
    )


def disassemble_program(program: bytes, start: int = 0x200) -> list[str]:
    """Disassemble a ROM two bytes at a time into ``ADDR: WORD  MNEMONIC`` lines."""
    lines = []
    for offset in range(0, len(program) - 1, 2):
        word = (program[offset] << 8) | program[offset + 1]
        lines.append(f"{start + offset:03X}: {word:04X}  {disassemble(word)}")
    if len(program) % 2:
        lines.append(f"{start + len(program) - 1:03X}: {program[-1]:02X}")
    return lines
