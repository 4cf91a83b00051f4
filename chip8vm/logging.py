"""Console logging for the interpreter.

``ExecutionLogger`` reports ROM loads, instruction traces, key waits and
faults. ``fori_loop_with_progress`` drives a tqdm bar from inside a jitted
``jax.lax.fori_loop`` through ``io_callback``.
"""

import sys
import time
from typing import Callable, Optional, Tuple

import jax
from jax.experimental import io_callback
from tqdm import tqdm

from chip8vm.disassemble import disassemble
from chip8vm.emulator import cycle

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ANSI_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
ANSI_RESET = "\033[0m"


class ConsoleLogger:
    """Leveled stdout logger with optional colors and elapsed-time stamps."""

    def __init__(
        self,
        name: str = "chip8vm",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
    ):
        self.name = name
        self.log_level = log_level.upper()
        if self.log_level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")
        # Colors only make sense on a terminal
        self.use_colors = use_colors and hasattr(sys.stdout, "isatty") and sys.stdout.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        return LEVELS.index(level) >= LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        prefix = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        tag = f"[{level:>8s}]"
        if self.use_colors:
            tag = f"{ANSI_COLORS[level]}{tag}{ANSI_RESET}"
        return f"{prefix}{tag}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self._should_log(level):
            print(self._format_message(level, message), flush=True)

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


class ExecutionLogger(ConsoleLogger):
    """Logger for the interpreter loop: ROM loads, instruction traces, faults."""

    def __init__(self, name: str = "CPU", **kwargs):
        super().__init__(name, **kwargs)

    def log_rom_loaded(self, source: str, size: int):
        self.info(f"Loaded {source} ({size} bytes)")

    def log_instruction(self, pc: int, instruction: int):
        """Trace one instruction at DEBUG level."""
        if self._should_log("DEBUG"):
            self.debug(f"{pc:03X}: {instruction:04X}  {disassemble(instruction)}")

    def log_key_wait(self, register: int):
        self.debug(f"Waiting for key press into V{register:X}")

    def log_fault(self, fault: Exception):
        """Report a fatal execution fault, with disassembly when available."""
        instruction = getattr(fault, "instruction", None)
        detail = f" [{disassemble(instruction)}]" if instruction is not None else ""
        self.error(f"{fault}{detail}")

    def log_frame_summary(self, frame: int, cycles: int, state):
        """One-line summary of registers and timers."""
        registers = " ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(state.V))
        self.info(
            f"frame {frame:6d} | cycles {cycles:8d} | PC={int(state.pc):03X} I={int(state.I):03X} "
            f"DT={int(state.delay_timer):3d} ST={int(state.sound_timer):3d} | {registers}"
        )


def build_tqdm_progress_bar(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **kwargs,
) -> Tuple[Callable, Callable]:
    """Build the update/close hooks of a tqdm bar fed from traced code.

    The bar is opened on iteration 0, advanced by ``print_rate`` every
    ``print_rate`` iterations and topped up and closed on the last one.
    """
    if desc is None:
        desc = f"Running ({n:,} cycles)"
    for reserved in ("total", "mininterval", "maxinterval", "miniters"):
        kwargs.pop(reserved, None)
    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    else:
        print_rate = max(1, min(print_rate, n))

    bars = {}

    def _open():
        bars["bar"] = tqdm(total=n, desc=desc, unit="cycle", **kwargs)

    def _advance(steps):
        if "bar" in bars:
            bars["bar"].update(int(steps))

    def _close():
        bar = bars.pop("bar", None)
        if bar is not None:
            bar.update(bar.total - bar.n)
            bar.close()

    def _when(condition, callback, *args):
        jax.lax.cond(
            condition,
            lambda: io_callback(callback, None, *args, ordered=True),
            lambda: None,
        )

    def update_progress_bar(iter_num):
        _when(iter_num == 0, _open)
        _when((iter_num > 0) & (iter_num % print_rate == 0), _advance, print_rate)

    def close_progress_bar(result, iter_num):
        _when(iter_num == n - 1, _close)
        return result

    return update_progress_bar, close_progress_bar


def fori_loop_with_progress(
    n: int,
    print_rate: Optional[int] = None,
    desc: Optional[str] = None,
    **tqdm_kwargs,
) -> Callable:
    """Decorate a ``fori_loop`` body so that running it shows a progress bar."""
    update_progress_bar, close_progress_bar = build_tqdm_progress_bar(n, print_rate, desc, **tqdm_kwargs)

    def decorator(body):
        def body_with_progress(i, carry):
            update_progress_bar(i)
            return close_progress_bar(body(i, carry), i)
        return body_with_progress

    return decorator


def run_cycles_with_progress(state, n: int, print_rate: Optional[int] = None, **tqdm_kwargs):
    """Run ``n`` cycles under jit with a live tqdm bar. ``n`` is fixed at trace time."""
    @fori_loop_with_progress(n, print_rate, **tqdm_kwargs)
    def body(_, s):
        return cycle(s)

    return jax.jit(lambda s: jax.lax.fori_loop(0, n, body, s))(state)
