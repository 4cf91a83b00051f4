"""
Interactive pygame front end for chip8vm
"""

import sys

import numpy as np
import pygame

from chip8vm import Machine, ExecutionFault, StepStatus, SCREEN_WIDTH, SCREEN_HEIGHT
from chip8vm.logging import ExecutionLogger
from chip8vm.rendering import chip8_display_to_rgb, create_color_scheme, save_screenshot

# COSMAC VIP keypad laid out on the left of a QWERTY keyboard
#   1 2 3 C        1 2 3 4
#   4 5 6 D   <-   Q W E R
#   7 8 9 E        A S D F
#   A 0 B F        Z X C V
KEY_MAP = {
    pygame.K_x: 0x0, pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_a: 0x7,
    pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_z: 0xA, pygame.K_c: 0xB,
    pygame.K_4: 0xC, pygame.K_r: 0xD, pygame.K_f: 0xE, pygame.K_v: 0xF,
}


class PygameDisplay:
    def __init__(self, scale=10, color_scheme="classic"):
        self.scale = scale
        self.on_color, self.off_color = create_color_scheme(color_scheme)
        self.screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
        pygame.display.set_caption("chip8vm")

    def present(self, frame):
        rgb = chip8_display_to_rgb(frame, self.scale, self.on_color, self.off_color)
        # pygame surfaces are indexed [x, y]
        pygame.surfarray.blit_array(self.screen, rgb.transpose(1, 0, 2))
        pygame.display.flip()


class PygameKeypad:
    def __init__(self):
        self.keys = [False] * 16

    def handle(self, event):
        if event.type in (pygame.KEYDOWN, pygame.KEYUP) and event.key in KEY_MAP:
            self.keys[KEY_MAP[event.key]] = event.type == pygame.KEYDOWN

    def poll(self):
        return list(self.keys)


class PygameAudio:
    def __init__(self, frequency=440, sample_rate=44100):
        pygame.mixer.init(frequency=sample_rate, size=-16, channels=1)
        period = sample_rate // frequency
        wave = np.where(np.arange(period) < period // 2, 4000, -4000).astype(np.int16)
        self.tone = pygame.sndarray.make_sound(np.tile(wave, frequency))
        self.playing = False

    def set_tone(self, active):
        if active and not self.playing:
            self.tone.play(loops=-1)
        elif not active and self.playing:
            self.tone.stop()
        self.playing = active


def run_emulator(rom_filename, modern_mode=False, scale=10, instruction_frequency=700):
    """Main emulator loop: 60 frames per second, timers ticked once per frame"""
    logger = ExecutionLogger()

    pygame.init()
    display = PygameDisplay(scale)
    keypad = PygameKeypad()
    audio = PygameAudio()
    clock = pygame.time.Clock()

    try:
        with open(rom_filename, "rb") as f:
            program = f.read()
    except OSError as e:
        logger.error(f"Cannot read {rom_filename}: {e}")
        return 1

    machine = Machine(
        program,
        display=display,
        keypad=keypad,
        audio=audio,
        instruction_frequency=instruction_frequency,
        modern_mode=modern_mode,
        logger=logger,
    )
    logger.info("Controls: ESC=Quit, P=Pause, R=Reset, F12=Screenshot")

    running = True
    paused = False
    halted = False
    status = StepStatus.EXECUTED
    while running:
        clock.tick(60)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                running = False
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_p:
                paused = not paused
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_r:
                machine.reset()
                halted = False
                logger.info("Reset")
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_F12:
                filename = f"chip8vm-{machine.frames:06d}.png"
                save_screenshot(machine.framebuffer(), filename)
                logger.info(f"Saved {filename}")
            else:
                keypad.handle(event)

        if paused or halted:
            continue

        try:
            previous = status
            status = machine.run_frame()
        except ExecutionFault:
            # Already reported by the machine's logger; wait for reset or quit
            halted = True
            audio.set_tone(False)
            continue

        if status is StepStatus.WAITING_FOR_KEY and previous is not StepStatus.WAITING_FOR_KEY:
            logger.log_key_wait(int(machine.state.key_register))

    pygame.quit()
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} ROM [--modern]", file=sys.stderr)
        sys.exit(2)
    sys.exit(run_emulator(sys.argv[1], modern_mode="--modern" in sys.argv[2:]))
