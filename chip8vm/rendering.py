"""Framebuffer to image conversion for display collaborators and screenshots."""

from typing import Tuple

import jax.numpy as jnp
import numpy as np
from PIL import Image

Color = Tuple[int, int, int]

COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
    "amber": ((255, 176, 0), (0, 0, 0)),
    "white": ((255, 255, 255), (0, 0, 0)),
    "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
    "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
}


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = (0, 255, 0),
    off_color: Color = (0, 0, 0),
) -> np.ndarray:
    """Convert the boolean framebuffer to an upscaled RGB image.

    Args:
        display: Boolean array of shape (64, 32), indexed [x, y]
        scale: Nearest-neighbour upscaling factor
        on_color: RGB color for lit pixels
        off_color: RGB color for dark pixels

    Returns:
        uint8 array of shape (32 * scale, 64 * scale, 3), row-major like an image
    """
    lit = np.asarray(display, dtype=np.bool_).T
    palette = np.array([off_color, on_color], dtype=np.uint8)
    rgb = palette[lit.astype(np.intp)]
    if scale > 1:
        rgb = rgb.repeat(scale, axis=0).repeat(scale, axis=1)
    return rgb


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Return ``(on_color, off_color)`` for a named scheme."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None


def save_screenshot(
    display: jnp.ndarray,
    filename: str,
    scale: int = 8,
    color_scheme: str = "classic",
) -> None:
    """Write the framebuffer to an image file (format taken from the extension)."""
    on_color, off_color = create_color_scheme(color_scheme)
    frame = chip8_display_to_rgb(display, scale=scale, on_color=on_color, off_color=off_color)
    Image.fromarray(frame).save(filename)
