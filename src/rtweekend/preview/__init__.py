"""Preview module for image output.

Components:
    export: Gamma encoding, PPM (P3) and PNG writers
"""

from src.rtweekend.preview.export import (
    PPMImageWriter,
    gamma_encode,
    load_ppm,
    save_png,
    save_ppm,
)

__all__ = [
    "PPMImageWriter",
    "gamma_encode",
    "load_ppm",
    "save_png",
    "save_ppm",
]
