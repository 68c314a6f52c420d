"""Image export utilities for rendered images.

Renders are stored as per-pixel sums of linear sample colors. Before
writing, each sum is averaged over the sample count and gamma-encoded with
gamma 2 (a square root), then quantized as ``int(256 * clamp(c, 0, 0.999))``.

Supported formats:
    - PPM P3 (plain-text pixel map)
    - PNG (8-bit via Pillow)

Example:
    >>> from src.rtweekend.preview.export import PPMImageWriter, gamma_encode
    >>> image = gamma_encode(color_sum, samples_per_pixel=100)
    >>> with PPMImageWriter("image.ppm") as writer:
    ...     writer.write(image)
"""

from __future__ import annotations

from pathlib import Path
from typing import IO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Largest encoded intensity before quantization
MAX_INTENSITY = 0.999


def gamma_encode(
    color_sum: npt.NDArray[np.floating],
    samples_per_pixel: int,
) -> npt.NDArray[np.uint8]:
    """Convert per-pixel sample sums to 8-bit gamma-2 values.

    Args:
        color_sum: Array of shape (..., 3) holding the sum of samples_per_pixel
            linear colors per pixel.
        samples_per_pixel: The number of samples in each sum.

    Returns:
        Array of the same shape with dtype uint8. NaN and negative channels
        encode as 0, channels at or above 1 as 255.

    Raises:
        ValueError: If samples_per_pixel is below 1.
    """
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")

    scaled = np.asarray(color_sum, dtype=np.float64) * (1.0 / samples_per_pixel)
    scaled = np.where(np.isnan(scaled), 0.0, scaled)
    encoded = np.clip(np.sqrt(np.maximum(scaled, 0.0)), 0.0, MAX_INTENSITY)
    return (256.0 * encoded).astype(np.uint8)


def _check_image(image: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")
    if image.dtype != np.uint8:
        raise ValueError(f"Expected dtype uint8, got {image.dtype}")
    return image


class PPMImageWriter:
    """Writer for plain-text (P3) pixel maps.

    The output file is created (or truncated) when the writer is constructed,
    so an unwritable path fails before any rendering work is done.

    Layout::

        P3
        <width> <height>
        255
        <r> <g> <b>      one line per pixel, top row first, left to right

    Args:
        path: Output file path.

    Raises:
        OSError: If the file cannot be opened for writing.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._file: IO[str] | None = open(self.path, "w", encoding="ascii", newline="\n")

    def write(self, image: npt.NDArray[np.uint8]) -> None:
        """Write an image of shape (height, width, 3) and close the file.

        Raises:
            ValueError: If the image has the wrong shape or dtype.
            RuntimeError: If the writer is already closed.
        """
        if self._file is None:
            raise RuntimeError(f"PPM writer for {self.path} is closed")

        image = _check_image(image)
        height, width, _ = image.shape

        self._file.write(f"P3\n{width} {height}\n255\n")
        np.savetxt(self._file, image.reshape(-1, 3), fmt="%d", delimiter=" ")
        self.close()

    def close(self) -> None:
        """Close the underlying file. Safe to call more than once."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> PPMImageWriter:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def save_ppm(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image as a P3 pixel map."""
    with PPMImageWriter(filepath) as writer:
        writer.write(image)


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path | IO[bytes]) -> None:
    """Save an 8-bit image of shape (height, width, 3) as a PNG.

    Args:
        image: The encoded image, top row first.
        filepath: Output file path or binary file object.
    """
    image = _check_image(image)
    pil_image = PILImage.fromarray(image)
    pil_image.save(filepath, format="PNG")


def load_ppm(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Read a P3 pixel map written by PPMImageWriter.

    Returns:
        Array of shape (height, width, 3) with dtype uint8.

    Raises:
        ValueError: If the file is not a P3 pixel map with max value 255.
    """
    tokens = Path(filepath).read_text(encoding="ascii").split()
    if len(tokens) < 4 or tokens[0] != "P3":
        raise ValueError(f"{filepath}: not a P3 pixel map")

    width, height, max_value = int(tokens[1]), int(tokens[2]), int(tokens[3])
    if max_value != 255:
        raise ValueError(f"{filepath}: unsupported max value {max_value}")

    values = np.array(tokens[4:], dtype=np.int64)
    if values.size != width * height * 3:
        raise ValueError(
            f"{filepath}: expected {width * height * 3} samples, found {values.size}"
        )
    return values.reshape(height, width, 3).astype(np.uint8)
