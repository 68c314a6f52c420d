"""Render driver producing finished images.

The Renderer ties the integrator to a set of RenderSettings:

- Validates the settings and prepares the render target
- Seeds one random stream per pixel from the run seed
- Renders the image in bands of rows, reporting progress after each band
- Gamma-encodes the result and writes it as PPM or PNG

Rows inside a band are rendered in parallel; bands run one after another,
so a progress callback only ever sees completed rows. The finished image is
a function of the settings, the scene, the camera and the seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.rtweekend.config import RenderSettings
    >>> from src.rtweekend.core.renderer import Renderer
    >>> from src.rtweekend.camera.thin_lens import setup_camera
    >>> from src.rtweekend.scene.builders import create_three_sphere_scene
    >>>
    >>> scene, camera = create_three_sphere_scene()
    >>> setup_camera(camera)
    >>> settings = RenderSettings(image_width=200, aspect_ratio=camera.aspect_ratio, seed=3)
    >>> Renderer(settings).render_to_file("image.ppm")
"""

from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.rtweekend.config import RenderSettings
from src.rtweekend.core.integrator import (
    clear_render_target,
    get_color_sum_numpy,
    get_render_target_generation,
    render_rows,
    setup_render_target,
)
from src.rtweekend.core.rng import seed_streams
from src.rtweekend.preview.export import PPMImageWriter, gamma_encode, save_png

# Callback receives (rows_done, rows_total)
ProgressCallback = Callable[[int, int], None]

DEFAULT_ROWS_PER_BATCH = 16


class Renderer:
    """Renders the current scene through the current camera.

    The scene, the camera and the render target are global state; build the
    scene and call ``setup_camera`` before ``render`` and leave both alone
    until it returns. Constructing another Renderer takes over the render
    target: this one then reports itself incomplete until it renders again.

    Attributes:
        settings: The validated render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Validate the settings and allocate the render target.

        Raises:
            ValueError: If the settings are invalid.
        """
        settings.validate()
        self.settings = settings
        self._rows_rendered = 0
        self._claim_render_target()

    def _claim_render_target(self) -> None:
        setup_render_target(self.width, self.height)
        self._generation = get_render_target_generation()

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.image_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.image_height

    @property
    def is_complete(self) -> bool:
        """True once every row has been rendered and the buffer is still ours."""
        return (
            self._rows_rendered == self.height
            and self._generation == get_render_target_generation()
        )

    def render_progressive(
        self,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each band of rows.

        Bands are rendered from the top of the image down.

        Args:
            rows_per_batch: Number of rows per band.

        Yields:
            Tuple of (rows_done, rows_total).

        Raises:
            ValueError: If rows_per_batch is below 1.
        """
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch = {rows_per_batch} must be at least 1")

        if self._generation == get_render_target_generation():
            clear_render_target()
        else:
            self._claim_render_target()
        self._rows_rendered = 0
        seed_streams(self.settings.seed, self.width * self.height)

        # Integrator rows count from the bottom
        row_end = self.height
        while row_end > 0:
            row_start = max(row_end - rows_per_batch, 0)
            render_rows(
                row_start,
                row_end,
                self.settings.samples_per_pixel,
                self.settings.max_depth,
            )
            self._rows_rendered += row_end - row_start
            row_end = row_start
            yield (self._rows_rendered, self.height)

    def render(
        self,
        callback: ProgressCallback | None = None,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Render the whole image.

        Args:
            callback: Optional callback called after each band with
                (rows_done, rows_total).
            rows_per_batch: Number of rows per band.

        Example:
            >>> def progress(done, total):
            ...     print(f"{done}/{total} rows")
            >>> renderer.render(callback=progress)
        """
        for rows_done, rows_total in self.render_progressive(rows_per_batch):
            if callback is not None:
                callback(rows_done, rows_total)

    def _check_complete(self) -> None:
        if self._generation != get_render_target_generation():
            raise RuntimeError(
                "Render target was taken over by another Renderer. Call render() again."
            )
        if not self.is_complete:
            raise RuntimeError("Image not rendered yet. Call render() first.")

    def get_color_sum_numpy(self) -> npt.NDArray[np.float64]:
        """Get the per-pixel sums of linear sample colors.

        Returns:
            Array of shape (height, width, 3), top row first.
        """
        self._check_complete()
        return get_color_sum_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma-encoded image as an 8-bit array of shape (height, width, 3)."""
        return gamma_encode(self.get_color_sum_numpy(), self.settings.samples_per_pixel)

    def save(self, filepath: str | Path) -> None:
        """Save the rendered image, as PPM for ".ppm" paths and PNG otherwise."""
        image = self.get_image_uint8()
        path = Path(filepath)
        if path.suffix.lower() == ".ppm":
            with PPMImageWriter(path) as writer:
                writer.write(image)
        else:
            save_png(image, path)

    def render_to_file(
        self,
        filepath: str | Path,
        callback: ProgressCallback | None = None,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> Path:
        """Open the output, render the image and write it.

        The output file is opened before rendering starts, so an unwritable
        path fails without wasting a render.

        Returns:
            The output path.

        Raises:
            OSError: If the output file cannot be created.
        """
        path = Path(filepath)
        if path.suffix.lower() == ".ppm":
            with PPMImageWriter(path) as writer:
                self.render(callback, rows_per_batch)
                writer.write(self.get_image_uint8())
        else:
            with open(path, "wb") as f:
                self.render(callback, rows_per_batch)
                save_png(self.get_image_uint8(), f)
        return path

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.settings.samples_per_pixel}, "
            f"max_depth={self.settings.max_depth})"
        )
