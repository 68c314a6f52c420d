"""Path tracing integrator.

Each camera sample follows a single path: at every hit the surface material
proposes one scattered ray and an attenuation, and the path continues until
it escapes to the sky or ends early (absorbed, or out of bounces). The
result is the sky color scaled by the product of the attenuations picked up
along the way; absorbed and exhausted paths contribute black.

A bounce budget of ``max_depth`` allows that many scattering events. The
ray after the last permitted bounce is still tested against the scene: if it
escapes it picks up the sky, if it hits anything it is black. With
``max_depth = 0`` primary rays therefore show the sky where they miss and
black wherever they hit geometry.

The render kernel parallelizes over pixels. Pixel (i, j) (column i, row j
counted from the bottom) draws all of its random numbers from stream
``j * width + i`` and writes only its own accumulator, so the image does not
depend on how the backend schedules pixels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.rtweekend.core.integrator import setup_render_target, render_rows
    >>> from src.rtweekend.core.rng import seed_streams
    >>> setup_render_target(400, 225)
    >>> seed_streams(seed=1, count=400 * 225)
    >>> render_rows(0, 225, samples_per_pixel=10, max_depth=50)
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.rtweekend.camera.thin_lens import get_ray_jittered
from src.rtweekend.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from src.rtweekend.core.ray import Ray, make_ray, unit_vector, vec3
from src.rtweekend.materials.dielectric import scatter_dielectric_by_id
from src.rtweekend.materials.lambertian import scatter_lambertian_by_id
from src.rtweekend.materials.metal import scatter_metal_by_id
from src.rtweekend.scene.intersection import intersect_scene
from src.rtweekend.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Intersection interval for every traced ray; t_min keeps scattered rays
# from re-hitting the surface they leave
T_MIN = 0.001
T_MAX = math.inf

# Sky gradient endpoints (bottom, top)
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of sample colors, indexed [column, row from bottom]
_color_sum = ti.Vector.field(3, dtype=ti.f64, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Bumped by every setup_render_target call so owners can detect reuse
_target_generation = 0

# Result slot for trace_ray
_traced_color = ti.Vector.field(3, dtype=ti.f64, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image size and clear the accumulator.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is below 1 or above the supported maximum.
    """
    global _target_generation

    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 1x1")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    _target_generation += 1


def get_render_target_generation() -> int:
    """Number of times the render target has been set up."""
    return _target_generation


def clear_render_target() -> None:
    """Reset every pixel accumulator to zero."""
    _color_sum.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Shading
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Vertical white-to-blue gradient seen by rays that escape the scene."""
    unit_direction = unit_vector(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
        Unknown material ids absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the light arriving along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Maximum number of scattering events.
        stream: Random stream of the calling pixel.

    Returns:
        The color carried back along the ray. Every component lies in
        [0, 1] when all albedos do.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Loop flag stands in for break
    active = 1

    for bounce in range(max_depth + 1):
        if active == 1:
            rec = intersect_scene(current, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(current.direction)
                active = 0
            elif bounce >= max_depth:
                # Budget exhausted, the light is lost
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, current.direction, rec.normal, rec.front_face, stream
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    current = make_ray(rec.point, scattered_direction)

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    width: ti.i32,
    height: ti.i32,
    row_start: ti.i32,
    row_end: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    for i, j in ti.ndrange(width, (row_start, row_end)):
        stream = j * width + i
        pixel_sum = vec3(0.0, 0.0, 0.0)

        for _ in range(samples_per_pixel):
            ray = get_ray_jittered(i, j, width, height, stream)
            color = ray_color(ray, max_depth, stream)

            # Degenerate geometry can produce NaN/Inf; drop the sample
            for c in ti.static(range(3)):
                if tm.isnan(color[c]) or tm.isinf(color[c]):
                    color[c] = 0.0

            pixel_sum += color

        _color_sum[i, j] = pixel_sum


@ti.kernel
def _trace_ray_kernel(
    ox: ti.f64,
    oy: ti.f64,
    oz: ti.f64,
    dx: ti.f64,
    dy: ti.f64,
    dz: ti.f64,
    max_depth: ti.i32,
    stream: ti.i32,
):
    # Only the outermost loop is parallelized; the bounce loop stays serial
    for _ in range(1):
        ray = make_ray(vec3(ox, oy, oz), vec3(dx, dy, dz))
        _traced_color[None] = ray_color(ray, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(row_start: int, row_end: int, samples_per_pixel: int, max_depth: int) -> None:
    """Render every pixel of rows [row_start, row_end).

    Rows are counted from the bottom of the image. Random streams must have
    been seeded for all pixels of the render target.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    _render_rows(width, height, row_start, row_end, samples_per_pixel, max_depth)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray from Python.

    Intended for tests and debugging; ``stream`` must have been seeded.

    Returns:
        Tuple of (R, G, B) color values.
    """
    _trace_ray_kernel(
        origin[0],
        origin[1],
        origin[2],
        direction[0],
        direction[1],
        direction[2],
        max_depth,
        stream,
    )
    color = _traced_color[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_color_sum_numpy() -> npt.NDArray[np.float64]:
    """Get the per-pixel sample sums in raster order.

    Returns:
        Array of shape (height, width, 3), row 0 being the top of the image.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_sum.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Taichi rows count from the bottom, images from the top
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float64)
