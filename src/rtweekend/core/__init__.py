"""Core rendering module.

Components:
    rng: Per-pixel random number streams
    ray: Ray data structure and vector utilities
    integrator: Path tracing kernel and render target
    renderer: Render driver producing finished images
"""

from .ray import (
    Color,
    Point3,
    Ray,
    length_squared,
    make_ray,
    near_zero,
    random_in_hemisphere,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vector,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)
from .rng import MAX_STREAMS, random_double, random_range, seed_streams

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from src.rtweekend.core.integrator or src.rtweekend.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "Point3",
    "Color",
    "length_squared",
    "unit_vector",
    "near_zero",
    "reflect",
    "refract",
    "schlick_reflectance",
    "random_vector",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_hemisphere",
    "random_in_unit_disk",
    "MAX_STREAMS",
    "seed_streams",
    "random_double",
    "random_range",
]
