"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the vector helpers used by
geometry, materials and the camera: reflection, refraction, the near-zero
test, Schlick's reflectance and the rejection samplers used for diffuse,
fuzzy-metal and lens sampling.

Points, directions and colors all share one representation, a triple of
doubles (``vec3``). ``Point3`` and ``Color`` are aliases that document intent
at call sites. Nothing here normalizes implicitly; callers normalize where an
algorithm requires unit vectors.

Random samplers draw from an explicit per-pixel stream (see
``src.rtweekend.core.rng``) and retry until a sample is accepted. The expected
number of draws is about 2 for the unit ball and 1.27 for the unit disk.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> origin = vec3(0.0, 0.0, 0.0)
    >>> direction = vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from src.rtweekend.core.rng import random_double, random_range

# Double-precision 3-vector used for positions, directions and colors
vec3 = ti.types.vector(3, ti.f64)
Point3 = vec3
Color = vec3

# Component magnitude below which a vector counts as zero
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A half-line with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction of the ray. Not necessarily unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi scope."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length."""
    return v / tm.sqrt(tm.dot(v, v))


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check whether every component of a vector is near zero.

    Used to catch degenerate scatter directions.

    Args:
        v: The vector to check.

    Returns:
        1 if all component magnitudes are below NEAR_ZERO_EPSILON, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Mirror a vector about a normal: v - 2 (v . n) n.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The unit surface normal.

    Returns:
        The reflected direction.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit vector through a surface using Snell's law.

    The result is split into the components perpendicular and parallel to
    the normal. The caller is responsible for detecting total internal
    reflection; the parallel component uses |1 - |perp|^2| so the result is
    always finite.

    Args:
        uv: The unit incident direction.
        n: The unit normal, facing against uv.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction. With a ratio of 1 this equals uv.
    """
    cos_theta = tm.min(tm.dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Schlick's approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        ref_idx: Refractive index ratio.

    Returns:
        The approximate probability of reflection.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vector(stream: ti.i32, low: ti.f64, high: ti.f64) -> vec3:
    """Draw a vector whose components are independent in [low, high)."""
    return vec3(
        random_range(stream, low, high),
        random_range(stream, low, high),
        random_range(stream, low, high),
    )


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Rejection-sample a point uniformly inside the unit ball.

    Returns:
        A random point with squared length < 1.
    """
    p = random_vector(stream, -1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vector(stream, -1.0, 1.0)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """A random direction uniformly distributed on the unit sphere."""
    p = random_in_unit_sphere(stream)
    # The origin itself cannot be normalized
    while length_squared(p) < 1e-160:
        p = random_in_unit_sphere(stream)
    return unit_vector(p)


@ti.func
def random_in_hemisphere(stream: ti.i32, normal: vec3) -> vec3:
    """A random point in the unit ball, flipped into the normal's hemisphere."""
    p = random_in_unit_sphere(stream)
    if tm.dot(p, normal) <= 0.0:
        p = -p
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Rejection-sample a point uniformly inside the unit disk at z = 0.

    Used for thin-lens depth-of-field sampling.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(random_range(stream, -1.0, 1.0), random_range(stream, -1.0, 1.0), 0.0)
    while p.x * p.x + p.y * p.y >= 1.0:
        p = vec3(random_range(stream, -1.0, 1.0), random_range(stream, -1.0, 1.0), 0.0)
    return p
