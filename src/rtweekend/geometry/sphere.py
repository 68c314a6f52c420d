"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the closest-hit
intersection routine used by the scene.

Intersection solves |origin + t * direction - center|^2 = radius^2 in the
half-b form:

    a * t^2 + 2 * half_b * t + c = 0

    a      = dot(direction, direction)
    half_b = dot(oc, direction)
    c      = dot(oc, oc) - radius^2
    oc     = origin - center

The nearer root is tried first and the farther one only if the nearer lies
outside the open interval (t_min, t_max). Both bounds are exclusive.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.rtweekend.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.rtweekend.core.ray import Ray, ray_at, vec3

# Rays whose squared direction length falls below this never hit anything
DEGENERATE_DIRECTION_EPSILON = 1e-300


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material handle.

    Attributes:
        center: The center point of the sphere.
        radius: The radius. A negative radius turns the outward normal
            inward, which models the inner wall of a hollow glass shell.
        material_id: Unified id of the material the sphere is made of.
    """

    center: vec3
    radius: ti.f64
    material_id: ti.i32


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected the surface, 0 if it missed.
        t: Ray parameter of the intersection. Only valid if hit == 1.
        point: World-space intersection point. Only valid if hit == 1.
        normal: Unit surface normal, always facing against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray struck the outside of the surface (the
            geometric outward normal already faced the ray), 0 otherwise.
        material_id: Material of the surface that was hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """A HitRecord that reports no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a geometric normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray hit
        the outside and normal always satisfies dot(ray_direction, normal) <= 0.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def hit_sphere(sphere: Sphere, ray: Ray, t_min: ti.f64, t_max: ti.f64) -> HitRecord:
    """Find the closest intersection of a ray with a sphere in (t_min, t_max).

    Args:
        sphere: The sphere to test.
        ray: The incoming ray. Its direction need not be normalized.
        t_min: Exclusive lower bound on t (keeps scattered rays from
            re-hitting the surface they leave).
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord. Check the hit field to determine if an intersection
        occurred. A zero-length ray direction never hits.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss_record()

    if a > DEGENERATE_DIRECTION_EPSILON and discriminant >= 0.0:
        sqrtd = tm.sqrt(discriminant)

        # Nearer root first, the farther one if the nearer is out of range
        root = (-half_b - sqrtd) / a
        valid = root > t_min and root < t_max
        if not valid:
            root = (-half_b + sqrtd) / a
            valid = root > t_min and root < t_max

        if valid:
            point = ray_at(ray, root)
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray.direction, outward_normal)
            result = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return result

