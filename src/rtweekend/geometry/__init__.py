"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection and hit records

Intersection routines are Taichi functions (@ti.func) returning a HitRecord
whose ``hit`` flag tells whether the ray struck the shape.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_miss_record, set_face_normal

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "set_face_normal",
]
