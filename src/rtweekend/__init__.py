"""Offline Monte Carlo path tracer built on Taichi.

Renders scenes of spheres with diffuse, metal and glass materials through a
thin-lens camera, writing plain-text PPM or PNG images.

Subpackages:
    core: Random streams, rays and vector utilities, the integrator and the render driver
    geometry: The sphere primitive and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, the scene manager and ready-made scenes
    camera: Thin-lens camera with depth of field
    preview: Gamma encoding and image export

Call ``src.rtweekend.config.init_backend()`` before importing any subpackage.
"""

__version__ = "0.1.0"
