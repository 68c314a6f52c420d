"""Ready-made scenes.

Each factory clears the scene registries, fills them and returns the
SceneManager together with a matching ThinLensCamera. The camera still has
to be passed to ``setup_camera`` before rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.rtweekend.scene.builders import create_random_scene
    >>> from src.rtweekend.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=42)
    >>> setup_camera(camera)
"""

import math

import numpy as np

from src.rtweekend.camera.thin_lens import ThinLensCamera
from src.rtweekend.scene.manager import SceneManager

# =============================================================================
# Random Scene Parameters
# =============================================================================

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GRID_RANGE = range(-11, 11)
SMALL_RADIUS = 0.2
GLASS_IOR = 1.5

# Small spheres closer than this to the feature point are skipped
FEATURE_POINT = np.array([4.0, 0.2, 0.0])
FEATURE_CLEARANCE = 0.9

# Material mix for the small spheres
DIFFUSE_PROBABILITY = 0.8
METAL_PROBABILITY = 0.15


def random_scene_camera() -> ThinLensCamera:
    """Camera for the random scene: wide shot of the three large spheres."""
    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=3.0 / 2.0,
        aperture=0.1,
        focus_dist=10.0,
    )


def create_random_scene(seed: int | None = None) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random sphere field.

    A large grey ground sphere carries a 22 x 22 grid of small spheres with
    randomly chosen materials (80% diffuse, 15% metal, 5% glass) and three
    large feature spheres: glass in the middle, diffuse brown on the left and
    a polished metal on the right.

    Args:
        seed: Seed for the layout. The same seed always gives the same scene.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -1000.0, 0.0), 1000.0, GROUND_ALBEDO)

    # One glass material serves every small glass sphere
    glass = None

    for a in GRID_RANGE:
        for b in GRID_RANGE:
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), SMALL_RADIUS, b + 0.9 * rng.random()])

            if np.linalg.norm(center - FEATURE_POINT) <= FEATURE_CLEARANCE:
                continue

            center_tuple = (float(center[0]), float(center[1]), float(center[2]))
            if choose_mat < DIFFUSE_PROBABILITY:
                albedo = rng.random(3) * rng.random(3)
                scene.add_lambertian_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()))
            elif choose_mat < DIFFUSE_PROBABILITY + METAL_PROBABILITY:
                albedo = rng.uniform(0.0, 0.5, size=3)
                fuzz = float(rng.uniform(0.0, 0.5))
                scene.add_metal_sphere(center_tuple, SMALL_RADIUS, tuple(albedo.tolist()), fuzz)
            else:
                if glass is None:
                    glass = scene.add_dielectric_material(GLASS_IOR)
                scene.add_sphere(center_tuple, SMALL_RADIUS, glass)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), 0.0)

    return scene, random_scene_camera()


def create_three_sphere_scene() -> tuple[SceneManager, ThinLensCamera]:
    """Create the three-sphere demo.

    A diffuse blue sphere sits between a hollow glass sphere (a negative-radius
    shell inside a regular one) and a gold metal sphere, on a large yellowish
    ground sphere. The camera focuses on the middle sphere with a wide aperture.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    center = scene.add_lambertian_material((0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(GLASS_IOR)
    gold = scene.add_metal_material((0.8, 0.6, 0.2), 0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    lookfrom = (3.0, 3.0, 2.0)
    lookat = (0.0, 0.0, -1.0)
    camera = ThinLensCamera(
        lookfrom=lookfrom,
        lookat=lookat,
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=16.0 / 9.0,
        aperture=2.0,
        focus_dist=math.dist(lookfrom, lookat),
    )
    return scene, camera
