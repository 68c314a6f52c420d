"""Unit tests for render settings and scene files.

Tests cover:
- RenderSettings defaults, validation and updates
- Backend selection
- Loading JSON scene files
"""

import json

import pytest

SCENE = {
    "camera": {
        "lookfrom": [13, 2, 3],
        "lookat": [0, 0, 0],
        "vfov": 20,
        "aperture": 0.1,
        "focus_dist": 10,
    },
    "materials": [
        {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
        {"type": "metal", "albedo": [0.7, 0.6, 0.5], "fuzz": 0.0},
        {"type": "dielectric", "ior": 1.5},
    ],
    "spheres": [
        {"center": [0, -1000, 0], "radius": 1000, "material_id": 0},
        {"center": [4, 1, 0], "radius": 1, "material_id": 1},
        {"center": [0, 1, 0], "radius": 1, "material_id": 2},
    ],
    "render": {"image_width": 120, "samples_per_pixel": 8, "seed": 7},
}


def _write_scene(tmp_path, data, name="scene.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestRenderSettings:
    """Tests for RenderSettings."""

    def test_defaults(self):
        from src.rtweekend.config import RenderSettings

        settings = RenderSettings()
        assert settings.image_width == 400
        assert settings.image_height == 225
        assert settings.samples_per_pixel == 100
        assert settings.max_depth == 50
        assert settings.seed is None
        settings.validate()

    def test_height_truncates(self):
        from src.rtweekend.config import RenderSettings

        assert RenderSettings(image_width=1200, aspect_ratio=3.0 / 2.0).image_height == 800
        assert RenderSettings(image_width=10, aspect_ratio=3.0).image_height == 3

    def test_zero_depth_allowed(self):
        from src.rtweekend.config import RenderSettings

        RenderSettings(max_depth=0).validate()

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"image_width": 0}, "image_width"),
            ({"aspect_ratio": -1.0}, "aspect_ratio"),
            ({"image_width": 1, "aspect_ratio": 2.0}, "height below 1"),
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"max_depth": -1}, "max_depth"),
            ({"image_width": 1600, "aspect_ratio": 1.0}, "exceed maximum"),
        ],
    )
    def test_invalid(self, kwargs, message):
        from src.rtweekend.config import RenderSettings

        with pytest.raises(ValueError, match=message):
            RenderSettings(**kwargs).validate()

    def test_updated(self):
        from src.rtweekend.config import RenderSettings

        base = RenderSettings()
        changed = base.updated({"image_width": 200, "seed": 3})
        assert changed.image_width == 200
        assert changed.seed == 3
        assert changed.samples_per_pixel == base.samples_per_pixel
        # The original is untouched
        assert base.image_width == 400

    def test_updated_unknown_key(self):
        from src.rtweekend.config import RenderSettings

        with pytest.raises(ValueError, match="Unknown render settings: width"):
            RenderSettings().updated({"width": 10})


class TestInitBackend:
    """Tests for backend selection."""

    def test_unknown_arch(self):
        from src.rtweekend.config import init_backend

        with pytest.raises(ValueError, match="Unknown arch"):
            init_backend("tpu")


class TestLoadSceneFile:
    """Tests for JSON scene files."""

    def test_load(self, tmp_path):
        from src.rtweekend.config import load_scene_file
        from src.rtweekend.scene.manager import MaterialType

        scene, camera, overrides = load_scene_file(_write_scene(tmp_path, SCENE))

        assert scene.get_sphere_count() == 3
        assert scene.get_material_count() == 3
        assert scene.get_material_type_python(2) == MaterialType.DIELECTRIC
        assert camera.lookfrom == (13.0, 2.0, 3.0)
        assert camera.vfov == 20
        assert camera.aperture == 0.1
        assert overrides == {"image_width": 120, "samples_per_pixel": 8, "seed": 7}

    def test_optional_sections(self, tmp_path):
        from src.rtweekend.camera.thin_lens import ThinLensCamera
        from src.rtweekend.config import load_scene_file

        data = {"materials": SCENE["materials"], "spheres": SCENE["spheres"]}
        _, camera, overrides = load_scene_file(_write_scene(tmp_path, data))
        assert camera == ThinLensCamera()
        assert overrides == {}

    @pytest.mark.parametrize("missing", ["materials", "spheres"])
    def test_missing_key(self, tmp_path, missing):
        from src.rtweekend.config import load_scene_file

        data = {k: v for k, v in SCENE.items() if k != missing}
        with pytest.raises(ValueError, match=f"missing required key '{missing}'"):
            load_scene_file(_write_scene(tmp_path, data))

    def test_invalid_json(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="invalid JSON"):
            load_scene_file(path)

    def test_not_an_object(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        with pytest.raises(ValueError, match="expected a JSON object"):
            load_scene_file(_write_scene(tmp_path, [1, 2, 3]))

    def test_missing_file(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        with pytest.raises(OSError):
            load_scene_file(tmp_path / "absent.json")

    def test_unknown_material(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        data = dict(SCENE, materials=[{"type": "plastic"}])
        with pytest.raises(ValueError, match="Unknown material type"):
            load_scene_file(_write_scene(tmp_path, data))

    def test_dangling_material_id(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        data = dict(SCENE, spheres=[{"center": [0, 0, 0], "radius": 1, "material_id": 9}])
        with pytest.raises(ValueError, match="Invalid material_id"):
            load_scene_file(_write_scene(tmp_path, data))

    def test_unknown_camera_key(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        data = dict(SCENE, camera={"fov": 40})
        with pytest.raises(ValueError, match="Unknown camera settings: fov"):
            load_scene_file(_write_scene(tmp_path, data))

    def test_numeric_strings_converted(self, tmp_path):
        from src.rtweekend.config import load_scene_file

        data = dict(SCENE, camera={"vfov": "20", "lookfrom": ["13", 2, 3]})
        _, camera, _ = load_scene_file(_write_scene(tmp_path, data))
        assert camera.vfov == 20.0
        assert isinstance(camera.vfov, float)
        assert camera.lookfrom == (13.0, 2.0, 3.0)

    @pytest.mark.parametrize(
        "camera",
        [
            {"vfov": "wide"},
            {"aperture": None},
            {"focus_dist": [1, 2, 3]},
            {"lookat": [0, 0]},
            {"vup": "010"},
            {"lookfrom": [1, "x", 3]},
        ],
    )
    def test_bad_camera_value(self, tmp_path, camera):
        from src.rtweekend.config import load_scene_file

        data = dict(SCENE, camera=camera)
        with pytest.raises(ValueError, match="Invalid camera setting"):
            load_scene_file(_write_scene(tmp_path, data))
