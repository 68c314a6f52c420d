"""Unit tests for image export.

Tests cover:
- Gamma encoding and quantization
- PPM (P3) writing and reading
- PNG writing via Pillow
"""

import io

import numpy as np
import pytest


class TestGammaEncode:
    """Tests for gamma-2 encoding of sample sums."""

    @pytest.mark.parametrize(
        "value,expected",
        [(1.0, 255), (4.0, 255), (0.25, 128), (0.0, 0), (-0.5, 0), (float("nan"), 0)],
    )
    def test_single_channel(self, value, expected):
        from src.rtweekend.preview.export import gamma_encode

        encoded = gamma_encode(np.full((1, 1, 3), value), 1)
        assert encoded.dtype == np.uint8
        assert (encoded == expected).all()

    def test_averages_over_samples(self):
        from src.rtweekend.preview.export import gamma_encode

        # Sum of 4 samples averaging 0.25
        encoded = gamma_encode(np.full((2, 3, 3), 1.0), 4)
        assert encoded.shape == (2, 3, 3)
        assert (encoded == 128).all()

    def test_channels_independent(self):
        from src.rtweekend.preview.export import gamma_encode

        encoded = gamma_encode(np.array([[[0.75, 0.85, 1.0]]]), 1)
        assert encoded.tolist() == [[[221, 236, 255]]]

    def test_invalid_sample_count(self):
        from src.rtweekend.preview.export import gamma_encode

        with pytest.raises(ValueError, match="samples_per_pixel"):
            gamma_encode(np.zeros((1, 1, 3)), 0)


class TestPPM:
    """Tests for plain-text pixel maps."""

    def test_layout(self, tmp_path):
        from src.rtweekend.preview.export import PPMImageWriter

        image = np.array(
            [[[255, 0, 0], [0, 255, 0]], [[0, 0, 255], [1, 2, 3]]],
            dtype=np.uint8,
        )
        path = tmp_path / "image.ppm"
        with PPMImageWriter(path) as writer:
            writer.write(image)

        lines = path.read_text(encoding="ascii").splitlines()
        assert lines == ["P3", "2 2", "255", "255 0 0", "0 255 0", "0 0 255", "1 2 3"]

    def test_non_square(self, tmp_path):
        from src.rtweekend.preview.export import load_ppm, save_ppm

        image = np.arange(4 * 3 * 3, dtype=np.uint8).reshape(3, 4, 3)
        path = tmp_path / "wide.ppm"
        save_ppm(image, path)

        assert path.read_text(encoding="ascii").splitlines()[1] == "4 3"
        np.testing.assert_array_equal(load_ppm(path), image)

    def test_missing_directory(self, tmp_path):
        from src.rtweekend.preview.export import PPMImageWriter

        with pytest.raises(OSError):
            PPMImageWriter(tmp_path / "nope" / "image.ppm")

    def test_wrong_shape(self, tmp_path):
        from src.rtweekend.preview.export import PPMImageWriter

        with PPMImageWriter(tmp_path / "image.ppm") as writer:
            with pytest.raises(ValueError, match="shape"):
                writer.write(np.zeros((2, 2), dtype=np.uint8))

    def test_wrong_dtype(self, tmp_path):
        from src.rtweekend.preview.export import PPMImageWriter

        with PPMImageWriter(tmp_path / "image.ppm") as writer:
            with pytest.raises(ValueError, match="uint8"):
                writer.write(np.zeros((2, 2, 3), dtype=np.float64))

    def test_write_twice(self, tmp_path):
        from src.rtweekend.preview.export import PPMImageWriter

        writer = PPMImageWriter(tmp_path / "image.ppm")
        writer.write(np.zeros((1, 1, 3), dtype=np.uint8))
        with pytest.raises(RuntimeError, match="closed"):
            writer.write(np.zeros((1, 1, 3), dtype=np.uint8))

    def test_load_rejects_other_formats(self, tmp_path):
        from src.rtweekend.preview.export import load_ppm

        path = tmp_path / "binary.ppm"
        path.write_text("P6\n1 1\n255\n0 0 0\n", encoding="ascii")
        with pytest.raises(ValueError, match="not a P3"):
            load_ppm(path)

    def test_load_rejects_max_value(self, tmp_path):
        from src.rtweekend.preview.export import load_ppm

        path = tmp_path / "deep.ppm"
        path.write_text("P3\n1 1\n65535\n0 0 0\n", encoding="ascii")
        with pytest.raises(ValueError, match="max value"):
            load_ppm(path)

    def test_load_rejects_truncated(self, tmp_path):
        from src.rtweekend.preview.export import load_ppm

        path = tmp_path / "short.ppm"
        path.write_text("P3\n2 1\n255\n0 0 0\n", encoding="ascii")
        with pytest.raises(ValueError, match="expected 6 samples"):
            load_ppm(path)


class TestPNG:
    """Tests for PNG output."""

    def test_round_trip(self, tmp_path):
        from PIL import Image

        from src.rtweekend.preview.export import save_png

        image = np.random.default_rng(0).integers(0, 256, size=(5, 7, 3), dtype=np.uint8)
        path = tmp_path / "image.png"
        save_png(image, path)

        with Image.open(path) as img:
            assert img.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(img), image)

    def test_file_object(self):
        from PIL import Image

        from src.rtweekend.preview.export import save_png

        image = np.zeros((2, 2, 3), dtype=np.uint8)
        buffer = io.BytesIO()
        save_png(image, buffer)
        buffer.seek(0)
        with Image.open(buffer) as img:
            assert img.size == (2, 2)
