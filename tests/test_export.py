"""Tests for PPM and Pillow image export."""

import numpy as np
import pytest
from PIL import Image


@pytest.fixture
def tiny_pixels():
    """A 2 x 3 image with distinct corner colors, top row first."""
    pixels = np.zeros((2, 3, 3), dtype=np.uint8)
    pixels[0, 0] = (255, 0, 0)
    pixels[0, 2] = (0, 255, 0)
    pixels[1, 0] = (0, 0, 255)
    pixels[1, 2] = (12, 34, 56)
    return pixels


class TestFormatPPM:
    """Tests for format_ppm."""

    def test_layout(self, tiny_pixels):
        from src.python.output.export import format_ppm

        text = format_ppm(tiny_pixels)

        assert text == (
            "P3\n"
            "3 2\n"
            "255\n"
            "255 0 0\n"
            "0 0 0\n"
            "0 255 0\n"
            "0 0 255\n"
            "0 0 0\n"
            "12 34 56\n"
        )

    def test_accepts_pixel_buffer(self, tiny_pixels):
        from src.python.core.renderer import PixelBuffer
        from src.python.output.export import format_ppm

        assert format_ppm(PixelBuffer(pixels=tiny_pixels)) == format_ppm(tiny_pixels)

    def test_line_count(self):
        from src.python.output.export import format_ppm

        text = format_ppm(np.full((4, 5, 3), 128, dtype=np.uint8))
        lines = text.splitlines()

        assert len(lines) == 3 + 4 * 5
        assert all(line == "128 128 128" for line in lines[3:])

    @pytest.mark.parametrize(
        "pixels",
        [
            np.zeros((2, 2), dtype=np.uint8),
            np.zeros((2, 2, 4), dtype=np.uint8),
            np.zeros((2, 2, 3), dtype=np.float32),
        ],
    )
    def test_invalid_buffer_raises(self, pixels):
        from src.python.output.export import format_ppm

        with pytest.raises(ValueError):
            format_ppm(pixels)


class TestWriteFiles:
    """Tests for write_ppm, save_png and save_image."""

    def test_write_ppm(self, tiny_pixels, tmp_path):
        from src.python.output.export import format_ppm, write_ppm

        path = tmp_path / "out.ppm"
        write_ppm(tiny_pixels, path)

        assert path.read_text(encoding="ascii") == format_ppm(tiny_pixels)

    def test_invalid_buffer_writes_nothing(self, tmp_path):
        from src.python.output.export import write_ppm

        path = tmp_path / "bad.ppm"
        with pytest.raises(ValueError):
            write_ppm(np.zeros((2, 2), dtype=np.uint8), path)
        assert not path.exists()

    def test_missing_directory_raises_oserror(self, tiny_pixels, tmp_path):
        from src.python.output.export import write_ppm

        with pytest.raises(OSError):
            write_ppm(tiny_pixels, tmp_path / "missing" / "out.ppm")

    def test_write_ppm_overwrites_and_leaves_no_temp_files(self, tiny_pixels, tmp_path):
        from src.python.output.export import format_ppm, write_ppm

        path = tmp_path / "out.ppm"
        path.write_text("old contents", encoding="ascii")
        write_ppm(tiny_pixels, path)

        assert path.read_text(encoding="ascii") == format_ppm(tiny_pixels)
        assert [p.name for p in tmp_path.iterdir()] == ["out.ppm"]

    def test_failed_write_keeps_existing_file(self, tiny_pixels, tmp_path, monkeypatch):
        from src.python.output import export

        path = tmp_path / "out.ppm"
        path.write_text("old contents", encoding="ascii")

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(export.os, "replace", failing_replace)
        with pytest.raises(OSError, match="disk full"):
            export.write_ppm(tiny_pixels, path)

        assert path.read_text(encoding="ascii") == "old contents"
        assert [p.name for p in tmp_path.iterdir()] == ["out.ppm"]

    def test_save_png_round_trip(self, tiny_pixels, tmp_path):
        from src.python.output.export import save_png

        path = tmp_path / "out.png"
        save_png(tiny_pixels, path)

        with Image.open(path) as image:
            assert image.size == (3, 2)
            np.testing.assert_array_equal(np.asarray(image.convert("RGB")), tiny_pixels)

    def test_save_image_dispatches_on_suffix(self, tiny_pixels, tmp_path):
        from src.python.output.export import save_image

        ppm_path = tmp_path / "image.PPM"
        png_path = tmp_path / "image.png"
        save_image(tiny_pixels, ppm_path)
        save_image(tiny_pixels, png_path)

        assert ppm_path.read_text(encoding="ascii").startswith("P3\n3 2\n255\n")
        with Image.open(png_path) as image:
            assert image.format == "PNG"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
