"""
Integration tests for file loading, PNG export, the TextureProcessor and the CLI.
"""

import sys
import tempfile
from pathlib import Path
import numpy as np
import unittest
from unittest import mock
from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from packed_color import (
    DestinationUndefined,
    EncodeFailure,
    SizeMismatch,
    SourceImage,
    SourceUnreadable,
    TextureProcessor,
    load_source,
)
from packed_color.cli import main
from packed_color.exporters import PNGExporter, load_png, to_uint8, unique_path


def write_png(path: Path, size=(4, 4), color=(128, 128, 128, 255)) -> Path:
    Image.new("RGBA", size, color).save(path)
    return path


_real_save = Image.Image.save


def failing_save(suffix: str = ".png"):
    """Image.save replacement that leaves a truncated file and raises for matching paths."""

    def save(self, fp, format=None, **params):
        if not str(fp).endswith(suffix):
            return _real_save(self, fp, format=format, **params)
        Path(fp).write_bytes(b"\x89PNG partial")
        raise OSError("No space left on device")

    return save


class TestIngestion(unittest.TestCase):
    """Tests for loading source textures."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_load_normalizes(self):
        """8-bit samples map to [0, 1] and the name comes from the file."""
        path = write_png(self.tmp / "stone.png", size=(3, 2), color=(255, 0, 51, 255))
        source = load_source(path)

        assert source.name == "stone"
        assert source.size == (3, 2)
        assert source.pixels.shape == (6, 4)
        assert np.allclose(source.pixels[0], [1.0, 0.0, 0.2, 1.0])

    def test_load_rgb_gets_alpha(self):
        """Non-RGBA images are converted."""
        path = self.tmp / "gray.png"
        Image.new("L", (2, 2), 64).save(path)
        source = load_source(path, name="custom")

        assert source.name == "custom"
        assert source.pixels.shape == (4, 4)
        assert np.allclose(source.pixels[:, 3], 1.0)

    def test_missing_file(self):
        """Missing sources are unreadable."""
        with self.assertRaises(SourceUnreadable):
            load_source(self.tmp / "missing.png")

    def test_garbage_file(self):
        """Undecodable sources are unreadable."""
        path = self.tmp / "broken.png"
        path.write_bytes(b"not an image")
        with self.assertRaises(SourceUnreadable):
            load_source(path)

    def test_from_array_roundtrip(self):
        """to_array undoes the flattening."""
        rgba = np.random.default_rng(0).random((3, 5, 4))
        source = SourceImage.from_array(rgba, "noise")
        assert source.size == (5, 3)
        assert np.array_equal(source.to_array(), rgba)

    def test_load_16bit_gray(self):
        """16-bit samples are scaled by 65535, not clipped at 255."""
        path = self.tmp / "height.png"
        Image.fromarray(np.full((2, 2), 32768, dtype=np.uint16)).save(path)
        source = load_source(path)

        assert source.pixels.shape == (4, 4)
        assert np.allclose(source.pixels[:, :3], 32768 / 65535)
        assert np.allclose(source.pixels[:, 3], 1.0)

    def test_from_array_uint16(self):
        """Integer arrays are normalized by their dtype range."""
        rgba = np.full((2, 3, 4), 65535, dtype=np.uint16)
        rgba[..., 0] = 32768
        source = SourceImage.from_array(rgba, "deep")

        assert np.allclose(source.pixels[:, 0], 32768 / 65535)
        assert np.allclose(source.pixels[:, 1:], 1.0)

    def test_from_array_bad_shape(self):
        """Single channel arrays are rejected."""
        with self.assertRaises(ValueError):
            SourceImage.from_array(np.zeros((4, 4)), "flat")


class TestPNGExporter(unittest.TestCase):
    """Tests for PNG writing and naming."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_to_uint8_clamps(self):
        """Values outside [0, 1] are clamped."""
        values = np.array([[-0.5, 0.5, 1.5]])
        assert to_uint8(values).tolist() == [[0, 128, 255]]

    def test_export_and_load(self):
        """Written pixels read back within 8-bit precision."""
        buffer = np.random.default_rng(1).random((6, 3))
        path = PNGExporter().export(buffer, 3, 2, self.tmp / "a.col.png")

        assert path.exists()
        assert np.allclose(load_png(path), buffer, atol=1.0 / 255.0)

    def test_unique_path(self):
        """Existing names get a numeric postfix."""
        first = unique_path(self.tmp, "stone", ".col.png")
        assert first.name == "stone.col.png"

        first.write_bytes(b"")
        second = unique_path(self.tmp, "stone", ".col.png")
        assert second.name == "stone 1.col.png"

        second.write_bytes(b"")
        assert unique_path(self.tmp, "stone", ".col.png").name == "stone 2.col.png"

    def test_encode_failure_bad_shape(self):
        """A buffer that does not fit the size fails before anything is written."""
        path = self.tmp / "bad.col.png"
        with self.assertRaises(EncodeFailure) as ctx:
            PNGExporter().export(np.zeros((5, 3)), 2, 2, path)

        assert ctx.exception.path == path
        assert not path.exists()

    def test_encode_failure_removes_partial_file(self):
        """A write that fails midway leaves no truncated file behind."""
        path = self.tmp / "partial.col.png"
        with mock.patch.object(Image.Image, "save", failing_save()):
            with self.assertRaises(EncodeFailure) as ctx:
                PNGExporter().export(np.zeros((4, 3)), 2, 2, path)

        assert ctx.exception.path == path
        assert isinstance(ctx.exception.cause, OSError)
        assert not path.exists()

    def test_encode_failure_keeps_existing_file(self):
        """A file that existed before the export is not deleted."""
        path = self.tmp / "existing.col.png"
        path.write_bytes(b"old")
        with mock.patch.object(Image.Image, "save", failing_save()):
            with self.assertRaises(EncodeFailure):
                PNGExporter().export(np.zeros((4, 3)), 2, 2, path)

        assert path.exists()


class TestTextureProcessor(unittest.TestCase):
    """Integration tests for TextureProcessor."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.out = self.tmp / "packed"

    def tearDown(self):
        self._tmp.cleanup()

    def test_process_two_sources(self):
        """Writes one .col.png per source and one joined .gs.png."""
        stone = write_png(self.tmp / "stone.png")
        moss = write_png(self.tmp / "moss.png", color=(20, 200, 40, 255))

        result = TextureProcessor().process([stone, moss, None], self.out)

        assert result.color_paths[0] == self.out / "stone.col.png"
        assert result.color_paths[1] == self.out / "moss.col.png"
        assert result.color_paths[2] is None
        assert result.luminance_path == self.out / "stone_moss.gs.png"
        for path in result.written:
            assert path.exists()

        with Image.open(result.luminance_path) as img:
            assert img.size == (4, 4)
            assert img.mode == "RGB"

    def test_gray_luminance_texture(self):
        """Mid gray lands in R of the luminance texture, G and B stay black."""
        gray = SourceImage.from_array(np.full((2, 2, 4), 0.5), "gray")
        processor = TextureProcessor("ycbcr", "none", "none")
        result = processor.process_arrays([gray], self.out)

        luminance = load_png(result.luminance_path)
        assert np.allclose(luminance[:, 0], 128 / 255)
        assert np.all(luminance[:, 1:] == 0.0)

        color = load_png(result.color_paths[0])
        assert np.allclose(color, 128 / 255)

    def test_repeat_run_does_not_overwrite(self):
        """A second run gets postfixed names."""
        stone = write_png(self.tmp / "stone.png")
        TextureProcessor().process([stone], self.out)
        result = TextureProcessor().process([stone], self.out)

        assert result.color_paths[0].name == "stone 1.col.png"
        assert result.luminance_path.name == "stone 1.gs.png"

    def test_destination_undefined(self):
        """No directory or a file path is rejected before packing."""
        gray = SourceImage.from_array(np.full((2, 2, 4), 0.5), "gray")
        occupied = self.tmp / "file.txt"
        occupied.write_text("x")

        with self.assertRaises(DestinationUndefined):
            TextureProcessor().process_arrays([gray], None)
        with self.assertRaises(DestinationUndefined):
            TextureProcessor().process_arrays([gray], "")
        with self.assertRaises(DestinationUndefined):
            TextureProcessor().process_arrays([gray], occupied)

    def test_luminance_write_failure(self):
        """Color textures written before a failed .gs.png stay; the .gs.png does not."""
        stone = write_png(self.tmp / "stone.png")
        moss = write_png(self.tmp / "moss.png", color=(20, 200, 40, 255))

        with mock.patch.object(Image.Image, "save", failing_save(".gs.png")):
            with self.assertRaises(EncodeFailure) as ctx:
                TextureProcessor().process([stone, moss], self.out)

        assert ctx.exception.path == self.out / "stone_moss.gs.png"
        assert (self.out / "stone.col.png").exists()
        assert (self.out / "moss.col.png").exists()
        assert not (self.out / "stone_moss.gs.png").exists()
        assert sorted(p.name for p in self.out.iterdir()) == [
            "moss.col.png",
            "stone.col.png",
        ]

    def test_size_mismatch_writes_nothing(self):
        """Mismatched sources fail before the output directory is touched."""
        a = write_png(self.tmp / "a.png", size=(4, 4))
        b = write_png(self.tmp / "b.png", size=(8, 8))

        with self.assertRaises(SizeMismatch):
            TextureProcessor().process([a, b], self.out)
        assert not self.out.exists()

    def test_unreadable_source(self):
        """Broken files surface as SourceUnreadable."""
        broken = self.tmp / "broken.png"
        broken.write_bytes(b"\x89PNG broken")
        with self.assertRaises(SourceUnreadable):
            TextureProcessor().process([broken], self.out)


class TestCLI(unittest.TestCase):
    """Tests for the packcolor command."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.out = self.tmp / "out"

    def tearDown(self):
        self._tmp.cleanup()

    def test_single_source(self):
        """Exit code 0 and both files written."""
        stone = write_png(self.tmp / "stone.png")
        code = main(["--red", str(stone), "-o", str(self.out),
                     "--color-space", "ycocg", "--pre-dither", "sierra_lite"])

        assert code == 0
        assert (self.out / "stone.col.png").exists()
        assert (self.out / "stone.gs.png").exists()

    def test_no_sources(self):
        """Nothing to pack is an error."""
        assert main(["-o", str(self.out)]) == 1

    def test_size_mismatch(self):
        """Packing errors map to exit code 1."""
        a = write_png(self.tmp / "a.png", size=(4, 4))
        b = write_png(self.tmp / "b.png", size=(8, 8))
        assert main(["--red", str(a), "--blue", str(b), "-o", str(self.out)]) == 1

    def test_list_kernels(self):
        """Kernel listing exits cleanly."""
        assert main(["--list-kernels"]) == 0


if __name__ == "__main__":
    unittest.main(verbosity=2)
