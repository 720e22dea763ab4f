"""Tests for image decoding and sizing with Pillow."""
import io
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from docx_templater.exceptions import ImageResolutionError
from docx_templater.model.placeholder import ImageGeometry, ResolvedGeometry
from docx_templater.processor.image_processor import ImageProcessor, ImageSource


def _image_bytes(size=(40, 20), image_format="PNG", mode="RGB") -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color=(200, 30, 30) if mode == "RGB" else 0).save(buffer, format=image_format)
    return buffer.getvalue()


class ImageProcessorTest(unittest.TestCase):
    """Natural size detection, format handling and error reporting."""

    def setUp(self) -> None:
        self.processor = ImageProcessor()

    def test_png_is_kept_as_is(self) -> None:
        data = _image_bytes()
        prepared = self.processor.prepare(data, ImageGeometry())
        self.assertEqual(prepared.data, data)
        self.assertEqual(prepared.extension, "png")
        self.assertEqual(prepared.content_type, "image/png")
        self.assertEqual(prepared.natural_size, (40, 20))
        self.assertEqual(prepared.geometry, ResolvedGeometry(40, 20))

    def test_jpeg_detected(self) -> None:
        prepared = self.processor.prepare(_image_bytes(image_format="JPEG"), ImageGeometry(requested_width=20))
        self.assertEqual(prepared.extension, "jpeg")
        self.assertEqual(prepared.geometry, ResolvedGeometry(20, 10))

    def test_unsupported_format_is_reencoded(self) -> None:
        prepared = self.processor.prepare(_image_bytes(image_format="PPM"), ImageGeometry())
        self.assertEqual(prepared.extension, "png")
        with Image.open(io.BytesIO(prepared.data)) as image:
            self.assertEqual(image.format, "PNG")

    def test_garbage_bytes_raise(self) -> None:
        with self.assertRaises(ImageResolutionError):
            self.processor.prepare(b"definitely not an image", ImageGeometry())

    def test_empty_bytes_raise(self) -> None:
        with self.assertRaises(ImageResolutionError):
            self.processor.prepare(b"", ImageGeometry())

    def test_missing_file_raises(self) -> None:
        with self.assertRaisesRegex(ImageResolutionError, "Image not found"):
            self.processor.prepare("/nonexistent/picture.png", ImageGeometry())

    def test_path_with_null_byte_raises(self) -> None:
        with self.assertRaisesRegex(ImageResolutionError, "Image not found"):
            self.processor.prepare("bad\x00path.png", ImageGeometry())

    def test_unsupported_value_type(self) -> None:
        with self.assertRaises(ImageResolutionError):
            self.processor.prepare(12345, ImageGeometry())

    def test_source_from_path(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "logo.png"
            path.write_bytes(_image_bytes((8, 8)))
            source = ImageSource.from_path(path)
            self.assertEqual(source.filename, "logo.png")
            self.assertEqual(source.content_type, "image/png")
            self.assertEqual(self.processor.prepare(path, ImageGeometry()).natural_size, (8, 8))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
