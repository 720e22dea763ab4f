"""
Image preparation for embedding.

Accepts already-fetched image bytes (or a local path), measures the natural
size with Pillow, re-encodes formats Word cannot embed, and resolves the
display geometry requested by the placeholder.
"""
from __future__ import annotations

import io
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.exceptions import ImageResolutionError
from docx_templater.model.placeholder import ImageGeometry, ResolvedGeometry
from docx_templater.processor.image_dimensions import ImageDimensionResolver
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

# Pillow format name -> (extension, MIME type) for formats Word embeds as-is.
EMBEDDABLE_FORMATS = {
    "PNG": ("png", "image/png"),
    "JPEG": ("jpeg", "image/jpeg"),
    "GIF": ("gif", "image/gif"),
    "BMP": ("bmp", "image/bmp"),
    "TIFF": ("tiff", "image/tiff"),
}

_PNG_SAFE_MODES = ("1", "L", "LA", "I", "P", "RGB", "RGBA")


@dataclass(slots=True)
class ImageSource:
    """Raw image bytes handed over by the caller (downloaded or read from disk)."""

    data: bytes
    content_type: Optional[str] = None
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, "os.PathLike[str]"]) -> "ImageSource":
        file_path = Path(path)
        try:
            data = file_path.read_bytes()
        except OSError as exc:
            raise ImageResolutionError(f"Image not found: {file_path}") from exc
        except ValueError as exc:
            raise ImageResolutionError(f"Image not found: {str(file_path)!r}") from exc
        content_type, _ = mimetypes.guess_type(file_path.name)
        return cls(data=data, content_type=content_type, filename=file_path.name)

    @classmethod
    def from_bytes(cls, data: bytes, content_type: Optional[str] = None) -> "ImageSource":
        return cls(data=bytes(data), content_type=content_type)

    @classmethod
    def coerce(cls, value: Any) -> "ImageSource":
        """Accept an ``ImageSource``, raw bytes, or a local file path."""
        if isinstance(value, ImageSource):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls.from_bytes(bytes(value))
        if isinstance(value, (str, os.PathLike)):
            return cls.from_path(value)
        raise ImageResolutionError(f"Unsupported image value of type {type(value).__name__}")


@dataclass(slots=True)
class PreparedImage:
    """Image bytes ready to be stored in the package, with display geometry."""

    data: bytes
    extension: str
    content_type: str
    natural_size: Tuple[int, int]
    geometry: ResolvedGeometry


class ImageProcessor:
    """Decodes image sources and computes their display size."""

    def __init__(self, config: PatcherConfig = DEFAULT_CONFIG, resolver: Optional[ImageDimensionResolver] = None) -> None:
        self._config = config
        self._resolver = resolver or ImageDimensionResolver(config)

    def prepare(self, value: Any, geometry: ImageGeometry) -> PreparedImage:
        source = ImageSource.coerce(value)
        if not source.data:
            raise ImageResolutionError("Image data is empty")

        try:
            with Image.open(io.BytesIO(source.data)) as image:
                image_format = (image.format or "").upper()
                natural_width, natural_height = image.size
                if image_format in EMBEDDABLE_FORMATS:
                    data = source.data
                    extension, content_type = EMBEDDABLE_FORMATS[image_format]
                else:
                    LOGGER.debug("Re-encoding %s image as PNG", image_format or "unknown")
                    data = self._to_png(image)
                    extension, content_type = EMBEDDABLE_FORMATS["PNG"]
        except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
            raise ImageResolutionError(f"Unreadable image data ({source.content_type or 'unknown type'})") from exc
        except (OSError, ValueError) as exc:
            raise ImageResolutionError(f"Error decoding image: {exc}") from exc

        resolved = self._resolver.resolve(geometry, natural_width, natural_height)
        if resolved.width <= 0 or resolved.height <= 0:
            resolved = ResolvedGeometry(*self._config.fallback_image_size)

        return PreparedImage(
            data=data,
            extension=extension,
            content_type=content_type,
            natural_size=(natural_width, natural_height),
            geometry=resolved,
        )

    @staticmethod
    def _to_png(image: Image.Image) -> bytes:
        if image.mode not in _PNG_SAFE_MODES:
            image = image.convert("RGBA")
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
