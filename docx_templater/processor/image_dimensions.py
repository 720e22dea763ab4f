"""Pure geometry for fitting an image into the size a placeholder asks for."""
from __future__ import annotations

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.model.placeholder import ImageGeometry, ResolvedGeometry


class ImageDimensionResolver:
    """Turns ``width``/``height``/``ratio`` options and a natural size into pixels."""

    def __init__(self, config: PatcherConfig = DEFAULT_CONFIG) -> None:
        self._default_width = config.ratio_default_width
        self._default_height = config.ratio_default_height

    def resolve(self, geometry: ImageGeometry, natural_width: int, natural_height: int) -> ResolvedGeometry:
        if geometry.ratio is not None:
            return self._resolve_ratio(geometry, natural_width, natural_height)

        width, height = geometry.requested_width, geometry.requested_height
        if width and height:
            return ResolvedGeometry(width, height)
        if natural_width <= 0 or natural_height <= 0:
            return ResolvedGeometry(width or height or natural_width, height or width or natural_height)
        if width:
            # Scale down only.
            target = min(width, natural_width)
            return ResolvedGeometry(target, int(natural_height * target / natural_width))
        if height:
            target = min(height, natural_height)
            return ResolvedGeometry(int(natural_width * target / natural_height), target)
        return ResolvedGeometry(natural_width, natural_height)

    def _resolve_ratio(self, geometry: ImageGeometry, natural_width: int, natural_height: int) -> ResolvedGeometry:
        ratio_w, ratio_h = geometry.ratio  # type: ignore[misc]
        width, height = geometry.requested_width, geometry.requested_height

        if width and not height:
            fit_height = False
        elif height and not width:
            fit_height = True
        elif natural_width > 0 and natural_height > 0:
            fit_height = natural_width / natural_height > ratio_w / ratio_h
        else:
            fit_height = False

        if fit_height:
            target_height = height or self._default_height
            return ResolvedGeometry(int(target_height * ratio_w / ratio_h), target_height)
        target_width = width or self._default_width
        return ResolvedGeometry(target_width, int(target_width * ratio_h / ratio_w))
