"""Immutable settings passed explicitly into the patcher and renderers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PatcherConfig:
    """Knobs controlling substitution behaviour for a single call."""

    max_repair_passes: int = 20
    ratio_default_width: int = 600
    ratio_default_height: int = 400
    boolean_labels: Tuple[str, str] = ("Yes", "No")
    image_error_template: str = "[Image Error: {message}]"
    patch_headers_footers: bool = True
    strict_types: bool = False
    fallback_image_size: Tuple[int, int] = (200, 100)

    def image_error_marker(self, message: str) -> str:
        return self.image_error_template.format(message=message)


DEFAULT_CONFIG = PatcherConfig()
