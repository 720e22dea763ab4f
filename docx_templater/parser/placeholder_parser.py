"""
Placeholder grammar parser.

Recognises ``{{name:type,key:value,...}}`` spans in template text and turns
each occurrence into a :class:`PlaceholderToken`. Parsing never fails:
malformed interiors degrade to best-effort fields.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from docx_templater.model.placeholder import ImageGeometry, PlaceholderToken, StyleSet, TypeTag

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")

STYLE_PROPERTIES = (
    "font-size",
    "font-weight",
    "font-style",
    "font-family",
    "color",
    "background-color",
    "text-decoration",
    "text-align",
    "underline",
    "bold",
    "italic",
)

# Shortcut keys and the CSS property they stand for.
STYLE_ALIASES = {
    "bold": ("font-weight", "bold", "normal"),
    "italic": ("font-style", "italic", "normal"),
    "underline": ("text-decoration", "underline", "none"),
}

NAMED_COLORS = {
    "red": "FF0000",
    "green": "00FF00",
    "blue": "0000FF",
    "black": "000000",
    "white": "FFFFFF",
    "yellow": "FFFF00",
    "orange": "FFA500",
    "purple": "800080",
    "pink": "FFC0CB",
    "gray": "808080",
    "grey": "808080",
    "brown": "A52A2A",
    "navy": "000080",
    "teal": "008080",
    "maroon": "800000",
}

_TRUTHY = ("true", "1")
_NUMERIC = re.compile(r"^\d+(?:\.\d+)?$")


class PlaceholderParser:
    """Stateless tokenizer for the placeholder grammar."""

    def parse(self, text: str) -> List[PlaceholderToken]:
        """Return every placeholder in ``text`` in discovery order."""
        if not text:
            return []
        return [self.parse_span(match.group(0)) for match in PLACEHOLDER_PATTERN.finditer(text)]

    def parse_span(self, span: str) -> PlaceholderToken:
        """Parse a single literal span, delimiters included."""
        interior = span[2:-2] if span.startswith("{{") and span.endswith("}}") else span
        segments = [segment.strip() for segment in interior.split(",")]

        head = segments[0]
        if ":" in head:
            name, raw_type = (part.strip() for part in head.split(":", 1))
            typed = True
        else:
            name, raw_type, typed = head, "text", False
        declared_type, recognized = TypeTag.from_raw(raw_type)

        options: Dict[str, str] = {}
        styles: StyleSet = {}
        for segment in segments[1:]:
            if ":" not in segment:
                continue
            key, value = (part.strip() for part in segment.split(":", 1))
            if key in STYLE_PROPERTIES:
                prop, normalized = normalize_style(key, value)
                styles[prop] = normalized
            else:
                options[key] = value

        return PlaceholderToken(
            name=name,
            declared_type=declared_type,
            literal_span=span,
            raw_type=raw_type,
            options=options,
            style_options=styles,
            typed=typed,
            recognized=recognized,
        )

    def image_geometry(self, token: PlaceholderToken) -> ImageGeometry:
        """Read the sizing options of an image placeholder."""
        return ImageGeometry(
            requested_width=_parse_int(token.options.get("width")),
            requested_height=_parse_int(token.options.get("height")),
            ratio=_parse_ratio(token.options.get("ratio")),
        )


def normalize_style(key: str, value: str) -> Tuple[str, str]:
    """Map a whitelisted style key and raw value to its canonical form."""
    if key in STYLE_ALIASES:
        prop, on, off = STYLE_ALIASES[key]
        return prop, on if value in _TRUTHY else off
    if key == "font-size" and _NUMERIC.match(value):
        return key, f"{value}pt"
    if key in ("color", "background-color"):
        return key, NAMED_COLORS.get(value.lower(), value)
    return key, value


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None


def _parse_ratio(value: Optional[str]) -> Optional[Tuple[int, int]]:
    if not value:
        return None
    parts = value.split(":")
    if len(parts) != 2:
        return None
    width, height = _parse_int(parts[0].strip()), _parse_int(parts[1].strip())
    if not width or not height or width < 0 or height < 0:
        return None
    return width, height
