"""Helper functions to work with XML namespaces and parsing."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict
from xml.etree import ElementTree as ET
from xml.sax.saxutils import escape


@dataclass(frozen=True)
class Namespaces:
    """Common OpenXML namespace prefixes used across parsers and writers."""

    RELS: Dict[str, str] = None  # type: ignore[assignment]
    CONTENT_TYPES: Dict[str, str] = None  # type: ignore[assignment]

    def __post_init__(self) -> None:  # pragma: no cover
        raise RuntimeError("Namespaces should not be instantiated")


REL_PACKAGE_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
REL_OFFICE_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
CONTENT_TYPES_NS = "http://schemas.openxmlformats.org/package/2006/content-types"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
WP_NS = "http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"
PIC_NS = "http://schemas.openxmlformats.org/drawingml/2006/picture"

Namespaces.RELS = {"rel": REL_PACKAGE_NS}  # type: ignore[attr-defined]
Namespaces.CONTENT_TYPES = {"ct": CONTENT_TYPES_NS}  # type: ignore[attr-defined]


def parse_xml(data: bytes) -> ET.ElementTree:
    """Parse XML from raw bytes with sane defaults."""
    return ET.ElementTree(ET.fromstring(data))


def escape_text(value: str) -> str:
    """Escape a string for use as XML character data."""
    return escape(value)


def escape_attribute(value: str) -> str:
    """Escape a string for use inside a double-quoted XML attribute (quotes excluded)."""
    return escape(value, {'"': "&quot;"})
