"""Placeholder records produced by the grammar parser."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

StyleSet = Dict[str, str]


class TypeTag(str, Enum):
    """Closed set of placeholder value types."""

    TEXT = "text"
    NUMBER = "number"
    IMAGE = "image"
    DATE = "date"
    BOOLEAN = "boolean"

    @classmethod
    def from_raw(cls, raw: str) -> Tuple["TypeTag", bool]:
        """Normalise a raw type annotation, returning ``(tag, recognized)``."""
        tag = TYPE_SYNONYMS.get(raw)
        if tag is None:
            return cls.TEXT, False
        return tag, True


TYPE_SYNONYMS: Dict[str, TypeTag] = {
    "text": TypeTag.TEXT,
    "string": TypeTag.TEXT,
    "number": TypeTag.NUMBER,
    "integer": TypeTag.NUMBER,
    "int": TypeTag.NUMBER,
    "image": TypeTag.IMAGE,
    "date": TypeTag.DATE,
    "boolean": TypeTag.BOOLEAN,
    "bool": TypeTag.BOOLEAN,
}


@dataclass(slots=True)
class PlaceholderToken:
    """A single ``{{name:type,...}}`` occurrence found in template text."""

    name: str
    declared_type: TypeTag
    literal_span: str
    raw_type: str = "text"
    options: Dict[str, str] = field(default_factory=dict)
    style_options: StyleSet = field(default_factory=dict)
    typed: bool = True
    recognized: bool = True

    @property
    def is_image(self) -> bool:
        return self.declared_type is TypeTag.IMAGE

    @property
    def has_styles(self) -> bool:
        return bool(self.style_options)


@dataclass(frozen=True)
class ImageGeometry:
    """Sizing request taken from the ``width``/``height``/``ratio`` options."""

    requested_width: Optional[int] = None
    requested_height: Optional[int] = None
    ratio: Optional[Tuple[int, int]] = None

    @property
    def is_empty(self) -> bool:
        return self.requested_width is None and self.requested_height is None and self.ratio is None


@dataclass(frozen=True)
class ResolvedGeometry:
    """Final pixel size of an embedded image."""

    width: int
    height: int
