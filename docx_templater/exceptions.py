"""Exception hierarchy raised by the templating pipeline."""
from __future__ import annotations


class TemplateError(Exception):
    """Base class for every error raised while filling a template."""


class ContainerOpenError(TemplateError):
    """The template archive could not be opened or is corrupt."""


class MissingBodyPartError(TemplateError, KeyError):
    """The package has no main document part."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else "Main document part missing"


class RelationshipWriteError(TemplateError):
    """A relationships or content-types part could not be extended."""


class ImageResolutionError(TemplateError):
    """An image value could not be read, decoded or measured."""


class ValueTypeError(TemplateError):
    """A supplied value does not match the declared placeholder type."""

    def __init__(self, name: str, expected: str) -> None:
        super().__init__(f"Invalid value type for variable '{name}'. Expected: {expected}")
        self.name = name
        self.expected = expected


class UnsupportedTemplateError(TemplateError):
    """The template format is neither DOCX nor HTML."""
