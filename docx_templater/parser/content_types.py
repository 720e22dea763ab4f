"""Read and extend ``[Content_Types].xml`` so new media parts are typed."""
from __future__ import annotations

import re
from typing import Dict, Optional
from xml.etree import ElementTree as ET

from docx_templater.exceptions import RelationshipWriteError
from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import CONTENT_TYPES_NS, Namespaces, escape_attribute

LOGGER = get_logger(__name__)

_CLOSING_TAG = re.compile(r"</(?:\w+:)?Types\s*>\s*$")


class ContentTypes:
    """Default (by extension) and Override (by part) content types of a package."""

    def __init__(self, payload: Optional[bytes]) -> None:
        if payload is None:
            raise RelationshipWriteError("Package has no [Content_Types].xml part")
        self._text = payload.decode("utf-8")
        try:
            root = ET.fromstring(payload)
        except ET.ParseError as exc:
            raise RelationshipWriteError(f"[Content_Types].xml is not well-formed: {exc}") from exc
        if root.tag != f"{{{CONTENT_TYPES_NS}}}Types":
            raise RelationshipWriteError(f"Unexpected content types root element: {root.tag}")

        self.defaults: Dict[str, str] = {
            el.attrib.get("Extension", "").lower(): el.attrib.get("ContentType", "")
            for el in root.findall("ct:Default", Namespaces.CONTENT_TYPES)
        }
        self.overrides: Dict[str, str] = {
            el.attrib.get("PartName", ""): el.attrib.get("ContentType", "")
            for el in root.findall("ct:Override", Namespaces.CONTENT_TYPES)
        }

    def content_type_for(self, part_name: str) -> Optional[str]:
        override = self.overrides.get("/" + part_name.lstrip("/"))
        if override:
            return override
        extension = part_name.rsplit(".", 1)[-1].lower() if "." in part_name else ""
        return self.defaults.get(extension)

    def ensure_default(self, extension: str, content_type: str) -> bool:
        """Register ``extension`` if missing; return whether the part changed."""
        extension = extension.lower().lstrip(".")
        if extension in self.defaults:
            return False
        closing = _CLOSING_TAG.search(self._text)
        if closing is None:
            raise RelationshipWriteError("[Content_Types].xml has no closing Types tag")
        entry = f'<Default Extension="{escape_attribute(extension)}" ContentType="{escape_attribute(content_type)}"/>'
        self._text = self._text[: closing.start()] + entry + self._text[closing.start() :]
        self.defaults[extension] = content_type
        LOGGER.debug("Registered content type %s for .%s", content_type, extension)
        return True

    def to_bytes(self) -> bytes:
        return self._text.encode("utf-8")
