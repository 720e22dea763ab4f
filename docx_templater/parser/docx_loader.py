"""DOCX package container: a mutable working copy of the archive parts."""
from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional
from xml.etree import ElementTree as ET

from docx_templater.exceptions import ContainerOpenError, MissingBodyPartError
from docx_templater.parser.rels_parser import RELTYPE_OFFICE_DOCUMENT, Relationships, rels_part_for
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

CONTENT_TYPES_PATH = "[Content_Types].xml"
PACKAGE_REL_PATH = "_rels/.rels"
DOCUMENT_XML_PATH = "word/document.xml"
MEDIA_PREFIX = "media/"


@dataclass(slots=True)
class DocumentContainer:
    """Addressable set of package parts owned by one patch operation.

    ``raw_parts`` preserves archive entry order; ``compression`` remembers the
    per-entry compression so untouched parts are written back as they came.
    """

    raw_parts: Dict[str, bytes]
    compression: Dict[str, int] = field(default_factory=dict)
    body_part: str = DOCUMENT_XML_PATH

    @classmethod
    def from_bytes(cls, data: bytes) -> "DocumentContainer":
        """Open an in-memory DOCX archive."""
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as docx_zip:
                infos = [info for info in docx_zip.infolist() if not info.is_dir()]
                parts = {info.filename: docx_zip.read(info) for info in infos}
                compression = {info.filename: info.compress_type for info in infos}
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError, NotImplementedError) as exc:
            raise ContainerOpenError(f"Failed to open DOCX template: {exc}") from exc

        LOGGER.debug("Loaded %d parts from archive", len(parts))
        container = cls(raw_parts=parts, compression=compression)
        container.body_part = container._locate_body_part()
        return container

    @classmethod
    def load(cls, docx_path: Path) -> "DocumentContainer":
        """Open a DOCX archive from disk."""
        try:
            data = Path(docx_path).read_bytes()
        except OSError as exc:
            raise ContainerOpenError(f"Failed to read DOCX template {docx_path}: {exc}") from exc
        return cls.from_bytes(data)

    # ------------------------------------------------------------------
    # Part access
    def has_part(self, name: str) -> bool:
        return name in self.raw_parts

    def get_part(self, name: str) -> Optional[bytes]:
        return self.raw_parts.get(name)

    def set_part(self, name: str, data: bytes) -> None:
        self.raw_parts[name] = data

    def require_body(self) -> bytes:
        """Return the main document markup, or fail if the part is missing."""
        data = self.raw_parts.get(self.body_part)
        if data is None:
            raise MissingBodyPartError(f"Main document part missing from package: {self.body_part}")
        return data

    @property
    def body_rels_part(self) -> str:
        return rels_part_for(self.body_part)

    @property
    def media_dir(self) -> str:
        """Media folder next to the body part, e.g. ``word/media/``."""
        parent = PurePosixPath(self.body_part).parent.as_posix()
        return f"{parent}/{MEDIA_PREFIX}" if parent not in ("", ".") else MEDIA_PREFIX

    def relationships_for(self, part_name: str) -> Relationships:
        """Relationships declared by one part only."""
        rels_name = rels_part_for(part_name)
        payload = self.raw_parts.get(rels_name)
        if payload is None:
            return Relationships({})
        return Relationships.from_package({rels_name: payload})

    def story_parts(self, include_headers_footers: bool = True) -> List[str]:
        """Body part first, then headers and footers it references."""
        stories = [self.body_part]
        if not include_headers_footers:
            return stories
        try:
            summary = self.relationships_for(self.body_part).document_summary(self.body_part)
        except ET.ParseError:
            LOGGER.warning("Relationships of %s unreadable; skipping headers and footers", self.body_part)
            return stories
        for rel in list(summary.headers.values()) + list(summary.footers.values()):
            target = rel.resolved_target
            if target and target in self.raw_parts and target not in stories:
                stories.append(target)
        return stories

    # ------------------------------------------------------------------
    # Serialization
    def to_bytes(self) -> bytes:
        """Write every part back into a new archive, content types first."""
        names = list(self.raw_parts)
        if CONTENT_TYPES_PATH in names:
            names.remove(CONTENT_TYPES_PATH)
            names.insert(0, CONTENT_TYPES_PATH)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as docx_zip:
            for name in names:
                compress_type = self.compression.get(name, zipfile.ZIP_DEFLATED)
                docx_zip.writestr(name, self.raw_parts[name], compress_type=compress_type)
        return buffer.getvalue()

    # ------------------------------------------------------------------
    # Internal bootstrap
    def _locate_body_part(self) -> str:
        package_rels = self.raw_parts.get(PACKAGE_REL_PATH)
        if package_rels is not None:
            try:
                rels = Relationships.from_package({PACKAGE_REL_PATH: package_rels})
            except ET.ParseError:
                LOGGER.warning("Package relationships unreadable; assuming %s", DOCUMENT_XML_PATH)
                return DOCUMENT_XML_PATH
            for rel in rels.for_source("").values():
                if rel.rel_type == RELTYPE_OFFICE_DOCUMENT and rel.resolved_target:
                    return rel.resolved_target.lstrip("/")
        return DOCUMENT_XML_PATH
