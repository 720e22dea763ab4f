"""Utilities for reading and extending Open Packaging Convention relationship parts."""
from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Dict, Mapping, Optional, Tuple
from xml.etree import ElementTree as ET

from docx_templater.exceptions import RelationshipWriteError
from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import REL_OFFICE_NS, REL_PACKAGE_NS, Namespaces, escape_attribute, parse_xml

LOGGER = get_logger(__name__)

WORD_REL_NS = REL_OFFICE_NS

RELTYPE_OFFICE_DOCUMENT = f"{WORD_REL_NS}/officeDocument"
RELTYPE_IMAGE = f"{WORD_REL_NS}/image"
RELTYPE_HEADER = f"{WORD_REL_NS}/header"
RELTYPE_FOOTER = f"{WORD_REL_NS}/footer"

MAIN_DOCUMENT_PART = "word/document.xml"

EMPTY_RELATIONSHIPS = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    f'<Relationships xmlns="{REL_PACKAGE_NS}"></Relationships>'
).encode("utf-8")

_CLOSING_TAG = re.compile(r"</(?:\w+:)?Relationships\s*>\s*$")
_SELF_CLOSING_ROOT = re.compile(r"<((?:\w+:)?Relationships)\b([^>]*)/>\s*$")


@dataclass(frozen=True)
class Relationship:
    """Represents a single OPC relationship."""

    source_part: str
    r_id: str
    target: str
    rel_type: str
    is_external: bool = False
    resolved_target: Optional[str] = None


@dataclass(frozen=True)
class DocumentRelationshipSummary:
    """Categorized relationship buckets for a story part."""

    headers: Dict[str, Relationship]
    footers: Dict[str, Relationship]


def rels_part_for(part_name: str) -> str:
    """Name of the relationships part paired with ``part_name``."""
    path = PurePosixPath(part_name)
    parent = path.parent.as_posix()
    if parent in ("", "."):
        return f"_rels/{path.name}.rels"
    return f"{parent}/_rels/{path.name}.rels"


class Relationships:
    """Aggregated relationship mappings for the DOCX package."""

    def __init__(self, relationships: Dict[str, Dict[str, Relationship]]) -> None:
        self._by_source = relationships

    @classmethod
    def from_package(cls, parts: Mapping[str, bytes]) -> "Relationships":
        """Collect relationships from all known .rels parts within the package."""
        by_source: Dict[str, Dict[str, Relationship]] = {}
        for name, payload in parts.items():
            if not name.endswith(".rels"):
                continue
            source, base_dir = cls._source_and_base_from_rel_part(name)
            tree = parse_xml(payload)
            parsed = cls._parse_relationship_part(source, base_dir, tree)
            if parsed:
                by_source[source] = parsed
        return cls(by_source)

    def for_source(self, part_name: str) -> Dict[str, Relationship]:
        """Return all relationships for a given source part."""
        source = self._normalize_source(part_name)
        rels = self._by_source.get(source, {})
        return dict(rels)

    def document_summary(self, part_name: str = MAIN_DOCUMENT_PART) -> DocumentRelationshipSummary:
        """Return categorized relationships for a story part."""
        doc_rels = self.for_source(part_name)
        return DocumentRelationshipSummary(
            headers=self._filter_by_type(doc_rels, RELTYPE_HEADER),
            footers=self._filter_by_type(doc_rels, RELTYPE_FOOTER),
        )

    @classmethod
    def _parse_relationship_part(
        cls, source_part: str, base_dir: PurePosixPath, tree: ET.ElementTree
    ) -> Dict[str, Relationship]:
        result: Dict[str, Relationship] = {}
        for rel_el in tree.findall(".//rel:Relationship", Namespaces.RELS):
            r_id = rel_el.attrib["Id"]
            target = rel_el.attrib.get("Target", "")
            rel_type = rel_el.attrib.get("Type", "")
            is_external = rel_el.attrib.get("TargetMode") == "External"
            resolved_target = cls._resolve_target_path(base_dir, target, is_external)
            result[r_id] = Relationship(
                source_part=source_part,
                r_id=r_id,
                target=target,
                rel_type=rel_type,
                is_external=is_external,
                resolved_target=resolved_target,
            )
        return result

    @staticmethod
    def _source_and_base_from_rel_part(rel_part: str) -> Tuple[str, PurePosixPath]:
        rel_path = PurePosixPath(rel_part)
        base_dir = rel_path.parent
        if rel_part == "_rels/.rels":
            return "", base_dir
        if "/_rels/" in rel_part:
            folder, suffix = rel_part.split("/_rels/", 1)
            base = suffix[:-5]
            return f"{folder}/{base}", base_dir
        if rel_part.startswith("_rels/"):
            base = rel_part[len("_rels/") : -5]
            return base, base_dir
        return rel_part[:-5], base_dir

    @staticmethod
    def _resolve_target_path(base_dir: PurePosixPath, target: str, is_external: bool) -> Optional[str]:
        if not target:
            return None
        if is_external:
            return target
        resolved = base_dir.joinpath(target)
        normalized = posixpath.normpath(resolved.as_posix())
        normalized = normalized.replace("/_rels/", "/")
        if normalized.startswith("_rels/"):
            normalized = normalized[len("_rels/") :]
        return normalized.lstrip("/")

    @staticmethod
    def _filter_by_type(rels: Mapping[str, Relationship], rel_type: str) -> Dict[str, Relationship]:
        return {r_id: rel for r_id, rel in rels.items() if rel.rel_type == rel_type}

    @classmethod
    def _normalize_source(cls, part_name: str) -> str:
        if part_name.endswith(".rels"):
            source, _ = cls._source_and_base_from_rel_part(part_name)
            return source
        return part_name


class RelationshipWriter:
    """Appends relationships to one ``.rels`` part without rewriting the rest."""

    def __init__(self, payload: Optional[bytes]) -> None:
        self._text = (payload or EMPTY_RELATIONSHIPS).decode("utf-8")
        try:
            root = ET.fromstring(self._text.encode("utf-8"))
        except ET.ParseError as exc:
            raise RelationshipWriteError(f"Relationships part is not well-formed: {exc}") from exc
        if root.tag != f"{{{REL_PACKAGE_NS}}}Relationships":
            raise RelationshipWriteError(f"Unexpected relationships root element: {root.tag}")
        self._ids = {el.attrib.get("Id", "") for el in root.findall("rel:Relationship", Namespaces.RELS)}

    @property
    def count(self) -> int:
        return len(self._ids)

    def next_id(self) -> str:
        """Fresh ``rIdN`` derived from the entry count, skipping ids in use."""
        number = self.count + 1
        while f"rId{number}" in self._ids:
            number += 1
        return f"rId{number}"

    def add(self, rel_type: str, target: str, external: bool = False) -> str:
        """Append one relationship and return its id."""
        r_id = self.next_id()
        mode = ' TargetMode="External"' if external else ""
        entry = (
            f'<Relationship Id="{r_id}" Type="{escape_attribute(rel_type)}" '
            f'Target="{escape_attribute(target)}"{mode}/>'
        )
        self._text = self._insert(entry)
        self._ids.add(r_id)
        LOGGER.debug("Added relationship %s -> %s", r_id, target)
        return r_id

    def to_bytes(self) -> bytes:
        return self._text.encode("utf-8")

    def _insert(self, entry: str) -> str:
        closing = _CLOSING_TAG.search(self._text)
        if closing is not None:
            return self._text[: closing.start()] + entry + self._text[closing.start() :]
        self_closing = _SELF_CLOSING_ROOT.search(self._text)
        if self_closing is not None:
            tag, attributes = self_closing.group(1), self_closing.group(2)
            return self._text[: self_closing.start()] + f"<{tag}{attributes}>{entry}</{tag}>"
        raise RelationshipWriteError("Relationships part has no closing root tag")
