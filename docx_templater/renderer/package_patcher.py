"""
DOCX package patcher.

Opens a template archive, repairs split placeholders, substitutes values into
the body (and optionally headers and footers), embeds images as new media
parts with their relationships and content types, and serializes the result.

A patch walks ``OPENED -> BODY_EXTRACTED -> REPAIRED -> SUBSTITUTED ->
SERIALIZED``. Archive and package-structure failures abort the whole call;
problems with a single placeholder are recorded on the result instead.
"""
from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.exceptions import ContainerOpenError, ImageResolutionError, ValueTypeError
from docx_templater.model.placeholder import PlaceholderToken
from docx_templater.model.result import IssueKind, PatchIssue, PatchResult, PatchStage
from docx_templater.parser.content_types import ContentTypes
from docx_templater.parser.docx_loader import CONTENT_TYPES_PATH, DocumentContainer
from docx_templater.parser.fragment_repairer import FragmentRepairer
from docx_templater.parser.placeholder_parser import PLACEHOLDER_PATTERN, PlaceholderParser
from docx_templater.parser.rels_parser import RELTYPE_IMAGE, RelationshipWriter, rels_part_for
from docx_templater.processor.image_processor import ImageProcessor
from docx_templater.processor.values import format_value, validate_value
from docx_templater.renderer.drawing import inline_picture
from docx_templater.renderer.style_translator import merge_run_properties
from docx_templater.utils.logger import get_logger
from docx_templater.utils.xml_utils import escape_attribute, escape_text

LOGGER = get_logger(__name__)

_TEXT_NODE = re.compile(r"(<w:t(?:\s[^>]*)?>)([^<]*)(</w:t>)")
_DOC_PR_ID = re.compile(r"<wp:docPr\b[^>]*?\bid=\"(\d+)\"")
_RPR_OPEN = re.compile(r"\s*<w:rPr\b[^>]*?(/?)>")
_RPR_TAG = re.compile(r"<(/?)w:rPr\b[^>]*?(/?)>")
_RPR_CHANGE = re.compile(r"<w:rPrChange\b.*?</w:rPrChange>|<w:rPrChange\b[^>]*/>", re.DOTALL)
_UNSAFE_NAME = re.compile(r"[^\w.-]+")

PRESERVED_TEXT_OPEN = '<w:t xml:space="preserve">'
LINE_BREAK = '</w:t><w:br/><w:t xml:space="preserve">'


class PackagePatcher:
    """Fills a DOCX template with values."""

    def __init__(
        self,
        config: PatcherConfig = DEFAULT_CONFIG,
        parser: Optional[PlaceholderParser] = None,
        repairer: Optional[FragmentRepairer] = None,
        image_processor: Optional[ImageProcessor] = None,
    ) -> None:
        self.config = config
        self.parser = parser or PlaceholderParser()
        self.repairer = repairer or FragmentRepairer(config.max_repair_passes)
        self.image_processor = image_processor or ImageProcessor(config)

    def patch(self, template: bytes, variables: Mapping[str, Any]) -> PatchResult:
        """Return the template with every placeholder substituted."""
        container = DocumentContainer.from_bytes(template)
        return _PatchSession(self, container, variables).run()

    def patch_file(self, template_path: Path, variables: Mapping[str, Any]) -> PatchResult:
        container = DocumentContainer.load(template_path)
        return _PatchSession(self, container, variables).run()


class _PatchSession:
    """Mutable state of one patch call; never shared between calls."""

    def __init__(self, patcher: PackagePatcher, container: DocumentContainer, variables: Mapping[str, Any]) -> None:
        self.patcher = patcher
        self.config = patcher.config
        self.container = container
        self.variables = variables
        self.stage = PatchStage.OPENED
        self.tokens: List[PlaceholderToken] = []
        self.issues: List[PatchIssue] = []
        self.rels_writers: Dict[str, RelationshipWriter] = {}
        self.content_types: Optional[ContentTypes] = None
        self.next_doc_pr_id = 1

    def run(self) -> PatchResult:
        self._advance(PatchStage.OPENED)

        self.container.require_body()
        stories = self.container.story_parts(self.config.patch_headers_footers)
        markup = {part: self._decode(part) for part in stories}
        self._advance(PatchStage.BODY_EXTRACTED)

        markup = {part: self.patcher.repairer.repair(xml) for part, xml in markup.items()}
        self._advance(PatchStage.REPAIRED)

        self.next_doc_pr_id = _max_doc_pr_id(markup.values()) + 1
        for part, xml in markup.items():
            markup[part] = self._substitute_part(part, xml)
        self._advance(PatchStage.SUBSTITUTED)

        for part, xml in markup.items():
            self.container.set_part(part, xml.encode("utf-8"))
        for rels_part, writer in self.rels_writers.items():
            self.container.set_part(rels_part, writer.to_bytes())
        if self.content_types is not None:
            self.container.set_part(CONTENT_TYPES_PATH, self.content_types.to_bytes())
        content = self.container.to_bytes()
        self._advance(PatchStage.SERIALIZED)

        LOGGER.info(
            "Patched %d placeholder(s) across %d part(s) with %d issue(s)",
            len(self.tokens), len(stories), len(self.issues),
        )
        return PatchResult(content=content, stage=self.stage, tokens=self.tokens, issues=self.issues)

    # ------------------------------------------------------------------
    # Part walking
    def _decode(self, part: str) -> str:
        payload = self.container.get_part(part) or b""
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ContainerOpenError(f"Part {part} is not UTF-8 encoded XML") from exc

    def _substitute_part(self, part: str, xml: str) -> str:
        pieces: List[str] = []
        cursor = 0
        for node in _TEXT_NODE.finditer(xml):
            pieces.append(self._substitute_markup(part, xml[cursor : node.start()]))
            pieces.append(self._rewrite_text_node(part, xml, node))
            cursor = node.end()
        pieces.append(self._substitute_markup(part, xml[cursor:]))
        return "".join(pieces)

    def _substitute_markup(self, part: str, markup: str) -> str:
        """Placeholders outside text nodes (attributes, field codes) get plain values."""

        def replace(match: "re.Match[str]") -> str:
            span = match.group(0)
            if "<" in span or ">" in span:
                return span
            token = self._discover(span)
            if token.is_image:
                self._record(token, IssueKind.UNRESOLVED, "image placeholder outside a text run", part)
                return ""
            text = self._text_value(token, part)
            return "" if text is None else escape_attribute(text)

        return PLACEHOLDER_PATTERN.sub(replace, markup)

    def _rewrite_text_node(self, part: str, xml: str, node: "re.Match[str]") -> str:
        open_tag, text, close_tag = node.groups()
        if "{{" not in text:
            return node.group(0)

        base_rpr: Optional[str] = None
        rebuilt: List[str] = [_preserved_open(open_tag)]
        cursor = 0
        for match in PLACEHOLDER_PATTERN.finditer(text):
            rebuilt.append(text[cursor : match.start()])
            cursor = match.end()
            token = self._discover(match.group(0))

            if token.is_image:
                drawing, marker = self._image_drawing(part, token)
                if drawing is None:
                    rebuilt.append(escape_text(marker))
                    continue
                if base_rpr is None:
                    base_rpr = _enclosing_run_properties(xml, node.start())
                rebuilt.append(_split_run(base_rpr, f"<w:r>{base_rpr}{drawing}</w:r>"))
                continue

            value = self._text_value(token, part)
            if value is None:
                continue
            escaped = escape_text(value).replace("\n", LINE_BREAK)
            if not token.has_styles:
                rebuilt.append(escaped)
                continue
            if base_rpr is None:
                base_rpr = _enclosing_run_properties(xml, node.start())
            styled_rpr = merge_run_properties(base_rpr, token.style_options)
            if styled_rpr == base_rpr:
                rebuilt.append(escaped)
                continue
            rebuilt.append(_split_run(base_rpr, f"<w:r>{styled_rpr}{PRESERVED_TEXT_OPEN}{escaped}</w:t></w:r>"))

        rebuilt.append(text[cursor:])
        rebuilt.append(close_tag)
        return "".join(rebuilt)

    # ------------------------------------------------------------------
    # Token handling
    def _discover(self, span: str) -> PlaceholderToken:
        token = self.patcher.parser.parse_span(span)
        self.tokens.append(token)
        return token

    def _text_value(self, token: PlaceholderToken, part: str) -> Optional[str]:
        """Formatted value for ``token``, or ``None`` when the span must be cleared."""
        if not token.recognized:
            self._record(token, IssueKind.UNRECOGNIZED_TYPE, f"unknown type '{token.raw_type}'", part)
        value = self.variables.get(token.name)
        if value is None:
            self._record(token, IssueKind.UNRESOLVED, "no value supplied", part)
            return None
        if not validate_value(token, value):
            if self.config.strict_types:
                raise ValueTypeError(token.name, token.raw_type)
            self._record(token, IssueKind.INVALID_VALUE, f"expected {token.raw_type}", part)
        return format_value(token, value, self.config)

    def _image_drawing(self, part: str, token: PlaceholderToken) -> Tuple[Optional[str], str]:
        """Return ``(drawing, "")`` on success, else ``(None, replacement_text)``."""
        value = self.variables.get(token.name)
        if value is None:
            self._record(token, IssueKind.UNRESOLVED, "no image supplied", part)
            return None, ""
        try:
            prepared = self.patcher.image_processor.prepare(value, self.patcher.parser.image_geometry(token))
        except ImageResolutionError as exc:
            LOGGER.warning("Image placeholder '%s' failed: %s", token.name, exc)
            self._record(token, IssueKind.IMAGE_ERROR, str(exc), part)
            return None, self.config.image_error_marker(str(exc))

        media_part = self._unique_media_name(token.name, prepared.extension)
        self.container.set_part(media_part, prepared.data)
        self._content_types().ensure_default(prepared.extension, prepared.content_type)

        target = posixpath.relpath(media_part, posixpath.dirname(part) or ".")
        r_id = self._rels_writer(part).add(RELTYPE_IMAGE, target)

        doc_pr_id = self.next_doc_pr_id
        self.next_doc_pr_id += 1
        LOGGER.debug(
            "Embedded %s as %s (%dx%d px)", media_part, r_id, prepared.geometry.width, prepared.geometry.height
        )
        return inline_picture(r_id, prepared.geometry, token.name, doc_pr_id), ""

    def _unique_media_name(self, name: str, extension: str) -> str:
        stem = _UNSAFE_NAME.sub("_", name).strip("_") or "placeholder"
        candidate = f"{self.container.media_dir}image_{stem}.{extension}"
        counter = 2
        while self.container.has_part(candidate):
            candidate = f"{self.container.media_dir}image_{stem}_{counter}.{extension}"
            counter += 1
        return candidate

    def _rels_writer(self, part: str) -> RelationshipWriter:
        rels_part = rels_part_for(part)
        if rels_part not in self.rels_writers:
            self.rels_writers[rels_part] = RelationshipWriter(self.container.get_part(rels_part))
        return self.rels_writers[rels_part]

    def _content_types(self) -> ContentTypes:
        if self.content_types is None:
            self.content_types = ContentTypes(self.container.get_part(CONTENT_TYPES_PATH))
        return self.content_types

    def _record(self, token: PlaceholderToken, kind: IssueKind, message: str, part: str) -> None:
        self.issues.append(PatchIssue(name=token.name, kind=kind, message=message, part=part))

    def _advance(self, stage: PatchStage) -> None:
        self.stage = stage
        LOGGER.debug("Patch stage: %s", stage.value)


def _preserved_open(open_tag: str) -> str:
    if "xml:space" in open_tag:
        return open_tag
    return PRESERVED_TEXT_OPEN


def _split_run(base_rpr: str, run_xml: str) -> str:
    """Close the current run, insert ``run_xml``, and reopen a run with the original formatting."""
    return "</w:t></w:r>" + run_xml + f"<w:r>{base_rpr}" + PRESERVED_TEXT_OPEN


def _max_doc_pr_id(parts) -> int:
    highest = 0
    for xml in parts:
        for match in _DOC_PR_ID.finditer(xml):
            highest = max(highest, int(match.group(1)))
    return highest


def _enclosing_run_properties(xml: str, position: int) -> str:
    """Copy of the ``w:rPr`` of the run containing ``position`` (without revision history)."""
    run_start = max(xml.rfind("<w:r>", 0, position), xml.rfind("<w:r ", 0, position))
    if run_start < 0:
        return ""
    run_start = xml.index(">", run_start) + 1
    opening = _RPR_OPEN.match(xml, run_start)
    if opening is None:
        return ""
    if opening.group(1) == "/":
        return ""
    end = _balanced_rpr_end(xml, opening.end())
    if end < 0:
        return ""
    rpr = xml[opening.start() : end].strip()
    return _RPR_CHANGE.sub("", rpr)


def _balanced_rpr_end(xml: str, start: int) -> int:
    depth = 1
    for tag in _RPR_TAG.finditer(xml, start):
        closing, self_closing = tag.group(1), tag.group(2)
        if self_closing:
            continue
        depth += -1 if closing else 1
        if depth == 0:
            return tag.end()
    return -1


def patch_document(
    template: bytes, variables: Mapping[str, Any], config: PatcherConfig = DEFAULT_CONFIG
) -> Tuple[bytes, List[PatchIssue]]:
    """Convenience wrapper returning the patched bytes and the issue list."""
    result = PackagePatcher(config).patch(template, variables)
    return result.content, result.issues
