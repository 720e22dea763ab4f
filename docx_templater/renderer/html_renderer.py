"""Substitute placeholders in flat HTML templates."""
from __future__ import annotations

import base64
import html
import re
from pathlib import Path
from typing import Any, List, Mapping, Optional

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.exceptions import ImageResolutionError, UnsupportedTemplateError, ValueTypeError
from docx_templater.model.placeholder import PlaceholderToken
from docx_templater.model.result import IssueKind, PatchIssue, SubstitutionResult
from docx_templater.parser.placeholder_parser import PLACEHOLDER_PATTERN, PlaceholderParser
from docx_templater.processor.image_processor import ImageProcessor
from docx_templater.processor.values import format_value, validate_value
from docx_templater.renderer.style_translator import style_to_css
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)


class HtmlTemplateRenderer:
    """Fill an HTML template; images are inlined as data URIs."""

    def __init__(
        self,
        config: PatcherConfig = DEFAULT_CONFIG,
        parser: Optional[PlaceholderParser] = None,
        image_processor: Optional[ImageProcessor] = None,
    ) -> None:
        self._config = config
        self._parser = parser or PlaceholderParser()
        self._image_processor = image_processor or ImageProcessor(config)

    def render(self, text: str, variables: Mapping[str, Any]) -> SubstitutionResult:
        tokens: List[PlaceholderToken] = []
        issues: List[PatchIssue] = []

        def replace(match: "re.Match[str]") -> str:
            token = self._parser.parse_span(match.group(0))
            tokens.append(token)
            value = variables.get(token.name)
            if not token.recognized:
                issues.append(PatchIssue(token.name, IssueKind.UNRECOGNIZED_TYPE, f"unknown type '{token.raw_type}'"))
            if value is None:
                issues.append(PatchIssue(token.name, IssueKind.UNRESOLVED, "no value supplied"))
                return ""
            if token.is_image:
                return self._image_tag(token, value, issues)
            if not validate_value(token, value):
                if self._config.strict_types:
                    raise ValueTypeError(token.name, token.raw_type)
                issues.append(PatchIssue(token.name, IssueKind.INVALID_VALUE, f"expected {token.raw_type}"))
            escaped = html.escape(format_value(token, value, self._config), quote=True)
            if token.has_styles:
                css = style_to_css(token.style_options)
                return f'<span style="{html.escape(css, quote=True)}">{escaped}</span>'
            return escaped

        rendered = PLACEHOLDER_PATTERN.sub(replace, text)
        LOGGER.info("Rendered %d placeholder(s) with %d issue(s)", len(tokens), len(issues))
        return SubstitutionResult(text=rendered, tokens=tokens, issues=issues)

    def render_file(self, template_path: Path, variables: Mapping[str, Any]) -> SubstitutionResult:
        try:
            text = Path(template_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UnsupportedTemplateError(f"Failed to read HTML template {template_path}: {exc}") from exc
        return self.render(text, variables)

    def _image_tag(self, token: PlaceholderToken, value: Any, issues: List[PatchIssue]) -> str:
        try:
            prepared = self._image_processor.prepare(value, self._parser.image_geometry(token))
        except ImageResolutionError as exc:
            LOGGER.warning("Image placeholder '%s' failed: %s", token.name, exc)
            issues.append(PatchIssue(token.name, IssueKind.IMAGE_ERROR, str(exc)))
            return html.escape(self._config.image_error_marker(str(exc)), quote=True)

        encoded = base64.b64encode(prepared.data).decode("ascii")
        width, height = prepared.geometry.width, prepared.geometry.height
        style = f"display: block; margin: 0 auto; width: {width}px; height: {height}px"
        return (
            f'<img src="data:{prepared.content_type};base64,{encoded}" '
            f'alt="{html.escape(token.name, quote=True)}" style="{style}" />'
        )
