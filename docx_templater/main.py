"""Entry-point for filling DOCX and HTML templates."""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional

from docx_templater.config import DEFAULT_CONFIG, PatcherConfig
from docx_templater.exceptions import UnsupportedTemplateError
from docx_templater.model.result import PatchIssue
from docx_templater.renderer.html_renderer import HtmlTemplateRenderer
from docx_templater.renderer.package_patcher import PackagePatcher
from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

_TEMPLATE_TYPES = {
    ".docx": "docx",
    ".html": "html",
    ".htm": "html",
}


def detect_template_type(template_path: Path) -> str:
    """Return ``"docx"`` or ``"html"`` based on the file extension."""
    suffix = Path(template_path).suffix.lower()
    try:
        return _TEMPLATE_TYPES[suffix]
    except KeyError:
        raise UnsupportedTemplateError(f"Unsupported template format: {suffix or '<none>'}") from None


def fill_template(
    template_path: Path,
    variables: Mapping[str, Any],
    output_path: Path,
    config: Optional[PatcherConfig] = None,
) -> List[PatchIssue]:
    """Fill ``template_path`` with ``variables`` and write the result to ``output_path``.

    Returns the per-placeholder issues met while substituting.
    """
    template_path = Path(template_path).resolve()
    output_path = Path(output_path).resolve()
    config = config or DEFAULT_CONFIG
    kind = detect_template_type(template_path)

    LOGGER.info("Filling %s template %s", kind, template_path.name)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if kind == "docx":
        result = PackagePatcher(config).patch_file(template_path, variables)
        output_path.write_bytes(result.content)
        issues = result.issues
    else:
        rendered = HtmlTemplateRenderer(config).render_file(template_path, variables)
        output_path.write_text(rendered.text, encoding="utf-8")
        issues = rendered.issues

    for issue in issues:
        LOGGER.warning("Placeholder '%s': %s %s", issue.name, issue.kind.value, issue.message)
    LOGGER.info("Wrote %s", output_path)
    return issues
