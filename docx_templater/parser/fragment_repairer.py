"""
Placeholder fragment repair for WordprocessingML bodies.

Word frequently splits what the user typed as ``{{name:type}}`` over several
runs (spell checking, revision ids, formatting changes)::

    <w:t>{{na</w:t></w:r><w:r><w:rPr><w:b/></w:rPr><w:t>me:text}}</w:t>

The repairer rewrites the markup so each placeholder sits contiguously in a
single ``<w:t>`` again, which is what the grammar parser and the patcher
expect.
"""
from __future__ import annotations

import re
from typing import Dict, Tuple

from docx_templater.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_MAX_PASSES = 20

PARAGRAPH_END = "</w:p>"

# Rule (a): a placeholder whose interior carries markup.
_SPLIT_PLACEHOLDER = re.compile(r"\{\{([^{}]*?)\}\}", re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_TAG_NAME = re.compile(r"<(/?)([\w:.-]+)[^>]*?(/?)>")

# Rule (b): an opening ``{{`` left dangling at the end of a text node and the
# closing ``}}`` found in a later text node of the same paragraph.
_TEXT_OPEN = r"<w:t(?:\s[^>]*)?>"
_DANGLING_PLACEHOLDER = re.compile(
    r"(" + _TEXT_OPEN + r")([^<]*\{\{[^}<]*)"
    r"(</w:t>(?:(?!</w:p>|\}\}).)*?" + _TEXT_OPEN + r")"
    r"([^<]*?\}\})",
    re.DOTALL,
)
_TEXT_CONTENT = re.compile(_TEXT_OPEN + r"([^<]*)</w:t>")


class FragmentRepairer:
    """Re-merges placeholders split across runs until a fixed point is reached."""

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES) -> None:
        self.max_passes = max_passes

    def repair(self, xml: str) -> str:
        """Return ``xml`` with every split placeholder made contiguous."""
        for iteration in range(self.max_passes):
            xml, changed = self.repair_pass(xml)
            if not changed:
                LOGGER.debug("Fragment repair settled after %d pass(es)", iteration + 1)
                return xml
        LOGGER.warning("Fragment repair stopped at the %d pass limit", self.max_passes)
        return xml

    def repair_pass(self, xml: str) -> Tuple[str, bool]:
        """Apply both rules once; report whether the text changed."""
        stripped = _SPLIT_PLACEHOLDER.sub(_strip_interior_tags, xml)
        merged = _DANGLING_PLACEHOLDER.sub(_merge_dangling, stripped)
        return merged, merged != xml


def _strip_interior_tags(match: "re.Match[str]") -> str:
    interior = match.group(1)
    if "<" not in interior or PARAGRAPH_END in interior or not _is_balanced(interior):
        return match.group(0)
    return "{{" + _TAG.sub("", interior) + "}}"


def _merge_dangling(match: "re.Match[str]") -> str:
    open_tag, head, middle, tail = match.groups()
    if not _is_balanced(middle):
        return match.group(0)
    carried = "".join(_TEXT_CONTENT.findall(middle))
    return open_tag + head + carried + tail


def _is_balanced(markup: str) -> bool:
    """True when dropping ``markup`` leaves every element that it opens or closes intact."""
    depth: Dict[str, int] = {}
    for closing, name, self_closing in _TAG_NAME.findall(markup):
        if self_closing:
            continue
        depth[name] = depth.get(name, 0) + (-1 if closing else 1)
    return not any(depth.values())
