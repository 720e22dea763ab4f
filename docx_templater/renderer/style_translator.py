"""Translate normalised placeholder styles into CSS or WordprocessingML run properties."""
from __future__ import annotations

import re
from enum import Enum
from typing import Dict, List, Mapping, Optional

from docx_templater.utils.units import pixels_to_points, points_to_half_points
from docx_templater.utils.xml_utils import escape_attribute

# Schema order of ``w:rPr`` children (CT_RPr sequence).
RUN_PROPERTY_ORDER = (
    "rStyle", "rFonts", "b", "bCs", "i", "iCs", "caps", "smallCaps", "strike", "dstrike",
    "outline", "shadow", "emboss", "imprint", "noProof", "snapToGrid", "vanish", "webHidden",
    "color", "spacing", "w", "kern", "position", "sz", "szCs", "highlight", "u", "effect",
    "bdr", "shd", "fitText", "vertAlign", "rtl", "cs", "em", "lang", "eastAsianLayout",
    "specVanish", "oMath",
)

_RPR_CHILD = re.compile(r"<(?P<tag>[\w.]+:(?P<local>\w+)|(?P<bare>\w+))\b[^>]*?(?:/>|>.*?</(?P=tag)>)", re.DOTALL)
_RPR_BLOCK = re.compile(r"<w:rPr\b[^>]*>(.*?)</w:rPr>", re.DOTALL)

_FONT_SIZE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(pt|px)?\s*$", re.IGNORECASE)


class TargetFormat(str, Enum):
    CSS = "css"
    DOCX = "docx"


class StyleTranslator:
    """Maps a style set onto target markup; unrepresentable properties are dropped."""

    def to_target_markup(self, style_set: Mapping[str, str], target: TargetFormat) -> str:
        if not style_set:
            return ""
        if target is TargetFormat.CSS:
            return self.to_css(style_set)
        return self.to_run_properties(style_set)

    def to_css(self, style_set: Mapping[str, str]) -> str:
        return "; ".join(f"{prop}: {value}" for prop, value in style_set.items())

    def to_run_properties(self, style_set: Mapping[str, str]) -> str:
        """Return a ``<w:rPr>`` fragment, or an empty string when nothing maps."""
        elements = self.run_property_elements(style_set)
        if not elements:
            return ""
        ordered = [elements[tag] for tag in RUN_PROPERTY_ORDER if tag in elements]
        return "<w:rPr>" + "".join(ordered) + "</w:rPr>"

    def run_property_elements(self, style_set: Mapping[str, str]) -> Dict[str, str]:
        """Serialized ``w:rPr`` children keyed by local tag name."""
        elements: Dict[str, str] = {}
        for prop, value in style_set.items():
            value = value.strip()
            if prop == "font-weight":
                if value == "bold":
                    elements["b"] = "<w:b/>"
            elif prop == "font-style":
                if value == "italic":
                    elements["i"] = "<w:i/>"
            elif prop == "text-decoration":
                if value == "underline":
                    elements["u"] = '<w:u w:val="single"/>'
                elif value == "line-through":
                    elements["strike"] = "<w:strike/>"
            elif prop == "font-size":
                half_points = _half_points(value)
                if half_points:
                    elements["sz"] = f'<w:sz w:val="{half_points}"/>'
                    elements["szCs"] = f'<w:szCs w:val="{half_points}"/>'
            elif prop == "color":
                elements["color"] = f'<w:color w:val="{escape_attribute(value.lstrip("#"))}"/>'
            elif prop == "background-color":
                fill = escape_attribute(value.lstrip("#"))
                elements["shd"] = f'<w:shd w:val="clear" w:color="auto" w:fill="{fill}"/>'
            elif prop == "font-family":
                family = escape_attribute(value.strip("'\""))
                elements["rFonts"] = f'<w:rFonts w:ascii="{family}" w:hAnsi="{family}" w:cs="{family}"/>'
        return elements


def _half_points(value: str) -> Optional[int]:
    match = _FONT_SIZE.match(value)
    if match is None:
        return None
    size = float(match.group(1))
    if (match.group(2) or "pt").lower() == "px":
        size = pixels_to_points(size)
    return points_to_half_points(size) or None


def style_to_css(style: Mapping[str, str]) -> str:
    """Shortcut used by the HTML renderer."""
    return StyleTranslator().to_css(style)


def merge_run_properties(base_rpr: str, style_set: Mapping[str, str]) -> str:
    """Overlay translated styles onto an existing ``<w:rPr>`` fragment.

    Children of ``base_rpr`` that the style set also defines are replaced,
    the rest are kept, and the result is re-sorted into schema order.
    """
    styled = StyleTranslator().run_property_elements(style_set)
    block = _RPR_BLOCK.search(base_rpr or "")
    if block is None:
        children: List[tuple] = []
    else:
        children = [
            (match.group("local") or match.group("bare"), match.group(0))
            for match in _RPR_CHILD.finditer(block.group(1))
        ]
    if not styled:
        return base_rpr or ""

    merged = [(tag, markup) for tag, markup in children if tag not in styled]
    merged.extend(styled.items())
    rank = {tag: index for index, tag in enumerate(RUN_PROPERTY_ORDER)}
    merged.sort(key=lambda item: rank.get(item[0], len(RUN_PROPERTY_ORDER)))
    return "<w:rPr>" + "".join(markup for _, markup in merged) + "</w:rPr>"
