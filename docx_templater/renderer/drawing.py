"""Build inline DrawingML picture markup for embedded images."""
from __future__ import annotations

from docx_templater.model.placeholder import ResolvedGeometry
from docx_templater.utils.units import pixels_to_emu
from docx_templater.utils.xml_utils import A_NS, PIC_NS, REL_OFFICE_NS, WP_NS, escape_attribute

PICTURE_URI = "http://schemas.openxmlformats.org/drawingml/2006/picture"


def inline_picture(r_id: str, geometry: ResolvedGeometry, name: str, doc_pr_id: int) -> str:
    """Return a ``<w:drawing>`` element showing the image behind ``r_id``.

    Every namespace the fragment uses besides ``w`` is declared on the
    fragment itself, so the host part does not need to declare them.
    """
    cx = pixels_to_emu(geometry.width)
    cy = pixels_to_emu(geometry.height)
    label = escape_attribute(name)
    return (
        "<w:drawing>"
        f'<wp:inline xmlns:wp="{WP_NS}" distT="0" distB="0" distL="0" distR="0">'
        f'<wp:extent cx="{cx}" cy="{cy}"/>'
        '<wp:effectExtent l="0" t="0" r="0" b="0"/>'
        f'<wp:docPr id="{doc_pr_id}" name="{label}"/>'
        "<wp:cNvGraphicFramePr>"
        f'<a:graphicFrameLocks xmlns:a="{A_NS}" noChangeAspect="1"/>'
        "</wp:cNvGraphicFramePr>"
        f'<a:graphic xmlns:a="{A_NS}">'
        f'<a:graphicData uri="{PICTURE_URI}">'
        f'<pic:pic xmlns:pic="{PIC_NS}">'
        f'<pic:nvPicPr><pic:cNvPr id="0" name="{label}"/><pic:cNvPicPr/></pic:nvPicPr>'
        "<pic:blipFill>"
        f'<a:blip xmlns:r="{REL_OFFICE_NS}" r:embed="{r_id}"/>'
        "<a:stretch><a:fillRect/></a:stretch>"
        "</pic:blipFill>"
        "<pic:spPr>"
        f'<a:xfrm><a:off x="0" y="0"/><a:ext cx="{cx}" cy="{cy}"/></a:xfrm>'
        '<a:prstGeom prst="rect"><a:avLst/></a:prstGeom>'
        "</pic:spPr>"
        "</pic:pic>"
        "</a:graphicData>"
        "</a:graphic>"
        "</wp:inline>"
        "</w:drawing>"
    )
