"""Tests for relationship parsing, indexing and writing."""
import unittest

from docx_templater.exceptions import RelationshipWriteError
from docx_templater.parser.rels_parser import (
    RELTYPE_IMAGE,
    Relationships,
    RelationshipWriter,
    rels_part_for,
)


doc_rels_xml = """
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/header" Target="header1.xml"/>
  <Relationship Id="rId2" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/footer" Target="footer1.xml"/>
  <Relationship Id="rId3" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="media/image1.png"/>
  <Relationship Id="rId5" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/hyperlink" Target="https://example.com" TargetMode="External"/>
</Relationships>
"""

header_rels_xml = """
<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">
  <Relationship Id="rId1" Type="http://schemas.openxmlformats.org/officeDocument/2006/relationships/image" Target="../media/image2.png"/>
</Relationships>
"""


class RelationshipsTest(unittest.TestCase):
    """Validate relationship categorisation and target resolution."""

    def setUp(self) -> None:
        self.parts = {
            "word/_rels/document.xml.rels": doc_rels_xml.encode("utf-8"),
            "word/_rels/header1.xml.rels": header_rels_xml.encode("utf-8"),
        }

    def test_document_summary_groups_targets(self) -> None:
        relationships = Relationships.from_package(self.parts)
        summary = relationships.document_summary()

        self.assertIn("rId1", summary.headers)
        self.assertEqual(summary.headers["rId1"].resolved_target, "word/header1.xml")

        self.assertIn("rId2", summary.footers)
        self.assertEqual(summary.footers["rId2"].resolved_target, "word/footer1.xml")

        self.assertNotIn("rId3", summary.headers)
        self.assertNotIn("rId3", summary.footers)

    def test_part_lookup_normalizes_names(self) -> None:
        relationships = Relationships.from_package(self.parts)

        header_rels = relationships.for_source("word/header1.xml")
        self.assertIn("rId1", header_rels)
        self.assertEqual(header_rels["rId1"].resolved_target, "word/media/image2.png")

        by_rels_name = relationships.for_source("word/_rels/header1.xml.rels")
        self.assertEqual(by_rels_name["rId1"].rel_type, RELTYPE_IMAGE)
        self.assertTrue(relationships.for_source("word/document.xml")["rId5"].is_external)

    def test_rels_part_for(self) -> None:
        self.assertEqual(rels_part_for("word/document.xml"), "word/_rels/document.xml.rels")
        self.assertEqual(rels_part_for("document.xml"), "_rels/document.xml.rels")


class RelationshipWriterTest(unittest.TestCase):
    """Appending relationships keeps existing entries and picks fresh ids."""

    def test_next_id_follows_entry_count(self) -> None:
        writer = RelationshipWriter(doc_rels_xml.encode("utf-8"))
        self.assertEqual(writer.count, 4)
        # rId5 is taken, so the writer moves past it.
        self.assertEqual(writer.next_id(), "rId6")

    def test_add_appends_before_closing_tag(self) -> None:
        writer = RelationshipWriter(header_rels_xml.encode("utf-8"))
        r_id = writer.add(RELTYPE_IMAGE, "../media/image_logo.png")
        self.assertEqual(r_id, "rId2")

        relationships = Relationships.from_package({"word/_rels/header1.xml.rels": writer.to_bytes()})
        header_rels = relationships.for_source("word/header1.xml")
        self.assertEqual(header_rels["rId2"].resolved_target, "word/media/image_logo.png")
        self.assertIn("rId1", header_rels)

    def test_missing_part_starts_empty(self) -> None:
        writer = RelationshipWriter(None)
        self.assertEqual(writer.add(RELTYPE_IMAGE, "media/a.png"), "rId1")
        self.assertIn(b'Id="rId1"', writer.to_bytes())

    def test_self_closing_root_is_expanded(self) -> None:
        payload = b'<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships"/>'
        writer = RelationshipWriter(payload)
        writer.add(RELTYPE_IMAGE, "media/a.png")
        self.assertTrue(writer.to_bytes().endswith(b"</Relationships>"))

    def test_external_target_mode(self) -> None:
        writer = RelationshipWriter(None)
        writer.add("http://example.com/type", "https://example.com", external=True)
        self.assertIn(b'TargetMode="External"', writer.to_bytes())

    def test_malformed_part_raises(self) -> None:
        with self.assertRaises(RelationshipWriteError):
            RelationshipWriter(b"<Relationships")
        with self.assertRaises(RelationshipWriteError):
            RelationshipWriter(b"<Other/>")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
