"""Tests for the template entry-point."""
import io
import tempfile
import unittest
import zipfile
from pathlib import Path

from docx_templater.exceptions import UnsupportedTemplateError
from docx_templater.main import detect_template_type, fill_template

W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"


def _minimal_docx(text: str) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as docx_zip:
        docx_zip.writestr(
            "[Content_Types].xml",
            '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types"></Types>',
        )
        docx_zip.writestr(
            "word/document.xml",
            f'<w:document xmlns:w="{W_NS}"><w:body><w:p><w:r><w:t>{text}</w:t></w:r></w:p></w:body></w:document>',
        )
    return buffer.getvalue()


class DetectTemplateTypeTest(unittest.TestCase):
    def test_known_extensions(self) -> None:
        self.assertEqual(detect_template_type(Path("a.DOCX")), "docx")
        self.assertEqual(detect_template_type(Path("a.html")), "html")
        self.assertEqual(detect_template_type(Path("a.htm")), "html")

    def test_unknown_extension(self) -> None:
        with self.assertRaises(UnsupportedTemplateError):
            detect_template_type(Path("a.pdf"))


class FillTemplateTest(unittest.TestCase):
    """Both template kinds are written to the output path."""

    def test_html(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "in.html"
            source.write_text("<p>{{name}} {{gone:text}}</p>", encoding="utf-8")
            output = Path(tmp) / "out" / "result.html"

            issues = fill_template(source, {"name": "Ann"}, output)
            self.assertEqual(output.read_text(encoding="utf-8"), "<p>Ann </p>")
            self.assertEqual([issue.name for issue in issues], ["gone"])

    def test_docx(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "in.docx"
            source.write_bytes(_minimal_docx("Hi {{name:text}}"))
            output = Path(tmp) / "out.docx"

            self.assertEqual(fill_template(source, {"name": "Ann"}, output), [])
            with zipfile.ZipFile(output) as docx_zip:
                self.assertIn(b"Hi Ann", docx_zip.read("word/document.xml"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
