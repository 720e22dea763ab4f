"""Tests for the placeholder grammar parser."""
import unittest

from docx_templater.model.placeholder import ImageGeometry, TypeTag
from docx_templater.parser.placeholder_parser import PlaceholderParser, normalize_style
from docx_templater.renderer.html_renderer import HtmlTemplateRenderer


class PlaceholderParserTest(unittest.TestCase):
    """Grammar recognition, whitespace tolerance and option splitting."""

    def setUp(self) -> None:
        self.parser = PlaceholderParser()

    def test_name_type_and_options(self) -> None:
        tokens = self.parser.parse("Photo: {{logo:image,width:300,ratio:16:9}}")
        self.assertEqual(len(tokens), 1)
        token = tokens[0]
        self.assertEqual(token.name, "logo")
        self.assertIs(token.declared_type, TypeTag.IMAGE)
        self.assertEqual(token.options, {"width": "300", "ratio": "16:9"})
        self.assertEqual(token.literal_span, "{{logo:image,width:300,ratio:16:9}}")

    def test_whitespace_variants_parse_identically(self) -> None:
        compact = self.parser.parse("{{n:number,k1:v1,k2:v2}}")[0]
        spaced = self.parser.parse("{{ n : number , k1 : v1 , k2 : v2 }}")[0]
        self.assertEqual(spaced.name, compact.name)
        self.assertIs(spaced.declared_type, compact.declared_type)
        self.assertEqual(spaced.options, compact.options)
        self.assertEqual(compact.options, {"k1": "v1", "k2": "v2"})

    def test_type_synonyms(self) -> None:
        self.assertIs(self.parser.parse_span("{{a:string}}").declared_type, TypeTag.TEXT)
        self.assertIs(self.parser.parse_span("{{a:int}}").declared_type, TypeTag.NUMBER)
        self.assertIs(self.parser.parse_span("{{a:bool}}").declared_type, TypeTag.BOOLEAN)

    def test_unknown_type_falls_back_to_text(self) -> None:
        token = self.parser.parse_span("{{a:currency}}")
        self.assertIs(token.declared_type, TypeTag.TEXT)
        self.assertFalse(token.recognized)
        self.assertEqual(token.raw_type, "currency")

    def test_untyped_placeholder(self) -> None:
        token = self.parser.parse_span("{{ customer }}")
        self.assertEqual(token.name, "customer")
        self.assertFalse(token.typed)
        self.assertIs(token.declared_type, TypeTag.TEXT)

    def test_discovery_order_and_repeats(self) -> None:
        names = [t.name for t in self.parser.parse("{{b:text}} {{a:text}} {{b:text}}")]
        self.assertEqual(names, ["b", "a", "b"])

    def test_segment_without_colon_is_ignored(self) -> None:
        token = self.parser.parse_span("{{a:text,oops,width:3}}")
        self.assertEqual(token.options, {"width": "3"})

    def test_style_keys_are_split_from_options(self) -> None:
        token = self.parser.parse_span("{{t:text,bold:true,color:red,width:5}}")
        self.assertEqual(token.style_options, {"font-weight": "bold", "color": "FF0000"})
        self.assertEqual(token.options, {"width": "5"})

    def test_substitution_leaves_template_tokens_intact(self) -> None:
        template = "Dear {{name:text,bold:true}}, total {{ sum : number }}"
        before = self.parser.parse(template)

        rendered = HtmlTemplateRenderer().render(template, {"name": "Ann", "sum": 3}).text
        self.assertNotIn("{{", rendered)
        self.assertIn("total 3", rendered)

        after = self.parser.parse(template)
        self.assertEqual(
            [(t.name, t.declared_type, t.options, t.style_options, t.literal_span) for t in after],
            [(t.name, t.declared_type, t.options, t.style_options, t.literal_span) for t in before],
        )
        self.assertEqual([t.name for t in after], ["name", "sum"])

    def test_nested_braces_are_not_placeholders(self) -> None:
        self.assertEqual(self.parser.parse("{{a{b}}"), [])
        self.assertEqual(self.parser.parse(""), [])

    def test_image_geometry(self) -> None:
        token = self.parser.parse_span("{{p:image,width:320.7,height:abc,ratio:4:3}}")
        self.assertEqual(self.parser.image_geometry(token), ImageGeometry(320, None, (4, 3)))

    def test_invalid_ratio_is_dropped(self) -> None:
        token = self.parser.parse_span("{{p:image,ratio:0:3}}")
        self.assertIsNone(self.parser.image_geometry(token).ratio)


class NormalizeStyleTest(unittest.TestCase):
    """Canonical forms of style values."""

    def test_aliases(self) -> None:
        self.assertEqual(normalize_style("bold", "true"), ("font-weight", "bold"))
        self.assertEqual(normalize_style("italic", "1"), ("font-style", "italic"))
        self.assertEqual(normalize_style("underline", "no"), ("text-decoration", "none"))

    def test_font_size_gets_points(self) -> None:
        self.assertEqual(normalize_style("font-size", "12"), ("font-size", "12pt"))
        self.assertEqual(normalize_style("font-size", "14px"), ("font-size", "14px"))

    def test_named_colors(self) -> None:
        self.assertEqual(normalize_style("color", "Navy"), ("color", "000080"))
        self.assertEqual(normalize_style("background-color", "#ABCDEF"), ("background-color", "#ABCDEF"))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
