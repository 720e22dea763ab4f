"""Tests for image geometry resolution."""
import unittest

from docx_templater.config import PatcherConfig
from docx_templater.model.placeholder import ImageGeometry, ResolvedGeometry
from docx_templater.processor.image_dimensions import ImageDimensionResolver


class ImageDimensionResolverTest(unittest.TestCase):
    """Ratio branches, proportional scaling and degenerate inputs."""

    def setUp(self) -> None:
        self.resolver = ImageDimensionResolver()

    def test_ratio_with_explicit_width(self) -> None:
        geometry = ImageGeometry(requested_width=800, ratio=(16, 9))
        self.assertEqual(self.resolver.resolve(geometry, 1000, 500), ResolvedGeometry(800, 450))

    def test_ratio_with_explicit_height_truncates(self) -> None:
        geometry = ImageGeometry(requested_height=400, ratio=(16, 9))
        self.assertEqual(self.resolver.resolve(geometry, 2000, 500), ResolvedGeometry(711, 400))

    def test_ratio_defaults_follow_source_aspect(self) -> None:
        wide = self.resolver.resolve(ImageGeometry(ratio=(4, 3)), 2000, 500)
        self.assertEqual(wide, ResolvedGeometry(533, 400))
        tall = self.resolver.resolve(ImageGeometry(ratio=(4, 3)), 300, 900)
        self.assertEqual(tall, ResolvedGeometry(600, 450))

    def test_ratio_defaults_come_from_config(self) -> None:
        resolver = ImageDimensionResolver(PatcherConfig(ratio_default_width=100))
        self.assertEqual(resolver.resolve(ImageGeometry(ratio=(1, 2)), 10, 40), ResolvedGeometry(100, 200))

    def test_both_dimensions_used_directly(self) -> None:
        geometry = ImageGeometry(requested_width=50, requested_height=70)
        self.assertEqual(self.resolver.resolve(geometry, 1000, 500), ResolvedGeometry(50, 70))

    def test_single_dimension_scales_proportionally(self) -> None:
        self.assertEqual(self.resolver.resolve(ImageGeometry(requested_width=250), 1000, 500), ResolvedGeometry(250, 125))
        self.assertEqual(self.resolver.resolve(ImageGeometry(requested_height=100), 1000, 500), ResolvedGeometry(200, 100))

    def test_single_dimension_never_upscales(self) -> None:
        self.assertEqual(self.resolver.resolve(ImageGeometry(requested_width=4000), 1000, 500), ResolvedGeometry(1000, 500))

    def test_no_options_keeps_natural_size(self) -> None:
        self.assertEqual(self.resolver.resolve(ImageGeometry(), 640, 480), ResolvedGeometry(640, 480))

    def test_degenerate_natural_size(self) -> None:
        self.assertEqual(self.resolver.resolve(ImageGeometry(requested_width=30), 0, 0), ResolvedGeometry(30, 30))
        self.assertEqual(self.resolver.resolve(ImageGeometry(ratio=(2, 1)), 0, 0), ResolvedGeometry(600, 300))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
