import unittest

import numpy as np
from PIL import Image

from depthparallax.model.depth import DepthSurface, to_raster


class ToRasterTests(unittest.TestCase):
    def test_grayscale_image_is_normalized(self) -> None:
        img = Image.fromarray(np.array([[0, 255]], dtype=np.uint8))
        np.testing.assert_allclose(to_raster(img), [[0.0, 1.0]])

    def test_sixteen_bit_image_is_normalized_by_peak(self) -> None:
        img = Image.fromarray(np.array([[0, 500, 1000]], dtype=np.uint16))
        raster = to_raster(img)
        self.assertEqual(raster.dtype, np.float32)
        np.testing.assert_allclose(raster, [[0.0, 0.5, 1.0]])

    def test_uint16_array_uses_dtype_range(self) -> None:
        raster = to_raster(np.array([[0, 65535]], dtype=np.uint16))
        np.testing.assert_allclose(raster, [[0.0, 1.0]])

    def test_rgb_array_uses_luma(self) -> None:
        arr = np.zeros((1, 2, 3), dtype=np.uint8)
        arr[0, 0] = (255, 255, 255)
        arr[0, 1] = (255, 0, 0)
        raster = to_raster(arr)
        self.assertAlmostEqual(float(raster[0, 0]), 1.0, places=5)
        self.assertAlmostEqual(float(raster[0, 1]), 76 / 255, places=5)

    def test_rgba_alpha_is_ignored(self) -> None:
        arr = np.full((2, 2, 4), 255, dtype=np.uint8)
        arr[..., 3] = 0
        np.testing.assert_allclose(to_raster(arr), 1.0)

    def test_float_array_is_clipped(self) -> None:
        np.testing.assert_allclose(to_raster(np.array([[-1.0, 0.25, 2.0]])), [[0.0, 0.25, 1.0]])

    def test_rejects_non_image_shapes(self) -> None:
        with self.assertRaises(ValueError):
            to_raster(np.zeros((2, 2, 2), dtype=np.uint8))
        with self.assertRaises(ValueError):
            to_raster(np.zeros(4, dtype=np.uint8))


class DepthSurfaceTests(unittest.TestCase):
    def test_from_raster_keeps_size_and_values(self) -> None:
        surface = DepthSurface.from_raster(np.array([[0.0, 1.0], [1.0, 0.0], [0.5, 0.5]]))
        self.assertEqual(surface.size, (2, 3))
        raster = surface.to_raster()
        self.assertEqual(raster.shape, (3, 2))
        np.testing.assert_allclose(raster[:2], [[0.0, 1.0], [1.0, 0.0]])
        np.testing.assert_allclose(raster[2], 128 / 255, atol=1e-6)

    def test_png_export(self) -> None:
        data = DepthSurface(Image.new("L", (5, 4), 200)).to_png_bytes()
        self.assertTrue(data.startswith(b"\x89PNG\r\n\x1a\n"))


if __name__ == "__main__":
    unittest.main()
