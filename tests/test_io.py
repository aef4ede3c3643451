import io
import os
import tempfile
import unittest
from unittest import mock

import numpy as np
import requests
from PIL import Image

from depthparallax.model.errors import DepthMapDecodeError, MissingResource
from depthparallax.model.io import IOManager


def _png_bytes(mode: str = "RGB", size=(4, 3), color=0) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class SourceTests(unittest.TestCase):
    def test_is_url(self) -> None:
        self.assertTrue(IOManager.is_url("https://example.org/bread.png"))
        self.assertTrue(IOManager.is_url("http://example.org/bread.png"))
        self.assertFalse(IOManager.is_url("/tmp/bread.png"))
        self.assertFalse(IOManager.is_url(b"https://example.org"))

    def test_source_name(self) -> None:
        self.assertEqual(IOManager.source_name("https://example.org/a/bread_small.png"), "bread_small.png")
        self.assertEqual(IOManager.source_name(os.path.join("some", "dir", "custom.png")), "custom.png")
        self.assertEqual(IOManager.source_name(b"\x89PNG"), "image")


class FetchTests(unittest.TestCase):
    def test_fetch_returns_content(self) -> None:
        response = mock.Mock(content=b"payload")
        with mock.patch("depthparallax.model.io.requests.get", return_value=response) as get:
            self.assertEqual(IOManager.fetch_url("https://example.org/x.png"), b"payload")
        get.assert_called_once()
        response.raise_for_status.assert_called_once()

    def test_network_errors_become_missing_resource(self) -> None:
        with mock.patch("depthparallax.model.io.requests.get", side_effect=requests.ConnectionError("down")):
            with self.assertRaises(MissingResource):
                IOManager.fetch_url("https://example.org/x.png")

    def test_http_errors_become_missing_resource(self) -> None:
        response = mock.Mock()
        response.raise_for_status.side_effect = requests.HTTPError("404")
        with mock.patch("depthparallax.model.io.requests.get", return_value=response):
            with self.assertRaises(MissingResource):
                IOManager.fetch_url("https://example.org/x.png")


class LoadImageTests(unittest.TestCase):
    def test_load_from_bytes(self) -> None:
        image = IOManager.load_image(_png_bytes(size=(400, 300)))
        self.assertEqual(image.shape, (300, 400, 3))
        self.assertEqual(image.dtype, np.uint8)

    def test_alpha_is_dropped(self) -> None:
        image = IOManager.load_image(Image.new("RGBA", (5, 2), (10, 20, 30, 0)))
        self.assertEqual(image.shape, (2, 5, 3))
        np.testing.assert_array_equal(image[0, 0], (10, 20, 30))

    def test_load_from_url(self) -> None:
        with mock.patch.object(IOManager, "fetch_url", return_value=_png_bytes(size=(6, 2))):
            image = IOManager.load_image("https://example.org/bread_small.png")
        self.assertEqual(image.shape, (2, 6, 3))

    def test_missing_file(self) -> None:
        with self.assertRaises(MissingResource):
            IOManager.load_image(os.path.join(tempfile.gettempdir(), "does-not-exist-1234.png"))


class DecodeDepthMapTests(unittest.TestCase):
    def test_decoded_bitmap_is_wrapped(self) -> None:
        surface = IOManager.decode_depth_map(Image.new("L", (3, 2), 255))
        np.testing.assert_allclose(surface.to_raster(), 1.0)

    def test_array_is_wrapped(self) -> None:
        surface = IOManager.decode_depth_map(np.zeros((2, 3), dtype=np.uint8))
        self.assertEqual(surface.size, (3, 2))

    def test_encoded_bytes_are_decoded(self) -> None:
        surface = IOManager.decode_depth_map(_png_bytes(mode="L", size=(4, 4), color=255))
        np.testing.assert_allclose(surface.to_raster(), 1.0)

    def test_file_path_is_read(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "custom.png")
            Image.new("L", (8, 8), 0).save(path)
            surface = IOManager.decode_depth_map(path)
        np.testing.assert_allclose(surface.to_raster(), 0.0)

    def test_garbage_bytes_are_rejected(self) -> None:
        with self.assertRaises(DepthMapDecodeError):
            IOManager.decode_depth_map(b"not an image")

    def test_missing_file_is_rejected(self) -> None:
        with self.assertRaises(DepthMapDecodeError):
            IOManager.decode_depth_map(os.path.join(tempfile.gettempdir(), "nope-9876.png"))

    def test_bad_array_is_rejected(self) -> None:
        with self.assertRaises(DepthMapDecodeError):
            IOManager.decode_depth_map(np.zeros((2, 2, 2), dtype=np.uint8))


class SaveBytesTests(unittest.TestCase):
    def test_creates_parent_directories(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "depth-map.png")
            self.assertEqual(IOManager.save_bytes(b"abc", path), path)
            with open(path, "rb") as f:
                self.assertEqual(f.read(), b"abc")


if __name__ == "__main__":
    unittest.main()
