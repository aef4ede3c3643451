import io
import unittest
from unittest import mock

import numpy as np
from PIL import Image

from depthparallax.controller.capture import CapturePipeline
from depthparallax.controller.depth_sources import DepthSourceController
from depthparallax.model.depth import DepthSource, DepthSurface
from depthparallax.model.state import SceneSession


def _session(width: int = 400, height: int = 300) -> SceneSession:
    session = SceneSession(
        generation=1,
        image=np.zeros((height, width, 3), dtype=np.uint8),
        capture=CapturePipeline(encoder_factory=mock.Mock()),
    )
    session.materials.create(session.image)
    return session


def _png(color: int, size=(400, 300)) -> bytes:
    buffer = io.BytesIO()
    Image.new("L", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class DepthSourceControllerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = _session()
        self.messages: list[str] = []
        self.controller = DepthSourceController(self.session, status=self.messages.append)
        self.prediction = DepthSurface(Image.new("L", (400, 300), 128))

    def test_prediction_is_applied_and_exported(self) -> None:
        self.session.materials.set_displacement_scale(0.2)

        self.assertTrue(self.controller.on_prediction(self.prediction))

        material = self.session.materials.material
        self.assertEqual(self.controller.active_source, DepthSource.PREDICTED)
        self.assertEqual(material.displacement_scale, 0.2)
        self.assertEqual(material.displacement_map.shape, (300, 400))
        self.assertIs(self.session.predicted, self.prediction)
        self.assertTrue(self.session.depth_blob.startswith(b"\x89PNG"))
        self.assertEqual(self.messages, ["Predicted map applied"])

    def test_export_failure_keeps_map_applied(self) -> None:
        with mock.patch.object(DepthSurface, "to_png_bytes", side_effect=OSError("disk")):
            self.assertTrue(self.controller.on_prediction(self.prediction))
        self.assertIsNone(self.session.depth_blob)
        self.assertEqual(self.controller.active_source, DepthSource.PREDICTED)
        self.assertEqual(self.messages, ["Predicted map applied", "Depth map export failed"])
        self.assertIsNotNone(self.session.materials.material.displacement_map)

    def test_prediction_after_teardown_is_ignored(self) -> None:
        self.session.materials.release()
        self.assertFalse(self.controller.on_prediction(self.prediction))
        self.assertIsNone(self.session.predicted)
        self.assertEqual(self.messages, [])

    def test_begin_upload_without_material(self) -> None:
        self.session.materials.release()
        with self.assertLogs("depthparallax.controller.depth_sources", level="ERROR"):
            self.assertFalse(self.controller.begin_upload("custom.png"))
        self.assertEqual(self.messages, [])

    def test_reject_upload_keeps_current_map(self) -> None:
        self.controller.on_prediction(self.prediction)
        with self.assertLogs("depthparallax.controller.depth_sources", level="ERROR"):
            self.controller.reject_upload("custom.png", "not an image")

        self.assertEqual(self.controller.active_source, DepthSource.PREDICTED)
        self.assertEqual(self.messages[-1], "Could not apply depth map 'custom.png'")

    def test_upload_replaces_prediction_but_keeps_it(self) -> None:
        self.controller.on_prediction(self.prediction)
        self.messages.clear()

        self.assertTrue(self.controller.on_upload(_png(255), "custom.png"))

        self.assertEqual(self.messages, ["Applying depth map: custom.png", "Depth map 'custom.png' applied"])
        self.assertEqual(self.controller.active_source, DepthSource.UPLOADED)
        self.assertEqual(self.session.uploaded_name, "custom.png")
        self.assertIs(self.session.predicted, self.prediction)
        np.testing.assert_allclose(self.session.materials.material.displacement_map, 1.0)

    def test_upload_before_prediction(self) -> None:
        self.assertTrue(self.controller.on_upload(_png(0), "first.png"))
        self.assertEqual(self.controller.active_source, DepthSource.UPLOADED)
        self.assertIsNone(self.session.predicted)

    def test_undecodable_upload_changes_nothing(self) -> None:
        self.controller.on_prediction(self.prediction)
        before = self.session.materials.material.displacement_map

        self.assertFalse(self.controller.on_upload(b"garbage", "bad.png"))

        self.assertIs(self.session.materials.material.displacement_map, before)
        self.assertEqual(self.controller.active_source, DepthSource.PREDICTED)
        self.assertEqual(self.messages[-1], "Could not apply depth map 'bad.png'")

    def test_revert_restores_prediction_after_many_uploads(self) -> None:
        self.controller.on_prediction(self.prediction)
        for i in range(3):
            self.controller.on_upload(_png(60 * i), f"upload-{i}.png")

        self.assertTrue(self.controller.revert())

        self.assertEqual(self.controller.active_source, DepthSource.PREDICTED)
        np.testing.assert_allclose(
            self.session.materials.material.displacement_map,
            self.prediction.to_raster(),
        )
        self.assertEqual(self.messages[-1], "Reverted to predicted depth map")

    def test_revert_without_prediction_is_a_noop(self) -> None:
        self.controller.on_upload(_png(255), "custom.png")
        self.messages.clear()

        self.assertFalse(self.controller.revert())

        self.assertEqual(self.controller.active_source, DepthSource.UPLOADED)
        self.assertEqual(self.messages, [])


if __name__ == "__main__":
    unittest.main()
