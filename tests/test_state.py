import unittest
from unittest import mock

import numpy as np

from depthparallax.model.noise import NoiseField
from depthparallax.model import state as state_module
from depthparallax.model.state import ViewerState


def _image(width: int = 4, height: int = 3) -> np.ndarray:
    return np.zeros((height, width, 3), dtype=np.uint8)


class ViewerStateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.pipelines: list = []

        def factory():
            pipeline = mock.Mock()
            pipeline.shutdown.return_value = None
            self.pipelines.append(pipeline)
            return pipeline

        self.state = ViewerState(noise=NoiseField(seed=0), capture_factory=factory)

    def test_new_session_creates_material(self) -> None:
        session = self.state.new_session(_image(400, 300), "photo.png")

        self.assertEqual(session.generation, 1)
        self.assertEqual(session.name, "photo.png")
        self.assertEqual(session.image_size, (400, 300))
        self.assertEqual(session.materials.material.image_size, (400, 300))
        self.assertIs(self.state.session, session)

    def test_generation_guard(self) -> None:
        first = self.state.new_session(_image())
        self.assertTrue(self.state.is_current(first.generation))

        second = self.state.new_session(_image())

        self.assertFalse(self.state.is_current(first.generation))
        self.assertTrue(self.state.is_current(second.generation))
        self.assertGreater(second.generation, first.generation)

    def test_new_session_tears_down_previous(self) -> None:
        first = self.state.new_session(_image())
        self.state.new_session(_image())

        self.assertTrue(first.closed)
        self.assertIsNone(first.materials.material)
        self.pipelines[0].shutdown.assert_called_once()
        # One pipeline per session
        self.assertEqual(len(self.pipelines), 2)

    def test_close_session_returns_saved_recording(self) -> None:
        self.state.new_session(_image())
        self.pipelines[0].shutdown.return_value = "/tmp/capture.webm"

        self.assertEqual(self.state.close_session(), "/tmp/capture.webm")
        self.assertIsNone(self.state.session)
        self.assertFalse(self.state.is_current(1))

    def test_close_without_session(self) -> None:
        self.assertIsNone(self.state.close_session())

    def test_session_close_is_idempotent(self) -> None:
        session = self.state.new_session(_image())
        session.close()
        self.assertIsNone(session.close())
        self.pipelines[0].shutdown.assert_called_once()

    def test_animation_toggle_carries_over(self) -> None:
        session = self.state.new_session(_image())
        self.assertTrue(session.animation.enabled)

        self.assertFalse(self.state.toggle_animation())
        self.assertFalse(session.animation.enabled)

        next_session = self.state.new_session(_image())
        self.assertFalse(next_session.animation.enabled)
        self.assertTrue(self.state.toggle_animation())
        self.assertTrue(next_session.animation.enabled)

    def test_capture_pipeline_comes_from_factory(self) -> None:
        session = self.state.new_session(_image())
        self.assertIs(session.capture, self.pipelines[0])
        # The model layer never builds a pipeline itself
        self.assertNotIn("CapturePipeline", vars(state_module))


if __name__ == "__main__":
    unittest.main()
