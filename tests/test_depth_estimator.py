import sys
import types
import unittest
from unittest import mock

from PIL import Image

from depthparallax.controller import depth_estimator
from depthparallax.controller.depth_estimator import DepthEstimator
from depthparallax.model.errors import InferenceFailure


def _fake_transformers(pipe):
    module = types.ModuleType("transformers")
    module.pipeline = mock.Mock(return_value=pipe)
    return module


class DepthEstimatorTests(unittest.TestCase):
    def setUp(self) -> None:
        depth_estimator._pipeline_cache.clear()
        self.addCleanup(depth_estimator._pipeline_cache.clear)

    def test_load_builds_pipeline_once_per_model(self) -> None:
        fake = _fake_transformers(mock.Mock())
        with mock.patch.dict(sys.modules, {"transformers": fake}):
            first = DepthEstimator("some/model", device="cpu")
            first.load()
            second = DepthEstimator("some/model", device="cpu")
            second.load()

        fake.pipeline.assert_called_once_with("depth-estimation", model="some/model", device="cpu")
        self.assertTrue(first.is_loaded)
        self.assertIs(first._pipe, second._pipe)

    def test_load_failure(self) -> None:
        fake = types.ModuleType("transformers")
        fake.pipeline = mock.Mock(side_effect=OSError("no such model"))
        with mock.patch.dict(sys.modules, {"transformers": fake}):
            estimator = DepthEstimator("missing/model", device="cpu")
            with self.assertRaises(InferenceFailure):
                estimator.load()
        self.assertFalse(estimator.is_loaded)

    def test_predict_requires_model(self) -> None:
        with self.assertRaises(InferenceFailure):
            DepthEstimator(device="cpu").predict(Image.new("RGB", (4, 4)))

    def test_prediction_is_resized_to_the_photo(self) -> None:
        estimator = DepthEstimator(device="cpu")
        estimator._pipe = mock.Mock(return_value={"depth": Image.new("L", (4, 3), 90)})

        surface = estimator.predict(Image.new("RGBA", (400, 300)))

        self.assertEqual(surface.size, (400, 300))
        called_with = estimator._pipe.call_args.args[0]
        self.assertEqual(called_with.mode, "RGB")

    def test_forward_pass_failure(self) -> None:
        estimator = DepthEstimator(device="cpu")
        estimator._pipe = mock.Mock(side_effect=RuntimeError("CUDA out of memory"))
        with self.assertRaises(InferenceFailure):
            estimator.predict(Image.new("RGB", (4, 4)))

    def test_unexpected_output(self) -> None:
        estimator = DepthEstimator(device="cpu")
        estimator._pipe = mock.Mock(return_value={"depth": [[0.1, 0.2]]})
        with self.assertRaises(InferenceFailure):
            estimator.predict(Image.new("RGB", (2, 1)))


if __name__ == "__main__":
    unittest.main()
