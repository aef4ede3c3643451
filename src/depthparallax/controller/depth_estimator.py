"""
Depth Estimator
===============
Wraps the Hugging Face depth-estimation pipeline.

Input: a PIL image. Output: a DepthSurface (drawable depth map, convertible to
a raster and to PNG bytes). Loaded pipelines are cached per (model, device)
because loading dominates the cost of the first prediction.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from PIL import Image

from depthparallax.config import DEPTH_MODEL_NAME
from depthparallax.model.depth import DepthSurface
from depthparallax.model.errors import InferenceFailure

logger = logging.getLogger(__name__)

_pipeline_cache: dict[tuple[str, str], Any] = {}


def pick_device(preference: str = "cuda") -> str:
    import torch

    if preference == "cuda" and torch.cuda.is_available():
        return "cuda:0"
    return "cpu"


class DepthEstimator:
    def __init__(self, model_name: str = DEPTH_MODEL_NAME, device: Optional[str] = None) -> None:
        self.model_name = model_name
        self.device = device
        self._pipe: Any = None

    @property
    def is_loaded(self) -> bool:
        return self._pipe is not None

    def load(self) -> None:
        """
        Load (or fetch from cache) the depth pipeline.

        Raises:
            InferenceFailure: If the model cannot be loaded.
        """
        if self._pipe is not None:
            return

        try:
            device = self.device or pick_device()
            key = (self.model_name, device)
            pipe = _pipeline_cache.get(key)
            if pipe is None:
                from transformers import pipeline

                logger.info(f"Loading depth model '{self.model_name}' on {device}...")
                pipe = pipeline("depth-estimation", model=self.model_name, device=device)
                _pipeline_cache[key] = pipe
            self.device = device
            self._pipe = pipe
        except Exception as e:
            raise InferenceFailure(f"Could not load depth model '{self.model_name}': {e}") from e

        logger.info("Depth model ready.")

    def predict(self, image: Image.Image) -> DepthSurface:
        """
        Estimate the depth of a photograph.

        Raises:
            InferenceFailure: If the model is missing or the forward pass fails.
        """
        if self._pipe is None:
            raise InferenceFailure("Depth model is not loaded.")

        try:
            result = self._pipe(image.convert("RGB"))
            depth = result["depth"]
        except Exception as e:
            raise InferenceFailure(f"Depth estimation failed: {e}") from e

        if not isinstance(depth, Image.Image):
            raise InferenceFailure(f"Unexpected depth output type: {type(depth).__name__}")

        # Displacement samples texture coordinates, so the map must match the photo
        if depth.size != image.size:
            depth = depth.resize(image.size, Image.BILINEAR)

        logger.info(f"Depth predicted ({depth.size[0]}x{depth.size[1]}).")
        return DepthSurface(depth)
