"""
Background Workers (Threading)
==============================
QThread subclasses for the long-running model and file work.

Why is this file needed?
------------------------
1. Responsiveness: loading the model, running inference, fetching URLs and
   decoding large images take seconds. If they ran on the main thread the
   render loop would stall and the flat photo would freeze.
2. Signals: results travel back to the main thread through Qt signals, so
   every state change still happens between two render ticks.

Classes:
    ModelLoaderWorker: Loads the depth-estimation pipeline.
    DepthWorker: Predicts the depth map of one image for one scene generation.
    ImageLoadWorker: Reads and decodes a photograph (file, URL or bytes).
    DepthMapWorker: Reads and decodes an uploaded depth map for one scene generation.
"""
import logging

import numpy as np
import numpy.typing as npt
from PIL import Image
from PySide6.QtCore import QThread, Signal

from depthparallax.controller.depth_estimator import DepthEstimator
from depthparallax.model.io import ImageSource, IOManager

logger = logging.getLogger(__name__)


class ModelLoaderWorker(QThread):
    loaded = Signal()
    error_occurred = Signal(str)

    def __init__(self, estimator: DepthEstimator) -> None:
        super().__init__()
        self.estimator = estimator

    def run(self) -> None:
        try:
            logger.info("Loading depth model in background thread...")
            self.estimator.load()
            self.loaded.emit()
        except Exception as e:
            logger.error(f"Error in ModelLoaderWorker: {e}")
            self.error_occurred.emit(str(e))


class DepthWorker(QThread):
    # (generation, DepthSurface)
    result_ready = Signal(int, object)
    # (generation, message)
    error_occurred = Signal(int, str)

    def __init__(self, estimator: DepthEstimator, image: npt.NDArray[np.uint8], generation: int) -> None:
        super().__init__()
        self.estimator = estimator
        self.image = image
        self.generation = generation

    def run(self) -> None:
        try:
            logger.info(f"Predicting depth for scene {self.generation}...")
            surface = self.estimator.predict(Image.fromarray(self.image))
            self.result_ready.emit(self.generation, surface)
        except Exception as e:
            logger.error(f"Error in DepthWorker: {e}")
            self.error_occurred.emit(self.generation, str(e))


class ImageLoadWorker(QThread):
    # (ticket, RGB array, name)
    loaded = Signal(int, object, str)
    # (ticket, name, message)
    error_occurred = Signal(int, str, str)

    def __init__(self, source: ImageSource, name: str, ticket: int) -> None:
        super().__init__()
        self.source = source
        self.name = name
        self.ticket = ticket

    def run(self) -> None:
        try:
            logger.info(f"Loading image '{self.name}' in background thread...")
            image = IOManager.load_image(self.source)
            self.loaded.emit(self.ticket, image, self.name)
        except Exception as e:
            logger.error(f"Error in ImageLoadWorker: {e}")
            self.error_occurred.emit(self.ticket, self.name, str(e))


class DepthMapWorker(QThread):
    # (generation, DepthSurface, name)
    decoded = Signal(int, object, str)
    # (generation, name, message)
    error_occurred = Signal(int, str, str)

    def __init__(self, source: ImageSource, name: str, generation: int) -> None:
        super().__init__()
        self.source = source
        self.name = name
        self.generation = generation

    def run(self) -> None:
        try:
            surface = IOManager.decode_depth_map(self.source)
            self.decoded.emit(self.generation, surface, self.name)
        except Exception as e:
            logger.error(f"Error in DepthMapWorker: {e}")
            self.error_occurred.emit(self.generation, self.name, str(e))
