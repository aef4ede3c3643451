"""
Session Controller
==================
Drives the viewer state from user requests: opening images, predicting and
uploading depth maps, reverting, recording and exporting.

Why is this file needed?
------------------------
1. Threading: every slow step (URL fetch, image decode, model load,
   inference) runs on a QThread worker. The request methods only start the
   worker and return, so the render loop never waits on them.
2. Staleness: results come back through signals tagged with a ticket (image
   loads) or a scene generation (predictions, uploads). Results that no longer
   match the current request or scene are logged and dropped.
3. Testability: the window only forwards clicks here, so every flow can be
   exercised with a QCoreApplication and no display.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import numpy.typing as npt
from PySide6.QtCore import QObject, Signal

from depthparallax.controller.depth_estimator import DepthEstimator
from depthparallax.controller.depth_sources import DepthSourceController
from depthparallax.controller.workers import (
    DepthMapWorker, DepthWorker, ImageLoadWorker, ModelLoaderWorker
)
from depthparallax.model.depth import DepthSurface
from depthparallax.model.io import ImageSource, IOManager
from depthparallax.model.state import SceneSession, ViewerState

logger = logging.getLogger(__name__)


class SessionController(QObject):
    status_changed = Signal(str)
    # New SceneSession, emitted after the previous one was torn down
    session_started = Signal(object)
    # (name, message)
    image_failed = Signal(str, str)
    model_failed = Signal(str)
    # True while a recording runs
    recording_changed = Signal(bool)

    def __init__(self, state: ViewerState, estimator: Optional[DepthEstimator] = None, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.state = state
        self.estimator: DepthEstimator = estimator or DepthEstimator()
        self.depth_controller: Optional[DepthSourceController] = None

        # Workers must outlive their run() or Qt destroys a running thread
        self._workers: set = set()
        self._image_ticket: int = 0
        # Generation waiting for the model to finish loading
        self._pending_generation: Optional[int] = None

    # ------------------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------------------

    def _status(self, text: str) -> None:
        self.status_changed.emit(text)

    def _track(self, worker) -> None:
        self._workers.add(worker)
        worker.finished.connect(lambda w=worker: self._workers.discard(w))

    @property
    def busy(self) -> bool:
        return any(w.isRunning() for w in self._workers)

    def wait_for_workers(self, timeout_ms: int = 2000) -> None:
        for worker in list(self._workers):
            worker.wait(timeout_ms)

    # ------------------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------------------

    def load_model(self) -> ModelLoaderWorker:
        self._status("Loading model...")
        worker = ModelLoaderWorker(self.estimator)
        worker.loaded.connect(self.on_model_loaded)
        worker.error_occurred.connect(self.on_model_error)
        self._track(worker)
        worker.start()
        return worker

    def on_model_loaded(self) -> None:
        pending, self._pending_generation = self._pending_generation, None
        if pending is not None and self.state.is_current(pending):
            self._start_prediction(self.state.session)
        else:
            self._status("Ready")

    def on_model_error(self, message: str) -> None:
        self._pending_generation = None
        self._status(f"Model failed to load: {message}")
        self.model_failed.emit(message)

    # ------------------------------------------------------------------------------
    # Images & Prediction
    # ------------------------------------------------------------------------------

    def open_image(self, source: ImageSource, name: Optional[str] = None) -> ImageLoadWorker:
        """Load `source` in the background. Only the most recent request is shown."""
        name = name or IOManager.source_name(source)
        self._image_ticket += 1
        self._status(f"Opening {name}...")

        worker = ImageLoadWorker(source, name, self._image_ticket)
        worker.loaded.connect(self.on_image_loaded)
        worker.error_occurred.connect(self.on_image_error)
        self._track(worker)
        worker.start()
        return worker

    def on_image_loaded(self, ticket: int, image: npt.NDArray[np.uint8], name: str) -> None:
        if ticket != self._image_ticket:
            logger.info(f"Dropping superseded image '{name}'.")
            return
        self.start_session(image, name)

    def on_image_error(self, ticket: int, name: str, message: str) -> None:
        if ticket != self._image_ticket:
            return
        logger.error(f"Could not open image '{name}': {message}")
        self._status(f"Could not open image '{name}'")
        self.image_failed.emit(name, message)

    def start_session(self, image: npt.NDArray[np.uint8], name: str = "image") -> SceneSession:
        """Replace the scene with a flat one for `image` and request its depth."""
        session = self.state.new_session(image, name)
        self.depth_controller = DepthSourceController(session, status=self._status)
        self.recording_changed.emit(False)
        self.session_started.emit(session)

        if self.estimator.is_loaded:
            self._start_prediction(session)
        else:
            self._pending_generation = session.generation
            self._status("Loading model...")
        return session

    def _start_prediction(self, session: SceneSession) -> None:
        self._status("Analysing...")
        worker = DepthWorker(self.estimator, session.image, session.generation)
        worker.result_ready.connect(self.on_depth_ready)
        worker.error_occurred.connect(self.on_depth_error)
        self._track(worker)
        worker.start()

    def _controller_for(self, generation: int) -> Optional[DepthSourceController]:
        controller = self.depth_controller
        if controller is None or not self.state.is_current(generation):
            return None
        if controller.session.generation != generation:
            return None
        return controller

    def on_depth_ready(self, generation: int, surface: DepthSurface) -> None:
        controller = self._controller_for(generation)
        if controller is None:
            logger.info(f"Dropping depth map of stale scene {generation}.")
            return

        controller.on_prediction(surface)
        if controller.session.depth_blob is not None:
            self._status("Ready")

    def on_depth_error(self, generation: int, message: str) -> None:
        if self._controller_for(generation) is None:
            logger.info(f"Ignoring failure of stale scene {generation}.")
            return
        # The plane stays flat; the photo is still shown
        self._status(f"Depth estimation failed: {message}")

    # ------------------------------------------------------------------------------
    # Depth Map Sources
    # ------------------------------------------------------------------------------

    def upload_depth_map(self, source: ImageSource, name: Optional[str] = None) -> Optional[DepthMapWorker]:
        """Decode an uploaded depth map in the background, then apply it to the same scene."""
        name = name or IOManager.source_name(source)
        controller = self.depth_controller
        if controller is None:
            logger.error(f"Cannot apply depth map '{name}': no image loaded.")
            return None
        if not controller.begin_upload(name):
            return None

        worker = DepthMapWorker(source, name, controller.session.generation)
        worker.decoded.connect(self.on_depth_map_decoded)
        worker.error_occurred.connect(self.on_depth_map_error)
        self._track(worker)
        worker.start()
        return worker

    def on_depth_map_decoded(self, generation: int, surface: DepthSurface, name: str) -> None:
        controller = self._controller_for(generation)
        if controller is None:
            logger.info(f"Dropping depth map '{name}' of stale scene {generation}.")
            return
        controller.apply_upload(surface, name)

    def on_depth_map_error(self, generation: int, name: str, message: str) -> None:
        controller = self._controller_for(generation)
        if controller is None:
            return
        controller.reject_upload(name, message)

    def revert(self) -> bool:
        if self.depth_controller is None:
            return False
        return self.depth_controller.revert()

    def save_depth_map(self, filepath: str) -> Optional[str]:
        """Write the predicted map as PNG. None if no prediction has been exported yet."""
        session = self.state.session
        if session is None or session.depth_blob is None:
            logger.error("Depth map is not ready for download.")
            self._status("Depth map is not ready for download.")
            return None
        path = IOManager.save_bytes(session.depth_blob, filepath)
        self._status(f"Depth map saved to {path}")
        return path

    @property
    def has_depth_map(self) -> bool:
        session = self.state.session
        return session is not None and session.depth_blob is not None

    # ------------------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------------------

    def start_recording(self) -> bool:
        """
        Raises:
            OSError: If the capture directory or the encoder cannot be created.
        """
        session = self.state.session
        if session is None:
            logger.error("Cannot start recording: no image loaded.")
            self._status("Open an image before recording.")
            return False
        if not session.capture.start():
            return False
        self._status("Recording...")
        self.recording_changed.emit(True)
        return True

    def stop_recording(self) -> Optional[str]:
        session = self.state.session
        if session is None:
            logger.error("Cannot stop recording: no image loaded.")
            return None
        path = session.capture.stop()
        self.recording_changed.emit(False)
        if path:
            self._status(f"Recording saved to {path}")
        return path

    def close(self) -> Optional[str]:
        """Tear down the scene (saving any active recording) and join the workers."""
        saved = self.state.close_session()
        self.depth_controller = None
        if saved:
            logger.info(f"Recording saved on exit: {saved}")
        self.wait_for_workers()
        return saved
