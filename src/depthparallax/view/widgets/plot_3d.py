"""
3D Parallax Widget (PyVista Wrapper) - Render Loop
"""
from __future__ import annotations

import logging
import time
from typing import Optional

from PySide6.QtCore import QTimer, Signal
from PySide6.QtGui import QCloseEvent, QResizeEvent
from PySide6.QtWidgets import QVBoxLayout, QWidget
from pyvistaqt import QtInteractor

from depthparallax.config import RENDER_INTERVAL_MS
from depthparallax.controller.animator import CameraAnimator
from depthparallax.model.state import SceneSession, ViewerState
from depthparallax.view.widgets.scene import SceneBuilder, SceneHandle

logger = logging.getLogger(__name__)


class ParallaxWidget(QWidget):
    # Emitted with the error message when the encoder rejects a frame
    capture_failed = Signal(str)

    def __init__(self, state: ViewerState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.state = state

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)

        self._init_plotter()

        self._builder = SceneBuilder(self.plotter)
        self.scene: Optional[SceneHandle] = None
        self.session: Optional[SceneSession] = None
        self.animator: Optional[CameraAnimator] = None

        self._attach_observers()

        # One tick per display refresh
        self._render_timer = QTimer(self)
        self._render_timer.setInterval(RENDER_INTERVAL_MS)
        self._render_timer.timeout.connect(self._on_tick)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def build_scene(self, session: SceneSession) -> SceneHandle:
        """
        Replace the current scene with one for `session` and keep rendering.
        The flat photo shows immediately; the depth map arrives later.
        """
        self.scene = self._builder.build(session, self.width(), self.height())
        self.session = session
        self.animator = CameraAnimator(self.state.noise, session.animation)

        if not self._render_timer.isActive():
            self._render_timer.start()
        self.plotter.render()
        return self.scene

    def clear_scene(self) -> None:
        self._builder.clear()
        self.scene = None
        self.session = None
        self.animator = None
        self.plotter.render()

    @property
    def is_running(self) -> bool:
        return self._render_timer.isActive()

    # ------------------------------------------------------------------------------
    # Internal: Render Loop
    # ------------------------------------------------------------------------------

    def _on_tick(self) -> None:
        scene, session = self.scene, self.session
        if scene is None or session is None or session.closed:
            return

        now_ms = time.perf_counter() * 1000.0

        scene.controls.update()
        self.animator.tick(self.plotter.camera, now_ms)
        scene.plane.sync(session.materials.material)
        self.plotter.render()

        if session.capture.is_recording:
            self._capture_frame(session)

    def _capture_frame(self, session: SceneSession) -> None:
        try:
            frame = self.plotter.screenshot(return_img=True)
            session.capture.capture(frame)
        except Exception as e:
            logger.exception(f"Capture failed, stopping the recording: {e}")
            try:
                session.capture.stop()
            except Exception:
                logger.exception("Could not finalize the broken recording.")
            self.capture_failed.emit(str(e))

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _init_plotter(self) -> None:
        self.plotter.set_background("black")
        self.plotter.enable_trackball_style()

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        iren.add_observer("ConfigureEvent", lambda *_: self._on_resize())

    def _on_resize(self) -> None:
        # VTK derives the camera aspect from the viewport; only a redraw is needed
        if self.scene is not None:
            logger.debug(f"Container resized to {self.width()}x{self.height()}.")
            self.plotter.render()

    def resizeEvent(self, event: QResizeEvent) -> None:
        super().resizeEvent(event)
        self._on_resize()

    def stop(self) -> None:
        self._render_timer.stop()

    def closeEvent(self, event: QCloseEvent) -> None:
        self.stop()
        self.plotter.close()
        event.accept()
