"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the Control Panel and the
3D parallax view.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects the panel buttons and the File menu to the session
   controller, and mirrors the controller's signals into the view.
"""
import logging
import os
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction
from PySide6.QtWidgets import (
    QFileDialog, QLabel, QMainWindow, QMessageBox, QSplitter
)

from depthparallax.config import DEPTH_MAP_FILENAME, EXAMPLE_IMAGE_URL
from depthparallax.controller.depth_estimator import DepthEstimator
from depthparallax.controller.session import SessionController
from depthparallax.model.io import ImageSource
from depthparallax.model.state import SceneSession, ViewerState
from depthparallax.view.panels.control_panel import ControlPanel
from depthparallax.view.widgets.plot_3d import ParallaxWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Depth Parallax"
IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.webp *.tif *.tiff)"


class MainWindow(QMainWindow):
    def __init__(self, state: ViewerState, estimator: Optional[DepthEstimator] = None) -> None:
        super().__init__()
        self.state: ViewerState = state
        self.controller = SessionController(state, estimator, parent=self)

        self.setWindowTitle(VISIBLE_APP_NAME)
        self.resize(1400, 900)

        # --- SPLITTER (CONTENT AREA) ---
        splitter = QSplitter(Qt.Horizontal)
        self.setCentralWidget(splitter)

        # --- LEFT SIDE: Control Panel ---
        self.panel = ControlPanel()
        splitter.addWidget(self.panel)

        # --- RIGHT SIDE: 3D Visualization ---
        self.visualizer = ParallaxWidget(self.state)
        splitter.addWidget(self.visualizer)

        # Set initial proportions (1 part sidebar : 4 parts 3D view)
        splitter.setSizes([300, 1100])

        # --- STATUS ---
        self.status_label = QLabel()
        self.statusBar().addWidget(self.status_label, 1)

        # --- SIGNAL CONNECTIONS ---
        self.panel.image_requested.connect(self.on_file_open)
        self.panel.example_requested.connect(self.on_example)
        self.panel.depth_map_requested.connect(self.on_upload_depth_map)
        self.panel.revert_requested.connect(self.controller.revert)
        self.panel.download_requested.connect(self.on_download_depth_map)
        self.panel.animation_toggle_requested.connect(self.on_toggle_animation)
        self.panel.recording_start_requested.connect(self.on_start_recording)
        self.panel.recording_stop_requested.connect(self.controller.stop_recording)
        self.panel.scale_changed.connect(self.on_scale_changed)
        self.visualizer.capture_failed.connect(self.on_capture_failed)

        self.controller.status_changed.connect(self.set_status)
        self.controller.session_started.connect(self.on_session_started)
        self.controller.image_failed.connect(self.on_image_failed)
        self.controller.model_failed.connect(self.on_model_error)
        self.controller.recording_changed.connect(self.panel.set_recording)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.controller.load_model()

    def _create_actions(self) -> None:
        self.act_open = QAction("Open Image...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_example = QAction("Open Example", self)
        self.act_example.triggered.connect(self.on_example)

        self.act_upload_depth = QAction("Upload Depth Map...", self)
        self.act_upload_depth.triggered.connect(self.on_upload_depth_map)
        self.act_upload_depth.setEnabled(False)  # Disabled until an image is loaded

        self.act_download_depth = QAction("Download Depth Map...", self)
        self.act_download_depth.setShortcut("Ctrl+S")
        self.act_download_depth.triggered.connect(self.on_download_depth_map)
        self.act_download_depth.setEnabled(False)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_open)
        file_menu.addAction(self.act_example)
        file_menu.addSeparator()
        file_menu.addAction(self.act_upload_depth)
        file_menu.addAction(self.act_download_depth)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

    # --- HELPER METHODS ---

    def set_status(self, text: str) -> None:
        self.status_label.setText(text)
        logger.debug(f"Status: {text}")

    def _set_scene_actions_enabled(self, enabled: bool) -> None:
        self.panel.set_scene_controls_enabled(enabled)
        self.act_upload_depth.setEnabled(enabled)
        self.act_download_depth.setEnabled(enabled)

    # --- CONTROLLER SLOTS ---

    def open_image(self, source: ImageSource, name: Optional[str] = None) -> None:
        """Load `source` in the background; the scene is rebuilt once it decodes."""
        self.controller.open_image(source, name)

    def on_session_started(self, session: SceneSession) -> None:
        self.visualizer.build_scene(session)
        self.panel.reset_scale()
        self._set_scene_actions_enabled(True)
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{session.name}]")

    def on_image_failed(self, name: str, message: str) -> None:
        QMessageBox.critical(self, "Error", f"Could not open image '{name}':\n{message}")

    def on_model_error(self, message: str) -> None:
        QMessageBox.critical(self, "Error", f"Could not load the depth model:\n{message}")

    # --- FILE SLOTS ---

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Open Image", "", IMAGE_FILTER)
        if fname:
            self.open_image(fname, os.path.basename(fname))

    def on_example(self) -> None:
        self.open_image(EXAMPLE_IMAGE_URL)

    def on_upload_depth_map(self) -> None:
        if self.state.session is None:
            return
        fname, _ = QFileDialog.getOpenFileName(self, "Upload Depth Map", "", IMAGE_FILTER)
        if fname:
            self.controller.upload_depth_map(fname, os.path.basename(fname))

    def on_download_depth_map(self) -> None:
        if not self.controller.has_depth_map:
            logger.error("Depth map is not ready for download.")
            self.set_status("Depth map is not ready for download.")
            return

        fname, _ = QFileDialog.getSaveFileName(
            self, "Download Depth Map", DEPTH_MAP_FILENAME, "PNG Files (*.png)"
        )
        if fname:
            # Ensure extension
            if not fname.lower().endswith(".png"):
                fname += ".png"
            try:
                self.controller.save_depth_map(fname)
            except OSError as e:
                logger.error(f"Error during download: {e}")
                QMessageBox.critical(self, "Error", f"Could not save the depth map:\n{e}")

    # --- SCENE CONTROLS ---

    def on_scale_changed(self, scale: float) -> None:
        scene = self.visualizer.scene
        if scene is not None:
            scene.set_displacement_scale(scale)

    def on_toggle_animation(self) -> None:
        enabled = self.state.toggle_animation()
        self.panel.btn_toggle_animation.setChecked(enabled)

    def on_start_recording(self) -> None:
        try:
            self.controller.start_recording()
        except OSError as e:
            logger.error(f"Could not start the recording: {e}")
            QMessageBox.critical(self, "Error", f"Could not start the recording:\n{e}")

    def on_capture_failed(self, message: str) -> None:
        self.panel.set_recording(False)
        self.set_status("Recording failed")
        QMessageBox.warning(self, "Recording", f"The recording was stopped:\n{message}")

    def closeEvent(self, event, /) -> None:
        """Finish any recording and release the scene before the window goes away."""
        self.visualizer.stop()
        self.controller.close()

        # Close the PyVista plotter safely
        if self.visualizer and self.visualizer.plotter:
            self.visualizer.plotter.close()

        event.accept()
