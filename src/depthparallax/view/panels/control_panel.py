"""
Viewer Control Panel
"""
from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QGroupBox, QHBoxLayout, QLabel, QPushButton, QSlider, QVBoxLayout, QWidget
)

from depthparallax.config import DEFAULT_DISPLACEMENT_SCALE, SLIDER_STEPS


def slider_to_scale(value: int) -> float:
    return max(0, min(SLIDER_STEPS, value)) / SLIDER_STEPS


def scale_to_slider(scale: float) -> int:
    return int(round(max(0.0, min(1.0, scale)) * SLIDER_STEPS))


class ControlPanel(QWidget):
    image_requested = Signal()
    example_requested = Signal()
    depth_map_requested = Signal()
    revert_requested = Signal()
    download_requested = Signal()
    animation_toggle_requested = Signal()
    recording_start_requested = Signal()
    recording_stop_requested = Signal()
    # Displacement scale in [0, 1]
    scale_changed = Signal(float)

    def __init__(self) -> None:
        super().__init__()
        layout = QVBoxLayout(self)

        # --- Image ---
        grp_image = QGroupBox("Image")
        l_image = QVBoxLayout(grp_image)

        self.btn_open = QPushButton("Open Image...")
        self.btn_open.setMinimumHeight(40)
        self.btn_open.clicked.connect(self.image_requested)
        l_image.addWidget(self.btn_open)

        self.btn_example = QPushButton("Example")
        self.btn_example.clicked.connect(self.example_requested)
        l_image.addWidget(self.btn_example)

        layout.addWidget(grp_image)

        # --- Depth Map ---
        grp_depth = QGroupBox("Depth Map")
        l_depth = QVBoxLayout(grp_depth)

        self.btn_upload_depth = QPushButton("Upload Depth Map...")
        self.btn_upload_depth.clicked.connect(self.depth_map_requested)
        l_depth.addWidget(self.btn_upload_depth)

        self.btn_revert = QPushButton("Revert to Predicted")
        self.btn_revert.clicked.connect(self.revert_requested)
        l_depth.addWidget(self.btn_revert)

        self.btn_download = QPushButton("Download Depth Map...")
        self.btn_download.clicked.connect(self.download_requested)
        l_depth.addWidget(self.btn_download)

        hbox_scale = QHBoxLayout()
        hbox_scale.addWidget(QLabel("Displacement:"))
        self.slider = QSlider(Qt.Horizontal)
        self.slider.setRange(0, SLIDER_STEPS)
        self.slider.setSingleStep(1)
        self.slider.setValue(scale_to_slider(DEFAULT_DISPLACEMENT_SCALE))
        self.slider.valueChanged.connect(self.on_slider_changed)
        hbox_scale.addWidget(self.slider)
        self.lbl_scale = QLabel(f"{DEFAULT_DISPLACEMENT_SCALE:.2f}")
        hbox_scale.addWidget(self.lbl_scale)
        l_depth.addLayout(hbox_scale)

        layout.addWidget(grp_depth)

        # --- Animation & Recording ---
        grp_anim = QGroupBox("Animation")
        l_anim = QVBoxLayout(grp_anim)

        self.btn_toggle_animation = QPushButton("Toggle Animation")
        self.btn_toggle_animation.setCheckable(True)
        self.btn_toggle_animation.setChecked(True)
        self.btn_toggle_animation.clicked.connect(self.animation_toggle_requested)
        l_anim.addWidget(self.btn_toggle_animation)

        hbox_rec = QHBoxLayout()
        self.btn_start_rec = QPushButton("Start Recording")
        self.btn_start_rec.clicked.connect(self.recording_start_requested)
        hbox_rec.addWidget(self.btn_start_rec)
        self.btn_stop_rec = QPushButton("Stop Recording")
        self.btn_stop_rec.clicked.connect(self.recording_stop_requested)
        hbox_rec.addWidget(self.btn_stop_rec)
        l_anim.addLayout(hbox_rec)

        layout.addWidget(grp_anim)

        layout.addStretch()
        self.set_scene_controls_enabled(False)

    def on_slider_changed(self, value: int) -> None:
        scale = slider_to_scale(value)
        self.lbl_scale.setText(f"{scale:.2f}")
        self.scale_changed.emit(scale)

    def reset_scale(self) -> None:
        """Back to the default without notifying listeners (new scene already has it)."""
        self.slider.blockSignals(True)
        self.slider.setValue(scale_to_slider(DEFAULT_DISPLACEMENT_SCALE))
        self.slider.blockSignals(False)
        self.lbl_scale.setText(f"{DEFAULT_DISPLACEMENT_SCALE:.2f}")

    def set_scene_controls_enabled(self, enabled: bool) -> None:
        for w in (self.btn_upload_depth, self.btn_revert, self.btn_download, self.slider,
                  self.btn_start_rec, self.btn_stop_rec):
            w.setEnabled(enabled)

    def set_recording(self, recording: bool) -> None:
        self.btn_start_rec.setEnabled(not recording)
        self.btn_stop_rec.setEnabled(recording)
