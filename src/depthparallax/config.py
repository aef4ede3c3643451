"""
Configuration & Path Management
===============================
Central registry for file paths and the constants that tune the scene,
the idle camera drift and the video capture.

Exports:
    CAPTURE_DIR (str): Directory where recorded videos are written.
"""
import os
from pathlib import Path

# Paths
CAPTURE_DIR: str = os.environ.get(
    "DEPTHPARALLAX_CAPTURE_DIR",
    os.path.join(str(Path.home()), "Videos", "depthparallax"),
)

# Depth estimation
DEPTH_MODEL_NAME: str = os.environ.get("DEPTHPARALLAX_MODEL", "LiheYoung/depth-anything-small-hf")
EXAMPLE_IMAGE_URL: str = (
    "https://huggingface.co/datasets/Xenova/transformers.js-docs/resolve/main/bread_small.png"
)
DEPTH_MAP_FILENAME: str = "depth-map.png"

# Material
DEFAULT_DISPLACEMENT_SCALE: float = 0.75
SLIDER_STEPS: int = 100  # slider range 0..1 with step 0.01

# Scene
CAMERA_VIEW_ANGLE: float = 30.0  # degrees
CAMERA_DISTANCE: float = 2.0
CAMERA_CLIPPING_RANGE: tuple[float, float] = (0.01, 10.0)
AMBIENT_LIGHT_INTENSITY: float = 2.0
ORBIT_DAMPING_FACTOR: float = 0.05

# Idle camera drift
NOISE_TIME_SCALE: float = 0.0001  # per millisecond
NOISE_AMPLITUDE: float = 0.75
CAMERA_LERP_FACTOR: float = 0.75  # per reference tick
REFERENCE_TICK_MS: float = 1000.0 / 60.0
RENDER_INTERVAL_MS: int = 16

# Capture
CAPTURE_FORMAT: str = "webm"
CAPTURE_FRAMERATE: int = 60
CAPTURE_CODEC: str = "libvpx-vp9"
