"""
Capture Pipeline
================
Start/stop state machine that feeds rendered frames to a video encoder.

States: IDLE -> RECORDING -> IDLE.

- start() while RECORDING is ignored, so a double click never opens a second
  encoder.
- capture() outside RECORDING is ignored.
- stop() while IDLE is ignored.

A pipeline belongs to a single scene session. Each recording gets a fresh
encoder, so no frame buffer outlives the scene it was rendered from.
"""
from __future__ import annotations

import datetime
import logging
import os
from enum import Enum
from typing import Callable, Optional

import imageio.v2 as imageio
import numpy as np
import numpy.typing as npt
from PIL import Image

from depthparallax.config import CAPTURE_CODEC, CAPTURE_DIR, CAPTURE_FORMAT, CAPTURE_FRAMERATE

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    IDLE = "idle"
    RECORDING = "recording"


class FrameEncoder:
    """Thin wrapper over an imageio/ffmpeg writer."""

    def __init__(self, path: str, fps: int = CAPTURE_FRAMERATE, codec: str = CAPTURE_CODEC) -> None:
        self.path = path
        self.fps = fps
        self.frame_count = 0
        self._frame_size: Optional[tuple[int, int]] = None
        self._writer = imageio.get_writer(path, fps=fps, codec=codec)

    def append(self, frame: npt.NDArray[np.uint8]) -> None:
        frame = np.asarray(frame)
        if frame.ndim == 3 and frame.shape[2] == 4:
            frame = frame[..., :3]

        # ffmpeg needs a constant frame size; the window may be resized mid-recording
        size = (frame.shape[1], frame.shape[0])
        if self._frame_size is None:
            self._frame_size = size
        elif size != self._frame_size:
            frame = np.asarray(Image.fromarray(frame).resize(self._frame_size, Image.BILINEAR))

        self._writer.append_data(frame)
        self.frame_count += 1

    def close(self) -> str:
        self._writer.close()
        return self.path


EncoderFactory = Callable[[str], FrameEncoder]


def default_capture_path(output_dir: str = CAPTURE_DIR, fmt: str = CAPTURE_FORMAT) -> str:
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    return os.path.join(output_dir, f"capture-{stamp}.{fmt}")


class CapturePipeline:
    def __init__(
        self,
        encoder_factory: EncoderFactory = FrameEncoder,
        output_dir: str = CAPTURE_DIR,
        fmt: str = CAPTURE_FORMAT,
    ) -> None:
        self._encoder_factory = encoder_factory
        self.output_dir = output_dir
        self.fmt = fmt

        self.state: CaptureState = CaptureState.IDLE
        self.encoder: Optional[FrameEncoder] = None
        self.saved_paths: list[str] = []

    @property
    def is_recording(self) -> bool:
        return self.state is CaptureState.RECORDING

    def start(self) -> bool:
        """Open a fresh encoder. Returns False if already recording."""
        if self.is_recording:
            logger.debug("Capture already running; start ignored.")
            return False

        os.makedirs(self.output_dir, exist_ok=True)
        path = default_capture_path(self.output_dir, self.fmt)
        self.encoder = self._encoder_factory(path)
        self.state = CaptureState.RECORDING
        logger.info(f"Recording started: {path}")
        return True

    def capture(self, frame: npt.NDArray[np.uint8]) -> bool:
        if not self.is_recording or self.encoder is None:
            return False
        self.encoder.append(frame)
        return True

    def stop(self) -> Optional[str]:
        """Finalize the encoder and persist the video. Returns its path, or None if idle."""
        if not self.is_recording or self.encoder is None:
            logger.debug("Capture not running; stop ignored.")
            return None

        encoder = self.encoder
        self.encoder = None
        self.state = CaptureState.IDLE

        path = encoder.close()
        self.saved_paths.append(path)
        logger.info(f"Recording saved ({encoder.frame_count} frames): {path}")
        return path

    def shutdown(self) -> Optional[str]:
        """Called when the owning scene is torn down; an active recording is saved."""
        if self.is_recording:
            logger.info("Scene closed while recording; saving the capture.")
        return self.stop()
