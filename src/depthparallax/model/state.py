"""
Viewer State (Data Model)
=========================
Holds the per-image scene session and the application-wide viewer state.

Why is this file needed?
------------------------
1. Lifetime: everything that belongs to one loaded image (material, depth
   maps, capture pipeline, animation state) lives on one SceneSession that is
   created on load and torn down on the next load.
2. Staleness: every session carries a generation number. Background results
   are tagged with the generation that requested them and dropped when that
   generation is no longer current.

Classes:
    AnimationState: Idle-drift switch and last camera position.
    SceneSession: Everything tied to one loaded image.
    ViewerState: The container passed to controllers and views.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING

import numpy as np

from depthparallax.model.depth import DepthSource, DepthSurface
from depthparallax.model.material import MaterialManager
from depthparallax.model.noise import NoiseField

if TYPE_CHECKING:
    import numpy.typing as npt

    from depthparallax.controller.capture import CapturePipeline

logger = logging.getLogger(__name__)

Vector3 = tuple[float, float, float]


@dataclass
class AnimationState:
    enabled: bool = True
    position: Optional[Vector3] = None


@dataclass
class SceneSession:
    """State owned by one loaded image."""
    generation: int
    image: npt.NDArray[np.uint8]
    # Injected by ViewerState; the model layer only drives start/stop/shutdown
    capture: CapturePipeline
    name: str = "image"

    materials: MaterialManager = field(default_factory=MaterialManager)
    animation: AnimationState = field(default_factory=AnimationState)

    predicted: Optional[DepthSurface] = None
    depth_blob: Optional[bytes] = None
    active_source: DepthSource = DepthSource.NONE
    uploaded_name: Optional[str] = None

    closed: bool = False

    @property
    def image_size(self) -> tuple[int, int]:
        h, w = self.image.shape[:2]
        return w, h

    def close(self) -> Optional[str]:
        """Release the material and finish any recording. Returns a saved video path, if any."""
        if self.closed:
            return None
        self.closed = True
        saved = self.capture.shutdown()
        self.materials.release()
        logger.debug(f"Scene session {self.generation} closed.")
        return saved


CaptureFactory = Callable[[], "CapturePipeline"]


class ViewerState:
    """
    Singleton-like container for the running viewer.
    Pass this instance to your Controllers and Views.
    """

    def __init__(self, capture_factory: CaptureFactory, noise: Optional[NoiseField] = None) -> None:
        """
        Args:
            capture_factory: Builds the capture pipeline of each new session.
            noise: Shared noise field of the idle drift. None draws a random one.
        """
        self.noise: NoiseField = noise if noise is not None else NoiseField()
        self._capture_factory: CaptureFactory = capture_factory

        self.session: Optional[SceneSession] = None
        self.generation: int = 0
        self.animation_enabled: bool = True

    def new_session(self, image: npt.NDArray[np.uint8], name: str = "image") -> SceneSession:
        """Tear down the current session and start a new one for `image`."""
        self.close_session()

        self.generation += 1
        session = SceneSession(
            generation=self.generation,
            image=np.asarray(image, dtype=np.uint8),
            name=name,
            capture=self._capture_factory(),
            animation=AnimationState(enabled=self.animation_enabled),
        )
        session.materials.create(session.image)
        self.session = session

        w, h = session.image_size
        logger.info(f"Scene session {session.generation} started for '{name}' ({w}x{h}).")
        return session

    def close_session(self) -> Optional[str]:
        if self.session is None:
            return None
        saved = self.session.close()
        self.session = None
        return saved

    def is_current(self, generation: int) -> bool:
        return self.session is not None and self.session.generation == generation

    def set_animation_enabled(self, enabled: bool) -> None:
        self.animation_enabled = enabled
        if self.session is not None:
            self.session.animation.enabled = enabled

    def toggle_animation(self) -> bool:
        self.set_animation_enabled(not self.animation_enabled)
        logger.debug(f"Idle animation {'enabled' if self.animation_enabled else 'disabled'}.")
        return self.animation_enabled
