"""
Camera Animator
===============
Idle camera drift. Each tick the camera chases a target offset taken from two
noise channels, then looks back at the scene origin so the parallax centre
stays fixed.

The pursuit factor is defined per reference tick (60 Hz) and rescaled by the
actual elapsed time, so the drift looks the same at any render rate.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from depthparallax.config import (
    CAMERA_LERP_FACTOR,
    NOISE_AMPLITUDE,
    NOISE_TIME_SCALE,
    REFERENCE_TICK_MS,
)
from depthparallax.model.noise import NoiseField
from depthparallax.model.state import AnimationState

logger = logging.getLogger(__name__)

ORIGIN = (0.0, 0.0, 0.0)


class CameraLike(Protocol):
    position: tuple[float, float, float]
    focal_point: tuple[float, float, float]


class CameraAnimator:
    def __init__(
        self,
        noise: NoiseField,
        animation: AnimationState,
        time_scale: float = NOISE_TIME_SCALE,
        amplitude: float = NOISE_AMPLITUDE,
        lerp_factor: float = CAMERA_LERP_FACTOR,
        reference_tick_ms: float = REFERENCE_TICK_MS,
    ) -> None:
        self.noise = noise
        self.animation = animation
        self.time_scale = time_scale
        self.amplitude = amplitude
        self.lerp_factor = lerp_factor
        self.reference_tick_ms = reference_tick_ms
        self._last_tick_ms: Optional[float] = None

    def target(self, now_ms: float) -> tuple[float, float]:
        t = now_ms * self.time_scale
        return (
            self.noise.sample(t, 0) * self.amplitude,
            self.noise.sample(t, 1) * self.amplitude,
        )

    def blend_factor(self, dt_ms: float) -> float:
        """Fraction of the remaining distance covered in `dt_ms`."""
        if dt_ms <= 0.0:
            return 0.0
        return 1.0 - (1.0 - self.lerp_factor) ** (dt_ms / self.reference_tick_ms)

    def tick(self, camera: CameraLike, now_ms: float) -> bool:
        """
        Advance the camera one frame. Returns True if it moved.

        With animation disabled the camera is left untouched; the clock still
        advances so re-enabling continues from the current position without a
        catch-up jump.
        """
        dt_ms = self.reference_tick_ms if self._last_tick_ms is None else now_ms - self._last_tick_ms
        self._last_tick_ms = now_ms

        if not self.animation.enabled:
            self.animation.position = tuple(camera.position)
            return False

        x, y, z = camera.position
        tx, ty = self.target(now_ms)
        alpha = self.blend_factor(dt_ms)

        new_position = (x + (tx - x) * alpha, y + (ty - y) * alpha, z)
        camera.position = new_position
        camera.focal_point = ORIGIN
        self.animation.position = new_position
        return True
