"""
Orbit Controls
Damped orbiting on top of the VTK trackball-camera interactor style.

VTK stops the camera as soon as the mouse is released. This adapter measures
the angular velocity while the user drags and keeps spinning the camera after
release, decaying by `damping_factor` each tick.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Optional

from depthparallax.config import ORBIT_DAMPING_FACTOR

logger = logging.getLogger(__name__)

# Below this angular speed (degrees per tick) the motion is considered stopped
_REST_EPSILON: float = 1e-3


def orbit_angles(position, focal_point) -> tuple[float, float]:
    """
    Azimuth and elevation (degrees) of the camera around its focal point.

    Azimuth is measured around +Y from +Z towards +X, elevation from the XZ plane.
    """
    dx = position[0] - focal_point[0]
    dy = position[1] - focal_point[1]
    dz = position[2] - focal_point[2]
    radius = math.sqrt(dx * dx + dy * dy + dz * dz)
    if radius == 0.0:
        return 0.0, 0.0
    azimuth = math.degrees(math.atan2(dx, dz))
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, dy / radius))))
    return azimuth, elevation


def _wrap_degrees(angle: float) -> float:
    return (angle + 180.0) % 360.0 - 180.0


class OrbitControls:
    def __init__(
        self,
        plotter: Any,
        enable_damping: bool = True,
        damping_factor: float = ORBIT_DAMPING_FACTOR
    ) -> None:
        self.plotter = plotter
        self.enable_damping = enable_damping
        self.damping_factor = damping_factor

        self.interacting: bool = False
        self.velocity: tuple[float, float] = (0.0, 0.0)
        self._last_angles: Optional[tuple[float, float]] = None

        iren = self.plotter.iren
        self._observers: list[int] = [
            iren.add_observer("StartInteractionEvent", self._on_start_interaction),
            iren.add_observer("EndInteractionEvent", self._on_end_interaction),
        ]

    def detach(self) -> None:
        """Stop listening to the interactor (scene torn down)."""
        for obs in self._observers:
            self.plotter.iren.remove_observer(obs)
        self._observers.clear()

    def _angles(self) -> tuple[float, float]:
        cam = self.plotter.camera
        return orbit_angles(cam.position, cam.focal_point)

    def _on_start_interaction(self, *_: Any) -> None:
        self.interacting = True
        self.velocity = (0.0, 0.0)
        self._last_angles = self._angles()

    def _on_end_interaction(self, *_: Any) -> None:
        self.interacting = False
        self._last_angles = None

    def update(self) -> bool:
        """Per-tick update. Returns True if the camera was moved by damping."""
        if self.interacting:
            angles = self._angles()
            if self._last_angles is not None:
                self.velocity = (
                    _wrap_degrees(angles[0] - self._last_angles[0]),
                    angles[1] - self._last_angles[1],
                )
            self._last_angles = angles
            return False

        if not self.enable_damping:
            return False

        v_az, v_el = self.velocity
        if abs(v_az) < _REST_EPSILON and abs(v_el) < _REST_EPSILON:
            self.velocity = (0.0, 0.0)
            return False

        keep = 1.0 - self.damping_factor
        v_az, v_el = v_az * keep, v_el * keep
        cam = self.plotter.camera
        cam.Azimuth(v_az)
        cam.Elevation(v_el)
        cam.OrthogonalizeViewUp()
        self.velocity = (v_az, v_el)
        return True
