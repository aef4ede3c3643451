"""
Scene Builder
Builds the one-camera, one-light, one-plane scene for a loaded image and
hands back the controls the rest of the UI drives.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
import numpy.typing as npt
import pyvista as pv

from depthparallax.config import (
    AMBIENT_LIGHT_INTENSITY,
    CAMERA_CLIPPING_RANGE,
    CAMERA_DISTANCE,
    CAMERA_VIEW_ANGLE,
)
from depthparallax.model.depth import RasterLike
from depthparallax.model.errors import MissingResource
from depthparallax.model.geometry import displaced_heights, plane_dimensions
from depthparallax.model.material import DisplacementMaterial
from depthparallax.model.state import SceneSession
from depthparallax.view.widgets.orbit_controls import OrbitControls
from depthparallax.view.widgets.vtk_utils import VtkUtils

logger = logging.getLogger(__name__)


class DisplacedPlane:
    """Plane mesh whose vertex heights follow the material's depth raster."""

    def __init__(self, width: int, height: int) -> None:
        self.size: tuple[float, float] = plane_dimensions(width, height)
        self.mesh: pv.PolyData = VtkUtils.plane_polydata(width, height)
        self.uv: npt.NDArray[np.float64] = np.asarray(self.mesh.point_data.active_texture_coordinates)
        self._base_points: npt.NDArray[np.float64] = np.array(self.mesh.points, copy=True)
        self.material_version: int = -1

    def sync(self, material: Optional[DisplacementMaterial]) -> bool:
        """Recompute displaced vertices if the material changed. Returns True if updated."""
        if material is None or not material.needs_update:
            return False

        points = self._base_points.copy()
        points[:, 2] = displaced_heights(material.displacement_map, self.uv, material.displacement_scale)
        self.mesh.points = points

        material.mark_clean()
        self.material_version = material.version
        return True


@dataclass
class SceneHandle:
    plane: DisplacedPlane
    actor: pv.Actor
    camera: pv.Camera
    light: pv.Light
    controls: OrbitControls
    set_displacement_scale: Callable[[float], bool]
    set_displacement_map: Callable[[RasterLike], bool]


class SceneBuilder:
    def __init__(self, plotter: pv.Plotter) -> None:
        self.plotter = plotter
        self._controls: Optional[OrbitControls] = None

    def clear(self) -> None:
        """Remove every actor and light of the previous scene."""
        if self._controls is not None:
            self._controls.detach()
            self._controls = None
        self.plotter.clear_actors()
        self.plotter.remove_all_lights()

    def build(self, session: SceneSession, container_width: int, container_height: int) -> SceneHandle:
        """
        Build the scene for `session`.

        The render surface follows the container, not the image, so a large
        photo never changes the window size.

        Raises:
            MissingResource: If the session has no material (already torn down).
        """
        material = session.materials.material
        if material is None:
            raise MissingResource("Cannot build a scene without a material.")

        self.clear()
        w, h = material.image_size
        logger.info(f"Building scene {session.generation}: image {w}x{h}, "
                    f"container {container_width}x{container_height}.")

        # 1. Camera: narrow FOV keeps the photo flat while still showing parallax
        camera = self.plotter.camera
        camera.view_angle = CAMERA_VIEW_ANGLE
        camera.position = (0.0, 0.0, CAMERA_DISTANCE)
        camera.focal_point = (0.0, 0.0, 0.0)
        camera.up = (0.0, 1.0, 0.0)
        camera.clipping_range = CAMERA_CLIPPING_RANGE

        # 2. Single ambient light; the plane ignores diffuse/specular shading
        light = pv.Light(light_type="scene light", intensity=AMBIENT_LIGHT_INTENSITY)
        light.ambient_color = "white"
        light.diffuse_color = "black"
        light.specular_color = "black"
        self.plotter.add_light(light)

        # 3. Displaced plane
        plane = DisplacedPlane(w, h)
        plane.sync(material)
        actor = self.plotter.add_mesh(
            plane.mesh,
            texture=VtkUtils.color_texture(material.color_texture),
            color="white",
            ambient=1.0,
            diffuse=0.0,
            specular=0.0,
            show_scalar_bar=False,
            pickable=False,
            reset_camera=False,
            name="displaced_plane",
        )

        # 4. Interactive orbiting with damping
        controls = OrbitControls(self.plotter, enable_damping=True)
        self._controls = controls

        return SceneHandle(
            plane=plane,
            actor=actor,
            camera=camera,
            light=light,
            controls=controls,
            set_displacement_scale=session.materials.set_displacement_scale,
            set_displacement_map=session.materials.set_displacement_map,
        )
