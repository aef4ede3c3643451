"""
Displacement Material
=====================
The plane's visual material: the photograph as colour texture, a swappable
depth raster and the displacement intensity.

The colour texture is bound once at construction. The displacement raster may
be replaced any number of times without rebuilding geometry; the last write
wins and nothing is queued. Every change raises `needs_update` so the view
recomputes the displaced vertices before the next frame.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import numpy.typing as npt

from depthparallax.config import DEFAULT_DISPLACEMENT_SCALE
from depthparallax.model.depth import RasterLike, to_raster

logger = logging.getLogger(__name__)


class DisplacementMaterial:
    def __init__(self, color_texture: npt.NDArray[np.uint8]) -> None:
        texture = np.array(color_texture, dtype=np.uint8, copy=True)
        if texture.ndim != 3 or texture.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (H, W, 3|4) colour image, got shape {texture.shape}.")
        texture.flags.writeable = False
        self._color_texture: npt.NDArray[np.uint8] = texture

        self._displacement_map: Optional[npt.NDArray[np.float32]] = None
        self._displacement_scale: float = DEFAULT_DISPLACEMENT_SCALE

        self.needs_update: bool = True
        self.version: int = 0

    @property
    def color_texture(self) -> npt.NDArray[np.uint8]:
        return self._color_texture

    @property
    def displacement_map(self) -> Optional[npt.NDArray[np.float32]]:
        return self._displacement_map

    @property
    def displacement_scale(self) -> float:
        return self._displacement_scale

    @property
    def image_size(self) -> tuple[int, int]:
        """(width, height) of the colour texture in pixels."""
        h, w = self._color_texture.shape[:2]
        return w, h

    def set_displacement_map(self, surface: RasterLike) -> None:
        self._displacement_map = to_raster(surface)
        self._touch()

    def set_displacement_scale(self, scale: float) -> None:
        # Range is the caller's concern (the slider clamps to [0, 1])
        self._displacement_scale = float(scale)
        self._touch()

    def mark_clean(self) -> None:
        self.needs_update = False

    def _touch(self) -> None:
        self.needs_update = True
        self.version += 1


class MaterialManager:
    """
    Owns at most one DisplacementMaterial.

    Operations issued while no material exists are ignored: they can only come
    from a depth prediction racing a scene teardown.
    """

    def __init__(self) -> None:
        self.material: Optional[DisplacementMaterial] = None

    def create(self, color_image: npt.NDArray[np.uint8]) -> DisplacementMaterial:
        self.material = DisplacementMaterial(color_image)
        w, h = self.material.image_size
        logger.debug(f"Material created for {w}x{h} image.")
        return self.material

    def release(self) -> None:
        self.material = None

    def set_displacement_map(self, surface: RasterLike) -> bool:
        if self.material is None:
            logger.debug("Ignoring displacement map: no material.")
            return False
        self.material.set_displacement_map(surface)
        return True

    def set_displacement_scale(self, scale: float) -> bool:
        if self.material is None:
            logger.debug("Ignoring displacement scale: no material.")
            return False
        self.material.set_displacement_scale(scale)
        return True
