"""
VTK Utilities
Helper functions that turn NumPy geometry and images into PyVista objects.
"""
import logging

import numpy as np
import numpy.typing as npt
import pyvista as pv

from depthparallax.model.geometry import plane_faces, plane_points, texture_coordinates

logger = logging.getLogger(__name__)


class VtkUtils:
    @staticmethod
    def plane_polydata(width: int, height: int) -> pv.PolyData:
        """
        Flat textured plane with one quad per image pixel.

        Args:
            width: Image width in pixels (number of columns of quads).
            height: Image height in pixels (number of rows of quads).

        Returns:
            PolyData with active texture coordinates.
        """
        pd = pv.PolyData(plane_points(width, height), plane_faces(width, height))
        pd.point_data.active_texture_coordinates = texture_coordinates(width, height)
        logger.debug(f"Plane built: {pd.n_points} points, {pd.n_cells} quads.")
        return pd

    @staticmethod
    def color_texture(image: npt.NDArray[np.uint8]) -> pv.Texture:
        """Wrap an (H, W, 3|4) uint8 image (row 0 at the top) as a texture."""
        texture = pv.Texture(np.ascontiguousarray(image))
        texture.interpolate = True
        return texture
