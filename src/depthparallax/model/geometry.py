"""
Displaced Plane Geometry
========================
Pure NumPy geometry for the displaced plane. The view layer wraps these
arrays into a VTK grid.

The plane has one segment per image pixel along each axis, so an image of
W x H pixels yields (W + 1) x (H + 1) vertices. Its longer side has length 1.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def plane_dimensions(width: int, height: int) -> tuple[float, float]:
    """
    Size of the plane for an image, preserving its aspect ratio.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        (plane_width, plane_height) with the longer side equal to 1.

    Raises:
        ValueError: If either dimension is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}.")
    if width > height:
        return 1.0, height / width
    return width / height, 1.0


def plane_grid(width: int, height: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """
    Vertex coordinates of the flat plane, centred on the origin in the XY plane.

    Returns:
        Two arrays of shape (width + 1, height + 1): X and Y coordinates.
    """
    pw, ph = plane_dimensions(width, height)
    xs = np.linspace(-0.5 * pw, 0.5 * pw, width + 1)
    ys = np.linspace(-0.5 * ph, 0.5 * ph, height + 1)
    return np.meshgrid(xs, ys, indexing="ij")


def texture_coordinates(width: int, height: int) -> npt.NDArray[np.float64]:
    """
    (u, v) per vertex in VTK point order (X fastest), both in [0, 1].

    v = 0 is the bottom edge of the image, v = 1 the top edge.
    """
    u = np.linspace(0.0, 1.0, width + 1)
    v = np.linspace(0.0, 1.0, height + 1)
    uu, vv = np.meshgrid(u, v, indexing="ij")
    return np.c_[uu.ravel(order="F"), vv.ravel(order="F")]


def sample_raster(raster: npt.NDArray[np.float32], uv: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Bilinearly sample a raster at texture coordinates.

    Args:
        raster: (H, W) array. Row 0 is the top of the image.
        uv: (N, 2) texture coordinates.

    Returns:
        (N,) sampled values.
    """
    rows, cols = raster.shape
    u = np.clip(uv[:, 0], 0.0, 1.0)
    v = np.clip(uv[:, 1], 0.0, 1.0)

    x = u * (cols - 1)
    y = (1.0 - v) * (rows - 1)

    x0 = np.floor(x).astype(np.int64)
    y0 = np.floor(y).astype(np.int64)
    x1 = np.minimum(x0 + 1, cols - 1)
    y1 = np.minimum(y0 + 1, rows - 1)
    fx = x - x0
    fy = y - y0

    data = raster.astype(np.float64, copy=False)
    top = data[y0, x0] * (1.0 - fx) + data[y0, x1] * fx
    bottom = data[y1, x0] * (1.0 - fx) + data[y1, x1] * fx
    return top * (1.0 - fy) + bottom * fy


def displaced_heights(
    raster: Optional[npt.NDArray[np.float32]],
    uv: npt.NDArray[np.float64],
    scale: float
) -> npt.NDArray[np.float64]:
    """
    Offset of each vertex along the plane normal (+Z).

    Without a raster the plane stays flat.
    """
    if raster is None:
        return np.zeros(uv.shape[0], dtype=np.float64)
    return sample_raster(raster, uv) * float(scale)


def plane_points(width: int, height: int) -> npt.NDArray[np.float64]:
    """(N, 3) flat vertex positions in VTK point order (X fastest), Z = 0."""
    xx, yy = plane_grid(width, height)
    return np.c_[xx.ravel(order="F"), yy.ravel(order="F"), np.zeros(xx.size)]


def plane_faces(width: int, height: int) -> npt.NDArray[np.int64]:
    """
    Quad connectivity of the plane as a flat VTK cell array.

    Returns:
        Array [4, a, b, c, d, 4, ...] with one counter-clockwise quad per pixel.
    """
    nx, ny = width + 1, height + 1
    idx = np.arange(nx * ny, dtype=np.int64).reshape(ny, nx)
    a = idx[:-1, :-1].ravel()
    b = idx[:-1, 1:].ravel()
    c = idx[1:, 1:].ravel()
    d = idx[1:, :-1].ravel()
    return np.column_stack([np.full(a.size, 4, dtype=np.int64), a, b, c, d]).ravel()
