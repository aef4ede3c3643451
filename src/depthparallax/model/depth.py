"""
Depth Maps
==========
Depth-map provenance and the conversions between the forms a depth map takes:

- drawable form: a PIL image (what the model returns, what uploads decode to),
- raster form: an (H, W) float32 array in [0, 1] sampled by the plane,
- encoded form: PNG bytes used for export.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum
from typing import Union

import numpy as np
import numpy.typing as npt
from PIL import Image

RasterLike = Union[Image.Image, npt.NDArray]


class DepthSource(Enum):
    """Provenance of the active displacement texture."""
    NONE = "none"
    PREDICTED = "predicted"
    UPLOADED = "uploaded"


def to_raster(surface: RasterLike) -> npt.NDArray[np.float32]:
    """
    Convert a drawable depth map into a normalized grayscale raster.

    Args:
        surface: PIL image, or array of shape (H, W), (H, W, 3) or (H, W, 4).
                 Integer arrays are scaled by their dtype range, float arrays are
                 assumed to be in [0, 1] already.

    Returns:
        (H, W) float32 array in [0, 1].

    Raises:
        ValueError: If the array does not describe an image.
    """
    if isinstance(surface, Image.Image):
        if surface.mode in ("I;16", "I;16B", "I;16L", "I", "F"):
            arr = np.asarray(surface, dtype=np.float64)
            peak = float(arr.max()) if arr.size else 0.0
            arr = arr / peak if peak > 0 else arr
            return np.clip(arr, 0.0, 1.0).astype(np.float32)
        surface = surface.convert("L")

    arr = np.asarray(surface)
    if arr.ndim == 3:
        if arr.shape[2] not in (1, 3, 4):
            raise ValueError(f"Expected 1, 3 or 4 channels, got {arr.shape[2]}.")
        if arr.shape[2] == 1:
            arr = arr[..., 0]
        else:
            # Luma of RGB; alpha is ignored
            rgb = arr[..., :3].astype(np.float64)
            arr_f = 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]
            arr = np.round(arr_f).astype(arr.dtype) if np.issubdtype(arr.dtype, np.integer) else arr_f
    if arr.ndim != 2:
        raise ValueError(f"Expected a 2D raster, got shape {arr.shape}.")

    if np.issubdtype(arr.dtype, np.integer):
        peak = float(np.iinfo(arr.dtype).max)
        return (arr.astype(np.float32) / peak).astype(np.float32)
    return np.clip(arr.astype(np.float32), 0.0, 1.0)


@dataclass
class DepthSurface:
    """A depth map in drawable form, convertible to a raster and to PNG bytes."""
    image: Image.Image

    @classmethod
    def from_raster(cls, raster: npt.NDArray) -> DepthSurface:
        data = to_raster(raster)
        return cls(Image.fromarray(np.round(data * 255.0).astype(np.uint8)))

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def to_raster(self) -> npt.NDArray[np.float32]:
        return to_raster(self.image)

    def to_png_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()
