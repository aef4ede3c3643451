"""
Input/Output Manager
Loads photographs and depth maps from files, URLs, bytes or in-memory
bitmaps, and writes exported depth maps to disk.
"""
from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

import numpy as np
import numpy.typing as npt
import requests
from PIL import Image, UnidentifiedImageError

from depthparallax.model.depth import DepthSurface, to_raster
from depthparallax.model.errors import DepthMapDecodeError, MissingResource

logger = logging.getLogger(__name__)

ImageSource = Union[str, os.PathLike, bytes, bytearray, Image.Image, npt.NDArray]

HTTP_TIMEOUT: float = 30.0


class IOManager:
    @staticmethod
    def is_url(source: object) -> bool:
        if not isinstance(source, str):
            return False
        return urlparse(source).scheme in ("http", "https")

    @staticmethod
    def fetch_url(url: str) -> bytes:
        """Download a resource. Network errors become MissingResource."""
        logger.info(f"Fetching: {url}")
        try:
            response = requests.get(url, timeout=HTTP_TIMEOUT)
            response.raise_for_status()
        except requests.RequestException as e:
            raise MissingResource(f"Could not fetch '{url}': {e}") from e
        return response.content

    @staticmethod
    def source_name(source: ImageSource) -> str:
        """Human readable name of a source, used in status messages."""
        if IOManager.is_url(source):
            return os.path.basename(urlparse(str(source)).path) or str(source)
        if isinstance(source, (str, os.PathLike)):
            return Path(source).name
        return "image"

    @staticmethod
    def open_image(source: ImageSource) -> Image.Image:
        """
        Open any supported source as a PIL image.

        Raises:
            MissingResource: If a file or URL cannot be read.
            UnidentifiedImageError: If the bytes are not an image.
        """
        if isinstance(source, Image.Image):
            return source
        if isinstance(source, np.ndarray):
            return Image.fromarray(source)
        if isinstance(source, (bytes, bytearray)):
            return Image.open(io.BytesIO(bytes(source)))
        if IOManager.is_url(source):
            return Image.open(io.BytesIO(IOManager.fetch_url(str(source))))

        path = os.fspath(source)
        if not os.path.exists(path):
            raise MissingResource(f"File not found: {path}")
        with Image.open(path) as img:
            img.load()
            return img.copy()

    @staticmethod
    def load_image(source: ImageSource) -> npt.NDArray[np.uint8]:
        """Load a photograph as an (H, W, 3) uint8 RGB array."""
        img = IOManager.open_image(source)
        rgb = np.asarray(img.convert("RGB"), dtype=np.uint8)
        logger.info(f"Image loaded: {rgb.shape[1]}x{rgb.shape[0]}")
        return rgb

    @staticmethod
    def decode_depth_map(source: ImageSource) -> DepthSurface:
        """
        Decode an uploaded depth map into its drawable form.

        Three paths, one per representation:
        - already-decoded bitmap (PIL image or array): wrapped directly,
        - encoded bytes: decoded in memory,
        - path or URL: read, then decoded.

        Raises:
            DepthMapDecodeError: If the source cannot be turned into a depth map.
        """
        try:
            if isinstance(source, Image.Image):
                return DepthSurface(source.copy())
            if isinstance(source, np.ndarray):
                return DepthSurface.from_raster(source)
            img = IOManager.open_image(source)
            # Validates the mode/shape before the surface is accepted
            to_raster(img)
            return DepthSurface(img)
        except (MissingResource, UnidentifiedImageError, ValueError, OSError) as e:
            raise DepthMapDecodeError(f"Could not decode depth map: {e}") from e

    @staticmethod
    def save_bytes(data: bytes, filepath: str) -> str:
        logger.info(f"Saving {len(data)} bytes to: {filepath}")
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, "wb") as f:
            f.write(data)
        return filepath
