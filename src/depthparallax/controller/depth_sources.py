"""
Depth Source Controller
=======================
Decides which depth map is applied to the material of one scene session:
the model prediction, a user upload, or the prediction again after a revert.

Uploads are split into begin / apply / reject so the decode itself can run
on a worker thread between the first and the second step.

The predicted surface is kept for the whole session, so reverting reuses the
drawable form instead of decoding the exported PNG.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from depthparallax.model.depth import DepthSource, DepthSurface
from depthparallax.model.errors import DepthMapDecodeError, InferenceFailure
from depthparallax.model.io import ImageSource, IOManager
from depthparallax.model.state import SceneSession

logger = logging.getLogger(__name__)

StatusSink = Callable[[str], None]


class DepthSourceController:
    def __init__(self, session: SceneSession, status: Optional[StatusSink] = None) -> None:
        self.session = session
        self._status: StatusSink = status or (lambda _msg: None)

    @property
    def active_source(self) -> DepthSource:
        return self.session.active_source

    def on_prediction(self, surface: DepthSurface) -> bool:
        """Retain and apply a fresh prediction, then encode it for export."""
        if not self.session.materials.set_displacement_map(surface.image):
            return False

        self.session.predicted = surface
        self.session.active_source = DepthSource.PREDICTED
        self._status("Predicted map applied")

        try:
            self.session.depth_blob = self._export(surface)
        except InferenceFailure as e:
            # The map stays applied; only the download is unavailable
            self.session.depth_blob = None
            logger.error(f"Error during depth map export: {e}")
            self._status("Depth map export failed")
        return True

    @staticmethod
    def _export(surface: DepthSurface) -> bytes:
        try:
            return surface.to_png_bytes()
        except Exception as e:
            raise InferenceFailure(str(e)) from e

    def begin_upload(self, name: str) -> bool:
        """Announce an upload whose decode runs elsewhere. False if there is no scene."""
        if self.session.materials.material is None:
            logger.error(f"Cannot apply depth map '{name}': no image loaded.")
            return False
        self._status(f"Applying depth map: {name}")
        return True

    def apply_upload(self, surface: DepthSurface, name: str) -> bool:
        """Apply a decoded upload. The prediction is kept for revert."""
        if not self.session.materials.set_displacement_map(surface.image):
            return False
        self.session.active_source = DepthSource.UPLOADED
        self.session.uploaded_name = name
        self._status(f"Depth map '{name}' applied")
        logger.info(f"Uploaded depth map '{name}' applied.")
        return True

    def reject_upload(self, name: str, message: str) -> None:
        logger.error(f"Depth map '{name}' rejected: {message}")
        self._status(f"Could not apply depth map '{name}'")

    def on_upload(self, source: ImageSource, name: Optional[str] = None) -> bool:
        """Decode and apply in one call, for sources that are already in memory."""
        name = name or IOManager.source_name(source)
        if not self.begin_upload(name):
            return False
        try:
            surface = IOManager.decode_depth_map(source)
        except DepthMapDecodeError as e:
            self.reject_upload(name, str(e))
            return False
        return self.apply_upload(surface, name)

    def revert(self) -> bool:
        """Re-apply the retained prediction. No-op before the first prediction."""
        if self.session.predicted is None or self.session.materials.material is None:
            logger.debug("Nothing to revert to.")
            return False

        self.session.materials.set_displacement_map(self.session.predicted.image)
        self.session.active_source = DepthSource.PREDICTED
        self._status("Reverted to predicted depth map")
        return True
