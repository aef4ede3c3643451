"""
Error Kinds
===========
Nothing in the viewer is fatal to the process. These exceptions mark the
failures that degrade to "no visual update" plus a diagnostic message.
"""


class ParallaxError(Exception):
    """Base class for all viewer errors."""


class InferenceFailure(ParallaxError):
    """The depth model could not be loaded/run, or its output could not be exported."""


class MissingResource(ParallaxError):
    """An operation was invoked before its prerequisite existed."""


class DepthMapDecodeError(ParallaxError):
    """An uploaded depth map could not be turned into a raster."""
