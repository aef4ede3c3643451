"""
depthparallax
=============
Turns a single photograph into an interactive pseudo-3D scene by displacing a
plane with a predicted depth map.
"""
__version__ = "0.1.0"
