"""
Rendering Module

Content interpolation and the render-and-cache control point.
"""

from .fragments import FragmentRenderer, OutputBuffer
from .interpolation import interpolate

__all__ = [
    "FragmentRenderer",
    "OutputBuffer",
    "interpolate",
]
