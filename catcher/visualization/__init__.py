"""
Visualization - OpenCV render sinks
"""
from .sinks import NullRenderSink, OpenCVRenderSink, render_game

__all__ = ["OpenCVRenderSink", "NullRenderSink", "render_game"]
