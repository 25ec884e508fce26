"""
Media Motion
============
Composition scene-graph, duration resolution and preset patching for
Remotion-style video compositions.
"""

__version__ = "1.0.0"
