"""Top-level package for Zen Studio.

This package provides the story core of an interactive, branchable audio
narrative: the segment graph, navigation, the audio asset pipeline and the
persisted studio record. The main session entry point is `Studio`.
"""

from .studio import Studio

__all__ = ["Studio", "__version__"]

__version__ = "0.1.0"
