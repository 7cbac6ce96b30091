"""Coverage-based watch progress tracking for video playback."""

__version__ = "0.1.0"

__all__ = ["__version__"]
