"""Client-side state and sync core of the noteflow authoring client."""

__version__ = "0.1.0"
