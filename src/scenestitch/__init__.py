"""scenestitch: script-to-video pipeline with stock media and synthesized narration."""

__version__ = "0.1.0"
