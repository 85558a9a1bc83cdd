"""Section-scoped conversation/document synchronizer for co-authoring specs."""

__version__ = "0.1.0"
