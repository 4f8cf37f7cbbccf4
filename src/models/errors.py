"""
Exceptions raised by the text detection pipeline.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for pipeline failures surfaced to the caller."""


class ModelLoadError(PipelineError):
    """The detection model is missing, unreadable or could not be loaded."""


class SourceError(PipelineError):
    """The video source could not be opened."""


class FrameInputError(PipelineError, ValueError):
    """
    A frame or network tensor is empty or malformed.

    Not retried: a corrupt frame usually means a truncated or broken file.
    """


class ConfigError(ValueError):
    """Invalid configuration values."""
