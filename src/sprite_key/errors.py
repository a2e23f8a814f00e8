"""
Error Taxonomy for Sprite Key
=============================

Every failure the keying pipeline can hit during a tick is non-fatal.
Stages raise one of these; the pipeline loop absorbs them and reports
them as a tick status.
"""


class SpriteKeyError(Exception):
    """Base class for all sprite_key errors."""


class SourceNotReady(SpriteKeyError):
    """Frame data is not available from the source this tick."""


class SamplingFailure(SpriteKeyError):
    """Corner blocks could not be read for background estimation."""


class DrawFailure(SpriteKeyError):
    """Copying, processing or presenting the working buffer failed."""


class ConfigError(SpriteKeyError, ValueError):
    """Invalid pipeline configuration."""
