"""
Configuration for Sprite Key
============================

Dataclass configuration for the keying stages and the pipeline loop.
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from sprite_key.errors import ConfigError


def _is_int(value: Any) -> bool:
    """True for ints, excluding bools."""
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class FilterConfig:
    """Read-only parameters consumed by the keying stages."""
    tolerance: int = 35                 # RGB distance treated as background
    softness: float = 0.6               # Horizontal soften shift in pixels
    target_opacity: float = 0.9         # Whole-buffer opacity at presentation
    edge_band_factor: float = 1.7       # Edge band ends at tolerance^2 * factor
    edge_band_attenuation: float = 0.35 # Alpha multiplier inside the edge band
    soften_opacity: float = 0.3         # Opacity of each soften pass

    @property
    def tolerance_squared(self) -> int:
        return self.tolerance * self.tolerance

    @property
    def edge_band_squared(self) -> float:
        return self.tolerance_squared * self.edge_band_factor


@dataclass
class PipelineConfig:
    """
    Pipeline configuration.

    Example:
        >>> config = PipelineConfig(size=96, tolerance=20)
        >>> config.validate()
        >>> config.filter_config.tolerance_squared
        400
    """
    size: int = 140                     # Output edge length in pixels
    opacity: float = 0.9                # Final compositing opacity (0-1)
    softness: float = 0.6               # Edge soften shift in pixels
    tolerance: int = 35                 # Color tolerance (0-255)

    # Background estimation
    warmup_seconds: float = 0.03        # Playback position before sampling
    sample_block: int = 6               # Corner block edge length
    sample_margin: int = 2              # Corner block inset

    # Edge band / soften tuning
    edge_band_factor: float = 1.7
    edge_band_attenuation: float = 0.35
    soften_opacity: float = 0.3

    def validate(self) -> "PipelineConfig":
        """Raise ConfigError on out-of-range values; returns self."""
        if not _is_int(self.size) or self.size <= 0:
            raise ConfigError(f"size must be a positive integer, got {self.size!r}")
        if not 0.0 <= self.opacity <= 1.0:
            raise ConfigError(f"opacity must be in [0, 1], got {self.opacity}")
        if self.softness < 0:
            raise ConfigError(f"softness must be >= 0, got {self.softness}")
        if not _is_int(self.tolerance) or not 0 <= self.tolerance <= 255:
            raise ConfigError(f"tolerance must be an integer in [0, 255], got {self.tolerance!r}")
        if self.warmup_seconds < 0:
            raise ConfigError(f"warmup_seconds must be >= 0, got {self.warmup_seconds}")
        if not _is_int(self.sample_block) or self.sample_block <= 0:
            raise ConfigError(f"sample_block must be a positive integer, got {self.sample_block!r}")
        if not _is_int(self.sample_margin) or self.sample_margin < 0:
            raise ConfigError(f"sample_margin must be an integer >= 0, got {self.sample_margin!r}")
        if self.edge_band_factor < 1.0:
            raise ConfigError(f"edge_band_factor must be >= 1, got {self.edge_band_factor}")
        if not 0.0 <= self.edge_band_attenuation <= 1.0:
            raise ConfigError(
                f"edge_band_attenuation must be in [0, 1], got {self.edge_band_attenuation}"
            )
        if not 0.0 <= self.soften_opacity <= 1.0:
            raise ConfigError(f"soften_opacity must be in [0, 1], got {self.soften_opacity}")
        return self

    @property
    def filter_config(self) -> FilterConfig:
        return FilterConfig(
            tolerance=self.tolerance,
            softness=self.softness,
            target_opacity=self.opacity,
            edge_band_factor=self.edge_band_factor,
            edge_band_attenuation=self.edge_band_attenuation,
            soften_opacity=self.soften_opacity,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data).validate()

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "PipelineConfig":
        path = Path(path)
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a JSON object in {path}")
        return cls.from_dict(data)
