"""Configuration dataclasses for chronocal (OmegaConf/YAML friendly)."""

from .base_config import (
    AccrateConfig,
    CalibrationConfig,
    ChronoConfig,
    CurvesConfig,
    Pb210Config,
)

__all__ = [
    "AccrateConfig",
    "CalibrationConfig",
    "ChronoConfig",
    "CurvesConfig",
    "Pb210Config",
]
