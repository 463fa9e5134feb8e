"""
Immutable run configuration for chronocal.

Every operation receives the values it needs explicitly; there is no module
level "current run" state. ``ChronoConfig`` groups the settings the way the
YAML files are laid out (``curves``, ``calibration``, ``accrate``, ``pb210``,
``logging``) and is loaded through OmegaConf.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional

from ..logging.config import LoggingConfig
from ..utils.exceptions import ConfigurationError
from ..utils.validators import (
    validate_numeric_range,
    validate_probability,
    validate_t_parameters,
)


@dataclass(frozen=True)
class CurvesConfig:
    """Where calibration curves live and which one applies by default.

    ``cc`` follows the table convention: 0 calendar-scale, 1 IntCal20,
    2 Marine20, 3 SHCal20, 4 the custom curve named by ``cc4``.
    """

    curve_dir: str = "curves"
    cc: int = 1
    cc1: str = "IntCal20"
    cc2: str = "Marine20"
    cc3: str = "SHCal20"
    cc4: str = "ConstCal"  # "ConstCal" means no custom curve
    postbomb: int = 0  # 0 = none, 1..5 = postbomb zone

    def __post_init__(self) -> None:
        validate_numeric_range(self.cc, 0, 4, name="curves.cc")
        validate_numeric_range(self.postbomb, 0, 5, name="curves.postbomb")


@dataclass(frozen=True)
class CalibrationConfig:
    """Global defaults of the date calibration model."""

    normal: bool = False  # False = Student-t
    t_a: float = 3.0
    t_b: float = 4.0
    cutoff: float = 0.001
    delta_r: float = 0.0
    delta_std: float = 0.0
    workers: int = 1

    def __post_init__(self) -> None:
        validate_t_parameters(self.t_a, self.t_b)
        validate_numeric_range(self.cutoff, 0.0, 1.0, name="calibration.cutoff")
        validate_numeric_range(self.delta_std, 0.0, name="calibration.delta_std")


@dataclass(frozen=True)
class AccrateConfig:
    """Accumulation-rate reconstruction and ghost summary settings."""

    prob: float = 0.95
    flux_prob: float = 0.8
    age_res: int = 200
    cmyr: bool = False  # True reports depth/time instead of time/depth
    bcad: bool = False
    dark: float = 1.0
    upper: float = 0.99
    flux_upper: float = 0.95
    workers: int = 1

    def __post_init__(self) -> None:
        validate_probability(self.prob, "accrate.prob")
        validate_probability(self.flux_prob, "accrate.flux_prob")
        validate_probability(self.upper, "accrate.upper")
        validate_probability(self.flux_upper, "accrate.flux_upper")
        validate_numeric_range(self.age_res, 2, name="accrate.age_res")
        validate_numeric_range(self.dark, 0.0, name="accrate.dark")


@dataclass(frozen=True)
class Pb210Config:
    """Pb-210 forward model settings."""

    unit: Literal["dpm/g", "Bq/kg"] = "dpm/g"
    reference_age: float = 0.0  # age of the sampling surface (theta0), cal BP

    def __post_init__(self) -> None:
        if self.unit not in ("dpm/g", "Bq/kg"):
            raise ConfigurationError(f"pb210.unit must be 'dpm/g' or 'Bq/kg', got {self.unit!r}")


_GROUPS = {
    "curves": CurvesConfig,
    "calibration": CalibrationConfig,
    "accrate": AccrateConfig,
    "pb210": Pb210Config,
    "logging": LoggingConfig,
}


def _build(name: str, typ: type, blob: Mapping[str, Any]) -> Any:
    known = {f.name for f in fields(typ)}
    unknown = sorted(set(blob) - known)
    if unknown:
        raise ConfigurationError(f"unknown keys in '{name}': {unknown}")
    try:
        return typ(**dict(blob))
    except TypeError as e:
        raise ConfigurationError(f"invalid '{name}' section: {e}") from e


@dataclass(frozen=True)
class ChronoConfig:
    """Unified root configuration; mirrors ``configs/chronocal.yaml``."""

    curves: CurvesConfig = field(default_factory=CurvesConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    accrate: AccrateConfig = field(default_factory=AccrateConfig)
    pb210: Pb210Config = field(default_factory=Pb210Config)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, m: Optional[Mapping[str, Any]]) -> "ChronoConfig":
        """Construct from a plain mapping (e.g. ``OmegaConf.to_container`` output)."""
        m = dict(m or {})
        unknown = sorted(set(m) - set(_GROUPS))
        if unknown:
            raise ConfigurationError(f"unknown config groups: {unknown}")
        groups = {name: _build(name, typ, m.get(name) or {}) for name, typ in _GROUPS.items()}
        return cls(**groups)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ChronoConfig":
        from omegaconf import OmegaConf

        data = OmegaConf.to_container(OmegaConf.load(str(path)), resolve=True)
        if data is not None and not isinstance(data, dict):
            raise ConfigurationError(f"{path}: top level must be a mapping")
        return cls.from_mapping(data)

    def merge(self, patch: Mapping[str, Mapping[str, Any]]) -> "ChronoConfig":
        """Return a new config with ``patch`` applied group by group."""
        updated = {}
        for name, values in patch.items():
            if name not in _GROUPS:
                raise ConfigurationError(f"unknown config group: {name!r}")
            current = getattr(self, name)
            merged = {**asdict(current), **dict(values)}
            updated[name] = _build(name, _GROUPS[name], merged)
        return replace(self, **updated)
