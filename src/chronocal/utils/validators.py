from typing import Any, Sequence

import numpy as np

from .exceptions import ConfigurationError, DomainError


def ensure_shape(arr: Any, shape: Sequence[int], name: str = "array") -> Any:
    """Minimal shape validator for NumPy arrays; ``-1`` matches any size."""
    try:
        actual = tuple(int(s) for s in arr.shape)
    except AttributeError:
        raise TypeError(f"{name} must have .shape")
    if len(actual) != len(shape):
        raise DomainError(f"{name} rank mismatch: expected {tuple(shape)}, got {actual}")
    for i, (a, b) in enumerate(zip(actual, shape)):
        if b != -1 and a != b:
            raise DomainError(f"{name} shape mismatch at dim {i}: expected {tuple(shape)}, got {actual}")
    return arr


def validate_numeric_range(x: Any, lo: float | None = None, hi: float | None = None, name: str = "value") -> Any:
    v = float(x)
    if lo is not None and v < lo:
        raise ConfigurationError(f"{name}={v} < lo={lo}")
    if hi is not None and v > hi:
        raise ConfigurationError(f"{name}={v} > hi={hi}")
    return x


def validate_probability(prob: float, name: str = "prob") -> float:
    """Credible masses must lie strictly between 0 and 1."""
    p = float(prob)
    if not 0.0 < p < 1.0:
        raise ConfigurationError(f"{name} must lie in (0, 1), got {p}")
    return p


def as_float_vector(x: Any, name: str = "array") -> np.ndarray:
    arr = np.asarray(x, dtype=float)
    if arr.ndim != 1:
        raise DomainError(f"{name} must be one-dimensional, got shape {arr.shape}")
    return arr


def validate_t_parameters(t_a: float, t_b: float) -> None:
    """The Student-t calibration model is only symmetric when t.b - t.a == 1."""
    if not np.isclose(float(t_b) - float(t_a), 1.0):
        raise ConfigurationError(f"t.b - t.a should always be 1, got t.a={t_a}, t.b={t_b}")
