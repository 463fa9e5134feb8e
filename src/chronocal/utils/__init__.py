"""
chronocal utilities.

* exceptions: package error roots and non-fatal warning categories.
* validators: light shape/range validators for configs and arrays.
* parallel: order-preserving process-pool map for per-point work.
"""

from .exceptions import (
    AgeRangeWarning,
    ChronoCalError,
    ChronoCalWarning,
    ConfigurationError,
    CurveCoverageWarning,
    CurveNotFoundError,
    DomainError,
)
from .parallel import cpu_count_safe, run_parallel
from .validators import (
    as_float_vector,
    ensure_shape,
    validate_numeric_range,
    validate_probability,
    validate_t_parameters,
)

__all__ = [
    "AgeRangeWarning",
    "ChronoCalError",
    "ChronoCalWarning",
    "ConfigurationError",
    "CurveCoverageWarning",
    "CurveNotFoundError",
    "DomainError",
    "cpu_count_safe",
    "run_parallel",
    "as_float_vector",
    "ensure_shape",
    "validate_numeric_range",
    "validate_probability",
    "validate_t_parameters",
]
