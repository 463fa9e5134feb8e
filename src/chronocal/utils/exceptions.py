import logging
import warnings


class ChronoCalError(RuntimeError):
    """Base class for chronocal-specific errors."""


class ConfigurationError(ChronoCalError):
    """Invalid curve/postbomb selection, noise-model parameters or config values."""


class CurveNotFoundError(ConfigurationError):
    """The requested calibration curve identifier is unknown."""


class DomainError(ChronoCalError, ValueError):
    """Input lies outside the domain of a computation (e.g. inverted depths)."""


class ChronoCalWarning(UserWarning):
    """Base class for non-fatal chronocal warnings."""


class AgeRangeWarning(ChronoCalWarning):
    """A queried age or depth lies outside the coverage of the age model."""


class CurveCoverageWarning(ChronoCalWarning):
    """A measurement lies outside the range spanned by its calibration curve."""


def warn(message: str, category: type, logger: logging.Logger, **extra) -> None:
    """Emit a non-fatal warning and mirror it to ``logger``."""
    logger.warning(message, extra=extra)
    warnings.warn(message, category, stacklevel=3)
