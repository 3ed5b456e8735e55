"""
Exceptions and warnings raised while fitting tensor-product B-splines.

Every error derives from ``SplineFitError`` and, in addition, from the
builtin or NumPy exception a SciPy user would expect for that situation, so
that ``except ValueError`` and ``except np.linalg.LinAlgError`` keep working.
"""
import numpy as np


class SplineFitError(Exception):
    """Base class for all errors raised by ``splinefit``."""


class DimensionMismatchError(SplineFitError, ValueError):
    """Input or output dimensionality disagrees with the configuration."""


class InvalidParameterError(SplineFitError, ValueError):
    """A configuration value is out of its admissible range.

    Raised for a negative regularization weight, a negative degree, or fewer
    than three basis functions per variable when P-spline smoothing is used.
    """


class InsufficientDataError(SplineFitError, ValueError):
    """Too few distinct sample coordinates to support the requested degree."""


class NumericalFailureError(SplineFitError, np.linalg.LinAlgError):
    """Neither the sparse nor the dense solver produced coefficients."""


class IrregularGridWarning(RuntimeWarning):
    """The samples do not form a complete regular grid."""
