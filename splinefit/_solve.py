"""
Regularized least-squares systems for spline coefficients
=========================================================

The coefficients ``C`` of a spline with design matrix ``B`` and response
matrix ``Y`` minimize

    ||B C - Y||^2 + alpha * ||R C||^2,

with ``R`` chosen by the smoothing mode:

- ``Smoothing.NONE``      : no penalty. The system ``B C = Y`` is solved
                            directly in the least-squares sense.
- ``Smoothing.IDENTITY``  : ``R = I`` (ridge / Tikhonov). Normal equations
                            ``(B^T B + alpha I) C = B^T Y``.
- ``Smoothing.PSPLINE``   : ``R = D``, the second-order difference operator
                            on the coefficient grid. Penalized normal
                            equations ``(B^T W B + alpha D^T D) C = B^T W Y``
                            with sample weights ``W`` (currently identity).

Each mode is a strategy object with an ``assemble`` method returning the
pair ``(A, b)``.

Solve policy
------------
Small systems (fewer than ``dense_threshold`` rows or columns) go straight
to the dense solver. Larger ones first try a sparse LU factorization
(SuperLU). If it cannot be applied (non-square ``A``) or fails (singular
factor, non-finite result), the dense solver is tried. The dense solver is
LAPACK ``gelsd``, an SVD based least-squares solver that returns the
minimum-norm solution for rank-deficient systems. If it fails as well,
``NumericalFailureError`` is raised. Each stage returns a ``SolveAttempt``.
"""
import enum
import logging

import numpy as np
import scipy.linalg
from scipy.sparse import csc_array, csr_array, eye_array, issparse
from scipy.sparse.linalg import splu

from ._design import compute_basis_function_matrix, stack_sample_point_values
from ._errors import InvalidParameterError, NumericalFailureError
from ._penalty import second_order_finite_difference_matrix

_log = logging.getLogger(__name__)

DENSE_SOLVE_THRESHOLD = 100


class Smoothing(enum.Enum):
    """Regularization applied when solving for the coefficients."""
    NONE = "none"
    IDENTITY = "identity"
    PSPLINE = "pspline"


def as_smoothing(smoothing):
    """Convert a ``Smoothing`` mode or its name to ``Smoothing``."""
    try:
        return Smoothing(smoothing)
    except ValueError:
        names = ", ".join(repr(s.value) for s in Smoothing)
        raise InvalidParameterError(
            f"Unknown smoothing mode {smoothing!r}, expected one of {names}"
        ) from None


def sample_weight_matrix(num_samples):
    """Per-sample weight matrix W of the P-spline system (identity)."""
    return eye_array(num_samples, format="csr")


class NoSmoothing:
    """Plain least squares, ``A = B`` and ``b = Y``."""

    mode = Smoothing.NONE

    def assemble(self, B, Y, alpha, spline):
        return csr_array(B), Y


class RidgeSmoothing:
    """Tikhonov regularization with the identity matrix."""

    mode = Smoothing.IDENTITY

    def assemble(self, B, Y, alpha, spline):
        Bt = B.T
        A = Bt @ B + alpha * eye_array(B.shape[1], format="csr")
        return csr_array(A), Bt @ Y


class PSplineSmoothing:
    """
    Second-order difference penalty on the coefficient grid.

    Notes
    -----
    The penalty assumes that neighbouring coefficients belong to
    neighbouring knot spans, which holds best for samples on a regular grid.
    """

    mode = Smoothing.PSPLINE

    def assemble(self, B, Y, alpha, spline):
        W = sample_weight_matrix(B.shape[0])
        D = second_order_finite_difference_matrix(spline)
        BtW = B.T @ W
        A = BtW @ B + alpha * (D.T @ D)
        return csr_array(A), BtW @ Y


_STRATEGIES = {
    Smoothing.NONE: NoSmoothing(),
    Smoothing.IDENTITY: RidgeSmoothing(),
    Smoothing.PSPLINE: PSplineSmoothing(),
}


def smoothing_strategy(smoothing):
    """Return the strategy object for a ``Smoothing`` mode or its name."""
    return _STRATEGIES[as_smoothing(smoothing)]


class SolveStatus(enum.Enum):
    SUCCESS = "success"
    RETRY_DENSE = "retry_dense"
    FAILURE = "failure"


class SolveAttempt:
    """
    Outcome of one solver stage.

    Attributes
    ----------
    status : SolveStatus
    method : str
        ``"sparse"`` or ``"dense"``.
    coefficients : ndarray or None
        Solution, set only on success.
    reason : str or None
        Why the stage did not succeed.
    """

    def __init__(self, status, method, coefficients=None, reason=None):
        self.status = status
        self.method = method
        self.coefficients = coefficients
        self.reason = reason

    @property
    def ok(self):
        return self.status is SolveStatus.SUCCESS

    def __repr__(self):
        return (f"SolveAttempt(status={self.status.name}, "
                f"method={self.method!r}, reason={self.reason!r})")


def solve_sparse(A, b):
    """
    Solve a square sparse system by LU factorization.

    Parameters
    ----------
    A : sparse array, shape (n, n)
    b : ndarray, shape (n, k)

    Returns
    -------
    attempt : SolveAttempt
        ``SUCCESS`` with the solution, or ``RETRY_DENSE`` if ``A`` is not
        square, the factorization fails, or the result is not finite.
    """
    if A.shape[0] != A.shape[1]:
        return SolveAttempt(SolveStatus.RETRY_DENSE, "sparse",
                            reason=f"matrix of shape {A.shape} is not square")
    try:
        lu = splu(csc_array(A))
        x = lu.solve(np.asarray(b, dtype=float))
    except RuntimeError as e:
        return SolveAttempt(SolveStatus.RETRY_DENSE, "sparse", reason=str(e))

    if not np.all(np.isfinite(x)):
        return SolveAttempt(SolveStatus.RETRY_DENSE, "sparse",
                            reason="sparse LU produced non-finite values")
    return SolveAttempt(SolveStatus.SUCCESS, "sparse", coefficients=x)


def solve_dense(A, b):
    """
    Solve ``A x = b`` in the least-squares sense with a dense SVD solver.

    Parameters
    ----------
    A : array_like or sparse array, shape (m, n)
    b : ndarray, shape (m, k)

    Returns
    -------
    attempt : SolveAttempt
        ``SUCCESS`` with the minimum-norm least-squares solution, or
        ``FAILURE`` if LAPACK fails or the data are not finite.
    """
    Ad = A.toarray() if issparse(A) else np.asarray(A, dtype=float)
    try:
        x, _, _, _ = scipy.linalg.lstsq(Ad, np.asarray(b, dtype=float),
                                        lapack_driver="gelsd")
    except (np.linalg.LinAlgError, ValueError) as e:
        return SolveAttempt(SolveStatus.FAILURE, "dense", reason=str(e))

    if not np.all(np.isfinite(x)):
        return SolveAttempt(SolveStatus.FAILURE, "dense",
                            reason="dense solve produced non-finite values")
    return SolveAttempt(SolveStatus.SUCCESS, "dense", coefficients=x)


def solve_linear_system(A, b, dense_threshold=DENSE_SOLVE_THRESHOLD,
                        logger=None):
    """
    Solve ``A x = b`` with a sparse-then-dense fallback.

    Parameters
    ----------
    A : sparse array, shape (m, n)
    b : ndarray, shape (m, k)
    dense_threshold : int, optional
        Systems with fewer rows or columns than this are solved dense.
    logger : logging.Logger, optional
        Receives the solver choice and fallback reasons at DEBUG level.

    Returns
    -------
    x : ndarray, shape (n, k)

    Raises
    ------
    NumericalFailureError
        If the dense solver fails.
    """
    log = logger if logger is not None else _log

    if min(A.shape) < dense_threshold:
        log.debug("Computing B-spline control points using dense solver "
                  "(system of shape %s below threshold %d).",
                  A.shape, dense_threshold)
    else:
        log.debug("Computing B-spline control points using sparse solver.")
        attempt = solve_sparse(A, b)
        if attempt.ok:
            return attempt.coefficients
        log.debug("Sparse solve failed (%s); "
                  "computing B-spline control points using dense solver.",
                  attempt.reason)

    attempt = solve_dense(A, b)
    if not attempt.ok:
        raise NumericalFailureError(
            f"Failed to solve for B-spline coefficients: {attempt.reason}")
    return attempt.coefficients


def compute_control_points(spline, table, smoothing=Smoothing.NONE, alpha=0.1,
                           dense_threshold=DENSE_SOLVE_THRESHOLD, logger=None):
    """
    Compute the coefficient matrix of `spline` from the samples in `table`.

    Parameters
    ----------
    spline : TensorBSpline
        Spline providing the basis. It is not modified.
    table : DataTable
        Samples.
    smoothing : Smoothing or str, optional
        Regularization mode.
    alpha : float, optional
        Non-negative regularization weight. Ignored for ``Smoothing.NONE``.
    dense_threshold : int, optional
        See ``solve_linear_system``.
    logger : logging.Logger, optional
        See ``solve_linear_system``.

    Returns
    -------
    C : ndarray, shape (num_basis_functions, dim_y)
    """
    if not alpha >= 0.0:
        raise InvalidParameterError(
            f"alpha must be non-negative, found {alpha}")
    strategy = smoothing_strategy(smoothing)

    B = compute_basis_function_matrix(spline, table)
    Y = stack_sample_point_values(table)
    A, b = strategy.assemble(B, Y, float(alpha), spline)

    return solve_linear_system(A, b, dense_threshold=dense_threshold,
                               logger=logger)
