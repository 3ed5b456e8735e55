"""
Fitting tensor-product B-splines to sample data
===============================================

``BSplineBuilder`` drives a fit:

1) Validate the sample table against the configured ``dim_x``/``dim_y`` and
   the regularization weight ``alpha``.
2) Warn if the samples do not form a complete regular grid. The fit still
   runs, but a P-spline penalty assumes regular spacing and the
   interpolation property of an unsmoothed fit no longer holds.
3) Compute one knot vector per input dimension (see ``_knots``).
4) Build a ``TensorBSpline`` with zero coefficients.
5) Assemble the design and response matrices, apply the smoothing mode and
   solve for the coefficient matrix (see ``_solve``).
6) Assign the coefficients and return the spline.

A new spline is built on every call, and nothing is returned until the solve
has succeeded.

Examples
--------
>>> import numpy as np
>>> from splinefit import BSplineBuilder, DataTable, Smoothing
>>> x = np.linspace(0, 1, 7)
>>> table = DataTable.from_arrays(x, np.sin(x))
>>> spline = BSplineBuilder(1, 1).fit(table, Smoothing.NONE)
>>> np.allclose(spline(x)[:, 0], np.sin(x))
True
"""
import logging
import warnings

import numpy as np

from ._errors import (DimensionMismatchError, InsufficientDataError,
                      InvalidParameterError, IrregularGridWarning)
from ._knots import KnotSpacing, as_knot_spacing, compute_knot_vector
from ._solve import (DENSE_SOLVE_THRESHOLD, Smoothing, as_smoothing,
                     compute_control_points)
from ._tensor_bspline import TensorBSpline

_log = logging.getLogger(__name__)


def _per_variable(value, dim_x, name):
    if np.ndim(value) == 0:
        values = [value] * dim_x
    else:
        values = list(value)
        if len(values) != dim_x:
            raise InvalidParameterError(
                f"Expected {dim_x} values for {name}, found {len(values)}")
    for v in values:
        if int(v) != v:
            raise InvalidParameterError(f"{name} must be integers, found {v}")
    return tuple(int(v) for v in values)


class BSplineBuilder:
    """
    Builder of tensor-product B-splines fitted by least squares.

    Parameters
    ----------
    dim_x : int
        Number of input variables.
    dim_y : int
        Number of output variables.
    logger : logging.Logger, optional
        Receives diagnostics (solver choice, irregular grids). Defaults to
        the module logger.

    Notes
    -----
    The configuration setters return the builder, so calls can be chained::

        spline = (BSplineBuilder(2, 1)
                  .set_degree(3)
                  .set_knot_spacing("equidistant")
                  .set_num_basis_functions([8, 6])
                  .fit(table, Smoothing.PSPLINE, alpha=0.03))
    """

    def __init__(self, dim_x, dim_y, *, logger=None):
        if int(dim_x) < 1 or int(dim_y) < 1:
            raise InvalidParameterError(
                f"dim_x and dim_y must be positive, found {dim_x}, {dim_y}")
        self._dim_x = int(dim_x)
        self._dim_y = int(dim_y)
        self._degrees = (3,) * self._dim_x
        self._num_basis_functions = None
        self._knot_spacing = KnotSpacing.AS_SAMPLED
        self.dense_threshold = DENSE_SOLVE_THRESHOLD
        self.logger = logger if logger is not None else _log

    @property
    def dim_x(self):
        return self._dim_x

    @property
    def dim_y(self):
        return self._dim_y

    @property
    def degrees(self):
        return self._degrees

    @property
    def num_basis_functions(self):
        return self._num_basis_functions

    @property
    def knot_spacing(self):
        return self._knot_spacing

    def set_degree(self, degree):
        """
        Set the spline degree, one for all variables or one per variable.

        Raises
        ------
        InvalidParameterError
            If a degree is negative or the number of degrees is not dim_x.
        """
        degrees = _per_variable(degree, self._dim_x, "degree")
        if min(degrees) < 0:
            raise InvalidParameterError(
                f"degrees must be non-negative, found {degrees}")
        self._degrees = degrees
        return self

    def set_num_basis_functions(self, num_basis_functions):
        """
        Set the number of basis functions, one for all variables or one per
        variable. ``None`` uses the number of distinct sample coordinates.

        Only the equidistant knot spacings use this setting.
        """
        if num_basis_functions is None:
            self._num_basis_functions = None
            return self
        counts = _per_variable(num_basis_functions, self._dim_x,
                               "num_basis_functions")
        if min(counts) < 1:
            raise InvalidParameterError(
                f"num_basis_functions must be positive, found {counts}")
        self._num_basis_functions = counts
        return self

    def set_knot_spacing(self, knot_spacing):
        """Set the knot placement policy (``KnotSpacing`` or its name)."""
        self._knot_spacing = as_knot_spacing(knot_spacing)
        return self

    def compute_knot_vectors(self, table):
        """
        Compute one knot vector per input variable from the sample grid.

        Parameters
        ----------
        table : DataTable

        Returns
        -------
        knot_vectors : list of ndarray
            Entry ``i`` has length ``n_i + degrees[i] + 1``.
        """
        if len(self._degrees) != self._dim_x:
            raise DimensionMismatchError(
                "Inconsistent sizes on degree vector and dim_x")
        counts = self._num_basis_functions or (None,) * self._dim_x

        knot_vectors = []
        for values, p, n in zip(table.table_x, self._degrees, counts):
            knot_vectors.append(
                compute_knot_vector(values, p, n, self._knot_spacing))
        return knot_vectors

    def _validate(self, table, alpha):
        if table.dim_x != self._dim_x:
            raise DimensionMismatchError(
                f"Expected {self._dim_x} input variables, "
                f"found {table.dim_x}.")
        if table.dim_y != self._dim_y:
            raise DimensionMismatchError(
                f"Expected {self._dim_y} output variables, "
                f"found {table.dim_y}.")
        if not alpha >= 0.0:
            raise InvalidParameterError(
                f"alpha must be non-negative, found {alpha}.")

    def fit(self, table, smoothing=Smoothing.NONE, alpha=0.1):
        """
        Fit a B-spline to the samples in `table`.

        Parameters
        ----------
        table : DataTable
            Samples with ``dim_x`` inputs and ``dim_y`` outputs.
        smoothing : Smoothing or str, optional
            ``NONE`` (default) for plain least squares, ``IDENTITY`` for
            ridge regularization, ``PSPLINE`` for a second-difference
            penalty.
        alpha : float, optional
            Regularization weight, ``alpha >= 0``. Larger values smooth
            more. Not used by ``Smoothing.NONE``.

        Returns
        -------
        spline : TensorBSpline
            The fitted spline.

        Raises
        ------
        DimensionMismatchError
            If the table dimensions differ from ``dim_x`` or ``dim_y``.
        InvalidParameterError
            If ``alpha < 0``, `smoothing` is not a known mode, or a variable
            has fewer than three basis functions under ``Smoothing.PSPLINE``.
        InsufficientDataError
            If the table is empty or a variable has too few distinct
            coordinates for its degree.
        NumericalFailureError
            If no solver could compute the coefficients.
        """
        if table.num_samples == 0:
            raise InsufficientDataError("Cannot fit a B-spline to an empty table.")
        self._validate(table, alpha)
        smoothing = as_smoothing(smoothing)

        if not table.is_grid_complete():
            msg = "Building B-spline from irregular (incomplete) grid."
            self.logger.info(msg)
            warnings.warn(msg, IrregularGridWarning, stacklevel=2)

        knot_vectors = self.compute_knot_vectors(table)
        spline = TensorBSpline(self._dim_x, self._dim_y, knot_vectors,
                               self._degrees)

        coefficients = compute_control_points(
            spline, table, smoothing, alpha,
            dense_threshold=self.dense_threshold, logger=self.logger)
        spline.set_coefficients(coefficients)
        return spline

    def __repr__(self):
        return (f"BSplineBuilder(dim_x={self._dim_x}, dim_y={self._dim_y}, "
                f"degrees={self._degrees}, "
                f"knot_spacing={self._knot_spacing.name})")
