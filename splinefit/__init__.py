"""
splinefit: least-squares fitting of tensor-product B-splines
============================================================

Fit a multivariate tensor-product B-spline ``f : R^dim_x -> R^dim_y`` to
scattered or gridded samples, optionally with ridge or P-spline
regularization.

Fitting
-------
   BSplineBuilder      -- configure degrees/knots and fit a spline
   Smoothing           -- regularization modes (NONE, IDENTITY, PSPLINE)
   KnotSpacing         -- knot placement policies
   DataTable           -- sample container
   TensorBSpline       -- fitted spline (basis evaluation, NdBSpline export)

Building blocks
---------------
   compute_knot_vector
   compute_basis_function_matrix
   stack_sample_point_values
   second_order_difference_matrix
   solve_linear_system

Errors
------
   SplineFitError, DimensionMismatchError, InvalidParameterError,
   InsufficientDataError, NumericalFailureError, IrregularGridWarning
"""
import logging

from ._builder import BSplineBuilder
from ._design import compute_basis_function_matrix, stack_sample_point_values
from ._errors import (DimensionMismatchError, InsufficientDataError,
                      InvalidParameterError, IrregularGridWarning,
                      NumericalFailureError, SplineFitError)
from ._index import TensorIndex
from ._knots import (KnotSpacing, compute_knot_vector,
                     knot_vector_equidistant,
                     knot_vector_equidistant_not_clamped,
                     knot_vector_moving_average)
from ._penalty import (second_order_difference_matrix,
                       second_order_finite_difference_matrix)
from ._solve import (DENSE_SOLVE_THRESHOLD, Smoothing, SolveAttempt,
                     SolveStatus, compute_control_points, smoothing_strategy,
                     solve_dense, solve_linear_system, solve_sparse)
from ._table import DataTable
from ._tensor_bspline import TensorBSpline

__all__ = [
    "BSplineBuilder", "DataTable", "TensorBSpline", "TensorIndex",
    "Smoothing", "KnotSpacing", "SolveAttempt", "SolveStatus",
    "DENSE_SOLVE_THRESHOLD",
    "compute_knot_vector", "knot_vector_moving_average",
    "knot_vector_equidistant", "knot_vector_equidistant_not_clamped",
    "compute_basis_function_matrix", "stack_sample_point_values",
    "second_order_difference_matrix", "second_order_finite_difference_matrix",
    "smoothing_strategy", "solve_sparse", "solve_dense",
    "solve_linear_system", "compute_control_points",
    "SplineFitError", "DimensionMismatchError", "InvalidParameterError",
    "InsufficientDataError", "NumericalFailureError", "IrregularGridWarning",
]

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
