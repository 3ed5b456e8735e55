"""
Tensor-product B-spline shell
=============================

``TensorBSpline`` holds the knot vectors, degrees and coefficients of a
spline ``f : R^dim_x -> R^dim_y``. The fitting code only needs two things
from it: the number of basis functions, and the sparse vector of basis
values at a point (``eval_basis``). Value evaluation of a fitted spline is
delegated to ``scipy.interpolate.NdBSpline``.

Basis values per dimension are computed with the knot span search and the
triangular Cox-de Boor recursion of Piegl and Tiller (The NURBS Book,
A2.1 and A2.2). Only the ``p + 1`` non-zero values are formed, so a point
has at most ``prod(p_i + 1)`` non-zero tensor-product basis values.
"""
import functools

import numpy as np
from scipy.interpolate import NdBSpline
from scipy.sparse import csr_array

from ._errors import DimensionMismatchError, InvalidParameterError
from ._index import TensorIndex


def find_span(t, p, x):
    """
    Return the knot span index j such that t[j] <= x < t[j+1].

    Parameters
    ----------
    t : array_like
        Nondecreasing knot vector of length ncoef + p + 1.
    p : int
        Spline degree.
    x : float
        Query location.

    Returns
    -------
    j : int
        Knot span index in the range [p, ncoef - 1].

    Notes
    -----
    Locations outside the base interval ``[t[p], t[ncoef]]`` are clamped to
    the first or last span, so the right end point belongs to the last span.
    """
    ncoef = len(t) - p - 1
    if x <= t[p]:
        return p
    if x >= t[ncoef]:
        return ncoef - 1
    lo, hi = p, ncoef
    while True:
        mid = (lo + hi) // 2
        if x < t[mid]:
            hi = mid
        elif x >= t[mid + 1]:
            lo = mid
        else:
            return mid


def basis_funs(i, x, p, t):
    """
    Evaluate the p + 1 B-spline basis functions that are nonzero on span i.

    Parameters
    ----------
    i : int
        Knot span index so that t[i] <= x < t[i+1].
    x : float
        Query location.
    p : int
        Spline degree.
    t : array_like
        Knot vector.

    Returns
    -------
    N : ndarray, shape (p+1,)
        N[j] is the value of basis function i - p + j at x.
    """
    N = np.zeros(p + 1, dtype=float)
    left = np.zeros(p + 1, dtype=float)
    right = np.zeros(p + 1, dtype=float)
    N[0] = 1.0
    for j in range(1, p + 1):
        left[j] = x - t[i + 1 - j]
        right[j] = t[i + j] - x
        saved = 0.0
        for r in range(j):
            denom = right[r + 1] + left[j - r]
            temp = 0.0 if denom == 0.0 else N[r] / denom
            N[r] = saved + right[r + 1] * temp
            saved = left[j - r] * temp
        N[j] = saved
    return N


class TensorBSpline:
    """
    Tensor-product B-spline with vector-valued coefficients.

    Parameters
    ----------
    dim_x : int
        Number of input variables.
    dim_y : int
        Number of output variables.
    knot_vectors : sequence of array_like
        One nondecreasing knot vector per input variable.
    degrees : sequence of int
        One degree per input variable.
    coefficients : array_like, shape (N, dim_y), optional
        Control point coefficients. Zeros if omitted.

    Notes
    -----
    Variable ``i`` has ``len(knot_vectors[i]) - degrees[i] - 1`` basis
    functions. Global basis ids follow the C-order flattening of
    ``TensorIndex``.
    """

    def __init__(self, dim_x, dim_y, knot_vectors, degrees, coefficients=None):
        if dim_x < 1 or dim_y < 1:
            raise InvalidParameterError("dim_x and dim_y must be positive")
        if len(knot_vectors) != dim_x or len(degrees) != dim_x:
            raise DimensionMismatchError(
                f"Expected {dim_x} knot vectors and degrees, found "
                f"{len(knot_vectors)} and {len(degrees)}")

        knots = []
        counts = []
        for t, p in zip(knot_vectors, degrees):
            t = np.asarray(t, dtype=float)
            if t.ndim != 1 or np.any(np.diff(t) < 0):
                raise InvalidParameterError(
                    "knot vectors must be 1-D and nondecreasing")
            n = t.size - int(p) - 1
            if n < int(p) + 1:
                raise InvalidParameterError(
                    f"knot vector of length {t.size} is too short for "
                    f"degree {p}")
            knots.append(t)
            counts.append(n)

        self.dim_x = int(dim_x)
        self.dim_y = int(dim_y)
        self.knot_vectors = knots
        self.degrees = tuple(int(p) for p in degrees)
        self.index = TensorIndex(counts)
        self.coefficients = np.zeros((self.index.size, self.dim_y))
        if coefficients is not None:
            self.set_coefficients(coefficients)

    @property
    def num_basis_functions(self):
        return self.index.size

    @property
    def num_basis_functions_per_variable(self):
        return self.index.shape

    def eval_basis(self, x):
        """
        Evaluate all tensor-product basis functions at one point.

        Parameters
        ----------
        x : array_like, shape (dim_x,)
            Evaluation point.

        Returns
        -------
        basis : csr_array, shape (1, N)
            Non-zero basis values, indexed by global basis id.
        """
        x = np.atleast_1d(np.asarray(x, dtype=float))
        if x.shape != (self.dim_x,):
            raise DimensionMismatchError(
                f"Expected a point with {self.dim_x} coordinates, "
                f"found shape {x.shape}")

        starts = []
        values = []
        for xi, t, p in zip(x, self.knot_vectors, self.degrees):
            span = find_span(t, p, xi)
            starts.append(span - p)
            values.append(basis_funs(span, xi, p, t))

        ids = self.index.block(starts, [p + 1 for p in self.degrees])
        vals = functools.reduce(np.multiply.outer, values).ravel()

        nz = vals != 0.0
        ids, vals = ids[nz], vals[nz]
        indptr = np.array([0, ids.size])
        return csr_array((vals, ids, indptr), shape=(1, self.index.size))

    def set_coefficients(self, coefficients):
        """
        Replace the coefficient matrix.

        Parameters
        ----------
        coefficients : array_like, shape (N, dim_y)
            A 1-D array of length N is accepted when ``dim_y == 1``.
        """
        c = np.asarray(coefficients, dtype=float)
        if c.ndim == 1 and self.dim_y == 1:
            c = c[:, None]
        expected = (self.index.size, self.dim_y)
        if c.shape != expected:
            raise DimensionMismatchError(
                f"coefficients shape {c.shape} != {expected} from knots")
        self.coefficients = c.copy()

    def to_ndbspline(self):
        """Return a ``scipy.interpolate.NdBSpline`` with the same surface."""
        c = self.coefficients.reshape(self.index.shape + (self.dim_y,))
        return NdBSpline(tuple(self.knot_vectors), c, self.degrees)

    def __call__(self, x):
        """
        Evaluate the spline.

        Parameters
        ----------
        x : array_like, shape (..., dim_x)
            Evaluation points. When ``dim_x == 1`` a scalar or an array of
            scalars is accepted as well.

        Returns
        -------
        values : ndarray, shape (..., dim_y)
        """
        x = np.asarray(x, dtype=float)
        if self.dim_x == 1 and (x.ndim == 0 or x.shape[-1] != 1):
            x = x[..., None]
        if x.shape[-1] != self.dim_x:
            raise DimensionMismatchError(
                f"Expected points with {self.dim_x} coordinates, "
                f"found shape {x.shape}")
        return self.to_ndbspline()(x)

    def __repr__(self):
        return (f"TensorBSpline(dim_x={self.dim_x}, dim_y={self.dim_y}, "
                f"degrees={self.degrees}, "
                f"num_basis_functions={self.num_basis_functions_per_variable})")
