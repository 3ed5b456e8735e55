"""
Sample table
============

``DataTable`` stores samples ``(x, y)`` with ``x`` of length ``dim_x`` and
``y`` of length ``dim_y``. It is the read-only input of a fit and keeps track
of the per-dimension coordinate grid so that a builder can derive knot
vectors and check whether the samples cover a complete regular grid.

Samples are kept in insertion order. Iterating over a table yields
``(x, y)`` pairs of 1-D float arrays in that order.
"""
import logging

import numpy as np

from ._errors import DimensionMismatchError, InvalidParameterError

logger = logging.getLogger(__name__)


def _as_vector(v, name):
    v = np.atleast_1d(np.asarray(v, dtype=float))
    if v.ndim != 1:
        raise DimensionMismatchError(
            f"{name} must be a scalar or a 1-D sequence, found shape {v.shape}")
    if not np.all(np.isfinite(v)):
        raise InvalidParameterError(f"{name} must contain only finite values")
    return v


class DataTable:
    """
    Ordered collection of samples ``(x, y)``.

    Parameters
    ----------
    allow_duplicates : bool, optional
        If False (default), a sample whose input vector ``x`` was already
        added is discarded. If True it is kept and counted as a duplicate.

    Notes
    -----
    The first sample added fixes ``dim_x`` and ``dim_y``. Every later sample
    must match them.
    """

    def __init__(self, allow_duplicates=False):
        self.allow_duplicates = bool(allow_duplicates)
        self._x = []
        self._y = []
        self._seen = set()
        self._grid = None
        self._num_duplicates = 0
        self._dim_x = 0
        self._dim_y = 0

    @classmethod
    def from_arrays(cls, X, Y, allow_duplicates=False):
        """
        Build a table from stacked inputs and outputs.

        Parameters
        ----------
        X : array_like, shape (m, dim_x) or (m,)
            Input vectors, one per row. A 1-D array means ``dim_x == 1``.
        Y : array_like, shape (m, dim_y) or (m,)
            Output vectors, one per row. A 1-D array means ``dim_y == 1``.
        allow_duplicates : bool, optional
            Passed to the constructor.

        Returns
        -------
        table : DataTable
        """
        X = np.asarray(X, dtype=float)
        Y = np.asarray(Y, dtype=float)
        if X.ndim == 1:
            X = X[:, None]
        if Y.ndim == 1:
            Y = Y[:, None]
        if X.ndim != 2 or Y.ndim != 2:
            raise DimensionMismatchError("X and Y must be 1-D or 2-D arrays")
        if X.shape[0] != Y.shape[0]:
            raise DimensionMismatchError(
                f"X and Y should have a same number of rows, "
                f"found {X.shape[0]} and {Y.shape[0]}")
        table = cls(allow_duplicates=allow_duplicates)
        for xi, yi in zip(X, Y):
            table.add_sample(xi, yi)
        return table

    def add_sample(self, x, y):
        """
        Append one sample.

        Parameters
        ----------
        x : float or array_like
            Input vector.
        y : float or array_like
            Output vector.

        Raises
        ------
        DimensionMismatchError
            If the lengths disagree with previously added samples.
        InvalidParameterError
            If a value is not finite.
        """
        x = _as_vector(x, "x")
        y = _as_vector(y, "y")

        if not self._x:
            self._dim_x = x.size
            self._dim_y = y.size
            self._grid = [set() for _ in range(self._dim_x)]
        if x.size != self._dim_x:
            raise DimensionMismatchError(
                f"Dimension of new sample x ({x.size}) is inconsistent with "
                f"previous samples ({self._dim_x})")
        if y.size != self._dim_y:
            raise DimensionMismatchError(
                f"Dimension of new sample y ({y.size}) is inconsistent with "
                f"previous samples ({self._dim_y})")

        key = tuple(x.tolist())
        if key in self._seen:
            if not self.allow_duplicates:
                logger.warning("Discarding duplicate sample at x=%s; "
                               "use DataTable(allow_duplicates=True) to keep it",
                               key)
                return
            self._num_duplicates += 1
        self._seen.add(key)

        self._x.append(x)
        self._y.append(y)
        for i, xi in enumerate(key):
            self._grid[i].add(xi)

    @property
    def dim_x(self):
        return self._dim_x

    @property
    def dim_y(self):
        return self._dim_y

    @property
    def num_samples(self):
        return len(self._x)

    @property
    def num_duplicates(self):
        return self._num_duplicates

    def __len__(self):
        return len(self._x)

    def __iter__(self):
        return zip(iter(self._x), iter(self._y))

    @property
    def table_x(self):
        """List of ``dim_x`` arrays; entry ``i`` holds coordinate ``i`` of
        every sample, in sample order."""
        if not self._x:
            return []
        X = np.vstack(self._x)
        return [X[:, i].copy() for i in range(self._dim_x)]

    @property
    def table_y(self):
        """List of ``dim_y`` arrays, analogous to ``table_x``."""
        if not self._y:
            return []
        Y = np.vstack(self._y)
        return [Y[:, j].copy() for j in range(self._dim_y)]

    @property
    def grid(self):
        """Sorted distinct coordinates per input dimension."""
        if self._grid is None:
            return []
        return [np.array(sorted(g), dtype=float) for g in self._grid]

    def is_grid_complete(self):
        """
        Return True if the distinct inputs form a complete regular grid.

        The grid is complete when the number of distinct input points equals
        the product of the number of distinct coordinates per dimension.
        """
        if not self._x:
            return False
        required = 1
        for g in self._grid:
            required *= len(g)
        return len(self._seen) == required

    def __repr__(self):
        return (f"DataTable(num_samples={self.num_samples}, "
                f"dim_x={self._dim_x}, dim_y={self._dim_y})")
