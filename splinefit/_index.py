"""
Flat indexing of tensor-product coefficient grids.

The coefficients of a spline with ``n_0, ..., n_{d-1}`` basis functions per
dimension form a ``d``-dimensional grid. Its entries are numbered in
row-major (C) order, so the last dimension varies fastest. This is the order
of ``b_0 ⊗ b_1 ⊗ ... ⊗ b_{d-1}`` and the coefficient layout of
``scipy.interpolate.NdBSpline``. Basis evaluation and the difference penalty
both go through ``TensorIndex`` so they cannot disagree.
"""
import numpy as np

from ._errors import InvalidParameterError


class TensorIndex:
    """
    Map multi-indices of a grid with the given extents to flat indices.

    Parameters
    ----------
    shape : sequence of int
        Extent of every dimension.

    Attributes
    ----------
    shape : tuple of int
    size : int
        Total number of grid entries.
    strides : tuple of int
        Flat-index step for a unit step along each dimension.
    """

    def __init__(self, shape):
        self.shape = tuple(int(s) for s in shape)
        if not self.shape or min(self.shape) < 1:
            raise InvalidParameterError(
                f"extents must be positive, found {self.shape}")
        self.size = int(np.prod(self.shape, dtype=np.int64))
        strides = []
        step = 1
        for extent in reversed(self.shape):
            strides.append(step)
            step *= extent
        self.strides = tuple(reversed(strides))

    @property
    def ndim(self):
        return len(self.shape)

    def flat(self, multi_index):
        """Flat index of a single multi-index."""
        return int(np.ravel_multi_index(tuple(multi_index), self.shape))

    def block(self, starts, extents):
        """
        Flat indices of the box ``starts[d] <= i_d < starts[d] + extents[d]``.

        The indices are returned in C order of the box, which is increasing.
        """
        axes = [np.arange(s, s + e) for s, e in zip(starts, extents)]
        mesh = np.meshgrid(*axes, indexing="ij")
        return np.ravel_multi_index(tuple(m.ravel() for m in mesh), self.shape)
