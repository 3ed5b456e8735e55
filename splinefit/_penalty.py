"""
Second-order difference penalty for P-splines
=============================================

The coefficients of a tensor-product spline are viewed as a grid with
extents ``n_0, ..., n_{d-1}``. The penalty operator ``D`` stacks, for every
dimension ``k``, the second differences

    c[..., i_k, ...] - 2 c[..., i_k + 1, ...] + c[..., i_k + 2, ...]

taken along dimension ``k`` with all other indices held fixed. Block ``k``
therefore has ``prod_{j != k} n_j * (n_k - 2)`` rows, and ``||D c||^2``
approximates the integrated squared second derivative of the spline in the
sense of Eilers and Marx.
"""
import numpy as np
from scipy.sparse import csr_array, vstack

from ._errors import InvalidParameterError
from ._index import TensorIndex

_STENCIL = (1.0, -2.0, 1.0)


def _difference_block(index, axis):
    # Left ends of every stencil along `axis`, in C order of the reduced box.
    extents = list(index.shape)
    extents[axis] -= 2
    base = index.block([0] * index.ndim, extents)
    stride = index.strides[axis]

    nrows = base.size
    rows = np.repeat(np.arange(nrows), 3)
    cols = (base[:, None] + stride * np.arange(3)).ravel()
    vals = np.tile(_STENCIL, nrows)
    return csr_array((vals, (rows, cols)), shape=(nrows, index.size))


def second_order_difference_matrix(extents):
    """
    Build the tensor-product second-order finite-difference operator.

    Parameters
    ----------
    extents : sequence of int
        Number of basis functions (coefficients) per dimension.

    Returns
    -------
    D : csr_array, shape (sum_k prod_{j != k} n_j * (n_k - 2), prod_k n_k)
        Vertical stack of one difference block per dimension, last
        declared dimension first.

    Raises
    ------
    InvalidParameterError
        If a dimension has fewer than three coefficients.

    Examples
    --------
    >>> second_order_difference_matrix([4]).toarray()
    array([[ 1., -2.,  1.,  0.],
           [ 0.,  1., -2.,  1.]])
    """
    extents = [int(n) for n in extents]
    if any(n < 3 for n in extents):
        raise InvalidParameterError(
            "Need at least three coefficients/basis functions per variable "
            f"for a second-order difference penalty, found {extents}")

    index = TensorIndex(extents)
    blocks = [_difference_block(index, axis)
              for axis in reversed(range(index.ndim))]
    return csr_array(vstack(blocks, format="csr"))


def second_order_finite_difference_matrix(spline):
    """Second-order difference operator on the coefficient grid of `spline`."""
    return second_order_difference_matrix(
        spline.num_basis_functions_per_variable)
