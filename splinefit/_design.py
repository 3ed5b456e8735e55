"""
Design and response matrices of a least-squares spline fit.
"""
import numpy as np
from scipy.sparse import csr_array


def compute_basis_function_matrix(spline, table):
    """
    Assemble the sparse design matrix B with B[i, j] = N_j(x_i).

    Parameters
    ----------
    spline : TensorBSpline
        Spline whose basis is evaluated. It is not modified.
    table : DataTable
        Samples, read in table order.

    Returns
    -------
    B : csr_array, shape (num_samples, num_basis_functions)
        Row i holds the non-zero basis values at the input of sample i,
        at most ``prod(degree_k + 1)`` of them.
    """
    m = table.num_samples
    rows, cols, vals = [], [], []
    for i, (x, _) in enumerate(table):
        basis = spline.eval_basis(x)
        rows.append(np.full(basis.indices.size, i))
        cols.append(basis.indices)
        vals.append(basis.data)

    if m == 0:
        return csr_array((0, spline.num_basis_functions))
    rows = np.concatenate(rows)
    cols = np.concatenate(cols)
    vals = np.concatenate(vals)
    return csr_array((vals, (rows, cols)),
                     shape=(m, spline.num_basis_functions))


def stack_sample_point_values(table):
    """
    Stack the sample outputs into the response matrix.

    Parameters
    ----------
    table : DataTable

    Returns
    -------
    Y : ndarray, shape (num_samples, dim_y)
    """
    Y = np.zeros((table.num_samples, table.dim_y), dtype=float)
    for i, (_, y) in enumerate(table):
        Y[i, :] = y
    return Y
