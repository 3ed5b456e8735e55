import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from splinefit import (BSplineBuilder, DataTable, TensorBSpline,
                       compute_basis_function_matrix,
                       stack_sample_point_values)


def _scattered_table(m=40, seed=0):
    rng = np.random.default_rng(seed)
    X = rng.uniform(0, 1, size=(m, 2))
    Y = np.column_stack([np.sin(3 * X[:, 0]) * X[:, 1], X.sum(axis=1)])
    return DataTable.from_arrays(X, Y)


def _spline_for(table, degrees=(3, 2)):
    builder = (BSplineBuilder(table.dim_x, table.dim_y)
               .set_degree(list(degrees))
               .set_knot_spacing("equidistant")
               .set_num_basis_functions([6, 5]))
    knots = builder.compute_knot_vectors(table)
    return TensorBSpline(table.dim_x, table.dim_y, knots, builder.degrees)


class TestBasisMatrix:

    def test_shape_and_sparsity(self):
        table = _scattered_table()
        spl = _spline_for(table)
        B = compute_basis_function_matrix(spl, table)
        assert B.shape == (40, 30)
        nnz_per_row = np.diff(B.indptr)
        assert np.all(nnz_per_row <= 4 * 3)
        assert np.all(nnz_per_row >= 1)

    def test_rows_sum_to_one(self):
        table = _scattered_table()
        B = compute_basis_function_matrix(_spline_for(table), table)
        assert_allclose(B.sum(axis=1), np.ones(40))

    def test_rows_follow_table_order(self):
        table = _scattered_table(m=10)
        spl = _spline_for(table)
        B = compute_basis_function_matrix(spl, table)
        for i, (x, _) in enumerate(table):
            assert_allclose(B[[i], :].toarray(), spl.eval_basis(x).toarray())

    def test_product_with_coefficients_evaluates_spline(self):
        table = _scattered_table()
        spl = _spline_for(table)
        C = np.random.default_rng(3).standard_normal((30, 2))
        spl.set_coefficients(C)
        B = compute_basis_function_matrix(spl, table)
        X = np.column_stack(table.table_x)
        assert_allclose(B @ C, spl(X), atol=1e-12)

    def test_inputs_are_not_modified(self):
        table = _scattered_table(m=10)
        spl = _spline_for(table)
        before = np.column_stack(table.table_x).copy()
        compute_basis_function_matrix(spl, table)
        assert_array_equal(np.column_stack(table.table_x), before)
        assert not spl.coefficients.any()


class TestResponseMatrix:

    def test_stacking(self):
        table = DataTable()
        table.add_sample([0, 0], [1, 2, 3])
        table.add_sample([1, 0], [4, 5, 6])
        Y = stack_sample_point_values(table)
        assert_array_equal(Y, [[1, 2, 3], [4, 5, 6]])

    def test_matches_table_y(self):
        table = _scattered_table()
        Y = stack_sample_point_values(table)
        assert Y.shape == (40, 2)
        assert_array_equal(Y, np.column_stack(table.table_y))
