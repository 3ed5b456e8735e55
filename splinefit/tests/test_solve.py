import logging

import numpy as np
from numpy.testing import assert_allclose
import pytest
from scipy.sparse import csr_array, diags_array

from splinefit import (DataTable, InvalidParameterError, NumericalFailureError,
                       Smoothing, SolveStatus, TensorBSpline,
                       compute_basis_function_matrix, compute_control_points,
                       knot_vector_equidistant,
                       second_order_finite_difference_matrix,
                       smoothing_strategy, solve_dense, solve_linear_system,
                       solve_sparse)


def _tridiagonal(n):
    return csr_array(diags_array([-1.0, 4.0, -1.0], offsets=[-1, 0, 1],
                                 shape=(n, n)))


def _problem(m=30, n=8, seed=0):
    rng = np.random.default_rng(seed)
    x = np.sort(rng.uniform(0, 1, m))
    y = np.column_stack([np.cos(4 * x), x ** 2])
    table = DataTable.from_arrays(x, y)
    t = knot_vector_equidistant(x, 3, n)
    spline = TensorBSpline(1, 2, [t], [3])
    return spline, table


class TestSmoothingStrategies:

    def test_none(self):
        spline, table = _problem()
        B = compute_basis_function_matrix(spline, table)
        Y = np.column_stack(table.table_y)
        A, b = smoothing_strategy(Smoothing.NONE).assemble(B, Y, 0.5, spline)
        assert_allclose(A.toarray(), B.toarray())
        assert_allclose(b, Y)

    def test_identity(self):
        spline, table = _problem()
        B = compute_basis_function_matrix(spline, table).toarray()
        Y = np.column_stack(table.table_y)
        A, b = smoothing_strategy("identity").assemble(
            csr_array(B), Y, 0.5, spline)
        assert_allclose(A.toarray(), B.T @ B + 0.5 * np.eye(8), atol=1e-14)
        assert_allclose(b, B.T @ Y, atol=1e-14)

    def test_pspline(self):
        spline, table = _problem()
        B = compute_basis_function_matrix(spline, table).toarray()
        Y = np.column_stack(table.table_y)
        D = second_order_finite_difference_matrix(spline).toarray()
        A, b = smoothing_strategy(Smoothing.PSPLINE).assemble(
            csr_array(B), Y, 2.0, spline)
        assert_allclose(A.toarray(), B.T @ B + 2.0 * D.T @ D, atol=1e-13)
        assert_allclose(b, B.T @ Y, atol=1e-14)

    def test_unknown_mode(self):
        with pytest.raises(InvalidParameterError, match="lasso"):
            smoothing_strategy("lasso")


class TestSolverStages:

    def test_sparse_success(self):
        A = _tridiagonal(10)
        b = np.ones((10, 1))
        attempt = solve_sparse(A, b)
        assert attempt.status is SolveStatus.SUCCESS
        assert attempt.method == "sparse"
        assert_allclose(A @ attempt.coefficients, b)

    def test_sparse_non_square(self):
        attempt = solve_sparse(csr_array(np.ones((4, 3))), np.ones((4, 1)))
        assert attempt.status is SolveStatus.RETRY_DENSE
        assert attempt.coefficients is None

    def test_sparse_singular(self):
        A = csr_array(np.array([[1.0, 0.0], [0.0, 0.0]]))
        attempt = solve_sparse(A, np.ones((2, 1)))
        assert attempt.status is SolveStatus.RETRY_DENSE
        assert attempt.reason

    def test_dense_least_squares(self):
        rng = np.random.default_rng(5)
        A = rng.standard_normal((12, 4))
        b = rng.standard_normal((12, 2))
        attempt = solve_dense(csr_array(A), b)
        assert attempt.ok
        assert_allclose(attempt.coefficients,
                        np.linalg.lstsq(A, b, rcond=None)[0], atol=1e-12)

    def test_dense_minimum_norm(self):
        A = np.array([[1.0, 1.0]])
        attempt = solve_dense(A, np.array([[2.0]]))
        assert_allclose(attempt.coefficients, [[1.0], [1.0]])

    def test_dense_failure(self):
        A = csr_array(np.array([[np.nan, 0.0], [0.0, 1.0]]))
        attempt = solve_dense(A, np.ones((2, 1)))
        assert attempt.status is SolveStatus.FAILURE


class TestSolveLinearSystem:

    @pytest.mark.parametrize("n", [99, 100, 101])
    def test_sparse_and_dense_agree_around_threshold(self, n):
        A = _tridiagonal(n)
        b = np.column_stack([np.linspace(0, 1, n), np.ones(n)])
        x = solve_linear_system(A, b)
        assert_allclose(x, solve_sparse(A, b).coefficients, atol=1e-12)
        assert_allclose(x, solve_dense(A, b).coefficients, atol=1e-12)

    def test_solver_choice_is_logged(self, caplog):
        log = logging.getLogger("splinefit.tests.solver")
        b = np.ones((99, 1))
        with caplog.at_level(logging.DEBUG, logger=log.name):
            solve_linear_system(_tridiagonal(99), b, logger=log)
        assert "dense solver" in caplog.text
        assert "sparse solver" not in caplog.text

        caplog.clear()
        b = np.ones((101, 1))
        with caplog.at_level(logging.DEBUG, logger=log.name):
            solve_linear_system(_tridiagonal(101), b, logger=log)
        assert "sparse solver" in caplog.text
        assert "dense solver" not in caplog.text

    def test_sparse_failure_falls_back_to_dense(self, caplog):
        d = np.arange(1.0, 121.0)
        d[-1] = 0.0
        A = csr_array(np.diag(d))
        b = np.ones((120, 1))
        with caplog.at_level(logging.DEBUG, logger="splinefit"):
            x = solve_linear_system(A, b)
        assert "Sparse solve failed" in caplog.text
        expected = np.r_[1.0 / d[:-1], 0.0]
        assert_allclose(x.ravel(), expected, atol=1e-12)

    def test_custom_threshold(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="splinefit"):
            solve_linear_system(_tridiagonal(10), np.ones((10, 1)),
                                dense_threshold=5)
        assert "sparse solver" in caplog.text

    def test_numerical_failure(self):
        A = csr_array(np.array([[np.nan, 0.0], [0.0, 1.0]]))
        with pytest.raises(NumericalFailureError):
            solve_linear_system(A, np.ones((2, 1)))
        with pytest.raises(np.linalg.LinAlgError):
            solve_linear_system(A, np.ones((2, 1)))


class TestComputeControlPoints:

    def test_shape(self):
        spline, table = _problem()
        C = compute_control_points(spline, table, Smoothing.IDENTITY, 1e-3)
        assert C.shape == (8, 2)

    def test_negative_alpha(self):
        spline, table = _problem()
        with pytest.raises(InvalidParameterError):
            compute_control_points(spline, table, Smoothing.IDENTITY, -1.0)
