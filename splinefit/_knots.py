"""
Knot vector generation
======================

One knot vector is derived per input dimension from the sample coordinates
of that dimension, a degree ``p`` and a target number of basis functions
``n``. Every generator returns a non-decreasing array of length ``n + p + 1``.

Three policies are available (see ``KnotSpacing``):

- ``AS_SAMPLED`` (default): moving average of the distinct coordinates,
  clamped at both ends with ``p + 1`` copies of the boundary value. The number
  of basis functions equals the number of distinct coordinates, and the
  resulting basis satisfies the Schoenberg-Whitney conditions at the data, so
  a fit on a complete grid interpolates.
- ``EQUIDISTANT``: ``n - p + 1`` uniformly spaced knots on ``[min, max]``,
  clamped with ``p`` extra copies at each end.
- ``EXPERIMENTAL``: uniform knots that are *not* clamped. The spacing is
  chosen so that the base interval ``[t[p], t[n]]`` is ``[min, max]``; the
  outer knots extend beyond the data.
"""
import enum

import numpy as np

from ._errors import InsufficientDataError, InvalidParameterError


class KnotSpacing(enum.Enum):
    """Knot placement policy."""
    AS_SAMPLED = "as_sampled"
    EQUIDISTANT = "equidistant"
    EXPERIMENTAL = "experimental"


def as_knot_spacing(spacing):
    """Convert a ``KnotSpacing`` or its name to ``KnotSpacing``."""
    try:
        return KnotSpacing(spacing)
    except ValueError:
        names = ", ".join(repr(s.value) for s in KnotSpacing)
        raise InvalidParameterError(
            f"Unknown knot spacing {spacing!r}, expected one of {names}"
        ) from None


def unique_sorted(values):
    """Sorted distinct values of a 1-D sequence, as a float array."""
    return np.unique(np.asarray(values, dtype=float).ravel())


def _check_degree(degree):
    if int(degree) != degree or degree < 0:
        raise InvalidParameterError(
            f"degree must be a non-negative integer, found {degree}")
    return int(degree)


def _distinct_values(values, degree):
    u = unique_sorted(values)
    required = max(degree + 1, 2)
    if u.size < required:
        raise InsufficientDataError(
            f"Only {u.size} unique sample values are given. A minimum of "
            f"{required} unique values is required to build a B-spline basis "
            f"of degree {degree}.")
    return u


def _num_basis(u, degree, num_basis_functions):
    if num_basis_functions is None:
        return u.size
    n = int(num_basis_functions)
    if n < degree + 1:
        raise InvalidParameterError(
            f"num_basis_functions must be >= degree + 1 = {degree + 1}, "
            f"found {n}")
    return n


def knot_vector_moving_average(values, degree):
    """
    Clamped knot vector with interior knots placed by moving average.

    Parameters
    ----------
    values : array_like
        Sample coordinates of one dimension. Need not be sorted or unique.
    degree : int
        Spline degree ``p``.

    Returns
    -------
    t : ndarray, shape (n + p + 1,)
        Knot vector, where ``n`` is the number of distinct values.

    Raises
    ------
    InsufficientDataError
        If fewer than ``p + 1`` distinct values are given.

    Notes
    -----
    With distinct values ``u[0] < ... < u[n-1]`` the interior knots are the
    averages of ``p`` consecutive values of ``u[1:-1]`` (de Boor's averaging
    rule), giving ``n - p - 1`` interior knots. For ``p = 0`` the midpoints
    between neighbouring values are used instead, so that every sample lies
    in its own span.
    """
    p = _check_degree(degree)
    u = _distinct_values(values, p)

    if p == 0:
        inner = 0.5 * (u[:-1] + u[1:])
    elif u.size > p + 1:
        inner = np.convolve(u[1:-1], np.full(p, 1.0 / p), mode="valid")
    else:
        # p + 1 values: Bezier segment, no interior knots
        inner = np.empty(0)

    t0 = np.full(p + 1, u[0])
    t1 = np.full(p + 1, u[-1])
    return np.concatenate([t0, inner, t1])


def knot_vector_equidistant(values, degree, num_basis_functions=None):
    """
    Clamped knot vector with uniformly spaced knots on ``[min, max]``.

    Parameters
    ----------
    values : array_like
        Sample coordinates of one dimension.
    degree : int
        Spline degree ``p``.
    num_basis_functions : int or None
        Number of basis functions ``n``. Defaults to the number of distinct
        values.

    Returns
    -------
    t : ndarray, shape (n + p + 1,)
        ``p + 1`` copies of ``min``, uniform interior knots, ``p + 1``
        copies of ``max``.
    """
    p = _check_degree(degree)
    u = _distinct_values(values, p)
    n = _num_basis(u, p, num_basis_functions)

    a, b = u[0], u[-1]
    t0 = np.full(p, a)
    t1 = np.full(p, b)
    return np.concatenate([t0, np.linspace(a, b, n - p + 1), t1])


def knot_vector_equidistant_not_clamped(values, degree,
                                        num_basis_functions=None):
    """
    Uniform, unclamped knot vector whose base interval is ``[min, max]``.

    Parameters
    ----------
    values : array_like
        Sample coordinates of one dimension.
    degree : int
        Spline degree ``p``.
    num_basis_functions : int or None
        Number of basis functions ``n``. Defaults to the number of distinct
        values.

    Returns
    -------
    t : ndarray, shape (n + p + 1,)
        ``t[j] = min + (j - p) * h`` with ``h = (max - min) / (n - p)``.
    """
    p = _check_degree(degree)
    u = _distinct_values(values, p)
    n = _num_basis(u, p, num_basis_functions)

    a, b = u[0], u[-1]
    h = (b - a) / (n - p)
    t = a + h * np.arange(-p, n + 1, dtype=float)
    # pin the base interval ends against rounding
    t[p] = a
    t[n] = b
    return t


def compute_knot_vector(values, degree, num_basis_functions=None,
                        spacing=KnotSpacing.AS_SAMPLED):
    """
    Compute the knot vector of one dimension under a spacing policy.

    Parameters
    ----------
    values : array_like
        Sample coordinates of one dimension.
    degree : int
        Spline degree.
    num_basis_functions : int or None
        Target number of basis functions. Ignored by ``AS_SAMPLED``, which
        always yields one basis function per distinct value.
    spacing : KnotSpacing or str
        Knot placement policy.

    Returns
    -------
    t : ndarray
        Non-decreasing knot vector.
    """
    spacing = as_knot_spacing(spacing)
    if spacing is KnotSpacing.EQUIDISTANT:
        return knot_vector_equidistant(values, degree, num_basis_functions)
    if spacing is KnotSpacing.EXPERIMENTAL:
        return knot_vector_equidistant_not_clamped(values, degree,
                                                   num_basis_functions)
    return knot_vector_moving_average(values, degree)
