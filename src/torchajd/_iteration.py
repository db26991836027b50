"""Single fixed-point update of the uwedge iteration."""

from typing import NamedTuple

import torch
from torch import Tensor

from torchajd._exceptions import NumericalError
from torchajd._ops import (
    clamped_divide,
    congruence,
    diagonal,
    fill_diagonal,
    normalize_rows,
    outer,
)


class UwedgeStep(NamedTuple):
    """Outcome of one update."""

    V: Tensor  # (n_components, d) - updated diagonalizer, unit-norm rows
    change: Tensor  # () - max |V_new - V_old|


def coefficient_matrix(rs: Tensor, denominator_floor: float) -> Tensor:
    r"""Coefficient matrix of the update, with unit diagonal.

    For the congruent set :math:`R_s` with stacked diagonals :math:`D`
    (shape ``(M, n)``) and :math:`P = D^T D`, the off-diagonal entries are

    .. math::

        A_{kl} = \frac{P_{kk} R_{kl} - P_{kl} R_{lk}}{P_{kk} P_{ll} - P_{kl}^2},
        \qquad
        R_{kl} = \frac{1}{M} \sum_i R_{s,i}[l,l] \, R_{s,i}[k,l].

    The average in :math:`R_{kl}` against the sum in :math:`P` damps the
    Gauss step of Tichavsky & Yeredor (2009) by :math:`1/M`.

    Parameters
    ----------
    rs : Tensor
        Congruent set, shape ``(M, n, n)``.
    denominator_floor : float
        Denominators with smaller magnitude are replaced by this value.

    Returns
    -------
    Tensor
        Coefficient matrix of shape ``(n, n)``.
    """
    d = diagonal(rs)
    p = d.mT @ d
    p_diag = diagonal(p)

    # Self terms are unused.
    denom = fill_diagonal(outer(p_diag, p_diag) - p**2, 1.0)

    # Each row of the broadcast factor is the diagonal of rs[i].
    rkl = (d.unsqueeze(-2) * rs).mean(dim=0)
    num = p_diag.unsqueeze(-1) * rkl - p * rkl.mT

    a = clamped_divide(num, denom, denominator_floor)
    return fill_diagonal(a, 1.0)


def uwedge_step(
    v: Tensor,
    matrices: Tensor,
    denominator_floor: float,
) -> UwedgeStep:
    """Compute the next diagonalizer from ``v``.

    Parameters
    ----------
    v : Tensor
        Current diagonalizer, shape ``(n_components, d)``.
    matrices : Tensor
        Matrices to diagonalize, shape ``(M, d, d)``.
    denominator_floor : float
        Safety floor for near-zero denominators of the coefficient matrix.

    Returns
    -------
    UwedgeStep
        Updated diagonalizer and the maximum absolute change.

    Raises
    ------
    NumericalError
        If the coefficient matrix is singular or the update is not finite.
    """
    rs = congruence(v, matrices)
    # Symmetric up to rounding; asymmetry would leak into the numerator.
    rs = (rs + rs.mT) / 2
    a = coefficient_matrix(rs, denominator_floor)

    try:
        v_new = torch.linalg.solve(a, v)
    except torch.linalg.LinAlgError as e:
        raise NumericalError(
            f"coefficient matrix of the update is singular: {e}"
        ) from e

    v_new = normalize_rows(v_new)
    if not torch.isfinite(v_new).all():
        raise NumericalError(
            "update produced a non-finite diagonalizer; the coefficient "
            "matrix is numerically singular"
        )

    change = (v_new - v).abs().max()
    return UwedgeStep(V=v_new, change=change)
