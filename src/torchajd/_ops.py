"""Shape-checked tensor helpers used by the uwedge iteration.

Every helper states its shape preconditions and raises ``DimensionError``
instead of relying on implicit broadcasting.
"""

import torch
from torch import Tensor

from torchajd._exceptions import DimensionError


def _require_square(x: Tensor, name: str) -> int:
    if x.dim() < 2 or x.shape[-2] != x.shape[-1]:
        raise DimensionError(
            f"{name} must be square in its last two dimensions, "
            f"got shape {tuple(x.shape)}"
        )
    return x.shape[-1]


def outer(u: Tensor, v: Tensor) -> Tensor:
    """Outer product of two vectors, shape ``(len(u), len(v))``."""
    if u.dim() != 1 or v.dim() != 1:
        raise DimensionError(
            f"outer expects vectors, got shapes {tuple(u.shape)} and "
            f"{tuple(v.shape)}"
        )
    return u.unsqueeze(-1) * v.unsqueeze(-2)


def diagonal(x: Tensor) -> Tensor:
    """Diagonal of a square matrix or of a stack of square matrices.

    Parameters
    ----------
    x : Tensor
        Tensor of shape ``(..., n, n)``.

    Returns
    -------
    Tensor
        Tensor of shape ``(..., n)``.
    """
    _require_square(x, "x")
    return x.diagonal(dim1=-2, dim2=-1)


def fill_diagonal(x: Tensor, value: float) -> Tensor:
    """Return a copy of the square matrix ``x`` with its diagonal set to ``value``."""
    _require_square(x, "x")
    out = x.clone()
    out.diagonal(dim1=-2, dim2=-1).fill_(value)
    return out


def clamped_divide(numerator: Tensor, denominator: Tensor, floor: float) -> Tensor:
    """Elementwise ``numerator / denominator`` with a floor on ``|denominator|``.

    Entries of ``denominator`` whose magnitude is below ``floor`` are replaced
    by ``floor`` before dividing.
    """
    if numerator.shape != denominator.shape:
        raise DimensionError(
            f"numerator and denominator must have the same shape, got "
            f"{tuple(numerator.shape)} and {tuple(denominator.shape)}"
        )
    safe = torch.where(
        denominator.abs() < floor,
        torch.full_like(denominator, floor),
        denominator,
    )
    return numerator / safe


def normalize_rows(x: Tensor) -> Tensor:
    """Scale each row of the matrix ``x`` to unit Euclidean norm."""
    if x.dim() != 2:
        raise DimensionError(
            f"normalize_rows expects a matrix, got shape {tuple(x.shape)}"
        )
    return x / torch.linalg.vector_norm(x, dim=1, keepdim=True)


def congruence(v: Tensor, matrices: Tensor) -> Tensor:
    r"""Congruence transform :math:`V R_i V^T` of every matrix in a stack.

    Parameters
    ----------
    v : Tensor
        Transform of shape ``(n, d)``.
    matrices : Tensor
        Stack of shape ``(M, d, d)`` or a single ``(d, d)`` matrix.

    Returns
    -------
    Tensor
        Shape ``(M, n, n)`` (or ``(n, n)`` for a single matrix).
    """
    d = _require_square(matrices, "matrices")
    if v.dim() != 2 or v.shape[-1] != d:
        raise DimensionError(
            f"v must have shape (n, {d}), got {tuple(v.shape)}"
        )
    return v @ matrices @ v.mT


def mean_off_diagonal(diagonals: Tensor) -> Tensor:
    r"""Root-mean-square of the off-diagonal entries of a matrix stack.

    .. math::

        \sqrt{\frac{\sum_i \left(\|R_i\|_F^2 - \sum_k R_i[k,k]^2\right)}
                   {M (n^2 - n)}}

    Parameters
    ----------
    diagonals : Tensor
        Stack of approximately diagonal matrices, shape ``(M, n, n)``.

    Returns
    -------
    Tensor
        0-dim tensor. Zero when ``n == 1`` since there are no off-diagonal
        entries.
    """
    n = _require_square(diagonals, "diagonals")
    if diagonals.dim() != 3:
        raise DimensionError(
            f"diagonals must have shape (M, n, n), got {tuple(diagonals.shape)}"
        )
    m = diagonals.shape[0]
    entries = m * (n * n - n)
    if entries == 0:
        return diagonals.new_zeros(())
    off = diagonals - torch.diag_embed(diagonal(diagonals))
    return torch.sqrt((off**2).sum() / entries)


def condition_number(x: Tensor) -> Tensor:
    """2-norm condition number (ratio of extreme singular values) of ``x``."""
    if x.dim() != 2:
        raise DimensionError(
            f"condition_number expects a matrix, got shape {tuple(x.shape)}"
        )
    return torch.linalg.cond(x)
