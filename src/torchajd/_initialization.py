"""Starting diagonalizer for the uwedge iteration."""

from typing import Optional

import torch
from torch import Tensor

from torchajd._exceptions import DimensionError, NumericalError
from torchajd._ops import normalize_rows


def whitening(rx0: Tensor, n_components: int) -> Tensor:
    r"""PCA whitening transform of a symmetric matrix.

    With the eigendecomposition :math:`R = E \Lambda E^T` and the eigenpairs
    ordered by decreasing eigenvalue, returns the ``(n_components, d)``
    matrix :math:`\operatorname{diag}(|\lambda_k|^{-1/2})_{k \le n} E^T`.
    Absolute values keep the transform finite for indefinite matrices.

    Parameters
    ----------
    rx0 : Tensor
        Symmetric matrix of shape ``(d, d)``.
    n_components : int
        Number of leading eigenpairs to keep.

    Returns
    -------
    Tensor
        Whitening transform of shape ``(n_components, d)``.
    """
    try:
        eigenvalues, eigenvectors = torch.linalg.eigh(rx0)
    except torch.linalg.LinAlgError as e:
        raise NumericalError(f"eigendecomposition of rx0 failed: {e}") from e
    order = torch.argsort(eigenvalues, descending=True)[:n_components]
    scale = 1.0 / torch.sqrt(eigenvalues[order].abs())
    return scale.unsqueeze(-1) * eigenvectors[:, order].mT


def initial_diagonalizer(
    matrices: Tensor,
    n_components: int,
    *,
    init: Optional[Tensor] = None,
    rx0: Optional[Tensor] = None,
) -> Tensor:
    """Starting point V0 of the iteration, with unit-norm rows.

    Parameters
    ----------
    matrices : Tensor
        Stack of symmetric matrices, shape ``(M, d, d)``.
    n_components : int
        Number of rows of V0.
    init : Tensor, optional
        Seed of shape ``(>= n_components, d)``; its leading rows are used.
    rx0 : Tensor, optional
        Matrix whitened when no seed is given. Default: ``matrices[0]``.

    Returns
    -------
    Tensor
        V0 of shape ``(n_components, d)``.

    Raises
    ------
    DimensionError
        If the stack is empty or not square, or ``init``/``rx0`` do not match.
    NumericalError
        If a row of V0 has zero norm or contains non-finite values.
    """
    if matrices.dim() != 3 or matrices.shape[0] == 0:
        raise DimensionError(
            f"matrices must be a non-empty stack of shape (M, d, d), got "
            f"{tuple(matrices.shape)}"
        )
    if matrices.shape[-2] != matrices.shape[-1]:
        raise DimensionError(
            f"matrices must be square, got shape {tuple(matrices.shape[1:])}"
        )
    d = matrices.shape[-1]

    if init is None:
        if rx0 is None:
            rx0 = matrices[0]
        rx0 = torch.as_tensor(rx0, dtype=matrices.dtype, device=matrices.device)
        if rx0.shape != (d, d):
            raise DimensionError(
                f"rx0 must have shape ({d}, {d}), got {tuple(rx0.shape)}"
            )
        v = whitening(rx0, n_components)
    else:
        init = torch.as_tensor(init, dtype=matrices.dtype, device=matrices.device)
        if init.dim() != 2 or init.shape[0] < n_components or init.shape[1] != d:
            raise DimensionError(
                f"init must have shape (>= {n_components}, {d}), got "
                f"{tuple(init.shape)}"
            )
        v = init[:n_components].clone()

    v = normalize_rows(v)
    if not torch.isfinite(v).all():
        raise NumericalError(
            "initial diagonalizer is not finite; the seed or scaling matrix "
            "has a zero row or zero eigenvalue"
        )
    return v
