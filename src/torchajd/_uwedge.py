"""Uniformly weighted exhaustive diagonalization with Gauss iterations."""

import warnings
from typing import Optional, Sequence, Union

import torch
from torch import Tensor

from torchajd._config import UwedgeConfig
from torchajd._exceptions import DimensionError
from torchajd._initialization import initial_diagonalizer
from torchajd._iteration import uwedge_step
from torchajd._monitor import check_termination, update_best_iterate
from torchajd._ops import congruence, mean_off_diagonal
from torchajd._result_types import (
    BestIterate,
    TerminationState,
    UwedgeResult,
)


def _as_matrix_stack(matrices: Union[Tensor, Sequence[Tensor]]) -> Tensor:
    """Stack the input matrices into a floating ``(M, d, d)`` tensor."""
    if isinstance(matrices, Tensor):
        stack = matrices
    else:
        items = [torch.as_tensor(x) for x in matrices]
        if len(items) == 0:
            raise DimensionError("matrices must contain at least one matrix")
        for i, x in enumerate(items):
            if x.dim() != 2 or x.shape[0] != x.shape[1]:
                raise DimensionError(
                    f"matrices[{i}] must be a square matrix, got shape "
                    f"{tuple(x.shape)}"
                )
            if x.shape != items[0].shape:
                raise DimensionError(
                    f"all matrices must have the same shape, matrices[0] has "
                    f"{tuple(items[0].shape)} but matrices[{i}] has "
                    f"{tuple(x.shape)}"
                )
        stack = torch.stack(items)

    if stack.dim() != 3:
        raise DimensionError(
            f"matrices must have shape (M, d, d), got {tuple(stack.shape)}"
        )
    if stack.shape[0] == 0:
        raise DimensionError("matrices must contain at least one matrix")
    if stack.shape[-2] != stack.shape[-1] or stack.shape[-1] == 0:
        raise DimensionError(
            f"matrices must be square and non-empty, got shape "
            f"{tuple(stack.shape[1:])}"
        )

    if stack.is_complex():
        raise TypeError("complex matrices are not supported")
    if not stack.is_floating_point():
        stack = stack.to(torch.float64)
    elif stack.dtype in (torch.float16, torch.bfloat16):
        # torch.linalg has no half-precision eigh or solve.
        stack = stack.to(torch.float32)
    return stack


def _finalize(
    matrices: Tensor,
    v: Tensor,
    iteration: int,
    state: TerminationState,
    best: Optional[BestIterate],
    config: UwedgeConfig,
) -> UwedgeResult:
    if config.minimize_loss and best is not None:
        v = best.V
        iteration = int(best.iteration)
        diagonals = best.diagonals
        meanoffdiag = best.meanoffdiag
    else:
        diagonals = congruence(v, matrices)
        meanoffdiag = mean_off_diagonal(diagonals)

    return UwedgeResult(
        V=v,
        diagonals=diagonals if config.return_diag else None,
        converged=state is TerminationState.CONVERGED,
        iterations=iteration,
        meanoffdiag=meanoffdiag,
        state=state,
    )


def _report(result: UwedgeResult, config: UwedgeConfig) -> None:
    if result.state is TerminationState.ABORTED:
        warnings.warn(
            "Abort uwedge due to unreasonably growing condition number of "
            f"unmixing matrix V; returning iterate {result.iterations}",
            RuntimeWarning,
            stacklevel=3,
        )
    if config.silent:
        return
    if result.state is TerminationState.CONVERGED:
        message = f"uwedge converged after {result.iterations} iterations"
    elif result.state is TerminationState.MAX_ITER_REACHED:
        message = (
            f"uwedge did not converge within max_iter={config.max_iter} "
            "iterations"
        )
    else:
        return
    warnings.warn(
        f"{message} (meanoffdiag = {float(result.meanoffdiag):.3e})",
        RuntimeWarning,
        stacklevel=3,
    )


def uwedge(
    matrices: Union[Tensor, Sequence[Tensor]],
    *,
    init: Optional[Tensor] = None,
    rx0: Optional[Tensor] = None,
    n_components: Optional[int] = None,
    return_diag: bool = False,
    tol: float = 1e-10,
    max_iter: int = 1000,
    minimize_loss: bool = False,
    condition_threshold: Optional[float] = None,
    denominator_floor: Optional[float] = None,
    silent: bool = True,
) -> UwedgeResult:
    r"""
    Approximate joint diagonalization of symmetric matrices.

    Finds a matrix :math:`V` of shape ``(n_components, d)`` such that
    :math:`V R_i V^T` is approximately diagonal for every input matrix
    :math:`R_i`. Each iteration congruence-transforms the matrices by the
    current :math:`V`, builds a closed-form coefficient matrix :math:`A` from
    their diagonal and off-diagonal entries, solves :math:`A V_{new} = V` and
    rescales the rows of :math:`V_{new}` to unit norm.

    Parameters
    ----------
    matrices : Tensor or sequence of Tensor
        Symmetric matrices of shape ``(M, d, d)``, or a sequence of ``M``
        matrices of shape ``(d, d)``. Integer inputs are promoted to float64,
        float16 and bfloat16 inputs to float32.
    init : Tensor, optional
        Seed of shape ``(>= n_components, d)``. Its first ``n_components``
        rows are the starting point. Default: PCA whitening of ``rx0``.
    rx0 : Tensor, optional
        Matrix whitened to obtain the starting point when ``init`` is not
        given. Default: ``matrices[0]``.
    n_components : int, optional
        Number of rows of ``V``. Default: ``d``.
    return_diag : bool, default=False
        Include the diagonalized matrices :math:`V R_i V^T` in the result.
    tol : float, default=1e-10
        Stop when the maximum absolute change of ``V`` is below ``tol``.
    max_iter : int, default=1000
        Maximum number of iterations.
    minimize_loss : bool, default=False
        Evaluate the off-diagonal loss after every iteration and return the
        iterate with the smallest loss. More expensive per iteration.
    condition_threshold : float, optional
        Stop when the condition number of ``V`` exceeds this value and return
        the previous iterate with ``converged=False``.
    denominator_floor : float, optional
        Near-zero denominators of the coefficient matrix are replaced by this
        value. Default: machine epsilon of the input dtype.
    silent : bool, default=True
        Suppress the summary warning issued at termination. The abort warning
        of ``condition_threshold`` is always issued.

    Returns
    -------
    UwedgeResult
        V : Tensor of shape ``(n_components, d)`` with unit-norm rows.
        diagonals : Tensor of shape ``(M, n_components, n_components)``, or
        None unless ``return_diag=True``.
        converged : bool, True only if the ``tol`` criterion was met.
        iterations : int, number of iterations that produced ``V``.
        meanoffdiag : Tensor, root-mean-square of the off-diagonal entries of
        the diagonalized matrices.
        state : TerminationState.

    Raises
    ------
    DimensionError
        If the matrices are empty, not square or of different sizes, or if
        ``init``, ``rx0`` or ``n_components`` do not match them.
    NumericalError
        If the coefficient matrix of an update is singular.

    Examples
    --------
    >>> import torch
    >>> from torchajd import uwedge
    >>> torch.manual_seed(0)  # doctest: +ELLIPSIS
    <torch._C.Generator object at ...>
    >>> a = torch.randn(4, 4, dtype=torch.float64)
    >>> r = torch.stack(
    ...     [a @ torch.diag(torch.rand(4, dtype=torch.float64) + 1) @ a.T
    ...      for _ in range(6)]
    ... )
    >>> result = uwedge(r)
    >>> result.converged
    True
    >>> bool(result.meanoffdiag < 1e-6)
    True

    References
    ----------
    Tichavsky, P. and Yeredor, A. (2009). Fast Approximate Joint
    Diagonalization Incorporating Weight Matrices. IEEE Transactions on
    Signal Processing.

    Pfister, N., Weichwald, S., Buehlmann, P. and Schoelkopf, B. (2019).
    Robustifying Independent Component Analysis by Adjusting for Group-Wise
    Stationary Noise. Journal of Machine Learning Research.
    """
    config = UwedgeConfig(
        init=init,
        rx0=rx0,
        n_components=n_components,
        return_diag=return_diag,
        tol=tol,
        max_iter=max_iter,
        minimize_loss=minimize_loss,
        condition_threshold=condition_threshold,
        denominator_floor=denominator_floor,
        silent=silent,
    )

    matrices = _as_matrix_stack(matrices)
    config = config.resolve(matrices.shape[-1], matrices.dtype)

    v = initial_diagonalizer(
        matrices,
        config.n_components,
        init=config.init,
        rx0=config.rx0,
    )

    state = TerminationState.INIT
    best: Optional[BestIterate] = None
    iteration = 0

    while iteration < config.max_iter:
        step = uwedge_step(v, matrices, config.denominator_floor)
        state = check_termination(
            step.change,
            step.V,
            tol=config.tol,
            condition_threshold=config.condition_threshold,
        )
        if state is TerminationState.ABORTED:
            break

        iteration += 1
        v = step.V

        if config.minimize_loss:
            best = update_best_iterate(
                best, v, congruence(v, matrices), iteration
            )

        if state is TerminationState.CONVERGED:
            break
    else:
        state = TerminationState.MAX_ITER_REACHED

    result = _finalize(matrices, v, iteration, state, best, config)
    _report(result, config)
    return result
