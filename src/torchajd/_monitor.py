"""Stopping rules and best-iterate tracking for the uwedge iteration."""

from typing import Optional

from torch import Tensor

from torchajd._ops import condition_number, mean_off_diagonal
from torchajd._result_types import BestIterate, TerminationState


def exceeds_condition_threshold(
    v: Tensor,
    condition_threshold: Optional[float],
) -> bool:
    """True if a threshold is set and the condition number of ``v`` exceeds it."""
    if condition_threshold is None:
        return False
    return bool(condition_number(v) > condition_threshold)


def check_termination(
    change: Tensor,
    v_new: Tensor,
    *,
    tol: float,
    condition_threshold: Optional[float] = None,
) -> TerminationState:
    """Decide how the iteration proceeds after an update.

    Convergence is tested first: a converged iterate is accepted even if its
    condition number exceeds the threshold.

    Parameters
    ----------
    change : Tensor
        Maximum absolute change of V in this update.
    v_new : Tensor
        Updated diagonalizer.
    tol : float
        Convergence threshold on ``change``.
    condition_threshold : float, optional
        Abort threshold on the condition number of ``v_new``.

    Returns
    -------
    TerminationState
        ``CONVERGED``, ``ABORTED`` (``v_new`` must be discarded) or
        ``ITERATING``.
    """
    if change < tol:
        return TerminationState.CONVERGED
    if exceeds_condition_threshold(v_new, condition_threshold):
        return TerminationState.ABORTED
    return TerminationState.ITERATING


def update_best_iterate(
    best: Optional[BestIterate],
    v: Tensor,
    diagonals: Tensor,
    iteration: int,
) -> BestIterate:
    """Return the better of ``best`` and the candidate iterate.

    The candidate replaces ``best`` only if its off-diagonal loss is strictly
    smaller, so ties keep the earlier iterate.

    Parameters
    ----------
    best : BestIterate, optional
        Current best iterate, or None before the first accepted iterate.
    v : Tensor
        Candidate diagonalizer.
    diagonals : Tensor
        Congruence transforms of the input matrices by ``v``.
    iteration : int
        1-based iteration that produced ``v``.
    """
    meanoffdiag = mean_off_diagonal(diagonals)
    if best is not None and not bool(meanoffdiag < best.meanoffdiag):
        return best
    return BestIterate(
        V=v,
        meanoffdiag=meanoffdiag,
        diagonals=diagonals,
        iteration=iteration,
    )
