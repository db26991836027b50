"""Result records of the uwedge algorithm."""

import enum
from typing import NamedTuple, Optional

from tensordict.tensorclass import tensorclass
from torch import Tensor


class TerminationState(enum.Enum):
    """State of the uwedge iteration."""

    INIT = "init"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ABORTED = "aborted"
    MAX_ITER_REACHED = "max_iter_reached"

    @property
    def is_terminal(self) -> bool:
        return self in (
            TerminationState.CONVERGED,
            TerminationState.ABORTED,
            TerminationState.MAX_ITER_REACHED,
        )


@tensorclass
class BestIterate:
    """Iterate with the smallest off-diagonal loss seen so far.

    Attributes
    ----------
    V : Tensor
        Diagonalizer, shape (n_components, d).
    meanoffdiag : Tensor
        Off-diagonal loss of ``V``, 0-dim.
    diagonals : Tensor
        ``V @ Rx[i] @ V.T`` for every input matrix, shape (M, n, n).
    iteration : int
        1-based iteration that produced ``V``.
    """

    V: Tensor
    meanoffdiag: Tensor
    diagonals: Tensor
    iteration: int


class UwedgeResult(NamedTuple):
    """Result of approximate joint diagonalization.

    ``V @ matrices[i] @ V.T`` is approximately diagonal for every ``i``.
    """

    V: Tensor  # (n_components, d) - joint diagonalizer, unit-norm rows
    diagonals: Optional[Tensor]  # (M, n, n) - only when return_diag=True
    converged: bool
    iterations: int
    meanoffdiag: Tensor  # () - RMS of off-diagonal entries
    state: TerminationState
