"""torchajd: approximate joint diagonalization with PyTorch.

Functions
---------
uwedge
    Finds a single matrix V such that V @ R_i @ V.T is approximately
    diagonal for every matrix R_i of a collection of symmetric matrices.

congruence
    Congruence transform V @ R_i @ V.T of a stack of matrices.

mean_off_diagonal
    Root-mean-square of the off-diagonal entries of a stack of matrices.

Types
-----
UwedgeConfig
    Frozen record of the options of a uwedge run.

UwedgeResult
    Named tuple with V, diagonals, converged, iterations, meanoffdiag, state.

TerminationState
    Terminal state of the iteration (converged, aborted, max_iter_reached).

Exceptions
----------
JointDiagonalizationError
    Base exception.

DimensionError
    Inputs of inconsistent or invalid shape.

NumericalError
    Singular coefficient matrix during an update.
"""

from torchajd._config import UwedgeConfig
from torchajd._exceptions import (
    DimensionError,
    JointDiagonalizationError,
    NumericalError,
)
from torchajd._ops import congruence, mean_off_diagonal
from torchajd._result_types import TerminationState, UwedgeResult
from torchajd._uwedge import uwedge

__all__ = [
    "DimensionError",
    "JointDiagonalizationError",
    "NumericalError",
    "TerminationState",
    "UwedgeConfig",
    "UwedgeResult",
    "congruence",
    "mean_off_diagonal",
    "uwedge",
]

__version__ = "0.1.0"
