"""Helpers for testing joint diagonalization.

Example usage:

    from torchajd import uwedge
    from torchajd.testing import jointly_diagonalizable

    problem = jointly_diagonalizable(5, 10)
    result = uwedge(problem.matrices)

The hypothesis strategies in ``torchajd.testing.strategies`` require the
``test`` extra.
"""

from ._problems import JointDiagonalizationProblem, jointly_diagonalizable

__all__ = [
    "JointDiagonalizationProblem",
    "jointly_diagonalizable",
]
