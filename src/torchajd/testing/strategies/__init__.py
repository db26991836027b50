"""Hypothesis strategies for joint diagonalization testing."""

from ._joint_diagonalization_problems import joint_diagonalization_problems

__all__ = [
    "joint_diagonalization_problems",
]
