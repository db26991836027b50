# tests/torchajd/testing/test__problems.py
import hypothesis
import torch

from torchajd.testing import JointDiagonalizationProblem, jointly_diagonalizable
from torchajd.testing.strategies import joint_diagonalization_problems


class TestJointlyDiagonalizable:
    """Tests for the synthetic problem generator."""

    def test_shapes(self):
        problem = jointly_diagonalizable(4, 7)

        assert isinstance(problem, JointDiagonalizationProblem)
        assert problem.mixing.shape == (4, 4)
        assert problem.spectra.shape == (7, 4)
        assert problem.matrices.shape == (7, 4, 4)

    def test_symmetric(self):
        problem = jointly_diagonalizable(5, 3)
        assert torch.equal(problem.matrices, problem.matrices.mT)

    def test_reconstruction(self):
        problem = jointly_diagonalizable(3, 4)

        for i in range(4):
            expected = (
                problem.mixing @ torch.diag(problem.spectra[i]) @ problem.mixing.T
            )
            torch.testing.assert_close(problem.matrices[i], expected)

    def test_spectra_range(self):
        problem = jointly_diagonalizable(6, 10, low=0.5, high=0.75)

        assert problem.spectra.min() >= 0.5
        assert problem.spectra.max() <= 0.75

    def test_orthogonal_mixing(self):
        problem = jointly_diagonalizable(4, 2, orthogonal=True)

        torch.testing.assert_close(
            problem.mixing @ problem.mixing.T,
            torch.eye(4, dtype=torch.float64),
        )

    def test_reproducible(self):
        first = jointly_diagonalizable(
            3, 2, generator=torch.Generator().manual_seed(7)
        )
        second = jointly_diagonalizable(
            3, 2, generator=torch.Generator().manual_seed(7)
        )
        assert torch.equal(first.matrices, second.matrices)

    def test_dtype(self):
        problem = jointly_diagonalizable(3, 2, dtype=torch.float32)
        assert problem.matrices.dtype == torch.float32


class TestJointDiagonalizationProblems:
    @hypothesis.given(
        problem=joint_diagonalization_problems(
            min_size=2, max_size=4, min_matrices=1, max_matrices=3
        )
    )
    @hypothesis.settings(max_examples=20, deadline=None)
    def test_bounds(self, problem):
        d = problem.mixing.shape[0]
        m = problem.matrices.shape[0]

        assert 2 <= d <= 4
        assert 1 <= m <= 3
        assert problem.matrices.shape == (m, d, d)
