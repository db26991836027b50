# tests/torchajd/test__ops.py
import math

import pytest
import torch

from torchajd import DimensionError, congruence, mean_off_diagonal
from torchajd._ops import (
    clamped_divide,
    condition_number,
    diagonal,
    fill_diagonal,
    normalize_rows,
    outer,
)


class TestOuter:
    def test_values(self):
        u = torch.tensor([1.0, 2.0], dtype=torch.float64)
        v = torch.tensor([3.0, 4.0, 5.0], dtype=torch.float64)

        expected = torch.tensor(
            [[3.0, 4.0, 5.0], [6.0, 8.0, 10.0]], dtype=torch.float64
        )
        torch.testing.assert_close(outer(u, v), expected)

    def test_rejects_matrices(self):
        with pytest.raises(DimensionError, match="vectors"):
            outer(torch.ones(2, 2), torch.ones(2))


class TestDiagonal:
    def test_single_matrix(self):
        x = torch.arange(9.0).reshape(3, 3)
        torch.testing.assert_close(diagonal(x), torch.tensor([0.0, 4.0, 8.0]))

    def test_stack(self):
        x = torch.arange(8.0).reshape(2, 2, 2)
        expected = torch.tensor([[0.0, 3.0], [4.0, 7.0]])
        torch.testing.assert_close(diagonal(x), expected)

    def test_rejects_non_square(self):
        with pytest.raises(DimensionError, match="square"):
            diagonal(torch.ones(2, 3))

    def test_rejects_vector(self):
        with pytest.raises(DimensionError, match="square"):
            diagonal(torch.ones(3))


class TestFillDiagonal:
    def test_sets_diagonal(self):
        x = torch.zeros(3, 3)
        torch.testing.assert_close(fill_diagonal(x, 1.0), torch.eye(3))

    def test_does_not_mutate_input(self):
        x = torch.zeros(2, 2)
        fill_diagonal(x, 5.0)
        assert torch.all(x == 0)


class TestClampedDivide:
    def test_regular_division(self):
        num = torch.tensor([1.0, 6.0], dtype=torch.float64)
        den = torch.tensor([2.0, -3.0], dtype=torch.float64)
        torch.testing.assert_close(
            clamped_divide(num, den, 1e-12),
            torch.tensor([0.5, -2.0], dtype=torch.float64),
        )

    def test_floors_small_denominators(self):
        """Zero and tiny denominators of either sign are replaced by the floor."""
        num = torch.tensor([1.0, 1.0, 1.0], dtype=torch.float64)
        den = torch.tensor([0.0, -1e-20, 1e-20], dtype=torch.float64)

        result = clamped_divide(num, den, 1e-3)

        torch.testing.assert_close(
            result, torch.full((3,), 1e3, dtype=torch.float64)
        )
        assert torch.isfinite(result).all()

    def test_rejects_shape_mismatch(self):
        with pytest.raises(DimensionError, match="same shape"):
            clamped_divide(torch.ones(2, 2), torch.ones(2), 1e-3)


class TestNormalizeRows:
    def test_unit_rows(self):
        x = torch.tensor([[3.0, 4.0], [0.0, -2.0]], dtype=torch.float64)
        expected = torch.tensor([[0.6, 0.8], [0.0, -1.0]], dtype=torch.float64)
        torch.testing.assert_close(normalize_rows(x), expected)

    def test_rejects_non_matrix(self):
        with pytest.raises(DimensionError, match="matrix"):
            normalize_rows(torch.ones(3))


class TestCongruence:
    def test_matches_loop(self):
        torch.manual_seed(0)
        v = torch.randn(2, 4, dtype=torch.float64)
        r = torch.randn(5, 4, 4, dtype=torch.float64)

        result = congruence(v, r)

        assert result.shape == (5, 2, 2)
        for i in range(5):
            torch.testing.assert_close(result[i], v @ r[i] @ v.T)

    def test_single_matrix(self):
        v = torch.eye(3, dtype=torch.float64)[:2]
        r = torch.arange(9.0, dtype=torch.float64).reshape(3, 3)
        torch.testing.assert_close(congruence(v, r), r[:2, :2])

    def test_rejects_mismatched_transform(self):
        with pytest.raises(DimensionError, match="v must have shape"):
            congruence(torch.ones(2, 3), torch.ones(4, 4, 4))


class TestMeanOffDiagonal:
    def test_known_value(self):
        """RMS over the off-diagonal entries of all matrices."""
        diagonals = torch.tensor(
            [
                [[1.0, 2.0], [2.0, 1.0]],
                [[5.0, 0.0], [0.0, 7.0]],
            ],
            dtype=torch.float64,
        )
        # (2^2 + 2^2 + 0 + 0) / (2 * (4 - 2)) = 2
        expected = torch.tensor(math.sqrt(2.0), dtype=torch.float64)
        torch.testing.assert_close(mean_off_diagonal(diagonals), expected)

    def test_diagonal_input_is_zero(self):
        diagonals = torch.diag_embed(torch.rand(4, 3, dtype=torch.float64))
        assert mean_off_diagonal(diagonals).item() == 0.0

    def test_single_component_is_zero(self):
        """No off-diagonal entries exist for 1x1 matrices."""
        diagonals = torch.rand(5, 1, 1, dtype=torch.float64)
        result = mean_off_diagonal(diagonals)
        assert result.shape == ()
        assert result.item() == 0.0

    def test_rejects_single_matrix(self):
        with pytest.raises(DimensionError, match="M, n, n"):
            mean_off_diagonal(torch.eye(3))


class TestConditionNumber:
    def test_diagonal(self):
        x = torch.diag(torch.tensor([1.0, 4.0], dtype=torch.float64))
        torch.testing.assert_close(
            condition_number(x), torch.tensor(4.0, dtype=torch.float64)
        )

    def test_rectangular(self):
        x = torch.tensor([[2.0, 0.0, 0.0], [0.0, 1.0, 0.0]], dtype=torch.float64)
        torch.testing.assert_close(
            condition_number(x), torch.tensor(2.0, dtype=torch.float64)
        )
