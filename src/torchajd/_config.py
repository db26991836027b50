"""Configuration record for the uwedge algorithm."""

import dataclasses
from dataclasses import dataclass
from typing import Optional

import torch
from torch import Tensor

from torchajd._exceptions import DimensionError


@dataclass(frozen=True)
class UwedgeConfig:
    """Options of a single uwedge run.

    Every optional field is ``None`` until :meth:`resolve` fills in the value
    that depends on the input matrices.

    Attributes
    ----------
    init : Tensor, optional
        Seed of shape ``(>= n_components, d)``. Its first ``n_components``
        rows are the starting diagonalizer. Default: whitening of ``rx0``.
    rx0 : Tensor, optional
        Symmetric ``(d, d)`` matrix whose eigendecomposition gives the default
        starting diagonalizer. Default: the first input matrix.
    n_components : int, optional
        Number of rows of the diagonalizer. Default: ``d``.
    return_diag : bool
        Include the diagonalized matrices in the result. Default: False.
    tol : float
        Convergence threshold on the maximum absolute change of V between
        two iterations. Default: 1e-10.
    max_iter : int
        Maximum number of iterations. Default: 1000.
    minimize_loss : bool
        Evaluate the off-diagonal loss after every iteration and return the
        iterate with the smallest loss. Default: False.
    condition_threshold : float, optional
        Stop and return the previous iterate when the condition number of V
        exceeds this value. Default: no threshold.
    denominator_floor : float, optional
        Magnitude below which denominators of the coefficient matrix are
        replaced by this value. Default: machine epsilon of the working dtype.
    silent : bool
        Suppress progress warnings. Default: True.
    """

    init: Optional[Tensor] = None
    rx0: Optional[Tensor] = None
    n_components: Optional[int] = None
    return_diag: bool = False
    tol: float = 1e-10
    max_iter: int = 1000
    minimize_loss: bool = False
    condition_threshold: Optional[float] = None
    denominator_floor: Optional[float] = None
    silent: bool = True

    def __post_init__(self):
        if self.tol < 0:
            raise ValueError(f"tol must be non-negative, got {self.tol}")
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be at least 1, got {self.max_iter}")
        if self.condition_threshold is not None and self.condition_threshold <= 0:
            raise ValueError(
                f"condition_threshold must be positive, got "
                f"{self.condition_threshold}"
            )
        if self.denominator_floor is not None and self.denominator_floor <= 0:
            raise ValueError(
                f"denominator_floor must be positive, got "
                f"{self.denominator_floor}"
            )

    def resolve(self, d: int, dtype: torch.dtype) -> "UwedgeConfig":
        """Return a copy with ``n_components`` and ``denominator_floor`` set.

        Parameters
        ----------
        d : int
            Size of the input matrices.
        dtype : torch.dtype
            Floating dtype the iteration runs in.

        Raises
        ------
        DimensionError
            If ``n_components`` is outside ``[1, d]``.
        """
        n_components = d if self.n_components is None else int(self.n_components)
        if not 1 <= n_components <= d:
            raise DimensionError(
                f"n_components must be between 1 and {d}, got {n_components}"
            )

        denominator_floor = self.denominator_floor
        if denominator_floor is None:
            denominator_floor = torch.finfo(dtype).eps

        return dataclasses.replace(
            self,
            n_components=n_components,
            denominator_floor=float(denominator_floor),
        )
