"""Exception classes for approximate joint diagonalization."""


class JointDiagonalizationError(Exception):
    """Base exception for joint diagonalization errors."""

    pass


class DimensionError(JointDiagonalizationError, ValueError):
    """Raised when input matrices, seed or scaling matrix have bad shapes."""

    pass


class NumericalError(JointDiagonalizationError, ArithmeticError):
    """Raised when the coefficient matrix of an update cannot be solved."""

    pass
