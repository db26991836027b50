"""Benchmark approximate joint diagonalization.

Times uwedge on exactly jointly diagonalizable sets across matrix sizes and
set sizes, and reports the iteration count and final off-diagonal loss.
"""

import time

import torch

from torchajd import uwedge
from torchajd.testing import jointly_diagonalizable


def benchmark_uwedge(
    d: int, m: int, n_iterations: int = 5, minimize_loss: bool = False
) -> tuple[float, int, float]:
    """Benchmark uwedge for ``m`` matrices of size ``d``.

    Parameters
    ----------
    d : int
        Matrix size.
    m : int
        Number of matrices.
    n_iterations : int
        Number of repetitions for timing.
    minimize_loss : bool
        Track the best iterate by explicit loss.

    Returns
    -------
    tuple[float, int, float]
        Average time per call in milliseconds, uwedge iterations and final
        meanoffdiag.
    """
    problem = jointly_diagonalizable(
        d, m, generator=torch.Generator().manual_seed(0)
    )

    # Warmup
    result = uwedge(problem.matrices, minimize_loss=minimize_loss)

    start = time.perf_counter()
    for _ in range(n_iterations):
        result = uwedge(problem.matrices, minimize_loss=minimize_loss)

    elapsed = time.perf_counter() - start
    return (
        elapsed / n_iterations * 1000,
        result.iterations,
        float(result.meanoffdiag),
    )


def main():
    """Run uwedge benchmarks across problem sizes."""
    sizes = [(5, 10), (10, 20), (20, 50), (50, 100), (100, 200)]

    print("Approximate Joint Diagonalization Benchmark")
    print("=" * 70)
    print(
        f"{'d':>6} {'M':>6} {'Time (ms)':>12} {'Loss-tracked (ms)':>18} "
        f"{'Iter':>6} {'meanoffdiag':>14}"
    )
    print("-" * 70)

    for d, m in sizes:
        ms, iterations, meanoffdiag = benchmark_uwedge(d, m)
        ms_tracked, _, _ = benchmark_uwedge(d, m, minimize_loss=True)
        print(
            f"{d:>6} {m:>6} {ms:>12.2f} {ms_tracked:>18.2f} "
            f"{iterations:>6} {meanoffdiag:>14.2e}"
        )


if __name__ == "__main__":
    main()
