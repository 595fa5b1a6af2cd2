#!/usr/bin/env python3
"""
Error Types for LTI Analysis
============================
Every failure raised by the solvers, gramian, norm and balancing routines
derives from LTIError, and also from the builtin exception that callers
would naturally catch for the same condition (ValueError for bad input,
LinAlgError for singular factorizations, RuntimeError for failed solves).
"""

import numpy as np


class LTIError(Exception):
    """Base class for all LTI analysis errors."""


class DimensionMismatchError(LTIError, ValueError):
    """Caller-supplied matrices have inconsistent shapes."""


class UnstableSystemError(LTIError, ValueError):
    """Operation requires a stable state matrix."""


class SingularMatrixError(LTIError, np.linalg.LinAlgError):
    """A matrix that must be inverted (R, A, or an intermediate) is singular."""


class SingularSubspaceError(LTIError, np.linalg.LinAlgError):
    """The basis of the stable invariant subspace is ill-conditioned."""


class NonPositiveDefiniteError(LTIError, np.linalg.LinAlgError):
    """Cholesky factorization failed on a matrix expected to be positive definite."""


class SolveFailureError(LTIError, RuntimeError):
    """A Lyapunov or Riccati solve did not produce a usable result."""


class SingularSystemError(SolveFailureError):
    """The vectorized Lyapunov operator (I - A kron conj(A)) is singular."""


class ConvergenceError(LTIError, RuntimeError):
    """Iterative norm refinement exhausted its iteration budget.

    Attributes:
        lower_bound: Best lower bound on the norm when iterations stopped
        peak_frequency: Frequency at which lower_bound was attained
        iterations: Number of iterations performed
    """

    def __init__(self, message: str, lower_bound: float = np.nan,
                 peak_frequency: float = np.nan, iterations: int = 0):
        super().__init__(message)
        self.lower_bound = lower_bound
        self.peak_frequency = peak_frequency
        self.iterations = iterations


class AccuracyWarning(UserWarning):
    """Result is usable but failed an a-posteriori accuracy check."""
