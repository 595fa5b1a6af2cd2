#!/usr/bin/env python3
"""
Matrix Balancing and Balanced Realization
=========================================
- balance: diagonal scaling and permutation (LAPACK ?gebal) that bring the
  row and column norms of a square matrix close to each other.
- balreal: Gramian-based balanced realization, in which the
  controllability and observability Gramians are equal and diagonal.

    Glad, Ljung, "Reglerteori: Flervariabla och Olinjara metoder".
"""

import warnings

import numpy as np
from scipy import linalg
from scipy.linalg import lapack
from typing import Tuple

from gramians import gram
from lti_errors import (
    AccuracyWarning, DimensionMismatchError, NonPositiveDefiniteError, SingularMatrixError
)
from state_space import StateSpace, as_state_space


def balance(A: np.ndarray, perm: bool = True) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Balance a square matrix.

    Computes S (diagonal scaling), P (permutation) and B such that
    B = S^{-1} P^T A P S has row and column norms of comparable size.
    With perm=False only scaling is performed and P is the identity.

    Args:
        A: Square matrix (not modified)
        perm: Allow permutations that isolate eigenvalues

    Returns:
        S, P, B
    """
    A = np.atleast_2d(np.asarray(A))
    n = A.shape[0]
    if A.ndim != 2 or A.shape != (n, n):
        raise DimensionMismatchError(f"A must be square, got shape {A.shape}")

    gebal = lapack.get_lapack_funcs('gebal', (A,))
    B, lo, hi, pivscale, info = gebal(A, scale=1, permute=int(perm), overwrite_a=0)
    if info < 0:
        raise ValueError(f"Illegal value in argument {-info} of internal gebal")

    # Outside [lo, hi] pivscale holds 1-based pivot indices, not scale factors
    scaling = np.ones(n)
    scaling[lo:hi + 1] = pivscale[lo:hi + 1]
    S = np.diag(scaling)

    # LAPACK isolates rows from the bottom (n-1 down to hi+1), then columns
    # from the top (0 up to lo-1); compose the swaps in that order.
    order = np.arange(n)
    if perm:
        pivots = np.round(pivscale).astype(int) - 1
        for j in list(range(n - 1, hi, -1)) + list(range(lo)):
            k = pivots[j]
            order[[j, k]] = order[[k, j]]
    P = np.eye(n, dtype=int)[:, order]

    return S, P, B


def balreal(sys) -> Tuple[StateSpace, np.ndarray]:
    """
    Balanced realization of a stable model.

    Returns:
        sysb: Balanced model, with Gramians equal to Sigma
        Sigma: Diagonal matrix of Hankel singular values

    Raises:
        UnstableSystemError: If the model is not stable
        NonPositiveDefiniteError: If the observability Gramian is not
            positive definite (the model is not observable)
        SingularMatrixError: If a Hankel singular value is zero

    Warns:
        AccuracyWarning: If the transformed Gramians differ by more than
            sqrt(machine epsilon)
    """
    sys = as_state_space(sys)
    P = gram(sys, 'c')
    Q = gram(sys, 'o')

    try:
        Q1 = linalg.cholesky(Q)  # Upper triangular: Q = Q1^T Q1
    except linalg.LinAlgError as e:
        raise NonPositiveDefiniteError(
            "Observability Gramian is not positive definite; the model is not observable") from e

    U, sigma, _ = linalg.svd(Q1 @ P @ Q1.T)
    Sigma = np.sqrt(sigma)
    # T = diag(sqrt(Sigma))^{-1} U^T Q1
    try:
        T = linalg.solve(np.diag(np.sqrt(Sigma)), U.T @ Q1)
    except linalg.LinAlgError as e:
        raise SingularMatrixError(
            "Hankel singular values include zero; the model is not controllable") from e

    Pz = T @ P @ T.T
    T_inv = linalg.inv(T)
    Qz = T_inv.T @ Q @ T_inv
    if np.linalg.norm(Pz - Qz) > np.sqrt(np.finfo(float).eps):
        warnings.warn(
            "balreal: Result may be inaccurate\n"
            f"Controllability gramian before transform:\n{P}\n"
            f"Controllability gramian after transform:\n{Pz}\n"
            f"Observability gramian before transform:\n{Q}\n"
            f"Observability gramian after transform:\n{Qz}\n"
            f"Singular values of PQ:\n{Sigma}",
            AccuracyWarning, stacklevel=2)

    return sys.transform(T), np.diag(Sigma)


if __name__ == '__main__':
    A = np.array([[-1.0, 0.5, 0.0],
                  [0.0, -2.0, 1.0],
                  [0.0, 0.0, -3.0]])
    sys = StateSpace(A, [[1.0], [1.0], [1.0]], [[1.0, 0.0, 1.0]], [[0.0]])
    sysb, Sigma = balreal(sys)
    print(f"Hankel singular values: {np.diag(Sigma)}")
    print(f"Balanced controllability Gramian:\n{gram(sysb, 'c')}")

    S, P, B = balance(np.array([[1.0, 1e4], [1e-4, 1.0]]))
    print(f"Scaling: {np.diag(S)}")
