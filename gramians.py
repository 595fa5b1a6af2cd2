#!/usr/bin/env python3
"""
Gramians and Stationary Covariance
==================================
Controllability Gramian P:  A P A^H - P + B B^H = 0  (discrete)
                            A P + P A^H + B B^H = 0  (continuous)
Observability Gramian Q:    same equations on A^H with C^H C.

Both are only defined for stable systems.
"""

import numpy as np

from lti_errors import DimensionMismatchError, SolveFailureError, UnstableSystemError
from riccati_lyapunov import dlyap, lyap
from state_space import StateSpace, as_state_space

_KINDS = {
    'c': 'c', 'controllability': 'c',
    'o': 'o', 'observability': 'o',
}


def _lyapunov_solver(sys: StateSpace):
    return lyap if sys.is_continuous else dlyap


def gram(sys, kind: str = 'c') -> np.ndarray:
    """
    Controllability ('c') or observability ('o') Gramian of a stable model.

    Args:
        sys: Model (anything accepted by as_state_space)
        kind: 'c'/'controllability' or 'o'/'observability'

    Returns:
        Symmetric positive semi-definite n x n matrix

    Raises:
        UnstableSystemError: If A is not stable
        ValueError: If kind is not recognised
    """
    sys = as_state_space(sys)
    if kind not in _KINDS:
        raise ValueError(
            f"kind must be 'c' for the controllability Gramian or 'o' for the "
            f"observability Gramian, got {kind!r}")
    if not sys.is_stable():
        raise UnstableSystemError(
            f"gram is only valid for stable A; poles = {sys.poles()}")

    solve = _lyapunov_solver(sys)
    A, B, C = sys.A, sys.B, sys.C
    if _KINDS[kind] == 'c':
        G = solve(A, B @ B.conj().T)
    else:
        G = solve(A.conj().T, C.conj().T @ C)

    # Ensure Hermitian
    return (G + G.conj().T) / 2


def covar(sys, W) -> np.ndarray:
    """
    Stationary output covariance P = E[y y^T] under white-noise input.

    The input w has covariance E[w(t) w(tau)^T] = W delta(t - tau). The
    result is all inf if the model is unstable. For continuous models, a
    nonzero direct term diag(D W D^T)[i] makes output i's variance, and
    every covariance involving it, infinite.

    Args:
        sys: Model
        W: Noise intensity (m x m)

    Returns:
        P: Output covariance (p x p)

    Raises:
        DimensionMismatchError: If W is not square of size nu
        SolveFailureError: If the Lyapunov equation has no usable solution
    """
    sys = as_state_space(sys)
    W = np.atleast_2d(np.asarray(W))
    A, B, C, D = sys.A, sys.B, sys.C, sys.D
    if W.shape != (sys.nu, sys.nu):
        raise DimensionMismatchError(
            f"W must be a square matrix the same size as the columns of B ({sys.nu}), "
            f"got shape {W.shape}")

    if not sys.is_stable():
        return np.full((sys.ny, sys.ny), np.inf)

    solve = _lyapunov_solver(sys)
    try:
        Q = solve(A, B @ W @ B.conj().T)
    except SolveFailureError as e:
        raise SolveFailureError(f"No solution to the Lyapunov equation was found in covar: {e}") from e

    P = C @ Q @ C.conj().T
    direct_noise = D @ W @ D.conj().T
    if sys.is_continuous:
        P = P.astype(np.result_type(P, float))
        for i in np.flatnonzero(np.diag(direct_noise) != 0):
            P[i, :] = np.inf
            P[:, i] = np.inf
    else:
        P = P + direct_noise
    return P
