#!/usr/bin/env python3
"""
Observability and Controllability Matrices
==========================================
Built by the finite recurrences M_i = M_{i-1} A (observability) and
M_i = A M_{i-1} (controllability).

Checking observability or controllability through the rank of these
matrices is numerically fragile; for stable systems, testing whether
gram(sys, 'o') or gram(sys, 'c') is positive definite is more reliable.
"""

import numpy as np

from lti_errors import DimensionMismatchError
from state_space import as_state_space


def obsv(A, C=None) -> np.ndarray:
    """
    Observability matrix [C; C A; ...; C A^{n-1}].

    Args:
        A: State matrix (n x n), or a model if C is omitted
        C: Output matrix (p x n)

    Returns:
        (n p) x n matrix
    """
    if C is None:
        sys = as_state_space(A)
        A, C = sys.A, sys.C
    A = np.atleast_2d(np.asarray(A))
    C = np.atleast_2d(np.asarray(C))
    n = A.shape[0]
    ny = C.shape[0]
    if A.shape != (n, n):
        raise DimensionMismatchError(f"A must be square, got shape {A.shape}")
    if C.shape[1] != n:
        raise DimensionMismatchError(
            f"C must have the same number of columns as A ({n}), got shape {C.shape}")

    res = np.zeros((n * ny, n), dtype=np.result_type(A, C, float))
    if n == 0:
        return res
    res[:ny, :] = C
    for i in range(1, n):
        res[i * ny:(i + 1) * ny, :] = res[(i - 1) * ny:i * ny, :] @ A
    return res


def ctrb(A, B=None) -> np.ndarray:
    """
    Controllability matrix [B, A B, ..., A^{n-1} B].

    Args:
        A: State matrix (n x n), or a model if B is omitted
        B: Input matrix (n x m)

    Returns:
        n x (n m) matrix
    """
    if B is None:
        sys = as_state_space(A)
        A, B = sys.A, sys.B
    A = np.atleast_2d(np.asarray(A))
    B = np.atleast_2d(np.asarray(B))
    n = A.shape[0]
    nu = B.shape[1]
    if A.shape != (n, n):
        raise DimensionMismatchError(f"A must be square, got shape {A.shape}")
    if B.shape[0] != n:
        raise DimensionMismatchError(
            f"B must have the same number of rows as A ({n}), got shape {B.shape}")

    res = np.zeros((n, n * nu), dtype=np.result_type(A, B, float))
    if n == 0:
        return res
    res[:, :nu] = B
    for i in range(1, n):
        res[:, i * nu:(i + 1) * nu] = A @ res[:, (i - 1) * nu:i * nu]
    return res
