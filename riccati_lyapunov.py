#!/usr/bin/env python3
"""
Riccati and Lyapunov Equation Solvers
=====================================
Algebraic Riccati equations are solved with the Schur method: build the
Hamiltonian (continuous) or symplectic (discrete) matrix, reorder its Schur
form so the stable eigenvalues lead, and read the solution off the stable
invariant subspace. Real data uses the real Schur form, complex data the
complex (unitary) one.

    Laub, "A Schur Method for Solving Algebraic Riccati Equations",
    IEEE Trans. Automatic Control, 1979.

Equations solved:
- care:  A^H X + X A - X B R^{-1} B^H X + Q = 0
- dare:  A^H X A - X - A^H X B (B^H X B + R)^{-1} B^H X A + Q = 0
- dlyap: A X A^H - X + Q = 0      (vectorized with Kronecker products)
- lyap:  A X + X A^H + Q = 0      (Bartels-Stewart, scipy)
"""

import warnings

import numpy as np
from scipy import linalg
from scipy.linalg import lapack
from typing import Callable, Tuple

from lti_errors import (
    DimensionMismatchError, SingularMatrixError, SingularSubspaceError,
    SingularSystemError, SolveFailureError
)

_EPS = np.finfo(float).eps


def _check_square(M: np.ndarray, name: str) -> int:
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise DimensionMismatchError(f"{name} must be square, got shape {M.shape}")
    return M.shape[0]


def _check_riccati_shapes(A, B, Q, R) -> Tuple[np.ndarray, ...]:
    A, B, Q, R = (np.atleast_2d(np.asarray(M)) for M in (A, B, Q, R))
    n = _check_square(A, "A")
    m = _check_square(R, "R")
    if B.shape != (n, m):
        raise DimensionMismatchError(f"B has wrong shape {B.shape}, expected {(n, m)}")
    if Q.shape != (n, n):
        raise DimensionMismatchError(f"Q has wrong shape {Q.shape}, expected {(n, n)}")
    return A, B, Q, R


def _ill_conditioned(M: np.ndarray) -> bool:
    # cond is inf or nan for an exactly singular matrix
    return not np.linalg.cond(M) < 1.0 / _EPS


def _inverse(M: np.ndarray, message: str) -> np.ndarray:
    """Invert M, raising SingularMatrixError with `message` if it is singular."""
    try:
        M_inv = linalg.inv(M)
    except linalg.LinAlgError as e:
        raise SingularMatrixError(message) from e
    if not np.all(np.isfinite(M_inv)) or _ill_conditioned(M):
        raise SingularMatrixError(message)
    return M_inv


def _stable_subspace_solution(Z: np.ndarray, stable: Callable[[complex], bool]) -> np.ndarray:
    """
    X = U21 U11^{-1} from the ordered Schur basis of Z.

    Args:
        Z: 2n x 2n Hamiltonian or symplectic matrix
        stable: Predicate on a single eigenvalue that marks the stable
            eigenvalues to be moved to the leading block
    """
    if np.iscomplexobj(Z):
        output, select = 'complex', stable
    else:
        # The real Schur form hands the predicate (real, imag) pairs
        output, select = 'real', lambda re, im: stable(complex(re, im))

    try:
        _, U, sdim = linalg.schur(Z, output=output, sort=select)
    except linalg.LinAlgError as e:
        # Reordering failed: eigenvalues too close to swap
        raise SingularSubspaceError(f"Ordered Schur decomposition failed: {e}") from e
    n = Z.shape[0] // 2
    if sdim != n:
        raise SingularSubspaceError(
            f"Stable invariant subspace has dimension {sdim}, expected {n}")

    U11 = U[:n, :n]
    U21 = U[n:, :n]
    if _ill_conditioned(U11):
        raise SingularSubspaceError("U11 is singular; stable invariant subspace is ill-conditioned")

    # X U11 = U21
    X = linalg.solve(U11.T, U21.T).T
    return (X + X.conj().T) / 2


def care(A: np.ndarray, B: np.ndarray, Q: np.ndarray, R: np.ndarray) -> np.ndarray:
    """
    Solve the continuous-time algebraic Riccati equation.

    A^H X + X A - X B R^{-1} B^H X + Q = 0

    Args:
        A: State matrix (n x n)
        B: Input matrix (n x m)
        Q: State weight (n x n), Hermitian
        R: Input weight (m x m), non-singular

    Returns:
        X: Stabilizing solution (n x n)

    Raises:
        SingularMatrixError: If R is singular
        SingularSubspaceError: If the stable invariant subspace is ill-conditioned
    """
    A, B, Q, R = _check_riccati_shapes(A, B, Q, R)
    G = B @ _inverse(R, "R must be non-singular.") @ B.conj().T

    Z = np.block([[A, -G],
                  [-Q, -A.conj().T]])

    return _stable_subspace_solution(Z, lambda z: z.real < 0.0)


def dare(A: np.ndarray, B: np.ndarray, Q: np.ndarray, R: np.ndarray) -> np.ndarray:
    """
    Solve the discrete-time algebraic Riccati equation.

    A^H X A - X - (A^H X B)(B^H X B + R)^{-1}(B^H X A) + Q = 0

    Both A and R must be non-singular: the symplectic matrix is built
    from A^{-H}.

    Raises:
        SingularMatrixError: If R or A is singular
        SingularSubspaceError: If the stable invariant subspace is ill-conditioned
    """
    A, B, Q, R = _check_riccati_shapes(A, B, Q, R)
    G = B @ _inverse(R, "R must be non-singular.") @ B.conj().T
    Ait = _inverse(A, "A must be non-singular.").conj().T

    Z = np.block([[A + G @ Ait @ Q, -G @ Ait],
                  [-Ait @ Q, Ait]])

    return _stable_subspace_solution(Z, lambda z: abs(z) <= 1.0)


def dlyap(A: np.ndarray, Q: np.ndarray) -> np.ndarray:
    """
    Solve the discrete Lyapunov equation A X A^H - X + Q = 0.

    Uses vec(A X A^H) = (A kron conj(A)) vec(X) with row-major vec, so
    (I - A kron conj(A)) vec(X) = vec(Q).

    Raises:
        SingularSystemError: If I - A kron conj(A) is singular, i.e. A has
            a pair of eigenvalues whose product is one
    """
    A = np.atleast_2d(np.asarray(A))
    Q = np.atleast_2d(np.asarray(Q))
    n = _check_square(A, "A")
    if Q.shape != (n, n):
        raise DimensionMismatchError(f"Q has wrong shape {Q.shape}, expected {(n, n)}")

    if n == 0:
        return np.zeros_like(Q)

    lhs = np.eye(n * n) - np.kron(A, A.conj())
    with warnings.catch_warnings():
        # An exactly singular factor is reported through rcond below
        warnings.simplefilter('ignore', linalg.LinAlgWarning)
        lu, piv = linalg.lu_factor(lhs)
    gecon = lapack.get_lapack_funcs('gecon', (lu,))
    rcond, _ = gecon(lu, np.linalg.norm(lhs, 1), norm='1')
    if not rcond > _EPS:
        raise SingularSystemError(
            "I - kron(A, conj(A)) is singular; A has an eigenvalue pair on the unit circle")

    x = linalg.lu_solve((lu, piv), Q.reshape(-1))
    return x.reshape(Q.shape)


def lyap(A: np.ndarray, Q: np.ndarray) -> np.ndarray:
    """Solve the continuous Lyapunov equation A X + X A^H + Q = 0."""
    A = np.atleast_2d(np.asarray(A))
    Q = np.atleast_2d(np.asarray(Q))
    n = _check_square(A, "A")
    if Q.shape != (n, n):
        raise DimensionMismatchError(f"Q has wrong shape {Q.shape}, expected {(n, n)}")
    if n == 0:
        return np.zeros_like(Q)

    try:
        X = linalg.solve_continuous_lyapunov(A, -Q)
    except (linalg.LinAlgError, ValueError) as e:
        raise SolveFailureError(f"Continuous Lyapunov solve failed: {e}") from e
    if not np.all(np.isfinite(X)):
        raise SolveFailureError("Continuous Lyapunov solve returned non-finite values")
    return X
