#!/usr/bin/env python3
"""
State-Space Model
=================
Minimal LTI model container used by the analysis routines.

A model is the quadruple (A, B, C, D) together with a sampling time Ts:
Ts == 0 means continuous time, Ts > 0 discrete time. Anything exposing
``to_ss()`` (the scipy.signal LTI classes) or a plain (A, B, C, D[, Ts])
tuple can be turned into a StateSpace with ``as_state_space``.
"""

from dataclasses import dataclass

import numpy as np
from scipy import linalg

from lti_errors import DimensionMismatchError


def _as_matrix(M, name: str) -> np.ndarray:
    """Copy M into a 2-D float (or complex) array."""
    M = np.array(M, copy=True)
    if M.ndim == 0:
        M = M.reshape(1, 1)
    if M.ndim != 2:
        raise DimensionMismatchError(f"{name} must be a 2-D matrix, got ndim={M.ndim}")
    if np.iscomplexobj(M):
        return M.astype(np.complex128)
    return M.astype(np.float64)


@dataclass(init=False, eq=False)
class StateSpace:
    """
    State-space realization x' = A x + B u, y = C x + D u.

    The constructor copies its inputs, so the model never aliases
    caller-owned arrays.
    """
    A: np.ndarray
    B: np.ndarray
    C: np.ndarray
    D: np.ndarray
    Ts: float = 0.0

    def __init__(self, A, B, C, D, Ts: float = 0.0):
        A = _as_matrix(A, "A")
        B = _as_matrix(B, "B")
        C = _as_matrix(C, "C")
        D = _as_matrix(D, "D")

        n = A.shape[0]
        if A.shape != (n, n):
            raise DimensionMismatchError(f"A must be square, got shape {A.shape}")
        if B.shape[0] != n:
            raise DimensionMismatchError(
                f"B must have the same number of rows as A ({n}), got shape {B.shape}")
        if C.shape[1] != n:
            raise DimensionMismatchError(
                f"C must have the same number of columns as A ({n}), got shape {C.shape}")
        if D.shape != (C.shape[0], B.shape[1]):
            raise DimensionMismatchError(
                f"D has wrong shape {D.shape}, expected {(C.shape[0], B.shape[1])}")
        if Ts < 0:
            raise ValueError(f"Ts must be 0 (continuous) or positive (discrete), got {Ts}")

        self.A, self.B, self.C, self.D = A, B, C, D
        self.Ts = float(Ts)

    @classmethod
    def static_gain(cls, D, Ts: float = 0.0) -> "StateSpace":
        """Model with no states: y = D u."""
        D = _as_matrix(D, "D")
        p, m = D.shape
        return cls(np.zeros((0, 0)), np.zeros((0, m)), np.zeros((p, 0)), D, Ts)

    @property
    def nx(self) -> int:
        return self.A.shape[0]

    @property
    def nu(self) -> int:
        return self.B.shape[1]

    @property
    def ny(self) -> int:
        return self.C.shape[0]

    @property
    def is_continuous(self) -> bool:
        return self.Ts == 0

    @property
    def is_discrete(self) -> bool:
        return self.Ts > 0

    def poles(self) -> np.ndarray:
        """Eigenvalues of A as complex numbers."""
        if self.nx == 0:
            return np.zeros(0, dtype=np.complex128)
        return np.linalg.eigvals(self.A).astype(np.complex128)

    def is_stable(self) -> bool:
        """True if every pole is strictly inside the stability region.

        Continuous: open left half-plane. Discrete: open unit disk.
        """
        p = self.poles()
        if self.is_continuous:
            return bool(np.all(np.real(p) < 0))
        return bool(np.all(np.abs(p) < 1))

    def evalfr(self, s: complex) -> np.ndarray:
        """Transfer matrix G(s) = C (sI - A)^{-1} B + D at a complex point s."""
        if self.nx == 0:
            return self.D.astype(np.complex128)
        sI_A = s * np.eye(self.nx) - self.A
        return self.C @ linalg.solve(sI_A, self.B) + self.D

    def freqresp(self, w) -> np.ndarray:
        """
        Frequency response at real frequencies w (rad per time unit).

        Returns:
            Array of shape (len(w), ny, nu)
        """
        w = np.atleast_1d(np.asarray(w, dtype=float))
        if self.is_continuous:
            points = 1j * w
        else:
            points = np.exp(1j * w * self.Ts)
        return np.array([self.evalfr(s) for s in points])

    def transform(self, T: np.ndarray) -> "StateSpace":
        """Similarity transform z = T x: (T A T^-1, T B, C T^-1, D)."""
        T = _as_matrix(T, "T")
        if T.shape != (self.nx, self.nx):
            raise DimensionMismatchError(
                f"T has wrong shape {T.shape}, expected {(self.nx, self.nx)}")
        # X T^-1 computed as a solve against T^T
        A_T = linalg.solve(T.T, (T @ self.A).T).T
        C_T = linalg.solve(T.T, self.C.T).T
        return StateSpace(A_T, T @ self.B, C_T, self.D, self.Ts)


def as_state_space(sys) -> StateSpace:
    """
    Convert a model description to a StateSpace.

    Args:
        sys: StateSpace, (A, B, C, D) or (A, B, C, D, Ts) tuple, or a
            scipy.signal LTI object (lti, dlti, TransferFunction,
            ZerosPolesGain, StateSpace)

    Returns:
        The model itself if already a StateSpace, else a new StateSpace
    """
    if isinstance(sys, StateSpace):
        return sys
    if isinstance(sys, (tuple, list)):
        if len(sys) not in (4, 5):
            raise ValueError(f"Expected (A, B, C, D[, Ts]), got a sequence of length {len(sys)}")
        return StateSpace(*sys)
    if hasattr(sys, "to_ss"):
        ss = sys.to_ss()
        dt = getattr(sys, "dt", None)
        if dt is None:
            Ts = 0.0
        elif dt is True:
            # scipy's "unspecified" sampling time
            Ts = 1.0
        else:
            Ts = float(dt)
        if np.size(ss.A) == 0 or np.size(sys.poles) == 0:
            # tf2ss realizes a pure gain with a dummy zero state
            return StateSpace.static_gain(np.atleast_2d(ss.D), Ts)
        return StateSpace(ss.A, ss.B, ss.C, ss.D, Ts)
    raise TypeError(f"Cannot interpret {type(sys).__name__} as a state-space model")
