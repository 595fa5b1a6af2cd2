#!/usr/bin/env python3
"""
H2 and L-infinity System Norms
==============================
The H2 norm comes from the stationary output covariance under unit white
noise. The L-infinity norm, and the frequency of the peak gain, use the
two-step algorithm:

    N.A. Bruinsma and M. Steinbuch, "A fast algorithm to compute the
    H-infinity norm of a transfer function matrix", Systems and Control
    Letters 14 (1990), pp. 287-293.

and for discrete time:

    P. Bongers, O. Bosgra, M. Steinbuch, "L-infinity norm calculation for
    generalized state space systems in continuous and discrete time",
    American Control Conference, 1991.

A lower bound on the norm is refined by locating the frequencies where
the gain crosses (1 + 2 tol) times the bound, from the boundary eigenvalues
of a Hamiltonian matrix (continuous) or a symplectic pencil (discrete), and
evaluating the gain at the midpoints of those intervals. The H-infinity norm
equals the L-infinity norm for stable systems.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from gramians import covar
from lti_errors import ConvergenceError, SingularMatrixError
from state_space import StateSpace, as_state_space

_LOG: logging.Logger = logging.getLogger(__name__)

_EPS = np.finfo(float).eps

# Extra seed frequencies tried when the gain vanishes at every initial candidate
_RESEED_POINTS = 41


@dataclass
class NormOptions:
    """
    Tuning parameters for the L-infinity norm iteration.

    Attributes:
        tol: Desired relative accuracy of the norm (an order of magnitude,
            not a certificate)
        max_iters: Iteration budget before ConvergenceError is raised
        approx_tol: How close an eigenvalue must be to the imaginary axis
            (continuous) or unit circle (discrete) to count as on it.
            None selects 1e-10 for continuous and 1e-8 for discrete time.
    """
    tol: float = 1e-6
    max_iters: int = 1000
    approx_tol: Optional[float] = None

    def boundary_tol(self, continuous: bool) -> float:
        if self.approx_tol is not None:
            return self.approx_tol
        return 1e-10 if continuous else 1e-8


def _max_gain(sys: StateSpace, s: complex) -> float:
    return float(np.max(linalg.svdvals(sys.evalfr(s))))


def _solve(M: np.ndarray, rhs: np.ndarray, name: str, res: float) -> np.ndarray:
    try:
        return linalg.solve(M, rhs)
    except linalg.LinAlgError as e:
        raise SingularMatrixError(
            f"{name} is singular at test level {res:.6g}; the level coincides "
            f"with a singular value of D") from e


def _negligible(gain: float, sys: StateSpace) -> bool:
    """True if gain is at round-off level for the model's coefficients."""
    scale = np.linalg.norm(sys.D, 2) + np.linalg.norm(sys.B, 2) * np.linalg.norm(sys.C, 2)
    return gain <= np.sqrt(_EPS) * scale


class _PeakTracker:
    """Running lower bound and the frequency where it was attained."""

    def __init__(self, lb: float, fpeak: float):
        self.lb = lb
        self.fpeak = fpeak

    def update(self, gain: float, frequency: float):
        # Ties go to the most recent candidate
        if gain >= self.lb:
            self.lb = gain
            self.fpeak = frequency


def norm(sys, p: float = 2, tol: float = 1e-6,
         options: Optional[NormOptions] = None) -> float:
    """
    H2 (p=2) or L-infinity (p=inf) norm of a model.

    The H2 norm is inf for unstable systems and for continuous systems
    with a nonzero direct term. A model without states is a static gain:
    its H2 norm is the Frobenius norm of D and its L-infinity norm the
    spectral norm.

    Args:
        sys: Model (StateSpace, tuple or scipy.signal LTI object)
        p: 2 or np.inf
        tol: Relative accuracy of the L-infinity computation
        options: Full iteration settings; overrides tol when given

    Raises:
        ValueError: If p is neither 2 nor inf
        ConvergenceError: If the L-infinity iteration does not converge
    """
    sys = as_state_space(sys)
    if p == 2:
        if sys.nx == 0:
            return float(np.linalg.norm(sys.D, 'fro'))
        P = covar(sys, np.eye(sys.nu))
        return float(np.sqrt(np.real(np.trace(P))))
    elif p == np.inf:
        return norminf(sys, tol=tol, options=options)[0]
    raise ValueError(f"p must be either 2 or inf, got {p}")


def norminf(sys, tol: float = 1e-6,
            options: Optional[NormOptions] = None) -> Tuple[float, float]:
    """
    L-infinity norm and the frequency of the peak gain.

    Returns:
        (peak_gain, peak_frequency), the frequency in rad per time unit.
        For discrete models it lies in [0, pi / Ts].
    """
    sys = as_state_space(sys)
    if options is None:
        options = NormOptions(tol=tol)
    if sys.is_continuous:
        return linf_norm_ct(sys, options)
    return linf_norm_dt(sys, options)


def linf_norm_ct(sys: StateSpace, options: Optional[NormOptions] = None) -> Tuple[float, float]:
    """Two-step L-infinity norm for a continuous-time model."""
    options = options or NormOptions()
    tol = options.tol
    approx_tol = options.boundary_tol(continuous=True)

    if sys.nx == 0:
        return float(np.linalg.norm(sys.D, 2)), 0.0

    p = sys.poles()
    on_axis = np.flatnonzero(np.abs(np.real(p)) <= approx_tol)
    if on_axis.size > 0:
        # A cancelling pole/zero pair such as s/s still reports inf
        return np.inf, float(abs(np.imag(p[on_axis[0]])))

    # Lower bound from s = inf, s = 0 and the most lightly damped pole
    peak = _PeakTracker(float(np.max(linalg.svdvals(sys.D))), np.inf)
    peak.update(_max_gain(sys, 0.0), 0.0)
    if np.all(np.imag(p) == 0):
        omegap = float(np.min(np.abs(p)))
    else:
        damping = np.abs(np.imag(p) / (np.real(p) * np.abs(p)))
        omegap = float(np.abs(p[np.argmax(damping)]))
    peak.update(_max_gain(sys, 1j * omegap), omegap)

    if _negligible(peak.lb, sys):
        # Zeros at every seed; the iteration needs a bound strictly above 0
        wp = np.abs(p)
        grid = np.logspace(np.log10(np.min(wp)) - 2, np.log10(np.max(wp)) + 2, _RESEED_POINTS)
        for w in np.concatenate([wp, grid]):
            peak.update(_max_gain(sys, 1j * w), float(w))
        if _negligible(peak.lb, sys):
            _LOG.debug("gain %.3g is at round-off level everywhere; G is zero", peak.lb)
            return 0.0, 0.0

    A, B, C, D = sys.A, sys.B, sys.C, sys.D
    for iteration in range(1, options.max_iters + 1):
        res = (1 + 2 * tol) * peak.lb
        R = D.T @ D - res ** 2 * np.eye(sys.nu)
        S = D @ D.T - res ** 2 * np.eye(sys.ny)
        M = A - B @ _solve(R, D.T, "R = D^T D - res^2 I", res) @ C
        H = np.block([
            [M, -res * B @ _solve(R, B.T, "R = D^T D - res^2 I", res)],
            [res * C.T @ _solve(S, C, "S = D D^T - res^2 I", res), -M.T],
        ])
        omegas = linalg.eigvals(H)
        crossings = np.sort(np.imag(
            omegas[(np.abs(np.real(omegas)) <= approx_tol) & (np.imag(omegas) >= 0)]))
        _LOG.debug("iteration %d: lower bound %.10g, %d crossing(s)",
                   iteration, peak.lb, crossings.size)

        if crossings.size == 0:
            return (1 + tol) * peak.lb, peak.fpeak
        for mval in (crossings[:-1] + crossings[1:]) / 2:
            peak.update(_max_gain(sys, 1j * mval), float(mval))

    raise ConvergenceError(
        f"The computation of the H-infinity norm did not converge in "
        f"{options.max_iters} iterations",
        lower_bound=peak.lb, peak_frequency=peak.fpeak, iterations=options.max_iters)


def linf_norm_dt(sys: StateSpace, options: Optional[NormOptions] = None) -> Tuple[float, float]:
    """Two-step L-infinity norm for a discrete-time model.

    The returned frequency is the angle of the peak on the unit circle
    divided by Ts.
    """
    options = options or NormOptions()
    tol = options.tol
    approx_tol = options.boundary_tol(continuous=False)
    Ts = sys.Ts

    if sys.nx == 0:
        return float(np.linalg.norm(sys.D, 2)), 0.0

    p = sys.poles()
    on_circle = np.flatnonzero(np.abs(np.abs(p) - 1) <= approx_tol)
    if on_circle.size > 0:
        return np.inf, float(abs(np.angle(p[on_circle[0]]))) / Ts

    # Lower bound from z = 1, z = -1 and the pole closest to the unit circle
    peak = _PeakTracker(_max_gain(sys, 1.0), 0.0)
    peak.update(_max_gain(sys, -1.0), np.pi)
    upper = p[np.imag(p) > 0]
    if upper.size > 0:
        omegap = float(np.angle(upper[np.argmin(np.abs(np.abs(upper) - 1))]))
    else:
        omegap = np.pi / 2
    peak.update(_max_gain(sys, np.exp(1j * omegap)), omegap)

    if _negligible(peak.lb, sys):
        grid = np.linspace(0.0, np.pi, _RESEED_POINTS)
        for w in np.concatenate([np.abs(np.angle(p)), grid]):
            peak.update(_max_gain(sys, np.exp(1j * w)), float(w))
        if _negligible(peak.lb, sys):
            _LOG.debug("gain %.3g is at round-off level everywhere; G is zero", peak.lb)
            return 0.0, 0.0

    A, B, C, D = sys.A, sys.B, sys.C, sys.D
    n = sys.nx
    for iteration in range(1, options.max_iters + 1):
        res = (1 + 2 * tol) * peak.lb
        R = res ** 2 * np.eye(sys.nu) - D.T @ D
        RinvDt = _solve(R, D.T, "R = res^2 I - D^T D", res)
        A_res = A + B @ RinvDt @ C
        L = np.block([
            [A_res, B @ _solve(R, B.T, "R = res^2 I - D^T D", res)],
            [np.zeros((n, n)), np.eye(n)],
        ])
        M = np.block([
            [np.eye(n), np.zeros((n, n))],
            [C.T @ (np.eye(sys.ny) + D @ RinvDt) @ C, A_res.T],
        ])
        zs = linalg.eigvals(L, M)
        zs = zs[np.isfinite(zs)]
        crossings = np.sort(np.angle(
            zs[(np.abs(np.abs(zs) - 1) <= approx_tol) & (np.imag(zs) >= 0)]))
        _LOG.debug("iteration %d: lower bound %.10g, %d crossing(s)",
                   iteration, peak.lb, crossings.size)

        if crossings.size == 0:
            return (1 + tol) * peak.lb, peak.fpeak / Ts
        for mval in (crossings[:-1] + crossings[1:]) / 2:
            peak.update(_max_gain(sys, np.exp(1j * mval)), float(mval))

    raise ConvergenceError(
        f"The computation of the H-infinity norm did not converge in "
        f"{options.max_iters} iterations",
        lower_bound=peak.lb, peak_frequency=peak.fpeak / Ts, iterations=options.max_iters)


if __name__ == '__main__':
    # Lightly damped second-order system w^2 / (s^2 + 2 zeta w s + w^2)
    zeta = 0.1
    sys = StateSpace([[0.0, 1.0], [-1.0, -2 * zeta]], [[0.0], [1.0]], [[1.0, 0.0]], [[0.0]])
    gain, freq = norminf(sys)
    print(f"H2 norm:   {norm(sys, 2):.6f}")
    print(f"Hinf norm: {gain:.6f} at {freq:.4f} rad/s")
    print(f"Expected:  {1 / (2 * zeta * np.sqrt(1 - zeta ** 2)):.6f} "
          f"at {np.sqrt(1 - 2 * zeta ** 2):.4f} rad/s")
