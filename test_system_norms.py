#!/usr/bin/env python3
"""
Test H2 and L-infinity Norms
============================
Known closed-form cases, static gains, boundary poles, and brute-force
frequency sweeps as a check on the two-step algorithm.
"""

import unittest
import numpy as np
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from scipy import signal

from lti_errors import ConvergenceError
from state_space import StateSpace, as_state_space
from system_norms import NormOptions, _PeakTracker, linf_norm_ct, norm, norminf


def sweep_peak(sys, w):
    """Largest singular value of the frequency response over a grid."""
    G = sys.freqresp(w)
    return max(np.linalg.norm(Gk, 2) for Gk in G)


class TestStaticGain(unittest.TestCase):

    def test_static_gain_both_norms(self):
        sys = StateSpace.static_gain([[3.0]])
        self.assertEqual(norm(sys, 2), 3.0)
        self.assertEqual(norm(sys, np.inf), 3.0)
        self.assertEqual(norminf(sys), (3.0, 0.0))

    def test_static_gain_discrete(self):
        sys = StateSpace.static_gain([[3.0]], Ts=0.5)
        self.assertEqual(norminf(sys), (3.0, 0.0))
        self.assertEqual(norm(sys, 2), 3.0)

    def test_static_gain_matrix(self):
        D = np.array([[3.0, 0.0], [0.0, 4.0]])
        self.assertAlmostEqual(norm(StateSpace.static_gain(D), np.inf), 4.0, places=12)

    def test_static_gain_matrix_h2_is_frobenius(self):
        D = np.diag([3.0, 4.0])
        self.assertAlmostEqual(norm(StateSpace.static_gain(D, Ts=1.0), 2), 5.0, places=12)

        # Same gain behind a negligible dummy state
        sys = StateSpace([[1e-12]], [[0.0, 0.0]], [[0.0], [0.0]], D, Ts=1.0)
        self.assertAlmostEqual(norm(sys, 2), 5.0, places=10)


class TestContinuousNorms(unittest.TestCase):

    def setUp(self):
        np.random.seed(42)

    def test_first_order(self):
        """1/(s+1): H2 = 1/sqrt(2), Hinf = 1 at w = 0."""
        sys = StateSpace([[-1.0]], [[1.0]], [[1.0]], [[0.0]])
        self.assertAlmostEqual(norm(sys, 2), 1 / np.sqrt(2), delta=1e-4)
        gain, freq = norminf(sys)
        self.assertAlmostEqual(gain, 1.0, delta=1e-4)
        self.assertEqual(freq, 0.0)

    def test_transfer_function_input(self):
        tf = signal.TransferFunction([1.0], [1.0, 1.0])
        self.assertAlmostEqual(norm(tf, 2), 1 / np.sqrt(2), delta=1e-4)
        self.assertAlmostEqual(norm(tf, np.inf), 1.0, delta=1e-4)

    def test_resonant_second_order(self):
        """Peak 1/(2 zeta sqrt(1 - zeta^2)) at w sqrt(1 - 2 zeta^2)."""
        zeta = 0.1
        sys = StateSpace([[0.0, 1.0], [-1.0, -2 * zeta]], [[0.0], [1.0]],
                         [[1.0, 0.0]], [[0.0]])
        gain, freq = norminf(sys)

        expected_gain = 1 / (2 * zeta * np.sqrt(1 - zeta ** 2))
        expected_freq = np.sqrt(1 - 2 * zeta ** 2)
        self.assertAlmostEqual(gain / expected_gain, 1.0, delta=1e-4)
        self.assertAlmostEqual(freq, expected_freq, delta=1e-2)

    def test_random_mimo_against_sweep(self):
        n, m, p = 5, 2, 3
        A = np.random.randn(n, n)
        A = A - (np.max(np.real(np.linalg.eigvals(A))) + 0.5) * np.eye(n)
        sys = StateSpace(A, np.random.randn(n, m), np.random.randn(p, n), np.random.randn(p, m))

        tol = 1e-6
        gain, freq = norminf(sys, tol=tol)
        w = np.concatenate([[0.0], np.logspace(-3, 3, 20000)])
        swept = sweep_peak(sys, w)
        self.assertGreaterEqual(gain, swept * (1 - 1e-5))
        self.assertLess(gain, swept * 1.01)

        if np.isfinite(freq):
            at_peak = np.linalg.norm(sys.evalfr(1j * freq), 2)
            self.assertAlmostEqual(gain / ((1 + tol) * at_peak), 1.0, places=9)

    def test_h2_unstable_is_inf(self):
        sys = StateSpace([[1.0]], [[1.0]], [[1.0]], [[0.0]])
        self.assertEqual(norm(sys, 2), np.inf)

    def test_h2_direct_feedthrough_is_inf(self):
        sys = StateSpace([[-1.0]], [[1.0]], [[1.0]], [[1.0]])
        self.assertEqual(norm(sys, 2), np.inf)

    def test_integrator_pole_on_axis(self):
        sys = StateSpace([[0.0]], [[1.0]], [[1.0]], [[0.0]])
        self.assertEqual(norminf(sys), (np.inf, 0.0))

    def test_undamped_oscillator(self):
        sys = StateSpace([[0.0, 1.0], [-4.0, 0.0]], [[0.0], [1.0]], [[1.0, 0.0]], [[0.0]])
        gain, freq = norminf(sys)
        self.assertEqual(gain, np.inf)
        self.assertAlmostEqual(freq, 2.0, places=8)

    def test_unstable_system_linf(self):
        """L-infinity norm stays finite for poles off the imaginary axis."""
        sys = StateSpace([[1.0]], [[1.0]], [[1.0]], [[0.0]])
        gain, _ = norminf(sys)
        self.assertAlmostEqual(gain, 1.0, delta=1e-4)

    def test_zero_transfer_function(self):
        """C = 0 and D = 0: G is identically zero."""
        sys = StateSpace([[-1.0]], [[1.0]], [[0.0]], [[0.0]])
        self.assertEqual(norminf(sys), (0.0, 0.0))
        self.assertEqual(norm(sys, np.inf), 0.0)

    def test_zeros_at_every_initial_frequency(self):
        """(s^3 + s) / (s+1)...(s+4) vanishes at s = 0, j and infinity."""
        tf = signal.TransferFunction([1.0, 0.0, 1.0, 0.0], np.poly([-1.0, -2.0, -3.0, -4.0]))
        sys = as_state_space(tf)
        gain, freq = norminf(sys)

        swept = sweep_peak(sys, np.logspace(-3, 3, 20001))
        self.assertGreater(gain, 0.0)
        self.assertGreaterEqual(gain, swept * (1 - 1e-5))
        self.assertLess(gain, swept * 1.001)
        at_peak = np.linalg.norm(sys.evalfr(1j * freq), 2)
        self.assertAlmostEqual(gain / ((1 + 1e-6) * at_peak), 1.0, places=9)

    def test_repeated_poles_with_imaginary_zeros(self):
        tf = signal.TransferFunction([1.0, 0.0, 1.0, 0.0], np.poly([-1.0] * 4))
        gain, _ = norminf(tf)
        self.assertAlmostEqual(gain, 0.25, delta=1e-4)

    def test_iteration_budget_exhausted(self):
        sys = StateSpace([[-1.0]], [[1.0]], [[1.0]], [[0.0]])
        with self.assertRaises(ConvergenceError) as ctx:
            linf_norm_ct(sys, NormOptions(max_iters=0))
        self.assertAlmostEqual(ctx.exception.lower_bound, 1.0, places=12)
        self.assertEqual(ctx.exception.iterations, 0)

    def test_invalid_order(self):
        sys = StateSpace([[-1.0]], [[1.0]], [[1.0]], [[0.0]])
        with self.assertRaises(ValueError):
            norm(sys, 3)


class TestDiscreteNorms(unittest.TestCase):

    def setUp(self):
        np.random.seed(42)

    def test_first_order(self):
        """1/(z - 0.5): H2^2 = 4/3, Hinf = 2 at w = 0."""
        sys = StateSpace([[0.5]], [[1.0]], [[1.0]], [[0.0]], Ts=1.0)
        self.assertAlmostEqual(norm(sys, 2), np.sqrt(4.0 / 3.0), delta=1e-6)
        gain, freq = norminf(sys)
        self.assertAlmostEqual(gain, 2.0, delta=1e-4)
        self.assertEqual(freq, 0.0)

    def test_dlti_input(self):
        dsys = signal.dlti([1.0], [1.0, -0.5], dt=1.0)
        self.assertAlmostEqual(norm(dsys, 2), np.sqrt(4.0 / 3.0), delta=1e-6)
        self.assertAlmostEqual(norm(dsys, np.inf), 2.0, delta=1e-4)

    def test_resonant_against_sweep(self):
        r, theta, Ts = 0.9, 0.5, 0.5
        A = r * np.array([[np.cos(theta), -np.sin(theta)],
                          [np.sin(theta), np.cos(theta)]])
        sys = StateSpace(A, [[1.0], [0.0]], [[1.0, 0.0]], [[0.0]], Ts=Ts)

        gain, freq = norminf(sys)
        w = np.linspace(0, np.pi / Ts, 20001)
        swept = sweep_peak(sys, w)
        self.assertGreaterEqual(gain, swept * (1 - 1e-5))
        self.assertLess(gain, swept * 1.001)
        self.assertGreaterEqual(freq, 0.0)
        self.assertLessEqual(freq, np.pi / Ts)

        at_peak = np.linalg.norm(sys.evalfr(np.exp(1j * freq * Ts)), 2)
        self.assertAlmostEqual(gain / ((1 + 1e-6) * at_peak), 1.0, places=9)

    def test_pole_on_unit_circle(self):
        Ts = 0.1
        sys = StateSpace([[-1.0]], [[1.0]], [[1.0]], [[0.0]], Ts=Ts)
        gain, freq = norminf(sys)
        self.assertEqual(gain, np.inf)
        self.assertAlmostEqual(freq, np.pi / Ts, places=10)

    def test_zero_transfer_function(self):
        sys = StateSpace([[0.5]], [[1.0]], [[0.0]], [[0.0]], Ts=1.0)
        self.assertEqual(norminf(sys), (0.0, 0.0))

    def test_zeros_at_every_initial_frequency(self):
        """(z^4 - 1) vanishes at z = 1, -1 and j; real poles pick z = j."""
        Ts = 1.0
        dsys = signal.dlti([1.0, 0.0, 0.0, 0.0, -1.0], np.poly([0.5, 0.4, 0.3, 0.2]), dt=Ts)
        sys = as_state_space(dsys)
        gain, freq = norminf(sys)

        swept = sweep_peak(sys, np.linspace(0, np.pi / Ts, 20001))
        self.assertGreaterEqual(gain, swept * (1 - 1e-5))
        self.assertLess(gain, swept * 1.001)
        at_peak = np.linalg.norm(sys.evalfr(np.exp(1j * freq * Ts)), 2)
        self.assertAlmostEqual(gain / ((1 + 1e-6) * at_peak), 1.0, places=9)

    def test_iteration_budget_exhausted(self):
        sys = StateSpace([[0.5]], [[1.0]], [[1.0]], [[0.0]], Ts=1.0)
        with self.assertRaises(ConvergenceError):
            norminf(sys, options=NormOptions(max_iters=0))


class TestPeakTracker(unittest.TestCase):

    def test_tie_goes_to_latest(self):
        peak = _PeakTracker(2.0, 0.0)
        peak.update(2.0, 1.5)
        self.assertEqual((peak.lb, peak.fpeak), (2.0, 1.5))

    def test_smaller_gain_ignored(self):
        peak = _PeakTracker(2.0, 0.0)
        peak.update(1.0, 1.5)
        self.assertEqual((peak.lb, peak.fpeak), (2.0, 0.0))


if __name__ == '__main__':
    unittest.main()
