"""
Tests for the kinematic vehicle model.
"""

import math

import numpy as np
import pytest

from kinempc.config import MPCConfig
from kinempc.dynamics.vehicle_model import VehicleModel


def _step(model, state, actuators, coeffs):
    out = model.step_function()(state, actuators, coeffs)
    return np.asarray(out.full()).flatten()


def test_step_matches_hand_computation():
    """One step from a known state against the closed-form update."""
    model = VehicleModel(MPCConfig())
    state = [0.0, 0.0, 0.0, 10.0, 1.0, 0.1]
    actuators = [0.1, 0.5]
    coeffs = [1.0, 0.0, 0.0, 0.0]

    nxt = _step(model, state, actuators, coeffs)

    dpsi = -10.0 / 2.67 * 0.1 * 0.1
    expected = [
        1.0,                                # x + v cos(psi) dt
        0.0,                                # y + v sin(psi) dt
        dpsi,                               # psi - v/Lf delta dt
        10.05,                              # v + a dt
        1.0 + 10.0 * math.sin(0.1) * 0.1,   # (f(x) - y) + v sin(epsi) dt
        dpsi,                               # (psi - atan(f'(x))) - v/Lf delta dt
    ]
    np.testing.assert_allclose(nxt, expected, atol=1e-12)


def test_steering_sign_convention():
    """Positive steering turns clockwise by default; steer_sign=+1 flips it."""
    state = [0.0, 0.0, 0.0, 5.0, 0.0, 0.0]
    coeffs = [0.0, 0.0, 0.0, 0.0]

    default = _step(VehicleModel(MPCConfig()), state, [0.2, 0.0], coeffs)
    flipped = _step(VehicleModel(MPCConfig(steer_sign=1.0)), state, [0.2, 0.0], coeffs)

    assert default[2] < 0
    assert flipped[2] == pytest.approx(-default[2])


def test_reference_heading_on_curve():
    """Reference heading is the tangent angle of the cubic."""
    model = VehicleModel(MPCConfig())
    state = [2.0, 0.0, 0.0, 0.0, 0.0, 0.0]
    coeffs = [0.0, 0.5, 0.25, 0.0]
    nxt = _step(model, state, [0.0, 0.0], coeffs)

    # v = 0, so epsi1 = psi0 - atan(c1 + 2 c2 x0)
    assert nxt[5] == pytest.approx(-math.atan(0.5 + 2 * 0.25 * 2.0))
    # cte1 = f(x0) - y0
    assert nxt[4] == pytest.approx(0.5 * 2.0 + 0.25 * 4.0)
