"""
Tests for waypoint helpers and the control manager.
"""

import math

import numpy as np
import pytest

from kinempc.config import MPCConfig
from kinempc.core.actuation.controller import ControlManager
from kinempc.waypoints import eval_reference, fit_reference, to_vehicle_frame, tracking_errors


def test_vehicle_frame_transform():
    """Vehicle at (1, 1) heading +y: ahead maps to +x, left maps to +y."""
    lx, ly = to_vehicle_frame(1.0, 1.0, math.pi / 2, [1.0, 0.0], [3.0, 1.0])
    np.testing.assert_allclose(lx, [2.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(ly, [0.0, 1.0], atol=1e-12)


def test_fit_recovers_cubic():
    xs = np.linspace(0.0, 20.0, 15)
    coeffs = [1.0, 0.2, -0.03, 0.001]
    ys = eval_reference(coeffs, xs)
    np.testing.assert_allclose(fit_reference(xs, ys), coeffs, atol=1e-8)


def test_fit_lower_order_is_padded():
    coeffs = fit_reference([0.0, 1.0, 2.0], [1.0, 2.0, 3.0], order=1)
    np.testing.assert_allclose(coeffs, [1.0, 1.0, 0.0, 0.0], atol=1e-10)


def test_fit_needs_enough_points():
    with pytest.raises(ValueError):
        fit_reference([0.0, 1.0, 2.0], [0.0, 0.0, 0.0])
    with pytest.raises(ValueError):
        fit_reference([0.0, 1.0], [0.0], order=1)


def test_tracking_errors():
    cte, epsi = tracking_errors([0.5, 1.0, 0.0, 0.0])
    assert cte == pytest.approx(0.5)
    assert epsi == pytest.approx(-math.pi / 4)


def test_run_step_requires_update_info():
    manager = ControlManager(MPCConfig(N=5))
    with pytest.raises(RuntimeError):
        manager.run_step()


def test_manager_accepts_args_section_dict():
    manager = ControlManager({'args': {'horizon': 6, 'ref_v': 15.0}})
    assert manager.controller.config.N == 6
    assert manager.controller.config.ref_v == pytest.approx(15.0)


def test_manager_builds_local_inputs_and_solves():
    """Straight road 1 m to the left of a vehicle heading along +x."""
    manager = ControlManager(MPCConfig(ref_v=10.0))
    wx = np.arange(0.0, 40.0, 5.0)
    wy = np.ones_like(wx)
    manager.update_info(0.0, 0.0, 0.0, 10.0, wx, wy)

    np.testing.assert_allclose(manager.coeffs, [1.0, 0.0, 0.0, 0.0], atol=1e-8)
    np.testing.assert_allclose(manager.state, [0, 0, 0, 10.0, 1.0, 0.0], atol=1e-8)

    result = manager.run_step()
    assert result is manager.last_result
    assert np.isfinite(result.steering)
    assert abs(result.steering) <= manager.controller.config.max_steer + 1e-6
