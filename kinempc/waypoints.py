"""
Helpers that turn global waypoints into the MPC's vehicle-frame inputs.
"""

import numpy as np


def to_vehicle_frame(px, py, psi, wx, wy):
    """
    Express global waypoints in the vehicle frame (origin at the vehicle,
    x axis along its heading).
    Args:
        px, py (float): Vehicle position in the global frame
        psi (float): Vehicle heading (radians)
        wx, wy (array-like): Waypoint coordinates in the global frame
    Returns:
        tuple(np.ndarray, np.ndarray): Local x and y coordinates
    """
    dx = np.asarray(wx, dtype=float) - px
    dy = np.asarray(wy, dtype=float) - py
    cos_psi = np.cos(psi)
    sin_psi = np.sin(psi)
    local_x = dx * cos_psi + dy * sin_psi
    local_y = -dx * sin_psi + dy * cos_psi
    return local_x, local_y


def fit_reference(xs, ys, order=3):
    """
    Least-squares polynomial fit of the reference path.
    Returns:
        np.ndarray: Four coefficients c0..c3 in ascending order (zero padded
        when order < 3)
    """
    if not 1 <= order <= 3:
        raise ValueError(f"Polynomial order must be between 1 and 3, got {order}")
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    if xs.shape != ys.shape:
        raise ValueError("Waypoint x and y arrays must have the same length")
    if xs.size < order + 1:
        raise ValueError(f"Need at least {order + 1} waypoints for an order {order} fit")

    coeffs = np.zeros(4)
    coeffs[:order + 1] = np.polyfit(xs, ys, order)[::-1]
    return coeffs


def eval_reference(coeffs, xs):
    """Sample the reference polynomial at xs."""
    return np.polynomial.polynomial.polyval(np.asarray(xs, dtype=float), coeffs)


def tracking_errors(coeffs):
    """
    Cross-track and heading error of a vehicle sitting at the origin of its
    own frame with zero heading.
    Returns:
        tuple(float, float): (cte, epsi)
    """
    cte = float(coeffs[0])
    epsi = -float(np.arctan(coeffs[1]))
    return cte, epsi
