"""
Integrates the MPC controller into a vehicle control loop.
"""

import logging

import numpy as np

from kinempc.config import MPCConfig
from kinempc.core.actuation.mpc_controller import MPCController
from kinempc.waypoints import fit_reference, to_vehicle_frame, tracking_errors

logger = logging.getLogger(__name__)


class ControlManager:
    def __init__(self, control_config=None):
        """
        Initialize the MPC controller.
        Args:
            control_config (dict/MPCConfig): Configuration, either an MPCConfig
                or a mapping with the MPC parameters (optionally under `args`).
        """
        if isinstance(control_config, MPCConfig):
            config = control_config
        elif control_config is None:
            config = MPCConfig()
        else:
            config = MPCConfig.from_dict(control_config.get('args', control_config))
        self.controller = MPCController(config)

        self.state = None
        self.coeffs = None
        self.last_result = None

    def update_info(self, px, py, psi, speed, waypoints_x, waypoints_y):
        """
        Update the controller with the vehicle's pose and the reference path.
        Args:
            px, py (float): Position in the global frame
            psi (float): Heading (radians)
            speed (float): Current speed
            waypoints_x, waypoints_y (array-like): Reference waypoints, global frame
        """
        local_x, local_y = to_vehicle_frame(px, py, psi, waypoints_x, waypoints_y)
        self.coeffs = fit_reference(local_x, local_y)
        cte, epsi = tracking_errors(self.coeffs)

        # The vehicle is the origin of its own frame
        self.state = np.array([0.0, 0.0, 0.0, speed, cte, epsi])

    def run_step(self):
        """
        Execute one control step.
        Returns:
            MPCResult: First actuation, preview path and solver status.
        """
        if self.state is None:
            raise RuntimeError("run_step() called before update_info()")

        self.last_result = self.controller.solve(self.state, self.coeffs)
        if not self.last_result.success:
            logger.info("Passing on %s result to caller", self.last_result.status.value)
        return self.last_result
