"""
Discretised kinematic model used by the MPC for prediction.
States: [x, y, heading (psi), speed (v), cross-track error (cte), heading error (epsi)]
Actuators: [steering angle (delta), acceleration (a)]
The reference path is a cubic y = c0 + c1*x + c2*x^2 + c3*x^3 in the vehicle frame.
"""

import casadi as ca

from kinempc.config import MPCConfig


class VehicleModel:
    def __init__(self, config=None):
        self.config = config or MPCConfig()
        self.n_states = 6  # [x, y, psi, v, cte, epsi]
        self.n_actuators = 2  # [delta, a]
        self.Lf = self.config.Lf  # CoG to front axle (meters)
        self.dt = self.config.dt

    @staticmethod
    def reference_y(coeffs, x):
        """Reference path lateral position at x."""
        return coeffs[0] + coeffs[1] * x + coeffs[2] * x ** 2 + coeffs[3] * x ** 3

    @staticmethod
    def reference_heading(coeffs, x):
        """Reference path tangent angle at x."""
        return ca.atan(coeffs[1] + 2 * coeffs[2] * x + 3 * coeffs[3] * x ** 2)

    def kinematic_model(self, state, actuators, coeffs):
        """
        One-step kinematic prediction.
        Args:
            state (casadi.SX/list): [x, y, psi, v, cte, epsi] at step t
            actuators (casadi.SX/list): [delta, a] applied during step t
            coeffs (casadi.SX/list): Reference polynomial coefficients c0..c3
        Returns:
            list: Predicted state at step t+1, same order as `state`
        """
        x0, y0, psi0, v0, cte0, epsi0 = (state[i] for i in range(self.n_states))
        delta0, a0 = actuators[0], actuators[1]
        dt = self.dt

        f0 = self.reference_y(coeffs, x0)
        psides0 = self.reference_heading(coeffs, x0)

        # Yaw change from steering; the sign is platform specific
        dpsi = self.config.steer_sign * v0 / self.Lf * delta0 * dt

        x1 = x0 + v0 * ca.cos(psi0) * dt
        y1 = y0 + v0 * ca.sin(psi0) * dt
        psi1 = psi0 + dpsi
        v1 = v0 + a0 * dt
        cte1 = (f0 - y0) + v0 * ca.sin(epsi0) * dt
        epsi1 = (psi0 - psides0) + dpsi

        return [x1, y1, psi1, v1, cte1, epsi1]

    def step_function(self):
        """
        Numeric one-step simulator.
        Returns:
            casadi.Function: step(state[6], actuators[2], coeffs[4]) -> next_state[6]
        """
        state = ca.SX.sym('state', self.n_states)
        actuators = ca.SX.sym('actuators', self.n_actuators)
        coeffs = ca.SX.sym('coeffs', 4)
        next_state = ca.vertcat(*self.kinematic_model(state, actuators, coeffs))
        return ca.Function('step', [state, actuators, coeffs], [next_state],
                           ['state', 'actuators', 'coeffs'], ['next_state'])
