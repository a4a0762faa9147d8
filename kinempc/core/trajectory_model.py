"""
Cost and constraint functions of the MPC problem, expressed symbolically with
CasADi so IPOPT receives exact derivatives.
"""

import logging

import casadi as ca
import numpy as np

from kinempc.config import MPCConfig
from kinempc.dynamics.vehicle_model import VehicleModel
from kinempc.layout import STATE_VARS

logger = logging.getLogger(__name__)


class TrajectoryModel:
    def __init__(self, config=None):
        """
        Args:
            config (MPCConfig): Horizon, weights and model constants.
        """
        self.config = config or MPCConfig()
        self.layout = self.config.layout
        self.dynamics = VehicleModel(self.config)

        # Decision vector and reference polynomial parameter
        self.z = ca.SX.sym('z', self.layout.n_vars)
        self.coeffs = ca.SX.sym('coeffs', 4)

        self.cost = self.cost_expression()
        self.g = self.constraint_expression()

        self._cost_fn = ca.Function('cost', [self.z, self.coeffs], [self.cost])
        self._g_fn = ca.Function('g', [self.z, self.coeffs], [self.g])
        logger.debug("Trajectory model built: n_vars=%d, n_constraints=%d",
                     self.layout.n_vars, self.layout.n_constraints)

    def _var(self, kind, t):
        return self.z[self.layout.index(kind, t)]

    def cost_expression(self):
        """Tracking + actuator magnitude + actuator change penalties."""
        cfg = self.config
        w = cfg.weights
        N = self.layout.N
        cost = 0

        # Cost 1: deviation from the reference
        for t in range(N):
            cost += w.cte * (self._var('cte', t) - cfg.ref_cte) ** 2
            cost += w.epsi * (self._var('epsi', t) - cfg.ref_epsi) ** 2
            cost += w.v * (self._var('v', t) - cfg.ref_v) ** 2

        # Cost 2: actuator use
        for t in range(N - 1):
            cost += w.delta * self._var('delta', t) ** 2
            cost += w.a * self._var('a', t) ** 2

        # Cost 3: change between consecutive actuations; steering changes
        # carry the dominant weight
        for t in range(N - 2):
            cost += w.delta_rate * (self._var('delta', t + 1) - self._var('delta', t)) ** 2
            cost += w.a_rate * (self._var('a', t + 1) - self._var('a', t)) ** 2

        return cost

    def constraint_expression(self):
        """
        Constraint vector g, laid out like the state part of z.

        g at t=0 is the initial state itself (pinned by bounds); for t>=1 it is
        the residual actual - predicted, driven to zero.
        """
        N = self.layout.N
        g = [None] * self.layout.n_constraints

        for kind in STATE_VARS:
            g[self.layout.index(kind, 0)] = self._var(kind, 0)

        for t in range(1, N):
            state0 = [self._var(kind, t - 1) for kind in STATE_VARS]
            actuators0 = [self._var('delta', t - 1), self._var('a', t - 1)]
            predicted = self.dynamics.kinematic_model(state0, actuators0, self.coeffs)

            for kind, pred in zip(STATE_VARS, predicted):
                g[self.layout.index(kind, t)] = self._var(kind, t) - pred

        return ca.vertcat(*g)

    def nlp(self):
        """NLP description for casadi.nlpsol, parameterised by the coefficients."""
        return {'x': self.z, 'f': self.cost, 'g': self.g, 'p': self.coeffs}

    def evaluate_cost(self, z, coeffs):
        """Numeric cost at a candidate decision vector."""
        return float(self._cost_fn(np.asarray(z, dtype=float),
                                   np.asarray(coeffs, dtype=float)))

    def evaluate_constraints(self, z, coeffs):
        """Numeric constraint vector g (length 6N)."""
        g = self._g_fn(np.asarray(z, dtype=float), np.asarray(coeffs, dtype=float))
        return np.asarray(g.full()).flatten()

    def residuals(self, z, coeffs):
        """
        Dynamics residuals for t = 1..N-1.
        Returns:
            np.ndarray: shape (6, N-1), rows in STATE_VARS order
        """
        g = self.evaluate_constraints(z, coeffs)
        return np.vstack([g[self.layout.slice(kind)][1:] for kind in STATE_VARS])
