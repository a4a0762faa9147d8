"""
Model Predictive Controller (MPC) for tracking a polynomial reference path.
Uses CasADi for symbolic optimization and IPOPT as the solver.
"""

import logging
from dataclasses import dataclass
from enum import Enum

import casadi as ca
import numpy as np

from kinempc.config import MPCConfig
from kinempc.core.trajectory_model import TrajectoryModel
from kinempc.layout import STATE_VARS, VariableLayout

logger = logging.getLogger(__name__)


class SolveStatus(str, Enum):
    SUCCESS = 'success'
    INFEASIBLE = 'infeasible'
    TIMEOUT = 'timeout'
    ERROR = 'error'


_TIMEOUT_STATUSES = (
    'Maximum_CpuTime_Exceeded',
    'Maximum_WallTime_Exceeded',
    'Maximum_Iterations_Exceeded',
)


def classify_status(stats):
    """
    Map IPOPT solver stats onto SolveStatus.
    Args:
        stats (dict): Output of `solver.stats()`.
    """
    if stats.get('success', False):
        return SolveStatus.SUCCESS
    return_status = str(stats.get('return_status', ''))
    if 'Infeasible' in return_status or return_status == 'Restoration_Failed':
        return SolveStatus.INFEASIBLE
    if return_status in _TIMEOUT_STATUSES:
        return SolveStatus.TIMEOUT
    return SolveStatus.ERROR


@dataclass
class MPCResult:
    """Outcome of one MPC solve."""
    steering: float  # First planned steering angle (radians)
    acceleration: float  # First planned acceleration
    preview_x: np.ndarray  # Predicted x for steps 1..N-2
    preview_y: np.ndarray  # Predicted y for steps 1..N-2
    cost: float
    status: SolveStatus
    return_status: str  # Raw IPOPT status
    solution: np.ndarray  # Full optimized decision vector
    layout: VariableLayout

    @property
    def success(self):
        return self.status is SolveStatus.SUCCESS

    def to_list(self):
        """[steering, acceleration, x1, y1, x2, y2, ...]"""
        result = [self.steering, self.acceleration]
        for px, py in zip(self.preview_x, self.preview_y):
            result.append(float(px))
            result.append(float(py))
        return result

    def trajectory(self, kind):
        """Optimized sequence of one variable, e.g. 'cte' or 'delta'."""
        return self.solution[self.layout.slice(kind)]


class MPCController:
    def __init__(self, config=None):
        """
        Initialize MPC with configuration parameters.
        Args:
            config (MPCConfig): Horizon, weights, limits and solver budget.
        """
        self.config = config or MPCConfig()
        self.layout = self.config.layout
        self.model = TrajectoryModel(self.config)
        # Setup MPC optimization problem
        self.setup_mpc()

    def solver_options(self):
        """IPOPT options; the budget caps both CPU and wall-clock time."""
        cfg = self.config
        return {
            'ipopt.print_level': cfg.print_level,
            'print_time': 0,
            'ipopt.sb': 'yes',
            # Return whatever iterate is reached once the budget runs out
            'ipopt.max_cpu_time': cfg.max_cpu_time,
            'ipopt.max_wall_time': cfg.max_cpu_time,
            'ipopt.max_iter': cfg.max_iter,
            'error_on_fail': False,
        }

    def setup_mpc(self):
        """Create the IPOPT solver for the trajectory model."""
        cfg = self.config
        self.solver = ca.nlpsol('solver', 'ipopt', self.model.nlp(), self.solver_options())
        logger.debug("MPC solver ready: N=%d, dt=%.3f, n_vars=%d",
                     cfg.N, cfg.dt, self.layout.n_vars)

    def initial_guess(self, state):
        """Zeros everywhere except the measured initial state."""
        z0 = np.zeros(self.layout.n_vars)
        z0[self.layout.initial_indices()] = state
        return z0

    def variable_bounds(self):
        """
        Lower/upper bounds on z: states unbounded, steering and
        acceleration limited to the actuator range.
        """
        cfg = self.config
        lbx = np.full(self.layout.n_vars, -cfg.bound_inf)
        ubx = np.full(self.layout.n_vars, cfg.bound_inf)

        lbx[self.layout.slice('delta')] = -cfg.max_steer
        ubx[self.layout.slice('delta')] = cfg.max_steer

        lbx[self.layout.slice('a')] = -cfg.max_accel
        ubx[self.layout.slice('a')] = cfg.max_accel
        return lbx, ubx

    def constraint_bounds(self, state):
        """Equality to zero, except t=0 which is pinned to the measured state."""
        lbg = np.zeros(self.layout.n_constraints)
        ubg = np.zeros(self.layout.n_constraints)
        initial = self.layout.initial_indices()
        lbg[initial] = state
        ubg[initial] = state
        return lbg, ubg

    def solve(self, state, coeffs):
        """
        Compute the actuator command for the current cycle.

        Inputs must be finite; they are not checked. A non-converged solve is
        not an error: the solver's last iterate is returned and the status is
        reported on the result.
        Args:
            state (array-like): [x, y, psi, v, cte, epsi] in the vehicle frame
            coeffs (array-like): Reference polynomial c0..c3, same frame
        Returns:
            MPCResult
        """
        state = np.asarray(state, dtype=float).flatten()
        coeffs = np.asarray(coeffs, dtype=float).flatten()
        if state.shape != (len(STATE_VARS),):
            raise ValueError(f"State must have {len(STATE_VARS)} entries, got {state.shape[0]}")
        if coeffs.shape != (4,):
            raise ValueError(f"Expected 4 polynomial coefficients, got {coeffs.shape[0]}")

        lbx, ubx = self.variable_bounds()
        lbg, ubg = self.constraint_bounds(state)

        sol = self.solver(
            x0=self.initial_guess(state),
            p=coeffs,
            lbx=lbx,
            ubx=ubx,
            lbg=lbg,
            ubg=ubg,
        )
        stats = self.solver.stats()
        status = classify_status(stats)
        return_status = str(stats.get('return_status', 'unknown'))

        z_opt = np.asarray(sol['x'].full()).flatten()
        cost = float(sol['f'])

        if status is not SolveStatus.SUCCESS:
            logger.warning("MPC solve did not succeed (%s: %s), using last iterate",
                           status.value, return_status)
        logger.debug("MPC cost %.4f (%s)", cost, return_status)

        # Only the first actuation is applied; the rest shapes it
        preview = slice(1, self.layout.N - 1)
        return MPCResult(
            steering=float(z_opt[self.layout.index('delta', 0)]),
            acceleration=float(z_opt[self.layout.index('a', 0)]),
            preview_x=z_opt[self.layout.slice('x')][preview],
            preview_y=z_opt[self.layout.slice('y')][preview],
            cost=cost,
            status=status,
            return_status=return_status,
            solution=z_opt,
            layout=self.layout,
        )

    def solve_list(self, state, coeffs):
        """Plain-sequence form of `solve`: [steering, acceleration, x1, y1, ...]."""
        return self.solve(state, coeffs).to_list()
