from kinempc.config import ConfigError, CostWeights, MPCConfig, load_config
from kinempc.core.actuation.controller import ControlManager
from kinempc.core.actuation.mpc_controller import (
    MPCController, MPCResult, SolveStatus, classify_status)
from kinempc.core.trajectory_model import TrajectoryModel
from kinempc.dynamics.vehicle_model import VehicleModel
from kinempc.layout import ACTUATOR_VARS, STATE_VARS, VariableLayout

__version__ = '0.1.0'
