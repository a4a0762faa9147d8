"""
Controller configuration.

Tunables are fixed at startup and shared by the trajectory model and the
controller. Configs are frozen; build a new one to change the horizon.
"""

import math
import numbers
from dataclasses import dataclass, field, fields

import yaml

from kinempc.layout import VariableLayout


class ConfigError(ValueError):
    """Raised when configuration values are missing or out of range."""


def _check_real(name, value, finite=True):
    """Reject non-numeric (including bool) and, by default, non-finite values."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigError(f"'{name}' must be a number, got {value!r}")
    if finite and not math.isfinite(value):
        raise ConfigError(f"'{name}' must be finite, got {value!r}")
    return value


def _check_int(name, value):
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ConfigError(f"'{name}' must be an integer, got {value!r}")
    return value


@dataclass(frozen=True)
class CostWeights:
    """Weights of the MPC cost terms."""
    # Tracking
    cte: float = 1000.0
    epsi: float = 1000.0
    v: float = 1.0
    # Actuator magnitude
    delta: float = 50.0
    a: float = 50.0
    # Actuator change between consecutive steps
    delta_rate: float = 250000.0
    a_rate: float = 5000.0

    def __post_init__(self):
        for f in fields(self):
            value = _check_real(f"weights.{f.name}", getattr(self, f.name))
            if value < 0:
                raise ConfigError(f"Cost weight '{f.name}' must be non-negative")


@dataclass(frozen=True)
class MPCConfig:
    """MPC horizon, model and solver parameters."""
    # Horizon
    N: int = 10
    dt: float = 0.1

    # Distance from center of gravity to front axle (m). Tuned so the
    # kinematic model's turning radius matches the reference vehicle.
    Lf: float = 2.67

    # Reference targets
    ref_cte: float = 0.0
    ref_epsi: float = 0.0
    ref_v: float = 100.0

    weights: CostWeights = field(default_factory=CostWeights)

    # Actuator limits
    max_steer_deg: float = 25.0
    max_accel: float = 1.0
    # Stand-in for an unbounded variable, IPOPT's default infinity
    bound_inf: float = 1.0e19

    # Sign of the steering term in the heading update. -1 is the
    # clockwise-positive steering of the reference platform.
    steer_sign: float = -1.0

    # Solver budget
    max_cpu_time: float = 0.5
    max_iter: int = 3000
    print_level: int = 0

    def __post_init__(self):
        for name in ('dt', 'Lf', 'ref_cte', 'ref_epsi', 'ref_v',
                     'max_steer_deg', 'max_accel', 'steer_sign', 'max_cpu_time'):
            _check_real(name, getattr(self, name))
        _check_real('bound_inf', self.bound_inf, finite=False)
        for name in ('N', 'max_iter', 'print_level'):
            _check_int(name, getattr(self, name))

        if self.N < 2:
            raise ConfigError(f"N must be an integer >= 2, got {self.N}")
        if self.dt <= 0:
            raise ConfigError(f"dt must be positive, got {self.dt}")
        if self.Lf <= 0:
            raise ConfigError(f"Lf must be positive, got {self.Lf}")
        if self.max_steer_deg <= 0 or self.max_accel <= 0:
            raise ConfigError("Actuator limits must be positive")
        if self.bound_inf <= 0:
            raise ConfigError(f"bound_inf must be positive, got {self.bound_inf}")
        if self.max_cpu_time <= 0 or self.max_iter <= 0:
            raise ConfigError("Solver budget must be positive")
        if self.steer_sign not in (-1.0, 1.0):
            raise ConfigError(f"steer_sign must be +1 or -1, got {self.steer_sign}")
        if not isinstance(self.weights, CostWeights):
            raise ConfigError("weights must be a CostWeights instance")

    @property
    def max_steer(self):
        """Steering limit in radians."""
        return math.radians(self.max_steer_deg)

    @property
    def layout(self):
        return VariableLayout(self.N)

    # Keys accepted in YAML/dicts on top of the field names
    _ALIASES = {
        'horizon': 'N',
        'delta_max': 'max_steer_deg',
        'a_max': 'max_accel',
    }

    @classmethod
    def from_dict(cls, params):
        """
        Build a config from a flat mapping, e.g. a YAML `args` section.
        Args:
            params (dict): Field names or aliases; `weights` may be a nested dict.
        Returns:
            MPCConfig
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in (params or {}).items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown MPC config key '{key}'")
            if name in kwargs:
                raise ConfigError(f"MPC config key '{name}' given twice")
            kwargs[name] = value

        weights = kwargs.get('weights')
        if isinstance(weights, dict):
            weight_names = {f.name for f in fields(CostWeights)}
            unknown = set(weights) - weight_names
            if unknown:
                raise ConfigError(f"Unknown cost weight(s): {sorted(unknown)}")
            kwargs['weights'] = CostWeights(**weights)
        return cls(**kwargs)


def load_config(path):
    """
    Load an MPCConfig from a YAML file.

    The MPC parameters may sit at the top level or under an `mpc` or `args`
    section.
    """
    with open(path, 'r') as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")

    for section in ('mpc', 'args'):
        if isinstance(data.get(section), dict):
            data = data[section]
            break
    return MPCConfig.from_dict(data)
