"""
Index bookkeeping for the flattened MPC decision vector.

The decision vector z is laid out as six contiguous state blocks of length N
followed by two contiguous actuator blocks of length N-1:

    [x_0..x_{N-1}, y_*, psi_*, v_*, cte_*, epsi_*, delta_0..delta_{N-2}, a_*]

The constraint vector g reuses the state part of this layout (length 6N).
Everything that reads or writes z or g goes through VariableLayout.
"""

STATE_VARS = ('x', 'y', 'psi', 'v', 'cte', 'epsi')
ACTUATOR_VARS = ('delta', 'a')


class VariableLayout:
    def __init__(self, N):
        """
        Args:
            N (int): Number of horizon steps, at least 2.
        """
        if N < 2:
            raise ValueError(f"Horizon must have at least 2 steps, got N={N}")
        self.N = int(N)

        self._starts = {}
        offset = 0
        for kind in STATE_VARS + ACTUATOR_VARS:
            self._starts[kind] = offset
            offset += self.length(kind)

        self.n_vars = offset
        self.n_constraints = len(STATE_VARS) * self.N

    def length(self, kind):
        """Block length: N for state kinds, N-1 for actuator kinds."""
        if kind in STATE_VARS:
            return self.N
        if kind in ACTUATOR_VARS:
            return self.N - 1
        raise KeyError(f"Unknown variable kind '{kind}'")

    def start(self, kind):
        self.length(kind)
        return self._starts[kind]

    def index(self, kind, t):
        """Offset of variable `kind` at timestep `t` in z."""
        if not 0 <= t < self.length(kind):
            raise IndexError(
                f"Timestep {t} out of range for '{kind}' (length {self.length(kind)})")
        return self._starts[kind] + t

    def slice(self, kind):
        start = self.start(kind)
        return slice(start, start + self.length(kind))

    def blocks(self):
        """Ordered (kind, start, stop) triples covering [0, n_vars)."""
        return [(kind, self._starts[kind], self._starts[kind] + self.length(kind))
                for kind in STATE_VARS + ACTUATOR_VARS]

    def initial_indices(self):
        """The six t=0 state offsets, in STATE_VARS order."""
        return [self._starts[kind] for kind in STATE_VARS]

    def __repr__(self):
        return f"VariableLayout(N={self.N}, n_vars={self.n_vars})"
