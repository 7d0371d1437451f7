"""
Gibbs Sampler Data Structures and Type Definitions.

This module contains the core data structures shared by the sampler and
diagnostics engines:
- Chain: Immutable sampled chain with row and column accessors
- ModelParams: Fixed observed data and constants (registered JAX pytree)
- ConditionalSpec: One pluggable full-conditional draw
- DiagnosticResult: ACF pairs and ESS for one scalar component
"""

import jax
import jax.numpy as jnp
import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..error_handling import InvalidConfiguration


@dataclass(frozen=True, eq=False)
class Chain:
    """
    Ordered sequence of state vectors produced by one Gibbs run.

    Row 0 is the initial state exactly as supplied; row s depends only on
    row s-1 and the randomness of sweep s. The values array is read-only.

    Fields:
        values: (n_iterations, n_components) float array
        component_names: Column names, in state-vector order
    """
    values: np.ndarray
    component_names: Tuple[str, ...]

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64)
        if values.ndim != 2:
            raise InvalidConfiguration(f"Chain values must be 2-D, got shape {values.shape}")
        names = tuple(self.component_names)
        if values.shape[1] != len(names):
            raise InvalidConfiguration(
                f"Chain has {values.shape[1]} columns but {len(names)} component names"
            )
        if len(set(names)) != len(names):
            raise InvalidConfiguration(f"Duplicate component names: {names}")
        values.flags.writeable = False
        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'component_names', names)

    def __len__(self) -> int:
        return self.values.shape[0]

    def __getitem__(self, name: str) -> np.ndarray:
        return self.column(name)

    @property
    def n_iterations(self) -> int:
        return self.values.shape[0]

    def _index(self, name: str) -> int:
        try:
            return self.component_names.index(name)
        except ValueError:
            raise KeyError(f"Unknown component '{name}'. Available: {list(self.component_names)}") from None

    def column(self, name: str) -> np.ndarray:
        """All draws of one component, in iteration order."""
        return self.values[:, self._index(name)]

    def row(self, iteration: int) -> Dict[str, float]:
        """State vector at one iteration (0 is the initial state)."""
        row = self.values[iteration]
        return {name: float(v) for name, v in zip(self.component_names, row)}

    def prefix(self, n: int) -> 'Chain':
        """First n rows as a new chain, for inspecting diagnostics as the run grows."""
        if not 1 <= n <= len(self):
            raise InvalidConfiguration(f"prefix length must be in [1, {len(self)}], got {n}")
        return Chain(self.values[:n], self.component_names)

    def to_dict(self) -> Dict[str, np.ndarray]:
        return {name: self.column(name) for name in self.component_names}


@dataclass(frozen=True, eq=False)
class ModelParams:
    """
    Fixed configuration bundle for one sampling run.

    Registered as a JAX pytree so conditional samplers can be traced with
    the parameters as ordinary array inputs.

    Fields:
        observations: Observed sample (1-D), or None for models without data
        constants: Named hyperparameters and derived statistics
    """
    observations: Optional[jnp.ndarray] = None
    constants: Dict[str, Any] = field(default_factory=dict)


def _model_params_flatten(mp):
    """Flatten ModelParams for JAX pytree."""
    return (mp.observations, mp.constants), None


def _model_params_unflatten(aux_data, children):
    """Unflatten ModelParams from JAX pytree."""
    observations, constants = children
    return ModelParams(observations=observations, constants=constants)


# Register ModelParams as a JAX pytree
jax.tree_util.register_pytree_node(
    ModelParams,
    _model_params_flatten,
    _model_params_unflatten
)


@dataclass(frozen=True)
class ConditionalSpec:
    """
    Specification for one full-conditional update in a Gibbs sweep.

    Required fields:
        component: Name of the state component this sampler redraws
        sample_fn: fn(key, state, params) -> scalar
            Pure draw from the full conditional. `state` is a dict holding
            the in-progress values of the current sweep, so components
            updated earlier in the sweep are already visible.

    Optional fields:
        requires: Names of the components sample_fn reads
        label: Human-readable name for errors and logging

    Example:
        ConditionalSpec('theta', sample_theta, requires=('precision',))
    """
    component: str
    sample_fn: Callable[..., Any]
    requires: Tuple[str, ...] = ()
    label: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.component, str) or not self.component:
            raise InvalidConfiguration(f"component must be a non-empty string, got {self.component!r}")
        if not callable(self.sample_fn):
            raise InvalidConfiguration(f"sample_fn for '{self.component}' must be callable")
        object.__setattr__(self, 'requires', tuple(self.requires))


@dataclass(frozen=True)
class DiagnosticResult:
    """
    Diagnostics for a single scalar component of a chain.

    Fields:
        component: Component name
        n_samples: Length of the series analysed
        acf: ((lag, autocorrelation), ...) for lag = 0..max_lag
        ess: Effective sample size estimate
    """
    component: str
    n_samples: int
    acf: Tuple[Tuple[int, float], ...]
    ess: float

    @property
    def ess_ratio(self) -> float:
        return self.ess / self.n_samples
