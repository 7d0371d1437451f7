"""
Pytest configuration and shared fixtures for gibbsmc tests.
"""

import pytest
import numpy as np
import jax.numpy as jnp

from gibbsmc import ConditionalSpec, ModelParams
from gibbsmc.registry import _REGISTRY


# Wing lengths (mm) of nine midges, the classic semiconjugate normal example
MIDGE_WING_LENGTHS = [1.64, 1.70, 1.72, 1.74, 1.82, 1.82, 1.82, 1.90, 2.08]


@pytest.fixture
def rng_seed():
    """Default RNG seed for reproducible tests."""
    return 42


@pytest.fixture
def normal_data():
    """Observations and prior hyperparameters for the semiconjugate normal model."""
    return {
        'observations': list(MIDGE_WING_LENGTHS),
        'mu0': 1.9,
        'tau0_sq': 0.95 ** 2,
        'sigma0_sq': 0.1,
        'nu0': 1.0,
    }


@pytest.fixture
def mixture_data():
    """Three-component normal mixture with a light middle component."""
    return {
        'weights': [0.45, 0.10, 0.45],
        'means': [-3.0, 0.0, 3.0],
        'variances': [1.0 / 3.0] * 3,
    }


@pytest.fixture
def clean_registry():
    """
    Snapshot the model registry and restore it after the test.

    Usage:
        def test_something(clean_registry):
            register_model('tmp', {...})  # removed again after the test
    """
    saved = dict(_REGISTRY)
    yield _REGISTRY
    _REGISTRY.clear()
    _REGISTRY.update(saved)


def _add_one_to_b(key, state, params):
    return state['b'] + 1.0


def _double_a(key, state, params):
    return state['a'] * 2.0


@pytest.fixture
def deterministic_samplers():
    """
    Two key-free samplers: a <- b + 1, then b <- 2a.

    From a = b = 0 the chain is (0, 0), (1, 2), (3, 6), (7, 14), ... only if
    b's update sees the a drawn earlier in the same sweep.
    """
    return (
        ConditionalSpec('a', _add_one_to_b, requires=('b',)),
        ConditionalSpec('b', _double_a, requires=('a',)),
    )


def make_state(values):
    """Dict of float64 scalars, the form gibbs_sweep receives inside the scan."""
    return {k: jnp.asarray(v, dtype=jnp.float64) for k, v in values.items()}


def ar1_series(rho, n, seed=0):
    """Stationary AR(1) series x_t = rho * x_{t-1} + e_t with unit-variance noise."""
    rng = np.random.default_rng(seed)
    noise = rng.normal(size=n)
    x = np.empty(n)
    x[0] = noise[0] / np.sqrt(1.0 - rho ** 2)
    for t in range(1, n):
        x[t] = rho * x[t - 1] + noise[t]
    return x


@pytest.fixture
def empty_params():
    return ModelParams()
