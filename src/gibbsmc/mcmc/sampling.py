"""
Gibbs Sampling Functions.

Core sampling functions for the Gibbs engine:
- sweep_key: Per-iteration random key derived from the chain's master key
- gibbs_sweep: One full Gibbs transition over all conditional samplers
- scan_chain: JIT-compiled fold of gibbs_sweep over the iterations
"""

import jax
import jax.numpy as jnp
import jax.random as random
from functools import partial
from typing import Dict, Tuple

from ..error_handling import InvalidConfiguration
from .types import ConditionalSpec, ModelParams


def sweep_key(master_key, iteration):
    """
    Random key for one sweep.

    The key depends only on the master key and the iteration number, so any
    row of a chain can be re-derived from the row before it.

    Args:
        master_key: Chain-scoped JAX PRNGKey
        iteration: Row index being produced (1..n_iterations-1)

    Returns:
        JAX PRNGKey for that sweep
    """
    return random.fold_in(master_key, iteration)


def gibbs_sweep(key, state: Dict[str, jnp.ndarray],
                conditional_samplers: Tuple[ConditionalSpec, ...],
                params: ModelParams) -> Dict[str, jnp.ndarray]:
    """
    Run one full Gibbs iteration over all conditional samplers.

    Samplers run in order on a working copy of the state. Each sampler sees
    the values drawn by the samplers before it in this same sweep; this
    sequential update is what makes the scheme a Gibbs sampler.

    Args:
        key: JAX random key for this sweep
        state: Previous state, component name -> scalar
        conditional_samplers: Ordered ConditionalSpec tuple
        params: Fixed model parameters

    Returns:
        New state dict (the input state is left untouched)

    Raises:
        InvalidConfiguration: If a sampler reads a key missing from the state or
            params. Inside scan_chain this surfaces while tracing, before any draw.
    """
    sampler_keys = random.split(key, len(conditional_samplers))
    working = dict(state)
    for sampler_key, spec in zip(sampler_keys, conditional_samplers):
        try:
            draw = spec.sample_fn(sampler_key, working, params)
        except KeyError as e:
            raise InvalidConfiguration(
                f"Sampler '{spec.label or spec.component}' reads {e}, which is not in the "
                f"state vector {sorted(working)} or the model constants"
            ) from e
        # Keep the carry dtype fixed (discrete draws come back as ints)
        working[spec.component] = jnp.asarray(draw).astype(jnp.result_type(state[spec.component]))
    return working


@partial(jax.jit, static_argnames=('n_iterations', 'conditional_samplers'))
def scan_chain(master_key, initial_state: Dict[str, jnp.ndarray], params: ModelParams,
               n_iterations: int, conditional_samplers: Tuple[ConditionalSpec, ...]):
    """
    Fold gibbs_sweep over iterations 1..n_iterations-1.

    The scan carry is only the previous state: no row can depend on history
    further back than the row before it.

    Args:
        master_key: Chain-scoped JAX PRNGKey
        initial_state: Row 0, component name -> scalar array
        params: Fixed model parameters
        n_iterations: Total rows including the initial state (static)
        conditional_samplers: Ordered ConditionalSpec tuple (static)

    Returns:
        Dict of component name -> (n_iterations - 1,) array of draws
    """
    def scan_body(state, iteration):
        next_state = gibbs_sweep(sweep_key(master_key, iteration), state,
                                 conditional_samplers, params)
        return next_state, next_state

    _, history = jax.lax.scan(
        scan_body,
        initial_state,
        jnp.arange(1, n_iterations)
    )
    return history
