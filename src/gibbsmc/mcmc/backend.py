"""
Gibbs Backend - Main entry points.

- run_gibbs: Generic engine. Runs one chain from an initial state and an
  ordered sequence of conditional samplers.
- run_model: Configures a registered model from a config dict, runs it and
  attaches diagnostics and a posterior summary.
"""

import time
from typing import Any, Dict, Mapping, Optional, Sequence

import jax.numpy as jnp
import numpy as np

from ..error_handling import (
    NumericDegeneracy,
    diagnose_chain,
    print_diagnostics,
    validate_sampler_inputs,
)
from ..reporting import summarize_chain
from .config import configure_run, gen_rng_keys
from .diagnostics import chain_diagnostics
from .sampling import scan_chain
from .types import Chain, ConditionalSpec, ModelParams

import logging
logger = logging.getLogger('gibbsmc')


def run_gibbs(
    initial_state: Mapping[str, float],
    n_iterations: int,
    conditional_samplers: Sequence[ConditionalSpec],
    rng_seed: int,
    params: Optional[ModelParams] = None,
) -> Chain:
    """
    Run a Gibbs sampler and return the full chain.

    Row 0 is `initial_state` unmodified. Row s (s >= 1) is produced by one
    sweep over `conditional_samplers` starting from row s-1, using the key
    sweep_key(master_key, s) where master_key comes from gen_rng_keys(rng_seed).
    Two calls with identical arguments return identical chains.

    Args:
        initial_state: Component name -> scalar; key order is the column order
        n_iterations: Number of rows, initial state included (>= 1)
        conditional_samplers: Ordered ConditionalSpec sequence, one per update
        rng_seed: Integer seed for the chain's own PRNG key
        params: Fixed model parameters passed to every conditional

    Returns:
        Chain with exactly n_iterations rows

    Raises:
        InvalidConfiguration: Before sampling, if any input is malformed
        NumericDegeneracy: If any draw is NaN or infinite
    """
    validate_sampler_inputs(initial_state, n_iterations, conditional_samplers)
    conditional_samplers = tuple(conditional_samplers)
    if params is None:
        params = ModelParams()

    names = tuple(initial_state.keys())
    first_row = np.array([float(initial_state[n]) for n in names], dtype=np.float64)
    master_key, _ = gen_rng_keys(rng_seed)

    logger.info(f"Running Gibbs sampler: {n_iterations} iterations, "
                f"components {list(names)}, seed {rng_seed}")
    start = time.perf_counter()

    history = scan_chain(
        master_key,
        {n: jnp.asarray(v, dtype=jnp.float64) for n, v in zip(names, first_row)},
        params,
        n_iterations=int(n_iterations),
        conditional_samplers=conditional_samplers,
    )
    draws = np.column_stack([np.asarray(history[n], dtype=np.float64) for n in names])
    draws = draws.reshape(int(n_iterations) - 1, len(names))

    bad = ~np.isfinite(draws)
    if np.any(bad):
        row, col = np.argwhere(bad)[0]
        raise NumericDegeneracy(
            f"Non-finite draw for component '{names[col]}' at iteration {row + 1} "
            f"(value {draws[row, col]}); check the conditional parameters"
        )

    elapsed = time.perf_counter() - start
    logger.info(f"Sampling complete in {elapsed:.4f}s")

    return Chain(np.vstack([first_row[None, :], draws]), names)


def run_model(run_config: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run a registered model end to end.

    Args:
        run_config: Config dict ('model', 'n_iterations', 'rng_seed', 'max_lag',
            'quantiles', 'min_ess_ratio')
        data: Model data dict (see the model's validate_params)

    Returns:
        Dict with:
            chain: Chain
            diagnostics: {component: DiagnosticResult or None}; None marks a
                constant component whose ACF is undefined
            summary: Output of summarize_chain
            report: Output of diagnose_chain (issues, warnings, info, ess),
                also written to the 'gibbsmc' logger
            config: Cleaned user config
    """
    user_config, model_context = configure_run(run_config, data)

    chain = run_gibbs(
        model_context['initial_state'],
        user_config['n_iterations'],
        model_context['conditional_samplers'],
        user_config['rng_seed'],
        params=model_context['params'],
    )

    diagnostics = {}
    if len(chain) < 2:
        logger.warning("Chain has a single row; diagnostics skipped")
    else:
        for name in chain.component_names:
            try:
                diagnostics[name] = chain_diagnostics(chain, name, max_lag=user_config['max_lag'])
            except NumericDegeneracy as e:
                logger.warning(f"Diagnostics unavailable for '{name}': {e}")
                diagnostics[name] = None

    summary = summarize_chain(chain, user_config['quantiles'], user_config['max_lag'])

    report = diagnose_chain(chain, min_ess_ratio=user_config['min_ess_ratio'])
    print_diagnostics(report)

    return {
        'chain': chain,
        'diagnostics': diagnostics,
        'summary': summary,
        'report': report,
        'config': user_config,
    }
