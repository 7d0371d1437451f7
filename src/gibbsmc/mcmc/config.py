"""
Run Configuration and Initialization.

This module handles setting up and validating a Gibbs run:
- configure_run: Main configuration entry point
- gen_rng_keys: Generate JAX random keys

Configuration is split into two parts:
- user_config: Serializable config that can be saved/loaded without JAX
- model_context: JAX-dependent objects (params, initial state, samplers)

All config keys use lowercase with underscores (e.g., 'n_iterations', 'rng_seed').
"""

import jax
import jax.random as random
import numpy as np
from typing import Any, Dict, Tuple

from ..error_handling import validate_run_config
from ..registry import get_model, list_models
from .utils import clean_config

import logging
logger = logging.getLogger('gibbsmc')


def gen_rng_keys(rng_seed: int) -> Tuple[Any, Any]:
    """Generate JAX random keys from seed.

    Returns:
        (master_key, init_key): Tuple of JAX PRNGKeys
    """
    mkey = jax.random.PRNGKey(rng_seed)
    master_key, init_key = random.split(mkey, 2)
    return master_key, init_key


def configure_run(
    run_config: Dict[str, Any],
    data: Dict[str, Any]
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Configure a Gibbs run from config and data.

    Splits configuration into:
    - user_config: Serializable values (can be saved to disk without JAX)
    - model_context: ModelParams, initial state and conditional samplers

    Args:
        run_config: Input configuration dict with keys like 'model', 'n_iterations'
        data: Model data dict (observations, hyperparameters or mixture constants)

    Returns:
        user_config: Clean config dict with user values + derived values
        model_context: Dict with params, initial_state, conditional_samplers

    Raises:
        InvalidConfiguration: If the config or the model data is invalid
    """
    user_config = clean_config(run_config)
    validate_run_config(user_config, list_models())

    model = get_model(user_config['model'])
    if 'validate_params' in model:
        model['validate_params'](data)

    params = model['build_params'](data)
    initial_state = model['initial_state'](params, data)
    conditional_samplers = tuple(model['conditional_samplers']())

    user_config['component_names'] = tuple(initial_state.keys())
    user_config['n_components'] = len(initial_state)

    constants = {k: np.asarray(jax.device_get(v)).tolist() for k, v in params.constants.items()}
    logger.debug(f"Model '{user_config['model']}' constants: {constants}")

    model_context = {
        'params': params,
        'initial_state': initial_state,
        'conditional_samplers': conditional_samplers,
        'analytic_density': model.get('analytic_density'),
    }
    return user_config, model_context
