"""
gibbsmc - Gibbs Sampling and Chain Diagnostics

Public API:
    Sampling:
        run_gibbs - Run a Gibbs chain from an initial state and conditional samplers
        run_model - Configure, run and diagnose a registered model
        gibbs_sweep - One Gibbs transition (row s-1 -> row s)
        sweep_key - Per-iteration PRNG key of a chain
        ConditionalSpec - Dataclass for one full-conditional draw
        ModelParams - Fixed observed data and constants
        Chain - Immutable sampled chain

    Diagnostics:
        autocorrelation - Sample ACF at lags 0..max_lag
        effective_sample_size - ESS with initial-positive-sequence truncation
        ess_trajectory - ESS on growing prefixes of a series
        chain_diagnostics - ACF + ESS for one chain component
        diagnose_chain - Issues/warnings report for a finished chain

    Models:
        register_model - Register a model
        get_model - Retrieve a registered model
        list_models - List all registered models
        Built-ins: 'semiconjugate_normal', 'discrete_mixture'

    Reporting & I/O:
        posterior_quantiles, summarize_chain, grid_posterior,
        mixture_density, histogram_distance,
        save_chain, load_chain, load_observations

    Errors:
        InvalidConfiguration - Malformed inputs (raised before sampling)
        NumericDegeneracy - Non-finite draws or degenerate series

Example:
    from gibbsmc import run_model

    results = run_model(
        {'model': 'semiconjugate_normal', 'n_iterations': 1000, 'rng_seed': 1},
        {'observations': [1.64, 1.70, 1.72, 1.74, 1.82, 1.82, 1.82, 1.90, 2.08],
         'mu0': 1.9, 'tau0_sq': 0.95 ** 2, 'sigma0_sq': 0.1, 'nu0': 1},
    )
    theta = results['chain'].column('theta')
"""
# CRITICAL: Import jax_config FIRST to set environment variables before JAX loads
from . import jax_config  # noqa: F401

from .error_handling import (
    GibbsError,
    InvalidConfiguration,
    NumericDegeneracy,
    diagnose_chain,
    print_diagnostics,
)
from .mcmc import (
    Chain,
    ModelParams,
    ConditionalSpec,
    DiagnosticResult,
    run_gibbs,
    run_model,
    gibbs_sweep,
    sweep_key,
    gen_rng_keys,
    autocorrelation,
    effective_sample_size,
    integrated_autocorrelation_time,
    ess_trajectory,
    chain_diagnostics,
    print_diagnostic_summary,
)
from .registry import register_model, get_model, list_models
from .models import register_builtin_models
from .reporting import (
    posterior_quantiles,
    summarize_chain,
    print_chain_summary,
    grid_posterior,
    mixture_density,
    histogram_distance,
)
from .chain_io import save_chain, load_chain, load_observations

register_builtin_models()

__all__ = [
    # Sampling
    'run_gibbs',
    'run_model',
    'gibbs_sweep',
    'sweep_key',
    'gen_rng_keys',
    'Chain',
    'ModelParams',
    'ConditionalSpec',
    'DiagnosticResult',
    # Diagnostics
    'autocorrelation',
    'effective_sample_size',
    'integrated_autocorrelation_time',
    'ess_trajectory',
    'chain_diagnostics',
    'print_diagnostic_summary',
    'diagnose_chain',
    'print_diagnostics',
    # Models
    'register_model',
    'get_model',
    'list_models',
    'register_builtin_models',
    # Reporting & I/O
    'posterior_quantiles',
    'summarize_chain',
    'print_chain_summary',
    'grid_posterior',
    'mixture_density',
    'histogram_distance',
    'save_chain',
    'load_chain',
    'load_observations',
    # Errors
    'GibbsError',
    'InvalidConfiguration',
    'NumericDegeneracy',
]
