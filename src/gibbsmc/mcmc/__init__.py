"""
MCMC Subpackage - Core Gibbs sampling implementation.

This package contains the core sampling and diagnostics logic:
- backend: Main entry points (run_gibbs, run_model)
- sampling: Single sweep and JIT-compiled scan over iterations
- config: Configuration and PRNG key generation
- diagnostics: Autocorrelation and effective sample size
- types: Core data structures (Chain, ModelParams, ConditionalSpec, DiagnosticResult)
- utils: Config defaults
"""

# Import types first (needed by other modules)
from .types import Chain, ModelParams, ConditionalSpec, DiagnosticResult

# Import main entry points
from .backend import run_gibbs, run_model

# Import commonly used functions
from .config import configure_run, gen_rng_keys
from .sampling import gibbs_sweep, sweep_key
from .diagnostics import (
    autocorrelation,
    effective_sample_size,
    integrated_autocorrelation_time,
    ess_trajectory,
    chain_diagnostics,
    print_diagnostic_summary,
)

__all__ = [
    # Main entry points
    'run_gibbs',
    'run_model',
    # Types
    'Chain',
    'ModelParams',
    'ConditionalSpec',
    'DiagnosticResult',
    # Config
    'configure_run',
    'gen_rng_keys',
    # Sampling
    'gibbs_sweep',
    'sweep_key',
    # Diagnostics
    'autocorrelation',
    'effective_sample_size',
    'integrated_autocorrelation_time',
    'ess_trajectory',
    'chain_diagnostics',
    'print_diagnostic_summary',
]
