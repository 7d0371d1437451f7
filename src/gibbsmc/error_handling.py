"""
Error Handling and Validation Utilities for the Gibbs Sampler

This module provides the exception taxonomy, input validation and chain
diagnosis tools:
- InvalidConfiguration: malformed inputs, raised before any sampling happens
- NumericDegeneracy: non-finite draws or degenerate series, never silent NaN
- validate_run_config / validate_sampler_inputs: collect-then-raise validators
- diagnose_chain / print_diagnostics: post-run health report
"""

from typing import Any, Dict, Mapping, Sequence

import numpy as np

import logging
logger = logging.getLogger('gibbsmc')


class GibbsError(Exception):
    """Base class for all errors raised by gibbsmc."""


class InvalidConfiguration(GibbsError, ValueError):
    """Malformed inputs: iteration counts, state shapes, lag parameters."""


class NumericDegeneracy(GibbsError, ArithmeticError):
    """A computation produced non-finite output or has a zero denominator."""


def _raise_if_errors(errors, header):
    if errors:
        raise InvalidConfiguration(header + ":\n  " + "\n  ".join(errors))


def as_real(value):
    """Return float(value), or None when value is not a real number."""
    if isinstance(value, (str, bytes)):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def validate_run_config(run_config: Dict[str, Any], available_models: Sequence[str]) -> None:
    """
    Validates that a run configuration is sensible.

    Args:
        run_config: Configuration dictionary (already passed through clean_config)
        available_models: Names of registered models

    Raises:
        InvalidConfiguration: If configuration is invalid
    """
    errors = []

    required_keys = ['model', 'n_iterations', 'rng_seed']
    for key in required_keys:
        if key not in run_config:
            errors.append(f"Missing required config key: '{key}'")

    if 'model' in run_config and run_config['model'] not in available_models:
        errors.append(f"Unknown model '{run_config['model']}'. Available: {list(available_models)}")

    if 'n_iterations' in run_config:
        n_iter = run_config['n_iterations']
        if isinstance(n_iter, bool) or not isinstance(n_iter, (int, np.integer)):
            errors.append(f"n_iterations must be an integer, got {type(n_iter).__name__}")
        elif n_iter < 1:
            errors.append(f"n_iterations must be >= 1, got {n_iter}")

    if 'rng_seed' in run_config:
        seed = run_config['rng_seed']
        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
            errors.append(f"rng_seed must be an integer, got {type(seed).__name__}")

    if 'max_lag' in run_config:
        max_lag = run_config['max_lag']
        if isinstance(max_lag, bool) or not isinstance(max_lag, (int, np.integer)):
            errors.append(f"max_lag must be an integer, got {type(max_lag).__name__}")
        elif max_lag < 0:
            errors.append(f"max_lag must be >= 0, got {max_lag}")

    for q in run_config.get('quantiles', ()):
        q_value = as_real(q)
        if q_value is None or not 0.0 <= q_value <= 1.0:
            errors.append(f"quantiles must be numbers in [0, 1], got {q!r}")

    if 'min_ess_ratio' in run_config:
        ratio = as_real(run_config['min_ess_ratio'])
        if ratio is None or not 0.0 <= ratio <= 1.0:
            errors.append(f"min_ess_ratio must be a number in [0, 1], got {run_config['min_ess_ratio']!r}")

    _raise_if_errors(errors, "Invalid run configuration")


def validate_sampler_inputs(initial_state: Mapping[str, Any], n_iterations: Any,
                            conditional_samplers: Sequence[Any]) -> None:
    """
    Validate the inputs of a Gibbs run before any sampling happens.

    Args:
        initial_state: Mapping of component name to scalar starting value
        n_iterations: Number of chain rows to produce (initial state included)
        conditional_samplers: Ordered ConditionalSpec sequence

    Raises:
        InvalidConfiguration: Listing every problem found
    """
    errors = []

    if isinstance(n_iterations, bool) or not isinstance(n_iterations, (int, np.integer)):
        errors.append(f"n_iterations must be an integer, got {type(n_iterations).__name__}")
    elif n_iterations < 1:
        errors.append(f"n_iterations must be >= 1, got {n_iterations}")

    if not initial_state:
        errors.append("initial_state must contain at least one component")
    else:
        for name, value in initial_state.items():
            if np.ndim(value) != 0:
                errors.append(f"initial_state['{name}'] must be a scalar, got shape {np.shape(value)}")
            elif as_real(value) is None:
                errors.append(f"initial_state['{name}'] must be a real number, got {value!r}")
            elif not np.isfinite(as_real(value)):
                errors.append(f"initial_state['{name}'] must be finite, got {value}")

    if not conditional_samplers:
        errors.append("At least one conditional sampler is required")

    names = set(initial_state or ())
    for spec in conditional_samplers or ():
        label = spec.label or spec.component
        if spec.component not in names:
            errors.append(
                f"Sampler '{label}' updates component '{spec.component}' "
                f"which is not in the state vector {sorted(names)}"
            )
        for required in spec.requires:
            if required not in names:
                errors.append(f"initial_state is missing component '{required}' required by sampler '{label}'")

    _raise_if_errors(errors, "Invalid Gibbs sampler inputs")


def diagnose_chain(chain, min_ess_ratio: float = 0.01, max_lag=None) -> Dict[str, Any]:
    """
    Analyzes a finished chain to identify common issues.

    A component whose effective sample size cannot be computed because the
    column is constant is reported as stuck rather than as a failure.

    Args:
        chain: Chain returned by run_gibbs
        min_ess_ratio: Warn when ESS / n_iterations falls below this ratio
        max_lag: Optional ESS truncation cap forwarded to effective_sample_size

    Returns:
        diagnostics: Dictionary with issues, warnings, info and per-component ESS
    """
    from .mcmc.diagnostics import effective_sample_size

    diagnostics = {
        'issues': [],
        'warnings': [],
        'info': [],
        'ess': {},
    }

    values = np.asarray(chain.values)
    if not np.all(np.isfinite(values)):
        diagnostics['issues'].append(
            "Chain contains NaN or Inf values - sampler became unstable"
        )

    n = len(chain)
    for name in chain.component_names:
        column = chain.column(name)
        if n < 2:
            continue
        if np.var(column) < 1e-10:
            diagnostics['warnings'].append(f"Component '{name}' appears stuck (near-zero variance)")
        try:
            ess = effective_sample_size(column, max_lag=max_lag)
        except NumericDegeneracy as e:
            diagnostics['ess'][name] = None
            diagnostics['info'].append(f"ESS for '{name}' unavailable: {e}")
            continue
        diagnostics['ess'][name] = ess
        if ess / n < min_ess_ratio:
            diagnostics['warnings'].append(
                f"Component '{name}' mixes poorly (ESS {ess:.1f} of {n} draws)"
            )

    diagnostics['info'].append(f"Total iterations: {n}")
    diagnostics['info'].append(f"Components: {', '.join(chain.component_names)}")

    return diagnostics


def print_diagnostics(diagnostics: Dict[str, Any]) -> None:
    """Pretty-print diagnostics from diagnose_chain."""
    if diagnostics['issues']:
        logger.error("[ERROR] ISSUES:")
        for issue in diagnostics['issues']:
            logger.error(f"  - {issue}")

    if diagnostics['warnings']:
        logger.warning("[WARN] WARNINGS:")
        for warning in diagnostics['warnings']:
            logger.warning(f"  - {warning}")

    if diagnostics['info']:
        logger.info("[INFO] INFO:")
        for info in diagnostics['info']:
            logger.info(f"  - {info}")

    if not diagnostics['issues'] and not diagnostics['warnings']:
        logger.info("[OK] No issues detected")
