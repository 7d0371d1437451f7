"""
Posterior Reporting Utilities.

Summaries and reference densities consumed by plotting/reporting code:
- posterior_quantiles: Per-component quantiles of a chain
- summarize_chain / print_chain_summary: Mean, sd, quantiles, ESS per component
- grid_posterior: Brute-force grid approximation of the semiconjugate normal posterior
- mixture_density: Closed-form density of a finite normal mixture
- histogram_distance: Total-variation distance between draws and a density
"""

from typing import Any, Callable, Dict, Sequence

import jax.numpy as jnp
import jax.scipy.stats as stats
import numpy as np

from .error_handling import InvalidConfiguration, NumericDegeneracy


def posterior_quantiles(chain, quantiles: Sequence[float] = (0.025, 0.5, 0.975),
                        burn_in: int = 0) -> Dict[str, Dict[float, float]]:
    """
    Empirical quantiles of every chain component.

    Args:
        chain: Chain returned by run_gibbs
        quantiles: Probabilities in [0, 1]
        burn_in: Leading rows to drop before computing quantiles

    Returns:
        {component: {q: value}}
    """
    if not 0 <= burn_in < len(chain):
        raise InvalidConfiguration(f"burn_in must be in [0, {len(chain)}), got {burn_in}")
    for q in quantiles:
        if not 0.0 <= q <= 1.0:
            raise InvalidConfiguration(f"quantiles must lie in [0, 1], got {q}")

    result = {}
    for name in chain.component_names:
        values = np.quantile(chain.column(name)[burn_in:], quantiles)
        result[name] = {float(q): float(v) for q, v in zip(quantiles, values)}
    return result


def summarize_chain(chain, quantiles: Sequence[float] = (0.025, 0.5, 0.975),
                    max_lag: int = 50) -> Dict[str, Dict[str, Any]]:
    """
    Per-component posterior summary.

    ESS and lag-1 autocorrelation are None for components that are constant
    (or when the chain has a single row).

    Returns:
        {component: {'mean', 'sd', 'quantiles', 'ess', 'acf_lag1'}}
    """
    from .mcmc.diagnostics import chain_diagnostics

    table = posterior_quantiles(chain, quantiles)
    summary = {}
    for name in chain.component_names:
        column = chain.column(name)
        ess, lag1 = None, None
        if len(chain) >= 2:
            try:
                result = chain_diagnostics(chain, name, max_lag=max(1, min(max_lag, len(chain) - 1)))
                ess = result.ess
                lag1 = result.acf[1][1]
            except NumericDegeneracy:
                pass
        summary[name] = {
            'mean': float(np.mean(column)),
            'sd': float(np.std(column, ddof=1)) if len(column) > 1 else 0.0,
            'quantiles': table[name],
            'ess': ess,
            'acf_lag1': lag1,
        }
    return summary


def print_chain_summary(summary: Dict[str, Dict[str, Any]]) -> None:
    """Print the table produced by summarize_chain."""
    print(f"\n--- Posterior Summary ({len(summary)} components) ---")
    for name, stats_row in summary.items():
        q_text = "  ".join(f"{100 * q:g}%: {v:.4f}" for q, v in stats_row['quantiles'].items())
        ess_text = "N/A" if stats_row['ess'] is None else f"{stats_row['ess']:.1f}"
        print(f"  {name}: mean {stats_row['mean']:.4f}  sd {stats_row['sd']:.4f}  "
              f"{q_text}  ESS {ess_text}")


# ============================================================================
# REFERENCE DENSITIES
# ============================================================================

def grid_posterior(observations, mu0, tau0_sq, sigma0_sq, nu0,
                   theta_grid, precision_grid) -> Dict[str, np.ndarray]:
    """
    Discrete approximation of p(theta, precision | y) on a grid.

    Evaluates prior x likelihood at every grid point

        Normal(theta; mu0, tau0^2) * Gamma(precision; nu0/2, rate=nu0*sigma0^2/2)
            * prod_i Normal(y_i; theta, 1/precision)

    and normalises the result to sum to one.

    Returns:
        Dict with 'joint' (len(theta_grid), len(precision_grid)),
        'theta_marginal', 'precision_marginal', and the two grids
    """
    y = jnp.asarray(observations, dtype=jnp.float64)
    theta = jnp.asarray(theta_grid, dtype=jnp.float64)
    precision = jnp.asarray(precision_grid, dtype=jnp.float64)
    if theta.ndim != 1 or precision.ndim != 1 or theta.size < 1 or precision.size < 1:
        raise InvalidConfiguration("theta_grid and precision_grid must be non-empty 1-D sequences")
    if not bool(jnp.all(precision > 0)):
        raise InvalidConfiguration("precision_grid values must be > 0")

    log_prior_theta = stats.norm.logpdf(theta, mu0, jnp.sqrt(tau0_sq))
    log_prior_precision = stats.gamma.logpdf(precision, nu0 / 2.0, scale=2.0 / (nu0 * sigma0_sq))
    log_lik = jnp.sum(
        stats.norm.logpdf(y[:, None, None], theta[None, :, None], 1.0 / jnp.sqrt(precision)[None, None, :]),
        axis=0,
    )
    log_joint = log_prior_theta[:, None] + log_prior_precision[None, :] + log_lik

    joint = jnp.exp(log_joint - jnp.max(log_joint))
    total = jnp.sum(joint)
    if not bool(jnp.isfinite(total)) or not float(total) > 0:
        raise NumericDegeneracy("grid posterior could not be normalised")
    joint = np.asarray(joint / total)

    return {
        'joint': joint,
        'theta_marginal': joint.sum(axis=1),
        'precision_marginal': joint.sum(axis=0),
        'theta_grid': np.asarray(theta),
        'precision_grid': np.asarray(precision),
    }


def mixture_density(x, weights, means, variances) -> np.ndarray:
    """
    Density of sum_d w_d * Normal(mean_d, variance_d) at x (weights are renormalised).
    """
    w = jnp.asarray(weights, dtype=jnp.float64)
    w = w / jnp.sum(w)
    mu = jnp.asarray(means, dtype=jnp.float64)
    sd = jnp.sqrt(jnp.asarray(variances, dtype=jnp.float64))
    x = jnp.asarray(x, dtype=jnp.float64)
    dens = jnp.sum(w * stats.norm.pdf(x[..., None], mu, sd), axis=-1)
    return np.asarray(dens)


def histogram_distance(samples, density_fn: Callable, lower: float, upper: float,
                       bins: int = 60, points_per_bin: int = 16) -> float:
    """
    Total-variation distance between a sample histogram and a density on [lower, upper].

    Bin probabilities of the density are integrated with the trapezoid rule;
    sample bin probabilities are counts divided by the total number of draws.

    Returns:
        0.5 * sum_b |p_hist(b) - p_density(b)|
    """
    if not upper > lower or bins < 1:
        raise InvalidConfiguration("histogram_distance needs upper > lower and bins >= 1")
    samples = np.asarray(samples, dtype=np.float64)
    if samples.size == 0:
        raise InvalidConfiguration("samples must not be empty")

    edges = np.linspace(lower, upper, bins + 1)
    counts, _ = np.histogram(samples, bins=edges)
    p_hist = counts / samples.size

    p_density = np.empty(bins)
    for b in range(bins):
        grid = np.linspace(edges[b], edges[b + 1], points_per_bin + 1)
        dens = np.asarray(density_fn(grid), dtype=np.float64)
        p_density[b] = np.sum((dens[1:] + dens[:-1]) * np.diff(grid)) / 2.0

    return float(0.5 * np.sum(np.abs(p_hist - p_density)))
