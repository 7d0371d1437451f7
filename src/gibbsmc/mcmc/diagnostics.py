"""
MCMC Diagnostics.

Statistical-efficiency diagnostics for a single scalar chain component:
- autocorrelation: Sample ACF at lags 0..max_lag
- effective_sample_size: ESS with Geyer initial-positive-sequence truncation
- integrated_autocorrelation_time: The tau that ESS divides by
- ess_trajectory: ESS on growing prefixes of a series
- chain_diagnostics: ACF + ESS bundle for one chain component
- print_diagnostic_summary: Print ESS statistics for every component

All functions are pure and work on any prefix of a chain column.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import jax.numpy as jnp
import numpy as np

from ..error_handling import InvalidConfiguration, NumericDegeneracy
from .types import Chain, DiagnosticResult


def _as_series(series) -> np.ndarray:
    """Validate a scalar series and return it as a float64 array."""
    x = np.asarray(series, dtype=np.float64)
    if x.ndim != 1:
        raise InvalidConfiguration(f"series must be 1-D, got shape {x.shape}")
    if x.shape[0] < 2:
        raise InvalidConfiguration(f"series must have at least 2 points, got {x.shape[0]}")
    if not np.all(np.isfinite(x)):
        raise NumericDegeneracy("series contains NaN or Inf values")
    if np.all(x == x[0]):
        raise NumericDegeneracy(
            f"series is constant (value {x[0]}); autocorrelation denominator is zero"
        )
    return x


def _check_max_lag(max_lag, n):
    if isinstance(max_lag, bool) or not isinstance(max_lag, (int, np.integer)):
        raise InvalidConfiguration(f"max_lag must be an integer, got {type(max_lag).__name__}")
    if max_lag < 0:
        raise InvalidConfiguration(f"max_lag must be >= 0, got {max_lag}")
    if max_lag >= n:
        raise InvalidConfiguration(f"max_lag ({max_lag}) must be < series length ({n})")


def _acf_values(x: np.ndarray, max_lag: int) -> np.ndarray:
    """
    Sample autocorrelation at lags 0..max_lag via zero-padded FFT.

    The lag-k sum runs over t = 0..S-k-1 and is normalised by the lag-0 sum,
    both centred on the mean of the full series.
    """
    n = x.shape[0]
    centred = jnp.asarray(x - x.mean())

    # Zero-pad to >= 2n so the circular correlation equals the linear one
    n_fft = 1 << (2 * n - 1).bit_length()
    spectrum = jnp.fft.rfft(centred, n=n_fft)
    autocov = jnp.fft.irfft(spectrum * jnp.conj(spectrum), n=n_fft)[:max_lag + 1]
    autocov = np.asarray(autocov)

    if not autocov[0] > 0.0:
        raise NumericDegeneracy("autocorrelation denominator is zero")
    acf = autocov / autocov[0]
    acf[0] = 1.0
    return acf


def autocorrelation(series, max_lag: int) -> List[Tuple[int, float]]:
    """
    Sample autocorrelation function of a scalar series.

    acf(k) = sum_{t=1}^{S-k} (x_t - xbar)(x_{t+k} - xbar) / sum_{t=1}^{S} (x_t - xbar)^2

    Args:
        series: 1-D sequence of draws (a chain column or any prefix of one)
        max_lag: Largest lag to report (0 <= max_lag < len(series))

    Returns:
        [(lag, acf(lag)), ...] for lag = 0..max_lag; acf(0) is exactly 1.0

    Raises:
        InvalidConfiguration: Fewer than 2 points, or max_lag out of range
        NumericDegeneracy: Constant or non-finite series
    """
    x = _as_series(series)
    _check_max_lag(max_lag, x.shape[0])
    acf = _acf_values(x, max_lag)
    return [(lag, float(value)) for lag, value in enumerate(acf)]


def integrated_autocorrelation_time(series, max_lag: Optional[int] = None) -> float:
    """
    Integrated autocorrelation time tau = 1 + 2 * sum_{k=1}^{K} acf(k).

    Truncation (Geyer's initial positive sequence): lags are grouped in pairs
    Gamma_m = acf(2m) + acf(2m+1), and pairs are summed while Gamma_m > 0.
    The sum stops at the first non-positive pair. K never exceeds max_lag
    (default: len(series) - 1). tau is floored at 1, so ESS never exceeds
    the number of draws.

    Args:
        series: 1-D sequence of draws
        max_lag: Optional cap on the truncation lag

    Returns:
        tau >= 1
    """
    return _truncated_tau(_as_series(series), max_lag)


def _truncated_tau(x: np.ndarray, max_lag: Optional[int]) -> float:
    n = x.shape[0]
    if max_lag is None:
        max_lag = n - 1
    _check_max_lag(max_lag, n)

    acf = _acf_values(x, max_lag)
    n_pairs = (max_lag + 1) // 2
    pair_sums = acf[:2 * n_pairs].reshape(n_pairs, 2).sum(axis=1)

    non_positive = np.flatnonzero(pair_sums <= 0.0)
    n_kept = non_positive[0] if non_positive.size else n_pairs

    tau = -1.0 + 2.0 * float(np.sum(pair_sums[:n_kept]))
    return max(tau, 1.0)


def effective_sample_size(series, max_lag: Optional[int] = None) -> float:
    """
    Effective sample size ESS = S / tau.

    See integrated_autocorrelation_time for the truncation rule. An
    uncorrelated series (acf(k) = 0 for every k > 0) gives exactly S.

    Args:
        series: 1-D sequence of draws (a chain column or any prefix of one)
        max_lag: Optional cap on the truncation lag

    Returns:
        ESS with 0 < ESS <= S

    Raises:
        InvalidConfiguration: Fewer than 2 points, or max_lag out of range
        NumericDegeneracy: Constant or non-finite series
    """
    x = _as_series(series)
    return x.shape[0] / _truncated_tau(x, max_lag)


def ess_trajectory(series, checkpoints: Iterable[int],
                   max_lag: Optional[int] = None) -> List[Tuple[int, float]]:
    """
    ESS evaluated on growing prefixes of a series.

    Args:
        series: 1-D sequence of draws
        checkpoints: Prefix lengths to evaluate (each in [2, len(series)])
        max_lag: Optional truncation cap, clipped to each prefix length

    Returns:
        [(prefix_length, ESS), ...] in the order given
    """
    x = np.asarray(series, dtype=np.float64)
    trajectory = []
    for n in checkpoints:
        if not 2 <= n <= x.shape[0]:
            raise InvalidConfiguration(f"checkpoint must be in [2, {x.shape[0]}], got {n}")
        lag = None if max_lag is None else min(max_lag, n - 1)
        trajectory.append((int(n), effective_sample_size(x[:n], max_lag=lag)))
    return trajectory


def chain_diagnostics(chain: Chain, component: str, max_lag: int = 50) -> DiagnosticResult:
    """
    ACF and ESS of one chain component.

    max_lag only bounds the reported ACF; ESS uses the full truncation range.

    Args:
        chain: Chain returned by run_gibbs (or a prefix of one)
        component: Component name
        max_lag: Largest ACF lag to report, clipped to len(chain) - 1

    Returns:
        DiagnosticResult
    """
    column = chain.column(component)
    lag = min(max_lag, len(chain) - 1)
    return DiagnosticResult(
        component=component,
        n_samples=len(chain),
        acf=tuple(autocorrelation(column, lag)),
        ess=effective_sample_size(column),
    )


def print_diagnostic_summary(results: Sequence[Optional[DiagnosticResult]],
                             names: Optional[Sequence[str]] = None) -> None:
    """
    Print ESS and lag-1 autocorrelation for each component.

    Args:
        results: DiagnosticResult per component (None when it could not be computed)
        names: Component names, required to label None entries
    """
    names = names or [r.component for r in results]
    print(f"\n--- Chain Diagnostics ({len(results)} components) ---")
    for name, result in zip(names, results):
        if result is None:
            print(f"  {name}: N/A (constant or degenerate series)")
            continue
        lag1 = result.acf[1][1] if len(result.acf) > 1 else float('nan')
        print(f"  {name}: ESS {result.ess:.1f} / {result.n_samples} "
              f"({result.ess_ratio:.1%})  acf(1) = {lag1:.3f}")
        if result.ess_ratio < 0.01:
            print(f"  WARNING: '{name}' has ESS below 1% of draws - chain mixes poorly")
