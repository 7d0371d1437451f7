"""
Built-in Gibbs Models - Conditional Samplers for Two-Block Posteriors

This module contains the model-specific full conditionals plugged into the
generic Gibbs engine, and registers them with the model registry:

- semiconjugate_normal: (theta, precision) for normal data under a normal
  prior on the mean and a gamma prior on the precision
- discrete_mixture: (component_index, location) for a finite mixture of
  normals, sampled through its component indicator

Each conditional is a pure fn(key, state, params) -> scalar.
"""

import numpy as np
import jax.numpy as jnp
import jax.random as random
import jax.scipy.stats as stats

from .error_handling import InvalidConfiguration, as_real
from .mcmc.types import ConditionalSpec, ModelParams
from .registry import register_model, list_models
from .reporting import mixture_density


def _collect_missing(data, keys):
    return [f"Missing required data key: '{k}'" for k in keys if k not in data]


def _real_array(data, key, errors):
    """data[key] as a float64 array, or None (with an error recorded) when it is not numeric."""
    try:
        return np.asarray(data[key], dtype=np.float64)
    except (TypeError, ValueError):
        errors.append(f"{key} must be numeric, got {data[key]!r}")
        return None


def _real_scalar(data, key, errors):
    value = as_real(data[key])
    if value is None:
        errors.append(f"{key} must be a real number, got {data[key]!r}")
    return value


# ============================================================================
# SEMICONJUGATE NORMAL - (theta, precision)
# ============================================================================

NORMAL_HYPERPARAMETERS = ('mu0', 'tau0_sq', 'sigma0_sq', 'nu0')


def validate_normal_data(data):
    """
    Validate data for the semiconjugate normal model.

    Data format:
        data['observations']: Sequence of real observations y_1..y_n
        data['mu0']: Prior mean of theta
        data['tau0_sq']: Prior variance of theta
        data['sigma0_sq']: Prior guess of the sampling variance
        data['nu0']: Prior degrees of freedom (pseudo-observations)
    """
    errors = _collect_missing(data, ('observations',) + NORMAL_HYPERPARAMETERS)

    y = _real_array(data, 'observations', errors) if 'observations' in data else None
    if y is not None:
        if y.ndim != 1:
            errors.append(f"observations must be 1-D, got shape {y.shape}")
        elif y.shape[0] < 2:
            errors.append(f"at least 2 observations are required, got {y.shape[0]}")
        elif not np.all(np.isfinite(y)):
            errors.append("observations must be finite")
        elif np.var(y) == 0.0:
            errors.append("observations have zero sample variance; initial precision is undefined")

    for key in NORMAL_HYPERPARAMETERS:
        if key not in data:
            continue
        value = _real_scalar(data, key, errors)
        if value is None:
            continue
        if key == 'mu0':
            if not np.isfinite(value):
                errors.append(f"mu0 must be finite, got {data['mu0']}")
        elif not value > 0.0:
            errors.append(f"{key} must be > 0, got {data[key]}")

    if errors:
        raise InvalidConfiguration("Invalid semiconjugate normal data:\n  " + "\n  ".join(errors))


def build_normal_params(data):
    """
    Sufficient statistics and hyperparameters for the normal model.

    Constants:
        mu0, tau0_sq, sigma0_sq, nu0: Prior hyperparameters
        n, ybar, s2: Sample size, mean and (n-1)-denominator variance
    """
    y = np.asarray(data['observations'], dtype=np.float64)
    constants = {key: float(data[key]) for key in NORMAL_HYPERPARAMETERS}
    constants['n'] = float(y.shape[0])
    constants['ybar'] = float(np.mean(y))
    constants['s2'] = float(np.var(y, ddof=1))
    return ModelParams(
        observations=jnp.asarray(y),
        constants={k: jnp.asarray(v, dtype=jnp.float64) for k, v in constants.items()},
    )


def normal_initial_state(params, data):
    """Start from the sample mean and the sample precision 1/s^2."""
    c = params.constants
    return {
        'theta': float(c['ybar']),
        'precision': 1.0 / float(c['s2']),
    }


def sample_theta(key, state, params):
    """
    theta | precision, y ~ Normal(mu_n, tau_n^2)

        tau_n^2 = 1 / (1/tau0^2 + n*phi)
        mu_n    = (mu0/tau0^2 + n*ybar*phi) * tau_n^2
    """
    c = params.constants
    phi = state['precision']
    posterior_precision = 1.0 / c['tau0_sq'] + c['n'] * phi
    tau_n_sq = 1.0 / posterior_precision
    mu_n = (c['mu0'] / c['tau0_sq'] + c['n'] * c['ybar'] * phi) * tau_n_sq
    draw = mu_n + jnp.sqrt(tau_n_sq) * random.normal(key)
    # A non-positive conditional variance is surfaced as NaN and rejected by the engine
    return jnp.where(tau_n_sq > 0, draw, jnp.nan)


def sample_precision(key, state, params):
    """
    precision | theta, y ~ Gamma(shape=nu_n/2, rate=nu_n*sigma_n^2/2)

        nu_n      = nu0 + n
        sigma_n^2 = (nu0*sigma0^2 + (n-1)*s^2 + n*(ybar-theta)^2) / nu_n

    Equivalently the variance 1/precision is inverse-gamma with the same
    shape and scale nu_n*sigma_n^2/2.
    """
    c = params.constants
    theta = state['theta']
    nu_n = c['nu0'] + c['n']
    sigma_n_sq = (c['nu0'] * c['sigma0_sq']
                  + (c['n'] - 1.0) * c['s2']
                  + c['n'] * (c['ybar'] - theta) ** 2) / nu_n
    rate = nu_n * sigma_n_sq / 2.0
    draw = random.gamma(key, nu_n / 2.0) / rate
    return jnp.where(rate > 0, draw, jnp.nan)


def normal_conditional_samplers():
    """theta is drawn first, then precision given the new theta."""
    return (
        ConditionalSpec('theta', sample_theta, requires=('precision',), label='theta | precision'),
        ConditionalSpec('precision', sample_precision, requires=('theta',), label='precision | theta'),
    )


# ============================================================================
# DISCRETE MIXTURE - (component_index, location)
# ============================================================================

def validate_mixture_data(data):
    """
    Validate data for the discrete mixture model.

    Data format:
        data['weights']: Prior component probabilities (renormalised)
        data['means']: Component means
        data['variances']: Component variances
        data['initial_location']: Optional starting location (default 0.0)
        data['initial_component']: Optional starting component, 0-based
            (default: the heaviest component)
    """
    errors = _collect_missing(data, ('weights', 'means', 'variances'))
    if errors:
        raise InvalidConfiguration("Invalid discrete mixture data:\n  " + "\n  ".join(errors))

    weights = _real_array(data, 'weights', errors)
    means = _real_array(data, 'means', errors)
    variances = _real_array(data, 'variances', errors)

    if weights is None or means is None or variances is None:
        pass  # non-numeric input already recorded
    elif weights.ndim != 1 or weights.shape[0] < 1:
        errors.append(f"weights must be a non-empty 1-D sequence, got shape {weights.shape}")
    elif not (means.shape == weights.shape and variances.shape == weights.shape):
        errors.append(
            f"weights, means and variances must have equal lengths, got "
            f"{weights.shape[0]}, {means.size}, {variances.size}"
        )
    else:
        if np.any(weights < 0) or not np.sum(weights) > 0:
            errors.append("weights must be >= 0 with a positive sum")
        if not np.all(variances > 0):
            errors.append("variances must be > 0")
        if not np.all(np.isfinite(means)):
            errors.append("means must be finite")
        if 'initial_component' in data:
            d = as_real(data['initial_component'])
            if d is None or not np.isfinite(d) or int(d) != d or not 0 <= int(d) < weights.shape[0]:
                errors.append(f"initial_component must be an index in [0, {weights.shape[0]}), "
                              f"got {data['initial_component']!r}")

    if 'initial_location' in data:
        location = _real_scalar(data, 'initial_location', errors)
        if location is not None and not np.isfinite(location):
            errors.append(f"initial_location must be finite, got {data['initial_location']}")

    if errors:
        raise InvalidConfiguration("Invalid discrete mixture data:\n  " + "\n  ".join(errors))


def build_mixture_params(data):
    """Renormalised weights, means and standard deviations; no observations."""
    weights = np.asarray(data['weights'], dtype=np.float64)
    constants = {
        'weights': weights / np.sum(weights),
        'means': np.asarray(data['means'], dtype=np.float64),
        'sds': np.sqrt(np.asarray(data['variances'], dtype=np.float64)),
    }
    return ModelParams(
        observations=None,
        constants={k: jnp.asarray(v) for k, v in constants.items()},
    )


def mixture_initial_state(params, data):
    weights = np.asarray(params.constants['weights'])
    return {
        'component_index': float(data.get('initial_component', int(np.argmax(weights)))),
        'location': float(data.get('initial_location', 0.0)),
    }


def sample_component(key, state, params):
    """
    component_index | location ~ Categorical(p), where
    p[d] is proportional to weight[d] * Normal_pdf(location; mean[d], sd[d]).
    """
    c = params.constants
    log_probs = jnp.log(c['weights']) + stats.norm.logpdf(state['location'], c['means'], c['sds'])
    # categorical works on unnormalised log-probabilities
    return random.categorical(key, log_probs)


def sample_location(key, state, params):
    """location | component_index ~ Normal(mean[d], sd[d])"""
    c = params.constants
    d = jnp.round(state['component_index']).astype(jnp.int32)
    return c['means'][d] + c['sds'][d] * random.normal(key)


def mixture_conditional_samplers():
    """The indicator is drawn first, then the location given the new indicator."""
    return (
        ConditionalSpec('component_index', sample_component, requires=('location',),
                        label='component_index | location'),
        ConditionalSpec('location', sample_location, requires=('component_index',),
                        label='location | component_index'),
    )


def mixture_analytic_density(x, data):
    """Closed-form marginal density of the location."""
    return mixture_density(x, data['weights'], data['means'], data['variances'])


# ============================================================================
# REGISTRATION
# ============================================================================

BUILTIN_MODELS = {
    'semiconjugate_normal': {
        'build_params': build_normal_params,
        'initial_state': normal_initial_state,
        'conditional_samplers': normal_conditional_samplers,
        'validate_params': validate_normal_data,
    },
    'discrete_mixture': {
        'build_params': build_mixture_params,
        'initial_state': mixture_initial_state,
        'conditional_samplers': mixture_conditional_samplers,
        'validate_params': validate_mixture_data,
        'analytic_density': mixture_analytic_density,
    },
}


def register_builtin_models():
    """Register the built-in models that are not registered yet."""
    registered = set(list_models())
    for name, config in BUILTIN_MODELS.items():
        if name not in registered:
            register_model(name, config)
