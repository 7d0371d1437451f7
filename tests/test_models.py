"""
Tests for the built-in models: full conditionals, data validation and
end-to-end posterior checks.

Run with: pytest tests/test_models.py -v
"""

import numpy as np
import jax
import jax.numpy as jnp
import jax.random as random
import pytest
from scipy import stats as scipy_stats

from gibbsmc import InvalidConfiguration, histogram_distance, mixture_density, run_model
from gibbsmc.models import (
    build_mixture_params,
    build_normal_params,
    mixture_initial_state,
    normal_initial_state,
    sample_component,
    sample_location,
    sample_precision,
    sample_theta,
    validate_mixture_data,
    validate_normal_data,
)

from conftest import make_state

N_DRAWS = 20000


def _draws(sample_fn, state, params, seed=0):
    """Many independent draws from one conditional at a fixed state."""
    keys = random.split(random.PRNGKey(seed), N_DRAWS)
    return np.asarray(jax.vmap(lambda k: sample_fn(k, state, params))(keys))


# ============================================================================
# SEMICONJUGATE NORMAL
# ============================================================================

class TestNormalConditionals:

    def test_params(self, normal_data):
        params = build_normal_params(normal_data)
        y = np.asarray(normal_data['observations'])
        c = params.constants
        assert float(c['n']) == 9.0
        assert float(c['ybar']) == pytest.approx(y.mean())
        assert float(c['s2']) == pytest.approx(np.var(y, ddof=1))
        np.testing.assert_array_equal(np.asarray(params.observations), y)

    def test_initial_state(self, normal_data):
        params = build_normal_params(normal_data)
        y = np.asarray(normal_data['observations'])
        state = normal_initial_state(params, normal_data)
        assert list(state) == ['theta', 'precision']
        assert state['theta'] == pytest.approx(y.mean())
        assert state['precision'] == pytest.approx(1.0 / np.var(y, ddof=1))

    def test_theta_conditional_moments(self, normal_data):
        params = build_normal_params(normal_data)
        y = np.asarray(normal_data['observations'])
        phi = 50.0
        tau_n_sq = 1.0 / (1.0 / normal_data['tau0_sq'] + len(y) * phi)
        mu_n = (normal_data['mu0'] / normal_data['tau0_sq'] + y.sum() * phi) * tau_n_sq

        draws = _draws(sample_theta, make_state({'theta': 0.0, 'precision': phi}), params)
        assert abs(draws.mean() - mu_n) < 5 * np.sqrt(tau_n_sq / N_DRAWS)
        assert draws.var() == pytest.approx(tau_n_sq, rel=0.05)

    def test_precision_conditional_distribution(self, normal_data):
        params = build_normal_params(normal_data)
        y = np.asarray(normal_data['observations'])
        theta = 1.75
        nu_n = normal_data['nu0'] + len(y)
        ss = normal_data['nu0'] * normal_data['sigma0_sq'] + np.sum((y - theta) ** 2)
        reference = scipy_stats.gamma(a=nu_n / 2.0, scale=2.0 / ss)

        draws = _draws(sample_precision, make_state({'theta': theta, 'precision': 1.0}), params)
        assert np.all(draws > 0)
        assert draws.mean() == pytest.approx(reference.mean(), rel=0.03)
        assert scipy_stats.kstest(draws, reference.cdf).pvalue > 1e-3

    def test_precision_ignores_previous_precision(self, normal_data):
        params = build_normal_params(normal_data)
        key = random.PRNGKey(3)
        a = sample_precision(key, make_state({'theta': 1.8, 'precision': 1.0}), params)
        b = sample_precision(key, make_state({'theta': 1.8, 'precision': 500.0}), params)
        assert float(a) == float(b)


class TestNormalValidation:

    def test_valid(self, normal_data):
        validate_normal_data(normal_data)

    @pytest.mark.parametrize("key", ['observations', 'mu0', 'tau0_sq', 'sigma0_sq', 'nu0'])
    def test_missing_key(self, normal_data, key):
        del normal_data[key]
        with pytest.raises(InvalidConfiguration, match=key):
            validate_normal_data(normal_data)

    @pytest.mark.parametrize("key", ['tau0_sq', 'sigma0_sq', 'nu0'])
    def test_non_positive_hyperparameter(self, normal_data, key):
        normal_data[key] = 0.0
        with pytest.raises(InvalidConfiguration, match=key):
            validate_normal_data(normal_data)

    @pytest.mark.parametrize("key, value", [
        ('mu0', 'abc'),
        ('tau0_sq', None),
        ('nu0', [1.0, 2.0]),
        ('observations', ['a', 'b', 'c']),
    ])
    def test_non_numeric_value(self, normal_data, key, value):
        normal_data[key] = value
        with pytest.raises(InvalidConfiguration, match=key):
            validate_normal_data(normal_data)

    def test_single_observation(self, normal_data):
        normal_data['observations'] = [1.7]
        with pytest.raises(InvalidConfiguration, match="at least 2"):
            validate_normal_data(normal_data)

    def test_identical_observations(self, normal_data):
        normal_data['observations'] = [1.7] * 5
        with pytest.raises(InvalidConfiguration, match="zero sample variance"):
            validate_normal_data(normal_data)

    def test_non_finite_observation(self, normal_data):
        normal_data['observations'] = [1.7, float('inf'), 1.8]
        with pytest.raises(InvalidConfiguration, match="finite"):
            validate_normal_data(normal_data)


class TestNormalPosterior:

    def test_interval_brackets_sample_mean(self, normal_data, rng_seed):
        results = run_model({'model': 'semiconjugate_normal', 'n_iterations': 1000,
                             'rng_seed': rng_seed}, normal_data)
        chain = results['chain']
        ybar = np.mean(normal_data['observations'])
        lower, upper = np.quantile(chain.column('theta'), [0.025, 0.975])
        assert lower < ybar < upper
        assert np.all(chain.column('precision') > 0)

    def test_midge_quantiles_bracket_sample_mean(self, normal_data):
        """mu0=1.9, tau0^2=0.95^2, sigma0^2=0.1, nu0=1 on the nine wing lengths."""
        assert normal_data['sigma0_sq'] == 0.1
        results = run_model({'n_iterations': 1000, 'rng_seed': 1,
                             'quantiles': (0.025, 0.5, 0.975)}, normal_data)
        band = results['summary']['theta']['quantiles']
        assert band[0.025] < 1.804 < band[0.975]
        assert band[0.025] < band[0.5] < band[0.975]

    def test_estimates_narrow_with_more_iterations(self, normal_data):
        """Posterior medians from independent seeds agree more closely on longer runs."""
        def median_spread(n_iterations):
            medians = [
                np.median(run_model({'n_iterations': n_iterations, 'rng_seed': seed},
                                    normal_data)['chain'].column('theta'))
                for seed in range(5)
            ]
            return np.ptp(medians)

        assert median_spread(10000) < median_spread(100)

    def test_nearly_independent_draws(self, normal_data, rng_seed):
        results = run_model({'n_iterations': 5000, 'rng_seed': rng_seed}, normal_data)
        assert results['diagnostics']['theta'].ess_ratio > 0.3


# ============================================================================
# DISCRETE MIXTURE
# ============================================================================

class TestMixtureConditionals:

    def test_params_renormalise_weights(self, mixture_data):
        mixture_data['weights'] = [9.0, 2.0, 9.0]
        params = build_mixture_params(mixture_data)
        np.testing.assert_allclose(np.asarray(params.constants['weights']), [0.45, 0.10, 0.45])
        np.testing.assert_allclose(np.asarray(params.constants['sds']), np.sqrt([1 / 3] * 3))
        assert params.observations is None

    def test_initial_state(self, mixture_data):
        params = build_mixture_params(mixture_data)
        assert mixture_initial_state(params, mixture_data) == {'component_index': 0.0, 'location': 0.0}
        mixture_data.update(initial_component=2, initial_location=1.5)
        assert mixture_initial_state(params, mixture_data) == {'component_index': 2.0, 'location': 1.5}

    def test_component_probabilities(self, mixture_data):
        params = build_mixture_params(mixture_data)
        location = 1.5
        unnormalised = np.array(mixture_data['weights']) * scipy_stats.norm.pdf(
            location, mixture_data['means'], np.sqrt(mixture_data['variances']))
        expected = unnormalised / unnormalised.sum()

        draws = _draws(sample_component, make_state({'component_index': 0.0, 'location': location}), params)
        frequencies = np.bincount(draws.astype(int), minlength=3) / N_DRAWS
        np.testing.assert_allclose(frequencies, expected, atol=0.015)

    def test_location_given_component(self, mixture_data):
        params = build_mixture_params(mixture_data)
        draws = _draws(sample_location, make_state({'component_index': 2.0, 'location': -3.0}), params)
        assert draws.mean() == pytest.approx(3.0, abs=0.02)
        assert draws.var() == pytest.approx(1.0 / 3.0, rel=0.05)


class TestMixtureValidation:

    def test_valid(self, mixture_data):
        validate_mixture_data(mixture_data)

    def test_mismatched_lengths(self, mixture_data):
        mixture_data['means'] = [0.0, 1.0]
        with pytest.raises(InvalidConfiguration, match="equal lengths"):
            validate_mixture_data(mixture_data)

    def test_negative_weight(self, mixture_data):
        mixture_data['weights'] = [0.5, -0.1, 0.6]
        with pytest.raises(InvalidConfiguration, match="weights"):
            validate_mixture_data(mixture_data)

    def test_zero_variance(self, mixture_data):
        mixture_data['variances'] = [1.0, 0.0, 1.0]
        with pytest.raises(InvalidConfiguration, match="variances"):
            validate_mixture_data(mixture_data)

    @pytest.mark.parametrize("component", [3, -1, 0.5])
    def test_bad_initial_component(self, mixture_data, component):
        mixture_data['initial_component'] = component
        with pytest.raises(InvalidConfiguration, match="initial_component"):
            validate_mixture_data(mixture_data)

    def test_non_numeric_arrays(self, mixture_data):
        mixture_data['weights'] = ['heavy', 'light', 'heavy']
        with pytest.raises(InvalidConfiguration, match="weights must be numeric"):
            validate_mixture_data(mixture_data)

    @pytest.mark.parametrize("key, value", [('initial_component', 'first'), ('initial_location', 'origin')])
    def test_non_numeric_initial_values(self, mixture_data, key, value):
        mixture_data[key] = value
        with pytest.raises(InvalidConfiguration, match=key):
            validate_mixture_data(mixture_data)

    def test_missing_key(self, mixture_data):
        del mixture_data['variances']
        with pytest.raises(InvalidConfiguration, match="variances"):
            validate_mixture_data(mixture_data)


class TestMixturePosterior:

    def test_location_matches_mixture_density(self, mixture_data, rng_seed):
        results = run_model({'model': 'discrete_mixture', 'n_iterations': 100000,
                             'rng_seed': rng_seed}, mixture_data)
        chain = results['chain']

        def density(x):
            return mixture_density(x, mixture_data['weights'], mixture_data['means'],
                                   mixture_data['variances'])

        assert histogram_distance(chain.column('location'), density, -6.0, 6.0) < 0.15
        assert set(np.unique(chain.column('component_index'))) == {0.0, 1.0, 2.0}
