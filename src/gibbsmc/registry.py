"""
Model Registration System

This module provides a registry for Gibbs models that can be run by name.
A model bundles the functions that turn a data dict into ModelParams, an
initial state and the ordered conditional samplers. The built-in
'semiconjugate_normal' and 'discrete_mixture' models are registered when
gibbsmc is imported.

Example usage:
    from gibbsmc import register_model, ConditionalSpec

    register_model('my_model', {
        'build_params': my_build_params,
        'initial_state': my_initial_state,
        'conditional_samplers': lambda: (
            ConditionalSpec('a', sample_a, requires=('b',)),
            ConditionalSpec('b', sample_b, requires=('a',)),
        ),
    })
"""

_REGISTRY = {}


def register_model(name, config):
    """
    Register a Gibbs model.

    Args:
        name: Unique model identifier string (e.g., 'semiconjugate_normal')
        config: Dict containing model functions with keys:

            Required:
                build_params: fn(data) -> ModelParams
                    Converts a raw data dict into fixed model parameters.

                initial_state: fn(params, data) -> dict
                    Returns the starting state (component name -> scalar).
                    Its key order defines the chain's column order.

                conditional_samplers: fn() -> Sequence[ConditionalSpec]
                    Ordered full-conditional draws making up one sweep.

            Optional:
                validate_params: fn(data) -> None
                    Raises InvalidConfiguration on malformed data.

                analytic_density: fn(x, data) -> array
                    Closed-form target density of one component, for checks.

    Raises:
        ValueError: If required keys are missing or name is already registered.
    """
    if name in _REGISTRY:
        raise ValueError(f"Model '{name}' is already registered")

    required_keys = ['build_params', 'initial_state', 'conditional_samplers']
    missing = [k for k in required_keys if k not in config]
    if missing:
        raise ValueError(f"Missing required keys for model '{name}': {missing}")

    _REGISTRY[name] = config


def get_model(name):
    """
    Get a registered model configuration by name.

    Raises:
        KeyError: If the model is not registered
    """
    if name not in _REGISTRY:
        available = list(_REGISTRY.keys())
        raise KeyError(f"Unknown model '{name}'. Available: {available}")
    return _REGISTRY[name]


def list_models():
    """List all registered model names."""
    return list(_REGISTRY.keys())


def clear_registry():
    """
    Clear all registered models. Primarily for testing.
    """
    _REGISTRY.clear()
