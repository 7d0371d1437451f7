def clean_config(run_config):
    """
    Cleans the run config and sets defaults.
    All config keys use lowercase with underscores.
    """
    run_config = dict(run_config)

    # Define Defaults and retrieve values from dictionary (all lowercase)
    run_config.setdefault('model', 'semiconjugate_normal')
    run_config.setdefault('n_iterations', 1000)
    run_config.setdefault('rng_seed', 42)
    run_config.setdefault('max_lag', 50)
    run_config.setdefault('quantiles', (0.025, 0.5, 0.975))
    run_config.setdefault('min_ess_ratio', 0.01)

    run_config['quantiles'] = tuple(run_config['quantiles'])

    return run_config
