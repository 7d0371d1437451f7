"""
Chain I/O utilities.

This module provides functions for:
- Saving a finished chain to disk for later reporting
- Loading a saved chain back into a read-only Chain
- Loading observed data from a plain text file
"""

from typing import Any, Dict, Optional, Tuple

import numpy as np
from pathlib import Path

from .error_handling import InvalidConfiguration
from .mcmc.types import Chain

import logging
logger = logging.getLogger('gibbsmc')


def _npz_path(filepath):
    """np.savez appends .npz to paths without it; resolve to the file actually written."""
    filepath = Path(filepath)
    if filepath.suffix != '.npz':
        filepath = filepath.with_name(filepath.name + '.npz')
    return filepath


def save_chain(filepath: str, chain: Chain, metadata: Optional[Dict[str, Any]] = None) -> None:
    """
    Save a chain to disk (.npz file).

    Args:
        filepath: Destination path (.npz is appended when missing)
        chain: Chain returned by run_gibbs
        metadata: Optional dict of additional metadata (e.g. the run config)

    Saves:
        - Chain values (n_iterations, n_components)
        - Component names
        - Metadata, if given
    """
    payload = {
        'values': np.asarray(chain.values),
        'component_names': np.array(chain.component_names),
    }
    if metadata:
        payload['metadata'] = metadata

    filepath = _npz_path(filepath)
    np.savez_compressed(filepath, **payload)
    logger.info(f"Chain saved to {filepath}")


def load_chain(filepath: str) -> Tuple[Chain, Dict[str, Any]]:
    """
    Load a chain saved by save_chain.

    Args:
        filepath: Path to chain file (.npz is appended when missing)

    Returns:
        (chain, metadata); metadata is an empty dict when none was saved
    """
    filepath = _npz_path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Chain file not found: {filepath}")

    # Use context manager to ensure NpzFile is closed after loading
    with np.load(filepath, allow_pickle=True) as data:
        values = data['values'].copy()
        names = tuple(str(n) for n in data['component_names'])
        metadata = data['metadata'].item() if 'metadata' in data else {}

    return Chain(values, names), metadata


def load_observations(filepath: str) -> np.ndarray:
    """
    Read real-valued observations from a text file.

    Values may be separated by whitespace, commas or newlines.

    Returns:
        1-D float64 array

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidConfiguration: If the file is empty or holds non-numeric tokens
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Observation file not found: {filepath}")

    tokens = filepath.read_text().replace(',', ' ').split()
    if not tokens:
        raise InvalidConfiguration(f"No observations found in {filepath}")
    try:
        values = np.array([float(t) for t in tokens], dtype=np.float64)
    except ValueError as e:
        raise InvalidConfiguration(f"Non-numeric observation in {filepath}: {e}") from e

    logger.debug(f"Loaded {values.size} observations from {filepath}")
    return values
