"""
JAX Configuration - MUST be imported before any JAX imports.

This module sets environment variables for JAX configuration including:
- 64-bit floats, so chains are reproducible to the last bit and the
  conditional-parameter algebra does not lose precision
- Persistent compilation cache directory
- Minimum compile time threshold for caching
"""
import os
from pathlib import Path

# --- DOUBLE PRECISION ---
os.environ.setdefault("JAX_ENABLE_X64", "1")

# --- PERSISTENT COMPILATION CACHE ---
# Enables cross-session caching of compiled sweep kernels
_JAX_CACHE_DIR = Path.home() / ".cache" / "jax" / "gibbsmc_cache"
_JAX_CACHE_DIR.mkdir(parents=True, exist_ok=True)
os.environ.setdefault("JAX_COMPILATION_CACHE_DIR", str(_JAX_CACHE_DIR))
os.environ.setdefault("JAX_PERSISTENT_CACHE_MIN_COMPILE_TIME_SECS", "1.0")

import jax  # noqa: E402

# The environment variable is ignored when JAX was imported before this module
jax.config.update("jax_enable_x64", os.environ["JAX_ENABLE_X64"] not in ("0", "false", "False"))
