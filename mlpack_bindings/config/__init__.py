"""
Configuration module for the mlpack bindings.

Provides dataclass-based configuration with:
- YAML file loading
- Environment variable interpolation and overrides
- Sensible defaults
"""

from mlpack_bindings.config.base_config import (
    BaseConfig,
    BindingsConfig,
    PathResolver,
    get_config,
    load_config,
    reset_config,
    resolve_path,
    set_config,
)

__all__ = [
    "BaseConfig",
    "BindingsConfig",
    "PathResolver",
    "resolve_path",
    "load_config",
    "get_config",
    "set_config",
    "reset_config",
]
