"""
mlpack bindings - numpy front end for mlpack's command-line programs
"""

__version__ = "1.0.0"

from mlpack_bindings.bindings import (
    DataWithInfo,
    MLPackBridge,
    ModelHandle,
    get_bridge,
    get_program,
    list_programs,
)
from mlpack_bindings.config import BindingsConfig, get_config
from mlpack_bindings.core import MLPackBindingError

__all__ = [
    "DataWithInfo",
    "MLPackBridge",
    "ModelHandle",
    "get_bridge",
    "get_program",
    "list_programs",
    "BindingsConfig",
    "get_config",
    "MLPackBindingError",
    "__version__",
]
