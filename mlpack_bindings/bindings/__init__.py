"""
mlpack binding layer.

Translates numpy arrays and Python scalars into mlpack's settings-registry
protocol and back:

- params:   options/result declarations (ParamKind, param, output)
- marshal:  numpy <-> Armadillo column-major conversion
- models:   opaque native model handles
- registry: the protocol, its lock and the in-memory backend
- native:   the ctypes backend over the C shim libraries
- program:  BindingProgram and the program catalog
- bridge:   backend selection and execution
"""

from mlpack_bindings.bindings.bridge import (
    BackendType,
    MLPackBridge,
    detect_registry,
    get_bridge,
    has_native_backend,
    reset_bridge,
    set_bridge,
)
from mlpack_bindings.bindings.marshal import NativeMatrix, from_native, to_native
from mlpack_bindings.bindings.models import ModelHandle, check_handle
from mlpack_bindings.bindings.params import (
    BindingOptions,
    BindingResult,
    DataWithInfo,
    ParamKind,
    ParamSpec,
    output,
    param,
)
from mlpack_bindings.bindings.program import (
    BindingMetrics,
    BindingProgram,
    define_program,
    get_program,
    list_families,
    list_programs,
    register_program,
)
from mlpack_bindings.bindings.registry import (
    CallSession,
    InMemoryRegistry,
    RegistryLock,
    SettingsRegistry,
)

__all__ = [
    # Params
    "ParamKind",
    "ParamSpec",
    "param",
    "output",
    "BindingOptions",
    "BindingResult",
    "DataWithInfo",
    # Marshaling
    "NativeMatrix",
    "to_native",
    "from_native",
    # Models
    "ModelHandle",
    "check_handle",
    # Registry
    "SettingsRegistry",
    "InMemoryRegistry",
    "RegistryLock",
    "CallSession",
    # Programs
    "BindingProgram",
    "BindingMetrics",
    "define_program",
    "register_program",
    "get_program",
    "list_programs",
    "list_families",
    # Bridge
    "BackendType",
    "MLPackBridge",
    "detect_registry",
    "get_bridge",
    "set_bridge",
    "reset_bridge",
    "has_native_backend",
]
