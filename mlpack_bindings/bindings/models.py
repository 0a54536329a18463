"""
Opaque handles to trained native models.

A handle is the address of a model object living inside the native library,
tagged with its mlpack type (e.g. ``KNNModel``) and the backend that created
it. Handles are moved in and out of the settings registry with the
per-type symbols ``mlpackGet<Type>Ptr`` / ``mlpackSet<Type>Ptr``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from mlpack_bindings.core.error_handling import ModelHandleError


@dataclass(frozen=True)
class ModelHandle:
    """Immutable reference to a native model; compares by (model_type, address)."""
    model_type: str
    address: int
    backend: str = field(default="native", compare=False)

    @property
    def is_null(self) -> bool:
        return not self.address

    def __repr__(self) -> str:
        return f"ModelHandle({self.model_type}, 0x{self.address:x}, backend={self.backend})"


def model_symbols(model_type: str) -> Tuple[str, str]:
    """Getter and setter symbol names for a model type."""
    return f"mlpackGet{model_type}Ptr", f"mlpackSet{model_type}Ptr"


def check_handle(
    handle: ModelHandle,
    model_type: str,
    backend: Optional[str] = None,
    program: Optional[str] = None,
    param: Optional[str] = None,
) -> None:
    """
    Verify that ``handle`` can be handed to ``backend`` as a ``model_type``.

    Raises:
        ModelHandleError: wrong type, null address, or foreign backend.
    """
    if not isinstance(handle, ModelHandle):
        raise ModelHandleError(
            f"expected a {model_type} model handle, got {type(handle).__name__}", program, param
        )
    if handle.model_type != model_type:
        raise ModelHandleError(
            f"expected a {model_type} model handle, got {handle.model_type}", program, param
        )
    if handle.is_null:
        raise ModelHandleError("model handle is null", program, param)
    if backend is not None and handle.backend != backend:
        raise ModelHandleError(
            f"handle belongs to the {handle.backend} backend, not {backend}", program, param
        )
