"""
Native Backend (ctypes)
=======================

Loads the mlpack C shim libraries and speaks the settings-registry protocol
over them:

- one utility library (``go_util`` by default) exporting the registry
  functions (mlpackSetParam*, mlpackToArma*, mlpackArmaPtr*, ...)
- one library per program (``mlpack_go_<program>``) exporting the entry
  point and the model getter/setter symbols

Library search order:
1. MLPACK_BINDINGS_LIB_PATH (explicit file path of the utility library)
2. config.library_dirs
3. The system loader (ctypes.util.find_library / LD_LIBRARY_PATH)
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from mlpack_bindings.bindings.marshal import NativeMatrix
from mlpack_bindings.bindings.models import ModelHandle, model_symbols
from mlpack_bindings.bindings.params import ParamKind
from mlpack_bindings.bindings.registry import RegistryLock, SettingsRegistry
from mlpack_bindings.config import BindingsConfig, get_config
from mlpack_bindings.core.error_handling import LibraryNotFoundError, SymbolNotFoundError

logger = logging.getLogger(__name__)

LIB_PATH_ENV = "MLPACK_BINDINGS_LIB_PATH"

# The native registry is a process-wide singleton, so every CtypesRegistry
# shares one lock.
_NATIVE_LOCK = RegistryLock()

_c_double_p = ctypes.POINTER(ctypes.c_double)
_c_bool_p = ctypes.POINTER(ctypes.c_bool)
_c_longlong_p = ctypes.POINTER(ctypes.c_longlong)
_c_int_p = ctypes.POINTER(ctypes.c_int)

# Armadillo type suffix used in the utility symbol names.
_ARMA_SUFFIX = {
    ParamKind.MATRIX: "Mat",
    ParamKind.UMATRIX: "Umat",
    ParamKind.ROW: "Row",
    ParamKind.UROW: "Urow",
    ParamKind.COL: "Col",
    ParamKind.UCOL: "Ucol",
    ParamKind.MATRIX_WITH_INFO: "Mat",
}


def camel_case(name: str) -> str:
    """``preprocess_split`` -> ``PreprocessSplit``."""
    return "".join(part[:1].upper() + part[1:] for part in name.split("_") if part)


def entry_point_names(program: str) -> List[str]:
    """Candidate entry point symbols, e.g. ``mlpackknn`` then ``mlpackKnn``."""
    names = [f"mlpack{program}", f"mlpack{camel_case(program)}"]
    return list(dict.fromkeys(names))


# =============================================================================
# LIBRARY LOADING
# =============================================================================


class LibraryLoader:
    """Locates and caches the shim libraries."""

    def __init__(self, config: Optional[BindingsConfig] = None):
        self.config = config or get_config()
        self._cache: Dict[str, ctypes.CDLL] = {}
        self._lock = threading.Lock()

    @staticmethod
    def file_names(name: str) -> List[str]:
        if sys.platform == "darwin":
            return [f"lib{name}.dylib", f"lib{name}.so"]
        if sys.platform.startswith("win"):
            return [f"{name}.dll", f"lib{name}.dll"]
        return [f"lib{name}.so"]

    def candidates(self, name: str) -> List[Path]:
        paths: List[Path] = []
        if name == self.config.util_library and os.environ.get(LIB_PATH_ENV):
            paths.append(Path(os.environ[LIB_PATH_ENV]).expanduser())
        for directory in self.config.library_dirs:
            for file_name in self.file_names(name):
                paths.append(Path(directory) / file_name)
        return paths

    def load(self, name: str) -> ctypes.CDLL:
        """
        Load a library by base name (``go_util``, ``mlpack_go_knn``).

        Raises:
            LibraryNotFoundError: if no candidate could be loaded.
        """
        with self._lock:
            if name in self._cache:
                return self._cache[name]

            searched: List[str] = []
            for lib_path in self.candidates(name):
                searched.append(str(lib_path))
                if not lib_path.exists():
                    continue
                try:
                    lib = ctypes.CDLL(str(lib_path))
                    logger.info(f"Loaded {name} via ctypes: {lib_path}")
                    self._cache[name] = lib
                    return lib
                except OSError as e:
                    logger.debug(f"Failed to load {lib_path}: {e}")

            found = ctypes.util.find_library(name)
            searched.append(f"system:{name}")
            if found:
                try:
                    lib = ctypes.CDLL(found)
                    logger.info(f"Loaded {name} via ctypes: {found}")
                    self._cache[name] = lib
                    return lib
                except OSError as e:
                    logger.debug(f"Failed to load {found}: {e}")

            raise LibraryNotFoundError(name, searched)

    def function(
        self,
        library: str,
        symbol: str,
        restype: Any = None,
        argtypes: Optional[Sequence[Any]] = None,
    ) -> Any:
        """
        Resolve a function and set its prototype.

        Raises:
            SymbolNotFoundError: if the library does not export ``symbol``.
        """
        lib = self.load(library)
        try:
            fn = getattr(lib, symbol)
        except AttributeError as e:
            raise SymbolNotFoundError(library, symbol) from e
        fn.restype = restype
        if argtypes is not None:
            fn.argtypes = list(argtypes)
        return fn


# =============================================================================
# CTYPES REGISTRY
# =============================================================================


class CtypesRegistry(SettingsRegistry):
    """The settings registry protocol over the native shim libraries."""

    backend = "native"

    def __init__(
        self,
        config: Optional[BindingsConfig] = None,
        loader: Optional[LibraryLoader] = None,
    ):
        super().__init__(_NATIVE_LOCK)
        self.config = config or get_config()
        self.loader = loader or LibraryLoader(self.config)
        self._fns: Dict[Tuple[str, str], Any] = {}
        # fail early if the utility library is missing
        self.loader.load(self.config.util_library)

    def _util(self, symbol: str, restype: Any = None, argtypes: Optional[Sequence[Any]] = None) -> Any:
        return self._fn(self.config.util_library, symbol, restype, argtypes)

    def _fn(self, library: str, symbol: str, restype: Any, argtypes: Optional[Sequence[Any]]) -> Any:
        key = (library, symbol)
        fn = self._fns.get(key)
        if fn is None:
            fn = self.loader.function(library, symbol, restype, argtypes)
            self._fns[key] = fn
        return fn

    @staticmethod
    def _b(name: str) -> bytes:
        return name.encode("utf-8")

    # --- session control -----------------------------------------------------

    def reset_timers(self) -> None:
        self._util("mlpackResetTimers", None, [])()

    def enable_timers(self) -> None:
        self._util("mlpackEnableTimers", None, [])()

    def disable_backtrace(self) -> None:
        self._util("mlpackDisableBacktrace", None, [])()

    def disable_verbose(self) -> None:
        self._util("mlpackDisableVerbose", None, [])()

    def enable_verbose(self) -> None:
        self._util("mlpackEnableVerbose", None, [])()

    def restore_settings(self, title: str) -> None:
        self._util("mlpackRestoreSettings", None, [ctypes.c_char_p])(self._b(title))

    def clear_settings(self) -> None:
        self._util("mlpackClearSettings", None, [])()

    def set_passed(self, name: str) -> None:
        self._util("mlpackSetPassed", None, [ctypes.c_char_p])(self._b(name))

    def has_param(self, name: str) -> bool:
        fn = self._util("mlpackHasParam", ctypes.c_bool, [ctypes.c_char_p])
        return bool(fn(self._b(name)))

    # --- scalars and vectors -------------------------------------------------

    def set_bool(self, name: str, value: bool) -> None:
        fn = self._util("mlpackSetParamBool", None, [ctypes.c_char_p, ctypes.c_bool])
        fn(self._b(name), bool(value))

    def set_int(self, name: str, value: int) -> None:
        fn = self._util("mlpackSetParamInt", None, [ctypes.c_char_p, ctypes.c_int])
        fn(self._b(name), int(value))

    def set_double(self, name: str, value: float) -> None:
        fn = self._util("mlpackSetParamDouble", None, [ctypes.c_char_p, ctypes.c_double])
        fn(self._b(name), float(value))

    def set_string(self, name: str, value: str) -> None:
        fn = self._util("mlpackSetParamString", None, [ctypes.c_char_p, ctypes.c_char_p])
        fn(self._b(name), self._b(value))

    def set_vec_int(self, name: str, values: Sequence[int]) -> None:
        fn = self._util(
            "mlpackSetParamVectorInt", None,
            [ctypes.c_char_p, _c_longlong_p, ctypes.c_size_t],
        )
        buf = (ctypes.c_longlong * len(values))(*values)
        fn(self._b(name), buf, len(values))

    def set_vec_string(self, name: str, values: Sequence[str]) -> None:
        set_len = self._util("mlpackSetParamVectorStrLen", None, [ctypes.c_char_p, ctypes.c_size_t])
        set_str = self._util(
            "mlpackSetParamVectorStr", None,
            [ctypes.c_char_p, ctypes.c_char_p, ctypes.c_int],
        )
        set_len(self._b(name), len(values))
        for i, value in enumerate(values):
            set_str(self._b(name), self._b(value), i)

    def get_bool(self, name: str) -> bool:
        return bool(self._util("mlpackGetParamBool", ctypes.c_bool, [ctypes.c_char_p])(self._b(name)))

    def get_int(self, name: str) -> int:
        return int(self._util("mlpackGetParamInt", ctypes.c_int, [ctypes.c_char_p])(self._b(name)))

    def get_double(self, name: str) -> float:
        return float(self._util("mlpackGetParamDouble", ctypes.c_double, [ctypes.c_char_p])(self._b(name)))

    def get_string(self, name: str) -> str:
        raw = self._util("mlpackGetParamString", ctypes.c_char_p, [ctypes.c_char_p])(self._b(name))
        return raw.decode("utf-8") if raw else ""

    def get_vec_int(self, name: str) -> List[int]:
        size = self._util("mlpackVecIntSize", ctypes.c_int, [ctypes.c_char_p])(self._b(name))
        if size <= 0:
            return []
        ptr = self._util("mlpackGetVecIntPtr", _c_int_p, [ctypes.c_char_p])(self._b(name))
        return [int(ptr[i]) for i in range(size)]

    def get_vec_string(self, name: str) -> List[str]:
        size = self._util("mlpackVecStringSize", ctypes.c_int, [ctypes.c_char_p])(self._b(name))
        get = self._util("mlpackGetVecStringPtr", ctypes.c_char_p, [ctypes.c_char_p, ctypes.c_int])
        return [(get(self._b(name), i) or b"").decode("utf-8") for i in range(max(size, 0))]

    # --- matrices and models -------------------------------------------------

    def set_matrix(self, name: str, matrix: NativeMatrix) -> None:
        data = matrix.data.ctypes.data_as(_c_double_p)
        kind = matrix.kind

        if kind is ParamKind.MATRIX_WITH_INFO:
            fn = self._util(
                "mlpackToArmaMatWithInfo", None,
                [ctypes.c_char_p, _c_bool_p, _c_double_p, ctypes.c_size_t, ctypes.c_size_t],
            )
            dims = matrix.dimensions.ctypes.data_as(_c_bool_p)
            fn(self._b(name), dims, data, matrix.n_rows, matrix.n_cols)
            return

        suffix = _ARMA_SUFFIX[kind]
        if kind.is_two_dimensional:
            fn = self._util(
                f"mlpackToArma{suffix}", None,
                [ctypes.c_char_p, _c_double_p, ctypes.c_size_t, ctypes.c_size_t],
            )
            fn(self._b(name), data, matrix.n_rows, matrix.n_cols)
        else:
            fn = self._util(
                f"mlpackToArma{suffix}", None,
                [ctypes.c_char_p, _c_double_p, ctypes.c_size_t],
            )
            fn(self._b(name), data, matrix.n_elem)

    def get_matrix(self, name: str, kind: ParamKind) -> Optional[NativeMatrix]:
        suffix = _ARMA_SUFFIX[kind]
        bname = self._b(name)

        if kind.is_two_dimensional:
            n_rows = int(self._util(f"mlpackNumRow{suffix}", ctypes.c_int, [ctypes.c_char_p])(bname))
            n_cols = int(self._util(f"mlpackNumCol{suffix}", ctypes.c_int, [ctypes.c_char_p])(bname))
        else:
            n_elem = int(self._util(f"mlpackNumElem{suffix}", ctypes.c_int, [ctypes.c_char_p])(bname))
            if kind in (ParamKind.ROW, ParamKind.UROW):
                n_rows, n_cols = 1, n_elem
            else:
                n_rows, n_cols = n_elem, 1

        if n_rows * n_cols == 0:
            return None

        ptr = self._util(f"mlpackArmaPtr{suffix}", _c_double_p, [ctypes.c_char_p])(bname)
        if not ptr:
            return None

        data = np.ctypeslib.as_array(ptr, shape=(n_rows * n_cols,))
        return NativeMatrix(data=data, n_rows=n_rows, n_cols=n_cols, kind=kind)

    def set_model(self, program: str, name: str, handle: ModelHandle) -> None:
        _, setter = model_symbols(handle.model_type)
        fn = self._fn(
            self.config.library_name(program), setter,
            None, [ctypes.c_char_p, ctypes.c_void_p],
        )
        fn(self._b(name), ctypes.c_void_p(handle.address))

    def get_model(self, program: str, name: str, model_type: str) -> Optional[ModelHandle]:
        getter, _ = model_symbols(model_type)
        fn = self._fn(self.config.library_name(program), getter, ctypes.c_void_p, [ctypes.c_char_p])
        address = fn(self._b(name))
        if not address:
            return None
        return ModelHandle(model_type, int(address), self.backend)

    # --- execution -----------------------------------------------------------

    def entry_point(self, program: str) -> Any:
        library = self.config.library_name(program)
        for symbol in entry_point_names(program):
            try:
                return self._fn(library, symbol, None, [])
            except SymbolNotFoundError:
                continue
        raise SymbolNotFoundError(library, " | ".join(entry_point_names(program)))

    def call(self, program: str) -> None:
        self.entry_point(program)()

    def version(self) -> Optional[str]:
        try:
            raw = self._util("mlpackVersion", ctypes.c_char_p, [])()
        except SymbolNotFoundError:
            return None
        return raw.decode("utf-8") if raw else None
