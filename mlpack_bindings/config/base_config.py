"""
Configuration system for the mlpack bindings.

Features:
- Dataclass-based configuration with type hints
- YAML file loading with environment variable interpolation
- Environment variable overrides (MLPACK_BINDINGS_* prefix)
- XDG Base Directory compliant cache paths
- Thread-safe singleton
"""

from __future__ import annotations

import os
import re
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import (
    Any,
    ClassVar,
    Dict,
    List,
    Optional,
    Type,
    TypeVar,
    Union,
    get_type_hints,
)
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T", bound="BaseConfig")

ENV_PREFIX = "MLPACK_BINDINGS_"
CONFIG_FILE_ENV = "MLPACK_BINDINGS_CONFIG"
BACKENDS = ("auto", "native", "dry_run")

_config_instance: Optional["BindingsConfig"] = None
_config_lock = threading.Lock()


# ============================================================================
# DYNAMIC PATH RESOLUTION (XDG Compliant)
# ============================================================================

class PathResolver:
    """
    Path resolution with XDG compliance.

    Resolution order:
    1. Explicit environment variable
    2. $XDG_CACHE_HOME/mlpack-bindings (XDG_CACHE_HOME defaults to ~/.cache)
    """

    _cache: ClassVar[Dict[str, Path]] = {}

    @classmethod
    def resolve(cls, name: str, env_var: Optional[str] = None, subdir: str = "") -> Path:
        """
        Resolve a cache path.

        Args:
            name: Human-readable name for logging
            env_var: Environment variable to check first
            subdir: Subdirectory under base path

        Returns:
            Resolved absolute path
        """
        cache_key = f"{name}:{env_var}:{subdir}"
        if cache_key in cls._cache:
            return cls._cache[cache_key]

        env_value = os.environ.get(env_var) if env_var else None
        if env_value:
            path = Path(env_value).expanduser().resolve()
            logger.debug(f"[PathResolver] {name}: env {env_var} = {path}")
        else:
            path = cls._get_xdg_cache() / "mlpack-bindings"
            if subdir:
                path = path / subdir
            logger.debug(f"[PathResolver] {name}: XDG cache = {path}")

        cls._cache[cache_key] = path
        return path

    @staticmethod
    def _get_xdg_cache() -> Path:
        """Get the XDG cache base directory."""
        env_value = os.environ.get("XDG_CACHE_HOME")
        if env_value:
            return Path(env_value)
        return Path.home() / ".cache"

    @classmethod
    def clear_cache(cls) -> None:
        """Clear path resolution cache."""
        cls._cache.clear()


def resolve_path(name: str, env_var: Optional[str] = None, subdir: str = "") -> Path:
    """Convenience wrapper around PathResolver.resolve."""
    return PathResolver.resolve(name, env_var, subdir)


# ============================================================================
# INTERPOLATION AND COERCION
# ============================================================================

def _interpolate_env_vars(value: Any) -> Any:
    """
    Recursively interpolate environment variables in config values.

    Supports formats:
    - ${VAR_NAME} - Required, raises if not set
    - ${VAR_NAME:-default} - Optional with default
    - ${VAR_NAME:?error message} - Required with custom error
    """
    if isinstance(value, str):
        pattern = r"\$\{([A-Z_][A-Z0-9_]*)(?:(:-)([^}]*))?(?:(:\?)([^}]*))?\}"

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1)
            has_default = match.group(2) is not None
            default_value = match.group(3) or ""
            has_error = match.group(4) is not None
            error_msg = match.group(5) or f"Required environment variable {var_name} is not set"

            env_value = os.environ.get(var_name)

            if env_value is not None:
                return env_value
            elif has_default:
                return default_value
            elif has_error:
                raise ValueError(error_msg)
            else:
                if match.group(0) == value:
                    raise ValueError(f"Environment variable {var_name} is not set")
                return match.group(0)

        result = re.sub(pattern, replace_var, value)

        if result.startswith("~"):
            result = str(Path(result).expanduser())

        return result

    elif isinstance(value, dict):
        return {k: _interpolate_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [_interpolate_env_vars(item) for item in value]

    return value


def _coerce_type(value: Any, target_type: Any) -> Any:
    """Coerce a value to the target type."""
    if value is None:
        return None

    origin = getattr(target_type, "__origin__", None)

    # Optional[X]
    if origin is Union:
        args = target_type.__args__
        if type(None) in args:
            non_none_types = [t for t in args if t is not type(None)]
            if len(non_none_types) == 1:
                return _coerce_type(value, non_none_types[0])

    if target_type is Path:
        return Path(value).expanduser() if value else None

    # List[X]; strings are split on os.pathsep ("a:b" -> ["a", "b"])
    if origin is list:
        item_type = target_type.__args__[0] if target_type.__args__ else str
        if isinstance(value, str):
            value = [item for item in value.split(os.pathsep) if item]
        if isinstance(value, (list, tuple)):
            return [_coerce_type(item, item_type) for item in value]
        return [_coerce_type(value, item_type)]

    # bool("false") is True
    if target_type is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    if target_type is int:
        return int(float(value)) if value != "" else 0
    if target_type is float:
        return float(value) if value != "" else 0.0

    try:
        return target_type(value)
    except (TypeError, ValueError):
        return value


# ============================================================================
# BASE CONFIG
# ============================================================================

@dataclass
class BaseConfig:
    """
    Base configuration class with YAML loading and env var interpolation.
    """

    @classmethod
    def _field_types(cls) -> Dict[str, Any]:
        hints = get_type_hints(cls)
        return {name: hints[name] for name in cls.__dataclass_fields__}

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """Create config from dictionary with env var interpolation."""
        interpolated = _interpolate_env_vars(data)
        field_types = cls._field_types()

        filtered = {}
        for key, value in interpolated.items():
            if key in field_types:
                filtered[key] = _coerce_type(value, field_types[key])
            else:
                logger.debug(f"[Config] Ignoring unknown key {key!r} for {cls.__name__}")

        return cls(**filtered)

    @classmethod
    def from_yaml(cls: Type[T], path: Union[str, Path]) -> T:
        """Load config from YAML file with env var interpolation."""
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")

        return cls.from_dict(data)

    @classmethod
    def env_overrides(cls, prefix: str = ENV_PREFIX) -> Dict[str, str]:
        """Collect raw values for every field that has an environment variable set."""
        data = {}
        for name in cls.__dataclass_fields__:
            env_value = os.environ.get(f"{prefix}{name}".upper())
            if env_value is not None:
                data[name] = env_value
        return data

    @classmethod
    def from_env(cls: Type[T], prefix: str = ENV_PREFIX) -> T:
        """Create config entirely from environment variables."""
        data = cls.env_overrides(prefix)
        return cls.from_dict(data) if data else cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        result = {}
        for key, value in asdict(self).items():
            if isinstance(value, Path):
                result[key] = str(value)
            elif isinstance(value, list):
                result[key] = [str(v) if isinstance(v, Path) else v for v in value]
            else:
                result[key] = value
        return result

    def merge(self: T, other: Dict[str, Any]) -> T:
        """Create new config with overrides merged in."""
        current = self.to_dict()
        current.update(_interpolate_env_vars(other))
        return self.__class__.from_dict(current)


# ============================================================================
# BINDINGS CONFIG
# ============================================================================

@dataclass
class BindingsConfig(BaseConfig):
    """
    Configuration for native library discovery and the binding runtime.

    Every field can be overridden with MLPACK_BINDINGS_<FIELD>, e.g.
    MLPACK_BINDINGS_LIBRARY_DIRS=/opt/mlpack/lib:/usr/local/lib.
    """

    # "auto" | "native" | "dry_run"
    backend: str = "auto"

    # Native library discovery
    library_dirs: List[Path] = field(default_factory=list)
    library_prefix: str = "mlpack_go_"
    util_library: str = "go_util"

    # Protocol
    enable_timers: bool = True

    # Datasets
    data_dir: Path = field(
        default_factory=lambda: resolve_path(
            "datasets", env_var="MLPACK_BINDINGS_DATA_DIR",
            subdir="datasets",
        )
    )
    download_timeout: float = 60.0
    download_retries: int = 3

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(
                f"Unknown backend {self.backend!r}; expected one of {', '.join(BACKENDS)}"
            )
        if self.download_retries < 0:
            raise ValueError("download_retries must be >= 0")
        self.library_dirs = [Path(p).expanduser() for p in self.library_dirs]

    def library_name(self, program: str) -> str:
        """Name of the shim library for a program (without lib prefix / suffix)."""
        return f"{self.library_prefix}{program}"


def load_config(path: Optional[Union[str, Path]] = None) -> BindingsConfig:
    """
    Build a BindingsConfig from YAML (if given) with environment overrides on top.

    When ``path`` is None, MLPACK_BINDINGS_CONFIG is consulted.
    """
    path = path or os.environ.get(CONFIG_FILE_ENV)
    base = BindingsConfig.from_yaml(path) if path else BindingsConfig()

    overrides = BindingsConfig.env_overrides()
    if overrides:
        logger.debug(f"[Config] Environment overrides: {sorted(overrides)}")
        base = base.merge(overrides)

    return base


def get_config() -> BindingsConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = load_config()
    return _config_instance


def set_config(config: BindingsConfig) -> None:
    """Replace the process-wide configuration."""
    global _config_instance

    with _config_lock:
        _config_instance = config


def reset_config() -> None:
    """Forget the process-wide configuration (next get_config() reloads it)."""
    global _config_instance

    with _config_lock:
        _config_instance = None
    PathResolver.clear_cache()
