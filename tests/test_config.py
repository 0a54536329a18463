"""Tests for BindingsConfig loading and overrides."""

from pathlib import Path

import pytest


class TestBindingsConfig:
    """Verify defaults, validation and helpers."""

    def test_defaults(self):
        from mlpack_bindings.config import BindingsConfig

        config = BindingsConfig()
        assert config.backend == "auto"
        assert config.library_prefix == "mlpack_go_"
        assert config.util_library == "go_util"
        assert config.enable_timers is True
        assert config.download_retries == 3

    def test_library_name(self):
        from mlpack_bindings.config import BindingsConfig

        assert BindingsConfig().library_name("knn") == "mlpack_go_knn"

    def test_invalid_backend(self):
        from mlpack_bindings.config import BindingsConfig

        with pytest.raises(ValueError, match="Unknown backend"):
            BindingsConfig(backend="cuda")

    def test_negative_retries(self):
        from mlpack_bindings.config import BindingsConfig

        with pytest.raises(ValueError):
            BindingsConfig(download_retries=-1)

    def test_data_dir_from_env(self, tmp_path):
        from mlpack_bindings.config import BindingsConfig

        assert BindingsConfig().data_dir == (tmp_path / "datasets").resolve()

    def test_data_dir_defaults_to_xdg_cache(self, tmp_path, monkeypatch):
        from mlpack_bindings.config import BindingsConfig, PathResolver

        monkeypatch.delenv("MLPACK_BINDINGS_DATA_DIR")
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
        PathResolver.clear_cache()

        data_dir = BindingsConfig().data_dir
        assert data_dir == tmp_path / "cache" / "mlpack-bindings" / "datasets"
        assert not data_dir.exists()

    def test_xdg_cache_falls_back_to_home(self, tmp_path, monkeypatch):
        from mlpack_bindings.config import resolve_path

        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        path = resolve_path("models", subdir="models")
        assert path == tmp_path / ".cache" / "mlpack-bindings" / "models"


class TestLoading:
    """Verify YAML, environment and merge behavior."""

    def test_from_dict_coerces_types(self):
        from mlpack_bindings.config import BindingsConfig

        config = BindingsConfig.from_dict({
            "enable_timers": "false",
            "download_timeout": "12.5",
            "download_retries": "5",
            "library_dirs": ["/opt/mlpack/lib"],
            "unknown_key": 1,
        })
        assert config.enable_timers is False
        assert config.download_timeout == 12.5
        assert config.download_retries == 5
        assert config.library_dirs == [Path("/opt/mlpack/lib")]

    def test_from_yaml_with_interpolation(self, tmp_path, monkeypatch):
        from mlpack_bindings.config import BindingsConfig

        monkeypatch.setenv("MLPACK_HOME", "/opt/mlpack")
        monkeypatch.delenv("LIB_PREFIX", raising=False)
        config_file = tmp_path / "bindings.yaml"
        config_file.write_text(
            "backend: dry_run\n"
            "library_dirs:\n"
            "  - ${MLPACK_HOME}/lib\n"
            "library_prefix: ${LIB_PREFIX:-mlpack_capi_}\n"
        )

        config = BindingsConfig.from_yaml(config_file)
        assert config.backend == "dry_run"
        assert config.library_dirs == [Path("/opt/mlpack/lib")]
        assert config.library_prefix == "mlpack_capi_"

    def test_from_yaml_missing_file(self, tmp_path):
        from mlpack_bindings.config import BindingsConfig

        with pytest.raises(FileNotFoundError):
            BindingsConfig.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_requires_mapping(self, tmp_path):
        from mlpack_bindings.config import BindingsConfig

        config_file = tmp_path / "bad.yaml"
        config_file.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            BindingsConfig.from_yaml(config_file)

    def test_env_overrides(self, monkeypatch):
        from mlpack_bindings.config import load_config

        monkeypatch.setenv("MLPACK_BINDINGS_LIBRARY_DIRS", "/a:/b")
        monkeypatch.setenv("MLPACK_BINDINGS_ENABLE_TIMERS", "0")

        config = load_config()
        assert config.backend == "dry_run"
        assert config.library_dirs == [Path("/a"), Path("/b")]
        assert config.enable_timers is False

    def test_env_wins_over_yaml(self, tmp_path, monkeypatch):
        from mlpack_bindings.config import load_config

        config_file = tmp_path / "bindings.yaml"
        config_file.write_text("backend: native\nlog_level: DEBUG\n")
        monkeypatch.setenv("MLPACK_BINDINGS_CONFIG", str(config_file))

        config = load_config()
        assert config.backend == "dry_run"
        assert config.log_level == "DEBUG"

    def test_merge_returns_new_config(self):
        from mlpack_bindings.config import BindingsConfig

        base = BindingsConfig()
        merged = base.merge({"library_prefix": "mlpack_capi_"})
        assert merged.library_prefix == "mlpack_capi_"
        assert base.library_prefix == "mlpack_go_"


class TestSingleton:
    """Verify get/set/reset of the process-wide config."""

    def test_get_config_is_cached(self):
        from mlpack_bindings.config import get_config

        assert get_config() is get_config()

    def test_set_and_reset(self):
        from mlpack_bindings.config import BindingsConfig, get_config, reset_config, set_config

        custom = BindingsConfig(backend="native")
        set_config(custom)
        assert get_config() is custom

        reset_config()
        assert get_config() is not custom
