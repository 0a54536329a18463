"""Shared fixtures for the binding tests."""

import os

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep process-wide config and bridge state out of the user's environment."""
    from mlpack_bindings.bindings import reset_bridge
    from mlpack_bindings.config import reset_config

    for key in list(os.environ):
        if key.startswith("MLPACK_BINDINGS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("MLPACK_BINDINGS_BACKEND", "dry_run")
    monkeypatch.setenv("MLPACK_BINDINGS_DATA_DIR", str(tmp_path / "datasets"))

    reset_config()
    reset_bridge()
    yield
    reset_bridge()
    reset_config()


@pytest.fixture
def registry():
    from mlpack_bindings.bindings import InMemoryRegistry

    return InMemoryRegistry()


@pytest.fixture
def bridge(registry):
    from mlpack_bindings.bindings import MLPackBridge
    from mlpack_bindings.config import BindingsConfig

    return MLPackBridge(config=BindingsConfig(backend="dry_run"), registry=registry)


@pytest.fixture
def points():
    """Six 2-D points, one per row."""
    return np.array(
        [
            [0.0, 0.1],
            [0.2, 0.0],
            [0.1, 0.2],
            [5.0, 5.1],
            [5.2, 4.9],
            [4.8, 5.0],
        ]
    )
