"""Tests for running programs from asyncio code."""

import asyncio

import numpy as np
import pytest


class TestRunAsync:
    """run_async executes the protocol in a worker thread."""

    @pytest.mark.asyncio
    async def test_run_async_returns_result(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import PCA

        registry.register_handler(
            "pca", lambda reg: reg.set_output_array("output", reg.input_array("input")[:, :1], ParamKind.MATRIX)
        )

        result = await PCA.run_async(bridge=bridge, input=points, new_dimensionality=1)

        assert result.output.shape == (6, 1)
        assert ("set_int", "new_dimensionality", 1) in registry.trace

    @pytest.mark.asyncio
    async def test_concurrent_async_calls_are_serialized(self, bridge, registry, points):
        from mlpack_bindings.methods import KMEANS

        active = []
        overlap = []

        def handler(reg):
            active.append(1)
            if len(active) > 1:
                overlap.append(True)
            active.pop()

        registry.register_handler("kmeans", handler)

        results = await asyncio.gather(
            *(KMEANS.run_async(bridge=bridge, clusters=2, input=points) for _ in range(5))
        )

        assert len(results) == 5
        assert overlap == []
        assert registry.ops().count("call") == 5
        assert registry.ops().count("clear_settings") == 5

    @pytest.mark.asyncio
    async def test_errors_propagate(self, bridge, registry):
        from mlpack_bindings.core.error_handling import ParameterError
        from mlpack_bindings.methods import KMEANS

        with pytest.raises(ParameterError):
            await KMEANS.run_async(bridge=bridge, clusters=2, input=np.zeros(3))

        assert registry.ops()[-1] == "clear_settings"
