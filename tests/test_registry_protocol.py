"""Tests for the settings-registry call protocol, run against the in-memory registry."""

import threading
import time

import numpy as np
import pytest


class TestCallSequence:
    """Verify the exact order of registry operations."""

    def test_kmeans_trace(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans

        kmeans(3, points, bridge=bridge)

        assert registry.trace == [
            ("reset_timers",),
            ("enable_timers",),
            ("disable_backtrace",),
            ("disable_verbose",),
            ("restore_settings", "K-Means Clustering"),
            ("set_int", "clusters", 3),
            ("set_passed", "clusters"),
            ("set_matrix", "input", "matrix", 2, 6),
            ("set_passed", "input"),
            ("set_passed", "centroid"),
            ("set_passed", "output"),
            ("call", "kmeans"),
            ("clear_settings",),
        ]

    def test_defaults_are_not_sent(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans

        kmeans(3, points, max_iterations=1000, bridge=bridge)
        assert ("set_int", "max_iterations", 1000) not in registry.trace
        assert ("set_passed", "max_iterations") not in registry.trace

        registry.trace.clear()
        kmeans(3, points, max_iterations=10, bridge=bridge)
        assert ("set_int", "max_iterations", 10) in registry.trace
        assert ("set_passed", "max_iterations") in registry.trace

    def test_inputs_follow_identifier_order(self, bridge, registry, points):
        from mlpack_bindings.methods import knn

        knn(reference=points, k=2, query=points, bridge=bridge)

        passed = [entry[1] for entry in registry.trace if entry[0] == "set_passed"]
        assert passed == ["k", "query", "reference", "distances", "neighbors", "output_model"]

    def test_copy_all_inputs_is_sent_first(self, bridge, registry):
        from mlpack_bindings.methods.testing import TEST_BINDING

        TEST_BINDING.run(
            double_in=4.0, int_in=12, string_in="hello",
            build_model=True, col_in=[1.0, 2.0], copy_all_inputs=True,
            bridge=bridge,
        )

        passed = [entry[1] for entry in registry.trace if entry[0] == "set_passed"]
        assert passed[:6] == ["copy_all_inputs", "double_in", "int_in", "string_in", "build_model", "col_in"]

    def test_keyword_identifier_is_sent(self, bridge, registry, points):
        from mlpack_bindings.methods import linear_regression

        linear_regression(training=points, training_responses=np.ones(6), lambda_=0.5, bridge=bridge)

        assert ("set_double", "lambda", 0.5) in registry.trace
        assert ("set_matrix", "training_responses", "row", 1, 6) in registry.trace

    def test_verbose_enables_native_verbose(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans

        kmeans(2, points, verbose=True, bridge=bridge)

        ops = registry.ops()
        assert ops.index("disable_verbose") < ops.index("enable_verbose") < ops.index("call")
        assert ("set_bool", "verbose", True) in registry.trace

    def test_timers_can_be_disabled(self, registry, points):
        from mlpack_bindings.bindings import MLPackBridge
        from mlpack_bindings.config import BindingsConfig
        from mlpack_bindings.methods import kmeans

        bridge = MLPackBridge(BindingsConfig(backend="dry_run", enable_timers=False), registry)
        kmeans(2, points, bridge=bridge)

        assert "reset_timers" in registry.ops()
        assert "enable_timers" not in registry.ops()

    def test_options_record_is_accepted(self, bridge, registry, points):
        from mlpack_bindings.methods import KMEANS, kmeans

        opts = KMEANS.options(clusters=2, input=points, seed=42)
        kmeans(2, points, opts, bridge=bridge)

        assert ("set_int", "seed", 42) in registry.trace

    def test_registry_is_empty_after_call(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans

        kmeans(2, points, bridge=bridge)

        assert registry.params == {}
        assert registry.passed == []
        assert registry.title is None


class TestOutputs:
    """Verify extraction of outputs written by the native side."""

    def test_handler_outputs_are_returned(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import kmeans

        def fake_kmeans(reg):
            data = reg.input_array("input")
            k = reg.get_int("clusters")
            reg.set_output_array("centroid", data[:k], ParamKind.MATRIX)

        registry.register_handler("kmeans", fake_kmeans)
        result = kmeans(2, points, bridge=bridge)

        np.testing.assert_array_equal(result.centroid, points[:2])
        assert result.output is None

    def test_unsigned_output_is_uint64(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import knn

        def fake_knn(reg):
            reg.set_output_array("neighbors", [[1, 2], [0, 2], [0, 1], [4, 5], [3, 5], [3, 4]], ParamKind.UMATRIX)

        registry.register_handler("knn", fake_knn)
        result = knn(reference=points, k=2, bridge=bridge)

        assert result.neighbors.dtype == np.uint64
        assert result.neighbors.shape == (6, 2)
        assert result.distances is None

    def test_dbscan_noise_assignment_is_size_max(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import dbscan

        noise = 2 ** 64 - 1

        def fake_dbscan(reg):
            reg.set_output_array("assignments", [0, 0, 0, 1, 1, noise], ParamKind.UROW)

        registry.register_handler("dbscan", fake_dbscan)
        result = dbscan(points, bridge=bridge)

        assert result.assignments.dtype == np.uint64
        assert list(result.assignments[:5]) == [0, 0, 0, 1, 1]
        assert int(result.assignments[-1]) == noise

    def test_empty_output_becomes_none(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import kmeans

        registry.register_handler(
            "kmeans", lambda reg: reg.set_output_array("centroid", np.empty((0, 2)), ParamKind.MATRIX)
        )
        assert kmeans(2, points, bridge=bridge).centroid is None

    def test_scalar_output(self, bridge, registry, points):
        from mlpack_bindings.methods import hmm_loglik

        model = registry.store_model("HMMModel", {"states": 2})
        registry.register_handler("hmm_loglik", lambda reg: reg.set_double("log_likelihood", -12.5))

        result = hmm_loglik(points, model, bridge=bridge)
        assert result.log_likelihood == -12.5


class TestModels:
    """Verify model handles travel through the registry."""

    def test_model_round_trip(self, bridge, registry, points):
        from mlpack_bindings.methods import knn

        def fake_knn(reg):
            if not reg.has_param("input_model"):
                reg.params["output_model"] = reg.store_model("KNNModel", {"points": 6})
            else:
                reg.params["output_model"] = reg.params["input_model"]

        registry.register_handler("knn", fake_knn)

        trained = knn(reference=points, bridge=bridge).output_model
        assert trained.model_type == "KNNModel"
        assert registry.model_payload(trained) == {"points": 6}

        registry.trace.clear()
        again = knn(input_model=trained, query=points, k=1, bridge=bridge).output_model
        assert again == trained
        assert ("set_model", "input_model", "KNNModel") in registry.trace

    def test_wrong_model_type_is_rejected_before_any_call(self, bridge, registry, points):
        from mlpack_bindings.bindings.models import ModelHandle
        from mlpack_bindings.core.error_handling import ModelHandleError
        from mlpack_bindings.methods import knn

        with pytest.raises(ModelHandleError):
            knn(input_model=ModelHandle("KFNModel", 16, "dry_run"), query=points, bridge=bridge)
        assert registry.trace == []

    def test_foreign_backend_handle_clears_registry(self, bridge, registry, points):
        from mlpack_bindings.bindings.models import ModelHandle
        from mlpack_bindings.core.error_handling import ModelHandleError
        from mlpack_bindings.methods import knn

        with pytest.raises(ModelHandleError):
            knn(input_model=ModelHandle("KNNModel", 16, "native"), query=points, bridge=bridge)
        assert registry.ops()[-1] == "clear_settings"
        assert "call" not in registry.ops()

    def test_models_survive_clear_settings(self, registry):
        handle = registry.store_model("GMM", "payload")
        registry.clear_settings()
        assert registry.model_payload(handle) == "payload"


class TestFailures:
    """Verify cleanup and error translation."""

    def test_validation_error_touches_nothing(self, bridge, registry):
        from mlpack_bindings.core.error_handling import ParameterError
        from mlpack_bindings.methods import kmeans

        with pytest.raises(ParameterError, match="input"):
            kmeans(3, None, bridge=bridge)
        assert registry.trace == []

    def test_unknown_parameter(self, bridge, registry, points):
        from mlpack_bindings.core.error_handling import ParameterError
        from mlpack_bindings.methods import kmeans

        with pytest.raises(ParameterError, match="unknown parameter"):
            kmeans(3, points, nonsense=1, bridge=bridge)
        assert registry.trace == []

    def test_native_failure_is_wrapped_and_registry_cleared(self, bridge, registry, points):
        from mlpack_bindings.core.error_handling import NativeCallError
        from mlpack_bindings.methods import kmeans

        def explode(reg):
            raise RuntimeError("std::invalid_argument: k must be positive")

        registry.register_handler("kmeans", explode)

        with pytest.raises(NativeCallError) as exc:
            kmeans(3, points, bridge=bridge)

        assert exc.value.program == "kmeans"
        assert isinstance(exc.value.cause, RuntimeError)
        assert registry.ops()[-1] == "clear_settings"
        assert not registry.lock.locked
        assert bridge.metrics.errors == 1

    def test_reentry_raises_registry_busy(self, bridge, registry, points):
        from mlpack_bindings.core.error_handling import RegistryBusyError
        from mlpack_bindings.methods import kmeans, pca

        registry.register_handler("kmeans", lambda reg: pca(points, bridge=bridge))

        with pytest.raises(RegistryBusyError, match="kmeans"):
            kmeans(2, points, bridge=bridge)
        assert not registry.lock.locked

    def test_calls_from_threads_are_serialized(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans

        active = []
        overlap = []

        def slow(reg):
            active.append(1)
            if len(active) > 1:
                overlap.append(True)
            time.sleep(0.01)
            active.pop()

        registry.register_handler("kmeans", slow)
        threads = [threading.Thread(target=kmeans, args=(2, points), kwargs={"bridge": bridge}) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlap == []
        assert registry.calls == 4
        assert bridge.metrics.total_calls == 4


class TestCallSession:
    """Verify buffer pinning."""

    def test_buffers_pinned_until_close(self, registry, points):
        from mlpack_bindings.bindings.registry import CallSession
        from mlpack_bindings.methods import KMEANS

        session = CallSession(registry, "kmeans", KMEANS.title)
        session.begin()
        spec = {s.name: s for s in KMEANS.params}["input"]
        session.set_input(spec, points)

        assert len(session.pinned) == 1
        session.close()
        assert session.pinned == ()
        session.close()
        assert registry.ops().count("clear_settings") == 1
