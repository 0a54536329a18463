"""Tests for opaque model handles."""

import pytest


class TestModelHandle:
    """Verify handle identity and checks."""

    def test_equality_ignores_backend(self):
        from mlpack_bindings.bindings.models import ModelHandle

        a = ModelHandle("KNNModel", 0x1000, "native")
        b = ModelHandle("KNNModel", 0x1000, "dry_run")
        assert a == b
        assert hash(a) == hash(b)

    def test_handles_are_immutable(self):
        from dataclasses import FrozenInstanceError

        from mlpack_bindings.bindings.models import ModelHandle

        handle = ModelHandle("KNNModel", 0x1000)
        with pytest.raises(FrozenInstanceError):
            handle.address = 0

    def test_null_handle(self):
        from mlpack_bindings.bindings.models import ModelHandle

        assert ModelHandle("KNNModel", 0).is_null
        assert not ModelHandle("KNNModel", 16).is_null

    def test_repr_shows_hex_address(self):
        from mlpack_bindings.bindings.models import ModelHandle

        assert "0x1f" in repr(ModelHandle("GMM", 31))

    def test_model_symbols(self):
        from mlpack_bindings.bindings.models import model_symbols

        assert model_symbols("HMMModel") == ("mlpackGetHMMModelPtr", "mlpackSetHMMModelPtr")


class TestCheckHandle:
    """Verify type, null and backend checks."""

    def test_wrong_type(self):
        from mlpack_bindings.bindings.models import ModelHandle, check_handle
        from mlpack_bindings.core.error_handling import ModelHandleError

        with pytest.raises(ModelHandleError, match="expected a KNNModel"):
            check_handle(ModelHandle("KFNModel", 16), "KNNModel", program="knn", param="input_model")

    def test_not_a_handle(self):
        from mlpack_bindings.bindings.models import check_handle
        from mlpack_bindings.core.error_handling import ModelHandleError

        with pytest.raises(ModelHandleError):
            check_handle(0x1000, "KNNModel")

    def test_null(self):
        from mlpack_bindings.bindings.models import ModelHandle, check_handle
        from mlpack_bindings.core.error_handling import ModelHandleError

        with pytest.raises(ModelHandleError, match="null"):
            check_handle(ModelHandle("KNNModel", 0), "KNNModel")

    def test_foreign_backend(self):
        from mlpack_bindings.bindings.models import ModelHandle, check_handle
        from mlpack_bindings.core.error_handling import ModelHandleError

        handle = ModelHandle("KNNModel", 16, "dry_run")
        check_handle(handle, "KNNModel")
        with pytest.raises(ModelHandleError, match="dry_run"):
            check_handle(handle, "KNNModel", backend="native")

    def test_model_handle_error_is_parameter_error(self):
        from mlpack_bindings.core.error_handling import ModelHandleError, ParameterError

        assert issubclass(ModelHandleError, ParameterError)
        assert issubclass(ModelHandleError, ValueError)
