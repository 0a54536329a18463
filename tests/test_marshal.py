"""Tests for numpy <-> column-major matrix marshaling."""

import numpy as np
import pytest


class TestToNative:
    """Caller arrays become column-major native matrices."""

    def test_matrix_dimensions_are_transposed(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        data = np.arange(6, dtype=np.float64).reshape(3, 2)
        native = to_native(data, ParamKind.MATRIX, "input")

        assert native.n_rows == 2
        assert native.n_cols == 3
        assert native.n_elem == 6
        assert list(native.data) == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]

    def test_contiguous_float_input_is_not_copied(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        data = np.ones((4, 3), dtype=np.float64)
        native = to_native(data, ParamKind.MATRIX)

        assert np.shares_memory(native.data, data)

    def test_integer_input_is_converted(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        native = to_native([[1, 2], [3, 4]], ParamKind.UMATRIX)
        assert native.data.dtype == np.float64
        assert native.n_rows == 2 and native.n_cols == 2

    def test_fortran_ordered_input_keeps_point_order(self):
        from mlpack_bindings.bindings.marshal import from_native, to_native
        from mlpack_bindings.bindings.params import ParamKind

        data = np.asfortranarray(np.arange(6, dtype=np.float64).reshape(3, 2))
        native = to_native(data, ParamKind.MATRIX)

        np.testing.assert_array_equal(from_native(native), data)

    def test_row_and_col_shapes(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        row = to_native([1.0, 2.0, 3.0], ParamKind.ROW)
        col = to_native([1.0, 2.0, 3.0], ParamKind.COL)

        assert (row.n_rows, row.n_cols) == (1, 3)
        assert (col.n_rows, col.n_cols) == (3, 1)

    def test_singleton_2d_accepted_for_row(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        native = to_native(np.array([[1.0], [2.0]]), ParamKind.UROW)
        assert (native.n_rows, native.n_cols) == (1, 2)

    def test_matrix_requires_2d(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.core.error_handling import ParameterError

        with pytest.raises(ParameterError, match="2-D"):
            to_native([1.0, 2.0], ParamKind.MATRIX, "input")

    def test_row_rejects_full_matrix(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.core.error_handling import ParameterError

        with pytest.raises(ParameterError):
            to_native(np.ones((2, 2)), ParamKind.ROW)

    @pytest.mark.parametrize(
        "values", [[-1.0, 2.0], [0.5, 1.0], [np.nan, 1.0], [float(2 ** 64), 1.0]]
    )
    def test_unsigned_kinds_reject_invalid_values(self, values):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.core.error_handling import ParameterError

        with pytest.raises(ParameterError):
            to_native(values, ParamKind.UCOL, "labels")

    def test_empty_matrix_is_empty(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        native = to_native(np.empty((0, 3)), ParamKind.MATRIX)
        assert native.is_empty

    def test_non_matrix_kind_rejected(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        with pytest.raises(ValueError):
            to_native([1, 2], ParamKind.INT)


class TestDataWithInfo:
    """Categorical flags travel with MATRIX_WITH_INFO."""

    def test_flags_become_dimensions(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import DataWithInfo, ParamKind

        value = DataWithInfo(np.zeros((4, 3)), [False, True, False])
        native = to_native(value, ParamKind.MATRIX_WITH_INFO)

        assert native.n_rows == 3
        assert list(native.dimensions) == [False, True, False]

    def test_plain_array_gets_numeric_dimensions(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import ParamKind

        native = to_native(np.zeros((4, 2)), ParamKind.MATRIX_WITH_INFO)
        assert not native.dimensions.any()

    def test_flag_count_must_match(self):
        from mlpack_bindings.bindings.params import DataWithInfo
        from mlpack_bindings.core.error_handling import ParameterError

        with pytest.raises(ParameterError, match="categorical flags"):
            DataWithInfo(np.zeros((4, 3)), [True])

    def test_data_with_info_rejected_for_plain_matrix(self):
        from mlpack_bindings.bindings.marshal import to_native
        from mlpack_bindings.bindings.params import DataWithInfo, ParamKind
        from mlpack_bindings.core.error_handling import ParameterError

        with pytest.raises(ParameterError):
            to_native(DataWithInfo(np.zeros((2, 2))), ParamKind.MATRIX)


class TestFromNative:
    """Native matrices come back as owned numpy arrays."""

    def test_output_is_a_copy(self):
        from mlpack_bindings.bindings.marshal import NativeMatrix, from_native
        from mlpack_bindings.bindings.params import ParamKind

        buf = np.arange(6, dtype=np.float64)
        native = NativeMatrix(buf, n_rows=2, n_cols=3, kind=ParamKind.MATRIX)
        arr = from_native(native)
        buf[:] = -1

        assert arr.shape == (3, 2)
        np.testing.assert_array_equal(arr, [[0, 1], [2, 3], [4, 5]])

    def test_unsigned_outputs_are_integers(self):
        from mlpack_bindings.bindings.marshal import NativeMatrix, from_native
        from mlpack_bindings.bindings.params import ParamKind

        native = NativeMatrix(np.array([0.0, 2.0, 7.0]), 1, 3, ParamKind.UROW)
        arr = from_native(native)

        assert arr.dtype == np.uint64
        assert list(arr) == [0, 2, 7]

    def test_size_max_survives(self):
        from mlpack_bindings.bindings.marshal import SIZE_MAX, NativeMatrix, from_native
        from mlpack_bindings.bindings.params import ParamKind

        # SIZE_MAX as the native side stores it in a double
        native = NativeMatrix(np.array([3.0, float(2 ** 64 - 1)]), 2, 1, ParamKind.UCOL)
        arr = from_native(native)

        assert arr.dtype == np.uint64
        assert arr[0] == 3
        assert arr[1] == SIZE_MAX
        assert int(arr[1]) == 2 ** 64 - 1

    def test_negative_unsigned_output_raises(self):
        from mlpack_bindings.bindings.marshal import NativeMatrix, from_native
        from mlpack_bindings.bindings.params import ParamKind

        with pytest.raises(ValueError):
            from_native(NativeMatrix(np.array([-1.0]), 1, 1, ParamKind.UROW))

    def test_short_buffer_raises(self):
        from mlpack_bindings.bindings.marshal import NativeMatrix, from_native
        from mlpack_bindings.bindings.params import ParamKind

        native = NativeMatrix(np.zeros(3), 2, 2, ParamKind.MATRIX)
        with pytest.raises(ValueError):
            from_native(native)
