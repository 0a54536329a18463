"""Tests for the program catalog and the exported method functions."""

import numpy as np
import pytest

FAMILIES = {
    "classification": {
        "adaboost", "decision_stump", "decision_tree", "hoeffding_tree", "linear_svm",
        "logistic_regression", "nbc", "perceptron", "random_forest", "softmax_regression",
    },
    "regression": {"lars", "linear_regression"},
    "neighbors": {"approx_kfn", "fastmks", "kfn", "knn", "krann", "lsh", "range_search"},
    "clustering": {"dbscan", "emst", "gmm_train", "kmeans", "mean_shift"},
    "decomposition": {
        "kernel_pca", "lmnn", "local_coordinate_coding", "nca", "nmf", "pca", "radical", "sparse_coding",
    },
    "density": {"det"},
    "hmm": {"hmm_generate", "hmm_loglik", "hmm_train", "hmm_viterbi"},
    "recommendation": {"cf"},
    "preprocessing": {
        "preprocess_binarize", "preprocess_describe", "preprocess_scale", "preprocess_split",
    },
    "testing": {"test_binding"},
}


class TestCatalog:
    """Verify program registration and lookup."""

    def test_every_family_is_complete(self):
        from mlpack_bindings.bindings import list_families, list_programs

        assert set(list_families()) == set(FAMILIES)
        for family, names in FAMILIES.items():
            assert {p.name for p in list_programs(family)} == names

    def test_get_program(self):
        from mlpack_bindings.bindings import get_program
        from mlpack_bindings.methods import KMEANS

        assert get_program("kmeans") is KMEANS

    def test_unknown_program(self):
        from mlpack_bindings.bindings import get_program

        with pytest.raises(KeyError, match="Unknown mlpack program"):
            get_program("svm_light")

    def test_duplicate_registration_rejected(self):
        from mlpack_bindings.bindings import BindingProgram, register_program
        from mlpack_bindings.methods.clustering import KmeansOptions, KmeansResult

        clone = BindingProgram("kmeans", "K-Means Clustering", KmeansOptions, KmeansResult, "clustering")
        with pytest.raises(ValueError, match="already registered"):
            register_program(clone)

    def test_list_is_sorted(self):
        from mlpack_bindings.bindings import list_programs

        names = [p.name for p in list_programs()]
        assert names == sorted(names)

    def test_every_model_param_has_type(self):
        from mlpack_bindings.bindings import list_programs
        from mlpack_bindings.bindings.params import ParamKind

        for program in list_programs():
            for spec in program.params + program.outputs:
                if spec.kind is ParamKind.MODEL:
                    assert spec.model_type, f"{program.name}.{spec.name}"

    def test_every_program_has_a_title(self):
        from mlpack_bindings.bindings import list_programs

        for program in list_programs():
            assert program.title, program.name

    def test_options_defaults(self):
        from mlpack_bindings.methods import KNN

        opts = KNN.options()
        assert opts.k == 0
        assert opts.tree_type == "kd"
        assert opts.reference is None
        assert opts.verbose is False


class TestRequiredArguments:
    """Required parameters are positional arguments of the functions."""

    def test_required_specs(self):
        from mlpack_bindings.methods import GMM_TRAIN, HMM_VITERBI, KMEANS

        assert [s.name for s in KMEANS.required] == ["clusters", "input"]
        assert [s.name for s in GMM_TRAIN.required] == ["gaussians", "input"]
        assert [s.name for s in HMM_VITERBI.required] == ["input", "input_model"]

    def test_hmm_pipeline(self, bridge, registry, points):
        from mlpack_bindings.bindings.params import ParamKind
        from mlpack_bindings.methods import hmm_train, hmm_viterbi

        def fake_train(reg):
            reg.params["output_model"] = reg.store_model("HMMModel")

        registry.register_handler("hmm_train", fake_train)
        registry.register_handler(
            "hmm_viterbi",
            lambda reg: reg.set_output_array("output", np.zeros((6, 1)), ParamKind.UMATRIX),
        )

        model = hmm_train("obs.csv", states=2, bridge=bridge).output_model
        assert ("set_string", "input_file", "obs.csv") in registry.trace
        assert ("set_int", "states", 2) in registry.trace

        path = hmm_viterbi(points, model, bridge=bridge).output
        assert path.shape == (6, 1)
        assert path.dtype == np.uint64

    def test_preprocess_split_labels(self, bridge, registry, points):
        from mlpack_bindings.methods import preprocess_split

        labels = np.array([[0], [0], [0], [1], [1], [1]])
        preprocess_split(points, input_labels=labels, test_ratio=0.5, bridge=bridge)

        assert ("set_matrix", "input_labels", "umatrix", 1, 6) in registry.trace
        assert ("set_double", "test_ratio", 0.5) in registry.trace

    def test_describe_has_no_outputs(self, bridge, registry, points):
        from mlpack_bindings.methods import preprocess_describe

        result = preprocess_describe(points, bridge=bridge)
        assert result.as_dict() == {}
        assert registry.ops()[-2:] == ["call", "clear_settings"]


class TestBindingSelfTest:
    """Run the binding self-test program against its dry-run handler."""

    @pytest.fixture
    def selftest_bridge(self, bridge, registry):
        from mlpack_bindings.methods.testing import install_dry_run_handler

        install_dry_run_handler(registry)
        return bridge

    def test_native_name_and_title(self):
        from mlpack_bindings.methods import TEST_BINDING

        assert TEST_BINDING.name == "test_binding"
        assert TEST_BINDING.native_name == "test_go_binding"
        assert TEST_BINDING.title == "Golang binding test"

    def test_scalars(self, selftest_bridge, registry):
        from mlpack_bindings.methods import test_binding

        result = test_binding(4.0, 12, "hello", flag1=True, bridge=selftest_bridge)

        assert result.string_out == "hello2"
        assert result.int_out == 13
        assert result.double_out == 5.0
        assert ("restore_settings", "Golang binding test") in registry.trace
        assert ("call", "test_go_binding") in registry.trace

    def test_flag2_spoils_outputs(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        result = test_binding(4.0, 12, "hello", flag1=True, flag2=True, bridge=selftest_bridge)

        assert result.string_out == "wrong"
        assert result.int_out == 11
        assert result.double_out == 3.0

    def test_matrices(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        matrix = np.arange(15, dtype=np.float64).reshape(3, 5)
        result = test_binding(
            4.0, 12, "hello",
            matrix_in=matrix,
            umatrix_in=matrix.astype(np.int64),
            row_in=[1.0, 2.0, 3.0],
            col_in=[1.0, 2.0],
            urow_in=[1, 2, 3],
            ucol_in=[4, 5],
            bridge=selftest_bridge,
        )

        expected = np.delete(matrix, 4, axis=1)
        expected[:, 2] *= 2
        np.testing.assert_array_equal(result.matrix_out, expected)
        np.testing.assert_array_equal(result.umatrix_out, expected.astype(np.int64))
        assert result.umatrix_out.dtype == np.uint64
        np.testing.assert_array_equal(result.row_out, [2.0, 4.0, 6.0])
        np.testing.assert_array_equal(result.col_out, [2.0, 4.0])
        np.testing.assert_array_equal(result.urow_out, [2, 4, 6])
        np.testing.assert_array_equal(result.ucol_out, [8, 10])

    def test_vectors(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        result = test_binding(
            4.0, 12, "hello",
            vector_in=[1, 2, 3, 4],
            str_vector_in=["a", "b", "c"],
            bridge=selftest_bridge,
        )

        assert result.vector_out == [1, 2, 3]
        assert result.str_vector_out == ["a", "b"]

    def test_matrix_with_info(self, selftest_bridge):
        from mlpack_bindings.bindings.params import DataWithInfo
        from mlpack_bindings.methods import test_binding

        data = np.array([[1.0, 2.0, 0.0], [3.0, 4.0, 1.0]])
        result = test_binding(
            4.0, 12, "hello",
            matrix_and_info_in=DataWithInfo(data, [False, False, True]),
            bridge=selftest_bridge,
        )

        np.testing.assert_array_equal(result.matrix_and_info_out, [[3.0, 6.0, 0.0], [9.0, 12.0, 1.0]])

    def test_model_round_trip(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        built = test_binding(4.0, 12, "hello", build_model=True, bridge=selftest_bridge)
        assert built.model_out.model_type == "GaussianKernel"
        assert built.model_bw_out == 0.0

        again = test_binding(4.0, 12, "hello", model_in=built.model_out, bridge=selftest_bridge)
        assert again.model_bw_out == 20.0
        assert again.model_out is None

    def test_too_few_dimensions_fails_natively(self, selftest_bridge, registry):
        from mlpack_bindings.core.error_handling import NativeCallError
        from mlpack_bindings.methods import test_binding

        with pytest.raises(NativeCallError, match="test_binding"):
            test_binding(4.0, 12, "hello", matrix_in=np.zeros((2, 3)), bridge=selftest_bridge)
        assert registry.ops()[-1] == "clear_settings"

    def test_unproduced_matrices_and_models_are_none(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        result = test_binding(4.0, 12, "hello", flag1=True, bridge=selftest_bridge)

        assert result.matrix_out is None
        assert result.row_out is None
        assert result.umatrix_out is None
        assert result.model_out is None

    def test_unset_scalars_and_vectors_read_as_zero_values(self, selftest_bridge):
        from mlpack_bindings.methods import test_binding

        result = test_binding(4.0, 12, "hello", flag1=True, bridge=selftest_bridge)

        assert result.model_bw_out == 0.0
        assert result.vector_out == []
        assert result.str_vector_out == []
        assert result.string_out == "hello2"


class TestMetrics:
    """Verify per-bridge call metrics."""

    def test_metrics(self, bridge, registry, points):
        from mlpack_bindings.methods import kmeans, pca

        kmeans(2, points, bridge=bridge)
        kmeans(2, points, bridge=bridge)
        pca(points, bridge=bridge)

        metrics = bridge.get_metrics()
        assert metrics["total_calls"] == 3
        assert metrics["calls_by_program"] == {"kmeans": 2, "pca": 1}
        assert metrics["native_ratio"] == 0.0
        assert metrics["backend"] == "dry_run"
