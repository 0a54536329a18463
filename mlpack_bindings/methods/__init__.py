"""
mlpack programs exposed as Python functions.

Importing this package registers every program in the catalog.
"""

from mlpack_bindings.methods.classification import (
    ADABOOST,
    DECISION_STUMP,
    DECISION_TREE,
    HOEFFDING_TREE,
    LINEAR_SVM,
    LOGISTIC_REGRESSION,
    NBC,
    PERCEPTRON,
    RANDOM_FOREST,
    SOFTMAX_REGRESSION,
    adaboost,
    decision_stump,
    decision_tree,
    hoeffding_tree,
    linear_svm,
    logistic_regression,
    nbc,
    perceptron,
    random_forest,
    softmax_regression,
)
from mlpack_bindings.methods.clustering import (
    DBSCAN,
    EMST,
    GMM_TRAIN,
    KMEANS,
    MEAN_SHIFT,
    dbscan,
    emst,
    gmm_train,
    kmeans,
    mean_shift,
)
from mlpack_bindings.methods.decomposition import (
    KERNEL_PCA,
    LMNN,
    LOCAL_COORDINATE_CODING,
    NCA,
    NMF,
    PCA,
    RADICAL,
    SPARSE_CODING,
    kernel_pca,
    lmnn,
    local_coordinate_coding,
    nca,
    nmf,
    pca,
    radical,
    sparse_coding,
)
from mlpack_bindings.methods.density import DET, det
from mlpack_bindings.methods.hmm import (
    HMM_GENERATE,
    HMM_LOGLIK,
    HMM_TRAIN,
    HMM_VITERBI,
    hmm_generate,
    hmm_loglik,
    hmm_train,
    hmm_viterbi,
)
from mlpack_bindings.methods.neighbors import (
    APPROX_KFN,
    FASTMKS,
    KFN,
    KNN,
    KRANN,
    LSH,
    RANGE_SEARCH,
    approx_kfn,
    fastmks,
    kfn,
    knn,
    krann,
    lsh,
    range_search,
)
from mlpack_bindings.methods.preprocessing import (
    PREPROCESS_BINARIZE,
    PREPROCESS_DESCRIBE,
    PREPROCESS_SCALE,
    PREPROCESS_SPLIT,
    preprocess_binarize,
    preprocess_describe,
    preprocess_scale,
    preprocess_split,
)
from mlpack_bindings.methods.recommendation import CF, cf
from mlpack_bindings.methods.regression import (
    LARS,
    LINEAR_REGRESSION,
    lars,
    linear_regression,
)
from mlpack_bindings.methods.testing import TEST_BINDING, test_binding

__all__ = [
    # Classification
    "adaboost",
    "decision_stump",
    "decision_tree",
    "hoeffding_tree",
    "linear_svm",
    "logistic_regression",
    "nbc",
    "perceptron",
    "random_forest",
    "softmax_regression",
    # Regression
    "lars",
    "linear_regression",
    # Neighbors
    "approx_kfn",
    "fastmks",
    "kfn",
    "knn",
    "krann",
    "lsh",
    "range_search",
    # Clustering
    "dbscan",
    "emst",
    "gmm_train",
    "kmeans",
    "mean_shift",
    # Decomposition
    "kernel_pca",
    "lmnn",
    "local_coordinate_coding",
    "nca",
    "nmf",
    "pca",
    "radical",
    "sparse_coding",
    # Density / HMM / recommendation
    "det",
    "hmm_generate",
    "hmm_loglik",
    "hmm_train",
    "hmm_viterbi",
    "cf",
    # Preprocessing
    "preprocess_binarize",
    "preprocess_describe",
    "preprocess_scale",
    "preprocess_split",
    # Testing
    "test_binding",
    # Program constants
    "ADABOOST",
    "DECISION_STUMP",
    "DECISION_TREE",
    "HOEFFDING_TREE",
    "LINEAR_SVM",
    "LOGISTIC_REGRESSION",
    "NBC",
    "PERCEPTRON",
    "RANDOM_FOREST",
    "SOFTMAX_REGRESSION",
    "LARS",
    "LINEAR_REGRESSION",
    "APPROX_KFN",
    "FASTMKS",
    "KFN",
    "KNN",
    "KRANN",
    "LSH",
    "RANGE_SEARCH",
    "DBSCAN",
    "EMST",
    "GMM_TRAIN",
    "KMEANS",
    "MEAN_SHIFT",
    "KERNEL_PCA",
    "LMNN",
    "LOCAL_COORDINATE_CODING",
    "NCA",
    "NMF",
    "PCA",
    "RADICAL",
    "SPARSE_CODING",
    "DET",
    "HMM_GENERATE",
    "HMM_LOGLIK",
    "HMM_TRAIN",
    "HMM_VITERBI",
    "CF",
    "PREPROCESS_BINARIZE",
    "PREPROCESS_DESCRIBE",
    "PREPROCESS_SCALE",
    "PREPROCESS_SPLIT",
    "TEST_BINDING",
]
