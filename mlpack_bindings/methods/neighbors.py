"""
Neighbor Search Programs
========================

Exact, approximate and rank-approximate nearest/furthest neighbor search,
max-kernel search, LSH and range search.

Neighbor indices come back as uint64 arrays of shape ``(n_queries, k)``;
distances as float64 arrays of the same shape.

Example:
    result = knn(reference=X, k=3)
    result.neighbors[0]   # indices of the 3 nearest neighbors of X[0]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from mlpack_bindings.bindings.models import ModelHandle
from mlpack_bindings.bindings.params import (
    BindingOptions,
    BindingResult,
    ParamKind as Kind,
    output as out,
    param,
)
from mlpack_bindings.bindings.program import define_program

FAMILY = "neighbors"

_SEED_DOC = "Random seed (if 0, std::time(NULL) is used)."
_TREE_TYPES = (
    "'kd', 'vp', 'rp', 'max-rp', 'ub', 'cover', 'r', 'r-star', 'x', 'ball', "
    "'hilbert-r', 'r-plus', 'r-plus-plus', 'oct'"
)


# =============================================================================
# APPROXIMATE FURTHEST NEIGHBORS
# =============================================================================


@dataclass
class ApproxKfnOptions(BindingOptions):
    algorithm: str = param(Kind.STRING, "ds", "Algorithm to use: 'ds' or 'qdafn'.")
    calculate_error: bool = param(
        Kind.BOOL, False,
        "If set, calculate the average distance error for the first furthest neighbor only.",
    )
    exact_distances: Optional[np.ndarray] = param(
        Kind.MATRIX,
        doc="Matrix containing exact distances to furthest neighbors; this can be used to avoid "
            "explicit calculation when calculate_error is set.",
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="File containing input model.", model_type="ApproxKFNModel")
    k: int = param(Kind.INT, 0, "Number of furthest neighbors to search for.")
    num_projections: int = param(Kind.INT, 5, "Number of projections to use in each hash table.")
    num_tables: int = param(Kind.INT, 5, "Number of hash tables to use.")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing query points.")
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")


@dataclass
class ApproxKfnResult(BindingResult):
    distances: Optional[np.ndarray] = out(Kind.MATRIX, "Furthest neighbor distances.")
    neighbors: Optional[np.ndarray] = out(Kind.UMATRIX, "Furthest neighbor indices.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output model.", "ApproxKFNModel")


APPROX_KFN = define_program(
    "approx_kfn", "Approximate furthest neighbor search", ApproxKfnOptions, ApproxKfnResult, FAMILY,
    "Approximate furthest neighbor search (DrusillaSelect / QDAFN).",
)


def approx_kfn(options: Optional[ApproxKfnOptions] = None, **overrides: Any) -> ApproxKfnResult:
    return APPROX_KFN.run(options, **overrides)


# =============================================================================
# FASTMKS
# =============================================================================


@dataclass
class FastmksOptions(BindingOptions):
    bandwidth: float = param(
        Kind.DOUBLE, 1.0, "Bandwidth (for Gaussian, Epanechnikov, and triangular kernels)."
    )
    base: float = param(Kind.DOUBLE, 2.0, "Base to use during cover tree construction.")
    degree: float = param(Kind.DOUBLE, 2.0, "Degree of polynomial kernel.")
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input FastMKS model to use.", model_type="FastMKSModel")
    k: int = param(Kind.INT, 0, "Number of maximum kernels to find.")
    kernel: str = param(
        Kind.STRING, "linear",
        "Kernel type to use: 'linear', 'polynomial', 'cosine', 'gaussian', 'epanechnikov', "
        "'triangular', 'hyptan'.",
    )
    naive: bool = param(Kind.BOOL, False, "If true, O(n^2) naive mode is used for computation.")
    offset: float = param(Kind.DOUBLE, 0.0, "Offset of kernel (for polynomial and hyptan kernels).")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="The query dataset.")
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="The reference dataset.")
    scale: float = param(Kind.DOUBLE, 1.0, "Scale of kernel (for hyptan kernel).")
    single: bool = param(
        Kind.BOOL, False, "If true, single-tree search is used (as opposed to dual-tree search."
    )


@dataclass
class FastmksResult(BindingResult):
    indices: Optional[np.ndarray] = out(Kind.UMATRIX, "Output matrix of indices.")
    kernels: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix of kernels.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for FastMKS model.", "FastMKSModel")


FASTMKS = define_program(
    "fastmks", "FastMKS (Fast Max-Kernel Search)", FastmksOptions, FastmksResult, FAMILY,
    "Exact max-kernel search with cover trees.",
)


def fastmks(options: Optional[FastmksOptions] = None, **overrides: Any) -> FastmksResult:
    return FASTMKS.run(options, **overrides)


# =============================================================================
# K-FURTHEST / K-NEAREST NEIGHBORS
# =============================================================================


@dataclass
class KfnOptions(BindingOptions):
    algorithm: str = param(
        Kind.STRING, "dual_tree",
        "Type of neighbor search: 'naive', 'single_tree', 'dual_tree', 'greedy'.",
    )
    epsilon: float = param(
        Kind.DOUBLE, 0.0,
        "If specified, will do approximate furthest neighbor search with given relative error. "
        "Must be in the range [0,1).",
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Pre-trained kFN model.", model_type="KFNModel")
    k: int = param(Kind.INT, 0, "Number of furthest neighbors to find.")
    leaf_size: int = param(Kind.INT, 20, "Leaf size for tree building.")
    percentage: float = param(
        Kind.DOUBLE, 1.0,
        "If specified, will do approximate furthest neighbor search. Must be in the range (0,1] "
        "(decimal form).",
    )
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing query points (optional).")
    random_basis: bool = param(
        Kind.BOOL, False, "Before tree-building, project the data onto a random orthogonal basis."
    )
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    tree_type: str = param(Kind.STRING, "kd", f"Type of tree to use: {_TREE_TYPES}.")
    true_distances: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Matrix of true distances to compute the effective error (average relative error)."
    )
    true_neighbors: Optional[np.ndarray] = param(
        Kind.UMATRIX, doc="Matrix of true neighbors to compute the recall."
    )


@dataclass
class KfnResult(BindingResult):
    distances: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to output distances into.")
    neighbors: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to output neighbors into.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "The trained kFN model.", "KFNModel")


KFN = define_program(
    "kfn", "k-Furthest-Neighbors Search", KfnOptions, KfnResult, FAMILY,
    "Tree-based k-furthest-neighbor search.",
)


def kfn(options: Optional[KfnOptions] = None, **overrides: Any) -> KfnResult:
    return KFN.run(options, **overrides)


@dataclass
class KnnOptions(BindingOptions):
    algorithm: str = param(
        Kind.STRING, "dual_tree",
        "Type of neighbor search: 'naive', 'single_tree', 'dual_tree', 'greedy'.",
    )
    epsilon: float = param(
        Kind.DOUBLE, 0.0,
        "If specified, will do approximate nearest neighbor search with given relative error.",
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Pre-trained kNN model.", model_type="KNNModel")
    k: int = param(Kind.INT, 0, "Number of nearest neighbors to find.")
    leaf_size: int = param(Kind.INT, 20, "Leaf size for tree building.")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing query points (optional).")
    random_basis: bool = param(
        Kind.BOOL, False, "Before tree-building, project the data onto a random orthogonal basis."
    )
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")
    rho: float = param(Kind.DOUBLE, 0.7, "Balance threshold (only valid for spill trees).")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    tau: float = param(Kind.DOUBLE, 0.0, "Overlapping size (only valid for spill trees).")
    tree_type: str = param(Kind.STRING, "kd", f"Type of tree to use: {_TREE_TYPES}, 'spill'.")
    true_distances: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Matrix of true distances to compute the effective error (average relative error)."
    )
    true_neighbors: Optional[np.ndarray] = param(
        Kind.UMATRIX, doc="Matrix of true neighbors to compute the recall."
    )


@dataclass
class KnnResult(BindingResult):
    distances: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to output distances into.")
    neighbors: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to output neighbors into.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "The trained kNN model.", "KNNModel")


KNN = define_program(
    "knn", "k-Nearest-Neighbors Search", KnnOptions, KnnResult, FAMILY,
    "Tree-based k-nearest-neighbor search.",
)


def knn(options: Optional[KnnOptions] = None, **overrides: Any) -> KnnResult:
    """
    k-nearest-neighbor search.

    Without ``query`` the reference set is searched against itself (a point
    is never its own neighbor). Reuse ``output_model`` to query a built tree
    again without rebuilding it.
    """
    return KNN.run(options, **overrides)


# =============================================================================
# RANK-APPROXIMATE NEAREST NEIGHBORS
# =============================================================================


@dataclass
class KrannOptions(BindingOptions):
    alpha: float = param(Kind.DOUBLE, 0.95, "The desired success probability.")
    first_leaf_exact: bool = param(
        Kind.BOOL, False, "The flag to trigger sampling only after exactly exploring the first leaf."
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Pre-trained kNN model.", model_type="RANNModel")
    k: int = param(Kind.INT, 0, "Number of nearest neighbors to find.")
    leaf_size: int = param(Kind.INT, 20, "Leaf size for tree building.")
    naive: bool = param(Kind.BOOL, False, "If true, sampling will be done without using a tree.")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing query points (optional).")
    random_basis: bool = param(
        Kind.BOOL, False, "Before tree-building, project the data onto a random orthogonal basis."
    )
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")
    sample_at_leaves: bool = param(Kind.BOOL, False, "The flag to trigger sampling at leaves.")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    single_mode: bool = param(
        Kind.BOOL, False, "If true, single-tree search is used (as opposed to dual-tree search."
    )
    single_sample_limit: int = param(
        Kind.INT, 20,
        "The limit on the maximum number of samples (and hence the largest node you can approximate).",
    )
    tau: float = param(Kind.DOUBLE, 5.0, "The allowed rank-error in terms of the percentile of the data.")
    tree_type: str = param(
        Kind.STRING, "kd",
        "Type of tree to use: 'kd', 'ub', 'cover', 'r', 'x', 'r-star', 'hilbert-r', 'r-plus', "
        "'r-plus-plus', 'oct'.",
    )


@dataclass
class KrannResult(BindingResult):
    distances: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to output distances into.")
    neighbors: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to output neighbors into.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "The trained RANN model.", "RANNModel")


KRANN = define_program(
    "krann", "K-Rank-Approximate-Nearest-Neighbors (kRANN)", KrannOptions, KrannResult, FAMILY,
    "Rank-approximate nearest neighbor search.",
)


def krann(options: Optional[KrannOptions] = None, **overrides: Any) -> KrannResult:
    return KRANN.run(options, **overrides)


# =============================================================================
# LSH
# =============================================================================


@dataclass
class LshOptions(BindingOptions):
    bucket_size: int = param(Kind.INT, 500, "The size of a bucket in the second level hash.")
    hash_width: float = param(
        Kind.DOUBLE, 0.0,
        "The hash width for the first-level hashing in the LSH preprocessing. By default, the "
        "LSH class automatically estimates a hash width for its use.",
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input LSH model.", model_type="LSHSearch")
    k: int = param(Kind.INT, 0, "Number of nearest neighbors to find.")
    num_probes: int = param(
        Kind.INT, 0, "Number of additional probes for multiprobe LSH; if 0, traditional LSH is used."
    )
    projections: int = param(Kind.INT, 10, "The number of hash functions for each table")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing query points (optional).")
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")
    second_hash_size: int = param(Kind.INT, 99901, "The size of the second level hash table.")
    seed: int = param(Kind.INT, 0, "Random seed.  If 0, 'std::time(NULL)' is used.")
    tables: int = param(Kind.INT, 30, "The number of hash tables to be used.")
    true_neighbors: Optional[np.ndarray] = param(
        Kind.UMATRIX, doc="Matrix of true neighbors to compute recall with."
    )


@dataclass
class LshResult(BindingResult):
    distances: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to output distances into.")
    neighbors: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to output neighbors into.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained LSH model.", "LSHSearch")


LSH = define_program(
    "lsh", "K-Approximate-Nearest-Neighbor Search with LSH", LshOptions, LshResult, FAMILY,
    "Locality-sensitive hashing for approximate nearest neighbors.",
)


def lsh(options: Optional[LshOptions] = None, **overrides: Any) -> LshResult:
    return LSH.run(options, **overrides)


# =============================================================================
# RANGE SEARCH
# =============================================================================


@dataclass
class RangeSearchOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="File containing pre-trained range search model.", model_type="RSModel"
    )
    leaf_size: int = param(Kind.INT, 20, "Leaf size for tree building.")
    max: float = param(Kind.DOUBLE, 0.0, "Upper bound in range (if not specified, +inf will be used.")
    min: float = param(Kind.DOUBLE, 0.0, "Lower bound in range.")
    naive: bool = param(Kind.BOOL, False, "If true, O(n^2) naive mode is used for computation.")
    query: Optional[np.ndarray] = param(Kind.MATRIX, doc="File containing query points (optional).")
    random_basis: bool = param(
        Kind.BOOL, False, "Before tree-building, project the data onto a random orthogonal basis."
    )
    reference: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing the reference dataset.")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    single_mode: bool = param(
        Kind.BOOL, False, "If true, single-tree search is used (as opposed to dual-tree search)."
    )
    tree_type: str = param(Kind.STRING, "kd", f"Type of tree to use: {_TREE_TYPES}.")


@dataclass
class RangeSearchResult(BindingResult):
    distances_file: Optional[str] = out(Kind.STRING, "File to output distances into.")
    neighbors_file: Optional[str] = out(Kind.STRING, "File to output neighbors into.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "The range search model.", "RSModel")


RANGE_SEARCH = define_program(
    "range_search", "Range Search", RangeSearchOptions, RangeSearchResult, FAMILY,
    "Find all points within a distance range of each query point.",
)


def range_search(options: Optional[RangeSearchOptions] = None, **overrides: Any) -> RangeSearchResult:
    """
    Range search.

    Results are ragged, so the native program writes them to the files
    named by ``distances_file`` / ``neighbors_file``.
    """
    return RANGE_SEARCH.run(options, **overrides)
