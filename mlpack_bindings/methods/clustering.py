"""
Clustering Programs
===================

DBSCAN, Euclidean minimum spanning trees, Gaussian mixture training,
k-means and mean shift.

The required inputs of each program are positional arguments:

    result = kmeans(3, X)
    result.centroid   # (3, n_dims)
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

FAMILY = "clustering"

_SEED_DOC = "Random seed.  If 0, 'std::time(NULL)' is used."


# =============================================================================
# DBSCAN
# =============================================================================


@dataclass
class DbscanOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to cluster.", required=True)
    epsilon: float = param(Kind.DOUBLE, 1.0, "Radius of each range search.")
    min_size: int = param(Kind.INT, 5, "Minimum number of points for a cluster.")
    naive: bool = param(Kind.BOOL, False, "If set, brute-force range search (not tree-based) will be used.")
    selection_type: str = param(
        Kind.STRING, "ordered",
        "If using point selection policy, the type of selection to use ('ordered', 'random').",
    )
    single_mode: bool = param(
        Kind.BOOL, False, "If set, single-tree range search (not dual-tree) will be used."
    )
    tree_type: str = param(
        Kind.STRING, "kd",
        "If using single-tree or dual-tree search, the type of tree to use ('kd', 'r', 'r-star', "
        "'x', 'hilbert-r', 'r-plus', 'r-plus-plus', 'cover', 'ball').",
    )


@dataclass
class DbscanResult(BindingResult):
    assignments: Optional[np.ndarray] = out(Kind.UROW, "Output matrix for assignments of each point.")
    centroids: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save output centroids to.")


DBSCAN = define_program(
    "dbscan", "DBSCAN clustering", DbscanOptions, DbscanResult, FAMILY,
    "Density-based spatial clustering (DBSCAN).",
)


def dbscan(input: Any, options: Optional[DbscanOptions] = None, **overrides: Any) -> DbscanResult:
    """
    Cluster ``input`` with DBSCAN.

    Noise points get the assignment ``SIZE_MAX`` as reported by mlpack.
    """
    return DBSCAN.run(options, input=input, **overrides)


# =============================================================================
# EMST
# =============================================================================


@dataclass
class EmstOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input data matrix.", required=True)
    leaf_size: int = param(
        Kind.INT, 1,
        "Leaf size in the kd-tree.  One-element leaves give the empirically best performance, "
        "but at the cost of greater memory requirements.",
    )
    naive: bool = param(Kind.BOOL, False, "Compute the MST using O(n^2) naive algorithm.")


@dataclass
class EmstResult(BindingResult):
    output: Optional[np.ndarray] = out(
        Kind.MATRIX, "Output data.  Stored as an edge list (lesser index, greater index, distance)."
    )


EMST = define_program(
    "emst", "Fast Euclidean Minimum Spanning Tree", EmstOptions, EmstResult, FAMILY,
    "Dual-tree Boruvka Euclidean minimum spanning tree.",
)


def emst(input: Any, options: Optional[EmstOptions] = None, **overrides: Any) -> EmstResult:
    return EMST.run(options, input=input, **overrides)


# =============================================================================
# GMM TRAINING
# =============================================================================


@dataclass
class GmmTrainOptions(BindingOptions):
    gaussians: Optional[int] = param(Kind.INT, doc="Number of Gaussians in the GMM.", required=True)
    input: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="The training data on which the model will be fit.", required=True
    )
    diagonal_covariance: bool = param(
        Kind.BOOL, False,
        "Force the covariance of the Gaussians to be diagonal.  This can accelerate training time significantly.",
    )
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Initial input GMM model to start training with.", model_type="GMM"
    )
    max_iterations: int = param(
        Kind.INT, 250, "Maximum number of iterations of EM algorithm (passing 0 will run until convergence)."
    )
    no_force_positive: bool = param(
        Kind.BOOL, False, "Do not force the covariance matrices to be positive definite."
    )
    noise: float = param(Kind.DOUBLE, 0.0, "Variance of zero-mean Gaussian noise to add to data.")
    percentage: float = param(
        Kind.DOUBLE, 0.02,
        "If using refined_start, specify the percentage of the dataset used for each sampling "
        "(should be between 0.0 and 1.0).",
    )
    refined_start: bool = param(
        Kind.BOOL, False,
        "During the initialization, use refined initial positions for k-means clustering "
        "(Bradley and Fayyad, 1998).",
    )
    samplings: int = param(
        Kind.INT, 100, "If using refined_start, specify the number of samplings used for initial points."
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    tolerance: float = param(Kind.DOUBLE, 1e-10, "Tolerance for convergence of EM.")
    trials: int = param(Kind.INT, 1, "Number of trials to perform in training GMM.")


@dataclass
class GmmTrainResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained GMM model.", "GMM")


GMM_TRAIN = define_program(
    "gmm_train", "Gaussian Mixture Model (GMM) Training", GmmTrainOptions, GmmTrainResult, FAMILY,
    "Fit a Gaussian mixture model with EM.",
)


def gmm_train(
    gaussians: int, input: Any, options: Optional[GmmTrainOptions] = None, **overrides: Any
) -> GmmTrainResult:
    """Fit a GMM with ``gaussians`` components to ``input``."""
    return GMM_TRAIN.run(options, gaussians=gaussians, input=input, **overrides)


# =============================================================================
# K-MEANS
# =============================================================================


@dataclass
class KmeansOptions(BindingOptions):
    clusters: Optional[int] = param(
        Kind.INT, doc="Number of clusters to find (0 autodetects from initial centroids).", required=True
    )
    input: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Input dataset to perform clustering on.", required=True
    )
    algorithm: str = param(
        Kind.STRING, "naive",
        "Algorithm to use for the Lloyd iteration ('naive', 'pelleg-moore', 'elkan', 'hamerly', "
        "'dualtree', or 'dualtree-covertree').",
    )
    allow_empty_clusters: bool = param(Kind.BOOL, False, "Allow empty clusters to be persist.")
    in_place: bool = param(
        Kind.BOOL, False,
        "If specified, a column containing the learned cluster assignments will be added to the input dataset.",
    )
    initial_centroids: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Start with the specified initial centroids."
    )
    kill_empty_clusters: bool = param(Kind.BOOL, False, "Remove empty clusters when they occur.")
    labels_only: bool = param(Kind.BOOL, False, "Only output labels into output file.")
    max_iterations: int = param(Kind.INT, 1000, "Maximum number of iterations before k-means terminates.")
    percentage: float = param(
        Kind.DOUBLE, 0.02,
        "Percentage of dataset to use for each refined start sampling (use when refined_start is specified).",
    )
    refined_start: bool = param(
        Kind.BOOL, False,
        "Use the refined initial point strategy by Bradley and Fayyad to choose initial points.",
    )
    samplings: int = param(
        Kind.INT, 100, "Number of samplings to perform for refined start (use when refined_start is specified)."
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)


@dataclass
class KmeansResult(BindingResult):
    centroid: Optional[np.ndarray] = out(Kind.MATRIX, "The centroids of each cluster.")
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to store output labels or labeled data to.")


KMEANS = define_program(
    "kmeans", "K-Means Clustering", KmeansOptions, KmeansResult, FAMILY,
    "k-means clustering with a choice of Lloyd iteration strategies.",
)


def kmeans(
    clusters: int, input: Any, options: Optional[KmeansOptions] = None, **overrides: Any
) -> KmeansResult:
    """
    Cluster ``input`` into ``clusters`` clusters.

    ``output`` holds the input points with their assignment appended as a
    last column (only the assignments when ``labels_only`` is set).
    """
    return KMEANS.run(options, clusters=clusters, input=input, **overrides)


# =============================================================================
# MEAN SHIFT
# =============================================================================


@dataclass
class MeanShiftOptions(BindingOptions):
    input: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Input dataset to perform clustering on.", required=True
    )
    force_convergence: bool = param(
        Kind.BOOL, False,
        "If specified, the mean shift algorithm will continue running regardless of "
        "max_iterations until the clusters converge.",
    )
    in_place: bool = param(
        Kind.BOOL, False,
        "If specified, a column containing the learned cluster assignments will be added to the input dataset.",
    )
    labels_only: bool = param(
        Kind.BOOL, False, "If specified, only the output labels will be written to the output."
    )
    max_iterations: int = param(Kind.INT, 1000, "Maximum number of iterations before mean shift terminates.")
    radius: float = param(
        Kind.DOUBLE, 0.0,
        "If the distance between two centroids is less than the given radius, one will be removed. "
        "A radius of 0 or less means an estimate will be calculated and used for the radius.",
    )


@dataclass
class MeanShiftResult(BindingResult):
    centroid: Optional[np.ndarray] = out(Kind.MATRIX, "The centroids of each cluster.")
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to write output labels or labeled data to.")


MEAN_SHIFT = define_program(
    "mean_shift", "Mean Shift Clustering", MeanShiftOptions, MeanShiftResult, FAMILY,
    "Mean shift clustering.",
)


def mean_shift(input: Any, options: Optional[MeanShiftOptions] = None, **overrides: Any) -> MeanShiftResult:
    return MEAN_SHIFT.run(options, input=input, **overrides)
