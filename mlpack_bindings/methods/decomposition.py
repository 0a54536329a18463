"""
Decomposition and metric-learning programs.

Kernel PCA, LMNN, local coordinate coding, NCA, NMF, PCA, RADICAL (ICA)
and sparse coding.
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

FAMILY = "decomposition"

_SEED_DOC = "Random seed.  If 0, 'std::time(NULL)' is used."


# =============================================================================
# KERNEL PCA
# =============================================================================


@dataclass
class KernelPcaOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to perform KPCA on.", required=True)
    kernel: Optional[str] = param(
        Kind.STRING,
        doc="The kernel to use: 'linear', 'gaussian', 'polynomial', 'hyptan', 'laplacian', 'epanechnikov', 'cosine'.",
        required=True,
    )
    bandwidth: float = param(Kind.DOUBLE, 1.0, "Bandwidth, for 'gaussian' and 'laplacian' kernels.")
    center: bool = param(Kind.BOOL, False, "If set, the transformed data will be centered about the origin.")
    degree: float = param(Kind.DOUBLE, 1.0, "Degree of polynomial, for 'polynomial' kernel.")
    kernel_scale: float = param(Kind.DOUBLE, 1.0, "Scale, for 'hyptan' kernel.")
    new_dimensionality: int = param(
        Kind.INT, 0,
        "If not 0, reduce the dimensionality of the output dataset by ignoring the dimensions "
        "with the smallest eigenvalues.",
    )
    nystroem_method: bool = param(Kind.BOOL, False, "If set, the Nystroem method will be used.")
    offset: float = param(Kind.DOUBLE, 0.0, "Offset, for 'hyptan' and 'polynomial' kernels.")
    sampling: str = param(
        Kind.STRING, "kmeans", "Sampling scheme to use for the Nystroem method: 'kmeans', 'random', 'ordered'"
    )


@dataclass
class KernelPcaResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save modified dataset to.")


KERNEL_PCA = define_program(
    "kernel_pca", "Kernel Principal Components Analysis", KernelPcaOptions, KernelPcaResult, FAMILY,
    "Kernel principal components analysis.",
)


def kernel_pca(
    input: Any, kernel: str, options: Optional[KernelPcaOptions] = None, **overrides: Any
) -> KernelPcaResult:
    return KERNEL_PCA.run(options, input=input, kernel=kernel, **overrides)


# =============================================================================
# LMNN
# =============================================================================


@dataclass
class LmnnOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to run LMNN on.", required=True)
    batch_size: int = param(Kind.INT, 50, "Batch size for mini-batch SGD.")
    center: bool = param(Kind.BOOL, False, "Perform mean-centering on the dataset.")
    distance: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="Initial distance matrix to be used as starting point"
    )
    k: int = param(Kind.INT, 1, "Number of target neighbors to use for each datapoint.")
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels for input dataset.")
    linear_scan: bool = param(
        Kind.BOOL, False,
        "Don't shuffle the order in which data points are visited for SGD or mini-batch SGD.",
    )
    max_iterations: int = param(
        Kind.INT, 100000, "Maximum number of iterations for L-BFGS (0 indicates no limit)."
    )
    normalize: bool = param(Kind.BOOL, False, "Use a normalized starting point for optimization.")
    optimizer: str = param(Kind.STRING, "amsgrad", "Optimizer to use; 'amsgrad', 'bbsgd', 'sgd', or 'lbfgs'.")
    passes: int = param(
        Kind.INT, 50, "Maximum number of full passes over dataset for AMSGrad, BB_SGD and SGD."
    )
    print_accuracy: bool = param(Kind.BOOL, False, "Print accuracies on initial and transformed dataset")
    range: int = param(
        Kind.INT, 1, "Number of iterations after which impostors needs to be recalculated"
    )
    rank: int = param(Kind.INT, 0, "Rank of distance matrix to be optimized.")
    regularization: float = param(Kind.DOUBLE, 0.5, "Regularization for LMNN objective function")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    step_size: float = param(Kind.DOUBLE, 0.01, "Step size for AMSGrad, BB_SGD and SGD (alpha).")
    tolerance: float = param(
        Kind.DOUBLE, 1e-7, "Maximum tolerance for termination of AMSGrad, BB_SGD, SGD or L-BFGS."
    )


@dataclass
class LmnnResult(BindingResult):
    centered_data: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix for mean-centered dataset.")
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix for learned distance matrix.")
    transformed_data: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix for transformed dataset.")


LMNN = define_program(
    "lmnn", "Large Margin Nearest Neighbors (LMNN)", LmnnOptions, LmnnResult, FAMILY,
    "Learn a Mahalanobis distance with large margin nearest neighbors.",
)


def lmnn(input: Any, options: Optional[LmnnOptions] = None, **overrides: Any) -> LmnnResult:
    return LMNN.run(options, input=input, **overrides)


# =============================================================================
# LOCAL COORDINATE CODING
# =============================================================================


@dataclass
class LocalCoordinateCodingOptions(BindingOptions):
    atoms: int = param(Kind.INT, 0, "Number of atoms in the dictionary.")
    initial_dictionary: Optional[np.ndarray] = param(Kind.MATRIX, doc="Optional initial dictionary.")
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Input LCC model.", model_type="LocalCoordinateCoding"
    )
    lambda_: float = param(
        Kind.DOUBLE, 0.0, "Weighted l1-norm regularization parameter.", identifier="lambda"
    )
    max_iterations: int = param(Kind.INT, 0, "Maximum number of iterations for LCC (0 indicates no limit).")
    normalize: bool = param(
        Kind.BOOL, False, "If set, the input data matrix will be normalized before coding."
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Test points to encode.")
    tolerance: float = param(Kind.DOUBLE, 0.01, "Tolerance for objective function.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix of training data (X).")


@dataclass
class LocalCoordinateCodingResult(BindingResult):
    codes: Optional[np.ndarray] = out(Kind.MATRIX, "Output codes matrix.")
    dictionary: Optional[np.ndarray] = out(Kind.MATRIX, "Output dictionary matrix.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained LCC model.", "LocalCoordinateCoding")


LOCAL_COORDINATE_CODING = define_program(
    "local_coordinate_coding", "Local Coordinate Coding",
    LocalCoordinateCodingOptions, LocalCoordinateCodingResult, FAMILY,
    "Local coordinate coding with a learned dictionary.",
)


def local_coordinate_coding(
    options: Optional[LocalCoordinateCodingOptions] = None, **overrides: Any
) -> LocalCoordinateCodingResult:
    return LOCAL_COORDINATE_CODING.run(options, **overrides)


# =============================================================================
# NCA
# =============================================================================


@dataclass
class NcaOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to run NCA on.", required=True)
    armijo_constant: float = param(Kind.DOUBLE, 0.0001, "Armijo constant for L-BFGS.")
    batch_size: int = param(Kind.INT, 50, "Batch size for mini-batch SGD.")
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels for input dataset.")
    linear_scan: bool = param(
        Kind.BOOL, False,
        "Don't shuffle the order in which data points are visited for SGD or mini-batch SGD.",
    )
    max_iterations: int = param(
        Kind.INT, 500000, "Maximum number of iterations for SGD or L-BFGS (0 indicates no limit)."
    )
    max_line_search_trials: int = param(Kind.INT, 50, "Maximum number of line search trials for L-BFGS.")
    max_step: float = param(Kind.DOUBLE, 1e20, "Maximum step of line search for L-BFGS.")
    min_step: float = param(Kind.DOUBLE, 1e-20, "Minimum step of line search for L-BFGS.")
    normalize: bool = param(Kind.BOOL, False, "Use a normalized starting point for optimization.")
    num_basis: int = param(Kind.INT, 5, "Number of memory points to be stored for L-BFGS.")
    optimizer: str = param(Kind.STRING, "sgd", "Optimizer to use; 'sgd' or 'lbfgs'.")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    step_size: float = param(Kind.DOUBLE, 0.01, "Step size for stochastic gradient descent (alpha).")
    tolerance: float = param(Kind.DOUBLE, 1e-7, "Maximum tolerance for termination of SGD or L-BFGS.")
    wolfe: float = param(Kind.DOUBLE, 0.9, "Wolfe condition parameter for L-BFGS.")


@dataclass
class NcaResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Output matrix for learned distance matrix.")


NCA = define_program(
    "nca", "Neighborhood Components Analysis (NCA)", NcaOptions, NcaResult, FAMILY,
    "Learn a distance metric with neighborhood components analysis.",
)


def nca(input: Any, options: Optional[NcaOptions] = None, **overrides: Any) -> NcaResult:
    return NCA.run(options, input=input, **overrides)


# =============================================================================
# NMF
# =============================================================================


@dataclass
class NmfOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to perform NMF on.", required=True)
    rank: Optional[int] = param(Kind.INT, doc="Rank of the factorization.", required=True)
    initial_h: Optional[np.ndarray] = param(Kind.MATRIX, doc="Initial H matrix.")
    initial_w: Optional[np.ndarray] = param(Kind.MATRIX, doc="Initial W matrix.")
    max_iterations: int = param(
        Kind.INT, 10000, "Number of iterations before NMF terminates (0 runs until convergence."
    )
    min_residue: float = param(Kind.DOUBLE, 1e-5, "The minimum root mean square residue allowed for each iteration, below which the program terminates.")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    update_rules: str = param(
        Kind.STRING, "multdist", "Update rules for each iteration; ( multdist | multdiv | als )."
    )


@dataclass
class NmfResult(BindingResult):
    h: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save the calculated H to.")
    w: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save the calculated W to.")


NMF = define_program(
    "nmf", "Non-negative Matrix Factorization", NmfOptions, NmfResult, FAMILY,
    "Non-negative matrix factorization V ~ WH.",
)


def nmf(input: Any, rank: int, options: Optional[NmfOptions] = None, **overrides: Any) -> NmfResult:
    """
    Factorize ``input`` into non-negative ``w`` and ``h`` of the given rank.

    mlpack factorizes the column-major matrix, i.e. ``input.T ~ w @ h``.
    """
    return NMF.run(options, input=input, rank=rank, **overrides)


# =============================================================================
# PCA
# =============================================================================


@dataclass
class PcaOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to perform PCA on.", required=True)
    decomposition_method: str = param(
        Kind.STRING, "exact",
        "Method used for the principal components analysis: 'exact', 'randomized', 'randomized-block-krylov', 'quic'.",
    )
    new_dimensionality: int = param(
        Kind.INT, 0, "Desired dimensionality of output dataset. If 0, no dimensionality reduction is performed."
    )
    scale: bool = param(
        Kind.BOOL, False, "If set, the data will be scaled before running PCA, such that the variance of each feature is 1."
    )
    var_to_retain: float = param(
        Kind.DOUBLE, 0.0,
        "Amount of variance to retain; should be between 0 and 1.  If 1, all variance is retained. Overrides -d.",
    )


@dataclass
class PcaResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save modified dataset to.")


PCA = define_program(
    "pca", "Principal Components Analysis", PcaOptions, PcaResult, FAMILY,
    "Principal components analysis.",
)


def pca(input: Any, options: Optional[PcaOptions] = None, **overrides: Any) -> PcaResult:
    return PCA.run(options, input=input, **overrides)


# =============================================================================
# RADICAL
# =============================================================================


@dataclass
class RadicalOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset for ICA.", required=True)
    angles: int = param(
        Kind.INT, 150, "Number of angles to consider in brute-force search during Radical2D."
    )
    noise_std_dev: float = param(Kind.DOUBLE, 0.175, "Standard deviation of Gaussian noise.")
    objective: bool = param(
        Kind.BOOL, False, "If set, an estimate of the final objective function is printed."
    )
    replicates: int = param(
        Kind.INT, 30, "Number of Gaussian-perturbed replicates to use (per point) in Radical2D."
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    sweeps: int = param(
        Kind.INT, 0, "Number of sweeps; each sweep calls Radical2D once for each pair of dimensions."
    )


@dataclass
class RadicalResult(BindingResult):
    output_ic: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save independent components to.")
    output_unmixing: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save unmixing matrix to.")


RADICAL = define_program(
    "radical", "RADICAL", RadicalOptions, RadicalResult, FAMILY,
    "Independent component analysis with RADICAL.",
)


def radical(input: Any, options: Optional[RadicalOptions] = None, **overrides: Any) -> RadicalResult:
    return RADICAL.run(options, input=input, **overrides)


# =============================================================================
# SPARSE CODING
# =============================================================================


@dataclass
class SparseCodingOptions(BindingOptions):
    atoms: int = param(Kind.INT, 15, "Number of atoms in the dictionary.")
    initial_dictionary: Optional[np.ndarray] = param(Kind.MATRIX, doc="Optional initial dictionary matrix.")
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="File containing input sparse coding model.", model_type="SparseCoding"
    )
    lambda1: float = param(Kind.DOUBLE, 0.0, "Sparse coding l1-norm regularization parameter.")
    lambda2: float = param(Kind.DOUBLE, 0.0, "Sparse coding l2-norm regularization parameter.")
    max_iterations: int = param(
        Kind.INT, 0, "Maximum number of iterations for sparse coding (0 indicates no limit)."
    )
    newton_tolerance: float = param(Kind.DOUBLE, 1e-6, "Tolerance for convergence of Newton method.")
    normalize: bool = param(
        Kind.BOOL, False, "If set, the input data matrix will be normalized before coding."
    )
    objective_tolerance: float = param(
        Kind.DOUBLE, 0.01, "Tolerance for convergence of the objective function."
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Optional matrix to be encoded by trained model.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix of training data (X).")


@dataclass
class SparseCodingResult(BindingResult):
    codes: Optional[np.ndarray] = out(Kind.MATRIX, "Sparse codes of the test matrix.")
    dictionary: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save the output dictionary to.")
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "File to save trained sparse coding model to.", "SparseCoding"
    )


SPARSE_CODING = define_program(
    "sparse_coding", "Sparse Coding", SparseCodingOptions, SparseCodingResult, FAMILY,
    "Sparse coding with dictionary learning (LARS-based).",
)


def sparse_coding(options: Optional[SparseCodingOptions] = None, **overrides: Any) -> SparseCodingResult:
    return SPARSE_CODING.run(options, **overrides)
