"""
Preprocessing Programs
======================

Binarize, describe, scale and split datasets before training.

    split = preprocess_split(X, input_labels=y, test_ratio=0.25)
    scaled = preprocess_scale(split.training, scaler_method="min_max_scaler")
    back = preprocess_scale(scaled.output, input_model=scaled.output_model,
                            inverse_scaling=True)
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

FAMILY = "preprocessing"


# =============================================================================
# BINARIZE
# =============================================================================


@dataclass
class PreprocessBinarizeOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input data matrix.", required=True)
    dimension: int = param(Kind.INT, 0, "Dimension to apply the binarization. If not set, the program will binarize every dimension by default.")
    threshold: float = param(Kind.DOUBLE, 0.0, "Threshold to be applied for binarization. If not set, the threshold defaults to 0.0.")


@dataclass
class PreprocessBinarizeResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix in which to save the output.")


PREPROCESS_BINARIZE = define_program(
    "preprocess_binarize", "Binarize Data", PreprocessBinarizeOptions, PreprocessBinarizeResult, FAMILY,
    "Threshold a dataset (or one dimension of it) to 0/1.",
)


def preprocess_binarize(
    input: Any, options: Optional[PreprocessBinarizeOptions] = None, **overrides: Any
) -> PreprocessBinarizeResult:
    return PREPROCESS_BINARIZE.run(options, input=input, **overrides)


# =============================================================================
# DESCRIBE
# =============================================================================


@dataclass
class PreprocessDescribeOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing data,", required=True)
    dimension: int = param(Kind.INT, 0, "Dimension of the data. Use this to specify a dimension")
    population: bool = param(Kind.BOOL, False, "If specified, the program will calculate statistics assuming the dataset is the population. By default, the program will assume the dataset as a sample.")
    precision: int = param(Kind.INT, 4, "Precision of the output statistics.")
    row_major: bool = param(Kind.BOOL, False, "If specified, the program will calculate statistics across rows, not across columns.  (Remember that in mlpack, a column represents a point, so this option is generally not necessary.)")
    width: int = param(Kind.INT, 8, "Width of the output table.")


@dataclass
class PreprocessDescribeResult(BindingResult):
    pass


PREPROCESS_DESCRIBE = define_program(
    "preprocess_describe", "Descriptive Statistics", PreprocessDescribeOptions, PreprocessDescribeResult,
    FAMILY, "Print descriptive statistics of a dataset (output goes to the mlpack log).",
)


def preprocess_describe(
    input: Any, options: Optional[PreprocessDescribeOptions] = None, **overrides: Any
) -> PreprocessDescribeResult:
    """
    Print descriptive statistics of ``input``.

    The statistics are written to mlpack's informational log, so pass
    ``verbose=True`` to see them. The result record has no fields.
    """
    return PREPROCESS_DESCRIBE.run(options, input=input, **overrides)


# =============================================================================
# SCALE
# =============================================================================


@dataclass
class PreprocessScaleOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing data.", required=True)
    epsilon: float = param(Kind.DOUBLE, 1e-6, "regularization Parameter for pcawhitening, or zcawhitening, should be between -1 to 1.")
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input Scaling model.", model_type="ScalingModel")
    inverse_scaling: bool = param(Kind.BOOL, False, "Inverse Scaling to get original dataset")
    max_value: int = param(Kind.INT, 1, "Ending value of range for min_max_scaler.")
    min_value: int = param(Kind.INT, 0, "Starting value of range for min_max_scaler.")
    scaler_method: str = param(
        Kind.STRING, "standard_scaler",
        "method to use for scaling, the default is standard_scaler "
        "(min_max_scaler, max_abs_scaler, mean_normalization, pca_whitening, zca_whitening).",
    )
    seed: int = param(Kind.INT, 0, "Random seed (0 for std::time(NULL)).")


@dataclass
class PreprocessScaleResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save scaled data to.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output scaling model.", "ScalingModel")


PREPROCESS_SCALE = define_program(
    "preprocess_scale", "Scale Data", PreprocessScaleOptions, PreprocessScaleResult, FAMILY,
    "Scale a dataset, or undo a previous scaling with a ScalingModel.",
)


def preprocess_scale(
    input: Any, options: Optional[PreprocessScaleOptions] = None, **overrides: Any
) -> PreprocessScaleResult:
    return PREPROCESS_SCALE.run(options, input=input, **overrides)


# =============================================================================
# SPLIT
# =============================================================================


@dataclass
class PreprocessSplitOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing data.", required=True)
    input_labels: Optional[np.ndarray] = param(Kind.UMATRIX, doc="Matrix containing labels.")
    seed: int = param(Kind.INT, 0, "Random seed (0 for std::time(NULL)).")
    test_ratio: float = param(Kind.DOUBLE, 0.2, "Ratio of test set; if not set,the ratio defaults to 0.2")


@dataclass
class PreprocessSplitResult(BindingResult):
    test: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save test data to.")
    test_labels: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to save test labels to.")
    training: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save training data to.")
    training_labels: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to save train labels to.")


PREPROCESS_SPLIT = define_program(
    "preprocess_split", "Split Data", PreprocessSplitOptions, PreprocessSplitResult, FAMILY,
    "Split a dataset (and optionally its labels) into training and test sets.",
)


def preprocess_split(
    input: Any, options: Optional[PreprocessSplitOptions] = None, **overrides: Any
) -> PreprocessSplitResult:
    """
    Split ``input`` into a training and a test set.

    Labels, when given, are a ``(n_points, 1)`` unsigned matrix and are split
    along with the points.
    """
    return PREPROCESS_SPLIT.run(options, input=input, **overrides)
