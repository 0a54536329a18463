"""
Density estimation with density estimation trees (DET).
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

FAMILY = "density"


@dataclass
class DetOptions(BindingOptions):
    folds: int = param(
        Kind.INT, 10, "The number of folds of cross-validation to perform for the estimation (0 is LOOCV)"
    )
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Trained density estimation tree to load.", model_type="DTree"
    )
    max_leaf_size: int = param(
        Kind.INT, 10, "The maximum size of a leaf in the unpruned, fully grown DET."
    )
    min_leaf_size: int = param(
        Kind.INT, 5, "The minimum size of a leaf in the unpruned, fully grown DET."
    )
    path_format: str = param(
        Kind.STRING, "lr", "The format of path printing: 'lr', 'id-lr', or 'lr-id'."
    )
    skip_pruning: bool = param(
        Kind.BOOL, False, "Whether to bypass the pruning process and output the unpruned tree only."
    )
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="A set of test points to estimate the density of.")
    training: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="The data set on which to build a density estimation tree."
    )


@dataclass
class DetResult(BindingResult):
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "Output to save trained density estimation tree to.", "DTree"
    )
    tag_counters_file: Optional[str] = out(
        Kind.STRING, "The file to output the number of points that went to each leaf."
    )
    tag_file: Optional[str] = out(
        Kind.STRING, "The file to output the tags (and possibly paths) for each sample in the test set."
    )
    test_set_estimates: Optional[np.ndarray] = out(
        Kind.MATRIX, "The output estimates on the test set from the final optimally pruned tree."
    )
    training_set_estimates: Optional[np.ndarray] = out(
        Kind.MATRIX, "The output density estimates on the training set from the final optimally pruned tree."
    )
    vi: Optional[np.ndarray] = out(Kind.MATRIX, "The output variable importance values for each feature.")


DET = define_program(
    "det", "Density Estimation With Density Estimation Trees", DetOptions, DetResult, FAMILY,
    "Density estimation trees with cross-validated pruning.",
)


def det(options: Optional[DetOptions] = None, **overrides: Any) -> DetResult:
    """
    Train a density estimation tree and/or evaluate densities with it.

    Estimates come back with one row per point.
    """
    return DET.run(options, **overrides)
