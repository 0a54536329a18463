"""
Collaborative filtering recommendations.
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

FAMILY = "recommendation"


@dataclass
class CfOptions(BindingOptions):
    algorithm: str = param(Kind.STRING, "NMF", "Algorithm used for matrix factorization.")
    all_user_recommendations: bool = param(Kind.BOOL, False, "Generate recommendations for all users.")
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Trained CF model to load.", model_type="CFModel")
    interpolation: str = param(Kind.STRING, "average", "Algorithm used for weight interpolation.")
    iteration_only_termination: bool = param(
        Kind.BOOL, False, "Terminate only when the maximum number of iterations is reached."
    )
    max_iterations: int = param(
        Kind.INT, 1000,
        "Maximum number of iterations. If set to zero, there is no limit on the number of iterations.",
    )
    min_residue: float = param(
        Kind.DOUBLE, 1e-5,
        "Residue required to terminate the factorization (lower values generally mean better fits).",
    )
    neighbor_search: str = param(Kind.STRING, "euclidean", "Algorithm used for neighbor search.")
    neighborhood: int = param(
        Kind.INT, 5, "Size of the neighborhood of similar users to consider for each query user."
    )
    query: Optional[np.ndarray] = param(
        Kind.UMATRIX, doc="List of query users for which recommendations should be generated."
    )
    rank: int = param(
        Kind.INT, 0, "Rank of decomposed matrices (if 0, a heuristic is used to estimate the rank)."
    )
    recommendations: int = param(Kind.INT, 5, "Number of recommendations to generate for each query user.")
    seed: int = param(Kind.INT, 0, "Set the random seed (0 uses std::time(NULL)).")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Test set to calculate RMSE on.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Input dataset to perform CF on.")


@dataclass
class CfResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix that will store output recommendations.")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained CF model.", "CFModel")


CF = define_program(
    "cf", "Collaborative Filtering", CfOptions, CfResult, FAMILY,
    "Collaborative filtering via matrix factorization.",
)


def cf(options: Optional[CfOptions] = None, **overrides: Any) -> CfResult:
    """
    Train a collaborative filtering model and/or generate recommendations.

    ``training`` is a coordinate list with one ``(user, item, rating)``
    triple per row; ``query`` lists user ids, one per row.
    """
    return CF.run(options, **overrides)
