"""
Regression programs: LARS (LASSO / elastic net) and linear/ridge regression.
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

FAMILY = "regression"


# =============================================================================
# LARS
# =============================================================================


@dataclass
class LarsOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix of covariates (X).")
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Trained LARS model to use.", model_type="LARS")
    lambda1: float = param(Kind.DOUBLE, 0.0, "Regularization parameter for l1-norm penalty.")
    lambda2: float = param(Kind.DOUBLE, 0.0, "Regularization parameter for l2-norm penalty.")
    responses: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix of responses/observations (y).")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing points to regress on (test points).")
    use_cholesky: bool = param(
        Kind.BOOL, False,
        "Use Cholesky decomposition during computation rather than explicitly computing the full Gram matrix.",
    )


@dataclass
class LarsResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output LARS model.", "LARS")
    output_predictions: Optional[np.ndarray] = out(Kind.MATRIX, "Predicted responses for the test points.")


LARS = define_program(
    "lars", "LARS", LarsOptions, LarsResult, FAMILY,
    "Least Angle Regression (LASSO, elastic net).",
)


def lars(options: Optional[LarsOptions] = None, **overrides: Any) -> LarsResult:
    """
    Fit a LARS model and/or predict responses with it.

    ``responses`` is passed as a matrix with one response per row
    (shape ``(n_points, 1)``).
    """
    return LARS.run(options, **overrides)


# =============================================================================
# LINEAR REGRESSION
# =============================================================================


@dataclass
class LinearRegressionOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Existing LinearRegression model to use.", model_type="LinearRegression"
    )
    lambda_: float = param(
        Kind.DOUBLE, 0.0,
        "Tikhonov regularization for ridge regression.  If 0, the method reduces to linear regression.",
        identifier="lambda",
    )
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing X' (test regressors).")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing training set X (regressors).")
    training_responses: Optional[np.ndarray] = param(
        Kind.ROW,
        doc="Optional vector containing y (responses). If not given, the responses are assumed "
            "to be the last row of the input file.",
    )


@dataclass
class LinearRegressionResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output LinearRegression model.", "LinearRegression")
    output_predictions: Optional[np.ndarray] = out(Kind.ROW, "Predicted responses for the test set.")


LINEAR_REGRESSION = define_program(
    "linear_regression", "Simple Linear Regression and Prediction",
    LinearRegressionOptions, LinearRegressionResult, FAMILY,
    "Ordinary least squares / ridge regression.",
)


def linear_regression(
    options: Optional[LinearRegressionOptions] = None, **overrides: Any
) -> LinearRegressionResult:
    return LINEAR_REGRESSION.run(options, **overrides)
