"""
Classification Programs
=======================

AdaBoost, decision stumps and trees, Hoeffding trees, linear SVM, logistic
and softmax regression, naive Bayes, perceptrons and random forests.

Each program trains when ``training`` (and usually ``labels``) is given,
predicts when ``test`` is given, and can reuse a model handle from an
earlier call through ``input_model``.

Example:
    trained = random_forest(training=X, labels=y, num_trees=20)
    predicted = random_forest(input_model=trained.output_model, test=X_test)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from mlpack_bindings.bindings.models import ModelHandle
from mlpack_bindings.bindings.params import (
    BindingOptions,
    BindingResult,
    DataWithInfo,
    ParamKind as Kind,
    output as out,
    param,
)
from mlpack_bindings.bindings.program import define_program

FAMILY = "classification"

_SEED_DOC = "Random seed.  If 0, 'std::time(NULL)' is used."


# =============================================================================
# ADABOOST
# =============================================================================


@dataclass
class AdaboostOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input AdaBoost model.", model_type="AdaBoostModel")
    iterations: int = param(
        Kind.INT, 1000,
        "The maximum number of boosting iterations to be run (0 will run until convergence.)",
    )
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels for the training set.")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Test dataset.")
    tolerance: float = param(
        Kind.DOUBLE, 1e-10,
        "The tolerance for change in values of the weighted error during training.",
    )
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Dataset for training AdaBoost.")
    weak_learner: str = param(
        Kind.STRING, "decision_stump",
        "The type of weak learner to use: 'decision_stump', or 'perceptron'.",
    )


@dataclass
class AdaboostResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set (deprecated).")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output trained AdaBoost model.", "AdaBoostModel")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set.")


ADABOOST = define_program(
    "adaboost", "AdaBoost", AdaboostOptions, AdaboostResult, FAMILY,
    "AdaBoost.MH ensemble of decision stumps or perceptrons.",
)


def adaboost(options: Optional[AdaboostOptions] = None, **overrides: Any) -> AdaboostResult:
    """
    Train an AdaBoost model and/or classify points with it.

    Pass ``training`` and ``labels`` to train; pass ``test`` (with either
    fresh training data or ``input_model``) to predict.
    """
    return ADABOOST.run(options, **overrides)


# =============================================================================
# DECISION STUMP
# =============================================================================


@dataclass
class DecisionStumpOptions(BindingOptions):
    bucket_size: int = param(
        Kind.INT, 6, "The minimum number of training points in each decision stump bucket."
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Decision stump model to load.", model_type="DSModel")
    labels: Optional[np.ndarray] = param(
        Kind.UROW,
        doc="Labels for the training set. If not specified, the labels are assumed "
            "to be the last row of the training data.",
    )
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="A dataset to calculate predictions for.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="The dataset to train on.")


@dataclass
class DecisionStumpResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output decision stump model to save.", "DSModel")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set.")


DECISION_STUMP = define_program(
    "decision_stump", "Decision Stump", DecisionStumpOptions, DecisionStumpResult, FAMILY,
    "One-level decision tree classifier.",
)


def decision_stump(options: Optional[DecisionStumpOptions] = None, **overrides: Any) -> DecisionStumpResult:
    """Train a decision stump and/or classify points with it."""
    return DECISION_STUMP.run(options, **overrides)


# =============================================================================
# DECISION TREE
# =============================================================================


@dataclass
class DecisionTreeOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Pre-trained decision tree, to be used with test points.",
        model_type="DecisionTreeModel",
    )
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Training labels.")
    maximum_depth: int = param(Kind.INT, 0, "Maximum depth of the tree (0 means no limit).")
    minimum_gain_split: float = param(Kind.DOUBLE, 1e-7, "Minimum gain for node splitting.")
    minimum_leaf_size: int = param(Kind.INT, 20, "Minimum number of points in a leaf.")
    print_training_accuracy: bool = param(Kind.BOOL, False, "Print the training accuracy.")
    print_training_error: bool = param(
        Kind.BOOL, False, "Print the training error (deprecated; will be removed in mlpack 4.0.0)."
    )
    test: Optional[DataWithInfo] = param(Kind.MATRIX_WITH_INFO, doc="Testing dataset (may be categorical).")
    test_labels: Optional[np.ndarray] = param(
        Kind.UROW, doc="Test point labels, if accuracy calculation is desired."
    )
    training: Optional[DataWithInfo] = param(Kind.MATRIX_WITH_INFO, doc="Training dataset (may be categorical).")
    weights: Optional[np.ndarray] = param(Kind.MATRIX, doc="The weight of labels")


@dataclass
class DecisionTreeResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained decision tree.", "DecisionTreeModel")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Class predictions for each test point.")
    probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "Class probabilities for each test point.")


DECISION_TREE = define_program(
    "decision_tree", "Decision tree", DecisionTreeOptions, DecisionTreeResult, FAMILY,
    "ID3-style decision tree on numeric and categorical data.",
)


def decision_tree(options: Optional[DecisionTreeOptions] = None, **overrides: Any) -> DecisionTreeResult:
    """
    Train a decision tree and/or classify points with it.

    ``training`` and ``test`` may be DataWithInfo to mark categorical
    dimensions; plain arrays are treated as all-numeric.
    """
    return DECISION_TREE.run(options, **overrides)


# =============================================================================
# HOEFFDING TREE
# =============================================================================


@dataclass
class HoeffdingTreeOptions(BindingOptions):
    batch_mode: bool = param(
        Kind.BOOL, False,
        "If true, samples will be considered in batch instead of as a stream.",
    )
    bins: int = param(
        Kind.INT, 10,
        "If the 'domingos' split strategy is used, this specifies the number of bins for each numeric split.",
    )
    confidence: float = param(Kind.DOUBLE, 0.95, "Confidence before splitting (between 0 and 1).")
    info_gain: bool = param(
        Kind.BOOL, False,
        "If set, information gain is used instead of Gini impurity for calculating Hoeffding bounds.",
    )
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Input trained Hoeffding tree model.", model_type="HoeffdingTreeModel"
    )
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels for training dataset.")
    max_samples: int = param(Kind.INT, 5000, "Maximum number of samples before splitting.")
    min_samples: int = param(Kind.INT, 100, "Minimum number of samples before splitting.")
    numeric_split_strategy: str = param(
        Kind.STRING, "binary",
        "The splitting strategy to use for numeric features: 'domingos' or 'binary'.",
    )
    observations_before_binning: int = param(
        Kind.INT, 100,
        "If the 'domingos' split strategy is used, this specifies the number of samples "
        "observed before binning is performed.",
    )
    passes: int = param(Kind.INT, 1, "Number of passes to take over the dataset.")
    test: Optional[DataWithInfo] = param(Kind.MATRIX_WITH_INFO, doc="Testing dataset (may be categorical).")
    test_labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels of test data.")
    training: Optional[DataWithInfo] = param(Kind.MATRIX_WITH_INFO, doc="Training dataset (may be categorical).")


@dataclass
class HoeffdingTreeResult(BindingResult):
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "Output for trained Hoeffding tree model.", "HoeffdingTreeModel"
    )
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Label predictions for test data.")
    probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "Prediction probabilities for test data.")


HOEFFDING_TREE = define_program(
    "hoeffding_tree", "Hoeffding trees", HoeffdingTreeOptions, HoeffdingTreeResult, FAMILY,
    "Streaming decision tree (Very Fast Decision Tree).",
)


def hoeffding_tree(options: Optional[HoeffdingTreeOptions] = None, **overrides: Any) -> HoeffdingTreeResult:
    return HOEFFDING_TREE.run(options, **overrides)


# =============================================================================
# LINEAR SVM
# =============================================================================


@dataclass
class LinearSvmOptions(BindingOptions):
    delta: float = param(Kind.DOUBLE, 1.0, "Margin of difference between correct class and other classes.")
    epochs: int = param(Kind.INT, 50, "Maximum number of full epochs over dataset for psgd")
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Existing model (parameters).", model_type="LinearSVMModel"
    )
    labels: Optional[np.ndarray] = param(
        Kind.UROW, doc="A matrix containing labels (0 or 1) for the points in the training set (y)."
    )
    lambda_: float = param(
        Kind.DOUBLE, 0.0001, "L2-regularization parameter for training.", identifier="lambda"
    )
    max_iterations: int = param(
        Kind.INT, 10000, "Maximum iterations for optimizer (0 indicates no limit)."
    )
    no_intercept: bool = param(Kind.BOOL, False, "Do not add the intercept term to the model.")
    num_classes: int = param(
        Kind.INT, 0,
        "Number of classes for classification; if unspecified (or 0), the number of classes "
        "found in the labels will be used.",
    )
    optimizer: str = param(Kind.STRING, "lbfgs", "Optimizer to use for training ('lbfgs' or 'psgd').")
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    shuffle: bool = param(
        Kind.BOOL, False,
        "Don't shuffle the order in which data points are visited for parallel SGD.",
    )
    step_size: float = param(Kind.DOUBLE, 0.01, "Step size for parallel SGD optimizer.")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing test dataset.")
    test_labels: Optional[np.ndarray] = param(Kind.UROW, doc="Matrix containing test labels.")
    tolerance: float = param(Kind.DOUBLE, 1e-10, "Convergence tolerance for optimizer.")
    training: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="A matrix containing the training set (the matrix of predictors, X)."
    )


@dataclass
class LinearSvmResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained linear svm model.", "LinearSVMModel")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "If test data is specified, this matrix is where the predictions for the test set will be saved.")
    probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "If test data is specified, this matrix is where the class probabilities for the test set will be saved.")


LINEAR_SVM = define_program(
    "linear_svm", "Linear SVM is an L2-regularized support vector machine.",
    LinearSvmOptions, LinearSvmResult, FAMILY,
    "Multiclass L2-regularized linear support vector machine.",
)


def linear_svm(options: Optional[LinearSvmOptions] = None, **overrides: Any) -> LinearSvmResult:
    """Train a linear SVM and/or classify points with it."""
    return LINEAR_SVM.run(options, **overrides)


# =============================================================================
# LOGISTIC REGRESSION
# =============================================================================


@dataclass
class LogisticRegressionOptions(BindingOptions):
    batch_size: int = param(Kind.INT, 64, "Batch size for SGD.")
    decision_boundary: float = param(
        Kind.DOUBLE, 0.5,
        "Decision boundary for prediction; if the logistic function for a point is less than "
        "the boundary, the class is taken to be 0; otherwise, the class is 1.",
    )
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Existing model (parameters).", model_type="LogisticRegression"
    )
    labels: Optional[np.ndarray] = param(
        Kind.UROW, doc="A matrix containing labels (0 or 1) for the points in the training set (y)."
    )
    lambda_: float = param(Kind.DOUBLE, 0.0, "L2-regularization parameter for training.", identifier="lambda")
    max_iterations: int = param(Kind.INT, 10000, "Maximum iterations for optimizer (0 indicates no limit).")
    optimizer: str = param(Kind.STRING, "lbfgs", "Optimizer to use for training ('lbfgs' or 'sgd').")
    step_size: float = param(Kind.DOUBLE, 0.01, "Step size for SGD optimizer.")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing test dataset.")
    tolerance: float = param(Kind.DOUBLE, 1e-10, "Convergence tolerance for optimizer.")
    training: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="A matrix containing the training set (the matrix of predictors, X)."
    )


@dataclass
class LogisticRegressionResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UROW, "Predictions for the test set (deprecated).")
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "Output for trained logistic regression model.", "LogisticRegression"
    )
    output_probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "Class probabilities for the test set (deprecated).")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predictions for the test set.")
    probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "Class probabilities for the test set.")


LOGISTIC_REGRESSION = define_program(
    "logistic_regression", "L2-regularized Logistic Regression and Prediction",
    LogisticRegressionOptions, LogisticRegressionResult, FAMILY,
    "Two-class L2-regularized logistic regression.",
)


def logistic_regression(
    options: Optional[LogisticRegressionOptions] = None, **overrides: Any
) -> LogisticRegressionResult:
    return LOGISTIC_REGRESSION.run(options, **overrides)


# =============================================================================
# NAIVE BAYES
# =============================================================================


@dataclass
class NbcOptions(BindingOptions):
    incremental_variance: bool = param(
        Kind.BOOL, False, "The variance of each class will be calculated incrementally."
    )
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input Naive Bayes model.", model_type="NBCModel")
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="A file containing labels for the training set.")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="A matrix containing the test set.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="A matrix containing the training set.")


@dataclass
class NbcResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set (deprecated).")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Trained Naive Bayes model.", "NBCModel")
    output_probs: Optional[np.ndarray] = out(Kind.MATRIX, "Predicted label probabilities for the test set (deprecated).")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set.")
    probabilities: Optional[np.ndarray] = out(Kind.MATRIX, "Predicted label probabilities for the test set.")


NBC = define_program(
    "nbc", "Parametric Naive Bayes Classifier", NbcOptions, NbcResult, FAMILY,
    "Gaussian naive Bayes classifier.",
)


def nbc(options: Optional[NbcOptions] = None, **overrides: Any) -> NbcResult:
    """Train a naive Bayes classifier and/or classify points with it."""
    return NBC.run(options, **overrides)


# =============================================================================
# PERCEPTRON
# =============================================================================


@dataclass
class PerceptronOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(Kind.MODEL, doc="Input perceptron model.", model_type="PerceptronModel")
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="A matrix containing labels for the training set.")
    max_iterations: int = param(Kind.INT, 1000, "The maximum number of iterations the perceptron is to be run")
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="A matrix containing the test set.")
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="A matrix containing the training set.")


@dataclass
class PerceptronResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set (deprecated).")
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained perceptron model.", "PerceptronModel")
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predicted labels for the test set.")


PERCEPTRON = define_program(
    "perceptron", "Perceptron", PerceptronOptions, PerceptronResult, FAMILY,
    "Single-layer multiclass perceptron.",
)


def perceptron(options: Optional[PerceptronOptions] = None, **overrides: Any) -> PerceptronResult:
    return PERCEPTRON.run(options, **overrides)


# =============================================================================
# RANDOM FOREST
# =============================================================================


@dataclass
class RandomForestOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Pre-trained random forest to use for classification.",
        model_type="RandomForestModel",
    )
    labels: Optional[np.ndarray] = param(Kind.UROW, doc="Labels for training dataset.")
    maximum_depth: int = param(Kind.INT, 0, "Maximum depth of the tree (0 means no limit).")
    minimum_gain_split: float = param(
        Kind.DOUBLE, 0.0, "Minimum gain needed to make a split when building a tree."
    )
    minimum_leaf_size: int = param(Kind.INT, 1, "Minimum number of points in each leaf node.")
    num_trees: int = param(Kind.INT, 10, "Number of trees in the random forest.")
    print_training_accuracy: bool = param(
        Kind.BOOL, False,
        "If set, then the accuracy of the model on the training set will be predicted "
        "(verbose must also be specified).",
    )
    seed: int = param(Kind.INT, 0, _SEED_DOC)
    subspace_dim: int = param(
        Kind.INT, 0,
        "Dimensionality of random subspace to use for each split.  '0' will autoselect the "
        "square root of data dimensionality.",
    )
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Test dataset to produce predictions for.")
    test_labels: Optional[np.ndarray] = param(
        Kind.UROW, doc="Test dataset labels, if accuracy calculation is desired."
    )
    training: Optional[np.ndarray] = param(Kind.MATRIX, doc="Training dataset.")


@dataclass
class RandomForestResult(BindingResult):
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "Model to save trained random forest to.", "RandomForestModel"
    )
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Predicted classes for each point in the test set.")
    probabilities: Optional[np.ndarray] = out(
        Kind.MATRIX, "Predicted class probabilities for each point in the test set."
    )


RANDOM_FOREST = define_program(
    "random_forest", "Random forests", RandomForestOptions, RandomForestResult, FAMILY,
    "Random forest of decision trees.",
)


def random_forest(options: Optional[RandomForestOptions] = None, **overrides: Any) -> RandomForestResult:
    """Train a random forest and/or classify points with it."""
    return RANDOM_FOREST.run(options, **overrides)


# =============================================================================
# SOFTMAX REGRESSION
# =============================================================================


@dataclass
class SoftmaxRegressionOptions(BindingOptions):
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="File containing existing model (parameters).", model_type="SoftmaxRegression"
    )
    labels: Optional[np.ndarray] = param(
        Kind.UROW,
        doc="A matrix containing labels (0 or 1) for the points in the training set (y). "
            "The labels must order as a row.",
    )
    lambda_: float = param(Kind.DOUBLE, 0.0001, "L2-regularization constant", identifier="lambda")
    max_iterations: int = param(Kind.INT, 400, "Maximum number of iterations before termination.")
    no_intercept: bool = param(Kind.BOOL, False, "Do not add the intercept term to the model.")
    number_of_classes: int = param(
        Kind.INT, 0,
        "Number of classes for classification; if unspecified (or 0), the number of classes "
        "found in the labels will be used.",
    )
    test: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing test dataset.")
    test_labels: Optional[np.ndarray] = param(Kind.UROW, doc="Matrix containing test labels.")
    training: Optional[np.ndarray] = param(
        Kind.MATRIX, doc="A matrix containing the training set (the matrix of predictors, X)."
    )


@dataclass
class SoftmaxRegressionResult(BindingResult):
    output_model: Optional[ModelHandle] = out(
        Kind.MODEL, "File to save trained softmax regression model to.", "SoftmaxRegression"
    )
    predictions: Optional[np.ndarray] = out(Kind.UROW, "Matrix to save predictions for test dataset into.")


SOFTMAX_REGRESSION = define_program(
    "softmax_regression", "Softmax Regression", SoftmaxRegressionOptions, SoftmaxRegressionResult, FAMILY,
    "Multiclass softmax (multinomial logistic) regression.",
)


def softmax_regression(
    options: Optional[SoftmaxRegressionOptions] = None, **overrides: Any
) -> SoftmaxRegressionResult:
    return SOFTMAX_REGRESSION.run(options, **overrides)
