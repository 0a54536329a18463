"""
Hidden Markov Model Programs
============================

Training, sequence generation, log-likelihood and Viterbi decoding for
mlpack's HMMModel (discrete, Gaussian, GMM or diagonal-GMM emissions).

Observation sequences are matrices with one observation per row. All four
programs exchange the same HMMModel handle type:

    trained = hmm_train("observations.csv", states=3, type="gaussian")
    path = hmm_viterbi(X, trained.output_model).output
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

FAMILY = "hmm"
MODEL_TYPE = "HMMModel"


# =============================================================================
# GENERATE
# =============================================================================


@dataclass
class HmmGenerateOptions(BindingOptions):
    length: Optional[int] = param(Kind.INT, doc="Length of sequence to generate.", required=True)
    model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Trained HMM to generate sequences with.", required=True, model_type=MODEL_TYPE
    )
    seed: int = param(Kind.INT, 0, "Random seed.  If 0, 'std::time(NULL)' is used.")
    start_state: int = param(Kind.INT, 0, "Starting state of sequence.")


@dataclass
class HmmGenerateResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.MATRIX, "Matrix to save observation sequence to.")
    state: Optional[np.ndarray] = out(Kind.UMATRIX, "Matrix to save hidden state sequence to.")


HMM_GENERATE = define_program(
    "hmm_generate", "Hidden Markov Model (HMM) Sequence Generator",
    HmmGenerateOptions, HmmGenerateResult, FAMILY,
    "Generate an observation sequence from a trained HMM.",
)


def hmm_generate(
    length: int, model: ModelHandle, options: Optional[HmmGenerateOptions] = None, **overrides: Any
) -> HmmGenerateResult:
    return HMM_GENERATE.run(options, length=length, model=model, **overrides)


# =============================================================================
# LOG-LIKELIHOOD
# =============================================================================


@dataclass
class HmmLoglikOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="File containing observations,", required=True)
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="File containing HMM.", required=True, model_type=MODEL_TYPE
    )


@dataclass
class HmmLoglikResult(BindingResult):
    log_likelihood: Optional[float] = out(Kind.DOUBLE, "Log-likelihood of the sequence.")


HMM_LOGLIK = define_program(
    "hmm_loglik", "Hidden Markov Model (HMM) Sequence Log-Likelihood",
    HmmLoglikOptions, HmmLoglikResult, FAMILY,
    "Log-likelihood of an observation sequence under a trained HMM.",
)


def hmm_loglik(
    input: Any, input_model: ModelHandle, options: Optional[HmmLoglikOptions] = None, **overrides: Any
) -> HmmLoglikResult:
    return HMM_LOGLIK.run(options, input=input, input_model=input_model, **overrides)


# =============================================================================
# TRAIN
# =============================================================================


@dataclass
class HmmTrainOptions(BindingOptions):
    input_file: Optional[str] = param(
        Kind.STRING,
        doc="File containing input observations (or a file listing sequence files, with batch).",
        required=True,
    )
    batch: bool = param(
        Kind.BOOL, False,
        "If true, input_file (and if passed, labels_file) are expected to contain a list of files "
        "to use as input observation sequences (and label sequences).",
    )
    gaussians: int = param(Kind.INT, 0, "Number of gaussians in each GMM (necessary when type is 'gmm').")
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Pre-existing HMM model to initialize training with.", model_type=MODEL_TYPE
    )
    labels_file: str = param(Kind.STRING, "", "Optional file of hidden states, used for labeled training.")
    seed: int = param(Kind.INT, 0, "Random seed.  If 0, 'std::time(NULL)' is used.")
    states: int = param(Kind.INT, 0, "Number of hidden states in HMM (necessary, unless model_file is specified).")
    tolerance: float = param(Kind.DOUBLE, 1e-5, "Tolerance of the Baum-Welch algorithm.")
    type: str = param(
        Kind.STRING, "gaussian",
        "Type of HMM: discrete | gaussian | diag_gmm | gmm.",
    )


@dataclass
class HmmTrainResult(BindingResult):
    output_model: Optional[ModelHandle] = out(Kind.MODEL, "Output for trained HMM.", MODEL_TYPE)


HMM_TRAIN = define_program(
    "hmm_train", "Hidden Markov Model (HMM) Training", HmmTrainOptions, HmmTrainResult, FAMILY,
    "Train an HMM with Baum-Welch or from labeled sequences.",
)


def hmm_train(input_file: str, options: Optional[HmmTrainOptions] = None, **overrides: Any) -> HmmTrainResult:
    """
    Train an HMM on the sequences in ``input_file``.

    Training reads sequences from files because a batch may hold sequences
    of different lengths.
    """
    return HMM_TRAIN.run(options, input_file=input_file, **overrides)


# =============================================================================
# VITERBI
# =============================================================================


@dataclass
class HmmViterbiOptions(BindingOptions):
    input: Optional[np.ndarray] = param(Kind.MATRIX, doc="Matrix containing observations,", required=True)
    input_model: Optional[ModelHandle] = param(
        Kind.MODEL, doc="Trained HMM to use.", required=True, model_type=MODEL_TYPE
    )


@dataclass
class HmmViterbiResult(BindingResult):
    output: Optional[np.ndarray] = out(Kind.UMATRIX, "File to save predicted state sequence to.")


HMM_VITERBI = define_program(
    "hmm_viterbi", "Hidden Markov Model (HMM) Viterbi State Prediction",
    HmmViterbiOptions, HmmViterbiResult, FAMILY,
    "Most probable hidden state sequence (Viterbi).",
)


def hmm_viterbi(
    input: Any, input_model: ModelHandle, options: Optional[HmmViterbiOptions] = None, **overrides: Any
) -> HmmViterbiResult:
    return HMM_VITERBI.run(options, input=input, input_model=input_model, **overrides)
