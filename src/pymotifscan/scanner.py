#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""

pymotifscan Scanner
===================

Author : Abhinav Mishra <mishraabhinav36@gmail.com>
Date   : 2025-06-15

Description
-----------
The scanning engine. Sequences are encoded in parallel (one task per
sequence), optionally recoded into k-let symbols, then every motif is
scored against every sequence in parallel (one task per motif). Windows
meeting the motif threshold are collected into a hit table in
motif-major, sequence-major, offset-major order.

The sentinel policy (strict or penalize) is decided once per call from
the encoding phase and applies to every motif and sequence alike.

License
-------
# Copyright (c) 2025, Abhinav Mishra
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# Redistributions of source code must retain the above copyright notice, this
# list of conditions and the following disclaimer.
#
# Redistributions in binary form must reproduce the above copyright notice,
# this list of conditions and the following disclaimer in the documentation
# and/or other materials provided with the distribution.
#
# Neither the name of the copyright holder nor the names of its
# contributors may be used to endorse or promote products derived from
# this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

from typing import List, Sequence, Tuple
import warnings

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from . import core
from .errors import InputError, SequenceLengthError, UnrecognizedSymbolWarning

HIT_COLUMNS = ["motif", "sequence", "start", "stop", "score", "match"]


def encode_sequences(sequences: Sequence[str], alphabet: str, k: int = 1,
                     n_jobs: int = 1, progress: bool = False) -> Tuple[List[np.ndarray], bool]:
    """
    Encode all sequences, then recode them to k-lets when k > 1.

    Encoding runs one task per sequence. The sentinel flag is only known
    once every task has finished, and it alone picks the recoding variant
    for all sequences.

    Returns
    -------
    Tuple[List[np.ndarray], bool]
        Encoded streams in input order, and whether any sequence held a
        character outside the alphabet.
    """
    encoded = Parallel(n_jobs=n_jobs, backend="threading")(
        delayed(core.encode_sequence)(seq, alphabet)
        for seq in tqdm(sequences, desc="Encoding", leave=False, disable=not progress)
    )

    streams = [stream for stream, _ in encoded]
    has_na = any(flag for _, flag in encoded)

    if k > 1:
        streams = [core.recode_higher_k(s, k, len(alphabet), propagate_na=has_na)
                   for s in streams]

    return streams, has_na


def scan_motif(matrix: np.ndarray, streams: List[np.ndarray]) -> List[np.ndarray]:
    """Score one policy-bearing matrix against every stream."""
    return [core.score_windows(matrix, stream) for stream in streams]


def scan_score_vectors(matrices: List[np.ndarray], streams: List[np.ndarray],
                       penalize_na: bool, n_jobs: int = 1,
                       progress: bool = False) -> List[List[np.ndarray]]:
    """
    Score every motif against every stream.

    Parameters
    ----------
    matrices : List[np.ndarray]
        Fixed-point score matrices.
    streams : List[np.ndarray]
        Encoded streams from encode_sequences.
    penalize_na : bool
        Whether any sentinel was seen during encoding.
    n_jobs : int
        Worker threads.
    Returns
    -------
    List[List[np.ndarray]]
        Score vectors indexed [motif][sequence].
    """
    prepared = [core.with_na_policy(m, penalize_na) for m in matrices]

    return Parallel(n_jobs=n_jobs, backend="threading")(
        delayed(scan_motif)(m, streams)
        for m in tqdm(prepared, desc="Motifs", leave=False, disable=not progress)
    )


def format_results(score_vectors: List[List[np.ndarray]], thresholds: Sequence[int],
                   widths: Sequence[int]) -> dict:
    """
    Collect every window meeting its motif threshold.

    Rows come out motif-major, then sequence-major, then offset-major.
    Start and stop are 1-based raw character coordinates; scores stay in
    fixed point.
    """
    cols = {"motif": [], "sequence": [], "start": [], "stop": [], "score": []}

    for i, per_motif in enumerate(score_vectors):              # motif
        for j, scores in enumerate(per_motif):                 # sequence
            offsets = np.flatnonzero(scores >= thresholds[i])  # position
            if offsets.size == 0:
                continue
            cols["motif"].append(np.full(offsets.size, i + 1, dtype=np.int64))
            cols["sequence"].append(np.full(offsets.size, j + 1, dtype=np.int64))
            cols["start"].append(offsets + 1)
            cols["stop"].append(offsets + widths[i])
            cols["score"].append(scores[offsets])

    return {
        key: np.concatenate(parts).astype(np.int64) if parts else np.zeros(0, dtype=np.int64)
        for key, parts in cols.items()
    }


def get_matches(res: dict, sequences: Sequence[str], widths: Sequence[int]) -> List[str]:
    """Slice each hit out of its raw, un-encoded sequence."""
    return [
        sequences[seq_i - 1][start - 1:start - 1 + widths[mot_i - 1]]
        for mot_i, seq_i, start in zip(res["motif"], res["sequence"], res["start"])
    ]


def check_inputs(score_matrices, sequences, k, alphabet, thresholds, concurrency):
    """
    Validate a scan call and convert its matrices and thresholds to fixed
    point. Every failure raises here, before any work is dispatched.

    Returns
    -------
    Tuple[List[np.ndarray], List[int], List[int]]
        Fixed-point matrices, raw-character widths, fixed-point thresholds.
    """
    if not isinstance(k, (int, np.integer)) or isinstance(k, bool) or k < 1:
        raise InputError(f"k must be a positive integer, got {k!r}")
    if not alphabet:
        raise InputError("Alphabet is empty")
    if not isinstance(concurrency, (int, np.integer)) or concurrency < 1:
        raise InputError(f"concurrency must be at least 1, got {concurrency!r}")
    if len(score_matrices) != len(thresholds):
        raise InputError(
            "Number of thresholds does not match number of score matrices",
            context=f"{len(thresholds)} thresholds, {len(score_matrices)} matrices",
        )

    row_len = len(alphabet) ** k
    matrices, widths = [], []
    for i, matrix in enumerate(score_matrices):
        scaled = core.scale_matrix(matrix)
        if scaled.ndim != 2 or scaled.shape[0] == 0 or scaled.shape[1] != row_len:
            raise InputError(
                f"Score matrix {i + 1} has shape {scaled.shape}",
                suggestion=f"Provide one row per position with {row_len} columns "
                           f"(alphabet size {len(alphabet)} to the power k={k})",
            )
        matrices.append(scaled)
        widths.append(scaled.shape[0] + k - 1)

    if matrices and sequences:
        shortest = min(len(s) for s in sequences)
        widest = max(widths)
        if shortest < widest:
            raise SequenceLengthError(shortest, widest)

    return matrices, widths, [core.scale_threshold(t) for t in thresholds]


def scan(score_matrices, sequences: Sequence[str], k: int, alphabet: str,
         thresholds: Sequence[float], concurrency: int = 1,
         warn_on_unrecognized: bool = True, progress: bool = False) -> pd.DataFrame:
    """
    Scan sequences with score matrices and return every qualifying window.

    Parameters
    ----------
    score_matrices : list of array-like
        One matrix per motif, a row per position and len(alphabet)**k columns.
    sequences : list of str
        Raw sequences.
    k : int
        Number of letters per scoring symbol.
    alphabet : str
        Ordered alphabet letters.
    thresholds : list of float
        Minimum score per motif, in matrix units.
    concurrency : int
        Worker threads for both parallel phases.
    warn_on_unrecognized : bool
        Emit one UnrecognizedSymbolWarning if any letter is outside the
        alphabet. Scoring is identical either way.
    progress : bool
        Show tqdm progress bars.
    Returns
    -------
    pd.DataFrame
        Columns motif, sequence (both 1-based indices), start, stop, score
        and match.
    """
    sequences = list(sequences)
    matrices, widths, fixed_thresholds = check_inputs(
        score_matrices, sequences, k, alphabet, thresholds, concurrency)

    streams, has_na = encode_sequences(sequences, alphabet, k, concurrency, progress)

    if has_na and warn_on_unrecognized:
        warnings.warn("Non-standard letters detected. These were ignored.",
                      UnrecognizedSymbolWarning, stacklevel=2)

    score_vectors = scan_score_vectors(matrices, streams, has_na, concurrency, progress)
    res = format_results(score_vectors, fixed_thresholds, widths)

    return pd.DataFrame({
        "motif": res["motif"],
        "sequence": res["sequence"],
        "start": res["start"],
        "stop": res["stop"],
        "score": res["score"] / core.SCORE_SCALE,
        "match": pd.Series(get_matches(res, sequences, widths), dtype=object),
    }, columns=HIT_COLUMNS)
