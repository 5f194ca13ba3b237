#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""

pymotifscan Motif Scanning
==========================

Author : Abhinav Mishra <mishraabhinav36@gmail.com>
Date   : 2025-06-15

Description
-----------
Motif-level front end to the scanner. Takes motif records (as loaded from
a motif atlas) and named sequences, builds PWM score matrices, resolves
thresholds, optionally adds reverse-complement matrices, runs the scan and
annotates the resulting hit table.

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

import math
import sys
import warnings

import numpy as np
import pandas as pd
from tqdm import tqdm

from . import core, hits, scanner
from .errors import InputError

THRESHOLD_TYPES = ("logodds", "logodds.abs")
NUCLEOTIDE_ALPHABETS = ("DNA", "RNA")


def _message(msg):
    tqdm.write(msg, file=sys.stderr)


def motif_score_matrix(motif, use_freq=1, allow_nonfinite=False):
    """
    Build the PWM used to scan with a motif record.

    For use_freq == 1 the 'matrix' entry is used, otherwise the k-let
    matrix in 'multifreq'. PPM records are converted with the motif's
    background, nsites and pseudocount; if that yields -inf and
    non-finite scores are not allowed, a pseudocount of 1 is used instead.
    """
    if use_freq == 1:
        mat = motif.get("matrix")
    else:
        mat = (motif.get("multifreq") or {}).get(str(use_freq))
    if mat is None:
        raise InputError(
            f"Motif '{core.motif_label(motif, 0)}' has no matrix for use_freq={use_freq}",
            suggestion="Add the k-let matrix under 'multifreq' or scan with use_freq=1",
        )

    mat = np.asarray(mat, dtype=np.float64)
    if motif.get("type", "PPM").upper() != "PPM":
        if not allow_nonfinite and not np.all(np.isfinite(mat)):
            raise InputError(
                f"Motif '{core.motif_label(motif, 0)}' has non-finite scores",
                suggestion="Set allow_nonfinite=True to scan it anyway",
            )
        return mat

    bkg = motif.get("bkg")
    if bkg is not None:
        bkg = core.kmer_background(bkg, use_freq)
    nsites = core.optional_float(motif.get("nsites"), 100)
    pseudocount = core.optional_float(motif.get("pseudocount"), 1)

    pwm = core.ppm_to_pwm(mat, bkg, nsites, pseudocount)
    if not allow_nonfinite and not np.all(np.isfinite(pwm)):
        warnings.warn(
            f"Motif '{core.motif_label(motif, 0)}' has zero probabilities; "
            "applying a pseudocount of 1. Set `allow_nonfinite = True` to "
            "prevent this behaviour.", stacklevel=3)
        pwm = core.ppm_to_pwm(mat, bkg, nsites, 1)
    return pwm


def resolve_thresholds(threshold, threshold_type, max_scores):
    """
    Per-motif score thresholds.

    'logodds' scales each motif's max score by `threshold`; 'logodds.abs'
    takes `threshold` as is, one value for all motifs or one per motif.
    """
    n = len(max_scores)
    values = np.atleast_1d(np.asarray(threshold, dtype=np.float64))

    if threshold_type == "logodds":
        if values.size != 1:
            raise InputError("threshold_type 'logodds' takes a single threshold")
        return list(np.asarray(max_scores) * values[0])

    if values.size not in (1, n):
        raise InputError(
            "For threshold_type 'logodds.abs', a threshold must be provided for "
            "every single motif or one threshold recycled for all motifs",
            context=f"{values.size} thresholds, {n} motifs",
        )
    if values.size == 1:
        values = np.repeat(values, n)
    return list(values)


def nonfinite_fill_value(matrix):
    """Finite stand-in for -inf entries, low enough to disqualify a window."""
    rows, cols = matrix.shape
    min_val1 = core.INT_MIN / rows
    min_val2 = int(math.log2(cols) * rows) * 1000
    return (min_val1 + min_val2) / 1000


def _sequence_items(sequences):
    if isinstance(sequences, dict):
        return list(sequences.keys()), list(sequences.values())
    if isinstance(sequences, str):
        sequences = [sequences]
    sequences = list(sequences)
    return [str(i + 1) for i in range(len(sequences))], sequences


def scan_sequences(motifs, sequences, threshold=0.8, threshold_type="logodds",
                   rc=False, use_freq=1, nthreads=1, allow_nonfinite=False,
                   warn_na=True, no_overlaps=False, no_overlaps_by_strand=False,
                   no_overlaps_strat="score", respect_strand=False, verbose=0):
    """
    Scan named sequences for matches to motif records.

    Parameters
    ----------
    motifs : dict or list of dict
        Motif records (see load_motifs). All must share one alphabet.
    sequences : dict, list of str or str
        Sequences to scan; a dict maps names to sequences.
    threshold : float or list of float
        Fraction of the max score ('logodds') or absolute score
        ('logodds.abs').
    threshold_type : str
        'logodds' or 'logodds.abs'.
    rc : bool
        Also scan the reverse strand (DNA/RNA only).
    use_freq : int
        Scan with the k-let matrix for k = use_freq.
    nthreads : int
        Worker threads.
    allow_nonfinite : bool
        Keep -inf matrix entries (replaced by a very low finite score)
        instead of applying a pseudocount.
    warn_na : bool
        Warn once if letters outside the alphabet are found.
    no_overlaps : bool
        Remove overlapping hits of the same motif in the same sequence.
    no_overlaps_by_strand : bool
        With rc, remove overlaps on each strand separately.
    no_overlaps_strat : str
        'score' keeps the best hit of an overlapping set, 'order' the first.
    respect_strand : bool
        Scan each motif only on the strand(s) given by its 'strand' field.
    verbose : int
        Progress messages on stderr, from none (0) to detailed (3).
    Returns
    -------
    pd.DataFrame
        One row per hit.
    """
    if threshold_type not in THRESHOLD_TYPES:
        raise InputError(f"Unknown threshold_type '{threshold_type}'",
                         suggestion=f"Use one of {', '.join(THRESHOLD_TYPES)}")
    if no_overlaps_strat not in ("score", "order"):
        raise InputError("`no_overlaps_strat` must be \"score\" or \"order\"")

    if isinstance(motifs, dict):
        motifs = [motifs]
    seq_names, seq_strings = _sequence_items(sequences)
    if not motifs or not seq_strings:
        raise InputError("need both motifs and sequences")

    alphabets = {m.get("alphabet", "DNA") for m in motifs}
    if len(alphabets) != 1:
        raise InputError("can only scan using one alphabet",
                         context=", ".join(sorted(alphabets)))
    alph_name = alphabets.pop()
    alphabet = core.resolve_alphabet(alph_name)

    if verbose > 2:
        _message(" * Input parameters")
        _message(f"   * threshold:           {threshold}")
        _message(f"   * threshold_type:      {threshold_type}")
        _message(f"   * rc:                  {rc}")
        _message(f"   * respect_strand:      {respect_strand}")
        _message(f"   * use_freq:            {use_freq}")
        _message(f"   * no_overlaps:         {no_overlaps}")

    if rc and respect_strand:
        _message("Note: `rc=True` is ignored when `respect_strand=True`")
    elif respect_strand:
        rc = True

    if respect_strand and alph_name not in NUCLEOTIDE_ALPHABETS:
        raise InputError("`respect_strand = True` is only valid for DNA/RNA motifs")
    if rc and alph_name not in NUCLEOTIDE_ALPHABETS:
        warnings.warn("`rc = True` is only valid for DNA/RNA motifs, ignoring",
                      stacklevel=2)
        rc = False

    if verbose > 0:
        _message(" * Processing motifs")
    if verbose > 1:
        avg = round(sum(len(s) for s in seq_strings) / len(seq_strings))
        _message(f"   * Scanning {len(motifs)} motif(s) in {len(seq_strings)} "
                 f"sequence(s) of average size {avg}")

    score_mats = [motif_score_matrix(m, use_freq, allow_nonfinite) for m in motifs]
    max_scores = [core.matrix_max_score(m) for m in score_mats]
    min_scores = [core.matrix_min_score(m) for m in score_mats]
    thresholds = resolve_thresholds(threshold, threshold_type, max_scores)

    for i, (t, m) in enumerate(zip(thresholds, max_scores)):
        if t > m:
            warnings.warn(f"Threshold [{t:.3f}] for motif {i + 1} is higher than "
                          f"the max possible threshold [{m:.3f}]", stacklevel=2)

    names = [core.motif_label(m, i) for i, m in enumerate(motifs)]
    indices = list(range(1, len(motifs) + 1))
    strands = ["+"] * len(motifs)

    if rc:
        keep_pos = [True] * len(motifs)
        keep_neg = [True] * len(motifs)
        if respect_strand:
            keep_pos = [m.get("strand", "+-") != "-" for m in motifs]
            keep_neg = [m.get("strand", "+-") != "+" for m in motifs]

        def pick(values, keep):
            return [v for v, k in zip(values, keep) if k]

        rc_mats = [core.rc_score_matrix(m, alphabet, use_freq, core.COMPLEMENTS[alph_name])
                   for m in score_mats]
        score_mats = pick(score_mats, keep_pos) + pick(rc_mats, keep_neg)
        strands = pick(strands, keep_pos) + pick(["-"] * len(motifs), keep_neg)
        names = pick(names, keep_pos) + pick(names, keep_neg)
        thresholds = pick(thresholds, keep_pos) + pick(thresholds, keep_neg)
        min_scores = pick(min_scores, keep_pos) + pick(min_scores, keep_neg)
        max_scores = pick(max_scores, keep_pos) + pick(max_scores, keep_neg)
        indices = pick(indices, keep_pos) + pick(indices, keep_neg)

    if allow_nonfinite:
        for i, mat in enumerate(score_mats):
            if not np.all(np.isfinite(mat)):
                mat = mat.copy()
                mat[~np.isfinite(mat)] = nonfinite_fill_value(mat)
                score_mats[i] = mat

    if verbose > 0:
        _message(" * Scanning")

    res = scanner.scan(score_mats, seq_strings, use_freq, alphabet, thresholds,
                       concurrency=nthreads, warn_on_unrecognized=warn_na,
                       progress=verbose > 0)

    if verbose > 1:
        _message(f"   * Number of matches: {len(res)}")
    if verbose > 0:
        _message(" * Processing results")

    row = res["motif"].to_numpy() - 1
    seq_row = res["sequence"].to_numpy() - 1

    out = pd.DataFrame({
        "motif": np.asarray(names, dtype=object)[row],
        "motif_i": np.asarray(indices, dtype=np.int64)[row],
        "sequence": np.asarray(seq_names, dtype=object)[seq_row],
        "start": res["start"].to_numpy(),
        "stop": res["stop"].to_numpy(),
        "score": res["score"].to_numpy(),
        "match": res["match"].to_numpy(),
        "thresh_score": np.asarray(thresholds, dtype=np.float64)[row],
        "min_score": np.asarray(min_scores, dtype=np.float64)[row],
        "max_score": np.asarray(max_scores, dtype=np.float64)[row],
    })
    out["score_pct"] = out["score"] / out["max_score"] * 100
    if alph_name in NUCLEOTIDE_ALPHABETS:
        out["strand"] = np.asarray(strands, dtype=object)[row]
    out["_seq_order"] = seq_row

    if len(out) == 0 and verbose > 0:
        _message("No hits found.")

    if rc and len(out):
        out = hits.adjust_rc_hits(out, alph_name)

    out = out.sort_values(["motif_i", "_seq_order", "start"], kind="mergesort")
    out = out.drop(columns="_seq_order").reset_index(drop=True)

    if no_overlaps and len(out):
        if verbose > 1:
            _message("   * Removing overlapping hits")
        if rc and no_overlaps_by_strand:
            fwd = hits.switch_antisense_coords(out)
            plus = (out["strand"] == "+").to_numpy()
            keep = hits.remove_masked_hits(out, out.index[plus], no_overlaps_strat)
            keep += hits.remove_masked_hits(fwd, out.index[~plus], no_overlaps_strat)
            keep = sorted(keep)
        elif rc:
            keep = hits.remove_masked_hits(hits.switch_antisense_coords(out),
                                           strat=no_overlaps_strat)
        else:
            keep = hits.remove_masked_hits(out, strat=no_overlaps_strat)
        out = out.loc[keep].reset_index(drop=True)

    if verbose > 1:
        _message(f" * Final number of matches: {len(out)}")

    return out
