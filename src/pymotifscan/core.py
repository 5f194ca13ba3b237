#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""

pymotifscan Core
================

Author : Abhinav Mishra <mishraabhinav36@gmail.com>
Date   : 2025-06-15

Description
-----------
Core functions for position-weight-matrix scanning of biological
sequences: alphabet encoding, higher-order (k-let) recoding, fixed-point
score matrices and the sliding-window scoring kernel. Also holds the
motif helpers shared by the scanner (PPM to PWM conversion, reverse
complement matrices) and the FASTA / motif atlas readers.

All scores are handled as fixed-point integers (scaled by SCORE_SCALE and
truncated toward zero) so that window sums are exact and threshold
comparisons do not depend on floating-point summation order.

Reference
---------
Tremblay, B. J. M. (2024). universalmotif: An R package for biological
motif analysis. Journal of Open Source Software, 9(100), 7012.

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

from typing import List, Iterable, Tuple, Iterator, Optional
import json, sqlite3
from pathlib import Path
from importlib.resources import files

import numpy as np

from .errors import AtlasNotFoundError, InputError

# Fixed-point factor applied to matrix values and thresholds
SCORE_SCALE = 1000
# Encoded value of a character outside the alphabet
NA_SENTINEL = -1
# Scaled score added for every sentinel inside a window
NA_PENALTY = -999999
# Bounds of a signed 32-bit score, as used for clamping infinite thresholds
INT_MAX = 2147483647
INT_MIN = -2147483647
# Named alphabets
ALPHABETS = {
    "DNA": "ACGT",
    "RNA": "ACGU",
    "AA": "ACDEFGHIKLMNPQRSTVWY",
}
# Letter complements for the nucleotide alphabets
COMPLEMENTS = {
    "DNA": str.maketrans("ACGTNacgtn", "TGCANtgcan"),
    "RNA": str.maketrans("ACGUNacgun", "UGCANugcan"),
}


def resolve_alphabet(alphabet: str) -> str:
    """
    Expand a named alphabet ('DNA', 'RNA', 'AA') to its letters.
    Any other string is returned unchanged.
    """
    return ALPHABETS.get(alphabet, alphabet)


def encode_sequence(sequence: str, alphabet: str) -> Tuple[np.ndarray, bool]:
    """
    Maps a sequence string to alphabet indices.
    Returns 0..len(alphabet)-1 for letters in the alphabet.
    Returns NA_SENTINEL for anything else.

    Matching is exact and case-sensitive; the first occurrence wins if the
    alphabet repeats a letter.

    Parameters
    ----------
    sequence : str
        The raw sequence.
    alphabet : str
        The ordered alphabet letters.
    Returns
    -------
    Tuple[np.ndarray, bool]
        The int64 symbol stream and whether any sentinel was written.
    """
    lookup = {}
    for i, c in enumerate(alphabet):
        lookup.setdefault(c, i)

    codes = np.fromiter(
        (lookup.get(c, NA_SENTINEL) for c in sequence),
        dtype=np.int64,
        count=len(sequence),
    )
    return codes, bool((codes == NA_SENTINEL).any())


def recode_higher_k(stream: np.ndarray, k: int, radix: int,
                    propagate_na: bool = False) -> np.ndarray:
    """
    Higher-Order Recoding:

    - Every run of k symbols starting at offset j becomes the single
      composite symbol sum(stream[j+b] * radix**(k-1-b)).
    - The composite is written back into `stream` at offset j, so only the
      first len(stream) - k + 1 entries are meaningful afterwards.
    - With propagate_na, a window holding any sentinel recodes to the
      sentinel. Without it the stream must be sentinel-free.

    Parameters
    ----------
    stream : np.ndarray
        Encoded symbol stream, modified in place.
    k : int
        Number of raw symbols per composite symbol.
    radix : int
        Alphabet size.
    propagate_na : bool
        Whether sentinels may be present.
    Returns
    -------
    np.ndarray
        View of the meaningful prefix of `stream`.
    """
    if k == 1:
        return stream

    n = max(stream.shape[0] - k + 1, 0)
    composite = np.zeros(n, dtype=np.int64)
    for b in range(k):
        composite += stream[b:b + n] * radix ** (k - 1 - b)

    if propagate_na:
        bad = np.zeros(n, dtype=bool)
        for b in range(k):
            bad |= stream[b:b + n] == NA_SENTINEL
        composite[bad] = NA_SENTINEL

    stream[:n] = composite
    return stream[:n]


def scale_matrix(matrix) -> np.ndarray:
    """
    Convert a score matrix to fixed point: multiply by SCORE_SCALE and
    truncate toward zero.
    """
    arr = np.asarray(matrix, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise InputError(
            "Score matrix contains non-finite values",
            suggestion="Replace -Inf/NaN entries before scanning",
        )
    return (arr * SCORE_SCALE).astype(np.int64)


def scale_threshold(threshold: float) -> int:
    """Fixed-point threshold, clamped to the 32-bit score range."""
    if np.isnan(threshold):
        raise InputError("Threshold is NaN")
    scaled = min(max(float(threshold) * SCORE_SCALE, INT_MIN), INT_MAX)
    return int(scaled)


def with_na_policy(matrix: np.ndarray, penalize_na: bool) -> np.ndarray:
    """
    Attach the sentinel policy to a fixed-point matrix.

    When penalize_na is set, one extra column holding NA_PENALTY is appended.
    A sentinel (-1) then indexes that column directly, so the scoring loop
    needs no per-symbol check.
    """
    if not penalize_na:
        return matrix
    penalty = np.full((matrix.shape[0], 1), NA_PENALTY, dtype=np.int64)
    return np.hstack([matrix, penalty])


def score_windows(matrix: np.ndarray, stream: np.ndarray) -> np.ndarray:
    """
    Sliding Window Scoring Function:

    - A window starting at offset i scores sum(matrix[p, stream[i + p]])
      over all matrix positions p.
    - Accumulation is exact int64 arithmetic over fixed-point entries.
    - Sentinel handling is decided by the matrix layout (see
      with_na_policy), not here.

    Parameters
    ----------
    matrix : np.ndarray
        Fixed-point matrix, one row per position.
    stream : np.ndarray
        Encoded (and recoded, for k > 1) symbol stream.
    Returns
    -------
    np.ndarray
        One score per start offset, length len(stream) - positions + 1.
    """
    positions = matrix.shape[0]
    n = max(stream.shape[0] - positions + 1, 0)
    scores = np.zeros(n, dtype=np.int64)
    for p in range(positions):
        scores += matrix[p, stream[p:p + n]]
    return scores


def kmer_background(bkg, k: int) -> np.ndarray:
    """Background frequencies of k-lets as products of letter frequencies."""
    bkg = np.asarray(bkg, dtype=np.float64)
    out = bkg
    for _ in range(k - 1):
        out = np.outer(out, bkg).ravel()
    return out


def ppm_to_pwm(ppm, bkg=None, nsites: float = 100, pseudocount: float = 1) -> np.ndarray:
    """
    Convert a position probability matrix to log2-odds scores.

    Parameters
    ----------
    ppm : array-like
        Probabilities, one row per position.
    bkg : array-like, optional
        Background frequency per column. Uniform if omitted.
    nsites : float
        Number of sites the probabilities were estimated from.
    pseudocount : float
        Pseudocount spread over the background.
    Returns
    -------
    np.ndarray
        The PWM. Zero probabilities give -inf when pseudocount is 0.
    """
    ppm = np.asarray(ppm, dtype=np.float64)
    if bkg is None:
        bkg = np.full(ppm.shape[1], 1.0 / ppm.shape[1])
    bkg = np.asarray(bkg, dtype=np.float64)
    with np.errstate(divide="ignore"):
        return np.log2(((ppm * nsites) + bkg * pseudocount) / (nsites + pseudocount) / bkg)


def matrix_max_score(matrix) -> float:
    """Best achievable window score of a matrix."""
    return float(np.asarray(matrix, dtype=np.float64).max(axis=1).sum())


def matrix_min_score(matrix) -> float:
    """Worst achievable window score of a matrix."""
    return float(np.asarray(matrix, dtype=np.float64).min(axis=1).sum())


def revcomp_kmer_index(alphabet: str, k: int, complement_table) -> np.ndarray:
    """
    Permutation mapping each composite symbol to its reverse complement.

    Digit b of the reverse complement is the complement of digit k-1-b of
    the original.
    """
    radix = len(alphabet)
    comp = np.array([alphabet.index(c.translate(complement_table)) for c in alphabet])
    codes = np.arange(radix ** k)
    out = np.zeros_like(codes)
    for b in range(k):
        digit = (codes // radix ** b) % radix
        out += comp[digit] * radix ** (k - 1 - b)
    return out


def rc_score_matrix(matrix, alphabet: str, k: int, complement_table) -> np.ndarray:
    """
    Reverse complement of a score matrix.
    Row p takes row P-1-p of the input with columns permuted to their
    reverse complement symbols.
    """
    matrix = np.asarray(matrix, dtype=np.float64)
    perm = revcomp_kmer_index(alphabet, k, complement_table)
    return matrix[::-1, :][:, perm]


def fasta_iter(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """
    Simple FASTA parser yielding (name, sequence) tuples.

    Parameters
    ----------
    lines : Iterable[str]
        Lines from a FASTA file.
    Yields
    -------
    Iterator[Tuple[str, str]]
        Yields tuples of (name, sequence).
    """
    name = None
    seq_chunks = []
    for line in lines:
        line = line.strip()
        if not line:
            continue
        if line.startswith(">"):
            if name is not None:
                yield name, "".join(seq_chunks)
            name = line[1:].split()[0]
            seq_chunks = []
        else:
            seq_chunks.append(line)
    if name is not None:
        yield name, "".join(seq_chunks)


def parse_fasta(path):
    """
    Parse a FASTA file and return a dictionary of sequences, in file order.

    Args:
        path (str): Path to the FASTA file.
    Returns:
        dict: Dictionary mapping sequence names to sequences.
    """
    with open(path, 'r') as f:
        return dict(fasta_iter(f))


def get_default_atlas_path() -> Path:
    """
    Return the path to the bundled motif atlas inside the package.

    Preference order:
    - motifs.db
    - motifs.json
    """
    base_path = Path(str(files("pymotifscan")))

    for fname in ("motifs.db", "motifs.json"):
        cand = base_path / 'models' / fname
        if cand.exists():
            return cand

    return base_path / 'models' / "motifs.json"


def load_motifs(path=None) -> List[dict]:
    """
    Load motif records from a JSON or SQLite atlas file.

    Args:
        path (str): Path to the atlas file (JSON or SQLite .db). The bundled
            atlas is used when omitted.
    Returns:
        list: List of motif dictionaries.
    """
    p = get_default_atlas_path() if path is None else Path(path)

    if not p.exists():
        raise AtlasNotFoundError(str(p))

    if p.suffix in ('.db', '.sqlite'):
        conn = sqlite3.connect(p)
        conn.row_factory = sqlite3.Row
        try:
            return _load_motifs_db(conn)
        finally:
            conn.close()

    with open(p, "r") as f:
        data = json.load(f)
    # Handle both raw list and dictionary wrapper format
    return data['models'] if isinstance(data, dict) and 'models' in data else data


def _load_motifs_db(conn) -> List[dict]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM motifs ORDER BY rowid")
    motifs = []

    for row in cursor.fetchall():
        motif = {
            'id': row['id'],
            'name': row['name'],
            'altname': row['altname'],
            'family': row['family'],
            'organism': row['organism'],
            'alphabet': row['alphabet'],
            'type': row['type'],
            'strand': row['strand'],
            'nsites': row['nsites'],
            'pseudocount': row['pseudocount'],
            'bkg': json.loads(row['bkg']) if row['bkg'] else None,
        }

        cursor.execute("""
                       SELECT k, weights
                       FROM motif_components
                       WHERE motif_id = ?
                       ORDER BY k
                       """, (row['id'],))

        for comp in cursor.fetchall():
            weights = json.loads(comp['weights'])
            if comp['k'] == 1:
                motif['matrix'] = weights
            else:
                motif.setdefault('multifreq', {})[str(comp['k'])] = weights

        motifs.append(motif)

    return motifs


def motif_label(motif: dict, index: int) -> str:
    """Display name of a motif: name, then id, then its 1-based index."""
    return motif.get("name") or motif.get("id") or str(index + 1)


def optional_float(value: Optional[float], default: float) -> float:
    return default if value is None else float(value)
