"""
Post-processing helpers for hit tables: GC content of matches, strand
coordinate handling, gap markers and overlap removal.
"""

from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from . import core

GC_LETTERS = frozenset("SCG")
AT_LETTERS = frozenset("WAUT")


def calc_hit_gc(hits: Sequence[str], ignore_n: bool = False) -> np.ndarray:
    """
    GC fraction of each matched string.

    Parameters
    ----------
    hits : Sequence[str]
        Matched substrings.
    ignore_n : bool
        If True, only strong (S, C, G) and weak (W, A, U, T) letters count
        toward the denominator; otherwise the full string length is used.
    Returns
    -------
    np.ndarray
        One fraction per string, NaN where the denominator is zero.
    """
    out = np.full(len(hits), np.nan)
    for i, hit in enumerate(hits):
        gc = sum(1 for c in hit if c in GC_LETTERS)
        if ignore_n:
            total = gc + sum(1 for c in hit if c in AT_LETTERS)
        else:
            total = len(hit)
        if total:
            out[i] = gc / total
    return out


def switch_antisense_coords(res: pd.DataFrame) -> pd.DataFrame:
    """Copy of `res` with start and stop swapped on '-' strand rows."""
    out = res.copy()
    to_switch = (res["strand"] == "-").to_numpy()
    out.loc[to_switch, "start"] = res.loc[to_switch, "stop"].to_numpy()
    out.loc[to_switch, "stop"] = res.loc[to_switch, "start"].to_numpy()
    return out


def add_gap_dots(seqs: Sequence[str], gaplocs: Sequence[Sequence[int]]) -> List[str]:
    """Overwrite the given 1-based positions of each string with '.'."""
    out = []
    for seq, locs in zip(seqs, gaplocs):
        chars = list(seq)
        for loc in locs:
            chars[loc - 1] = "."
        out.append("".join(chars))
    return out


def reverse_complement(seq: str, alphabet: str = "DNA") -> str:
    return seq.translate(core.COMPLEMENTS[alphabet])[::-1]


def adjust_rc_hits(res: pd.DataFrame, alphabet: str) -> pd.DataFrame:
    """
    Report reverse-strand hits in their own orientation: start and stop are
    swapped and the match is reverse complemented.
    """
    rev = (res["strand"] == "-").to_numpy()
    if not rev.any():
        return res
    res = switch_antisense_coords(res)
    res.loc[rev, "match"] = [reverse_complement(m, alphabet) for m in res.loc[rev, "match"]]
    return res


def _dedup_group(group: pd.DataFrame, strat: str) -> List:
    if strat == "score":
        # Stable sort keeps input order among tied scores
        group = group.sort_values("score", ascending=False, kind="mergesort")
    kept = []
    spans = []
    for label, start, stop in zip(group.index, group["start"], group["stop"]):
        if any(start <= s_stop and s_start <= stop for s_start, s_stop in spans):
            continue
        kept.append(label)
        spans.append((start, stop))
    return kept


def remove_masked_hits(res: pd.DataFrame, rows: Optional[Sequence] = None,
                       strat: str = "score") -> List:
    """
    Drop overlapping hits of the same motif in the same sequence.

    Parameters
    ----------
    res : pd.DataFrame
        Hit table with start <= stop on every row.
    rows : Sequence, optional
        Index labels to consider. Defaults to all rows.
    strat : str
        'score' keeps the highest scoring hit of each overlapping set,
        'order' keeps the first one in table order.
    Returns
    -------
    List
        Index labels of the rows to keep, in table order.
    """
    if strat not in ("score", "order"):
        raise ValueError("`strat` must be \"score\" or \"order\"")
    sub = res if rows is None else res.loc[list(rows)]
    if sub.empty:
        return []

    kept = []
    for _, group in sub.groupby(["sequence", "motif_i"], sort=False):
        kept.extend(_dedup_group(group, strat))

    position = {label: i for i, label in enumerate(res.index)}
    return sorted(kept, key=position.__getitem__)
