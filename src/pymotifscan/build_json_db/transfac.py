#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""

pymotifscan Atlas Builder
=========================

Author : Abhinav Mishra <mishraabhinav36@gmail.com>
Date   : 2025-06-15

Description
-----------
This script parses TRANSFAC formatted motif files (count matrices with
AC/ID/NA/HC/OS annotation lines, records separated by '//') and writes a
JSON motif atlas (motifs.json) of DNA position probability matrices that
can be scanned directly or converted to SQLite with json_to_sqlite.py.

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

import re, json, sys

from ..errors import InputError

# Annotation tags kept from each record, and the field they map to
META_TAGS = {
    "AC": "AC",
    "ID": "ID",
    "NA": "NA",
    "HC": "family",
    "OS": "organism",
}


def split_records(lines):
    """
    Split TRANSFAC lines into records.

    'XX' spacer lines and blank lines are dropped; each '//' line closes
    a record.

    Parameters
    ----------
    lines : list of str
        Raw file lines.
    Returns
    -------
    list of list of str
        One list of lines per record.
    """
    records = []
    current = []
    for line in lines:
        line = line.rstrip("\n")
        if not line.strip() or line.startswith("XX"):
            continue
        if line.startswith("//"):
            if current:
                records.append(current)
            current = []
            continue
        current.append(line)
    if current:
        records.append(current)
    return records


def _is_number(token):
    try:
        float(token)
    except ValueError:
        return False
    return True


def parse_counts(record):
    """
    Extract the A/C/G/T count rows following the 'P0' (or 'PO') header.

    Rows are kept while their first token is a position number; the
    trailing consensus letter is ignored.
    """
    header = [i for i, line in enumerate(record) if re.match(r"^P[0O]\b", line)]
    if not header:
        raise InputError("TRANSFAC record has no P0 matrix header",
                         context=record[0] if record else "")

    counts = []
    for line in record[header[0] + 1:]:
        tokens = line.split()
        if not tokens or not _is_number(tokens[0]):
            continue
        counts.append([float(x) for x in tokens[1:5]])
    return counts


def parse_meta(record):
    """
    Collect name fields from a record.

    The accession (AC) is preferred as the name, then ID, then NA; the next
    available one becomes the altname.
    """
    found = {}
    for line in record:
        tokens = line.split()
        if len(tokens) < 2:
            continue
        key = META_TAGS.get(tokens[0])
        if key and key not in found:
            found[key] = tokens[1]

    meta = {k: found[k] for k in ("family", "organism") if k in found}
    names = [found[k] for k in ("AC", "ID", "NA") if k in found]
    if names:
        meta["name"] = names[0]
    if len(names) > 1:
        meta["altname"] = names[1]
    return meta


def read_transfac(path, skip=0):
    """
    Read a TRANSFAC file into motif records.

    Parameters
    ----------
    path : str
        Path to the TRANSFAC file.
    skip : int
        Number of leading lines to ignore.
    Returns
    -------
    list of dict
        DNA PPM motif records; nsites is the largest row total.
    """
    with open(path, "r") as f:
        lines = f.readlines()[skip:]

    motifs = []
    for i, record in enumerate(split_records(lines)):
        counts = parse_counts(record)
        if not counts:
            continue
        meta = parse_meta(record)
        totals = [sum(row) for row in counts]
        ppm = [[c / t if t else 0.25 for c in row] for row, t in zip(counts, totals)]

        motif = {
            "id": meta.get("name", f"motif_{i + 1:03d}"),
            "name": meta.get("name", f"motif_{i + 1:03d}"),
            "alphabet": "DNA",
            "type": "PPM",
            "strand": "+-",
            "nsites": max(totals),
            "pseudocount": 1,
            "matrix": ppm,
        }
        for key in ("altname", "family", "organism"):
            if key in meta:
                motif[key] = meta[key]
        motifs.append(motif)

    return motifs


def convert_transfac_to_json(transfac_path, json_path="motifs.json", skip=0):
    """
    Build a JSON motif atlas from a TRANSFAC file.

    Returns
    -------
    int
        Number of motifs written.
    """
    print(f"Parsing motifs from {transfac_path}...")
    motifs = read_transfac(transfac_path, skip=skip)
    print(f"Found {len(motifs)} motifs.")

    with open(json_path, "w") as f:
        json.dump({"models": motifs}, f, indent=2)

    print(f"Done! Saved {json_path}")
    return len(motifs)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m pymotifscan.build_json_db.transfac <motifs.transfac> [motifs.json]")
    else:
        out_file = sys.argv[2] if len(sys.argv) > 2 else "motifs.json"
        convert_transfac_to_json(sys.argv[1], out_file)
