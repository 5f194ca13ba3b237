#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""

pymotifscan Atlas Converter
===========================

Author : Abhinav Mishra <mishraabhinav36@gmail.com>
Date   : 2025-06-15

Description
-----------
This script converts a JSON motif atlas into a SQLite database. Motif
annotations go into the `motifs` table; each score matrix (the letter
matrix and any k-let 'multifreq' matrices) becomes one row of
`motif_components`, keyed by motif id and k.

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

import json
import sqlite3
import sys
from pathlib import Path

from ..errors import AtlasNotFoundError, InputError


def create_schema(cursor):
    """
    Create the database schema for storing motifs and their matrices.

    Parameters
    ----------
    cursor : sqlite3.Cursor
        SQLite cursor to execute SQL commands.
    Returns
    -------
    None
    """
    # 1. Main Motifs Table
    cursor.execute("""
                   CREATE TABLE IF NOT EXISTS motifs
                   (
                       id          TEXT PRIMARY KEY,
                       name        TEXT,
                       altname     TEXT,
                       family      TEXT,
                       organism    TEXT,
                       alphabet    TEXT NOT NULL,
                       type        TEXT NOT NULL, -- PPM or PWM
                       strand      TEXT,          -- '+', '-' or '+-'
                       nsites      REAL,
                       pseudocount REAL,
                       bkg         TEXT           -- JSON list, letter background
                   )
                   """)

    # Indices for fast lookup
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_name ON motifs(name)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_family ON motifs(family)")

    # 2. Components Table (Stores the matrices, one per k)
    cursor.execute("""
                   CREATE TABLE IF NOT EXISTS motif_components
                   (
                       id       INTEGER PRIMARY KEY AUTOINCREMENT,
                       motif_id TEXT,
                       k        INTEGER,
                       width    INTEGER,
                       weights  TEXT, -- JSON string, one list per position

                       FOREIGN KEY (motif_id) REFERENCES motifs (id)
                   )
                   """)

    cursor.execute("CREATE INDEX IF NOT EXISTS idx_comp_motif ON motif_components(motif_id)")


def convert_json_to_db(json_path, db_path):
    """
    Convert a JSON motif atlas into a SQLite database.

    Parameters
    ----------
    json_path : str
        Path to the input JSON file containing motif definitions.
    db_path : str
        Path to the output SQLite database file.

    Returns
    -------
    int
        Number of motifs written.
    """
    json_path = Path(json_path)
    if not json_path.exists():
        raise AtlasNotFoundError(str(json_path))

    print(f"Reading {json_path}...")
    with open(json_path, 'r') as f:
        data = json.load(f)

    models = data['models'] if isinstance(data, dict) and 'models' in data else data
    if not isinstance(models, list):
        raise InputError("JSON does not contain a 'models' list.")

    conn = sqlite3.connect(db_path)
    cursor = conn.cursor()
    create_schema(cursor)

    print(f"Migrating {len(models)} motifs into {db_path}...")

    # Use a transaction for speed
    try:
        for i, motif in enumerate(models):
            # --- 1. Motif annotations ---
            m_id = motif.get('id') or motif.get('name') or f"motif_{i + 1:03d}"
            bkg = motif.get('bkg')

            cursor.execute("""
                INSERT OR REPLACE INTO motifs
                (id, name, altname, family, organism, alphabet, type, strand,
                 nsites, pseudocount, bkg)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                m_id, motif.get('name', m_id), motif.get('altname'),
                motif.get('family'), motif.get('organism'),
                motif.get('alphabet', 'DNA'), motif.get('type', 'PPM'),
                motif.get('strand', '+-'), motif.get('nsites'),
                motif.get('pseudocount'),
                json.dumps(bkg) if bkg is not None else None,
            ))

            # --- 2. Matrices ---
            components = []
            if 'matrix' in motif:
                components.append((1, motif['matrix']))
            for k, weights in sorted((motif.get('multifreq') or {}).items(), key=lambda kv: int(kv[0])):
                components.append((int(k), weights))

            cursor.execute("DELETE FROM motif_components WHERE motif_id = ?", (m_id,))
            for k, weights in components:
                cursor.execute("""
                               INSERT INTO motif_components
                                   (motif_id, k, width, weights)
                               VALUES (?, ?, ?, ?)
                               """, (m_id, k, len(weights), json.dumps(weights)))

        conn.commit()
        print("Success! Database creation complete.")

    except (sqlite3.Error, TypeError, ValueError):
        conn.rollback()
        raise
    finally:
        conn.close()

    return len(models)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m pymotifscan.build_json_db.json_to_sqlite <motifs.json> [motifs.db]")
    else:
        atlas_file = sys.argv[1]
        db_file = sys.argv[2] if len(sys.argv) > 2 else "motifs.db"
        convert_json_to_db(atlas_file, db_file)
