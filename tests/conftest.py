"""Pytest configuration and shared fixtures for pymotifscan tests."""

import json

import numpy as np
import pytest


@pytest.fixture
def acgt_matrix():
    """Width-4 matrix scoring 10 per position for an exact 'ACGT' match."""
    return np.eye(4) * 10


@pytest.fixture
def pwm_motif():
    """Log-odds DNA motif favouring 'AAC' (+1 per match, -1 otherwise)."""
    mat = np.full((3, 4), -1.0)
    mat[0, 0] = mat[1, 0] = mat[2, 1] = 1.0
    return {"id": "AAC", "name": "AAC", "alphabet": "DNA", "type": "PWM",
            "strand": "+-", "matrix": mat.tolist()}


@pytest.fixture
def random_batch():
    """Three random integer matrices and five random DNA sequences."""
    rng = np.random.default_rng(7)
    matrices = [rng.integers(-5, 6, size=(w, 4)).astype(float) for w in (3, 5, 6)]
    sequences = ["".join(rng.choice(list("ACGT"), size=n)) for n in (12, 30, 45, 8, 60)]
    return matrices, sequences


@pytest.fixture
def transfac_file(tmp_path):
    """Two-record TRANSFAC file."""
    text = "\n".join([
        "AC  M00001",
        "XX",
        "ID  V$MYOD_01",
        "XX",
        "NA  MyoD",
        "XX",
        "P0      A      C      G      T",
        "01      1      2      2      0      S",
        "02      2      1      2      0      R",
        "03      3      0      1      1      A",
        "04      0      5      0      0      C",
        "XX",
        "//",
        "ID  motif2",
        "P0      A      C      G      T",
        "01      0      0      4      0      G",
        "02      4      0      0      0      A",
        "//",
        "",
    ])
    path = tmp_path / "motifs.transfac"
    path.write_text(text)
    return path


@pytest.fixture
def json_atlas(tmp_path, pwm_motif):
    """JSON atlas holding one PWM and one PPM motif with a k=2 matrix."""
    ppm = {
        "id": "CG",
        "name": "CG",
        "alphabet": "DNA",
        "type": "PPM",
        "nsites": 10,
        "pseudocount": 1,
        "bkg": [0.25, 0.25, 0.25, 0.25],
        "matrix": [[0.1, 0.7, 0.1, 0.1], [0.1, 0.1, 0.7, 0.1]],
        "multifreq": {"2": [[1 / 16] * 16]},
    }
    path = tmp_path / "atlas.json"
    path.write_text(json.dumps({"models": [pwm_motif, ppm]}))
    return path
