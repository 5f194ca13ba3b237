import io

import pandas as pd
import pytest
from typer.testing import CliRunner

from pymotifscan.cli import app


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fasta_file(tmp_path):
    path = tmp_path / "seqs.fa"
    path.write_text(">s1 test sequence\nttcacg\ntgaa\n>s2\nGGGGGGGGGG\n")
    return path


def _table(text):
    return pd.read_csv(io.StringIO(text), sep="\t", keep_default_na=False)


def test_scan_bundled_atlas(runner, fasta_file):
    result = runner.invoke(app, ["scan", str(fasta_file), "--threshold", "0.9"])
    assert result.exit_code == 0, result.output
    res = _table(result.stdout)
    assert res["motif"].tolist() == ["EBOX"]
    assert res["sequence"].tolist() == ["s1"]
    assert (res["start"].iloc[0], res["stop"].iloc[0]) == (3, 8)
    assert res["match"].iloc[0] == "CACGTG"
    assert res["score"].iloc[0] == pytest.approx(res["max_score"].iloc[0], abs=0.01)


def test_scan_writes_out_file(runner, fasta_file, tmp_path):
    out = tmp_path / "hits.tsv"
    result = runner.invoke(app, ["scan", str(fasta_file), "--threshold", "0.9",
                                 "--rc", "--out", str(out)])
    assert result.exit_code == 0, result.output
    res = pd.read_csv(out, sep="\t")
    # CACGTG is its own reverse complement
    assert sorted(res["strand"].tolist()) == ["+", "-"]


def test_scan_missing_fasta(runner, tmp_path):
    result = runner.invoke(app, ["scan", str(tmp_path / "none.fa")])
    assert result.exit_code == 1


def test_scan_missing_atlas(runner, fasta_file, tmp_path):
    result = runner.invoke(app, ["scan", str(fasta_file), "--motifs",
                                 str(tmp_path / "none.json")])
    assert result.exit_code == 1


def test_scan_short_sequence_fails(runner, tmp_path):
    path = tmp_path / "short.fa"
    path.write_text(">tiny\nACG\n")
    result = runner.invoke(app, ["scan", str(path)])
    assert result.exit_code == 1


def test_gc_command(runner, tmp_path):
    hits = tmp_path / "hits.tsv"
    pd.DataFrame({"match": ["GGCC", "ATAT", "GCNN"]}).to_csv(hits, sep="\t", index=False)
    result = runner.invoke(app, ["gc", str(hits)])
    assert result.exit_code == 0, result.output
    assert _table(result.stdout)["gc"].tolist() == [1.0, 0.0, 0.5]

    result = runner.invoke(app, ["gc", str(hits), "--ignore-n"])
    assert _table(result.stdout)["gc"].tolist() == [1.0, 0.0, 1.0]


def test_gc_requires_match_column(runner, tmp_path):
    hits = tmp_path / "hits.tsv"
    pd.DataFrame({"start": [1]}).to_csv(hits, sep="\t", index=False)
    result = runner.invoke(app, ["gc", str(hits)])
    assert result.exit_code == 1


def test_db_commands_build_usable_atlas(runner, transfac_file, tmp_path, fasta_file):
    json_out = tmp_path / "atlas.json"
    db_out = tmp_path / "atlas.db"

    result = runner.invoke(app, ["db", "transfac", str(transfac_file), str(json_out)])
    assert result.exit_code == 0, result.output
    assert json_out.exists()

    result = runner.invoke(app, ["db", "sqlite", str(json_out), str(db_out)])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["scan", str(fasta_file), "--motifs", str(db_out)])
    assert result.exit_code == 0, result.output


def test_db_sqlite_missing_input(runner, tmp_path):
    result = runner.invoke(app, ["db", "sqlite", str(tmp_path / "none.json"),
                                 str(tmp_path / "out.db")])
    assert result.exit_code == 1
