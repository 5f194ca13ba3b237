import typer
import sys
from pathlib import Path

app = typer.Typer(
    help="pymotifscan CLI: scan sequences for position weight matrix motifs."
)


def _fail(err):
    typer.echo(str(err), err=True)
    raise typer.Exit(code=1)


@app.command("scan")
def scan_fasta(
    fasta: str = typer.Argument(
        ..., help="Input FASTA file (or '-' for stdin)."),
    motifs: str | None = typer.Option(
        None,
        "--motifs",
        help="Motif atlas .db/.sqlite or .json (defaults to the bundled atlas)."
    ),
    out: str = typer.Option(None,
                            "--out", help="Output TSV path. Default: stdout."),
    threshold: float = typer.Option(0.8, "--threshold",
                                    help="Fraction of max score (logodds) or absolute score (logodds.abs)."),
    threshold_type: str = typer.Option("logodds", "--threshold-type",
                                       help="One of: logodds, logodds.abs."),
    rc: bool = typer.Option(False, "--rc", help="Also scan the reverse strand (DNA/RNA)."),
    respect_strand: bool = typer.Option(False, "--respect-strand",
                                        help="Scan each motif only on the strand(s) it allows."),
    use_freq: int = typer.Option(1, "--use-freq", help="Scan with the k-let matrix for this k."),
    nthreads: int = typer.Option(1, "--nthreads", help="Worker threads."),
    no_overlaps: bool = typer.Option(False, "--no-overlaps",
                                     help="Drop overlapping hits of the same motif."),
    allow_nonfinite: bool = typer.Option(False, "--allow-nonfinite",
                                         help="Keep -Inf matrix scores instead of adding a pseudocount."),
    warn_na: bool = typer.Option(True, "--warn-na/--no-warn-na",
                                 help="Warn when letters outside the alphabet are found."),
    verbose: int = typer.Option(0, "--verbose", "-v", help="Progress messages, 0-3."),
):
    """
    Scan FASTA sequences with the motifs of an atlas and write hits as TSV.
    """
    from . import core
    from .errors import MotifScanError
    from .pipeline import scan_sequences

    # FASTA input: allow stdin via "-"
    if fasta == "-":
        sequences = dict(core.fasta_iter(sys.stdin))
    else:
        if not Path(fasta).exists():
            _fail(f"FASTA file not found: {fasta}")
        sequences = core.parse_fasta(fasta)

    sequences = {name: seq.upper() for name, seq in sequences.items()}

    try:
        models = core.load_motifs(motifs)
        res = scan_sequences(
            models, sequences,
            threshold=threshold,
            threshold_type=threshold_type,
            rc=rc,
            use_freq=use_freq,
            nthreads=nthreads,
            allow_nonfinite=allow_nonfinite,
            warn_na=warn_na,
            no_overlaps=no_overlaps,
            respect_strand=respect_strand,
            verbose=verbose,
        )
    except MotifScanError as e:
        _fail(e)

    if out is None or out == "-":
        res.to_csv(sys.stdout, sep="\t", index=False)
    else:
        res.to_csv(out, sep="\t", index=False)
        if verbose > 0:
            typer.echo(f"Results written to {out}", err=True)


@app.command("gc")
def hit_gc(
    hits: str = typer.Argument(..., help="Hit table TSV with a 'match' column."),
    out: str = typer.Option(None, "--out", help="Output TSV path. Default: stdout."),
    ignore_n: bool = typer.Option(False, "--ignore-n",
                                  help="Exclude ambiguous letters from the denominator."),
):
    """
    Add a 'gc' column with the GC content of each matched sequence.
    """
    import pandas as pd
    from .hits import calc_hit_gc

    res = pd.read_csv(hits, sep="\t", keep_default_na=False)
    if "match" not in res.columns:
        _fail(f"No 'match' column in {hits}")

    res["gc"] = calc_hit_gc(res["match"].astype(str).tolist(), ignore_n=ignore_n)
    res.to_csv(sys.stdout if out is None else out, sep="\t", index=False)


db_app = typer.Typer(help="Motif atlas building.")
app.add_typer(db_app, name="db")


@db_app.command("transfac")
def db_transfac(
    transfac: str = typer.Argument(..., help="TRANSFAC motif file."),
    out: str = typer.Argument("motifs.json", help="Output JSON atlas."),
    skip: int = typer.Option(0, "--skip", help="Leading lines to skip."),
):
    """
    Convert a TRANSFAC file to a JSON motif atlas.
    """
    from .build_json_db.transfac import convert_transfac_to_json
    from .errors import MotifScanError

    try:
        convert_transfac_to_json(transfac, out, skip=skip)
    except (MotifScanError, FileNotFoundError) as e:
        _fail(e)


@db_app.command("sqlite")
def db_sqlite(
    atlas: str = typer.Argument(..., help="JSON motif atlas."),
    out: str = typer.Argument("motifs.db", help="Output SQLite database."),
):
    """
    Convert a JSON motif atlas to SQLite.
    """
    from .build_json_db.json_to_sqlite import convert_json_to_db
    from .errors import MotifScanError

    try:
        convert_json_to_db(atlas, out)
    except MotifScanError as e:
        _fail(e)


if __name__ == "__main__":
    app()
