"""Position weight matrix scanning of DNA, RNA and protein sequences."""

from .core import load_motifs, parse_fasta
from .errors import (
    AtlasNotFoundError,
    InputError,
    MotifScanError,
    SequenceLengthError,
    UnrecognizedSymbolWarning,
)
from .hits import add_gap_dots, calc_hit_gc, switch_antisense_coords
from .pipeline import scan_sequences
from .scanner import scan

__version__ = "0.1.0"

__all__ = [
    "scan",
    "scan_sequences",
    "load_motifs",
    "parse_fasta",
    "calc_hit_gc",
    "switch_antisense_coords",
    "add_gap_dots",
    "MotifScanError",
    "InputError",
    "SequenceLengthError",
    "AtlasNotFoundError",
    "UnrecognizedSymbolWarning",
]
