import numpy as np
import pytest

from pymotifscan import core
from pymotifscan.errors import InputError


def test_encode_sequence_maps_alphabet_indices():
    codes, has_na = core.encode_sequence("ACGTTGCA", "ACGT")
    assert codes.tolist() == [0, 1, 2, 3, 3, 2, 1, 0]
    assert codes.dtype == np.int64
    assert has_na is False


def test_encode_sequence_marks_unknown_letters():
    codes, has_na = core.encode_sequence("ACNT", "ACGT")
    assert codes.tolist() == [0, 1, core.NA_SENTINEL, 3]
    assert has_na is True


def test_encode_sequence_is_case_sensitive():
    codes, has_na = core.encode_sequence("acgt", "ACGT")
    assert (codes == core.NA_SENTINEL).all()
    assert has_na


def test_encode_sequence_first_duplicate_wins():
    codes, _ = core.encode_sequence("AB", "ABA")
    assert codes.tolist() == [0, 1]


def test_resolve_alphabet():
    assert core.resolve_alphabet("DNA") == "ACGT"
    assert core.resolve_alphabet("RNA") == "ACGU"
    assert len(core.resolve_alphabet("AA")) == 20
    assert core.resolve_alphabet("XYZ") == "XYZ"


def test_recode_higher_k_composites():
    stream, _ = core.encode_sequence("ACGT", "ACGT")
    recoded = core.recode_higher_k(stream, 2, 4)
    assert recoded.tolist() == [1, 6, 11]
    # written in place over the head of the stream
    assert stream[:3].tolist() == [1, 6, 11]


def test_recode_higher_k_three_letters():
    stream, _ = core.encode_sequence("CGTA", "ACGT")
    recoded = core.recode_higher_k(stream, 3, 4)
    assert recoded.tolist() == [1 * 16 + 2 * 4 + 3, 2 * 16 + 3 * 4 + 0]


def test_recode_higher_k_propagates_sentinel():
    stream = np.array([0, core.NA_SENTINEL, 2, 3], dtype=np.int64)
    recoded = core.recode_higher_k(stream, 2, 4, propagate_na=True)
    assert recoded.tolist() == [core.NA_SENTINEL, core.NA_SENTINEL, 11]


def test_recode_variants_agree_on_clean_input():
    a, _ = core.encode_sequence("ACGTTGCAAC", "ACGT")
    b = a.copy()
    strict = core.recode_higher_k(a, 3, 4)
    aware = core.recode_higher_k(b, 3, 4, propagate_na=True)
    assert strict.tolist() == aware.tolist()


def test_recode_identical_symbols_constant():
    stream, _ = core.encode_sequence("GGGGGGG", "ACGT")
    recoded = core.recode_higher_k(stream, 3, 4)
    assert set(recoded.tolist()) == {2 * 16 + 2 * 4 + 2}


def test_recode_k1_is_identity():
    stream, _ = core.encode_sequence("ACG", "ACGT")
    assert core.recode_higher_k(stream, 1, 4) is stream


def test_scale_matrix_truncates_toward_zero():
    scaled = core.scale_matrix([[1.0015, -1.0015, 0.0009, -0.0009]])
    assert scaled.tolist() == [[1001, -1001, 0, 0]]
    assert scaled.dtype == np.int64


def test_scale_matrix_rejects_nonfinite():
    with pytest.raises(InputError):
        core.scale_matrix([[0.0, -np.inf]])


def test_scale_threshold_clamps_infinite():
    assert core.scale_threshold(40) == 40000
    assert core.scale_threshold(np.inf) == core.INT_MAX
    assert core.scale_threshold(-np.inf) == core.INT_MIN
    with pytest.raises(InputError):
        core.scale_threshold(float("nan"))


def test_score_windows_counts_and_values(acgt_matrix):
    matrix = core.scale_matrix(acgt_matrix)
    stream, _ = core.encode_sequence("ACGTACGT", "ACGT")
    scores = core.score_windows(matrix, stream)
    assert len(scores) == 8 - 4 + 1
    assert scores.tolist() == [40000, 0, 0, 0, 40000]


def test_score_windows_policies_agree_on_clean_input(acgt_matrix):
    matrix = core.scale_matrix(acgt_matrix)
    stream, _ = core.encode_sequence("TTACGTAGCA", "ACGT")
    strict = core.score_windows(core.with_na_policy(matrix, False), stream)
    aware = core.score_windows(core.with_na_policy(matrix, True), stream)
    assert strict.tolist() == aware.tolist()


def test_score_windows_penalizes_sentinels(acgt_matrix):
    matrix = core.with_na_policy(core.scale_matrix(acgt_matrix), True)
    stream, _ = core.encode_sequence("ACGNACGT", "ACGT")
    scores = core.score_windows(matrix, stream)
    assert scores[-1] == 40000
    # at most 3 * 10 from the clean positions, plus one penalty
    assert (scores[:4] <= 30000 + core.NA_PENALTY).all()


def test_with_na_policy_appends_penalty_column(acgt_matrix):
    matrix = core.scale_matrix(acgt_matrix)
    assert core.with_na_policy(matrix, False) is matrix
    aware = core.with_na_policy(matrix, True)
    assert aware.shape == (4, 5)
    assert (aware[:, -1] == core.NA_PENALTY).all()


def test_fixed_point_rescale_preserves_decision():
    for score, thresh in [(40000, 40000), (39999, 40000), (-1, 0), (123457, 123456)]:
        fixed = score >= thresh
        rescaled = score / core.SCORE_SCALE >= thresh / core.SCORE_SCALE
        assert fixed == rescaled


def test_ppm_to_pwm_uniform_is_zero():
    pwm = core.ppm_to_pwm(np.full((3, 4), 0.25), nsites=50, pseudocount=1)
    assert np.allclose(pwm, 0.0)


def test_ppm_to_pwm_zero_pseudocount_gives_neg_inf():
    pwm = core.ppm_to_pwm([[1.0, 0.0, 0.0, 0.0]], nsites=100, pseudocount=0)
    assert pwm[0, 0] == pytest.approx(2.0)
    assert np.isneginf(pwm[0, 1:]).all()


def test_kmer_background_products():
    bkg = core.kmer_background([0.1, 0.2, 0.3, 0.4], 2)
    assert len(bkg) == 16
    assert bkg[1 * 4 + 3] == pytest.approx(0.2 * 0.4)
    assert bkg.sum() == pytest.approx(1.0)


def test_matrix_max_min_score(acgt_matrix):
    assert core.matrix_max_score(acgt_matrix) == 40
    assert core.matrix_min_score(acgt_matrix) == 0


def test_rc_score_matrix_k1_reverses_both_axes():
    mat = np.arange(12, dtype=float).reshape(3, 4)
    rc = core.rc_score_matrix(mat, "ACGT", 1, core.COMPLEMENTS["DNA"])
    assert np.array_equal(rc, mat[::-1, ::-1])


def test_rc_score_matrix_k2_scores_reverse_complement():
    rng = np.random.default_rng(3)
    mat = rng.integers(-4, 5, size=(3, 16)).astype(float)
    rc = core.rc_score_matrix(mat, "ACGT", 2, core.COMPLEMENTS["DNA"])

    def score(m, seq):
        stream, _ = core.encode_sequence(seq, "ACGT")
        return core.score_windows(core.scale_matrix(m), core.recode_higher_k(stream, 2, 4))[0]

    # scoring a window with the RC matrix equals scoring its reverse complement
    assert score(rc, "AACG") == score(mat, "CGTT")


def test_fasta_iter():
    lines = [">seq1 description", "ACGT", "TT", "", ">seq2", "GG"]
    assert list(core.fasta_iter(lines)) == [("seq1", "ACGTTT"), ("seq2", "GG")]
