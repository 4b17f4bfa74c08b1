import numpy as np
import pytest

from spiece.errors import SentencePieceError
from spiece.lattice import UNK_PENALTY, Lattice, PieceTable


@pytest.fixture
def table():
    return PieceTable([(0, 'a', np.log(0.5)), (1, 'b', np.log(0.5)), (2, 'ab', np.log(0.25))])


def test_piece_table(table):
    assert len(table) == 3
    assert 'ab' in table and 'ba' not in table
    assert table.max_piece_len == 2
    assert table.min_score == pytest.approx(np.log(0.25))
    assert table.unk_score == pytest.approx(np.log(0.25) - UNK_PENALTY)
    assert sorted(table.prefixes('abc', 0)) == [(0, 1, np.log(0.5)), (2, 2, np.log(0.25))]


def test_marginals(table):
    lattice = Lattice('ab', table)
    expected = np.zeros(3)
    Z = lattice.populate_marginal(2.0, expected)
    # Both segmentations have probability 1/4.
    assert Z == pytest.approx(2.0 * np.log(0.5))
    assert expected == pytest.approx([1.0, 1.0, 1.0])


def test_equal_scores_prefer_longer_piece(table):
    path, score = Lattice('ab', table).viterbi()
    assert path == [(2, 0, 2)]
    assert score == pytest.approx(np.log(0.25))


def test_second_best(table):
    path, _ = Lattice('ab', table).viterbi(exclude_id=2)
    assert [piece_id for piece_id, _, _ in path] == [0, 1]


def test_no_alternative(table):
    path, score = Lattice('a', table).viterbi(exclude_id=0)
    assert path == []
    assert score == -np.inf


def test_unknown_characters(table):
    lattice = Lattice('axb', table, unk_id=7)
    path, score = lattice.viterbi()
    assert [piece_id for piece_id, _, _ in path] == [0, 7, 1]
    assert score == pytest.approx(2 * np.log(0.5) + table.unk_score)

    # The unknown piece is left out of the expected counts.
    expected = np.zeros(3)
    Lattice('axb', table).populate_marginal(1.0, expected)
    assert expected == pytest.approx([1.0, 1.0, 0.0])


def test_empty_sentence(table):
    path, score = Lattice('', table).viterbi()
    assert path == []
    assert score == 0.0


@pytest.mark.parametrize('score', [-np.inf, np.nan])
def test_non_finite_scores_are_rejected(score):
    with pytest.raises(SentencePieceError):
        PieceTable([(0, 'a', -1.0), (1, 'b', score)])
