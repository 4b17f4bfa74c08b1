import numpy as np
import pygtrie

from .errors import SentencePieceError
from .viterbi import forward_backward, sentpiece_viterbi

# Score handicap of the unknown piece with respect to the worst piece.
UNK_PENALTY = 10.0


class PieceTable:
    """Read-only prefix index over scored pieces.

    Built once per EM generation during training and once per model at
    serving time; never modified afterwards.
    """

    def __init__(self, pieces):
        """
        Args
        ----
        pieces: iterable of (piece_id, piece, score)
        """
        self.trie = pygtrie.CharTrie()
        self.max_piece_len = 0
        min_score = None
        for piece_id, piece, score in pieces:
            if not piece:
                raise SentencePieceError(f'Piece {piece_id} is empty')
            if not np.isfinite(score):
                raise SentencePieceError(f'Non-finite score {score} for piece {piece!r}')
            self.trie[piece] = (piece_id, float(score))
            self.max_piece_len = max(self.max_piece_len, len(piece))
            min_score = score if min_score is None else min(min_score, score)
        self.min_score = 0.0 if min_score is None else float(min_score)
        self.unk_score = self.min_score - UNK_PENALTY

    def __len__(self):
        return len(self.trie)

    def __contains__(self, piece):
        return piece in self.trie

    def prefixes(self, text, pos):
        """Yield (piece_id, length, score) of every piece starting at text[pos]."""
        for key, (piece_id, score) in self.trie.prefixes(text[pos:pos + self.max_piece_len]):
            yield piece_id, len(key), score


class Lattice:
    """All segmentations of one sentence, as an edge list over positions."""

    def __init__(self, sentence, table, unk_id=-1):
        self.sentence = sentence
        self.N = len(sentence)

        begins, ends, ids, scores = [], [], [], []
        for pos in range(self.N):
            has_single_node = False
            for piece_id, length, score in table.prefixes(sentence, pos):
                begins.append(pos)
                ends.append(pos + length)
                ids.append(piece_id)
                scores.append(score)
                has_single_node |= length == 1
            if not has_single_node:
                begins.append(pos)
                ends.append(pos + 1)
                ids.append(unk_id)
                scores.append(table.unk_score)

        begins = np.asarray(begins, dtype=np.int64)
        ends = np.asarray(ends, dtype=np.int64)
        order = np.lexsort((begins, ends))
        self.begins = begins[order]
        self.ends = ends[order]
        self.ids = np.asarray(ids, dtype=np.int64)[order]
        self.scores = np.asarray(scores, dtype=np.float64)[order]

    def __len__(self):
        return len(self.ids)

    def populate_marginal(self, freq, expected):
        """Add the expected count of every piece, times `freq`, to `expected`.

        Edges with a negative id (the unknown piece) are not counted.
        Returns freq * Z, Z being the log-likelihood of the sentence.
        """
        alpha, beta = forward_backward(self.begins, self.ends, self.scores, self.N)
        Z = alpha[self.N]
        marginal = np.exp(alpha[self.begins] + self.scores + beta[self.ends] - Z)
        known = self.ids >= 0
        np.add.at(expected, self.ids[known], freq * marginal[known])
        return freq * Z

    def viterbi(self, exclude_id=None):
        """Best segmentation as a list of (piece_id, begin, end), and its score.

        With `exclude_id`, the edge spanning the whole sentence with that id
        is removed first, which yields the best alternative segmentation of a
        piece. Returns ([], -inf) when no path exists.
        """
        begins, ends, ids, scores = self.begins, self.ends, self.ids, self.scores
        if exclude_id is not None:
            keep = ~((begins == 0) & (ends == self.N) & (ids == exclude_id))
            begins, ends, ids, scores = begins[keep], ends[keep], ids[keep], scores[keep]

        path, score = sentpiece_viterbi(begins, ends, scores, self.N)
        if self.N > 0 and len(path) == 0:
            return [], -np.inf
        return [(int(ids[k]), int(begins[k]), int(ends[k])) for k in path], float(score)
