from collections import Counter

import numpy as np

from . import proto
from .normalizer import UNK_CHAR
from .segmenter import split_into_words
from .trainer import BaseTrainer


def _log_prob_pieces(counts, limit):
    logsum = np.log(sum(counts.values()))
    pieces = []
    for piece, count in sorted(counts.items(), key=lambda pc: (-pc[1], pc[0])):
        if len(pieces) == limit:
            break
        pieces.append((piece, float(np.log(count) - logsum)))
    return pieces


class WordTrainer(BaseTrainer):
    """Whole whitespace-delimited words, most frequent first."""

    model_type = proto.WORD
    alphabet_in_vocab = False

    def train_pieces(self, sentences):
        freq = Counter()
        for text, count in sentences:
            for word in split_into_words(text):
                if UNK_CHAR not in word:
                    freq[word] += count
        self.print_(f'{len(freq)} distinct words')
        return _log_prob_pieces(freq, self.vocab_budget)


class CharTrainer(BaseTrainer):
    """One piece per required character, most frequent first."""

    model_type = proto.CHAR
    alphabet_in_vocab = False

    def train_pieces(self, sentences):
        return _log_prob_pieces(self.required_chars, self.vocab_budget)
