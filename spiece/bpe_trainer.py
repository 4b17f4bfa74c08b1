"""Byte pair encoding over characters.

Words start as sequences of required characters; the most frequent adjacent
pair is merged until the vocabulary is full. A merged piece scores minus its
merge index, so the runtime replays merges in training order.
"""
from collections import Counter

from . import proto
from .segmenter import split_into_words
from .trainer import BaseTrainer


def get_stats(words):
    """Weighted counts of adjacent symbol pairs; `words` maps symbol tuples to counts."""
    stats = Counter()
    for symbols, count in words.items():
        for pair in zip(symbols, symbols[1:]):
            stats[pair] += count
    return stats


def merge_vocab(words, pair):
    first, second = pair
    bigram = first + second
    merged = Counter()
    for symbols, count in words.items():
        new_symbols = []
        i = 0
        while i < len(symbols):
            if i < len(symbols) - 1 and symbols[i] == first and symbols[i + 1] == second:
                new_symbols.append(bigram)
                i += 2
            else:
                new_symbols.append(symbols[i])
                i += 1
        merged[tuple(new_symbols)] += count
    return merged


class BPETrainer(BaseTrainer):

    model_type = proto.BPE

    def collect_words(self, sentences):
        words = Counter()
        for text, count in sentences:
            parts = split_into_words(text) if self.trainer_spec.split_by_whitespace else [text]
            for word in parts:
                words[tuple(word)] += count
        return words

    def train_pieces(self, sentences):
        words = self.collect_words(sentences)
        n_merges = self.vocab_budget - len(self.required_chars)
        self.print_(f'Starting BPE merges: target={n_merges} over {len(words)} words')

        merged_pieces = []
        seen = set(self.required_chars)
        while len(merged_pieces) < n_merges:
            stats = [(pair, count) for pair, count in get_stats(words).items()
                     if self.is_valid_piece(pair[0] + pair[1])]
            if not stats:
                break
            # Most frequent pair, alphabetical among equals.
            best_pair, best_count = min(stats, key=lambda pc: (-pc[1], pc[0]))
            words = merge_vocab(words, best_pair)

            piece = best_pair[0] + best_pair[1]
            if piece not in seen:
                seen.add(piece)
                merged_pieces.append(piece)
                self.print_(f'merges={len(merged_pieces)}/{n_merges} '
                            f'pair={best_pair[0]!r}+{best_pair[1]!r} freq={best_count}')

        pieces = [(piece, -float(i)) for i, piece in enumerate(merged_pieces)]
        offset = len(pieces)
        pieces += [(ch, -float(offset + i)) for i, (ch, _) in enumerate(self.sorted_required_chars())]
        return pieces
