from collections import Counter

from spiece import proto
from spiece.bpe_trainer import get_stats, merge_vocab
from spiece.sentencepiece_trainer import SentencePieceTrainer


def train_bpe(corpus, vocab_size=40):
    return SentencePieceTrainer.train(sentences=corpus, model_type='bpe', vocab_size=vocab_size,
                                      character_coverage=1.0, normalization_rule_name='identity')


def test_get_stats_and_merge():
    words = Counter({('l', 'o', 'w'): 5, ('l', 'o', 'w', 'e', 'r'): 2})
    stats = get_stats(words)
    assert stats[('l', 'o')] == 7
    assert stats[('e', 'r')] == 2
    merged = merge_vocab(words, ('l', 'o'))
    assert merged == Counter({('lo', 'w'): 5, ('lo', 'w', 'e', 'r'): 2})


def test_merge_does_not_overlap():
    merged = merge_vocab(Counter({('a', 'a', 'a'): 1}), ('a', 'a'))
    assert merged == Counter({('aa', 'a'): 1})


def test_vocab_size(corpus):
    model = train_bpe(corpus)
    assert len(model) == 40
    assert model.model_type == proto.BPE
    scores = [p.score for p in model.pieces[3:]]
    assert scores == sorted(scores, reverse=True)
    # Merged pieces come first, single characters after them.
    assert len(model.id_to_piece(3)) == 2
    assert len(model.id_to_piece(39)) == 1


def test_round_trip(corpus):
    model = train_bpe(corpus)
    for sentence in corpus:
        ids = model.encode(sentence)
        assert model.unk_id not in ids
        assert model.decode(ids) == sentence


def test_merged_pieces_do_not_cross_words(corpus):
    model = train_bpe(corpus, vocab_size=60)
    for piece in model.pieces[3:]:
        assert '▁' not in piece.piece[1:]
