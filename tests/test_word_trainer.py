from spiece import proto
from spiece.sentencepiece_trainer import SentencePieceTrainer


def train(corpus, model_type, vocab_size=10):
    return SentencePieceTrainer.train(sentences=corpus, model_type=model_type,
                                      vocab_size=vocab_size, character_coverage=1.0,
                                      normalization_rule_name='identity')


def test_word_model(corpus):
    model = train(corpus, 'word')
    assert len(model) == 10
    assert model.model_type == proto.WORD
    # 'the' is the most frequent word of the corpus.
    assert model.id_to_piece(3) == '▁the'
    assert model.encode('the', out_type=str) == ['▁the']
    assert model.encode('zebra', out_type=str) == ['<unk>']


def test_word_model_needs_no_alphabet(corpus):
    # 20 pieces cannot hold the 27 characters of the corpus, words do not need them.
    model = train(corpus, 'word', vocab_size=20)
    assert len(model) == 20
    assert all(p.piece.startswith('▁') for p in model.pieces[3:])


def test_char_model(corpus):
    model = train(corpus, 'char')
    assert len(model) == 10
    assert model.model_type == proto.CHAR
    assert all(len(p.piece) == 1 for p in model.pieces[3:])
    # The separator is the most frequent character.
    assert model.id_to_piece(3) == '▁'
