import pytest

from spiece import proto
from spiece.model import SentencePieceModel
from spiece.normalizer import get_normalizer_spec

CORPUS = [
    'the quick brown fox jumps over the lazy dog',
    'the lazy dog sleeps in the sun',
    'a quick brown dog runs over the hill',
    'the fox and the dog are friends',
    'brown foxes jump over lazy dogs',
    'the sun is over the hill',
    'the dog and the fox run in the sun',
    'over the hill the quick fox jumps',
]


@pytest.fixture
def corpus():
    return list(CORPUS) * 3


@pytest.fixture
def make_model():
    """Model with <unk>, <s>, </s> followed by `pieces`.

    Every piece is (piece, score) or (piece, score, type); the normalizer is
    the identity map with the given flags.
    """
    def make(pieces, model_type=proto.UNIGRAM, **normalizer_flags):
        model_proto = proto.ModelProto()
        model_proto.pieces.add(piece='<unk>', score=0.0, type=proto.UNKNOWN)
        model_proto.pieces.add(piece='<s>', score=0.0, type=proto.CONTROL)
        model_proto.pieces.add(piece='</s>', score=0.0, type=proto.CONTROL)
        for item in pieces:
            piece, score = item[:2]
            piece_type = item[2] if len(item) > 2 else proto.NORMAL
            model_proto.pieces.add(piece=piece, score=score, type=piece_type)
        model_proto.trainer_spec.model_type = model_type
        model_proto.normalizer_spec.CopyFrom(get_normalizer_spec('identity', **normalizer_flags))
        return SentencePieceModel(model_proto)
    return make
