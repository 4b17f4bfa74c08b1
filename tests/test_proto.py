import pytest

from spiece import proto
from spiece.errors import SentencePieceError
from spiece.model import SentencePieceModel

# Field 1000 (inside the extension range), varint 5.
UNKNOWN_FIELD = b'\xc0\x3e\x05'


def test_schema_defaults():
    trainer_spec = proto.TrainerSpec()
    assert trainer_spec.model_type == proto.UNIGRAM
    assert trainer_spec.vocab_size == 8000
    assert trainer_spec.character_coverage == pytest.approx(0.9995)
    assert trainer_spec.seed_sentencepiece_size == 1000000
    assert trainer_spec.shrinking_factor == pytest.approx(0.75)
    assert trainer_spec.num_sub_iterations == 2
    assert trainer_spec.max_sentencepiece_length == 16
    assert trainer_spec.split_by_unicode_script
    assert trainer_spec.split_by_whitespace

    normalizer_spec = proto.NormalizerSpec()
    assert normalizer_spec.add_dummy_prefix
    assert normalizer_spec.remove_extra_whitespaces
    assert normalizer_spec.escape_whitespaces

    assert proto.SentencePieceProto().type == proto.NORMAL


def test_field_numbers():
    fields = proto.TrainerSpec.DESCRIPTOR.fields_by_name
    assert fields['vocab_size'].number == 4
    assert fields['character_coverage'].number == 10
    assert fields['user_defined_symbols'].number == 31
    fields = proto.ModelProto.DESCRIPTOR.fields_by_name
    assert [fields[n].number for n in ('pieces', 'trainer_spec', 'normalizer_spec')] == [1, 2, 3]


def test_repeated_fields():
    assert proto.is_repeated(proto.TrainerSpec(), 'control_symbols')
    assert proto.is_repeated(proto.TrainerSpec, 'input')
    assert proto.is_repeated(proto.ModelProto(), 'pieces')
    assert not proto.is_repeated(proto.TrainerSpec(), 'vocab_size')
    assert not proto.is_repeated(proto.NormalizerSpec(), 'name')


def test_unknown_fields_survive_reserialization(make_model):
    data = make_model([('a', -1.0)]).serialized() + UNKNOWN_FIELD

    parsed = proto.parse_model(data)
    assert [p.piece for p in parsed.pieces] == ['<unk>', '<s>', '</s>', 'a']
    assert proto.serialize(parsed) == data

    assert SentencePieceModel.from_serialized(data).serialized() == data


def test_model_type_name():
    assert proto.model_type_name(proto.BPE) == 'BPE'
    with pytest.raises(ValueError):
        proto.model_type_name(42)


def test_garbage_is_rejected():
    with pytest.raises(SentencePieceError):
        SentencePieceModel.from_serialized(b'\xff\xff\xff')
