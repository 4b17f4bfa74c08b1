import pytest

from spiece import proto
from spiece.errors import ConfigError, SentencePieceError, UnknownPieceIdError
from spiece.model import SentencePieceModel


def test_vocabulary(make_model):
    model = make_model([('a', -1.0), ('b', -2.0), ('<x>', 0.0, proto.USER_DEFINED)])
    assert len(model) == model.get_piece_size() == 6
    assert model.unk_id == 0
    assert model.bos_id == 1 and model.eos_id == 2
    assert model.piece_to_id('b') == 4
    assert model.piece_to_id('zzz') == model.unk_id
    assert model.id_to_piece(3) == 'a'
    assert model.get_score(4) == pytest.approx(-2.0)
    assert model.is_unknown(0) and model.is_control(1) and model.is_user_defined(5)
    assert model.ids_of_type(proto.CONTROL) == [1, 2]
    assert 'a' in model and 'c' not in model
    assert len(model.normal_table) == 2


@pytest.mark.parametrize('piece_id', [-1, 6, 100])
def test_out_of_range_ids(make_model, piece_id):
    model = make_model([('a', -1.0), ('b', -2.0), ('c', -3.0)])
    with pytest.raises(UnknownPieceIdError):
        model.id_to_piece(piece_id)
    with pytest.raises(IndexError):
        model.get_score(piece_id)


def test_invalid_models(make_model):
    with pytest.raises(ConfigError):
        make_model([('a', -1.0), ('a', -2.0)])
    with pytest.raises(ConfigError):
        make_model([('<unk2>', 0.0, proto.UNKNOWN)])

    model_proto = proto.ModelProto()
    model_proto.pieces.add(piece='a')
    with pytest.raises(ConfigError):
        SentencePieceModel(model_proto)


def test_model_does_not_share_the_proto(make_model):
    model = make_model([('a', -1.0)])
    model_proto = model.to_proto()
    model_proto.pieces[3].piece = 'z'
    assert model.id_to_piece(3) == 'a'


def test_save_and_load(make_model, tmp_path):
    model = make_model([('▁a', -1.0), ('b', -2.5)])
    model_path = model.save(tmp_path / 'm')

    assert model_path == tmp_path / 'm.model'
    vocab = (tmp_path / 'm.vocab').read_text(encoding='utf8').splitlines()
    assert vocab[0] == '<unk>\t0.0'
    assert vocab[3] == '▁a\t-1.0'
    assert len(vocab) == len(model)

    for path in (tmp_path / 'm.model', tmp_path / 'm'):
        loaded = SentencePieceModel.load(path)
        assert loaded.pieces == model.pieces
        assert loaded.serialized() == model.serialized()


def test_non_finite_score_fails_on_encode(make_model):
    model = make_model([('a', -1.0), ('b', float('-inf'))], add_dummy_prefix=False)
    with pytest.raises(SentencePieceError):
        model.encode('ab')
