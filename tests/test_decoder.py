import numpy as np
import pytest

from spiece.decoder import UNK_SURFACE, Decoder
from spiece.errors import UnknownPieceIdError


@pytest.fixture
def hello_model(make_model):
    return make_model([('▁hello', -1.0), ('▁world', -1.2), ('▁', -3.0)])


def test_decode(hello_model):
    assert hello_model.decode([3, 4]) == 'hello world'
    assert hello_model.decode(np.array([3, 4])) == 'hello world'
    assert hello_model.decode([]) == ''


def test_control_pieces_render_empty(hello_model):
    assert hello_model.decode([1, 3, 4, 2]) == 'hello world'


def test_unknown_piece(hello_model):
    ids = hello_model.encode('hello xyz')
    assert hello_model.decode(ids) == 'hello ' + UNK_SURFACE


@pytest.mark.parametrize('ids', [[3, 99], [-1], [6]])
def test_out_of_range(hello_model, ids):
    with pytest.raises(UnknownPieceIdError):
        hello_model.decode(ids)


def test_decode_pieces(hello_model):
    assert hello_model.decode_pieces(['▁hello', '▁world']) == 'hello world'
    assert hello_model.decode_pieces(['<s>', '▁hello', '▁there']) == 'hello there'


def test_without_dummy_prefix(make_model):
    model = make_model([('hello', -1.0), ('world', -1.0), ('▁world', -1.0), ('▁', -3.0)],
                       add_dummy_prefix=False)
    decoder = Decoder(model)
    assert model.encode('hello world', out_type=str) == ['hello', '▁world']
    assert decoder.decode(model.encode('hello world')) == 'hello world'
    assert decoder.decode(model.encode(' world')) == 'world'
    # Only the dummy prefix is dropped, a real leading space is kept.
    assert decoder.decode([model.piece_to_id('▁world')]) == ' world'


def test_round_trip(hello_model):
    for text in ['hello world', 'world hello hello', 'hello']:
        assert hello_model.decode(hello_model.encode(text)) == text
