import pytest

from spiece import proto
from spiece.config import (load_config, normalizer_spec_from_dict, trainer_spec_from_dict,
                           validate_normalizer_spec, validate_trainer_spec)
from spiece.errors import ConfigError
from spiece.sentencepiece_trainer import SentencePieceTrainer


def test_seed_size_must_exceed_vocab_size():
    spec = trainer_spec_from_dict(vocab_size=100, seed_sentencepiece_size=50)
    with pytest.raises(ConfigError):
        validate_trainer_spec(spec)


def test_config_error_before_reading_the_corpus():
    consumed = []

    def lines():
        consumed.append(True)
        yield 'hello world'

    with pytest.raises(ConfigError):
        SentencePieceTrainer.train(sentences=lines(), vocab_size=100, seed_sentencepiece_size=50)
    assert consumed == []


@pytest.mark.parametrize('values', [
    dict(shrinking_factor=1.0),
    dict(shrinking_factor=0.0),
    dict(character_coverage=0.0),
    dict(character_coverage=1.5),
    dict(vocab_size=0),
    dict(vocab_size=3),
    dict(num_sub_iterations=0),
    dict(num_threads=0),
    dict(max_sentencepiece_length=0),
    dict(input_sentence_size=-1),
    dict(control_symbols=['<sep>'], user_defined_symbols=['<sep>']),
    dict(control_symbols=['<unk>']),
    dict(user_defined_symbols=['']),
])
def test_invalid_trainer_specs(values):
    with pytest.raises(ConfigError):
        validate_trainer_spec(trainer_spec_from_dict(values))


def test_defaults_are_valid():
    validate_trainer_spec(proto.TrainerSpec())


def test_from_dict():
    spec = trainer_spec_from_dict({'model_type': 'BPE', 'vocab_size': 500,
                                   'control_symbols': ['<a>', '<b>'], 'input': 'corpus.txt'})
    assert spec.model_type == proto.BPE
    assert spec.vocab_size == 500
    assert list(spec.control_symbols) == ['<a>', '<b>']
    assert list(spec.input) == ['corpus.txt']

    overridden = trainer_spec_from_dict({'vocab_size': 10}, base=spec)
    assert overridden.vocab_size == 10 and overridden.model_type == proto.BPE
    assert spec.vocab_size == 500


@pytest.mark.parametrize('values', [
    {'vocab_sizes': 10},
    {'model_type': 'bigram'},
    {'vocab_size': 'many'},
])
def test_bad_trainer_dicts(values):
    with pytest.raises(ConfigError):
        trainer_spec_from_dict(values)


def test_normalizer_spec_from_dict():
    spec = normalizer_spec_from_dict(name='identity', add_dummy_prefix=False)
    assert spec.name == 'identity'
    assert not spec.add_dummy_prefix
    assert spec.escape_whitespaces
    with pytest.raises(ConfigError):
        normalizer_spec_from_dict(lowercase=True)


def test_training_needs_escaped_whitespace():
    spec = normalizer_spec_from_dict(name='identity', escape_whitespaces=False)
    validate_normalizer_spec(spec)
    with pytest.raises(ConfigError):
        validate_normalizer_spec(spec, for_training=True)


def test_load_config(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('trainer:\n'
                    '  vocab_size: 300\n'
                    '  model_type: word\n'
                    '  user_defined_symbols: [<mask>]\n'
                    'normalizer:\n'
                    '  name: identity\n'
                    '  remove_extra_whitespaces: false\n', encoding='utf8')
    trainer_spec, normalizer_spec = load_config(path)
    assert trainer_spec.vocab_size == 300
    assert trainer_spec.model_type == proto.WORD
    assert list(trainer_spec.user_defined_symbols) == ['<mask>']
    assert normalizer_spec.name == 'identity'
    assert not normalizer_spec.remove_extra_whitespaces


def test_load_config_errors(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text('trainers:\n  vocab_size: 300\n', encoding='utf8')
    with pytest.raises(ConfigError):
        load_config(path)

    path.write_text('trainer: [1, 2\n', encoding='utf8')
    with pytest.raises(ConfigError):
        load_config(path)
