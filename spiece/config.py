"""Building and validating TrainerSpec / NormalizerSpec.

Specs come from keyword dicts, command line flags or a YAML file shaped as::

    trainer:
      vocab_size: 8000
      model_type: unigram
      control_symbols: [<sep>, <cls>]
    normalizer:
      name: nmt_nfkc
      add_dummy_prefix: true
"""
import pathlib

import yaml

from . import proto
from .errors import ConfigError
from .model import BOS_PIECE, EOS_PIECE, UNK_PIECE
from .normalizer import CharsMap, get_normalizer_spec

META_PIECES = (UNK_PIECE, BOS_PIECE, EOS_PIECE)

MAX_PIECE_LENGTH_LIMIT = 512


def _fill_message(message, values):
    fields = message.DESCRIPTOR.fields_by_name
    for key, value in values.items():
        if key not in fields:
            raise ConfigError(f'Unknown {message.DESCRIPTOR.name} field: {key!r}')
        try:
            if proto.is_repeated(message, key):
                if isinstance(value, str):
                    value = [value]
                del getattr(message, key)[:]
                getattr(message, key).extend(value)
            else:
                setattr(message, key, value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f'Bad value for {key!r}: {value!r} ({e})') from e
    return message


def trainer_spec_from_dict(values=None, base=None, **kwargs):
    """TrainerSpec with the fields in `values` (model_type may be a name) set over `base`."""
    values = dict(values or {}, **kwargs)
    model_type = values.get('model_type')
    if isinstance(model_type, str):
        if model_type.lower() not in proto.MODEL_TYPES:
            raise ConfigError(f'Unknown model_type: {model_type!r}, '
                              f'expected one of {sorted(proto.MODEL_TYPES)}')
        values['model_type'] = proto.MODEL_TYPES[model_type.lower()]
    spec = proto.TrainerSpec() if base is None else proto.copy_message(base)
    return _fill_message(spec, values)


def normalizer_spec_from_dict(values=None, base=None, **kwargs):
    values = dict(values or {}, **kwargs)
    if base is not None:
        return _fill_message(proto.copy_message(base), values)
    name = values.pop('name', 'nmt_nfkc')
    if 'precompiled_charsmap' in values:
        spec = proto.NormalizerSpec(name=name)
    else:
        spec = get_normalizer_spec(name)
    return _fill_message(spec, values)


def load_config(path):
    """Returns (trainer_spec, normalizer_spec) read from a YAML file."""
    with open(pathlib.Path(path), 'r', encoding='utf8') as config_file:
        try:
            config = yaml.full_load(config_file)
        except yaml.YAMLError as e:
            raise ConfigError(f'Cannot parse {path}: {e}') from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f'{path}: expected a mapping at the top level')
    unknown = set(config) - {'trainer', 'normalizer'}
    if unknown:
        raise ConfigError(f'{path}: unknown sections {sorted(unknown)}')

    return (trainer_spec_from_dict(config.get('trainer') or {}),
            normalizer_spec_from_dict(config.get('normalizer') or {}))


def _check_symbols(symbols, kind, seen):
    for symbol in symbols:
        if not symbol:
            raise ConfigError(f'Empty string in {kind}')
        if symbol in META_PIECES:
            raise ConfigError(f'{symbol!r} in {kind} is a reserved piece')
        if symbol in seen:
            raise ConfigError(f'{symbol!r} is defined more than once in '
                              'control_symbols / user_defined_symbols')
        seen.add(symbol)


def validate_trainer_spec(spec):
    if spec.model_type not in proto.MODEL_TYPES.values():
        raise ConfigError(f'Unknown model_type: {spec.model_type}')
    if spec.vocab_size <= 0:
        raise ConfigError(f'vocab_size must be positive, got {spec.vocab_size}')
    if spec.seed_sentencepiece_size <= spec.vocab_size:
        raise ConfigError(
            f'seed_sentencepiece_size ({spec.seed_sentencepiece_size}) must be '
            f'larger than vocab_size ({spec.vocab_size})')
    if not 0 < spec.shrinking_factor < 1:
        raise ConfigError(f'shrinking_factor must be in (0, 1), got {spec.shrinking_factor}')
    if not 0 < spec.character_coverage <= 1:
        raise ConfigError(
            f'character_coverage must be in (0, 1], got {spec.character_coverage}')
    if spec.num_sub_iterations < 1:
        raise ConfigError(f'num_sub_iterations must be >= 1, got {spec.num_sub_iterations}')
    if spec.num_threads < 1:
        raise ConfigError(f'num_threads must be >= 1, got {spec.num_threads}')
    if not 1 <= spec.max_sentencepiece_length <= MAX_PIECE_LENGTH_LIMIT:
        raise ConfigError(f'max_sentencepiece_length must be in [1, {MAX_PIECE_LENGTH_LIMIT}], '
                          f'got {spec.max_sentencepiece_length}')
    for name in ('input_sentence_size', 'mining_sentence_size', 'training_sentence_size'):
        if getattr(spec, name) < 0:
            raise ConfigError(f'{name} must be >= 0, got {getattr(spec, name)}')

    seen = set()
    _check_symbols(spec.control_symbols, 'control_symbols', seen)
    _check_symbols(spec.user_defined_symbols, 'user_defined_symbols', seen)

    n_meta = len(META_PIECES) + len(seen)
    if spec.vocab_size <= n_meta:
        raise ConfigError(f'vocab_size ({spec.vocab_size}) leaves no room for normal pieces '
                          f'next to the {n_meta} reserved ones')
    return spec


def validate_normalizer_spec(spec, for_training=False):
    if for_training and not spec.escape_whitespaces:
        raise ConfigError('escape_whitespaces must be enabled to train a model')
    CharsMap.from_bytes(spec.precompiled_charsmap)
    return spec
