import pathlib
import random
from argparse import ArgumentParser

import numpy as np
from google.protobuf.descriptor import FieldDescriptor as F

from spiece import proto
from spiece.config import load_config, normalizer_spec_from_dict, trainer_spec_from_dict
from spiece.normalizer import get_normalizer_spec
from spiece.sentencepiece_trainer import SentencePieceTrainer
from spiece.utils import ensure_path

# Set from positional arguments.
_POSITIONAL = ('input', 'model_prefix')


def str2bool(value):
    if value.lower() in ('true', '1', 'yes'):
        return True
    if value.lower() in ('false', '0', 'no'):
        return False
    raise ValueError(f'Not a boolean: {value}')


def comma_list(value):
    return [item for item in value.split(',') if item]


def _add_spec_flags(parser):
    """One optional flag per TrainerSpec field, defaulting to None (= keep the spec value)."""
    for field in proto.TrainerSpec.DESCRIPTOR.fields:
        if field.name in _POSITIONAL:
            continue
        if proto.is_repeated(proto.TrainerSpec, field.name):
            kwargs = dict(type=comma_list, help='Comma separated list')
        elif field.type == F.TYPE_ENUM:
            kwargs = dict(type=str.lower, choices=sorted(proto.MODEL_TYPES))
        elif field.type == F.TYPE_BOOL:
            kwargs = dict(type=str2bool, help=f'Default={field.default_value}')
        elif field.type == F.TYPE_FLOAT:
            kwargs = dict(type=float, help=f'Default={field.default_value}')
        elif field.type == F.TYPE_STRING:
            kwargs = dict(type=str)
        else:
            kwargs = dict(type=int, help=f'Default={field.default_value}')
        parser.add_argument(f'--{field.name}', default=None, **kwargs)


def parseArgs():
    parser = ArgumentParser()

    parser.add_argument('input', type=pathlib.Path, nargs='+',
                        help='Text files to train on, one sentence per line. '
                             'Tab separated lines are split into sentences.')
    parser.add_argument('model_prefix', type=pathlib.Path,
                        help='Output prefix, <model_prefix>.model and <model_prefix>.vocab are written')
    parser.add_argument('--config', type=pathlib.Path,
                        help='YAML file with trainer: and normalizer: sections; flags override it')
    parser.add_argument('--normalization_rule_name', type=str,
                        help='identity, nfkc or nmt_nfkc. Default=nmt_nfkc')
    parser.add_argument('--seed', type=int, default=290956,
                        help='Random seed')
    parser.add_argument('--overwrite', action='store_true',
                        help='Overwrite existing model')
    parser.add_argument('--verbose', action='store_true',
                        help='Print training progress')
    _add_spec_flags(parser)
    return parser.parse_args()


def run(args):
    random.seed(args.seed)
    np.random.seed(args.seed)

    model_path = pathlib.Path(str(args.model_prefix) + '.model')
    assert not ensure_path(model_path) or args.overwrite, \
        f'Model found at {model_path}. If you want to overwrite, rerun with --overwrite.'

    if args.config is not None:
        trainer_spec, normalizer_spec = load_config(args.config)
    else:
        trainer_spec, normalizer_spec = proto.TrainerSpec(), get_normalizer_spec()

    overrides = {field.name: getattr(args, field.name)
                 for field in proto.TrainerSpec.DESCRIPTOR.fields
                 if field.name not in _POSITIONAL and getattr(args, field.name) is not None}
    overrides['input'] = [str(path) for path in args.input]
    overrides['model_prefix'] = str(args.model_prefix)
    trainer_spec = trainer_spec_from_dict(overrides, base=trainer_spec)
    if args.normalization_rule_name is not None:
        normalizer_spec = normalizer_spec_from_dict(
            {'name': args.normalization_rule_name,
             'add_dummy_prefix': normalizer_spec.add_dummy_prefix,
             'remove_extra_whitespaces': normalizer_spec.remove_extra_whitespaces,
             'escape_whitespaces': normalizer_spec.escape_whitespaces})

    print(f'Training a {proto.model_type_name(trainer_spec.model_type)} model '
          f'of {trainer_spec.vocab_size} pieces...')
    model = SentencePieceTrainer.train(trainer_spec=trainer_spec, normalizer_spec=normalizer_spec,
                                       verbose=args.verbose, seed=args.seed)
    print(f'Done: {model} saved to {model_path}')
    return model


if __name__ == "__main__":
    args = parseArgs()
    run(args)
