"""Wire schema of the model file.

The message classes are built at import time from a descriptor that mirrors
``sentencepiece_model.proto`` field by field, so files written here can be read
by any other implementation of the schema and vice versa. Fields this module
does not know about (including the ``200 to max`` extension ranges) are kept as
unknown fields by protobuf and written back untouched on re-serialization.
"""
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_F = descriptor_pb2.FieldDescriptorProto

# Exclusive end of the `extensions 200 to max` ranges.
_MAX_FIELD_NUMBER = 536870912

# TrainerSpec.ModelType
UNIGRAM = 1
BPE = 2
WORD = 3
CHAR = 4

MODEL_TYPES = {
    'unigram': UNIGRAM,
    'bpe': BPE,
    'word': WORD,
    'char': CHAR,
}

# ModelProto.SentencePiece.Type
NORMAL = 1
UNKNOWN = 2
CONTROL = 3
USER_DEFINED = 4

PIECE_TYPES = {
    NORMAL: 'NORMAL',
    UNKNOWN: 'UNKNOWN',
    CONTROL: 'CONTROL',
    USER_DEFINED: 'USER_DEFINED',
}


def _enum(parent, name, values):
    enum = parent.enum_type.add(name=name)
    for value_name, number in values:
        enum.value.add(name=value_name, number=number)


def _field(message, name, number, type_, repeated=False, default=None, type_name=None):
    field = message.field.add(
        name=name, number=number, type=type_,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL)
    if default is not None:
        field.default_value = default
    if type_name is not None:
        field.type_name = type_name
    return field


def _build_file_descriptor():
    fd = descriptor_pb2.FileDescriptorProto(
        name='spiece/sentencepiece_model.proto', package='spiece', syntax='proto2')

    trainer = fd.message_type.add(name='TrainerSpec')
    _enum(trainer, 'ModelType', [('UNIGRAM', UNIGRAM), ('BPE', BPE),
                                 ('WORD', WORD), ('CHAR', CHAR)])
    _field(trainer, 'input', 1, _F.TYPE_STRING, repeated=True)
    _field(trainer, 'model_prefix', 2, _F.TYPE_STRING)
    _field(trainer, 'model_type', 3, _F.TYPE_ENUM, default='UNIGRAM',
           type_name='.spiece.TrainerSpec.ModelType')
    _field(trainer, 'vocab_size', 4, _F.TYPE_INT32, default='8000')
    _field(trainer, 'accept_language', 5, _F.TYPE_STRING, repeated=True)
    _field(trainer, 'character_coverage', 10, _F.TYPE_FLOAT, default='0.9995')
    _field(trainer, 'input_sentence_size', 11, _F.TYPE_INT32, default='10000000')
    _field(trainer, 'mining_sentence_size', 12, _F.TYPE_INT32, default='2000000')
    _field(trainer, 'training_sentence_size', 13, _F.TYPE_INT32, default='10000000')
    _field(trainer, 'seed_sentencepiece_size', 14, _F.TYPE_INT32, default='1000000')
    _field(trainer, 'shrinking_factor', 15, _F.TYPE_FLOAT, default='0.75')
    _field(trainer, 'num_threads', 16, _F.TYPE_INT32, default='16')
    _field(trainer, 'num_sub_iterations', 17, _F.TYPE_INT32, default='2')
    _field(trainer, 'max_sentencepiece_length', 20, _F.TYPE_INT32, default='16')
    _field(trainer, 'split_by_unicode_script', 21, _F.TYPE_BOOL, default='true')
    _field(trainer, 'split_by_whitespace', 22, _F.TYPE_BOOL, default='true')
    _field(trainer, 'control_symbols', 30, _F.TYPE_STRING, repeated=True)
    _field(trainer, 'user_defined_symbols', 31, _F.TYPE_STRING, repeated=True)
    trainer.extension_range.add(start=200, end=_MAX_FIELD_NUMBER)

    normalizer = fd.message_type.add(name='NormalizerSpec')
    _field(normalizer, 'name', 1, _F.TYPE_STRING)
    _field(normalizer, 'precompiled_charsmap', 2, _F.TYPE_BYTES)
    _field(normalizer, 'add_dummy_prefix', 3, _F.TYPE_BOOL, default='true')
    _field(normalizer, 'remove_extra_whitespaces', 4, _F.TYPE_BOOL, default='true')
    _field(normalizer, 'escape_whitespaces', 5, _F.TYPE_BOOL, default='true')
    normalizer.extension_range.add(start=200, end=_MAX_FIELD_NUMBER)

    model = fd.message_type.add(name='ModelProto')
    piece = model.nested_type.add(name='SentencePiece')
    _enum(piece, 'Type', [('NORMAL', NORMAL), ('UNKNOWN', UNKNOWN),
                          ('CONTROL', CONTROL), ('USER_DEFINED', USER_DEFINED)])
    _field(piece, 'piece', 1, _F.TYPE_STRING)
    _field(piece, 'score', 2, _F.TYPE_FLOAT)
    _field(piece, 'type', 3, _F.TYPE_ENUM, default='NORMAL',
           type_name='.spiece.ModelProto.SentencePiece.Type')
    piece.extension_range.add(start=200, end=_MAX_FIELD_NUMBER)
    _field(model, 'pieces', 1, _F.TYPE_MESSAGE, repeated=True,
           type_name='.spiece.ModelProto.SentencePiece')
    _field(model, 'trainer_spec', 2, _F.TYPE_MESSAGE, type_name='.spiece.TrainerSpec')
    _field(model, 'normalizer_spec', 3, _F.TYPE_MESSAGE, type_name='.spiece.NormalizerSpec')
    model.extension_range.add(start=200, end=_MAX_FIELD_NUMBER)

    return fd


_FILE = _build_file_descriptor()
_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_FILE.SerializeToString())

# Names of the repeated fields of every top level message.
_REPEATED = {
    message.name: frozenset(f.name for f in message.field if f.label == _F.LABEL_REPEATED)
    for message in _FILE.message_type}

TrainerSpec = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName('spiece.TrainerSpec'))
NormalizerSpec = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName('spiece.NormalizerSpec'))
ModelProto = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName('spiece.ModelProto'))
SentencePieceProto = message_factory.GetMessageClass(
    _POOL.FindMessageTypeByName('spiece.ModelProto.SentencePiece'))


def model_type_name(model_type):
    for name, number in MODEL_TYPES.items():
        if number == model_type:
            return name.upper()
    raise ValueError(f'Unknown model type: {model_type}')


def serialize(message):
    return message.SerializeToString()


def parse_model(data):
    model = ModelProto()
    model.ParseFromString(bytes(data))
    return model


def copy_message(message):
    out = type(message)()
    out.CopyFrom(message)
    return out


def is_repeated(message, field_name):
    """Whether `field_name` of a TrainerSpec, NormalizerSpec or ModelProto is repeated."""
    return field_name in _REPEATED.get(message.DESCRIPTOR.name, ())
