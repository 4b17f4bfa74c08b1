import pathlib
from collections import namedtuple

from google.protobuf.message import DecodeError

from . import proto
from .errors import ConfigError, SentencePieceError, UnknownPieceIdError
from .lattice import PieceTable

UNK_PIECE = '<unk>'
BOS_PIECE = '<s>'
EOS_PIECE = '</s>'

Piece = namedtuple('Piece', ['piece', 'score', 'type'])


class SentencePieceModel(object):
    """The trained artifact: ordered scored pieces plus the specs behind them.

    The position of a piece is its id. A model never changes after it is
    built; the segmenter and decoder only read from it, so one instance can be
    shared by any number of threads.
    """

    def __init__(self, model_proto):
        self._proto = proto.copy_message(model_proto)
        self.pieces = tuple(Piece(p.piece, p.score, p.type) for p in self._proto.pieces)
        self._piece_to_id = {}
        unk_ids = []
        for i, piece in enumerate(self.pieces):
            if not piece.piece:
                raise ConfigError(f'Piece {i} is empty')
            if piece.piece in self._piece_to_id:
                raise ConfigError(f'Duplicated piece {piece.piece!r}')
            if piece.type not in proto.PIECE_TYPES:
                raise ConfigError(f'Piece {piece.piece!r} has unknown type {piece.type}')
            self._piece_to_id[piece.piece] = i
            if piece.type == proto.UNKNOWN:
                unk_ids.append(i)
        if len(unk_ids) != 1:
            raise ConfigError(f'A model needs exactly one UNKNOWN piece, found {len(unk_ids)}')
        self.unk_id = unk_ids[0]

        self._normal_table = None
        self._runtime = None

    # Construction / persistence

    @classmethod
    def from_serialized(cls, data):
        try:
            return cls(proto.parse_model(data))
        except DecodeError as e:
            raise SentencePieceError(f'Cannot parse model: {e}') from e

    @classmethod
    def load(cls, path):
        path = pathlib.Path(path)
        if not path.exists():
            path = pathlib.Path(str(path) + '.model')
        return cls.from_serialized(path.read_bytes())

    def to_proto(self):
        return proto.copy_message(self._proto)

    def serialized(self):
        return proto.serialize(self._proto)

    def save(self, prefix):
        """Write <prefix>.model (wire format) and <prefix>.vocab (piece<TAB>score)."""
        prefix = pathlib.Path(prefix)
        prefix.parent.mkdir(parents=True, exist_ok=True)
        model_path = pathlib.Path(str(prefix) + '.model')
        model_path.write_bytes(self.serialized())
        with open(str(prefix) + '.vocab', 'w', encoding='utf8') as out:
            for piece in self.pieces:
                out.write(f'{piece.piece}\t{piece.score}\n')
        return model_path

    # Specs

    @property
    def trainer_spec(self):
        return proto.copy_message(self._proto.trainer_spec)

    @property
    def normalizer_spec(self):
        return proto.copy_message(self._proto.normalizer_spec)

    @property
    def model_type(self):
        return self._proto.trainer_spec.model_type

    # Vocabulary

    def __len__(self):
        return len(self.pieces)

    def get_piece_size(self):
        return len(self.pieces)

    def piece_to_id(self, piece):
        return self._piece_to_id.get(piece, self.unk_id)

    def __contains__(self, piece):
        return piece in self._piece_to_id

    def _check_id(self, piece_id):
        if not 0 <= piece_id < len(self.pieces):
            raise UnknownPieceIdError(piece_id, len(self.pieces))

    def id_to_piece(self, piece_id):
        self._check_id(piece_id)
        return self.pieces[piece_id].piece

    def get_score(self, piece_id):
        self._check_id(piece_id)
        return self.pieces[piece_id].score

    def get_type(self, piece_id):
        self._check_id(piece_id)
        return self.pieces[piece_id].type

    def is_unknown(self, piece_id):
        return self.get_type(piece_id) == proto.UNKNOWN

    def is_control(self, piece_id):
        return self.get_type(piece_id) == proto.CONTROL

    def is_user_defined(self, piece_id):
        return self.get_type(piece_id) == proto.USER_DEFINED

    @property
    def bos_id(self):
        return self._piece_to_id.get(BOS_PIECE, -1)

    @property
    def eos_id(self):
        return self._piece_to_id.get(EOS_PIECE, -1)

    def ids_of_type(self, piece_type):
        return [i for i, piece in enumerate(self.pieces) if piece.type == piece_type]

    @property
    def normal_table(self):
        """Prefix index over the NORMAL pieces."""
        if self._normal_table is None:
            self._normal_table = PieceTable(
                (i, p.piece, p.score) for i, p in enumerate(self.pieces)
                if p.type == proto.NORMAL)
        return self._normal_table

    # Runtime

    def _get_runtime(self):
        if self._runtime is None:
            from .decoder import Decoder
            from .segmenter import Segmenter
            self._runtime = Segmenter(self), Decoder(self)
        return self._runtime

    def normalize(self, text):
        return self._get_runtime()[0].normalizer.normalize(text)

    def encode(self, text, out_type=int):
        return self._get_runtime()[0].encode(text, out_type=out_type)

    def encode_batch(self, texts, out_type=int):
        return self._get_runtime()[0].encode_batch(texts, out_type=out_type)

    def decode(self, ids):
        return self._get_runtime()[1].decode(ids)

    def decode_pieces(self, pieces):
        return self._get_runtime()[1].decode_pieces(pieces)

    def __repr__(self):
        return (f'SentencePieceModel(type={proto.model_type_name(self.model_type)}, '
                f'size={len(self.pieces)})')
