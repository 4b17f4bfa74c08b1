from .config import (load_config, normalizer_spec_from_dict, trainer_spec_from_dict,
                     validate_normalizer_spec, validate_trainer_spec)
from .decoder import Decoder
from .errors import (ConfigError, CoverageError, EncodingError, SentencePieceError,
                     UnknownPieceIdError)
from .model import Piece, SentencePieceModel
from .normalizer import Normalizer, get_normalizer_spec
from .proto import ModelProto, NormalizerSpec, TrainerSpec
from .segmenter import Segmenter
from .sentencepiece_trainer import SentencePieceTrainer

__version__ = '0.1.0'
