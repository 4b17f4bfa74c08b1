class SentencePieceError(Exception):
    pass


class ConfigError(SentencePieceError, ValueError):
    """TrainerSpec / NormalizerSpec invariant violation."""


class CoverageError(SentencePieceError):
    """The required alphabet does not fit in the seed or final vocabulary."""


class EncodingError(SentencePieceError, ValueError):
    """Invalid input sequence and no invalid-character policy."""


class UnknownPieceIdError(SentencePieceError, IndexError):

    def __init__(self, piece_id, size):
        super().__init__(f'Piece id {piece_id} is out of range [0, {size})')
        self.piece_id = piece_id
        self.size = size
