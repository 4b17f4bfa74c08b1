from . import proto
from .normalizer import WS_CHAR

# Rendering of the unknown piece.
UNK_SURFACE = ' ⁇ '


class Decoder(object):
    """Piece ids back to text; undoes whitespace escaping and the dummy prefix."""

    def __init__(self, model):
        self.model = model
        spec = model.normalizer_spec
        self.escape_whitespaces = spec.escape_whitespaces
        self.add_dummy_prefix = spec.add_dummy_prefix

    def _surface(self, piece_id):
        piece = self.model.pieces[piece_id]
        if piece.type == proto.CONTROL:
            return ''
        if piece.type == proto.UNKNOWN:
            return UNK_SURFACE
        return piece.piece

    def _detokenize(self, surfaces):
        text = ''.join(surfaces)
        if self.escape_whitespaces:
            text = text.replace(WS_CHAR, ' ')
        if self.add_dummy_prefix and text.startswith(' '):
            text = text[1:]
        return text

    def decode(self, ids):
        """Raises UnknownPieceIdError on an id outside of the vocabulary."""
        surfaces = []
        for piece_id in ids:
            piece_id = int(piece_id)
            self.model._check_id(piece_id)
            surfaces.append(self._surface(piece_id))
        return self._detokenize(surfaces)

    def decode_pieces(self, pieces):
        surfaces = []
        for piece in pieces:
            if piece in self.model:
                surfaces.append(self._surface(self.model.piece_to_id(piece)))
            else:
                surfaces.append(piece)
        return self._detokenize(surfaces)
