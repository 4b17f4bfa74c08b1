"""Text to piece ids.

The segmentation strategy is fixed by the model type and picked once per
segmenter. User defined symbols (and, on request, control symbols) are matched
first, as atomic pieces; the strategy only sees the text between them.
"""
import pygtrie

from . import proto
from .lattice import Lattice
from .normalizer import Normalizer, WS_CHAR
from .utils import split_by_symbols


def split_into_words(text, ws=WS_CHAR):
    """Split before every whitespace symbol: '▁a▁b' -> ['▁a', '▁b']."""
    words = []
    for ch in text:
        if ch == ws or not words:
            words.append(ch)
        else:
            words[-1] += ch
    return words


class Segmenter(object):

    def __init__(self, model, match_control_symbols=False, invalid_char_policy='replace'):
        self.model = model
        normalizer_spec = model.normalizer_spec
        self.normalizer = Normalizer(normalizer_spec, invalid_char_policy)
        self._ws = WS_CHAR if normalizer_spec.escape_whitespaces else ' '

        atomic_types = {proto.USER_DEFINED}
        if match_control_symbols:
            atomic_types.add(proto.CONTROL)
        self._atomic = pygtrie.CharTrie()
        self._max_atomic_len = 0
        for i, piece in enumerate(model.pieces):
            if piece.type in atomic_types:
                self._atomic[piece.piece] = i
                self._max_atomic_len = max(self._max_atomic_len, len(piece.piece))

        self._normal_ids = {p.piece: i for i, p in enumerate(model.pieces)
                            if p.type == proto.NORMAL}

        strategies = {
            proto.UNIGRAM: self._segment_unigram,
            proto.BPE: self._segment_bpe,
            proto.WORD: self._segment_word,
            proto.CHAR: self._segment_char,
        }
        if model.model_type not in strategies:
            raise ValueError(f'Unsupported model type: {model.model_type}')
        self._segment = strategies[model.model_type]

    def _segment_unigram(self, text):
        unk_id = self.model.unk_id
        path, _ = Lattice(text, self.model.normal_table, unk_id=unk_id).viterbi()
        ids = []
        for piece_id, _, _ in path:
            # Runs of unknown characters become a single unknown piece.
            if piece_id == unk_id and ids and ids[-1] == unk_id:
                continue
            ids.append(piece_id)
        return ids

    def _segment_bpe(self, text):
        pieces = self.model.pieces
        symbols = list(text)
        while len(symbols) > 1:
            best_score, best_pos = None, None
            for pos in range(len(symbols) - 1):
                piece_id = self._normal_ids.get(symbols[pos] + symbols[pos + 1])
                if piece_id is None:
                    continue
                score = pieces[piece_id].score
                # Strict comparison keeps the leftmost pair on ties.
                if best_score is None or score > best_score:
                    best_score, best_pos = score, pos
            if best_pos is None:
                break
            symbols[best_pos:best_pos + 2] = [symbols[best_pos] + symbols[best_pos + 1]]
        return [self._normal_ids.get(symbol, self.model.unk_id) for symbol in symbols]

    def _segment_word(self, text):
        return [self._normal_ids.get(word, self.model.unk_id)
                for word in split_into_words(text, self._ws)]

    def _segment_char(self, text):
        return [self._normal_ids.get(ch, self.model.unk_id) for ch in text]

    def encode(self, text, out_type=int):
        """Segment `text`; returns a new list of ids (or pieces with out_type=str)."""
        normalized = self.normalizer.normalize(text)
        ids = []
        for chunk, atomic_id in split_by_symbols(normalized, self._atomic, self._max_atomic_len):
            if atomic_id is not None:
                ids.append(atomic_id)
            else:
                ids.extend(self._segment(chunk))

        if out_type is int:
            return ids
        if out_type is str:
            return [self.model.pieces[i].piece for i in ids]
        raise ValueError(f'out_type must be int or str, got {out_type!r}')

    def encode_batch(self, texts, out_type=int):
        return [self.encode(text, out_type=out_type) for text in texts]
