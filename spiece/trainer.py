import time
from collections import Counter

import pygtrie

from . import proto
from .config import validate_normalizer_spec, validate_trainer_spec
from .errors import ConfigError, CoverageError
from .model import BOS_PIECE, EOS_PIECE, UNK_PIECE, SentencePieceModel
from .normalizer import UNK_CHAR, WS_CHAR, Normalizer
from .sampler import CorpusSampler
from .unicode_script import INHERITED, get_script
from .utils import Sentence, get_printer, split_by_symbols


class BaseTrainer(object):
    """Shared plumbing of all model types.

    Subclasses implement `train_pieces(sentences)`, returning the normal
    pieces as (piece, score) pairs, best first. The rest (validation, corpus
    sampling, required alphabet, meta pieces, assembling the model) lives here.
    """

    model_type = None
    # Whether every required character must get a piece of its own.
    alphabet_in_vocab = True

    def __init__(self, trainer_spec, normalizer_spec, seed=290956, verbose=False):
        # Nothing is read before the specs are known to be valid.
        validate_trainer_spec(trainer_spec)
        validate_normalizer_spec(normalizer_spec, for_training=True)
        if self.model_type is not None and trainer_spec.model_type != self.model_type:
            raise ConfigError(f'{type(self).__name__} cannot train a '
                              f'{proto.model_type_name(trainer_spec.model_type)} model')

        self.trainer_spec = proto.copy_message(trainer_spec)
        self.normalizer_spec = proto.copy_message(normalizer_spec)
        self.verbose = verbose
        self.print_ = get_printer(verbose)

        self.normalizer = Normalizer(self.normalizer_spec)
        self.sampler = CorpusSampler(self.trainer_spec, self.normalizer, seed=seed,
                                     verbose=verbose)

        self.meta_pieces = [(UNK_PIECE, proto.UNKNOWN),
                            (BOS_PIECE, proto.CONTROL),
                            (EOS_PIECE, proto.CONTROL)]
        self.meta_pieces += [(s, proto.CONTROL) for s in self.trainer_spec.control_symbols]
        self.meta_pieces += [(s, proto.USER_DEFINED)
                             for s in self.trainer_spec.user_defined_symbols]

        self.user_symbols = pygtrie.CharTrie()
        for symbol in self.trainer_spec.user_defined_symbols:
            self.user_symbols[symbol] = True
        self.max_user_symbol_len = max(
            (len(s) for s in self.trainer_spec.user_defined_symbols), default=0)

        self.required_chars = {}
        self.sentences = []

    @property
    def vocab_budget(self):
        """Number of normal pieces in the final model."""
        return self.trainer_spec.vocab_size - len(self.meta_pieces)

    def load_sentences(self, sentences=None):
        """Sample the corpus; `sentences` (in memory) replaces trainer_spec.input."""
        if sentences is None:
            if not self.trainer_spec.input:
                raise ConfigError('No input: pass sentences or set trainer_spec.input')
            sources = list(self.trainer_spec.input)
        else:
            sources = [sentences]

        sentences = self.sampler.sample(self.sampler.iter_lines(sources))
        if not sentences:
            raise ConfigError('The corpus is empty after normalization')

        sentences = self.split_user_symbols(sentences)
        self.required_chars = self.compute_required_chars(sentences)
        if self.alphabet_in_vocab and len(self.required_chars) > self.vocab_budget:
            raise CoverageError(
                f'{len(self.required_chars)} characters are needed to cover '
                f'{self.trainer_spec.character_coverage} of the corpus, but vocab_size '
                f'only leaves room for {self.vocab_budget} normal pieces')

        self.sentences = [Sentence(self.replace_unknown_chars(text), count)
                          for text, count in sentences]
        return self.sentences

    def split_user_symbols(self, sentences):
        """User defined symbols are atomic: train on the text around them."""
        if not self.max_user_symbol_len:
            return sentences
        counts = Counter()
        for text, count in sentences:
            for chunk, symbol in split_by_symbols(text, self.user_symbols,
                                                  self.max_user_symbol_len):
                if symbol is None:
                    counts[chunk] += count
        return [Sentence(text, count) for text, count in
                sorted(counts.items(), key=lambda tc: (-tc[1], tc[0]))]

    def compute_required_chars(self, sentences):
        """Most frequent characters, until character_coverage of the mass is reached."""
        chars = Counter()
        for text, count in sentences:
            for ch in text:
                chars[ch] += count
        del chars[UNK_CHAR]

        total = sum(chars.values())
        coverage = self.trainer_spec.character_coverage
        required = {}
        accumulated = 0
        for ch, count in sorted(chars.items(), key=lambda cc: (-cc[1], cc[0])):
            if accumulated >= coverage * total:
                break
            accumulated += count
            required[ch] = count
        self.print_(f'Alphabet size={len(chars)}, {len(required)} required characters '
                    f'cover {100.0 * accumulated / max(total, 1):.4f}% of the corpus')
        return required

    def replace_unknown_chars(self, text):
        return ''.join(ch if ch in self.required_chars else UNK_CHAR for ch in text)

    def sorted_required_chars(self):
        return sorted(self.required_chars.items(), key=lambda cc: (-cc[1], cc[0]))

    def valid_prefix_length(self, piece):
        """Length of the longest prefix of `piece` usable as a sentence piece."""
        split_by_script = self.trainer_spec.split_by_unicode_script
        prev_script = None
        for pos, ch in enumerate(piece):
            if ch == UNK_CHAR or ch == ' ':
                return pos
            if ch == WS_CHAR:
                if pos > 0 and self.trainer_spec.split_by_whitespace:
                    return pos
                continue
            script = get_script(ch)
            if script == INHERITED:
                continue
            if split_by_script and prev_script is not None and script != prev_script:
                return pos
            prev_script = script
        return len(piece)

    def is_valid_piece(self, piece):
        return (0 < len(piece) <= self.trainer_spec.max_sentencepiece_length
                and self.valid_prefix_length(piece) == len(piece))

    def train_pieces(self, sentences):
        raise NotImplementedError

    def build_model(self, pieces):
        reserved = {piece for piece, _ in self.meta_pieces}
        pieces = [(piece, score) for piece, score in pieces if piece not in reserved]
        budget = self.vocab_budget
        if len(pieces) < budget:
            print(f'WARNING: only {len(pieces) + len(self.meta_pieces)} pieces could be '
                  f'trained, vocab_size={self.trainer_spec.vocab_size} was requested')
        assert len(pieces) <= budget, f'{len(pieces)} normal pieces exceed the budget {budget}'

        model_proto = proto.ModelProto()
        for piece, piece_type in self.meta_pieces:
            model_proto.pieces.add(piece=piece, score=0.0, type=piece_type)
        for piece, score in pieces:
            model_proto.pieces.add(piece=piece, score=score, type=proto.NORMAL)
        model_proto.trainer_spec.CopyFrom(self.trainer_spec)
        model_proto.normalizer_spec.CopyFrom(self.normalizer_spec)
        return SentencePieceModel(model_proto)

    def train(self, sentences=None):
        t0 = time.time()
        self.load_sentences(sentences)
        t1 = time.time()
        pieces = self.train_pieces(self.sentences)
        model = self.build_model(pieces)
        t2 = time.time()
        self.print_(f'Loading the corpus took {t1-t0} seconds, '
                    f'learning the {proto.model_type_name(self.model_type)} model {t2-t1} seconds.')

        if self.trainer_spec.model_prefix:
            path = model.save(self.trainer_spec.model_prefix)
            self.print_(f'Saved model to {path}')
        return model
