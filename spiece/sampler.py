import os
import pathlib
import random
from collections import Counter

from tqdm import tqdm

from .utils import Sentence, get_printer


class CorpusSampler:
    """Bounds the training corpus and turns it into weighted, normalized sentences.

    `input_sentence_size` limits how many raw lines are kept (reservoir
    sampling over the whole input), `mining_sentence_size` and
    `training_sentence_size` then bound what the seed miner and the EM trainer
    see, independently of each other. A size of 0 means no limit.
    """

    def __init__(self, trainer_spec, normalizer, seed=290956, split_tabs=True, verbose=False):
        self.trainer_spec = trainer_spec
        self.normalizer = normalizer
        self.rng = random.Random(seed)
        self.split_tabs = split_tabs
        self.num_invalid_chars = 0
        self.verbose = verbose
        self.print_ = get_printer(verbose)

    def _split_line(self, line):
        if isinstance(line, tuple):
            yield Sentence(*line)
            return
        if self.split_tabs:
            tab = b'\t' if isinstance(line, (bytes, bytearray)) else '\t'
            # Bilingual corpora: every side is a sentence of its own.
            for part in line.split(tab):
                yield part
        else:
            yield line

    def iter_lines(self, sources):
        """Yield raw lines from files (paths) or in-memory iterables of lines.

        Lines read from files are bytes, decoding happens in the normalizer.
        In-memory lines may also be ``(text, count)`` pairs.
        """
        for source in sources:
            if isinstance(source, (str, bytes, os.PathLike)):
                with open(pathlib.Path(os.fsdecode(source)), 'rb') as corpus:
                    for raw_line in corpus:
                        yield from self._split_line(raw_line.rstrip(b'\r\n'))
            else:
                for line in source:
                    yield from self._split_line(line)

    def sample(self, lines):
        """Reservoir sample, normalize and merge duplicates.

        Returns a list of ``Sentence(text, count)``, most frequent first and
        alphabetical among equal counts.
        """
        cap = self.trainer_spec.input_sentence_size
        selected = []
        total_lines = 0
        for line in tqdm(lines, desc='Loading corpus', disable=not self.verbose):
            total_lines += 1
            if not cap or len(selected) < cap:
                selected.append(line)
            else:
                j = self.rng.randint(0, total_lines - 1)
                if j < cap:
                    selected[j] = line
        self.print_(f'Loaded {total_lines} lines, keeping {len(selected)}')

        counts = Counter()
        for line in selected:
            line, count = line if isinstance(line, Sentence) else (line, 1)
            text, n_invalid = self.normalizer.decode_input(line)
            self.num_invalid_chars += n_invalid * count
            text = self.normalizer.normalize(text)
            if text:
                counts[text] += count

        if self.num_invalid_chars:
            print(f'WARNING: {self.num_invalid_chars} invalid characters in the input '
                  f'were replaced by U+FFFD')

        sentences = [Sentence(text, count) for text, count in
                     sorted(counts.items(), key=lambda tc: (-tc[1], tc[0]))]
        self.print_(f'{len(sentences)} unique sentences after normalization')
        return sentences

    @staticmethod
    def _bound(sentences, size):
        return list(sentences[:size]) if size else list(sentences)

    def mining_sentences(self, sentences):
        return self._bound(sentences, self.trainer_spec.mining_sentence_size)

    def training_sentences(self, sentences):
        return self._bound(sentences, self.trainer_spec.training_sentence_size)
