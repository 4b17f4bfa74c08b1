"""Unigram language model training.

EM over the lattice of all segmentations, shrinking the vocabulary between
rounds, as in Kudo, "Subword Regularization" (2018). Every EM generation
produces a new immutable `TrainerModel`; E-step workers only read the
current one.
"""
import operator
import time

import numpy as np
from scipy.special import digamma, logsumexp
from tqdm import tqdm

from . import proto
from .errors import CoverageError
from .esa import ESA
from .lattice import Lattice, PieceTable
from .trainer import BaseTrainer
from .utils import EStepRet, parallelize

# Sentence delimiter candidates for the suffix array, first unused one wins.
_DELIMITERS = ('\0', '\ue000', '\ue001', '\ue002')

# Scores are stored as float32 in the model file.
_MIN_SCORE = float(np.finfo(np.float32).min)


def to_log_prob(pieces):
    Z = np.log(sum(score for p, score in pieces))
    return [(p, float(np.log(score) - Z)) for p, score in pieces]


class TrainerModel:
    """One generation of (piece, log-probability) pairs with its prefix index."""

    def __init__(self, pieces):
        self.pieces = tuple((piece, float(score)) for piece, score in pieces)
        self.table = PieceTable((i, piece, score) for i, (piece, score) in enumerate(self.pieces))

    def __len__(self):
        return len(self.pieces)

    @property
    def min_score(self):
        return self.table.min_score

    def scores(self):
        return dict(self.pieces)


class UnigramTrainer(BaseTrainer):

    model_type = proto.UNIGRAM

    # Pieces expected less often than this are dropped by the M-step.
    kExpectedFrequencyThreshold = 0.5
    # Score step between required characters missing from the final generation.
    kMinScorePenaltyDelta = 0.0001

    def __init__(self, trainer_spec, normalizer_spec, seed=290956, verbose=False,
                 bayesian=True):
        super().__init__(trainer_spec, normalizer_spec, seed=seed, verbose=verbose)
        self.bayesian = bayesian

    # Seed pieces

    def make_seed_sentence_pieces(self, sentences):
        """Required characters plus the most frequent repeated substrings, as log-probs."""
        seed_size = self.trainer_spec.seed_sentencepiece_size
        if len(self.required_chars) > seed_size:
            raise CoverageError(
                f'{len(self.required_chars)} required characters do not fit in '
                f'seed_sentencepiece_size={seed_size}')

        # Characters outside of the alphabet were replaced by UNK_CHAR already.
        delimiter = next(d for d in _DELIMITERS if d not in self.required_chars)

        self.print_('Extracting frequent sub strings...')
        # Makes an enhanced suffix array to extract all sub strings occurring
        # more than 2 times in the sentence.
        esa = ESA().fit(sentences, delimiter=delimiter,
                        max_piece_len=self.trainer_spec.max_sentencepiece_length)

        frequencies = {}
        for piece, freq in esa.pieces():
            piece = piece[:self.valid_prefix_length(piece)]
            if len(piece) <= 1:
                continue
            frequencies[piece] = max(frequencies.get(piece, 0.0), freq)

        substrings = sorted(((piece, freq * len(piece)) for piece, freq in frequencies.items()),
                            key=lambda ps: (-ps[1], ps[0]))
        substrings = substrings[:seed_size - len(self.required_chars)]

        # all required chars must be included in the seed sentencepieces.
        seed_sentp = [(ch, float(count)) for ch, count in self.sorted_required_chars()]
        seed_sentp += substrings
        self.print_(f'Initialized {len(seed_sentp)} seed sentencepieces')
        return to_log_prob(seed_sentp)

    # EM

    def run_e_step(self, model, sentences):
        """Expected piece counts under `model`, summed over the corpus.

        Returns EStepRet(objective, n_tokens, counts) where objective is the
        negative log-likelihood per sentence.
        """
        table = model.table

        def worker(sentences):
            expected = np.zeros(len(model))
            objective = 0.0
            n_tokens = 0
            for text, count in sentences:
                lattice = Lattice(text, table)
                Z = lattice.populate_marginal(count, expected)
                objective -= Z
                n_tokens += len(lattice.viterbi()[0])
            return [expected, objective, n_tokens]

        expected, objective, n_tokens = parallelize(
            worker,
            sentences,
            aggregating_ops=[operator.add, operator.add, operator.add],
            n_workers=self.trainer_spec.num_threads)

        all_sentence_freq = sum(count for _, count in sentences)
        return EStepRet(objective / all_sentence_freq, n_tokens, expected)

    def run_m_step(self, model, expected, threshold=None, bayesian=None):
        """Re-estimate log-probabilities from expected counts.

        Pieces below `threshold` are dropped, except for required characters.
        The Bayesian variant (digamma) acts as a sparse prior; with
        bayesian=False it is the plain maximum likelihood estimate.
        """
        if threshold is None:
            threshold = self.kExpectedFrequencyThreshold
        if bayesian is None:
            bayesian = self.bayesian
        assert len(expected) == len(model)

        new_pieces = []
        sum_counts = 0.0
        for (piece, _), freq in zip(model.pieces, expected):
            if piece in self.required_chars:
                # Required characters are never dropped, rare ones are smoothed up.
                freq = max(freq, threshold)
            elif freq < threshold or freq <= 0:
                continue
            new_pieces.append((piece, float(freq)))
            sum_counts += freq

        if bayesian:
            # https://cs.stanford.edu/~pliang/papers/tutorial-acl2007-talk.pdf
            log_sum = digamma(sum_counts)
            scores = [digamma(freq) - log_sum for _, freq in new_pieces]
        else:
            log_sum = np.log(sum_counts)
            with np.errstate(divide='ignore'):
                scores = [np.log(freq) - log_sum for _, freq in new_pieces]

        finite = [s for s in scores if np.isfinite(s)]
        floor = min(finite) if finite else 0.0
        return [(piece, float(score) if np.isfinite(score) else floor)
                for (piece, _), score in zip(new_pieces, scores)]

    # Pruning

    def pruning_candidates(self, model, sentences):
        """Split the pieces of `model` into the ones that always survive and prunable ones.

        Returns (kept, candidates): kept is a list of piece indices,
        candidates a list of (loss, index). The loss estimates how much the
        likelihood drops when the piece is re-segmented with its second best
        segmentation; pieces that are never used, or whose own best
        segmentation is split, get -inf.
        """
        table = model.table
        n = len(model)
        always_keep = np.ones(n, dtype=bool)
        alternatives = [[] for _ in range(n)]

        # First, segments the current sentencepieces to know
        # how each sentencepiece is resegmented if this sentencepiece is removed
        # from the vocabulary.
        for i, (piece, _) in enumerate(tqdm(model.pieces, desc='Alternatives',
                                            disable=not self.verbose)):
            lattice = Lattice(piece, table)
            best, _ = lattice.viterbi()
            if len(best) >= 2:
                # Can safely remove this piece, its own best path is split.
                always_keep[i] = False
            elif len(best) == 1:
                second, _ = lattice.viterbi(exclude_id=i)
                alternatives[i] = [piece_id for piece_id, _, _ in second]

        # Viterbi frequencies of the pieces over the corpus.
        def worker(sentences):
            freq = np.zeros(n)
            vsum = 0.0
            for text, count in sentences:
                vsum += count
                for piece_id, _, _ in Lattice(text, table).viterbi()[0]:
                    if piece_id >= 0:
                        freq[piece_id] += count
            return [freq, vsum]

        freq, vsum = parallelize(worker, sentences,
                                 aggregating_ops=[operator.add, operator.add],
                                 n_workers=self.trainer_spec.num_threads)

        sum_freq = freq.sum()
        log_sum = np.log(sum_freq)

        kept = []
        candidates = []
        for i, (piece, _) in enumerate(model.pieces):
            if piece in self.required_chars:
                kept.append(i)
            elif freq[i] == 0 or not always_keep[i]:
                candidates.append((-np.inf, i))
            elif not alternatives[i]:
                kept.append(i)
            else:
                # F counts every occurrence of the piece in the corpus.
                F = freq[i] / vsum
                logprob_sp = np.log(freq[i]) - log_sum
                # After removal, the frequencies of the alternatives grow by freq[i].
                logsum_alt = np.log(sum_freq + freq[i] * (len(alternatives[i]) - 1))
                logprob_alt = 0.0
                for alt in alternatives[i]:
                    alt_freq = freq[alt] if alt >= 0 else 0.0
                    logprob_alt += np.log(alt_freq + freq[i]) - logsum_alt
                loss = F * (logprob_sp - logprob_alt)
                candidates.append((loss, i))
        return kept, candidates

    def prune_sentence_pieces(self, model, sentences, desired_size):
        """Drop the pieces whose removal costs the least likelihood.

        The pieces of `pruning_candidates` are added back by decreasing loss
        until max(desired_size, size * shrinking_factor) pieces survive.
        """
        kept, candidates = self.pruning_candidates(model, sentences)
        pruned_size = max(desired_size, int(len(model) * self.trainer_spec.shrinking_factor))
        for _, i in sorted(candidates, key=lambda li: (-li[0], li[1])):
            if len(kept) >= pruned_size:
                break
            kept.append(i)

        return [model.pieces[i] for i in sorted(kept)]

    def finalize_sentence_pieces(self, model):
        """Exactly vocab_budget pieces (or fewer if unavailable): required chars, then by score."""
        scores = model.scores()
        final = {}
        penalty = 0.0
        for ch, _ in self.sorted_required_chars():
            if ch in scores:
                final[ch] = scores[ch]
            else:
                final[ch] = model.min_score - penalty
                penalty += self.kMinScorePenaltyDelta

        for piece, score in sorted(model.pieces, key=lambda ps: (-ps[1], ps[0])):
            if len(final) >= self.vocab_budget:
                break
            if piece not in final:
                final[piece] = score
        final = [(piece, max(score, _MIN_SCORE)) for piece, score in final.items()]
        return sorted(final, key=lambda ps: (-ps[1], ps[0]))

    def train_pieces(self, sentences):
        t0 = time.time()
        mining = self.sampler.mining_sentences(sentences)
        model = TrainerModel(self.make_seed_sentence_pieces(mining))
        t1 = time.time()

        sentences = self.sampler.training_sentences(sentences)
        self.print_(f'Using {len(sentences)} sentences for EM training')

        desired_size = int(self.vocab_budget * 1.1)
        while True:
            for sub_iter in range(self.trainer_spec.num_sub_iterations):
                e_ret = self.run_e_step(model, sentences)
                if not (np.isfinite(e_ret.objective) and np.all(np.isfinite(e_ret.counts))):
                    print(f'WARNING: non-finite objective at EM sub_iter={sub_iter}, '
                          f'keeping the previous {len(model)} pieces')
                    continue
                model = TrainerModel(self.run_m_step(model, e_ret.counts))
                tot_prob = np.exp(logsumexp([score for _, score in model.pieces]))
                self.print_(f'EM sub_iter={sub_iter} size={len(model)} '
                            f'tot_piece_prob={tot_prob} obj={e_ret.objective} '
                            f'num_tokens={e_ret.n_tokens} '
                            f'num_tokens/piece={e_ret.n_tokens / len(model)}')

            if len(model) <= desired_size:
                break

            pruned = TrainerModel(self.prune_sentence_pieces(model, sentences, desired_size))
            if len(pruned) >= len(model):
                self.print_(f'Pruning stopped making progress at size={len(model)}')
                break
            model = pruned

        final_pieces = self.finalize_sentence_pieces(model)
        t2 = time.time()
        self.print_(f'Preparing seed vocab took {t1-t0} seconds, '
                    f'learning unigram model {t2-t1} seconds.')
        return final_pieces
