import numpy as np

from .viterbi import lcp_kasai


def suffix_array(codes):
    """Suffix array of an integer sequence by prefix doubling.

    Every round sorts suffixes by the pair (rank of the first k symbols, rank
    of the next k symbols), doubling k until all ranks are distinct.
    """
    n = len(codes)
    if n == 0:
        return np.zeros(0, dtype=np.int64)

    _, rank = np.unique(codes, return_inverse=True)
    rank = rank.astype(np.int64).ravel()
    k = 1
    while True:
        second = np.full(n, -1, dtype=np.int64)
        second[:n - k] = rank[k:]
        suf = np.lexsort((second, rank))

        first_sorted, second_sorted = rank[suf], second[suf]
        new_group = np.empty(n, dtype=bool)
        new_group[0] = True
        new_group[1:] = (first_sorted[1:] != first_sorted[:-1]) \
            | (second_sorted[1:] != second_sorted[:-1])
        rank = np.empty(n, dtype=np.int64)
        rank[suf] = np.cumsum(new_group) - 1

        if rank.max() == n - 1 or k >= n:
            break
        k *= 2
    return suf.astype(np.int64)


class ESA:
    """Enhanced suffix array over a corpus of weighted sentences."""

    def fit(self, sentences, delimiter='\0', max_piece_len=10**6):
        """
        Args
        ----
        sentences: list of (text, count) pairs; `count` weights every
            occurrence found inside `text`
        delimiter: character separating sentences, must not occur in them
        max_piece_len: no substring longer than this is reported
        """
        texts, weights = [], []
        for text, count in sentences:
            assert delimiter not in text, f'Delimiter {delimiter!r} found in the corpus'
            texts.append(text + delimiter)
            weights.append(np.full(len(text) + 1, count, dtype=np.float64))

        self.corpus = ''.join(texts)
        self.n = len(self.corpus)
        self.max_piece_len = max_piece_len

        codes = np.frombuffer(self.corpus.encode('utf-32-le'), dtype=np.uint32).astype(np.int64)
        sep = ord(delimiter)

        self.suf = suffix_array(codes)
        self.lcp = lcp_kasai(codes, self.suf, sep, max_piece_len)

        weight = np.concatenate(weights) if weights else np.zeros(0)
        # Cumulative weight of suffixes in suffix array order, so the summed
        # weight of the interval [l, r] is cum[r + 1] - cum[l].
        self._cum_weight = np.concatenate([[0.0], np.cumsum(weight[self.suf])])
        return self

    def _prepare(self, lcp, l, r):
        start = self.suf[l]
        piece = self.corpus[start:start + lcp]
        freq = self._cum_weight[r + 1] - self._cum_weight[l]
        return piece, float(freq)

    def pieces(self):
        """Yield (substring, frequency) for every lcp-interval.

        Each interval is a substring occurring at least twice; its frequency
        is the summed weight of its occurrences.
        """
        n = self.n
        if n == 0:
            return

        LCP, L = 0, 1
        lcp_arr = self.lcp

        # bottom-up traversal
        stack = [[0, 0]]
        for i in range(1, n + 1):
            cur = int(lcp_arr[i]) if i < n else 0
            l = i - 1
            while cur < stack[-1][LCP]:
                interval = stack.pop()
                yield self._prepare(interval[LCP], interval[L], i - 1)
                l = interval[L]
            if cur > stack[-1][LCP]:
                stack.append([cur, l])
