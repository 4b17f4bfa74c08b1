"""Numba kernels shared by the trainer and the segmenter.

A lattice is given as parallel edge arrays ``begins``, ``ends``, ``scores``
over text positions ``0..n``. Edges must be sorted by ``(end, begin)``.
"""
import math

import numpy as np
from numba import jit


@jit(nopython=True, nogil=True)
def _logaddexp(x, y):
    if x == -np.inf:
        return y
    if y == -np.inf:
        return x
    if x > y:
        return x + math.log1p(math.exp(y - x))
    return y + math.log1p(math.exp(x - y))


@jit(nopython=True, nogil=True)
def forward_backward(begins, ends, scores, n):
    """Log-space forward (alpha) and backward (beta) scores of every position.

    alpha[n] == beta[0] is the log of the summed score of all segmentations.
    """
    alpha = np.full(n + 1, -np.inf)
    beta = np.full(n + 1, -np.inf)
    alpha[0] = 0.0
    beta[n] = 0.0

    for k in range(len(begins)):
        alpha[ends[k]] = _logaddexp(alpha[ends[k]], alpha[begins[k]] + scores[k])

    # Reverse edge order visits every edge leaving a position before any
    # edge entering it.
    for k in range(len(begins) - 1, -1, -1):
        beta[begins[k]] = _logaddexp(beta[begins[k]], scores[k] + beta[ends[k]])

    return alpha, beta


@jit(nopython=True, nogil=True)
def sentpiece_viterbi(begins, ends, scores, n):
    """Find the best path through the lattice.

    On equal total score the path whose last piece is longer wins, since
    edges ending at the same position are visited longest first and only a
    strictly better score replaces the current best.

    Output:
        best_edges: indices of the edges on the best path, in text order;
            empty if position n is unreachable
        best_score: total score of that path
    """
    best = np.full(n + 1, -np.inf)
    back = -np.ones(n + 1, dtype=np.int64)
    best[0] = 0.0

    for k in range(len(begins)):
        if best[begins[k]] == -np.inf:
            continue
        score = best[begins[k]] + scores[k]
        if score > best[ends[k]]:
            best[ends[k]] = score
            back[ends[k]] = k

    if n > 0 and back[n] < 0:
        return np.zeros(0, dtype=np.int64), -np.inf

    path = np.empty(n, dtype=np.int64)
    i = 0
    pos = n
    while pos > 0:
        k = back[pos]
        path[i] = k
        i += 1
        pos = begins[k]

    return path[:i][::-1].copy(), best[n]


@jit(nopython=True, nogil=True)
def lcp_kasai(codes, suf, sep, max_len):
    """LCP array of a suffix array, never extending across `sep`.

    lcp[i] is the common prefix length of suffixes suf[i - 1] and suf[i],
    capped at max_len; lcp[0] == 0.
    """
    n = len(codes)
    rank = np.empty(n, dtype=np.int64)
    for i in range(n):
        rank[suf[i]] = i

    lcp = np.zeros(n, dtype=np.int64)
    h = 0
    for i in range(n):
        if rank[i] > 0:
            j = suf[rank[i] - 1]
            while i + h < n and j + h < n and codes[i + h] == codes[j + h] \
                    and codes[i + h] != sep:
                h += 1
            lcp[rank[i]] = min(h, max_len)
            if h > 0:
                h -= 1
        else:
            h = 0
    return lcp
