import math
import os
import pathlib
from collections import namedtuple
from multiprocessing.pool import ThreadPool

Sentence = namedtuple('Sentence', ['text', 'count'])
EStepRet = namedtuple('EStepRet', ['objective', 'n_tokens', 'counts'])


def get_printer(verbose):
    if verbose:
        return print
    return lambda *args, **kwargs: None


def ensure_path(path):
    folderpath = pathlib.Path(path).resolve().parent
    if not os.path.exists(folderpath):
        os.makedirs(folderpath)
    return os.path.exists(path)


def parallelize(
        worker,
        data: list,
        additional_args: list = (),
        aggregating_ops: list = (),
        n_workers: int = 1,
        ):
    """
    Worker function should be of type:
        def worker(data: list, additional_args...):
            ...
            return [o1, o2, o3, ...]
    Parallelize splits the data in contiguous chunks, one per worker, and runs
    the workers on a thread pool. The partial results are aggregated element
    by element with aggregating_ops, in chunk order, so the result does not
    depend on thread scheduling:
        res[k] = aggregating_ops[k](aggregating_ops[k](w1[k], w2[k]), w3[k])

    Workers only read shared state; everything they produce is returned.
    With a single worker (or a single chunk) no threads are started.

    Example:
        def worker(data, arg):
            s = sum(data) if len(data) else 0
            p = max(max(data), arg) if len(data) else -math.inf
            return [s, p]
        summ, maxx = parallelize(worker,
                                 list(range(100)),
                                 additional_args=[3],
                                 aggregating_ops=[lambda x, y: x + y, max],
                                 n_workers=2)
        assert summ == sum(range(100))
        assert maxx == 99
    """
    n_workers = max(1, min(n_workers, len(data)))
    chunksize = int(math.ceil(len(data) / n_workers)) if data else 0
    chunks = [data[chunksize*i:chunksize*(i+1)] for i in range(n_workers)]

    if n_workers == 1:
        results = [worker(chunks[0], *additional_args)]
    else:
        with ThreadPool(n_workers) as pool:
            results = pool.starmap(worker, [(chunk, *additional_args) for chunk in chunks])

    acc_res = list(results[0])
    for res in results[1:]:
        for k, out in enumerate(res):
            acc_res[k] = aggregating_ops[k](acc_res[k], out)
    return acc_res


def split_by_symbols(text, symbols, max_len):
    """Cut `text` around the longest matches of `symbols`.

    `symbols` is a pygtrie.CharTrie and `max_len` its longest key. Yields
    (chunk, None) for the text between matches and (symbol, value) for every
    match, in order.
    """
    if not max_len:
        if text:
            yield text, None
        return

    start = pos = 0
    while pos < len(text):
        match = symbols.longest_prefix(text[pos:pos + max_len])
        if match:
            if start < pos:
                yield text[start:pos], None
            yield match.key, match.value
            pos += len(match.key)
            start = pos
        else:
            pos += 1
    if start < len(text):
        yield text[start:], None
