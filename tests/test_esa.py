import numpy as np

from spiece.esa import ESA, suffix_array


def test_suffix_array_banana():
    codes = np.array([ord(c) for c in 'banana'], dtype=np.int64)
    assert suffix_array(codes).tolist() == [5, 3, 1, 0, 4, 2]


def test_suffix_array_is_sorted():
    text = 'mississippi$abracadabra'
    codes = np.array([ord(c) for c in text], dtype=np.int64)
    suffixes = [text[i:] for i in suffix_array(codes)]
    assert suffixes == sorted(text[i:] for i in range(len(text)))


def test_repeated_substrings():
    esa = ESA().fit([('banana', 1)], delimiter='\0')
    assert dict(esa.pieces()) == {'a': 3.0, 'ana': 2.0, 'na': 2.0}


def test_substrings_do_not_cross_sentences():
    esa = ESA().fit([('ab', 3), ('ab', 1)], delimiter='\0')
    assert dict(esa.pieces()) == {'ab': 4.0, 'b': 4.0}


def test_max_piece_len():
    esa = ESA().fit([('aaaa', 1)], delimiter='\0', max_piece_len=2)
    assert dict(esa.pieces()) == {'a': 4.0, 'aa': 3.0}


def test_empty_corpus():
    assert list(ESA().fit([]).pieces()) == []
