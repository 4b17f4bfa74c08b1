"""Text normalization applied before training and segmentation.

A normalizer is fully described by a ``NormalizerSpec``: a precompiled chars
map (longest-match rewrite rules stored as opaque bytes) and three whitespace
toggles. ``Normalizer.normalize`` is a pure function of the text and the spec.
"""
import struct
import unicodedata
from functools import lru_cache

import pygtrie

from .errors import ConfigError, EncodingError
from .proto import NormalizerSpec

# Meta symbol standing for an (escaped) whitespace.
WS_CHAR = '\u2581'
# Stands for characters outside of the required alphabet during training.
UNK_CHAR = '\u2585'
# Substituted for malformed input under the 'replace' policy.
REPLACEMENT_CHAR = '\ufffd'

INVALID_CHAR_POLICIES = ('replace', 'strict', None)

_MAGIC = b'SPCM'
_VERSION = 1

WHITESPACE_REPLACEMENTS = {
    '\u00A0': ' ',  # non-breaking space
    '\u1680': ' ',
    '\u2000': ' ',
    '\u2001': ' ',
    '\u2002': ' ',
    '\u2003': ' ',
    '\u2004': ' ',
    '\u2005': ' ',
    '\u2006': ' ',
    '\u2007': ' ',
    '\u2008': ' ',
    '\u2009': ' ',
    '\u200A': ' ',
    '\u202F': ' ',
    '\u205F': ' ',
    '\u3000': ' ',
    '\t': ' ',
    '\n': ' ',
    '\r': ' ',
}

CONTROL_CHARS = {chr(i) for i in range(0, 32)} - {'\n', '\t', '\r'}
CONTROL_CHARS.add(chr(127))


def compile_charsmap(rules):
    """Serialize rewrite rules ``{source: target}`` into a chars map blob.

    Rules are stored sorted by source, so equal rule sets give equal bytes.
    """
    chunks = [_MAGIC, struct.pack('<II', _VERSION, len(rules))]
    for src, tgt in sorted(rules.items()):
        if not src:
            raise ConfigError('Chars map rule with an empty source')
        src, tgt = src.encode('utf-8'), tgt.encode('utf-8')
        chunks.append(struct.pack('<I', len(src)))
        chunks.append(src)
        chunks.append(struct.pack('<I', len(tgt)))
        chunks.append(tgt)
    return b''.join(chunks)


class CharsMap:
    """Longest-match rewriter built from a precompiled chars map."""

    def __init__(self, rules):
        self.rules = dict(rules)
        self.max_source_len = max((len(src) for src in self.rules), default=0)
        if self.max_source_len <= 1:
            self._table = {ord(src): tgt for src, tgt in self.rules.items()}
            self._trie = None
        else:
            self._table = None
            self._trie = pygtrie.CharTrie(self.rules)

    @classmethod
    def from_bytes(cls, blob):
        return _parse_charsmap(bytes(blob))

    def __len__(self):
        return len(self.rules)

    def apply(self, text):
        if not self.rules:
            return text
        if self._trie is None:
            return text.translate(self._table)

        out = []
        pos, n = 0, len(text)
        while pos < n:
            match = self._trie.longest_prefix(text[pos:pos + self.max_source_len])
            if match:
                out.append(match.value)
                pos += len(match.key)
            else:
                out.append(text[pos])
                pos += 1
        return ''.join(out)


@lru_cache(maxsize=16)
def _parse_charsmap(blob):
    if not blob:
        return CharsMap({})
    try:
        if blob[:4] != _MAGIC:
            raise ValueError('bad magic')
        version, count = struct.unpack_from('<II', blob, 4)
        if version != _VERSION:
            raise ValueError(f'unsupported version {version}')
        offset = 12
        rules = {}
        for _ in range(count):
            (n,) = struct.unpack_from('<I', blob, offset)
            src = blob[offset + 4:offset + 4 + n].decode('utf-8')
            offset += 4 + n
            (n,) = struct.unpack_from('<I', blob, offset)
            tgt = blob[offset + 4:offset + 4 + n].decode('utf-8')
            offset += 4 + n
            rules[src] = tgt
        if offset != len(blob):
            raise ValueError('trailing bytes')
    except (struct.error, UnicodeDecodeError, ValueError) as e:
        raise ConfigError(f'Malformed precompiled_charsmap: {e}') from e
    return CharsMap(rules)


def _nfkc_rules():
    """NFKC of every code point, plus composition of base + combining mark pairs.

    Longer combining sequences are only folded one code point at a time.
    """
    rules = {}
    for code in range(0x110000):
        if 0xD800 <= code <= 0xDFFF:
            continue
        ch = chr(code)
        normalized = unicodedata.normalize('NFKC', ch)
        if normalized != ch:
            rules[ch] = normalized
        pair = unicodedata.normalize('NFD', ch)
        if len(pair) == 2 and unicodedata.normalize('NFC', pair) == ch:
            rules[pair] = normalized
    return rules


def _nmt_nfkc_rules():
    rules = _nfkc_rules()
    for ch in CONTROL_CHARS:
        rules[ch] = ''
    rules.update(WHITESPACE_REPLACEMENTS)
    return rules


_RULE_BUILDERS = {
    'identity': dict,
    'nfkc': _nfkc_rules,
    'nmt_nfkc': _nmt_nfkc_rules,
}


@lru_cache(maxsize=None)
def build_charsmap(name):
    """Precompiled chars map of a named normalization rule."""
    if name not in _RULE_BUILDERS:
        raise ConfigError(f'Unknown normalization rule: {name!r}, '
                          f'expected one of {sorted(_RULE_BUILDERS)}')
    return compile_charsmap(_RULE_BUILDERS[name]())


def get_normalizer_spec(name='nmt_nfkc', **flags):
    spec = NormalizerSpec(name=name, precompiled_charsmap=build_charsmap(name))
    for key, value in flags.items():
        setattr(spec, key, value)
    return spec


def decode_input(raw, policy='replace'):
    """Turn raw input into text, returning ``(text, n_invalid)``.

    Malformed UTF-8 in ``bytes`` and lone surrogates in ``str`` count as
    invalid characters. They become U+FFFD under the 'replace' policy and raise
    ``EncodingError`` otherwise.
    """
    if policy not in INVALID_CHAR_POLICIES:
        raise ConfigError(f'Unknown invalid character policy: {policy!r}')

    if isinstance(raw, (bytes, bytearray, memoryview)):
        raw = bytes(raw)
        try:
            return raw.decode('utf-8'), 0
        except UnicodeDecodeError as e:
            if policy != 'replace':
                raise EncodingError(f'Invalid UTF-8 at byte {e.start}') from e
        text = raw.decode('utf-8', errors='replace')
        return text, text.count(REPLACEMENT_CHAR) - raw.decode(
            'utf-8', errors='ignore').count(REPLACEMENT_CHAR)

    n_invalid = 0
    if any('\ud800' <= ch <= '\udfff' for ch in raw):
        if policy != 'replace':
            raise EncodingError('Lone surrogate in input text')
        chars = []
        for ch in raw:
            if '\ud800' <= ch <= '\udfff':
                chars.append(REPLACEMENT_CHAR)
                n_invalid += 1
            else:
                chars.append(ch)
        raw = ''.join(chars)
    return raw, n_invalid


class Normalizer:

    def __init__(self, spec=None, invalid_char_policy='replace'):
        if spec is None:
            spec = NormalizerSpec()
        if invalid_char_policy not in INVALID_CHAR_POLICIES:
            raise ConfigError(f'Unknown invalid character policy: {invalid_char_policy!r}')
        self.spec = spec
        self.invalid_char_policy = invalid_char_policy
        self.charsmap = CharsMap.from_bytes(spec.precompiled_charsmap)

    def decode_input(self, raw):
        return decode_input(raw, self.invalid_char_policy)

    def normalize(self, text):
        text, _ = self.decode_input(text)
        text = self.charsmap.apply(text)

        if self.spec.remove_extra_whitespaces:
            text = ' '.join(text.split())
        if self.spec.add_dummy_prefix and text:
            text = ' ' + text
        if self.spec.escape_whitespaces:
            text = text.replace(' ', WS_CHAR)
        return text

    __call__ = normalize
