import unicodedata
from functools import lru_cache

from .normalizer import WS_CHAR

COMMON = 'Common'
INHERITED = 'Inherited'
HAN = 'Han'

# Japanese words mix these freely, so they count as one script.
_HAN_LIKE = {'CJK', 'HIRAGANA', 'KATAKANA', 'IDEOGRAPHIC'}

_WIDTH_PREFIXES = ('FULLWIDTH ', 'HALFWIDTH ')

# Latin letters whose names do not start with the script.
_LATIN_ALIASES = {'FEMININE', 'MASCULINE', 'SCRIPT', 'DOUBLE', 'BLACK', 'TURNED'}


@lru_cache(maxsize=1 << 16)
def get_script(ch):
    """Coarse Unicode script of a character, derived from its name.

    Digits, punctuation, symbols and separators are ``Common``. Combining marks
    and modifier letters are ``Inherited`` and take the script of the
    preceding character.
    """
    if ch == WS_CHAR:
        return COMMON
    category = unicodedata.category(ch)
    if category[0] == 'M' or category == 'Lm':
        return INHERITED
    if category[0] != 'L':
        return COMMON
    name = unicodedata.name(ch, '')
    if not name:
        return 'Unknown'
    for prefix in _WIDTH_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
    script = name.split(' ', 1)[0].split('-', 1)[0]
    if script in _HAN_LIKE:
        return HAN
    if script in _LATIN_ALIASES:
        return 'Latin'
    return script.capitalize()
