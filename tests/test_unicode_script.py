import pytest

from spiece.unicode_script import COMMON, HAN, INHERITED, get_script


@pytest.mark.parametrize('ch, script', [
    ('a', 'Latin'),
    ('Ж', 'Cyrillic'),
    ('ω', 'Greek'),
    ('漢', HAN),
    ('ひ', HAN),
    ('カ', HAN),
    ('Ａ', 'Latin'),
    ('1', COMMON),
    ('!', COMMON),
    ('▁', COMMON),
    ('\u0301', INHERITED),
])
def test_get_script(ch, script):
    assert get_script(ch) == script


def test_letters_named_after_their_use():
    assert get_script('ª') == 'Latin'
    assert get_script('º') == 'Latin'
    assert get_script('ℓ') == 'Latin'
    # Modifier letters join the word they are written in.
    assert get_script('ʼ') == INHERITED
    assert get_script('ー') == INHERITED
