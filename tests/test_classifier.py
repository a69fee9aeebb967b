import json

import pytest

from classifier import Classifier
from signatures import DEFAULT_CATALOG, SignatureCatalog, load_catalog


@pytest.mark.parametrize('token', DEFAULT_CATALOG.tokens())
def test_every_catalog_token_is_detected(token):
    ua = 'Mozilla/5.0 (compatible; %s/1.0; +https://example.com/bot)' % token
    assert Classifier().classify(ua) == token


def test_known_user_agents():
    classifier = Classifier()
    assert classifier.classify('Mozilla/5.0 (compatible; GPTBot/1.0)') == 'GPTBot'
    assert classifier.classify('Mozilla/5.0 (Macintosh)') is None


@pytest.mark.parametrize('ua', [None, '', 42, b'GPTBot'])
def test_missing_or_odd_user_agent_is_no_match(ua):
    assert Classifier().classify(ua) is None


def test_matching_ignores_case_by_default():
    assert Classifier().classify('mozilla/5.0 gptbot/1.1') == 'GPTBot'


def test_case_sensitive_mode():
    classifier = Classifier(case_sensitive=True)
    assert classifier.classify('mozilla/5.0 gptbot/1.1') is None
    assert classifier.classify('Mozilla/5.0 GPTBot/1.1') == 'GPTBot'


def test_first_declared_token_wins():
    catalog = SignatureCatalog([('Bot', 'Generic'), ('GPTBot', 'OpenAI GPT')])
    assert Classifier(catalog).classify('GPTBot/1.0') == 'Bot'

    catalog = SignatureCatalog([('GPTBot', 'OpenAI GPT'), ('Bot', 'Generic')])
    assert Classifier(catalog).classify('GPTBot/1.0') == 'GPTBot'


def test_display_name_falls_back_to_token():
    assert DEFAULT_CATALOG.display_name('ClaudeBot') == 'Anthropic Claude'
    assert DEFAULT_CATALOG.display_name('RetiredBot') == 'RetiredBot'


def test_catalog_is_immutable():
    with pytest.raises(AttributeError):
        DEFAULT_CATALOG.extra = 1


def test_catalog_keeps_declaration_order_and_drops_duplicates():
    catalog = SignatureCatalog([('B', 'b'), ('A', 'a'), ('B', 'other')])
    assert catalog.tokens() == ('B', 'A')
    assert catalog.display_name('B') == 'b'
    assert 'A' in catalog
    assert len(catalog) == 2


def test_load_catalog_from_object(tmp_path):
    path = tmp_path / 'bots.json'
    path.write_text(json.dumps({'SpecialBot': 'Special', 'GPTBot': 'OpenAI'}))

    catalog = load_catalog(str(path))
    assert catalog.tokens() == ('SpecialBot', 'GPTBot')
    assert catalog.display_name('GPTBot') == 'OpenAI'


def test_load_catalog_from_pairs(tmp_path):
    path = tmp_path / 'bots.json'
    path.write_text(json.dumps([['ZBot', 'Z'], ['ABot', 'A']]))

    assert load_catalog(str(path)).tokens() == ('ZBot', 'ABot')


def test_load_catalog_rejects_other_shapes(tmp_path):
    path = tmp_path / 'bots.json'
    path.write_text('"GPTBot"')

    with pytest.raises(ValueError):
        load_catalog(str(path))


@pytest.mark.parametrize('content', [
    '["GPTBot", "ClaudeBot"]',
    '[["GPTBot"]]',
    '[["GPTBot", "OpenAI", "extra"]]',
    '[[1, "One"]]',
])
def test_load_catalog_rejects_malformed_pairs(tmp_path, content):
    path = tmp_path / 'bots.json'
    path.write_text(content)

    with pytest.raises(ValueError) as excinfo:
        load_catalog(str(path))
    assert str(path) in str(excinfo.value)
