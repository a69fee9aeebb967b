"""
Known crawler signatures.

A signature token is a literal substring of a user agent ("GPTBot") mapped
to the name shown on the dashboard ("OpenAI GPT"). Declaration order is the
order the classifier tries tokens in, so when two tokens both occur in one
user agent the earlier one wins.
"""
import json


class SignatureCatalog:
    """Immutable, ordered token -> display name mapping."""

    __slots__ = ('_entries', '_names')

    def __init__(self, entries):
        if isinstance(entries, dict):
            entries = entries.items()

        pairs = []
        seen = set()
        for token, name in entries:
            token = str(token).strip()
            if not token or token in seen:
                continue
            seen.add(token)
            pairs.append((token, str(name) if name else token))

        object.__setattr__(self, '_entries', tuple(pairs))
        object.__setattr__(self, '_names', dict(pairs))

    def __setattr__(self, name, value):
        raise AttributeError('SignatureCatalog is immutable')

    def __iter__(self):
        return iter(self.tokens())

    def __len__(self):
        return len(self._entries)

    def __contains__(self, token):
        return token in self._names

    def __repr__(self):
        return 'SignatureCatalog(%r)' % (self._entries,)

    def tokens(self):
        return tuple(token for token, _ in self._entries)

    def items(self):
        return self._entries

    def display_name(self, token):
        """Display name for a token, or the token itself when unknown."""
        if token is None:
            return None
        return self._names.get(token, token)


DEFAULT_SIGNATURES = (
    ('GPTBot', 'OpenAI GPT'),
    ('ChatGPT-User', 'ChatGPT'),
    ('Google-Extended', 'Google Bard/Gemini'),
    ('PerplexityBot', 'Perplexity AI'),
    ('ClaudeBot', 'Anthropic Claude'),
    ('claude-web', 'Anthropic Claude'),
    ('CCBot', 'Common Crawl'),
    ('Diffbot', 'Diffbot'),
    ('anthropic-ai', 'Anthropic Claude'),
    ('Bytespider', 'ByteDance AI'),
    ('Applebot-Extended', 'Apple Intelligence'),
    ('cohere-ai', 'Cohere AI'),
    ('YouBot', 'You.com AI'),
)

DEFAULT_CATALOG = SignatureCatalog(DEFAULT_SIGNATURES)


def load_catalog(path):
    """
    Read a catalog from a JSON file, either an object of token -> name or a
    list of [token, name] pairs. Object key order is kept.
    """
    with open(path, encoding='utf-8') as fh:
        data = json.load(fh)

    if isinstance(data, dict):
        return SignatureCatalog(data)
    if isinstance(data, list):
        for item in data:
            if not isinstance(item, (list, tuple)) or len(item) != 2 or not isinstance(item[0], str):
                raise ValueError("Expected [token, name] pairs in %s, got %r" % (path, item))
        return SignatureCatalog((item[0], item[1]) for item in data)
    raise ValueError('Unsupported signature file format: %s' % path)
