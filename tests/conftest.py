import pytest

from app import create_app


def make_app(tmp_path, **overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///' + str(tmp_path / 'trap.db'),
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'ANALYTICS_URL': 'https://trap.example.com',
        'MULTI_TENANT': True,
        'BOT_MATCH_CASE_SENSITIVE': False,
        'BOT_SIGNATURES_FILE': None,
        'PIXEL_TRUST_UA_PARAM': True,
        'SELF_TRAP_ENABLED': False,
        'SELF_TRAP_WEBSITE_ID': None,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app(tmp_path):
    return make_app(tmp_path)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions['crawler_trap']


@pytest.fixture
def register(client):
    def _register(name='Acme', url='https://acme.example'):
        resp = client.post('/api/websites/register', json={'name': name, 'url': url})
        assert resp.status_code == 201
        return resp.get_json()
    return _register
