from concurrent.futures import ThreadPoolExecutor

import pytest

from models import BotVisit
from tenants import TenantRegistry
from visits import MAX_PAGE, MAX_PAGE_LIMIT, Pagination, VisitDraft, VisitStore


def draft(i=0, website_id=None, signature='GPTBot'):
    return VisitDraft(
        website_id=website_id,
        bot_signature=signature,
        user_agent='%s/1.0' % signature,
        ip_address='10.0.0.%d' % (i % 250),
        path='/page/%d' % i
    )


@pytest.mark.parametrize('page, limit, expected', [
    (None, None, (1, 50)),
    ('3', '20', (3, 20)),
    (0, 0, (1, 50)),
    (-2, -5, (1, 50)),
    ('abc', 'xyz', (1, 50)),
    (1, 100000, (1, MAX_PAGE_LIMIT)),
    ('99999999999999999999', 10, (MAX_PAGE, 10)),
])
def test_pagination_clamps(page, limit, expected):
    pagination = Pagination.from_args(page, limit)
    assert (pagination.page, pagination.limit) == expected


def test_pages():
    pagination = Pagination(page=1, limit=10)
    assert pagination.pages(0) == 0
    assert pagination.pages(10) == 1
    assert pagination.pages(11) == 2


def test_append_assigns_id_and_timestamp(app):
    store = VisitStore()
    with app.app_context():
        visit = store.append(draft(1))
        assert visit.id is not None
        assert visit.timestamp is not None
        assert visit.website_id is None
        assert visit.referrer == ''


def test_query_filters_by_website(app):
    store = VisitStore()
    with app.app_context():
        TenantRegistry().register('Acme')
        TenantRegistry().register('Other')
        for i in range(3):
            store.append(draft(i, website_id='acme'))
        store.append(draft(9, website_id='other'))

        total, visits = store.query('acme')
        assert total == 3
        assert {v.website_id for v in visits} == {'acme'}

        total, _ = store.query()
        assert total == 4


def test_pages_cover_every_record_once_newest_first(app):
    store = VisitStore()
    with app.app_context():
        for i in range(23):
            store.append(draft(i))

        total, everything = store.query(pagination=Pagination(page=1, limit=MAX_PAGE_LIMIT))
        expected = sorted(everything, key=lambda v: (v.timestamp, v.id), reverse=True)
        assert [v.id for v in everything] == [v.id for v in expected]

        pagination = Pagination(page=1, limit=5)
        collected = []
        for page in range(1, pagination.pages(total) + 1):
            _, visits = store.query(pagination=Pagination(page=page, limit=5))
            collected.extend(v.id for v in visits)

        assert total == 23
        assert collected == [v.id for v in expected]


def test_concurrent_appends(app):
    store = VisitStore()
    with app.app_context():
        TenantRegistry().register('Acme')

    def append(i):
        with app.app_context():
            return store.append(draft(i, website_id='acme')).id

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(append, range(40)))

    assert len(set(ids)) == 40
    with app.app_context():
        total, _ = store.query('acme')
        assert total == 40


def test_page_far_past_the_end_is_empty(app):
    store = VisitStore()
    with app.app_context():
        store.append(draft(1))

        total, visits = store.query(pagination=Pagination.from_args('99999999999999999999', '10'))
        assert total == 1
        assert visits == []


def test_scope_without_website_is_a_noop(app):
    store = VisitStore()
    with app.app_context():
        query = BotVisit.query
        assert store.scope(query) is query
        assert store.scope(query, None) is query
