import logging
from datetime import date, timedelta

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from errors import StorageFailure
from models import BotVisit, db, utcnow
from visits import Pagination

logger = logging.getLogger(__name__)

TOP_PAGES = 20
ACTIVITY_DAYS = 30


def _day(value):
    # SQLite returns DATE() as text, other backends as a date
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


class AnalyticsEngine:
    """Read-only aggregates over the visit log, computed per request."""

    def __init__(self, store, catalog):
        self.store = store
        self.catalog = catalog

    def summary(self, website_id=None):
        try:
            return self._summary(website_id)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to build summary for %r", website_id)
            raise StorageFailure()

    def _summary(self, website_id):
        total = self.store.scope(db.session.query(func.count(BotVisit.id)), website_id).scalar() or 0

        visits = func.count(BotVisit.id).label('visits')
        by_bot = self.store.scope(db.session.query(
            BotVisit.bot_signature,
            visits,
            func.count(func.distinct(BotVisit.ip_address))
        ), website_id).group_by(BotVisit.bot_signature).order_by(
            visits.desc(), BotVisit.bot_signature.asc()
        ).all()

        by_page = self.store.scope(db.session.query(
            BotVisit.path,
            visits
        ), website_id).group_by(BotVisit.path).order_by(
            visits.desc(), BotVisit.path.asc()
        ).limit(TOP_PAGES).all()

        day = func.date(BotVisit.timestamp).label('day')
        since = utcnow() - timedelta(days=ACTIVITY_DAYS)
        by_day = self.store.scope(db.session.query(
            day,
            visits
        ), website_id).filter(BotVisit.timestamp >= since).group_by(day).order_by(day.desc()).all()

        return {
            'total_visits': total,
            'bot_breakdown': [{
                'bot': self.catalog.display_name(signature),
                'signature': signature,
                'visits': count,
                'unique_ips': unique_ips
            } for signature, count, unique_ips in by_bot],
            'page_breakdown': [{'path': path, 'visits': count} for path, count in by_page],
            'recent_activity': [{'date': _day(d), 'visits': count} for d, count in by_day]
        }

    def logs(self, website_id=None, page=None, limit=None, default_limit=50):
        pagination = Pagination.from_args(page, limit, default_limit=default_limit)
        total, visits = self.store.query(website_id, pagination)

        return {
            'total': total,
            'page': pagination.page,
            'limit': pagination.limit,
            'pages': pagination.pages(total),
            'logs': [dict(
                visit.to_dict(),
                website_name=visit.website.name if visit.website else None,
                bot_name=self.catalog.display_name(visit.bot_signature)
            ) for visit in visits]
        }
