import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from errors import StorageFailure
from models import BotVisit, db, utcnow

logger = logging.getLogger(__name__)

MAX_PAGE_LIMIT = 500
MAX_PAGE = 1_000_000


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int

    @classmethod
    def from_args(cls, page=None, limit=None, default_limit=50):
        """
        Lenient parsing: junk or non-positive values fall back to defaults,
        oversized ones are capped so the offset stays a bindable integer.
        """
        page = min(_positive_int(page, 1), MAX_PAGE)
        limit = min(_positive_int(limit, default_limit), MAX_PAGE_LIMIT)
        return cls(page=page, limit=limit)

    @property
    def offset(self):
        return (self.page - 1) * self.limit

    def pages(self, total):
        return math.ceil(total / self.limit) if total else 0


@dataclass(frozen=True)
class VisitDraft:
    bot_signature: str
    user_agent: str
    path: str
    website_id: Optional[str] = None
    ip_address: Optional[str] = None
    referrer: Optional[str] = None


class VisitStore:
    """Append-only log of attributed bot visits."""

    def append(self, draft: VisitDraft) -> BotVisit:
        visit = BotVisit(
            website_id=draft.website_id,
            bot_signature=draft.bot_signature,
            user_agent=draft.user_agent,
            ip_address=draft.ip_address,
            path=draft.path,
            referrer=draft.referrer or '',
            timestamp=utcnow()
        )

        try:
            db.session.add(visit)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to store visit from %s", draft.bot_signature)
            raise StorageFailure()

        return visit

    def scope(self, query, website_id=None):
        """Restrict any query over bot_visits to one website; no-op without one."""
        if website_id:
            query = query.filter(BotVisit.website_id == website_id)
        return query

    def filtered(self, website_id=None):
        return self.scope(BotVisit.query, website_id)

    def query(self, website_id=None, pagination=None):
        """Return (total, visits on the requested page), newest first."""
        pagination = pagination or Pagination.from_args()
        query = self.filtered(website_id)

        try:
            total = query.count()
            visits = (query
                      .options(joinedload(BotVisit.website))
                      .order_by(BotVisit.timestamp.desc(), BotVisit.id.desc())
                      .limit(pagination.limit)
                      .offset(pagination.offset)
                      .all())
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to query visits")
            raise StorageFailure()

        return total, visits
