"""
Turns an inbound visit signal into a stored bot visit.

Two delivery paths share one pipeline: the beacon (a script on the tenant's
page posts JSON) reports failures to its caller, the pixel (an image request)
never does. Both authenticate the website, classify the user agent and
append a record only on a match.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from errors import InvalidCredentials, MalformedInput, TrackerError
from metrics import error_counter, untracked_counter, visits_counter
from visits import VisitDraft

logger = logging.getLogger(__name__)


@dataclass
class VisitSignal:
    website_id: Optional[str] = None
    api_key: Optional[str] = None
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    path: Optional[str] = None
    referrer: Optional[str] = None

    @classmethod
    def from_mapping(cls, data):
        def field(name):
            value = data.get(name)
            if value is None:
                return None
            return value if isinstance(value, str) else str(value)

        return cls(
            website_id=field('website_id'),
            api_key=field('api_key'),
            user_agent=field('user_agent'),
            ip=field('ip'),
            path=field('path'),
            referrer=field('referrer')
        )


@dataclass(frozen=True)
class TrackResult:
    tracked: bool
    bot: Optional[str] = None
    visit_id: Optional[int] = None

    def to_dict(self):
        if not self.tracked:
            return {'tracked': False}
        return {'tracked': True, 'bot': self.bot}


NOT_TRACKED = TrackResult(tracked=False)


class IngestionService:
    """
    ``registry`` is optional: without one the service runs single-tenant,
    skips authentication and stores visits with no website.
    """

    def __init__(self, classifier, store, catalog, registry=None):
        self.classifier = classifier
        self.store = store
        self.catalog = catalog
        self.registry = registry

    @property
    def multi_tenant(self):
        return self.registry is not None

    def track(self, signal: VisitSignal, source='beacon') -> TrackResult:
        website = self._authenticate(signal)
        website_id = website.id if website is not None else None

        signature = self.classifier.classify(signal.user_agent)
        if signature is None:
            untracked_counter.labels(source=source).inc()
            return NOT_TRACKED

        return self._record(signature, signal, website_id, source,
                            label=website.name if website is not None else None)

    def track_pixel(self, signal: VisitSignal) -> TrackResult:
        """Same pipeline as ``track`` but failures are logged, not raised."""
        try:
            return self.track(signal, source='pixel')
        except TrackerError as e:
            error_counter.labels(type=e.code).inc()
            logger.warning("Pixel signal for %r not tracked: %s", signal.website_id, e.message)
            return NOT_TRACKED

    def track_request(self, user_agent, ip, path, referrer=None, website_id=None):
        """
        Trap for crawlers hitting this service directly. Nothing to
        authenticate here, the request itself is the signal.
        """
        signature = self.classifier.classify(user_agent)
        if signature is None:
            return NOT_TRACKED

        signal = VisitSignal(user_agent=user_agent, ip=ip, path=path, referrer=referrer)
        return self._record(signature, signal, website_id, 'trap')

    def _authenticate(self, signal):
        if not self.multi_tenant:
            return None

        if not signal.website_id or not signal.api_key:
            raise MalformedInput('Missing website_id or api_key')

        website = self.registry.authenticate(signal.website_id, signal.api_key)
        if website is None:
            logger.warning("Rejected credentials for website %r", signal.website_id)
            raise InvalidCredentials()
        return website

    def _record(self, signature, signal, website_id, source, label=None):
        visit = self.store.append(VisitDraft(
            website_id=website_id,
            bot_signature=signature,
            user_agent=signal.user_agent,
            ip_address=signal.ip,
            path=signal.path or '/',
            referrer=signal.referrer
        ))

        bot = self.catalog.display_name(signature)
        visits_counter.labels(bot=signature, website=website_id or '-', source=source).inc()
        logger.info("Tracked: %s on %s%s", bot, label or website_id or '-', visit.path)

        return TrackResult(tracked=True, bot=bot, visit_id=visit.id)
