import hmac
import logging
import re
import secrets

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import DuplicateTenant, MalformedInput, StorageFailure
from models import Website, db

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r'\s+')


def slugify(name):
    """'My  Site' -> 'my-site'"""
    return _WHITESPACE.sub('-', name.strip().lower())


def generate_api_key():
    return "sk_" + secrets.token_urlsafe(32)


class TenantRegistry:
    """Registered websites and their credentials."""

    def register(self, name, url=None):
        """
        Create a website from its display name. The id is the slugified name
        and the api key is freshly generated; an existing id is never
        overwritten.
        """
        if not isinstance(name, str) or not name.strip():
            raise MalformedInput('Website name required')
        if url is not None and not isinstance(url, str):
            raise MalformedInput('Website url must be a string')

        website_id = slugify(name)
        if db.session.get(Website, website_id) is not None:
            raise DuplicateTenant()

        api_key = generate_api_key()
        website = Website(id=website_id, name=name.strip(), url=url, api_key=api_key)

        try:
            db.session.add(website)
            db.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration of the same id
            db.session.rollback()
            raise DuplicateTenant()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to register website %s", website_id)
            raise StorageFailure()

        logger.info("Registered website %s (%s)", website_id, url)
        return website, api_key

    def authenticate(self, website_id, api_key):
        if not website_id or not api_key:
            return None

        try:
            website = db.session.get(Website, website_id)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to look up website %s", website_id)
            raise StorageFailure()

        if website is None:
            return None
        if not hmac.compare_digest(website.api_key.encode(), str(api_key).encode()):
            return None
        return website

    def list_websites(self):
        return Website.query.order_by(Website.created_at.asc(), Website.id.asc()).all()
