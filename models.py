from flask_sqlalchemy import SQLAlchemy
from datetime import datetime, timezone

db = SQLAlchemy()


def utcnow():
    # Naive UTC, the way SQLite hands it back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Website(db.Model):
    __tablename__ = 'websites'

    id = db.Column(db.String(100), primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    url = db.Column(db.Text)
    api_key = db.Column(db.String(64), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        # Credentials never leave through this projection
        return {
            'id': self.id,
            'name': self.name,
            'url': self.url,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class BotVisit(db.Model):
    __tablename__ = 'bot_visits'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    website_id = db.Column(db.String(100), db.ForeignKey('websites.id'), nullable=True, index=True)

    # Raw matched token, display names are resolved when read
    bot_signature = db.Column(db.String(100), nullable=False, index=True)
    user_agent = db.Column(db.Text, nullable=False)
    ip_address = db.Column(db.String(100))
    path = db.Column(db.Text, nullable=False)
    referrer = db.Column(db.Text)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)

    website = db.relationship('Website', backref='visits')

    def to_dict(self):
        return {
            'id': self.id,
            'website_id': self.website_id,
            'bot_signature': self.bot_signature,
            'user_agent': self.user_agent,
            'ip_address': self.ip_address,
            'path': self.path,
            'referrer': self.referrer,
            'timestamp': self.timestamp.isoformat()
        }
