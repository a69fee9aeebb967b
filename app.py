from flask import Blueprint, Flask, Response, current_app, request, jsonify
from models import db
from config import Config
from datetime import datetime, timezone
from urllib.parse import urlencode
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import logging
import time

from analytics import AnalyticsEngine
from classifier import Classifier
from errors import MalformedInput, TrackerError
from ingestion import IngestionService, VisitSignal
from metrics import error_counter, request_duration
from signatures import DEFAULT_CATALOG, load_catalog
from tenants import TenantRegistry
from visits import VisitStore


# 1x1 transparent GIF, 43 bytes
PIXEL_GIF = (
    b"GIF89a"
    b"\x01\x00\x01\x00"
    b"\x80"
    b"\x00"
    b"\x00"
    b"\x00\x00\x00"
    b"\xff\xff\xff"
    b"\x21\xf9\x04\x01\x00\x00\x00\x00"
    b"\x2c\x00\x00\x00\x00\x01\x00\x01\x00\x00"
    b"\x02\x02\x44\x01\x00"
    b"\x3b"
)

# Paths the self-trap leaves alone, they are already tracked or are plumbing
UNTRAPPED_PREFIXES = ('/api/', '/metrics', '/health')

api = Blueprint('api', __name__)


class Services:
    def __init__(self, catalog, registry, ingestion, analytics):
        self.catalog = catalog
        self.registry = registry
        self.ingestion = ingestion
        self.analytics = analytics


def services():
    return current_app.extensions['crawler_trap']


def client_ip():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


def generate_tracking_code(website_id, api_key):
    analytics_url = current_app.config['ANALYTICS_URL'].rstrip('/')
    pixel_url = analytics_url + '/api/pixel?' + urlencode({
        'website_id': website_id,
        'api_key': api_key,
        'path': '/'
    })

    return f"""<script>
  (function() {{
    const websiteId = '{website_id}';
    const apiKey = '{api_key}';
    const analyticsUrl = '{analytics_url}';

    function trackVisit() {{
      const data = {{
        website_id: websiteId,
        api_key: apiKey,
        user_agent: navigator.userAgent,
        ip: '',
        path: window.location.pathname,
        referrer: document.referrer
      }};

      fetch(analyticsUrl + '/api/track', {{
        method: 'POST',
        headers: {{ 'Content-Type': 'application/json' }},
        body: JSON.stringify(data)
      }}).catch(err => console.log('Analytics tracking failed:', err));
    }}

    if (document.readyState === 'loading') {{
      document.addEventListener('DOMContentLoaded', trackVisit);
    }} else {{
      trackVisit();
    }}
  }})();
</script>
<noscript><img src="{pixel_url}" width="1" height="1" alt="" style="display:none"></noscript>"""


@api.route('/')
def home():
    return "AI crawler trap is running"


@api.route('/health')
def health():
    return {'status': 'healthy', 'timestamp': datetime.now(timezone.utc).isoformat()}


@api.route('/metrics')
def metrics():
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)


@api.route('/api/track', methods=['POST'])
def track():
    start_time = time.time()

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise MalformedInput('JSON body required')

    signal = VisitSignal.from_mapping(data)
    if signal.user_agent is None:
        signal.user_agent = request.headers.get('User-Agent')
    if not signal.ip:
        signal.ip = client_ip()

    result = services().ingestion.track(signal)

    request_duration.labels(endpoint='/api/track').observe(time.time() - start_time)
    return jsonify(result.to_dict())


@api.route('/api/pixel')
def pixel():
    args = request.args
    user_agent = request.headers.get('User-Agent')
    if current_app.config['PIXEL_TRUST_UA_PARAM'] and args.get('user_agent'):
        user_agent = args.get('user_agent')

    signal = VisitSignal(
        website_id=args.get('website_id'),
        api_key=args.get('api_key'),
        user_agent=user_agent,
        ip=client_ip(),
        path=args.get('path') or '/',
        referrer=args.get('referrer') or request.headers.get('Referer')
    )
    services().ingestion.track_pixel(signal)

    resp = Response(PIXEL_GIF, mimetype="image/gif")
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    resp.headers["Pragma"] = "no-cache"
    resp.headers["Expires"] = "0"
    return resp


@api.route('/api/websites/register', methods=['POST'])
def register_website():
    registry = services().registry
    if registry is None:
        return jsonify({'error': 'Website registration is disabled'}), 404

    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data.get('name'):
        raise MalformedInput('Website name required')

    website, api_key = registry.register(data['name'], data.get('url'))

    return jsonify({
        'success': True,
        'website_id': website.id,
        'api_key': api_key,
        'tracking_code': generate_tracking_code(website.id, api_key)
    }), 201


@api.route('/api/websites')
def list_websites():
    registry = services().registry
    websites = registry.list_websites() if registry is not None else []
    return jsonify({'websites': [w.to_dict() for w in websites]})


@api.route('/api/analytics/summary')
def analytics_summary():
    website_id = request.args.get('website_id') or None
    return jsonify(services().analytics.summary(website_id))


@api.route('/api/logs')
def logs():
    return jsonify(services().analytics.logs(
        website_id=request.args.get('website_id') or None,
        page=request.args.get('page'),
        limit=request.args.get('limit'),
        default_limit=current_app.config['LOGS_DEFAULT_LIMIT']
    ))


@api.app_errorhandler(TrackerError)
def handle_tracker_error(e):
    error_counter.labels(type=e.code).inc()
    return jsonify(e.to_dict()), e.status_code


def self_trap():
    if request.path.startswith(UNTRAPPED_PREFIXES):
        return
    try:
        services().ingestion.track_request(
            user_agent=request.headers.get('User-Agent'),
            ip=client_ip(),
            path=request.path,
            referrer=request.headers.get('Referer'),
            website_id=current_app.config['SELF_TRAP_WEBSITE_ID']
        )
    except TrackerError as e:
        # Never let the trap break the page being served
        error_counter.labels(type=e.code).inc()
        current_app.logger.error("Self-trap failed on %s: %s", request.path, e.message)


def build_services(app):
    signatures_file = app.config.get('BOT_SIGNATURES_FILE')
    catalog = load_catalog(signatures_file) if signatures_file else DEFAULT_CATALOG

    classifier = Classifier(catalog, case_sensitive=app.config['BOT_MATCH_CASE_SENSITIVE'])
    registry = TenantRegistry() if app.config['MULTI_TENANT'] else None
    store = VisitStore()

    return Services(
        catalog=catalog,
        registry=registry,
        ingestion=IngestionService(classifier, store, catalog, registry=registry),
        analytics=AnalyticsEngine(store, catalog)
    )


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    logging.basicConfig(level=app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])

    db.init_app(app)
    app.extensions['crawler_trap'] = build_services(app)
    app.register_blueprint(api)

    if app.config['SELF_TRAP_ENABLED']:
        app.before_request(self_trap)

    with app.app_context():
        db.create_all()

    app.logger.info(
        "Crawler trap ready (%s mode, %d signatures)",
        'multi-tenant' if app.config['MULTI_TENANT'] else 'single-tenant',
        len(app.extensions['crawler_trap'].catalog)
    )
    return app


if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=app.config['PORT'])
