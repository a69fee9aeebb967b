from prometheus_client import Counter, Histogram

# Prometheus metrics
visits_counter = Counter('bot_visits_total', 'Total bot visits recorded', ['bot', 'website', 'source'])
untracked_counter = Counter('untracked_signals_total', 'Signals received with no bot match', ['source'])
request_duration = Histogram('request_duration_seconds', 'Request duration', ['endpoint'])
error_counter = Counter('errors_total', 'Total errors', ['type'])
