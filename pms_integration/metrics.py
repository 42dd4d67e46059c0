"""
Prometheus metrics for the PMS integration layer
"""

from prometheus_client import Counter, Histogram

# Webhook metrics
webhook_requests_total = Counter(
    'pms_webhook_requests_total',
    'Inbound vendor webhook requests',
    ['vendor', 'outcome']
)

webhook_events_dropped_total = Counter(
    'pms_webhook_events_dropped_total',
    'Authenticated webhook events that were not published',
    ['vendor', 'reason']
)

# Adapter metrics
adapter_attempts_total = Counter(
    'pms_adapter_attempts_total',
    'Outbound vendor call attempts',
    ['vendor', 'operation', 'outcome']
)

adapter_request_duration = Histogram(
    'pms_adapter_request_duration_seconds',
    'Outbound vendor call duration',
    ['vendor']
)

# Event bus metrics
events_emitted_total = Counter(
    'pms_events_emitted_total',
    'Events published on the event bus',
    ['topic']
)

listener_errors_total = Counter(
    'pms_event_listener_errors_total',
    'Event bus listener failures',
    ['topic']
)

# Sync metrics
sync_runs_total = Counter(
    'pms_sync_runs_total',
    'Sync job runs',
    ['vendor', 'status']
)
