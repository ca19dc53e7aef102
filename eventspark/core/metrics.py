"""
Metrics instrumentation for observability.
Hosts embedding the client can expose these via render_metrics().
"""

from prometheus_client import Counter, generate_latest

# API metrics
api_calls = Counter(
    'eventspark_api_calls_total',
    'Calls made to the ticketing API',
    ['endpoint', 'outcome']  # ok, transport_error, business_error, malformed
)

# Refresh metrics
refresh_ticks = Counter(
    'eventspark_refresh_ticks_total',
    'Background refresh jobs run',
    ['job', 'result']  # ok, error
)

stale_results_discarded = Counter(
    'eventspark_stale_results_discarded_total',
    'Fetch results dropped because a newer result was already applied',
    ['slot']
)

# Mutation metrics
booking_cancellations = Counter(
    'eventspark_booking_cancellations_total',
    'Individual booking cancellation requests',
    ['result']  # success, failure
)

role_changes = Counter(
    'eventspark_role_changes_total',
    'User role change requests',
    ['result']  # success, failure
)


def render_metrics() -> bytes:
    """Prometheus exposition text for the default registry."""
    return generate_latest()


def record_api_call(endpoint: str, outcome: str):
    api_calls.labels(endpoint=endpoint, outcome=outcome).inc()

def record_refresh(job: str, ok: bool):
    result = "ok" if ok else "error"
    refresh_ticks.labels(job=job, result=result).inc()

def record_stale_discard(slot: str):
    stale_results_discarded.labels(slot=slot).inc()

def record_cancellation(success: bool):
    result = "success" if success else "failure"
    booking_cancellations.labels(result=result).inc()

def record_role_change(success: bool):
    result = "success" if success else "failure"
    role_changes.labels(result=result).inc()
