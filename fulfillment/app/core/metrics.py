"""
Prometheus metrics for order fulfillment.
"""
from prometheus_client import Counter, Histogram


# Business metrics
order_transitions_total = Counter(
    'order_transitions_total',
    'Order transition requests by action and outcome',
    ['action', 'result']
)

order_dispatch_duration_seconds = Histogram(
    'order_dispatch_duration_seconds',
    'Time spent dispatching an order transition, repository write included',
    ['action'],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0]
)

reports_built_total = Counter(
    'reports_built_total',
    'Sales reports built by window kind',
    ['window']
)
