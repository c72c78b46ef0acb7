############################################################
#
# bedrockgate - Signed Inference Gateway for Amazon Bedrock
#
# metrics.py: Prometheus metric definitions
#
# Luke Sheneman
# Research Computing and Data Services (RCDS)
# Institute for Interdisciplinary Data Sciences (IIDS)
# University of Idaho
# sheneman@uidaho.edu
#
############################################################

"""Prometheus metrics shared by the pipeline and the /metrics endpoint."""

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "bedrockgate_requests_total",
    "Total number of chat completion requests",
    ["model", "outcome"],
)
BACKEND_LATENCY = Histogram(
    "bedrockgate_backend_latency_seconds",
    "Bedrock round-trip latency in seconds",
    ["model"],
)
QUEUE_WAIT = Histogram(
    "bedrockgate_queue_wait_seconds",
    "Time spent waiting for an admission slot",
    ["model"],
)
QUEUE_WAITING = Gauge(
    "bedrockgate_queue_waiting",
    "Requests waiting for an admission slot",
    ["model"],
)
QUEUE_IN_FLIGHT = Gauge(
    "bedrockgate_queue_in_flight",
    "Requests holding an admission slot",
    ["model"],
)


def refresh_queue_gauges(stats) -> None:
    """Copy AdmissionQueue.get_stats() into the queue gauges.

    Idle keys are dropped from the queue, so their series are dropped here too.
    """
    QUEUE_WAITING.clear()
    QUEUE_IN_FLIGHT.clear()
    for key, values in stats.items():
        QUEUE_WAITING.labels(model=key).set(values["waiting"])
        QUEUE_IN_FLIGHT.labels(model=key).set(values["in_flight"])
