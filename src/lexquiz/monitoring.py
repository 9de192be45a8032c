"""Monitoring configuration for the quiz engine."""
import logging

from prometheus_client import Counter, start_http_server


logger = logging.getLogger(__name__)

# Question metrics
questions_generated = Counter(
    "lexquiz_questions_generated_total",
    "Total number of questions generated",
    ["question_type", "flow"],
)

answers = Counter(
    "lexquiz_answers_total",
    "Total number of answered questions",
    ["question_type", "flow", "correct"],
)

# Ambient scheduling metrics
ambient_checks = Counter(
    "lexquiz_ambient_checks_total",
    "Total number of ambient checks by trigger and outcome",
    ["trigger", "outcome"],
)

deliveries = Counter(
    "lexquiz_deliveries_total",
    "Total number of ambient question deliveries",
    ["outcome"],
)

# Store metrics
store_operations = Counter(
    "lexquiz_store_operations_total",
    "Total number of key-value store operations",
    ["operation_type"],
)

store_errors = Counter(
    "lexquiz_store_errors_total",
    "Total number of key-value store errors",
    ["operation_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
    logger.info("Metrics server listening on port %d", port)
